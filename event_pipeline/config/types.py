"""Typed configuration contracts for the event pipeline."""

from __future__ import annotations

from typing import Any, Dict, NotRequired, Optional, Required, TypedDict


class PipelineConfig(TypedDict, total=False):
    """Caller-supplied pipeline configuration (see ``defaults.DEFAULT_PIPELINE_CONFIG``)."""

    name: Required[str]
    event_pattern: Required[Dict[str, Any]]

    create_event_bus: NotRequired[bool]
    create_lambda: NotRequired[bool]
    enable_dlq: NotRequired[bool]
    enable_logging: NotRequired[bool]
    enable_alarms: NotRequired[bool]

    lambda_code: NotRequired[Optional[str]]
    lambda_code_hash: NotRequired[Optional[str]]
    lambda_handler: NotRequired[str]
    lambda_runtime: NotRequired[str]
    lambda_timeout: NotRequired[int]
    lambda_memory_size: NotRequired[int]
    lambda_environment_variables: NotRequired[Dict[str, str]]
    batch_size: NotRequired[int]
    maximum_batching_window_seconds: NotRequired[int]

    sqs_visibility_timeout_seconds: NotRequired[int]
    sqs_message_retention_seconds: NotRequired[int]
    max_receive_count: NotRequired[int]
    dlq_visibility_timeout_seconds: NotRequired[int]
    dlq_message_retention_seconds: NotRequired[int]

    log_retention_days: NotRequired[int]

    alarm_email: NotRequired[Optional[str]]
    dlq_alarm_threshold: NotRequired[float]
    lambda_error_threshold: NotRequired[float]
    lambda_throttle_threshold: NotRequired[float]
    alarm_period_seconds: NotRequired[int]

    tags: NotRequired[Dict[str, str]]


class EnvironmentConfig(TypedDict, total=False):
    """Deployment environment: where the stack goes and what it builds."""

    region: Required[str]
    account_id: NotRequired[Optional[str]]
    pipeline: Required[PipelineConfig]
