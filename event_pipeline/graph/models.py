"""Typed models for validated pipeline settings and wiring context.

``PipelineSettings`` is the validated, immutable form of a caller-supplied
configuration mapping. Single-field rules (types, ranges, naming) are declared
here with Pydantic v2; rules spanning several fields live in
``event_pipeline.graph.validation``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictInt, field_validator

from event_pipeline.config.defaults import LOG_RETENTION_DAYS

# Longest derived name is "<name>-lambda-throttles"; 40 keeps every derived
# name inside the 64 character IAM role / Lambda function / alarm limits.
NAME_MAX_LENGTH = 40
NAME_PATTERN = r"^[A-Za-z0-9][A-Za-z0-9_-]*$"

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class PipelineSettings(BaseModel):
    """Validated pipeline configuration."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(min_length=1, max_length=NAME_MAX_LENGTH, pattern=NAME_PATTERN)
    event_pattern: Dict[str, Any] = Field(min_length=1)

    create_event_bus: StrictBool = False
    create_lambda: StrictBool = False
    enable_dlq: StrictBool = True
    enable_logging: StrictBool = False
    enable_alarms: StrictBool = False

    lambda_code: Optional[str] = None
    lambda_code_hash: Optional[str] = None
    lambda_handler: str = Field(default="handler.main", min_length=1)
    lambda_runtime: str = Field(default="python3.12", min_length=1)
    lambda_timeout: StrictInt = Field(default=30, gt=0, le=900)
    lambda_memory_size: StrictInt = Field(default=128, ge=128, le=10240)
    lambda_environment_variables: Dict[str, str] = Field(default_factory=dict)
    batch_size: StrictInt = Field(default=10, ge=1, le=10000)
    maximum_batching_window_seconds: StrictInt = Field(default=0, ge=0, le=300)

    sqs_visibility_timeout_seconds: StrictInt = Field(default=180, gt=0, le=43200)
    sqs_message_retention_seconds: StrictInt = Field(default=345600, ge=60, le=1209600)
    max_receive_count: StrictInt = Field(default=3, ge=1, le=1000)
    dlq_visibility_timeout_seconds: StrictInt = Field(default=30, ge=0, le=43200)
    dlq_message_retention_seconds: StrictInt = Field(default=1209600, ge=60, le=1209600)

    log_retention_days: StrictInt = 14

    alarm_email: Optional[str] = None
    dlq_alarm_threshold: float = Field(default=1, ge=0)
    lambda_error_threshold: float = Field(default=1, ge=0)
    lambda_throttle_threshold: float = Field(default=1, ge=0)
    alarm_period_seconds: StrictInt = Field(default=300, ge=60, multiple_of=60)

    tags: Dict[str, str] = Field(default_factory=dict)

    @field_validator("log_retention_days")
    @classmethod
    def _check_retention(cls, v: int) -> int:
        if v not in LOG_RETENTION_DAYS:
            raise ValueError(f"must be one of {', '.join(str(d) for d in LOG_RETENTION_DAYS)}")
        return v

    @field_validator("alarm_email")
    @classmethod
    def _check_email(cls, v: Optional[str]) -> Optional[str]:
        value = (v or "").strip()
        # Blank means "not set"; whether it is required depends on enable_alarms.
        if not value:
            return None
        if not _EMAIL_RE.match(value):
            raise ValueError("must be an email address")
        return value

    @property
    def resource_tags(self) -> Dict[str, str]:
        """User tags plus the implicit ``Name`` tag, sorted by key."""
        merged = {**self.tags, "Name": self.name}
        return {key: merged[key] for key in sorted(merged)}


@dataclass(frozen=True)
class AccountContext:
    """Account/region identity supplied by the orchestration layer."""

    account_id: str
    region: str
    partition: str = "aws"

    @property
    def url_suffix(self) -> str:
        return "amazonaws.com.cn" if self.partition == "aws-cn" else "amazonaws.com"


@dataclass(frozen=True)
class NodeAttributes:
    """Output attributes of a materialized node; fields a resource lacks stay ``None``."""

    name: Optional[str] = None
    arn: Optional[str] = None
    url: Optional[str] = None
