"""Default values applied to every pipeline configuration."""

from __future__ import annotations

from typing import Any, Dict

DEFAULT_PIPELINE_CONFIG: Dict[str, Any] = {
    # Feature toggles
    "create_event_bus": False,
    "create_lambda": False,
    "enable_dlq": True,
    "enable_logging": False,
    "enable_alarms": False,
    # Consumer (only used when create_lambda is set)
    "lambda_code": None,
    "lambda_code_hash": None,
    "lambda_handler": "handler.main",
    "lambda_runtime": "python3.12",
    "lambda_timeout": 30,
    "lambda_memory_size": 128,
    "lambda_environment_variables": {},
    "batch_size": 10,
    "maximum_batching_window_seconds": 0,
    # Queues
    "sqs_visibility_timeout_seconds": 180,
    "sqs_message_retention_seconds": 345600,  # 4 days
    "max_receive_count": 3,
    "dlq_visibility_timeout_seconds": 30,
    "dlq_message_retention_seconds": 1209600,  # 14 days
    # Event logging
    "log_retention_days": 14,
    # Alarms
    "alarm_email": None,
    "dlq_alarm_threshold": 1,
    "lambda_error_threshold": 1,
    "lambda_throttle_threshold": 1,
    "alarm_period_seconds": 300,
    "tags": {},
}

# Values accepted by CloudWatch Logs for RetentionInDays.
LOG_RETENTION_DAYS = (
    1, 3, 5, 7, 14, 30, 60, 90, 120, 150, 180, 365, 400, 545, 731, 1096, 1827, 2192, 2557, 2922, 3288, 3653,
)
