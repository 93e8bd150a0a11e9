"""Staging environment configuration."""

import os

staging_config = {
    "account_id": os.environ.get("CDK_DEFAULT_ACCOUNT"),
    "region": "ap-northeast-2",
    "pipeline": {
        "name": "event-pipeline-staging",
        "event_pattern": {
            "source": ["com.example.orders"],
            "detail-type": ["OrderCreated", "OrderUpdated"],
        },
        "create_event_bus": True,
        "create_lambda": True,
        "enable_dlq": True,
        "enable_logging": True,
        "enable_alarms": True,
        "lambda_code": "src/lambda/functions/event_processor",
        "lambda_timeout": 60,
        "lambda_memory_size": 256,
        "lambda_environment_variables": {"ENVIRONMENT": "staging"},
        "batch_size": 10,
        "maximum_batching_window_seconds": 5,
        # Visibility timeout must stay above the Lambda timeout
        "sqs_visibility_timeout_seconds": 360,
        "max_receive_count": 5,
        "log_retention_days": 30,
        "alarm_email": os.environ.get("ALARM_EMAIL", "platform-alerts@example.com"),
        "dlq_alarm_threshold": 1,
        "lambda_error_threshold": 5,
        "tags": {
            "Environment": "staging",
            "Project": "ServerlessEventPipeline",
            "Owner": "PlatformTeam",
        },
    },
}
