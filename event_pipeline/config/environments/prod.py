"""Production environment configuration."""

import os

prod_config = {
    "account_id": os.environ.get("CDK_DEFAULT_ACCOUNT"),
    "region": "ap-northeast-2",
    "pipeline": {
        "name": "event-pipeline-prod",
        "event_pattern": {
            "source": ["com.example.orders"],
            "detail-type": ["OrderCreated", "OrderUpdated", "OrderCancelled"],
        },
        "create_event_bus": True,
        "create_lambda": True,
        "enable_dlq": True,
        "enable_logging": True,
        "enable_alarms": True,
        "lambda_code": "src/lambda/functions/event_processor",
        "lambda_timeout": 120,
        "lambda_memory_size": 512,
        "lambda_environment_variables": {"ENVIRONMENT": "prod"},
        "batch_size": 25,
        "maximum_batching_window_seconds": 10,
        # Six times the Lambda timeout, as recommended for SQS event sources
        "sqs_visibility_timeout_seconds": 720,
        "sqs_message_retention_seconds": 1209600,
        "max_receive_count": 5,
        "log_retention_days": 90,
        "alarm_email": os.environ.get("ALARM_EMAIL", "platform-oncall@example.com"),
        "dlq_alarm_threshold": 1,
        "lambda_error_threshold": 1,
        "lambda_throttle_threshold": 5,
        "tags": {
            "Environment": "prod",
            "Project": "ServerlessEventPipeline",
            "Owner": "PlatformTeam",
            "CostCenter": "Engineering",
        },
    },
}
