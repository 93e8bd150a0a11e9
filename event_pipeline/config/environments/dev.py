"""Development environment configuration."""

import os

dev_config = {
    "account_id": os.environ.get("CDK_DEFAULT_ACCOUNT"),
    "region": "ap-northeast-2",
    "pipeline": {
        "name": "event-pipeline-dev",
        # Custom application events routed to the queue
        "event_pattern": {
            "source": ["com.example.orders"],
            "detail-type": ["OrderCreated", "OrderUpdated"],
        },
        "create_event_bus": True,
        "create_lambda": True,
        "enable_dlq": True,
        "enable_logging": True,
        "enable_alarms": False,
        "lambda_code": "src/lambda/functions/event_processor",
        "lambda_handler": "handler.main",
        "lambda_runtime": "python3.12",
        "lambda_timeout": 30,
        "lambda_memory_size": 128,
        "lambda_environment_variables": {"ENVIRONMENT": "dev", "LOG_LEVEL": "DEBUG"},
        "batch_size": 10,
        "sqs_visibility_timeout_seconds": 180,
        "max_receive_count": 3,
        "log_retention_days": 7,
        "tags": {
            "Environment": "dev",
            "Project": "ServerlessEventPipeline",
            "Owner": "PlatformTeam",
        },
    },
}
