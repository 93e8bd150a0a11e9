#!/usr/bin/env python3
"""
Serverless Event Pipeline CDK App
EventBridge routing, SQS with dead-letter handling, optional Lambda consumer and alarms.
"""

import aws_cdk as cdk

from event_pipeline.config.environments import get_environment_config
from event_pipeline.config.loader import with_code_hash
from event_pipeline.stacks import EventPipelineStack

app = cdk.App()

# Get environment configuration
environment = app.node.try_get_context("environment") or "dev"
config = get_environment_config(environment)

# CDK environment (account/region)
cdk_env = cdk.Environment(account=config.get("account_id"), region=config.get("region", "ap-northeast-2"))

pipeline_config = with_code_hash(config["pipeline"])

pipeline_stack = EventPipelineStack(
    app,
    f"EventPipeline-{environment}",
    environment=environment,
    config=pipeline_config,
    env=cdk_env,
    description=f"Serverless event pipeline ({environment})",
)

# Stack-level tags; resource tags come from the pipeline configuration
cdk.Tags.of(pipeline_stack).add("Environment", environment)
cdk.Tags.of(pipeline_stack).add("ManagedBy", "CDK")

app.synth()
