"""CDK stacks for the event pipeline."""

from .event_pipeline_stack import EventPipelineStack

__all__ = ["EventPipelineStack"]
