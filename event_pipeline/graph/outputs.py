"""Output projector: the flat, stable output contract of a pipeline graph."""

from __future__ import annotations

from typing import Callable, Dict, Optional, Tuple

from event_pipeline.graph.assembler import PipelineGraph
from event_pipeline.graph.references import ReferenceResolver
from event_pipeline.graph.registry import NodeId

OutputSource = Callable[[ReferenceResolver], Optional[str]]

OUTPUTS: Tuple[Tuple[str, OutputSource, str], ...] = (
    ("event_bus_name", lambda r: r.bus_name(), "Event bus the rule listens on"),
    ("event_bus_arn", lambda r: r.bus_arn(), "ARN of the event bus the rule listens on"),
    ("event_rule_name", lambda r: r.name_of(NodeId.EVENT_RULE), "Routing rule name"),
    ("event_rule_arn", lambda r: r.arn_of(NodeId.EVENT_RULE), "Routing rule ARN"),
    ("queue_name", lambda r: r.name_of(NodeId.QUEUE), "Main queue name"),
    ("queue_arn", lambda r: r.arn_of(NodeId.QUEUE), "Main queue ARN"),
    ("queue_url", lambda r: r.url_of(NodeId.QUEUE), "Main queue URL"),
    ("dlq_name", lambda r: r.name_of(NodeId.DLQ), "Dead-letter queue name"),
    ("dlq_arn", lambda r: r.arn_of(NodeId.DLQ), "Dead-letter queue ARN"),
    ("dlq_url", lambda r: r.url_of(NodeId.DLQ), "Dead-letter queue URL"),
    ("lambda_function_name", lambda r: r.name_of(NodeId.LAMBDA), "Consumer function name"),
    ("lambda_function_arn", lambda r: r.arn_of(NodeId.LAMBDA), "Consumer function ARN"),
    ("lambda_role_arn", lambda r: r.arn_of(NodeId.LAMBDA_ROLE), "Consumer execution role ARN"),
    ("log_group_name", lambda r: r.name_of(NodeId.LOG_GROUP), "Event log group name"),
    ("log_group_arn", lambda r: r.arn_of(NodeId.LOG_GROUP), "Event log group ARN"),
    ("alarm_topic_arn", lambda r: r.arn_of(NodeId.ALARM_TOPIC), "Alarm notification topic ARN"),
    ("dlq_alarm_name", lambda r: r.name_of(NodeId.DLQ_DEPTH_ALARM), "DLQ depth alarm name"),
    ("lambda_error_alarm_name", lambda r: r.name_of(NodeId.LAMBDA_ERROR_ALARM), "Consumer error alarm name"),
    ("lambda_throttle_alarm_name", lambda r: r.name_of(NodeId.LAMBDA_THROTTLE_ALARM), "Consumer throttle alarm name"),
)

OUTPUT_NAMES: Tuple[str, ...] = tuple(name for name, _, _ in OUTPUTS)

OUTPUT_DESCRIPTIONS: Dict[str, str] = {name: description for name, _, description in OUTPUTS}


def project(graph: PipelineGraph) -> Dict[str, Optional[str]]:
    """Map ``graph`` to every output name; values of absent nodes are ``None``."""
    resolver = graph.resolver()
    return {name: source(resolver) for name, source, _ in OUTPUTS}
