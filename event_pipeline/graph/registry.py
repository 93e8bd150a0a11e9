"""Conditional node registry.

Declares every resource node the pipeline can contain, the predicate deciding
whether it exists, and the attributes (name/ARN/URL) it exposes when it does.
Predicates read configuration toggles only, never another node's presence, so
the node set for a configuration is a plain truth-table lookup.
"""

from __future__ import annotations

from enum import Enum
from typing import Callable, Dict, FrozenSet, Tuple

from event_pipeline.graph import naming
from event_pipeline.graph.models import AccountContext, NodeAttributes, PipelineSettings


class NodeId(str, Enum):
    EVENT_BUS = "event_bus"
    EVENT_RULE = "event_rule"
    DLQ = "dlq"
    QUEUE = "queue"
    QUEUE_POLICY = "queue_policy"
    QUEUE_TARGET = "queue_target"
    LOG_GROUP = "log_group"
    LOG_RESOURCE_POLICY = "log_resource_policy"
    LOGGING_TARGET = "logging_target"
    LAMBDA_ROLE = "lambda_role"
    LAMBDA = "lambda"
    LAMBDA_EVENT_SOURCE_MAPPING = "lambda_event_source_mapping"
    ALARM_TOPIC = "alarm_topic"
    ALARM_SUBSCRIPTION = "alarm_subscription"
    DLQ_DEPTH_ALARM = "dlq_depth_alarm"
    LAMBDA_ERROR_ALARM = "lambda_error_alarm"
    LAMBDA_THROTTLE_ALARM = "lambda_throttle_alarm"

    def __str__(self) -> str:
        return self.value


Predicate = Callable[[PipelineSettings], bool]


def _always(_: PipelineSettings) -> bool:
    return True


PRESENCE: Dict[NodeId, Predicate] = {
    NodeId.EVENT_BUS: lambda s: s.create_event_bus,
    NodeId.EVENT_RULE: _always,
    NodeId.DLQ: lambda s: s.enable_dlq,
    NodeId.QUEUE: _always,
    NodeId.QUEUE_POLICY: _always,
    NodeId.QUEUE_TARGET: _always,
    NodeId.LOG_GROUP: lambda s: s.enable_logging,
    NodeId.LOG_RESOURCE_POLICY: lambda s: s.enable_logging,
    NodeId.LOGGING_TARGET: lambda s: s.enable_logging,
    NodeId.LAMBDA_ROLE: lambda s: s.create_lambda,
    NodeId.LAMBDA: lambda s: s.create_lambda,
    NodeId.LAMBDA_EVENT_SOURCE_MAPPING: lambda s: s.create_lambda,
    NodeId.ALARM_TOPIC: lambda s: s.enable_alarms,
    NodeId.ALARM_SUBSCRIPTION: lambda s: s.enable_alarms,
    NodeId.DLQ_DEPTH_ALARM: lambda s: s.enable_alarms and s.enable_dlq,
    NodeId.LAMBDA_ERROR_ALARM: lambda s: s.enable_alarms and s.create_lambda,
    NodeId.LAMBDA_THROTTLE_ALARM: lambda s: s.enable_alarms and s.create_lambda,
}

# Canonical node order; also breaks ties in the dependency ordering.
NODE_ORDER: Tuple[NodeId, ...] = tuple(NodeId)

# Targets are not standalone CloudFormation resources; they are folded into
# their rule's ``Targets`` list when rendered.
RESOURCE_TYPES: Dict[NodeId, str] = {
    NodeId.EVENT_BUS: "AWS::Events::EventBus",
    NodeId.EVENT_RULE: "AWS::Events::Rule",
    NodeId.DLQ: "AWS::SQS::Queue",
    NodeId.QUEUE: "AWS::SQS::Queue",
    NodeId.QUEUE_POLICY: "AWS::SQS::QueuePolicy",
    NodeId.QUEUE_TARGET: "AWS::Events::Rule.Target",
    NodeId.LOG_GROUP: "AWS::Logs::LogGroup",
    NodeId.LOG_RESOURCE_POLICY: "AWS::Logs::ResourcePolicy",
    NodeId.LOGGING_TARGET: "AWS::Events::Rule.Target",
    NodeId.LAMBDA_ROLE: "AWS::IAM::Role",
    NodeId.LAMBDA: "AWS::Lambda::Function",
    NodeId.LAMBDA_EVENT_SOURCE_MAPPING: "AWS::Lambda::EventSourceMapping",
    NodeId.ALARM_TOPIC: "AWS::SNS::Topic",
    NodeId.ALARM_SUBSCRIPTION: "AWS::SNS::Subscription",
    NodeId.DLQ_DEPTH_ALARM: "AWS::CloudWatch::Alarm",
    NodeId.LAMBDA_ERROR_ALARM: "AWS::CloudWatch::Alarm",
    NodeId.LAMBDA_THROTTLE_ALARM: "AWS::CloudWatch::Alarm",
}

TARGET_RESOURCE_TYPE = "AWS::Events::Rule.Target"

NAME_SUFFIXES: Dict[NodeId, str] = {
    NodeId.EVENT_BUS: "bus",
    NodeId.EVENT_RULE: "rule",
    NodeId.DLQ: "dlq",
    NodeId.QUEUE: "queue",
    NodeId.LAMBDA_ROLE: "processor-role",
    NodeId.LAMBDA: "processor",
    NodeId.LOG_RESOURCE_POLICY: "events-to-logs",
    NodeId.ALARM_TOPIC: "alarms",
    NodeId.DLQ_DEPTH_ALARM: "dlq-depth",
    NodeId.LAMBDA_ERROR_ALARM: "lambda-errors",
    NodeId.LAMBDA_THROTTLE_ALARM: "lambda-throttles",
}


def materialize(settings: PipelineSettings) -> FrozenSet[NodeId]:
    """Return the set of nodes that exist for ``settings``."""
    return frozenset(node for node in NODE_ORDER if PRESENCE[node](settings))


def node_name(node: NodeId, settings: PipelineSettings) -> str | None:
    """Return the physical name of ``node``, or ``None`` for unnamed nodes."""
    if node is NodeId.LOG_GROUP:
        return naming.event_log_group_name(settings.name)
    suffix = NAME_SUFFIXES.get(node)
    if suffix is None:
        return None
    return naming.derived_name(settings.name, suffix)


def node_attributes(node: NodeId, settings: PipelineSettings, ctx: AccountContext) -> NodeAttributes:
    """Produce the output attributes ``node`` would expose.

    The event rule ARN depends on the bus it lives on, so it is produced by the
    reference resolver rather than here.
    """
    name = node_name(node, settings)
    if node is NodeId.EVENT_BUS:
        return NodeAttributes(name=name, arn=naming.event_bus_arn(ctx, name))
    if node in (NodeId.QUEUE, NodeId.DLQ):
        return NodeAttributes(name=name, arn=naming.queue_arn(ctx, name), url=naming.queue_url(ctx, name))
    if node is NodeId.LAMBDA:
        return NodeAttributes(name=name, arn=naming.function_arn(ctx, name))
    if node is NodeId.LAMBDA_ROLE:
        return NodeAttributes(name=name, arn=naming.role_arn(ctx, name))
    if node is NodeId.LOG_GROUP:
        return NodeAttributes(name=name, arn=naming.log_group_arn(ctx, name))
    if node is NodeId.ALARM_TOPIC:
        return NodeAttributes(name=name, arn=naming.topic_arn(ctx, name))
    if node in (NodeId.DLQ_DEPTH_ALARM, NodeId.LAMBDA_ERROR_ALARM, NodeId.LAMBDA_THROTTLE_ALARM):
        return NodeAttributes(name=name, arn=naming.alarm_arn(ctx, name))
    return NodeAttributes(name=name)
