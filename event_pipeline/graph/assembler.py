"""Graph assembler: validated settings in, ordered resource graph out."""

from __future__ import annotations

import copy
import json
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, FrozenSet, List, Mapping, Optional, Tuple

from event_pipeline.graph import naming
from event_pipeline.graph.errors import ResolutionError
from event_pipeline.graph.models import AccountContext, NodeAttributes, PipelineSettings
from event_pipeline.graph.references import ReferenceResolver
from event_pipeline.graph.registry import NODE_ORDER, RESOURCE_TYPES, NodeId
from event_pipeline.graph.validation import validate
from event_pipeline.utils.logger import get_logger

logger = get_logger(__name__)

POLICY_VERSION = "2012-10-17"

NodeSpec = Tuple[Dict[str, Any], Tuple[NodeId, ...]]
Builder = Callable[[ReferenceResolver], NodeSpec]


@dataclass(frozen=True)
class ResourceNode:
    """One materialized node with its resolved properties and dependency edges."""

    node_id: NodeId
    resource_type: str
    attributes: NodeAttributes
    properties: Dict[str, Any] = field(default_factory=dict)
    depends_on: Tuple[NodeId, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.resource_type,
            "attributes": {
                "name": self.attributes.name,
                "arn": self.attributes.arn,
                "url": self.attributes.url,
            },
            "depends_on": [str(dep) for dep in self.depends_on],
            "properties": self.properties,
        }


@dataclass(frozen=True)
class PipelineGraph:
    """Materialized nodes in dependency order."""

    settings: PipelineSettings
    context: AccountContext
    nodes: Tuple[ResourceNode, ...]

    @property
    def order(self) -> Tuple[NodeId, ...]:
        return tuple(node.node_id for node in self.nodes)

    @property
    def present(self) -> FrozenSet[NodeId]:
        return frozenset(self.order)

    def __contains__(self, node: object) -> bool:
        return node in self.present

    def get(self, node: NodeId) -> Optional[ResourceNode]:
        for item in self.nodes:
            if item.node_id == node:
                return item
        return None

    def resolver(self) -> ReferenceResolver:
        return ReferenceResolver(self.settings, self.context, self.present)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.settings.name,
            "context": {
                "account_id": self.context.account_id,
                "region": self.context.region,
                "partition": self.context.partition,
            },
            "order": [str(node) for node in self.order],
            "nodes": {str(node.node_id): node.to_dict() for node in self.nodes},
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), sort_keys=True, indent=2)


def _tags(settings: PipelineSettings) -> List[Dict[str, str]]:
    return [{"Key": key, "Value": value} for key, value in settings.resource_tags.items()]


def _optional(r: ReferenceResolver, *nodes: NodeId) -> Tuple[NodeId, ...]:
    return tuple(node for node in nodes if r.is_present(node))


def _event_bus(r: ReferenceResolver) -> NodeSpec:
    return {"Name": r.bus_name(), "Tags": _tags(r.settings)}, ()


def _event_rule(r: ReferenceResolver) -> NodeSpec:
    props = {
        "Name": r.rule_name(),
        "Description": f"Routes matching events for {r.settings.name} to its queue",
        "EventBusName": r.bus_name(),
        "EventPattern": copy.deepcopy(r.settings.event_pattern),
        "State": "ENABLED",
    }
    return props, _optional(r, NodeId.EVENT_BUS)


def _dlq(r: ReferenceResolver) -> NodeSpec:
    s = r.settings
    props = {
        "QueueName": r.name_of(NodeId.DLQ),
        "VisibilityTimeout": s.dlq_visibility_timeout_seconds,
        "MessageRetentionPeriod": s.dlq_message_retention_seconds,
        "SqsManagedSseEnabled": True,
        "Tags": _tags(s),
    }
    return props, ()


def _queue(r: ReferenceResolver) -> NodeSpec:
    s = r.settings
    props: Dict[str, Any] = {
        "QueueName": r.name_of(NodeId.QUEUE),
        "VisibilityTimeout": s.sqs_visibility_timeout_seconds,
        "MessageRetentionPeriod": s.sqs_message_retention_seconds,
        "SqsManagedSseEnabled": True,
        "Tags": _tags(s),
    }
    redrive = r.redrive_policy()
    if redrive is not None:
        props["RedrivePolicy"] = redrive
    return props, _optional(r, NodeId.DLQ)


def _queue_policy(r: ReferenceResolver) -> NodeSpec:
    queue = r.require(NodeId.QUEUE, referrer=NodeId.QUEUE_POLICY)
    rule = r.require(NodeId.EVENT_RULE, referrer=NodeId.QUEUE_POLICY)
    props = {
        "Queues": [queue.url],
        "PolicyDocument": {
            "Version": POLICY_VERSION,
            "Statement": [
                {
                    "Sid": "AllowEventBridgeSendMessage",
                    "Effect": "Allow",
                    "Principal": {"Service": "events.amazonaws.com"},
                    "Action": "sqs:SendMessage",
                    "Resource": queue.arn,
                    "Condition": {"ArnEquals": {"aws:SourceArn": rule.arn}},
                }
            ],
        },
    }
    return props, (NodeId.QUEUE, NodeId.EVENT_RULE)


def _queue_target(r: ReferenceResolver) -> NodeSpec:
    rule = r.require(NodeId.EVENT_RULE, referrer=NodeId.QUEUE_TARGET)
    queue = r.require(NodeId.QUEUE, referrer=NodeId.QUEUE_TARGET)
    props = {
        "Rule": rule.name,
        "EventBusName": r.bus_name(),
        "Id": "sqs",
        "Arn": queue.arn,
    }
    return props, (NodeId.EVENT_RULE, NodeId.QUEUE, NodeId.QUEUE_POLICY)


def _log_group(r: ReferenceResolver) -> NodeSpec:
    props = {
        "LogGroupName": r.name_of(NodeId.LOG_GROUP),
        "RetentionInDays": r.settings.log_retention_days,
        "Tags": _tags(r.settings),
    }
    return props, ()


def _log_resource_policy(r: ReferenceResolver) -> NodeSpec:
    log_group = r.require(NodeId.LOG_GROUP, referrer=NodeId.LOG_RESOURCE_POLICY)
    document = {
        "Version": POLICY_VERSION,
        "Statement": [
            {
                "Sid": "EventBridgeToCloudWatchLogs",
                "Effect": "Allow",
                "Principal": {"Service": ["delivery.logs.amazonaws.com", "events.amazonaws.com"]},
                "Action": ["logs:CreateLogStream", "logs:PutLogEvents"],
                "Resource": f"{log_group.arn}:*",
            }
        ],
    }
    # CloudWatch Logs takes the policy document as a JSON string.
    props = {
        "PolicyName": r.name_of(NodeId.LOG_RESOURCE_POLICY),
        "PolicyDocument": json.dumps(document, sort_keys=True),
    }
    return props, (NodeId.LOG_GROUP,)


def _logging_target(r: ReferenceResolver) -> NodeSpec:
    rule = r.require(NodeId.EVENT_RULE, referrer=NodeId.LOGGING_TARGET)
    log_group = r.require(NodeId.LOG_GROUP, referrer=NodeId.LOGGING_TARGET)
    props = {
        "Rule": rule.name,
        "EventBusName": r.bus_name(),
        "Id": "cloudwatch-logs",
        "Arn": log_group.arn,
    }
    return props, (NodeId.EVENT_RULE, NodeId.LOG_GROUP, NodeId.LOG_RESOURCE_POLICY)


def _lambda_role(r: ReferenceResolver) -> NodeSpec:
    queue = r.require(NodeId.QUEUE, referrer=NodeId.LAMBDA_ROLE)
    props = {
        "RoleName": r.name_of(NodeId.LAMBDA_ROLE),
        "AssumeRolePolicyDocument": {
            "Version": POLICY_VERSION,
            "Statement": [
                {
                    "Effect": "Allow",
                    "Principal": {"Service": "lambda.amazonaws.com"},
                    "Action": "sts:AssumeRole",
                }
            ],
        },
        "ManagedPolicyArns": [naming.managed_policy_arn(r.ctx, "service-role/AWSLambdaBasicExecutionRole")],
        "Policies": [
            {
                "PolicyName": "SqsConsume",
                "PolicyDocument": {
                    "Version": POLICY_VERSION,
                    "Statement": [
                        {
                            "Effect": "Allow",
                            "Action": [
                                "sqs:ChangeMessageVisibility",
                                "sqs:DeleteMessage",
                                "sqs:GetQueueAttributes",
                                "sqs:ReceiveMessage",
                            ],
                            "Resource": queue.arn,
                        }
                    ],
                },
            }
        ],
        "Tags": _tags(r.settings),
    }
    return props, (NodeId.QUEUE,)


def _lambda(r: ReferenceResolver) -> NodeSpec:
    s = r.settings
    role = r.require(NodeId.LAMBDA_ROLE, referrer=NodeId.LAMBDA)
    if s.lambda_code is None:
        raise ResolutionError("lambda node materialized without lambda_code")
    code: Dict[str, Any] = {"Location": s.lambda_code}
    if s.lambda_code_hash:
        code["SourceCodeHash"] = s.lambda_code_hash
    props: Dict[str, Any] = {
        "FunctionName": r.name_of(NodeId.LAMBDA),
        "Role": role.arn,
        "Handler": s.lambda_handler,
        "Runtime": s.lambda_runtime,
        "Timeout": s.lambda_timeout,
        "MemorySize": s.lambda_memory_size,
        "Code": code,
        "Tags": _tags(s),
    }
    if s.lambda_environment_variables:
        variables = s.lambda_environment_variables
        props["Environment"] = {"Variables": {key: variables[key] for key in sorted(variables)}}
    return props, (NodeId.LAMBDA_ROLE,)


def _event_source_mapping(r: ReferenceResolver) -> NodeSpec:
    s = r.settings
    function = r.require(NodeId.LAMBDA, referrer=NodeId.LAMBDA_EVENT_SOURCE_MAPPING)
    queue = r.require(NodeId.QUEUE, referrer=NodeId.LAMBDA_EVENT_SOURCE_MAPPING)
    props: Dict[str, Any] = {
        "EventSourceArn": queue.arn,
        "FunctionName": function.name,
        "BatchSize": s.batch_size,
        "Enabled": True,
        "FunctionResponseTypes": ["ReportBatchItemFailures"],
    }
    if s.maximum_batching_window_seconds:
        props["MaximumBatchingWindowInSeconds"] = s.maximum_batching_window_seconds
    return props, (NodeId.LAMBDA, NodeId.QUEUE)


def _alarm_topic(r: ReferenceResolver) -> NodeSpec:
    return {"TopicName": r.name_of(NodeId.ALARM_TOPIC), "Tags": _tags(r.settings)}, ()


def _alarm_subscription(r: ReferenceResolver) -> NodeSpec:
    topic = r.require(NodeId.ALARM_TOPIC, referrer=NodeId.ALARM_SUBSCRIPTION)
    if r.settings.alarm_email is None:
        raise ResolutionError("alarm_subscription materialized without alarm_email")
    props = {"TopicArn": topic.arn, "Protocol": "email", "Endpoint": r.settings.alarm_email}
    return props, (NodeId.ALARM_TOPIC,)


def _alarm(
    r: ReferenceResolver,
    node: NodeId,
    *,
    description: str,
    namespace: str,
    metric_name: str,
    dimension: Tuple[str, str],
    statistic: str,
    threshold: float,
) -> Dict[str, Any]:
    actions = r.alarm_actions()
    return {
        "AlarmName": r.name_of(node),
        "AlarmDescription": description,
        "Namespace": namespace,
        "MetricName": metric_name,
        "Dimensions": [{"Name": dimension[0], "Value": dimension[1]}],
        "Statistic": statistic,
        "Period": r.settings.alarm_period_seconds,
        "EvaluationPeriods": 1,
        "DatapointsToAlarm": 1,
        "Threshold": threshold,
        "ComparisonOperator": "GreaterThanOrEqualToThreshold",
        "TreatMissingData": "notBreaching",
        "AlarmActions": list(actions),
        "OKActions": list(actions),
        "Tags": _tags(r.settings),
    }


def _dlq_depth_alarm(r: ReferenceResolver) -> NodeSpec:
    dlq = r.require(NodeId.DLQ, referrer=NodeId.DLQ_DEPTH_ALARM)
    props = _alarm(
        r,
        NodeId.DLQ_DEPTH_ALARM,
        description=f"Messages are waiting in the dead-letter queue {dlq.name}",
        namespace="AWS/SQS",
        metric_name="ApproximateNumberOfMessagesVisible",
        dimension=("QueueName", dlq.name),
        statistic="Maximum",
        threshold=r.settings.dlq_alarm_threshold,
    )
    return props, (NodeId.DLQ,) + _optional(r, NodeId.ALARM_TOPIC)


def _lambda_error_alarm(r: ReferenceResolver) -> NodeSpec:
    function = r.require(NodeId.LAMBDA, referrer=NodeId.LAMBDA_ERROR_ALARM)
    props = _alarm(
        r,
        NodeId.LAMBDA_ERROR_ALARM,
        description=f"Lambda function {function.name} is reporting errors",
        namespace="AWS/Lambda",
        metric_name="Errors",
        dimension=("FunctionName", function.name),
        statistic="Sum",
        threshold=r.settings.lambda_error_threshold,
    )
    return props, (NodeId.LAMBDA,) + _optional(r, NodeId.ALARM_TOPIC)


def _lambda_throttle_alarm(r: ReferenceResolver) -> NodeSpec:
    function = r.require(NodeId.LAMBDA, referrer=NodeId.LAMBDA_THROTTLE_ALARM)
    props = _alarm(
        r,
        NodeId.LAMBDA_THROTTLE_ALARM,
        description=f"Lambda function {function.name} is being throttled",
        namespace="AWS/Lambda",
        metric_name="Throttles",
        dimension=("FunctionName", function.name),
        statistic="Sum",
        threshold=r.settings.lambda_throttle_threshold,
    )
    return props, (NodeId.LAMBDA,) + _optional(r, NodeId.ALARM_TOPIC)


BUILDERS: Dict[NodeId, Builder] = {
    NodeId.EVENT_BUS: _event_bus,
    NodeId.EVENT_RULE: _event_rule,
    NodeId.DLQ: _dlq,
    NodeId.QUEUE: _queue,
    NodeId.QUEUE_POLICY: _queue_policy,
    NodeId.QUEUE_TARGET: _queue_target,
    NodeId.LOG_GROUP: _log_group,
    NodeId.LOG_RESOURCE_POLICY: _log_resource_policy,
    NodeId.LOGGING_TARGET: _logging_target,
    NodeId.LAMBDA_ROLE: _lambda_role,
    NodeId.LAMBDA: _lambda,
    NodeId.LAMBDA_EVENT_SOURCE_MAPPING: _event_source_mapping,
    NodeId.ALARM_TOPIC: _alarm_topic,
    NodeId.ALARM_SUBSCRIPTION: _alarm_subscription,
    NodeId.DLQ_DEPTH_ALARM: _dlq_depth_alarm,
    NodeId.LAMBDA_ERROR_ALARM: _lambda_error_alarm,
    NodeId.LAMBDA_THROTTLE_ALARM: _lambda_throttle_alarm,
}


def topological_order(edges: Mapping[NodeId, Tuple[NodeId, ...]]) -> Tuple[NodeId, ...]:
    """Order nodes so every node follows its dependencies.

    Ties are broken by registry order, so the result is fully determined by
    the edge set.
    """
    rank = {node: index for index, node in enumerate(NODE_ORDER)}
    pending: Dict[NodeId, set[NodeId]] = {}
    for node, deps in edges.items():
        missing = [dep for dep in deps if dep not in edges]
        if missing:
            raise ResolutionError(f"{node} depends on absent node(s): {', '.join(str(m) for m in missing)}")
        pending[node] = set(deps)

    order: List[NodeId] = []
    while pending:
        ready = sorted((node for node, deps in pending.items() if not deps), key=rank.__getitem__)
        if not ready:
            raise ResolutionError(f"Dependency cycle between: {', '.join(sorted(str(n) for n in pending))}")
        current = ready[0]
        order.append(current)
        del pending[current]
        for deps in pending.values():
            deps.discard(current)
    return tuple(order)


def assemble(settings: PipelineSettings, ctx: AccountContext) -> PipelineGraph:
    """Build the resource graph for already-validated ``settings``."""
    resolver = ReferenceResolver(settings, ctx)
    specs: Dict[NodeId, NodeSpec] = {}
    for node in NODE_ORDER:
        if resolver.is_present(node):
            specs[node] = BUILDERS[node](resolver)

    order = topological_order({node: deps for node, (_, deps) in specs.items()})
    nodes = tuple(
        ResourceNode(
            node_id=node,
            resource_type=RESOURCE_TYPES[node],
            attributes=resolver.require(node, referrer=node),
            properties=specs[node][0],
            depends_on=specs[node][1],
        )
        for node in order
    )
    logger.info(
        "Assembled pipeline graph",
        extra={"pipeline": settings.name, "node_count": len(nodes), "order": [str(n) for n in order]},
    )
    return PipelineGraph(settings=settings, context=ctx, nodes=nodes)


def build_graph(config: Mapping[str, Any], ctx: AccountContext) -> PipelineGraph:
    """Validate ``config`` and assemble its graph; raises ``ConfigValidationError``."""
    return assemble(validate(config), ctx)
