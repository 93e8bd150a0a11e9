"""Event pipeline stack: renders the assembled resource graph with AWS CDK."""

from __future__ import annotations

import copy
from typing import Any, Callable, Dict, List, Mapping, Set

from aws_cdk import (
    CfnOutput,
    CfnResource,
    CfnTag,
    Stack,
    Token,
    aws_cloudwatch as cloudwatch,
    aws_events as events,
    aws_iam as iam,
    aws_lambda as lambda_,
    aws_logs as logs,
    aws_s3_assets as s3_assets,
    aws_sns as sns,
    aws_sqs as sqs,
)
from aws_cdk.region_info import RegionInfo
from constructs import Construct

from event_pipeline.graph import AccountContext, NodeId, ResolutionError, assemble, project, validate
from event_pipeline.graph.assembler import ResourceNode
from event_pipeline.graph.outputs import OUTPUT_DESCRIPTIONS
from event_pipeline.graph.registry import TARGET_RESOURCE_TYPE
from event_pipeline.utils.logger import get_logger

logger = get_logger(__name__)

# Targets whose ARN is taken from the rendered resource instead of the graph.
_TARGET_SOURCES = {NodeId.QUEUE_TARGET: NodeId.QUEUE}


def _camel(identifier: str) -> str:
    return "".join(part.capitalize() for part in identifier.split("_"))


def _tags(props: Mapping[str, Any]) -> List[CfnTag]:
    return [CfnTag(key=tag["Key"], value=tag["Value"]) for tag in props.get("Tags", [])]


def _with_resource(document: Mapping[str, Any], resource: str) -> Dict[str, Any]:
    """Copy of a policy document with every statement scoped to ``resource``."""
    rendered = copy.deepcopy(dict(document))
    for statement in rendered["Statement"]:
        statement["Resource"] = resource
    return rendered


class EventPipelineStack(Stack):
    """Provision the event bus, rule, queues, consumer and alarms for one pipeline.

    The configuration is validated and assembled into a graph before any
    construct is created; an invalid configuration raises
    ``ConfigValidationError`` and leaves the stack empty. Each node becomes
    one typed CloudFormation resource, and references between nodes are
    rendered as ``Ref``/``GetAtt`` so CloudFormation orders them itself.
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        *,
        environment: str,
        config: Mapping[str, Any],
        **kwargs,
    ) -> None:
        super().__init__(scope, construct_id, **kwargs)

        self.env_name = environment
        self.config = config

        self.settings = validate(config)
        self.graph = assemble(self.settings, self._account_context())
        self.pipeline_outputs = project(self.graph)

        self.resources: Dict[NodeId, CfnResource] = {}
        self._create_resources()
        self._attach_rule_targets()
        self._create_outputs()

        logger.info(
            "Rendered event pipeline stack",
            extra={"stack": construct_id, "environment": environment, "resource_count": len(self.resources)},
        )

    def _account_context(self) -> AccountContext:
        """Account/region of this stack; concrete when the stack has an explicit env."""
        partition = self.partition
        if not Token.is_unresolved(self.region):
            partition = RegionInfo.get(self.region).partition or partition
        return AccountContext(account_id=self.account, region=self.region, partition=partition)

    # Resources

    def _create_resources(self) -> None:
        """Create one CloudFormation resource per node, in graph order."""
        renderers: Dict[NodeId, Callable[[ResourceNode], CfnResource]] = {
            NodeId.EVENT_BUS: self._event_bus,
            NodeId.EVENT_RULE: self._event_rule,
            NodeId.DLQ: self._queue,
            NodeId.QUEUE: self._queue,
            NodeId.QUEUE_POLICY: self._queue_policy,
            NodeId.LOG_GROUP: self._log_group,
            NodeId.LOG_RESOURCE_POLICY: self._log_resource_policy,
            NodeId.LAMBDA_ROLE: self._lambda_role,
            NodeId.LAMBDA: self._lambda,
            NodeId.LAMBDA_EVENT_SOURCE_MAPPING: self._event_source_mapping,
            NodeId.ALARM_TOPIC: self._alarm_topic,
            NodeId.ALARM_SUBSCRIPTION: self._alarm_subscription,
            NodeId.DLQ_DEPTH_ALARM: self._alarm,
            NodeId.LAMBDA_ERROR_ALARM: self._alarm,
            NodeId.LAMBDA_THROTTLE_ALARM: self._alarm,
        }
        rule_waits_for = self._rule_target_dependencies()

        for node in self.graph.nodes:
            if node.resource_type == TARGET_RESOURCE_TYPE:
                continue
            resource = renderers[node.node_id](node)
            for dependency in node.depends_on:
                # The rule waits for this node before delivering, so the edge is reversed.
                if dependency is NodeId.EVENT_RULE and node.node_id in rule_waits_for:
                    continue
                resource.add_dependency(self.resources[dependency])
            self.resources[node.node_id] = resource

    def _rule_target_dependencies(self) -> Set[NodeId]:
        """Nodes the folded targets need before the rule may deliver to them."""
        return {
            dependency
            for node in self.graph.nodes
            if node.resource_type == TARGET_RESOURCE_TYPE
            for dependency in node.depends_on
            if dependency is not NodeId.EVENT_RULE
        }

    def _event_bus(self, node: ResourceNode) -> events.CfnEventBus:
        props = node.properties
        return events.CfnEventBus(self, _camel(node.node_id.value), name=props["Name"], tags=_tags(props))

    def _event_rule(self, node: ResourceNode) -> events.CfnRule:
        props = node.properties
        bus = self.resources.get(NodeId.EVENT_BUS)
        return events.CfnRule(
            self,
            _camel(node.node_id.value),
            name=props["Name"],
            description=props["Description"],
            event_bus_name=bus.ref if bus is not None else props["EventBusName"],
            event_pattern=copy.deepcopy(props["EventPattern"]),
            state=props["State"],
        )

    def _queue(self, node: ResourceNode) -> sqs.CfnQueue:
        props = node.properties
        redrive = props.get("RedrivePolicy")
        if redrive is not None:
            dlq: sqs.CfnQueue = self.resources[NodeId.DLQ]
            redrive = {**redrive, "deadLetterTargetArn": dlq.attr_arn}
        return sqs.CfnQueue(
            self,
            _camel(node.node_id.value),
            queue_name=props["QueueName"],
            visibility_timeout=props["VisibilityTimeout"],
            message_retention_period=props["MessageRetentionPeriod"],
            sqs_managed_sse_enabled=props["SqsManagedSseEnabled"],
            redrive_policy=redrive,
            tags=_tags(props),
        )

    def _queue_policy(self, node: ResourceNode) -> sqs.CfnQueuePolicy:
        # The source condition names the rule by ARN, so the policy never waits for the rule.
        queue: sqs.CfnQueue = self.resources[NodeId.QUEUE]
        return sqs.CfnQueuePolicy(
            self,
            _camel(node.node_id.value),
            queues=[queue.ref],
            policy_document=_with_resource(node.properties["PolicyDocument"], queue.attr_arn),
        )

    def _log_group(self, node: ResourceNode) -> logs.CfnLogGroup:
        props = node.properties
        return logs.CfnLogGroup(
            self,
            _camel(node.node_id.value),
            log_group_name=props["LogGroupName"],
            retention_in_days=props["RetentionInDays"],
            tags=_tags(props),
        )

    def _log_resource_policy(self, node: ResourceNode) -> logs.CfnResourcePolicy:
        props = node.properties
        return logs.CfnResourcePolicy(
            self,
            _camel(node.node_id.value),
            policy_name=props["PolicyName"],
            policy_document=props["PolicyDocument"],
        )

    def _lambda_role(self, node: ResourceNode) -> iam.CfnRole:
        props = node.properties
        queue: sqs.CfnQueue = self.resources[NodeId.QUEUE]
        return iam.CfnRole(
            self,
            _camel(node.node_id.value),
            role_name=props["RoleName"],
            assume_role_policy_document=props["AssumeRolePolicyDocument"],
            managed_policy_arns=list(props["ManagedPolicyArns"]),
            policies=[
                iam.CfnRole.PolicyProperty(
                    policy_name=policy["PolicyName"],
                    policy_document=_with_resource(policy["PolicyDocument"], queue.attr_arn),
                )
                for policy in props["Policies"]
            ],
            tags=_tags(props),
        )

    def _lambda(self, node: ResourceNode) -> lambda_.CfnFunction:
        props = node.properties
        role: iam.CfnRole = self.resources[NodeId.LAMBDA_ROLE]
        # CDK hashes the asset content, so a precomputed SourceCodeHash is not needed here.
        asset = s3_assets.Asset(self, "ProcessorCode", path=props["Code"]["Location"])
        environment = None
        if "Environment" in props:
            environment = lambda_.CfnFunction.EnvironmentProperty(variables=props["Environment"]["Variables"])
        return lambda_.CfnFunction(
            self,
            _camel(node.node_id.value),
            function_name=props["FunctionName"],
            role=role.attr_arn,
            handler=props["Handler"],
            runtime=props["Runtime"],
            timeout=props["Timeout"],
            memory_size=props["MemorySize"],
            code=lambda_.CfnFunction.CodeProperty(s3_bucket=asset.s3_bucket_name, s3_key=asset.s3_object_key),
            environment=environment,
            tags=_tags(props),
        )

    def _event_source_mapping(self, node: ResourceNode) -> lambda_.CfnEventSourceMapping:
        props = node.properties
        queue: sqs.CfnQueue = self.resources[NodeId.QUEUE]
        function: lambda_.CfnFunction = self.resources[NodeId.LAMBDA]
        return lambda_.CfnEventSourceMapping(
            self,
            _camel(node.node_id.value),
            event_source_arn=queue.attr_arn,
            function_name=function.ref,
            batch_size=props["BatchSize"],
            enabled=props["Enabled"],
            function_response_types=list(props["FunctionResponseTypes"]),
            maximum_batching_window_in_seconds=props.get("MaximumBatchingWindowInSeconds"),
        )

    def _alarm_topic(self, node: ResourceNode) -> sns.CfnTopic:
        props = node.properties
        return sns.CfnTopic(self, _camel(node.node_id.value), topic_name=props["TopicName"], tags=_tags(props))

    def _alarm_subscription(self, node: ResourceNode) -> sns.CfnSubscription:
        props = node.properties
        topic: sns.CfnTopic = self.resources[NodeId.ALARM_TOPIC]
        return sns.CfnSubscription(
            self,
            _camel(node.node_id.value),
            topic_arn=topic.ref,
            protocol=props["Protocol"],
            endpoint=props["Endpoint"],
        )

    def _alarm(self, node: ResourceNode) -> cloudwatch.CfnAlarm:
        props = node.properties
        topic = self.resources.get(NodeId.ALARM_TOPIC)
        actions = [topic.ref] if topic is not None else []
        if node.node_id is NodeId.DLQ_DEPTH_ALARM:
            dlq: sqs.CfnQueue = self.resources[NodeId.DLQ]
            monitored = dlq.attr_queue_name
        else:
            monitored = self.resources[NodeId.LAMBDA].ref
        dimension = props["Dimensions"][0]
        return cloudwatch.CfnAlarm(
            self,
            _camel(node.node_id.value),
            alarm_name=props["AlarmName"],
            alarm_description=props["AlarmDescription"],
            namespace=props["Namespace"],
            metric_name=props["MetricName"],
            dimensions=[cloudwatch.CfnAlarm.DimensionProperty(name=dimension["Name"], value=monitored)],
            statistic=props["Statistic"],
            period=props["Period"],
            evaluation_periods=props["EvaluationPeriods"],
            datapoints_to_alarm=props["DatapointsToAlarm"],
            threshold=props["Threshold"],
            comparison_operator=props["ComparisonOperator"],
            treat_missing_data=props["TreatMissingData"],
            alarm_actions=actions,
            ok_actions=list(actions),
            tags=_tags(props),
        )

    # Targets and outputs

    def _attach_rule_targets(self) -> None:
        """Fold target nodes into their rule's ``Targets`` list.

        Targets are properties of the rule in CloudFormation, so the rule must
        own them and wait for everything they need; a target naming a different
        bus than its rule is a wiring defect.
        """
        rule_node = self.graph.get(NodeId.EVENT_RULE)
        if rule_node is None:
            raise ResolutionError("event_rule is not materialized")
        rule: events.CfnRule = self.resources[NodeId.EVENT_RULE]

        targets: List[events.CfnRule.TargetProperty] = []
        for node in self.graph.nodes:
            if node.resource_type != TARGET_RESOURCE_TYPE:
                continue
            props = node.properties
            if props["Rule"] != rule_node.properties["Name"]:
                raise ResolutionError(f"{node.node_id} targets unknown rule {props['Rule']}")
            if props["EventBusName"] != rule_node.properties["EventBusName"]:
                raise ResolutionError(
                    f"{node.node_id} is wired to bus {props['EventBusName']} "
                    f"but its rule lives on {rule_node.properties['EventBusName']}"
                )
            source = _TARGET_SOURCES.get(node.node_id)
            arn = self.resources[source].attr_arn if source is not None else props["Arn"]
            targets.append(events.CfnRule.TargetProperty(id=props["Id"], arn=arn))
            for dependency in node.depends_on:
                if dependency is not NodeId.EVENT_RULE:
                    rule.add_dependency(self.resources[dependency])

        rule.targets = targets

    def _create_outputs(self) -> None:
        for name, value in self.pipeline_outputs.items():
            # Absent optional nodes have no output in the template.
            if value is None:
                continue
            CfnOutput(
                self,
                f"{_camel(name)}Output",
                value=value,
                description=OUTPUT_DESCRIPTIONS[name],
            )
