"""Reference resolver: cross-node wiring as pure functions of the node set."""

from __future__ import annotations

from typing import Dict, FrozenSet, List, Optional

from event_pipeline.graph import naming
from event_pipeline.graph.errors import ResolutionError
from event_pipeline.graph.models import AccountContext, NodeAttributes, PipelineSettings
from event_pipeline.graph.registry import NodeId, materialize, node_attributes


class ReferenceResolver:
    """Resolve references between nodes of one pipeline configuration.

    Every lookup of an absent node yields ``None``; only :meth:`require`
    treats absence as a wiring defect.
    """

    def __init__(
        self,
        settings: PipelineSettings,
        ctx: AccountContext,
        present: Optional[FrozenSet[NodeId]] = None,
    ) -> None:
        self.settings = settings
        self.ctx = ctx
        self.present: FrozenSet[NodeId] = materialize(settings) if present is None else frozenset(present)

    def is_present(self, node: NodeId) -> bool:
        return node in self.present

    def attributes(self, node: NodeId) -> Optional[NodeAttributes]:
        """Return the attributes of ``node``, or ``None`` if it does not exist."""
        if node not in self.present:
            return None
        if node is NodeId.EVENT_RULE:
            return NodeAttributes(name=self.rule_name(), arn=self.rule_arn())
        return node_attributes(node, self.settings, self.ctx)

    def require(self, node: NodeId, *, referrer: NodeId) -> NodeAttributes:
        attrs = self.attributes(node)
        if attrs is None:
            raise ResolutionError(f"{referrer} references {node}, which is not materialized")
        return attrs

    def name_of(self, node: NodeId) -> Optional[str]:
        attrs = self.attributes(node)
        return attrs.name if attrs is not None else None

    def arn_of(self, node: NodeId) -> Optional[str]:
        attrs = self.attributes(node)
        return attrs.arn if attrs is not None else None

    def url_of(self, node: NodeId) -> Optional[str]:
        attrs = self.attributes(node)
        return attrs.url if attrs is not None else None

    # Event bus

    def bus_name(self) -> str:
        """Custom bus name, or the default bus when no custom bus is created."""
        bus = self.attributes(NodeId.EVENT_BUS)
        return bus.name if bus is not None else naming.DEFAULT_EVENT_BUS_NAME

    def bus_arn(self) -> str:
        bus = self.attributes(NodeId.EVENT_BUS)
        if bus is not None:
            return bus.arn
        return naming.event_bus_arn(self.ctx, naming.DEFAULT_EVENT_BUS_NAME)

    def rule_name(self) -> str:
        return naming.derived_name(self.settings.name, "rule")

    def rule_arn(self) -> str:
        return naming.event_rule_arn(self.ctx, self.bus_name(), self.rule_name())

    # Queue wiring

    def redrive_policy(self) -> Optional[Dict[str, object]]:
        """Dead-letter wiring for the main queue; ``None`` means no redrive at all."""
        dlq = self.attributes(NodeId.DLQ)
        if dlq is None:
            return None
        return {
            "deadLetterTargetArn": dlq.arn,
            "maxReceiveCount": self.settings.max_receive_count,
        }

    # Alarms

    def alarm_actions(self) -> List[str]:
        topic = self.attributes(NodeId.ALARM_TOPIC)
        return [topic.arn] if topic is not None else []
