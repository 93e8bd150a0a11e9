"""Conditional resource-graph builder for the event pipeline."""

from .assembler import PipelineGraph, ResourceNode, assemble, build_graph, topological_order
from .errors import ConfigValidationError, FieldError, ResolutionError
from .models import AccountContext, NodeAttributes, PipelineSettings
from .outputs import OUTPUT_NAMES, project
from .references import ReferenceResolver
from .registry import NodeId, PRESENCE, materialize, node_attributes
from .validation import collect_errors, validate

__all__ = [
    "AccountContext",
    "ConfigValidationError",
    "FieldError",
    "NodeAttributes",
    "NodeId",
    "OUTPUT_NAMES",
    "PRESENCE",
    "PipelineGraph",
    "PipelineSettings",
    "ReferenceResolver",
    "ResolutionError",
    "ResourceNode",
    "assemble",
    "build_graph",
    "collect_errors",
    "materialize",
    "node_attributes",
    "project",
    "topological_order",
    "validate",
]
