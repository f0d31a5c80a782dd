"""
botgraph.graph.validation

Structural validation of authored graphs.

Responsibilities:
- Report start-node, duplicate-id and connectivity errors.
- Report dangling edges as warnings (tolerated at run time).
- Provide a raising variant for the authoring save path.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from botgraph.errors import GraphStructureError
from botgraph.graph.models import Graph, NodeType


@dataclass(frozen=True, slots=True)
class ValidationResult:
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors


def validate_graph(graph: Graph) -> ValidationResult:
    errors: list[str] = []
    warnings: list[str] = []

    starts = graph.start_nodes()
    if not starts:
        errors.append("Graph must have a START node")
    elif len(starts) > 1:
        errors.append("Graph can only have one START node")

    seen: set[str] = set()
    for node in graph.nodes:
        if node.id in seen:
            errors.append(f"Duplicate node id {node.id}")
        seen.add(node.id)

    # Every non-start node must be reachable through at least one incoming edge.
    connected = {edge.target for edge in graph.edges}

    for node in graph.nodes:
        if node.type != NodeType.start and node.id not in connected:
            errors.append(f"Node {node.id} ({node.type}) is not connected")

    for edge in graph.edges:
        for end in (edge.source, edge.target):
            if end not in seen:
                warnings.append(f"Edge {edge.id} references unknown node {end}")

    return ValidationResult(errors=errors, warnings=warnings)


def ensure_valid(graph: Graph) -> ValidationResult:
    result = validate_graph(graph)
    if not result.valid:
        raise GraphStructureError(result.errors)
    return result
