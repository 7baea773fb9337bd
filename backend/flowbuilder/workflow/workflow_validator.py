"""
Workflow Validator — structural checks run before a graph is saved.

``validate_workflow`` is a pure function of a graph snapshot. It never
raises and reports every violation in one pass, in this order:

1. no entry point
2. no output node
3. handle coverage, per node in node order
4. nodes unreachable from any entry point, in node order

An empty list means the graph may be persisted.
"""

from __future__ import annotations

from collections import deque
from logging import getLogger
from typing import Iterable, List, Optional, Set

from flowbuilder.workflow.nodes.base import (
    BaseNode,
    NodeRegistry,
    get_node_registry,
)
from flowbuilder.workflow.workflow_model import WorkflowGraph, WorkflowNode

logger = getLogger(__name__)

MISSING_ENTRY_POINT = "Workflow must have at least one entry point (Start or a channel trigger)."
MISSING_OUTPUT_NODE = "Workflow must have at least one Output node."


class WorkflowValidationError(ValueError):
    """Raised by callers that refuse to persist an invalid graph."""

    def __init__(self, errors: List[str]) -> None:
        self.errors = list(errors)
        super().__init__(
            "Workflow validation failed:\n" + "\n".join(f"  • {e}" for e in self.errors)
        )


def validate_workflow(
    graph: WorkflowGraph,
    registry: Optional[NodeRegistry] = None,
) -> List[str]:
    """Return the list of structural errors in ``graph``."""
    reg = registry or get_node_registry()
    errors: List[str] = []

    descriptors = {n.id: reg.describe(n.type) for n in graph.nodes}

    # ── Entry / output presence ──
    if not any(descriptors[n.id].can_be_entry_point for n in graph.nodes):
        errors.append(MISSING_ENTRY_POINT)
    if not any(descriptors[n.id].is_output for n in graph.nodes):
        errors.append(MISSING_OUTPUT_NODE)

    # ── Handle coverage ──
    for node in graph.nodes:
        desc = descriptors[node.id]
        if desc.is_output:
            continue
        errors.extend(_coverage_errors(graph, node, desc))

    # ── Reachability ──
    roots = [n.id for n in graph.nodes if descriptors[n.id].can_be_entry_point]
    visited = reachable_from(graph, roots)
    for node in graph.nodes:
        if node.id in visited or descriptors[node.id].can_be_entry_point:
            continue
        errors.append(
            f"Node '{descriptors[node.id].display_label(node)}' ({node.id}) "
            f"is not connected to the workflow."
        )

    if errors:
        logger.debug(f"Validation found {len(errors)} error(s)")
    return errors


def reachable_from(graph: WorkflowGraph, roots: Iterable[str]) -> Set[str]:
    """Breadth-first forward traversal. Cycles are visited once."""
    adjacency = {}
    for edge in graph.edges:
        adjacency.setdefault(edge.source, []).append(edge.target)

    visited: Set[str] = set()
    queue = deque()
    for root in roots:
        if root not in visited:
            visited.add(root)
            queue.append(root)

    while queue:
        current = queue.popleft()
        for target in adjacency.get(current, []):
            if target not in visited:
                visited.add(target)
                queue.append(target)
    return visited


def has_edge_on_handle(
    graph: WorkflowGraph, node: WorkflowNode, handle: str, descriptor: BaseNode,
) -> bool:
    """True if any edge leaves ``node`` on ``handle``.

    An edge without ``sourceHandle`` counts for the type's default output.
    """
    for edge in graph.get_edges_from(node.id):
        if edge.source_handle == handle:
            return True
        if edge.source_handle is None and handle == descriptor.default_output:
            return True
    return False


def _coverage_errors(
    graph: WorkflowGraph, node: WorkflowNode, desc: BaseNode,
) -> List[str]:
    required = desc.get_required_handles(desc.parse_data(node.data))
    if required:
        return [
            desc.missing_handle_message(node, handle)
            for handle in required
            if not has_edge_on_handle(graph, node, handle, desc)
        ]

    if desc.requires_outgoing_edge and not graph.get_edges_from(node.id):
        return [
            f"Node '{desc.display_label(node)}' ({node.id}) "
            f"must have at least one outgoing edge."
        ]
    return []
