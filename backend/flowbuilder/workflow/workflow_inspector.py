"""
Workflow Inspector — a structural report of a workflow graph.

Produces, for the properties panel and the save dialog:

* the role of each node (entry, output, conditional, processor, unknown)
* the output handles each node currently exposes and where they lead
* the dangling handles that may still be offered for quick-add
* summary counts and the validation result
"""

from __future__ import annotations

from logging import getLogger
from typing import Any, Dict, List, Optional, Tuple

from flowbuilder.workflow.nodes.base import (
    BaseNode,
    NodeRegistry,
    get_node_registry,
)
from flowbuilder.workflow.workflow_model import WorkflowGraph, WorkflowNode
from flowbuilder.workflow.workflow_validator import (
    has_edge_on_handle,
    validate_workflow,
)

logger = getLogger(__name__)


# ====================================================================
# Public API
# ====================================================================


def inspect_workflow(
    graph: WorkflowGraph,
    registry: Optional[NodeRegistry] = None,
) -> Dict[str, Any]:
    """Inspect a graph and produce the structural report.

    Returns a dict containing:
        - ``nodes``      : Per-node detail list
        - ``dangling``   : ``{"node_id", "handle"}`` pairs with no edge
        - ``summary``    : High-level stats
        - ``validation`` : Validation result
    """
    reg = registry or get_node_registry()
    errors = validate_workflow(graph, reg)

    node_details = [_node_detail(graph, node, reg) for node in graph.nodes]
    dangling = [
        {"node_id": node_id, "handle": handle}
        for node_id, handle in find_dangling_handles(graph, reg)
    ]

    roles: Dict[str, int] = {}
    for detail in node_details:
        roles[detail["role"]] = roles.get(detail["role"], 0) + 1

    return {
        "nodes": node_details,
        "dangling": dangling,
        "summary": {
            "total_nodes": len(graph.nodes),
            "total_edges": len(graph.edges),
            "entry_points": roles.get("entry", 0),
            "outputs": roles.get("output", 0),
            "conditional_nodes": roles.get("conditional", 0),
            "unknown_nodes": roles.get("unknown", 0),
            "is_valid": len(errors) == 0,
        },
        "validation": {
            "valid": len(errors) == 0,
            "errors": errors,
        },
    }


def find_dangling_handles(
    graph: WorkflowGraph,
    registry: Optional[NodeRegistry] = None,
) -> List[Tuple[str, str]]:
    """List ``(node_id, handle)`` output handles with no outgoing edge.

    Output nodes are skipped: they end a path.
    """
    reg = registry or get_node_registry()
    dangling: List[Tuple[str, str]] = []
    for node in graph.nodes:
        desc = reg.describe(node.type)
        if desc.is_output:
            continue
        for handle in desc.handle_ids(node.data):
            if not has_edge_on_handle(graph, node, handle, desc):
                dangling.append((node.id, handle))
    return dangling


def is_handle_dangling(
    graph: WorkflowGraph,
    node_id: str,
    handle: Optional[str],
    registry: Optional[NodeRegistry] = None,
) -> bool:
    """True if ``handle`` on ``node_id`` exists and carries no edge.

    ``handle=None`` refers to the node type's default output.
    """
    reg = registry or get_node_registry()
    node = graph.get_node(node_id)
    if node is None:
        return False
    desc = reg.describe(node.type)
    if desc.is_output:
        return False
    handle = handle if handle is not None else desc.default_output
    if handle is None or handle not in desc.handle_ids(node.data):
        return False
    return not has_edge_on_handle(graph, node, handle, desc)


# ====================================================================
# Node detail builder
# ====================================================================


def _role(desc: BaseNode, known: bool, handle_count: int) -> str:
    if not known:
        return "unknown"
    if desc.can_be_entry_point:
        return "entry"
    if desc.is_output:
        return "output"
    return "conditional" if handle_count > 1 and desc.default_output is None else "processor"


def _node_detail(
    graph: WorkflowGraph, node: WorkflowNode, reg: NodeRegistry,
) -> Dict[str, Any]:
    desc = reg.describe(node.type)
    ports = desc.resolve_output_ports(node.data)

    targets = []
    for edge in graph.get_edges_from(node.id):
        target = graph.get_node(edge.target)
        targets.append({
            "handle": edge.source_handle or desc.default_output,
            "target_id": edge.target,
            "target_label": target.label if target else edge.target,
        })

    return {
        "id": node.id,
        "label": desc.display_label(node),
        "type": node.type,
        "category": desc.category,
        "role": _role(desc, reg.is_known(node.type), len(ports)),
        "description": desc.description,
        "output_handles": [
            {"id": p.id, "label": p.label, "description": p.description}
            for p in ports
        ],
        "required_handles": desc.get_required_handles(desc.parse_data(node.data)),
        "targets": targets,
    }
