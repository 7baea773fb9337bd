"""Small builders for workflow graphs used across the test suite.

Usage:
    from tests.factories import GraphFactory

    graph = (
        GraphFactory()
        .node("s", "start")
        .node("o", "output")
        .edge("s", "o", "output")
        .build()
    )
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from flowbuilder.workflow.workflow_model import (
    NodePosition,
    WorkflowEdge,
    WorkflowGraph,
    WorkflowNode,
)


def make_node(node_id: str, node_type: str, x: float = 0, y: float = 0, **data: Any) -> WorkflowNode:
    return WorkflowNode(
        id=node_id, type=node_type, position=NodePosition(x=x, y=y), data=dict(data),
    )


def make_edge(source: str, target: str, handle: Optional[str] = None, edge_id: Optional[str] = None) -> WorkflowEdge:
    return WorkflowEdge(
        id=edge_id or f"{source}-{handle or 'default'}-{target}",
        source=source,
        target=target,
        source_handle=handle,
    )


class GraphFactory:
    """Fluent graph builder. Edge ids are made unique automatically."""

    def __init__(self) -> None:
        self._nodes: List[WorkflowNode] = []
        self._edges: List[WorkflowEdge] = []
        self._seen: Dict[str, int] = {}

    def node(self, node_id: str, node_type: str, x: float = 0, y: float = 0, **data: Any) -> "GraphFactory":
        self._nodes.append(make_node(node_id, node_type, x, y, **data))
        return self

    def edge(self, source: str, target: str, handle: Optional[str] = None) -> "GraphFactory":
        base = f"{source}-{handle or 'default'}-{target}"
        count = self._seen.get(base, 0)
        self._seen[base] = count + 1
        edge_id = base if count == 0 else f"{base}-{count}"
        self._edges.append(make_edge(source, target, handle, edge_id))
        return self

    def build(self) -> WorkflowGraph:
        return WorkflowGraph(nodes=list(self._nodes), edges=list(self._edges))


def minimal_valid_graph() -> WorkflowGraph:
    """start → llm → output, with both llm handles wired."""
    return (
        GraphFactory()
        .node("start-node", "start", label="Start")
        .node("llm-1", "llm", label="Answer")
        .node("out-1", "output", label="Done")
        .edge("start-node", "llm-1", "output")
        .edge("llm-1", "out-1", "output")
        .build()
    )
