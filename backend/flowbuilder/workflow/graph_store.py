"""
Graph Store — in-memory nodes and edges for one open workflow.

Holds the graph being edited and guarantees that no edge ever points
at a missing node: edges are refused when an endpoint is absent and
removed together with any node they touch. It does not judge whether
the graph makes sense; that is the validator's job.
"""

from __future__ import annotations

from logging import getLogger
from typing import Any, Callable, Dict, List, Optional

from flowbuilder.workflow.workflow_model import (
    WorkflowEdge,
    WorkflowGraph,
    WorkflowNode,
)

logger = getLogger(__name__)

DataMutator = Callable[[Dict[str, Any]], Dict[str, Any]]


class GraphStore:
    """Ordered, mutable node/edge collection."""

    def __init__(self, graph: Optional[WorkflowGraph] = None) -> None:
        self._graph = WorkflowGraph()
        if graph is not None:
            self.replace(graph)

    # ── Queries ──

    @property
    def nodes(self) -> List[WorkflowNode]:
        return list(self._graph.nodes)

    @property
    def edges(self) -> List[WorkflowEdge]:
        return list(self._graph.edges)

    def has_node(self, node_id: str) -> bool:
        return self._graph.get_node(node_id) is not None

    def get_node(self, node_id: str) -> Optional[WorkflowNode]:
        return self._graph.get_node(node_id)

    def nodes_of_type(self, node_type: str) -> List[WorkflowNode]:
        return [n for n in self._graph.nodes if n.type == node_type]

    def edges_from(self, node_id: str, handle: Optional[str] = None) -> List[WorkflowEdge]:
        return self._graph.get_edges_from(node_id, handle)

    def edges_to(self, node_id: str) -> List[WorkflowEdge]:
        return self._graph.get_edges_to(node_id)

    def snapshot(self) -> WorkflowGraph:
        """Deep copy of the current graph, unaffected by later edits."""
        return self._graph.model_copy(deep=True)

    # ── Nodes ──

    def add_node(self, node: WorkflowNode) -> bool:
        """Append a node. Refuses (returns False) on a duplicate id."""
        if self.has_node(node.id):
            logger.warning(f"Refusing duplicate node id: {node.id}")
            return False
        self._graph.nodes.append(node)
        return True

    def update_node_data(self, node_id: str, mutator: DataMutator) -> bool:
        """Replace a node's data with ``mutator(previous_data)``.

        The mutator receives a copy. No-op when the id is absent.
        """
        node = self._graph.get_node(node_id)
        if node is None:
            return False
        new_data = mutator(dict(node.data))
        node.data = dict(new_data) if new_data is not None else {}
        return True

    def remove_node(self, node_id: str) -> bool:
        """Remove a node and every edge touching it."""
        before = len(self._graph.nodes)
        self._graph.nodes = [n for n in self._graph.nodes if n.id != node_id]
        if len(self._graph.nodes) == before:
            return False
        removed = self.remove_edges_touching(node_id)
        logger.debug(f"Node removed: {node_id} (+{removed} edges)")
        return True

    # ── Edges ──

    def add_edge(self, edge: WorkflowEdge) -> bool:
        """Append an edge. Refuses edges with a missing endpoint.

        Several edges on the same ``(source, sourceHandle)`` are allowed.
        """
        missing = [nid for nid in (edge.source, edge.target) if not self.has_node(nid)]
        if missing:
            logger.warning(
                f"Refusing edge {edge.id}: unknown node(s) {', '.join(missing)}"
            )
            return False
        self._graph.edges.append(edge)
        return True

    def remove_edge(self, edge_id: str) -> bool:
        before = len(self._graph.edges)
        self._graph.edges = [e for e in self._graph.edges if e.id != edge_id]
        return len(self._graph.edges) != before

    def remove_edges_touching(self, node_id: str) -> int:
        """Remove edges whose source or target is ``node_id``. O(E)."""
        before = len(self._graph.edges)
        self._graph.edges = [
            e for e in self._graph.edges
            if e.source != node_id and e.target != node_id
        ]
        return before - len(self._graph.edges)

    # ── Wholesale ──

    def replace(self, graph: WorkflowGraph) -> None:
        """Swap in a whole graph (load, reload, undo).

        Repeated node ids keep their first occurrence and edges with a
        missing endpoint are dropped, both with a warning.
        """
        incoming = graph.model_copy(deep=True)
        nodes: List[WorkflowNode] = []
        seen = set()
        for node in incoming.nodes:
            if node.id in seen:
                logger.warning(f"Dropping duplicate node id on load: {node.id}")
                continue
            seen.add(node.id)
            nodes.append(node)

        edges: List[WorkflowEdge] = []
        for edge in incoming.edges:
            if edge.source not in seen or edge.target not in seen:
                logger.warning(
                    f"Dropping dangling edge on load: {edge.id} "
                    f"({edge.source} → {edge.target})"
                )
                continue
            edges.append(edge)

        self._graph = WorkflowGraph(nodes=nodes, edges=edges)
