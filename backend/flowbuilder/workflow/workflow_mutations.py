"""
Workflow Mutations — the operations an editor applies to a graph.

Each method changes the ``GraphStore`` as one unit. Type compatibility
is never checked here: half-wired graphs are a normal state while the
user is editing, and structural problems are reported by the validator
at save time.
"""

from __future__ import annotations

import uuid
from enum import Enum
from logging import getLogger
from typing import Any, Dict, Optional, Union

from flowbuilder.config import BuilderConfig, get_builder_config
from flowbuilder.workflow.graph_store import DataMutator, GraphStore
from flowbuilder.workflow.nodes.base import NodeRegistry, get_node_registry
from flowbuilder.workflow.workflow_model import (
    NodePosition,
    WorkflowEdge,
    WorkflowNode,
)

logger = getLogger(__name__)


class PlacementHint(str, Enum):
    """Where a quick-added node is placed relative to its source."""
    STACKED = "stacked"  # directly below
    BRANCH = "branch"    # off to the side


def new_node_id(node_type: str) -> str:
    return f"{node_type}-{uuid.uuid4().hex[:8]}"


class WorkflowMutator:
    """Apply editor actions to a GraphStore.

    Usage::

        mutator = WorkflowMutator(store)
        llm_id = mutator.insert_connected("start-node", "output", "llm")
        mutator.connect(llm_id, "output", out_id)
    """

    def __init__(
        self,
        store: GraphStore,
        registry: Optional[NodeRegistry] = None,
        config: Optional[BuilderConfig] = None,
    ) -> None:
        self._store = store
        self._registry = registry or get_node_registry()
        self._config = config or get_builder_config()

    @property
    def store(self) -> GraphStore:
        return self._store

    # ========================================================================
    # Nodes
    # ========================================================================

    def add_node(
        self,
        node_type: str,
        data: Optional[Dict[str, Any]] = None,
        position: Optional[NodePosition] = None,
    ) -> Optional[str]:
        """Create a free-standing node (drag and drop). Returns its id."""
        if data is None:
            data = self._registry.describe(node_type).default_data()
        node = WorkflowNode(
            id=new_node_id(node_type),
            type=node_type,
            position=position or NodePosition(),
            data=dict(data),
        )
        if not self._store.add_node(node):
            return None
        logger.debug(f"Node added: {node.id}")
        return node.id

    def update_node_data(self, node_id: str, mutator: DataMutator) -> bool:
        return self._store.update_node_data(node_id, mutator)

    def relabel(self, node_id: str, label: str) -> bool:
        return self._store.update_node_data(node_id, lambda d: {**d, "label": label})

    def delete_node(self, node_id: str) -> bool:
        """Remove a node and every edge touching it.

        Callers holding a selection must clear it when this returns True
        for the selected id.
        """
        return self._store.remove_node(node_id)

    # ========================================================================
    # Edges
    # ========================================================================

    def connect(
        self,
        source_id: str,
        source_handle: Optional[str],
        target_id: str,
        target_handle: Optional[str] = None,
    ) -> Optional[WorkflowEdge]:
        """Append an edge. Identical calls produce distinct edges."""
        edge = WorkflowEdge(
            source=source_id,
            target=target_id,
            source_handle=source_handle,
            target_handle=target_handle,
        )
        if not self._store.add_edge(edge):
            return None
        logger.debug(
            f"Connected {source_id}[{source_handle or 'default'}] → {target_id}"
        )
        return edge

    def disconnect(self, edge_id: str) -> bool:
        return self._store.remove_edge(edge_id)

    # ========================================================================
    # Compound
    # ========================================================================

    def insert_connected(
        self,
        source_id: str,
        source_handle: Optional[str],
        node_type: str,
        node_data: Optional[Dict[str, Any]] = None,
        placement: Union[PlacementHint, str] = PlacementHint.STACKED,
    ) -> Optional[str]:
        """Create a node downstream of ``source_id`` and wire it in.

        Returns the new node id, or ``None`` when the source node no
        longer exists (nothing is changed in that case).
        """
        source = self._store.get_node(source_id)
        if source is None:
            logger.warning(f"insert_connected: source node {source_id} not found")
            return None

        position = self._place(source.position, PlacementHint(placement))
        new_id = self.add_node(node_type, node_data, position)
        if new_id is None:
            return None

        target_handle = self._registry.describe(node_type).default_target_handle
        self.connect(source_id, source_handle, new_id, target_handle)
        return new_id

    def _place(self, origin: NodePosition, hint: PlacementHint) -> NodePosition:
        if hint is PlacementHint.BRANCH:
            return NodePosition(x=origin.x + self._config.branch_offset_x, y=origin.y)
        return NodePosition(x=origin.x, y=origin.y + self._config.stacked_offset_y)
