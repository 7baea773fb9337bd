"""
Workflow Edit Session — one user editing one workflow.

Ties together the graph store, the mutation engine, the validator and
a persistence adapter, and owns the state that belongs to the editor
rather than the graph: the selected node and the undo history.

Saving validates a snapshot taken when ``save()`` is called. The graph
stays editable while the save request is in flight, and later edits
never leak into the request.
"""

from __future__ import annotations

from logging import getLogger
from typing import Any, Callable, Dict, List, Optional, Union

from flowbuilder.config import BuilderConfig, get_builder_config
from flowbuilder.workflow.graph_store import DataMutator, GraphStore
from flowbuilder.workflow.nodes.base import NodeRegistry, get_node_registry
from flowbuilder.workflow.templates import create_blank_graph
from flowbuilder.workflow.workflow_inspector import is_handle_dangling
from flowbuilder.workflow.workflow_model import NodePosition, WorkflowEdge, WorkflowGraph
from flowbuilder.workflow.workflow_mutations import PlacementHint, WorkflowMutator
from flowbuilder.workflow.workflow_persistence import WorkflowPersistenceAdapter
from flowbuilder.workflow.workflow_validator import (
    WorkflowValidationError,
    validate_workflow,
)

logger = getLogger(__name__)


class WorkflowEditSession:
    """Editor state for a single open workflow.

    Usage::

        session = WorkflowEditSession("42", HttpWorkflowService())
        await session.open()
        llm_id = session.quick_add("start-node", "output", "llm")
        session.quick_add(llm_id, "output", "response")
        await session.save()
    """

    def __init__(
        self,
        workflow_id: str,
        adapter: WorkflowPersistenceAdapter,
        registry: Optional[NodeRegistry] = None,
        config: Optional[BuilderConfig] = None,
    ) -> None:
        self.workflow_id = workflow_id
        self._adapter = adapter
        self._registry = registry or get_node_registry()
        self._config = config or get_builder_config()
        self.store = GraphStore(create_blank_graph())
        self.mutator = WorkflowMutator(self.store, self._registry, self._config)
        self.selected_node_id: Optional[str] = None
        self._undo_stack: List[WorkflowGraph] = []

    # ========================================================================
    # Loading
    # ========================================================================

    async def open(self) -> WorkflowGraph:
        """Load the stored graph, or start from the blank graph."""
        graph = await self._adapter.load(self.workflow_id)
        if graph is None or not graph.nodes:
            logger.info(f"[{self.workflow_id}] No saved graph, starting blank")
            graph = create_blank_graph()
        self.store.replace(graph)
        self.selected_node_id = None
        self._undo_stack.clear()
        logger.info(
            f"[{self.workflow_id}] Opened: {len(self.store.nodes)} nodes, "
            f"{len(self.store.edges)} edges"
        )
        return self.store.snapshot()

    # ========================================================================
    # Selection
    # ========================================================================

    def select_node(self, node_id: Optional[str]) -> bool:
        if node_id is not None and not self.store.has_node(node_id):
            return False
        self.selected_node_id = node_id
        return True

    def clear_selection(self) -> None:
        self.selected_node_id = None

    # ========================================================================
    # Editing
    # ========================================================================

    def add_node(
        self,
        node_type: str,
        data: Optional[Dict[str, Any]] = None,
        position: Optional[NodePosition] = None,
    ) -> Optional[str]:
        return self._record(lambda: self.mutator.add_node(node_type, data, position))

    def connect(
        self,
        source_id: str,
        source_handle: Optional[str],
        target_id: str,
        target_handle: Optional[str] = None,
    ) -> Optional[WorkflowEdge]:
        return self._record(
            lambda: self.mutator.connect(source_id, source_handle, target_id, target_handle)
        )

    def disconnect(self, edge_id: str) -> bool:
        return self._record(lambda: self.mutator.disconnect(edge_id))

    def update_node_data(self, node_id: str, mutator: DataMutator) -> bool:
        return self._record(lambda: self.mutator.update_node_data(node_id, mutator))

    def relabel(self, node_id: str, label: str) -> bool:
        return self._record(lambda: self.mutator.relabel(node_id, label))

    def delete_node(self, node_id: str) -> bool:
        """Delete a node; clears the selection if it pointed there."""
        deleted = self._record(lambda: self.mutator.delete_node(node_id))
        if deleted and self.selected_node_id == node_id:
            self.selected_node_id = None
        return deleted

    def delete_selected(self) -> bool:
        if self.selected_node_id is None:
            return False
        return self.delete_node(self.selected_node_id)

    def quick_add(
        self,
        source_id: str,
        source_handle: Optional[str],
        node_type: str,
        node_data: Optional[Dict[str, Any]] = None,
        placement: Union[PlacementHint, str] = PlacementHint.STACKED,
    ) -> Optional[str]:
        """Insert-and-connect from a dangling handle.

        Returns ``None`` without touching the graph when the handle is
        already occupied or the source is gone.
        """
        if not is_handle_dangling(
            self.store.snapshot(), source_id, source_handle, self._registry,
        ):
            logger.debug(
                f"[{self.workflow_id}] quick_add skipped: "
                f"{source_id}[{source_handle}] is not a dangling handle"
            )
            return None
        return self._record(
            lambda: self.mutator.insert_connected(
                source_id, source_handle, node_type, node_data, placement,
            )
        )

    # ========================================================================
    # Undo
    # ========================================================================

    @property
    def can_undo(self) -> bool:
        return bool(self._undo_stack)

    def undo(self) -> bool:
        """Restore the graph as it was before the last successful edit."""
        if not self._undo_stack:
            return False
        self.store.replace(self._undo_stack.pop())
        if self.selected_node_id and not self.store.has_node(self.selected_node_id):
            self.selected_node_id = None
        return True

    def _record(self, action: Callable[[], Any]) -> Any:
        before = self.store.snapshot()
        result = action()
        # Mutators signal failure with None or False
        if result is not None and result is not False:
            self._undo_stack.append(before)
            if len(self._undo_stack) > self._config.undo_limit:
                del self._undo_stack[0]
        return result

    # ========================================================================
    # Validation & saving
    # ========================================================================

    def validate(self) -> List[str]:
        return validate_workflow(self.store.snapshot(), self._registry)

    async def save(self) -> Dict[str, Any]:
        """Validate the current graph and persist it.

        Raises:
            WorkflowValidationError: The graph has structural errors; all
                of them are carried on ``.errors`` and nothing is sent.
            WorkflowPersistenceError: The adapter failed.
        """
        snapshot = self.store.snapshot()
        errors = validate_workflow(snapshot, self._registry)
        if errors:
            logger.info(f"[{self.workflow_id}] Save blocked: {len(errors)} validation error(s)")
            raise WorkflowValidationError(errors)

        ack = await self._adapter.save(self.workflow_id, snapshot)
        logger.info(
            f"[{self.workflow_id}] Saved: {len(snapshot.nodes)} nodes, "
            f"{len(snapshot.edges)} edges"
        )
        return ack
