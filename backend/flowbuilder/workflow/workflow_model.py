"""
Workflow Data Models — nodes, edges, graphs and stored definitions.

These are the serializable data structures that describe a
user-designed workflow graph. The persisted shape is the contract
shared with the storage service and the execution engine::

    {
      "nodes": [{"id", "type", "position": {"x", "y"}, "data": {...}}],
      "edges": [{"id", "source", "target", "sourceHandle"?, "targetHandle"?}]
    }
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class NodePosition(BaseModel):
    """Canvas coordinate. Presentation only, never validated."""

    x: float = 0
    y: float = 0


class WorkflowNode(BaseModel):
    """A single node placed on the workflow canvas.

    ``type`` references a registered ``BaseNode.node_type``; unknown
    tags are allowed and resolve to the registry's fallback descriptor.
    ``data`` is the type-specific payload and is always a dict.
    """

    model_config = ConfigDict(extra="allow")

    id: str
    type: str
    position: NodePosition = Field(default_factory=NodePosition)
    data: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("data", mode="before")
    @classmethod
    def _data_never_none(cls, value: Any) -> Any:
        return {} if value is None else value

    @property
    def label(self) -> str:
        label = self.data.get("label")
        return label if isinstance(label, str) else ""


class WorkflowEdge(BaseModel):
    """A directed edge between two nodes.

    ``source_handle`` names the output port on the source node; ``None``
    means the node's default port. ``target_handle`` names the input port.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str = Field(default_factory=lambda: f"edge-{uuid.uuid4().hex[:8]}")
    source: str  # source node ID
    target: str  # target node ID
    source_handle: Optional[str] = Field(default=None, alias="sourceHandle")
    target_handle: Optional[str] = Field(default=None, alias="targetHandle")


class WorkflowGraph(BaseModel):
    """The full ``{nodes, edges}`` pair for one workflow version."""

    nodes: List[WorkflowNode] = Field(default_factory=list)
    edges: List[WorkflowEdge] = Field(default_factory=list)

    def get_node(self, node_id: str) -> Optional[WorkflowNode]:
        """Find a node by ID."""
        for n in self.nodes:
            if n.id == node_id:
                return n
        return None

    def get_edges_from(
        self, node_id: str, handle: Optional[str] = None,
    ) -> List[WorkflowEdge]:
        """Get edges leaving a node, optionally only those on ``handle``."""
        return [
            e for e in self.edges
            if e.source == node_id and (handle is None or e.source_handle == handle)
        ]

    def get_edges_to(self, node_id: str) -> List[WorkflowEdge]:
        """Get all edges pointing to a node."""
        return [e for e in self.edges if e.target == node_id]

    def to_persisted(self) -> Dict[str, Any]:
        """Dump in the persisted wire shape (camelCase handles, no nulls)."""
        return {
            "nodes": [n.model_dump(mode="json") for n in self.nodes],
            "edges": [
                e.model_dump(mode="json", by_alias=True, exclude_none=True)
                for e in self.edges
            ],
        }


class WorkflowDefinition(BaseModel):
    """A stored workflow: metadata plus its visual graph.

    ``visual_steps`` carries the graph under the same field name the
    workflow service uses.
    """

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str = "Untitled Workflow"
    description: str = ""
    agent_id: Optional[int] = None
    visual_steps: WorkflowGraph = Field(default_factory=WorkflowGraph)
    created_at: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )
    updated_at: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )

    def touch(self) -> None:
        """Update the ``updated_at`` timestamp."""
        self.updated_at = datetime.now(timezone.utc).isoformat()
