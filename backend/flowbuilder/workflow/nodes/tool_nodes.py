"""
Tool Nodes — calls to company-defined tools.

The generic ``tool`` node carries the selected tool's parameter schema
in its data and exposes one handle per declared parameter next to its
``output`` / ``error`` handles. Tool definitions fetched from the
workflow service can also be registered as dedicated ``tool:<name>``
node types through the catalog-injection seam.
"""

from __future__ import annotations

from logging import getLogger
from typing import Any, Dict, Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from flowbuilder.workflow.nodes.base import (
    BaseNode,
    NodeCatalogEntry,
    NodeData,
    NodeRegistry,
    OutputPort,
    register_node,
)

logger = getLogger(__name__)

_BASE_HANDLES = ("output", "error")


class ToolNodeData(NodeData):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    tool: Optional[str] = None
    tool_parameters: Dict[str, Any] = Field(default_factory=dict, alias="toolParameters")
    params: Dict[str, Any] = Field(default_factory=dict)


def _tool_handles(parameter_names: Iterable[str]) -> List[str]:
    handles = list(_BASE_HANDLES)
    for name in parameter_names:
        if name not in handles:
            handles.append(name)
    return handles


@register_node
class ToolNode(BaseNode):
    node_type = "tool"
    label = "Tool"
    description = "Execute a configured tool"
    category = "tools"
    data_model = ToolNodeData

    output_ports = [
        OutputPort(id="output", label="Output"),
        OutputPort(id="error", label="Error"),
    ]

    def get_dynamic_output_ports(self, data: ToolNodeData) -> Optional[List[OutputPort]]:
        ports = list(self.output_ports)
        for name in _tool_handles(data.tool_parameters)[len(_BASE_HANDLES):]:
            ports.append(OutputPort(id=name, label=name, description="Tool parameter"))
        return ports


# ============================================================================
# Tool catalog
# ============================================================================


class ToolDefinition(BaseModel):
    """A tool as listed by the workflow service."""

    model_config = ConfigDict(extra="allow")

    id: Optional[int] = None
    name: str
    description: str = ""
    parameters: Dict[str, Any] = Field(default_factory=dict)

    @property
    def parameter_names(self) -> List[str]:
        properties = self.parameters.get("properties") or {}
        return list(properties) if isinstance(properties, dict) else []


def tool_catalog_entries(tools: Iterable[ToolDefinition]) -> List[NodeCatalogEntry]:
    """Turn tool definitions into ``tool:<name>`` catalog entries."""
    return [
        NodeCatalogEntry(
            type=f"tool:{tool.name}",
            label=tool.name,
            description=tool.description,
            static_handles=_tool_handles(tool.parameter_names),
        )
        for tool in tools
    ]


def register_tools(registry: NodeRegistry, tools: Iterable[ToolDefinition]) -> int:
    """Register every tool as a node type. Returns the count."""
    entries = tool_catalog_entries(tools)
    for entry in entries:
        registry.register_catalog_entry(entry)
    logger.info(f"Tool node types registered: {len(entries)}")
    return len(entries)
