"""
Node Base — descriptors, handle contracts and the node type registry.

Every node type placed on the canvas is described by a ``BaseNode``
subclass registered with ``@register_node``. A descriptor answers the
structural questions the mutation and validation engines ask:

* may this node start a workflow (``can_be_entry_point``)?
* is it a terminal output (``is_output``)?
* must it have an outgoing edge (``requires_outgoing_edge``)?
* which output handles does it expose, given its current ``data``?

Types that are not known ahead of time (company-specific tools and
connectors) are injected at runtime through ``register_catalog_entry``.
Lookups for unknown tags never fail: they resolve to a permissive
fallback descriptor.
"""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Type, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from flowbuilder.workflow.workflow_model import WorkflowNode

logger = getLogger(__name__)


# ============================================================================
# Ports & payloads
# ============================================================================


class OutputPort(BaseModel):
    """A named source handle on a node."""

    id: str
    label: str = ""
    description: str = ""


class NodeData(BaseModel):
    """Base payload shared by all node types.

    Extra keys are kept so payloads round-trip untouched; every field
    has a default so missing keys read as unset.
    """

    model_config = ConfigDict(extra="allow")

    label: Optional[str] = None


# ============================================================================
# Handle contracts
# ============================================================================


@dataclass(frozen=True)
class FixedHandles:
    """Static handle list, independent of node data."""

    handles: Tuple[str, ...]

    def resolve(self, data: Optional[Dict[str, Any]] = None) -> List[str]:
        return list(self.handles)


@dataclass(frozen=True)
class DynamicHandles:
    """Handle list computed from the node's current data."""

    provider: Callable[[Dict[str, Any]], List[str]]

    def resolve(self, data: Optional[Dict[str, Any]] = None) -> List[str]:
        return list(self.provider(data or {}))


HandleContract = Union[FixedHandles, DynamicHandles]

M = TypeVar("M", bound=BaseModel)


def parse_leniently(model: Type[M], data: Optional[Mapping[str, Any]], context: str = "") -> M:
    """Validate ``data`` into ``model``, dropping top-level keys that fail."""
    payload = dict(data or {})
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        bad_keys = {err["loc"][0] for err in e.errors() if err["loc"]}
    logger.warning(
        f"Malformed data for {context or model.__name__}, "
        f"treating as unset: {sorted(str(k) for k in bad_keys)}"
    )
    try:
        return model.model_validate({k: v for k, v in payload.items() if k not in bad_keys})
    except ValidationError:
        return model()


# ============================================================================
# BaseNode
# ============================================================================


class BaseNode:
    """Structural contract for one node type.

    Subclasses override the class attributes; types whose handles depend
    on configuration override ``get_dynamic_output_ports``, and types
    with mandatory branches override ``get_required_handles``.
    """

    node_type: str = ""
    label: str = ""
    description: str = ""
    category: str = "core"

    can_be_entry_point: bool = False
    is_output: bool = False
    requires_outgoing_edge: bool = True

    # Port an edge without ``sourceHandle`` is attached to.
    default_output: Optional[str] = "output"
    default_target_handle: Optional[str] = None

    data_model: Type[NodeData] = NodeData
    output_ports: List[OutputPort] = [
        OutputPort(id="output", label="Output"),
    ]

    # ── Payload ──

    def parse_data(self, data: Optional[Mapping[str, Any]]) -> NodeData:
        """Parse raw ``data`` into this type's payload model.

        Keys that fail validation are logged and read as unset; the
        remaining keys are kept.
        """
        return parse_leniently(self.data_model, data, context=f"'{self.node_type}' node")

    def default_data(self) -> Dict[str, Any]:
        """Payload given to freshly created nodes of this type."""
        return {"label": self.label or self.node_type}

    # ── Handles ──

    def get_dynamic_output_ports(self, data: NodeData) -> Optional[List[OutputPort]]:
        """Compute output ports from node data. ``None`` means static."""
        return None

    def resolve_output_ports(self, data: Optional[Mapping[str, Any]]) -> List[OutputPort]:
        dynamic = self.get_dynamic_output_ports(self.parse_data(data))
        return dynamic if dynamic is not None else list(self.output_ports)

    def handle_ids(self, data: Optional[Mapping[str, Any]] = None) -> List[str]:
        return [p.id for p in self.resolve_output_ports(data)]

    @property
    def handle_contract(self) -> HandleContract:
        if type(self).get_dynamic_output_ports is BaseNode.get_dynamic_output_ports:
            return FixedHandles(tuple(p.id for p in self.output_ports))
        return DynamicHandles(self.handle_ids)

    def get_required_handles(self, data: NodeData) -> List[str]:
        """Handles that must each carry at least one edge.

        Empty for most types, which only need some outgoing edge.
        """
        return []

    # ── Messages ──

    def display_label(self, node: WorkflowNode) -> str:
        return node.label or self.label or node.type

    def missing_handle_message(self, node: WorkflowNode, handle: str) -> str:
        return (
            f"Node '{self.display_label(node)}' ({node.id}) "
            f"has no edge on its '{handle}' output."
        )

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.node_type!r}>"


# The registry hands out BaseNode instances as type descriptors.
NodeTypeDescriptor = BaseNode


class UnknownNode(BaseNode):
    """Fallback descriptor for tags missing from the registry.

    No entry/output flags, one default output, at least one outgoing
    edge required.
    """

    node_type = ""
    label = "Unknown"
    description = "Node type not present in the catalogue"
    category = "unknown"


# ============================================================================
# Catalog injection
# ============================================================================


class NodeCatalogEntry(BaseModel):
    """Runtime-supplied node type definition.

    Accepts the camelCase keys used by the editor's catalogue feed.
    """

    model_config = ConfigDict(populate_by_name=True, arbitrary_types_allowed=True)

    type: str
    label: str = ""
    description: str = ""
    can_be_entry_point: bool = Field(default=False, alias="canBeEntryPoint")
    is_output: bool = Field(default=False, alias="isOutput")
    requires_outgoing_edge: bool = Field(default=True, alias="requiresOutgoingEdge")
    static_handles: Optional[List[str]] = Field(default=None, alias="staticHandles")
    dynamic_handle_fn: Optional[Callable[[Dict[str, Any]], List[str]]] = Field(
        default=None, alias="dynamicHandleFn",
    )

    @model_validator(mode="after")
    def _one_handle_form(self) -> "NodeCatalogEntry":
        if self.static_handles is not None and self.dynamic_handle_fn is not None:
            raise ValueError(
                f"Catalog entry '{self.type}' supplies both staticHandles and dynamicHandleFn"
            )
        return self


class CatalogNode(BaseNode):
    """Descriptor built from a ``NodeCatalogEntry``."""

    category = "catalog"

    def __init__(self, entry: NodeCatalogEntry) -> None:
        self.node_type = entry.type
        self.label = entry.label or entry.type
        self.description = entry.description
        self.can_be_entry_point = entry.can_be_entry_point
        self.is_output = entry.is_output
        self.requires_outgoing_edge = entry.requires_outgoing_edge
        self._handle_fn = entry.dynamic_handle_fn

        handles = entry.static_handles if entry.static_handles is not None else ["output"]
        self.output_ports = [OutputPort(id=h, label=h) for h in handles]
        if self._handle_fn is not None:
            self.default_output = None
        else:
            self.default_output = handles[0] if len(handles) == 1 else None

    def handle_ids(self, data: Optional[Mapping[str, Any]] = None) -> List[str]:
        if self._handle_fn is None:
            return [p.id for p in self.output_ports]
        try:
            return [str(h) for h in self._handle_fn(dict(data or {}))]
        except Exception as e:
            logger.warning(
                f"Handle function for catalog type '{self.node_type}' failed, "
                f"using default handles: {e}"
            )
            return [p.id for p in self.output_ports]

    def resolve_output_ports(self, data: Optional[Mapping[str, Any]]) -> List[OutputPort]:
        return [OutputPort(id=h, label=h) for h in self.handle_ids(data)]

    @property
    def handle_contract(self) -> HandleContract:
        if self._handle_fn is None:
            return FixedHandles(tuple(p.id for p in self.output_ports))
        return DynamicHandles(self.handle_ids)


# ============================================================================
# Registry
# ============================================================================


class NodeRegistry:
    """Map from node type tag to its descriptor."""

    def __init__(self, fallback: Optional[BaseNode] = None) -> None:
        self._nodes: Dict[str, BaseNode] = {}
        self._fallback = fallback or UnknownNode()

    def register(self, node: BaseNode, replace: bool = False) -> None:
        if not node.node_type:
            raise ValueError(f"{type(node).__name__} has no node_type")
        if node.node_type in self._nodes and not replace:
            raise ValueError(f"Node type '{node.node_type}' is already registered")
        self._nodes[node.node_type] = node

    def unregister(self, node_type: str) -> bool:
        return self._nodes.pop(node_type, None) is not None

    def get(self, node_type: str) -> Optional[BaseNode]:
        return self._nodes.get(node_type)

    def describe(self, node_type: str) -> BaseNode:
        """Return the descriptor for ``node_type``, or the fallback."""
        return self._nodes.get(node_type, self._fallback)

    def is_known(self, node_type: str) -> bool:
        return node_type in self._nodes

    def list_all(self) -> List[BaseNode]:
        return list(self._nodes.values())

    def list_by_category(self, category: str) -> List[BaseNode]:
        return [n for n in self._nodes.values() if n.category == category]

    def search(self, text: str) -> List[BaseNode]:
        """Node types whose label or tag contains ``text``, case-insensitively."""
        needle = text.strip().lower()
        if not needle:
            return self.list_all()
        return [
            n for n in self._nodes.values()
            if needle in n.label.lower() or needle in n.node_type.lower()
        ]

    def register_catalog_entry(
        self,
        entry: Union[NodeCatalogEntry, Mapping[str, Any]],
        replace: bool = True,
    ) -> BaseNode:
        """Register a runtime-supplied node type.

        Re-registering the same tag replaces the previous definition,
        since catalogue feeds are refreshed wholesale.
        """
        if not isinstance(entry, NodeCatalogEntry):
            entry = NodeCatalogEntry.model_validate(dict(entry))
        node = CatalogNode(entry)
        self.register(node, replace=replace)
        logger.debug(f"Catalog node type registered: {node.node_type}")
        return node


# ── Singleton ──

_registry_instance: Optional[NodeRegistry] = None


def get_node_registry() -> NodeRegistry:
    """Return the global NodeRegistry singleton."""
    global _registry_instance
    if _registry_instance is None:
        _registry_instance = NodeRegistry()
    return _registry_instance


def register_node(cls: Type[BaseNode]) -> Type[BaseNode]:
    """Class decorator: instantiate and add to the global registry."""
    get_node_registry().register(cls())
    return cls
