"""
Workflow Engine — graph model and validation for the visual builder.

Provides the structures and rules behind the visual workflow editor:
what a node type may do, how the graph changes as the user edits it,
and when a graph is complete enough to be saved for the execution
engine.

Architecture:
    nodes/              — BaseNode descriptors, NodeRegistry, node catalogue
    workflow_model      — Node / Edge / Graph data models
    graph_store         — In-memory graph for an open workflow
    workflow_mutations  — Connect, insert-and-connect, delete, relabel
    workflow_validator  — Save-time structural validation
    workflow_inspector  — Structural report and dangling-handle lookup
    workflow_persistence — File and HTTP persistence adapters
    workflow_session    — Selection, undo and the validated save
    templates           — Blank graph and pre-built templates
"""

from flowbuilder.workflow.nodes.base import (
    BaseNode,
    CatalogNode,
    DynamicHandles,
    FixedHandles,
    NodeCatalogEntry,
    NodeData,
    NodeRegistry,
    NodeTypeDescriptor,
    OutputPort,
    get_node_registry,
    register_node,
)
from flowbuilder.workflow.workflow_model import (
    NodePosition,
    WorkflowDefinition,
    WorkflowEdge,
    WorkflowGraph,
    WorkflowNode,
)
from flowbuilder.workflow.graph_store import GraphStore
from flowbuilder.workflow.workflow_mutations import PlacementHint, WorkflowMutator
from flowbuilder.workflow.workflow_validator import (
    WorkflowValidationError,
    validate_workflow,
)
from flowbuilder.workflow.workflow_inspector import (
    find_dangling_handles,
    inspect_workflow,
)
from flowbuilder.workflow.workflow_persistence import (
    HttpWorkflowService,
    JsonFileWorkflowStore,
    WorkflowPersistenceAdapter,
    WorkflowPersistenceError,
)
from flowbuilder.workflow.workflow_session import WorkflowEditSession
from flowbuilder.workflow.templates import create_blank_graph

__all__ = [
    "BaseNode",
    "CatalogNode",
    "DynamicHandles",
    "FixedHandles",
    "NodeCatalogEntry",
    "NodeData",
    "NodeRegistry",
    "NodeTypeDescriptor",
    "OutputPort",
    "get_node_registry",
    "register_node",
    "NodePosition",
    "WorkflowDefinition",
    "WorkflowEdge",
    "WorkflowGraph",
    "WorkflowNode",
    "GraphStore",
    "PlacementHint",
    "WorkflowMutator",
    "WorkflowValidationError",
    "validate_workflow",
    "find_dangling_handles",
    "inspect_workflow",
    "HttpWorkflowService",
    "JsonFileWorkflowStore",
    "WorkflowPersistenceAdapter",
    "WorkflowPersistenceError",
    "WorkflowEditSession",
    "create_blank_graph",
]
