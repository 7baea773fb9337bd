"""
Pre-built Workflow Templates.

Factory functions returning ready-made ``WorkflowGraph`` objects: the
blank graph every new workflow starts from, and a few complete
conversational flows users can clone.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Dict, List, Optional

from flowbuilder.workflow.workflow_model import (
    NodePosition,
    WorkflowDefinition,
    WorkflowEdge,
    WorkflowGraph,
    WorkflowNode,
)

if TYPE_CHECKING:
    from flowbuilder.workflow.workflow_persistence import JsonFileWorkflowStore

START_NODE_ID = "start-node"


# ============================================================================
# Blank graph
# ============================================================================


def create_blank_graph() -> WorkflowGraph:
    """A new workflow: just the default start node."""
    return WorkflowGraph(
        nodes=[
            WorkflowNode(
                id=START_NODE_ID, type="start",
                position=NodePosition(x=250, y=5),
                data={"label": "Start"},
            ),
        ],
        edges=[],
    )


class _GraphBuilder:
    def __init__(self) -> None:
        self.nodes: List[WorkflowNode] = []
        self.edges: List[WorkflowEdge] = []

    def node(self, ntype: str, nid: str, label: str, x: float, y: float, **data) -> None:
        self.nodes.append(WorkflowNode(
            id=nid, type=ntype, position=NodePosition(x=x, y=y),
            data={"label": label, **data},
        ))

    def edge(self, src: str, tgt: str, handle: Optional[str] = None) -> None:
        self.edges.append(WorkflowEdge(
            id=f"e-{src}-{handle or 'default'}-{tgt}",
            source=src, target=tgt, source_handle=handle,
        ))

    def build(self) -> WorkflowGraph:
        return WorkflowGraph(nodes=self.nodes, edges=self.edges)


# ============================================================================
# Simple Assistant
# ============================================================================


def create_simple_template() -> WorkflowGraph:
    """Start → LLM → Response."""
    b = _GraphBuilder()
    b.node("start", START_NODE_ID, "Start", 250, 5)
    b.node("llm", "llm", "Answer", 250, 155,
           model="gpt-4o-mini", prompt="{{input}}")
    b.node("response", "reply", "Reply", 250, 305, output_value="{{llm.output}}")

    b.edge(START_NODE_ID, "llm", "output")
    b.edge("llm", "reply", "output")
    b.edge("llm", "reply", "error")
    return b.build()


# ============================================================================
# Support Triage
# ============================================================================


def create_support_triage_template() -> WorkflowGraph:
    """WhatsApp support flow with branching and a loop.

    Topology::
        whatsapp → classify_topic (condition, 2 comparisons)
          [0: billing]  → kb_search → answer → reply
          [1: orders]   → each_order (for-each) ─loop→ order_status ─→ each_order
                                                 └exit→ answer
          [else]        → handover → reply
    """
    b = _GraphBuilder()
    b.node("trigger_whatsapp", "whatsapp", "WhatsApp", 400, 0)
    b.node("condition", "classify_topic", "Topic", 400, 150, conditions=[
        {"variable": "topic", "operator": "equals", "value": "billing"},
        {"variable": "topic", "operator": "equals", "value": "orders"},
    ])
    b.node("knowledge", "kb_search", "Billing FAQ", 100, 300, knowledge_base_id=1)
    b.node("foreach_loop", "each_order", "Each Order", 400, 300,
           array_variable="orders", item_variable="order")
    b.node("http_request", "order_status", "Order Status", 650, 450,
           url="https://orders.internal/api/status/{{order.id}}", method="GET")
    b.node("assign_to_agent", "handover", "Hand Over", 700, 300)
    b.node("llm", "answer", "Compose Answer", 250, 600,
           prompt="Answer the customer using {{kb_search.output}} {{order_status.output}}")
    b.node("response", "reply", "Reply", 400, 750)

    b.edge("whatsapp", "classify_topic", "message")
    b.edge("classify_topic", "kb_search", "0")
    b.edge("classify_topic", "each_order", "1")
    b.edge("classify_topic", "handover", "else")
    b.edge("kb_search", "answer", "output")
    b.edge("each_order", "order_status", "loop")
    b.edge("order_status", "each_order", "output")
    b.edge("each_order", "answer", "exit")
    b.edge("answer", "reply", "output")
    b.edge("handover", "reply", "output")
    return b.build()


# ============================================================================
# Template Registry
# ============================================================================

ALL_TEMPLATES: Dict[str, Callable[[], WorkflowGraph]] = {
    "simple": create_simple_template,
    "support_triage": create_support_triage_template,
}

_TEMPLATE_NAMES = {
    "simple": "Simple Assistant",
    "support_triage": "Support Triage",
}


def install_templates(store: JsonFileWorkflowStore) -> int:
    """Write every template into a ``JsonFileWorkflowStore``.

    Existing template records are overwritten to keep them current.
    Returns the number of templates installed.
    """
    installed = 0
    for key, factory in ALL_TEMPLATES.items():
        store.write_definition(WorkflowDefinition(
            id=f"template-{key}",
            name=_TEMPLATE_NAMES[key],
            description=(factory.__doc__ or "").strip().splitlines()[0],
            visual_steps=factory(),
        ))
        installed += 1
    return installed
