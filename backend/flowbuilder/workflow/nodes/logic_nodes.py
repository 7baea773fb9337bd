"""
Logic Nodes — branching, classification and loops.

These nodes decide which path a conversation takes. Their output
handles are either fixed (``true``/``false``, ``loop``/``exit``) or
derived from configuration (one handle per comparison or per class).
"""

from __future__ import annotations

from typing import Any, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from flowbuilder.workflow.nodes.base import (
    BaseNode,
    NodeData,
    OutputPort,
    parse_leniently,
    register_node,
)
from flowbuilder.workflow.workflow_model import WorkflowNode

ELSE_HANDLE = "else"
TRUE_HANDLE = "true"
FALSE_HANDLE = "false"


# ============================================================================
# Payloads
# ============================================================================


class Comparison(BaseModel):
    """One ``variable <operator> value`` test of a condition node."""

    model_config = ConfigDict(extra="allow")

    operator: Optional[str] = None
    variable: Optional[str] = None
    value: Optional[Any] = None


class ConditionNodeData(NodeData):
    conditions: List[Comparison] = Field(default_factory=list)

    @property
    def is_multi_condition(self) -> bool:
        return len(self.conditions) > 0


class ClassifierClass(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str
    description: Optional[str] = None


class ClassifierNodeData(NodeData):
    classes: List[ClassifierClass] = Field(default_factory=list)


class LoopNodeData(NodeData):
    array_variable: Optional[str] = None
    item_variable: Optional[str] = None
    conditions: List[Comparison] = Field(default_factory=list)
    max_iterations: Optional[int] = None


# ============================================================================
# Condition
# ============================================================================


@register_node
class ConditionNode(BaseNode):
    """If / else-if / else branching.

    Two mutually exclusive shapes:

    * multi-condition: ``data.conditions`` holds N comparisons; handles
      are ``"0"`` .. ``"N-1"`` plus ``"else"``.
    * legacy: no comparisons; handles are ``"true"`` and ``"false"``.

    Every handle of the active shape must be wired.
    """

    node_type = "condition"
    label = "Condition"
    description = "Branch on one or more comparisons"
    category = "logic"
    data_model = ConditionNodeData

    default_output = None
    output_ports = [
        OutputPort(id=TRUE_HANDLE, label="True"),
        OutputPort(id=FALSE_HANDLE, label="False"),
    ]

    def parse_data(self, data: Optional[Mapping[str, Any]]) -> ConditionNodeData:
        """The shape follows the raw ``conditions`` list length alone."""
        parsed = super().parse_data(data)
        raw = (data or {}).get("conditions")
        if isinstance(raw, list) and len(parsed.conditions) != len(raw):
            parsed.conditions = [
                parse_leniently(Comparison, item, context="condition comparison")
                if isinstance(item, Mapping) else Comparison()
                for item in raw
            ]
        return parsed

    def get_dynamic_output_ports(self, data: ConditionNodeData) -> Optional[List[OutputPort]]:
        if not data.is_multi_condition:
            return list(self.output_ports)
        ports = [
            OutputPort(
                id=str(index),
                label=f"Condition {index}",
                description=f"{c.variable or ''} {c.operator or ''} {c.value if c.value is not None else ''}".strip(),
            )
            for index, c in enumerate(data.conditions)
        ]
        ports.append(OutputPort(id=ELSE_HANDLE, label="Else", description="No condition matched"))
        return ports

    def get_required_handles(self, data: ConditionNodeData) -> List[str]:
        return [p.id for p in self.get_dynamic_output_ports(data)]

    def missing_handle_message(self, node: WorkflowNode, handle: str) -> str:
        name = self.display_label(node)
        if handle == ELSE_HANDLE:
            branch = "'else' branch"
        elif handle in (TRUE_HANDLE, FALSE_HANDLE):
            branch = f"'{handle}' branch"
        else:
            branch = f"branch for condition {handle}"
        return f"Condition '{name}' ({node.id}) has no edge for its {branch}."


# ============================================================================
# Question Classifier
# ============================================================================


@register_node
class QuestionClassifierNode(BaseNode):
    """LLM classification into configured classes, plus a default route."""

    node_type = "question_classifier"
    label = "Question Classifier"
    description = "Route by the class an LLM assigns to the message"
    category = "logic"
    data_model = ClassifierNodeData

    default_output = "default"
    output_ports = [OutputPort(id="default", label="Default")]

    def get_dynamic_output_ports(self, data: ClassifierNodeData) -> Optional[List[OutputPort]]:
        ports = [
            OutputPort(id=cls.name, label=cls.name, description=cls.description or "")
            for cls in data.classes
        ]
        ports.append(OutputPort(id="default", label="Default", description="No class matched"))
        return ports


# ============================================================================
# Fixed multi-way nodes
# ============================================================================


@register_node
class IntentRouterNode(BaseNode):
    node_type = "intent_router"
    label = "Intent Router"
    description = "Route by detected intent"
    category = "chat"

    default_output = "default"
    output_ports = [
        OutputPort(id="default", label="Default"),
        OutputPort(id="route1", label="Route 1"),
        OutputPort(id="route2", label="Route 2"),
    ]


@register_node
class EntityCollectorNode(BaseNode):
    node_type = "entity_collector"
    label = "Collect Entities"
    description = "Ask for entities until all are collected"
    category = "chat"

    default_output = None
    output_ports = [
        OutputPort(id="complete", label="Complete", description="All entities collected"),
        OutputPort(id="partial", label="Partial", description="Some entities still missing"),
    ]


@register_node
class CheckEntityNode(BaseNode):
    node_type = "check_entity"
    label = "Check Entity"
    description = "Branch on whether an entity is known"
    category = "chat"

    default_output = None
    output_ports = [
        OutputPort(id=TRUE_HANDLE, label="True"),
        OutputPort(id=FALSE_HANDLE, label="False"),
    ]


# ============================================================================
# Loops
# ============================================================================


class _LoopNode(BaseNode):
    """Loop construct: ``loop`` enters the body, ``exit`` leaves.

    Bodies normally wire back to the loop node, creating a cycle.
    """

    category = "logic"
    data_model = LoopNodeData

    default_output = None
    output_ports = [
        OutputPort(id="loop", label="Loop", description="Loop body"),
        OutputPort(id="exit", label="Exit", description="After the last iteration"),
    ]


@register_node
class ForEachLoopNode(_LoopNode):
    node_type = "foreach_loop"
    label = "For Each Loop"
    description = "Iterate over an array variable"


@register_node
class WhileLoopNode(_LoopNode):
    node_type = "while_loop"
    label = "While Loop"
    description = "Repeat while the conditions hold"
