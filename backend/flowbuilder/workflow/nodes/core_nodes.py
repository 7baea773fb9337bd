"""
Core Nodes — model calls, input collection, data handling and outputs.

Processing nodes expose an ``output`` handle and, where the step can
fail at runtime, an ``error`` handle. They only need *some* outgoing
edge to be save-eligible. ``output`` / ``response`` nodes terminate a
path and are exempt from that rule.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from flowbuilder.workflow.nodes.base import (
    BaseNode,
    NodeData,
    OutputPort,
    register_node,
)

_OUTPUT = OutputPort(id="output", label="Output", description="Step succeeded")
_ERROR = OutputPort(id="error", label="Error", description="Step failed")


# ============================================================================
# Payloads
# ============================================================================


class LLMNodeData(NodeData):
    model: Optional[str] = None
    prompt: Optional[str] = None
    knowledge_base_id: Optional[int] = None


class KnowledgeNodeData(NodeData):
    knowledge_base_id: Optional[int] = None
    query: Optional[str] = None


class CodeNodeData(NodeData):
    code: Optional[str] = None
    language: Optional[str] = None


class HttpRequestNodeData(NodeData):
    url: Optional[str] = None
    method: Optional[str] = None
    headers: Dict[str, Any] = Field(default_factory=dict)
    body: Optional[Any] = None


class FormField(BaseModel):
    """One field collected by a form node."""

    model_config = ConfigDict(extra="allow")

    name: Optional[str] = None
    label: Optional[str] = None
    type: str = "text"
    required: bool = False


class FormNodeData(NodeData):
    fields: List[FormField] = Field(default_factory=list)


class InputNodeData(NodeData):
    prompt_text: Optional[str] = None
    save_to_variable: Optional[str] = None


class SubworkflowNodeData(NodeData):
    subworkflow_id: Optional[int] = None


class OutputNodeData(NodeData):
    output_value: Optional[str] = None


# ============================================================================
# Fallible steps: output + error
# ============================================================================


class _FallibleNode(BaseNode):
    output_ports = [_OUTPUT, _ERROR]


@register_node
class LLMNode(_FallibleNode):
    """Invoke a language model, optionally grounded on a knowledge base."""

    node_type = "llm"
    label = "LLM Prompt"
    description = "Send a prompt to the configured model"
    data_model = LLMNodeData


@register_node
class KnowledgeNode(_FallibleNode):
    node_type = "knowledge"
    label = "Knowledge Search"
    description = "Search a knowledge base"
    data_model = KnowledgeNodeData


@register_node
class CodeNode(_FallibleNode):
    node_type = "code"
    label = "Code"
    description = "Run a code snippet against the workflow context"
    data_model = CodeNodeData


@register_node
class DataManipulationNode(_FallibleNode):
    node_type = "data_manipulation"
    label = "Data Manipulation"
    description = "Transform context variables"


@register_node
class HttpRequestNode(_FallibleNode):
    node_type = "http_request"
    label = "HTTP Request"
    description = "Call an external HTTP endpoint"
    data_model = HttpRequestNodeData


@register_node
class ListenNode(_FallibleNode):
    node_type = "listen"
    label = "Listen for Input"
    description = "Wait for the next user message"
    data_model = InputNodeData


@register_node
class ExtractEntitiesNode(_FallibleNode):
    node_type = "extract_entities"
    label = "Extract Entities"
    description = "Extract structured entities from the conversation"


@register_node
class SubworkflowNode(_FallibleNode):
    node_type = "subworkflow"
    label = "Subworkflow"
    description = "Run another workflow as a step"
    data_model = SubworkflowNodeData


# ============================================================================
# Single-output steps
# ============================================================================


@register_node
class PromptNode(BaseNode):
    node_type = "prompt"
    label = "Prompt for Input"
    description = "Ask the user a question and store the answer"
    data_model = InputNodeData


@register_node
class FormNode(BaseNode):
    """Collect several fields from the user in one step."""

    node_type = "form"
    label = "Form"
    description = "Collect a set of fields from the user"
    data_model = FormNodeData


@register_node
class UpdateContextNode(BaseNode):
    node_type = "update_context"
    label = "Update Context"
    description = "Write values into the workflow context"


# ============================================================================
# Outputs
# ============================================================================


class _OutputNode(BaseNode):
    category = "core"
    is_output = True
    requires_outgoing_edge = False
    data_model = OutputNodeData


@register_node
class OutputNode(_OutputNode):
    node_type = "output"
    label = "Output"
    description = "Send the final message"


@register_node
class ResponseNode(_OutputNode):
    node_type = "response"
    label = "Response"
    description = "Reply to the user"
