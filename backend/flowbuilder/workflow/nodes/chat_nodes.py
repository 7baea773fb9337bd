"""
Chat Nodes — conversation management steps.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import Field

from flowbuilder.workflow.nodes.base import (
    BaseNode,
    NodeData,
    OutputPort,
    register_node,
)


class TagConversationData(NodeData):
    tags: List[str] = Field(default_factory=list)


class AssignToAgentData(NodeData):
    agent_id: Optional[int] = None


class SetStatusData(NodeData):
    status: Optional[str] = None


class ChannelRedirectData(NodeData):
    target_channel: Optional[str] = None


class _ChatNode(BaseNode):
    category = "chat"


@register_node
class TagConversationNode(_ChatNode):
    node_type = "tag_conversation"
    label = "Tag Conversation"
    description = "Attach tags to the conversation"
    data_model = TagConversationData


@register_node
class AssignToAgentNode(_ChatNode):
    node_type = "assign_to_agent"
    label = "Assign to Agent"
    description = "Hand the conversation to a human agent"
    data_model = AssignToAgentData


@register_node
class SetStatusNode(_ChatNode):
    node_type = "set_status"
    label = "Set Status"
    description = "Change the conversation status"
    data_model = SetStatusData


@register_node
class ChannelRedirectNode(_ChatNode):
    node_type = "channel_redirect"
    label = "Channel Redirect"
    description = "Continue the conversation on another channel"
    data_model = ChannelRedirectData
    output_ports = [
        OutputPort(id="output", label="Output"),
        OutputPort(id="error", label="Error"),
    ]
