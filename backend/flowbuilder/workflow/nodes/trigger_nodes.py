"""
Trigger Nodes — workflow entry points.

The manual ``start`` node and one trigger per inbound channel. Triggers
may begin graph traversal and are never required to have an outgoing
edge: a freshly created workflow holding only a start node is
structurally incomplete (no output) but not mis-wired.
"""

from __future__ import annotations

from typing import Optional

from flowbuilder.workflow.nodes.base import (
    BaseNode,
    NodeData,
    OutputPort,
    register_node,
)


class TriggerNodeData(NodeData):
    channel_id: Optional[str] = None


class _EntryNode(BaseNode):
    category = "triggers"
    can_be_entry_point = True
    requires_outgoing_edge = False


@register_node
class StartNode(_EntryNode):
    """Manual start: the default entry node of every new workflow."""

    node_type = "start"
    label = "Start"
    description = "Begin the workflow on a user message or API call"


# ============================================================================
# Channel triggers
# ============================================================================


class _ChannelTriggerNode(_EntryNode):
    """Inbound-channel trigger. Emits on its ``message`` handle."""

    data_model = TriggerNodeData
    default_output = "message"
    output_ports = [
        OutputPort(id="message", label="Message", description="Inbound message"),
    ]


@register_node
class WebSocketTriggerNode(_ChannelTriggerNode):
    node_type = "trigger_websocket"
    label = "WebSocket"
    description = "Start on a message received over the web chat socket"


@register_node
class WhatsAppTriggerNode(_ChannelTriggerNode):
    node_type = "trigger_whatsapp"
    label = "WhatsApp"
    description = "Start on an inbound WhatsApp message"


@register_node
class TelegramTriggerNode(_ChannelTriggerNode):
    node_type = "trigger_telegram"
    label = "Telegram"
    description = "Start on an inbound Telegram message"


@register_node
class InstagramTriggerNode(_ChannelTriggerNode):
    node_type = "trigger_instagram"
    label = "Instagram"
    description = "Start on an inbound Instagram direct message"


@register_node
class TwilioVoiceTriggerNode(_ChannelTriggerNode):
    node_type = "trigger_twilio_voice"
    label = "Twilio Voice"
    description = "Start on an inbound Twilio voice call"


@register_node
class FreeSwitchTriggerNode(_ChannelTriggerNode):
    node_type = "trigger_freeswitch"
    label = "FreeSWITCH"
    description = "Start on an inbound FreeSWITCH call"
