"""
Node Catalogue Package.

Importing this package registers every built-in node type with the
global NodeRegistry (triggers, core steps, logic, chat, tools).
"""

from logging import getLogger
from typing import Dict

from flowbuilder.workflow.nodes.base import get_node_registry

# Module imports run the @register_node decorators
from flowbuilder.workflow.nodes import trigger_nodes  # noqa: F401
from flowbuilder.workflow.nodes import core_nodes     # noqa: F401
from flowbuilder.workflow.nodes import logic_nodes    # noqa: F401
from flowbuilder.workflow.nodes import chat_nodes     # noqa: F401
from flowbuilder.workflow.nodes import tool_nodes     # noqa: F401

logger = getLogger(__name__)


def catalogue_summary() -> Dict[str, int]:
    """Count registered node types per category and log the result."""
    counts: Dict[str, int] = {}
    for node in get_node_registry().list_all():
        counts[node.category] = counts.get(node.category, 0) + 1
    logger.info(
        f"✅ Node catalogue ready: {sum(counts.values())} types "
        f"({', '.join(f'{k}={v}' for k, v in sorted(counts.items()))})"
    )
    return counts


__all__ = ["catalogue_summary"]
