"""Shared pytest fixtures and configuration."""

import pytest

from flowbuilder.config import BuilderConfig
from flowbuilder.workflow.graph_store import GraphStore
from flowbuilder.workflow.nodes.base import NodeRegistry, get_node_registry
from flowbuilder.workflow.workflow_mutations import WorkflowMutator


@pytest.fixture
def registry():
    """A private registry holding the built-in catalogue.

    Tests that inject catalog entries use this so the global registry
    stays untouched.
    """
    reg = NodeRegistry()
    for node in get_node_registry().list_all():
        reg.register(node)
    return reg


@pytest.fixture
def config():
    return BuilderConfig()


@pytest.fixture
def store():
    return GraphStore()


@pytest.fixture
def mutator(store, registry, config):
    return WorkflowMutator(store, registry, config)
