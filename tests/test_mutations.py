"""Tests for flowbuilder.workflow.workflow_mutations."""

import pytest

from flowbuilder.config import BuilderConfig
from flowbuilder.workflow.graph_store import GraphStore
from flowbuilder.workflow.templates import START_NODE_ID, create_blank_graph
from flowbuilder.workflow.workflow_mutations import (
    PlacementHint,
    WorkflowMutator,
    new_node_id,
)


@pytest.fixture
def blank_mutator(registry, config):
    return WorkflowMutator(GraphStore(create_blank_graph()), registry, config)


class TestAddNode:
    def test_uses_default_data(self, mutator):
        node_id = mutator.add_node("llm")
        node = mutator.store.get_node(node_id)
        assert node_id.startswith("llm-")
        assert node.data == {"label": "LLM Prompt"}

    def test_unknown_type_gets_fallback_label(self, mutator):
        node = mutator.store.get_node(mutator.add_node("mystery"))
        assert node.data == {"label": "Unknown"}
        assert node.type == "mystery"

    def test_explicit_data_is_copied(self, mutator):
        data = {"label": "Mine"}
        node_id = mutator.add_node("llm", data)
        data["label"] = "Changed"
        assert mutator.store.get_node(node_id).label == "Mine"

    def test_ids_are_unique(self):
        assert new_node_id("llm") != new_node_id("llm")


class TestConnect:
    def test_connect_and_disconnect(self, blank_mutator):
        out_id = blank_mutator.add_node("output")
        edge = blank_mutator.connect(START_NODE_ID, "output", out_id)
        assert edge.source_handle == "output"
        assert blank_mutator.disconnect(edge.id) is True
        assert blank_mutator.store.edges == []

    def test_identical_connects_are_not_merged(self, blank_mutator):
        out_id = blank_mutator.add_node("output")
        first = blank_mutator.connect(START_NODE_ID, "output", out_id)
        second = blank_mutator.connect(START_NODE_ID, "output", out_id)
        assert first.id != second.id
        assert len(blank_mutator.store.edges) == 2

    def test_missing_endpoint_returns_none(self, blank_mutator):
        assert blank_mutator.connect(START_NODE_ID, "output", "ghost") is None
        assert blank_mutator.store.edges == []

    def test_no_type_compatibility_check(self, blank_mutator):
        # Wiring into a trigger is odd but allowed while editing.
        trigger_id = blank_mutator.add_node("trigger_whatsapp")
        assert blank_mutator.connect(START_NODE_ID, "nonexistent_handle", trigger_id) is not None


class TestNodeEdits:
    def test_relabel(self, blank_mutator):
        assert blank_mutator.relabel(START_NODE_ID, "Begin") is True
        assert blank_mutator.store.get_node(START_NODE_ID).label == "Begin"

    def test_update_node_data(self, blank_mutator):
        llm_id = blank_mutator.add_node("llm")
        blank_mutator.update_node_data(llm_id, lambda d: {**d, "model": "gpt-4o"})
        assert blank_mutator.store.get_node(llm_id).data["model"] == "gpt-4o"

    def test_delete_node_removes_edges(self, blank_mutator):
        llm_id = blank_mutator.insert_connected(START_NODE_ID, "output", "llm")
        blank_mutator.insert_connected(llm_id, "output", "output")
        assert blank_mutator.delete_node(llm_id) is True
        assert blank_mutator.store.edges == []


class TestInsertConnected:
    def test_creates_node_and_single_edge(self, blank_mutator):
        new_id = blank_mutator.insert_connected(START_NODE_ID, "output", "llm")
        store = blank_mutator.store
        assert store.has_node(new_id)
        [edge] = store.edges
        assert (edge.source, edge.source_handle, edge.target) == (START_NODE_ID, "output", new_id)
        assert edge.target_handle is None

    def test_custom_node_data(self, blank_mutator):
        new_id = blank_mutator.insert_connected(
            START_NODE_ID, "output", "llm", {"label": "Greeter", "model": "m"},
        )
        assert blank_mutator.store.get_node(new_id).data == {"label": "Greeter", "model": "m"}

    def test_stacked_placement(self, blank_mutator):
        new_id = blank_mutator.insert_connected(START_NODE_ID, "output", "llm")
        pos = blank_mutator.store.get_node(new_id).position
        assert (pos.x, pos.y) == (250, 5 + 150)

    def test_branch_placement(self, blank_mutator):
        new_id = blank_mutator.insert_connected(
            START_NODE_ID, "output", "llm", placement=PlacementHint.BRANCH,
        )
        pos = blank_mutator.store.get_node(new_id).position
        assert (pos.x, pos.y) == (250 + 250, 5)

    def test_placement_accepts_string_and_config(self, registry):
        config = BuilderConfig(stacked_offset_y=40, branch_offset_x=90)
        m = WorkflowMutator(GraphStore(create_blank_graph()), registry, config)
        new_id = m.insert_connected(START_NODE_ID, "output", "llm", placement="branch")
        pos = m.store.get_node(new_id).position
        assert (pos.x, pos.y) == (340, 5)

    def test_missing_source_is_a_no_op(self, blank_mutator):
        before = blank_mutator.store.snapshot()
        assert blank_mutator.insert_connected("ghost", "output", "llm") is None
        assert blank_mutator.store.snapshot() == before

    def test_target_handle_from_descriptor(self, registry, config):
        registry.register_catalog_entry({"type": "merge"})
        registry.describe("merge").default_target_handle = "in"
        m = WorkflowMutator(GraphStore(create_blank_graph()), registry, config)
        m.insert_connected(START_NODE_ID, "output", "merge")
        assert m.store.edges[0].target_handle == "in"
