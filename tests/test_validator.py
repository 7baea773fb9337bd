"""Tests for flowbuilder.workflow.workflow_validator."""

import pytest

from flowbuilder.workflow.templates import create_blank_graph
from flowbuilder.workflow.workflow_model import WorkflowGraph
from flowbuilder.workflow.workflow_validator import (
    MISSING_ENTRY_POINT,
    MISSING_OUTPUT_NODE,
    WorkflowValidationError,
    reachable_from,
    validate_workflow,
)
from tests.factories import GraphFactory, minimal_valid_graph


def _two_conditions():
    return {"conditions": [
        {"variable": "topic", "operator": "equals", "value": "billing"},
        {"variable": "topic", "operator": "equals", "value": "orders"},
    ]}


# =============================================================================
# Entry and output presence
# =============================================================================


class TestPresence:
    def test_blank_workflow_only_misses_output(self, registry):
        assert registry.describe("start").requires_outgoing_edge is False
        assert validate_workflow(create_blank_graph(), registry) == [MISSING_OUTPUT_NODE]

    def test_start_to_output(self, registry):
        graph = GraphFactory().node("s", "start").node("o", "output").edge("s", "o", "output").build()
        assert validate_workflow(graph, registry) == []

    def test_empty_graph(self, registry):
        assert validate_workflow(WorkflowGraph(), registry) == [MISSING_ENTRY_POINT, MISSING_OUTPUT_NODE]

    def test_channel_trigger_is_an_entry_point(self, registry):
        graph = (
            GraphFactory()
            .node("t", "trigger_instagram")
            .node("o", "response")
            .edge("t", "o", "message")
            .build()
        )
        assert validate_workflow(graph, registry) == []

    def test_no_entry_point(self, registry):
        graph = GraphFactory().node("l", "llm").node("o", "output").edge("l", "o", "output").build()
        errors = validate_workflow(graph, registry)
        assert errors[0] == MISSING_ENTRY_POINT
        assert "Node 'LLM Prompt' (l) is not connected to the workflow." in errors
        assert "Node 'Output' (o) is not connected to the workflow." in errors


# =============================================================================
# Handle coverage
# =============================================================================


class TestConditionCoverage:
    def test_legacy_condition_missing_false(self, registry):
        graph = (
            GraphFactory()
            .node("s", "start")
            .node("c", "condition", label="Check")
            .node("o", "output")
            .edge("s", "c", "output")
            .edge("c", "o", "true")
            .build()
        )
        assert validate_workflow(graph, registry) == [
            "Condition 'Check' (c) has no edge for its 'false' branch."
        ]

    def test_multi_condition_missing_else(self, registry):
        graph = (
            GraphFactory()
            .node("s", "start")
            .node("c", "condition", label="Topic", **_two_conditions())
            .node("o", "output")
            .edge("s", "c", "output")
            .edge("c", "o", "0")
            .edge("c", "o", "1")
            .build()
        )
        assert validate_workflow(graph, registry) == [
            "Condition 'Topic' (c) has no edge for its 'else' branch."
        ]

    def test_multi_condition_reports_each_missing_branch(self, registry):
        graph = (
            GraphFactory()
            .node("s", "start")
            .node("c", "condition", label="Topic", **_two_conditions())
            .node("o", "output")
            .edge("s", "c", "output")
            .edge("c", "o", "else")
            .build()
        )
        assert validate_workflow(graph, registry) == [
            "Condition 'Topic' (c) has no edge for its branch for condition 0.",
            "Condition 'Topic' (c) has no edge for its branch for condition 1.",
        ]

    def test_legacy_handles_do_not_count_for_multi_condition(self, registry):
        graph = (
            GraphFactory()
            .node("s", "start")
            .node("c", "condition", label="Topic", conditions=[{"variable": "x"}])
            .node("o", "output")
            .edge("s", "c", "output")
            .edge("c", "o", "true")
            .edge("c", "o", "false")
            .build()
        )
        errors = validate_workflow(graph, registry)
        assert len(errors) == 2
        assert "branch for condition 0" in errors[0]
        assert "'else' branch" in errors[1]

    @pytest.mark.parametrize("data", [
        {"label": 7, **_two_conditions()},
        {"conditions": [
            {"variable": 1, "operator": "equals", "value": "billing"},
            {"variable": "topic", "operator": "equals", "value": "orders"},
        ]},
        {"conditions": ["billing", {"variable": "topic"}]},
    ])
    def test_bad_field_keeps_multi_condition_shape(self, registry, data):
        graph = (
            GraphFactory()
            .node("s", "start")
            .node("c", "condition", **data)
            .node("o1", "output")
            .node("o2", "output")
            .node("o3", "output")
            .edge("s", "c", "output")
            .edge("c", "o1", "0")
            .edge("c", "o2", "1")
            .edge("c", "o3", "else")
            .build()
        )
        assert validate_workflow(graph, registry) == []

    def test_bad_field_is_not_checked_as_legacy(self, registry):
        graph = (
            GraphFactory()
            .node("s", "start")
            .node("c", "condition", label=7, **_two_conditions())
            .node("o", "output")
            .edge("s", "c", "output")
            .edge("c", "o", "true")
            .edge("c", "o", "false")
            .build()
        )
        assert validate_workflow(graph, registry) == [
            "Condition 'Condition' (c) has no edge for its branch for condition 0.",
            "Condition 'Condition' (c) has no edge for its branch for condition 1.",
            "Condition 'Condition' (c) has no edge for its 'else' branch.",
        ]

    def test_duplicate_edges_on_a_branch_are_fine(self, registry):
        graph = (
            GraphFactory()
            .node("s", "start")
            .node("c", "condition")
            .node("o", "output")
            .edge("s", "c", "output")
            .edge("c", "o", "true")
            .edge("c", "o", "true")
            .edge("c", "o", "false")
            .build()
        )
        assert validate_workflow(graph, registry) == []

    def test_edge_without_handle_does_not_cover_a_branch(self, registry):
        graph = (
            GraphFactory()
            .node("s", "start")
            .node("c", "condition", label="C")
            .node("o", "output")
            .edge("s", "c")
            .edge("c", "o")
            .build()
        )
        errors = validate_workflow(graph, registry)
        assert errors == [
            "Condition 'C' (c) has no edge for its 'true' branch.",
            "Condition 'C' (c) has no edge for its 'false' branch.",
        ]


class TestGeneralCoverage:
    def test_node_without_outgoing_edge(self, registry):
        graph = minimal_valid_graph()
        graph.nodes.append(GraphFactory().node("dead", "llm", label="Dead End").build().nodes[0])
        graph.edges.append(GraphFactory().edge("start-node", "dead", "output").build().edges[0])
        assert validate_workflow(graph, registry) == [
            "Node 'Dead End' (dead) must have at least one outgoing edge."
        ]

    def test_error_handle_alone_satisfies_coverage(self, registry):
        graph = (
            GraphFactory()
            .node("s", "start")
            .node("h", "http_request")
            .node("o", "output")
            .edge("s", "h", "output")
            .edge("h", "o", "error")
            .build()
        )
        assert validate_workflow(graph, registry) == []

    @pytest.mark.parametrize("node_type,handle", [
        ("question_classifier", "default"),
        ("intent_router", "route2"),
        ("entity_collector", "partial"),
        ("tool", "error"),
    ])
    def test_multi_handle_types_need_any_edge(self, registry, node_type, handle):
        graph = (
            GraphFactory()
            .node("s", "start")
            .node("n", node_type)
            .node("o", "output")
            .edge("s", "n", "output")
            .edge("n", "o", handle)
            .build()
        )
        assert validate_workflow(graph, registry) == []

    def test_output_node_with_outgoing_edge_is_allowed(self, registry):
        graph = minimal_valid_graph()
        graph.edges.append(GraphFactory().edge("out-1", "llm-1").build().edges[0])
        assert validate_workflow(graph, registry) == []

    def test_unknown_type_needs_outgoing_edge(self, registry):
        graph = minimal_valid_graph()
        graph.nodes.append(GraphFactory().node("x", "legacy_widget").build().nodes[0])
        graph.edges.append(GraphFactory().edge("llm-1", "x", "error").build().edges[0])
        assert validate_workflow(graph, registry) == [
            "Node 'Unknown' (x) must have at least one outgoing edge."
        ]

    def test_catalog_type_rules_apply(self, registry):
        registry.register_catalog_entry({"type": "crm_sink", "isOutput": True})
        graph = GraphFactory().node("s", "start").node("k", "crm_sink").edge("s", "k", "output").build()
        assert validate_workflow(graph, registry) == []


# =============================================================================
# Reachability
# =============================================================================


class TestReachability:
    def test_orphan_reported(self, registry):
        graph = minimal_valid_graph()
        graph.nodes.append(GraphFactory().node("stray", "output", label="Stray").build().nodes[0])
        assert validate_workflow(graph, registry) == [
            "Node 'Stray' (stray) is not connected to the workflow."
        ]

    def test_loop_cycle_is_valid(self, registry):
        graph = (
            GraphFactory()
            .node("s", "start")
            .node("loop", "foreach_loop")
            .node("body", "code")
            .node("o", "output")
            .edge("s", "loop", "output")
            .edge("loop", "body", "loop")
            .edge("body", "loop", "output")
            .edge("loop", "o", "exit")
            .build()
        )
        assert validate_workflow(graph, registry) == []

    def test_island_cycle_is_orphaned(self, registry):
        graph = minimal_valid_graph()
        island = (
            GraphFactory()
            .node("a", "code", label="A")
            .node("b", "code", label="B")
            .edge("a", "b", "output")
            .edge("b", "a", "output")
            .build()
        )
        graph.nodes.extend(island.nodes)
        graph.edges.extend(island.edges)
        assert validate_workflow(graph, registry) == [
            "Node 'A' (a) is not connected to the workflow.",
            "Node 'B' (b) is not connected to the workflow.",
        ]

    def test_multiple_entry_points(self, registry):
        graph = (
            GraphFactory()
            .node("s", "start")
            .node("w", "trigger_whatsapp")
            .node("o", "output")
            .edge("s", "o", "output")
            .edge("w", "o", "message")
            .build()
        )
        assert validate_workflow(graph, registry) == []

    def test_reachable_from(self):
        graph = GraphFactory().node("a", "x").node("b", "x").node("c", "x").edge("a", "b").edge("b", "a").build()
        assert reachable_from(graph, ["a"]) == {"a", "b"}
        assert reachable_from(graph, []) == set()


# =============================================================================
# Ordering and the error type
# =============================================================================


class TestErrorsAndOrdering:
    def test_error_order(self, registry):
        graph = (
            GraphFactory()
            .node("c", "condition", label="C")
            .node("l", "llm", label="L")
            .edge("c", "l", "true")
            .build()
        )
        assert validate_workflow(graph, registry) == [
            MISSING_ENTRY_POINT,
            MISSING_OUTPUT_NODE,
            "Condition 'C' (c) has no edge for its 'false' branch.",
            "Node 'L' (l) must have at least one outgoing edge.",
            "Node 'C' (c) is not connected to the workflow.",
            "Node 'L' (l) is not connected to the workflow.",
        ]

    def test_validation_is_pure(self, registry):
        graph = minimal_valid_graph()
        before = graph.model_copy(deep=True)
        validate_workflow(graph, registry)
        assert graph == before

    def test_validation_error_carries_all_errors(self):
        err = WorkflowValidationError(["first", "second"])
        assert err.errors == ["first", "second"]
        assert "first" in str(err) and "second" in str(err)
        assert isinstance(err, ValueError)

    def test_revalidation_is_stable(self, registry):
        graph = (
            GraphFactory()
            .node("c", "condition", conditions=[{"variable": "a"}])
            .node("x", "mystery")
            .build()
        )
        assert validate_workflow(graph, registry) == validate_workflow(graph, registry)
