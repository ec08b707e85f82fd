"""Tests for graph layout building and viewport scaling.

Layout properties checked here:
- every placed node has non-negative coordinates
- canvas is at least one node footprint plus padding on both sides
- edges run right-center to left-center with shared-midpoint S-curves
- building twice from the same inputs gives equal layouts
"""

from __future__ import annotations

import pytest

from flowpulse.core.correlator import correlate, extract_run_data
from flowpulse.core.layout import (
    COMPACT_MAX_SCALE,
    DEFAULT_SCALE,
    MIN_SCALE,
    NODE_HEIGHT,
    NODE_WIDTH,
    PADDING,
    GraphEdge,
    LayoutMemo,
    build_execution_graph,
    build_layout,
    fit_scale,
    initial_scale,
    run_signature,
    to_networkx,
    type_label,
    zoom_in,
    zoom_out,
)
from flowpulse.core.models import ExecutionRecord, NodeStatus, WorkflowDefinition


class TestTypeLabel:
    """Tests for type_label()."""

    @pytest.mark.parametrize(
        "node_type, expected",
        [
            ("n8n-nodes-base.httpRequest", "httpRequest"),
            ("@n8n/n8n-nodes-langchain.agent", "agent"),
            ("custom.thing", "custom.thing"),
            ("", "Node"),
        ],
    )
    def test_prefixes_stripped(self, node_type, expected):
        assert type_label(node_type) == expected


class TestBuildLayout:
    """Tests for build_layout() geometry."""

    def test_translation_and_canvas(self, workflow):
        layout = build_layout(workflow)

        webhook = layout.node("Webhook")
        http = layout.node("HTTP Request")
        email = layout.node("Send Email")
        assert (webhook.x, webhook.y) == (60, 210)
        assert (http.x, http.y) == (360, 60)
        assert (email.x, email.y) == (660, 210)
        assert layout.width == 600 + NODE_WIDTH + 2 * PADDING
        assert layout.height == 150 + NODE_HEIGHT + 2 * PADDING

    def test_coordinates_non_negative(self, workflow):
        layout = build_layout(workflow)
        assert all(n.x >= 0 and n.y >= 0 for n in layout.nodes)
        assert min(n.x for n in layout.nodes) == PADDING
        assert min(n.y for n in layout.nodes) == PADDING

    def test_canvas_at_least_footprint(self):
        single = WorkflowDefinition.model_validate({"nodes": [{"name": "Only", "position": [500, 500]}]})
        layout = build_layout(single)
        assert layout.width == NODE_WIDTH + 2 * PADDING
        assert layout.height == NODE_HEIGHT + 2 * PADDING

    def test_empty_workflow(self):
        layout = build_layout(WorkflowDefinition())
        assert layout.nodes == ()
        assert layout.edges == ()
        assert layout.width == NODE_WIDTH + 2 * PADDING
        assert layout.height == NODE_HEIGHT + 2 * PADDING

    def test_edge_endpoints(self, workflow):
        edge = build_layout(workflow).edges[0]
        assert (edge.source, edge.target) == ("Webhook", "HTTP Request")
        assert edge.from_point == (60 + NODE_WIDTH, 210 + NODE_HEIGHT / 2)
        assert edge.to_point == (360, 60 + NODE_HEIGHT / 2)

    def test_unknown_target_dropped(self, workflow_payload):
        workflow_payload["connections"]["Send Email"] = {"main": [[{"node": "Deleted Node"}]]}
        layout = build_layout(WorkflowDefinition.model_validate(workflow_payload))
        assert len(layout.edges) == 2

    def test_idempotent(self, workflow, failed_execution):
        results = correlate(workflow, extract_run_data(failed_execution))
        assert build_layout(workflow, results) == build_layout(workflow, results)

    def test_without_run_results_all_pending(self, workflow):
        layout = build_layout(workflow)
        assert all(n.status == NodeStatus.PENDING for n in layout.nodes)
        assert all(e.state == "pending" for e in layout.edges)


class TestGraphEdge:
    """Tests for edge curve geometry."""

    def test_control_points_share_midpoint(self):
        edge = GraphEdge("a", "b", (240, 238), (360, 88), NodeStatus.SUCCESS)
        assert edge.control_points == ((300, 238), (300, 88))

    def test_svg_path(self):
        edge = GraphEdge("a", "b", (240, 238), (360, 88), NodeStatus.SUCCESS)
        assert edge.svg_path() == "M 240 238 C 300 238, 300 88, 360 88"

    def test_state_follows_source(self):
        assert GraphEdge("a", "b", (0, 0), (1, 1), NodeStatus.ERROR).state == "executed"
        assert GraphEdge("a", "b", (0, 0), (1, 1), NodeStatus.PENDING).state == "pending"


class TestExecutionGraph:
    """Tests for build_execution_graph()."""

    def test_statuses_and_payloads(self, workflow, failed_execution):
        layout = build_execution_graph(workflow, failed_execution)

        webhook = layout.node("Webhook")
        http = layout.node("HTTP Request")
        email = layout.node("Send Email")

        assert webhook.status == NodeStatus.SUCCESS
        assert webhook.output_data == [[{"json": {"order": 42}}]]
        assert webhook.execution_time_ms == 3
        assert http.status == NodeStatus.ERROR
        assert http.input_data == [[{"json": {"order": 42}}]]
        assert http.error == {"message": "Request failed with status code 500"}
        assert email.status == NodeStatus.PENDING
        assert not email.executed

        assert [n.id for n in layout.executed_nodes] == ["Webhook", "HTTP Request"]
        assert [n.id for n in layout.error_nodes] == ["HTTP Request"]
        assert [e.state for e in layout.edges] == ["executed", "executed"]

    def test_without_execution(self, workflow):
        layout = build_execution_graph(workflow, None)
        assert layout.executed_nodes == []

    def test_to_networkx(self, workflow, failed_execution):
        G = to_networkx(build_execution_graph(workflow, failed_execution))
        assert set(G.nodes) == {"Webhook", "HTTP Request", "Send Email"}
        assert list(G.successors("Webhook")) == ["HTTP Request"]


class TestLayoutMemo:
    """Tests for LayoutMemo caching."""

    def test_reuses_layout_for_same_inputs(self, workflow, failed_execution):
        memo = LayoutMemo()
        first = memo.get(workflow, failed_execution)
        second = memo.get(workflow, failed_execution)
        assert first is second
        assert memo.builds == 1

    def test_rebuilds_when_execution_changes(self, workflow, failed_execution_payload):
        memo = LayoutMemo()
        running = dict(failed_execution_payload, status="running", stoppedAt=None)
        memo.get(workflow, ExecutionRecord.model_validate(running))
        memo.get(workflow, ExecutionRecord.model_validate(failed_execution_payload))
        assert memo.builds == 2

    def test_rebuilds_when_run_data_grows(self, workflow):
        """A running execution keeps id and status while nodes finish."""
        started = ExecutionRecord.model_validate(
            {"id": "9", "status": "running", "data": {"resultData": {"runData": {}}}}
        )
        progressed = ExecutionRecord.model_validate(
            {
                "id": "9",
                "status": "running",
                "data": {"resultData": {"runData": {"Webhook": [{"executionTime": 3}]}}},
            }
        )
        memo = LayoutMemo()

        assert memo.get(workflow, started).executed_nodes == []
        layout = memo.get(workflow, progressed)

        assert memo.builds == 2
        assert [n.id for n in layout.executed_nodes] == ["Webhook"]
        assert layout == build_execution_graph(workflow, progressed)

    def test_run_signature_counts_runs(self, failed_execution):
        assert run_signature(failed_execution) == (("HTTP Request", 1), ("Webhook", 1))


class TestScaling:
    """Tests for viewport scale helpers."""

    def test_fit_scale_shrinks_wide_canvas(self):
        assert fit_scale(780, 390) == pytest.approx(0.5)

    def test_fit_scale_caps_at_max(self):
        assert fit_scale(100, 390) == 1.0
        assert fit_scale(100, 390, max_scale=0.8) == 0.8

    def test_fit_scale_floor(self):
        assert fit_scale(5000, 390) == MIN_SCALE

    def test_initial_scale(self):
        assert initial_scale(100, 390, compact=True) == COMPACT_MAX_SCALE
        assert initial_scale(780, 390, compact=True) == pytest.approx(0.5)
        assert initial_scale(780, 390, compact=False) == DEFAULT_SCALE

    def test_zoom_bounds(self):
        assert zoom_in(0.6) == 0.8
        assert zoom_in(1.9) == 2.0
        assert zoom_out(1.0) == 0.8
        assert zoom_out(0.4) == MIN_SCALE
