"""Core modules: models, run-data correlation, status extraction, layout."""

from flowpulse.core.correlator import correlate, extract_run_data, latest_run
from flowpulse.core.layout import GraphEdge, GraphLayout, GraphNode, build_layout
from flowpulse.core.models import (
    ExecutionRecord,
    ExecutionStatus,
    NodeRunResult,
    NodeStatus,
    WorkflowDefinition,
    WorkflowNode,
)
from flowpulse.core.status import execution_error_message, execution_status, node_status

__all__ = [
    "ExecutionRecord",
    "ExecutionStatus",
    "GraphEdge",
    "GraphLayout",
    "GraphNode",
    "NodeRunResult",
    "NodeStatus",
    "WorkflowDefinition",
    "WorkflowNode",
    "build_layout",
    "correlate",
    "execution_error_message",
    "execution_status",
    "extract_run_data",
    "latest_run",
    "node_status",
]
