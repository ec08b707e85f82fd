"""CLI UI components for terminal-based execution visualization.

This package provides rich terminal UI capabilities for:
- Visualizing execution graphs as level lists and trees
- Per-node status tables
- Interactive node inspection
- Live monitoring of running executions
"""

from flowpulse.cli_ui.graph_renderer import StatusTableRenderer, TerminalGraphRenderer
from flowpulse.cli_ui.live_monitor import LiveExecutionMonitor
from flowpulse.cli_ui.node_inspector import NodeInspector

__all__ = [
    "TerminalGraphRenderer",
    "StatusTableRenderer",
    "LiveExecutionMonitor",
    "NodeInspector",
]
