"""Live execution monitoring.

Polls a running execution and redraws its graph until it finishes.
"""

import asyncio
import logging

from rich.console import Console
from rich.layout import Layout
from rich.live import Live
from rich.markup import escape
from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn

from flowpulse.cli_ui.graph_renderer import StatusTableRenderer, TerminalGraphRenderer
from flowpulse.client.errors import GatewayError
from flowpulse.client.provider import DataProvider
from flowpulse.core.layout import LayoutMemo
from flowpulse.core.models import ExecutionRecord, ExecutionStatus, WorkflowDefinition
from flowpulse.core.status import execution_error_message, execution_status

logger = logging.getLogger(__name__)


class LiveExecutionMonitor:
    """
    Real-time terminal UI for one execution.

    Features:
    - Live-updating graph tree
    - Node status table
    - Progress bar of executed nodes

    Design Notes:
    - Re-fetches the execution every poll_interval seconds
    - Layout is rebuilt only when the execution changed (LayoutMemo)
    - Reuses the Progress widget to avoid flickering
    - Stops after MAX_FETCH_ERRORS consecutive fetch failures
    """

    MAX_FETCH_ERRORS = 5

    def __init__(
        self,
        provider: DataProvider,
        console: Console | None = None,
        poll_interval: float = 2.0,
    ):
        self.provider = provider
        self.console = console or Console()
        self.poll_interval = poll_interval
        self.graph_renderer = TerminalGraphRenderer(self.console)
        self.status_renderer = StatusTableRenderer(self.console)
        self.memo = LayoutMemo()
        self._cancelled = False

    def create_layout(self) -> Layout:
        """Create the terminal layout"""
        layout = Layout()
        layout.split_column(
            Layout(name="header", size=3),
            Layout(name="main"),
            Layout(name="footer", size=3),
        )
        layout["main"].split_row(Layout(name="graph", ratio=1), Layout(name="status", ratio=1))
        return layout

    def cancel(self):
        """Signal the monitor to stop."""
        self._cancelled = True

    async def monitor(
        self,
        execution_id: str,
        workflow: WorkflowDefinition,
    ) -> ExecutionRecord | None:
        """
        Follow an execution until it leaves the running state.

        Returns:
            The last execution snapshot fetched, or None if none was fetched
        """
        screen = self.create_layout()
        progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
        )
        task_id = progress.add_task("Nodes: 0/0", total=max(len(workflow.nodes), 1))
        consecutive_errors = 0
        latest: ExecutionRecord | None = None

        with Live(screen, console=self.console, refresh_per_second=2):
            while not self._cancelled:
                try:
                    latest = await self.provider.get_execution(execution_id)
                    consecutive_errors = 0
                except GatewayError as e:
                    consecutive_errors += 1
                    logger.debug("Poll %d failed: %s", consecutive_errors, e)
                    if consecutive_errors >= self.MAX_FETCH_ERRORS:
                        self.console.print(f"[red]Monitor stopping: {escape(str(e))}[/]")
                        break
                    await asyncio.sleep(self.poll_interval)
                    continue

                status = execution_status(latest)
                graph = self.memo.get(workflow, latest)
                safe_name = escape(workflow.name or workflow.id)

                if status == ExecutionStatus.RUNNING:
                    header = f"[bold blue]⟳ Running:[/] {safe_name}"
                elif status == ExecutionStatus.SUCCESS:
                    header = f"[bold green]✓ Completed:[/] {safe_name}"
                else:
                    message = execution_error_message(latest)
                    suffix = f" - {escape(message)}" if message else ""
                    header = f"[bold red]✕ Failed:[/] {safe_name}{suffix}"
                screen["header"].update(Panel(header))

                screen["graph"].update(
                    Panel(self.graph_renderer.render_as_tree(graph, title=workflow.name), title="Workflow Graph")
                )
                screen["status"].update(
                    Panel(self.status_renderer.render_status_table(graph, execution_id), title="Node Status")
                )

                executed = len(graph.executed_nodes)
                progress.update(task_id, completed=executed, description=f"Nodes: {executed}/{len(graph.nodes)}")
                screen["footer"].update(Panel(progress))

                if status != ExecutionStatus.RUNNING:
                    break

                await asyncio.sleep(self.poll_interval)

        return latest
