"""CLI entry point for flowpulse.

Commands:
- flowpulse login: Validate and store server credentials
- flowpulse logout: Forget stored credentials
- flowpulse workflows: List workflows (filter by state, search by name)
- flowpulse toggle: Activate or deactivate a workflow
- flowpulse executions: List executions (filter by status and day)
- flowpulse execution: Show one execution as a status-colored graph
- flowpulse insights: Aggregated execution metrics for the last N days
- flowpulse relay: Serve the browser request relay
"""

from __future__ import annotations

import asyncio
import logging
import sys
from collections.abc import Coroutine
from datetime import datetime
from typing import Any, TypeVar

import click
import pydantic
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from flowpulse.cli_ui.graph_renderer import StatusTableRenderer, TerminalGraphRenderer
from flowpulse.cli_ui.live_monitor import LiveExecutionMonitor
from flowpulse.cli_ui.node_inspector import NodeInspector
from flowpulse.client.credentials import CredentialStore
from flowpulse.client.errors import CredentialsError, GatewayError
from flowpulse.client.provider import open_provider
from flowpulse.config import Credentials, Settings, load_settings
from flowpulse.core.layout import build_execution_graph, initial_scale
from flowpulse.core.listing import (
    ExecutionFilter,
    WorkflowFilter,
    count_executions,
    count_workflows,
    filter_executions,
    filter_workflows,
)
from flowpulse.core.models import ExecutionRecord, ExecutionStatus, WorkflowDefinition
from flowpulse.core.status import execution_error_message, execution_status
from flowpulse.core.utils import format_duration, format_timestamp
from flowpulse.metrics.aggregator import AggregationResult, ExecutionAggregator
from flowpulse.metrics.dashboard import MetricsDashboard
from flowpulse.metrics.engine import WINDOW_CHOICES, compute_metrics

console = Console()
logger = logging.getLogger(__name__)

T = TypeVar("T")

STATUS_LABELS = {
    ExecutionStatus.RUNNING: ("blue", "⏳ Running"),
    ExecutionStatus.SUCCESS: ("green", "✓ Completed"),
    ExecutionStatus.ERROR: ("red", "✕ Error"),
}


def _require_credentials(settings: Settings) -> Credentials:
    if settings.credentials is None:
        raise CredentialsError("Not logged in. Run 'flowpulse login BASE_URL API_KEY' first.")
    return settings.credentials


def _run(coro: Coroutine[Any, Any, T]) -> T:
    """Run a coroutine, turning client errors into a red message and exit 1."""
    try:
        return asyncio.run(coro)
    except (GatewayError, CredentialsError) as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        sys.exit(1)


@click.group()
@click.version_option(version="0.1.0")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def main(verbose: bool) -> None:
    """flowpulse - n8n workflow and execution dashboard."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@main.command()
@click.argument("base_url")
@click.argument("api_key")
def login(base_url: str, api_key: str) -> None:
    """Check the connection and store credentials.

    Example:
        flowpulse login https://n8n.example.com n8n_api_xxx
    """
    try:
        credentials = Credentials(base_url=base_url, api_key=api_key)
    except pydantic.ValidationError as e:
        for err in e.errors():
            console.print(f"[red]Invalid {err['loc'][0]}:[/] {err['msg']}")
        sys.exit(1)

    settings = load_settings()

    async def check() -> None:
        async with open_provider(credentials, settings) as provider:
            await provider.check_connection()

    _run(check())
    CredentialStore().save(credentials)
    console.print(Panel(f"[green]Connected to {escape(credentials.base_url)}[/green]", title="Logged in"))


@main.command()
def logout() -> None:
    """Forget stored credentials."""
    CredentialStore().clear()
    console.print("[yellow]Credentials removed[/yellow]")


@main.command()
@click.option(
    "--state",
    type=click.Choice([f.value for f in WorkflowFilter]),
    default=WorkflowFilter.ALL.value,
    help="Filter by active state",
)
@click.option("--search", "-s", default=None, help="Case-insensitive name filter")
def workflows(state: str, search: str | None) -> None:
    """List workflows."""
    settings = load_settings()

    async def fetch() -> list[WorkflowDefinition]:
        async with open_provider(_require_credentials(settings), settings) as provider:
            return await provider.list_workflows()

    all_workflows = _run(fetch())
    active, inactive = count_workflows(all_workflows)
    shown = filter_workflows(all_workflows, WorkflowFilter(state), search)

    table = Table(title=f"Workflows ({active} active, {inactive} inactive)")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("State", justify="center")
    table.add_column("Updated", style="dim")

    for workflow in shown:
        state_text = "[green]● active[/]" if workflow.active else "[dim]○ inactive[/]"
        table.add_row(
            escape(workflow.id),
            escape(workflow.name or "-"),
            state_text,
            format_timestamp(workflow.updated_at),
        )

    if not shown:
        console.print("[dim]No workflows match[/dim]")
        return
    console.print(table)


@main.command()
@click.argument("workflow_id")
@click.option("--on/--off", "active", required=True, help="Activate or deactivate")
def toggle(workflow_id: str, active: bool) -> None:
    """Activate or deactivate a workflow."""
    settings = load_settings()

    async def apply() -> WorkflowDefinition:
        async with open_provider(_require_credentials(settings), settings) as provider:
            return await provider.toggle_workflow(workflow_id, active)

    workflow = _run(apply())
    label = "[green]active[/]" if workflow.active else "[dim]inactive[/]"
    console.print(f"{escape(workflow.name or workflow_id)} is now {label}")


def _execution_row(execution: ExecutionRecord) -> tuple[str, ...]:
    color, label = STATUS_LABELS[execution_status(execution)]
    return (
        escape(execution.id),
        escape(execution.workflow_id or "-"),
        f"[{color}]{label}[/]",
        format_timestamp(execution.started_at),
        format_duration(execution.started_at, execution.stopped_at),
        escape(execution.mode or "manual"),
    )


@main.command()
@click.option("--workflow-id", "-w", help="Only executions of this workflow")
@click.option(
    "--status",
    type=click.Choice([f.value for f in ExecutionFilter]),
    default=ExecutionFilter.ALL.value,
    help="Filter by derived status",
)
@click.option("--date", "on_date", type=click.DateTime(formats=["%Y-%m-%d"]), help="Only this UTC day")
@click.option("--limit", type=click.IntRange(1, 250), default=100, help="Executions to fetch")
def executions(workflow_id: str | None, status: str, on_date: datetime | None, limit: int) -> None:
    """List recent executions."""
    settings = load_settings()

    async def fetch() -> list[ExecutionRecord]:
        async with open_provider(_require_credentials(settings), settings) as provider:
            page = await provider.list_executions(workflow_id=workflow_id, limit=limit)
            return page.executions

    records = _run(fetch())
    success, failed = count_executions(records)
    shown = filter_executions(
        records,
        ExecutionFilter(status),
        on_date.date() if on_date else None,
    )

    if not shown:
        console.print("[dim]No executions match[/dim]")
        return

    table = Table(title=f"Executions ({success} ok, {failed} failed)")
    table.add_column("ID", style="cyan")
    table.add_column("Workflow", style="dim")
    table.add_column("Status")
    table.add_column("Started")
    table.add_column("Duration", justify="right")
    table.add_column("Mode", style="dim")
    for execution in shown:
        table.add_row(*_execution_row(execution))
    console.print(table)


@main.command()
@click.argument("execution_id")
@click.option("--node", "-n", help="Inspect a specific node by name")
@click.option("--interactive", "-i", is_flag=True, help="Enter interactive inspection mode")
@click.option("--watch", is_flag=True, help="Follow a running execution until it finishes")
@click.option("--levels", is_flag=True, help="Show topological levels instead of the tree")
def execution(execution_id: str, node: str | None, interactive: bool, watch: bool, levels: bool) -> None:
    """Show an execution as a status-colored node graph."""
    settings = load_settings()

    async def fetch() -> tuple[ExecutionRecord, WorkflowDefinition | None]:
        async with open_provider(_require_credentials(settings), settings) as provider:
            record = await provider.get_execution(execution_id)
            workflow = None
            if record.workflow_id:
                try:
                    workflow = await provider.get_workflow(record.workflow_id)
                except GatewayError as e:
                    logger.warning("Workflow %s unavailable: %s", record.workflow_id, e)
            if watch and workflow is not None and execution_status(record) == ExecutionStatus.RUNNING:
                monitor = LiveExecutionMonitor(provider, console)
                record = await monitor.monitor(execution_id, workflow) or record
            return record, workflow

    record, workflow = _run(fetch())

    color, label = STATUS_LABELS[execution_status(record)]
    console.print(Panel(f"[bold {color}]{label}[/]", title=f"Execution #{escape(record.id)}"))

    message = execution_error_message(record)
    if message:
        console.print(Panel(f"[red]{escape(message)}[/]", title="Error", style="red"))

    console.print(
        f"[dim]Started {format_timestamp(record.started_at)}  "
        f"Duration {format_duration(record.started_at, record.stopped_at)}  "
        f"Mode {escape(record.mode or 'manual')}[/dim]"
    )

    if workflow is None:
        console.print("[yellow]Workflow definition unavailable; graph not shown[/yellow]")
        return

    layout = build_execution_graph(workflow, record)
    renderer = TerminalGraphRenderer(console)
    if levels:
        console.print(renderer.render_graph(layout))
    else:
        console.print(renderer.render_as_tree(layout, title=workflow.name or workflow.id))

    scale = initial_scale(layout.width, settings.canvas.viewport_width, settings.canvas.compact)
    console.print(
        f"[dim]Canvas {layout.width:g}x{layout.height:g}, "
        f"{len(layout.nodes)} nodes, {len(layout.edges)} connections, zoom {round(scale * 100)}%[/dim]"
    )
    console.print(StatusTableRenderer(console).render_status_table(layout, record.id))

    inspector = NodeInspector(console)
    if interactive:
        inspector.inspect_interactive(layout, title=workflow.name or workflow.id, scale=scale)
    else:
        inspector.inspect_node(layout, node)


@main.command()
@click.option(
    "--days",
    type=click.Choice([str(d) for d in WINDOW_CHOICES]),
    default=None,
    help="Trailing window in days (default: from config)",
)
@click.option("--workflow-id", "-w", help="Only executions of this workflow")
def insights(days: str | None, workflow_id: str | None) -> None:
    """Aggregated execution metrics.

    Example:
        flowpulse insights --days 14
    """
    settings = load_settings()
    window = int(days) if days else settings.insights.default_days

    async def gather() -> AggregationResult:
        async with open_provider(_require_credentials(settings), settings) as provider:
            with console.status("Loading executions...") as status:
                aggregator = ExecutionAggregator(provider)
                return await aggregator.collect(
                    workflow_id=workflow_id,
                    on_progress=lambda n: status.update(f"Loading... {n} executions"),
                )

    result = _run(gather())
    if result.truncated:
        console.print(
            f"[yellow]Only the newest {result.count} executions were loaded "
            f"({result.pages} pages)[/yellow]"
        )

    MetricsDashboard(console).show(compute_metrics(result.executions, window))


@main.command()
@click.option("--host", default="127.0.0.1", help="Bind address")
@click.option("--port", type=int, default=8787, help="Bind port")
def relay(host: str, port: int) -> None:
    """Serve the browser request relay."""
    import uvicorn

    from flowpulse.relay.server import create_app

    console.print(f"[bold]Relay listening on http://{host}:{port}/api/proxy/[/bold]")
    uvicorn.run(create_app(), host=host, port=port, log_level="info")


@main.command()
def version() -> None:
    """Show version information."""
    from flowpulse import __version__

    console.print(f"flowpulse v{__version__}")
    console.print("n8n execution dashboard")


if __name__ == "__main__":
    main()
