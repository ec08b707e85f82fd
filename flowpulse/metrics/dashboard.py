"""Rich-based execution insights dashboard."""

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from flowpulse.core.utils import format_run_time
from flowpulse.metrics.engine import ExecutionMetrics, chart_max, failure_bar_width

BAR_WIDTH = 30  # Characters for the widest daily bar and the failure gauge


class MetricsDashboard:
    """Terminal dashboard for execution metrics.

    USAGE:
        dashboard = MetricsDashboard()
        dashboard.show(compute_metrics(executions, days=7))
    """

    def __init__(self, console: Console | None = None):
        self.console = console or Console()

    def show(self, metrics: ExecutionMetrics) -> None:
        """Display the dashboard once."""
        self.console.print()
        self.console.rule(f"[bold blue]Insights - Last {metrics.window_days} Days[/bold blue]")

        self.console.print(Panel(self.summary_table(metrics)))
        self.console.print()

        self.console.print(self.failure_gauge(metrics))
        self.console.print()

        self.console.print(self.daily_chart(metrics))

    def summary_table(self, metrics: ExecutionMetrics) -> Table:
        table = Table(title="Summary", show_header=False, box=None)
        table.add_column("Metric", style="dim")
        table.add_column("Value", style="bold")
        table.add_column("Detail", justify="right")

        table.add_row("Executions", f"{metrics.total:,}", f"last {metrics.window_days} days")
        table.add_row("Failed", f"[red]{metrics.failed:,}[/]", f"{metrics.failure_rate:.2f}%")
        table.add_row("Succeeded", f"[green]{metrics.success:,}[/]", f"{metrics.success_rate:.1f}%")
        if metrics.running:
            table.add_row("Running", f"[blue]{metrics.running:,}[/]", "")
        table.add_row("Avg run time", format_run_time(metrics.avg_run_time_ms), "per execution")
        return table

    def failure_gauge(self, metrics: ExecutionMetrics) -> Panel:
        """Horizontal gauge scaled so 20% failures fill the bar."""
        filled = round(failure_bar_width(metrics.failure_rate) / 100 * BAR_WIDTH)
        style = "green" if metrics.failure_rate < 5 else "yellow" if metrics.failure_rate < 10 else "red"
        bar = Text()
        bar.append("█" * filled, style=style)
        bar.append("░" * (BAR_WIDTH - filled), style="dim")
        bar.append(f"  {metrics.failure_rate:.2f}%")
        scale = Text("0%" + " " * (BAR_WIDTH - 5) + "20%", style="dim")
        return Panel(Text.assemble(bar, "\n", scale), title="Failure rate")

    def daily_chart(self, metrics: ExecutionMetrics) -> Table:
        """One row per day with success and failure bars."""
        peak = chart_max(metrics.daily)

        table = Table(title="Executions per day")
        table.add_column("Day", style="dim")
        table.add_column("Executions")
        table.add_column("Total", justify="right")

        for bucket in metrics.daily:
            ok = round(bucket.success_count / peak * BAR_WIDTH)
            bad = round(bucket.failed_count / peak * BAR_WIDTH)
            bar = Text()
            bar.append("█" * ok, style="green")
            bar.append("█" * bad, style="red")
            table.add_row(bucket.date_key, bar, str(bucket.total_count))

        table.caption = "[green]█[/] succeeded  [red]█[/] failed"
        return table
