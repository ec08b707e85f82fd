"""Node inspection for execution debugging.

Provides one-shot and interactive modes for inspecting per-node input,
output and error payloads of one execution.
"""

from rich.console import Console, Group
from rich.markup import escape
from rich.panel import Panel
from rich.prompt import Prompt
from rich.syntax import Syntax
from rich.table import Table
from rich.text import Text

from flowpulse.cli_ui.graph_renderer import TerminalGraphRenderer
from flowpulse.core.layout import DEFAULT_SCALE, GraphLayout, GraphNode, zoom_in, zoom_out
from flowpulse.core.models import NodeStatus
from flowpulse.core.status import error_text
from flowpulse.core.utils import format_payload


class NodeInspector:
    """
    Node inspection in the terminal.

    Features:
    - One-shot mode: view a specific node, or error nodes then executed nodes
    - Interactive mode: REPL-style navigation between nodes
    - Input / output payloads as formatted JSON (truncated when large)
    - Error details for failed nodes

    SECURITY: All user-controlled strings are escaped to prevent Rich markup injection.

    NOTE: Nodes that did not run have no payloads; they are listed but
    cannot be opened.
    """

    def __init__(self, console: Console | None = None):
        self.console = console or Console()

    def inspect_node(self, layout: GraphLayout, node_name: str | None = None):
        """
        One-shot inspection: show node details and return.

        Args:
            layout: Execution layout holding per-node payloads
            node_name: Specific node to inspect, or None for a summary
        """
        if node_name:
            node = layout.node(node_name)
            if node:
                self._inspect_node(node)
            else:
                self.console.print(f"[red]Node '{escape(node_name)}' not found[/]")
            return

        errors = layout.error_nodes
        if errors:
            self.console.print(f"\n[bold red]Nodes with errors ({len(errors)})[/]")
            for node in errors:
                self._inspect_node(node)

        executed = [n for n in layout.executed_nodes if n.status != NodeStatus.ERROR]
        self.console.print(f"\n[bold]Executed nodes ({len(layout.executed_nodes)})[/]")
        for node in executed:
            timing = f" {node.execution_time_ms:g}ms" if node.execution_time_ms is not None else ""
            self.console.print(f"  [green]✓[/] {escape(node.display_name)} [dim]({escape(node.type_label)}){timing}[/]")

    def inspect_interactive(
        self,
        layout: GraphLayout,
        title: str = "Workflow",
        scale: float = DEFAULT_SCALE,
    ) -> float:
        """
        Interactive inspection loop (REPL mode).

        Use this for debugging sessions where you want to explore multiple nodes.
        '+' and '-' step the canvas zoom between MIN_SCALE and MAX_ZOOM.

        Returns:
            The zoom level when the session ended
        """
        self.console.print("\n[bold]Node Inspector (Interactive Mode)[/]")
        self.console.print("Commands: \\[node name], 'list', 'graph', 'levels', '+', '-', 'quit'\n")
        renderer = TerminalGraphRenderer(self.console)

        while True:
            cmd = Prompt.ask("[cyan]inspect[/]", console=self.console)

            if cmd in ("quit", "q"):
                break
            elif cmd in ("list", "l"):
                self._list_nodes(layout)
            elif cmd in ("graph", "g"):
                self.console.print(renderer.render_as_tree(layout, title=title))
            elif cmd == "levels":
                self.console.print(renderer.render_graph(layout))
            elif cmd in ("+", "-"):
                scale = zoom_in(scale) if cmd == "+" else zoom_out(scale)
                self._show_zoom(layout, scale)
            else:
                node = layout.node(cmd)
                if node is None:
                    self.console.print(f"[red]Node '{escape(cmd)}' not found[/]")
                elif not node.executed:
                    self.console.print(f"[yellow]{escape(cmd)} was not executed[/]")
                else:
                    self._inspect_node(node)

        return scale

    def _show_zoom(self, layout: GraphLayout, scale: float):
        self.console.print(
            f"[dim]Zoom {round(scale * 100)}% "
            f"(canvas {layout.width * scale:.0f}x{layout.height * scale:.0f})[/]"
        )

    def _list_nodes(self, layout: GraphLayout):
        """List all nodes"""
        table = Table(title="Workflow Nodes")
        table.add_column("Name")
        table.add_column("Type")
        table.add_column("Status")

        for node in layout.nodes:
            table.add_row(escape(node.display_name), escape(node.type_label), node.status.value)

        self.console.print(table)

    def _inspect_node(self, node: GraphNode):
        """Show detailed node information"""
        safe_name = escape(node.display_name)
        timing = f"{node.execution_time_ms:g}ms" if node.execution_time_ms is not None else "-"

        info_parts = [
            Text.from_markup(f"[bold]Name:[/] {safe_name}"),
            Text.from_markup(f"[bold]Type:[/] {escape(node.type_label)}"),
            Text.from_markup(f"[bold]Status:[/] {node.status.value}"),
            Text.from_markup(f"[bold]Time:[/] {timing}"),
        ]
        self.console.print(Panel(Group(*info_parts), title=f"Node: {safe_name}"))

        if node.error:
            message = error_text(node.error) or ""
            self.console.print(
                Panel(
                    Group(
                        Text(message, style="red bold"),
                        Syntax(format_payload(node.error), "json", theme="monokai"),
                    ),
                    title="Error",
                    style="red",
                )
            )

        self.console.print(
            Panel(Syntax(format_payload(node.input_data), "json", theme="monokai"), title="Input Data")
        )
        self.console.print(
            Panel(Syntax(format_payload(node.output_data), "json", theme="monokai"), title="Output Data")
        )
