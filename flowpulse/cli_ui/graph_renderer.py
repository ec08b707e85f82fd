"""Terminal graph rendering for execution visualization.

Renders a GraphLayout (see core.layout) as topological levels, as a Rich
tree following connections, or as a per-node status table.
"""

import networkx as nx
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.tree import Tree

from flowpulse.core.layout import GraphLayout, GraphNode, to_networkx
from flowpulse.core.models import NodeStatus
from flowpulse.core.utils import truncate_label


class TerminalGraphRenderer:
    """
    Renders execution graphs in the terminal.

    Features:
    - Topological layout (left-to-right flow by level)
    - Status colors and glyphs per node
    - Execution time per executed node
    - Tree view following connections from trigger nodes

    NOTE: render_graph() shows topological levels only. Use render_as_tree()
    to see which node feeds which.
    """

    # Glyph and color per node status
    STATUS_STYLES = {
        NodeStatus.SUCCESS: ("✓", "green"),
        NodeStatus.ERROR: ("✕", "red bold"),
        NodeStatus.PENDING: ("○", "dim"),
    }

    def __init__(self, console: Console | None = None):
        self.console = console or Console()

    def _node_text(self, node: GraphNode) -> str:
        glyph, color = self.STATUS_STYLES.get(node.status, ("○", "white"))
        # SECURITY: Escape node names to prevent Rich markup injection
        safe_name = escape(node.display_name)
        safe_type = escape(node.type_label)
        timing = f" {node.execution_time_ms:g}ms" if node.execution_time_ms is not None else ""
        return f"[{color}]{glyph} {safe_name}[/] [dim]({safe_type}){timing}[/]"

    def render_graph(self, layout: GraphLayout) -> str:
        """
        Render the graph as topological levels.

        Returns:
            Rich markup string, one line per level
        """
        G = to_networkx(layout)

        try:
            levels = list(nx.topological_generations(G))
        except nx.NetworkXUnfeasible:
            # Loops (e.g. "Loop Over Items") - fall back to declaration order
            levels = [[n.id for n in layout.nodes]]

        lines = []
        for level_idx, level in enumerate(levels):
            level_nodes = []
            for node_id in level:
                node = layout.node(node_id)
                if node:
                    level_nodes.append(self._node_text(node))
            lines.append("  |  ".join(level_nodes))

            if level_idx < len(levels) - 1:
                lines.append("  " + "  v  " * max(len(level_nodes), 1))

        return "\n".join(lines)

    def render_as_tree(
        self,
        layout: GraphLayout,
        title: str = "Workflow",
        max_depth: int = 50,
    ) -> Tree:
        """
        Render the graph as a Rich Tree starting from nodes without inputs.

        Args:
            layout: The execution layout to render
            title: Tree root label
            max_depth: Maximum tree depth to prevent blow-up on wide graphs
        """
        tree = Tree(f"[bold]{escape(title)}[/]")
        if not layout.nodes:
            tree.add("[dim](no nodes)[/]")
            return tree

        G = to_networkx(layout)
        roots = [n for n in G.nodes if G.in_degree(n) == 0]
        if not roots:
            # Every node has an input (pure cycle) - start at the first declared
            roots = [layout.nodes[0].id]

        seen: set[str] = set()
        for root in roots:
            self._add_node_to_tree(tree, root, G, layout, visited=set(), seen=seen, depth=0, max_depth=max_depth)

        # Nodes unreachable from any root (isolated sticky notes, cycles)
        for node in layout.nodes:
            if node.id not in seen:
                self._add_node_to_tree(tree, node.id, G, layout, visited=set(), seen=seen, depth=0, max_depth=max_depth)

        return tree

    def _add_node_to_tree(
        self,
        parent: Tree,
        node_id: str,
        G: nx.DiGraph,
        layout: GraphLayout,
        visited: set,
        seen: set,
        depth: int = 0,
        max_depth: int = 50,
    ):
        """Recursively add a node and its successors."""
        if depth >= max_depth:
            parent.add("[dim]... (max depth reached)[/]")
            return

        node = layout.node(node_id)
        if node is None:
            return

        if node_id in visited:
            parent.add(f"[dim]↩ {escape(node.display_name)} (loop)[/]")
            return

        visited.add(node_id)
        seen.add(node_id)
        branch = parent.add(self._node_text(node))

        for child in G.successors(node_id):
            self._add_node_to_tree(branch, child, G, layout, visited.copy(), seen, depth + 1, max_depth)


class StatusTableRenderer:
    """Renders per-node execution status as a Rich table.

    SECURITY: All user-controlled strings (node names, outputs, execution_id)
    are escaped to prevent Rich markup injection.
    """

    def __init__(self, console: Console | None = None):
        self.console = console or Console()

    def render_status_table(self, layout: GraphLayout, execution_id: str) -> Table:
        table = Table(title=f"Execution: #{escape(execution_id)}")

        table.add_column("Node", style="cyan")
        table.add_column("Type", style="magenta")
        table.add_column("Status", justify="center")
        table.add_column("Time", justify="right")
        table.add_column("Output", max_width=40)

        for node in layout.nodes:
            if node.status == NodeStatus.SUCCESS:
                status_text = "[green]✓ OK[/]"
            elif node.status == NodeStatus.ERROR:
                status_text = "[red]✕ Error[/]"
            else:
                status_text = "[dim]○ Not executed[/]"

            timing = f"{node.execution_time_ms:g}ms" if node.execution_time_ms is not None else "-"
            output = node.output_data if node.output_data is not None else ""

            table.add_row(
                escape(truncate_label(node.display_name, 24)),
                escape(truncate_label(node.type_label, 18)),
                status_text,
                timing,
                escape(truncate_label(str(output), 37)),
            )

        return table
