"""Graph layout for execution visualization.

Turns a workflow definition plus one execution's correlated run results into
a bounded canvas of status-colored nodes and S-curve edges.

Layout rules:
- The bounding box of declared positions is moved so its minimum corner
  sits at PADDING; no node ever lands on a negative coordinate.
- Canvas size = bounding box span + one node footprint + 2 * PADDING.
- Edges run from the source's right-center to the target's left-center.
  Connections to unknown nodes are dropped.

The builder is pure: identical inputs always produce equal layouts.
Scaling to a viewport is a separate step (fit_scale and friends).
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import networkx as nx

from flowpulse.core.correlator import correlate, extract_run_data
from flowpulse.core.models import (
    ExecutionRecord,
    NodeRunResult,
    NodeStatus,
    WorkflowDefinition,
)
from flowpulse.core.status import node_status

PADDING = 60.0
NODE_WIDTH = 180.0
NODE_HEIGHT = 56.0

MIN_SCALE = 0.3
MAX_ZOOM = 2.0
ZOOM_STEP = 0.2
DEFAULT_SCALE = 0.6
COMPACT_MAX_SCALE = 0.8  # Narrow (phone) viewports start zoomed out

# Node type prefixes stripped from display labels
_TYPE_PREFIXES = ("n8n-nodes-base.", "@n8n/n8n-nodes-langchain.")

Point = tuple[float, float]


def type_label(node_type: str) -> str:
    """Short display label for a node type, e.g. ``httpRequest``."""
    label = node_type or ""
    for prefix in _TYPE_PREFIXES:
        label = label.replace(prefix, "")
    return label or "Node"


@dataclass(frozen=True)
class GraphNode:
    """A node placed on the canvas with its execution state."""

    id: str
    display_name: str
    type_label: str
    x: float
    y: float
    status: NodeStatus
    error: Any = None
    input_data: Any = None
    output_data: Any = None
    execution_time_ms: float | None = None

    @property
    def executed(self) -> bool:
        return self.status != NodeStatus.PENDING


@dataclass(frozen=True)
class GraphEdge:
    """A rendered connection between two placed nodes."""

    source: str
    target: str
    from_point: Point
    to_point: Point
    source_status: NodeStatus

    @property
    def executed(self) -> bool:
        return self.source_status != NodeStatus.PENDING

    @property
    def state(self) -> str:
        return "executed" if self.executed else "pending"

    @property
    def control_points(self) -> tuple[Point, Point]:
        """Cubic control points sharing the horizontal midpoint.

        Using the same x for both keeps the curve shape stable whether the
        target sits above or below the source.
        """
        (x1, y1), (x2, y2) = self.from_point, self.to_point
        mid_x = (x1 + x2) / 2
        return (mid_x, y1), (mid_x, y2)

    def svg_path(self) -> str:
        (x1, y1), (x2, y2) = self.from_point, self.to_point
        (c1x, c1y), (c2x, c2y) = self.control_points
        return f"M {x1:g} {y1:g} C {c1x:g} {c1y:g}, {c2x:g} {c2y:g}, {x2:g} {y2:g}"


@dataclass(frozen=True)
class GraphLayout:
    """Render-ready graph in canvas units."""

    nodes: tuple[GraphNode, ...]
    edges: tuple[GraphEdge, ...]
    width: float
    height: float
    node_width: float = NODE_WIDTH
    node_height: float = NODE_HEIGHT
    _index: dict[str, GraphNode] = field(default_factory=dict, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        # Frozen dataclass: populate the lookup map through object.__setattr__
        object.__setattr__(self, "_index", {n.id: n for n in self.nodes})

    def node(self, node_id: str) -> GraphNode | None:
        return self._index.get(node_id)

    @property
    def executed_nodes(self) -> list[GraphNode]:
        return [n for n in self.nodes if n.executed]

    @property
    def error_nodes(self) -> list[GraphNode]:
        return [n for n in self.nodes if n.status == NodeStatus.ERROR]


def build_layout(
    workflow: WorkflowDefinition,
    run_results: Mapping[str, NodeRunResult | None] | None = None,
) -> GraphLayout:
    """Place the workflow's nodes and edges on a padded canvas.

    Args:
        workflow: Workflow definition (nodes + connections)
        run_results: node name -> latest run result, as produced by
            core.correlator.correlate(); missing names count as not executed

    Returns:
        GraphLayout with non-negative coordinates
    """
    run_results = run_results or {}

    if not workflow.nodes:
        return GraphLayout(
            nodes=(),
            edges=(),
            width=NODE_WIDTH + PADDING * 2,
            height=NODE_HEIGHT + PADDING * 2,
        )

    xs = [n.position[0] for n in workflow.nodes]
    ys = [n.position[1] for n in workflow.nodes]
    min_x, max_x = min(xs), max(xs)
    min_y, max_y = min(ys), max(ys)

    placed: dict[str, GraphNode] = {}
    for node in workflow.nodes:
        result = run_results.get(node.name)
        placed[node.name] = GraphNode(
            id=node.name,
            display_name=node.name,
            type_label=type_label(node.type),
            x=node.position[0] - min_x + PADDING,
            y=node.position[1] - min_y + PADDING,
            status=node_status(result),
            error=result.error if result else None,
            input_data=result.input_payload if result else None,
            output_data=result.output_payload if result else None,
            execution_time_ms=result.execution_time if result else None,
        )

    edges: list[GraphEdge] = []
    for source_name, _slot, target_name in workflow.iter_connections():
        source = placed.get(source_name)
        target = placed.get(target_name)
        if source is None or target is None:
            continue
        edges.append(
            GraphEdge(
                source=source.id,
                target=target.id,
                from_point=(source.x + NODE_WIDTH, source.y + NODE_HEIGHT / 2),
                to_point=(target.x, target.y + NODE_HEIGHT / 2),
                source_status=source.status,
            )
        )

    return GraphLayout(
        nodes=tuple(placed.values()),
        edges=tuple(edges),
        width=max_x - min_x + NODE_WIDTH + PADDING * 2,
        height=max_y - min_y + NODE_HEIGHT + PADDING * 2,
    )


def build_execution_graph(
    workflow: WorkflowDefinition,
    execution: ExecutionRecord | None,
) -> GraphLayout:
    """Correlate an execution with its workflow and lay out the result."""
    run_data = extract_run_data(execution) if execution is not None else {}
    return build_layout(workflow, correlate(workflow, run_data))


def run_signature(execution: ExecutionRecord) -> tuple[tuple[str, int], ...]:
    """Sorted (node name, run count) pairs; grows as a running execution progresses."""
    return tuple(
        sorted(
            (name, len(runs) if isinstance(runs, list) else 1)
            for name, runs in extract_run_data(execution).items()
        )
    )


def layout_key(workflow: WorkflowDefinition, execution: ExecutionRecord | None) -> tuple:
    """Identity of a (workflow, execution) pair for memoization."""
    nodes = tuple((n.name, n.type, n.position) for n in workflow.nodes)
    exec_part = (
        (
            execution.id,
            execution.status,
            execution.finished,
            execution.stopped_at,
            run_signature(execution),
        )
        if execution is not None
        else None
    )
    return (workflow.id, workflow.updated_at, nodes, exec_part)


class LayoutMemo:
    """Remembers the most recent layout and rebuilds only when inputs change.

    USAGE:
        memo = LayoutMemo()
        layout = memo.get(workflow, execution)  # builds
        layout = memo.get(workflow, execution)  # cached
    """

    def __init__(self) -> None:
        self._key: tuple | None = None
        self._layout: GraphLayout | None = None
        self.builds = 0

    def get(self, workflow: WorkflowDefinition, execution: ExecutionRecord | None) -> GraphLayout:
        key = layout_key(workflow, execution)
        if self._layout is None or key != self._key:
            self._layout = build_execution_graph(workflow, execution)
            self._key = key
            self.builds += 1
        return self._layout


def fit_scale(
    canvas_width: float,
    viewport_width: float,
    max_scale: float = 1.0,
    min_scale: float = MIN_SCALE,
) -> float:
    """Scale factor fitting the canvas width into the viewport.

    Never drops below min_scale so node labels stay legible.
    """
    if canvas_width <= 0:
        return max_scale
    return max(min(viewport_width / canvas_width, max_scale), min_scale)


def initial_scale(canvas_width: float, viewport_width: float, compact: bool) -> float:
    """Scale used when an execution graph is first shown."""
    if compact:
        return fit_scale(canvas_width, viewport_width, max_scale=COMPACT_MAX_SCALE)
    return DEFAULT_SCALE


def zoom_in(scale: float) -> float:
    return min(round(scale + ZOOM_STEP, 2), MAX_ZOOM)


def zoom_out(scale: float) -> float:
    return max(round(scale - ZOOM_STEP, 2), MIN_SCALE)


def to_networkx(layout: GraphLayout) -> nx.DiGraph:
    """Directed graph of node ids for ordering and traversal."""
    G = nx.DiGraph()
    for node in layout.nodes:
        G.add_node(node.id)
    for edge in layout.edges:
        G.add_edge(edge.source, edge.target)
    return G
