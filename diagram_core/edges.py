"""
Edge geometry: where an edge meets its nodes and how it travels between them.

Connection points are always the midpoint of a side of the node's bounding
box (for decision diamonds those midpoints are the diamond's vertices).
Routing turns two connection points into a polyline or a quadratic curve.
"""

import logging
import math
from collections import defaultdict
from typing import Literal, NamedTuple, Optional

from pydantic import BaseModel, ConfigDict

from .models import Diagram, DiagramType, Edge, Node, NodeType

logger = logging.getLogger(__name__)

# Vertical preference multipliers for source connection points
DIAMOND_VERTICAL_BIAS = 1.8
FLOW_VERTICAL_BIAS = 1.3
DEFAULT_VERTICAL_BIAS = 1.0
FLOW_NODE_TYPES = frozenset({
    NodeType.START.value, NodeType.END.value, NodeType.PROCESS.value,
    NodeType.DECISION.value, NodeType.INPUT.value, NodeType.OUTPUT.value,
})
# Target side is top/bottom when |dy| exceeds this fraction of |dx|
TARGET_VERTICAL_THRESHOLD = 0.3

DEFAULT_PARALLEL_SPACING = 20
DEFAULT_CURVE_CAP = 50

OrthogonalStyle = Literal["direct", "horizontal-first", "vertical-first"]
RouteStyle = Literal["direct", "horizontal-first", "vertical-first", "orthogonal", "mermaid", "curved"]


class Point(NamedTuple):
    x: float
    y: float


class Bounds(NamedTuple):
    left: float
    top: float
    right: float
    bottom: float

    @property
    def center(self) -> Point:
        return Point((self.left + self.right) / 2, (self.top + self.bottom) / 2)


def node_bounds(node: Node) -> Bounds:
    """Bounding box of a node; mind-map nodes store their center in x/y."""
    return Bounds(*node.bounds())


def vertical_bias(node: Node) -> float:
    if node.type == NodeType.DECISION.value:
        return DIAMOND_VERTICAL_BIAS
    if node.type in FLOW_NODE_TYPES:
        return FLOW_VERTICAL_BIAS
    return DEFAULT_VERTICAL_BIAS


def connection_point(node: Node, target: Node) -> Point:
    """
    Point on `node` where an edge towards `target` leaves.

    Top or bottom side when the vertical distance (scaled by the node's
    vertical bias) dominates, otherwise left or right.
    """
    bounds = node_bounds(node)
    center = bounds.center
    other = node_bounds(target).center
    dx = other.x - center.x
    dy = other.y - center.y

    if abs(dy) * vertical_bias(node) > abs(dx):
        return Point(center.x, bounds.bottom if dy > 0 else bounds.top)
    return Point(bounds.right if dx > 0 else bounds.left, center.y)


def target_connection_point(node: Node, from_node: Node) -> Point:
    """Point on `node` where an edge arriving from `from_node` ends."""
    bounds = node_bounds(node)
    center = bounds.center
    source = node_bounds(from_node).center
    dx = center.x - source.x
    dy = center.y - source.y

    if dy > 0 and abs(dy) > abs(dx) * TARGET_VERTICAL_THRESHOLD:
        return Point(center.x, bounds.top)      # Coming from above
    if dy < 0 and abs(dy) > abs(dx) * TARGET_VERTICAL_THRESHOLD:
        return Point(center.x, bounds.bottom)   # Coming from below
    if dx > 0:
        return Point(bounds.left, center.y)     # Coming from the left
    return Point(bounds.right, center.y)


def connection_points(source: Node, target: Node) -> tuple[Point, Point]:
    return connection_point(source, target), target_connection_point(target, source)


# --- Paths ---

def _dedupe(points: list[Point]) -> list[Point]:
    result = [points[0]]
    for point in points[1:]:
        if point != result[-1]:
            result.append(point)
    return result


def orthogonal_path(start: Point, end: Point, style: OrthogonalStyle = "horizontal-first") -> list[Point]:
    """Straight or Z-shaped path between two points."""
    if style == "direct":
        return [start, end]

    mid_x = start.x + (end.x - start.x) / 2
    mid_y = start.y + (end.y - start.y) / 2
    if style == "horizontal-first":
        return [start, Point(mid_x, start.y), Point(mid_x, end.y), end]
    return [start, Point(start.x, mid_y), Point(end.x, mid_y), end]


def mermaid_path(
    start: Point,
    end: Point,
    edge_index: int = 0,
    total: int = 1,
    spacing: float = DEFAULT_PARALLEL_SPACING,
) -> list[Point]:
    """
    Three-segment path that bends across the shorter axis.

    Parallel edges between the same pair of nodes get their middle segment
    shifted by `spacing` per edge, centered on the undisplaced route.
    """
    dx = end.x - start.x
    dy = end.y - start.y
    offset = (edge_index - (total - 1) / 2) * spacing if total > 1 else 0

    if abs(dy) > abs(dx):
        mid_y = start.y + dy / 2 + offset
        points = [start, Point(start.x, mid_y), Point(end.x, mid_y), end]
    else:
        mid_x = start.x + dx / 2 + offset
        points = [start, Point(mid_x, start.y), Point(mid_x, end.y), end]
    return _dedupe(points)


class QuadraticCurve(NamedTuple):
    start: Point
    control: Point
    end: Point

    def to_svg(self) -> str:
        return "M {} {} Q {} {} {} {}".format(*(_fmt(v) for v in (*self.start, *self.control, *self.end)))


def curved_path(start: Point, end: Point, cap: float = DEFAULT_CURVE_CAP) -> QuadraticCurve:
    """Quadratic curve bowed perpendicular to the chord by min(0.3 * length, cap)."""
    dx = end.x - start.x
    dy = end.y - start.y
    mid = Point(start.x + dx / 2, start.y + dy / 2)
    distance = math.hypot(dx, dy)
    if distance == 0:
        return QuadraticCurve(start, mid, end)

    bow = min(distance * 0.3, cap)
    control = Point(mid.x - dy / distance * bow, mid.y + dx / distance * bow)
    return QuadraticCurve(start, control, end)


def _fmt(value: float) -> str:
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return "0" if text == "-0" else text


def path_to_svg(points: list[Point]) -> str:
    """SVG path data for a polyline."""
    if len(points) < 2:
        return ""
    head, *rest = points
    parts = [f"M {_fmt(head.x)} {_fmt(head.y)}"]
    parts.extend(f"L {_fmt(p.x)} {_fmt(p.y)}" for p in rest)
    return " ".join(parts)


def arrow_transform(start: Point, end: Point) -> tuple[float, float, float]:
    """Position and rotation (degrees) of an arrowhead at `end`."""
    angle = math.degrees(math.atan2(end.y - start.y, end.x - start.x))
    return end.x, end.y, angle


def parallel_edge_groups(edges: list[Edge]) -> dict[str, tuple[int, int]]:
    """Map edge id to (index, total) among edges joining the same node pair."""
    groups: dict[tuple[str, str], list[str]] = defaultdict(list)
    for edge in edges:
        groups[tuple(sorted((edge.source, edge.target)))].append(edge.id)

    result = {}
    for ids in groups.values():
        for index, edge_id in enumerate(ids):
            result[edge_id] = (index, len(ids))
    return result


# --- Routing a whole diagram ---

class EdgeRoute(BaseModel):
    """Geometry of one routed edge."""
    model_config = ConfigDict(frozen=True)

    edge_id: str
    source: str
    target: str
    points: list[Point]
    svg_path: str


DEFAULT_ROUTE_STYLES: dict[DiagramType, RouteStyle] = {
    DiagramType.MINDMAP: "curved",
    DiagramType.FLOW: "mermaid",
}


def default_route_style(diagram_type: DiagramType | str) -> RouteStyle:
    return DEFAULT_ROUTE_STYLES.get(DiagramType(diagram_type), "orthogonal")


def route_edges(diagram: Diagram, style: Optional[RouteStyle] = None) -> list[EdgeRoute]:
    """
    Route every edge of a positioned diagram.

    Args:
        diagram: Diagram after layout
        style: Routing style; defaults per diagram type (mind maps curved,
            flowcharts mermaid-style, everything else orthogonal)

    Returns:
        One EdgeRoute per edge whose endpoints both exist
    """
    style = style or default_route_style(diagram.diagram_type)
    nodes = diagram.node_map()
    parallel = parallel_edge_groups(diagram.edges)
    routes = []

    for edge in diagram.edges:
        source = nodes.get(edge.source)
        target = nodes.get(edge.target)
        if source is None or target is None:
            logger.debug("Skipping edge %s with a missing endpoint", edge.id)
            continue

        start, end = connection_points(source, target)
        if style == "curved":
            curve = curved_path(start, end)
            points, svg = list(curve), curve.to_svg()
        else:
            if style == "mermaid":
                index, total = parallel[edge.id]
                points = mermaid_path(start, end, index, total)
            elif style == "orthogonal":
                # Bend across the axis the edge mostly travels along
                vertical = abs(end.y - start.y) > abs(end.x - start.x)
                points = orthogonal_path(start, end, "vertical-first" if vertical else "horizontal-first")
            else:
                points = orthogonal_path(start, end, style)
            svg = path_to_svg(points)

        routes.append(EdgeRoute(
            edge_id=edge.id,
            source=edge.source,
            target=edge.target,
            points=points,
            svg_path=svg,
        ))

    return routes
