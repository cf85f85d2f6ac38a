"""
Pagination - split a laid-out diagram into pages no larger than a limit.

Each diagram type is cut along its natural seams:
- Class: one-hop clusters of related classes
- Flow / generic: horizontal layer bands (or clusters, or a grid)
- Sequence: chunks of consecutive messages, every page repeating the actors
- Mind map: BFS levels from the root
- Use case: each actor with the use cases it is most associated with

Units are packed greedily onto pages while their combined bounding box
fits. A unit that is larger than a page on its own is cut into chunks first.
Pages only carry edges whose two endpoints are on that page.
"""

import logging
import math
from collections import Counter
from typing import Optional

from .analysis import DiagramBounds, bfs_levels, calculate_bounds, find_one_hop_clusters
from .config import PaginationConfig
from .models import ContinuationMarker, Diagram, DiagramType, Edge, Node, NodeType, Page, ViewBox

logger = logging.getLogger(__name__)

PAGE_TITLES = {
    DiagramType.CLASS: "Class Diagram",
    DiagramType.SEQUENCE: "Sequence Diagram",
    DiagramType.FLOW: "Flow Diagram",
    DiagramType.USECASE: "Use Case Diagram",
    DiagramType.MINDMAP: "Mindmap Diagram",
    DiagramType.GENERIC: "Generic Diagram",
}


def paginate_diagram(
    diagram: Diagram,
    diagram_type: Optional[DiagramType | str] = None,
    config: Optional[PaginationConfig] = None,
) -> list[Page]:
    """
    Split a positioned diagram into pages.

    Args:
        diagram: Diagram after layout
        diagram_type: Overrides the type recorded in the diagram metadata
        config: Page limits and strategy (defaults to PaginationConfig())

    Returns:
        At least one page. A diagram that fits comes back as a single page.
    """
    config = config or PaginationConfig()
    dtype = DiagramType(diagram_type or diagram.diagram_type)
    title = PAGE_TITLES[dtype]
    nodes = diagram.nodes
    bounds = calculate_bounds(nodes)

    if dtype == DiagramType.SEQUENCE:
        messages = _ordered_messages(diagram)
        per_page = messages_per_page(config)
        if bounds.width <= config.max_width and len(messages) <= per_page:
            lane_height = (len(messages) + 1) * config.pixels_per_message
            with_lane = DiagramBounds(bounds.min_x, bounds.min_y, bounds.max_x, bounds.max_y + lane_height)
            return [_single_page(diagram, title, with_lane, config)]
        return _paginate_sequence(diagram, messages, title, config)

    if bounds.fits(config.max_width, config.max_height):
        return [_single_page(diagram, title, bounds, config)]

    if dtype in (DiagramType.FLOW, DiagramType.GENERIC) and config.preferred_break_points == "grid":
        groups = grid_cells(nodes, config)
    else:
        units = _units_for(dtype, diagram, config)
        groups = accumulate_units(units, config)

    logger.debug("Split %s diagram with %d nodes into %d pages", dtype.value, len(nodes), len(groups))
    return _build_pages(groups, diagram.edges, title, config)


# --- Units ---

def _units_for(dtype: DiagramType, diagram: Diagram, config: PaginationConfig) -> list[list[Node]]:
    nodes, edges = diagram.nodes, diagram.edges
    if dtype == DiagramType.CLASS:
        return find_one_hop_clusters(nodes, edges)
    if dtype == DiagramType.MINDMAP:
        root = next((n for n in nodes if n.type == NodeType.ROOT.value), nodes[0])
        return bfs_levels(nodes, edges, root.id)
    if dtype == DiagramType.USECASE:
        return actor_groups(nodes, edges)
    if config.preferred_break_points == "clusters":
        return find_one_hop_clusters(nodes, edges)
    return layer_bands(nodes, config.layer_threshold)


def layer_bands(nodes: list[Node], threshold: float = 30) -> list[list[Node]]:
    """Group nodes into horizontal bands; a band starts where y jumps by more than `threshold`."""
    bands: list[list[Node]] = []
    band_top = None
    for node in sorted(nodes, key=lambda n: (n.bounds()[1], n.bounds()[0])):
        top = node.bounds()[1]
        if band_top is None or abs(top - band_top) > threshold:
            bands.append([])
            band_top = top
        bands[-1].append(node)
    return bands


def actor_groups(nodes: list[Node], edges: list[Edge]) -> list[list[Node]]:
    """
    One group per actor holding the use cases most associated with it.

    A use case joins the connected actor with the most edges to it, the
    earlier actor on ties. Use cases with no actor form a trailing group.
    """
    actors = [n for n in nodes if n.type == NodeType.ACTOR.value]
    actor_rank = {a.id: i for i, a in enumerate(actors)}
    affinity: dict[str, Counter] = {}
    for edge in edges:
        for actor_id, other_id in ((edge.source, edge.target), (edge.target, edge.source)):
            if actor_id in actor_rank and other_id not in actor_rank:
                affinity.setdefault(other_id, Counter())[actor_id] += 1

    groups: dict[str, list[Node]] = {a.id: [a] for a in actors}
    leftovers = []
    for node in nodes:
        if node.id in actor_rank:
            continue
        counts = affinity.get(node.id)
        if not counts:
            leftovers.append(node)
            continue
        best = min(counts, key=lambda aid: (-counts[aid], actor_rank[aid]))
        groups[best].append(node)

    units = [groups[a.id] for a in actors]
    if leftovers:
        units.append(leftovers)
    return units


def split_oversized(unit: list[Node], config: PaginationConfig) -> list[list[Node]]:
    """Cut a unit that exceeds the page into chunks by y, then by x."""
    if calculate_bounds(unit).fits(config.max_width, config.max_height):
        return [unit]

    def chunk(items: list[Node], axis: int, limit: float) -> list[list[Node]]:
        chunks: list[list[Node]] = []
        low = None
        for node in sorted(items, key=lambda n: n.bounds()[axis]):
            box = node.bounds()
            if chunks and box[axis + 2] - low <= limit:
                chunks[-1].append(node)
            else:
                chunks.append([node])
                low = box[axis]
        return chunks

    result = []
    for row in chunk(unit, 1, config.max_height):
        result.extend(chunk(row, 0, config.max_width))
    return result


def accumulate_units(units: list[list[Node]], config: PaginationConfig) -> list[list[Node]]:
    """Pack units onto pages in order while the combined bounds fit."""
    pages: list[list[Node]] = []
    current: list[Node] = []
    current_bounds: Optional[DiagramBounds] = None

    for unit in units:
        for piece in split_oversized(unit, config):
            piece_bounds = calculate_bounds(piece)
            if current:
                merged = current_bounds.union(piece_bounds)
                if merged.fits(config.max_width, config.max_height):
                    current.extend(piece)
                    current_bounds = merged
                    continue
                pages.append(current)
            current = list(piece)
            current_bounds = piece_bounds

    if current:
        pages.append(current)
    return pages


def grid_cells(nodes: list[Node], config: PaginationConfig) -> list[list[Node]]:
    """
    Cut the diagram into a grid of page-sized cells.

    With "center" assignment each node lands in the cell containing its
    center; with "overlap" it lands in every cell its rectangle touches.
    Empty cells are dropped; cells are returned row by row.
    """
    bounds = calculate_bounds(nodes)
    cols = max(1, math.ceil(bounds.width / config.max_width))
    rows = max(1, math.ceil(bounds.height / config.max_height))
    cells: list[list[list[Node]]] = [[[] for _ in range(cols)] for _ in range(rows)]

    def cell_index(value: float, origin: float, size: float, count: int) -> int:
        return min(count - 1, max(0, int((value - origin) // size)))

    for node in nodes:
        if config.grid_assignment == "center":
            cx, cy = node.center()
            col = cell_index(cx, bounds.min_x, config.max_width, cols)
            row = cell_index(cy, bounds.min_y, config.max_height, rows)
            cells[row][col].append(node)
            continue
        left, top, right, bottom = node.bounds()
        for row in range(cell_index(top, bounds.min_y, config.max_height, rows),
                         cell_index(bottom, bounds.min_y, config.max_height, rows) + 1):
            for col in range(cell_index(left, bounds.min_x, config.max_width, cols),
                             cell_index(right, bounds.min_x, config.max_width, cols) + 1):
                cells[row][col].append(node)

    return [cell for row in cells for cell in row if cell]


# --- Sequence ---

def messages_per_page(config: PaginationConfig) -> int:
    return max(1, math.floor((config.max_height - config.sequence_header) / config.pixels_per_message))


def _ordered_messages(diagram: Diagram) -> list[Edge]:
    node_ids = {n.id for n in diagram.nodes}
    indexed = [(e.order if e.order is not None else i, i, e) for i, e in enumerate(diagram.edges)]
    return [e for _, _, e in sorted(indexed, key=lambda t: (t[0], t[1]))
            if e.source in node_ids and e.target in node_ids]


def _paginate_sequence(diagram: Diagram, messages: list[Edge], title: str, config: PaginationConfig) -> list[Page]:
    per_page = messages_per_page(config)
    chunks = [messages[i:i + per_page] for i in range(0, len(messages), per_page)] or [[]]
    bounds = calculate_bounds(diagram.nodes)
    total = len(chunks)

    pages = []
    for number, chunk in enumerate(chunks, start=1):
        lane_height = (len(chunk) + 1) * config.pixels_per_message
        pages.append(Page(
            page_number=number,
            total_pages=total,
            nodes=list(diagram.nodes),
            edges=chunk,
            view_box=_view_box(DiagramBounds(bounds.min_x, bounds.min_y, bounds.max_x, bounds.max_y + lane_height), config),
            title=_page_title(title, number, config),
        ))
    return pages


# --- Page assembly ---

def _view_box(bounds: DiagramBounds, config: PaginationConfig) -> ViewBox:
    pad = config.page_padding
    return ViewBox(
        x=bounds.min_x - pad,
        y=bounds.min_y - pad,
        width=bounds.width + 2 * pad,
        height=bounds.height + 2 * pad,
    )


def _page_title(title: str, number: int, config: PaginationConfig) -> str:
    return f"{title} - Page {number}" if config.show_page_numbers else title


def _single_page(diagram: Diagram, title: str, bounds: DiagramBounds, config: PaginationConfig) -> Page:
    node_ids = {n.id for n in diagram.nodes}
    return Page(
        page_number=1,
        total_pages=1,
        nodes=list(diagram.nodes),
        edges=[e for e in diagram.edges if e.source in node_ids and e.target in node_ids],
        view_box=_view_box(bounds, config),
        title=title,
    )


def _build_pages(groups: list[list[Node]], edges: list[Edge], title: str, config: PaginationConfig) -> list[Page]:
    total = len(groups)
    home_page: dict[str, int] = {}
    for number, group in enumerate(groups, start=1):
        for node in group:
            home_page.setdefault(node.id, number)

    pages = []
    for number, group in enumerate(groups, start=1):
        ids = {n.id for n in group}
        continuations = []
        if config.show_continuation_indicators:
            continuations = _continuations(edges, ids, home_page)
        pages.append(Page(
            page_number=number,
            total_pages=total,
            nodes=list(group),
            edges=[e for e in edges if e.source in ids and e.target in ids],
            view_box=_view_box(calculate_bounds(group), config),
            title=_page_title(title, number, config),
            continuations=continuations,
        ))
    return pages


def _continuations(edges: list[Edge], ids: set[str], home_page: dict[str, int]) -> list[ContinuationMarker]:
    markers = []
    for edge in edges:
        source_here = edge.source in ids
        target_here = edge.target in ids
        if source_here == target_here:
            continue
        here, other = (edge.source, edge.target) if source_here else (edge.target, edge.source)
        if other not in home_page:
            continue
        markers.append(ContinuationMarker(
            edge_id=edge.id,
            node_id=here,
            direction="outgoing" if source_here else "incoming",
            other_page=home_page[other],
        ))
    return markers
