"""
Layout algorithms for diagram nodes.

Provides one layout strategy per diagram type:
- Hierarchical: layered BFS layout for class and generic diagrams
- Use-case: left-right layering with actors pulled to their use cases
- Sequence: actors in a single row, messages stacked by order
- Mind map: two-sided tree with subtree-weighted vertical bands
- Flow: BFS layering with every end node in one shared final layer

Layout functions never mutate their input. They return a new Diagram whose
nodes keep their ids, types and payloads and carry fresh geometry.
"""

import logging
import math
from collections import defaultdict, deque
from typing import Callable, Optional

from .config import LayoutConfig
from .models import Diagram, DiagramType, Edge, Node, NodeType

logger = logging.getLogger(__name__)

# Nodes that start a layering even when something points at them
ROOT_NODE_TYPES = frozenset({NodeType.START.value, NodeType.ROOT.value, NodeType.ACTOR.value})
# Fallback root candidates when every node has a predecessor
FALLBACK_ROOT_TYPES = frozenset({NodeType.CLASS.value, NodeType.USECASE.value, NodeType.GENERIC.value})
# Unreached nodes of these types sink to the last layer
TERMINAL_NODE_TYPES = frozenset({NodeType.END.value, NodeType.LEAF.value})


# --- Shared helpers ---

def _adjacency(nodes: list[Node], edges: list[Edge]) -> tuple[dict[str, list[str]], dict[str, list[str]]]:
    """Build forward and reverse adjacency, ignoring dangling edges."""
    children: dict[str, list[str]] = {n.id: [] for n in nodes}
    parents: dict[str, list[str]] = {n.id: [] for n in nodes}
    for edge in edges:
        if edge.source in children and edge.target in children:
            children[edge.source].append(edge.target)
            parents[edge.target].append(edge.source)
    return children, parents


def _sized(nodes: list[Node], config: LayoutConfig) -> list[Node]:
    return [n.sized(config.node_width, config.node_height) for n in nodes]


def assign_layers(nodes: list[Node], edges: list[Edge]) -> list[list[str]]:
    """
    Assign every node to a layer by multi-source BFS.

    Roots are nodes without incoming edges plus start/root/actor nodes. A
    node's layer is its shortest distance from any root, and in-layer order
    is discovery order. Nodes the BFS never reaches are placed after the fact:
    end and leaf nodes go to the final layer, anything else one layer below
    its deepest placed predecessor (or the final layer if it has none).

    Returns:
        Layers of node ids, first layer first. Every node appears once.
    """
    if not nodes:
        return []

    children, parents = _adjacency(nodes, edges)

    roots = [n.id for n in nodes if not parents[n.id] or n.type in ROOT_NODE_TYPES]
    if not roots:
        fallback = next((n for n in nodes if n.type in FALLBACK_ROOT_TYPES), nodes[0])
        roots = [fallback.id]

    layer_of: dict[str, int] = {}
    layers: list[list[str]] = []
    queue = deque((root, 0) for root in roots)

    while queue:
        node_id, layer = queue.popleft()
        if node_id in layer_of:
            continue
        layer_of[node_id] = layer
        while len(layers) <= layer:
            layers.append([])
        layers[layer].append(node_id)
        for child in children[node_id]:
            if child not in layer_of:
                queue.append((child, layer + 1))

    for node in nodes:
        if node.id in layer_of:
            continue
        final = len(layers) - 1
        placed = [layer_of[p] for p in parents[node.id] if p in layer_of]
        if node.type in TERMINAL_NODE_TYPES or not placed:
            target = final
        else:
            target = max(placed) + 1
        while len(layers) <= target:
            layers.append([])
        layers[target].append(node.id)
        layer_of[node.id] = target

    return layers


def _place_layers(
    layers: list[list[str]],
    nodes_by_id: dict[str, Node],
    config: LayoutConfig,
    center_all: bool = False,
) -> dict[str, tuple[float, float]]:
    """
    Turn layers into top-left coordinates.

    Nodes inside a layer advance by max(spacing, size + min gap), so wide
    nodes never overlap. Layers advance by max(spacing, largest node + min
    gap). Single-node layers are centered on the widest layer; with
    `center_all` every layer is.
    """
    horizontal = config.direction == "left-right"

    if horizontal:
        along_size: Callable[[Node], float] = lambda n: n.height
        across_size: Callable[[Node], float] = lambda n: n.width
        along_spacing, along_gap = config.vertical_spacing, config.min_gap_y
        across_spacing, across_gap = config.horizontal_spacing, config.min_gap_x
        along_start, across_start = config.start_y, config.start_x
    else:
        along_size = lambda n: n.width
        across_size = lambda n: n.height
        along_spacing, along_gap = config.horizontal_spacing, config.min_gap_x
        across_spacing, across_gap = config.vertical_spacing, config.min_gap_y
        along_start, across_start = config.start_x, config.start_y

    def step(node: Node) -> float:
        return max(along_spacing, along_size(node) + along_gap)

    def extent(layer: list[Node]) -> float:
        return sum(step(n) for n in layer[:-1]) + along_size(layer[-1])

    resolved = [[nodes_by_id[nid] for nid in layer] for layer in layers if layer]
    widest = max((extent(layer) for layer in resolved), default=0)

    positions: dict[str, tuple[float, float]] = {}
    across = across_start
    for layer in resolved:
        offset = (widest - extent(layer)) / 2 if (center_all or len(layer) == 1) else 0
        along = along_start + offset
        for node in layer:
            positions[node.id] = (across, along) if horizontal else (along, across)
            along += step(node)
        across += max(across_spacing, max(across_size(n) for n in layer) + across_gap)

    return positions


def _apply_positions(diagram: Diagram, nodes: list[Node], corners: dict[str, tuple[float, float]]) -> Diagram:
    """Write top-left corners into the nodes; centered types store their center instead."""
    placed = []
    for node in nodes:
        x, y = corners[node.id]
        if node.is_centered:
            x, y = x + node.width / 2, y + node.height / 2
        placed.append(node.model_copy(update={"x": x, "y": y}))
    return diagram.with_nodes(placed)


# --- Hierarchical ---

def hierarchical_layout(diagram: Diagram, config: Optional[LayoutConfig] = None) -> Diagram:
    """
    Layered layout for class and generic diagrams.

    Args:
        diagram: Diagram to arrange
        config: Spacing and direction (defaults to LayoutConfig())

    Returns:
        A new diagram with every node positioned
    """
    config = config or LayoutConfig()
    nodes = _sized(diagram.nodes, config)
    if not nodes:
        return diagram

    layers = assign_layers(nodes, diagram.edges)
    positions = _place_layers(layers, {n.id: n for n in nodes}, config)
    return _apply_positions(diagram, nodes, positions)


# --- Use case ---

def usecase_layout(diagram: Diagram, config: Optional[LayoutConfig] = None) -> Diagram:
    """
    Actors in the first column, use cases layered to their right.

    Each connected actor is moved to the barycenter of the use cases it
    touches, then actors are pushed apart so none overlap. Actors without
    associations are stacked below the connected ones.
    """
    config = config or LayoutConfig.for_type(DiagramType.USECASE)
    nodes = _sized(diagram.nodes, config)
    if not nodes:
        return diagram

    actor_ids = [n.id for n in nodes if n.type == NodeType.ACTOR.value]
    actor_set = set(actor_ids)
    rest = [[nid for nid in layer if nid not in actor_set] for layer in assign_layers(nodes, diagram.edges)]
    layers = ([actor_ids] if actor_ids else []) + [layer for layer in rest if layer]

    nodes_by_id = {n.id: n for n in nodes}
    positions = _place_layers(layers, nodes_by_id, config)

    linked: dict[str, list[str]] = defaultdict(list)
    for edge in diagram.edges:
        if edge.source in actor_set and edge.target in nodes_by_id and edge.target not in actor_set:
            linked[edge.source].append(edge.target)
        elif edge.target in actor_set and edge.source in nodes_by_id and edge.source not in actor_set:
            linked[edge.target].append(edge.source)

    connected: list[tuple[str, float]] = []
    lonely: list[str] = []
    for actor_id in actor_ids:
        targets = linked.get(actor_id)
        if not targets:
            lonely.append(actor_id)
            continue
        centers = [positions[t][1] + nodes_by_id[t].height / 2 for t in targets]
        connected.append((actor_id, sum(centers) / len(centers) - nodes_by_id[actor_id].height / 2))

    cursor = -math.inf
    for actor_id, y in sorted(connected, key=lambda item: item[1]):
        y = max(y, cursor)
        positions[actor_id] = (positions[actor_id][0], y)
        cursor = y + nodes_by_id[actor_id].height + config.actor_gap

    if lonely:
        cursor = config.start_y if cursor == -math.inf else cursor
        for actor_id in lonely:
            positions[actor_id] = (positions[actor_id][0], cursor)
            cursor += nodes_by_id[actor_id].height + config.actor_gap

    return _apply_positions(diagram, nodes, positions)


# --- Sequence ---

def sequence_layout(diagram: Diagram, config: Optional[LayoutConfig] = None) -> Diagram:
    """Actors left to right in first-appearance order on one row."""
    config = config or LayoutConfig.for_type(DiagramType.SEQUENCE)
    nodes = _sized(diagram.nodes, config)
    if not nodes:
        return diagram

    positions = {}
    x = config.start_x
    for node in nodes:
        positions[node.id] = (x, config.start_y)
        x += max(config.horizontal_spacing, node.width + config.min_gap_x)
    return _apply_positions(diagram, nodes, positions)


def message_y(order: int, config: Optional[LayoutConfig] = None, actor_height: Optional[float] = None) -> float:
    """Vertical position of the message with the given order."""
    config = config or LayoutConfig.for_type(DiagramType.SEQUENCE)
    lane_top = config.start_y + (config.node_height if actor_height is None else actor_height)
    return lane_top + (order + 1) * config.message_spacing


# --- Mind map ---

def mindmap_node_size(label: str, level: int) -> tuple[float, float]:
    """Width and height of a mind-map node; deeper levels are smaller."""
    length = len(label)
    if level <= 0:
        return float(min(260, max(150, length * 9 + 40))), 50.0
    if level == 1:
        return float(min(220, max(120, length * 8 + 30))), 45.0
    return float(min(200, max(100, length * 7 + 30))), 35.0


def _mindmap_forest(nodes: list[Node], edges: list[Edge]) -> tuple[list[str], dict[str, list[str]]]:
    """Roots and a parent -> children map in which each node has one parent."""
    children, parents = _adjacency(nodes, edges)
    roots = [n.id for n in nodes if n.type == NodeType.ROOT.value or not parents[n.id]]
    if not roots:
        roots = [nodes[0].id]

    tree: dict[str, list[str]] = {n.id: [] for n in nodes}
    seen: set[str] = set()

    def claim(root: str):
        seen.add(root)
        queue = deque([root])
        while queue:
            current = queue.popleft()
            for child in children[current]:
                if child not in seen:
                    seen.add(child)
                    tree[current].append(child)
                    queue.append(child)

    ordered_roots = []
    for root in roots:
        if root not in seen:
            ordered_roots.append(root)
            claim(root)
    # Cycles the roots never reach become trees of their own
    for node in nodes:
        if node.id not in seen:
            ordered_roots.append(node.id)
            claim(node.id)

    return ordered_roots, tree


def subtree_weights(roots: list[str], tree: dict[str, list[str]]) -> dict[str, int]:
    """Number of leaves under each node (a leaf weighs 1)."""
    weights: dict[str, int] = {}

    def weigh(node_id: str) -> int:
        if node_id not in weights:
            kids = tree.get(node_id, [])
            weights[node_id] = sum(weigh(k) for k in kids) if kids else 1
        return weights[node_id]

    for root in roots:
        weigh(root)
    return weights


def subtree_bands(
    node_id: str,
    tree: dict[str, list[str]],
    weights: dict[str, int],
    top: float,
    unit: float,
    bands: Optional[dict[str, tuple[float, float]]] = None,
) -> dict[str, tuple[float, float]]:
    """
    Allocate a (top, span) vertical band to a node and all its descendants.

    A node's span is its weight times `unit`; its children's bands tile that
    span exactly, in child order.
    """
    if bands is None:
        bands = {}
    bands[node_id] = (top, weights[node_id] * unit)
    cursor = top
    for child in tree.get(node_id, []):
        subtree_bands(child, tree, weights, cursor, unit, bands)
        cursor += weights[child] * unit
    return bands


def mindmap_geometry(
    diagram: Diagram,
    config: Optional[LayoutConfig] = None,
) -> tuple[dict[str, tuple[float, float]], dict[str, tuple[float, float]]]:
    """
    Compute mind-map centers and vertical bands before translation.

    Returns:
        (centers, bands) keyed by node id
    """
    config = config or LayoutConfig.for_type(DiagramType.MINDMAP)
    roots, tree = _mindmap_forest(diagram.nodes, diagram.edges)
    weights = subtree_weights(roots, tree)
    unit = config.leaf_spacing

    centers: dict[str, tuple[float, float]] = {}
    bands: dict[str, tuple[float, float]] = {}

    def center_in_bands(node_id: str, depth: int, sign: int):
        top, span = bands[node_id]
        centers[node_id] = (sign * depth * config.level_spacing, top + span / 2)
        for child in tree[node_id]:
            center_in_bands(child, depth + 1, sign)

    offset = 0.0
    for root in roots:
        kids = tree[root]
        split = math.ceil(len(kids) / 2)
        sides = ((kids[:split], 1), (kids[split:], -1))
        tree_height = max(max(sum(weights[k] for k in side) for side, _ in sides), 1) * unit
        root_y = offset + tree_height / 2

        centers[root] = (0.0, root_y)
        bands[root] = (root_y - weights[root] * unit / 2, weights[root] * unit)
        for side, sign in sides:
            cursor = root_y - sum(weights[k] for k in side) * unit / 2
            for child in side:
                subtree_bands(child, tree, weights, cursor, unit, bands)
                center_in_bands(child, 1, sign)
                cursor += weights[child] * unit

        offset += tree_height + unit

    return centers, bands


def mindmap_layout(diagram: Diagram, config: Optional[LayoutConfig] = None) -> Diagram:
    """
    Two-sided tree layout for mind maps. Node x/y are centers.

    The first half of the root's children (rounded up) grows to the right,
    the rest to the left. Every node sits in the middle of a vertical band
    proportional to its leaf count, so sibling subtrees never overlap.
    """
    config = config or LayoutConfig.for_type(DiagramType.MINDMAP)
    if not diagram.nodes:
        return diagram

    nodes = []
    for node in diagram.nodes:
        if node.width is None or node.height is None:
            width, height = mindmap_node_size(node.label, node.level or 0)
            node = node.sized(width, height)
        nodes.append(node)

    centers, _ = mindmap_geometry(diagram.with_nodes(nodes), config)

    min_left = min(centers[n.id][0] - n.width / 2 for n in nodes)
    min_top = min(centers[n.id][1] - n.height / 2 for n in nodes)
    dx = config.start_x - min_left
    dy = config.start_y - min_top

    corners = {n.id: (centers[n.id][0] + dx - n.width / 2, centers[n.id][1] + dy - n.height / 2) for n in nodes}
    return _apply_positions(diagram, nodes, corners)


# --- Flow ---

def consolidate_end_nodes(layers: list[list[str]], nodes_by_id: dict[str, Node]) -> list[list[str]]:
    """Move every end node into one final layer and drop emptied layers."""
    end_ids = [nid for layer in layers for nid in layer if nodes_by_id[nid].type == NodeType.END.value]
    if not end_ids:
        return layers
    ends = set(end_ids)
    kept = [[nid for nid in layer if nid not in ends] for layer in layers]
    return [layer for layer in kept if layer] + [end_ids]


def flow_layout(diagram: Diagram, config: Optional[LayoutConfig] = None) -> Diagram:
    """
    Top-down flowchart layout.

    BFS layering from start nodes, all end nodes gathered in the last layer,
    each layer centered on a common axis. The whole diagram is shifted right
    when a node would start left of `min_x`.
    """
    config = config or LayoutConfig.for_type(DiagramType.FLOW)
    nodes = _sized(diagram.nodes, config)
    if not nodes:
        return diagram

    nodes_by_id = {n.id: n for n in nodes}
    layers = consolidate_end_nodes(assign_layers(nodes, diagram.edges), nodes_by_id)
    positions = _place_layers(layers, nodes_by_id, config, center_all=True)
    shift = max(0.0, config.min_x - min(x for x, _ in positions.values()))
    positions = {nid: (x + shift, y) for nid, (x, y) in positions.items()}
    return _apply_positions(diagram, nodes, positions)


# --- Dispatch ---

LAYOUT_ENGINES: dict[DiagramType, Callable[[Diagram, Optional[LayoutConfig]], Diagram]] = {
    DiagramType.CLASS: hierarchical_layout,
    DiagramType.USECASE: usecase_layout,
    DiagramType.SEQUENCE: sequence_layout,
    DiagramType.FLOW: flow_layout,
    DiagramType.MINDMAP: mindmap_layout,
    DiagramType.GENERIC: hierarchical_layout,
}


def layout_diagram(
    diagram: Diagram,
    diagram_type: Optional[DiagramType | str] = None,
    config: Optional[LayoutConfig] = None,
) -> Diagram:
    """
    Lay out a diagram with the engine for its type.

    Args:
        diagram: Parsed diagram
        diagram_type: Overrides the type recorded in the diagram metadata
        config: Layout settings (defaults to the preset for the type)

    Returns:
        A new, positioned diagram
    """
    dtype = DiagramType(diagram_type or diagram.diagram_type)
    config = config or LayoutConfig.for_type(dtype)
    logger.debug("Laying out %s diagram with %d nodes", dtype.value, len(diagram.nodes))
    return LAYOUT_ENGINES[dtype](diagram, config)
