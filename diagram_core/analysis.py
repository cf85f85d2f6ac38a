"""
Diagram analysis - Graph and geometry utilities.

Used by pagination to find splitting units (bounds, one-hop clusters, BFS
levels) and by the CLI/API `summarize` operation to describe a diagram.
"""

from collections import defaultdict, deque
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .models import Diagram, Edge, Node


@dataclass(frozen=True)
class DiagramBounds:
    """Axis-aligned bounding box of a set of nodes."""
    min_x: float = 0
    min_y: float = 0
    max_x: float = 0
    max_y: float = 0

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y

    def union(self, other: "DiagramBounds") -> "DiagramBounds":
        return DiagramBounds(
            min(self.min_x, other.min_x),
            min(self.min_y, other.min_y),
            max(self.max_x, other.max_x),
            max(self.max_y, other.max_y),
        )

    def fits(self, max_width: float, max_height: float) -> bool:
        return self.width <= max_width and self.height <= max_height

    def to_dict(self) -> dict:
        return {
            "min_x": self.min_x, "min_y": self.min_y,
            "max_x": self.max_x, "max_y": self.max_y,
            "width": self.width, "height": self.height,
        }


def calculate_bounds(nodes: list["Node"]) -> DiagramBounds:
    """Bounding box over node rectangles (all zeros for no nodes)."""
    if not nodes:
        return DiagramBounds()
    boxes = [n.bounds() for n in nodes]
    return DiagramBounds(
        min(b[0] for b in boxes),
        min(b[1] for b in boxes),
        max(b[2] for b in boxes),
        max(b[3] for b in boxes),
    )


def _undirected(nodes: list["Node"], edges: list["Edge"]) -> dict[str, list[str]]:
    adjacency: dict[str, list[str]] = {n.id: [] for n in nodes}
    for edge in edges:
        if edge.source in adjacency and edge.target in adjacency:
            adjacency[edge.source].append(edge.target)
            adjacency[edge.target].append(edge.source)
    return adjacency


def find_one_hop_clusters(nodes: list["Node"], edges: list["Edge"]) -> list[list["Node"]]:
    """
    Group nodes into clusters of a seed plus its unvisited direct neighbours.

    Seeds are taken in node order; every node ends up in exactly one cluster.
    """
    adjacency = _undirected(nodes, edges)
    by_id = {n.id: n for n in nodes}
    visited: set[str] = set()
    clusters = []

    for node in nodes:
        if node.id in visited:
            continue
        visited.add(node.id)
        cluster = [node]
        for neighbor in adjacency[node.id]:
            if neighbor not in visited:
                visited.add(neighbor)
                cluster.append(by_id[neighbor])
        clusters.append(cluster)

    return clusters


def bfs_levels(nodes: list["Node"], edges: list["Edge"], root_id: Optional[str] = None) -> list[list["Node"]]:
    """
    Group nodes by directed BFS distance from a root.

    Nodes the root cannot reach form one trailing level.

    Args:
        nodes: Nodes to group
        edges: Directed edges
        root_id: Start node (defaults to the first node)
    """
    if not nodes:
        return []
    by_id = {n.id: n for n in nodes}
    root_id = root_id if root_id in by_id else nodes[0].id

    children: dict[str, list[str]] = defaultdict(list)
    for edge in edges:
        if edge.source in by_id and edge.target in by_id:
            children[edge.source].append(edge.target)

    levels: list[list["Node"]] = []
    visited = {root_id}
    queue = deque([(root_id, 0)])
    while queue:
        node_id, depth = queue.popleft()
        if depth == len(levels):
            levels.append([])
        levels[depth].append(by_id[node_id])
        for child in children[node_id]:
            if child not in visited:
                visited.add(child)
                queue.append((child, depth + 1))

    unreachable = [n for n in nodes if n.id not in visited]
    if unreachable:
        levels.append(unreachable)
    return levels


@dataclass
class ConnectedComponent:
    """A connected component in the diagram graph."""
    node_ids: list[str] = field(default_factory=list)
    edge_count: int = 0

    @property
    def size(self) -> int:
        return len(self.node_ids)


@dataclass
class NodeConnectionInfo:
    """Connection information for a single node."""
    node_id: str
    label: str
    incoming: int = 0   # Edges pointing to this node
    outgoing: int = 0   # Edges pointing from this node

    @property
    def total(self) -> int:
        return self.incoming + self.outgoing


@dataclass
class DiagramSummary:
    """Structural summary of a diagram."""
    name: str
    diagram_type: str
    total_nodes: int
    total_edges: int
    nodes_by_type: dict[str, int]
    edges_by_type: dict[str, int]
    connected_components: int
    most_connected_nodes: list[NodeConnectionInfo]
    orphan_count: int
    bounds: DiagramBounds

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "name": self.name,
            "diagram_type": self.diagram_type,
            "total_nodes": self.total_nodes,
            "total_edges": self.total_edges,
            "nodes_by_type": self.nodes_by_type,
            "edges_by_type": self.edges_by_type,
            "connected_components": self.connected_components,
            "most_connected_nodes": [
                {
                    "id": n.node_id,
                    "label": n.label,
                    "connections": n.total,
                    "incoming": n.incoming,
                    "outgoing": n.outgoing
                }
                for n in self.most_connected_nodes
            ],
            "orphan_count": self.orphan_count,
            "bounds": self.bounds.to_dict(),
        }


def find_connected_components(diagram: "Diagram") -> list[ConnectedComponent]:
    """
    Find all connected components in the diagram using BFS.

    Edges are treated as undirected; dangling edges are ignored.

    Args:
        diagram: The diagram to analyze

    Returns:
        List of ConnectedComponent objects
    """
    if not diagram.nodes:
        return []

    adjacency = _undirected(diagram.nodes, diagram.edges)
    component_of: dict[str, int] = {}
    components: list[ConnectedComponent] = []

    for node in diagram.nodes:
        if node.id in component_of:
            continue
        index = len(components)
        component = ConnectedComponent()
        queue = deque([node.id])
        component_of[node.id] = index
        while queue:
            current = queue.popleft()
            component.node_ids.append(current)
            for neighbor in adjacency[current]:
                if neighbor not in component_of:
                    component_of[neighbor] = index
                    queue.append(neighbor)
        components.append(component)

    for edge in diagram.edges:
        if edge.source in component_of and edge.target in component_of:
            components[component_of[edge.source]].edge_count += 1

    return components


def calculate_node_connections(diagram: "Diagram") -> dict[str, NodeConnectionInfo]:
    """Incoming/outgoing edge counts for every node."""
    connections: dict[str, NodeConnectionInfo] = {
        node.id: NodeConnectionInfo(node_id=node.id, label=node.label)
        for node in diagram.nodes
    }
    for edge in diagram.edges:
        if edge.source in connections:
            connections[edge.source].outgoing += 1
        if edge.target in connections:
            connections[edge.target].incoming += 1
    return connections


def summarize_diagram(diagram: "Diagram", top_n: int = 5) -> DiagramSummary:
    """
    Generate a summary of a diagram.

    Args:
        diagram: The diagram to summarize
        top_n: Number of top connected nodes to include

    Returns:
        DiagramSummary object with all analysis results
    """
    type_counts: dict[str, int] = defaultdict(int)
    for node in diagram.nodes:
        type_counts[node.type] += 1

    edge_type_counts: dict[str, int] = defaultdict(int)
    for edge in diagram.edges:
        edge_type_counts[edge.type or "untyped"] += 1

    connections = calculate_node_connections(diagram)
    sorted_by_connections = sorted(connections.values(), key=lambda x: x.total, reverse=True)
    most_connected = [n for n in sorted_by_connections[:top_n] if n.total > 0]

    return DiagramSummary(
        name=diagram.name,
        diagram_type=diagram.diagram_type.value,
        total_nodes=len(diagram.nodes),
        total_edges=len(diagram.edges),
        nodes_by_type=dict(type_counts),
        edges_by_type=dict(edge_type_counts),
        connected_components=len(find_connected_components(diagram)),
        most_connected_nodes=most_connected,
        orphan_count=sum(1 for n in connections.values() if n.total == 0),
        bounds=calculate_bounds(diagram.nodes),
    )
