"""
Core data models for diagrams.

These models define the canonical schema shared by parsers, layout engines,
edge routing and pagination:
- Nodes with a type tag, geometry and a type-specific payload
- Edges connecting nodes (using source/target naming convention)
- Diagrams and the Pages that pagination cuts them into
- Parse results returned by every text parser

Field Naming Convention:
- Edges use `source` and `target` internally
- JSON serialization outputs `from`/`to`, which is what renderers consume
- `from`/`to` (and `from_node`/`to_node`) are accepted on input and converted

All models are frozen. Layout and pagination never mutate a node in place;
they build new objects with `model_copy(update=...)`.
"""

import itertools
import uuid
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class DiagramType(str, Enum):
    """Text languages understood by the parsers."""
    CLASS = "class"
    SEQUENCE = "sequence"
    FLOW = "flow"
    USECASE = "usecase"
    MINDMAP = "mindmap"
    GENERIC = "generic"  # Programmatic diagrams, laid out hierarchically


class NodeType(str, Enum):
    """Closed set of node tags (semantic meaning and shape hint)."""
    CLASS = "class"
    ACTOR = "actor"
    START = "start"
    END = "end"
    PROCESS = "process"
    DECISION = "decision"
    INPUT = "input"
    OUTPUT = "output"
    USECASE = "usecase"
    ROOT = "root"
    BRANCH = "branch"
    LEAF = "leaf"
    GENERIC = "node"


class EdgeType(str, Enum):
    """Edge tags that select rendering and routing treatment."""
    INHERITANCE = "inheritance"
    ASSOCIATION = "association"
    SYNC = "sync"
    ASYNC = "async"
    RETURN = "return"
    EXTENDS = "extends"
    INCLUDES = "includes"


class Visibility(str, Enum):
    """Member visibility in class diagrams."""
    PUBLIC = "public"
    PRIVATE = "private"
    PROTECTED = "protected"

    @property
    def symbol(self) -> str:
        return {"public": "+", "private": "-", "protected": "#"}[self.value]

    @classmethod
    def from_symbol(cls, symbol: str) -> "Visibility":
        if symbol == "+":
            return cls.PUBLIC
        if symbol == "-":
            return cls.PRIVATE
        return cls.PROTECTED


# Node types whose stored x/y is the shape center rather than the top-left corner
CENTERED_NODE_TYPES = frozenset({NodeType.ROOT.value, NodeType.BRANCH.value, NodeType.LEAF.value})


# --- Id generation ---

IdFactory = Callable[[str], str]


class SequentialIds:
    """Deterministic id factory: n1, n2, ... for nodes and e1, e2, ... for edges.

    A fresh instance is created for every parse call, so re-parsing the same
    text yields the same ids.
    """

    def __init__(self):
        self._counters: dict[str, itertools.count] = {}

    def __call__(self, prefix: str) -> str:
        counter = self._counters.setdefault(prefix, itertools.count(1))
        return f"{prefix}{next(counter)}"


class UuidIds:
    """Random id factory (n<hex8> / e<hex8>)."""

    def __call__(self, prefix: str) -> str:
        return f"{prefix}{uuid.uuid4().hex[:8]}"


def generate_node_id() -> str:
    """Generate a unique node ID."""
    return UuidIds()("n")


def generate_edge_id() -> str:
    """Generate a unique edge ID."""
    return UuidIds()("e")


# --- Class diagram payload ---

class ClassAttribute(BaseModel):
    """A typed field of a class."""
    model_config = ConfigDict(frozen=True)

    name: str
    type: str
    visibility: Visibility = Visibility.PUBLIC

    def render(self) -> str:
        return f"{self.visibility.symbol} {self.name}: {self.type}"


class MethodParameter(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    type: str = "void"


class ClassMethod(BaseModel):
    """A method signature of a class."""
    model_config = ConfigDict(frozen=True)

    name: str
    return_type: str
    parameters: list[MethodParameter] = Field(default_factory=list)
    visibility: Visibility = Visibility.PUBLIC

    def render(self) -> str:
        params = ", ".join(f"{p.name}: {p.type}" for p in self.parameters)
        return f"{self.visibility.symbol} {self.name}({params}): {self.return_type}"


# --- Graph ---

class Node(BaseModel):
    """A node in the diagram.

    Width and height stay None until something sizes the node; parsers size
    nodes from their content and layout only fills the gaps.
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=generate_node_id)
    type: str = NodeType.GENERIC.value
    label: str = ""
    x: float = 0
    y: float = 0
    width: Optional[float] = None
    height: Optional[float] = None
    data: dict[str, Any] = Field(default_factory=dict)

    @field_validator("width", "height")
    @classmethod
    def validate_positive_dimensions(cls, v):
        """Ensure dimensions are positive when present."""
        if v is not None and v <= 0:
            raise ValueError("Dimensions must be positive numbers")
        return v

    @property
    def is_centered(self) -> bool:
        """True when x/y holds the shape center (mind-map nodes)."""
        return self.type in CENTERED_NODE_TYPES

    @property
    def level(self) -> Optional[int]:
        return self.data.get("level")

    def sized(self, default_width: float, default_height: float) -> "Node":
        """Return this node with missing dimensions filled in."""
        if self.width is not None and self.height is not None:
            return self
        return self.model_copy(update={
            "width": self.width if self.width is not None else default_width,
            "height": self.height if self.height is not None else default_height,
        })

    def center(self) -> tuple[float, float]:
        """Get the center point of the node."""
        left, top, right, bottom = self.bounds()
        return ((left + right) / 2, (top + bottom) / 2)

    def bounds(self) -> tuple[float, float, float, float]:
        """Get the bounding box (x, y, right, bottom), honoring centered types."""
        width = self.width or 0
        height = self.height or 0
        if self.is_centered:
            return (self.x - width / 2, self.y - height / 2, self.x + width / 2, self.y + height / 2)
        return (self.x, self.y, self.x + width, self.y + height)


class Edge(BaseModel):
    """
    An edge connecting two nodes.

    Uses `source` and `target` as canonical field names.
    Accepts `from`/`to` on input.
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=generate_edge_id)
    source: str  # Source node ID
    target: str  # Target node ID
    label: str = ""
    type: Optional[str] = None
    data: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode='before')
    @classmethod
    def convert_legacy_fields(cls, data: Any) -> Any:
        """Convert 'from'/'to' fields to 'source'/'target'."""
        if isinstance(data, dict):
            data = dict(data)
            # Handle 'from' -> 'source' (from is a Python keyword)
            if 'from' in data and 'source' not in data:
                data['source'] = data.pop('from')
            if 'from_node' in data and 'source' not in data:
                data['source'] = data.pop('from_node')
            # Handle 'to' -> 'target'
            if 'to' in data and 'target' not in data:
                data['target'] = data.pop('to')
            if 'to_node' in data and 'target' not in data:
                data['target'] = data.pop('to_node')
        return data

    @property
    def order(self) -> Optional[int]:
        return self.data.get("order")

    def to_json_dict(self) -> dict:
        """Convert to JSON-serializable dict."""
        result = {
            "id": self.id,
            "from": self.source,
            "to": self.target,
            "label": self.label,
        }
        # Only include optional parts if they're set
        if self.type:
            result["type"] = self.type
        if self.data:
            result["data"] = dict(self.data)
        return result


class DiagramMetadata(BaseModel):
    """Metadata about the diagram."""
    model_config = ConfigDict(frozen=True)

    title: str = ""
    description: str = ""
    diagram_type: DiagramType = DiagramType.GENERIC
    created_at: datetime = Field(default_factory=datetime.utcnow)


class Diagram(BaseModel):
    """
    The complete diagram structure handed from parsers to layout and from
    layout to renderers and pagination.
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: f"diagram-{uuid.uuid4().hex[:8]}")
    name: str = "Untitled Diagram"
    nodes: list[Node] = Field(default_factory=list)
    edges: list[Edge] = Field(default_factory=list)
    metadata: DiagramMetadata = Field(default_factory=DiagramMetadata)

    @model_validator(mode="after")
    def validate_unique_node_ids(self) -> "Diagram":
        seen: set[str] = set()
        for node in self.nodes:
            if node.id in seen:
                raise ValueError(f"Duplicate node id: {node.id}")
            seen.add(node.id)
        return self

    @property
    def diagram_type(self) -> DiagramType:
        return self.metadata.diagram_type

    def node_map(self) -> dict[str, Node]:
        return {n.id: n for n in self.nodes}

    def get_node(self, node_id: str) -> Optional[Node]:
        """Get a node by ID (O(n) - use node_map() for repeated lookups)."""
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def get_edge(self, edge_id: str) -> Optional[Edge]:
        """Get an edge by ID."""
        for edge in self.edges:
            if edge.id == edge_id:
                return edge
        return None

    def with_nodes(self, nodes: list[Node]) -> "Diagram":
        """Return a copy carrying new node geometry, edges untouched."""
        return self.model_copy(update={"nodes": list(nodes)})

    def to_json_dict(self) -> dict:
        """Convert to JSON-serializable dict with proper field names."""
        return {
            "id": self.id,
            "name": self.name,
            "nodes": [n.model_dump(mode="json") for n in self.nodes],
            "edges": [e.to_json_dict() for e in self.edges],
            "metadata": self.metadata.model_dump(mode="json"),
        }

    @classmethod
    def from_json_dict(cls, data: dict) -> "Diagram":
        """Create a Diagram from a JSON dict (edges may use from/to)."""
        metadata = data.get("metadata") or {}
        return cls(
            id=data.get("id", f"diagram-{uuid.uuid4().hex[:8]}"),
            name=data.get("name", "Untitled Diagram"),
            nodes=[Node(**n) for n in data.get("nodes", [])],
            edges=[Edge(**e) for e in data.get("edges", [])],
            metadata=DiagramMetadata(**metadata),
        )


# --- Pagination output ---

class ViewBox(BaseModel):
    model_config = ConfigDict(frozen=True)

    x: float
    y: float
    width: float
    height: float


class ContinuationMarker(BaseModel):
    """An edge that leaves the page it is drawn on."""
    model_config = ConfigDict(frozen=True)

    edge_id: str
    node_id: str       # Endpoint present on this page
    direction: str     # "outgoing" or "incoming"
    other_page: int    # Page holding the other endpoint


class Page(BaseModel):
    """A bounded, edge-filtered view of a larger diagram."""
    model_config = ConfigDict(frozen=True)

    page_number: int
    total_pages: int
    nodes: list[Node]
    edges: list[Edge]
    view_box: ViewBox
    title: str
    continuations: list[ContinuationMarker] = Field(default_factory=list)

    def to_json_dict(self) -> dict:
        return {
            "page_number": self.page_number,
            "total_pages": self.total_pages,
            "title": self.title,
            "view_box": self.view_box.model_dump(),
            "nodes": [n.model_dump(mode="json") for n in self.nodes],
            "edges": [e.to_json_dict() for e in self.edges],
            "continuations": [c.model_dump() for c in self.continuations],
        }


# --- Parser output ---

class ParseResult(BaseModel):
    """Outcome of a parse: either a diagram or an error message, never both."""
    model_config = ConfigDict(frozen=True)

    success: bool
    data: Optional[Diagram] = None
    error: Optional[str] = None

    @model_validator(mode="after")
    def validate_discriminant(self) -> "ParseResult":
        if self.success and self.data is None:
            raise ValueError("Successful parse result requires data")
        if not self.success and not self.error:
            raise ValueError("Failed parse result requires an error message")
        return self

    @classmethod
    def ok(cls, diagram: Diagram) -> "ParseResult":
        return cls(success=True, data=diagram)

    @classmethod
    def fail(cls, error: str) -> "ParseResult":
        return cls(success=False, error=error)

    def to_json_dict(self) -> dict:
        if self.success:
            return {"success": True, "data": self.data.to_json_dict()}
        return {"success": False, "error": self.error}
