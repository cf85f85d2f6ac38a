"""
Diagram Tool Core - parsers, layout engines, edge routing and pagination.

This package turns small text languages (class, sequence, flow, use-case and
mind-map diagrams) into positioned graphs. The CLI and the HTTP backend are
thin wrappers around the functions exported here.
"""

__version__ = "1.0.0"

from .models import (
    # Enums
    DiagramType,
    NodeType,
    EdgeType,
    Visibility,
    # Core models
    Node,
    Edge,
    DiagramMetadata,
    Diagram,
    Page,
    ViewBox,
    ContinuationMarker,
    ParseResult,
    # Id factories
    SequentialIds,
    UuidIds,
)
from .config import LayoutConfig, PaginationConfig, Settings
from .exceptions import (
    DiagramError,
    ParseError,
    EmptyDiagramError,
    InputValidationError,
    UnsupportedDiagramTypeError,
)
from .parsers import parse
from .layout import layout_diagram, hierarchical_layout, mindmap_layout, flow_layout
from .edges import route_edges, connection_points
from .pagination import paginate_diagram
from .pipeline import render_text, render_diagram, RenderResult
from .validation import validate_diagram, ValidationIssue, IssueSeverity
from .analysis import summarize_diagram, find_connected_components

__all__ = [
    "__version__",
    # Enums
    "DiagramType",
    "NodeType",
    "EdgeType",
    "Visibility",
    # Models
    "Node",
    "Edge",
    "DiagramMetadata",
    "Diagram",
    "Page",
    "ViewBox",
    "ContinuationMarker",
    "ParseResult",
    "SequentialIds",
    "UuidIds",
    # Config
    "LayoutConfig",
    "PaginationConfig",
    "Settings",
    # Errors
    "DiagramError",
    "ParseError",
    "EmptyDiagramError",
    "InputValidationError",
    "UnsupportedDiagramTypeError",
    # Pipeline
    "parse",
    "layout_diagram",
    "hierarchical_layout",
    "mindmap_layout",
    "flow_layout",
    "route_edges",
    "connection_points",
    "paginate_diagram",
    "render_text",
    "render_diagram",
    "RenderResult",
    # Validation
    "validate_diagram",
    "ValidationIssue",
    "IssueSeverity",
    # Analysis
    "summarize_diagram",
    "find_connected_components",
]
