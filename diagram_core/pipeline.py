"""
End-to-end pipeline: text -> parse -> layout -> optional pagination.

This is the single entry point used by the CLI and the HTTP API.
"""

import logging
from typing import Any, Optional

from pydantic import BaseModel, Field

from .config import MAX_INPUT_LENGTH, LayoutConfig, PaginationConfig
from .exceptions import InputValidationError
from .layout import layout_diagram
from .models import Diagram, DiagramType, IdFactory, Page, ParseResult
from .pagination import paginate_diagram
from .parsers import parse
from .validation import drop_dangling_edges, validate_diagram

logger = logging.getLogger(__name__)


class RenderResult(BaseModel):
    """Outcome of a full pipeline run."""
    success: bool
    error: Optional[str] = None
    diagram: Optional[Diagram] = None
    pages: list[Page] = Field(default_factory=list)
    issues: list[dict[str, Any]] = Field(default_factory=list)
    dropped_edges: list[str] = Field(default_factory=list)

    def to_json_dict(self) -> dict:
        if not self.success:
            return {"success": False, "error": self.error}
        return {
            "success": True,
            "diagram": self.diagram.to_json_dict(),
            "pages": [p.to_json_dict() for p in self.pages],
            "issues": self.issues,
            "dropped_edges": self.dropped_edges,
        }


def validate_input(text: Optional[str], max_length: int = MAX_INPUT_LENGTH) -> None:
    """Reject blank or oversized input before parsing."""
    if text is None or not text.strip():
        raise InputValidationError("Input cannot be empty")
    if len(text) > max_length:
        raise InputValidationError(f"Input is too long ({len(text)} characters, limit is {max_length})")


def parse_text(text: str, diagram_type: DiagramType | str, id_factory: Optional[IdFactory] = None) -> ParseResult:
    """Validate the input, then parse it. Never raises."""
    try:
        validate_input(text)
    except InputValidationError as e:
        return ParseResult.fail(str(e))
    return parse(text, diagram_type, id_factory)


def render_diagram(
    diagram: Diagram,
    diagram_type: Optional[DiagramType | str] = None,
    layout_config: Optional[LayoutConfig] = None,
    pagination_config: Optional[PaginationConfig] = None,
    paginate: bool = False,
) -> RenderResult:
    """
    Lay out an already-built diagram and optionally paginate it.

    Dangling edges are reported as validation issues, dropped before layout
    and listed in `dropped_edges`.
    """
    dtype = DiagramType(diagram_type or diagram.diagram_type)
    issues = [issue.to_dict() for issue in validate_diagram(diagram)]

    diagram, dropped = drop_dangling_edges(diagram)
    if dropped:
        logger.warning("Dropped %d edge(s) with missing endpoints: %s",
                       len(dropped), ", ".join(e.id for e in dropped))

    positioned = layout_diagram(diagram, dtype, layout_config)
    pages = paginate_diagram(positioned, dtype, pagination_config) if paginate else []

    return RenderResult(
        success=True,
        diagram=positioned,
        pages=pages,
        issues=issues,
        dropped_edges=[e.id for e in dropped],
    )


def render_text(
    text: str,
    diagram_type: DiagramType | str,
    layout_config: Optional[LayoutConfig] = None,
    pagination_config: Optional[PaginationConfig] = None,
    paginate: bool = False,
    id_factory: Optional[IdFactory] = None,
) -> RenderResult:
    """
    Parse, lay out and optionally paginate diagram text.

    Args:
        text: Diagram source
        diagram_type: Language of the source
        layout_config: Layout settings (defaults to the preset for the type)
        pagination_config: Page limits (defaults to PaginationConfig())
        paginate: Whether to split the result into pages
        id_factory: Id generator for the parse

    Returns:
        RenderResult; `success` is False when the text could not be parsed
    """
    result = parse_text(text, diagram_type, id_factory)
    if not result.success:
        return RenderResult(success=False, error=result.error)
    return render_diagram(result.data, diagram_type, layout_config, pagination_config, paginate)
