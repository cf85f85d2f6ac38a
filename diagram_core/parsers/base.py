"""
Shared plumbing for the text parsers.

Every parser is a plain function decorated with `parser_boundary`, which
guarantees the parser contract: the caller always gets a ParseResult and
never an exception.
"""

import functools
import logging
from typing import Callable, Optional

from ..exceptions import EmptyDiagramError, ParseError
from ..models import Diagram, DiagramMetadata, DiagramType, Edge, IdFactory, Node, ParseResult, SequentialIds

logger = logging.getLogger(__name__)

DIAGRAM_TITLES = {
    DiagramType.CLASS: "Class Diagram",
    DiagramType.SEQUENCE: "Sequence Diagram",
    DiagramType.FLOW: "Flow Diagram",
    DiagramType.USECASE: "Use Case Diagram",
    DiagramType.MINDMAP: "Mind Map",
    DiagramType.GENERIC: "Diagram",
}

ParserFunc = Callable[[str, IdFactory], Diagram]


def parser_boundary(diagram_type: DiagramType) -> Callable[[ParserFunc], Callable[..., ParseResult]]:
    """Wrap a parser so it returns ParseResult and absorbs every failure."""

    def decorator(func: ParserFunc) -> Callable[..., ParseResult]:
        @functools.wraps(func)
        def wrapper(text: str, id_factory: Optional[IdFactory] = None) -> ParseResult:
            if text is None or not text.strip():
                return ParseResult.fail("Input cannot be empty")
            try:
                diagram = func(text, id_factory or SequentialIds())
            except ParseError as e:
                logger.info("Could not parse %s diagram: %s", diagram_type.value, e)
                return ParseResult.fail(str(e))
            except Exception as e:
                logger.exception("Unexpected error while parsing %s diagram", diagram_type.value)
                return ParseResult.fail(f"Failed to parse {diagram_type.value} diagram: {e}")
            return ParseResult.ok(diagram)

        wrapper.diagram_type = diagram_type
        return wrapper

    return decorator


def content_lines(text: str) -> list[tuple[int, str]]:
    """Trimmed, non-empty lines with their 1-based line numbers."""
    result = []
    for number, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if line:
            result.append((number, line))
    return result


def build_diagram(diagram_type: DiagramType, nodes: list[Node], edges: list[Edge]) -> Diagram:
    """Assemble the parser output, failing when nothing usable was extracted."""
    if not nodes:
        raise EmptyDiagramError(f"No valid nodes found in {diagram_type.value} input")
    title = DIAGRAM_TITLES[diagram_type]
    return Diagram(
        name=title,
        nodes=nodes,
        edges=edges,
        metadata=DiagramMetadata(title=title, diagram_type=diagram_type),
    )
