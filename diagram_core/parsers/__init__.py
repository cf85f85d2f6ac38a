"""Text parsers, one per diagram language."""

from typing import Optional

from ..models import DiagramType, IdFactory, ParseResult
from .class_parser import parse_class_diagram
from .flow_parser import parse_flow_diagram
from .mindmap_parser import parse_mindmap
from .sequence_parser import parse_sequence_diagram
from .usecase_parser import parse_usecase_diagram

PARSERS = {
    DiagramType.CLASS: parse_class_diagram,
    DiagramType.SEQUENCE: parse_sequence_diagram,
    DiagramType.FLOW: parse_flow_diagram,
    DiagramType.USECASE: parse_usecase_diagram,
    DiagramType.MINDMAP: parse_mindmap,
}


def parse(text: str, diagram_type: DiagramType | str, id_factory: Optional[IdFactory] = None) -> ParseResult:
    """Dispatch to the parser for `diagram_type`."""
    try:
        parser = PARSERS[DiagramType(diagram_type)]
    except (KeyError, ValueError):
        value = getattr(diagram_type, "value", diagram_type)
        return ParseResult.fail(f"Unsupported diagram type: {value}")
    return parser(text, id_factory)


__all__ = [
    "PARSERS",
    "parse",
    "parse_class_diagram",
    "parse_flow_diagram",
    "parse_mindmap",
    "parse_sequence_diagram",
    "parse_usecase_diagram",
]
