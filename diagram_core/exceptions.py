"""Exceptions raised inside the diagram core.

Parsers raise these internally and convert them into failed ParseResults at
their boundary; the pipeline, CLI and HTTP API map them onto their own
error channels.
"""
from typing import Optional


class DiagramError(Exception):
    """Base class for all diagram core errors."""


class ParseError(DiagramError):
    """Raised when diagram text cannot be turned into a diagram."""

    def __init__(self, message: str, line_number: Optional[int] = None, line: Optional[str] = None):
        self.line_number = line_number  # 1-based, None when not tied to a line
        self.line = line
        if line_number is not None:
            message = f"{message} (line {line_number})"
        super().__init__(message)


class EmptyDiagramError(ParseError):
    """Raised when a parser extracted zero usable nodes."""


class InputValidationError(DiagramError):
    """Raised when input text is rejected before parsing (blank or too long)."""


class UnsupportedDiagramTypeError(DiagramError, ValueError):
    """Raised for a diagram type no parser or layout engine handles."""

    def __init__(self, diagram_type):
        self.diagram_type = diagram_type
        super().__init__(f"Unsupported diagram type: {diagram_type}")
