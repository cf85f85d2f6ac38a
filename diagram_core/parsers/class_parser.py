"""
Class diagram parser.

Grammar:

    class Name [extends Parent] {
        -name: type
        +method(param: type, ...): returnType
    }

Text after the header (`implements ...`) is ignored; members may also sit on
the header line separated by `;`, as in `class A { +x: int }`.

Inheritance is resolved after every class is known, so a child may name a
parent declared further down (or never, in which case no edge is drawn).
"""

import logging
import re
from typing import Optional

from ..models import (
    ClassAttribute,
    ClassMethod,
    DiagramType,
    Edge,
    EdgeType,
    IdFactory,
    MethodParameter,
    Node,
    NodeType,
    Visibility,
)
from .base import build_diagram, content_lines, parser_boundary

logger = logging.getLogger(__name__)

CLASS_RE = re.compile(r"^class\s+(\w+)(?:\s+extends\s+(\w+))?")
METHOD_RE = re.compile(r"^(\w+)\s*\(([^)]*)\)\s*(?::\s*(\S.*?))?\s*$")
ATTRIBUTE_RE = re.compile(r"^(\w+)\s*:\s*(\S.*?)\s*$")
MEMBER_PREFIXES = ("+", "-", "#")

# Box geometry
TITLE_HEIGHT = 30
LINE_HEIGHT = 18
SEPARATOR_HEIGHT = 15
BOTTOM_PADDING = 30
MIN_HEIGHT = 80
MIN_WIDTH = 200
MAX_WIDTH = 400
CHAR_WIDTH = 8
WIDTH_PADDING = 40


class _ClassBuilder:
    """Accumulates one class block until it is closed."""

    def __init__(self, node_id: str, name: str, parent: Optional[str]):
        self.node_id = node_id
        self.name = name
        self.parent = parent
        self.attributes: list[ClassAttribute] = []
        self.methods: list[ClassMethod] = []

    def add_member(self, line: str) -> bool:
        visibility = Visibility.from_symbol(line[0])
        content = line[1:].strip()

        if "(" in content:
            match = METHOD_RE.match(content)
            if not match:
                return False
            name, params, return_type = match.groups()
            self.methods.append(ClassMethod(
                name=name,
                return_type=return_type or "void",
                parameters=_parse_parameters(params),
                visibility=visibility,
            ))
            return True

        match = ATTRIBUTE_RE.match(content)
        if not match:
            return False
        name, type_ = match.groups()
        self.attributes.append(ClassAttribute(name=name, type=type_, visibility=visibility))
        return True

    def build(self) -> Node:
        width, height = class_box_size(self.name, self.attributes, self.methods)
        return Node(
            id=self.node_id,
            type=NodeType.CLASS.value,
            label=self.name,
            width=width,
            height=height,
            data={
                "class_name": self.name,
                "parent": self.parent,
                "attributes": list(self.attributes),
                "methods": list(self.methods),
            },
        )


def _parse_parameters(params: str) -> list[MethodParameter]:
    result = []
    for chunk in params.split(","):
        chunk = chunk.strip()
        if not chunk:
            continue
        name, _, type_ = chunk.partition(":")
        result.append(MethodParameter(name=name.strip(), type=type_.strip() or "void"))
    return result


def _inline_body(header: str) -> tuple[list[str], bool]:
    """
    Members written on the header line and whether the block closes there.

    `class A { +x: int; +y: int }` yields two members and closes A. A trailing
    `//` comment is dropped first.
    """
    _, brace, rest = header.split("//", 1)[0].partition("{")
    if not brace:
        return [], False
    rest = rest.rstrip()
    closed = rest.endswith("}")
    if closed:
        rest = rest[:-1]
    members = [m.strip() for m in rest.split(";")]
    return [m for m in members if m.startswith(MEMBER_PREFIXES)], closed


def class_box_size(
    name: str,
    attributes: list[ClassAttribute],
    methods: list[ClassMethod],
) -> tuple[float, float]:
    """Width and height of a class box from its rendered members."""
    needs_separator = bool(attributes) and bool(methods)
    height = (
        TITLE_HEIGHT
        + len(attributes) * LINE_HEIGHT
        + (SEPARATOR_HEIGHT if needs_separator else 0)
        + len(methods) * LINE_HEIGHT
        + BOTTOM_PADDING
    )
    longest = max(
        [len(name)]
        + [len(a.render()) for a in attributes]
        + [len(m.render()) for m in methods]
    )
    width = max(MIN_WIDTH, min(MAX_WIDTH, longest * CHAR_WIDTH + WIDTH_PADDING))
    return float(width), float(max(MIN_HEIGHT, height))


@parser_boundary(DiagramType.CLASS)
def parse_class_diagram(text: str, id_factory: IdFactory):
    """Parse class diagram text into class nodes and inheritance edges."""
    nodes: list[Node] = []
    known: dict[str, str] = {}  # class name -> node id
    pending_inheritance: list[tuple[str, str]] = []  # (child node id, parent name)
    current: Optional[_ClassBuilder] = None

    def finish():
        nonlocal current
        if current is not None:
            nodes.append(current.build())
            current = None

    for number, line in content_lines(text):
        if line.startswith("class "):
            finish()
            match = CLASS_RE.match(line)
            if not match:
                logger.debug("Skipping malformed class declaration on line %d: %r", number, line)
                continue
            name, parent = match.groups()
            if name in known:
                logger.debug("Ignoring repeated declaration of class %s on line %d", name, number)
                continue
            current = _ClassBuilder(id_factory("n"), name, parent)
            known[name] = current.node_id
            if parent:
                pending_inheritance.append((current.node_id, parent))
            # Clauses such as `implements Pet` are ignored; inline members are kept
            body, closed = _inline_body(line)
            for member in body:
                if not current.add_member(member):
                    logger.debug("Skipping malformed member on line %d: %r", number, member)
            if closed:
                finish()
        elif line.startswith(MEMBER_PREFIXES) and current is not None:
            if not current.add_member(line):
                logger.debug("Skipping malformed member on line %d: %r", number, line)
        elif line == "}":
            finish()
        else:
            logger.debug("Skipping unrecognised line %d: %r", number, line)

    # Handle case where last class doesn't have closing brace
    finish()

    edges: list[Edge] = []
    for child_id, parent_name in pending_inheritance:
        parent_id = known.get(parent_name)
        if parent_id is None:
            logger.debug("Parent class %s is never declared; no inheritance edge", parent_name)
            continue
        edges.append(Edge(
            id=id_factory("e"),
            source=child_id,
            target=parent_id,
            type=EdgeType.INHERITANCE.value,
            label="extends",
        ))

    return build_diagram(DiagramType.CLASS, nodes, edges)
