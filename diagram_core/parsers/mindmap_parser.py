"""
Mind-map parser.

Indentation defines the tree: every two leading spaces (a tab counts as two)
is one level. Level 0 lines are roots, level 1 branches, deeper lines leaves.
Lines starting with "//" are comments.
"""

import logging

from ..layout import mindmap_node_size
from ..models import DiagramType, Edge, IdFactory, Node, NodeType
from .base import build_diagram, parser_boundary

logger = logging.getLogger(__name__)

INDENT_WIDTH = 2


def indentation_level(raw_line: str) -> int:
    expanded = raw_line.expandtabs(INDENT_WIDTH)
    return (len(expanded) - len(expanded.lstrip(" "))) // INDENT_WIDTH


def _node_type(level: int) -> NodeType:
    if level == 0:
        return NodeType.ROOT
    if level == 1:
        return NodeType.BRANCH
    return NodeType.LEAF


@parser_boundary(DiagramType.MINDMAP)
def parse_mindmap(text: str, id_factory: IdFactory):
    """Parse an indented outline into a tree of root, branch and leaf nodes."""
    nodes: list[Node] = []
    edges: list[Edge] = []
    stack: list[tuple[Node, int]] = []

    for raw_line in text.splitlines():
        label = raw_line.strip()
        if not label or label.startswith("//"):
            continue

        level = indentation_level(raw_line)
        width, height = mindmap_node_size(label, level)
        node = Node(
            id=id_factory("n"),
            type=_node_type(level).value,
            label=label,
            width=width,
            height=height,
            data={"level": level},
        )
        nodes.append(node)

        while stack and stack[-1][1] >= level:
            stack.pop()
        if stack:
            edges.append(Edge(id=id_factory("e"), source=stack[-1][0].id, target=node.id))
        stack.append((node, level))

    return build_diagram(DiagramType.MINDMAP, nodes, edges)
