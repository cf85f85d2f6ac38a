"""
Flowchart parser.

Each line is a transition, with an optional label:

    start -> check?
    check? -> done: yes

The node type is inferred from the node name (start, end, decision, input,
output, otherwise process). A trailing "?" also marks a decision.
"""

import logging
import re

from ..models import DiagramType, Edge, IdFactory, Node, NodeType
from .base import build_diagram, content_lines, parser_boundary

logger = logging.getLogger(__name__)

TRANSITION_RE = re.compile(r"^([\w?]+)\s*->\s*([\w?]+)\s*(?::\s*(.*))?$")

TERMINAL_SIZE = 80
DECISION_SIZE = (140, 90)
BOX_HEIGHT = 60
BOX_MIN_WIDTH = 120
BOX_MAX_WIDTH = 240


def infer_flow_node_type(name: str) -> NodeType:
    """Guess the flowchart shape from a node name."""
    lowered = name.lower()
    if "start" in lowered:
        return NodeType.START
    if "end" in lowered:
        return NodeType.END
    if "decision" in lowered or name.endswith("?"):
        return NodeType.DECISION
    if "input" in lowered:
        return NodeType.INPUT
    if "output" in lowered:
        return NodeType.OUTPUT
    return NodeType.PROCESS


def flow_node_size(name: str, node_type: NodeType) -> tuple[float, float]:
    if node_type in (NodeType.START, NodeType.END):
        return float(TERMINAL_SIZE), float(TERMINAL_SIZE)
    if node_type == NodeType.DECISION:
        return float(DECISION_SIZE[0]), float(DECISION_SIZE[1])
    width = max(BOX_MIN_WIDTH, min(BOX_MAX_WIDTH, len(name) * 8 + 40))
    return float(width), float(BOX_HEIGHT)


@parser_boundary(DiagramType.FLOW)
def parse_flow_diagram(text: str, id_factory: IdFactory):
    """Parse transition lines into typed flow nodes and labelled edges."""
    nodes: dict[str, Node] = {}
    edges: list[Edge] = []

    def node(name: str) -> Node:
        if name not in nodes:
            node_type = infer_flow_node_type(name)
            width, height = flow_node_size(name, node_type)
            nodes[name] = Node(
                id=id_factory("n"),
                type=node_type.value,
                label=name,
                width=width,
                height=height,
                data={"name": name},
            )
        return nodes[name]

    for number, line in content_lines(text):
        match = TRANSITION_RE.match(line)
        if not match:
            logger.debug("Skipping unrecognised line %d: %r", number, line)
            continue
        source_name, target_name, label = match.groups()
        source = node(source_name)
        target = node(target_name)
        edges.append(Edge(
            id=id_factory("e"),
            source=source.id,
            target=target.id,
            label=(label or "").strip(),
        ))

    return build_diagram(DiagramType.FLOW, list(nodes.values()), edges)
