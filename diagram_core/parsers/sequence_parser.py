"""
Sequence diagram parser.

Each line is one message between two participants:

    Alice -> Bob: synchronous call
    Bob --> Alice: asynchronous reply

Participants become actor nodes in order of first appearance. Messages keep
their textual order in the edge `order` field.
"""

import logging
import re

from ..models import DiagramType, Edge, EdgeType, IdFactory, Node, NodeType
from .base import build_diagram, content_lines, parser_boundary

logger = logging.getLogger(__name__)

MESSAGE_RE = re.compile(r"^(\w+)\s*(-->|->)\s*(\w+)\s*(?::\s*(.*))?$")

ACTOR_WIDTH = 120
ACTOR_HEIGHT = 60


@parser_boundary(DiagramType.SEQUENCE)
def parse_sequence_diagram(text: str, id_factory: IdFactory):
    """Parse message lines into actor nodes and ordered message edges."""
    actors: dict[str, Node] = {}
    edges: list[Edge] = []

    def actor(name: str) -> Node:
        if name not in actors:
            actors[name] = Node(
                id=id_factory("n"),
                type=NodeType.ACTOR.value,
                label=name,
                width=ACTOR_WIDTH,
                height=ACTOR_HEIGHT,
                data={"actor_name": name},
            )
        return actors[name]

    for number, line in content_lines(text):
        match = MESSAGE_RE.match(line)
        if not match:
            logger.debug("Skipping unrecognised line %d: %r", number, line)
            continue
        sender, arrow, receiver, message = match.groups()
        source = actor(sender)
        target = actor(receiver)
        edges.append(Edge(
            id=id_factory("e"),
            source=source.id,
            target=target.id,
            label=(message or "").strip(),
            type=EdgeType.ASYNC.value if arrow == "-->" else EdgeType.SYNC.value,
            data={"order": len(edges)},
        ))

    return build_diagram(DiagramType.SEQUENCE, list(actors.values()), edges)
