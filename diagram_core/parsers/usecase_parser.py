"""
Use-case diagram parser.

    actor Customer
    Customer -> (Place Order)
    (Place Order) -> (Validate Payment): includes

Actors must be declared before they can be linked; an association from an
undeclared actor still creates the use case but draws no edge. Use cases are
deduplicated by label. The optional use-case to use-case form carries an
"includes" or "extends" relationship.
"""

import logging
import re

from ..models import DiagramType, Edge, EdgeType, IdFactory, Node, NodeType
from .base import build_diagram, content_lines, parser_boundary

logger = logging.getLogger(__name__)

ACTOR_RE = re.compile(r"^actor\s+(.+)$")
ASSOCIATION_RE = re.compile(r"^(\w+)\s*->\s*\(([^)]+)\)\s*$")
RELATION_RE = re.compile(r"^\(([^)]+)\)\s*->\s*\(([^)]+)\)\s*(?::\s*(includes?|extends?))?\s*$")

ACTOR_SIZE = (100, 120)
USECASE_MIN_WIDTH = 160
USECASE_HEIGHT = 80


@parser_boundary(DiagramType.USECASE)
def parse_usecase_diagram(text: str, id_factory: IdFactory):
    """Parse actor declarations and associations into actors and use cases."""
    nodes: list[Node] = []
    actors: dict[str, Node] = {}
    usecases: dict[str, Node] = {}
    edges: list[Edge] = []

    def usecase(label: str) -> Node:
        if label not in usecases:
            usecases[label] = Node(
                id=id_factory("n"),
                type=NodeType.USECASE.value,
                label=label,
                width=float(max(USECASE_MIN_WIDTH, len(label) * 12)),
                height=float(USECASE_HEIGHT),
            )
            nodes.append(usecases[label])
        return usecases[label]

    for number, line in content_lines(text):
        match = ACTOR_RE.match(line)
        if match:
            name = match.group(1).strip()
            if name in actors:
                continue
            actors[name] = Node(
                id=id_factory("n"),
                type=NodeType.ACTOR.value,
                label=name,
                width=float(ACTOR_SIZE[0]),
                height=float(ACTOR_SIZE[1]),
                data={"actor_name": name},
            )
            nodes.append(actors[name])
            continue

        match = ASSOCIATION_RE.match(line)
        if match:
            actor_name, label = match.group(1), match.group(2).strip()
            target = usecase(label)
            actor = actors.get(actor_name)
            if actor is None:
                logger.debug("Actor %s on line %d is not declared; no edge drawn", actor_name, number)
                continue
            edges.append(Edge(id=id_factory("e"), source=actor.id, target=target.id))
            continue

        match = RELATION_RE.match(line)
        if match:
            source = usecase(match.group(1).strip())
            target = usecase(match.group(2).strip())
            kind = match.group(3)
            edge_type = None
            if kind:
                edge_type = EdgeType.INCLUDES if kind.startswith("include") else EdgeType.EXTENDS
            edges.append(Edge(
                id=id_factory("e"),
                source=source.id,
                target=target.id,
                label=f"<<{edge_type.value}>>" if edge_type else "",
                type=edge_type.value if edge_type else None,
            ))
            continue

        logger.debug("Skipping unrecognised line %d: %r", number, line)

    return build_diagram(DiagramType.USECASE, nodes, edges)
