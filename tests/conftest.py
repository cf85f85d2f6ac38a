import logging

import pytest

from diagram_core.models import Diagram, DiagramMetadata, DiagramType, Edge, Node


@pytest.fixture(autouse=True)
def reset_loggers():
    """CLI and API runs attach handlers; drop them so streams don't leak between tests"""
    yield
    for name in ("diagram_core", "diagram_backend"):
        logger = logging.getLogger(name)
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
        logger.setLevel(logging.NOTSET)


@pytest.fixture
def class_text():
    return """class Animal {
  - name: string
  + speak(): string
}

class Dog extends Animal {
  + fetch(item: Ball): void
}

class Cat extends Animal {
}"""


@pytest.fixture
def flow_text():
    return """start -> read_input: begin
read_input -> valid?: check
valid? -> process_order: yes
valid? -> read_input: no
process_order -> end: done"""


@pytest.fixture
def mindmap_text():
    return """Project
  Planning
    Scope
    Timeline
  Execution
    Team
  Review"""


@pytest.fixture
def usecase_text():
    return """actor Customer
actor Clerk
Customer -> (Place Order)
Customer -> (Track Order)
Clerk -> (Place Order)
Clerk -> (Ship Order)"""


@pytest.fixture
def chain_flow_text():
    """40-step flow whose layout is far taller than one page"""
    return "\n".join(f"task{i} -> task{i + 1}" for i in range(39))


def make_node(node_id, x=0, y=0, width=100, height=50, type="node", label=None):
    return Node(id=node_id, x=x, y=y, width=width, height=height, type=type, label=label or node_id)


def make_diagram(nodes, edges=(), diagram_type=DiagramType.GENERIC):
    return Diagram(
        nodes=list(nodes),
        edges=[Edge(id=f"e{i}", source=s, target=t) for i, (s, t) in enumerate(edges, start=1)],
        metadata=DiagramMetadata(diagram_type=diagram_type),
    )


def assert_no_overlap(nodes):
    """No two node rectangles intersect (touching edges is fine)"""
    boxes = [(n.id, n.bounds()) for n in nodes]
    for i, (a_id, a) in enumerate(boxes):
        for b_id, b in boxes[i + 1:]:
            overlapping = a[0] < b[2] and b[0] < a[2] and a[1] < b[3] and b[1] < a[3]
            assert not overlapping, f"{a_id} overlaps {b_id}: {a} vs {b}"
