import pytest

from diagram_core.models import ClassAttribute, DiagramType, UuidIds, Visibility
from diagram_core.parsers import (
    PARSERS,
    parse,
    parse_class_diagram,
    parse_flow_diagram,
    parse_mindmap,
    parse_sequence_diagram,
    parse_usecase_diagram,
)


def by_label(diagram):
    return {n.label: n for n in diagram.nodes}


# --- Class diagrams ---

def test_inline_classes_with_inheritance():
    """Child declared after parent on single-line blocks"""
    result = parse_class_diagram("class A{} \n class B extends A{}")

    assert result.success
    diagram = result.data
    assert [n.label for n in diagram.nodes] == ["A", "B"]
    assert len(diagram.edges) == 1
    edge = diagram.edges[0]
    nodes = by_label(diagram)
    assert edge.source == nodes["B"].id
    assert edge.target == nodes["A"].id
    assert edge.type == "inheritance"
    assert edge.label == "extends"


def test_parent_declared_after_child_is_resolved():
    result = parse_class_diagram("class B extends A {\n}\nclass A {\n}")

    nodes = by_label(result.data)
    assert len(result.data.edges) == 1
    assert result.data.edges[0].source == nodes["B"].id
    assert result.data.edges[0].target == nodes["A"].id


def test_unknown_parent_produces_no_edge():
    result = parse_class_diagram("class B extends Missing {}")

    assert result.success
    assert result.data.edges == []
    assert result.data.nodes[0].data["parent"] == "Missing"


def test_class_members_and_size():
    text = """class User {
  - name: string
  + login(user: string, pwd: string): boolean
  # reset()
}"""
    node = parse_class_diagram(text).data.nodes[0]

    attributes = node.data["attributes"]
    methods = node.data["methods"]
    assert attributes == [ClassAttribute(name="name", type="string", visibility=Visibility.PRIVATE)]
    assert [m.name for m in methods] == ["login", "reset"]
    assert [(p.name, p.type) for p in methods[0].parameters] == [("user", "string"), ("pwd", "string")]
    assert methods[0].return_type == "boolean"
    assert methods[0].visibility == Visibility.PUBLIC
    assert methods[1].return_type == "void"
    assert methods[1].visibility == Visibility.PROTECTED

    # 30 + 1 attribute + separator + 2 methods + 30
    assert node.height == 129
    # Longest line is the rendered login signature (43 chars)
    assert node.width == 43 * 8 + 40


def test_empty_class_uses_minimum_size():
    node = parse_class_diagram("class A {}").data.nodes[0]
    assert node.width == 200
    assert node.height == 80


def test_unclosed_class_is_finished_at_end_of_input():
    result = parse_class_diagram("class A {\n  + count: int")

    assert result.success
    assert result.data.nodes[0].data["attributes"][0].name == "count"


def test_header_with_extra_clauses_keeps_class_and_parent():
    text = "class Animal {\n}\nclass Dog extends Animal implements Pet {\n  + bark(): void\n}"
    diagram = parse_class_diagram(text).data
    nodes = by_label(diagram)

    assert list(nodes) == ["Animal", "Dog"]
    assert [(e.source, e.target) for e in diagram.edges] == [(nodes["Dog"].id, nodes["Animal"].id)]
    assert [m.name for m in nodes["Dog"].data["methods"]] == ["bark"]


def test_members_on_the_header_line():
    text = "class A { +x: int; -y: string }\nclass B extends A {} // marker class\nclass C {\n  + run()\n}"
    nodes = by_label(parse_class_diagram(text).data)

    assert list(nodes) == ["A", "B", "C"]
    assert [a.name for a in nodes["A"].data["attributes"]] == ["x", "y"]
    assert nodes["B"].data["attributes"] == []
    # B closed on its own line, so the member below belongs to C
    assert [m.name for m in nodes["C"].data["methods"]] == ["run"]


def test_array_types_are_kept():
    node = parse_class_diagram("class Library {\n  - books: Book[]\n  + find(title: string): Book[]\n}").data.nodes[0]
    assert node.data["attributes"][0].type == "Book[]"
    assert node.data["methods"][0].return_type == "Book[]"


def test_class_text_without_classes_fails():
    result = parse_class_diagram("hello world")
    assert not result.success
    assert "No valid nodes" in result.error


# --- Sequence diagrams ---

def test_single_message():
    result = parse_sequence_diagram("X -> Y: hi")

    diagram = result.data
    assert [n.label for n in diagram.nodes] == ["X", "Y"]
    assert all(n.type == "actor" for n in diagram.nodes)
    assert len(diagram.edges) == 1
    assert diagram.edges[0].order == 0
    assert diagram.edges[0].type == "sync"
    assert diagram.edges[0].label == "hi"


def test_async_messages_and_ordering():
    text = "A -> B: first\nB --> A: second\nnot a message\nA -> C: third"
    diagram = parse_sequence_diagram(text).data

    assert [n.label for n in diagram.nodes] == ["A", "B", "C"]
    assert [e.order for e in diagram.edges] == [0, 1, 2]
    assert [e.type for e in diagram.edges] == ["sync", "async", "sync"]
    assert diagram.nodes[0].data == {"actor_name": "A"}
    assert (diagram.nodes[0].width, diagram.nodes[0].height) == (120, 60)


# --- Flow diagrams ---

def test_flow_node_types(flow_text):
    nodes = by_label(parse_flow_diagram(flow_text).data)

    assert nodes["start"].type == "start"
    assert nodes["end"].type == "end"
    assert nodes["valid?"].type == "decision"
    assert nodes["read_input"].type == "input"
    assert nodes["process_order"].type == "process"
    assert parse_flow_diagram("a -> print_output").data.nodes[1].type == "output"


def test_flow_node_sizes():
    nodes = by_label(parse_flow_diagram(
        "start -> check?\ncheck? -> validate\nvalidate -> a_really_long_process_step_name"
    ).data)

    assert (nodes["start"].width, nodes["start"].height) == (80, 80)
    assert (nodes["check?"].width, nodes["check?"].height) == (140, 90)
    assert (nodes["validate"].width, nodes["validate"].height) == (120, 60)
    assert nodes["a_really_long_process_step_name"].width == 240


def test_flow_nodes_are_deduplicated_and_labels_optional():
    diagram = parse_flow_diagram("start -> a: go\na -> end\nstart -> end").data

    assert len(diagram.nodes) == 3
    assert [e.label for e in diagram.edges] == ["go", "", ""]


# --- Use-case diagrams ---

def test_usecase_is_deduplicated():
    diagram = parse_usecase_diagram("actor User\nUser -> (Login)\nUser -> (Login)").data

    usecases = [n for n in diagram.nodes if n.type == "usecase"]
    assert len(usecases) == 1
    assert all(e.target == usecases[0].id for e in diagram.edges)


def test_undeclared_actor_creates_usecase_without_edge():
    result = parse_usecase_diagram("Ghost -> (Haunt House)")

    assert result.success
    assert [n.label for n in result.data.nodes] == ["Haunt House"]
    assert result.data.edges == []


def test_usecase_sizes_and_relations():
    text = "actor Admin\nAdmin -> (A very long use case name)\n(A very long use case name) -> (Login): includes"
    diagram = parse_usecase_diagram(text).data
    nodes = by_label(diagram)

    assert (nodes["Admin"].width, nodes["Admin"].height) == (100, 120)
    assert nodes["A very long use case name"].width == 25 * 12
    assert nodes["Login"].width == 160
    assert diagram.edges[1].type == "includes"


# --- Mind maps ---

def test_simple_mindmap():
    diagram = parse_mindmap("Root\n  A\n  B").data

    assert [n.level for n in diagram.nodes] == [0, 1, 1]
    assert [n.type for n in diagram.nodes] == ["root", "branch", "branch"]
    root, a, b = diagram.nodes
    assert [(e.source, e.target) for e in diagram.edges] == [(root.id, a.id), (root.id, b.id)]


def test_mindmap_nesting_tabs_and_comments():
    text = "// outline\nRoot\n\tA\n    A1\n\n  B"
    diagram = parse_mindmap(text).data
    nodes = by_label(diagram)

    assert nodes["A"].level == 1
    assert nodes["A1"].type == "leaf"
    pairs = {(e.source, e.target) for e in diagram.edges}
    assert (nodes["A"].id, nodes["A1"].id) in pairs
    assert (nodes["Root"].id, nodes["B"].id) in pairs
    assert (nodes["Root"].width, nodes["Root"].height) == (150, 50)


# --- Shared behaviour ---

@pytest.mark.parametrize("diagram_type", list(PARSERS))
def test_blank_input_fails(diagram_type):
    result = parse("   \n  ", diagram_type)
    assert not result.success
    assert result.error == "Input cannot be empty"


@pytest.mark.parametrize("diagram_type", list(PARSERS))
@pytest.mark.parametrize("text", ["}}}", "class", "-> ->", "(((", "\x00\x01", "actor"])
def test_parsers_never_raise(diagram_type, text):
    result = parse(text, diagram_type)
    assert result.success == (result.data is not None)


@pytest.mark.parametrize("diagram_type", list(PARSERS))
def test_parsers_do_not_position_nodes(diagram_type, class_text, flow_text, mindmap_text, usecase_text):
    text = {
        DiagramType.CLASS: class_text,
        DiagramType.SEQUENCE: "A -> B: x",
        DiagramType.FLOW: flow_text,
        DiagramType.USECASE: usecase_text,
        DiagramType.MINDMAP: mindmap_text,
    }[diagram_type]
    diagram = parse(text, diagram_type).data

    assert diagram.diagram_type == diagram_type
    assert all(n.x == 0 and n.y == 0 for n in diagram.nodes)
    assert all(n.width and n.height for n in diagram.nodes)


def test_parsing_is_deterministic(class_text):
    first = parse_class_diagram(class_text).data.to_json_dict()
    second = parse_class_diagram(class_text).data.to_json_dict()

    assert first["nodes"] == second["nodes"]
    assert first["edges"] == second["edges"]
    assert [n["id"] for n in first["nodes"]] == ["n1", "n2", "n3"]


def test_custom_id_factory():
    diagram = parse_flow_diagram("a -> b", UuidIds()).data
    assert all(n.id.startswith("n") and len(n.id) == 9 for n in diagram.nodes)


def test_unsupported_type():
    assert parse("a -> b", "bogus").error == "Unsupported diagram type: bogus"
    assert not parse("a -> b", DiagramType.GENERIC).success
