import logging

import pytest

from diagram_core.analysis import bfs_levels, calculate_bounds, find_connected_components, find_one_hop_clusters, summarize_diagram
from diagram_core.config import MAX_INPUT_LENGTH, PaginationConfig, Settings
from diagram_core.examples import EXAMPLES, get_example, get_examples
from diagram_core.exceptions import InputValidationError, UnsupportedDiagramTypeError
from diagram_core.models import Diagram, DiagramType, Edge
from diagram_core.pipeline import parse_text, render_diagram, render_text, validate_input
from diagram_core.validation import IssueSeverity, drop_dangling_edges, validate_diagram, validation_summary

from .conftest import assert_no_overlap, make_diagram, make_node


ALL_EXAMPLES = [(t, e) for t, examples in EXAMPLES.items() for e in examples]


# --- Full pipeline ---

@pytest.mark.parametrize("diagram_type,example", ALL_EXAMPLES, ids=lambda v: getattr(v, "name", v))
def test_every_example_renders(diagram_type, example):
    result = render_text(example.content, diagram_type, paginate=True)

    assert result.success, result.error
    assert result.diagram.nodes
    assert result.pages
    assert_no_overlap(result.diagram.nodes)
    assert result.dropped_edges == []
    assert not [i for i in result.issues if i["type"] == "error"]


def test_render_result_json(flow_text):
    data = render_text(flow_text, "flow", paginate=True).to_json_dict()

    assert data["success"] is True
    assert {"diagram", "pages", "issues", "dropped_edges"} <= set(data)
    assert "from" in data["diagram"]["edges"][0]
    assert data["pages"][0]["title"] == "Flow Diagram"


def test_render_without_pagination(flow_text):
    assert render_text(flow_text, DiagramType.FLOW).pages == []


def test_render_failure():
    result = render_text("just words", DiagramType.CLASS)

    assert not result.success
    assert result.to_json_dict() == {"success": False, "error": result.error}


# --- Input checks ---

@pytest.mark.parametrize("text", ["", "   ", "\n\t\n", None])
def test_blank_input_is_rejected(text):
    with pytest.raises(InputValidationError, match="Input cannot be empty"):
        validate_input(text)


def test_long_input_is_rejected():
    text = "a -> b\n" * (MAX_INPUT_LENGTH // 7 + 1)
    with pytest.raises(InputValidationError, match="too long"):
        validate_input(text)

    result = parse_text(text, DiagramType.FLOW)
    assert not result.success
    assert f"limit is {MAX_INPUT_LENGTH}" in result.error


# --- Dangling edges ---

def test_dangling_edges_are_reported_and_dropped(caplog):
    diagram = make_diagram(
        [make_node("a"), make_node("b")],
        [("a", "b"), ("a", "ghost")],
        diagram_type=DiagramType.FLOW,
    )

    with caplog.at_level(logging.WARNING, logger="diagram_core"):
        result = render_diagram(diagram)

    assert result.dropped_edges == ["e2"]
    assert [e.id for e in result.diagram.edges] == ["e1"]
    assert any(i["type"] == "error" and i["edge_id"] == "e2" for i in result.issues)
    assert "ghost" not in {n.id for n in result.diagram.nodes}
    assert "Dropped 1 edge" in caplog.text


def test_drop_dangling_edges_keeps_clean_diagram():
    diagram = make_diagram([make_node("a"), make_node("b")], [("a", "b")])
    same, dropped = drop_dangling_edges(diagram)

    assert same is diagram
    assert dropped == []


def test_edges_accept_from_and_to():
    diagram = Diagram.from_json_dict({
        "nodes": [{"id": "a", "label": "A"}, {"id": "b", "label": "B"}],
        "edges": [{"id": "e1", "from": "a", "to": "b"}],
        "metadata": {"diagram_type": "flow"},
    })
    result = render_diagram(diagram)

    assert result.diagram.edges[0].source == "a"
    assert result.diagram.diagram_type == DiagramType.FLOW
    assert all(n.width and n.height for n in result.diagram.nodes)


# --- Validation ---

def test_validate_empty_diagram():
    issues = validate_diagram(make_diagram([]))
    assert [(i.severity, i.message) for i in issues] == [(IssueSeverity.INFO, "Diagram has no nodes")]


def test_validate_reports_structural_problems():
    diagram = make_diagram(
        [make_node("a"), make_node("b"), make_node("lonely"), make_node("blank", label=" ")],
        [("a", "b"), ("a", "b"), ("a", "a"), ("a", "missing")],
    )
    issues = validate_diagram(diagram)
    messages = [i.message for i in issues]

    assert any(m.startswith("Orphan nodes") and "lonely" in m for m in messages)
    assert any(i.node_id == "blank" and "empty label" in i.message for i in issues)
    assert any("Duplicate edge from a to b" == m for m in messages)
    assert any("Self-referencing" in m for m in messages)
    assert [i.edge_id for i in issues if i.severity == IssueSeverity.ERROR] == ["e4"]

    summary = validation_summary(issues)
    assert summary["errors"] == 1
    assert summary["valid"] is False
    assert summary["total"] == len(issues)


def test_single_node_is_not_an_orphan():
    assert validate_diagram(make_diagram([make_node("only")])) == []


def test_repeated_messages_are_not_duplicates():
    diagram = parse_text("A -> B: ping\nA -> B: ping again", DiagramType.SEQUENCE).data
    assert validate_diagram(diagram) == []


def test_inheritance_cycle_is_an_error():
    diagram = parse_text("class A extends B {}\nclass B extends A {}", DiagramType.CLASS).data
    errors = [i for i in validate_diagram(diagram) if i.severity == IssueSeverity.ERROR]

    assert len(errors) == 1
    assert errors[0].message.startswith("Inheritance cycle: ")


def test_several_mindmap_roots_are_noted():
    diagram = parse_text("First\n  A\nSecond\n  B", DiagramType.MINDMAP).data
    issues = validate_diagram(diagram)

    assert [(i.severity, i.message) for i in issues] == [
        (IssueSeverity.INFO, "Mind map has 2 root topics; they are stacked vertically"),
    ]


def test_issue_dict_shape():
    diagram = make_diagram([make_node("a")], [("a", "nowhere")])
    issue = validate_diagram(diagram)[0]

    assert issue.to_dict() == {
        "type": "error",
        "message": "Edge references non-existent target node: nowhere",
        "edge_id": "e1",
    }


# --- Analysis ---

def test_bounds_honor_centered_nodes():
    nodes = [make_node("r", x=100, y=100, width=100, height=40, type="root"), make_node("p", x=200, y=0)]
    bounds = calculate_bounds(nodes)

    assert (bounds.min_x, bounds.min_y, bounds.max_x, bounds.max_y) == (50, 0, 300, 120)
    assert (bounds.width, bounds.height) == (250, 120)
    assert calculate_bounds([]).width == 0


def test_one_hop_clusters():
    nodes = [make_node(n) for n in "abcde"]
    edges = [Edge(source="a", target="b"), Edge(source="c", target="a"), Edge(source="d", target="e")]

    clusters = find_one_hop_clusters(nodes, edges)
    assert [[n.id for n in c] for c in clusters] == [["a", "b", "c"], ["d", "e"]]


def test_bfs_levels_with_unreachable_tail():
    nodes = [make_node(n) for n in ("root", "a", "b", "a1", "stray")]
    edges = [Edge(source="root", target="a"), Edge(source="root", target="b"), Edge(source="a", target="a1")]

    levels = bfs_levels(nodes, edges, "root")
    assert [[n.id for n in level] for level in levels] == [["root"], ["a", "b"], ["a1"], ["stray"]]


def test_summarize(usecase_text):
    diagram = render_text(usecase_text, DiagramType.USECASE).diagram
    summary = summarize_diagram(diagram)

    assert summary.diagram_type == "usecase"
    assert summary.total_nodes == 5
    assert summary.total_edges == 4
    assert summary.nodes_by_type == {"actor": 2, "usecase": 3}
    assert summary.connected_components == 1
    assert summary.orphan_count == 0
    assert summary.most_connected_nodes[0].total == 2

    data = summary.to_dict()
    assert data["bounds"]["width"] == summary.bounds.width
    assert data["edges_by_type"] == {"untyped": 4}


def test_components_ignore_dangling_edges():
    diagram = make_diagram([make_node("a"), make_node("b")], [("a", "ghost")])
    assert [c.node_ids for c in find_connected_components(diagram)] == [["a"], ["b"]]


# --- Examples ---

def test_examples_cover_every_text_language():
    assert set(EXAMPLES) == {t for t in DiagramType if t != DiagramType.GENERIC}
    assert get_example("flow").name == "User Login Process"
    assert get_example(DiagramType.CLASS, "E-commerce System").content.startswith("class")


def test_unknown_examples():
    with pytest.raises(UnsupportedDiagramTypeError):
        get_examples("generic")
    with pytest.raises(UnsupportedDiagramTypeError):
        get_examples("venn")
    with pytest.raises(KeyError):
        get_example("flow", "No Such Example")


# --- Settings ---

def test_settings_from_env():
    settings = Settings.from_env({
        "DIAGRAM_TOOL_PORT": "9000",
        "DIAGRAM_TOOL_CORS_ORIGINS": "http://a.test, http://b.test",
        "DIAGRAM_TOOL_MAX_PAGE_WIDTH": "800",
        "DIAGRAM_TOOL_LOG_LEVEL": "debug",
    })

    assert settings.port == 9000
    assert settings.cors_origins == ["http://a.test", "http://b.test"]
    assert settings.log_level == "DEBUG"
    config = settings.pagination_config(max_height=500)
    assert (config.max_width, config.max_height) == (800, 500)
    assert isinstance(config, PaginationConfig)
