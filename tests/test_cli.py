import io
import json

import pytest

from diagram_core.cli import main


def run_cli(capsys, *argv):
    with pytest.raises(SystemExit) as exc:
        main(list(argv))
    out = capsys.readouterr().out
    return exc.value.code, json.loads(out)


@pytest.fixture
def flow_file(tmp_path, flow_text):
    path = tmp_path / "order.flow"
    path.write_text(flow_text)
    return str(path)


def test_parse_file(capsys, flow_file):
    code, data = run_cli(capsys, "parse", flow_file, "--type", "flow")

    assert code == 0
    assert data["success"] is True
    assert [n["id"] for n in data["data"]["nodes"]][:2] == ["n1", "n2"]
    assert all(n["x"] == 0 for n in data["data"]["nodes"])


def test_parse_from_stdin(capsys, monkeypatch):
    monkeypatch.setattr("sys.stdin", io.StringIO("A -> B: hello"))
    code, data = run_cli(capsys, "parse", "-t", "sequence")

    assert code == 0
    assert data["data"]["edges"][0]["from"] == "n1"
    assert data["data"]["edges"][0]["data"] == {"order": 0}


def test_parse_failure_exits_nonzero(capsys, monkeypatch):
    monkeypatch.setattr("sys.stdin", io.StringIO("   "))
    code, data = run_cli(capsys, "parse", "-t", "class")

    assert code == 1
    assert data == {"success": False, "error": "Input cannot be empty"}


def test_missing_file(capsys, tmp_path):
    code, data = run_cli(capsys, "parse", str(tmp_path / "nope.txt"), "-t", "flow")

    assert code == 1
    assert data["error"].startswith("Cannot read")


def test_layout(capsys, flow_file):
    code, data = run_cli(capsys, "layout", flow_file, "-t", "flow")

    assert code == 0
    assert all(n["width"] and n["height"] for n in data["diagram"]["nodes"])
    assert any(n["y"] > 0 for n in data["diagram"]["nodes"])


def test_render_paginated(capsys, tmp_path, chain_flow_text):
    path = tmp_path / "chain.flow"
    path.write_text(chain_flow_text)
    code, data = run_cli(capsys, "render", str(path), "-t", "flow", "--paginate", "--continuations")

    assert code == 0
    assert len(data["pages"]) > 1
    assert data["pages"][0]["continuations"]
    assert data["pages"][1]["title"] == "Flow Diagram - Page 2"


def test_render_page_size_flags(capsys, tmp_path, chain_flow_text):
    path = tmp_path / "chain.flow"
    path.write_text(chain_flow_text)
    _, small = run_cli(capsys, "render", str(path), "-t", "flow", "--paginate", "--max-height", "400")
    _, large = run_cli(capsys, "render", str(path), "-t", "flow", "--paginate", "--max-height", "2000")

    assert len(small["pages"]) > len(large["pages"])


def test_render_without_paginate_has_no_pages(capsys, flow_file):
    _, data = run_cli(capsys, "render", flow_file, "-t", "flow")
    assert data["pages"] == []


def test_routes(capsys, monkeypatch):
    monkeypatch.setattr("sys.stdin", io.StringIO("Root\n  A\n  B"))
    code, data = run_cli(capsys, "routes", "-t", "mindmap")

    assert code == 0
    assert len(data["routes"]) == 2
    assert all(" Q " in r["svg_path"] for r in data["routes"])


def test_routes_style_flag(capsys, flow_file):
    _, data = run_cli(capsys, "routes", flow_file, "-t", "flow", "--style", "direct")
    assert all(len(r["points"]) == 2 for r in data["routes"])


def test_validate(capsys, monkeypatch):
    monkeypatch.setattr("sys.stdin", io.StringIO("class A {}\nclass B {}"))
    code, data = run_cli(capsys, "validate", "-t", "class")

    assert code == 0
    assert data["summary"]["warnings"] == 1
    assert data["summary"]["valid"] is True


def test_summarize(capsys, flow_file):
    _, data = run_cli(capsys, "summarize", flow_file, "-t", "flow")

    summary = data["summary"]
    assert summary["diagram_type"] == "flow"
    assert summary["total_nodes"] == 5
    assert summary["nodes_by_type"]["decision"] == 1


def test_examples(capsys):
    _, everything = run_cli(capsys, "examples")
    assert set(everything["examples"]) == {"class", "sequence", "flow", "usecase", "mindmap"}

    _, one_type = run_cli(capsys, "examples", "--type", "mindmap")
    assert list(one_type["examples"]) == ["mindmap"]

    _, named = run_cli(capsys, "examples", "-t", "flow", "--name", "Order Processing Workflow")
    assert named["example"]["name"] == "Order Processing Workflow"


def test_unknown_example_name(capsys):
    code, data = run_cli(capsys, "examples", "-t", "flow", "--name", "Nothing")

    assert code == 1
    assert "Nothing" in data["error"]


def test_type_is_required(capsys):
    with pytest.raises(SystemExit) as exc:
        main(["parse", "-"])
    assert exc.value.code == 2


def test_generic_is_not_a_text_language(capsys):
    with pytest.raises(SystemExit) as exc:
        main(["parse", "-", "--type", "generic"])
    assert exc.value.code == 2
