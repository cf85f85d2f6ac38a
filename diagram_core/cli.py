#!/usr/bin/env python3
"""Diagram tool CLI - parse, lay out, route and paginate diagram text."""

import argparse
import json
import logging
import sys

from .analysis import summarize_diagram
from .config import LayoutConfig, Settings
from .edges import route_edges
from .examples import EXAMPLES, get_example, get_examples
from .exceptions import UnsupportedDiagramTypeError
from .log import setup_logger
from .models import DiagramType
from .pipeline import parse_text, render_text
from .validation import validate_diagram, validation_summary

logger = logging.getLogger(__name__)

TEXT_TYPES = [t.value for t in DiagramType if t != DiagramType.GENERIC]


def _json_out(data, status=0):
    print(json.dumps(data))
    sys.exit(status)


def _read_source(path):
    """Read diagram text from a file, or stdin when the path is '-'."""
    if path == "-":
        return sys.stdin.read()
    try:
        with open(path, encoding="utf-8") as f:
            return f.read()
    except OSError as e:
        _json_out({"success": False, "error": f"Cannot read {path}: {e.strerror}"}, 1)


def _layout_config(args):
    return LayoutConfig.for_type(args.type, direction=getattr(args, "direction", None))


def _parsed(args):
    result = parse_text(_read_source(args.source), args.type)
    if not result.success:
        _json_out({"success": False, "error": result.error}, 1)
    return result.data


def _rendered(args, paginate=False, pagination_config=None):
    result = render_text(
        _read_source(args.source),
        args.type,
        layout_config=_layout_config(args),
        pagination_config=pagination_config,
        paginate=paginate,
    )
    if not result.success:
        _json_out({"success": False, "error": result.error}, 1)
    return result


# ── Pipeline ─────────────────────────────────────────────────────────────────

def cmd_parse(args):
    _json_out({"success": True, "data": _parsed(args).to_json_dict()})


def cmd_layout(args):
    result = _rendered(args)
    _json_out({
        "success": True,
        "diagram": result.diagram.to_json_dict(),
        "issues": result.issues,
    })


def cmd_render(args):
    settings = Settings.from_env()
    config = settings.pagination_config(
        max_width=args.max_width,
        max_height=args.max_height,
        preferred_break_points=args.strategy,
        show_continuation_indicators=args.continuations or None,
    )
    result = _rendered(args, paginate=args.paginate, pagination_config=config)
    _json_out(result.to_json_dict())


def cmd_routes(args):
    result = _rendered(args)
    routes = route_edges(result.diagram, args.style)
    _json_out({
        "success": True,
        "routes": [r.model_dump(mode="json") for r in routes],
    })


# ── Analysis ─────────────────────────────────────────────────────────────────

def cmd_validate(args):
    issues = validate_diagram(_parsed(args))
    _json_out({
        "success": True,
        "issues": [issue.to_dict() for issue in issues],
        "summary": validation_summary(issues)
    })


def cmd_summarize(args):
    result = _rendered(args)
    _json_out({
        "success": True,
        "summary": summarize_diagram(result.diagram).to_dict()
    })


def cmd_examples(args):
    try:
        if args.name:
            _json_out({"success": True, "example": get_example(args.type, args.name).to_dict()})
        types = [args.type] if args.type else [t.value for t in EXAMPLES]
        _json_out({
            "success": True,
            "examples": {t: [e.to_dict() for e in get_examples(t)] for t in types},
        })
    except (KeyError, UnsupportedDiagramTypeError) as e:
        _json_out({"success": False, "error": str(e.args[0])}, 1)


# ── Main ─────────────────────────────────────────────────────────────────────

def _add_source_args(p):
    p.add_argument("source", nargs="?", default="-", help="Diagram file, or '-' for stdin")
    p.add_argument("--type", "-t", required=True, choices=TEXT_TYPES)


def main(argv=None):
    parser = argparse.ArgumentParser(description="Diagram tool CLI")
    parser.add_argument("--log-level", default=None, help="Logging level (default from DIAGRAM_TOOL_LOG_LEVEL)")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("parse", help="Parse text into nodes and edges")
    _add_source_args(p)

    p = sub.add_parser("layout", help="Parse and position a diagram")
    _add_source_args(p)
    p.add_argument("--direction", choices=["top-down", "left-right"], default=None)

    p = sub.add_parser("render", help="Parse, position and optionally paginate")
    _add_source_args(p)
    p.add_argument("--direction", choices=["top-down", "left-right"], default=None)
    p.add_argument("--paginate", action="store_true")
    p.add_argument("--max-width", type=float, default=None)
    p.add_argument("--max-height", type=float, default=None)
    p.add_argument("--strategy", choices=["layers", "clusters", "grid"], default=None)
    p.add_argument("--continuations", action="store_true", help="Mark edges that leave a page")

    p = sub.add_parser("routes", help="Compute edge paths for a positioned diagram")
    _add_source_args(p)
    p.add_argument("--style", choices=["direct", "horizontal-first", "vertical-first",
                                       "orthogonal", "mermaid", "curved"], default=None)

    p = sub.add_parser("validate", help="Report structural issues")
    _add_source_args(p)

    p = sub.add_parser("summarize", help="Summarize diagram structure")
    _add_source_args(p)

    p = sub.add_parser("examples", help="List built-in examples")
    p.add_argument("--type", "-t", choices=TEXT_TYPES, default=None)
    p.add_argument("--name", default=None)

    args = parser.parse_args(argv)
    setup_logger("diagram_core", (args.log_level or Settings.from_env().log_level).upper())

    cmd_map = {
        "parse": cmd_parse,
        "layout": cmd_layout,
        "render": cmd_render,
        "routes": cmd_routes,
        "validate": cmd_validate,
        "summarize": cmd_summarize,
        "examples": cmd_examples,
    }
    cmd_map[args.command](args)


if __name__ == "__main__":
    main()
