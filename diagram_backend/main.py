"""
Diagram Tool Backend - FastAPI Application

Stateless HTTP surface over the diagram pipeline. It provides:
- Parsing of diagram text into nodes and edges
- Layout, pagination and edge routing of parsed or client-built diagrams
- Validation and structural summaries
- Built-in example sources
- CORS configuration for local frontend development
"""
import logging
from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from diagram_core import __version__
from diagram_core.analysis import summarize_diagram
from diagram_core.config import LayoutConfig, PaginationConfig, Settings
from diagram_core.edges import RouteStyle, route_edges
from diagram_core.examples import EXAMPLES, get_examples
from diagram_core.exceptions import UnsupportedDiagramTypeError
from diagram_core.log import setup_logger
from diagram_core.models import Diagram, DiagramType
from diagram_core.pipeline import parse_text, render_diagram, render_text
from diagram_core.validation import validate_diagram, validation_summary

logger = logging.getLogger(__name__)

settings = Settings.from_env()


# --- Request models ---

class ParseRequest(BaseModel):
    text: str
    type: DiagramType


class RenderRequest(ParseRequest):
    paginate: bool = True
    layout: Optional[LayoutConfig] = None
    pagination: Optional[PaginationConfig] = None


class RoutesRequest(ParseRequest):
    style: Optional[RouteStyle] = None
    layout: Optional[LayoutConfig] = None


class DiagramRequest(BaseModel):
    diagram: dict[str, Any]  # Diagram JSON, edges may use from/to


class LayoutRequest(DiagramRequest):
    type: Optional[DiagramType] = None
    layout: Optional[LayoutConfig] = None
    paginate: bool = False
    pagination: Optional[PaginationConfig] = None


def _load_diagram(data: dict[str, Any]) -> Diagram:
    try:
        return Diagram.from_json_dict(data)
    except (TypeError, ValueError) as e:
        raise HTTPException(status_code=400, detail=f"Invalid diagram: {e}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan handler for startup tasks."""
    setup_logger("diagram_core", settings.log_level)
    setup_logger("diagram_backend", settings.log_level)
    logger.info("Diagram Tool API ready (CORS origins: %s)", ", ".join(settings.cors_origins))
    yield


# --- FastAPI App ---

app = FastAPI(
    title="Diagram Tool API",
    description="Parse, lay out and paginate text-described diagrams",
    version=__version__,
    lifespan=lifespan
)

# CORS for local development
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- Health Check ---

@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "ok", "diagram_types": [t.value for t in EXAMPLES]}


# --- Examples ---

@app.get("/api/examples")
async def list_examples():
    """All built-in examples grouped by diagram type."""
    return {t.value: [e.to_dict() for e in examples] for t, examples in EXAMPLES.items()}


@app.get("/api/examples/{diagram_type}")
async def examples_for_type(diagram_type: str):
    """Built-in examples for one diagram type."""
    try:
        return [e.to_dict() for e in get_examples(diagram_type)]
    except UnsupportedDiagramTypeError as e:
        raise HTTPException(status_code=404, detail=str(e))


# --- Pipeline ---

@app.post("/api/parse")
async def parse_diagram(request: ParseRequest):
    """Parse diagram text into unpositioned nodes and edges."""
    result = parse_text(request.text, request.type)
    if not result.success:
        raise HTTPException(status_code=400, detail=result.error)
    return result.to_json_dict()


@app.post("/api/render")
async def render(request: RenderRequest):
    """Parse, lay out and (by default) paginate diagram text."""
    result = render_text(
        request.text,
        request.type,
        layout_config=request.layout,
        pagination_config=request.pagination or settings.pagination_config(),
        paginate=request.paginate,
    )
    if not result.success:
        raise HTTPException(status_code=400, detail=result.error)
    return result.to_json_dict()


@app.post("/api/layout")
async def layout(request: LayoutRequest):
    """Lay out a diagram supplied as JSON."""
    diagram = _load_diagram(request.diagram)
    result = render_diagram(
        diagram,
        request.type,
        layout_config=request.layout,
        pagination_config=request.pagination or settings.pagination_config(),
        paginate=request.paginate,
    )
    return result.to_json_dict()


@app.post("/api/routes")
async def routes(request: RoutesRequest):
    """Parse and lay out diagram text, then route every edge."""
    result = render_text(request.text, request.type, layout_config=request.layout)
    if not result.success:
        raise HTTPException(status_code=400, detail=result.error)
    return {
        "success": True,
        "diagram": result.diagram.to_json_dict(),
        "routes": [r.model_dump(mode="json") for r in route_edges(result.diagram, request.style)],
    }


# --- Analysis ---

@app.post("/api/validate")
async def validate(request: DiagramRequest):
    """Check a diagram for structural issues."""
    issues = validate_diagram(_load_diagram(request.diagram))
    return {
        "success": True,
        "issues": [issue.to_dict() for issue in issues],
        "summary": validation_summary(issues)
    }


@app.post("/api/summary")
async def summary(request: DiagramRequest):
    """Summarize the structure of a diagram."""
    return {
        "success": True,
        "summary": summarize_diagram(_load_diagram(request.diagram)).to_dict()
    }


# --- Run with uvicorn ---

def run():
    import uvicorn
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
