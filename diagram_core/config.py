"""
Configuration objects for layout, pagination and the service surfaces.

Layout and pagination settings are plain pydantic models passed per call.
Service settings are read from DIAGRAM_TOOL_* environment variables.
"""

import os
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from .models import DiagramType


class LayoutConfig(BaseModel):
    """Spacing and sizing knobs shared by all layout engines."""
    model_config = ConfigDict(frozen=True)

    # Fallback size for nodes nobody sized
    node_width: float = Field(default=120, gt=0)
    node_height: float = Field(default=60, gt=0)
    # Configured spacing; the effective spacing grows with node size
    horizontal_spacing: float = 180
    vertical_spacing: float = 150
    min_gap_x: float = 50  # Effective horizontal step is at least width + min_gap_x
    min_gap_y: float = 30  # Effective vertical step is at least height + min_gap_y
    start_x: float = 150
    start_y: float = 100
    direction: Literal["top-down", "left-right"] = "top-down"
    # Flow diagrams: left bound for node x so circular terminals never clip
    min_x: float = 50
    # Use-case diagrams: minimum vertical gap between actors
    actor_gap: float = 30
    # Sequence diagrams: vertical distance between consecutive messages
    message_spacing: float = 60
    # Mind maps: horizontal step per depth and vertical band per leaf
    level_spacing: float = 260
    leaf_spacing: float = 50

    @classmethod
    def for_type(cls, diagram_type: DiagramType | str, **overrides) -> "LayoutConfig":
        """Preset tuned for a diagram type, with optional overrides."""
        presets = {
            DiagramType.CLASS: dict(
                node_width=250, node_height=200, horizontal_spacing=300, vertical_spacing=250,
            ),
            DiagramType.USECASE: dict(
                node_width=140, node_height=80, horizontal_spacing=200, vertical_spacing=150,
                direction="left-right",
            ),
            DiagramType.FLOW: dict(horizontal_spacing=160, vertical_spacing=120),
            DiagramType.SEQUENCE: dict(start_x=100, start_y=80, horizontal_spacing=200),
            DiagramType.MINDMAP: dict(start_x=50, start_y=50),
        }
        values = dict(presets.get(DiagramType(diagram_type), {}))
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


class PaginationConfig(BaseModel):
    """Page size limits and splitting strategy."""
    model_config = ConfigDict(frozen=True)

    max_width: float = Field(default=1200, gt=0)
    max_height: float = Field(default=900, gt=0)
    overlap_margin: float = 100  # Reserved: accepted for API compatibility, pages are not padded by it
    preferred_break_points: Literal["layers", "clusters", "grid"] = "layers"
    # Grid cells: "center" puts a node on exactly one page, "overlap" on every cell it touches
    grid_assignment: Literal["center", "overlap"] = "center"
    page_padding: float = 50
    layer_threshold: float = 30  # Nodes within this many px in y share a band
    pixels_per_message: float = Field(default=60, gt=0)
    sequence_header: float = 200  # Space above the first message on a sequence page
    show_page_numbers: bool = True
    show_continuation_indicators: bool = False


# Max characters accepted by the pipeline, matching the editor's input limit
MAX_INPUT_LENGTH = 10_000


class Settings(BaseModel):
    """Settings for the HTTP service and CLI, read from the environment."""
    model_config = ConfigDict(frozen=True)

    host: str = "127.0.0.1"
    port: int = 8765
    cors_origins: list[str] = Field(default_factory=lambda: [
        "http://localhost:5173", "http://localhost:3000", "http://127.0.0.1:5173",
    ])
    max_page_width: float = 1200
    max_page_height: float = 900
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls, environ: Optional[dict] = None) -> "Settings":
        env = os.environ if environ is None else environ
        defaults = cls()
        origins = env.get("DIAGRAM_TOOL_CORS_ORIGINS")
        return cls(
            host=env.get("DIAGRAM_TOOL_HOST", defaults.host),
            port=int(env.get("DIAGRAM_TOOL_PORT", defaults.port)),
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()] if origins else defaults.cors_origins,
            max_page_width=float(env.get("DIAGRAM_TOOL_MAX_PAGE_WIDTH") or defaults.max_page_width),
            max_page_height=float(env.get("DIAGRAM_TOOL_MAX_PAGE_HEIGHT") or defaults.max_page_height),
            log_level=env.get("DIAGRAM_TOOL_LOG_LEVEL", defaults.log_level).upper(),
        )

    def pagination_config(self, **overrides) -> PaginationConfig:
        values = {"max_width": self.max_page_width, "max_height": self.max_page_height}
        values.update({k: v for k, v in overrides.items() if v is not None})
        return PaginationConfig(**values)
