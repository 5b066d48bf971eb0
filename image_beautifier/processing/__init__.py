"""Image primitives, transform stages, the render pipeline and its controller."""

from .imaging import (
    Edge,
    add_canvas,
    add_shadow,
    auto_crop,
    fill_background,
    generate_gradient_preview,
    release_image,
    round_corners,
)
from .render_controller import RenderController
from .render_pipeline import RenderOutcome, RenderPipeline
from .stages import DEFAULT_STAGES, TransformStage

__all__ = [
    "DEFAULT_STAGES",
    "Edge",
    "RenderController",
    "RenderOutcome",
    "RenderPipeline",
    "TransformStage",
    "add_canvas",
    "add_shadow",
    "auto_crop",
    "fill_background",
    "generate_gradient_preview",
    "release_image",
    "round_corners",
]
