"""Pillow based image primitives consumed by the render stages.

Every helper accepts an RGBA :class:`PIL.Image.Image` and returns a *new*
image. Inputs are never modified or closed here; ownership of intermediate
buffers is tracked by :class:`~image_beautifier.processing.render_pipeline.RenderPipeline`.
"""

from __future__ import annotations

import enum
import logging
import math
from typing import Optional, Sequence, Tuple

import numpy as np
from PIL import Image, ImageChops, ImageDraw, ImageFilter

from image_beautifier.core.errors import DisposalError

from image_beautifier.data.gradient import RGBA, GradientSpec


LOGGER = logging.getLogger(__name__)

TRANSPARENT: RGBA = (0, 0, 0, 0)
CHECKER_SIZE = 10
_CHECKER_LIGHT = (255, 255, 255, 255)
_CHECKER_DARK = (204, 204, 204, 255)


class Edge(enum.Flag):
    """Image edges considered by :func:`auto_crop`."""

    TOP = 1
    BOTTOM = 2
    LEFT = 4
    RIGHT = 8
    ALL = 15


def ensure_rgba(image: Image.Image) -> Image.Image:
    """Return an RGBA copy of ``image``."""

    if image.mode == "RGBA":
        return image.copy()
    return image.convert("RGBA")


def release_image(image: Optional[Image.Image]) -> None:
    """Close ``image`` logging, rather than raising, any failure."""

    if image is None:
        return
    try:
        image.close()
    except Exception as exc:
        error = DisposalError(f"Failed to release {image.size[0]}x{image.size[1]} image")
        LOGGER.warning("%s", error, exc_info=exc, extra={"component": "imaging"})


def _place(image: Image.Image, size: Tuple[int, int], position: Tuple[int, int]) -> Image.Image:
    layer = Image.new("RGBA", size, TRANSPARENT)
    layer.paste(image, position)
    return layer


def add_canvas(image: Image.Image, size: int, fill: Optional[Sequence[int]] = None) -> Image.Image:
    """Grow ``image`` by ``size`` pixels on every side.

    The new border is filled with ``fill`` or left transparent when no colour
    is supplied. The original pixels are composited over the fill.
    """

    if size < 0:
        raise ValueError(f"Canvas size must be non-negative, got {size}")
    color = TRANSPARENT if fill is None else tuple(int(channel) for channel in fill)
    width, height = image.size
    canvas = Image.new("RGBA", (width + 2 * size, height + 2 * size), color)
    canvas.alpha_composite(image, dest=(size, size))
    return canvas


def auto_crop(
    image: Image.Image,
    same_color: bool = True,
    edges: Edge = Edge.ALL,
    padding: int = 0,
) -> Image.Image:
    """Trim uniform borders from ``edges`` and pad the result by ``padding``.

    With ``same_color`` the border colour is the top-left pixel and rows or
    columns consisting solely of that colour are removed; otherwise fully
    transparent rows and columns are removed. The padding re-uses the border
    colour. An image made entirely of the border colour is left uncropped.
    """

    pixels = np.asarray(image)
    if pixels.ndim != 3 or pixels.shape[2] != 4:
        raise ValueError(f"auto_crop expects an RGBA image, got mode {image.mode}")
    if same_color:
        border = tuple(int(channel) for channel in pixels[0, 0])
        matches = np.all(pixels == pixels[0, 0], axis=-1)
    else:
        border = TRANSPARENT
        matches = pixels[..., 3] == 0

    uniform_rows = matches.all(axis=1)
    uniform_cols = matches.all(axis=0)
    if uniform_rows.all():
        LOGGER.debug("Image is uniformly %s; skipping crop", border)
        cropped = image.copy()
    else:
        content_rows = np.flatnonzero(~uniform_rows)
        content_cols = np.flatnonzero(~uniform_cols)
        height, width = matches.shape
        top = int(content_rows[0]) if Edge.TOP in edges else 0
        bottom = int(content_rows[-1]) + 1 if Edge.BOTTOM in edges else height
        left = int(content_cols[0]) if Edge.LEFT in edges else 0
        right = int(content_cols[-1]) + 1 if Edge.RIGHT in edges else width
        cropped = image.crop((left, top, right, bottom))
        LOGGER.debug("Auto crop box %s", (left, top, right, bottom))

    if padding <= 0:
        return cropped
    try:
        return add_canvas(cropped, padding, border)
    finally:
        cropped.close()


def round_corners(image: Image.Image, radius: int) -> Image.Image:
    """Make the pixels outside a rounded rectangle of ``radius`` transparent."""

    if radius < 0:
        raise ValueError(f"Corner radius must be non-negative, got {radius}")
    width, height = image.size
    mask = Image.new("L", (width, height), 0)
    ImageDraw.Draw(mask).rounded_rectangle((0, 0, width - 1, height - 1), radius=radius, fill=255)
    result = image.copy()
    result.putalpha(ImageChops.multiply(image.getchannel("A"), mask))
    return result


def add_shadow(
    image: Image.Image,
    opacity: float,
    blur_radius: int,
    angle: float,
    color: Sequence[int],
    offset: Tuple[int, int],
    auto_expand: bool,
) -> Image.Image:
    """Composite a blurred silhouette of ``image`` behind it.

    The canvas always grows by ``blur_radius`` on each side. ``offset`` is
    rotated by ``angle`` degrees; with ``auto_expand`` the canvas also grows to
    keep the displaced shadow fully visible, otherwise it is clipped.
    """

    if blur_radius < 0:
        raise ValueError(f"Shadow radius must be non-negative, got {blur_radius}")
    width, height = image.size
    margin = blur_radius
    radians = math.radians(angle)
    dx = int(round(offset[0] * math.cos(radians) - offset[1] * math.sin(radians)))
    dy = int(round(offset[0] * math.sin(radians) + offset[1] * math.cos(radians)))

    alpha = np.asarray(image.getchannel("A"), dtype=np.float64) * max(0.0, min(1.0, opacity))
    silhouette = Image.fromarray(np.clip(np.rint(alpha), 0, 255).astype(np.uint8))
    shadow_mask = Image.new("L", (width + 2 * margin, height + 2 * margin), 0)
    shadow_mask.paste(silhouette, (margin, margin))
    if blur_radius > 0:
        blurred = shadow_mask.filter(ImageFilter.GaussianBlur(blur_radius))
        shadow_mask.close()
        shadow_mask = blurred
    rgb = tuple(int(channel) for channel in color)[:3]
    shadow = Image.new("RGBA", shadow_mask.size, rgb + (255,))
    shadow.putalpha(shadow_mask)

    if auto_expand:
        size = (shadow.width + abs(dx), shadow.height + abs(dy))
        shadow_at = (max(dx, 0), max(dy, 0))
        image_at = (margin + max(-dx, 0), margin + max(-dy, 0))
    else:
        size = shadow.size
        shadow_at = (dx, dy)
        image_at = (margin, margin)

    shadow_layer = _place(shadow, size, shadow_at)
    image_layer = _place(image, size, image_at)
    try:
        return Image.alpha_composite(shadow_layer, image_layer)
    finally:
        for buffer in (silhouette, shadow_mask, shadow, shadow_layer, image_layer):
            buffer.close()


def fill_background(image: Image.Image, gradient: GradientSpec) -> Image.Image:
    """Composite ``image`` over ``gradient`` rendered at the same size."""

    background = gradient.render(*image.size)
    try:
        return Image.alpha_composite(background, image)
    finally:
        background.close()


def checkerboard(width: int, height: int, cell: int = CHECKER_SIZE) -> Image.Image:
    ys, xs = np.indices((height, width))
    dark = ((xs // cell) + (ys // cell)) % 2 == 1
    pixels = np.empty((height, width, 4), dtype=np.uint8)
    pixels[...] = _CHECKER_LIGHT
    pixels[dark] = _CHECKER_DARK
    return Image.fromarray(pixels)


def generate_gradient_preview(
    gradient: GradientSpec,
    width: int,
    height: int,
    border: bool = True,
    checkers: bool = True,
) -> Image.Image:
    """Render a swatch for ``gradient``.

    Transparent areas show a checkerboard when ``checkers`` is set and a one
    pixel black frame is drawn when ``border`` is set.
    """

    if checkers:
        swatch = checkerboard(width, height)
    else:
        swatch = Image.new("RGBA", (width, height), TRANSPARENT)
    if gradient.is_visible:
        fill = gradient.render(width, height)
        swatch.alpha_composite(fill)
        fill.close()
    if border:
        ImageDraw.Draw(swatch).rectangle((0, 0, width - 1, height - 1), outline=(0, 0, 0, 255))
    return swatch


__all__ = [
    "CHECKER_SIZE",
    "Edge",
    "TRANSPARENT",
    "add_canvas",
    "add_shadow",
    "auto_crop",
    "checkerboard",
    "ensure_rgba",
    "fill_background",
    "generate_gradient_preview",
    "release_image",
    "round_corners",
]
