"""The five transform stages applied by the render pipeline."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Tuple

from PIL import Image

from image_beautifier.data.options import BeautifierOptions

from . import imaging


LOGGER = logging.getLogger(__name__)

SHADOW_OPACITY = 1.0
SHADOW_ANGLE = 0.0
SHADOW_COLOR = (0, 0, 0, 255)
SHADOW_OFFSET = (0, 0)


@dataclass(frozen=True)
class TransformStage:
    """A named ``Image -> Image`` effect gated by the current options.

    Parameters
    ----------
    name:
        Identifier used in logs and in :class:`~image_beautifier.core.errors.StageFailure`.
    is_enabled:
        Predicate deciding whether the stage runs for a given set of options.
        Disabled stages are skipped entirely.
    transform:
        Callable returning a new image. It must not close or mutate its input.
    """

    name: str
    is_enabled: Callable[[BeautifierOptions], bool]
    transform: Callable[[Image.Image, BeautifierOptions], Image.Image]

    def apply(self, image: Image.Image, options: BeautifierOptions) -> Image.Image:
        LOGGER.debug("Applying stage '%s'", self.name)
        return self.transform(image, options)


def _crop_or_pad(image: Image.Image, options: BeautifierOptions) -> Image.Image:
    if options.smart_padding:
        return imaging.auto_crop(image, True, imaging.Edge.ALL, options.padding)
    color = image.getpixel((0, 0))
    return imaging.add_canvas(image, options.padding, color)


def _round_corners(image: Image.Image, options: BeautifierOptions) -> Image.Image:
    return imaging.round_corners(image, options.rounded_corner)


def _add_margin(image: Image.Image, options: BeautifierOptions) -> Image.Image:
    return imaging.add_canvas(image, options.margin)


def _add_shadow(image: Image.Image, options: BeautifierOptions) -> Image.Image:
    return imaging.add_shadow(
        image,
        SHADOW_OPACITY,
        options.shadow_size,
        SHADOW_ANGLE,
        SHADOW_COLOR,
        SHADOW_OFFSET,
        True,
    )


def _fill_background(image: Image.Image, options: BeautifierOptions) -> Image.Image:
    if options.background is None:
        raise ValueError("fill_background requires a background gradient")
    return imaging.fill_background(image, options.background)


def _has_background(options: BeautifierOptions) -> bool:
    return options.background is not None and options.background.is_valid


CROP_OR_PAD = TransformStage(
    "crop_or_pad",
    lambda options: options.smart_padding or options.padding > 0,
    _crop_or_pad,
)
ROUND_CORNERS = TransformStage("round_corners", lambda options: options.rounded_corner > 0, _round_corners)
ADD_MARGIN = TransformStage("add_margin", lambda options: options.margin > 0, _add_margin)
ADD_SHADOW = TransformStage("add_shadow", lambda options: options.shadow_size > 0, _add_shadow)
FILL_BACKGROUND = TransformStage("fill_background", _has_background, _fill_background)

# Rounding before the margin keeps the curve on the image edge rather than the
# outer margin edge.
DEFAULT_STAGES: Tuple[TransformStage, ...] = (
    CROP_OR_PAD,
    ROUND_CORNERS,
    ADD_MARGIN,
    ADD_SHADOW,
    FILL_BACKGROUND,
)


__all__ = [
    "ADD_MARGIN",
    "ADD_SHADOW",
    "CROP_OR_PAD",
    "DEFAULT_STAGES",
    "FILL_BACKGROUND",
    "ROUND_CORNERS",
    "SHADOW_ANGLE",
    "SHADOW_COLOR",
    "SHADOW_OFFSET",
    "SHADOW_OPACITY",
    "TransformStage",
]
