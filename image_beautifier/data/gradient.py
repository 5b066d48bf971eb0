"""Gradient descriptions used for background fills and swatches."""

from __future__ import annotations

import copy
import enum
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Sequence, Tuple

import numpy as np
from PIL import Image


LOGGER = logging.getLogger(__name__)


RGBA = Tuple[int, int, int, int]


class GradientMode(str, enum.Enum):
    """Direction along which gradient stops are interpolated."""

    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"
    FORWARD_DIAGONAL = "forward_diagonal"
    BACKWARD_DIAGONAL = "backward_diagonal"


def _normalise_color(value: Sequence[int]) -> RGBA:
    channels = [int(channel) for channel in value]
    if len(channels) == 3:
        channels.append(255)
    if len(channels) != 4:
        raise ValueError(f"Colour must have 3 or 4 channels, got {len(channels)}")
    for channel in channels:
        if not 0 <= channel <= 255:
            raise ValueError(f"Colour channel out of range: {channel}")
    return (channels[0], channels[1], channels[2], channels[3])


@dataclass
class GradientStop:
    """A colour anchored at ``location`` percent along the gradient axis."""

    color: RGBA
    location: float

    def __post_init__(self) -> None:
        self.color = _normalise_color(self.color)
        self.location = float(self.location)

    def to_dict(self) -> Dict[str, Any]:
        return {"color": list(self.color), "location": self.location}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GradientStop":
        return cls(color=tuple(data["color"]), location=float(data["location"]))


@dataclass
class GradientSpec:
    """Ordered colour stops rendered along a :class:`GradientMode` axis.

    A gradient is valid when it carries at least one stop and every stop sits
    within the ``0..100`` range. Invalid gradients are skipped by the
    background stage instead of raising.
    """

    mode: GradientMode = GradientMode.VERTICAL
    stops: List[GradientStop] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.mode = GradientMode(self.mode)

    @classmethod
    def from_colors(
        cls, colors: Iterable[Sequence[int]], mode: GradientMode = GradientMode.VERTICAL
    ) -> "GradientSpec":
        """Spread ``colors`` evenly between 0 and 100 percent."""

        palette = list(colors)
        if len(palette) == 1:
            return cls(mode, [GradientStop(tuple(palette[0]), 0.0)])
        last = max(len(palette) - 1, 1)
        stops = [GradientStop(tuple(color), 100.0 * index / last) for index, color in enumerate(palette)]
        return cls(mode, stops)

    @property
    def is_valid(self) -> bool:
        if not self.stops:
            return False
        return all(0.0 <= stop.location <= 100.0 for stop in self.stops)

    @property
    def is_visible(self) -> bool:
        return self.is_valid and any(stop.color[3] > 0 for stop in self.stops)

    def copy(self) -> "GradientSpec":
        return copy.deepcopy(self)

    def sort(self) -> None:
        self.stops.sort(key=lambda stop: stop.location)

    def reverse(self) -> None:
        for stop in self.stops:
            stop.location = 100.0 - stop.location
        self.sort()

    def to_dict(self) -> Dict[str, Any]:
        return {"mode": self.mode.value, "stops": [stop.to_dict() for stop in self.stops]}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GradientSpec":
        return cls(
            mode=GradientMode(data.get("mode", GradientMode.VERTICAL.value)),
            stops=[GradientStop.from_dict(item) for item in data.get("stops", [])],
        )

    def render(self, width: int, height: int) -> Image.Image:
        """Return an RGBA image of ``width`` x ``height`` filled with the gradient."""

        if not self.is_valid:
            raise ValueError("Cannot render a gradient without valid stops")
        if width <= 0 or height <= 0:
            raise ValueError(f"Gradient size must be positive, got {width}x{height}")

        ordered = sorted(self.stops, key=lambda stop: stop.location)
        positions = self._positions(width, height)
        anchors = np.array([stop.location / 100.0 for stop in ordered], dtype=np.float64)
        colors = np.array([stop.color for stop in ordered], dtype=np.float64)

        pixels = np.empty((height, width, 4), dtype=np.uint8)
        for channel in range(4):
            values = np.interp(positions, anchors, colors[:, channel])
            pixels[..., channel] = np.clip(np.rint(values), 0, 255).astype(np.uint8)
        LOGGER.debug("Rendered %s gradient at %sx%s", self.mode.value, width, height)
        return Image.fromarray(pixels)

    def _positions(self, width: int, height: int) -> np.ndarray:
        xs = np.linspace(0.0, 1.0, num=width) if width > 1 else np.zeros(1)
        ys = np.linspace(0.0, 1.0, num=height) if height > 1 else np.zeros(1)
        grid_x, grid_y = np.meshgrid(xs, ys)
        if self.mode is GradientMode.HORIZONTAL:
            return grid_x
        if self.mode is GradientMode.VERTICAL:
            return grid_y
        if self.mode is GradientMode.FORWARD_DIAGONAL:
            return (grid_x + grid_y) / 2.0
        return ((1.0 - grid_x) + grid_y) / 2.0


def default_background() -> GradientSpec:
    """Gradient used when no background has been chosen yet."""

    return GradientSpec(
        GradientMode.FORWARD_DIAGONAL,
        [
            GradientStop((255, 128, 128, 255), 0.0),
            GradientStop((128, 128, 255, 255), 100.0),
        ],
    )


__all__ = [
    "GradientMode",
    "GradientSpec",
    "GradientStop",
    "RGBA",
    "default_background",
]
