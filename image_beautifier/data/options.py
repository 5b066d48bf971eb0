"""Beautifier option values and the store the UI layer mutates."""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, Optional

from PIL import Image

from .gradient import GradientSpec, default_background


LOGGER = logging.getLogger(__name__)

_SIZE_FIELDS = ("margin", "padding", "rounded_corner", "shadow_size")


def _validate_size(name: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be an integer, got {value!r}")
    if value < 0:
        raise ValueError(f"{name} must be non-negative, got {value}")
    return value


@dataclass
class BeautifierOptions:
    """Parameters applied by the render pipeline.

    A size of ``0`` disables the corresponding stage. ``background`` may be
    ``None`` or an invalid gradient, in which case no fill is applied.
    """

    margin: int = 80
    padding: int = 40
    smart_padding: bool = True
    rounded_corner: int = 20
    shadow_size: int = 30
    background: Optional[GradientSpec] = field(default_factory=default_background)

    def __post_init__(self) -> None:
        for name in _SIZE_FIELDS:
            _validate_size(name, getattr(self, name))
        self.smart_padding = bool(self.smart_padding)

    def copy(self) -> "BeautifierOptions":
        return replace(self, background=None if self.background is None else self.background.copy())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "margin": self.margin,
            "padding": self.padding,
            "smart_padding": self.smart_padding,
            "rounded_corner": self.rounded_corner,
            "shadow_size": self.shadow_size,
            "background": None if self.background is None else self.background.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BeautifierOptions":
        """Create options from :meth:`to_dict` output, defaulting missing keys."""

        defaults = cls()
        values: Dict[str, Any] = {}
        for item in fields(cls):
            if item.name == "background":
                continue
            values[item.name] = data.get(item.name, getattr(defaults, item.name))
        if "background" in data:
            background = data["background"]
            values["background"] = None if background is None else GradientSpec.from_dict(background)
        return cls(**values)


@dataclass(frozen=True)
class RenderSnapshot:
    """Immutable pairing of the source image with an options copy."""

    options: BeautifierOptions
    source: Image.Image


class ParameterStore:
    """Holds the live option values and the session's source image.

    The store is mutated from the interactive thread only. Renders never read
    it directly; they receive a :class:`RenderSnapshot` taken by
    :meth:`snapshot`.
    """

    def __init__(self, source: Image.Image, options: Optional[BeautifierOptions] = None) -> None:
        self._source = source
        self._options = options.copy() if options is not None else BeautifierOptions()

    @property
    def source(self) -> Image.Image:
        return self._source

    @property
    def options(self) -> BeautifierOptions:
        """Return a copy of the current options."""

        return self._options.copy()

    @property
    def margin(self) -> int:
        return self._options.margin

    @margin.setter
    def margin(self, value: int) -> None:
        self._options.margin = _validate_size("margin", value)

    @property
    def padding(self) -> int:
        return self._options.padding

    @padding.setter
    def padding(self, value: int) -> None:
        self._options.padding = _validate_size("padding", value)

    @property
    def smart_padding(self) -> bool:
        return self._options.smart_padding

    @smart_padding.setter
    def smart_padding(self, value: bool) -> None:
        self._options.smart_padding = bool(value)

    @property
    def rounded_corner(self) -> int:
        return self._options.rounded_corner

    @rounded_corner.setter
    def rounded_corner(self, value: int) -> None:
        self._options.rounded_corner = _validate_size("rounded_corner", value)

    @property
    def shadow_size(self) -> int:
        return self._options.shadow_size

    @shadow_size.setter
    def shadow_size(self, value: int) -> None:
        self._options.shadow_size = _validate_size("shadow_size", value)

    @property
    def background(self) -> Optional[GradientSpec]:
        return self._options.background

    @background.setter
    def background(self, value: Optional[GradientSpec]) -> None:
        self._options.background = None if value is None else value.copy()

    def update(self, **changes: Any) -> None:
        """Apply several option changes, validating each through its setter."""

        unknown = set(changes) - {item.name for item in fields(BeautifierOptions)}
        if unknown:
            raise KeyError(f"Unknown beautifier options: {sorted(unknown)}")
        for name, value in changes.items():
            setattr(self, name, value)
        LOGGER.debug("Options updated: %s", sorted(changes))

    def snapshot(self) -> RenderSnapshot:
        return RenderSnapshot(options=copy.deepcopy(self._options), source=self._source)


__all__ = ["BeautifierOptions", "ParameterStore", "RenderSnapshot"]
