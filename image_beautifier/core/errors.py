"""Exception types shared across the beautifier packages."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional


class BeautifierError(Exception):
    """Base class for errors raised by :mod:`image_beautifier`."""


class LoadError(BeautifierError):
    """Raised when a source image cannot be read or decoded."""

    def __init__(self, path: Optional[Path], reason: str) -> None:
        self.path = path
        self.reason = reason
        location = str(path) if path is not None else "<memory>"
        super().__init__(f"Unable to load image '{location}': {reason}")


@dataclass
class StageFailure:
    """Report generated when a transform stage fails during a render."""

    stage_name: str
    exception: Exception
    traceback: str


class StageError(BeautifierError):
    """Error raised when a transform stage cannot be applied."""

    def __init__(self, failure: StageFailure) -> None:
        message = f"Render stage '{failure.stage_name}' failed: {failure.exception}"
        super().__init__(message)
        self.failure = failure


class DisposalError(BeautifierError):
    """Releasing an image buffer failed. Logged, never propagated."""


__all__ = [
    "BeautifierError",
    "DisposalError",
    "LoadError",
    "StageError",
    "StageFailure",
]
