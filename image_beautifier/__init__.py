"""Top level package for the image beautifier."""

from __future__ import annotations

import importlib
from importlib import metadata as _importlib_metadata
from typing import Any


def _resolve_distribution_version() -> str:
    """Best-effort retrieval of the installed package version."""

    candidates = ("image-beautifier", "image_beautifier")
    for name in candidates:
        try:
            return _importlib_metadata.version(name)
        except _importlib_metadata.PackageNotFoundError:  # pragma: no cover - metadata lookup
            continue
    return "0.0.0"


__version__ = _resolve_distribution_version()


def get_version() -> str:
    """Return the discovered package version."""

    return __version__


def __getattr__(name: str) -> Any:
    # AppCore pulls in the Qt settings backend; import it only on demand so the
    # render pipeline stays usable without a GUI toolkit loaded.
    if name in {"AppCore", "AppConfiguration"}:
        module = importlib.import_module(".core.app_core", __name__)
        return getattr(module, name)
    raise AttributeError(name)


__all__ = ["AppCore", "AppConfiguration", "__version__", "get_version"]
