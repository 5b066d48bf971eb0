"""Image I/O helpers for loading source images and saving previews.

Raster files are decoded with :mod:`Pillow` and always normalised to RGBA so
the render stages can rely on an alpha channel. :class:`ImageRecord` couples
the decoded pixels with the metadata captured at load time (format, original
mode, size, ``info`` entries, EXIF and ICC payloads). :func:`save_image`
re-applies that metadata when a record is written back, allowing the
"Save" action to round-trip DPI and colour profiles of the file it opened.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from PIL import Image, UnidentifiedImageError

from image_beautifier.core.errors import LoadError


LOGGER = logging.getLogger(__name__)

_SUPPORTED_RASTER_SUFFIXES = {".png", ".jpg", ".jpeg", ".tif", ".tiff", ".bmp", ".gif", ".webp"}
_OPAQUE_FORMATS = {"JPEG", "BMP"}
_FORMAT_ALIASES = {"JPG": "JPEG", "TIF": "TIFF"}


@dataclass(slots=True)
class ImageRecord:
    """Container coupling an RGBA image with the metadata it was loaded with."""

    image: Image.Image
    metadata: Dict[str, Any] = field(default_factory=dict)
    path: Optional[Path] = None

    def close(self) -> None:
        self.image.close()


def load_image_record(path: Path | str) -> ImageRecord:
    """Decode ``path`` into an :class:`ImageRecord`.

    Raises
    ------
    LoadError
        If the path does not exist, is not a file, has an unsupported suffix
        or cannot be decoded by Pillow.
    """

    resolved = Path(path).expanduser()
    if not resolved.exists():
        raise LoadError(resolved, "file does not exist")
    if not resolved.is_file():
        raise LoadError(resolved, "path is not a file")
    if resolved.suffix.lower() not in _SUPPORTED_RASTER_SUFFIXES:
        raise LoadError(resolved, f"unsupported image format '{resolved.suffix}'")

    try:
        with Image.open(resolved) as img:
            metadata: Dict[str, Any] = {
                "format": img.format,
                "mode": img.mode,
                "size": img.size,
                "info": {key: value for key, value in img.info.items() if key not in {"exif", "icc_profile"}},
            }
            exif = img.getexif()
            if exif:
                metadata["exif"] = exif.tobytes()
            icc_profile = img.info.get("icc_profile")
            if icc_profile:
                metadata["icc_profile"] = icc_profile
            img.load()
            rgba = img.convert("RGBA")
    except UnidentifiedImageError as exc:
        raise LoadError(resolved, "file is not a recognised image") from exc
    except Image.DecompressionBombError as exc:
        raise LoadError(resolved, f"image is too large to decode safely: {exc}") from exc
    except (OSError, ValueError, SyntaxError) as exc:
        # Some Pillow decoders report corrupt headers as ValueError/SyntaxError.
        raise LoadError(resolved, str(exc)) from exc

    LOGGER.info(
        "Loaded source image",
        extra={"component": "image_io", "size": rgba.size, "format": metadata["format"]},
    )
    return ImageRecord(image=rgba, metadata=metadata, path=resolved)


def load_image(path: Path | str) -> Image.Image:
    """Return the RGBA pixels stored at ``path``."""

    return load_image_record(path).image


def _prepare_save_metadata(metadata: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    if not metadata:
        return {}
    save_args: Dict[str, Any] = {}

    info = metadata.get("info")
    if isinstance(info, Mapping):
        for key in ("dpi",):
            if key in info:
                save_args[key] = info[key]

    exif = metadata.get("exif")
    if exif is not None:
        save_args["exif"] = exif

    icc_profile = metadata.get("icc_profile")
    if icc_profile is not None:
        save_args["icc_profile"] = icc_profile

    return save_args


def _resolve_format(destination: Path, format: Optional[str]) -> str:
    fmt = (format or destination.suffix.lstrip(".")).upper()
    fmt = _FORMAT_ALIASES.get(fmt, fmt)
    if f".{fmt.lower()}" not in _SUPPORTED_RASTER_SUFFIXES:
        raise ValueError(f"Unsupported image format for saving: {fmt}")
    return fmt


def save_image(
    image: Image.Image,
    path: Path | str,
    format: Optional[str] = None,
    *,
    metadata: Optional[Mapping[str, Any]] = None,
) -> Path:
    """Persist ``image`` to ``path`` and return the written location.

    Formats without an alpha channel receive the image flattened onto white.
    """

    destination = Path(path).expanduser()
    destination.parent.mkdir(parents=True, exist_ok=True)
    fmt = _resolve_format(destination, format)

    output = image
    if fmt in _OPAQUE_FORMATS and image.mode in {"RGBA", "LA", "P"}:
        rgba = image.convert("RGBA")
        output = Image.new("RGB", rgba.size, (255, 255, 255))
        output.paste(rgba, mask=rgba.getchannel("A"))
        rgba.close()

    try:
        output.save(destination, format=fmt, **_prepare_save_metadata(metadata))
    finally:
        if output is not image:
            output.close()
    LOGGER.info("Saved image", extra={"component": "image_io", "format": fmt})
    return destination


__all__ = ["ImageRecord", "load_image", "load_image_record", "save_image"]
