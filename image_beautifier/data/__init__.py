"""Data layer: option values, gradients and image file I/O."""

from .gradient import GradientMode, GradientSpec, GradientStop, default_background
from .image_io import ImageRecord, load_image, load_image_record, save_image
from .options import BeautifierOptions, ParameterStore, RenderSnapshot

__all__ = [
    "BeautifierOptions",
    "GradientMode",
    "GradientSpec",
    "GradientStop",
    "ImageRecord",
    "ParameterStore",
    "RenderSnapshot",
    "default_background",
    "load_image",
    "load_image_record",
    "save_image",
]
