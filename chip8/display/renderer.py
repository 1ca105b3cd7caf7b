"""Image rendering helpers for framebuffer snapshots."""

from __future__ import annotations

import io
from pathlib import Path
from typing import Tuple, Union

import numpy as np
from PIL import Image

from .framebuffer import Framebuffer

Color = Tuple[int, int, int]
PixelSource = Union[Framebuffer, np.ndarray]

ON_COLOR: Color = (255, 255, 255)
OFF_COLOR: Color = (0, 0, 0)
DEFAULT_ZOOM = 8


def _pixels_of(source: PixelSource) -> np.ndarray:
    if isinstance(source, Framebuffer):
        return source.snapshot()
    return np.asarray(source, dtype=bool)


def render_image(
    source: PixelSource,
    zoom: int = DEFAULT_ZOOM,
    on_color: Color = ON_COLOR,
    off_color: Color = OFF_COLOR,
) -> Image.Image:
    """Render a framebuffer (or a snapshot of one) to an RGB image.

    Args:
        source: Framebuffer or boolean array of shape ``(height, width)``
        zoom: Integer scale factor, nearest-neighbour
        on_color: RGB color of lit pixels
        off_color: RGB color of dark pixels

    Returns:
        PIL Image of size ``(width * zoom, height * zoom)``
    """
    if zoom < 1:
        raise ValueError(f"Invalid zoom: {zoom}")

    pixels = _pixels_of(source)
    height, width = pixels.shape
    rgb = np.empty((height, width, 3), dtype=np.uint8)
    rgb[...] = off_color
    rgb[pixels] = on_color

    image = Image.fromarray(rgb)
    if zoom > 1:
        image = image.resize((width * zoom, height * zoom), Image.NEAREST)
    return image


def save_png(source: PixelSource, path: Union[str, Path], zoom: int = DEFAULT_ZOOM) -> Path:
    """Save the display as a PNG file and return its path."""
    target = Path(path)
    render_image(source, zoom=zoom).save(target, format="PNG")
    return target


def encode_png(source: PixelSource, zoom: int = 1) -> bytes:
    """Encode the display as PNG bytes."""
    buffer = io.BytesIO()
    render_image(source, zoom=zoom).save(buffer, format="PNG")
    return buffer.getvalue()


__all__ = [
    "render_image",
    "save_png",
    "encode_png",
    "ON_COLOR",
    "OFF_COLOR",
    "DEFAULT_ZOOM",
]
