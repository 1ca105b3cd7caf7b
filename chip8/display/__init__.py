"""Display subsystem for the CHIP-8 interpreter."""

from .framebuffer import Framebuffer
from .renderer import encode_png, render_image, save_png

__all__ = [
    "Framebuffer",
    "render_image",
    "save_png",
    "encode_png",
]
