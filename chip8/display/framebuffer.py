"""Monochrome framebuffer with XOR sprite blits."""

from __future__ import annotations

import threading
from typing import Iterable

import numpy as np

from ..constants import DISPLAY_HEIGHT, DISPLAY_WIDTH


class Framebuffer:
    """Fixed-size 1-bit pixel grid, row-major, indexed ``[row, column]``.

    Every coordinate wraps modulo the grid size, so there is no
    out-of-bounds state. The interpreter is the only writer; renderers
    read through :meth:`snapshot`, which copies the grid under the lock.
    """

    def __init__(self, width: int = DISPLAY_WIDTH, height: int = DISPLAY_HEIGHT):
        if width <= 0 or height <= 0:
            raise ValueError(f"Invalid framebuffer size: {width}x{height}")
        self._width = width
        self._height = height
        self._pixels = np.zeros((height, width), dtype=bool)
        self._lock = threading.RLock()

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    def clear(self) -> None:
        """Turn every pixel off."""
        with self._lock:
            self._pixels.fill(False)

    def get_pixel(self, x: int, y: int) -> bool:
        with self._lock:
            return bool(self._pixels[y % self._height, x % self._width])

    def set_pixel(self, x: int, y: int, value: bool) -> None:
        with self._lock:
            self._pixels[y % self._height, x % self._width] = bool(value)

    def draw_sprite(self, x: int, y: int, sprite: Iterable[int]) -> bool:
        """XOR ``sprite`` onto the grid with its top-left corner at ``(x, y)``.

        Each byte is one row, most significant bit leftmost. Rows and
        columns that fall off an edge wrap to the opposite edge.

        Returns:
            True if any pixel went from on to off.
        """
        collision = False
        with self._lock:
            for i, row_bits in enumerate(sprite):
                row = (y + i) % self._height
                row_bits &= 0xFF
                for j in range(8):
                    if not (row_bits >> (7 - j)) & 1:
                        continue
                    col = (x + j) % self._width
                    if self._pixels[row, col]:
                        collision = True
                        self._pixels[row, col] = False
                    else:
                        self._pixels[row, col] = True
        return collision

    def snapshot(self) -> np.ndarray:
        """Return a copy of the pixel grid, shape ``(height, width)``."""
        with self._lock:
            return self._pixels.copy()

    def lit_pixel_count(self) -> int:
        with self._lock:
            return int(np.count_nonzero(self._pixels))

    def to_text(self, on: str = "#", off: str = ".") -> str:
        """Render the grid as text, one line per row."""
        pixels = self.snapshot()
        return "\n".join(
            "".join(on if bit else off for bit in row) for row in pixels
        )


__all__ = ["Framebuffer"]
