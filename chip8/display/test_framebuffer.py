"""Unit tests for the XOR framebuffer."""

import threading

import numpy as np
import pytest

from . import Framebuffer


class TestDrawSprite:
    """Sprite blits, collisions and wraparound."""

    def test_row_is_msb_first(self):
        fb = Framebuffer()
        assert fb.draw_sprite(0, 0, [0b10100000]) is False
        assert fb.get_pixel(0, 0)
        assert not fb.get_pixel(1, 0)
        assert fb.get_pixel(2, 0)
        assert fb.lit_pixel_count() == 2

    def test_second_draw_erases_and_collides(self):
        fb = Framebuffer()
        glyph = [0xF0, 0x90, 0x90, 0x90, 0xF0]
        assert fb.draw_sprite(10, 4, glyph) is False
        assert fb.lit_pixel_count() == 14
        assert fb.draw_sprite(10, 4, glyph) is True
        assert fb.lit_pixel_count() == 0

    def test_partial_overlap_collides(self):
        fb = Framebuffer()
        fb.draw_sprite(0, 0, [0x80])
        assert fb.draw_sprite(0, 0, [0xC0]) is True
        assert not fb.get_pixel(0, 0)
        assert fb.get_pixel(1, 0)

    def test_no_collision_when_only_lighting(self):
        fb = Framebuffer()
        fb.draw_sprite(0, 0, [0x80])
        assert fb.draw_sprite(1, 0, [0x80]) is False

    def test_wraps_horizontally(self):
        fb = Framebuffer()
        fb.draw_sprite(62, 0, [0xF0])
        assert fb.get_pixel(62, 0)
        assert fb.get_pixel(63, 0)
        assert fb.get_pixel(0, 0)
        assert fb.get_pixel(1, 0)
        assert fb.lit_pixel_count() == 4

    def test_wraps_vertically(self):
        fb = Framebuffer()
        fb.draw_sprite(0, 31, [0x80, 0x80])
        assert fb.get_pixel(0, 31)
        assert fb.get_pixel(0, 0)

    def test_origin_wraps(self):
        fb = Framebuffer()
        fb.draw_sprite(64 + 3, 32 + 2, [0x80])
        assert fb.get_pixel(3, 2)

    def test_empty_sprite(self):
        fb = Framebuffer()
        assert fb.draw_sprite(5, 5, []) is False
        assert fb.lit_pixel_count() == 0


class TestGrid:
    def test_dimensions(self):
        fb = Framebuffer()
        assert (fb.width, fb.height) == (64, 32)
        assert fb.snapshot().shape == (32, 64)

    def test_invalid_size(self):
        with pytest.raises(ValueError):
            Framebuffer(0, 32)

    def test_clear(self):
        fb = Framebuffer()
        fb.draw_sprite(0, 0, [0xFF] * 4)
        fb.clear()
        assert fb.lit_pixel_count() == 0

    def test_pixel_access_wraps(self):
        fb = Framebuffer()
        fb.set_pixel(-1, -1, True)
        assert fb.get_pixel(63, 31)

    def test_snapshot_is_a_copy(self):
        fb = Framebuffer()
        snap = fb.snapshot()
        fb.set_pixel(0, 0, True)
        assert not snap[0, 0]
        snap[1, 1] = True
        assert not fb.get_pixel(1, 1)

    def test_to_text(self):
        fb = Framebuffer(4, 2)
        fb.set_pixel(1, 0, True)
        assert fb.to_text() == ".#..\n...."
        assert fb.to_text(on="X", off=" ") == " X  \n    "


def test_concurrent_snapshots_see_whole_sprites():
    """Readers never observe a half-drawn 8x15 block."""
    fb = Framebuffer()
    stop = threading.Event()
    torn = []

    def reader():
        while not stop.is_set():
            lit = np.count_nonzero(fb.snapshot())
            if lit not in (0, 120):
                torn.append(lit)

    thread = threading.Thread(target=reader)
    thread.start()
    for _ in range(200):
        fb.draw_sprite(8, 8, [0xFF] * 15)
    stop.set()
    thread.join()
    assert torn == []
