"""Shared architecture constants for the CHIP-8 interpreter.

This module centralizes the fixed machine geometry used by the
interpreter, the display, the hosts and the tests.
"""

from typing import Tuple

# 4 KiB of byte-addressable memory.
MEMORY_SIZE = 0x1000

# Sixteen 8-bit general purpose registers V0..VF. VF doubles as the
# result flag written by arithmetic, shift and draw instructions.
NUM_REGISTERS = 16
FLAG_REGISTER = 0xF

# Saved return addresses.
STACK_SIZE = 16

# Monochrome display geometry.
DISPLAY_WIDTH = 64
DISPLAY_HEIGHT = 32

# Delay and sound timers count down at this rate regardless of the
# instruction rate.
TIMER_HZ = 60

# Built-in hexadecimal glyphs live at the bottom of memory, 5 bytes each.
FONT_START = 0x000
FONT_HEIGHT = 5

# Programs are loaded here; everything below is reserved.
PROGRAM_START = 0x200
MAX_PROGRAM_SIZE = MEMORY_SIZE - PROGRAM_START

NUM_KEYS = 16

BYTE_MASK = 0xFF
ADDR_MASK = 0x0FFF
WORD_MASK = 0xFFFF

INSTRUCTION_SIZE = 2

FONT_GLYPHS: Tuple[Tuple[int, ...], ...] = (
    (0xF0, 0x90, 0x90, 0x90, 0xF0),  # 0
    (0x20, 0x60, 0x20, 0x20, 0x70),  # 1
    (0xF0, 0x10, 0xF0, 0x80, 0xF0),  # 2
    (0xF0, 0x10, 0xF0, 0x10, 0xF0),  # 3
    (0x90, 0x90, 0xF0, 0x10, 0x10),  # 4
    (0xF0, 0x80, 0xF0, 0x10, 0xF0),  # 5
    (0xF0, 0x80, 0xF0, 0x90, 0xF0),  # 6
    (0xF0, 0x10, 0x20, 0x40, 0x40),  # 7
    (0xF0, 0x90, 0xF0, 0x90, 0xF0),  # 8
    (0xF0, 0x90, 0xF0, 0x10, 0xF0),  # 9
    (0xF0, 0x90, 0xF0, 0x90, 0x90),  # A
    (0xE0, 0x90, 0xE0, 0x90, 0xE0),  # B
    (0xF0, 0x80, 0x80, 0x80, 0xF0),  # C
    (0xE0, 0x90, 0x90, 0x90, 0xE0),  # D
    (0xF0, 0x80, 0xF0, 0x80, 0xF0),  # E
    (0xF0, 0x80, 0xF0, 0x80, 0x80),  # F
)

FONT_DATA = bytes(byte for glyph in FONT_GLYPHS for byte in glyph)
