"""Property tests for the arithmetic instructions."""

from __future__ import annotations

from hypothesis import given, settings
from hypothesis import strategies as st

from chip8.constants import FLAG_REGISTER
from chip8.interpreter import Interpreter

BYTES = st.integers(min_value=0, max_value=0xFF)


def _execute(word: int, vx: int, vy: int) -> Interpreter:
    emu = Interpreter(word.to_bytes(2, "big"))
    emu.registers[0] = vx
    emu.registers[1] = vy
    emu.step()
    return emu


@given(a=BYTES, b=BYTES)
@settings(max_examples=300, deadline=None)
def test_add_sets_carry_iff_overflow(a: int, b: int) -> None:
    emu = _execute(0x8014, a, b)
    assert emu.registers[0] == (a + b) % 256
    assert emu.registers[FLAG_REGISTER] == (1 if a + b > 255 else 0)


@given(a=BYTES, b=BYTES)
@settings(max_examples=300, deadline=None)
def test_sub_flag_compares_before_mutation(a: int, b: int) -> None:
    emu = _execute(0x8015, a, b)
    assert emu.registers[0] == (a - b) % 256
    assert emu.registers[FLAG_REGISTER] == (1 if a > b else 0)


@given(a=BYTES, b=BYTES)
@settings(max_examples=300, deadline=None)
def test_subn_flag_compares_before_mutation(a: int, b: int) -> None:
    emu = _execute(0x8017, a, b)
    assert emu.registers[0] == (b - a) % 256
    assert emu.registers[FLAG_REGISTER] == (1 if a < b else 0)


@given(a=BYTES)
def test_shifts_flag_the_bit_shifted_out(a: int) -> None:
    right = _execute(0x8016, a, 0)
    assert right.registers[0] == a >> 1
    assert right.registers[FLAG_REGISTER] == a & 1

    left = _execute(0x801E, a, 0)
    assert left.registers[0] == (a << 1) & 0xFF
    assert left.registers[FLAG_REGISTER] == a >> 7


@given(a=BYTES, nn=BYTES, flag=BYTES)
def test_add_immediate_never_touches_flag(a: int, nn: int, flag: int) -> None:
    emu = Interpreter((0x7000 | nn).to_bytes(2, "big"))
    emu.registers[0] = a
    emu.registers[FLAG_REGISTER] = flag
    emu.step()
    assert emu.registers[0] == (a + nn) % 256
    assert emu.registers[FLAG_REGISTER] == flag


@given(value=BYTES)
def test_bcd_digits(value: int) -> None:
    emu = Interpreter(bytes.fromhex("A600F033"))
    emu.registers[0] = value
    emu.step()
    emu.step()
    hundreds, tens, units = emu.memory[0x600:0x603]
    assert hundreds * 100 + tens * 10 + units == value
    assert max(tens, units) <= 9
