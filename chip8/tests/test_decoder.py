"""Tests for instruction decoding and disassembly."""

from __future__ import annotations

import pytest

from chip8.constants import ADDR_MASK
from chip8.decoder import Instruction, disassemble, disassemble_program, is_recognized


def test_decode_fields():
    ins = Instruction.decode(0xD12F)
    assert (ins.op, ins.x, ins.y, ins.n) == (0xD, 0x1, 0x2, 0xF)
    assert ins.nn == 0x2F
    assert ins.nnn == 0x12F


def test_fetch_is_big_endian():
    assert Instruction.fetch(0xA2, 0x34).raw == 0xA234


@pytest.mark.parametrize(
    "raw, text",
    [
        (0x00E0, "CLS"),
        (0x00EE, "RET"),
        (0x1234, "JP 0x234"),
        (0x2ABC, "CALL 0xABC"),
        (0x3A05, "SE VA, 0x05"),
        (0x4B10, "SNE VB, 0x10"),
        (0x5120, "SE V1, V2"),
        (0x6FFF, "LD VF, 0xFF"),
        (0x7001, "ADD V0, 0x01"),
        (0x8124, "ADD V1, V2"),
        (0x8126, "SHR V1"),
        (0x812E, "SHL V1"),
        (0x9120, "SNE V1, V2"),
        (0xA123, "LD I, 0x123"),
        (0xB300, "JP V3, 0x300"),
        (0xC70F, "RND V7, 0x0F"),
        (0xD015, "DRW V0, V1, 5"),
        (0xE39E, "SKP V3"),
        (0xE3A1, "SKNP V3"),
        (0xF40A, "LD V4, K"),
        (0xF229, "LD F, V2"),
        (0xF565, "LD V5, [I]"),
    ],
)
def test_mnemonics(raw, text):
    assert disassemble(raw) == text
    assert is_recognized(raw)


@pytest.mark.parametrize("raw", [0x0123, 0x5121, 0x8128, 0x912F, 0xE300, 0xF3FF])
def test_unknown_words(raw):
    assert disassemble(raw) == f"DW 0x{raw:04X}"
    assert not is_recognized(raw)


def test_str_uses_mnemonic():
    assert str(Instruction.decode(0x00E0)) == "CLS"


def test_disassemble_program_addresses_and_padding():
    listing = disassemble_program(bytes([0x00, 0xE0, 0x12]))
    assert listing == [
        (0x200, 0x00E0, "CLS"),
        (0x202, 0x1200, "JP 0x200"),
    ]


@pytest.mark.parametrize("raw", [0x1FFF, 0x2FFF, 0xAFFF, 0xBFFF])
def test_address_operand_is_twelve_bits(raw):
    assert Instruction.decode(raw).nnn == ADDR_MASK
