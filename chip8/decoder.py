"""Instruction decoding and disassembly."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, List, Tuple

from .constants import ADDR_MASK, INSTRUCTION_SIZE, PROGRAM_START


@dataclass(frozen=True)
class Instruction:
    """A 16-bit instruction split into its nibble fields.

    ``op`` is the top nibble; ``x``, ``y`` and ``n`` the following ones.
    ``nn`` is the low byte and ``nnn`` the low 12 bits.
    """

    raw: int
    op: int
    x: int
    y: int
    n: int
    nn: int
    nnn: int

    @classmethod
    def decode(cls, raw: int) -> "Instruction":
        raw &= 0xFFFF
        return cls(
            raw=raw,
            op=(raw >> 12) & 0xF,
            x=(raw >> 8) & 0xF,
            y=(raw >> 4) & 0xF,
            n=raw & 0xF,
            nn=raw & 0xFF,
            nnn=raw & ADDR_MASK,
        )

    @classmethod
    def fetch(cls, high: int, low: int) -> "Instruction":
        return cls.decode(((high & 0xFF) << 8) | (low & 0xFF))

    def __str__(self) -> str:
        return disassemble(self.raw)


def _fmt_0(ins: Instruction) -> str | None:
    if ins.raw == 0x00E0:
        return "CLS"
    if ins.raw == 0x00EE:
        return "RET"
    return None


def _fmt_8(ins: Instruction) -> str | None:
    names = {
        0x0: "LD",
        0x1: "OR",
        0x2: "AND",
        0x3: "XOR",
        0x4: "ADD",
        0x5: "SUB",
        0x6: "SHR",
        0x7: "SUBN",
        0xE: "SHL",
    }
    name = names.get(ins.n)
    if name is None:
        return None
    if ins.n in (0x6, 0xE):
        return f"{name} V{ins.x:X}"
    return f"{name} V{ins.x:X}, V{ins.y:X}"


def _fmt_e(ins: Instruction) -> str | None:
    if ins.nn == 0x9E:
        return f"SKP V{ins.x:X}"
    if ins.nn == 0xA1:
        return f"SKNP V{ins.x:X}"
    return None


_F_FORMATS: Dict[int, str] = {
    0x07: "LD V{x:X}, DT",
    0x0A: "LD V{x:X}, K",
    0x15: "LD DT, V{x:X}",
    0x18: "LD ST, V{x:X}",
    0x1E: "ADD I, V{x:X}",
    0x29: "LD F, V{x:X}",
    0x33: "LD B, V{x:X}",
    0x55: "LD [I], V{x:X}",
    0x65: "LD V{x:X}, [I]",
}


def _fmt_f(ins: Instruction) -> str | None:
    template = _F_FORMATS.get(ins.nn)
    if template is None:
        return None
    return template.format(x=ins.x)


_FORMATTERS: Dict[int, Callable[[Instruction], str | None]] = {
    0x0: _fmt_0,
    0x1: lambda ins: f"JP 0x{ins.nnn:03X}",
    0x2: lambda ins: f"CALL 0x{ins.nnn:03X}",
    0x3: lambda ins: f"SE V{ins.x:X}, 0x{ins.nn:02X}",
    0x4: lambda ins: f"SNE V{ins.x:X}, 0x{ins.nn:02X}",
    0x5: lambda ins: f"SE V{ins.x:X}, V{ins.y:X}" if ins.n == 0 else None,
    0x6: lambda ins: f"LD V{ins.x:X}, 0x{ins.nn:02X}",
    0x7: lambda ins: f"ADD V{ins.x:X}, 0x{ins.nn:02X}",
    0x8: _fmt_8,
    0x9: lambda ins: f"SNE V{ins.x:X}, V{ins.y:X}" if ins.n == 0 else None,
    0xA: lambda ins: f"LD I, 0x{ins.nnn:03X}",
    0xB: lambda ins: f"JP V{ins.x:X}, 0x{ins.nnn:03X}",
    0xC: lambda ins: f"RND V{ins.x:X}, 0x{ins.nn:02X}",
    0xD: lambda ins: f"DRW V{ins.x:X}, V{ins.y:X}, {ins.n}",
    0xE: _fmt_e,
    0xF: _fmt_f,
}


def disassemble(raw: int) -> str:
    """Return the mnemonic for ``raw``; unknown words render as ``DW``."""
    ins = Instruction.decode(raw)
    text = _FORMATTERS[ins.op](ins)
    if text is None:
        return f"DW 0x{ins.raw:04X}"
    return text


def is_recognized(raw: int) -> bool:
    """Whether ``raw`` is one of the documented instructions."""
    ins = Instruction.decode(raw)
    return _FORMATTERS[ins.op](ins) is not None


def disassemble_program(
    data: bytes, start: int = PROGRAM_START
) -> List[Tuple[int, int, str]]:
    """Disassemble a program image.

    Returns:
        ``(address, raw, mnemonic)`` tuples, one per 2-byte word. A
        trailing odd byte is listed as a word padded with zero.
    """
    listing: List[Tuple[int, int, str]] = []
    for offset in range(0, len(data), INSTRUCTION_SIZE):
        high = data[offset]
        low = data[offset + 1] if offset + 1 < len(data) else 0
        raw = (high << 8) | low
        listing.append((start + offset, raw, disassemble(raw)))
    return listing


__all__ = [
    "Instruction",
    "disassemble",
    "disassemble_program",
    "is_recognized",
]
