"""Exception types raised by the CHIP-8 interpreter and its hosts."""

from __future__ import annotations

from typing import Optional


class Chip8Error(Exception):
    """Base class for all interpreter errors."""


class ProgramLoadError(Chip8Error):
    """The program image could not be read or does not fit in memory."""

    def __init__(self, message: str, *, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class MachineFault(Chip8Error):
    """Hard fault that halts execution until the machine is reset."""

    def __init__(self, message: str, *, pc: int, instruction: int):
        super().__init__(f"{message} (pc=0x{pc:03X}, instruction=0x{instruction:04X})")
        self.pc = pc
        self.instruction = instruction


class StackOverflowError(MachineFault):
    """CALL with every stack slot already in use."""


class StackUnderflowError(MachineFault):
    """RET with nothing on the stack."""


class MachineHaltedError(Chip8Error):
    """``step()`` was called on a machine halted by an earlier fault."""

    def __init__(self, fault: MachineFault):
        super().__init__(f"machine halted by earlier fault: {fault}")
        self.fault = fault


class InvalidKeyError(Chip8Error, ValueError):
    """Key identifier outside the 16-key keypad."""


__all__ = [
    "Chip8Error",
    "ProgramLoadError",
    "MachineFault",
    "StackOverflowError",
    "StackUnderflowError",
    "MachineHaltedError",
    "InvalidKeyError",
]
