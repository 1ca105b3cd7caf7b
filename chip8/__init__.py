"""CHIP-8 interpreter package."""

from .config import MachineConfig
from .decoder import Instruction, disassemble
from .display import Framebuffer
from .errors import (
    Chip8Error,
    InvalidKeyError,
    MachineFault,
    MachineHaltedError,
    ProgramLoadError,
    StackOverflowError,
    StackUnderflowError,
)
from .interpreter import Interpreter, UnknownInstruction
from .keypad import DEFAULT_KEY_MAP, InputState, Key, resolve_key
from .loader import load_program_file
from .state_model import (
    CPUState,
    EmulatorState,
    FieldDiff,
    KeypadState,
    MemoryState,
    StateDiff,
    TimerState,
    capture_state,
    diff_states,
    empty_state_diff,
)
from .timers import TimerClock, TimerRegisters

__all__ = [
    "Interpreter",
    "UnknownInstruction",
    "Instruction",
    "disassemble",
    "Framebuffer",
    "InputState",
    "Key",
    "DEFAULT_KEY_MAP",
    "resolve_key",
    "TimerRegisters",
    "TimerClock",
    "MachineConfig",
    "load_program_file",
    "Chip8Error",
    "ProgramLoadError",
    "MachineFault",
    "StackOverflowError",
    "StackUnderflowError",
    "MachineHaltedError",
    "InvalidKeyError",
    "CPUState",
    "MemoryState",
    "TimerState",
    "KeypadState",
    "EmulatorState",
    "FieldDiff",
    "StateDiff",
    "capture_state",
    "diff_states",
    "empty_state_diff",
]
