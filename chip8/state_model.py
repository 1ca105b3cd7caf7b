"""Canonical interpreter state snapshots and diff utilities."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional, Tuple

from .interpreter import Interpreter


@dataclass(frozen=True)
class CPUState:
    """Registers, program counter, index and stack."""

    registers: Tuple[int, ...]
    pc: int
    index: int
    sp: int
    stack: Tuple[int, ...]
    instruction_count: int
    waiting_for_key: bool
    halted: bool


@dataclass(frozen=True)
class MemoryState:
    """Full 4 KiB memory image."""

    data: bytes


@dataclass(frozen=True)
class TimerState:
    delay: int
    sound: int


@dataclass(frozen=True)
class KeypadState:
    pressed_keys: Tuple[int, ...]
    last_pressed: Optional[int]


@dataclass(frozen=True)
class EmulatorState:
    """Composite immutable snapshot of the machine."""

    cpu: CPUState
    memory: MemoryState
    timers: TimerState
    keypad: KeypadState
    display: Tuple[Tuple[bool, ...], ...]


@dataclass(frozen=True)
class FieldDiff:
    """Difference for a single named field."""

    name: str
    before: object
    after: object


@dataclass(frozen=True)
class StateDiff:
    """Aggregated differences between two snapshots."""

    cpu: Tuple[FieldDiff, ...] = field(default_factory=tuple)
    memory: Tuple[FieldDiff, ...] = field(default_factory=tuple)
    timers: Tuple[FieldDiff, ...] = field(default_factory=tuple)
    keypad: Tuple[FieldDiff, ...] = field(default_factory=tuple)
    display_changed: bool = False

    def is_empty(self) -> bool:
        """Return True when no differences were recorded."""

        return (
            not self.cpu
            and not self.memory
            and not self.timers
            and not self.keypad
            and not self.display_changed
        )


def empty_state_diff() -> StateDiff:
    """Return a reusable empty diff instance."""

    return StateDiff()


def capture_state(interpreter: Interpreter) -> EmulatorState:
    """Capture the current machine state as canonical snapshot."""

    cpu = CPUState(
        registers=tuple(interpreter.registers),
        pc=interpreter.pc,
        index=interpreter.index,
        sp=interpreter.sp,
        stack=tuple(interpreter.stack[: interpreter.sp]),
        instruction_count=interpreter.instruction_count,
        waiting_for_key=interpreter.waiting_for_key,
        halted=interpreter.halted,
    )
    last = interpreter.keypad.last_pressed()
    keypad = KeypadState(
        pressed_keys=tuple(int(key) for key in interpreter.keypad.pressed_keys()),
        last_pressed=int(last) if last is not None else None,
    )
    pixels = interpreter.framebuffer.snapshot()
    return EmulatorState(
        cpu=cpu,
        memory=MemoryState(data=bytes(interpreter.memory)),
        timers=TimerState(delay=interpreter.timers.delay, sound=interpreter.timers.sound),
        keypad=keypad,
        display=tuple(tuple(bool(bit) for bit in row) for row in pixels),
    )


def diff_states(before: Optional[EmulatorState], after: EmulatorState) -> StateDiff:
    """Compute structured differences between two snapshots."""

    if before is None:
        return empty_state_diff()

    return StateDiff(
        cpu=_diff_cpu(before.cpu, after.cpu),
        memory=_diff_memory(before.memory, after.memory),
        timers=_diff_fields(before.timers, after.timers, ("delay", "sound")),
        keypad=_diff_fields(before.keypad, after.keypad, ("pressed_keys", "last_pressed")),
        display_changed=before.display != after.display,
    )


def _diff_cpu(before: CPUState, after: CPUState) -> Tuple[FieldDiff, ...]:
    diffs: list[FieldDiff] = []
    for idx, (previous, current) in enumerate(zip(before.registers, after.registers)):
        if previous != current:
            diffs.append(FieldDiff(f"registers.V{idx:X}", previous, current))
    diffs.extend(
        _diff_fields(
            before,
            after,
            ("pc", "index", "sp", "stack", "instruction_count", "waiting_for_key", "halted"),
        )
    )
    return tuple(diffs)


def _diff_memory(before: MemoryState, after: MemoryState) -> Tuple[FieldDiff, ...]:
    diffs: list[FieldDiff] = []
    for address in _changed_addresses(before.data, after.data):
        diffs.append(
            FieldDiff(f"memory[0x{address:03X}]", before.data[address], after.data[address])
        )
    return tuple(diffs)


def _changed_addresses(before: bytes, after: bytes) -> Iterable[int]:
    if before == after:
        return ()
    return (idx for idx, (a, b) in enumerate(zip(before, after)) if a != b)


def _diff_fields(
    before: object, after: object, names: Iterable[str]
) -> Tuple[FieldDiff, ...]:
    diffs: list[FieldDiff] = []
    for name in names:
        previous = getattr(before, name)
        current = getattr(after, name)
        if previous != current:
            diffs.append(FieldDiff(name, previous, current))
    return tuple(diffs)


__all__ = [
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
