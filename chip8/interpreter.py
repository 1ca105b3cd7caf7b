"""CHIP-8 interpreter: machine state and the fetch-decode-execute cycle."""

from __future__ import annotations

import logging
import random
from collections import deque
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Deque, Dict, List, Optional

from .constants import (
    BYTE_MASK,
    FLAG_REGISTER,
    FONT_DATA,
    FONT_HEIGHT,
    FONT_START,
    INSTRUCTION_SIZE,
    MAX_PROGRAM_SIZE,
    MEMORY_SIZE,
    NUM_REGISTERS,
    PROGRAM_START,
    STACK_SIZE,
    WORD_MASK,
)
from .decoder import Instruction, disassemble
from .display.framebuffer import Framebuffer
from .errors import (
    MachineFault,
    MachineHaltedError,
    ProgramLoadError,
    StackOverflowError,
    StackUnderflowError,
)
from .keypad import InputState
from .timers import TimerRegisters

if TYPE_CHECKING:
    from .config import MachineConfig

logger = logging.getLogger(__name__)

DIAGNOSTIC_HISTORY_LIMIT = 64


@dataclass(frozen=True)
class UnknownInstruction:
    """Diagnostic for an instruction word outside the documented set."""

    pc: int
    instruction: int

    def __str__(self) -> str:
        return f"Unknown instruction 0x{self.instruction:04X} at 0x{self.pc:03X}"


DiagnosticListener = Callable[[UnknownInstruction], None]
ToneListener = Callable[[bool], None]

# Handlers return the next program counter, or None for the default +2.
_Handler = Callable[["Interpreter", Instruction], Optional[int]]


class Interpreter:
    """Owns memory, registers, stack and timers; executes one instruction per step.

    The framebuffer and keypad are injected so the host can share them
    with its renderer and key-event source.
    """

    def __init__(
        self,
        program: bytes = b"",
        *,
        framebuffer: Optional[Framebuffer] = None,
        keypad: Optional[InputState] = None,
        timers: Optional[TimerRegisters] = None,
        rng: Optional[random.Random] = None,
        config: Optional["MachineConfig"] = None,
    ):
        self.config = config
        self.framebuffer = framebuffer if framebuffer is not None else Framebuffer()
        self.keypad = keypad if keypad is not None else InputState()
        self.timers = timers if timers is not None else TimerRegisters()
        if rng is None:
            seed = config.rng_seed if config is not None else None
            rng = random.Random(seed)
        self.rng = rng

        self.memory = bytearray(MEMORY_SIZE)
        self.registers = bytearray(NUM_REGISTERS)
        self.stack: List[int] = [0] * STACK_SIZE
        self.sp = 0
        self.pc = PROGRAM_START
        self.index = 0

        self.instruction_count = 0
        self.cycle_count = 0
        self.waiting_for_key = False
        self.fault: Optional[MachineFault] = None
        self.diagnostics: Deque[UnknownInstruction] = deque(
            maxlen=DIAGNOSTIC_HISTORY_LIMIT
        )
        self._diagnostic_listeners: List[DiagnosticListener] = []
        self._tone_listeners: List[ToneListener] = []

        self._program = b""
        self.load_program(program)

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    def load_program(self, program: bytes) -> None:
        """Replace the program image and reset the machine.

        Raises:
            ProgramLoadError: the image does not fit above ``PROGRAM_START``.
        """
        data = bytes(program)
        if len(data) > MAX_PROGRAM_SIZE:
            raise ProgramLoadError(
                f"Program is {len(data)} bytes; at most {MAX_PROGRAM_SIZE} fit in memory"
            )
        self._program = data
        self.reset()

    def reset(self) -> None:
        """Restore the power-on state with the current program loaded."""
        self.memory[:] = bytes(MEMORY_SIZE)
        self.memory[FONT_START : FONT_START + len(FONT_DATA)] = FONT_DATA
        self.memory[PROGRAM_START : PROGRAM_START + len(self._program)] = self._program

        self.registers[:] = bytes(NUM_REGISTERS)
        self.stack = [0] * STACK_SIZE
        self.sp = 0
        self.pc = PROGRAM_START
        self.index = 0
        self.timers.reset()
        self.framebuffer.clear()

        self.instruction_count = 0
        self.cycle_count = 0
        self.waiting_for_key = False
        self.fault = None
        self.diagnostics.clear()
        logger.debug("Machine reset with %d-byte program", len(self._program))

    @property
    def program(self) -> bytes:
        return self._program

    @property
    def halted(self) -> bool:
        return self.fault is not None

    # ------------------------------------------------------------------ #
    # Listeners
    # ------------------------------------------------------------------ #

    def add_diagnostic_listener(self, listener: DiagnosticListener) -> None:
        self._diagnostic_listeners.append(listener)

    def remove_diagnostic_listener(self, listener: DiagnosticListener) -> None:
        self._diagnostic_listeners.remove(listener)

    def add_tone_listener(self, listener: ToneListener) -> None:
        self._tone_listeners.append(listener)

    def remove_tone_listener(self, listener: ToneListener) -> None:
        self._tone_listeners.remove(listener)

    # ------------------------------------------------------------------ #
    # Memory and register accessors
    # ------------------------------------------------------------------ #

    def read_byte(self, address: int) -> int:
        return self.memory[address % MEMORY_SIZE]

    def write_byte(self, address: int, value: int) -> None:
        self.memory[address % MEMORY_SIZE] = value & BYTE_MASK

    def read_block(self, address: int, length: int) -> bytes:
        return bytes(self.memory[(address + i) % MEMORY_SIZE] for i in range(length))

    def get_register(self, index: int) -> int:
        return self.registers[index & 0xF]

    def set_register(self, index: int, value: int) -> None:
        self.registers[index & 0xF] = value & BYTE_MASK

    @property
    def delay_timer(self) -> int:
        return self.timers.delay

    @property
    def sound_timer(self) -> int:
        return self.timers.sound

    # ------------------------------------------------------------------ #
    # Execution
    # ------------------------------------------------------------------ #

    def fetch(self) -> Instruction:
        return Instruction.fetch(self.read_byte(self.pc), self.read_byte(self.pc + 1))

    def step(self) -> Instruction:
        """Execute one instruction.

        Returns:
            The decoded instruction that was executed.

        Raises:
            StackOverflowError, StackUnderflowError: the machine is halted.
            MachineHaltedError: an earlier fault halted the machine.
        """
        if self.fault is not None:
            raise MachineHaltedError(self.fault)

        ins = self.fetch()
        handler = _DISPATCH[ins.op]
        try:
            next_pc = handler(self, ins)
        except MachineFault as fault:
            self.fault = fault
            logger.error("Machine halted: %s", fault)
            raise

        if next_pc is None:
            next_pc = self.pc + INSTRUCTION_SIZE
        self.pc = next_pc & WORD_MASK
        self.cycle_count += 1
        # A key-wait poll that found nothing has not completed its instruction.
        if not self.waiting_for_key:
            self.instruction_count += 1
        return ins

    def run(self, max_steps: int) -> int:
        """Execute up to ``max_steps`` instructions and return how many ran."""
        executed = 0
        for _ in range(max_steps):
            self.step()
            executed += 1
        return executed

    def tick_timers(self) -> bool:
        """Apply one 60 Hz timer tick and notify tone listeners."""
        tone = self.timers.tick()
        if tone:
            for listener in list(self._tone_listeners):
                listener(tone)
        return tone

    def get_cpu_state(self) -> Dict[str, object]:
        return {
            "pc": self.pc,
            "i": self.index,
            "sp": self.sp,
            "v": list(self.registers),
            "stack": list(self.stack[: self.sp]),
            "dt": self.timers.delay,
            "st": self.timers.sound,
            "waiting_for_key": self.waiting_for_key,
            "halted": self.halted,
            "instruction_count": self.instruction_count,
            "cycle_count": self.cycle_count,
        }

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #

    def _skip_if(self, condition: bool) -> int:
        return self.pc + (2 * INSTRUCTION_SIZE if condition else INSTRUCTION_SIZE)

    def _report_unknown(self, ins: Instruction) -> None:
        event = UnknownInstruction(pc=self.pc, instruction=ins.raw)
        self.diagnostics.append(event)
        logger.warning("%s (%s)", event, disassemble(ins.raw))
        for listener in list(self._diagnostic_listeners):
            listener(event)

    def _set_with_flag(self, x: int, value: int, flag: int) -> None:
        self.registers[x] = value & BYTE_MASK
        self.registers[FLAG_REGISTER] = flag

    # ------------------------------------------------------------------ #
    # Instruction families
    # ------------------------------------------------------------------ #

    def _op_0(self, ins: Instruction) -> Optional[int]:
        if ins.raw == 0x00E0:
            self.framebuffer.clear()
            return None
        if ins.raw == 0x00EE:
            if self.sp == 0:
                raise StackUnderflowError(
                    "Return with empty stack", pc=self.pc, instruction=ins.raw
                )
            self.sp -= 1
            return self.stack[self.sp]
        self._report_unknown(ins)
        return None

    def _op_1(self, ins: Instruction) -> Optional[int]:
        return ins.nnn

    def _op_2(self, ins: Instruction) -> Optional[int]:
        if self.sp >= STACK_SIZE:
            raise StackOverflowError(
                f"Call depth exceeds {STACK_SIZE}", pc=self.pc, instruction=ins.raw
            )
        self.stack[self.sp] = (self.pc + INSTRUCTION_SIZE) & WORD_MASK
        self.sp += 1
        return ins.nnn

    def _op_3(self, ins: Instruction) -> Optional[int]:
        return self._skip_if(self.registers[ins.x] == ins.nn)

    def _op_4(self, ins: Instruction) -> Optional[int]:
        return self._skip_if(self.registers[ins.x] != ins.nn)

    def _op_5(self, ins: Instruction) -> Optional[int]:
        if ins.n != 0:
            self._report_unknown(ins)
            return None
        return self._skip_if(self.registers[ins.x] == self.registers[ins.y])

    def _op_6(self, ins: Instruction) -> Optional[int]:
        self.registers[ins.x] = ins.nn
        return None

    def _op_7(self, ins: Instruction) -> Optional[int]:
        # No carry flag for the immediate form.
        self.registers[ins.x] = (self.registers[ins.x] + ins.nn) & BYTE_MASK
        return None

    def _op_8(self, ins: Instruction) -> Optional[int]:
        vx = self.registers[ins.x]
        vy = self.registers[ins.y]
        n = ins.n
        if n == 0x0:
            self.registers[ins.x] = vy
        elif n == 0x1:
            self.registers[ins.x] = vx | vy
        elif n == 0x2:
            self.registers[ins.x] = vx & vy
        elif n == 0x3:
            self.registers[ins.x] = vx ^ vy
        elif n == 0x4:
            total = vx + vy
            self._set_with_flag(ins.x, total, 1 if total > BYTE_MASK else 0)
        elif n == 0x5:
            self._set_with_flag(ins.x, vx - vy, 1 if vx > vy else 0)
        elif n == 0x6:
            self._set_with_flag(ins.x, vx >> 1, vx & 0x1)
        elif n == 0x7:
            self._set_with_flag(ins.x, vy - vx, 1 if vx < vy else 0)
        elif n == 0xE:
            self._set_with_flag(ins.x, vx << 1, (vx >> 7) & 0x1)
        else:
            self._report_unknown(ins)
        return None

    def _op_9(self, ins: Instruction) -> Optional[int]:
        if ins.n != 0:
            self._report_unknown(ins)
            return None
        return self._skip_if(self.registers[ins.x] != self.registers[ins.y])

    def _op_a(self, ins: Instruction) -> Optional[int]:
        self.index = ins.nnn
        return None

    def _op_b(self, ins: Instruction) -> Optional[int]:
        # Offset register is selected by the high nibble of the address.
        return ins.nnn + self.registers[ins.x]

    def _op_c(self, ins: Instruction) -> Optional[int]:
        self.registers[ins.x] = self.rng.randrange(256) & ins.nn
        return None

    def _op_d(self, ins: Instruction) -> Optional[int]:
        sprite = self.read_block(self.index, ins.n)
        collision = self.framebuffer.draw_sprite(
            self.registers[ins.x], self.registers[ins.y], sprite
        )
        self.registers[FLAG_REGISTER] = 1 if collision else 0
        return None

    def _op_e(self, ins: Instruction) -> Optional[int]:
        key = self.registers[ins.x] & 0xF
        if ins.nn == 0x9E:
            return self._skip_if(self.keypad.is_pressed(key))
        if ins.nn == 0xA1:
            return self._skip_if(not self.keypad.is_pressed(key))
        self._report_unknown(ins)
        return None

    def _op_f(self, ins: Instruction) -> Optional[int]:
        x = ins.x
        nn = ins.nn
        if nn == 0x07:
            self.registers[x] = self.timers.delay
        elif nn == 0x0A:
            return self._wait_for_key(x)
        elif nn == 0x15:
            self.timers.set_delay(self.registers[x])
        elif nn == 0x18:
            self.timers.set_sound(self.registers[x])
        elif nn == 0x1E:
            self.index = (self.index + self.registers[x]) & WORD_MASK
        elif nn == 0x29:
            self.index = FONT_START + (self.registers[x] & 0xF) * FONT_HEIGHT
        elif nn == 0x33:
            value = self.registers[x]
            self.write_byte(self.index, value // 100)
            self.write_byte(self.index + 1, (value // 10) % 10)
            self.write_byte(self.index + 2, value % 10)
        elif nn == 0x55:
            for offset in range(x + 1):
                self.write_byte(self.index + offset, self.registers[offset])
        elif nn == 0x65:
            for offset in range(x + 1):
                self.registers[offset] = self.read_byte(self.index + offset)
        else:
            self._report_unknown(ins)
        return None

    def _wait_for_key(self, x: int) -> Optional[int]:
        """Poll the keypad once; stay on this instruction until a key is down."""
        pressed = self.keypad.pressed_keys()
        if not pressed:
            self.waiting_for_key = True
            return self.pc
        last = self.keypad.last_pressed()
        self.registers[x] = int(last if last in pressed else pressed[0])
        self.waiting_for_key = False
        return None


_DISPATCH: Dict[int, _Handler] = {
    0x0: Interpreter._op_0,
    0x1: Interpreter._op_1,
    0x2: Interpreter._op_2,
    0x3: Interpreter._op_3,
    0x4: Interpreter._op_4,
    0x5: Interpreter._op_5,
    0x6: Interpreter._op_6,
    0x7: Interpreter._op_7,
    0x8: Interpreter._op_8,
    0x9: Interpreter._op_9,
    0xA: Interpreter._op_a,
    0xB: Interpreter._op_b,
    0xC: Interpreter._op_c,
    0xD: Interpreter._op_d,
    0xE: Interpreter._op_e,
    0xF: Interpreter._op_f,
}


__all__ = [
    "Interpreter",
    "UnknownInstruction",
    "DIAGNOSTIC_HISTORY_LIMIT",
]
