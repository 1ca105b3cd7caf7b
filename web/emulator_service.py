"""Shared interpreter lifecycle management for the web API."""

from __future__ import annotations

import base64
import logging
import os
import threading
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, List, Optional, Union

from chip8 import (
    DEFAULT_KEY_MAP,
    Chip8Error,
    Interpreter,
    MachineConfig,
    MachineFault,
    UnknownInstruction,
    load_program_file,
    resolve_key,
)
from chip8.decoder import disassemble
from chip8.display.renderer import encode_png
from chip8.timers import TimerClock

logger = logging.getLogger(__name__)

PROGRAM_ENV = "CHIP8_PROGRAM"
DIAGNOSTIC_LIMIT = 16

# Shows the glyph of the last key pressed:
#   CLS; LD V0, K; CLS; LD F, V0; LD V1, 0; DRW V1, V1, 5; JP 0x202
DEMO_PROGRAM = bytes.fromhex("00E0F00A00E0F0296100D1151202")


class EmulatorService:
    """Manage a shared interpreter instance and background execution."""

    def __init__(self, config: Optional[MachineConfig] = None) -> None:
        self.config = config or MachineConfig()
        self._lock = threading.RLock()
        self._emulator: Optional[Interpreter] = None
        self._diagnostics: List[str] = []
        self._tone_active = False
        self._run_event = threading.Event()
        self._shutdown = threading.Event()
        self._runner_thread: Optional[threading.Thread] = None
        self._is_running = False

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    def ensure_emulator(self) -> Interpreter:
        """Return an initialised interpreter, creating it if necessary."""
        with self._lock:
            if self._emulator is None:
                self._emulator = self._create_emulator()
            return self._emulator

    def _create_emulator(self) -> Interpreter:
        program_path = os.environ.get(PROGRAM_ENV)
        program = load_program_file(program_path) if program_path else DEMO_PROGRAM

        emulator = Interpreter(program, config=self.config)
        emulator.add_diagnostic_listener(self._on_diagnostic)
        emulator.add_tone_listener(self._on_tone)
        logger.info("Interpreter created with %d-byte program", len(program))
        return emulator

    def _on_diagnostic(self, event: UnknownInstruction) -> None:
        self._diagnostics.append(f"{event} ({disassemble(event.instruction)})")
        del self._diagnostics[:-DIAGNOSTIC_LIMIT]

    def _on_tone(self, tone: bool) -> None:
        self._tone_active = tone

    def shutdown(self) -> None:
        """Stop the run thread and release resources."""
        self._shutdown.set()
        self._run_event.clear()
        if self._runner_thread and self._runner_thread.is_alive():
            self._runner_thread.join(timeout=1.0)
        with self._lock:
            self._emulator = None
            self._diagnostics = []
            self._is_running = False
        self._shutdown.clear()
        logger.info("Emulator service shut down")

    def load_program(self, program: Union[bytes, str, Path]) -> int:
        """Replace the running program; returns its size in bytes.

        Raises:
            ProgramLoadError: the program is unreadable or too large.
        """
        if isinstance(program, (str, Path)):
            program = load_program_file(program)
        with self._lock:
            emulator = self.ensure_emulator()
            emulator.load_program(program)
            self._diagnostics = []
            return len(emulator.program)

    # ------------------------------------------------------------------ #
    # Runner management
    # ------------------------------------------------------------------ #

    def run(self) -> bool:
        """Start continuous execution.

        Returns:
            False if the machine is halted by a fault and nothing started.
        """
        with self._lock:
            if self.ensure_emulator().halted:
                logger.warning("Run refused: machine is halted")
                return False
            self._is_running = True
        self._run_event.set()
        if not self._runner_thread or not self._runner_thread.is_alive():
            self._runner_thread = threading.Thread(
                target=self._runner_loop, name="Chip8Runner", daemon=True
            )
            self._runner_thread.start()
        return True

    def pause(self) -> None:
        """Pause continuous execution."""
        self._run_event.clear()
        with self._lock:
            self._is_running = False

    def step(self) -> bool:
        """Execute a single instruction.

        Returns:
            False if the machine was already halted and nothing ran. A
            step that faults still counts as executed; the fault shows up
            in :meth:`snapshot_state`.
        """
        with self._lock:
            emulator = self.ensure_emulator()
            if emulator.halted:
                return False
            try:
                emulator.step()
            except MachineFault:
                logger.exception("Single step faulted")
            return True

    def reset(self) -> None:
        """Reset the interpreter, keeping the current program."""
        with self._lock:
            emulator = self.ensure_emulator()
            emulator.reset()
            emulator.keypad.reset()
            self._diagnostics = []
            self._tone_active = False

    def _runner_loop(self) -> None:
        """Background loop: one batch of instructions per timer tick."""
        timer_clock = TimerClock(self.config.timer_hz)
        batch = self.config.steps_per_timer_tick
        while not self._shutdown.is_set():
            if not self._run_event.wait(timeout=0.1):
                timer_clock.reset()
                continue
            with self._lock:
                emulator = self._emulator
                if emulator is None:
                    break
                try:
                    for _ in range(batch):
                        emulator.step()
                except Chip8Error:
                    logger.exception("Execution halted")
                    self._is_running = False
                    self._run_event.clear()
                    continue
                due = timer_clock.advance(time.perf_counter())
                self._tone_active = False
                for _ in range(due):
                    emulator.tick_timers()
            time.sleep(timer_clock.period)

    # ------------------------------------------------------------------ #
    # State helpers
    # ------------------------------------------------------------------ #

    def snapshot_state(self) -> Dict[str, object]:
        """Return the current interpreter state with a PNG screen."""
        with self._lock:
            emulator = self.ensure_emulator()
            cpu_state = emulator.get_cpu_state()
            screen = base64.b64encode(encode_png(emulator.framebuffer)).decode("utf-8")
            return {
                "is_running": self._is_running,
                "screen": f"data:image/png;base64,{screen}",
                "registers": {
                    "pc": cpu_state["pc"],
                    "i": cpu_state["i"],
                    "sp": cpu_state["sp"],
                    "v": cpu_state["v"],
                    "dt": cpu_state["dt"],
                    "st": cpu_state["st"],
                },
                "stack": cpu_state["stack"],
                "instruction_count": cpu_state["instruction_count"],
                "cycle_count": cpu_state["cycle_count"],
                "next_instruction": disassemble(emulator.fetch().raw),
                "waiting_for_key": cpu_state["waiting_for_key"],
                "halted": cpu_state["halted"],
                "fault": str(emulator.fault) if emulator.fault else None,
                "tone": self._tone_active,
                "pressed_keys": [int(key) for key in emulator.keypad.pressed_keys()],
                "diagnostics": list(self._diagnostics),
            }

    def capture_screen_png(self, zoom: int = 1) -> bytes:
        with self._lock:
            emulator = self.ensure_emulator()
            return encode_png(emulator.framebuffer, zoom=zoom)

    # ------------------------------------------------------------------ #
    # Keypad
    # ------------------------------------------------------------------ #

    def press_key(self, key: Union[str, int]) -> int:
        """Press a key; returns the logical key value.

        Raises:
            InvalidKeyError: the key does not resolve to one of the 16 keys.
        """
        resolved = resolve_key(key, self.config.key_map or DEFAULT_KEY_MAP)
        self.ensure_emulator().keypad.press(resolved)
        return int(resolved)

    def release_key(self, key: Union[str, int]) -> int:
        resolved = resolve_key(key, self.config.key_map or DEFAULT_KEY_MAP)
        self.ensure_emulator().keypad.release(resolved)
        return int(resolved)

    @contextmanager
    def emulator_context(self):
        """Provide exclusive access to the underlying interpreter."""
        with self._lock:
            yield self.ensure_emulator()


service = EmulatorService()


def init_app(app) -> None:
    """Ensure the interpreter is ready when the Flask app starts."""
    with app.app_context():
        service.ensure_emulator()
