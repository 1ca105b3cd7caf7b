#!/usr/bin/env python3
"""Headless host loop for the CHIP-8 interpreter."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from chip8.config import MachineConfig
from chip8.display.renderer import save_png
from chip8.errors import MachineFault
from chip8.interpreter import Interpreter, UnknownInstruction
from chip8.loader import load_program_file
from chip8.timers import TimerClock

logger = logging.getLogger(__name__)


@dataclass
class RunStats:
    """Counters collected by :func:`run_emulator`."""

    steps: int = 0
    timer_ticks: int = 0
    tone_ticks: int = 0
    unknown_instructions: int = 0
    elapsed_secs: float = 0.0
    fault: Optional[MachineFault] = None

    @property
    def instructions_per_second(self) -> float:
        if self.elapsed_secs <= 0:
            return 0.0
        return self.steps / self.elapsed_secs


def run_emulator(
    program_path: str | Path,
    num_steps: int = 10000,
    config: Optional[MachineConfig] = None,
    *,
    fast_mode: bool = True,
    save_png_path: str | Path | None = None,
    zoom: Optional[int] = None,
    print_stats: bool = True,
    dump_text: bool = False,
    clock: Callable[[], float] = time.perf_counter,
    sleep: Callable[[float], None] = time.sleep,
) -> tuple[Interpreter, RunStats]:
    """Load a program and run it for ``num_steps`` instructions.

    Args:
        program_path: Program image to load at 0x200
        num_steps: Number of instructions to execute
        config: Pacing/display settings (defaults to ``MachineConfig()``)
        fast_mode: Run unthrottled and tick timers every
            ``config.steps_per_timer_tick`` steps instead of by wall clock
        save_png_path: Save the final framebuffer as PNG here
        zoom: PNG scale factor (defaults to ``config.display_zoom``)
        print_stats: Print statistics to stdout
        dump_text: Print the final framebuffer as text

    Returns:
        The interpreter after running and the collected statistics.

    Raises:
        ProgramLoadError: the program could not be loaded; nothing ran.
    """
    config = config or MachineConfig()
    program = load_program_file(program_path)
    emu = Interpreter(program, config=config)
    stats = RunStats()

    def _on_unknown(event: UnknownInstruction) -> None:
        stats.unknown_instructions += 1

    def _on_tone(_tone: bool) -> None:
        stats.tone_ticks += 1
        logger.debug("Tone on (sound timer %d)", emu.sound_timer)

    emu.add_diagnostic_listener(_on_unknown)
    emu.add_tone_listener(_on_tone)

    timer_clock = TimerClock(config.timer_hz)
    step_period = 1.0 / config.instructions_per_second
    steps_per_tick = config.steps_per_timer_tick

    start = clock()
    timer_clock.reset(start)
    try:
        for step_idx in range(num_steps):
            emu.step()
            stats.steps += 1

            if fast_mode:
                if (step_idx + 1) % steps_per_tick == 0:
                    emu.tick_timers()
                    stats.timer_ticks += 1
                continue

            for _ in range(timer_clock.advance(clock())):
                emu.tick_timers()
                stats.timer_ticks += 1
            # Pace to the configured instruction rate.
            target = start + stats.steps * step_period
            delay = target - clock()
            if delay > 0:
                sleep(delay)
    except MachineFault as fault:
        stats.fault = fault
        logger.error("Execution stopped after %d steps: %s", stats.steps, fault)
    stats.elapsed_secs = clock() - start

    if save_png_path is not None:
        path = save_png(
            emu.framebuffer,
            save_png_path,
            zoom=zoom if zoom is not None else config.display_zoom,
        )
        logger.info("Saved framebuffer to %s", path)

    if dump_text:
        print(emu.framebuffer.to_text())

    if print_stats:
        print(f"Executed {stats.steps} instructions in {stats.elapsed_secs:.3f}s")
        print(f"  speed: {stats.instructions_per_second:,.0f} instructions/s")
        print(f"  timer ticks: {stats.timer_ticks} (tone on {stats.tone_ticks})")
        print(f"  unknown instructions: {stats.unknown_instructions}")
        print(f"  PC: 0x{emu.pc:03X}  I: 0x{emu.index:03X}  SP: {emu.sp}")
        print(
            "  V: " + " ".join(f"{value:02X}" for value in emu.registers)
        )
        if stats.fault is not None:
            print(f"  FAULT: {stats.fault}")

    return emu, stats


__all__ = ["run_emulator", "RunStats"]
