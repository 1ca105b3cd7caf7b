"""Delay/sound countdown registers and the 60 Hz tick clock."""

from __future__ import annotations

import threading
from typing import Optional

from .constants import BYTE_MASK, TIMER_HZ


class TimerRegisters:
    """The two 8-bit countdown timers.

    The timer tick and the instruction stream run at unrelated rates, so
    each field has its own lock. No cross-field atomicity is provided.
    """

    def __init__(self) -> None:
        self._delay = 0
        self._sound = 0
        self._delay_lock = threading.Lock()
        self._sound_lock = threading.Lock()

    @property
    def delay(self) -> int:
        with self._delay_lock:
            return self._delay

    @property
    def sound(self) -> int:
        with self._sound_lock:
            return self._sound

    def set_delay(self, value: int) -> None:
        with self._delay_lock:
            self._delay = value & BYTE_MASK

    def set_sound(self, value: int) -> None:
        with self._sound_lock:
            self._sound = value & BYTE_MASK

    def tick(self) -> bool:
        """Count both timers down by one, stopping at zero.

        Returns:
            True if the sound timer was running for this tick (tone on).
        """
        with self._delay_lock:
            if self._delay > 0:
                self._delay -= 1
        with self._sound_lock:
            if self._sound > 0:
                self._sound -= 1
                return True
        return False

    def reset(self) -> None:
        self.set_delay(0)
        self.set_sound(0)


class TimerClock:
    """Turn host wall-clock readings into whole timer ticks.

    The host passes ``now`` explicitly (e.g. ``time.perf_counter()``);
    fractional ticks carry over between calls.
    """

    def __init__(self, rate_hz: float = TIMER_HZ):
        if rate_hz <= 0:
            raise ValueError(f"Invalid timer rate: {rate_hz}")
        self.rate_hz = float(rate_hz)
        self._period = 1.0 / self.rate_hz
        self._last: Optional[float] = None

    @property
    def period(self) -> float:
        return self._period

    def reset(self, now: Optional[float] = None) -> None:
        self._last = now

    def advance(self, now: float) -> int:
        """Return the number of ticks due since the previous call."""

        if self._last is None:
            self._last = now
            return 0
        elapsed = now - self._last
        if elapsed < self._period:
            return 0
        ticks = int(elapsed / self._period)
        self._last += ticks * self._period
        return ticks


__all__ = ["TimerRegisters", "TimerClock"]
