#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
PiCar — picar_base/utils/timing.py
----------------------------------
Clock and sleep helpers injected into every driver.

Purpose
-------
All driver delays (PCA9685 reset/prescale delays, TB6612 settling pause,
US-100 trigger pulse, echo busy-wait) and all edge timestamps go through a
`Clock` object so that:
- production code uses a real monotonic nanosecond clock
- tests drive time deterministically (see test/conftest.py FakeClock)
- a blocked driver can be woken up and aborted from another thread

Recommended usage
-----------------
- Edge timestamps, elapsed time -> `clock.now_ns()` (monotonic)
- Delays -> `clock.sleep_ms(ms)`; raises DriverInterruptedError when
  `clock.interrupt()` was called
"""

from __future__ import annotations

import threading
import time
from typing import Optional, Protocol

from ..drivers.board_exceptions import DriverInterruptedError


# =============================================================================
# Core clock functions
# =============================================================================

def now_mono_ns() -> int:
    """
    Current monotonic time in nanoseconds.

    Use for:
    - ultrasonic edge timestamps
    - elapsed-time calculations
    """
    return int(time.monotonic_ns())


def elapsed_ns(since_ns: int, now_ns: Optional[int] = None) -> int:
    """
    Elapsed monotonic nanoseconds since `since_ns`, clamped at 0.
    """
    if now_ns is None:
        now_ns = now_mono_ns()
    dt = int(now_ns) - int(since_ns)
    return dt if dt > 0 else 0


# =============================================================================
# Clock protocol + system implementation
# =============================================================================

class Clock(Protocol):
    """Minimal clock interface used by drivers."""

    def now_ns(self) -> int:
        ...

    def sleep_ms(self, ms: float) -> None:
        ...


class SystemClock:
    """
    Real clock: monotonic nanoseconds, interruptible millisecond sleeps.

    Sleeps wait on a `threading.Event`; `interrupt()` sets it so that every
    pending and future sleep raises DriverInterruptedError until
    `clear_interrupt()` is called.
    """

    def __init__(self) -> None:
        self._interrupted = threading.Event()

    def now_ns(self) -> int:
        return now_mono_ns()

    def sleep_ms(self, ms: float) -> None:
        delay_s = max(0.0, float(ms)) / 1000.0
        if self._interrupted.wait(delay_s):
            raise DriverInterruptedError(f"sleep of {ms} ms interrupted")

    def interrupt(self) -> None:
        self._interrupted.set()

    def clear_interrupt(self) -> None:
        self._interrupted.clear()

    @property
    def is_interrupted(self) -> bool:
        return self._interrupted.is_set()


_DEFAULT_CLOCK: Optional[SystemClock] = None


def default_clock() -> SystemClock:
    """Process-wide SystemClock used when a driver is built without a clock."""
    global _DEFAULT_CLOCK
    if _DEFAULT_CLOCK is None:
        _DEFAULT_CLOCK = SystemClock()
    return _DEFAULT_CLOCK


__all__ = [
    "now_mono_ns",
    "elapsed_ns",
    "Clock",
    "SystemClock",
    "default_clock",
]
