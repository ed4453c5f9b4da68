"""
Clock sources.

The engine has no timers. Each public operation reads ``clock.now()`` once and
passes the value down; the shell decides where time comes from.
"""

from __future__ import annotations

import time
from typing import Protocol


class Clock(Protocol):
    def now(self) -> int: ...


class SystemClock:
    """Wall-clock seconds."""

    def now(self) -> int:
        return int(time.time())


class ManualClock:
    """Deterministic clock for tests and offline simulations."""

    def __init__(self, start: int = 0) -> None:
        if start < 0:
            raise ValueError(f"start must be non-negative: {start}")
        self._now = int(start)

    def now(self) -> int:
        return self._now

    def advance(self, seconds: int) -> int:
        if seconds < 0:
            raise ValueError(f"cannot move the clock backwards: {seconds}")
        self._now += int(seconds)
        return self._now

    def set(self, timestamp: int) -> None:
        if timestamp < self._now:
            raise ValueError(f"cannot move the clock backwards: {timestamp} < {self._now}")
        self._now = int(timestamp)
