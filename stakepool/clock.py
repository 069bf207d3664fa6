"""
StakePool Time Source

Reward math is a pure function of elapsed whole seconds. The engine asks a
``Clock`` for "now" instead of reading the wall clock directly, so tests and
simulations can drive time explicitly.
"""

import time
from typing import Protocol, runtime_checkable

from .exceptions import ClockError


@runtime_checkable
class Clock(Protocol):
    """Anything with a ``now() -> int`` returning whole seconds."""

    def now(self) -> int:
        ...


class SystemClock:
    """Wall-clock time, truncated to whole seconds."""

    def now(self) -> int:
        return int(time.time())

    def __repr__(self) -> str:
        return "<SystemClock>"


class ManualClock:
    """
    Explicitly advanced clock for tests and simulations.

    Repeated ``now()`` calls return the same value until the clock is
    advanced. Time never moves backwards.
    """

    def __init__(self, start: int = 0):
        if start < 0:
            raise ClockError(f"Clock cannot start before 0, got {start}")
        self._now = int(start)

    def now(self) -> int:
        return self._now

    def advance(self, seconds: int) -> int:
        """Move forward by *seconds* and return the new timestamp."""
        if seconds < 0:
            raise ClockError(f"Cannot advance clock by negative {seconds}s")
        self._now += int(seconds)
        return self._now

    def set(self, timestamp: int) -> int:
        """Jump to an absolute *timestamp* (never earlier than now)."""
        if timestamp < self._now:
            raise ClockError(
                f"Cannot move clock backwards from {self._now} to {timestamp}"
            )
        self._now = int(timestamp)
        return self._now

    def __repr__(self) -> str:
        return f"<ManualClock now={self._now}>"
