# autoctx/utils/clock.py

"""
Injectable millisecond clocks.

Estimators never read the time themselves; sessions and the HTTP layer ask a
clock and pass `now_ms` down explicitly.
"""

import time
from typing import Protocol


class Clock(Protocol):
    def now_ms(self) -> float:
        ...

    def wall_ms(self) -> float:
        ...


class MonotonicClock:
    """
    Real clock: monotonic time for scheduling, wall time for tick alignment.
    """
    def now_ms(self) -> float:
        return time.monotonic() * 1000.0

    def wall_ms(self) -> float:
        return time.time() * 1000.0


class ManualClock:
    """
    Clock advanced by hand, for tests and offline replay.
    """
    def __init__(self, start_ms: float = 0.0, wall_offset_ms: float = 0.0) -> None:
        self._now = float(start_ms)
        self._wall_offset = float(wall_offset_ms)

    def now_ms(self) -> float:
        return self._now

    def wall_ms(self) -> float:
        return self._now + self._wall_offset

    def advance(self, ms: float) -> float:
        if ms < 0:
            raise ValueError("clock cannot go backwards")
        self._now += ms
        return self._now

    def set(self, now_ms: float) -> None:
        if now_ms < self._now:
            raise ValueError("clock cannot go backwards")
        self._now = float(now_ms)
