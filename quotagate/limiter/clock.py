"""Time sources for the admission controller.

All instants are float seconds since the epoch. A wall clock is used (not
time.monotonic) so that reset instants are meaningful to callers and shared
stores. If the system clock is stepped backwards, some expired timestamps
briefly count again; this inaccuracy is bounded by the size of the step and
disappears once the clock catches up.
"""

import time
from abc import ABC, abstractmethod


class Clock(ABC):
    """Supplies the current instant."""

    @abstractmethod
    def now(self) -> float:
        ...


class SystemClock(Clock):
    def now(self) -> float:
        return time.time()


class ManualClock(Clock):
    """Clock that only moves when told to. Used to drive tests deterministically."""

    def __init__(self, start: float = 0.0):
        self._now = start

    def now(self) -> float:
        return self._now

    def set(self, instant: float) -> None:
        self._now = instant

    def advance(self, seconds: float) -> None:
        # Negative values are allowed to simulate a clock stepped backwards
        self._now += seconds
