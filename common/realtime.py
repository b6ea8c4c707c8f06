"""
Time sources for the control stack.
Everything that needs "now" takes a zero-argument clock callable, so hosts can
pass the monotonic clock and tests or log replays can pass synthetic time.
"""

from __future__ import annotations

import time


def monotonic_time() -> float:
    """Return monotonic time in seconds."""
    return time.monotonic()


class ManualClock:
    """
    Clock driven by the caller instead of wall time.
    - set(t): jump to an absolute time
    - advance(dt): move forward by dt seconds
    """

    def __init__(self, start: float = 0.0):
        self._now = float(start)

    def __call__(self) -> float:
        return self._now

    def set(self, t: float) -> None:
        if t < self._now:
            raise ValueError("time cannot go backwards")
        self._now = float(t)

    def advance(self, dt: float) -> float:
        if dt < 0.0:
            raise ValueError("dt must be non-negative")
        self._now += dt
        return self._now
