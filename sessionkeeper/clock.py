"""
Time sources for the session store.

Every component that reads the current time takes a Clock, a callable
returning epoch milliseconds, so tests can pin time without patching
the time module.
"""

import time
from typing import Callable

Clock = Callable[[], int]


def system_clock() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


class FrozenClock:
    """
    Clock that only moves when told to.

    Example:
        clock = FrozenClock(345)
        clock.advance(50)
        assert clock() == 395
    """

    def __init__(self, now: int = 0):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, millis: int) -> int:
        self.now += millis
        return self.now
