"""
redeemables/core/time.py

THE ONLY CLOCK IN REDEEMABLES.

Campaign windows are integer unix seconds. Components take a `clock`
callable so tests can pin the current time; the default is system_clock.
"""

import time
from typing import Callable


Clock = Callable[[], int]


def system_clock() -> int:
    """Current UTC time as integer unix seconds."""
    return int(time.time())


class FixedClock:
    """A settable clock. Used by tests and by previews at a chosen instant."""

    def __init__(self, now: int) -> None:
        self.now = int(now)

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += int(seconds)
