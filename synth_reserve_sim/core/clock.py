#!/usr/bin/env python3
"""
Injected clocks

Cooldowns compare against a clock object rather than the wall clock so that
simulations and tests can advance time deterministically.
"""

import time

from .errors import PreconditionError


class SystemClock:
    """Monotonic process clock in whole seconds"""

    def now(self) -> int:
        return int(time.monotonic())


class ManualClock:
    """Clock advanced explicitly by the caller"""

    def __init__(self, start: int = 1):
        self._now = int(start)

    def now(self) -> int:
        return self._now

    def advance(self, seconds: int) -> int:
        if seconds < 0:
            raise PreconditionError("clock cannot move backwards")
        self._now += int(seconds)
        return self._now

    def set(self, timestamp: int) -> int:
        if timestamp < self._now:
            raise PreconditionError("clock cannot move backwards")
        self._now = int(timestamp)
        return self._now
