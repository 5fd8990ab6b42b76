#!/usr/bin/env python3
"""
Rejection taxonomy

Every rejection aborts the whole operation and carries a short, stable reason
string so callers and tests can match on the exact failure cause.
"""


class ReserveSimError(Exception):
    """Base class for all protocol rejections"""

    category = "error"

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason

    def __str__(self) -> str:
        return self.reason


class CapabilityError(ReserveSimError):
    """Caller lacks the capability required by the operation"""
    category = "capability"


class PreconditionError(ReserveSimError):
    """Wrong mode, paused feature, unexpired cooldown or bad identity"""
    category = "precondition"


class EconomicBoundError(ReserveSimError):
    """Slippage, ceiling breach or insufficient backing"""
    category = "economic"


class UndefinedRatioError(ReserveSimError):
    """A ratio was requested against a zero total synth value"""
    category = "undefined_ratio"

    def __init__(self, reason: str = "undefined ratio"):
        super().__init__(reason)
