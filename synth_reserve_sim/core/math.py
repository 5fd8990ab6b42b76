#!/usr/bin/env python3
"""
Fixed-Point Mathematical Functions

Integer fixed-point helpers shared by the reserve, controller and pool.
All values carry 18 fractional digits and every division truncates toward zero.
"""

from decimal import Decimal
from typing import Union


class FixedPointMath:
    """Pure fixed-point helpers for reserve accounting"""

    DECIMALS = 18
    ONE = 10 ** 18

    @staticmethod
    def to_fixed(value: Union[int, float, str, Decimal]) -> int:
        """Convert a human-readable number into 18-decimal fixed point"""
        # Decimal keeps "0.0025" exact where float would not
        return int(Decimal(str(value)) * FixedPointMath.ONE)

    @staticmethod
    def from_fixed(value: int) -> float:
        """Convert fixed point back into a float for reporting"""
        return value / FixedPointMath.ONE

    @staticmethod
    def percent(value: Union[int, float, str]) -> int:
        """Express a percentage (e.g. 0.25 for 0.25%) as a fraction of ONE"""
        return int(Decimal(str(value)) * FixedPointMath.ONE / 100)

    @staticmethod
    def trunc_div(a: int, b: int) -> int:
        """Integer division truncating toward zero for signed operands"""
        if b == 0:
            raise ZeroDivisionError("fixed point division by zero")
        quotient = abs(a) // abs(b)
        return quotient if (a >= 0) == (b > 0) else -quotient

    @staticmethod
    def mul_div(a: int, b: int, c: int) -> int:
        """
        Compute a * b / c truncated toward zero.

        A zero denominator yields zero, so conversions through a zero price
        produce zero value rather than a fault.
        """
        if c == 0:
            return 0
        return FixedPointMath.trunc_div(a * b, c)

    @staticmethod
    def clamp(value: int, low: int, high: int) -> int:
        """Clamp value into [low, high]"""
        return max(low, min(high, value))

    @staticmethod
    def apply_fee(amount: int, fee: int) -> int:
        """Amount net of a fee fraction: amount * (ONE - fee) / ONE"""
        return FixedPointMath.mul_div(amount, FixedPointMath.ONE - fee, FixedPointMath.ONE)


ONE = FixedPointMath.ONE
