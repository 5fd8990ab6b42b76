#!/usr/bin/env python3
"""
Price Oracles

Oracle collaborators answering consult(asset, amount_in) in 18-decimal fixed
point. A price of zero is a valid answer.
"""

from collections import deque
from typing import Any, Deque, Dict, Optional, Tuple

import numpy as np

from .math import FixedPointMath, ONE
from .transaction import StatefulComponent


class MockPairOracle(StatefulComponent):
    """Oracle quoting a settable spot price for any asset"""

    def __init__(self, price: int = ONE, address: Optional[str] = None, clock=None,
                 history_size: int = 256):
        super().__init__()
        self.address = address or f"oracle_{id(self):x}"
        self.price = int(price)
        self.clock = clock
        self.observations: Deque[Tuple[int, int]] = deque(maxlen=history_size)

    def consult(self, asset: Any, amount_in: int) -> int:
        """Value of `amount_in` units of `asset` at the current price"""
        return FixedPointMath.mul_div(amount_in, self.price, ONE)

    def mock(self, price: int):
        self.price = int(price)

    set_price = mock

    def update(self):
        """Record an observation of the current price"""
        timestamp = self.clock.now() if self.clock is not None else len(self.observations)
        self.observations.append((timestamp, self.price))

    def get_state(self) -> Dict:
        return {"address": self.address, "price": self.price, "observations": len(self.observations)}


class TwapOracle(StatefulComponent):
    """Time-weighted average over the observations of a spot source"""

    def __init__(self, source: MockPairOracle, window: int = 8, address: Optional[str] = None):
        super().__init__()
        self.address = address or f"twap_{id(self):x}"
        self.source = source
        self.window = window
        self.prices: Deque[int] = deque(maxlen=window)

    def update(self):
        self.source.update()
        self.prices.append(self.source.price)

    def average_price(self) -> int:
        if not self.prices:
            return self.source.price
        # Object dtype keeps arbitrary-precision ints through the sum
        total = np.sum(np.array(list(self.prices), dtype=object))
        return int(total // len(self.prices))

    def consult(self, asset: Any, amount_in: int) -> int:
        return FixedPointMath.mul_div(amount_in, self.average_price(), ONE)
