#!/usr/bin/env python3
"""
Reserve Tracker

Aggregates share-asset liquidity across registered trading pairs into a
single quantity read by the stability controller.
"""

import logging
from typing import Dict, List, Optional

from .access import AccessControl, Role, requires_role
from .errors import PreconditionError
from .events import EventLog
from .tokens import Token
from .transaction import StatefulComponent, atomic

logger = logging.getLogger(__name__)


class TradingPair(StatefulComponent):
    """Two-sided liquidity pair exposing its reserves"""

    def __init__(self, token0: Token, token1: Token, reserve0: int = 0, reserve1: int = 0,
                 address: Optional[str] = None):
        super().__init__()
        self.token0 = token0
        self.token1 = token1
        self.reserve0 = reserve0
        self.reserve1 = reserve1
        self.address = address or f"pair_{token0.symbol.lower()}_{token1.symbol.lower()}"

    def get_reserves(self):
        return self.reserve0, self.reserve1

    def set_reserves(self, reserve0: int, reserve1: int):
        self.reserve0 = reserve0
        self.reserve1 = reserve1

    def __repr__(self) -> str:
        return f"TradingPair({self.token0.symbol}/{self.token1.symbol})"


class ReserveTracker(StatefulComponent):
    """Tracks share reserves held across trading pairs"""

    def __init__(self, address: str = "reserve_tracker", access: Optional[AccessControl] = None,
                 events: Optional[EventLog] = None):
        super().__init__()
        self.address = address
        self.access = access or AccessControl()
        self.events = events or EventLog()

        self.initialized = False
        self.share: Optional[Token] = None
        # Removal clears the slot; indices are never reused
        self.share_pairs_array: List[Optional[TradingPair]] = []
        self.share_pairs: Dict[str, bool] = {}

    @atomic
    def initialize(self, caller: str, share: Token, owner: Optional[str] = None):
        if self.initialized:
            raise PreconditionError("Already initialized")
        if share is None:
            raise PreconditionError("Zero address detected")
        self.initialized = True
        self.share = share
        admin = owner or caller
        self.access._setup_role(Role.OWNER, admin)
        self.access._setup_role(Role.MAINTAINER, admin)

    @atomic
    @requires_role(Role.MAINTAINER, "Caller is not a maintainer")
    def add_share_pair(self, caller: str, pair: TradingPair):
        if pair is None:
            raise PreconditionError("Zero address detected")
        if self.share not in (pair.token0, pair.token1):
            raise PreconditionError("Pair does not hold the share")
        if self.share_pairs.get(pair.address, False):
            raise PreconditionError("Address already exists")
        self.share_pairs[pair.address] = True
        self.share_pairs_array.append(pair)
        self.events.emit("SharePairAdded", self.address, pair=pair.address)

    @atomic
    @requires_role(Role.MAINTAINER, "Caller is not a maintainer")
    def remove_share_pair(self, caller: str, pair: TradingPair):
        if pair is None:
            raise PreconditionError("Zero address detected")
        if not self.share_pairs.get(pair.address, False):
            raise PreconditionError("Address not exists")
        self.share_pairs[pair.address] = False
        for i, entry in enumerate(self.share_pairs_array):
            if entry is not None and entry.address == pair.address:
                self.share_pairs_array[i] = None
                break
        self.events.emit("SharePairRemoved", self.address, pair=pair.address)

    def get_share_reserves(self) -> int:
        """Sum of the share-side reserve of every registered pair"""
        total = 0
        for pair in self.share_pairs_array:
            if pair is None:
                continue
            reserve0, reserve1 = pair.get_reserves()
            total += reserve0 if pair.token0 is self.share else reserve1
        return total

    def get_state(self) -> Dict:
        return {
            "pairs": [p.address if p is not None else None for p in self.share_pairs_array],
            "share_reserves": self.get_share_reserves(),
        }
