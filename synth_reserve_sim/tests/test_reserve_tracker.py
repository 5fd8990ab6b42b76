#!/usr/bin/env python3
"""
Reserve Tracker Tests
"""

import sys
import os
import pytest

# Add the project root to the path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from synth_reserve_sim.core.errors import CapabilityError, PreconditionError
from synth_reserve_sim.core.math import FixedPointMath, ONE
from synth_reserve_sim.core.reserve_tracker import ReserveTracker, TradingPair
from synth_reserve_sim.core.tokens import Token


class TestReserveTracker:
    """Share liquidity aggregation across pairs"""

    def setup_method(self):
        self.share = Token("SHARE")
        self.usdc = Token("USDC")
        self.tracker = ReserveTracker()
        self.tracker.initialize("owner", self.share)

    def test_sums_share_side_regardless_of_order(self):
        first = TradingPair(self.share, self.usdc, FixedPointMath.to_fixed("0.5"), ONE)
        second = TradingPair(self.usdc, self.share, FixedPointMath.to_fixed("0.5"), ONE)
        self.tracker.add_share_pair("owner", first)
        self.tracker.add_share_pair("owner", second)

        assert self.tracker.get_share_reserves() == FixedPointMath.to_fixed("1.5")

        first.set_reserves(2 * ONE, ONE)
        assert self.tracker.get_share_reserves() == 3 * ONE, "Reserves are read live"

    def test_duplicate_and_missing_pairs(self):
        pair = TradingPair(self.share, self.usdc, ONE, ONE)
        self.tracker.add_share_pair("owner", pair)
        with pytest.raises(PreconditionError, match="Address already exists"):
            self.tracker.add_share_pair("owner", pair)

        self.tracker.remove_share_pair("owner", pair)
        assert self.tracker.share_pairs_array == [None]
        assert self.tracker.get_share_reserves() == 0
        with pytest.raises(PreconditionError, match="Address not exists"):
            self.tracker.remove_share_pair("owner", pair)

    def test_pair_without_share_rejected(self):
        dai = Token("DAI")
        with pytest.raises(PreconditionError, match="Pair does not hold the share"):
            self.tracker.add_share_pair("owner", TradingPair(self.usdc, dai, ONE, 5 * ONE))
        assert self.tracker.share_pairs_array == []
        assert self.tracker.get_share_reserves() == 0

    def test_removed_pair_can_be_added_again(self):
        pair = TradingPair(self.share, self.usdc, ONE, ONE)
        self.tracker.add_share_pair("owner", pair)
        self.tracker.remove_share_pair("owner", pair)
        self.tracker.add_share_pair("owner", pair)
        assert self.tracker.get_state()["pairs"] == [None, pair.address]
        assert self.tracker.get_share_reserves() == ONE

    def test_only_maintainer_edits_pairs(self):
        pair = TradingPair(self.share, self.usdc, ONE, ONE)
        with pytest.raises(CapabilityError, match="Caller is not a maintainer"):
            self.tracker.add_share_pair("mallory", pair)
        with pytest.raises(PreconditionError, match="Already initialized"):
            self.tracker.initialize("owner", self.share)
        print("✅ Reserve tracker checks passed")
