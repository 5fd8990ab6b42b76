#!/usr/bin/env python3
"""
Minter Agent

Brings collateral (and share units when the system is fractional) to the
pool for new synth. Mints more eagerly when the synth trades over its peg.
"""

import random
from typing import Dict, Optional, Tuple

from .base_agent import BaseAgent, AgentAction


class Minter(BaseAgent):
    """Demand-side participant creating synth supply"""

    def __init__(self, agent_id: str, collateral: float = 50_000.0, share: float = 100_000.0,
                 rng: Optional[random.Random] = None):
        super().__init__(agent_id, "minter", collateral=collateral, share=share, rng=rng)
        self.premium_threshold = 0.005  # mint harder when synth > 1.005

    def decide_action(self, protocol_state: dict, prices: Dict[str, float]) -> Tuple[AgentAction, dict]:
        synth_price = prices.get("synth", 1.0)
        boost = 2.0 if synth_price > 1.0 + self.premium_threshold else 1.0
        if not self._should_act(boost):
            return AgentAction.HOLD, {}

        tcr = protocol_state.get("tcr", 1.0)
        if tcr <= 0.0:
            share_amount = self._size(self.state.balances["share"])
            if share_amount <= 0:
                return AgentAction.HOLD, {}
            return AgentAction.MINT, {"collateral_amount": 0.0, "share_amount": share_amount}

        collateral_amount = self._size(self.state.balances["collateral"])
        if collateral_amount <= 0:
            return AgentAction.HOLD, {}
        return AgentAction.MINT, {"collateral_amount": collateral_amount}
