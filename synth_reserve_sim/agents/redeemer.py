#!/usr/bin/env python3
"""
Redeemer Agent

Returns synth to the pool for collateral and share units. Redeems more
eagerly when the synth trades under its peg.
"""

import random
from typing import Dict, Optional, Tuple

from .base_agent import BaseAgent, AgentAction


class Redeemer(BaseAgent):
    """Exit-side participant shrinking synth supply"""

    def __init__(self, agent_id: str, synth: float = 50_000.0, rng: Optional[random.Random] = None):
        super().__init__(agent_id, "redeemer", synth=synth, rng=rng)
        self.discount_threshold = 0.005
        self.min_redeem = 1.0

    def decide_action(self, protocol_state: dict, prices: Dict[str, float]) -> Tuple[AgentAction, dict]:
        synth_price = prices.get("synth", 1.0)
        boost = 2.0 if synth_price < 1.0 - self.discount_threshold else 1.0
        if not self._should_act(boost):
            return AgentAction.HOLD, {}

        synth_amount = self._size(self.state.balances["synth"])
        if synth_amount < self.min_redeem:
            return AgentAction.HOLD, {}
        return AgentAction.REDEEM, {"synth_amount": synth_amount}
