#!/usr/bin/env python3
"""
Reserve Arbitrageur Agent

Closes the gap between ECR and TCR: recollateralizes for the share bonus
when the reserve is short, buys back share units when it holds excess, and
otherwise trades the synth back toward its peg through the pool.
"""

import random
from typing import Dict, Optional, Tuple

from .base_agent import BaseAgent, AgentAction


class Arbitrageur(BaseAgent):
    """Keeps the reserve near its target by trading the bounded operations"""

    def __init__(self, agent_id: str, collateral: float = 50_000.0, share: float = 100_000.0,
                 rng: Optional[random.Random] = None):
        super().__init__(agent_id, "arbitrageur", collateral=collateral, share=share, rng=rng)
        self.action_probability = 0.8
        self.peg_threshold = 0.01
        self.ratio_tolerance = 0.001

    def decide_action(self, protocol_state: dict, prices: Dict[str, float]) -> Tuple[AgentAction, dict]:
        """
        Arbitrage priority:
        1. Recollateralize while ECR sits under TCR
        2. Buy back share while ECR sits over TCR
        3. Trade the synth peg
        """
        if not self._should_act():
            return AgentAction.HOLD, {}

        tcr = protocol_state.get("tcr", 1.0)
        ecr = protocol_state.get("ecr", 1.0)

        if ecr < tcr - self.ratio_tolerance:
            room = protocol_state.get("recollateralize_amount", 0.0)
            amount = min(room, self.state.balances["collateral"] * self.max_action_fraction * 4)
            if amount > 0:
                return AgentAction.RECOLLATERALIZE, {"collateral_amount": amount}

        if ecr > tcr + self.ratio_tolerance:
            room = protocol_state.get("max_buyback_share", 0.0)
            # Stay inside the excess net of fees
            amount = min(room * 0.95, self.state.balances["share"] * self.max_action_fraction * 4)
            if amount > 0:
                return AgentAction.BUYBACK, {"share_amount": amount}

        synth_price = prices.get("synth", 1.0)
        if synth_price > 1.0 + self.peg_threshold:
            amount = self._size(self.state.balances["collateral"])
            if amount > 0:
                return AgentAction.MINT, {"collateral_amount": amount}
        elif synth_price < 1.0 - self.peg_threshold:
            amount = self._size(self.state.balances["synth"])
            if amount > 0:
                return AgentAction.REDEEM, {"synth_amount": amount}

        return AgentAction.HOLD, {}
