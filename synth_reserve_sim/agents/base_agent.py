#!/usr/bin/env python3
"""
Minimal Agent Interface

Base class for stablecoin market participants. Agents read a float view of
the protocol and return an (action, params) tuple; the simulation engine
turns that into calls against the pool and reserve.
"""

import random
from abc import ABC, abstractmethod
from enum import Enum
from typing import Dict, Optional


class AgentAction(Enum):
    """Agent action types"""
    MINT = "mint"
    REDEEM = "redeem"
    RECOLLATERALIZE = "recollateralize"
    BUYBACK = "buyback"
    HOLD = "hold"


class AgentState:
    """Wallet balances and running counters for one agent"""

    def __init__(self, agent_id: str, collateral: float = 0.0, share: float = 0.0, synth: float = 0.0):
        self.agent_id = agent_id
        self.balances = {"collateral": collateral, "share": share, "synth": synth}
        self.initial_value: Optional[float] = None
        self.actions_executed = 0
        self.actions_rejected = 0
        self.realized_profit = 0.0
        self.realized_penalty = 0.0

    def sync(self, collateral: float, share: float, synth: float):
        """Refresh balances from the token ledgers"""
        self.balances["collateral"] = collateral
        self.balances["share"] = share
        self.balances["synth"] = synth

    def portfolio_value(self, prices: Dict[str, float]) -> float:
        return sum(amount * prices.get(asset, 0.0) for asset, amount in self.balances.items())


class BaseAgent(ABC):
    """Minimal agent interface"""

    def __init__(self, agent_id: str, agent_type: str, collateral: float = 0.0, share: float = 0.0,
                 synth: float = 0.0, rng: Optional[random.Random] = None):
        self.agent_id = agent_id
        self.agent_type = agent_type
        self.state = AgentState(agent_id, collateral, share, synth)
        self.rng = rng or random.Random()

        # Agent parameters (to be set by subclasses)
        self.action_probability = 0.3
        self.max_action_fraction = 0.05
        self.active = True

    @abstractmethod
    def decide_action(self, protocol_state: dict, prices: Dict[str, float]) -> tuple:
        """
        Decide what action to take based on current protocol state

        Returns:
            Tuple of (action_type, params)
        """
        pass

    def _should_act(self, boost: float = 1.0) -> bool:
        return self.rng.random() < min(1.0, self.action_probability * boost)

    def _size(self, balance: float) -> float:
        """Random slice of a balance, capped by max_action_fraction"""
        return balance * self.rng.uniform(0.1, 1.0) * self.max_action_fraction

    def record_result(self, accepted: bool, profit: float = 0.0, penalty: float = 0.0):
        if accepted:
            self.state.actions_executed += 1
        else:
            self.state.actions_rejected += 1
        self.state.realized_profit += profit
        self.state.realized_penalty += penalty

    def get_portfolio_summary(self, prices: Dict[str, float]) -> dict:
        """Get summary of agent's portfolio"""
        value = self.state.portfolio_value(prices)
        initial = self.state.initial_value if self.state.initial_value is not None else value
        return {
            "agent_id": self.agent_id,
            "agent_type": self.agent_type,
            "balances": dict(self.state.balances),
            "portfolio_value": value,
            "value_change": value - initial,
            "actions_executed": self.state.actions_executed,
            "actions_rejected": self.state.actions_rejected,
            "realized_profit": self.state.realized_profit,
            "realized_penalty": self.state.realized_penalty,
        }
