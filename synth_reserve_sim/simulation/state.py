#!/usr/bin/env python3
"""
Market State

Exogenous price processes driving the oracles: geometric random walks for
the collateral and share assets and a mean-reverting walk for the synth.
"""

from typing import Dict, List

import numpy as np

PRICE_FLOOR = 1e-6


class MarketState:
    """Current prices and their history"""

    def __init__(self, collateral_price: float, share_price: float, synth_price: float,
                 volatilities: Dict[str, float], synth_mean_reversion: float = 0.2,
                 synth_peg: float = 1.0):
        self.current_prices = {
            "collateral": collateral_price,
            "share": share_price,
            "synth": synth_price,
        }
        self.initial_prices = dict(self.current_prices)
        self.volatilities = dict(volatilities)
        self.synth_mean_reversion = synth_mean_reversion
        self.synth_peg = synth_peg
        self.price_history: List[Dict[str, float]] = [dict(self.current_prices)]

    def step(self, rng: np.random.Generator) -> Dict[str, float]:
        """Advance every price by one step"""
        shocks = rng.standard_normal(3)
        for asset, z in zip(("collateral", "share"), shocks[:2]):
            sigma = self.volatilities.get(asset, 0.0)
            self.current_prices[asset] *= float(np.exp(sigma * z - 0.5 * sigma ** 2))

        synth = self.current_prices["synth"]
        pull = self.synth_mean_reversion * (self.synth_peg - synth)
        synth += pull + self.volatilities.get("synth", 0.0) * float(shocks[2])
        self.current_prices["synth"] = synth

        self._apply_floor()
        self.price_history.append(dict(self.current_prices))
        return self.current_prices

    def apply_price_shock(self, shocks: Dict[str, float]):
        """Apply relative price shocks, e.g. {"share": -0.4}"""
        for asset, change in shocks.items():
            if asset in self.current_prices:
                self.current_prices[asset] *= (1 + change)
        self._apply_floor()

    def _apply_floor(self):
        for asset, price in self.current_prices.items():
            self.current_prices[asset] = max(price, PRICE_FLOOR)

    def get_state_summary(self) -> dict:
        history = np.array([[p["collateral"], p["share"], p["synth"]] for p in self.price_history])
        return {
            "current_prices": dict(self.current_prices),
            "initial_prices": dict(self.initial_prices),
            "min_prices": dict(zip(("collateral", "share", "synth"), history.min(axis=0).tolist())),
            "max_prices": dict(zip(("collateral", "share", "synth"), history.max(axis=0).tolist())),
        }
