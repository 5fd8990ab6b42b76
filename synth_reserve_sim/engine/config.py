#!/usr/bin/env python3
"""
Parameter schemas and stress scenarios

Pydantic schemas for every tunable protocol and simulation parameter, plus
the named stress scenarios run by the stress testing framework.
Protocol amounts and ratios are 18-decimal fixed-point integers.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from ..core.math import FixedPointMath, ONE


MAX_FEE = FixedPointMath.percent(5)


class ReserveParams(BaseModel):
    """Collateral reserve settings applied at initialize"""
    global_collateral_ratio: int = Field(ONE, ge=0, le=ONE, description="Initial target collateral ratio")
    ratio_delta: int = Field(FixedPointMath.percent("0.25"), ge=0, le=ONE, description="Single TCR step size")
    bonus_rate: int = Field(FixedPointMath.percent("0.75"), ge=0, le=ONE, description="Recollateralize share bonus")
    buyback_fee: int = Field(0, ge=0, le=MAX_FEE, description="Fee withheld from buyback payouts")
    recollat_fee: int = Field(0, ge=0, le=MAX_FEE, description="Fee withheld from recollateralize payouts")
    refresh_cooldown: int = Field(0, ge=0, description="Seconds between TCR steps")
    invest_collateral_ratio: int = Field(FixedPointMath.percent(70), ge=0, le=ONE,
                                         description="Fraction of idle collateral moved into vaults")
    recollateralize_paused: bool = True
    buyback_paused: bool = True


class ControllerParams(BaseModel):
    """Growth-ratio controller settings"""
    growth_ratio_top_band: int = Field(10 ** 15, ge=0, description="Growth increase that steps TCR down")
    growth_ratio_bottom_band: int = Field(10 ** 15, ge=0, description="Growth decrease that steps TCR up")
    internal_cooldown: int = Field(0, ge=0, description="Seconds between refreshes")
    active: bool = False
    use_growth_ratio: bool = True


class StableControllerParams(ControllerParams):
    """Peg-aware controller settings"""
    growth_ratio_top_band: int = Field(FixedPointMath.percent(1), ge=0)
    growth_ratio_bottom_band: int = Field(FixedPointMath.percent(1), ge=0)
    active: bool = True
    synth_top_band: int = Field(FixedPointMath.to_fixed("1.01"), description="Price above which TCR steps down")
    synth_bottom_band: int = Field(FixedPointMath.to_fixed("0.99"), description="Price at or below which TCR steps up")

    @model_validator(mode="after")
    def validate_peg_bands(self):
        """Peg bands must straddle one unit"""
        if not self.synth_bottom_band <= ONE <= self.synth_top_band:
            raise ValueError("synth bands must satisfy bottom <= 1 <= top")
        return self


class PoolParams(BaseModel):
    """Mint/redeem pool settings"""
    minting_fee: int = Field(0, ge=0, le=MAX_FEE, description="Fee withheld from minted synth")
    redemption_fee: int = Field(0, ge=0, le=MAX_FEE, description="Fee withheld from redemptions")
    action_delay: int = Field(0, ge=0, description="Seconds an account waits between actions; 0 disables")
    minting_paused: bool = True
    redeeming_paused: bool = True


class ScheduledShock(BaseModel):
    """Instant price shock applied at a given step"""
    step: int = Field(ge=0)
    asset: str = Field(description="collateral, share or synth")
    change: float = Field(ge=-1, description="Relative price change, e.g. -0.3")

    @field_validator("asset")
    @classmethod
    def validate_asset(cls, v):
        if v not in ("collateral", "share", "synth"):
            raise ValueError("asset must be collateral, share or synth")
        return v


class SimulationConfig(BaseModel):
    """Simulation run configuration"""
    num_steps: int = Field(500, gt=0, description="Number of simulation steps")
    seed: Optional[int] = Field(None, description="RNG seed; None draws fresh entropy")
    step_seconds: int = Field(3600, gt=0, description="Clock advance per step")
    refresh_interval: int = Field(1, gt=0, description="Controller refresh every N steps")
    use_stable_controller: bool = True

    # Market parameters
    collateral_price: float = Field(1.0, gt=0)
    share_price: float = Field(0.5, gt=0)
    synth_price: float = Field(1.0, gt=0)
    collateral_volatility: float = Field(0.001, ge=0, le=1)
    share_volatility: float = Field(0.03, ge=0, le=1)
    synth_volatility: float = Field(0.004, ge=0, le=1)
    synth_mean_reversion: float = Field(0.2, ge=0, le=1, description="Pull of synth price toward the peg")

    # Initial state
    initial_synth_supply: float = Field(1_000_000.0, ge=0)
    initial_collateral_ratio: float = Field(1.0, ge=0, le=1)
    initial_share_liquidity: float = Field(200_000.0, ge=0, description="Share units across trading pairs")

    # Agents
    num_minters: int = Field(5, ge=0)
    num_redeemers: int = Field(5, ge=0)
    num_arbitrageurs: int = Field(2, ge=0)
    agent_initial_collateral: float = Field(50_000.0, ge=0)
    agent_initial_share: float = Field(100_000.0, ge=0)
    action_probability: float = Field(0.3, ge=0, le=1)
    max_action_fraction: float = Field(0.05, gt=0, le=1)

    # Treasury vault
    vault_rebalance_interval: int = Field(24, ge=0, description="Rebalance the vault every N steps; 0 disables")
    vault_yield_rate: float = Field(0.00002, ge=0, description="Strategy yield per step on vault principal")

    price_shocks: List[ScheduledShock] = Field(default_factory=list)

    reserve: ReserveParams = Field(default_factory=lambda: ReserveParams(
        recollateralize_paused=False, buyback_paused=False))
    controller: StableControllerParams = Field(default_factory=lambda: StableControllerParams(internal_cooldown=0))
    pool: PoolParams = Field(default_factory=lambda: PoolParams(
        minting_paused=False, redeeming_paused=False))


class StressTestScenarios:
    """Named stress scenarios"""

    BASELINE = {
        "name": "Baseline",
        "description": "Calm markets around the peg",
        "overrides": {},
        "price_shocks": [],
    }

    COLLATERAL_CRASH = {
        "name": "Collateral_Crash",
        "description": "Collateral asset drops 30% instantly",
        "overrides": {},
        "price_shocks": [{"step": 50, "asset": "collateral", "change": -0.30}],
    }

    SHARE_CRASH = {
        "name": "Share_Crash",
        "description": "Share asset drops 60% instantly",
        "overrides": {},
        "price_shocks": [{"step": 50, "asset": "share", "change": -0.60}],
    }

    SYNTH_DEPEG_BELOW = {
        "name": "Synth_Depeg_Below",
        "description": "Synth trades 5% under the peg",
        "overrides": {"synth_mean_reversion": 0.02},
        "price_shocks": [{"step": 25, "asset": "synth", "change": -0.05}],
    }

    SYNTH_DEPEG_ABOVE = {
        "name": "Synth_Depeg_Above",
        "description": "Synth trades 5% over the peg",
        "overrides": {"synth_mean_reversion": 0.02},
        "price_shocks": [{"step": 25, "asset": "synth", "change": 0.05}],
    }

    BANK_RUN = {
        "name": "Bank_Run",
        "description": "Redeemers dominate while the share asset sells off",
        "overrides": {"num_minters": 1, "num_redeemers": 12, "action_probability": 0.6},
        "price_shocks": [{"step": 20, "asset": "share", "change": -0.40}],
    }

    @classmethod
    def get_all_scenarios(cls) -> List[Dict[str, Any]]:
        """Get list of all scenarios"""
        return [
            cls.BASELINE,
            cls.COLLATERAL_CRASH,
            cls.SHARE_CRASH,
            cls.SYNTH_DEPEG_BELOW,
            cls.SYNTH_DEPEG_ABOVE,
            cls.BANK_RUN,
        ]

    @classmethod
    def get_scenario(cls, name: str) -> Dict[str, Any]:
        for scenario in cls.get_all_scenarios():
            if scenario["name"] == name:
                return scenario
        raise KeyError(f"Unknown scenario: {name}")

    @classmethod
    def build_config(cls, name: str, **overrides) -> SimulationConfig:
        """Build a SimulationConfig for a scenario, applying extra overrides last"""
        scenario = cls.get_scenario(name)
        values = dict(scenario["overrides"])
        values["price_shocks"] = [ScheduledShock(**s) for s in scenario["price_shocks"]]
        values.update(overrides)
        return SimulationConfig(**values)
