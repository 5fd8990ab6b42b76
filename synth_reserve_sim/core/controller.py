#!/usr/bin/env python3
"""
Stability Controller

Reads share-asset liquidity and synth liability value, computes a growth
ratio and, in the peg-aware variant, the synth's deviation from its peg, then
issues at most one single-step TCR adjustment per refresh under a cooldown.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional

from .access import AccessControl, Role, requires_role
from .clock import SystemClock
from .errors import PreconditionError
from .events import EventLog
from .math import FixedPointMath, ONE
from .tokens import Token
from .transaction import StatefulComponent, atomic
from ..engine.config import ControllerParams, StableControllerParams

logger = logging.getLogger(__name__)


@dataclass
class RefreshResult:
    """Outcome of one controller refresh"""
    growth_ratio: int
    previous_growth_ratio: int
    direction: Optional[str]  # "up", "down" or None
    signal: Optional[str]  # "growth", "peg" or None
    tcr: int


class PIDController(StatefulComponent):
    """Growth-ratio feedback controller for the target collateral ratio"""

    PARAMS = ControllerParams

    def __init__(self, address: str = "pid_controller", access: Optional[AccessControl] = None,
                 events: Optional[EventLog] = None, clock=None):
        super().__init__()
        self.address = address
        self.access = access or AccessControl()
        self.events = events or EventLog()
        self.clock = clock or SystemClock()
        self.initialized = False

        self.collateral_reserve = None
        self.share: Optional[Token] = None
        self.synth: Optional[Token] = None
        self.reserve_tracker = None
        self.price_feed = None
        self.synth_oracle = None

        self.growth_ratio = 0
        self.growth_ratio_top_band = 0
        self.growth_ratio_bottom_band = 0
        self.internal_cooldown = 0
        self.last_update = 0
        self.is_active = False
        self.use_growth_ratio = True

    @atomic
    def initialize(self, caller: str, owner: str, collateral_reserve, share: Token, synth: Token,
                   reserve_tracker, price_feed, synth_oracle, params: Optional[ControllerParams] = None):
        """One-time setup; a second call is rejected"""
        if self.initialized:
            raise PreconditionError("Already initialized")
        if None in (owner, collateral_reserve, share, synth, reserve_tracker, price_feed, synth_oracle):
            raise PreconditionError("Zero address detected")
        params = params or self.PARAMS()

        self.initialized = True
        self.collateral_reserve = collateral_reserve
        self.share = share
        self.synth = synth
        self.reserve_tracker = reserve_tracker
        self.price_feed = price_feed
        self.synth_oracle = synth_oracle
        self._apply_params(params)
        self.access._setup_role(Role.OWNER, owner)

    def _apply_params(self, params: ControllerParams):
        self.growth_ratio_top_band = params.growth_ratio_top_band
        self.growth_ratio_bottom_band = params.growth_ratio_bottom_band
        self.internal_cooldown = params.internal_cooldown
        self.is_active = params.active
        self.use_growth_ratio = params.use_growth_ratio

    # Reads

    def get_synth_price(self) -> int:
        return self.synth_oracle.consult(self.synth, ONE)

    def compute_growth_ratio(self) -> int:
        """Share liquidity value over synth liability value"""
        share_price = self.price_feed.consult(self.share, ONE)
        share_reserves = self.reserve_tracker.get_share_reserves()
        # Liquidity keeps its doubled scale; the division below restores it
        share_liquidity = share_reserves * share_price
        synth_value = FixedPointMath.mul_div(self.synth.total_supply, self.get_synth_price(), ONE)
        if synth_value == 0:
            return 0
        return share_liquidity // synth_value

    def _growth_signal(self, new_ratio: int) -> Optional[str]:
        """Direction requested by the growth-ratio change"""
        if new_ratio - self.growth_ratio > self.growth_ratio_top_band:
            return "down"
        if self.growth_ratio - new_ratio > self.growth_ratio_bottom_band:
            return "up"
        return None

    def _select_step(self, new_ratio: int):
        """Return (direction, signal) for this refresh"""
        if not self.use_growth_ratio:
            return None, None
        direction = self._growth_signal(new_ratio)
        return direction, ("growth" if direction else None)

    @atomic
    def refresh_collateral_ratio(self, caller: Optional[str] = None) -> RefreshResult:
        """
        Recompute the growth ratio and step TCR at most once.

        Anyone may call; rejected while inactive or inside the cooldown.
        """
        if not self.is_active:
            raise PreconditionError("unactive")
        now = self.clock.now()
        if self.last_update != 0 and now - self.last_update < self.internal_cooldown:
            raise PreconditionError("cooldown not passed")

        new_ratio = self.compute_growth_ratio()
        direction, signal = self._select_step(new_ratio)
        if direction == "down":
            self.collateral_reserve.step_down_tcr(self.address)
        elif direction == "up":
            self.collateral_reserve.step_up_tcr(self.address)

        previous = self.growth_ratio
        self.growth_ratio = new_ratio
        self.last_update = now
        tcr = self.collateral_reserve.global_collateral_ratio
        self.events.emit("GrowthRatioRefreshed", self.address, now,
                         growth_ratio=new_ratio, direction=direction, tcr=tcr)
        logger.debug("refresh: growth ratio %d -> %d, step %s (%s)", previous, new_ratio, direction, signal)
        return RefreshResult(new_ratio, previous, direction, signal, tcr)

    # Administration

    @atomic
    @requires_role(Role.OWNER, "Caller is not the owner")
    def activate(self, caller: str, state: bool):
        self.is_active = bool(state)
        self.events.emit("ControllerActivated", self.address, self.clock.now(), active=self.is_active)

    @atomic
    @requires_role(Role.OWNER, "Caller is not the owner")
    def set_use_growth_ratio(self, caller: str, use_growth_ratio: bool):
        self.use_growth_ratio = bool(use_growth_ratio)

    @atomic
    @requires_role(Role.OWNER, "Caller is not the owner")
    def set_reserve_tracker(self, caller: str, reserve_tracker):
        self.reserve_tracker = reserve_tracker

    @atomic
    @requires_role(Role.OWNER, "Caller is not the owner")
    def set_growth_ratio_bands(self, caller: str, top_band: int, bottom_band: int):
        if top_band < 0 or bottom_band < 0:
            raise PreconditionError("Bands should not be negative")
        self.growth_ratio_top_band = top_band
        self.growth_ratio_bottom_band = bottom_band

    @atomic
    @requires_role(Role.OWNER, "Caller is not the owner")
    def set_internal_cooldown(self, caller: str, cooldown: int):
        if cooldown < 0:
            raise PreconditionError("Cooldown should not be negative")
        self.internal_cooldown = cooldown

    @atomic
    @requires_role(Role.OWNER, "Caller is not the owner")
    def set_collateral_reserve(self, caller: str, collateral_reserve):
        self.collateral_reserve = collateral_reserve

    @atomic
    @requires_role(Role.OWNER, "Caller is not the owner")
    def set_share_contract_address(self, caller: str, share: Token):
        self.share = share

    @atomic
    @requires_role(Role.OWNER, "Caller is not the owner")
    def set_price_feed_address(self, caller: str, price_feed):
        self.price_feed = price_feed

    @atomic
    @requires_role(Role.OWNER, "Caller is not the owner")
    def set_synth_oracle(self, caller: str, synth_oracle):
        self.synth_oracle = synth_oracle

    def get_state(self) -> Dict:
        return {
            "growth_ratio": self.growth_ratio,
            "growth_ratio_top_band": self.growth_ratio_top_band,
            "growth_ratio_bottom_band": self.growth_ratio_bottom_band,
            "internal_cooldown": self.internal_cooldown,
            "last_update": self.last_update,
            "is_active": self.is_active,
            "use_growth_ratio": self.use_growth_ratio,
        }


class StablePIDController(PIDController):
    """Peg-aware controller adding a synth market price signal"""

    PARAMS = StableControllerParams

    def __init__(self, address: str = "stable_pid_controller", access: Optional[AccessControl] = None,
                 events: Optional[EventLog] = None, clock=None):
        super().__init__(address, access, events, clock)
        self.synth_top_band = 0
        self.synth_bottom_band = 0

    def _apply_params(self, params: StableControllerParams):
        super()._apply_params(params)
        self.synth_top_band = params.synth_top_band
        self.synth_bottom_band = params.synth_bottom_band

    def _peg_signal(self) -> Optional[str]:
        """Upper band is exclusive, lower band inclusive"""
        synth_price = self.get_synth_price()
        if synth_price > self.synth_top_band:
            return "down"
        if synth_price <= self.synth_bottom_band:
            return "up"
        return None

    def _select_step(self, new_ratio: int):
        # The peg signal wins; at most one step per refresh
        direction = self._peg_signal()
        if direction is not None:
            return direction, "peg"
        return super()._select_step(new_ratio)

    @atomic
    @requires_role(Role.OWNER, "Caller is not the owner")
    def set_synth_price_bands(self, caller: str, top_band: int, bottom_band: int):
        if not bottom_band <= ONE <= top_band:
            raise PreconditionError("Invalid synth price bands")
        self.synth_top_band = top_band
        self.synth_bottom_band = bottom_band

    def get_state(self) -> Dict:
        state = super().get_state()
        state.update({
            "synth_top_band": self.synth_top_band,
            "synth_bottom_band": self.synth_bottom_band,
            "synth_price": self.get_synth_price() if self.synth_oracle is not None else None,
        })
        return state
