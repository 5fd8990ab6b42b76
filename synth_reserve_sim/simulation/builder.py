#!/usr/bin/env python3
"""
Protocol Deployment

Wires tokens, oracles, tracker, reserve, controller, pool and vault into one
working deployment the way an operator would: construct, initialize once,
grant capabilities and register the collaborators.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from ..core.access import Role
from ..core.clock import ManualClock
from ..core.controller import PIDController, StablePIDController
from ..core.events import EventLog
from ..core.math import ONE
from ..core.oracle import MockPairOracle
from ..core.pool import SyntheticPool
from ..core.reserve import CollateralReserve
from ..core.reserve_tracker import ReserveTracker, TradingPair
from ..core.tokens import Token
from ..core.vault import TreasuryVault
from ..engine.config import ControllerParams, PoolParams, ReserveParams


@dataclass
class ProtocolSystem:
    """Handles to every component of a deployment"""
    clock: ManualClock
    events: EventLog
    collateral: Token
    share: Token
    synth: Token
    collateral_oracle: MockPairOracle
    share_oracle: MockPairOracle
    synth_oracle: MockPairOracle
    tracker: ReserveTracker
    reserve: CollateralReserve
    controller: PIDController
    pool: SyntheticPool
    vault: Optional[TreasuryVault] = None
    pairs: List[TradingPair] = field(default_factory=list)
    owner: str = "owner"
    pauser: str = "pauser"
    fee_collector: str = "fee_collector"

    def fund(self, account: str, collateral: int = 0, share: int = 0, synth: int = 0):
        """Seed an account with balances outside the protocol"""
        if collateral:
            self.collateral.faucet(account, collateral)
        if share:
            self.share.faucet(account, share)
        if synth:
            self.synth.faucet(account, synth)

    def seed_reserve(self, collateral: int):
        """Place collateral directly in the reserve"""
        self.collateral.faucet(self.reserve.address, collateral)


def deploy_system(reserve_params: Optional[ReserveParams] = None,
                  pool_params: Optional[PoolParams] = None,
                  controller_params: Optional[ControllerParams] = None,
                  stable_controller: bool = False,
                  collateral_price: int = ONE,
                  share_price: int = ONE // 2,
                  synth_price: int = ONE,
                  clock: Optional[ManualClock] = None,
                  with_vault: bool = True,
                  owner: str = "owner") -> ProtocolSystem:
    """
    Deploy and wire a complete protocol instance

    Args:
        reserve_params: Reserve settings; defaults leave buyback and recollateralize paused
        pool_params: Pool settings; defaults leave minting and redeeming paused
        controller_params: Controller settings for the chosen controller type
        stable_controller: Use the peg-aware controller
        collateral_price: Initial collateral oracle price (fixed point)
        share_price: Initial share oracle price (fixed point)
        synth_price: Initial synth oracle price (fixed point)
        clock: Clock shared by every component
        with_vault: Register a treasury vault for the collateral
        owner: Account holding owner and maintainer capabilities

    Returns:
        ProtocolSystem with every component initialized
    """
    clock = clock or ManualClock()
    events = EventLog()

    collateral = Token("USDC", events=events)
    share = Token("SHARE", events=events)
    synth = Token("SYNTH", events=events)
    for token in (collateral, share, synth):
        token.access._setup_role(Role.OWNER, owner)

    collateral_oracle = MockPairOracle(collateral_price, address="collateral_oracle", clock=clock)
    share_oracle = MockPairOracle(share_price, address="share_oracle", clock=clock)
    synth_oracle = MockPairOracle(synth_price, address="synth_oracle", clock=clock)

    tracker = ReserveTracker(events=events)
    tracker.initialize(owner, share)

    controller_cls = StablePIDController if stable_controller else PIDController
    controller = controller_cls(events=events, clock=clock)

    reserve = CollateralReserve(events=events, clock=clock)
    system = ProtocolSystem(
        clock=clock, events=events,
        collateral=collateral, share=share, synth=synth,
        collateral_oracle=collateral_oracle, share_oracle=share_oracle, synth_oracle=synth_oracle,
        tracker=tracker, reserve=reserve, controller=controller,
        pool=SyntheticPool(events=events, clock=clock),
        owner=owner,
    )
    reserve.initialize(owner, owner, controller.address, share, share_oracle,
                       system.fee_collector, reserve_params)
    controller.initialize(owner, owner, reserve, share, synth, tracker, share_oracle,
                          synth_oracle, controller_params)
    pool = system.pool
    pool.initialize(owner, reserve, collateral, collateral_oracle, synth, synth_oracle,
                    share, owner, pool_params)

    # Registries
    reserve.add_oracle(owner, collateral_oracle)
    reserve.add_collateral_address(owner, collateral, collateral_oracle)
    reserve.add_synth(owner, synth, synth_oracle)
    reserve.add_pool(owner, pool.address)

    # Capabilities
    synth.access.grant_role(owner, Role.MINTER, pool.address)
    share.access.grant_role(owner, Role.MINTER, pool.address)
    share.access.grant_role(owner, Role.MINTER, reserve.address)
    reserve.access.grant_role(owner, Role.PAUSER, system.pauser)
    pool.access.grant_role(owner, Role.PAUSER, system.pauser)

    if with_vault:
        vault = TreasuryVault(collateral, events=events, clock=clock)
        vault.initialize(owner, owner, reserve.address)
        reserve.add_vault(owner, vault)
        system.vault = vault

    return system


def add_share_liquidity(system: ProtocolSystem, share_reserve: int, other_reserve: int,
                        share_first: bool = True) -> TradingPair:
    """Register a share trading pair against the collateral asset"""
    if share_first:
        pair = TradingPair(system.share, system.collateral, share_reserve, other_reserve)
    else:
        pair = TradingPair(system.collateral, system.share, other_reserve, share_reserve)
    system.tracker.add_share_pair(system.owner, pair)
    system.pairs.append(pair)
    return pair
