#!/usr/bin/env python3
"""
Treasury Vault

Yield collaborator that receives idle reserve collateral. Only the treasury
(the collateral reserve) may move principal in or out; strategy gains are
paid to the vault owner and losses are absorbed pro rata on withdrawal.
"""

import logging
from typing import Dict, Optional, Tuple

from .access import AccessControl, Role, requires_role
from .errors import EconomicBoundError, PreconditionError
from .events import EventLog
from .math import FixedPointMath
from .tokens import Token
from .transaction import StatefulComponent, atomic

logger = logging.getLogger(__name__)


class TreasuryVault(StatefulComponent):
    """Single-asset vault holding collateral on behalf of a treasury"""

    def __init__(self, asset: Token, address: Optional[str] = None,
                 access: Optional[AccessControl] = None, events: Optional[EventLog] = None,
                 clock=None, reward_token: Optional[Token] = None):
        super().__init__()
        self.asset = asset
        self.address = address or f"vault_{asset.symbol.lower()}"
        self.access = access or AccessControl()
        self.events = events or EventLog()
        self.clock = clock
        self.reward_token = reward_token or asset

        self.initialized = False
        self.owner: Optional[str] = None
        self.treasury: Optional[str] = None
        self.vault_balance = 0  # principal deposited by the treasury
        self.unclaimed_incentives = 0
        self.loss_sink = f"{self.address}_strategy_loss"

    def _now(self) -> int:
        return self.clock.now() if self.clock is not None else 0

    @atomic
    def initialize(self, caller: str, owner: str, treasury: str):
        if self.initialized:
            raise PreconditionError("Already initialized")
        if owner is None or treasury is None:
            raise PreconditionError("Zero address detected")
        self.initialized = True
        self.owner = owner
        self.treasury = treasury
        self.access._setup_role(Role.OWNER, owner)
        self.access._setup_role(Role.MAINTAINER, owner)

    # Reads

    def balance_of_asset(self) -> int:
        """Raw asset units held by the vault, gains included"""
        held = self.asset.balance_of(self.address)
        if self.reward_token is self.asset:
            held -= self.unclaimed_incentives
        return held

    def balance_of_underlying(self) -> int:
        """Units the treasury can recall: principal less any realized shortfall"""
        return min(self.vault_balance, self.balance_of_asset())

    def get_profit(self) -> Tuple[int, int]:
        """(profit, penalty) of held assets against deposited principal"""
        held = self.balance_of_asset()
        if held >= self.vault_balance:
            return held - self.vault_balance, 0
        return 0, self.vault_balance - held

    def get_unclaimed_incentive_rewards_balance(self) -> int:
        return self.unclaimed_incentives

    # Treasury operations

    def _only_treasury(self, caller: str):
        if caller != self.treasury:
            raise PreconditionError("!treasury")

    @atomic
    def deposit(self, caller: str, amount: int):
        """Pull `amount` of the asset from the treasury"""
        self._only_treasury(caller)
        if amount <= 0:
            raise PreconditionError("Zero amount")
        self.asset.transfer(caller, self.address, amount)
        self.vault_balance += amount
        self.events.emit("Deposited", self.address, self._now(), amount=amount)

    @atomic
    def withdraw(self, caller: str, amount: int) -> int:
        """Return `amount` of principal to the treasury, realizing profit to the owner"""
        self._only_treasury(caller)
        if amount > self.vault_balance:
            raise EconomicBoundError("Withdraw over vault balance")
        if amount == 0:
            return 0

        profit, penalty = self.get_profit()
        if profit > 0:
            self.asset.transfer(self.address, self.owner, profit)
            self.events.emit("Profited", self.address, self._now(), amount=profit)

        # Losses are shared pro rata across the principal being withdrawn
        payout = amount if penalty == 0 else FixedPointMath.mul_div(
            amount, self.balance_of_asset(), self.vault_balance
        )
        self.asset.transfer(self.address, caller, payout)
        self.vault_balance -= amount
        logger.debug("%s returned %d of %d principal to %s", self.address, payout, amount, caller)
        self.events.emit("Withdrawn", self.address, self._now(), amount=payout)
        return payout

    # Strategy simulation

    def accrue(self, amount: int):
        """Credit strategy yield to the vault"""
        self.asset.faucet(self.address, amount)

    def slash(self, amount: int):
        """Simulate a strategy loss"""
        self.asset.transfer(self.address, self.loss_sink, min(amount, self.balance_of_asset()))

    def add_incentive(self, amount: int):
        self.reward_token.faucet(self.address, amount)
        self.unclaimed_incentives += amount

    # Administration

    @atomic
    @requires_role(Role.MAINTAINER, "Caller is not a maintainer")
    def set_treasury(self, caller: str, treasury: str):
        if treasury is None:
            raise PreconditionError("Zero address detected")
        self.treasury = treasury
        self.events.emit("TreasuryChanged", self.address, self._now(), treasury=treasury)

    @atomic
    @requires_role(Role.MAINTAINER, "Caller is not a maintainer")
    def claim_incentive_rewards(self, caller: str) -> int:
        amount = self.unclaimed_incentives
        if amount > 0:
            self.reward_token.transfer(self.address, self.owner, amount)
            self.unclaimed_incentives = 0
        self.events.emit("IncentivesClaimed", self.address, self._now(), amount=amount)
        return amount

    def get_state(self) -> Dict:
        profit, penalty = self.get_profit()
        return {
            "address": self.address,
            "asset": self.asset.symbol,
            "vault_balance": self.vault_balance,
            "balance_of_asset": self.balance_of_asset(),
            "profit": profit,
            "penalty": penalty,
            "unclaimed_incentives": self.unclaimed_incentives,
        }
