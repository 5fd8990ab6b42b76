#!/usr/bin/env python3
"""
Synthetic Mint/Redeem Pool

One facade per synthetic asset. Minting offers three modes (1:1,
algorithmic and fractional), each valid only under its TCR precondition;
redemption mirrors them against the live ECR and pays out through the
reserve. Collateral fees accrue to the pool and are swept by withdraw_fee.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from .access import AccessControl, Role, requires_role
from .clock import SystemClock
from .errors import EconomicBoundError, PreconditionError
from .events import EventLog
from .math import FixedPointMath, ONE
from .tokens import Token
from .transaction import StatefulComponent, atomic
from ..engine.config import MAX_FEE, PoolParams

logger = logging.getLogger(__name__)

mul_div = FixedPointMath.mul_div


@dataclass
class MintResult:
    """Outcome of a mint call"""
    mode: str
    collateral_in: int
    share_in: int
    synth_out: int
    fee_collateral: int


@dataclass
class RedeemResult:
    """Outcome of a redeem call, with profit or penalty against cost basis"""
    mode: str
    synth_in: int
    collateral_out: int
    share_out: int
    fee_collateral: int
    value_received: int
    cost_basis: int
    profit: int
    penalty: int


class SyntheticPool(StatefulComponent):
    """Mint/redeem facade for a single synthetic asset"""

    MAX_FEE = MAX_FEE

    def __init__(self, address: str = "synthetic_pool", access: Optional[AccessControl] = None,
                 events: Optional[EventLog] = None, clock=None):
        super().__init__()
        self.address = address
        self.access = access or AccessControl()
        self.events = events or EventLog()
        self.clock = clock or SystemClock()
        self.initialized = False

        self.collateral_reserve = None
        self.collateral: Optional[Token] = None
        self.collateral_oracle = None
        self.synth: Optional[Token] = None
        self.synth_oracle = None
        self.share: Optional[Token] = None

        self.minting_fee = 0
        self.redemption_fee = 0
        self.action_delay = 0
        self.mint_paused = True
        self.redeem_paused = True

        self.last_action: Dict[str, int] = {}
        # account -> (synth units, value paid)
        self.cost_basis: Dict[str, Tuple[int, int]] = {}

    def _now(self) -> int:
        return self.clock.now()

    def _emit(self, name: str, **args):
        self.events.emit(name, self.address, self._now(), **args)

    @atomic
    def initialize(self, caller: str, collateral_reserve, collateral: Token, collateral_oracle,
                   synth: Token, synth_oracle, share: Token, owner: str,
                   params: Optional[PoolParams] = None):
        """One-time setup; a second call is rejected"""
        if self.initialized:
            raise PreconditionError("Already initialized")
        if None in (collateral_reserve, collateral, collateral_oracle, synth, synth_oracle, share, owner):
            raise PreconditionError("Zero address detected")
        params = params or PoolParams()

        self.initialized = True
        self.collateral_reserve = collateral_reserve
        self.collateral = collateral
        self.collateral_oracle = collateral_oracle
        self.synth = synth
        self.synth_oracle = synth_oracle
        self.share = share

        self.minting_fee = params.minting_fee
        self.redemption_fee = params.redemption_fee
        self.action_delay = params.action_delay
        self.mint_paused = params.minting_paused
        self.redeem_paused = params.redeeming_paused

        self.access._setup_role(Role.OWNER, owner)
        self.access._setup_role(Role.MAINTAINER, owner)

    # ------------------------------------------------------------------
    # Prices
    # ------------------------------------------------------------------

    def get_collateral_price(self) -> int:
        return self.collateral_oracle.consult(self.collateral, ONE)

    def get_synth_price(self) -> int:
        return self.synth_oracle.consult(self.synth, ONE)

    def get_share_price(self) -> int:
        return self.collateral_reserve.get_share_price()

    def quote_fractional_share_amount(self, collateral_amount: int) -> int:
        """Share units that pair with `collateral_amount` at the current TCR"""
        tcr = self.collateral_reserve.global_collateral_ratio
        if tcr == 0:
            return 0
        collateral_value = mul_div(collateral_amount, self.get_collateral_price(), ONE)
        share_value = mul_div(collateral_value, ONE - tcr, tcr)
        return mul_div(share_value, ONE, self.get_share_price())

    # ------------------------------------------------------------------
    # Gates
    # ------------------------------------------------------------------

    def _check_action_delay(self, account: str):
        if self.action_delay == 0 or account not in self.last_action:
            return
        if self._now() - self.last_action[account] < self.action_delay:
            raise PreconditionError("Action delay not passed")

    def _before_mint(self, caller: str, *amounts: int):
        if self.mint_paused:
            raise PreconditionError("Minting is paused")
        if any(a <= 0 for a in amounts):
            raise PreconditionError("Zero amount")
        self._check_action_delay(caller)

    def _before_redeem(self, caller: str, synth_amount: int):
        if self.redeem_paused:
            raise PreconditionError("Redeeming is paused")
        if synth_amount <= 0:
            raise PreconditionError("Zero amount")
        self._check_action_delay(caller)

    # ------------------------------------------------------------------
    # Cost basis
    # ------------------------------------------------------------------

    def _record_mint(self, account: str, synth_out: int, value_paid: int):
        units, value = self.cost_basis.get(account, (0, 0))
        self.cost_basis[account] = (units + synth_out, value + value_paid)
        self.last_action[account] = self._now()

    def _consume_basis(self, account: str, synth_amount: int) -> int:
        """Average-cost basis of `synth_amount`, face value for untracked units"""
        units, value = self.cost_basis.get(account, (0, 0))
        tracked = min(units, synth_amount)
        basis = mul_div(value, tracked, units) if units > 0 else 0
        basis += synth_amount - tracked
        if units > 0:
            self.cost_basis[account] = (units - tracked, value - mul_div(value, tracked, units))
        return basis

    def get_cost_basis(self, account: str) -> Tuple[int, int]:
        return self.cost_basis.get(account, (0, 0))

    # ------------------------------------------------------------------
    # Minting
    # ------------------------------------------------------------------

    def _take_collateral(self, caller: str, collateral_amount: int) -> int:
        """Move collateral in; the fee portion stays with the pool"""
        fee = mul_div(collateral_amount, self.minting_fee, ONE)
        self.collateral.transfer(caller, self.collateral_reserve.address, collateral_amount - fee)
        if fee > 0:
            self.collateral.transfer(caller, self.address, fee)
        return fee

    def _finish_mint(self, caller: str, result: MintResult, value_paid: int, min_synth_out: int) -> MintResult:
        if result.synth_out < min_synth_out:
            raise EconomicBoundError("Slippage limit reached")
        self.synth.mint(self.address, caller, result.synth_out)
        self._record_mint(caller, result.synth_out, value_paid)
        self._emit("Minted", account=caller, mode=result.mode, collateral_in=result.collateral_in,
                   share_in=result.share_in, synth_out=result.synth_out)
        logger.debug("%s minted %d synth via %s", caller, result.synth_out, result.mode)
        return result

    @atomic
    def mint_1t1(self, caller: str, collateral_amount: int, min_synth_out: int) -> MintResult:
        """Mint against collateral alone; requires TCR == 1"""
        self._before_mint(caller, collateral_amount)
        if self.collateral_reserve.global_collateral_ratio != ONE:
            raise PreconditionError("Collateral ratio must be 1")

        value_paid = mul_div(collateral_amount, self.get_collateral_price(), ONE)
        synth_out = mul_div(value_paid, ONE, self.get_synth_price())
        synth_out = FixedPointMath.apply_fee(synth_out, self.minting_fee)

        fee = self._take_collateral(caller, collateral_amount)
        return self._finish_mint(caller, MintResult("1t1", collateral_amount, 0, synth_out, fee),
                                 value_paid, min_synth_out)

    @atomic
    def mint_algorithmic(self, caller: str, share_amount: int, min_synth_out: int) -> MintResult:
        """Mint against the share asset alone; requires TCR == 0"""
        self._before_mint(caller, share_amount)
        if self.collateral_reserve.global_collateral_ratio != 0:
            raise PreconditionError("Collateral ratio must be 0")

        share_value = mul_div(share_amount, self.get_share_price(), ONE)
        synth_out = mul_div(share_value, ONE, self.get_synth_price())
        synth_out = FixedPointMath.apply_fee(synth_out, self.minting_fee)

        self.share.burn(self.address, caller, share_amount)
        return self._finish_mint(caller, MintResult("algorithmic", 0, share_amount, synth_out, 0),
                                 share_value, min_synth_out)

    @atomic
    def mint_fractional(self, caller: str, collateral_amount: int, share_amount: int,
                        min_synth_out: int) -> MintResult:
        """Mint against collateral and share in the exact TCR split; requires 0 < TCR < 1"""
        self._before_mint(caller, collateral_amount, share_amount)
        tcr = self.collateral_reserve.global_collateral_ratio
        if not 0 < tcr < ONE:
            raise PreconditionError("Collateral ratio needs to be between .000001 and .999999")
        if share_amount != self.quote_fractional_share_amount(collateral_amount):
            raise EconomicBoundError("Share amount mismatch")

        collateral_value = mul_div(collateral_amount, self.get_collateral_price(), ONE)
        share_value = mul_div(share_amount, self.get_share_price(), ONE)
        total_value = collateral_value + share_value
        synth_out = mul_div(total_value, ONE, self.get_synth_price())
        synth_out = FixedPointMath.apply_fee(synth_out, self.minting_fee)

        fee = self._take_collateral(caller, collateral_amount)
        self.share.burn(self.address, caller, share_amount)
        return self._finish_mint(caller, MintResult("fractional", collateral_amount, share_amount, synth_out, fee),
                                 total_value, min_synth_out)

    # ------------------------------------------------------------------
    # Redemption
    # ------------------------------------------------------------------

    def _pay_collateral(self, caller: str, gross: int) -> Tuple[int, int]:
        """Pay `gross` collateral net of the redemption fee; the fee goes to the pool"""
        collateral_out = FixedPointMath.apply_fee(gross, self.redemption_fee)
        fee = gross - collateral_out
        if collateral_out > 0:
            self.collateral_reserve.request_transfer(self.address, caller, self.collateral, collateral_out)
        if fee > 0:
            self.collateral_reserve.request_transfer(self.address, self.address, self.collateral, fee)
        return collateral_out, fee

    def _finish_redeem(self, caller: str, mode: str, synth_amount: int, collateral_out: int,
                       share_out: int, fee: int, min_out: int, guarded: int) -> RedeemResult:
        if guarded < min_out:
            raise EconomicBoundError("Slippage limit reached")
        value_received = (mul_div(collateral_out, self.get_collateral_price(), ONE)
                          + mul_div(share_out, self.get_share_price(), ONE))
        basis = self._consume_basis(caller, synth_amount)
        profit = max(0, value_received - basis)
        penalty = max(0, basis - value_received)
        self.last_action[caller] = self._now()
        self._emit("Redeemed", account=caller, mode=mode, synth_in=synth_amount,
                   collateral_out=collateral_out, share_out=share_out, profit=profit, penalty=penalty)
        logger.debug("%s redeemed %d synth via %s", caller, synth_amount, mode)
        return RedeemResult(mode, synth_amount, collateral_out, share_out, fee,
                            value_received, basis, profit, penalty)

    @atomic
    def redeem_1t1(self, caller: str, synth_amount: int, min_collateral_out: int) -> RedeemResult:
        """Redeem for collateral alone; requires ECR == 1"""
        self._before_redeem(caller, synth_amount)
        if self.collateral_reserve.get_ecr() != ONE:
            raise PreconditionError("Collateral ratio must be 1")

        synth_value = mul_div(synth_amount, self.get_synth_price(), ONE)
        gross = mul_div(synth_value, ONE, self.get_collateral_price())

        self.synth.burn(self.address, caller, synth_amount)
        collateral_out, fee = self._pay_collateral(caller, gross)
        return self._finish_redeem(caller, "1t1", synth_amount, collateral_out, 0, fee,
                                   min_collateral_out, collateral_out)

    @atomic
    def redeem_algorithmic(self, caller: str, synth_amount: int, min_share_out: int) -> RedeemResult:
        """Redeem for newly minted share units; requires ECR == 0"""
        self._before_redeem(caller, synth_amount)
        if self.collateral_reserve.get_ecr() != 0:
            raise PreconditionError("Collateral ratio must be 0")

        synth_value = mul_div(synth_amount, self.get_synth_price(), ONE)
        share_out = mul_div(synth_value, ONE, self.get_share_price())
        share_out = FixedPointMath.apply_fee(share_out, self.redemption_fee)

        self.synth.burn(self.address, caller, synth_amount)
        self.share.mint(self.address, caller, share_out)
        return self._finish_redeem(caller, "algorithmic", synth_amount, 0, share_out, 0,
                                   min_share_out, share_out)

    @atomic
    def redeem_fractional(self, caller: str, synth_amount: int, min_share_out: int,
                          min_collateral_out: int) -> RedeemResult:
        """Redeem for collateral and share split by the live ECR; requires 0 < ECR < 1"""
        self._before_redeem(caller, synth_amount)
        ecr = self.collateral_reserve.get_ecr()
        if not 0 < ecr < ONE:
            raise PreconditionError("Collateral ratio needs to be between .000001 and .999999")

        synth_value = mul_div(synth_amount, self.get_synth_price(), ONE)
        collateral_value = mul_div(synth_value, ecr, ONE)
        share_value = synth_value - collateral_value

        gross_collateral = mul_div(collateral_value, ONE, self.get_collateral_price())
        share_out = mul_div(share_value, ONE, self.get_share_price())
        share_out = FixedPointMath.apply_fee(share_out, self.redemption_fee)
        if share_out < min_share_out:
            raise EconomicBoundError("Slippage limit reached")

        self.synth.burn(self.address, caller, synth_amount)
        collateral_out, fee = self._pay_collateral(caller, gross_collateral)
        self.share.mint(self.address, caller, share_out)
        return self._finish_redeem(caller, "fractional", synth_amount, collateral_out, share_out, fee,
                                   min_collateral_out, collateral_out)

    # ------------------------------------------------------------------
    # Administration
    # ------------------------------------------------------------------

    @atomic
    @requires_role(Role.PAUSER, "Caller is not a pauser")
    def toggle_minting(self, caller: str) -> bool:
        self.mint_paused = not self.mint_paused
        self._emit("MintingToggled", paused=self.mint_paused)
        return self.mint_paused

    @atomic
    @requires_role(Role.PAUSER, "Caller is not a pauser")
    def toggle_redeeming(self, caller: str) -> bool:
        self.redeem_paused = not self.redeem_paused
        self._emit("RedeemingToggled", paused=self.redeem_paused)
        return self.redeem_paused

    @atomic
    @requires_role(Role.MAINTAINER, "Caller is not a maintainer")
    def set_action_delay(self, caller: str, delay: int):
        if delay <= 0:
            raise PreconditionError("Delay should not be zero")
        self.action_delay = delay
        self._emit("ActionDelayUpdated", delay=delay)

    @atomic
    @requires_role(Role.MAINTAINER, "Caller is not a maintainer")
    def set_minting_fee(self, caller: str, fee: int):
        if fee > self.MAX_FEE or fee < 0:
            raise PreconditionError("The new fee is too high")
        self.minting_fee = fee
        self._emit("MintingFeeUpdated", fee=fee)

    @atomic
    @requires_role(Role.MAINTAINER, "Caller is not a maintainer")
    def set_redemption_fee(self, caller: str, fee: int):
        if fee > self.MAX_FEE or fee < 0:
            raise PreconditionError("The new fee is too high")
        self.redemption_fee = fee
        self._emit("RedemptionFeeUpdated", fee=fee)

    @atomic
    @requires_role(Role.MAINTAINER, "Caller is not a maintainer")
    def withdraw_fee(self, caller: str) -> Tuple[int, int]:
        """Sweep the pool's own share and collateral balances to the caller"""
        share_balance = self.share.balance_of(self.address)
        collateral_balance = self.collateral.balance_of(self.address)
        if share_balance > 0:
            self.share.transfer(self.address, caller, share_balance)
        if collateral_balance > 0:
            self.collateral.transfer(self.address, caller, collateral_balance)
        self._emit("FeeWithdrawn", to=caller, share=share_balance, collateral=collateral_balance)
        return share_balance, collateral_balance

    def get_state(self) -> Dict:
        return {
            "minting_fee": self.minting_fee,
            "redemption_fee": self.redemption_fee,
            "action_delay": self.action_delay,
            "mint_paused": self.mint_paused,
            "redeem_paused": self.redeem_paused,
            "fee_collateral_balance": self.collateral.balance_of(self.address) if self.collateral else 0,
            "synth_price": self.get_synth_price() if self.synth_oracle is not None else None,
        }
