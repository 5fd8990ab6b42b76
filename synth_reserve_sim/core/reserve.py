#!/usr/bin/env python3
"""
Collateral Reserve

Central ledger of collateral, synth, pool and vault registries. Computes the
global collateral value (GCV) and total global synth value (TGSV), derives the
effective collateral ratio (ECR) and exposes the economically bounded
recollateralize and buyback operations. The target collateral ratio (TCR)
moves only through maintainer overrides and the controller's single-step
primitives.
"""

import logging
from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional

from .access import AccessControl, Role, requires_role
from .clock import SystemClock
from .errors import EconomicBoundError, PreconditionError, UndefinedRatioError
from .events import EventLog
from .math import FixedPointMath, ONE
from .tokens import Token
from .transaction import StatefulComponent, atomic
from .vault import TreasuryVault
from ..engine.config import MAX_FEE, ReserveParams

logger = logging.getLogger(__name__)

mul_div = FixedPointMath.mul_div


@dataclass
class ReserveState:
    """Snapshot of the reserve's policy state"""
    global_collateral_ratio: int
    ratio_delta: int
    bonus_rate: int
    buyback_fee: int
    recollat_fee: int
    refresh_cooldown: int
    last_call_time: int
    invest_collateral_ratio: int
    recollateralize_paused: bool
    buyback_paused: bool

    @property
    def tcr(self) -> float:
        return FixedPointMath.from_fixed(self.global_collateral_ratio)


@dataclass
class RecollateralizeResult:
    """Outcome of a recollateralize call"""
    collateral_in: int
    collateral_value: int
    share_out: int
    fee_share: int


@dataclass
class BuybackResult:
    """Outcome of a buyback call"""
    share_in: int
    collateral_out: int
    fee_collateral: int


class CollateralReserve(StatefulComponent):
    """Multi-asset collateral reserve backing the synthetic assets"""

    MAX_FEE = MAX_FEE

    def __init__(self, address: str = "collateral_reserve", access: Optional[AccessControl] = None,
                 events: Optional[EventLog] = None, clock=None):
        super().__init__()
        self.address = address
        self.access = access or AccessControl()
        self.events = events or EventLog()
        self.clock = clock or SystemClock()
        self.initialized = False

        # Collaborators
        self.pid_controller: Optional[str] = None
        self.share: Optional[Token] = None
        self.share_oracle = None
        self.fee_collector: Optional[str] = None

        # Policy state
        self.global_collateral_ratio = 0
        self.ratio_delta = 0
        self.bonus_rate = 0
        self.buyback_fee = 0
        self.recollat_fee = 0
        self.refresh_cooldown = 0
        self.last_call_time = 0
        self.invest_collateral_ratio = 0
        self.recollateralize_paused = True
        self.buyback_paused = True

        # Non-compacting registries: removal clears the slot, indices are kept
        self.collateral_address_array: List[Optional[Token]] = []
        self.collateral_address: Dict[str, bool] = {}
        self.oracle_of: Dict[str, Any] = {}
        self.oracle_array: List[Any] = []
        self.oracle_exist: Dict[str, bool] = {}
        self.synth_array: List[Optional[Token]] = []
        self.synth_exists: Dict[str, bool] = {}
        self.synth_oracle_of: Dict[str, Any] = {}
        self.synth_pool_array: List[Optional[str]] = []
        self.synth_pool_exist: Dict[str, bool] = {}
        self.vaults: List[Optional[TreasuryVault]] = []
        self.vault_exist: Dict[str, bool] = {}

    def _now(self) -> int:
        return self.clock.now()

    def _emit(self, name: str, **args):
        self.events.emit(name, self.address, self._now(), **args)

    @atomic
    def initialize(self, caller: str, owner: str, pid_controller: str, share: Token,
                   share_oracle, fee_collector: str, params: Optional[ReserveParams] = None):
        """One-time setup; a second call is rejected"""
        if self.initialized:
            raise PreconditionError("Already initialized")
        if None in (owner, pid_controller, share, share_oracle, fee_collector):
            raise PreconditionError("Zero address detected")
        params = params or ReserveParams()

        self.initialized = True
        self.pid_controller = pid_controller
        self.share = share
        self.share_oracle = share_oracle
        self.fee_collector = fee_collector

        self.global_collateral_ratio = params.global_collateral_ratio
        self.ratio_delta = params.ratio_delta
        self.bonus_rate = params.bonus_rate
        self.buyback_fee = params.buyback_fee
        self.recollat_fee = params.recollat_fee
        self.refresh_cooldown = params.refresh_cooldown
        self.invest_collateral_ratio = params.invest_collateral_ratio
        self.recollateralize_paused = params.recollateralize_paused
        self.buyback_paused = params.buyback_paused

        self.access._setup_role(Role.OWNER, owner)
        self.access._setup_role(Role.MAINTAINER, owner)
        self.access._setup_role(Role.RATIO_SETTER, pid_controller)

        # The share oracle occupies the first oracle slot
        self.oracle_array.append(share_oracle)
        self.oracle_exist[share_oracle.address] = True
        logger.info("reserve %s initialized with TCR %.4f", self.address,
                    FixedPointMath.from_fixed(self.global_collateral_ratio))

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_share_price(self) -> int:
        return self.share_oracle.consult(self.share, ONE)

    def get_collateral_price(self, asset: Token) -> int:
        """Oracle price of a registered collateral asset"""
        oracle = self.oracle_of.get(asset.address)
        if oracle is None or not self.oracle_exist.get(oracle.address, False):
            raise PreconditionError("Oracle is not exists")
        return oracle.consult(asset, ONE)

    def get_synth_price(self, synth: Token) -> int:
        oracle = self.synth_oracle_of.get(synth.address)
        if oracle is None:
            raise PreconditionError("Oracle is not exists")
        return oracle.consult(synth, ONE)

    def get_collateral_token_value(self, asset: Token) -> int:
        """Units of `asset` held by the reserve and its vaults"""
        total = asset.balance_of(self.address)
        for vault in self.vaults:
            if vault is not None and vault.asset is asset:
                total += vault.balance_of_underlying()
        return total

    def global_collateral_value(self) -> int:
        """GCV: value of every registered collateral, wherever it sits"""
        total = 0
        for asset in self.collateral_address_array:
            if asset is None:
                continue
            price = self.get_collateral_price(asset)
            total += mul_div(self.get_collateral_token_value(asset), price, ONE)
        return total

    def total_global_synth_value(self) -> int:
        """TGSV: value of the circulating supply of every registered synth"""
        total = 0
        for synth in self.synth_array:
            if synth is None:
                continue
            total += mul_div(synth.total_supply, self.get_synth_price(synth), ONE)
        return total

    def get_ecr(self) -> int:
        """ECR = GCV / TGSV, or 0 when there is no synth value"""
        tgsv = self.total_global_synth_value()
        if tgsv == 0:
            return 0
        return mul_div(self.global_collateral_value(), ONE, tgsv)

    def excess_collateral_balance(self, asset: Token) -> int:
        """Collateral above the TCR requirement, in units of `asset`"""
        tcr = self.global_collateral_ratio
        if tcr >= self.get_ecr():
            return 0
        gcv = self.global_collateral_value()
        tgsv = self.total_global_synth_value()
        excess_value = gcv - mul_div(tgsv, tcr, ONE)
        return mul_div(excess_value, ONE, self.get_collateral_price(asset))

    def get_max_buyback_share(self, asset: Token) -> int:
        """Largest share amount the current excess can buy back, fee included"""
        excess_value = mul_div(self.excess_collateral_balance(asset), self.get_collateral_price(asset), ONE)
        share_amount = mul_div(excess_value, ONE, self.get_share_price())
        return mul_div(share_amount, ONE + self.buyback_fee, ONE)

    def recollateralize_amount(self, asset: Token) -> int:
        """Collateral deficiency below the TCR requirement, in units of `asset`"""
        tcr = self.global_collateral_ratio
        tgsv = self.total_global_synth_value()
        if tgsv == 0 and tcr > 0:
            raise UndefinedRatioError()
        if self.get_ecr() >= tcr:
            return 0
        deficit_value = mul_div(tgsv, tcr, ONE) - self.global_collateral_value()
        return mul_div(deficit_value, ONE, self.get_collateral_price(asset))

    @property
    def state(self) -> ReserveState:
        return ReserveState(
            global_collateral_ratio=self.global_collateral_ratio,
            ratio_delta=self.ratio_delta,
            bonus_rate=self.bonus_rate,
            buyback_fee=self.buyback_fee,
            recollat_fee=self.recollat_fee,
            refresh_cooldown=self.refresh_cooldown,
            last_call_time=self.last_call_time,
            invest_collateral_ratio=self.invest_collateral_ratio,
            recollateralize_paused=self.recollateralize_paused,
            buyback_paused=self.buyback_paused,
        )

    def get_state(self) -> Dict:
        """Get current reserve state"""
        tgsv = self.total_global_synth_value()
        return {
            **asdict(self.state),
            "global_collateral_value": self.global_collateral_value(),
            "total_global_synth_value": tgsv,
            "effective_collateral_ratio": self.get_ecr(),
            "collaterals": [a.symbol if a is not None else None for a in self.collateral_address_array],
            "synths": [s.symbol if s is not None else None for s in self.synth_array],
            "pools": list(self.synth_pool_array),
            "vaults": [v.address if v is not None else None for v in self.vaults],
        }

    # ------------------------------------------------------------------
    # Economic operations
    # ------------------------------------------------------------------

    def _require_collateral(self, asset: Token):
        if asset is None:
            raise PreconditionError("Zero address detected")
        if not self.collateral_address.get(asset.address, False):
            raise PreconditionError("Collateral is not exists")

    def _pay_out(self, asset: Token, to: str, amount: int):
        """Send collateral out of the reserve, recalling from vaults if idle funds are short"""
        if amount <= 0:
            return
        shortfall = amount - asset.balance_of(self.address)
        for vault in self.vaults:
            if shortfall <= 0:
                break
            if vault is None or vault.asset is not asset:
                continue
            recall = min(shortfall, vault.vault_balance)
            if recall > 0:
                shortfall -= vault.withdraw(self.address, recall)
        asset.transfer(self.address, to, amount)

    @atomic
    def recollateralize_share(self, caller: str, asset: Token, amount: int,
                              min_share_out: int) -> RecollateralizeResult:
        """
        Deposit collateral while the reserve is under-collateralized and
        receive share units at a bonus.

        Args:
            caller: Account supplying the collateral
            asset: Registered collateral asset
            amount: Units of `asset` supplied
            min_share_out: Minimum share units accepted by the caller

        Returns:
            RecollateralizeResult with the share amount paid
        """
        if self.recollateralize_paused:
            raise PreconditionError("Recollateralize is paused")
        self._require_collateral(asset)
        if self.global_collateral_ratio <= self.get_ecr():
            raise EconomicBoundError("insufficient collateral")
        if amount > self.recollateralize_amount(asset):
            raise EconomicBoundError("Request recollateralize over limit")

        collateral_value = mul_div(amount, self.get_collateral_price(asset), ONE)
        share_amount = mul_div(collateral_value, ONE, self.get_share_price())
        share_amount = mul_div(share_amount, ONE + self.bonus_rate, ONE)
        share_out = FixedPointMath.apply_fee(share_amount, self.recollat_fee)
        fee_share = share_amount - share_out

        if share_out < min_share_out:
            raise EconomicBoundError("Slippage limit reached")

        asset.transfer(caller, self.address, amount)
        self.share.mint(self.address, caller, share_out)
        if fee_share > 0:
            self.share.mint(self.address, self.fee_collector, fee_share)

        self._emit("Recollateralized", account=caller, asset=asset.symbol,
                   amount=amount, share_out=share_out, fee=fee_share)
        logger.debug("recollateralized %d %s for %d shares", amount, asset.symbol, share_out)
        return RecollateralizeResult(amount, collateral_value, share_out, fee_share)

    @atomic
    def buy_back_share(self, caller: str, share_amount: int, min_asset_out: int,
                       asset: Token) -> BuybackResult:
        """
        Burn share units in exchange for collateral above the TCR requirement.

        Args:
            caller: Account supplying the share units
            share_amount: Share units surrendered
            min_asset_out: Minimum collateral units accepted by the caller
            asset: Registered collateral asset paid out

        Returns:
            BuybackResult with the collateral paid
        """
        if self.buyback_paused:
            raise PreconditionError("Buyback is paused")
        self._require_collateral(asset)
        if self.share.balance_of(caller) < share_amount:
            raise EconomicBoundError("No enough Share")
        if self.get_ecr() <= self.global_collateral_ratio:
            raise EconomicBoundError("No excess collateral to buy back!")

        share_value = mul_div(share_amount, self.get_share_price(), ONE)
        gross_out = mul_div(share_value, ONE, self.get_collateral_price(asset))
        collateral_out = FixedPointMath.apply_fee(gross_out, self.buyback_fee)
        fee_collateral = gross_out - collateral_out

        if collateral_out > self.excess_collateral_balance(asset):
            raise EconomicBoundError("Buyback over excess balance")
        if collateral_out < min_asset_out:
            raise EconomicBoundError("Slippage limit reached")

        # The withheld fee stays in the reserve
        self.share.burn(self.address, caller, share_amount)
        self._pay_out(asset, caller, collateral_out)

        self._emit("BoughtBack", account=caller, asset=asset.symbol,
                   share_amount=share_amount, collateral_out=collateral_out, fee=fee_collateral)
        logger.debug("bought back %d shares for %d %s", share_amount, collateral_out, asset.symbol)
        return BuybackResult(share_amount, collateral_out, fee_collateral)

    @atomic
    @requires_role(Role.POOL, "Sender is not a pool")
    def request_transfer(self, caller: str, to: str, asset: Token, amount: int):
        """Sole egress path for pool redemption payouts"""
        if to is None:
            raise PreconditionError("Zero address detected")
        self._pay_out(asset, to, amount)

    # ------------------------------------------------------------------
    # Ratio primitives
    # ------------------------------------------------------------------

    def _check_refresh_cooldown(self):
        if self._now() - self.last_call_time < self.refresh_cooldown:
            raise PreconditionError("refresh cooldown not passed")

    @atomic
    @requires_role(Role.RATIO_SETTER, "Sender is not a ratio setter")
    def step_up_tcr(self, caller: str) -> int:
        """Raise TCR by one ratio_delta step, clamped at one"""
        self._check_refresh_cooldown()
        self.global_collateral_ratio = min(ONE, self.global_collateral_ratio + self.ratio_delta)
        self.last_call_time = self._now()
        self._emit("TCRStepped", direction="up", tcr=self.global_collateral_ratio)
        return self.global_collateral_ratio

    @atomic
    @requires_role(Role.RATIO_SETTER, "Sender is not a ratio setter")
    def step_down_tcr(self, caller: str) -> int:
        """Lower TCR by one ratio_delta step, clamped at zero"""
        self._check_refresh_cooldown()
        self.global_collateral_ratio = max(0, self.global_collateral_ratio - self.ratio_delta)
        self.last_call_time = self._now()
        self._emit("TCRStepped", direction="down", tcr=self.global_collateral_ratio)
        return self.global_collateral_ratio

    @atomic
    @requires_role(Role.MAINTAINER, "Sender is not a maintainer")
    def set_global_collateral_ratio(self, caller: str, new_ratio: int):
        if not 0 <= new_ratio <= ONE:
            raise PreconditionError("New ratio exceed bound")
        self.global_collateral_ratio = new_ratio
        self.last_call_time = self._now()
        self._emit("SetGlobalCollateralRatio", ratio=new_ratio)
        logger.info("TCR set to %.4f", FixedPointMath.from_fixed(new_ratio))

    @atomic
    @requires_role(Role.RATIO_SETTER, "Sender is not a ratio setter")
    def set_ratio_delta(self, caller: str, delta: int):
        if not 0 <= delta <= ONE:
            raise PreconditionError("New ratio exceed bound")
        self.ratio_delta = delta

    # ------------------------------------------------------------------
    # Registries
    # ------------------------------------------------------------------

    @staticmethod
    def _clear_slot(array: List[Any], address: str):
        for i, entry in enumerate(array):
            entry_address = entry if isinstance(entry, str) else getattr(entry, "address", None)
            if entry_address == address:
                array[i] = None
                return

    @atomic
    @requires_role(Role.MAINTAINER, "Sender is not a maintainer")
    def add_oracle(self, caller: str, oracle):
        if oracle is None:
            raise PreconditionError("Zero address detected")
        if self.oracle_exist.get(oracle.address, False):
            raise PreconditionError("Address already exists")
        self.oracle_exist[oracle.address] = True
        self.oracle_array.append(oracle)
        self._emit("AddOracle", oracle=oracle.address)

    @atomic
    @requires_role(Role.MAINTAINER, "Sender is not a maintainer")
    def remove_oracle(self, caller: str, oracle):
        if oracle is None:
            raise PreconditionError("Zero address detected")
        if not self.oracle_exist.get(oracle.address, False):
            raise PreconditionError("Address not exists")
        self.oracle_exist[oracle.address] = False
        self._clear_slot(self.oracle_array, oracle.address)
        self._emit("RemoveOracle", oracle=oracle.address)

    @atomic
    @requires_role(Role.MAINTAINER, "Sender is not a maintainer")
    def add_collateral_address(self, caller: str, asset: Token, oracle):
        if asset is None or oracle is None:
            raise PreconditionError("Zero address detected")
        if not self.oracle_exist.get(oracle.address, False):
            raise PreconditionError("Oracle is not exists")
        if self.collateral_address.get(asset.address, False):
            raise PreconditionError("Address already exists")
        self.collateral_address[asset.address] = True
        self.collateral_address_array.append(asset)
        self.oracle_of[asset.address] = oracle
        self._emit("AddCollateralToken", asset=asset.address)

    @atomic
    @requires_role(Role.MAINTAINER, "Sender is not a maintainer")
    def remove_collateral_address(self, caller: str, asset: Token):
        if asset is None:
            raise PreconditionError("Zero address detected")
        if not self.collateral_address.get(asset.address, False):
            raise PreconditionError("Address not exists")
        self.collateral_address[asset.address] = False
        self.oracle_of.pop(asset.address, None)
        self._clear_slot(self.collateral_address_array, asset.address)
        self._emit("RemoveCollateralToken", asset=asset.address)

    @atomic
    @requires_role(Role.MAINTAINER, "Sender is not a maintainer")
    def set_oracle_of(self, caller: str, asset: Token, oracle):
        """Repoint a collateral at a price source; an unregistered source makes GCV fail"""
        if asset is None or oracle is None:
            raise PreconditionError("Zero address detected")
        if not self.collateral_address.get(asset.address, False):
            raise PreconditionError("Address not exists")
        self.oracle_of[asset.address] = oracle

    @atomic
    @requires_role(Role.MAINTAINER, "Sender is not a maintainer")
    def add_synth(self, caller: str, synth: Token, oracle):
        if synth is None or oracle is None:
            raise PreconditionError("Zero address detected")
        if self.synth_exists.get(synth.address, False):
            raise PreconditionError("Address already exists")
        self.synth_exists[synth.address] = True
        self.synth_array.append(synth)
        self.synth_oracle_of[synth.address] = oracle
        self._emit("AddSynthToken", synth=synth.address)

    @atomic
    @requires_role(Role.MAINTAINER, "Sender is not a maintainer")
    def remove_synth(self, caller: str, synth: Token):
        if synth is None:
            raise PreconditionError("Zero address detected")
        if not self.synth_exists.get(synth.address, False):
            raise PreconditionError("Address not exists")
        self.synth_exists[synth.address] = False
        self.synth_oracle_of.pop(synth.address, None)
        self._clear_slot(self.synth_array, synth.address)
        self._emit("RemoveSynthToken", synth=synth.address)

    @atomic
    @requires_role(Role.MAINTAINER, "Sender is not a maintainer")
    def add_pool(self, caller: str, pool_address: str):
        if pool_address is None:
            raise PreconditionError("Zero address detected")
        if self.synth_pool_exist.get(pool_address, False):
            raise PreconditionError("Address already exists")
        self.synth_pool_exist[pool_address] = True
        self.synth_pool_array.append(pool_address)
        self.access._setup_role(Role.POOL, pool_address)
        self._emit("PoolAdded", pool=pool_address)

    @atomic
    @requires_role(Role.MAINTAINER, "Sender is not a maintainer")
    def remove_pool(self, caller: str, pool_address: str):
        if pool_address is None:
            raise PreconditionError("Zero address detected")
        if not self.synth_pool_exist.get(pool_address, False):
            raise PreconditionError("Address not exists")
        self.synth_pool_exist[pool_address] = False
        self._clear_slot(self.synth_pool_array, pool_address)
        self.access._remove_role(Role.POOL, pool_address)
        self._emit("PoolRemoved", pool=pool_address)

    @atomic
    @requires_role(Role.MAINTAINER, "Sender is not a maintainer")
    def add_vault(self, caller: str, vault: TreasuryVault):
        if vault is None:
            raise PreconditionError("invalidAddress")
        if self.vault_exist.get(vault.address, False):
            raise PreconditionError("Address already exists")
        self.vault_exist[vault.address] = True
        self.vaults.append(vault)
        self._emit("VaultAdded", vault=vault.address)

    @atomic
    @requires_role(Role.MAINTAINER, "Sender is not a maintainer")
    def remove_vault(self, caller: str, vault: TreasuryVault):
        if vault is None:
            raise PreconditionError("invalidAddress")
        if not self.vault_exist.get(vault.address, False):
            raise PreconditionError("Address not exists")
        # Bring principal home so GCV does not lose track of it
        if vault.vault_balance > 0:
            vault.withdraw(self.address, vault.vault_balance)
        self.vault_exist[vault.address] = False
        self._clear_slot(self.vaults, vault.address)
        self._emit("VaultRemoved", vault=vault.address)

    # ------------------------------------------------------------------
    # Vault allocation
    # ------------------------------------------------------------------

    def _get_vault(self, vault_id: int) -> TreasuryVault:
        if not 0 <= vault_id < len(self.vaults) or self.vaults[vault_id] is None:
            raise PreconditionError("invalidAddress")
        return self.vaults[vault_id]

    def _enter_vault(self, vault: TreasuryVault) -> int:
        idle = vault.asset.balance_of(self.address)
        amount = mul_div(idle, self.invest_collateral_ratio, ONE)
        if amount > 0:
            vault.deposit(self.address, amount)
        return amount

    def _recall_from_vault(self, vault: TreasuryVault) -> int:
        if vault.vault_balance == 0:
            return 0
        return vault.withdraw(self.address, vault.vault_balance)

    @atomic
    @requires_role(Role.MAINTAINER, "Sender is not a maintainer")
    def enter_vault(self, caller: str, vault_id: int) -> int:
        """Move invest_collateral_ratio of the idle balance into a vault"""
        amount = self._enter_vault(self._get_vault(vault_id))
        logger.debug("entered vault %d with %d", vault_id, amount)
        return amount

    @atomic
    @requires_role(Role.MAINTAINER, "Sender is not a maintainer")
    def recall_from_vault(self, caller: str, vault_id: int) -> int:
        """Withdraw the full principal of a vault"""
        return self._recall_from_vault(self._get_vault(vault_id))

    @atomic
    @requires_role(Role.MAINTAINER, "Sender is not a maintainer")
    def rebalance_vault(self, caller: str, vault_id: int) -> int:
        """Recall everything, then re-enter at invest_collateral_ratio of the total"""
        vault = self._get_vault(vault_id)
        self._recall_from_vault(vault)
        return self._enter_vault(vault)

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    @atomic
    @requires_role(Role.MAINTAINER, "Sender is not a maintainer")
    def set_bonus_rate(self, caller: str, bonus_rate: int):
        if not 0 <= bonus_rate <= ONE:
            raise PreconditionError("New ratio exceed bound")
        self.bonus_rate = bonus_rate

    @atomic
    @requires_role(Role.MAINTAINER, "Sender is not a maintainer")
    def set_fee_collector(self, caller: str, fee_collector: str):
        if fee_collector is None:
            raise PreconditionError("Zero address detected")
        self.fee_collector = fee_collector

    @atomic
    @requires_role(Role.MAINTAINER, "Sender is not a maintainer")
    def set_invest_collateral_ratio(self, caller: str, ratio: int):
        if not 0 <= ratio <= ONE:
            raise PreconditionError("New ratio exceed bound")
        self.invest_collateral_ratio = ratio

    @atomic
    @requires_role(Role.MAINTAINER, "Sender is not a maintainer")
    def set_pid_controller(self, caller: str, pid_controller: str):
        """Hand the ratio-setter capability to a new controller"""
        if pid_controller is None:
            raise PreconditionError("Zero address detected")
        if self.pid_controller is not None:
            self.access._remove_role(Role.RATIO_SETTER, self.pid_controller)
        self.pid_controller = pid_controller
        self.access._setup_role(Role.RATIO_SETTER, pid_controller)

    @atomic
    @requires_role(Role.MAINTAINER, "Sender is not a maintainer")
    def set_refresh_cooldown(self, caller: str, cooldown: int):
        if cooldown < 0:
            raise PreconditionError("Cooldown should not be negative")
        self.refresh_cooldown = cooldown

    @atomic
    @requires_role(Role.MAINTAINER, "Sender is not a maintainer")
    def set_share_twap(self, caller: str, oracle):
        if oracle is None:
            raise PreconditionError("Zero address detected")
        self.share_oracle = oracle

    @atomic
    @requires_role(Role.MAINTAINER, "Sender is not a maintainer")
    def set_buyback_fee(self, caller: str, fee: int):
        if fee > self.MAX_FEE or fee < 0:
            raise PreconditionError("The new fee is to high")
        self.buyback_fee = fee
        self._emit("SetBuybackFee", fee=fee)

    @atomic
    @requires_role(Role.MAINTAINER, "Sender is not a maintainer")
    def set_recollat_fee(self, caller: str, fee: int):
        if fee > self.MAX_FEE or fee < 0:
            raise PreconditionError("The new fee is to high")
        self.recollat_fee = fee
        self._emit("SetRecollatFee", fee=fee)

    @atomic
    @requires_role(Role.PAUSER, "Sender is not a pauser")
    def toggle_recollateralize(self, caller: str) -> bool:
        self.recollateralize_paused = not self.recollateralize_paused
        self._emit("RecollateralizeToggled", paused=self.recollateralize_paused)
        return self.recollateralize_paused

    @atomic
    @requires_role(Role.PAUSER, "Sender is not a pauser")
    def toggle_buyback(self, caller: str) -> bool:
        self.buyback_paused = not self.buyback_paused
        self._emit("BuybackToggled", paused=self.buyback_paused)
        return self.buyback_paused
