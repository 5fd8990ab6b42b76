#!/usr/bin/env python3
"""
Collateral Reserve Tests

Covers GCV/TGSV/ECR valuation, recollateralize and buyback bounds, the
non-compacting registries and the TCR step primitives.
"""

import sys
import os
import pytest

# Add the project root to the path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from synth_reserve_sim.core.errors import (
    CapabilityError, EconomicBoundError, PreconditionError, UndefinedRatioError
)
from synth_reserve_sim.core.math import FixedPointMath, ONE
from synth_reserve_sim.core.oracle import MockPairOracle
from synth_reserve_sim.core.tokens import Token
from synth_reserve_sim.engine.config import ReserveParams
from synth_reserve_sim.simulation.builder import deploy_system


class TestValuation:
    """GCV, TGSV and ECR"""

    def setup_method(self):
        self.system = deploy_system()
        self.reserve = self.system.reserve

    def test_ecr_is_zero_without_synth_value(self):
        self.system.seed_reserve(100 * ONE)
        assert self.reserve.total_global_synth_value() == 0
        assert self.reserve.get_ecr() == 0, "Zero TGSV reads as ECR 0"

    def test_ecr_tracks_collateral_price(self):
        self.system.seed_reserve(80 * ONE)
        self.system.fund("holder", synth=100 * ONE)
        assert self.reserve.global_collateral_value() == 80 * ONE
        assert self.reserve.get_ecr() == FixedPointMath.to_fixed("0.8")

        self.system.collateral_oracle.mock(FixedPointMath.to_fixed("1.5"))
        assert self.reserve.get_ecr() == FixedPointMath.to_fixed("1.2")

    def test_recollateralize_amount_undefined_without_synth(self):
        with pytest.raises(UndefinedRatioError, match="undefined ratio"):
            self.reserve.recollateralize_amount(self.system.collateral)

    def test_vault_principal_counts_toward_gcv(self):
        self.system.seed_reserve(1000 * ONE)
        self.system.fund("holder", synth=1000 * ONE)
        entered = self.reserve.enter_vault(self.system.owner, 0)
        assert entered == 700 * ONE, "Default invest ratio moves 70% of idle collateral"
        assert self.system.collateral.balance_of(self.reserve.address) == 300 * ONE
        assert self.reserve.global_collateral_value() == 1000 * ONE
        assert self.reserve.get_ecr() == ONE

    def test_get_state_reports_registries(self):
        state = self.reserve.get_state()
        assert state["collaterals"] == ["USDC"]
        assert state["synths"] == ["SYNTH"]
        assert state["pools"] == [self.system.pool.address]
        assert state["vaults"] == ["vault_usdc"]


class TestRecollateralize:
    """Deficit-bounded collateral deposits paid in share units"""

    def setup_method(self):
        self.system = deploy_system(reserve_params=ReserveParams(recollateralize_paused=False))
        self.reserve = self.system.reserve
        self.collateral = self.system.collateral
        self.system.seed_reserve(80 * ONE)
        self.system.fund("holder", synth=100 * ONE)
        self.system.fund("alice", collateral=50 * ONE)

    def test_recollateralize_up_to_deficit(self):
        assert self.reserve.recollateralize_amount(self.collateral) == 20 * ONE

        result = self.reserve.recollateralize_share("alice", self.collateral, 20 * ONE, 0)

        # 20 collateral at share price 0.5 is 40 shares, plus the 0.75% bonus
        assert result.share_out == FixedPointMath.to_fixed("40.3")
        assert self.system.share.balance_of("alice") == FixedPointMath.to_fixed("40.3")
        assert self.collateral.balance_of("alice") == 30 * ONE
        assert self.reserve.get_ecr() == ONE
        assert self.system.events.last("Recollateralized").args["amount"] == 20 * ONE

    def test_recollateralize_over_limit_rejected(self):
        with pytest.raises(EconomicBoundError, match="Request recollateralize over limit"):
            self.reserve.recollateralize_share("alice", self.collateral, 21 * ONE, 0)
        assert self.collateral.balance_of("alice") == 50 * ONE

    def test_rejected_once_fully_collateralized(self):
        self.reserve.recollateralize_share("alice", self.collateral, 20 * ONE, 0)
        with pytest.raises(EconomicBoundError, match="insufficient collateral"):
            self.reserve.recollateralize_share("alice", self.collateral, ONE, 0)

    def test_recollat_fee_goes_to_fee_collector(self):
        self.reserve.set_recollat_fee(self.system.owner, FixedPointMath.percent(1))
        result = self.reserve.recollateralize_share("alice", self.collateral, 20 * ONE, 0)

        assert result.share_out == FixedPointMath.to_fixed("39.897")
        assert result.fee_share == FixedPointMath.to_fixed("0.403")
        assert self.system.share.balance_of(self.system.fee_collector) == FixedPointMath.to_fixed("0.403")

    def test_slippage_limit(self):
        with pytest.raises(EconomicBoundError, match="Slippage limit reached"):
            self.reserve.recollateralize_share("alice", self.collateral, 20 * ONE, 41 * ONE)
        assert self.system.share.total_supply == 0

    def test_paused_and_unknown_collateral(self):
        self.reserve.toggle_recollateralize(self.system.pauser)
        with pytest.raises(PreconditionError, match="Recollateralize is paused"):
            self.reserve.recollateralize_share("alice", self.collateral, ONE, 0)
        self.reserve.toggle_recollateralize(self.system.pauser)

        other = Token("DAI")
        with pytest.raises(PreconditionError, match="Collateral is not exists"):
            self.reserve.recollateralize_share("alice", other, ONE, 0)


class TestBuyback:
    """Excess-bounded share buybacks"""

    def setup_method(self):
        self.system = deploy_system(
            reserve_params=ReserveParams(global_collateral_ratio=FixedPointMath.to_fixed("0.6"),
                                         buyback_paused=False)
        )
        self.reserve = self.system.reserve
        self.collateral = self.system.collateral
        self.system.seed_reserve(800 * ONE)
        self.system.fund("holder", synth=1000 * ONE)
        self.system.fund("bob", share=500 * ONE)

    def test_buyback_down_to_target(self):
        assert self.reserve.excess_collateral_balance(self.collateral) == 200 * ONE
        assert self.reserve.get_max_buyback_share(self.collateral) == 400 * ONE

        result = self.reserve.buy_back_share("bob", 400 * ONE, 0, self.collateral)

        assert result.collateral_out == 200 * ONE
        assert self.collateral.balance_of("bob") == 200 * ONE
        assert self.system.share.balance_of("bob") == 100 * ONE
        assert self.system.share.total_supply == 100 * ONE, "Bought back shares are burned"
        assert self.reserve.get_ecr() == FixedPointMath.to_fixed("0.6")

    def test_buyback_over_excess_rejected(self):
        with pytest.raises(EconomicBoundError, match="Buyback over excess balance"):
            self.reserve.buy_back_share("bob", 401 * ONE, 0, self.collateral)
        assert self.system.share.balance_of("bob") == 500 * ONE

    def test_buyback_needs_shares_and_excess(self):
        with pytest.raises(EconomicBoundError, match="No enough Share"):
            self.reserve.buy_back_share("carol", ONE, 0, self.collateral)

        self.reserve.buy_back_share("bob", 400 * ONE, 0, self.collateral)
        with pytest.raises(EconomicBoundError, match="No excess collateral to buy back!"):
            self.reserve.buy_back_share("bob", ONE, 0, self.collateral)

    def test_buyback_fee(self):
        self.reserve.set_buyback_fee(self.system.owner, FixedPointMath.percent(1))
        result = self.reserve.buy_back_share("bob", 100 * ONE, 0, self.collateral)
        assert result.collateral_out == FixedPointMath.to_fixed("49.5")
        assert result.fee_collateral == FixedPointMath.to_fixed("0.5")
        assert self.collateral.balance_of(self.system.fee_collector) == 0
        assert self.collateral.balance_of(self.reserve.address) == FixedPointMath.to_fixed("750.5"), \
            "Withheld fee stays in the reserve"

    def test_buyback_at_max_quote_with_fee_keeps_target(self):
        self.reserve.set_buyback_fee(self.system.owner, FixedPointMath.percent(1))
        max_share = self.reserve.get_max_buyback_share(self.collateral)
        assert max_share == 404 * ONE

        result = self.reserve.buy_back_share("bob", max_share, 0, self.collateral)

        assert result.collateral_out == FixedPointMath.to_fixed("199.98")
        assert result.fee_collateral == FixedPointMath.to_fixed("2.02")
        assert self.reserve.get_ecr() == FixedPointMath.to_fixed("0.60002")
        assert self.reserve.get_ecr() >= self.reserve.global_collateral_ratio, "Buyback never drops ECR below TCR"

    def test_buyback_recalls_from_vault(self):
        self.reserve.set_invest_collateral_ratio(self.system.owner, ONE)
        self.reserve.enter_vault(self.system.owner, 0)
        assert self.collateral.balance_of(self.reserve.address) == 0

        self.reserve.buy_back_share("bob", 400 * ONE, 0, self.collateral)

        assert self.collateral.balance_of("bob") == 200 * ONE
        assert self.system.vault.vault_balance == 600 * ONE
        assert self.reserve.get_ecr() == FixedPointMath.to_fixed("0.6")

    def test_buyback_paused(self):
        self.reserve.toggle_buyback(self.system.pauser)
        with pytest.raises(PreconditionError, match="Buyback is paused"):
            self.reserve.buy_back_share("bob", ONE, 0, self.collateral)
        with pytest.raises(CapabilityError, match="Sender is not a pauser"):
            self.reserve.toggle_buyback("bob")


class TestRatioPrimitives:
    """TCR steps and overrides"""

    def setup_method(self):
        self.system = deploy_system(reserve_params=ReserveParams(global_collateral_ratio=ONE // 2))
        self.reserve = self.system.reserve
        self.setter = self.system.controller.address

    def test_steps_move_by_ratio_delta(self):
        assert self.reserve.step_down_tcr(self.setter) == ONE // 2 - FixedPointMath.percent("0.25")
        assert self.reserve.step_up_tcr(self.setter) == ONE // 2
        assert self.reserve.last_call_time == self.system.clock.now()

    def test_steps_clamp_to_unit_interval(self):
        self.reserve.set_global_collateral_ratio(self.system.owner, ONE)
        assert self.reserve.step_up_tcr(self.setter) == ONE, "TCR never exceeds one"

        self.reserve.set_global_collateral_ratio(self.system.owner, FixedPointMath.percent("0.1"))
        assert self.reserve.step_down_tcr(self.setter) == 0, "TCR never drops below zero"

    def test_only_ratio_setter_steps(self):
        with pytest.raises(CapabilityError, match="Sender is not a ratio setter"):
            self.reserve.step_up_tcr(self.system.owner)

    def test_override_bounds(self):
        with pytest.raises(PreconditionError, match="New ratio exceed bound"):
            self.reserve.set_global_collateral_ratio(self.system.owner, ONE + 1)
        with pytest.raises(CapabilityError, match="Sender is not a maintainer"):
            self.reserve.set_global_collateral_ratio("mallory", ONE)
        assert self.reserve.global_collateral_ratio == ONE // 2

    def test_refresh_cooldown_gates_steps(self):
        self.reserve.set_refresh_cooldown(self.system.owner, 100)
        self.system.clock.advance(100)
        self.reserve.step_down_tcr(self.setter)
        with pytest.raises(PreconditionError, match="refresh cooldown not passed"):
            self.reserve.step_down_tcr(self.setter)
        self.system.clock.advance(100)
        self.reserve.step_down_tcr(self.setter)

    def test_fee_setters_capped(self):
        with pytest.raises(PreconditionError, match="The new fee is to high"):
            self.reserve.set_buyback_fee(self.system.owner, FixedPointMath.percent(6))
        with pytest.raises(PreconditionError, match="The new fee is to high"):
            self.reserve.set_recollat_fee(self.system.owner, FixedPointMath.percent(6))

    def test_set_pid_controller_moves_capability(self):
        self.reserve.set_pid_controller(self.system.owner, "new_controller")
        self.reserve.step_up_tcr("new_controller")
        with pytest.raises(CapabilityError):
            self.reserve.step_up_tcr(self.setter)

    def test_second_initialize_rejected(self):
        with pytest.raises(PreconditionError, match="Already initialized"):
            self.reserve.initialize(self.system.owner, self.system.owner, self.setter,
                                    self.system.share, self.system.share_oracle, "fees")


class TestRegistries:
    """Non-compacting registries and oracle checks"""

    def setup_method(self):
        self.system = deploy_system()
        self.reserve = self.system.reserve
        self.owner = self.system.owner

    def test_share_oracle_holds_first_slot(self):
        assert self.reserve.oracle_array[0] is self.system.share_oracle
        assert self.reserve.oracle_array[1] is self.system.collateral_oracle

    def test_collateral_needs_registered_oracle(self):
        dai = Token("DAI")
        loose = MockPairOracle(ONE, address="loose_oracle")
        with pytest.raises(PreconditionError, match="Oracle is not exists"):
            self.reserve.add_collateral_address(self.owner, dai, loose)

        self.reserve.add_oracle(self.owner, loose)
        self.reserve.add_collateral_address(self.owner, dai, loose)
        with pytest.raises(PreconditionError, match="Address already exists"):
            self.reserve.add_collateral_address(self.owner, dai, loose)

    def test_removal_leaves_empty_slot(self):
        dai = Token("DAI")
        self.reserve.add_collateral_address(self.owner, dai, self.system.collateral_oracle)
        self.reserve.remove_collateral_address(self.owner, self.system.collateral)

        assert self.reserve.collateral_address_array[0] is None
        assert self.reserve.collateral_address_array[1] is dai
        assert len(self.reserve.collateral_address_array) == 2

        with pytest.raises(PreconditionError, match="Address not exists"):
            self.reserve.remove_collateral_address(self.owner, self.system.collateral)

    def test_removed_oracle_breaks_valuation(self):
        self.system.seed_reserve(10 * ONE)
        self.reserve.remove_oracle(self.owner, self.system.collateral_oracle)
        assert self.reserve.oracle_array[1] is None
        with pytest.raises(PreconditionError, match="Oracle is not exists"):
            self.reserve.global_collateral_value()

    def test_unregistered_oracle_assignment_breaks_valuation(self):
        self.system.seed_reserve(10 * ONE)
        self.reserve.set_oracle_of(self.owner, self.system.collateral, MockPairOracle(ONE, address="other"))
        with pytest.raises(PreconditionError, match="Oracle is not exists"):
            self.reserve.global_collateral_value()

    def test_removed_synth_leaves_tgsv(self):
        self.system.fund("holder", synth=10 * ONE)
        assert self.reserve.total_global_synth_value() == 10 * ONE
        self.reserve.remove_synth(self.owner, self.system.synth)
        assert self.reserve.total_global_synth_value() == 0
        assert self.reserve.synth_array == [None]

    def test_pool_registration_controls_request_transfer(self):
        self.system.seed_reserve(10 * ONE)
        self.reserve.request_transfer(self.system.pool.address, "alice", self.system.collateral, ONE)
        assert self.system.collateral.balance_of("alice") == ONE

        with pytest.raises(CapabilityError, match="Sender is not a pool"):
            self.reserve.request_transfer("mallory", "mallory", self.system.collateral, ONE)

        self.reserve.remove_pool(self.owner, self.system.pool.address)
        assert self.reserve.synth_pool_array == [None]
        with pytest.raises(CapabilityError, match="Sender is not a pool"):
            self.reserve.request_transfer(self.system.pool.address, "alice", self.system.collateral, ONE)

    def test_registry_mutators_need_maintainer(self):
        with pytest.raises(CapabilityError, match="Sender is not a maintainer"):
            self.reserve.add_pool("mallory", "mallory_pool")
        with pytest.raises(CapabilityError, match="Sender is not a maintainer"):
            self.reserve.add_synth("mallory", Token("EVIL"), self.system.synth_oracle)
        print("✅ Reserve registry checks passed")
