#!/usr/bin/env python3
"""
Treasury Vault Tests

Principal accounting, profit routing, pro-rata losses and the reserve's
enter/recall/rebalance lifecycle.
"""

import sys
import os
import pytest

# Add the project root to the path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from synth_reserve_sim.core.errors import CapabilityError, EconomicBoundError, PreconditionError
from synth_reserve_sim.core.math import ONE
from synth_reserve_sim.simulation.builder import deploy_system


class TestTreasuryVault:
    """Vault lifecycle driven through the reserve"""

    def setup_method(self):
        self.system = deploy_system()
        self.reserve = self.system.reserve
        self.vault = self.system.vault
        self.collateral = self.system.collateral
        self.owner = self.system.owner
        self.system.seed_reserve(1000 * ONE)
        self.system.fund("holder", synth=1000 * ONE)

    def test_only_treasury_moves_principal(self):
        self.collateral.faucet("mallory", ONE)
        with pytest.raises(PreconditionError, match="!treasury"):
            self.vault.deposit("mallory", ONE)
        with pytest.raises(PreconditionError, match="!treasury"):
            self.vault.withdraw("mallory", 0)
        with pytest.raises(PreconditionError, match="Zero amount"):
            self.vault.deposit(self.reserve.address, 0)

    def test_profit_paid_to_owner_on_rebalance(self):
        self.reserve.enter_vault(self.owner, 0)
        self.vault.accrue(10 * ONE)
        assert self.vault.get_profit() == (10 * ONE, 0)
        assert self.vault.balance_of_underlying() == 700 * ONE, "Gains do not inflate underlying"

        self.reserve.rebalance_vault(self.owner, 0)

        assert self.collateral.balance_of(self.owner) == 10 * ONE
        assert self.vault.vault_balance == 700 * ONE
        assert self.reserve.global_collateral_value() == 1000 * ONE

    def test_loss_shared_pro_rata(self):
        self.reserve.enter_vault(self.owner, 0)
        self.vault.slash(70 * ONE)

        assert self.vault.get_profit() == (0, 70 * ONE)
        assert self.vault.balance_of_underlying() == 630 * ONE
        assert self.reserve.global_collateral_value() == 930 * ONE

        returned = self.reserve.recall_from_vault(self.owner, 0)
        assert returned == 630 * ONE
        assert self.vault.vault_balance == 0
        assert self.collateral.balance_of(self.reserve.address) == 930 * ONE

    def test_withdraw_over_principal_rejected(self):
        self.reserve.enter_vault(self.owner, 0)
        with pytest.raises(EconomicBoundError, match="Withdraw over vault balance"):
            self.vault.withdraw(self.reserve.address, 701 * ONE)

    def test_incentives_are_not_collateral(self):
        self.reserve.enter_vault(self.owner, 0)
        self.vault.add_incentive(5 * ONE)
        assert self.vault.get_profit() == (0, 0)
        assert self.vault.get_unclaimed_incentive_rewards_balance() == 5 * ONE

        assert self.vault.claim_incentive_rewards(self.owner) == 5 * ONE
        assert self.collateral.balance_of(self.owner) == 5 * ONE
        with pytest.raises(CapabilityError, match="Caller is not a maintainer"):
            self.vault.claim_incentive_rewards("mallory")

    def test_remove_vault_recalls_principal(self):
        self.reserve.enter_vault(self.owner, 0)
        self.reserve.remove_vault(self.owner, self.vault)

        assert self.reserve.vaults == [None]
        assert self.collateral.balance_of(self.reserve.address) == 1000 * ONE
        assert self.reserve.global_collateral_value() == 1000 * ONE
        with pytest.raises(PreconditionError, match="invalidAddress"):
            self.reserve.enter_vault(self.owner, 0)

    def test_unknown_vault_id(self):
        with pytest.raises(PreconditionError, match="invalidAddress"):
            self.reserve.rebalance_vault(self.owner, 5)

    def test_second_initialize_rejected(self):
        with pytest.raises(PreconditionError, match="Already initialized"):
            self.vault.initialize(self.owner, "mallory", "mallory")
        assert self.vault.treasury == self.reserve.address

    def test_set_treasury_redirects_deposits(self):
        self.vault.set_treasury(self.owner, "new_treasury")
        with pytest.raises(PreconditionError, match="!treasury"):
            self.reserve.enter_vault(self.owner, 0)
        assert self.vault.vault_balance == 0
        print("✅ Treasury vault checks passed")
