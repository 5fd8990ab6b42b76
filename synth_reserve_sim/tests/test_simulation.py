#!/usr/bin/env python3
"""
Simulation and Stress Testing Tests

Short end-to-end runs of the engine, the scenario suite and the runner,
plus the analysis layer on hand-built metrics.
"""

import sys
import os
import pytest

# Add the project root to the path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

import numpy as np
from pydantic import ValidationError

from synth_reserve_sim.agents.arbitrageur import Arbitrageur
from synth_reserve_sim.agents.base_agent import AgentAction
from synth_reserve_sim.agents.minter import Minter
from synth_reserve_sim.agents.redeemer import Redeemer
from synth_reserve_sim.analysis.metrics import StabilityMetricsCalculator
from synth_reserve_sim.engine.config import SimulationConfig, StableControllerParams, StressTestScenarios
from synth_reserve_sim.main import main
from synth_reserve_sim.simulation.engine import StablecoinSimulationEngine
from synth_reserve_sim.simulation.state import MarketState
from synth_reserve_sim.stress_testing.analyzer import StressTestAnalyzer
from synth_reserve_sim.stress_testing.runner import StressTestRunner
from synth_reserve_sim.stress_testing.scenarios import StablecoinStressTestSuite


def small_config(**overrides) -> SimulationConfig:
    params = dict(num_steps=30, seed=42, num_minters=2, num_redeemers=2, num_arbitrageurs=1,
                  vault_rebalance_interval=10)
    params.update(overrides)
    return SimulationConfig(**params)


class TestSimulationEngine:
    """Agent-driven runs against a full deployment"""

    def test_run_records_every_step(self):
        engine = StablecoinSimulationEngine(small_config())
        results = engine.run_simulation()

        history = results["metrics_history"]
        assert len(history) == 30
        assert all(0.0 <= m["tcr"] <= 1.0 for m in history), "TCR stays in [0, 1]"
        assert history[-1]["timestamp"] > history[0]["timestamp"]
        assert results["vault_state"] is not None
        assert results["simulation_config"]["steps"] == 30

        stats = results["summary_statistics"]
        for key in ("final_tcr", "final_ecr", "min_ecr", "time_under_target",
                    "max_abs_peg_deviation", "total_rejections"):
            assert key in stats, f"Missing summary statistic {key}"
        assert 0.0 <= stats["time_under_target"] <= 1.0

    def test_initial_state_matches_config(self):
        engine = StablecoinSimulationEngine(small_config())
        reserve = engine.system.reserve
        assert reserve.global_collateral_ratio == 10 ** 18
        assert engine.system.synth.total_supply == 1_000_000 * 10 ** 18
        assert engine.system.vault.vault_balance > 0, "Reserve starts with collateral invested"
        assert reserve.get_ecr() == 10 ** 18

    def test_same_seed_same_path(self):
        first = StablecoinSimulationEngine(small_config(num_steps=15)).run_simulation()
        second = StablecoinSimulationEngine(small_config(num_steps=15)).run_simulation()
        assert [m["ecr"] for m in first["metrics_history"]] == [m["ecr"] for m in second["metrics_history"]]
        assert first["summary_statistics"]["action_counts"] == second["summary_statistics"]["action_counts"]

    def test_vault_can_be_disabled(self):
        engine = StablecoinSimulationEngine(small_config(num_steps=5, vault_rebalance_interval=0))
        results = engine.run_simulation()
        assert engine.system.vault is None
        assert results["vault_state"] is None

    def test_scheduled_share_crash(self):
        config = StressTestScenarios.build_config(
            "Share_Crash", num_steps=60, seed=1, num_minters=1, num_redeemers=1, num_arbitrageurs=0
        )
        history = StablecoinSimulationEngine(config).run_simulation()["metrics_history"]
        assert history[50]["share_price"] < 0.6 * history[49]["share_price"]

    def test_base_controller_runs(self):
        engine = StablecoinSimulationEngine(small_config(num_steps=10, use_stable_controller=False))
        results = engine.run_simulation()
        assert "synth_top_band" not in results["controller_state"]


class TestMarketState:

    def test_shock_and_floor(self):
        market = MarketState(1.0, 0.5, 1.0, {"collateral": 0.0, "share": 0.0, "synth": 0.0})
        market.apply_price_shock({"share": -0.5})
        assert market.current_prices["share"] == pytest.approx(0.25)
        market.apply_price_shock({"share": -1.0})
        assert market.current_prices["share"] == pytest.approx(1e-6)

    def test_synth_reverts_to_peg(self):
        market = MarketState(1.0, 0.5, 0.9, {"collateral": 0.0, "share": 0.0, "synth": 0.0},
                             synth_mean_reversion=0.5)
        market.step(np.random.default_rng(0))
        assert market.current_prices["synth"] == pytest.approx(0.95)
        assert len(market.price_history) == 2


class TestAgents:
    """Decision rules"""

    def test_minter_uses_share_when_algorithmic(self):
        minter = Minter("m", collateral=100.0, share=100.0)
        minter.action_probability = 1.0
        action, params = minter.decide_action({"tcr": 0.0}, {"synth": 1.0})
        assert action == AgentAction.MINT
        assert params["share_amount"] > 0

    def test_redeemer_holds_dust(self):
        redeemer = Redeemer("r", synth=0.5)
        redeemer.action_probability = 1.0
        action, _ = redeemer.decide_action({}, {"synth": 1.0})
        assert action == AgentAction.HOLD

    def test_arbitrageur_priorities(self):
        arb = Arbitrageur("a", collateral=1000.0, share=1000.0)
        arb.action_probability = 1.0

        action, params = arb.decide_action(
            {"tcr": 0.8, "ecr": 0.7, "recollateralize_amount": 10.0}, {"synth": 1.0})
        assert action == AgentAction.RECOLLATERALIZE
        assert params["collateral_amount"] == 10.0

        action, _ = arb.decide_action({"tcr": 0.6, "ecr": 0.8, "max_buyback_share": 50.0}, {"synth": 1.0})
        assert action == AgentAction.BUYBACK

        action, _ = arb.decide_action({"tcr": 0.8, "ecr": 0.8}, {"synth": 1.05})
        assert action == AgentAction.MINT


class TestStressTesting:
    """Scenario suite, runner and analyzer"""

    def test_suite_lists_scenarios(self):
        suite = StablecoinStressTestSuite()
        assert suite.get_scenario_names() == [s["name"] for s in StressTestScenarios.get_all_scenarios()]
        with pytest.raises(ValueError, match="not found"):
            suite.get_scenario("Nope")
        with pytest.raises(KeyError):
            StressTestScenarios.get_scenario("Nope")

    def test_runner_single_scenario(self):
        runner = StressTestRunner(SimulationConfig(num_steps=20, seed=3), auto_save=False)
        results = runner.run_scenario("Baseline", num_minters=2, num_redeemers=2)

        assert results["scenario_results"]["scenario_name"] == "Baseline"
        assert len(results["scenario_results"]["metrics_history"]) == 20
        assert results["analysis"]["assessment"]["risk_level"] in ("Low", "Medium", "High")
        assert 0.0 <= results["health"]["overall_health_score"] <= 1.0

    def test_monte_carlo_aggregates_runs(self):
        runner = StressTestRunner(SimulationConfig(num_steps=10, seed=5, num_minters=1,
                                                   num_redeemers=1, num_arbitrageurs=1), auto_save=False)
        results = runner.run_monte_carlo_stress_test("Synth_Depeg_Below", num_runs=2)
        assert results["num_runs"] == 2
        assert "final_tcr" in results["statistics"]
        assert "sample_scenario_results" in results

    def test_runner_saves_results_and_charts(self, tmp_path):
        runner = StressTestRunner(SimulationConfig(num_steps=12, seed=8), auto_save=True,
                                  results_dir=str(tmp_path))
        runner.run_scenario("Collateral_Crash", num_minters=1, num_redeemers=1)

        runs = runner.results_manager.list_scenario_runs("Collateral_Crash")
        assert len(runs) == 1
        run_dir = tmp_path / "Collateral_Crash" / runs[0]["run_id"]
        saved = runner.results_manager.load_results(run_dir)
        assert saved["scenario_results"]["scenario_name"] == "Collateral_Crash"
        assert (run_dir / "summary.md").exists()
        assert (run_dir / "charts" / "collateral_crash_dynamics.png").exists()
        assert runner.results_manager.list_all_scenarios() == ["Collateral_Crash"]

    def test_analyzer_risk_levels(self):
        analyzer = StressTestAnalyzer()
        assert analyzer.analyze_monte_carlo_results("X", []) == {"error": "No results to analyze"}

        runs = [
            {"summary_statistics": {"min_ecr": 0.9, "time_under_target": 0.6, "max_abs_peg_deviation": 0.01}},
            {"summary_statistics": {"min_ecr": 0.8, "time_under_target": 0.7, "max_abs_peg_deviation": 0.02}},
        ]
        analysis = analyzer.analyze_monte_carlo_results("X", runs)
        assert analysis["assessment"]["risk_level"] == "High"
        assert analysis["statistics"]["min_ecr"]["mean"] == pytest.approx(0.85)

        summary = analyzer.generate_suite_summary({"X": analysis})
        assert summary["high_risk_scenarios"] == ["X"]


class TestMetricsAndConfig:

    def test_health_score_from_history(self):
        history = [
            {"step": i, "tcr": 0.9, "ecr": 0.95, "peg_deviation": 0.0, "synth_supply": 100.0 + i,
             "share_supply": 50.0, "collateral_price": 1.0, "share_price": 0.5, "synth_price": 1.0,
             "growth_ratio": 0.1}
            for i in range(4)
        ]
        calc = StabilityMetricsCalculator(history)
        health = calc.calculate_protocol_health_score()
        # 0.4 * 0.95 + 0.4 * 1.0 + 0.2 * 0.95
        assert health["overall_health_score"] == pytest.approx(0.97)
        assert health["health_status"] == "Healthy"
        assert calc.calculate_collateral_metrics()["steps_under_target"] == 0
        assert calc.calculate_supply_metrics()["synth_supply_change"] == pytest.approx(3.0)

    def test_empty_history(self):
        assert StabilityMetricsCalculator([]).calculate_protocol_health_score()["health_status"] == "Unknown"

    def test_config_validation(self):
        with pytest.raises(ValidationError):
            SimulationConfig(num_steps=0)
        with pytest.raises(ValidationError):
            StableControllerParams(synth_top_band=10 ** 18 - 1)
        with pytest.raises(ValidationError):
            StressTestScenarios.build_config("Baseline", price_shocks=[{"step": 1, "asset": "gold", "change": 0.1}])

    def test_cli(self, capsys):
        assert main(["--list-scenarios"]) == 0
        assert "Bank_Run" in capsys.readouterr().out
        assert main([]) == 1
        assert main(["--scenario", "Nope", "--no-save", "--steps", "5"]) == 1
        print("✅ Simulation and stress testing checks passed")
