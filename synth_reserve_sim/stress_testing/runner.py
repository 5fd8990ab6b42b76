#!/usr/bin/env python3
"""
Stress Test Execution Engine

Runs stress tests with Monte Carlo simulation capabilities.
Enhanced with automatic results storage and visualization.
"""

import time
from pathlib import Path
from typing import Dict, Optional

import numpy as np

from ..analysis.charts import StabilityChartGenerator
from ..analysis.metrics import StabilityMetricsCalculator
from ..analysis.results_manager import ResultsManager, RunMetadata
from ..engine.config import SimulationConfig
from .analyzer import StressTestAnalyzer
from .scenarios import StablecoinStressTestSuite


class StressTestRunner:
    """Stress test execution engine with Monte Carlo capabilities and automatic results storage"""

    def __init__(self, config: Optional[SimulationConfig] = None, auto_save: bool = True,
                 results_dir: str = "results"):
        self.config = config or SimulationConfig()
        self.test_suite = StablecoinStressTestSuite()
        self.analyzer = StressTestAnalyzer()
        self.results = {}

        self.auto_save = auto_save
        self.results_manager = ResultsManager(results_dir) if self.auto_save else None
        self.chart_generator = StabilityChartGenerator()

    def _base_overrides(self) -> Dict:
        """Run-shape settings from the runner's config carried into every scenario"""
        return {
            "num_steps": self.config.num_steps,
            "seed": self.config.seed,
            "use_stable_controller": self.config.use_stable_controller,
        }

    def run_scenario(self, scenario_name: str, **overrides) -> Dict:
        """
        Run a single scenario once and analyze it

        Args:
            scenario_name: Name of scenario to run
            overrides: SimulationConfig fields to override

        Returns:
            Scenario results and analysis
        """
        print(f"Running targeted stress test: {scenario_name}")
        start_time = time.time()

        params = {**self._base_overrides(), **overrides}
        results = self.test_suite.run_scenario(scenario_name, **params)
        analysis = self.analyzer.analyze_single_scenario(scenario_name, results)
        health = StabilityMetricsCalculator.from_results(results).calculate_protocol_health_score()

        final_results = {
            "scenario_results": results,
            "analysis": analysis,
            "health": health,
        }

        if self.auto_save:
            self._save_scenario_results(scenario_name, final_results, time.time() - start_time, 1)
        return final_results

    def run_monte_carlo_stress_test(self, scenario_name: str, num_runs: int = 20,
                                    vary_params: bool = True) -> Dict:
        """
        Run Monte Carlo stress test for a specific scenario

        Args:
            scenario_name: Name of stress scenario to run
            num_runs: Number of Monte Carlo runs
            vary_params: Whether to vary parameters across runs

        Returns:
            Aggregated results across all runs
        """
        print(f"Running Monte Carlo stress test: {scenario_name}")
        print(f"Number of runs: {num_runs}")
        print("=" * 50)

        rng = np.random.default_rng(self.config.seed)
        scenario = self.test_suite.get_scenario(scenario_name)
        runs_results = []
        start_time = time.time()

        for run in range(num_runs):
            overrides = self._base_overrides()
            overrides["seed"] = int(rng.integers(0, 2 ** 31 - 1))
            if vary_params:
                overrides.update(self._create_varied_params(rng))
            result = scenario.run(scenario.build_config(**overrides), verbose=False)
            runs_results.append(result)

            if (run + 1) % 10 == 0:
                elapsed = time.time() - start_time
                print(f"Completed {run + 1}/{num_runs} runs ({elapsed:.1f}s)")

        aggregated_results = self.analyzer.analyze_monte_carlo_results(scenario_name, runs_results)
        if runs_results:
            aggregated_results["sample_scenario_results"] = runs_results[-1]

        total_time = time.time() - start_time
        print(f"Monte Carlo stress test completed in {total_time:.1f}s")

        if self.auto_save:
            self._save_scenario_results(scenario_name, aggregated_results, total_time, num_runs)
        return aggregated_results

    def run_full_stress_test_suite(self, num_monte_carlo_runs: int = 20) -> Dict:
        """Run complete stress test suite with Monte Carlo analysis"""
        print("Running Full Stablecoin Reserve Stress Test Suite")
        print("=" * 60)

        suite_results = {}
        scenario_names = self.test_suite.get_scenario_names()
        for i, scenario_name in enumerate(scenario_names):
            print(f"\n[{i+1}/{len(scenario_names)}] Testing: {scenario_name}")
            suite_results[scenario_name] = self.run_monte_carlo_stress_test(scenario_name, num_monte_carlo_runs)

        self.results = suite_results
        summary = self.analyzer.generate_suite_summary(suite_results)

        print("\n" + "=" * 60)
        print("STRESS TEST SUITE COMPLETED")
        print("=" * 60)

        return {
            "individual_results": suite_results,
            "suite_summary": summary
        }

    def _create_varied_params(self, rng: np.random.Generator) -> Dict:
        """Parameter variations for Monte Carlo"""
        cfg = self.config
        volatility_multiplier = float(rng.uniform(0.5, 1.5))
        return {
            "num_minters": max(1, cfg.num_minters + int(rng.integers(-1, 2))),
            "num_redeemers": max(1, cfg.num_redeemers + int(rng.integers(-1, 2))),
            "agent_initial_collateral": cfg.agent_initial_collateral * float(rng.uniform(0.8, 1.2)),
            "share_volatility": min(1.0, cfg.share_volatility * volatility_multiplier),
            "synth_volatility": min(1.0, cfg.synth_volatility * volatility_multiplier),
        }

    def _save_scenario_results(self, scenario_name: str, results: Dict, execution_time: float,
                               num_runs: int) -> Optional[Path]:
        """Save scenario results with automatic directory management and chart generation"""
        if not self.auto_save or not self.results_manager:
            return None

        run_dir = self.results_manager.create_run_directory(scenario_name)
        metadata = RunMetadata(
            run_id=run_dir.name,
            scenario_name=scenario_name,
            timestamp=time.strftime("%Y-%m-%d %H:%M:%S"),
            parameters={
                "num_monte_carlo_runs": num_runs,
                "simulation_steps": self.config.num_steps,
                "use_stable_controller": self.config.use_stable_controller,
                "seed": self.config.seed,
            },
            execution_time=execution_time
        )
        self.results_manager.save_results(run_dir, results, metadata)

        charts_generated = self.chart_generator.generate_scenario_charts(
            scenario_name, results, run_dir / "charts")

        summary_data = {
            "metadata": metadata.__dict__,
            "key_metrics": self._extract_key_metrics(results),
            "risk_assessment": results.get("assessment", results.get("analysis", {}).get("assessment", {})),
            "charts_generated": [chart.name for chart in charts_generated]
        }
        self.results_manager.save_summary_report(run_dir, summary_data)

        print(f"\n📁 Results saved to: {run_dir}")
        if charts_generated:
            print(f"📊 Charts generated: {len(charts_generated)} charts saved to charts/ subfolder")
        return run_dir

    def _extract_key_metrics(self, results: Dict) -> Dict:
        """Extract key metrics from results for summary"""
        key_metrics = {}
        if "scenario_results" in results:
            stats = results["scenario_results"].get("summary_statistics", {})
            key_metrics.update({k: v for k, v in stats.items() if not isinstance(v, dict)})
        if "health" in results:
            key_metrics["overall_health_score"] = results["health"]["overall_health_score"]
            key_metrics["health_status"] = results["health"]["health_status"]
        if "risk_metrics" in results:
            key_metrics.update(results["risk_metrics"])
        return key_metrics
