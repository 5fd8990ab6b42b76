#!/usr/bin/env python3
"""
Stress Test Scenario Definitions

Scenarios exercising the reserve under collateral and share sell-offs,
synth depegs in either direction and a redemption run.
"""

from typing import Any, Dict, List, Optional

from ..engine.config import SimulationConfig, StressTestScenarios
from ..simulation.engine import StablecoinSimulationEngine


class StressTestScenario:
    """Individual stress test scenario"""

    def __init__(self, name: str, description: str, definition: Dict[str, Any]):
        self.name = name
        self.description = description
        self.definition = definition
        self.results = None

    def build_config(self, **overrides) -> SimulationConfig:
        return StressTestScenarios.build_config(self.name, **overrides)

    def run(self, config: Optional[SimulationConfig] = None, verbose: bool = True) -> dict:
        """Run the stress test scenario"""
        if verbose:
            print(f"Running stress test: {self.name}")
            print(f"Description: {self.description}")

        engine = StablecoinSimulationEngine(config or self.build_config())
        results = engine.run_simulation()
        results["scenario_name"] = self.name
        self.results = results
        return results


class StablecoinStressTestSuite:
    """Complete stress test suite for the collateral reserve"""

    def __init__(self):
        self.scenarios = self._create_scenarios()
        self.results = {}

    def _create_scenarios(self) -> List[StressTestScenario]:
        return [
            StressTestScenario(s["name"], s["description"], s)
            for s in StressTestScenarios.get_all_scenarios()
        ]

    def get_scenario(self, scenario_name: str) -> StressTestScenario:
        scenario = next((s for s in self.scenarios if s.name == scenario_name), None)
        if not scenario:
            raise ValueError(f"Scenario '{scenario_name}' not found")
        return scenario

    def run_scenario(self, scenario_name: str, **overrides) -> dict:
        """Run a specific scenario with optional config overrides"""
        scenario = self.get_scenario(scenario_name)
        return scenario.run(scenario.build_config(**overrides))

    def run_all_scenarios(self, **overrides) -> Dict[str, dict]:
        """Run all stress test scenarios"""
        print("Starting Stablecoin Reserve Stress Test Suite")
        print("=" * 50)

        for scenario in self.scenarios:
            self.results[scenario.name] = scenario.run(scenario.build_config(**overrides))
            print(f"✓ Completed: {scenario.name}")

        print("\nAll stress tests completed!")
        return self.results

    def get_scenario_names(self) -> List[str]:
        """Get list of all scenario names"""
        return [scenario.name for scenario in self.scenarios]
