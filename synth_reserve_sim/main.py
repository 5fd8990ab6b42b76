#!/usr/bin/env python3
"""
Stablecoin Reserve Stress Testing - Main Entry Point

Command-line interface for running reserve scenarios, Monte Carlo sweeps and
the full stress test suite.
"""

import argparse
import logging
import sys

from .core.errors import ReserveSimError
from .engine.config import SimulationConfig, StressTestScenarios
from .stress_testing.runner import StressTestRunner


def create_simulation_config(args) -> SimulationConfig:
    """Build the base configuration from CLI arguments"""
    return SimulationConfig(
        num_steps=args.steps,
        seed=args.seed,
        use_stable_controller=not args.base_controller,
    )


def list_scenarios():
    print("Available stress test scenarios:")
    for scenario in StressTestScenarios.get_all_scenarios():
        print(f"  {scenario['name']:<20} {scenario['description']}")


def print_summary(results: dict):
    stats = results.get("scenario_results", {}).get("summary_statistics", {})
    if stats:
        print("\nSummary")
        print("-" * 40)
        for key, value in stats.items():
            if isinstance(value, float):
                print(f"  {key:<24} {value:.4f}")
            else:
                print(f"  {key:<24} {value}")
    assessment = results.get("analysis", {}).get("assessment") or results.get("assessment")
    if assessment:
        print(f"\nRisk level: {assessment['risk_level']}")


def main(argv=None) -> int:
    """Main entry point with command-line interface"""
    parser = argparse.ArgumentParser(
        description="Stablecoin Reserve Stress Testing Framework",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m synth_reserve_sim.main --list-scenarios
  python -m synth_reserve_sim.main --scenario Share_Crash --steps 300 --seed 7
  python -m synth_reserve_sim.main --scenario Bank_Run --monte-carlo 25
  python -m synth_reserve_sim.main --full-suite --monte-carlo 10 --no-save
        """
    )

    parser.add_argument('--scenario', type=str,
                        help='Run specific stress test scenario')
    parser.add_argument('--list-scenarios', action='store_true',
                        help='List all available stress test scenarios')
    parser.add_argument('--full-suite', action='store_true',
                        help='Run complete stress test suite')

    parser.add_argument('--monte-carlo', type=int, default=0,
                        help='Number of Monte Carlo runs (default: single run; suite default: 10)')
    parser.add_argument('--steps', type=int, default=500,
                        help='Number of simulation steps (default: 500)')
    parser.add_argument('--seed', type=int, default=None,
                        help='Random seed for reproducible runs')
    parser.add_argument('--base-controller', action='store_true',
                        help='Use the growth-ratio controller without the peg signal')
    parser.add_argument('--no-save', action='store_true',
                        help='Do not write results and charts to disk')
    parser.add_argument('--results-dir', type=str, default='results',
                        help='Directory for saved results (default: results)')
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Verbose output')

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    if not any([args.scenario, args.full_suite, args.list_scenarios]):
        parser.print_help()
        return 1

    if args.list_scenarios:
        list_scenarios()
        return 0

    config = create_simulation_config(args)
    runner = StressTestRunner(config, auto_save=not args.no_save, results_dir=args.results_dir)

    try:
        if args.scenario:
            print(f"Running Stress Test Scenario: {args.scenario}")
            print("=" * 60)
            if args.monte_carlo > 0:
                results = runner.run_monte_carlo_stress_test(args.scenario, args.monte_carlo)
            else:
                results = runner.run_scenario(args.scenario)
            print_summary(results)
            return 0

        if args.full_suite:
            results = runner.run_full_stress_test_suite(args.monte_carlo or 10)
            for row in results["suite_summary"]["ranking"]:
                print(f"  {row['scenario']:<20} risk={row['risk_level']}")
            return 0

    except KeyboardInterrupt:
        print("\nOperation cancelled by user")
        return 1
    except (ReserveSimError, ValueError, KeyError) as e:
        print(f"Error: {str(e)}")
        if args.verbose:
            raise
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
