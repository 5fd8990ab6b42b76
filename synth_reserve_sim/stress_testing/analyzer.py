#!/usr/bin/env python3
"""
Results Analysis and Metrics

Aggregates stress test runs into collateralization and peg stability
statistics and a simple risk assessment.
"""

from typing import Dict, List

import numpy as np


class StressTestAnalyzer:
    """Results analysis and metrics calculation"""

    def analyze_monte_carlo_results(self, scenario_name: str, runs_results: List[Dict]) -> Dict:
        """Analyze Monte Carlo stress test results"""
        if not runs_results:
            return {"error": "No results to analyze"}

        metrics = {
            "final_tcr": [],
            "final_ecr": [],
            "min_ecr": [],
            "time_under_target": [],
            "max_abs_peg_deviation": [],
            "mean_abs_peg_deviation": [],
            "tcr_steps_up": [],
            "tcr_steps_down": [],
            "total_rejections": [],
        }

        for result in runs_results:
            summary_stats = result.get("summary_statistics", {})
            for name in metrics:
                value = summary_stats.get(name)
                if value is not None:
                    metrics[name].append(value)

        stats = {}
        for metric_name, values in metrics.items():
            if values:
                stats[metric_name] = {
                    "mean": float(np.mean(values)),
                    "std": float(np.std(values)),
                    "min": float(np.min(values)),
                    "max": float(np.max(values)),
                    "percentile_5": float(np.percentile(values, 5)),
                    "percentile_25": float(np.percentile(values, 25)),
                    "percentile_75": float(np.percentile(values, 75)),
                    "percentile_95": float(np.percentile(values, 95)),
                }

        risk_metrics = self._calculate_risk_metrics(metrics)
        return {
            "scenario_name": scenario_name,
            "num_runs": len(runs_results),
            "statistics": stats,
            "risk_metrics": risk_metrics,
            "assessment": self._assess_scenario_impact(risk_metrics),
        }

    def analyze_single_scenario(self, scenario_name: str, result: Dict) -> Dict:
        """Analyze single scenario result"""
        summary = result.get("summary_statistics", {})
        risk_metrics = {
            "time_under_target": summary.get("time_under_target", 0.0),
            "min_ecr": summary.get("min_ecr"),
            "worst_peg_deviation": summary.get("max_abs_peg_deviation") or 0.0,
        }
        return {
            "scenario_name": scenario_name,
            "risk_metrics": risk_metrics,
            "assessment": self._assess_scenario_impact(risk_metrics),
            "rejections": result.get("rejections", {}),
        }

    def generate_suite_summary(self, suite_results: Dict[str, Dict]) -> Dict:
        """Rank scenarios by their worst collateralization outcome"""
        rows = []
        for name, result in suite_results.items():
            stats = result.get("statistics", {})
            rows.append({
                "scenario": name,
                "mean_min_ecr": stats.get("min_ecr", {}).get("mean"),
                "p95_peg_deviation": stats.get("max_abs_peg_deviation", {}).get("percentile_95"),
                "risk_level": result.get("assessment", {}).get("risk_level", "Unknown"),
            })
        rows.sort(key=lambda r: r["mean_min_ecr"] if r["mean_min_ecr"] is not None else float("inf"))
        return {
            "scenarios_run": len(rows),
            "ranking": rows,
            "high_risk_scenarios": [r["scenario"] for r in rows if r["risk_level"] == "High"],
        }

    def _calculate_risk_metrics(self, metrics: Dict[str, List]) -> Dict:
        min_ecr = np.array(metrics["min_ecr"] or [1.0])
        under = np.array(metrics["time_under_target"] or [0.0])
        peg = np.array(metrics["max_abs_peg_deviation"] or [0.0])
        return {
            "time_under_target": float(np.mean(under)),
            "ecr_var_5": float(np.percentile(min_ecr, 5)),
            "worst_peg_deviation": float(np.max(peg)),
        }

    def _assess_scenario_impact(self, risk_metrics: Dict) -> Dict:
        """Grade by peg loss and by how long the reserve sat under its target"""
        peg = risk_metrics.get("worst_peg_deviation", 0.0)
        under = risk_metrics.get("time_under_target", 0.0)
        if peg > 0.05 or under > 0.5:
            level = "High"
        elif peg > 0.02 or under > 0.1:
            level = "Medium"
        else:
            level = "Low"
        return {"risk_level": level, "worst_peg_deviation": peg, "time_under_target": under}
