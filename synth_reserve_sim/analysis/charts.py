#!/usr/bin/env python3
"""
Stability Chart Generator

Time-series dashboard of prices, collateral ratios, supplies and agent
activity for one simulation run, plus a price/ratio correlation heatmap.
"""

from pathlib import Path
from typing import Any, Dict, List

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import pandas as pd
import seaborn as sns

from .metrics import StabilityMetricsCalculator


class StabilityChartGenerator:
    """Generates the per-scenario stability charts"""

    def __init__(self):
        self._setup_styling()

    def _setup_styling(self):
        """Setup clean, professional chart styling"""
        plt.style.use('default')
        sns.set_palette("husl")
        plt.rcParams.update({
            'figure.figsize': (12, 8),
            'font.size': 11,
            'axes.titlesize': 14,
            'axes.labelsize': 12,
            'legend.fontsize': 10,
            'xtick.labelsize': 10,
            'ytick.labelsize': 10
        })

    def generate_scenario_charts(self, scenario_name: str, results: Dict[str, Any],
                                 charts_dir: Path) -> List[Path]:
        """Generate the dashboard and correlation charts for one run"""
        print(f"Generating charts for: {scenario_name}")
        charts_dir = Path(charts_dir)
        charts_dir.mkdir(parents=True, exist_ok=True)

        scenario_results = results.get("scenario_results", results)
        if not scenario_results.get("metrics_history") and "sample_scenario_results" in results:
            scenario_results = results["sample_scenario_results"]

        metrics_history = scenario_results.get("metrics_history", [])
        if not metrics_history:
            print("No time-series data found - cannot create meaningful chart")
            return []

        df = pd.DataFrame(metrics_history)
        return [
            self._create_dashboard(df, charts_dir, scenario_name),
            self._create_correlation_heatmap(metrics_history, charts_dir, scenario_name),
        ]

    def _create_dashboard(self, df: pd.DataFrame, charts_dir: Path, scenario_name: str) -> Path:
        fig, ((ax1, ax2), (ax3, ax4)) = plt.subplots(2, 2, figsize=(14, 10))
        fig.suptitle(f'{scenario_name.replace("_", " ")} - Reserve Dynamics Over Time',
                     fontsize=16, fontweight='bold')

        # Prices
        ax1.plot(df["step"], df["collateral_price"], label="Collateral")
        ax1.plot(df["step"], df["share_price"], label="Share")
        ax1.plot(df["step"], df["synth_price"], label="Synth")
        ax1.axhline(1.0, color="grey", linestyle="--", linewidth=0.8)
        ax1.set_title("Oracle Prices")
        ax1.set_xlabel("Step")
        ax1.set_ylabel("Price")
        ax1.legend()
        ax1.grid(True, alpha=0.3)

        # Collateral ratios
        ax2.plot(df["step"], df["tcr"], label="TCR", linewidth=2)
        ax2.plot(df["step"], df["ecr"], label="ECR", alpha=0.8)
        ax2.set_title("Target vs Effective Collateral Ratio")
        ax2.set_xlabel("Step")
        ax2.set_ylabel("Ratio")
        ax2.legend()
        ax2.grid(True, alpha=0.3)

        # Supplies
        ax3.plot(df["step"], df["synth_supply"], label="Synth supply")
        ax3.plot(df["step"], df["share_supply"], label="Share supply")
        ax3.set_title("Token Supplies")
        ax3.set_xlabel("Step")
        ax3.legend()
        ax3.grid(True, alpha=0.3)

        # Agent activity
        ax4.bar(df["step"], df["actions"], label="Executed", alpha=0.7)
        ax4.bar(df["step"], df["rejections"], bottom=df["actions"], label="Rejected", alpha=0.7)
        ax4.set_title("Agent Actions per Step")
        ax4.set_xlabel("Step")
        ax4.legend()
        ax4.grid(True, alpha=0.3)

        plt.tight_layout()
        path = charts_dir / f"{scenario_name.lower()}_dynamics.png"
        plt.savefig(path, dpi=150, bbox_inches='tight')
        plt.close(fig)
        return path

    def _create_correlation_heatmap(self, metrics_history: List[dict], charts_dir: Path,
                                    scenario_name: str) -> Path:
        corr = StabilityMetricsCalculator(metrics_history).correlation_matrix()
        fig, ax = plt.subplots(figsize=(8, 6))
        sns.heatmap(corr, annot=True, fmt=".2f", cmap="RdYlGn", center=0, vmin=-1, vmax=1, ax=ax)
        ax.set_title(f'{scenario_name.replace("_", " ")} - Price / Ratio Correlations')
        plt.tight_layout()
        path = charts_dir / f"{scenario_name.lower()}_correlations.png"
        plt.savefig(path, dpi=150, bbox_inches='tight')
        plt.close(fig)
        return path
