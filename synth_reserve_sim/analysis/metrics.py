#!/usr/bin/env python3
"""
Protocol Stability Metrics

Collateralization and peg metrics computed from a run's metrics history.
"""

from typing import Dict, List

import numpy as np
import pandas as pd


class StabilityMetricsCalculator:
    """Protocol stability metrics calculator"""

    def __init__(self, metrics_history: List[dict]):
        self.df = pd.DataFrame(metrics_history)

    @classmethod
    def from_results(cls, results: Dict) -> "StabilityMetricsCalculator":
        return cls(results.get("metrics_history", []))

    def calculate_protocol_health_score(self) -> Dict:
        """Calculate overall protocol health score (0-1)"""
        if self.df.empty:
            return {"overall_health_score": 0.0, "component_scores": {}, "health_status": "Unknown"}

        metrics = {
            "collateralization": self._collateralization_score(),
            "peg_stability": self._peg_stability_score(),
            "ratio_tracking": self._ratio_tracking_score(),
        }
        weights = {
            "collateralization": 0.4,
            "peg_stability": 0.4,
            "ratio_tracking": 0.2,
        }
        health_score = sum(metrics[key] * weights[key] for key in metrics)
        return {
            "overall_health_score": health_score,
            "component_scores": metrics,
            "health_status": self._categorize_health(health_score),
        }

    def calculate_collateral_metrics(self) -> Dict:
        """ECR and TCR statistics over the run"""
        df = self.df
        gap = df["ecr"] - df["tcr"]
        return {
            "mean_ecr": float(df["ecr"].mean()),
            "min_ecr": float(df["ecr"].min()),
            "final_ecr": float(df["ecr"].iloc[-1]),
            "mean_tcr": float(df["tcr"].mean()),
            "final_tcr": float(df["tcr"].iloc[-1]),
            "tcr_range": float(df["tcr"].max() - df["tcr"].min()),
            "steps_under_target": int((gap < 0).sum()),
            "mean_ratio_gap": float(gap.mean()),
        }

    def calculate_peg_metrics(self) -> Dict:
        deviation = self.df["peg_deviation"]
        return {
            "mean_abs_deviation": float(deviation.abs().mean()),
            "max_abs_deviation": float(deviation.abs().max()),
            "deviation_std": float(deviation.std(ddof=0)),
            "steps_outside_1pct": int((deviation.abs() > 0.01).sum()),
        }

    def calculate_supply_metrics(self) -> Dict:
        supply = self.df["synth_supply"]
        share = self.df["share_supply"]
        return {
            "synth_supply_change": float(supply.iloc[-1] - supply.iloc[0]),
            "share_supply_change": float(share.iloc[-1] - share.iloc[0]),
            "max_synth_supply": float(supply.max()),
            "min_synth_supply": float(supply.min()),
        }

    def rolling_ecr(self, window: int = 24) -> pd.Series:
        return self.df["ecr"].rolling(window, min_periods=1).mean()

    def correlation_matrix(self) -> pd.DataFrame:
        """Correlations between prices and collateral ratios"""
        columns = ["collateral_price", "share_price", "synth_price", "tcr", "ecr", "growth_ratio"]
        return self.df[columns].corr().fillna(0.0)

    def _collateralization_score(self) -> float:
        min_ecr = float(self.df["ecr"].min())
        return float(np.clip(min_ecr, 0.0, 1.0))

    def _peg_stability_score(self) -> float:
        max_dev = float(self.df["peg_deviation"].abs().max())
        # 10% off peg scores zero
        return float(np.clip(1.0 - max_dev / 0.10, 0.0, 1.0))

    def _ratio_tracking_score(self) -> float:
        gap = (self.df["ecr"] - self.df["tcr"]).abs().mean()
        return float(np.clip(1.0 - gap, 0.0, 1.0))

    def _categorize_health(self, score: float) -> str:
        if score >= 0.8:
            return "Healthy"
        if score >= 0.5:
            return "Stressed"
        return "Critical"
