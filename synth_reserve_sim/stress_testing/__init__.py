"""Stress testing framework"""

from .runner import StressTestRunner
from .scenarios import StablecoinStressTestSuite, StressTestScenario
from .analyzer import StressTestAnalyzer

__all__ = ["StressTestRunner", "StablecoinStressTestSuite", "StressTestScenario", "StressTestAnalyzer"]
