"""Results storage, stability metrics and charts"""

from .results_manager import ResultsManager, RunMetadata
from .metrics import StabilityMetricsCalculator
from .charts import StabilityChartGenerator

__all__ = ["ResultsManager", "RunMetadata", "StabilityMetricsCalculator", "StabilityChartGenerator"]
