"""Parameter schemas and scenarios"""

from .config import (
    MAX_FEE, ReserveParams, ControllerParams, StableControllerParams, PoolParams,
    ScheduledShock, SimulationConfig, StressTestScenarios
)

__all__ = [
    "MAX_FEE", "ReserveParams", "ControllerParams", "StableControllerParams", "PoolParams",
    "ScheduledShock", "SimulationConfig", "StressTestScenarios"
]
