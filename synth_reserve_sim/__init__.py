"""
Synthetic Reserve Simulation

A partially-collateralized algorithmic stablecoin: a multi-asset collateral
reserve, a feedback controller for the target collateral ratio, a
mint/redeem pool and the tooling to stress test them.
"""

__version__ = "1.0.0"
__author__ = "Synth Reserve Team"

# Core components
from .core.math import FixedPointMath, ONE
from .core.errors import (
    ReserveSimError, CapabilityError, PreconditionError, EconomicBoundError, UndefinedRatioError
)
from .core.access import AccessControl, Role
from .core.tokens import Token
from .core.oracle import MockPairOracle, TwapOracle
from .core.vault import TreasuryVault
from .core.reserve_tracker import ReserveTracker, TradingPair
from .core.reserve import CollateralReserve
from .core.controller import PIDController, StablePIDController
from .core.pool import SyntheticPool

# Configuration
from .engine.config import (
    ReserveParams, ControllerParams, StableControllerParams, PoolParams,
    SimulationConfig, StressTestScenarios
)

# Agents
from .agents.base_agent import BaseAgent, AgentAction, AgentState
from .agents.minter import Minter
from .agents.redeemer import Redeemer
from .agents.arbitrageur import Arbitrageur

# Simulation
from .simulation.builder import ProtocolSystem, deploy_system
from .simulation.engine import StablecoinSimulationEngine

# Stress Testing
from .stress_testing.runner import StressTestRunner
from .stress_testing.scenarios import StablecoinStressTestSuite

# Analysis
from .analysis.metrics import StabilityMetricsCalculator

__all__ = [
    # Core
    "FixedPointMath", "ONE",
    "ReserveSimError", "CapabilityError", "PreconditionError", "EconomicBoundError", "UndefinedRatioError",
    "AccessControl", "Role", "Token", "MockPairOracle", "TwapOracle", "TreasuryVault",
    "ReserveTracker", "TradingPair", "CollateralReserve",
    "PIDController", "StablePIDController", "SyntheticPool",

    # Configuration
    "ReserveParams", "ControllerParams", "StableControllerParams", "PoolParams",
    "SimulationConfig", "StressTestScenarios",

    # Agents
    "BaseAgent", "AgentAction", "AgentState", "Minter", "Redeemer", "Arbitrageur",

    # Simulation
    "ProtocolSystem", "deploy_system", "StablecoinSimulationEngine",

    # Stress Testing
    "StressTestRunner", "StablecoinStressTestSuite",

    # Analysis
    "StabilityMetricsCalculator"
]
