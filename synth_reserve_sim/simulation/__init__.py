"""Simulation engine and deployment wiring"""

from .builder import ProtocolSystem, deploy_system, add_share_liquidity
from .engine import StablecoinSimulationEngine
from .state import MarketState

__all__ = ["ProtocolSystem", "deploy_system", "add_share_liquidity", "StablecoinSimulationEngine", "MarketState"]
