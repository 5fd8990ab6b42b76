"""Streamlined agent system"""

from .base_agent import BaseAgent, AgentAction, AgentState
from .minter import Minter
from .redeemer import Redeemer
from .arbitrageur import Arbitrageur

__all__ = [
    "BaseAgent", "AgentAction", "AgentState",
    "Minter", "Redeemer", "Arbitrageur"
]
