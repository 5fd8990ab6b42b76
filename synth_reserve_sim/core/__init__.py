"""Core stablecoin reserve components"""

from .math import FixedPointMath, ONE
from .errors import (
    ReserveSimError, CapabilityError, PreconditionError, EconomicBoundError, UndefinedRatioError
)
from .access import AccessControl, Role, requires_role
from .clock import ManualClock, SystemClock
from .events import Event, EventLog
from .transaction import Transaction, atomic, StatefulComponent
from .tokens import Token
from .oracle import MockPairOracle, TwapOracle
from .vault import TreasuryVault
from .reserve_tracker import ReserveTracker, TradingPair
from .reserve import CollateralReserve, ReserveState, RecollateralizeResult, BuybackResult
from .controller import PIDController, StablePIDController, RefreshResult
from .pool import SyntheticPool, MintResult, RedeemResult

__all__ = [
    "FixedPointMath", "ONE",
    "ReserveSimError", "CapabilityError", "PreconditionError", "EconomicBoundError", "UndefinedRatioError",
    "AccessControl", "Role", "requires_role",
    "ManualClock", "SystemClock", "Event", "EventLog",
    "Transaction", "atomic", "StatefulComponent",
    "Token", "MockPairOracle", "TwapOracle", "TreasuryVault",
    "ReserveTracker", "TradingPair",
    "CollateralReserve", "ReserveState", "RecollateralizeResult", "BuybackResult",
    "PIDController", "StablePIDController", "RefreshResult",
    "SyntheticPool", "MintResult", "RedeemResult"
]
