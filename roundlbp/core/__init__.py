"""
Core round engine: fixed-point math, weighted pools, reward curve, rounds.
"""

from .clock import Clock, ManualClock, SystemClock
from .errors import (
    ArithmeticGuardError,
    EngineError,
    InsufficientBalanceError,
    InsufficientLiquidityError,
    InvalidInputError,
    InvalidStateError,
    ReentrancyError,
    UnauthorizedError,
)
from .events import EngineEvent, EventKind, EventLog
from .orchestrator import Round, RoundOrchestrator, RoundStatus
from .params import EngineParams
from .pool import Pool, PoolMetadata, PoolStatus, PoolView
from .position_token import PositionToken
from .reward_curve import RewardCurve
from .settlement import SettlementPlan, compute_holder_shares, select_winner
from .weighted_math import current_weights, spot_price, swap_exact_in

__all__ = [
    "Clock",
    "ManualClock",
    "SystemClock",
    "ArithmeticGuardError",
    "EngineError",
    "InsufficientBalanceError",
    "InsufficientLiquidityError",
    "InvalidInputError",
    "InvalidStateError",
    "ReentrancyError",
    "UnauthorizedError",
    "EngineEvent",
    "EventKind",
    "EventLog",
    "Round",
    "RoundOrchestrator",
    "RoundStatus",
    "EngineParams",
    "Pool",
    "PoolMetadata",
    "PoolStatus",
    "PoolView",
    "PositionToken",
    "RewardCurve",
    "SettlementPlan",
    "compute_holder_shares",
    "select_winner",
    "current_weights",
    "spot_price",
    "swap_exact_in",
]
