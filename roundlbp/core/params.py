"""Engine parameters (round bounds, pool economics, reward curve)."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict

from .fixed_point import BPS
from .weighted_math import DEFAULT_DECAY_TIMESCALE, START_WEIGHT_BPS

ETHER = 10**18
HOUR = 3_600
DAY = 86_400


@dataclass(frozen=True)
class EngineParams:
    """
    Runtime parameters for an orchestrator and everything it creates.

    Defaults follow the deployed system: 0.5% swap fee, 0.0001 - 100 funding
    units per position, rounds between one hour and thirty days.
    """

    swap_fee_bps: int = 50
    start_weight_bps: int = START_WEIGHT_BPS
    decay_timescale_seconds: int = DEFAULT_DECAY_TIMESCALE
    liquidation_divisor: int = 10

    min_funding: int = ETHER // 10_000
    max_funding: int = 100 * ETHER

    min_round_duration: int = HOUR
    max_round_duration: int = 30 * DAY
    initial_round_duration: int = DAY

    reward_base_price: int = ETHER // 1_000
    reward_slope: int = 10**12

    def __post_init__(self) -> None:
        for name, v in asdict(self).items():
            if not isinstance(v, int) or isinstance(v, bool):
                raise TypeError(f"{name} must be an int")
            if v < 0:
                raise ValueError(f"{name} must be non-negative: {v}")
        if self.swap_fee_bps >= BPS:
            raise ValueError(f"swap_fee_bps must be < {BPS}: {self.swap_fee_bps}")
        # start weight must leave a non-zero funding weight
        if not (1 <= self.start_weight_bps < BPS):
            raise ValueError(f"start_weight_bps must be in [1, {BPS - 1}]: {self.start_weight_bps}")
        if self.decay_timescale_seconds <= 0:
            raise ValueError("decay_timescale_seconds must be positive")
        if self.liquidation_divisor <= 0:
            raise ValueError("liquidation_divisor must be positive")
        if not (0 < self.min_funding <= self.max_funding):
            raise ValueError(f"funding bounds invalid: [{self.min_funding}, {self.max_funding}]")
        if not (0 < self.min_round_duration <= self.max_round_duration):
            raise ValueError(
                f"duration bounds invalid: [{self.min_round_duration}, {self.max_round_duration}]"
            )
        if not (self.min_round_duration <= self.initial_round_duration <= self.max_round_duration):
            raise ValueError(f"initial_round_duration out of bounds: {self.initial_round_duration}")
        if self.reward_base_price <= 0:
            raise ValueError("reward_base_price must be positive")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
