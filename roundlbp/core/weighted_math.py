"""
Weighted constant-product math with hyperbolically decaying weights.

Algorithm Design:
- Type: Fixed-Point Integer Arithmetic / Deterministic Rounding
- Time Complexity: O(1) per swap (the power series has a bounded term count)
- Invariant: input reserve grows by the full amount in (fee stays in the pool),
  output reserve shrinks by strictly less than its current value.

The output formula is the true weighted power

    amount_out = reserve_out * (1 - (reserve_in / (reserve_in + net_in)) ** (w_in / w_out))

evaluated with ``pow_fixed``. Both the executing pool and read-only quotes call
``swap_exact_in``, so a quote always equals the execution against the same
reserves and weights.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from .errors import InsufficientLiquidityError, InvalidInputError
from .fixed_point import BPS, ONE, clamp, div_down, mul_down, pow_fixed

START_WEIGHT_BPS = 9091
DEFAULT_DECAY_TIMESCALE = 86_400
MIN_WEIGHT_BPS = 1

# Relative error bound on pow_fixed (1e-14). The power is rounded up by this
# margin so the output always rounds in the pool's favor.
POW_ERROR_MARGIN = 10_000


def current_weights(
    elapsed: int,
    *,
    start_weight: int = START_WEIGHT_BPS,
    decay_timescale: int = DEFAULT_DECAY_TIMESCALE,
) -> Tuple[int, int]:
    """
    Token / funding weights (bps) after ``elapsed`` seconds.

        weight_token = clamp(start * T / (T + elapsed), 1, 10000)
        weight_funding = 10000 - weight_token

    Negative elapsed (clock before pool creation) is treated as zero.
    """
    if decay_timescale <= 0:
        raise InvalidInputError("decay_timescale", f"must be positive: {decay_timescale}")
    elapsed = max(elapsed, 0)
    weight_token = (start_weight * decay_timescale) // (decay_timescale + elapsed)
    weight_token = clamp(weight_token, MIN_WEIGHT_BPS, BPS)
    return weight_token, BPS - weight_token


def spot_price(token_reserve: int, funding_reserve: int, weight_token: int, weight_funding: int) -> int:
    """Funding per position token (1e18 scale): ``(Bf / wf) / (Bt / wt)``. Zero when no tokens remain."""
    if token_reserve == 0 or weight_funding == 0:
        return 0
    return (funding_reserve * ONE * weight_token) // (token_reserve * weight_funding)


def compute_fee(amount_in: int, fee_bps: int) -> int:
    """Fee taken up front, floored: ``amount_in * fee_bps / 10000``."""
    if not (0 <= fee_bps <= BPS):
        raise InvalidInputError("fee_bps", f"must be in [0, {BPS}]: {fee_bps}")
    return (amount_in * fee_bps) // BPS


def compute_swap_out(
    reserve_in: int,
    reserve_out: int,
    weight_in: int,
    weight_out: int,
    net_in: int,
) -> int:
    """Raw weighted output for ``net_in`` (post-fee). Returns 0 for any degenerate input."""
    if net_in <= 0 or reserve_in <= 0 or reserve_out <= 0 or weight_in <= 0 or weight_out <= 0:
        return 0
    ratio = div_down(reserve_in, reserve_in + net_in)
    if ratio == 0:
        # The trade dwarfs the reserve; treat the power as zero.
        return reserve_out
    weight_ratio = (weight_in * ONE) // weight_out
    ratio_power = pow_fixed(ratio, weight_ratio)
    ratio_power += mul_down(ratio_power, POW_ERROR_MARGIN) + 1
    if ratio_power >= ONE:
        return 0
    return mul_down(reserve_out, ONE - ratio_power)


@dataclass(frozen=True)
class SwapQuote:
    amount_in: int
    fee: int
    amount_out: int
    new_reserve_in: int
    new_reserve_out: int


def swap_exact_in(
    reserve_in: int,
    reserve_out: int,
    weight_in: int,
    weight_out: int,
    amount_in: int,
    fee_bps: int,
) -> SwapQuote:
    """
    Exact-in weighted swap.

    Post-swap reserves:
        new_reserve_in = reserve_in + amount_in   (fee stays in pool)
        new_reserve_out = reserve_out - amount_out

    Raises:
        InvalidInputError: non-positive amount_in or fee out of range
        InsufficientLiquidityError: empty reserve, zero output, or output that
            would drain the output reserve
    """
    if amount_in <= 0:
        raise InvalidInputError("amount_in", f"must be positive: {amount_in}")
    if reserve_in <= 0 or reserve_out <= 0:
        raise InsufficientLiquidityError("empty_reserve", f"reserves ({reserve_in}, {reserve_out})")

    fee = compute_fee(amount_in, fee_bps)
    amount_out = compute_swap_out(reserve_in, reserve_out, weight_in, weight_out, amount_in - fee)
    if amount_out <= 0:
        raise InsufficientLiquidityError("zero_output", f"amount_in {amount_in} yields nothing")
    if amount_out >= reserve_out:
        raise InsufficientLiquidityError(
            "insufficient_liquidity", f"amount_out {amount_out} >= reserve_out {reserve_out}"
        )
    return SwapQuote(
        amount_in=amount_in,
        fee=fee,
        amount_out=amount_out,
        new_reserve_in=reserve_in + amount_in,
        new_reserve_out=reserve_out - amount_out,
    )
