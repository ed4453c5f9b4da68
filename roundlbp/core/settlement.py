"""
Round settlement kernels (deterministic, integer-only).

- ``compute_holder_shares``: basis-point shares with remainder absorption:
  every holder but the last gets ``floor(balance * 10000 / owned)`` and the
  last gets ``10000 - sum(others)``, so shares always sum to exactly 10000.
- ``select_winner``: strictly greatest owned supply; ties go to the earliest
  candidate; a round where nobody owns anything has no winner.
- ``plan_settlement``: read-only plan over live pools, checked in full before
  the orchestrator applies any of it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Optional, Sequence, Tuple

from ..state.balances import Address, Amount
from .errors import InvalidInputError, InvalidStateError
from .fixed_point import BPS

if TYPE_CHECKING:
    from .pool import Pool
    from .reward_curve import RewardCurve


def compute_holder_shares(
    holder_balances: Sequence[Tuple[Address, Amount]],
    owned_supply: Amount,
) -> Tuple[List[Address], List[int]]:
    """
    Split 10000 bps across holders proportional to balance.

    Raises:
        InvalidStateError: no holder with a positive balance, or zero owned supply
    """
    if owned_supply <= 0:
        raise InvalidStateError("no_winners", "owned supply is zero")
    positive = [(a, b) for a, b in holder_balances if b > 0]
    if not positive:
        raise InvalidStateError("no_winners", "no holder has a positive balance")

    winners = [a for a, _ in positive]
    shares = [(b * BPS) // owned_supply for _, b in positive]
    shares[-1] = BPS - sum(shares[:-1])
    if shares[-1] < 0:
        raise InvalidInputError("holder_balances", "holder balances exceed owned supply")
    return winners, shares


def select_winner(candidates: Sequence[Tuple[Address, Amount]]) -> Optional[Address]:
    """Pick the candidate with the strictly greatest owned supply (first wins ties)."""
    best: Optional[Address] = None
    best_owned = 0
    for pool_id, owned in candidates:
        if owned > best_owned:
            best, best_owned = pool_id, owned
    return best


@dataclass(frozen=True)
class SettlementPlan:
    round_id: int
    winner: Optional[Address]
    winners: List[Address] = field(default_factory=list)
    shares: List[int] = field(default_factory=list)
    losers: List[Address] = field(default_factory=list)
    bonus_after: Amount = 0
    total_reward: Amount = 0


def plan_settlement(round_id: int, pools: Sequence["Pool"], curve: "RewardCurve") -> SettlementPlan:
    """
    Work out the whole settlement without writing anything.

    Every precondition the apply phase relies on (winner shares, a non-empty
    bonus pool, a non-zero reward mint) is checked here, so a failure leaves
    the round untouched.
    """
    candidates = [(p.pool_id, 0 if p.liquidated else p.owned_supply()) for p in pools]
    winner = select_winner(candidates)

    bonus_after = curve.bonus_pool + sum(p.funding_reserve for p in pools if not (p.liquidated or p.settled))
    losers = [p.pool_id for p in pools if p.pool_id != winner and not (p.liquidated or p.settled)]

    if winner is None:
        return SettlementPlan(round_id=round_id, winner=None, losers=losers, bonus_after=bonus_after)

    winner_pool = next(p for p in pools if p.pool_id == winner)
    winners, shares = winner_pool.preview_shares()
    if bonus_after == 0:
        raise InvalidStateError("empty_bonus_pool", f"round {round_id} has nothing to distribute")
    total_reward = curve.quote_mint(bonus_after)
    return SettlementPlan(
        round_id=round_id,
        winner=winner,
        winners=winners,
        shares=shares,
        losers=losers,
        bonus_after=bonus_after,
        total_reward=total_reward,
    )
