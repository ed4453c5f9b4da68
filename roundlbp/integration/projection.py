"""
Event-log projections.

Rebuilds round, pool and holder state from ``EngineEvent`` records alone, the
way an external indexer materializes the engine without running it. Used to
check that events carry enough information.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from ..core.events import EngineEvent, EventKind


@dataclass
class ProjectedPool:
    pool_id: str
    round_id: int
    creator: str
    token_supply: int
    token_reserve: int
    funding_reserve: int
    liquidated: bool = False
    settled: bool = False
    last_price: Optional[int] = None
    swap_count: int = 0


@dataclass
class ProjectedRound:
    round_id: int
    start_time: int
    end_time: int
    reward_curve: str
    pool_ids: List[str] = field(default_factory=list)
    settled: bool = False
    winner: Optional[str] = None
    total_reward: int = 0


def project_rounds(events: Iterable[EngineEvent]) -> Dict[int, ProjectedRound]:
    rounds: Dict[int, ProjectedRound] = {}
    for e in events:
        if e.kind is EventKind.ROUND_STARTED:
            rounds[e.round_id] = ProjectedRound(
                round_id=e.round_id,
                start_time=e["start_time"],
                end_time=e["end_time"],
                reward_curve=e["reward_curve"],
            )
        elif e.kind is EventKind.POOL_CREATED:
            rounds[e.round_id].pool_ids.append(e["pool"])
        elif e.kind is EventKind.ROUND_SETTLED:
            rnd = rounds[e.round_id]
            rnd.settled = True
            rnd.winner = e["winner"]
            rnd.total_reward = e["total_reward"]
    return rounds


def project_pool_states(events: Iterable[EngineEvent]) -> Dict[str, ProjectedPool]:
    pools: Dict[str, ProjectedPool] = {}
    for e in events:
        if e.kind is EventKind.POOL_CREATED:
            pools[e["pool"]] = ProjectedPool(
                pool_id=e["pool"],
                round_id=e.round_id,
                creator=e["creator"],
                token_supply=e["token_supply"],
                token_reserve=e["token_reserve"],
                funding_reserve=e["funding_reserve"],
                last_price=e["initial_price"],
            )
        elif e.kind is EventKind.SWAP_EXECUTED:
            p = pools[e["pool"]]
            p.token_reserve = e["token_reserve"]
            p.funding_reserve = e["funding_reserve"]
            p.last_price = e["price"]
            p.swap_count += 1
        elif e.kind is EventKind.POOL_LIQUIDATED:
            p = pools[e["pool"]]
            p.funding_reserve = e["funding_reserve"]
            p.liquidated = True
        elif e.kind is EventKind.ROUND_SETTLED and e["winner"] is not None:
            # The winner's funding moves to the bonus pool at settlement.
            p = pools[e["winner"]]
            p.funding_reserve = 0
            p.settled = True
    return pools


def project_position_balances(events: Iterable[EngineEvent]) -> Dict[Tuple[str, str], int]:
    """(pool, trader) -> position-token balance after the trader's latest swap."""
    out: Dict[Tuple[str, str], int] = {}
    for e in events:
        if e.kind is EventKind.SWAP_EXECUTED:
            out[(e["pool"], e["trader"])] = e["trader_token_balance"]
    return out


def project_reward_balances(events: Iterable[EngineEvent]) -> Dict[Tuple[str, str], int]:
    """(curve, account) -> reward-token balance."""
    out: Dict[Tuple[str, str], int] = {}
    for e in events:
        if e.kind is EventKind.REWARD_MINTED:
            key = (e["curve"], e["recipient"])
            out[key] = out.get(key, 0) + e["amount"]
        elif e.kind is EventKind.REWARD_BURNED:
            key = (e["curve"], e["account"])
            out[key] = out.get(key, 0) - e["amount"]
        elif e.kind is EventKind.BONUS_DISTRIBUTED:
            for recipient, amount in zip(e["recipients"], e["amounts"]):
                key = (e["curve"], recipient)
                out[key] = out.get(key, 0) + amount
    return {k: v for k, v in out.items() if v != 0}
