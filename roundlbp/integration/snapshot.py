"""
Engine snapshot encoding.

Goals:
- Deterministic JSON serialization for hashing / audit / handing state to an
  external indexer.
- Explicit versioning.

Snapshots are read-only views; the live engine is never rebuilt from one.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from ..core.orchestrator import RoundOrchestrator
from ..core.pool import Pool
from ..core.reward_curve import RewardCurve
from ..state.balances import BalanceTable
from ..state.canonical import canonical_json_bytes, domain_sep_bytes, sha256_hex


ENGINE_SNAPSHOT_VERSION = 1


@dataclass(frozen=True)
class EngineSnapshot:
    """
    Deterministic, versioned snapshot of an orchestrator and everything it owns.

    The commitment is *not* included inside `data` to avoid self-reference.
    """

    version: int
    data: Dict[str, Any]

    def canonical_bytes(self) -> bytes:
        return canonical_json_bytes(self.data)

    def commitment_bytes(self) -> bytes:
        payload = domain_sep_bytes("engine_snapshot", version=self.version) + self.canonical_bytes()
        return hashlib.sha256(payload).digest()

    def commitment_hex(self) -> str:
        payload = domain_sep_bytes("engine_snapshot", version=self.version) + self.canonical_bytes()
        return sha256_hex(payload)


def _balance_entries(balances: BalanceTable) -> List[Dict[str, Any]]:
    entries = [{"account": a, "amount": int(v)} for a, v in balances.get_all_balances().items()]
    entries.sort(key=lambda e: e["account"])
    return entries


def _curve_entry(curve: RewardCurve) -> Dict[str, Any]:
    return {
        "curve_id": curve.curve_id,
        "base_price": int(curve.base_price),
        "slope": int(curve.slope),
        "total_supply": int(curve.total_supply),
        "bonus_pool": int(curve.bonus_pool),
        "reserve": int(curve.reserve),
        "price": int(curve.current_price()),
        "balances": _balance_entries(curve.balances()),
    }


def _pool_entry(pool: Pool, now: int) -> Dict[str, Any]:
    view = pool.pool_state(now)
    return {
        "pool_id": pool.pool_id,
        "round_id": int(pool.round_id),
        "creator": pool.creator,
        "token_id": pool.token.token_id,
        "name": pool.metadata.name,
        "symbol": pool.metadata.symbol,
        "image_uri": pool.metadata.image_uri,
        "fee_bps": int(pool.fee_bps),
        "created_at": int(pool.created_at),
        "token_supply": int(pool.token.total_supply),
        "token_reserve": int(pool.token_reserve),
        "funding_reserve": int(pool.funding_reserve),
        "weight_token": int(view.weight_token),
        "weight_funding": int(view.weight_funding),
        "price": int(view.price),
        "initial_price": int(pool.initial_price),
        "liquidation_price": int(pool.liquidation_price),
        "status": pool.status.value,
        "holders": pool.token.holders(),
        "token_balances": _balance_entries(pool.token.balances()),
    }


def snapshot_from_engine(
    orchestrator: RoundOrchestrator,
    *,
    now: Optional[int] = None,
    version: int = ENGINE_SNAPSHOT_VERSION,
) -> EngineSnapshot:
    """Snapshot at ``now`` (defaults to the orchestrator's clock; weights and prices depend on it)."""
    if not isinstance(version, int) or isinstance(version, bool) or version <= 0:
        raise ValueError("version must be a positive int")
    ts = orchestrator.clock.now() if now is None else int(now)

    rounds = []
    for rnd in orchestrator.rounds:
        rounds.append(
            {
                "round_id": int(rnd.round_id),
                "start_time": int(rnd.start_time),
                "duration": int(rnd.duration),
                "end_time": int(rnd.end_time),
                "status": rnd.status.value,
                "winner": rnd.winner,
                "total_reward": int(rnd.total_reward),
                "pool_ids": list(rnd.pool_ids),
                "curve": _curve_entry(rnd.curve),
            }
        )

    pools = [_pool_entry(p, ts) for p in orchestrator.pools()]
    pools.sort(key=lambda e: e["pool_id"])

    data: Dict[str, Any] = {
        "version": int(version),
        "timestamp": ts,
        "orchestrator": orchestrator.address,
        "owner": orchestrator.owner,
        "params": orchestrator.params.to_dict(),
        "rounds": rounds,
        "pools": pools,
        "funding": _balance_entries(orchestrator.ledger),
        "event_count": len(orchestrator.events),
    }
    return EngineSnapshot(version=version, data=data)
