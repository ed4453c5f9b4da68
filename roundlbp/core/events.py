"""
Engine events.

Every successful state change appends one or more events to the shared
``EventLog``. Payloads carry ids, participants, amounts and the post-state
reserves / supplies, so an external indexer can materialize pools, balances
and rounds from the log alone (see ``integration.projection``).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, unique
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Optional

from ..state.canonical import canonical_json_bytes


@unique
class EventKind(Enum):
    POOL_CREATED = "PoolCreated"
    ROUND_STARTED = "RoundStarted"
    ROUND_SETTLED = "RoundSettled"
    POOL_LIQUIDATED = "PoolLiquidated"
    SWAP_EXECUTED = "SwapExecuted"
    REWARD_MINTED = "RewardMinted"
    REWARD_BURNED = "RewardBurned"
    BONUS_DEPOSITED = "BonusDeposited"
    BONUS_DISTRIBUTED = "BonusDistributed"
    BONUS_RELEASED = "BonusReleased"


@dataclass(frozen=True)
class EngineEvent:
    seq: int
    kind: EventKind
    round_id: Optional[int]
    timestamp: int
    payload: Mapping[str, Any]

    def __getitem__(self, key: str) -> Any:
        return self.payload[key]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "seq": self.seq,
            "kind": self.kind.value,
            "round_id": self.round_id,
            "timestamp": self.timestamp,
            "payload": dict(self.payload),
        }


class EventLog:
    """Append-only, totally ordered event sink."""

    def __init__(self) -> None:
        self._events: List[EngineEvent] = []

    def emit(self, kind: EventKind, *, round_id: Optional[int], timestamp: int, **payload: Any) -> EngineEvent:
        event = EngineEvent(
            seq=len(self._events),
            kind=kind,
            round_id=round_id,
            timestamp=timestamp,
            payload=MappingProxyType(dict(payload)),
        )
        self._events.append(event)
        return event

    def of_kind(self, kind: EventKind) -> List[EngineEvent]:
        return [e for e in self._events if e.kind is kind]

    def last(self, kind: Optional[EventKind] = None) -> Optional[EngineEvent]:
        for event in reversed(self._events):
            if kind is None or event.kind is kind:
                return event
        return None

    def to_jsonl(self) -> str:
        """One canonical JSON object per line, in emission order."""
        return "".join(canonical_json_bytes(e.to_dict()).decode("utf-8") + "\n" for e in self._events)

    def __iter__(self) -> Iterator[EngineEvent]:
        return iter(list(self._events))

    def __len__(self) -> int:
        return len(self._events)
