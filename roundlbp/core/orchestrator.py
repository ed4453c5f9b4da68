"""
Round orchestrator: the round lifecycle state machine.

Rounds go ``OPEN -> SETTLED``; exactly one round is open at a time and
settled rounds are kept forever. The orchestrator creates every pool and
every reward curve, owns the round registry, and is the only holder of the
``SettlementAuthority`` that pool settlement / forced liquidation and reward
distribution require.

Each public operation reads the clock once, checks all preconditions, then
writes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from ..state.balances import Address, Amount, BalanceTable
from ..state.canonical import derive_address
from .clock import Clock, SystemClock
from .errors import InsufficientBalanceError, InvalidInputError, InvalidStateError, UnauthorizedError
from .events import EventKind, EventLog
from .guards import SettlementAuthority
from .params import EngineParams
from .pool import Pool, PoolMetadata
from .position_token import PositionToken
from .reward_curve import RewardCurve
from .settlement import SettlementPlan, plan_settlement

log = logging.getLogger(__name__)


class RoundStatus(Enum):
    OPEN = "OPEN"
    SETTLED = "SETTLED"


@dataclass
class Round:
    """
    Round record.

    Attributes:
        round_id: Monotonic id, starting at 1
        start_time / duration / end_time: end_time = start_time + duration
        curve: The round's reward curve (owned by the round)
        pool_ids: Pools created during the round, in creation order
        winner: Winning pool id (None until settled, and None for a no-winner round)
    """

    round_id: int
    start_time: int
    duration: int
    curve: RewardCurve
    pool_ids: List[Address] = field(default_factory=list)
    winner: Optional[Address] = None
    settled: bool = False
    settled_at: Optional[int] = None
    total_reward: Amount = 0

    @property
    def end_time(self) -> int:
        return self.start_time + self.duration

    @property
    def status(self) -> RoundStatus:
        return RoundStatus.SETTLED if self.settled else RoundStatus.OPEN


class RoundOrchestrator:
    def __init__(
        self,
        *,
        owner: Address,
        params: EngineParams = EngineParams(),
        clock: Optional[Clock] = None,
        events: Optional[EventLog] = None,
        ledger: Optional[BalanceTable] = None,
    ) -> None:
        self.owner = owner
        self.params = params
        self.address = derive_address("orchestrator", owner)
        self.clock: Clock = clock if clock is not None else SystemClock()
        self.events = events if events is not None else EventLog()
        self.ledger = ledger if ledger is not None else BalanceTable()
        self._authority = SettlementAuthority(self.address)

        self._rounds: List[Round] = []
        self._pools: Dict[Address, Pool] = {}

        self._open_round(self.clock.now(), params.initial_round_duration)

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    @property
    def current_round(self) -> Round:
        return self._rounds[-1]

    @property
    def rounds(self) -> List[Round]:
        return list(self._rounds)

    def round(self, round_id: int) -> Round:
        if not (1 <= round_id <= len(self._rounds)):
            raise InvalidInputError("unknown_round", str(round_id))
        return self._rounds[round_id - 1]

    def pool(self, pool_id: Address) -> Pool:
        pool = self._pools.get(pool_id)
        if pool is None:
            raise InvalidInputError("unknown_pool", pool_id)
        return pool

    def pools(self) -> List[Pool]:
        return list(self._pools.values())

    def pool_round(self, pool_id: Address) -> int:
        return self.pool(pool_id).round_id

    def pool_creator(self, pool_id: Address) -> Address:
        return self.pool(pool_id).creator

    def get_round_pools(self, round_id: Optional[int] = None) -> List[Address]:
        rnd = self.current_round if round_id is None else self.round(round_id)
        return list(rnd.pool_ids)

    def get_owned_supply(self, pool_id: Address) -> Amount:
        pool = self.pool(pool_id)
        if pool.liquidated:
            return 0
        return pool.owned_supply()

    def funding_balance(self, account: Address) -> Amount:
        return self.ledger.get(account)

    # ------------------------------------------------------------------
    # Funding custody
    # ------------------------------------------------------------------

    def fund(self, account: Address, amount: Amount) -> Amount:
        """Credit funding to an account (deposit / faucet). Returns the new balance."""
        if amount <= 0:
            raise InvalidInputError("amount", f"deposit must be positive: {amount}")
        self.ledger.add(account, amount)
        return self.ledger.get(account)

    # ------------------------------------------------------------------
    # Pools
    # ------------------------------------------------------------------

    def create_pool(
        self,
        creator: Address,
        token_amount: Amount,
        funding_amount: Amount,
        *,
        name: str = "",
        symbol: str = "",
        image_uri: str = "",
    ) -> Address:
        """
        Open a position: mint ``token_amount`` position tokens and seed a new
        pool with all of them plus ``funding_amount`` from the creator.
        """
        now = self.clock.now()
        rnd = self.current_round
        p = self.params
        if not (p.min_funding <= funding_amount <= p.max_funding):
            raise InvalidInputError(
                "funding_out_of_range", f"{funding_amount} not in [{p.min_funding}, {p.max_funding}]"
            )
        if token_amount <= 0:
            raise InvalidInputError("token_amount", f"must be positive: {token_amount}")
        if rnd.settled:
            raise InvalidStateError("round_settled", f"round {rnd.round_id}")
        if now >= rnd.end_time:
            raise InvalidStateError("round_ended", f"round {rnd.round_id} ended at {rnd.end_time}")
        available = self.ledger.get(creator)
        if available < funding_amount:
            raise InsufficientBalanceError("insufficient_funding", f"{creator} holds {available} < {funding_amount}")

        pool_id = derive_address("pool", self.address, rnd.round_id, len(rnd.pool_ids), creator)
        token = PositionToken(
            derive_address("position_token", pool_id),
            name=name,
            symbol=symbol,
            total_supply=token_amount,
            minter=self.address,
            pool_address=pool_id,
        )
        token.transfer(self.address, pool_id, token_amount)
        self.ledger.transfer(creator, pool_id, funding_amount)

        pool = Pool(
            pool_id,
            round_id=rnd.round_id,
            creator=creator,
            token=token,
            curve=rnd.curve,
            ledger=self.ledger,
            authority=self._authority,
            events=self.events,
            clock=self.clock,
            params=p,
            created_at=now,
            token_reserve=token_amount,
            funding_reserve=funding_amount,
            metadata=PoolMetadata(name=name, symbol=symbol, image_uri=image_uri),
        )
        self._pools[pool_id] = pool
        rnd.pool_ids.append(pool_id)

        self.events.emit(
            EventKind.POOL_CREATED,
            round_id=rnd.round_id,
            timestamp=now,
            pool=pool_id,
            creator=creator,
            token=token.token_id,
            funding_amount=funding_amount,
            token_supply=token_amount,
            token_reserve=token_amount,
            funding_reserve=funding_amount,
            initial_price=pool.initial_price,
            liquidation_price=pool.liquidation_price,
            fee_bps=pool.fee_bps,
            name=name,
            symbol=symbol,
            image_uri=image_uri,
        )
        log.info(f"Round {rnd.round_id}: pool {pool_id[:10]} created by {creator[:10]} with {funding_amount} funding")
        return pool_id

    def swap(self, pool_id: Address, trader: Address, amount_in: Amount, buy_token: bool) -> Amount:
        return self.pool(pool_id).swap(trader, amount_in, buy_token)

    def liquidate_pool(self, pool_id: Address) -> Amount:
        """Permissionless price-triggered liquidation while the pool's round is unsettled."""
        pool = self.pool(pool_id)
        if self.round(pool.round_id).settled:
            raise InvalidStateError("round_settled", f"round {pool.round_id}")
        return pool.liquidate()

    # ------------------------------------------------------------------
    # Round lifecycle
    # ------------------------------------------------------------------

    def start_round(self, duration: int) -> int:
        """Open the next round once the current one has ended, settling it first if needed."""
        now = self.clock.now()
        p = self.params
        if not (p.min_round_duration <= duration <= p.max_round_duration):
            raise InvalidInputError(
                "duration_out_of_range", f"{duration} not in [{p.min_round_duration}, {p.max_round_duration}]"
            )
        rnd = self.current_round
        if now < rnd.end_time:
            raise InvalidStateError("round_not_ended", f"round {rnd.round_id} ends at {rnd.end_time}")
        if not rnd.settled:
            self._settle(rnd, now)
        return self._open_round(now, duration).round_id

    def settle_round(self) -> Optional[Address]:
        now = self.clock.now()
        rnd = self.current_round
        if rnd.settled:
            raise InvalidStateError("round_settled", f"round {rnd.round_id}")
        if now < rnd.end_time:
            raise InvalidStateError("round_not_ended", f"round {rnd.round_id} ends at {rnd.end_time}")
        return self._settle(rnd, now)

    def settle_round_early(self, caller: Address) -> Optional[Address]:
        """Owner-only settlement before the round's end time."""
        now = self.clock.now()
        if caller != self.owner:
            raise UnauthorizedError("owner_only", "settle_round_early")
        rnd = self.current_round
        if rnd.settled:
            raise InvalidStateError("round_settled", f"round {rnd.round_id}")
        return self._settle(rnd, now)

    def plan_settlement(self, round_id: Optional[int] = None) -> SettlementPlan:
        """Dry-run settlement for a round (no writes)."""
        rnd = self.current_round if round_id is None else self.round(round_id)
        if rnd.settled:
            raise InvalidStateError("round_settled", f"round {rnd.round_id}")
        return plan_settlement(rnd.round_id, [self._pools[pid] for pid in rnd.pool_ids], rnd.curve)

    def _settle(self, rnd: Round, now: int) -> Optional[Address]:
        plan = self.plan_settlement(rnd.round_id)

        minted = 0
        if plan.winner is not None:
            winners, shares = self._pools[plan.winner].settle_as_winner(self._authority)
        for pool_id in plan.losers:
            self._pools[pool_id].force_liquidate(self._authority)
        if plan.winner is not None:
            minted = rnd.curve.distribute(winners, shares, self._authority)
        else:
            released = rnd.curve.release_bonus(self._authority)
            log.warning(
                f"Round {rnd.round_id} settled without a winner; {released} bonus funding released to the curve reserve"
            )

        rnd.winner = plan.winner
        rnd.settled = True
        rnd.settled_at = now
        rnd.total_reward = minted

        self.events.emit(
            EventKind.ROUND_SETTLED,
            round_id=rnd.round_id,
            timestamp=now,
            winner=plan.winner,
            liquidated=list(plan.losers),
            bonus_funding=plan.bonus_after,
            total_reward=minted,
        )
        log.info(f"Round {rnd.round_id} settled, winner={plan.winner}, reward minted={minted}")
        return plan.winner

    def _open_round(self, now: int, duration: int) -> Round:
        round_id = len(self._rounds) + 1
        curve = RewardCurve(
            derive_address("reward_curve", self.address, round_id),
            round_id=round_id,
            base_price=self.params.reward_base_price,
            slope=self.params.reward_slope,
            ledger=self.ledger,
            authority=self._authority,
            events=self.events,
            clock=self.clock,
        )
        rnd = Round(round_id=round_id, start_time=now, duration=duration, curve=curve)
        self._rounds.append(rnd)

        self.events.emit(
            EventKind.ROUND_STARTED,
            round_id=round_id,
            timestamp=now,
            start_time=now,
            duration=duration,
            end_time=rnd.end_time,
            reward_curve=curve.curve_id,
        )
        log.info(f"Round {round_id} started at {now} for {duration}s")
        return rnd
