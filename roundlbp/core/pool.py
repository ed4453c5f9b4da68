"""
Liquidity-bootstrap pool: one position token against the funding asset.

State machine: ACTIVE -> {SETTLED | LIQUIDATED}, both terminal and mutually
exclusive. Every state-changing method checks all of its preconditions before
the first write and holds the pool's reentrancy guard for its whole duration.

Custody: the pool's funding sits in the shared funding ledger under the pool
address and always equals ``funding_reserve``; its position tokens sit in the
token's own balance table and always equal ``token_reserve``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

from ..state.balances import Address, Amount, BalanceTable
from .clock import Clock
from .errors import InsufficientBalanceError, InsufficientLiquidityError, InvalidStateError
from .events import EventKind, EventLog
from .guards import ReentrancyGuard, SettlementAuthority, require_authority
from .params import EngineParams
from .position_token import PositionToken
from .reward_curve import RewardCurve
from .settlement import compute_holder_shares
from .weighted_math import SwapQuote, current_weights, spot_price, swap_exact_in

log = logging.getLogger(__name__)


class PoolStatus(Enum):
    """Pool status enumeration."""
    ACTIVE = "ACTIVE"
    SETTLED = "SETTLED"
    LIQUIDATED = "LIQUIDATED"


@dataclass(frozen=True)
class PoolMetadata:
    name: str = ""
    symbol: str = ""
    image_uri: str = ""


@dataclass(frozen=True)
class PoolView:
    """Point-in-time pool state (reserves, weights and spot price)."""

    pool_id: Address
    token_reserve: Amount
    funding_reserve: Amount
    weight_token: int
    weight_funding: int
    price: int
    status: PoolStatus


class Pool:
    def __init__(
        self,
        pool_id: Address,
        *,
        round_id: int,
        creator: Address,
        token: PositionToken,
        curve: RewardCurve,
        ledger: BalanceTable,
        authority: SettlementAuthority,
        events: EventLog,
        clock: Clock,
        params: EngineParams,
        created_at: int,
        token_reserve: Amount,
        funding_reserve: Amount,
        metadata: PoolMetadata = PoolMetadata(),
    ) -> None:
        self.pool_id = pool_id
        self.round_id = round_id
        self.creator = creator
        self.token = token
        self.curve = curve
        self.metadata = metadata
        self.fee_bps = params.swap_fee_bps
        self.created_at = created_at
        self._params = params
        self._ledger = ledger
        self._authority = authority
        self._events = events
        self._clock = clock
        self._guard = ReentrancyGuard(f"pool:{pool_id}")

        self.token_reserve = token_reserve
        self.funding_reserve = funding_reserve
        self.status = PoolStatus.ACTIVE

        wt, wf = self.current_weights(created_at)
        self.initial_price = spot_price(token_reserve, funding_reserve, wt, wf)
        self.liquidation_price = self.initial_price // params.liquidation_divisor

    @property
    def address(self) -> Address:
        return self.pool_id

    @property
    def settled(self) -> bool:
        return self.status is PoolStatus.SETTLED

    @property
    def liquidated(self) -> bool:
        return self.status is PoolStatus.LIQUIDATED

    def _now(self, now: Optional[int]) -> int:
        return self._clock.now() if now is None else now

    def _require_active(self) -> None:
        if self.status is PoolStatus.SETTLED:
            raise InvalidStateError("pool_settled", self.pool_id)
        if self.status is PoolStatus.LIQUIDATED:
            raise InvalidStateError("pool_liquidated", self.pool_id)

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def current_weights(self, now: Optional[int] = None) -> Tuple[int, int]:
        return current_weights(
            self._now(now) - self.created_at,
            start_weight=self._params.start_weight_bps,
            decay_timescale=self._params.decay_timescale_seconds,
        )

    def current_price(self, now: Optional[int] = None) -> int:
        wt, wf = self.current_weights(now)
        return spot_price(self.token_reserve, self.funding_reserve, wt, wf)

    def owned_supply(self) -> Amount:
        """Position tokens held outside the pool."""
        return self.token.total_supply - self.token_reserve

    def pool_state(self, now: Optional[int] = None) -> PoolView:
        wt, wf = self.current_weights(now)
        return PoolView(
            pool_id=self.pool_id,
            token_reserve=self.token_reserve,
            funding_reserve=self.funding_reserve,
            weight_token=wt,
            weight_funding=wf,
            price=spot_price(self.token_reserve, self.funding_reserve, wt, wf),
            status=self.status,
        )

    def _quote_leg(self, amount_in: Amount, buy_token: bool, now: int) -> SwapQuote:
        if self.token_reserve == 0 or self.funding_reserve == 0:
            raise InsufficientLiquidityError("empty_reserve", self.pool_id)
        wt, wf = self.current_weights(now)
        if buy_token:
            return swap_exact_in(self.funding_reserve, self.token_reserve, wf, wt, amount_in, self.fee_bps)
        return swap_exact_in(self.token_reserve, self.funding_reserve, wt, wf, amount_in, self.fee_bps)

    def quote_swap(self, amount_in: Amount, buy_token: bool, now: Optional[int] = None) -> Amount:
        """
        What ``swap`` would report right now: position tokens for a buy,
        reward tokens for a sell. Runs the execution math unchanged.
        """
        self._require_active()
        leg = self._quote_leg(amount_in, buy_token, self._now(now))
        if buy_token:
            return leg.amount_out
        return self.curve.quote_mint(leg.amount_out)

    def preview_shares(self) -> Tuple[List[Address], List[int]]:
        """Holder shares (bps) settlement would assign if this pool won now."""
        return compute_holder_shares(self.token.holder_balances(), self.owned_supply())

    # ------------------------------------------------------------------
    # Trading
    # ------------------------------------------------------------------

    def swap(self, trader: Address, amount_in: Amount, buy_token: bool) -> Amount:
        """
        Exact-in swap.

        buy_token=True: ``amount_in`` funding in, position tokens out; returns tokens.
        buy_token=False: ``amount_in`` position tokens in; the funding output is
        minted into reward tokens for the trader; returns the *reward* amount.
        """
        with self._guard:
            now = self._clock.now()
            self._require_active()
            leg = self._quote_leg(amount_in, buy_token, now)

            if buy_token:
                available = self._ledger.get(trader)
                if available < amount_in:
                    raise InsufficientBalanceError("insufficient_funding", f"{trader} holds {available} < {amount_in}")
                self._ledger.transfer(trader, self.pool_id, amount_in)
                self.token.transfer(self.pool_id, trader, leg.amount_out)
                self.funding_reserve = leg.new_reserve_in
                self.token_reserve = leg.new_reserve_out
                reported = leg.amount_out
                funding_out = 0
            else:
                available = self.token.balance_of(trader)
                if available < amount_in:
                    raise InsufficientBalanceError("insufficient_balance", f"{trader} holds {available} < {amount_in}")
                self.curve.quote_mint(leg.amount_out)
                # The curve call moves funding out of the pool first; if it
                # fails nothing here has been written yet.
                reported = self.curve.mint_for(trader, leg.amount_out, payer=self.pool_id)
                self.token.transfer(trader, self.pool_id, amount_in)
                self.token_reserve = leg.new_reserve_in
                self.funding_reserve = leg.new_reserve_out
                funding_out = leg.amount_out

            self._events.emit(
                EventKind.SWAP_EXECUTED,
                round_id=self.round_id,
                timestamp=now,
                pool=self.pool_id,
                trader=trader,
                buy_token=buy_token,
                amount_in=amount_in,
                fee=leg.fee,
                amount_out=reported,
                funding_out=funding_out,
                token_reserve=self.token_reserve,
                funding_reserve=self.funding_reserve,
                trader_token_balance=self.token.balance_of(trader),
                price=self.current_price(now),
            )
            log.debug(
                f"Swap on {self.pool_id[:10]}: trader={trader[:10]} buy={buy_token} "
                f"in={amount_in} out={reported}"
            )
            return reported

    # ------------------------------------------------------------------
    # Terminal transitions
    # ------------------------------------------------------------------

    def liquidate(self) -> Amount:
        """Permissionless liquidation once the spot price is at or below the liquidation price."""
        with self._guard:
            now = self._clock.now()
            self._require_active()
            price = self.current_price(now)
            if price > self.liquidation_price:
                raise InvalidStateError(
                    "price_above_liquidation", f"price {price} > liquidation price {self.liquidation_price}"
                )
            return self._liquidate(now, forced=False)

    def force_liquidate(self, authority: SettlementAuthority) -> Amount:
        """Orchestrator-only liquidation without the price precondition."""
        require_authority(self._authority, authority, action="force_liquidate")
        with self._guard:
            now = self._clock.now()
            self._require_active()
            return self._liquidate(now, forced=True)

    def _liquidate(self, now: int, *, forced: bool) -> Amount:
        amount = self.funding_reserve
        if amount > 0:
            self.curve.deposit_bonus(amount, payer=self.pool_id)
        self.funding_reserve = 0
        self.status = PoolStatus.LIQUIDATED

        self._events.emit(
            EventKind.POOL_LIQUIDATED,
            round_id=self.round_id,
            timestamp=now,
            pool=self.pool_id,
            funding_moved=amount,
            forced=forced,
            token_reserve=self.token_reserve,
            funding_reserve=0,
        )
        log.info(f"Pool {self.pool_id[:10]} liquidated (forced={forced}), {amount} funding to bonus pool")
        return amount

    def settle_as_winner(self, authority: SettlementAuthority) -> Tuple[List[Address], List[int]]:
        """
        Orchestrator-only: freeze the pool as round winner.

        Returns ``(winners, shares)`` where shares are basis points summing to
        exactly 10000; the last winner absorbs the rounding remainder.
        """
        require_authority(self._authority, authority, action="settle_as_winner")
        with self._guard:
            self._require_active()
            winners, shares = self.preview_shares()

            amount = self.funding_reserve
            if amount > 0:
                self.curve.deposit_bonus(amount, payer=self.pool_id)
            self.funding_reserve = 0
            self.status = PoolStatus.SETTLED
            log.info(f"Pool {self.pool_id[:10]} settled as winner with {len(winners)} holders")
            return winners, shares

    def __repr__(self) -> str:
        return (
            f"Pool(pool_id={self.pool_id[:12]}..., round={self.round_id}, "
            f"reserves=({self.token_reserve}, {self.funding_reserve}), status={self.status.value})"
        )
