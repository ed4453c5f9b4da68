"""
Round-scoped reward token on a linear bonding curve.

Price law (funding per reward token, 1e18 scale):

    price(supply) = base_price + slope * supply / 1e18

Minting ``m`` tokens at supply ``s`` costs the integral of the price over
``[s, s + m]``. Solving that for ``m`` gives

    m = 1e18 * (sqrt(b^2 + 2 * slope * funding) - b) / slope,   b = price(s)

with ``b`` rounded up and a floor (Babylonian) square root, so the funding
paid always covers the integral over the minted range. Burns pay the mean of
the floored end prices, never more than the integral over the burned range,
so the reserve always covers every outstanding token. A flat curve
(``slope == 0``) solves linearly: ``funding * 1e18 / b``.

Funding custody lives in the shared funding ledger under the curve's address.
The bonus pool is the part of that balance deposited by liquidated / settled
pools and not yet distributed; burns may only pay out of the rest.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from ..state.balances import Address, Amount, BalanceTable
from .clock import Clock
from .errors import (
    ArithmeticGuardError,
    InsufficientBalanceError,
    InsufficientLiquidityError,
    InvalidInputError,
    InvalidStateError,
)
from .events import EventKind, EventLog
from .fixed_point import BPS, ONE, babylonian_sqrt
from .guards import ReentrancyGuard, SettlementAuthority, require_authority

log = logging.getLogger(__name__)


def curve_price(supply: int, base_price: int, slope: int) -> int:
    return base_price + (slope * supply) // ONE


def solve_mint(funding_in: int, supply: int, base_price: int, slope: int) -> int:
    """Reward tokens bought by ``funding_in`` at ``supply`` (floored)."""
    b = base_price - (-(slope * supply) // ONE)
    if b <= 0:
        raise ArithmeticGuardError("zero_price", "curve price is zero")
    if slope == 0:
        return (funding_in * ONE) // b
    root = babylonian_sqrt(b * b + 2 * slope * funding_in)
    return ((root - b) * ONE) // slope


def burn_payout(amount: int, supply: int, base_price: int, slope: int) -> int:
    """Funding returned for burning ``amount`` at ``supply``: amount times the mean of both end prices."""
    p_before = curve_price(supply, base_price, slope)
    p_after = curve_price(supply - amount, base_price, slope)
    return (amount * ((p_before + p_after) // 2)) // ONE


class RewardCurve:
    def __init__(
        self,
        curve_id: Address,
        *,
        round_id: int,
        base_price: int,
        slope: int,
        ledger: BalanceTable,
        authority: SettlementAuthority,
        events: EventLog,
        clock: Clock,
    ) -> None:
        if base_price <= 0:
            raise InvalidInputError("base_price", f"must be positive: {base_price}")
        if slope < 0:
            raise InvalidInputError("slope", f"must be non-negative: {slope}")
        self.curve_id = curve_id
        self.round_id = round_id
        self.base_price = base_price
        self.slope = slope
        self._ledger = ledger
        self._authority = authority
        self._events = events
        self._clock = clock
        self._balances = BalanceTable()
        self._total_supply = 0
        self._bonus_pool = 0
        self._guard = ReentrancyGuard(f"reward_curve:{curve_id}")

    @property
    def address(self) -> Address:
        return self.curve_id

    @property
    def total_supply(self) -> Amount:
        return self._total_supply

    @property
    def bonus_pool(self) -> Amount:
        return self._bonus_pool

    @property
    def funding_held(self) -> Amount:
        return self._ledger.get(self.curve_id)

    @property
    def reserve(self) -> Amount:
        """Funding backing the curve itself (held funding minus the bonus pool)."""
        return self.funding_held - self._bonus_pool

    def balance_of(self, account: Address) -> Amount:
        return self._balances.get(account)

    def balances(self) -> BalanceTable:
        return self._balances

    def current_price(self) -> int:
        return curve_price(self._total_supply, self.base_price, self.slope)

    # ------------------------------------------------------------------
    # Read-only quotes
    # ------------------------------------------------------------------

    def quote_mint(self, funding_in: Amount) -> Amount:
        if funding_in <= 0:
            raise InvalidInputError("funding_in", f"must be positive: {funding_in}")
        minted = solve_mint(funding_in, self._total_supply, self.base_price, self.slope)
        if minted <= 0:
            raise InvalidInputError("amount_too_small", f"funding {funding_in} mints nothing")
        return minted

    def quote_burn(self, amount: Amount) -> Amount:
        if amount <= 0:
            raise InvalidInputError("amount", f"burn amount must be positive: {amount}")
        if amount > self._total_supply:
            raise InsufficientBalanceError("exceeds_supply", f"{amount} > supply {self._total_supply}")
        funding_out = burn_payout(amount, self._total_supply, self.base_price, self.slope)
        if funding_out <= 0:
            raise InvalidInputError("amount_too_small", f"burning {amount} pays nothing")
        return funding_out

    # ------------------------------------------------------------------
    # State-changing operations
    # ------------------------------------------------------------------

    def mint_for(self, recipient: Address, funding_in: Amount, *, payer: Optional[Address] = None) -> Amount:
        """Move ``funding_in`` from ``payer`` (default: recipient) into the curve and mint to ``recipient``."""
        with self._guard:
            now = self._clock.now()
            payer = recipient if payer is None else payer
            minted = self.quote_mint(funding_in)
            available = self._ledger.get(payer)
            if available < funding_in:
                raise InsufficientBalanceError("insufficient_funding", f"{payer} holds {available} < {funding_in}")

            self._ledger.transfer(payer, self.curve_id, funding_in)
            self._balances.add(recipient, minted)
            self._total_supply += minted

            self._events.emit(
                EventKind.REWARD_MINTED,
                round_id=self.round_id,
                timestamp=now,
                curve=self.curve_id,
                recipient=recipient,
                payer=payer,
                funding_in=funding_in,
                amount=minted,
                total_supply=self._total_supply,
                price=self.current_price(),
            )
            return minted

    def burn_for(self, account: Address, amount: Amount) -> Amount:
        """Burn ``amount`` of ``account``'s reward tokens for funding out of the curve reserve."""
        with self._guard:
            now = self._clock.now()
            if amount <= 0:
                raise InvalidInputError("amount", f"burn amount must be positive: {amount}")
            balance = self._balances.get(account)
            if balance < amount:
                raise InsufficientBalanceError("insufficient_balance", f"{account} holds {balance} < {amount}")
            funding_out = self.quote_burn(amount)
            if funding_out > self.reserve:
                raise InsufficientLiquidityError(
                    "insufficient_reserve", f"payout {funding_out} > reserve {self.reserve}"
                )

            self._balances.subtract(account, amount)
            self._total_supply -= amount
            self._ledger.transfer(self.curve_id, account, funding_out)

            self._events.emit(
                EventKind.REWARD_BURNED,
                round_id=self.round_id,
                timestamp=now,
                curve=self.curve_id,
                account=account,
                amount=amount,
                funding_out=funding_out,
                total_supply=self._total_supply,
                price=self.current_price(),
            )
            return funding_out

    def deposit_bonus(self, amount: Amount, *, payer: Address) -> None:
        """Segregate ``amount`` of funding as reward capital; price parameters are untouched."""
        with self._guard:
            now = self._clock.now()
            if amount <= 0:
                raise InvalidInputError("amount", f"bonus deposit must be positive: {amount}")
            available = self._ledger.get(payer)
            if available < amount:
                raise InsufficientBalanceError("insufficient_funding", f"{payer} holds {available} < {amount}")

            self._ledger.transfer(payer, self.curve_id, amount)
            self._bonus_pool += amount

            self._events.emit(
                EventKind.BONUS_DEPOSITED,
                round_id=self.round_id,
                timestamp=now,
                curve=self.curve_id,
                payer=payer,
                amount=amount,
                bonus_pool=self._bonus_pool,
            )

    def distribute(
        self,
        winners: Sequence[Address],
        shares: Sequence[int],
        authority: SettlementAuthority,
    ) -> Amount:
        """
        Convert the whole bonus pool into reward tokens for ``winners``.

        ``shares`` are basis points. The funding already sits in the curve, so
        nothing moves on the ledger. Rounding dust is not reallocated; the
        bonus pool is zeroed regardless.
        """
        require_authority(self._authority, authority, action="distribute")
        with self._guard:
            now = self._clock.now()
            if len(winners) != len(shares):
                raise InvalidInputError("length_mismatch", f"{len(winners)} winners, {len(shares)} shares")
            if not winners:
                raise InvalidInputError("no_winners", "winner list is empty")
            if any(s < 0 for s in shares) or sum(shares) > BPS:
                raise InvalidInputError("shares", f"shares must be non-negative and sum to at most {BPS}")
            if self._bonus_pool == 0:
                raise InvalidStateError("empty_bonus_pool", "nothing to distribute")
            total_reward = self.quote_mint(self._bonus_pool)

            amounts: List[int] = [(total_reward * s) // BPS for s in shares]
            for winner, amount in zip(winners, amounts):
                if amount > 0:
                    self._balances.add(winner, amount)
            minted = sum(amounts)
            self._total_supply += minted
            bonus_funding = self._bonus_pool
            self._bonus_pool = 0

            self._events.emit(
                EventKind.BONUS_DISTRIBUTED,
                round_id=self.round_id,
                timestamp=now,
                curve=self.curve_id,
                bonus_funding=bonus_funding,
                total_reward=total_reward,
                minted=minted,
                recipients=list(winners),
                amounts=amounts,
                total_supply=self._total_supply,
            )
            log.info(
                f"Round {self.round_id}: distributed {minted} reward units for {bonus_funding} funding "
                f"to {len(winners)} holders"
            )
            return minted

    def release_bonus(self, authority: SettlementAuthority) -> Amount:
        """
        Fold an undistributed bonus pool into the curve reserve.

        Used when a round settles without a winner: the liquidated funding
        then backs burns instead of sitting idle. Returns the amount released.
        """
        require_authority(self._authority, authority, action="release_bonus")
        with self._guard:
            now = self._clock.now()
            amount = self._bonus_pool
            if amount == 0:
                return 0
            self._bonus_pool = 0

            self._events.emit(
                EventKind.BONUS_RELEASED,
                round_id=self.round_id,
                timestamp=now,
                curve=self.curve_id,
                amount=amount,
                reserve=self.reserve,
            )
            return amount

    def __repr__(self) -> str:
        return (
            f"RewardCurve(round={self.round_id}, supply={self._total_supply}, "
            f"bonus_pool={self._bonus_pool}, reserve={self.reserve})"
        )
