# [TESTER] v1

from __future__ import annotations

import pytest

from roundlbp.core.clock import ManualClock
from roundlbp.core.errors import (
    InsufficientBalanceError,
    InvalidInputError,
    InvalidStateError,
    ReentrancyError,
    UnauthorizedError,
)
from roundlbp.core.events import EventKind
from roundlbp.core.fixed_point import BPS, ONE
from roundlbp.core.guards import SettlementAuthority
from roundlbp.core.orchestrator import RoundOrchestrator
from roundlbp.core.params import EngineParams
from roundlbp.core.pool import PoolStatus

OWNER = "0x" + "01" * 20
CREATOR = "0x" + "c0" * 20
BOB = "0x" + "bb" * 20
T0 = 1_700_000_000


def _pool(*, fee_bps: int = 0, token_amount: int = 10_000 * ONE, funding_amount: int = ONE):
    clock = ManualClock(T0)
    orch = RoundOrchestrator(owner=OWNER, params=EngineParams(swap_fee_bps=fee_bps), clock=clock)
    orch.fund(CREATOR, funding_amount)
    orch.fund(BOB, 100 * ONE)
    pool_id = orch.create_pool(CREATOR, token_amount, funding_amount, name="Test", symbol="TST")
    return orch, orch.pool(pool_id), clock


def test_weights_and_price_at_creation() -> None:
    _orch, pool, _clock = _pool()
    assert pool.current_weights() == (9091, 909)
    assert pool.current_price() == pool.initial_price
    assert pool.liquidation_price == pool.initial_price // 10
    assert pool.owned_supply() == 0


def test_buy_half_unit_scenario() -> None:
    orch, pool, _clock = _pool()
    out = orch.swap(pool.pool_id, BOB, ONE // 2, True)

    assert pool.funding_reserve == ONE + ONE // 2
    assert pool.token_reserve == 10_000 * ONE - out
    assert 0 < out < 10_000 * ONE
    assert pool.token.balance_of(BOB) == out
    assert pool.owned_supply() == out
    assert orch.funding_balance(BOB) == 100 * ONE - ONE // 2
    assert orch.funding_balance(pool.pool_id) == pool.funding_reserve


def test_fee_stays_in_pool_reserve() -> None:
    orch, pool, _clock = _pool(fee_bps=50)
    quote = pool.quote_swap(ONE, True)
    out = orch.swap(pool.pool_id, BOB, ONE, True)
    assert out == quote
    assert pool.funding_reserve == 2 * ONE

    _orch0, pool0, _ = _pool(fee_bps=0)
    assert pool0.quote_swap(ONE, True) > out

    ev = orch.events.last(EventKind.SWAP_EXECUTED)
    assert ev["fee"] == ONE * 50 // BPS
    assert ev["funding_reserve"] == pool.funding_reserve


def test_sell_mints_reward_tokens_from_funding_output() -> None:
    orch, pool, _clock = _pool()
    bought = orch.swap(pool.pool_id, BOB, ONE // 2, True)
    curve = orch.current_round.curve
    funding_before = pool.funding_reserve

    quoted = pool.quote_swap(bought // 2, False)
    reward = orch.swap(pool.pool_id, BOB, bought // 2, False)

    assert reward == quoted
    assert curve.balance_of(BOB) == reward
    assert curve.total_supply == reward
    assert pool.token.balance_of(BOB) == bought - bought // 2
    funding_out = funding_before - pool.funding_reserve
    assert funding_out > 0
    assert curve.funding_held == funding_out
    assert orch.funding_balance(pool.pool_id) == pool.funding_reserve
    # Funding is never paid to the seller directly.
    assert orch.funding_balance(BOB) == 100 * ONE - ONE // 2

    ev = orch.events.last(EventKind.SWAP_EXECUTED)
    assert ev["buy_token"] is False
    assert ev["funding_out"] == funding_out
    assert ev["amount_out"] == reward


def test_sell_more_than_balance_is_rejected_without_writes() -> None:
    orch, pool, _clock = _pool()
    bought = orch.swap(pool.pool_id, BOB, ONE // 2, True)
    reserves = (pool.token_reserve, pool.funding_reserve)
    with pytest.raises(InsufficientBalanceError):
        orch.swap(pool.pool_id, BOB, bought + 1, False)
    assert (pool.token_reserve, pool.funding_reserve) == reserves


def test_buy_without_funding_is_rejected() -> None:
    orch, pool, _clock = _pool()
    with pytest.raises(InsufficientBalanceError):
        orch.swap(pool.pool_id, "0x" + "99" * 20, ONE, True)
    with pytest.raises(InvalidInputError):
        orch.swap(pool.pool_id, BOB, 0, True)


def test_liquidation_requires_price_drop() -> None:
    orch, pool, clock = _pool()
    with pytest.raises(InvalidStateError) as exc:
        orch.liquidate_pool(pool.pool_id)
    assert exc.value.reason == "price_above_liquidation"

    # Weight decay alone takes the price below a tenth of the initial price.
    clock.advance(80_000)
    assert pool.current_price() <= pool.liquidation_price
    moved = orch.liquidate_pool(pool.pool_id)

    curve = orch.current_round.curve
    assert moved == ONE
    assert pool.status is PoolStatus.LIQUIDATED
    assert pool.funding_reserve == 0
    assert curve.bonus_pool == ONE
    assert orch.funding_balance(curve.address) == ONE
    assert orch.get_owned_supply(pool.pool_id) == 0

    ev = orch.events.last(EventKind.POOL_LIQUIDATED)
    assert ev["pool"] == pool.pool_id and ev["forced"] is False


def test_terminal_pool_rejects_everything() -> None:
    orch, pool, clock = _pool()
    clock.advance(80_000)
    orch.liquidate_pool(pool.pool_id)
    with pytest.raises(InvalidStateError) as exc:
        orch.swap(pool.pool_id, BOB, ONE, True)
    assert exc.value.reason == "pool_liquidated"
    with pytest.raises(InvalidStateError):
        orch.liquidate_pool(pool.pool_id)
    with pytest.raises(InvalidStateError):
        pool.quote_swap(ONE, True)


def test_orchestrator_only_transitions_reject_foreign_authority() -> None:
    _orch, pool, _clock = _pool()
    with pytest.raises(UnauthorizedError):
        pool.force_liquidate(SettlementAuthority("intruder"))
    with pytest.raises(UnauthorizedError):
        pool.settle_as_winner(SettlementAuthority("intruder"))
    assert pool.status is PoolStatus.ACTIVE


def test_reentrant_call_is_rejected() -> None:
    orch, pool, _clock = _pool()
    with pool._guard:
        with pytest.raises(ReentrancyError):
            orch.swap(pool.pool_id, BOB, ONE, True)
    assert pool.funding_reserve == ONE
    # The guard is released afterwards.
    orch.swap(pool.pool_id, BOB, ONE, True)


def test_preview_shares_sum_to_bps() -> None:
    orch, pool, _clock = _pool()
    carol = "0x" + "cc" * 20
    orch.fund(carol, 10 * ONE)
    orch.swap(pool.pool_id, BOB, ONE, True)
    orch.swap(pool.pool_id, carol, 3 * ONE, True)
    winners, shares = pool.preview_shares()
    assert winners == [BOB, carol]
    assert sum(shares) == BPS
    assert shares[1] > shares[0]
