# [TESTER] v1

from __future__ import annotations

import pytest

from roundlbp.core.clock import ManualClock
from roundlbp.core.errors import (
    InsufficientBalanceError,
    InvalidInputError,
    InvalidStateError,
    UnauthorizedError,
)
from roundlbp.core.events import EventKind
from roundlbp.core.fixed_point import BPS, ONE
from roundlbp.core.orchestrator import RoundOrchestrator, RoundStatus
from roundlbp.core.params import DAY, HOUR, EngineParams
from roundlbp.core.pool import PoolStatus

OWNER = "0x" + "01" * 20
CREATORS = ["0x" + "a1" * 20, "0x" + "a2" * 20, "0x" + "a3" * 20]
BOB = "0x" + "bb" * 20
CAROL = "0x" + "cc" * 20
DAVE = "0x" + "dd" * 20
T0 = 1_700_000_000


def _engine():
    clock = ManualClock(T0)
    orch = RoundOrchestrator(owner=OWNER, params=EngineParams(swap_fee_bps=0), clock=clock)
    for acct in CREATORS:
        orch.fund(acct, ONE)
    for acct in (BOB, CAROL, DAVE):
        orch.fund(acct, 10 * ONE)
    return orch, clock


def _three_pools(orch):
    return [orch.create_pool(c, 10_000 * ONE, ONE, symbol=f"P{i}") for i, c in enumerate(CREATORS)]


def test_first_round_opens_on_construction() -> None:
    orch, _clock = _engine()
    rnd = orch.current_round
    assert rnd.round_id == 1
    assert rnd.start_time == T0
    assert rnd.end_time == T0 + DAY
    assert rnd.status is RoundStatus.OPEN
    first = list(orch.events)[0]
    assert first.kind is EventKind.ROUND_STARTED and first.seq == 0


def test_create_pool_registers_in_round() -> None:
    orch, _clock = _engine()
    pids = _three_pools(orch)
    assert orch.get_round_pools() == pids
    assert len(set(pids)) == 3
    assert orch.pool_round(pids[0]) == 1
    assert orch.pool_creator(pids[2]) == CREATORS[2]
    assert orch.funding_balance(CREATORS[0]) == 0
    assert orch.funding_balance(pids[0]) == ONE
    ev = orch.events.last(EventKind.POOL_CREATED)
    assert ev["pool"] == pids[2] and ev["symbol"] == "P2"


def test_create_pool_validation() -> None:
    orch, clock = _engine()
    with pytest.raises(InvalidInputError):
        orch.create_pool(CREATORS[0], 10_000 * ONE, 10**13)
    with pytest.raises(InvalidInputError):
        orch.create_pool(CREATORS[0], 10_000 * ONE, 101 * ONE)
    with pytest.raises(InvalidInputError):
        orch.create_pool(CREATORS[0], 0, ONE)
    with pytest.raises(InsufficientBalanceError):
        orch.create_pool("0x" + "99" * 20, 10_000 * ONE, ONE)
    clock.advance(DAY)
    with pytest.raises(InvalidStateError) as exc:
        orch.create_pool(CREATORS[0], 10_000 * ONE, ONE)
    assert exc.value.reason == "round_ended"
    assert orch.get_round_pools() == []


def test_three_pool_settlement_scenario() -> None:
    orch, clock = _engine()
    p1, p2, p3 = _three_pools(orch)
    orch.swap(p1, BOB, ONE // 5, True)
    carol_tokens = orch.swap(p3, CAROL, ONE // 2, True)
    dave_tokens = orch.swap(p3, DAVE, 3 * ONE // 10, True)
    assert orch.get_owned_supply(p3) > orch.get_owned_supply(p1) > orch.get_owned_supply(p2) == 0

    plan = orch.plan_settlement()
    assert plan.winner == p3
    assert plan.losers == [p1, p2]

    clock.advance(DAY)
    winner = orch.settle_round()
    assert winner == p3

    rnd = orch.round(1)
    curve = rnd.curve
    assert rnd.settled and rnd.winner == p3 and rnd.settled_at == T0 + DAY
    assert orch.pool(p1).status is PoolStatus.LIQUIDATED
    assert orch.pool(p2).status is PoolStatus.LIQUIDATED
    assert orch.pool(p3).status is PoolStatus.SETTLED
    assert all(orch.pool(p).funding_reserve == 0 for p in (p1, p2, p3))

    # 1.2 + 1.0 + 1.8 units of funding: sqrt(1e30 + 2 * 1e12 * 4e18) = 3e15 exactly.
    assert curve.bonus_pool == 0
    assert curve.funding_held == 4 * ONE
    assert rnd.total_reward == 2_000 * ONE

    owned = carol_tokens + dave_tokens
    carol_share = carol_tokens * BPS // owned
    assert curve.balance_of(CAROL) == 2_000 * ONE * carol_share // BPS
    assert curve.balance_of(DAVE) == 2_000 * ONE * (BPS - carol_share) // BPS
    assert curve.balance_of(BOB) == 0

    settled = orch.events.last(EventKind.ROUND_SETTLED)
    assert settled["winner"] == p3
    assert settled["liquidated"] == [p1, p2]


def test_settle_twice_fails() -> None:
    orch, clock = _engine()
    pid = orch.create_pool(CREATORS[0], 10_000 * ONE, ONE)
    orch.swap(pid, BOB, ONE, True)
    clock.advance(DAY)
    orch.settle_round()

    def _state():
        curve = orch.current_round.curve
        return (
            [(p.token_reserve, p.funding_reserve, p.status) for p in orch.pools()],
            curve.total_supply,
            curve.bonus_pool,
            curve.balances().get_all_balances(),
            orch.ledger.get_all_balances(),
            orch.ledger.total,
            len(orch.events),
        )

    before = _state()
    with pytest.raises(InvalidStateError) as exc:
        orch.settle_round()
    assert exc.value.reason == "round_settled"
    assert _state() == before
    with pytest.raises(InvalidStateError):
        orch.liquidate_pool(pid)


def test_settle_before_end_fails() -> None:
    orch, clock = _engine()
    clock.advance(DAY - 1)
    with pytest.raises(InvalidStateError) as exc:
        orch.settle_round()
    assert exc.value.reason == "round_not_ended"


def test_round_without_owned_supply_has_no_winner() -> None:
    orch, clock = _engine()
    p1, p2, _p3 = _three_pools(orch)
    clock.advance(DAY)
    assert orch.settle_round() is None

    rnd = orch.round(1)
    assert rnd.settled and rnd.winner is None and rnd.total_reward == 0
    assert all(orch.pool(p).liquidated for p in rnd.pool_ids)
    # The liquidated funding is released into the curve reserve, not parked.
    assert rnd.curve.bonus_pool == 0
    assert rnd.curve.reserve == rnd.curve.funding_held == 3 * ONE
    assert rnd.curve.total_supply == 0
    assert orch.events.of_kind(EventKind.BONUS_DISTRIBUTED) == []
    assert orch.events.last(EventKind.BONUS_RELEASED)["amount"] == 3 * ONE


def test_seller_can_burn_after_a_round_without_winner() -> None:
    orch, clock = _engine()
    pid = orch.create_pool(CREATORS[0], 10_000 * ONE, ONE)
    bought = orch.swap(pid, BOB, ONE, True)
    reward = orch.swap(pid, BOB, bought, False)
    clock.advance(DAY)
    assert orch.settle_round() is None

    curve = orch.round(1).curve
    assert curve.bonus_pool == 0
    paid = curve.burn_for(BOB, reward)
    assert paid > 0
    assert curve.total_supply == 0
    assert curve.reserve >= 0


def test_winner_holders_can_burn_their_whole_reward() -> None:
    orch, clock = _engine()
    pid = orch.create_pool(CREATORS[0], 10_000 * ONE, ONE)
    orch.swap(pid, BOB, ONE, True)
    clock.advance(DAY)
    orch.settle_round()

    curve = orch.round(1).curve
    reward = curve.balance_of(BOB)
    assert reward == orch.round(1).total_reward
    assert curve.quote_burn(reward) <= curve.reserve
    paid = curve.burn_for(BOB, reward)
    assert 0 < paid <= 2 * ONE
    assert orch.funding_balance(curve.address) == 2 * ONE - paid


def test_start_round_guards_and_auto_settle() -> None:
    orch, clock = _engine()
    pid = orch.create_pool(CREATORS[0], 10_000 * ONE, ONE)
    orch.swap(pid, BOB, ONE, True)

    with pytest.raises(InvalidInputError):
        orch.start_round(60)
    with pytest.raises(InvalidInputError):
        orch.start_round(31 * DAY)
    with pytest.raises(InvalidStateError) as exc:
        orch.start_round(DAY)
    assert exc.value.reason == "round_not_ended"

    clock.advance(DAY)
    assert orch.start_round(HOUR) == 2

    first = orch.round(1)
    assert first.settled and first.winner == pid
    second = orch.current_round
    assert second.round_id == 2
    assert second.start_time == T0 + DAY
    assert second.end_time == T0 + DAY + HOUR
    assert second.curve is not first.curve
    assert orch.get_round_pools() == []
    assert orch.get_round_pools(1) == [pid]

    new_pid = orch.create_pool(CREATORS[1], 10_000 * ONE, ONE)
    assert orch.pool_round(new_pid) == 2


def test_early_settlement_is_owner_only() -> None:
    orch, clock = _engine()
    pid = orch.create_pool(CREATORS[0], 10_000 * ONE, ONE)
    orch.swap(pid, BOB, ONE, True)

    with pytest.raises(UnauthorizedError):
        orch.settle_round_early(BOB)
    assert not orch.current_round.settled

    assert orch.settle_round_early(OWNER) == pid
    curve = orch.current_round.curve
    rnd = orch.current_round
    assert curve.balance_of(BOB) == curve.total_supply == rnd.total_reward > 0

    with pytest.raises(InvalidStateError) as exc:
        orch.create_pool(CREATORS[1], 10_000 * ONE, ONE)
    assert exc.value.reason == "round_settled"
    # A settled round still runs to its end time before the next one opens.
    with pytest.raises(InvalidStateError):
        orch.start_round(DAY)
    clock.advance(DAY)
    assert orch.start_round(DAY) == 2


def test_funding_is_conserved_across_a_round() -> None:
    orch, clock = _engine()
    funded = orch.ledger.total
    p1, p2, p3 = _three_pools(orch)
    orch.swap(p1, BOB, ONE, True)
    sold = orch.pool(p1).token.balance_of(BOB) // 3
    orch.swap(p1, BOB, sold, False)
    orch.swap(p3, CAROL, 2 * ONE, True)

    def _check() -> None:
        assert orch.ledger.total == funded
        for p in orch.pools():
            assert orch.funding_balance(p.pool_id) == p.funding_reserve
        curve = orch.current_round.curve
        assert orch.funding_balance(curve.address) == curve.reserve + curve.bonus_pool

    _check()
    clock.advance(DAY)
    orch.settle_round()
    _check()
    curve = orch.round(1).curve
    paid = curve.burn_for(BOB, curve.balance_of(BOB) // 2)
    assert paid > 0
    _check()
