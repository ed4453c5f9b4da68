# [TESTER] v1

from __future__ import annotations

import random

import pytest

from roundlbp.core.errors import InvalidStateError
from roundlbp.core.fixed_point import BPS, ONE
from roundlbp.core.settlement import compute_holder_shares, select_winner


def test_three_pool_winner_selection() -> None:
    candidates = [("p1", 2_000 * ONE), ("p2", 0), ("p3", 8_000 * ONE)]
    assert select_winner(candidates) == "p3"


def test_ties_go_to_earliest_pool() -> None:
    assert select_winner([("a", 5), ("b", 5), ("c", 4)]) == "a"


def test_no_owned_supply_means_no_winner() -> None:
    assert select_winner([("a", 0), ("b", 0)]) is None
    assert select_winner([]) is None


def test_shares_proportional_with_last_absorbing_remainder() -> None:
    winners, shares = compute_holder_shares([("a", 1), ("b", 1), ("c", 1)], 3)
    assert winners == ["a", "b", "c"]
    assert shares == [3_333, 3_333, 3_334]


def test_share_sum_law_random() -> None:
    rng = random.Random(7)
    for _ in range(200):
        balances = [(f"h{i}", rng.randint(0, 10**24)) for i in range(rng.randint(1, 12))]
        owned = sum(b for _, b in balances)
        if owned == 0:
            continue
        winners, shares = compute_holder_shares(balances, owned)
        assert sum(shares) == BPS
        assert all(s >= 0 for s in shares)
        assert len(winners) == len(shares) == len([b for _, b in balances if b > 0])


def test_zero_balances_are_skipped() -> None:
    winners, shares = compute_holder_shares([("a", 0), ("b", 2), ("c", 0), ("d", 6)], 8)
    assert winners == ["b", "d"]
    assert shares == [2_500, 7_500]


def test_no_positive_holder_raises() -> None:
    with pytest.raises(InvalidStateError):
        compute_holder_shares([("a", 0)], 0)
    with pytest.raises(InvalidStateError):
        compute_holder_shares([("a", 0)], 10)
