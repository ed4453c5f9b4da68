# [TESTER] v1

from __future__ import annotations

import pytest

from roundlbp.core.errors import InsufficientBalanceError, InvalidInputError
from roundlbp.core.position_token import PositionToken

MINTER = "0x" + "01" * 20
POOL = "0x" + "50" * 20
ALICE = "0x" + "aa" * 20
BOB = "0x" + "bb" * 20


def _token(supply: int = 1_000) -> PositionToken:
    token = PositionToken("0x" + "70" * 20, name="Pos", symbol="POS", total_supply=supply, minter=MINTER, pool_address=POOL)
    token.transfer(MINTER, POOL, supply)
    return token


def test_genesis_mint_goes_to_minter_and_registers_nobody() -> None:
    token = _token()
    assert token.total_supply == 1_000
    assert token.balance_of(POOL) == 1_000
    assert token.holders() == []


def test_holders_registered_in_first_seen_order_pool_excluded() -> None:
    token = _token()
    token.transfer(POOL, BOB, 10)
    token.transfer(POOL, ALICE, 20)
    token.transfer(POOL, BOB, 5)
    token.transfer(ALICE, POOL, 20)
    assert token.holders() == [BOB, ALICE]
    # Alice went back to zero: still registered, but not a positive holder.
    assert token.holder_balances() == [(BOB, 15)]


def test_transfer_validation_leaves_balances_untouched() -> None:
    token = _token()
    with pytest.raises(InvalidInputError):
        token.transfer(POOL, ALICE, 0)
    with pytest.raises(InsufficientBalanceError):
        token.transfer(ALICE, BOB, 1)
    assert token.balance_of(POOL) == 1_000
    assert token.holders() == []


def test_supply_must_be_positive() -> None:
    with pytest.raises(InvalidInputError):
        PositionToken("0x" + "70" * 20, name="", symbol="", total_supply=0, minter=MINTER, pool_address=POOL)
