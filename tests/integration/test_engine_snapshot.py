# [TESTER] v1

from __future__ import annotations

import pytest

from roundlbp.core.clock import ManualClock
from roundlbp.core.fixed_point import ONE
from roundlbp.core.orchestrator import RoundOrchestrator
from roundlbp.core.params import DAY
from roundlbp.integration.snapshot import snapshot_from_engine

OWNER = "0x" + "01" * 20
ALICE = "0x" + "aa" * 20
BOB = "0x" + "bb" * 20


def _run(fund_order):
    orch = RoundOrchestrator(owner=OWNER, clock=ManualClock(1_000_000))
    for acct in fund_order:
        orch.fund(acct, 5 * ONE)
    pid = orch.create_pool(ALICE, 10_000 * ONE, ONE, name="A", symbol="A")
    orch.swap(pid, BOB, ONE, True)
    return orch, pid


def test_snapshot_is_deterministic_and_order_independent() -> None:
    a, _ = _run([ALICE, BOB])
    b, _ = _run([BOB, ALICE])
    snap_a = snapshot_from_engine(a)
    snap_b = snapshot_from_engine(b)
    assert snap_a.canonical_bytes() == snap_b.canonical_bytes()
    assert snap_a.commitment_hex() == snap_b.commitment_hex()
    assert snap_a.commitment_hex() == "0x" + snap_a.commitment_bytes().hex()


def test_snapshot_contents() -> None:
    orch, pid = _run([ALICE, BOB])
    data = snapshot_from_engine(orch).data
    assert data["version"] == 1
    assert data["params"]["swap_fee_bps"] == 50
    assert [r["round_id"] for r in data["rounds"]] == [1]
    pool = data["pools"][0]
    assert pool["pool_id"] == pid
    assert pool["status"] == "ACTIVE"
    assert pool["holders"] == [BOB]
    assert pool["funding_reserve"] == 2 * ONE
    accounts = [e["account"] for e in data["funding"]]
    assert accounts == sorted(accounts)


def test_snapshot_commitment_changes_with_time() -> None:
    orch, _ = _run([ALICE, BOB])
    before = snapshot_from_engine(orch).commitment_hex()
    orch.clock.advance(DAY // 2)
    assert snapshot_from_engine(orch).commitment_hex() != before


def test_snapshot_rejects_bad_version() -> None:
    orch, _ = _run([ALICE, BOB])
    with pytest.raises(ValueError):
        snapshot_from_engine(orch, version=0)
