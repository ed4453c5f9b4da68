#!/usr/bin/env python3
"""
Run one full round offline: three pools, buys and a sell, settlement and
a reward burn. Prints the final snapshot commitment.

Usage: python tools/round_offline_demo.py [--config engine.yaml] [-v]
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from roundlbp.core import ManualClock, RoundOrchestrator
from roundlbp.core.params import DAY, ETHER, HOUR
from roundlbp.integration import apply_command, load_engine_params, snapshot_from_engine

log = logging.getLogger("round_offline_demo")

OWNER = "0x" + "00" * 19 + "01"
ALICE = "0x" + "aa" * 20
BOB = "0x" + "bb" * 20
CAROL = "0x" + "cc" * 20


def _run(orch: RoundOrchestrator, **command) -> object:
    result = apply_command(orch, command)
    if not result.ok:
        raise SystemExit(f"[round-demo] FAIL ({command['op']}): {result.code} {result.error}")
    return result.value


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("--config", type=Path, default=None, help="YAML engine parameters")
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    params = load_engine_params(args.config)
    clock = ManualClock(1_700_000_000)
    orch = RoundOrchestrator(owner=OWNER, params=params, clock=clock)

    for account in (ALICE, BOB, CAROL):
        _run(orch, op="fund", account=account, amount=50 * ETHER)

    pools = []
    for creator, symbol in ((ALICE, "ALC"), (BOB, "BOB"), (CAROL, "CRL")):
        pool_id = _run(
            orch,
            op="create_pool",
            creator=creator,
            token_amount=1_000_000 * ETHER,
            funding_amount=ETHER,
            name=f"{symbol} position",
            symbol=symbol,
        )
        pools.append(pool_id)
        log.info(f"pool {symbol}: {pool_id}")

    clock.advance(HOUR)
    _run(orch, op="swap", pool=pools[0], trader=BOB, amount_in=2 * ETHER, buy_token=True)
    _run(orch, op="swap", pool=pools[0], trader=CAROL, amount_in=8 * ETHER, buy_token=True)
    _run(orch, op="swap", pool=pools[2], trader=ALICE, amount_in=ETHER // 2, buy_token=True)

    sold = orch.pool(pools[2]).token.balance_of(ALICE) // 2
    reward = _run(orch, op="swap", pool=pools[2], trader=ALICE, amount_in=sold, buy_token=False)
    log.info(f"alice sold {sold} position units for {reward} reward units")

    clock.advance(DAY)
    winner = _run(orch, op="settle_round")
    rnd = orch.round(1)
    log.info(f"round 1 winner={winner} total_reward={rnd.total_reward}")
    for account, name in ((ALICE, "alice"), (BOB, "bob"), (CAROL, "carol")):
        log.info(f"{name}: reward={rnd.curve.balance_of(account)} funding={orch.funding_balance(account)}")

    burn = rnd.curve.balance_of(ALICE) // 10
    if burn > 0:
        paid = _run(orch, op="burn_reward", account=ALICE, amount=burn, round_id=1)
        log.info(f"alice burned {burn} reward units for {paid} funding")

    _run(orch, op="start_round", duration=DAY)
    snap = snapshot_from_engine(orch)
    print(f"[round-demo] rounds={len(orch.rounds)} events={len(orch.events)}")
    print(f"[round-demo] snapshot commitment={snap.commitment_hex()}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
