"""
Command shell over a ``RoundOrchestrator``.

A command is a JSON-like mapping ``{"op": <name>, ...fields}``. ``apply_command``
parses it, runs the matching engine operation and returns a ``CommandResult``;
engine errors never escape, they come back as ``ok=False`` with the error's
category ``code`` and ``reason`` slug. Engine operations are all-or-nothing,
so a failed command leaves the orchestrator unchanged.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional

from ..core.errors import EngineError
from ..core.orchestrator import RoundOrchestrator

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommandResult:
    ok: bool
    value: Any = None
    error: Optional[str] = None
    code: Optional[str] = None
    reason: Optional[str] = None


def _require_str(value: Any, *, name: str, max_len: int = 4096) -> str:
    if not isinstance(value, str):
        raise ValueError(f"{name} must be a string")
    if not value:
        raise ValueError(f"{name} must be non-empty")
    if len(value) > max_len:
        raise ValueError(f"{name} too large")
    return value


def _optional_str(value: Any, *, name: str, max_len: int = 4096) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"{name} must be a string")
    if len(value) > max_len:
        raise ValueError(f"{name} too large")
    return value


def _require_int(value: Any, *, name: str) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValueError(f"{name} must be an int")
    return int(value)


def _require_bool(value: Any, *, name: str) -> bool:
    if not isinstance(value, bool):
        raise ValueError(f"{name} must be a bool")
    return value


def _op_fund(orch: RoundOrchestrator, cmd: Mapping) -> Any:
    return orch.fund(_require_str(cmd.get("account"), name="account"), _require_int(cmd.get("amount"), name="amount"))


def _op_create_pool(orch: RoundOrchestrator, cmd: Mapping) -> Any:
    return orch.create_pool(
        _require_str(cmd.get("creator"), name="creator"),
        _require_int(cmd.get("token_amount"), name="token_amount"),
        _require_int(cmd.get("funding_amount"), name="funding_amount"),
        name=_optional_str(cmd.get("name"), name="name", max_len=256),
        symbol=_optional_str(cmd.get("symbol"), name="symbol", max_len=64),
        image_uri=_optional_str(cmd.get("image_uri"), name="image_uri"),
    )


def _op_swap(orch: RoundOrchestrator, cmd: Mapping) -> Any:
    return orch.swap(
        _require_str(cmd.get("pool"), name="pool"),
        _require_str(cmd.get("trader"), name="trader"),
        _require_int(cmd.get("amount_in"), name="amount_in"),
        _require_bool(cmd.get("buy_token"), name="buy_token"),
    )


def _op_liquidate_pool(orch: RoundOrchestrator, cmd: Mapping) -> Any:
    return orch.liquidate_pool(_require_str(cmd.get("pool"), name="pool"))


def _op_start_round(orch: RoundOrchestrator, cmd: Mapping) -> Any:
    return orch.start_round(_require_int(cmd.get("duration"), name="duration"))


def _op_settle_round(orch: RoundOrchestrator, cmd: Mapping) -> Any:
    return orch.settle_round()


def _op_settle_round_early(orch: RoundOrchestrator, cmd: Mapping) -> Any:
    return orch.settle_round_early(_require_str(cmd.get("caller"), name="caller"))


def _curve_for(orch: RoundOrchestrator, cmd: Mapping):
    round_id = cmd.get("round_id")
    if round_id is None:
        return orch.current_round.curve
    return orch.round(_require_int(round_id, name="round_id")).curve


def _op_mint_reward(orch: RoundOrchestrator, cmd: Mapping) -> Any:
    return _curve_for(orch, cmd).mint_for(
        _require_str(cmd.get("account"), name="account"),
        _require_int(cmd.get("funding_in"), name="funding_in"),
    )


def _op_burn_reward(orch: RoundOrchestrator, cmd: Mapping) -> Any:
    return _curve_for(orch, cmd).burn_for(
        _require_str(cmd.get("account"), name="account"),
        _require_int(cmd.get("amount"), name="amount"),
    )


_OPS: Dict[str, Callable[[RoundOrchestrator, Mapping], Any]] = {
    "fund": _op_fund,
    "create_pool": _op_create_pool,
    "swap": _op_swap,
    "liquidate_pool": _op_liquidate_pool,
    "start_round": _op_start_round,
    "settle_round": _op_settle_round,
    "settle_round_early": _op_settle_round_early,
    "mint_reward": _op_mint_reward,
    "burn_reward": _op_burn_reward,
}

SUPPORTED_OPS = tuple(sorted(_OPS))


def apply_command(orch: RoundOrchestrator, command: Any) -> CommandResult:
    if not isinstance(command, Mapping):
        return CommandResult(ok=False, error="command must be an object", code="INVALID_INPUT", reason="bad_command")
    op = command.get("op")
    handler = _OPS.get(op) if isinstance(op, str) else None
    if handler is None:
        return CommandResult(ok=False, error=f"unsupported op: {op!r}", code="INVALID_INPUT", reason="unknown_op")
    try:
        value = handler(orch, command)
    except EngineError as exc:
        log.debug(f"Command {op} rejected: {exc}")
        return CommandResult(ok=False, error=str(exc), code=exc.code, reason=exc.reason)
    except (TypeError, ValueError) as exc:
        return CommandResult(ok=False, error=str(exc), code="INVALID_INPUT", reason="bad_field")
    return CommandResult(ok=True, value=value)


def apply_commands(orch: RoundOrchestrator, commands: Iterable[Any], *, stop_on_error: bool = False) -> List[CommandResult]:
    """Apply commands in order; with ``stop_on_error`` the first failure ends the batch."""
    results: List[CommandResult] = []
    for command in commands:
        result = apply_command(orch, command)
        results.append(result)
        if stop_on_error and not result.ok:
            break
    return results
