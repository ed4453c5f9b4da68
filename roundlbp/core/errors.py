"""Exception types for the round engine.

Every engine failure is one of six categories. Each exception carries a
category ``code`` and a machine-checkable ``reason`` slug (e.g.
``"pool_settled"``). Operations check all preconditions before their first
write, so a raised error always leaves state untouched.

``integration.commands`` converts these into ``CommandResult`` rejections for
callers that prefer results over exceptions.
"""

from __future__ import annotations


class EngineError(Exception):
    """Base class for all engine rejections."""

    code: str = "ENGINE_ERROR"

    def __init__(self, reason: str, message: str | None = None) -> None:
        self.reason = reason
        super().__init__(f"{reason}: {message}" if message else reason)


class InvalidInputError(EngineError):
    """Zero, negative or out-of-range amount / duration."""

    code = "INVALID_INPUT"


class InvalidStateError(EngineError):
    """Operation attempted against a terminal pool or a round in the wrong phase."""

    code = "INVALID_STATE"


class ReentrancyError(InvalidStateError):
    """A public call re-entered the same pool or curve instance."""

    def __init__(self, target: str) -> None:
        super().__init__("reentrant_call", target)


class InsufficientLiquidityError(EngineError):
    """Swap / burn output is zero or exceeds what the reserve can pay."""

    code = "INSUFFICIENT_LIQUIDITY"


class InsufficientBalanceError(EngineError):
    """Transfer, burn or payment exceeds the holder's balance."""

    code = "INSUFFICIENT_BALANCE"


class UnauthorizedError(EngineError):
    """Orchestrator-only transition called without the settlement authority."""

    code = "UNAUTHORIZED"


class ArithmeticGuardError(EngineError):
    """Division by zero or an out-of-domain argument in fixed-point math."""

    code = "ARITHMETIC_GUARD"
