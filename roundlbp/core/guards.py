"""Call guards: per-instance reentrancy lock and the orchestrator capability."""

from __future__ import annotations

from .errors import ReentrancyError, UnauthorizedError


class ReentrancyGuard:
    """
    Non-reentrant lock scoped to one public call.

    Used as ``with self._guard:``; entering while already held raises
    ``ReentrancyError`` before any state is touched.
    """

    def __init__(self, target: str) -> None:
        self._target = target
        self._entered = False

    @property
    def entered(self) -> bool:
        return self._entered

    def __enter__(self) -> "ReentrancyGuard":
        if self._entered:
            raise ReentrancyError(self._target)
        self._entered = True
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self._entered = False


class SettlementAuthority:
    """
    Capability held only by the orchestrator that created it.

    Pools and reward curves receive a reference at construction and compare by
    identity; any other object (including another orchestrator's authority)
    is rejected.
    """

    __slots__ = ("label",)

    def __init__(self, label: str) -> None:
        self.label = label

    def __repr__(self) -> str:
        return f"SettlementAuthority({self.label})"


def require_authority(expected: SettlementAuthority, presented: object, *, action: str) -> None:
    if presented is not expected:
        raise UnauthorizedError("orchestrator_only", action)
