"""
Append-only holder registry.

An insertion-ordered set: a dict keyed by address gives O(1) membership and
iterates in first-seen order. Entries are never removed, so an address whose
balance later returns to zero stays listed; consumers filter on balance.
"""

from __future__ import annotations

from typing import Dict, Iterator, List

from .balances import Address


class HolderRegistry:
    def __init__(self) -> None:
        self._seen: Dict[Address, None] = {}

    def add(self, account: Address) -> bool:
        """Register account. Returns False if it was already present."""
        if account in self._seen:
            return False
        self._seen[account] = None
        return True

    def __contains__(self, account: object) -> bool:
        return account in self._seen

    def __iter__(self) -> Iterator[Address]:
        return iter(self._seen)

    def __len__(self) -> int:
        return len(self._seen)

    def as_list(self) -> List[Address]:
        return list(self._seen)

    def __repr__(self) -> str:
        return f"HolderRegistry({len(self._seen)} holders)"
