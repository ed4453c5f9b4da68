"""
Position token: fixed-supply fungible asset paired 1:1 with a pool.

The full supply is minted once, at construction, to the minter (the
orchestrator). The holder registry records every non-pool address that goes
from a zero to a positive balance; the genesis mint is not a transfer and
never registers the minter. Settlement walks the registry once.
"""

from __future__ import annotations

from typing import List, Tuple

from ..state.balances import Address, Amount, BalanceTable
from ..state.holders import HolderRegistry
from .errors import InsufficientBalanceError, InvalidInputError


class PositionToken:
    def __init__(
        self,
        token_id: Address,
        *,
        name: str,
        symbol: str,
        total_supply: Amount,
        minter: Address,
        pool_address: Address,
    ) -> None:
        if total_supply <= 0:
            raise InvalidInputError("token_amount", f"supply must be positive: {total_supply}")
        self.token_id = token_id
        self.name = name
        self.symbol = symbol
        self.pool_address = pool_address
        self._total_supply = total_supply
        self._balances = BalanceTable()
        self._balances.set(minter, total_supply)
        self._holders = HolderRegistry()

    @property
    def total_supply(self) -> Amount:
        return self._total_supply

    def balance_of(self, account: Address) -> Amount:
        return self._balances.get(account)

    def transfer(self, sender: Address, recipient: Address, amount: Amount) -> None:
        if amount <= 0:
            raise InvalidInputError("amount", f"transfer amount must be positive: {amount}")
        balance = self._balances.get(sender)
        if balance < amount:
            raise InsufficientBalanceError("insufficient_balance", f"{sender} holds {balance} < {amount}")

        newly_positive = self._balances.get(recipient) == 0
        self._balances.transfer(sender, recipient, amount)
        if newly_positive and recipient != self.pool_address:
            self._holders.add(recipient)

    def holders(self) -> List[Address]:
        """Every address ever registered, in first-seen order (zero balances included)."""
        return self._holders.as_list()

    def holder_balances(self) -> List[Tuple[Address, Amount]]:
        """Registered holders with a positive balance, pool excluded, in registry order."""
        out: List[Tuple[Address, Amount]] = []
        for account in self._holders:
            if account == self.pool_address:
                continue
            balance = self._balances.get(account)
            if balance > 0:
                out.append((account, balance))
        return out

    def balances(self) -> BalanceTable:
        return self._balances

    def __repr__(self) -> str:
        return f"PositionToken({self.symbol or self.token_id[:10]}, supply={self._total_supply})"
