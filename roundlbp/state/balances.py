"""
Single-asset balance tracking.

Implements BalanceTable[Address] -> Amount. One table per asset: the funding
ledger, each position token and each reward curve own their own instance.
"""

from typing import Dict


# Type aliases
Address = str  # 20-byte hex string (0x...)
Amount = int  # Non-negative integer (arbitrary precision)


class BalanceTable:
    """
    Balance table mapping address -> amount.

    Note: zero balances are removed to keep the table sparse, and dict
    iteration order is insertion order. Callers that hash or serialize
    balances must sort explicitly (see `integration/snapshot.py`).
    """

    def __init__(self):
        self._balances: Dict[Address, Amount] = {}
        self._total: Amount = 0

    def get(self, account: Address) -> Amount:
        """Get balance for account. Returns 0 if not found."""
        return self._balances.get(account, 0)

    def set(self, account: Address, amount: Amount) -> None:
        """
        Set balance for account.

        Raises:
            ValueError: If amount is negative
        """
        if amount < 0:
            raise ValueError(f"Balance cannot be negative: {amount}")
        self._total += amount - self.get(account)
        if amount == 0:
            self._balances.pop(account, None)
        else:
            self._balances[account] = amount

    def add(self, account: Address, delta: Amount) -> None:
        """
        Add delta to balance (delta may be negative).

        Raises:
            ValueError: If resulting balance would be negative
        """
        current = self.get(account)
        new_balance = current + delta
        if new_balance < 0:
            raise ValueError(f"Insufficient balance: {current} + {delta} = {new_balance} < 0")
        self.set(account, new_balance)

    def subtract(self, account: Address, delta: Amount) -> None:
        if delta < 0:
            raise ValueError(f"Delta must be non-negative: {delta}")
        self.add(account, -delta)

    def transfer(self, sender: Address, recipient: Address, amount: Amount) -> None:
        """Move amount between accounts; the debit is checked before either write."""
        if amount < 0:
            raise ValueError(f"Transfer amount must be non-negative: {amount}")
        if self.get(sender) < amount:
            raise ValueError(f"Insufficient balance: {self.get(sender)} < {amount}")
        self.subtract(sender, amount)
        self.add(recipient, amount)

    @property
    def total(self) -> Amount:
        """Sum of all balances."""
        return self._total

    def get_all_balances(self) -> Dict[Address, Amount]:
        return dict(self._balances)

    def __len__(self) -> int:
        return len(self._balances)

    def __repr__(self) -> str:
        return f"BalanceTable({len(self._balances)} entries, total={self._total})"
