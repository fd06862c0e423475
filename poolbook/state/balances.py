"""
Actor wallet balances: the value-transfer collaborator of the engines.

Implements BalanceTable[Owner, AssetId] -> Amount. Pools hold their custody
inside their own records; this table is where value enters from and leaves
to when an operation moves funds in or out of a pool.
"""

from typing import Dict, Optional, Tuple

from ..core.errors import InsufficientBalance


# Type aliases
Owner = str
AssetId = str
Amount = int  # Non-negative integer


class BalanceTable:
    """
    Balance table mapping (owner, asset) -> amount.

    Zero balances are dropped to keep the table sparse. Callers that need a
    stable order (snapshots) sort keys explicitly.
    """

    def __init__(self):
        self._balances: Dict[Tuple[Owner, AssetId], Amount] = {}

    def get(self, owner: Owner, asset: AssetId) -> Amount:
        """Get balance for (owner, asset). Returns 0 if not found."""
        return self._balances.get((owner, asset), 0)

    def set(self, owner: Owner, asset: AssetId, amount: Amount) -> None:
        """
        Set balance for (owner, asset).

        Raises:
            ValueError: If amount is negative
        """
        if amount < 0:
            raise ValueError(f"Balance cannot be negative: {amount}")
        if amount == 0:
            self._balances.pop((owner, asset), None)
        else:
            self._balances[(owner, asset)] = amount

    def add(self, owner: Owner, asset: AssetId, delta: int) -> None:
        """
        Add delta to balance (delta may be negative).

        Raises:
            InsufficientBalance: If resulting balance would be negative
        """
        current = self.get(owner, asset)
        new_balance = current + delta
        if new_balance < 0:
            raise InsufficientBalance(
                owner=owner, asset=asset, required=-delta, available=current,
            )
        self.set(owner, asset, new_balance)

    def can_apply(self, deltas: Dict[Tuple[Owner, AssetId], int]) -> Optional[Tuple[Owner, AssetId, int]]:
        """
        Check a batch of net deltas without mutating anything.

        Returns:
            The first (owner, asset, shortfall) that would go negative, or None
        """
        for (owner, asset), delta in sorted(deltas.items()):
            current = self.get(owner, asset)
            if current + delta < 0:
                return owner, asset, -(current + delta)
        return None

    def total_supply(self, asset: AssetId) -> Amount:
        """Sum of all wallet balances of one asset (pool custody excluded)."""
        return sum(amount for (_, a), amount in self._balances.items() if a == asset)

    def __repr__(self) -> str:
        return f"BalanceTable({len(self._balances)} entries)"
