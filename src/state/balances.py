"""
Token balance tracking for vault treasuries, investors and creators.

Implements TokenBalances[Owner, Mint] -> Amount
"""

from typing import Dict, Iterable, Optional, Tuple


# Type aliases
Owner = str  # wallet / account identifier
Mint = str  # token identifier
Amount = int  # Non-negative integer (arbitrary precision, u64 by convention)
Transfer = Tuple[Optional[Owner], Owner, Mint, Amount]


class TokenBalances:
    """
    Balance table mapping (owner, mint) -> amount.

    Note: balances live in a plain dict. Do not rely on dict iteration order
    for audit-critical output; callers sort keys at serialization boundaries
    (see `src/integration/vault_store.py`).
    """

    def __init__(self):
        """Initialize empty balance table."""
        self._balances: Dict[Tuple[Owner, Mint], Amount] = {}

    def get(self, owner: Owner, mint: Mint) -> Amount:
        """Get balance for (owner, mint). Returns 0 if not found."""
        return self._balances.get((owner, mint), 0)

    def set(self, owner: Owner, mint: Mint, amount: Amount) -> None:
        """
        Set balance for (owner, mint).

        Raises:
            ValueError: If amount is negative
        """
        if amount < 0:
            raise ValueError(f"Balance cannot be negative: {amount}")
        if amount == 0:
            # Keep table sparse
            self._balances.pop((owner, mint), None)
        else:
            self._balances[(owner, mint)] = amount

    def credit(self, owner: Owner, mint: Mint, amount: Amount) -> None:
        if amount < 0:
            raise ValueError(f"Credit must be non-negative: {amount}")
        self.set(owner, mint, self.get(owner, mint) + amount)

    def debit(self, owner: Owner, mint: Mint, amount: Amount) -> None:
        """
        Subtract amount from balance.

        Raises:
            ValueError: If amount is negative or the balance is insufficient
        """
        if amount < 0:
            raise ValueError(f"Debit must be non-negative: {amount}")
        current = self.get(owner, mint)
        if amount > current:
            raise ValueError(
                f"Insufficient balance for {owner}: {current} < {amount}"
            )
        self.set(owner, mint, current - amount)

    def transfer(self, src: Owner, dst: Owner, mint: Mint, amount: Amount) -> None:
        """Move amount from src to dst. A zero amount is a no-op."""
        if amount == 0:
            return
        self.debit(src, mint, amount)
        self.credit(dst, mint, amount)

    def apply_batch(self, ops: Iterable[Transfer]) -> None:
        """
        Apply a batch of transfers all-or-nothing.

        Each op is ``(src, dst, mint, amount)``; ``src=None`` mints into ``dst``
        (used when claimed fees enter a treasury). The batch runs against a copy
        and is swapped in only if every op succeeds.

        Raises:
            ValueError: If any op is invalid; the table is then unchanged
        """
        staged = self.copy()
        for src, dst, mint, amount in ops:
            if src is None:
                staged.credit(dst, mint, amount)
            else:
                staged.transfer(src, dst, mint, amount)
        self._balances = staged._balances

    def total(self, mint: Mint) -> Amount:
        """Sum of all balances of one mint."""
        return sum(amount for (_, m), amount in self._balances.items() if m == mint)

    def get_all_balances(self) -> Dict[Tuple[Owner, Mint], Amount]:
        return dict(self._balances)

    def copy(self) -> "TokenBalances":
        copied = TokenBalances()
        copied._balances = dict(self._balances)
        return copied

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TokenBalances):
            return NotImplemented
        return self._balances == other._balances

    def __repr__(self) -> str:
        return f"TokenBalances({len(self._balances)} entries)"
