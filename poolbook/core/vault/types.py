"""Data types for the proportional share vault.

All records are frozen dataclasses; every change produces a new record.

Units/conventions:
- ``balance`` is in units of the vault's ``asset``.
- ``shares`` / ``total_shares`` are claim units on ``balance``.
- exchange rates are scaled by 1e9.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, unique

from ..fixed_point import U64_MAX


def _check_u64(owner: object, *names: str) -> None:
    for name in names:
        v = getattr(owner, name)
        if not isinstance(v, int) or isinstance(v, bool):
            raise TypeError(f"{name} must be an int")
        if not (0 <= v <= U64_MAX):
            raise ValueError(f"{name} must be a u64: {v}")


@unique
class VaultAction(Enum):
    DEPOSIT = "deposit"
    WITHDRAW = "withdraw"
    WITHDRAW_PARTIAL = "withdraw_partial"
    MERGE = "merge"
    TRANSFER = "transfer"


@dataclass(frozen=True)
class VaultPool:
    """One pooled balance and the shares outstanding against it."""

    vault_id: str
    asset: str
    balance: int = 0
    total_shares: int = 0
    min_deposit: int = 0

    def __post_init__(self) -> None:
        _check_u64(self, "balance", "total_shares", "min_deposit")


@dataclass(frozen=True)
class ShareTicket:
    """A bearer claim on ``shares`` of one vault."""

    ticket_id: str
    vault_id: str
    owner: str
    shares: int

    def __post_init__(self) -> None:
        _check_u64(self, "shares")


@dataclass(frozen=True)
class Withdrawal:
    """Outcome of a (partial) withdrawal."""

    amount: int
    shares_burned: int
    ticket: ShareTicket | None  # remaining ticket, None when destroyed
