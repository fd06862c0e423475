"""Proportional share vault: mint/burn shares against one pooled balance.

Public API:
- ``VaultBook`` (operations + views)
- ``shares_for_deposit``, ``withdrawal_for_shares``, ``exchange_rate`` (pure math)
- ``check_all`` (invariants)
"""

from .engine import VaultBook
from .invariants import check_all
from .math import exchange_rate, shares_for_deposit, withdrawal_for_shares
from .types import ShareTicket, VaultAction, VaultPool, Withdrawal

__all__ = [
    "VaultBook",
    "check_all",
    "exchange_rate",
    "shares_for_deposit",
    "withdrawal_for_shares",
    "ShareTicket",
    "VaultAction",
    "VaultPool",
    "Withdrawal",
]
