"""Data types for the collateralized loan book.

Collateral and debt are the same asset, so no price conversion exists.
Positions are single-shot: created by ``borrow``, destroyed by exactly one of
``repay`` / ``liquidate``, never modified in between (except by transfer).
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
class LendingAction(Enum):
    DEPOSIT_LIQUIDITY = "deposit_liquidity"
    BORROW = "borrow"
    REPAY = "repay"
    LIQUIDATE = "liquidate"
    TRANSFER = "transfer"


@dataclass(frozen=True)
class LendingPool:
    pool_id: str
    asset: str
    available_liquidity: int = 0
    total_borrowed: int = 0
    total_deposits: int = 0

    def __post_init__(self) -> None:
        _check_u64(self, "available_liquidity", "total_borrowed", "total_deposits")


@dataclass(frozen=True)
class LoanPosition:
    position_id: str
    pool_id: str
    borrower: str
    collateral: int
    borrowed_amount: int
    last_update_time: int  # borrow time; interest is always measured from here
    interest_accumulated: int = 0  # no checkpointing operation exists

    def __post_init__(self) -> None:
        _check_u64(self, "collateral", "borrowed_amount", "last_update_time", "interest_accumulated")


@dataclass(frozen=True)
class Repayment:
    """Outcome of ``repay``."""

    debt_paid: int
    interest_paid: int
    refund: int
    collateral_returned: int


@dataclass(frozen=True)
class Liquidation:
    """Outcome of ``liquidate``."""

    debt_paid: int
    collateral_seized: int
    borrower_remainder: int
    refund: int
