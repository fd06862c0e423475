"""Collateralized loan book: single-shot loans, simple interest, liquidation."""

from .engine import LoanBook
from .invariants import check_all
from .math import (
    HEALTH_FACTOR_MAX,
    HEALTH_FACTOR_ONE,
    SECONDS_PER_YEAR,
    accrued_interest,
    health_factor,
    is_liquidatable,
    liquidation_eligible,
    liquidation_split,
    max_borrow,
    total_debt,
)
from .types import LendingAction, LendingPool, Liquidation, LoanPosition, Repayment

__all__ = [
    "LoanBook",
    "check_all",
    "HEALTH_FACTOR_MAX",
    "HEALTH_FACTOR_ONE",
    "SECONDS_PER_YEAR",
    "accrued_interest",
    "health_factor",
    "is_liquidatable",
    "liquidation_eligible",
    "liquidation_split",
    "max_borrow",
    "total_debt",
    "LendingAction",
    "LendingPool",
    "Liquidation",
    "LoanPosition",
    "Repayment",
]
