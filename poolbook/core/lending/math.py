"""Pure loan arithmetic: LTV cap, simple interest, health factor, liquidation.

Interest is never checkpointed. Every debt figure is a pure function of the
position and the clock reading, evaluated against the borrow time, so debt is
monotone in time. Multiplication always precedes the single floor division.

Two liquidation tests exist on purpose:
- ``is_liquidatable``: health factor (scale 1000) below 1.0,
- ``liquidation_eligible``: ``debt > floor(collateral * threshold / 10000)``.
They are the same 85% threshold rounded separately; ``liquidate`` uses the
second.
"""

from __future__ import annotations

from ..fixed_point import BPS_SCALE, U64_MAX, bps_of, elapsed_seconds
from .types import LoanPosition

LTV_BPS: int = 7_500
LIQUIDATION_THRESHOLD_BPS: int = 8_500
LIQUIDATION_BONUS_BPS: int = 10_500
INTEREST_RATE_BPS: int = 1_000
SECONDS_PER_YEAR: int = 31_536_000
HEALTH_FACTOR_ONE: int = 1_000
HEALTH_FACTOR_MAX: int = U64_MAX


def max_borrow(collateral: int, ltv_bps: int = LTV_BPS) -> int:
    """``floor(collateral * ltv / 10000)``."""
    return bps_of(collateral, ltv_bps)


def accrued_interest(
    principal: int,
    last_update_ms: int,
    now_ms: int,
    rate_bps: int = INTEREST_RATE_BPS,
) -> int:
    """Simple interest over whole elapsed seconds.

    ``floor(principal * rate_bps * seconds / (10000 * SECONDS_PER_YEAR))``
    """
    seconds = elapsed_seconds(last_update_ms, now_ms)
    return (principal * rate_bps * seconds) // (BPS_SCALE * SECONDS_PER_YEAR)


def total_debt(position: LoanPosition, now_ms: int, rate_bps: int = INTEREST_RATE_BPS) -> int:
    return (
        position.borrowed_amount
        + position.interest_accumulated
        + accrued_interest(position.borrowed_amount, position.last_update_time, now_ms, rate_bps)
    )


def health_factor_of(collateral: int, debt: int, threshold_bps: int = LIQUIDATION_THRESHOLD_BPS) -> int:
    """``floor(collateral * threshold * 1000 / (debt * 10000))``; max sentinel when debt is 0."""
    if debt == 0:
        return HEALTH_FACTOR_MAX
    return (collateral * threshold_bps * HEALTH_FACTOR_ONE) // (debt * BPS_SCALE)


def health_factor(
    position: LoanPosition,
    now_ms: int,
    rate_bps: int = INTEREST_RATE_BPS,
    threshold_bps: int = LIQUIDATION_THRESHOLD_BPS,
) -> int:
    return health_factor_of(position.collateral, total_debt(position, now_ms, rate_bps), threshold_bps)


def is_liquidatable(
    position: LoanPosition,
    now_ms: int,
    rate_bps: int = INTEREST_RATE_BPS,
    threshold_bps: int = LIQUIDATION_THRESHOLD_BPS,
) -> bool:
    return health_factor(position, now_ms, rate_bps, threshold_bps) < HEALTH_FACTOR_ONE


def liquidation_eligible(
    position: LoanPosition,
    now_ms: int,
    rate_bps: int = INTEREST_RATE_BPS,
    threshold_bps: int = LIQUIDATION_THRESHOLD_BPS,
) -> bool:
    """The check ``liquidate`` itself applies."""
    return total_debt(position, now_ms, rate_bps) > bps_of(position.collateral, threshold_bps)


def liquidation_split(collateral: int, debt: int, bonus_bps: int = LIQUIDATION_BONUS_BPS) -> tuple[int, int]:
    """(seized by liquidator, returned to borrower).

    The liquidator takes debt plus bonus, capped at the collateral held.
    """
    seized = min(collateral, bps_of(debt, bonus_bps))
    return seized, collateral - seized
