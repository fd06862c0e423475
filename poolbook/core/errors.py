"""Exception types for the custody engines.

Every failure is a synchronous precondition rejection: the operation aborts
before any record, wallet or event is touched. ``code`` is stable and is what
``Book.step()`` reports as the rejection reason.
"""

from __future__ import annotations

from typing import Any


class CustodyError(Exception):
    """Base class for all engine rejections."""

    code: str = "custody_error"

    def __init__(self, message: str = "", **context: Any) -> None:
        self.context = context
        if not message:
            message = self.code
        if context:
            details = ", ".join(f"{k}={v!r}" for k, v in sorted(context.items()))
            message = f"{message} ({details})"
        super().__init__(message)


class InvalidAmount(CustodyError):
    code = "invalid_amount"


class BelowMinimumDeposit(CustodyError):
    code = "below_minimum_deposit"


class ZeroSharesMinted(CustodyError):
    code = "zero_shares_minted"


class PoolDrained(CustodyError):
    code = "pool_drained"


class InsufficientShares(CustodyError):
    code = "insufficient_shares"


class VaultMismatch(CustodyError):
    code = "vault_mismatch"


class DuplicateTicket(CustodyError):
    code = "duplicate_ticket"


class StillLocked(CustodyError):
    code = "still_locked"


class NoRewardsAvailable(CustodyError):
    code = "no_rewards_available"


class RewardPoolExhausted(CustodyError):
    code = "reward_pool_exhausted"


class ExceedsMaxBorrow(CustodyError):
    code = "exceeds_max_borrow"


class InsufficientCollateral(CustodyError):
    code = "insufficient_collateral"


class PoolLiquidityExhausted(CustodyError):
    code = "pool_liquidity_exhausted"


class NotLiquidatable(CustodyError):
    code = "not_liquidatable"


class InsufficientPayment(CustodyError):
    code = "insufficient_payment"


class NotOwner(CustodyError):
    code = "not_owner"


class RecordNotFound(CustodyError):
    code = "record_not_found"


class DuplicateRecord(CustodyError):
    """Raised when a new record would reuse an id already held in the book."""

    code = "duplicate_record"


class InvalidTimestamp(CustodyError):
    code = "invalid_timestamp"


class ArithmeticOverflow(CustodyError):
    code = "arithmetic_overflow"


class InsufficientBalance(CustodyError):
    """Raised when a wallet cannot fund a transfer into a pool."""

    code = "insufficient_balance"


class InvariantViolation(CustodyError):
    """Raised when a staged post-state violates one or more invariants."""

    code = "invariant_violation"

    def __init__(self, violations: list[str]) -> None:
        self.violations = violations
        super().__init__(f"invariant violations: {', '.join(violations)}")
