"""Pure reward-accumulator arithmetic.

The accumulator only ever grows, and only while something is staked: an
interval with ``total_staked == 0`` advances ``last_update_time`` without
accrual, so that interval's reward budget is forfeited rather than carried.
"""

from __future__ import annotations

from dataclasses import replace

from ..fixed_point import ACC_SCALE, elapsed_seconds, mul_div
from .types import StakePool, StakePosition


def accumulator_delta(pool: StakePool, now_ms: int) -> int:
    """Growth of the accumulator between ``last_update_time`` and *now_ms*."""
    seconds = elapsed_seconds(pool.last_update_time, now_ms)
    if pool.total_staked == 0:
        return 0
    reward = seconds * pool.reward_per_second
    return mul_div(reward, ACC_SCALE, pool.total_staked)


def project_accumulator(pool: StakePool, now_ms: int) -> int:
    """The accumulator value ``update_accumulator`` would produce at *now_ms*."""
    return pool.accumulated_reward_per_share + accumulator_delta(pool, now_ms)


def update_accumulator(pool: StakePool, now_ms: int) -> StakePool:
    """Bring the accumulator up to *now_ms*; must precede any balance change."""
    return replace(
        pool,
        accumulated_reward_per_share=project_accumulator(pool, now_ms),
        last_update_time=now_ms,
    )


def entitlement(amount: int, acc_reward_per_share: int) -> int:
    """Scaled-down reward entitlement: ``floor(amount * acc / 1e18)``."""
    return mul_div(amount, acc_reward_per_share, ACC_SCALE)


def pending_from(position: StakePosition, acc_reward_per_share: int) -> int:
    return max(0, entitlement(position.amount, acc_reward_per_share) - position.reward_debt)


def pending_reward(pool: StakePool, position: StakePosition, now_ms: int) -> int:
    """Claimable reward at *now_ms* without touching the pool."""
    return pending_from(position, project_accumulator(pool, now_ms))


def is_unlocked(position: StakePosition, now_ms: int) -> bool:
    return now_ms >= position.unlock_time
