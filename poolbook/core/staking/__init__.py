"""Staking reward distributor: a global reward-per-share accumulator with
per-position reward debt and a fixed lock period.
"""

from .engine import StakingBook
from .invariants import check_all
from .math import (
    accumulator_delta,
    entitlement,
    is_unlocked,
    pending_reward,
    project_accumulator,
    update_accumulator,
)
from .types import StakePool, StakePosition, StakingAction, Unstaked

__all__ = [
    "StakingBook",
    "check_all",
    "accumulator_delta",
    "entitlement",
    "is_unlocked",
    "pending_reward",
    "project_accumulator",
    "update_accumulator",
    "StakePool",
    "StakePosition",
    "StakingAction",
    "Unstaked",
]
