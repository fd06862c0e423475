"""Data types for the staking reward distributor.

Units/conventions:
- times are wall-clock milliseconds; reward accrual counts whole seconds.
- ``reward_per_second`` is reward-asset units paid to the pool per second.
- ``accumulated_reward_per_share`` is scaled by 1e18.
- ``reward_debt`` is in reward-asset units (already divided by 1e18).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, unique

from ..fixed_point import U64_MAX


@unique
class StakingAction(Enum):
    FUND_REWARDS = "fund_rewards"
    STAKE = "stake"
    CLAIM_REWARDS = "claim_rewards"
    UNSTAKE = "unstake"
    TRANSFER = "transfer"


@dataclass(frozen=True)
class StakePool:
    pool_id: str
    stake_asset: str
    reward_asset: str
    reward_per_second: int
    last_update_time: int
    lock_period_ms: int
    staked_balance: int = 0
    reward_balance: int = 0
    total_staked: int = 0
    accumulated_reward_per_share: int = 0

    def __post_init__(self) -> None:
        for name in (
            "reward_per_second", "last_update_time", "lock_period_ms",
            "staked_balance", "reward_balance", "total_staked",
        ):
            v = getattr(self, name)
            if not isinstance(v, int) or isinstance(v, bool):
                raise TypeError(f"{name} must be an int")
            if not (0 <= v <= U64_MAX):
                raise ValueError(f"{name} must be a u64: {v}")
        if self.accumulated_reward_per_share < 0:
            raise ValueError("accumulated_reward_per_share must be non-negative")
        if self.stake_asset == self.reward_asset:
            raise ValueError("reward asset must differ from the staked asset")


@dataclass(frozen=True)
class StakePosition:
    position_id: str
    pool_id: str
    owner: str
    amount: int
    reward_debt: int
    stake_time: int
    unlock_time: int  # stake_time + lock_period_ms, fixed at creation

    def __post_init__(self) -> None:
        for name in ("amount", "reward_debt", "stake_time", "unlock_time"):
            v = getattr(self, name)
            if not isinstance(v, int) or isinstance(v, bool):
                raise TypeError(f"{name} must be an int")
            if v < 0:
                raise ValueError(f"{name} must be non-negative: {v}")
        if self.unlock_time < self.stake_time:
            raise ValueError("unlock_time must not precede stake_time")


@dataclass(frozen=True)
class Unstaked:
    """Outcome of ``unstake``."""

    principal: int
    reward_paid: int
    reward_forfeited: int  # pending reward the pool could not cover
