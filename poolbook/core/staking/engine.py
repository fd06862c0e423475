"""The staking book: time-weighted reward distribution over locked stakes.

Order inside every state-affecting operation:
1. run ``update_accumulator`` to *now* on the pre-state pool,
2. compute rewards against the updated accumulator,
3. apply balance changes and re-sync ``reward_debt``.
"""

from __future__ import annotations

import logging
from dataclasses import replace

from ..book import Batch, Book
from ..context import CallContext
from ..errors import InvalidAmount, NoRewardsAvailable, RewardPoolExhausted, StillLocked
from ..events import EventKind
from ..fixed_point import checked_add, checked_sub, require_u64
from .invariants import check_all
from .math import entitlement, is_unlocked, pending_from, pending_reward, update_accumulator
from .types import StakePool, StakePosition, StakingAction, Unstaked

logger = logging.getLogger(__name__)


class StakingBook(Book[StakePool, StakePosition]):
    kind = "staking"
    pool_type = StakePool
    position_type = StakePosition
    check_all = staticmethod(check_all)
    actions = {
        StakingAction.FUND_REWARDS: "fund_rewards",
        StakingAction.STAKE: "stake",
        StakingAction.CLAIM_REWARDS: "claim_rewards",
        StakingAction.UNSTAKE: "unstake",
        StakingAction.TRANSFER: "transfer",
    }

    def create_pool(
        self,
        ctx: CallContext,
        stake_asset: str,
        reward_asset: str,
        reward_per_second: int,
        lock_period_ms: int | None = None,
    ) -> StakePool:
        params = self.config.staking
        if lock_period_ms is None:
            lock_period_ms = params.default_lock_period_ms
        require_u64("reward_per_second", reward_per_second)
        require_u64("lock_period_ms", lock_period_ms)
        if reward_per_second > params.max_reward_per_second:
            raise InvalidAmount(
                "reward rate above configured maximum",
                reward_per_second=reward_per_second, maximum=params.max_reward_per_second,
            )
        pool = StakePool(
            pool_id=self._new_id("stake_pool"),
            stake_asset=stake_asset,
            reward_asset=reward_asset,
            reward_per_second=reward_per_second,
            last_update_time=ctx.now_ms,
            lock_period_ms=lock_period_ms,
        )
        batch = Batch()
        batch.insert_pool(pool.pool_id, pool)
        batch.emit(self._event(
            EventKind.STAKE_POOL_CREATED, ctx, pool.pool_id,
            reward_per_second=reward_per_second, lock_period_ms=lock_period_ms,
        ))
        self._commit(batch)
        logger.info(
            "stake pool %s created: %s -> %s at %d/s, lock %d ms",
            pool.pool_id, stake_asset, reward_asset, reward_per_second, lock_period_ms,
        )
        return pool

    # -- Views ---------------------------------------------------------------

    def pending_reward(self, position_id: str, now_ms: int) -> int:
        pos = self.position(position_id)
        return pending_reward(self.pool(pos.pool_id), pos, now_ms)

    def is_unlocked(self, position_id: str, now_ms: int) -> bool:
        return is_unlocked(self.position(position_id), now_ms)

    # -- Operations ----------------------------------------------------------

    def fund_rewards(self, ctx: CallContext, pool_id: str, amount: int) -> StakePool:
        """Add reward budget; no accounting is reconciled against it."""
        pool = self.pool(pool_id)
        if amount <= 0:
            raise InvalidAmount("funding amount must be positive", amount=amount)
        new_pool = replace(pool, reward_balance=checked_add("reward_balance", pool.reward_balance, amount))
        batch = Batch()
        batch.pools[pool_id] = new_pool
        batch.debit(ctx.sender, pool.reward_asset, amount)
        batch.emit(self._event(EventKind.REWARDS_FUNDED, ctx, pool_id, amount=amount))
        self._commit(batch)
        return new_pool

    def stake(self, ctx: CallContext, pool_id: str, amount: int) -> StakePosition:
        pool = self.pool(pool_id)
        if amount <= 0:
            raise InvalidAmount("stake amount must be positive", amount=amount)
        pool = update_accumulator(pool, ctx.now_ms)

        position = StakePosition(
            position_id=self._new_id("stake_position"),
            pool_id=pool_id,
            owner=ctx.sender,
            amount=amount,
            reward_debt=entitlement(amount, pool.accumulated_reward_per_share),
            stake_time=ctx.now_ms,
            unlock_time=checked_add("unlock_time", ctx.now_ms, pool.lock_period_ms),
        )
        new_pool = replace(
            pool,
            staked_balance=checked_add("staked_balance", pool.staked_balance, amount),
            total_staked=checked_add("total_staked", pool.total_staked, amount),
        )

        batch = Batch()
        batch.pools[pool_id] = new_pool
        batch.insert_position(position.position_id, position)
        batch.debit(ctx.sender, pool.stake_asset, amount)
        batch.emit(self._event(
            EventKind.STAKED, ctx, pool_id, position.position_id,
            amount=amount, unlock_time=position.unlock_time,
        ))
        self._commit(batch)
        return position

    def claim_rewards(self, ctx: CallContext, position_id: str) -> int:
        """Pay out everything pending on the caller's position; returns the amount."""
        pos = self.owned_position(ctx, position_id)
        pool = update_accumulator(self.pool(pos.pool_id), ctx.now_ms)

        pending = pending_from(pos, pool.accumulated_reward_per_share)
        if pending == 0:
            raise NoRewardsAvailable(position_id=position_id)
        if pool.reward_balance < pending:
            raise RewardPoolExhausted(required=pending, available=pool.reward_balance)

        new_pool = replace(pool, reward_balance=pool.reward_balance - pending)
        new_pos = replace(pos, reward_debt=entitlement(pos.amount, pool.accumulated_reward_per_share))

        batch = Batch()
        batch.pools[pool.pool_id] = new_pool
        batch.positions[position_id] = new_pos
        batch.credit(ctx.sender, pool.reward_asset, pending)
        batch.emit(self._event(EventKind.REWARDS_CLAIMED, ctx, pool.pool_id, position_id, reward=pending))
        self._commit(batch)
        return pending

    def unstake(self, ctx: CallContext, position_id: str) -> Unstaked:
        """Return principal (and pending reward when the pool can cover it); destroys the position."""
        pos = self.owned_position(ctx, position_id)
        if not is_unlocked(pos, ctx.now_ms):
            raise StillLocked(now_ms=ctx.now_ms, unlock_time=pos.unlock_time)
        pool = update_accumulator(self.pool(pos.pool_id), ctx.now_ms)

        pending = pending_from(pos, pool.accumulated_reward_per_share)
        reward_paid = pending if pool.reward_balance >= pending else 0
        if pending and not reward_paid:
            logger.warning(
                "unstake %s: reward %d skipped, pool %s holds %d",
                position_id, pending, pool.pool_id, pool.reward_balance,
            )

        new_pool = replace(
            pool,
            staked_balance=checked_sub("staked_balance", pool.staked_balance, pos.amount),
            total_staked=checked_sub("total_staked", pool.total_staked, pos.amount),
            reward_balance=pool.reward_balance - reward_paid,
        )

        batch = Batch()
        batch.pools[pool.pool_id] = new_pool
        batch.removed.add(position_id)
        batch.credit(ctx.sender, pool.stake_asset, pos.amount)
        batch.credit(ctx.sender, pool.reward_asset, reward_paid)
        batch.emit(self._event(
            EventKind.UNSTAKED, ctx, pool.pool_id, position_id, amount=pos.amount, reward=reward_paid,
        ))
        self._commit(batch)
        return Unstaked(principal=pos.amount, reward_paid=reward_paid, reward_forfeited=pending - reward_paid)
