"""The loan book: single-shot collateralized loans with self-liquidation.

Debt is evaluated lazily from the borrow time at every read and resolve;
positions are never checkpointed. The risk parameters come from
``EngineConfig.lending`` (defaults: 75% LTV, 85% liquidation threshold,
5% liquidation bonus, 10% simple APY).
"""

from __future__ import annotations

import logging
from dataclasses import replace

from ..book import Batch, Book
from ..context import CallContext
from ..errors import (
    ExceedsMaxBorrow,
    InsufficientCollateral,
    InsufficientPayment,
    InvalidAmount,
    NotLiquidatable,
    PoolLiquidityExhausted,
)
from ..events import EventKind
from ..fixed_point import BPS_SCALE, checked_add, checked_sub, mul_div, require_u64
from .invariants import check_all
from .math import (
    health_factor,
    is_liquidatable,
    liquidation_eligible,
    liquidation_split,
    max_borrow,
    total_debt,
)
from .types import LendingAction, LendingPool, Liquidation, LoanPosition, Repayment

logger = logging.getLogger(__name__)


class LoanBook(Book[LendingPool, LoanPosition]):
    kind = "lending"
    pool_type = LendingPool
    position_type = LoanPosition
    owner_field = "borrower"
    check_all = staticmethod(check_all)
    actions = {
        LendingAction.DEPOSIT_LIQUIDITY: "deposit_liquidity",
        LendingAction.BORROW: "borrow",
        LendingAction.REPAY: "repay",
        LendingAction.LIQUIDATE: "liquidate",
        LendingAction.TRANSFER: "transfer",
    }

    def create_pool(self, ctx: CallContext, asset: str) -> LendingPool:
        pool = LendingPool(pool_id=self._new_id("lending_pool"), asset=asset)
        batch = Batch()
        batch.insert_pool(pool.pool_id, pool)
        batch.emit(self._event(EventKind.LENDING_POOL_CREATED, ctx, pool.pool_id))
        self._commit(batch)
        logger.info("lending pool %s created for asset %s", pool.pool_id, asset)
        return pool

    # -- Views ---------------------------------------------------------------

    def max_borrow(self, collateral: int) -> int:
        return max_borrow(collateral, self.config.lending.ltv_bps)

    def total_debt(self, position_id: str, now_ms: int) -> int:
        return total_debt(self.position(position_id), now_ms, self.config.lending.interest_rate_bps)

    def health_factor(self, position_id: str, now_ms: int) -> int:
        p = self.config.lending
        return health_factor(
            self.position(position_id), now_ms, p.interest_rate_bps, p.liquidation_threshold_bps,
        )

    def is_liquidatable(self, position_id: str, now_ms: int) -> bool:
        p = self.config.lending
        return is_liquidatable(
            self.position(position_id), now_ms, p.interest_rate_bps, p.liquidation_threshold_bps,
        )

    def utilization_bps(self, pool_id: str) -> int:
        pool = self.pool(pool_id)
        if pool.total_deposits == 0:
            return 0
        return mul_div(pool.total_borrowed, BPS_SCALE, pool.total_deposits)

    # -- Operations ----------------------------------------------------------

    def deposit_liquidity(self, ctx: CallContext, pool_id: str, amount: int) -> LendingPool:
        pool = self.pool(pool_id)
        if amount <= 0:
            raise InvalidAmount("liquidity amount must be positive", amount=amount)
        new_pool = replace(
            pool,
            available_liquidity=checked_add("available_liquidity", pool.available_liquidity, amount),
            total_deposits=checked_add("total_deposits", pool.total_deposits, amount),
        )
        batch = Batch()
        batch.pools[pool_id] = new_pool
        batch.debit(ctx.sender, pool.asset, amount)
        batch.emit(self._event(EventKind.LIQUIDITY_DEPOSITED, ctx, pool_id, amount=amount))
        self._commit(batch)
        return new_pool

    def borrow(self, ctx: CallContext, pool_id: str, collateral: int, amount: int) -> LoanPosition:
        """Escrow *collateral* and draw *amount* from the pool."""
        pool = self.pool(pool_id)
        if collateral <= 0:
            raise InsufficientCollateral("collateral must be positive", collateral=collateral)
        if amount <= 0:
            raise InvalidAmount("borrow amount must be positive", amount=amount)
        require_u64("collateral", collateral)
        require_u64("amount", amount)
        cap = self.max_borrow(collateral)
        if amount > cap:
            raise ExceedsMaxBorrow(requested=amount, max_borrow=cap)
        if pool.available_liquidity < amount:
            raise PoolLiquidityExhausted(requested=amount, available=pool.available_liquidity)

        position = LoanPosition(
            position_id=self._new_id("loan"),
            pool_id=pool_id,
            borrower=ctx.sender,
            collateral=collateral,
            borrowed_amount=amount,
            last_update_time=ctx.now_ms,
        )
        new_pool = replace(
            pool,
            available_liquidity=pool.available_liquidity - amount,
            total_borrowed=checked_add("total_borrowed", pool.total_borrowed, amount),
        )

        batch = Batch()
        batch.pools[pool_id] = new_pool
        batch.insert_position(position.position_id, position)
        batch.debit(ctx.sender, pool.asset, collateral)
        batch.credit(ctx.sender, pool.asset, amount)
        batch.emit(self._event(
            EventKind.BORROWED, ctx, pool_id, position.position_id, collateral=collateral, amount=amount,
        ))
        self._commit(batch)
        return position

    def repay(self, ctx: CallContext, position_id: str, payment: int) -> Repayment:
        """Settle the caller's loan in full; excess payment is refunded."""
        pos = self.owned_position(ctx, position_id)
        pool = self.pool(pos.pool_id)
        debt = self.total_debt(position_id, ctx.now_ms)
        if payment < debt:
            raise InsufficientPayment(required=debt, offered=payment)

        new_pool = replace(
            pool,
            available_liquidity=checked_add("available_liquidity", pool.available_liquidity, debt),
            total_borrowed=checked_sub("total_borrowed", pool.total_borrowed, pos.borrowed_amount),
        )
        refund = payment - debt

        batch = Batch()
        batch.pools[pool.pool_id] = new_pool
        batch.removed.add(position_id)
        batch.debit(ctx.sender, pool.asset, payment)
        batch.credit(ctx.sender, pool.asset, refund)
        batch.credit(ctx.sender, pool.asset, pos.collateral)
        batch.emit(self._event(
            EventKind.REPAID, ctx, pool.pool_id, position_id,
            debt=debt, interest=debt - pos.borrowed_amount, collateral=pos.collateral,
        ))
        self._commit(batch)
        return Repayment(
            debt_paid=debt,
            interest_paid=debt - pos.borrowed_amount,
            refund=refund,
            collateral_returned=pos.collateral,
        )

    def liquidate(self, ctx: CallContext, position_id: str, payment: int) -> Liquidation:
        """Repay an undercollateralized loan and seize its collateral (plus bonus)."""
        p = self.config.lending
        pos = self.position(position_id)
        pool = self.pool(pos.pool_id)
        if not liquidation_eligible(pos, ctx.now_ms, p.interest_rate_bps, p.liquidation_threshold_bps):
            raise NotLiquidatable(position_id=position_id)
        debt = total_debt(pos, ctx.now_ms, p.interest_rate_bps)
        if payment < debt:
            raise InsufficientPayment(required=debt, offered=payment)
        seized, remainder = liquidation_split(pos.collateral, debt, p.liquidation_bonus_bps)

        new_pool = replace(
            pool,
            available_liquidity=checked_add("available_liquidity", pool.available_liquidity, debt),
            total_borrowed=checked_sub("total_borrowed", pool.total_borrowed, pos.borrowed_amount),
        )

        batch = Batch()
        batch.pools[pool.pool_id] = new_pool
        batch.removed.add(position_id)
        batch.debit(ctx.sender, pool.asset, payment)
        batch.credit(ctx.sender, pool.asset, payment - debt)
        batch.credit(ctx.sender, pool.asset, seized)
        batch.credit(pos.borrower, pool.asset, remainder)
        batch.emit(self._event(
            EventKind.LIQUIDATED, ctx, pool.pool_id, position_id,
            debt=debt, seized=seized, remainder=remainder,
        ))
        self._commit(batch)
        logger.info(
            "loan %s liquidated by %s: debt=%d seized=%d remainder=%d",
            position_id, ctx.sender, debt, seized, remainder,
        )
        return Liquidation(
            debt_paid=debt, collateral_seized=seized, borrower_remainder=remainder, refund=payment - debt,
        )
