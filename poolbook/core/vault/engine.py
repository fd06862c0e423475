"""The share vault book: operations and read-only views.

Every operation reads the pre-state, computes replacement records, and
commits them through ``Book._commit``. Payout formulas are always evaluated
on the pool as it was before the operation's own changes.
"""

from __future__ import annotations

import logging
from dataclasses import replace

from ..book import Batch, Book
from ..context import CallContext
from ..errors import DuplicateTicket, InsufficientShares, InvalidAmount, VaultMismatch
from ..events import EventKind
from ..fixed_point import checked_add, checked_sub, mul_div, require_u64
from .invariants import check_all
from .math import exchange_rate, shares_for_deposit, withdrawal_for_shares
from .types import ShareTicket, VaultAction, VaultPool, Withdrawal

logger = logging.getLogger(__name__)


class VaultBook(Book[VaultPool, ShareTicket]):
    kind = "vault"
    pool_type = VaultPool
    position_type = ShareTicket
    pool_id_field = "vault_id"
    position_id_field = "ticket_id"
    position_pool_field = "vault_id"
    check_all = staticmethod(check_all)
    actions = {
        VaultAction.DEPOSIT: "deposit",
        VaultAction.WITHDRAW: "withdraw",
        VaultAction.WITHDRAW_PARTIAL: "withdraw_partial",
        VaultAction.MERGE: "merge",
        VaultAction.TRANSFER: "transfer",
    }

    vault = Book.pool
    ticket = Book.position
    tickets_of = Book.positions_of
    tickets_in = Book.positions_in

    def create_vault(self, ctx: CallContext, asset: str, min_deposit: int | None = None) -> VaultPool:
        """Create an empty vault over *asset*."""
        if min_deposit is None:
            min_deposit = self.config.vault.default_min_deposit
        require_u64("min_deposit", min_deposit)
        pool = VaultPool(vault_id=self._new_id("vault"), asset=asset, min_deposit=min_deposit)
        batch = Batch()
        batch.insert_pool(pool.vault_id, pool)
        batch.emit(self._event(EventKind.VAULT_CREATED, ctx, pool.vault_id, min_deposit=min_deposit))
        self._commit(batch)
        logger.info("vault %s created for asset %s (min_deposit=%d)", pool.vault_id, asset, min_deposit)
        return pool

    # -- Views ---------------------------------------------------------------

    def exchange_rate(self, vault_id: str) -> int:
        return exchange_rate(self.pool(vault_id))

    def preview_deposit(self, vault_id: str, amount: int) -> int:
        return shares_for_deposit(self.pool(vault_id), amount)

    def preview_withdraw(self, vault_id: str, shares: int) -> int:
        return withdrawal_for_shares(self.pool(vault_id), shares)

    def ticket_value(self, ticket_id: str) -> int:
        """Current payout for redeeming the whole ticket (0 if it would round to nothing)."""
        t = self.position(ticket_id)
        pool = self.pool(t.vault_id)
        if pool.total_shares == 0:
            return 0
        return mul_div(t.shares, pool.balance, pool.total_shares)

    # -- Operations ----------------------------------------------------------

    def deposit(self, ctx: CallContext, vault_id: str, amount: int) -> ShareTicket:
        """Pay *amount* into the vault and receive a new ticket for the minted shares."""
        pool = self.pool(vault_id)
        shares = shares_for_deposit(pool, amount)
        new_pool = replace(
            pool,
            balance=checked_add("balance", pool.balance, amount),
            total_shares=checked_add("total_shares", pool.total_shares, shares),
        )
        ticket = ShareTicket(
            ticket_id=self._new_id("ticket"), vault_id=vault_id, owner=ctx.sender, shares=shares,
        )

        batch = Batch()
        batch.pools[vault_id] = new_pool
        batch.insert_position(ticket.ticket_id, ticket)
        batch.debit(ctx.sender, pool.asset, amount)
        batch.emit(self._event(EventKind.DEPOSITED, ctx, vault_id, ticket.ticket_id, amount=amount, shares=shares))
        self._commit(batch)
        return ticket

    def withdraw(self, ctx: CallContext, ticket_id: str) -> int:
        """Redeem the caller's whole ticket; returns the amount paid out."""
        ticket = self.owned_position(ctx, ticket_id)
        return self._redeem(ctx, ticket, ticket.shares).amount

    def withdraw_partial(self, ctx: CallContext, ticket_id: str, shares: int) -> Withdrawal:
        """Redeem *shares* from a ticket the caller keeps.

        A ticket whose last share is redeemed is destroyed.
        """
        ticket = self.owned_position(ctx, ticket_id)
        if shares <= 0:
            raise InvalidAmount("shares must be positive", shares=shares)
        if ticket.shares < shares:
            raise InsufficientShares(requested=shares, available=ticket.shares)
        return self._redeem(ctx, ticket, shares)

    def _redeem(self, ctx: CallContext, ticket: ShareTicket, shares: int) -> Withdrawal:
        pool = self.pool(ticket.vault_id)
        if shares <= 0:
            raise InvalidAmount("ticket holds no shares", ticket_id=ticket.ticket_id)
        if pool.total_shares < shares:
            raise InsufficientShares(requested=shares, available=pool.total_shares)
        amount = withdrawal_for_shares(pool, shares)

        new_pool = replace(
            pool,
            balance=checked_sub("balance", pool.balance, amount),
            total_shares=checked_sub("total_shares", pool.total_shares, shares),
        )
        remaining = ticket.shares - shares

        batch = Batch()
        batch.pools[pool.vault_id] = new_pool
        kept: ShareTicket | None = None
        if remaining == 0:
            batch.removed.add(ticket.ticket_id)
        else:
            kept = replace(ticket, shares=remaining)
            batch.positions[ticket.ticket_id] = kept
        batch.credit(ctx.sender, pool.asset, amount)
        batch.emit(self._event(
            EventKind.WITHDRAWN, ctx, pool.vault_id, ticket.ticket_id, amount=amount, shares=shares,
        ))
        self._commit(batch)
        return Withdrawal(amount=amount, shares_burned=shares, ticket=kept)

    def merge(self, ctx: CallContext, ticket_id: str, donor_id: str) -> ShareTicket:
        """Fold *donor_id* into *ticket_id*; both must be the caller's and share a vault."""
        if ticket_id == donor_id:
            raise DuplicateTicket(ticket_id=ticket_id)
        target = self.owned_position(ctx, ticket_id)
        donor = self.owned_position(ctx, donor_id)
        if target.vault_id != donor.vault_id:
            raise VaultMismatch(ticket_vault=target.vault_id, donor_vault=donor.vault_id)

        merged = replace(target, shares=checked_add("shares", target.shares, donor.shares))
        batch = Batch()
        batch.positions[ticket_id] = merged
        batch.removed.add(donor_id)
        batch.emit(self._event(EventKind.TICKETS_MERGED, ctx, target.vault_id, ticket_id, shares=donor.shares))
        self._commit(batch)
        return merged
