"""Pure share arithmetic for the vault.

Both directions floor toward the pool: minting rounds shares down and
redemption rounds the payout down. That is what keeps cumulative withdrawals
within ``balance`` and defeats donation attacks on the share price.
"""

from __future__ import annotations

from ..errors import BelowMinimumDeposit, InvalidAmount, PoolDrained, ZeroSharesMinted
from ..fixed_point import RATE_SCALE, mul_div, scaled_ratio
from .types import VaultPool


def shares_for_deposit(pool: VaultPool, amount: int) -> int:
    """Shares minted for depositing *amount*.

    1:1 while the vault is empty (no shares or no balance), else
    ``floor(amount * total_shares / balance)``.
    """
    if amount <= 0:
        raise InvalidAmount("deposit amount must be positive", amount=amount)
    if amount < pool.min_deposit:
        raise BelowMinimumDeposit(amount=amount, min_deposit=pool.min_deposit)
    if pool.total_shares == 0 or pool.balance == 0:
        return amount
    shares = mul_div(amount, pool.total_shares, pool.balance)
    if shares == 0:
        raise ZeroSharesMinted(amount=amount, balance=pool.balance, total_shares=pool.total_shares)
    return shares


def withdrawal_for_shares(pool: VaultPool, shares: int) -> int:
    """Payout for redeeming *shares*: ``floor(shares * balance / total_shares)``."""
    if pool.total_shares == 0:
        return 0
    amount = mul_div(shares, pool.balance, pool.total_shares)
    if amount == 0 and shares > 0:
        raise PoolDrained(shares=shares, balance=pool.balance, total_shares=pool.total_shares)
    return amount


def exchange_rate(pool: VaultPool) -> int:
    """Balance per share scaled by 1e9; exactly 1e9 for an empty vault."""
    if pool.total_shares == 0:
        return RATE_SCALE
    return scaled_ratio(pool.balance, pool.total_shares, RATE_SCALE)
