"""Tests for poolbook/core/vault/math.py — share mint/burn formulas."""

import pytest

from poolbook.core.errors import BelowMinimumDeposit, InvalidAmount, PoolDrained, ZeroSharesMinted
from poolbook.core.vault import VaultPool, exchange_rate, shares_for_deposit, withdrawal_for_shares


def _pool(balance=0, total_shares=0, min_deposit=0) -> VaultPool:
    return VaultPool(vault_id="v", asset="USD", balance=balance, total_shares=total_shares, min_deposit=min_deposit)


# ---------------------------------------------------------------------------
# shares_for_deposit
# ---------------------------------------------------------------------------

class TestSharesForDeposit:
    def test_bootstrap_is_one_to_one(self):
        assert shares_for_deposit(_pool(), 1_000) == 1_000

    def test_zero_balance_is_one_to_one(self):
        assert shares_for_deposit(_pool(balance=0, total_shares=50), 7) == 7

    def test_proportional(self):
        assert shares_for_deposit(_pool(balance=2_000, total_shares=1_000), 500) == 250

    def test_floors_toward_pool(self):
        # 2 * 2 / 3 = 1.33
        assert shares_for_deposit(_pool(balance=3, total_shares=2), 2) == 1

    def test_dust_deposit_rejected(self):
        with pytest.raises(ZeroSharesMinted):
            shares_for_deposit(_pool(balance=1_000, total_shares=1), 999)

    def test_below_minimum(self):
        with pytest.raises(BelowMinimumDeposit) as exc:
            shares_for_deposit(_pool(min_deposit=100), 99)
        assert exc.value.context["min_deposit"] == 100

    def test_minimum_is_inclusive(self):
        assert shares_for_deposit(_pool(min_deposit=100), 100) == 100

    def test_zero_amount(self):
        with pytest.raises(InvalidAmount):
            shares_for_deposit(_pool(), 0)


# ---------------------------------------------------------------------------
# withdrawal_for_shares
# ---------------------------------------------------------------------------

class TestWithdrawalForShares:
    def test_no_shares_outstanding(self):
        assert withdrawal_for_shares(_pool(), 10) == 0

    def test_floors(self):
        assert withdrawal_for_shares(_pool(balance=1_000, total_shares=300), 100) == 333

    def test_full_redemption_takes_everything(self):
        assert withdrawal_for_shares(_pool(balance=1_001, total_shares=300), 300) == 1_001

    def test_drained(self):
        with pytest.raises(PoolDrained):
            withdrawal_for_shares(_pool(balance=1, total_shares=3), 1)

    def test_donation_does_not_inflate_small_holder(self):
        # Attacker holds 1 share and donated 10_000; victim's 9_999 deposit mints 0 and is refused.
        pool = _pool(balance=10_001, total_shares=1)
        with pytest.raises(ZeroSharesMinted):
            shares_for_deposit(pool, 9_999)


# ---------------------------------------------------------------------------
# exchange_rate
# ---------------------------------------------------------------------------

class TestExchangeRate:
    def test_empty_vault(self):
        assert exchange_rate(_pool()) == 1_000_000_000

    def test_premium(self):
        assert exchange_rate(_pool(balance=1_500, total_shares=1_000)) == 1_500_000_000

    def test_floors(self):
        assert exchange_rate(_pool(balance=1, total_shares=3)) == 333_333_333
