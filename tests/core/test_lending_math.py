"""Tests for poolbook/core/lending/math.py — interest, health factor, liquidation split."""

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from poolbook.core.errors import InvalidTimestamp
from poolbook.core.lending import (
    HEALTH_FACTOR_MAX,
    SECONDS_PER_YEAR,
    LoanPosition,
    accrued_interest,
    health_factor,
    is_liquidatable,
    liquidation_eligible,
    liquidation_split,
    max_borrow,
    total_debt,
)

YEAR_MS = SECONDS_PER_YEAR * 1_000


def _loan(collateral=1_000_000, borrowed=750_000, t0=0) -> LoanPosition:
    return LoanPosition(
        position_id="l", pool_id="p", borrower="bob",
        collateral=collateral, borrowed_amount=borrowed, last_update_time=t0,
    )


class TestMaxBorrow:
    def test_seventy_five_percent(self):
        assert max_borrow(1_000_000) == 750_000

    def test_floors(self):
        assert max_borrow(3) == 2
        assert max_borrow(1) == 0


class TestInterest:
    def test_one_year_is_ten_percent(self):
        assert accrued_interest(750_000, 0, YEAR_MS) == 75_000

    def test_whole_seconds_only(self):
        assert accrued_interest(10**12, 0, 999) == 0
        assert accrued_interest(10**12, 0, 1_000) == accrued_interest(10**12, 0, 1_999)

    def test_measured_from_borrow_time(self):
        assert accrued_interest(750_000, YEAR_MS, 2 * YEAR_MS) == 75_000

    def test_clock_regression(self):
        with pytest.raises(InvalidTimestamp):
            accrued_interest(1, 5_000, 4_000)

    def test_total_debt_two_years(self):
        assert total_debt(_loan(), 2 * YEAR_MS) == 900_000


class TestHealthFactor:
    def test_fresh_loan(self):
        assert health_factor(_loan(), 0) == 1_133

    def test_zero_debt_sentinel(self):
        pos = LoanPosition("l", "p", "bob", 1, 0, 0)
        assert health_factor(pos, 0) == HEALTH_FACTOR_MAX
        assert not is_liquidatable(pos, 0)

    def test_boundary_debt_equal_to_threshold_is_safe(self):
        pos = _loan(borrowed=800_000)
        assert total_debt(pos, 19_710_000_000) == 850_000
        assert not is_liquidatable(pos, 19_710_000_000)
        assert not liquidation_eligible(pos, 19_710_000_000)

    def test_one_unit_past_threshold(self):
        pos = _loan(borrowed=800_000)
        assert total_debt(pos, 19_710_395_000) == 850_001
        assert is_liquidatable(pos, 19_710_395_000)
        assert liquidation_eligible(pos, 19_710_395_000)

    @given(
        collateral=st.integers(min_value=1, max_value=10**15),
        borrowed=st.integers(min_value=1, max_value=10**15),
        seconds=st.integers(min_value=0, max_value=10 * SECONDS_PER_YEAR),
    )
    @settings(max_examples=300)
    def test_both_liquidation_tests_agree(self, collateral, borrowed, seconds):
        pos = _loan(collateral=collateral, borrowed=borrowed)
        now = seconds * 1_000
        assert is_liquidatable(pos, now) == liquidation_eligible(pos, now)

    @given(
        borrowed=st.integers(min_value=1, max_value=10**12),
        a=st.integers(min_value=0, max_value=10**12),
        b=st.integers(min_value=0, max_value=10**12),
    )
    def test_debt_monotone_in_time(self, borrowed, a, b):
        pos = _loan(borrowed=borrowed)
        lo, hi = sorted((a, b))
        assert total_debt(pos, lo) <= total_debt(pos, hi)


class TestLiquidationSplit:
    def test_bonus_taken_from_collateral(self):
        assert liquidation_split(1_000_000, 850_001) == (892_501, 107_499)

    def test_capped_at_collateral(self):
        assert liquidation_split(1_000_000, 990_000) == (1_000_000, 0)

    @given(
        collateral=st.integers(min_value=0, max_value=10**15),
        debt=st.integers(min_value=0, max_value=10**15),
    )
    def test_parts_sum_to_collateral(self, collateral, debt):
        seized, remainder = liquidation_split(collateral, debt)
        assert seized + remainder == collateral
        assert seized >= 0 and remainder >= 0
