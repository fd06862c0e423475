from __future__ import annotations

import pytest
from hypothesis import given
from hypothesis import strategies as st

from poolbook.core.lending import LoanPosition
from poolbook.core.staking import StakePool
from poolbook.core.vault import ShareTicket
from poolbook.state.records import field_names, record_from_dict, record_to_dict


def test_field_order_follows_definition() -> None:
    assert field_names(ShareTicket) == ("ticket_id", "vault_id", "owner", "shares")


@given(
    collateral=st.integers(min_value=0, max_value=2**64 - 1),
    borrowed=st.integers(min_value=0, max_value=2**64 - 1),
    t=st.integers(min_value=0, max_value=2**64 - 1),
)
def test_loan_record_survives_dict_form(collateral: int, borrowed: int, t: int) -> None:
    pos = LoanPosition("l", "p", "bob", collateral, borrowed, t)
    assert record_from_dict(LoanPosition, record_to_dict(pos)) == pos


def test_unknown_field_rejected() -> None:
    d = record_to_dict(ShareTicket("t", "v", "alice", 1))
    d["extra"] = 1
    with pytest.raises(ValueError):
        record_from_dict(ShareTicket, d)


def test_missing_field_rejected() -> None:
    d = record_to_dict(ShareTicket("t", "v", "alice", 1))
    del d["shares"]
    with pytest.raises(KeyError):
        record_from_dict(ShareTicket, d)


@pytest.mark.parametrize("bad", [True, 1.5, None, [1]])
def test_non_scalar_values_rejected(bad) -> None:
    d = record_to_dict(ShareTicket("t", "v", "alice", 1))
    d["shares"] = bad
    with pytest.raises(TypeError):
        record_from_dict(ShareTicket, d)


def test_record_validation_runs_on_load() -> None:
    d = record_to_dict(
        StakePool("p", "STK", "RWD", reward_per_second=1, last_update_time=0, lock_period_ms=0)
    )
    d["reward_asset"] = "STK"
    with pytest.raises(ValueError):
        record_from_dict(StakePool, d)


def test_record_to_dict_needs_instance() -> None:
    with pytest.raises(TypeError):
        record_to_dict(ShareTicket)
