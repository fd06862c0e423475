from __future__ import annotations

import pytest

from poolbook.core.errors import InsufficientBalance
from poolbook.state.balances import BalanceTable


def test_missing_balance_reads_zero() -> None:
    assert BalanceTable().get("alice", "USD") == 0


def test_zero_balances_are_dropped() -> None:
    b = BalanceTable()
    b.set("alice", "USD", 5)
    b.add("alice", "USD", -5)
    assert repr(b) == "BalanceTable(0 entries)"


def test_negative_set_rejected() -> None:
    with pytest.raises(ValueError):
        BalanceTable().set("alice", "USD", -1)


def test_overdraw_raises_and_keeps_balance() -> None:
    b = BalanceTable()
    b.set("alice", "USD", 10)
    with pytest.raises(InsufficientBalance) as exc:
        b.add("alice", "USD", -11)
    assert exc.value.context["available"] == 10
    assert b.get("alice", "USD") == 10


def test_can_apply_reports_first_shortfall_in_key_order() -> None:
    b = BalanceTable()
    b.set("alice", "USD", 10)
    b.set("bob", "USD", 1)
    deltas = {("bob", "USD"): -3, ("alice", "USD"): -20, ("carol", "EUR"): 4}
    assert b.can_apply(deltas) == ("alice", "USD", 10)
    assert b.can_apply({("alice", "USD"): -10}) is None
    assert b.get("alice", "USD") == 10


def test_total_supply_per_asset() -> None:
    b = BalanceTable()
    b.set("alice", "USD", 10)
    b.set("bob", "USD", 7)
    b.set("bob", "EUR", 3)
    assert b.total_supply("USD") == 17
    assert b.total_supply("GBP") == 0
