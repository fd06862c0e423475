"""Tests for poolbook/core/book.py — atomic commit, snapshots, dispatch."""

from __future__ import annotations

import logging

import pytest

from poolbook import CallContext, EngineConfig, EventKind, VaultBook
from poolbook.core.book import Batch
from poolbook.core.errors import (
    DuplicateRecord,
    InsufficientBalance,
    InvariantViolation,
    NotOwner,
    RecordNotFound,
)
from poolbook.core.events import EventRecord
from poolbook.core.vault import ShareTicket, VaultAction, VaultPool

ALICE = CallContext("alice", 0)


def _make_book(config: EngineConfig | None = None) -> tuple[VaultBook, str]:
    book = VaultBook(config=config)
    book.balances.set("alice", "USD", 10_000)
    vid = book.create_vault(ALICE, "USD").vault_id
    return book, vid


def _bad_batch(vid: str) -> Batch:
    """Shares minted with no ticket to hold them, plus a wallet credit."""
    batch = Batch()
    batch.pools[vid] = VaultPool(vault_id=vid, asset="USD", balance=5, total_shares=5, min_deposit=1)
    batch.credit("alice", "USD", 5)
    batch.emit(EventRecord(EventKind.DEPOSITED, vid, "alice", 0, {"amount": 5}))
    return batch


# ---------------------------------------------------------------------------
# _commit
# ---------------------------------------------------------------------------

class TestCommit:
    def test_invariant_violation_leaves_no_trace(self):
        book, vid = _make_book()
        before = (book.snapshot_digest(), len(book.events), book.balances.get("alice", "USD"))
        with pytest.raises(InvariantViolation) as exc:
            book._commit(_bad_batch(vid))
        assert "inv_shares_sum_to_total" in exc.value.violations
        assert exc.value.code == "invariant_violation"
        assert (book.snapshot_digest(), len(book.events), book.balances.get("alice", "USD")) == before

    def test_verification_can_be_disabled(self):
        book, vid = _make_book(EngineConfig(verify_invariants=False))
        book._commit(_bad_batch(vid))
        assert book.vault(vid).total_shares == 5
        assert book.check_invariants() != []

    def test_unfunded_debit_rejected_before_anything_applies(self):
        book, vid = _make_book()
        batch = Batch()
        batch.debit("alice", "USD", 10_001)
        batch.credit("bob", "USD", 1)
        with pytest.raises(InsufficientBalance) as exc:
            book._commit(batch)
        assert exc.value.context["shortfall"] == 1
        assert book.balances.get("bob", "USD") == 0

    def test_credit_does_not_fund_debit_of_same_batch(self):
        book, _ = _make_book()
        batch = Batch()
        batch.credit("alice", "USD", 5_000)
        batch.debit("alice", "USD", 12_000)
        with pytest.raises(InsufficientBalance):
            book._commit(batch)

    def test_insert_over_existing_id_rejected(self):
        book, vid = _make_book()
        t = book.deposit(ALICE, vid, 100)
        batch = Batch()
        batch.insert_position(t.ticket_id, ShareTicket(t.ticket_id, vid, "bob", 100))
        batch.pools[vid] = VaultPool(vault_id=vid, asset="USD", balance=200, total_shares=200, min_deposit=1)
        with pytest.raises(DuplicateRecord) as exc:
            book._commit(batch)
        assert exc.value.context["record_ids"] == [t.ticket_id]
        assert book.ticket(t.ticket_id).owner == "alice"

    def test_zero_transfers_are_dropped(self):
        batch = Batch()
        batch.debit("a", "X", 0)
        batch.credit("a", "X", 0)
        assert batch.transfers == []


# ---------------------------------------------------------------------------
# lookup / ownership
# ---------------------------------------------------------------------------

class TestLookup:
    def test_unknown_records(self):
        book, _ = _make_book()
        with pytest.raises(RecordNotFound):
            book.pool("missing")
        with pytest.raises(RecordNotFound) as exc:
            book.position("missing")
        assert exc.value.context == {"position_id": "missing"}

    def test_owned_position(self):
        book, vid = _make_book()
        t = book.deposit(ALICE, vid, 100)
        assert book.owned_position(ALICE, t.ticket_id) == t
        with pytest.raises(NotOwner):
            book.owned_position(ALICE.as_sender("bob"), t.ticket_id)

    def test_transfer_rejects_empty_owner(self):
        book, vid = _make_book()
        t = book.deposit(ALICE, vid, 100)
        with pytest.raises(ValueError):
            book.transfer(ALICE, t.ticket_id, "")

    def test_repr(self):
        book, vid = _make_book()
        book.deposit(ALICE, vid, 100)
        assert repr(book) == "VaultBook(1 pools, 1 positions)"


# ---------------------------------------------------------------------------
# snapshot / restore
# ---------------------------------------------------------------------------

class TestSnapshot:
    def test_round_trip(self):
        book, vid = _make_book()
        book.deposit(ALICE, vid, 300)
        book.deposit(ALICE.at(5), vid, 200)
        snap = book.snapshot()

        other = VaultBook()
        other.restore(snap)
        assert other.snapshot() == snap
        assert other.snapshot_digest() == book.snapshot_digest()
        assert other.vault(vid).balance == 500

    def test_digest_tracks_state(self):
        book, vid = _make_book()
        d0 = book.snapshot_digest()
        book.deposit(ALICE, vid, 1)
        assert book.snapshot_digest() != d0
        assert book.snapshot_digest().startswith("0x")

    @pytest.mark.parametrize("verify", [True, False])
    def test_restored_book_never_reissues_ids(self, verify):
        book, vid = _make_book()
        alice_ticket = book.deposit(ALICE, vid, 300)
        snap = book.snapshot()
        assert snap["ids_issued"] == 2

        other = VaultBook(config=EngineConfig(verify_invariants=verify))
        other.balances.set("bob", "USD", 1_000)
        other.restore(snap)
        bob = CallContext("bob", 10)
        issued = [other.deposit(bob, vid, 10).ticket_id for _ in range(3)]

        assert alice_ticket.ticket_id not in issued
        assert len(set(issued)) == 3
        assert other.ticket(alice_ticket.ticket_id).owner == "alice"
        assert other.ticket(alice_ticket.ticket_id).shares == 300
        assert other.vault(vid).total_shares == 330
        assert other.check_invariants() == []

    def test_snapshot_without_counter_still_skips_taken_ids(self):
        book, vid = _make_book()
        alice_ticket = book.deposit(ALICE, vid, 300)
        snap = book.snapshot()
        del snap["ids_issued"]

        other = VaultBook(config=EngineConfig(verify_invariants=False))
        other.balances.set("bob", "USD", 1_000)
        other.restore(snap)
        bob = CallContext("bob", 10)
        issued = [other.deposit(bob, vid, 10).ticket_id for _ in range(3)]
        assert alice_ticket.ticket_id not in issued
        assert other.ticket(alice_ticket.ticket_id).owner == "alice"
        assert other.check_invariants() == []

    def test_bad_counter_rejected(self):
        book, _ = _make_book()
        snap = book.snapshot()
        snap["ids_issued"] = -1
        with pytest.raises(ValueError):
            VaultBook().restore(snap)

    def test_kind_mismatch(self):
        book, _ = _make_book()
        snap = book.snapshot()
        snap["kind"] = "staking"
        with pytest.raises(ValueError):
            VaultBook().restore(snap)

    def test_inconsistent_snapshot_rejected(self):
        book, vid = _make_book()
        snap = {
            "kind": "vault",
            "pools": [{"vault_id": vid, "asset": "USD", "balance": 100, "total_shares": 100, "min_deposit": 1}],
            "positions": [{"ticket_id": "t", "vault_id": vid, "owner": "alice", "shares": 40}],
        }
        with pytest.raises(InvariantViolation):
            book.restore(snap)
        assert book.vault(vid).total_shares == 0


# ---------------------------------------------------------------------------
# step / events
# ---------------------------------------------------------------------------

class TestStep:
    def test_unknown_action(self):
        book, _ = _make_book()
        r = book.step(ALICE, EventKind.DEPOSITED)
        assert not r.accepted
        assert r.rejection.startswith("unknown_action:")

    def test_rejection_leaves_event_log_alone(self):
        book, vid = _make_book()
        n = len(book.events)
        r = book.step(ALICE, VaultAction.DEPOSIT, vault_id=vid, amount=0)
        assert (r.accepted, r.rejection) == (False, "invalid_amount")
        assert len(book.events) == n

    def test_listener_sees_committed_events(self):
        book, vid = _make_book()
        seen = []
        book.events.subscribe(seen.append)
        book.step(ALICE, VaultAction.DEPOSIT, vault_id=vid, amount=100)
        book.step(ALICE, VaultAction.DEPOSIT, vault_id=vid, amount=-1)
        assert [e.kind for e in seen] == [EventKind.DEPOSITED]
        assert seen[0].amounts["amount"] == 100
        assert book.events.of_kind(EventKind.VAULT_CREATED)[0].pool_id == vid

    def test_failing_listener_does_not_fail_committed_operation(self, caplog):
        book, vid = _make_book()
        seen = []

        def broken(event):
            raise RuntimeError("listener down")

        book.events.subscribe(broken)
        book.events.subscribe(seen.append)
        with caplog.at_level(logging.ERROR, logger="poolbook.core.events"):
            t = book.deposit(ALICE, vid, 300)

        assert book.vault(vid).balance == 300
        assert book.balances.get("alice", "USD") == 9_700
        assert book.ticket(t.ticket_id).shares == 300
        assert book.events.last().kind == EventKind.DEPOSITED
        assert [e.kind for e in seen] == [EventKind.DEPOSITED]
        assert "listener down" in caplog.text

    def test_every_event_of_a_batch_is_appended_before_listeners_run(self):
        book, vid = _make_book()
        counts = []
        book.events.subscribe(lambda e: counts.append(len(book.events)))
        batch = Batch()
        batch.emit(EventRecord(EventKind.DEPOSITED, vid, "alice", 0, {"amount": 1}))
        batch.emit(EventRecord(EventKind.WITHDRAWN, vid, "alice", 0, {"amount": 1}))
        n = len(book.events)
        book._commit(batch)
        assert counts == [n + 2, n + 2]

    def test_event_amounts_are_read_only(self):
        book, vid = _make_book()
        book.deposit(ALICE, vid, 100)
        with pytest.raises(TypeError):
            book.events.last().amounts["amount"] = 1
