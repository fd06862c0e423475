"""Shared commit machinery for the three engines.

A book owns the pool and position records of one engine. Operations never
mutate records in place: they build replacement records from the pre-state,
collect them in a ``Batch`` together with wallet transfers and events, and
hand the batch to ``Book._commit``, the single place where state changes.

``_commit`` checks that every wallet debit is fundable and (optionally) that
the staged view satisfies every invariant before applying anything, so a
rejected operation leaves records, wallets and the event log untouched.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Callable, ClassVar, Generic, Mapping, TypeVar

from ..config import EngineConfig
from ..state.balances import BalanceTable
from ..state.canonical import canonical_json_bytes, sha256_hex
from ..state.ids import IdAllocator
from ..state.records import record_from_dict, record_to_dict
from .context import CallContext
from .errors import (
    CustodyError,
    DuplicateRecord,
    InsufficientBalance,
    InvariantViolation,
    NotOwner,
    RecordNotFound,
)
from .events import EventKind, EventLog, EventRecord

logger = logging.getLogger(__name__)

P = TypeVar("P")
Q = TypeVar("Q")

CheckFn = Callable[[Mapping[str, Any], Mapping[str, Any]], list[str]]


@dataclass(frozen=True)
class StepResult:
    """Result of ``Book.step``: the operation's return value or a rejection code."""

    accepted: bool
    value: Any = None
    rejection: str | None = None


@dataclass
class Batch:
    """Staged changes of one operation."""

    pools: dict[str, Any] = field(default_factory=dict)
    positions: dict[str, Any] = field(default_factory=dict)
    removed: set[str] = field(default_factory=set)
    transfers: list[tuple[str, str, int]] = field(default_factory=list)
    events: list[EventRecord] = field(default_factory=list)
    created: set[str] = field(default_factory=set)

    def insert_pool(self, pool_id: str, pool: Any) -> None:
        """Stage a brand-new pool; its id must not be taken."""
        self.pools[pool_id] = pool
        self.created.add(pool_id)

    def insert_position(self, position_id: str, position: Any) -> None:
        """Stage a brand-new ticket or position; its id must not be taken."""
        self.positions[position_id] = position
        self.created.add(position_id)

    def debit(self, owner: str, asset: str, amount: int) -> None:
        """Move *amount* from a wallet into custody."""
        if amount:
            self.transfers.append((owner, asset, -amount))

    def credit(self, owner: str, asset: str, amount: int) -> None:
        """Move *amount* out of custody into a wallet."""
        if amount:
            self.transfers.append((owner, asset, amount))

    def emit(self, event: EventRecord) -> None:
        self.events.append(event)


class Book(Generic[P, Q]):
    """Base class: record storage, lookup, commit, snapshots, step dispatch."""

    kind: ClassVar[str]
    pool_type: ClassVar[type]
    position_type: ClassVar[type]
    pool_id_field: ClassVar[str] = "pool_id"
    position_id_field: ClassVar[str] = "position_id"
    position_pool_field: ClassVar[str] = "pool_id"
    owner_field: ClassVar[str] = "owner"
    check_all: ClassVar[CheckFn]
    actions: ClassVar[Mapping[Enum, str]] = {}

    def __init__(
        self,
        balances: BalanceTable | None = None,
        events: EventLog | None = None,
        ids: IdAllocator | None = None,
        config: EngineConfig | None = None,
    ) -> None:
        self.balances = balances if balances is not None else BalanceTable()
        self.events = events if events is not None else EventLog()
        self.ids = ids if ids is not None else IdAllocator()
        self.config = config if config is not None else EngineConfig()
        self._pools: dict[str, P] = {}
        self._positions: dict[str, Q] = {}

    # -- Lookup --------------------------------------------------------------

    def pool(self, pool_id: str) -> P:
        try:
            return self._pools[pool_id]
        except KeyError:
            raise RecordNotFound(f"unknown {self.kind} pool", pool_id=pool_id) from None

    def position(self, position_id: str) -> Q:
        try:
            return self._positions[position_id]
        except KeyError:
            raise RecordNotFound(f"unknown {self.kind} position", position_id=position_id) from None

    def pools(self) -> list[P]:
        return [self._pools[k] for k in sorted(self._pools)]

    def positions_of(self, owner: str) -> list[Q]:
        return [
            self._positions[k]
            for k in sorted(self._positions)
            if getattr(self._positions[k], self.owner_field) == owner
        ]

    def positions_in(self, pool_id: str) -> list[Q]:
        return [
            self._positions[k]
            for k in sorted(self._positions)
            if getattr(self._positions[k], self.position_pool_field) == pool_id
        ]

    def owned_position(self, ctx: CallContext, position_id: str) -> Q:
        """Look up a position and check the caller holds it."""
        record = self.position(position_id)
        owner = getattr(record, self.owner_field)
        if owner != ctx.sender:
            raise NotOwner(position_id=position_id, owner=owner, sender=ctx.sender)
        return record

    # -- Commit --------------------------------------------------------------

    def _event(
        self,
        kind: EventKind,
        ctx: CallContext,
        pool_id: str,
        record_id: str | None = None,
        **amounts: int,
    ) -> EventRecord:
        return EventRecord(
            kind=kind,
            pool_id=pool_id,
            actor=ctx.sender,
            timestamp_ms=ctx.now_ms,
            amounts=amounts,
            record_id=record_id,
        )

    def _staged_view(self, batch: Batch) -> tuple[dict[str, P], dict[str, Q]]:
        pools = {**self._pools, **batch.pools}
        positions = {**self._positions, **batch.positions}
        for key in batch.removed:
            positions.pop(key, None)
        return pools, positions

    def _new_id(self, kind: str) -> str:
        """Allocate an id not held by any record of this book."""
        while True:
            record_id = self.ids.next_id(kind)
            if record_id not in self._pools and record_id not in self._positions:
                return record_id

    def _commit(self, batch: Batch) -> None:
        taken = sorted(k for k in batch.created if k in self._pools or k in self._positions)
        if taken:
            raise DuplicateRecord(record_ids=taken)

        # Debits are checked gross: credits in the same batch cannot fund them.
        net: dict[tuple[str, str], int] = defaultdict(int)
        debits: dict[tuple[str, str], int] = defaultdict(int)
        for owner, asset, delta in batch.transfers:
            net[(owner, asset)] += delta
            if delta < 0:
                debits[(owner, asset)] += delta
        shortfall = self.balances.can_apply(dict(debits))
        if shortfall is not None:
            owner, asset, missing = shortfall
            raise InsufficientBalance(owner=owner, asset=asset, shortfall=missing)

        if self.config.verify_invariants:
            pools, positions = self._staged_view(batch)
            violations = type(self).check_all(pools, positions)
            if violations:
                raise InvariantViolation(violations)

        self._pools.update(batch.pools)
        self._positions.update(batch.positions)
        for key in batch.removed:
            self._positions.pop(key, None)
        for (owner, asset), delta in sorted(net.items()):
            self.balances.add(owner, asset, delta)
        self.events.extend(batch.events)
        for event in batch.events:
            logger.debug("%s %s pool=%s amounts=%s", self.kind, event.kind.value, event.pool_id, dict(event.amounts))

    def check_invariants(self) -> list[str]:
        """Return the names of violated invariants (empty = all hold)."""
        return type(self).check_all(self._pools, self._positions)

    # -- Bearer claims -------------------------------------------------------

    def transfer(self, ctx: CallContext, position_id: str, new_owner: str) -> Q:
        """Hand a position/ticket to another identity."""
        if not isinstance(new_owner, str) or not new_owner:
            raise ValueError("new_owner must be a non-empty str")
        record = self.owned_position(ctx, position_id)
        moved = replace(record, **{self.owner_field: new_owner})
        batch = Batch()
        batch.positions[position_id] = moved
        batch.emit(self._event(
            EventKind.RECORD_TRANSFERRED, ctx, getattr(record, self.position_pool_field), position_id,
        ))
        self._commit(batch)
        return moved

    # -- Snapshots -----------------------------------------------------------

    def snapshot(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "ids_issued": self.ids.issued,
            "pools": [record_to_dict(self._pools[k]) for k in sorted(self._pools)],
            "positions": [record_to_dict(self._positions[k]) for k in sorted(self._positions)],
        }

    def snapshot_digest(self) -> str:
        return sha256_hex(canonical_json_bytes(self.snapshot()))

    def restore(self, snapshot: Mapping[str, Any]) -> None:
        """Replace every record with those of *snapshot* (validated first)."""
        if snapshot.get("kind") != self.kind:
            raise ValueError(f"snapshot kind {snapshot.get('kind')!r} does not match {self.kind!r}")
        pools: dict[str, P] = {}
        for raw in snapshot["pools"]:
            rec = record_from_dict(self.pool_type, raw)
            pools[getattr(rec, self.pool_id_field)] = rec
        positions: dict[str, Q] = {}
        for raw in snapshot["positions"]:
            rec = record_from_dict(self.position_type, raw)
            positions[getattr(rec, self.position_id_field)] = rec
        issued = snapshot.get("ids_issued", 0)
        if not isinstance(issued, int) or isinstance(issued, bool) or issued < 0:
            raise ValueError(f"ids_issued must be a non-negative int: {issued!r}")
        violations = type(self).check_all(pools, positions)
        if violations:
            raise InvariantViolation(violations)
        self._pools = pools
        self._positions = positions
        self.ids.reserve(issued)

    # -- Dispatch ------------------------------------------------------------

    def step(self, ctx: CallContext, action: Enum, **params: Any) -> StepResult:
        """Run one action; rejections are returned instead of raised."""
        name = self.actions.get(action)
        if name is None:
            return StepResult(accepted=False, rejection=f"unknown_action:{action}")
        try:
            value = getattr(self, name)(ctx, **params)
        except CustodyError as exc:
            return StepResult(accepted=False, rejection=exc.code)
        return StepResult(accepted=True, value=value)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({len(self._pools)} pools, {len(self._positions)} positions)"
