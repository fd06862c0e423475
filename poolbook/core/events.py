"""Append-only domain event channel.

Events are emitted only by ``Book._commit`` after every check has passed, so
a rejected operation never leaves a trace here. Each event carries the
literal amounts involved.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum, unique
from types import MappingProxyType
from typing import Callable, Iterator, Mapping

logger = logging.getLogger(__name__)


@unique
class EventKind(Enum):
    """One member per emitted event type."""
    VAULT_CREATED = "VaultCreated"
    DEPOSITED = "Deposited"
    WITHDRAWN = "Withdrawn"
    TICKETS_MERGED = "TicketsMerged"
    STAKE_POOL_CREATED = "StakePoolCreated"
    REWARDS_FUNDED = "RewardsFunded"
    STAKED = "Staked"
    REWARDS_CLAIMED = "RewardsClaimed"
    UNSTAKED = "Unstaked"
    LENDING_POOL_CREATED = "LendingPoolCreated"
    LIQUIDITY_DEPOSITED = "LiquidityDeposited"
    BORROWED = "Borrowed"
    REPAID = "Repaid"
    LIQUIDATED = "Liquidated"
    RECORD_TRANSFERRED = "RecordTransferred"


@dataclass(frozen=True)
class EventRecord:
    kind: EventKind
    pool_id: str
    actor: str
    timestamp_ms: int
    amounts: Mapping[str, int] = field(default_factory=dict)
    record_id: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "amounts", MappingProxyType(dict(self.amounts)))


Listener = Callable[[EventRecord], None]


class EventLog:
    """Append-only list of ``EventRecord`` with optional listeners."""

    def __init__(self) -> None:
        self._records: list[EventRecord] = []
        self._listeners: list[Listener] = []

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def extend(self, records: list[EventRecord]) -> None:
        """Append *records*, then notify listeners.

        Records are already committed when listeners run, so a failing
        listener is logged and skipped; it never fails the operation.
        """
        self._records.extend(records)
        for record in records:
            for listener in list(self._listeners):
                try:
                    listener(record)
                except Exception:
                    logger.exception("event listener %r failed on %s", listener, record.kind.value)

    def of_kind(self, kind: EventKind) -> list[EventRecord]:
        return [r for r in self._records if r.kind == kind]

    def last(self) -> EventRecord:
        if not self._records:
            raise IndexError("event log is empty")
        return self._records[-1]

    def __iter__(self) -> Iterator[EventRecord]:
        return iter(list(self._records))

    def __len__(self) -> int:
        return len(self._records)

    def __repr__(self) -> str:
        return f"EventLog({len(self._records)} records)"
