"""
Unique identity allocation for pools, tickets and positions.

Ids are deterministic: H(domain("record") || namespace || kind || counter).
Two allocators with the same namespace hand out the same sequence, which keeps
replays and snapshots reproducible.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from .canonical import domain_sep_bytes, encode_uvarint, sha256_hex


RecordId = str


@dataclass
class IdAllocator:
    """Mutable counter; one allocator may be shared by several books."""

    namespace: str = "default"
    _counter: int = field(default=0, repr=False)

    def next_id(self, kind: str) -> RecordId:
        if not isinstance(kind, str) or not kind:
            raise ValueError("kind must be a non-empty str")
        self._counter += 1
        payload = (
            domain_sep_bytes("record")
            + self.namespace.encode("utf-8")
            + b"\x00"
            + kind.encode("utf-8")
            + b"\x00"
            + encode_uvarint(self._counter)
        )
        return sha256_hex(payload)

    def reserve(self, issued: int) -> None:
        """Advance the counter to at least *issued* (used after a restore)."""
        if not isinstance(issued, int) or isinstance(issued, bool) or issued < 0:
            raise ValueError(f"issued must be a non-negative int: {issued!r}")
        self._counter = max(self._counter, issued)

    @property
    def issued(self) -> int:
        return self._counter
