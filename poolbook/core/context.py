"""Caller context supplied by the platform for each operation."""

from __future__ import annotations

from dataclasses import dataclass

from .fixed_point import require_int


@dataclass(frozen=True)
class CallContext:
    """The acting identity and a wall-clock reading in milliseconds.

    The platform guarantees readings are monotonically non-decreasing across
    operations; the engines only reject readings that precede stored times.
    """

    sender: str
    now_ms: int

    def __post_init__(self) -> None:
        if not isinstance(self.sender, str) or not self.sender:
            raise ValueError("sender must be a non-empty str")
        require_int("now_ms", self.now_ms)
        if self.now_ms < 0:
            raise ValueError(f"now_ms must be non-negative: {self.now_ms}")

    def at(self, now_ms: int) -> "CallContext":
        """Same caller, later clock reading."""
        return CallContext(sender=self.sender, now_ms=now_ms)

    def as_sender(self, sender: str) -> "CallContext":
        return CallContext(sender=sender, now_ms=self.now_ms)
