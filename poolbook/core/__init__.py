"""
Core accounting: fixed-point primitives, errors, events and the three engines.

The engine subpackages (``vault``, ``staking``, ``lending``) are imported
explicitly; this module only exposes the shared pieces.
"""

from .context import CallContext
from .errors import CustodyError, InvariantViolation
from .events import EventKind, EventLog, EventRecord
from .fixed_point import ACC_SCALE, BPS_SCALE, RATE_SCALE, U64_MAX

__all__ = [
    "CallContext",
    "CustodyError",
    "InvariantViolation",
    "EventKind",
    "EventLog",
    "EventRecord",
    "ACC_SCALE",
    "BPS_SCALE",
    "RATE_SCALE",
    "U64_MAX",
]
