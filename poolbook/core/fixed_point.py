"""Fixed-point ledger primitives shared by every engine.

Every function is stateless and operates on plain Python ints. Division is
always Python's ``//`` (floor) and is always applied last, after every
multiplication, so no intermediate rounding is introduced. Stored amounts are
u64; intermediate products are unbounded.
"""

from __future__ import annotations

from .errors import ArithmeticOverflow, InvalidTimestamp

U64_MAX: int = (1 << 64) - 1

RATE_SCALE: int = 1_000_000_000  # 1e9, vault exchange rate
ACC_SCALE: int = 1_000_000_000_000_000_000  # 1e18, reward-per-share accumulator
BPS_SCALE: int = 10_000
MS_PER_SECOND: int = 1_000


def require_int(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")


def require_u64(name: str, value: int) -> int:
    """Return *value* if it fits in u64, else raise ``ArithmeticOverflow``."""
    require_int(name, value)
    if value < 0 or value > U64_MAX:
        raise ArithmeticOverflow(f"{name} outside u64", value=value)
    return value


def checked_add(name: str, a: int, b: int) -> int:
    return require_u64(name, a + b)


def checked_sub(name: str, a: int, b: int) -> int:
    """``a - b``; underflow is an ``ArithmeticOverflow`` like any other u64 escape."""
    return require_u64(name, a - b)


def mul_div(a: int, b: int, denom: int) -> int:
    """``floor(a * b / denom)`` with the product taken at full precision."""
    if denom <= 0:
        raise ZeroDivisionError("mul_div denominator must be positive")
    return (a * b) // denom


def bps_of(amount: int, bps: int) -> int:
    """``floor(amount * bps / 10000)``."""
    return mul_div(amount, bps, BPS_SCALE)


def scaled_ratio(numerator: int, denominator: int, scale: int) -> int:
    """``floor(numerator * scale / denominator)``; the caller guards ``denominator > 0``."""
    return mul_div(numerator, scale, denominator)


def elapsed_seconds(since_ms: int, now_ms: int) -> int:
    """Whole seconds between two millisecond clock readings (floor).

    A reading earlier than *since_ms* means the clock went backwards; that is
    rejected rather than treated as zero elapsed time.
    """
    if now_ms < since_ms:
        raise InvalidTimestamp("clock reading precedes stored timestamp", since_ms=since_ms, now_ms=now_ms)
    return (now_ms - since_ms) // MS_PER_SECOND
