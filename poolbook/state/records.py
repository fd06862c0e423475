"""Record serialization for engine snapshots.

Persisted state is exactly the pool and position/ticket records. Records are
frozen dataclasses whose fields are ``str`` or ``int``; field names are
derived from the dataclass definition (single source of truth).

Round-trip property (tested): ``record_from_dict(type(r), record_to_dict(r)) == r``.
"""

from __future__ import annotations

from dataclasses import fields, is_dataclass
from typing import Any, Mapping, TypeVar

R = TypeVar("R")


def field_names(cls: type) -> tuple[str, ...]:
    return tuple(f.name for f in fields(cls))


def record_to_dict(record: Any) -> dict[str, str | int]:
    """Serialize a record to a plain dict."""
    if not is_dataclass(record) or isinstance(record, type):
        raise TypeError(f"expected a record instance, got {type(record).__name__}")
    return {name: getattr(record, name) for name in field_names(type(record))}


def record_from_dict(cls: type[R], d: Mapping[str, Any]) -> R:
    """Deserialize a dict to a record. Raises KeyError on missing fields."""
    kwargs: dict[str, Any] = {}
    for name in field_names(cls):
        val = d[name]
        if isinstance(val, bool):
            raise TypeError(f"record field {name!r} must be str|int, got bool")
        if isinstance(val, int):
            kwargs[name] = int(val)
        elif isinstance(val, str):
            kwargs[name] = val
        else:
            raise TypeError(f"record field {name!r} must be str|int, got {type(val).__name__}")
    extra = set(d) - set(kwargs)
    if extra:
        raise ValueError(f"unknown record fields: {sorted(extra)}")
    return cls(**kwargs)
