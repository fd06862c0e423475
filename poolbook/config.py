"""
Engine configuration.

Parameter records are frozen and validated on construction. Defaults are the
protocol constants; ``load_config`` reads overrides from a YAML file.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Mapping

import yaml

from .core.fixed_point import BPS_SCALE, U64_MAX


def _require_int(name: str, value: Any) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")


@dataclass(frozen=True)
class VaultParams:
    default_min_deposit: int = 1

    def __post_init__(self) -> None:
        _require_int("default_min_deposit", self.default_min_deposit)
        if not (0 <= self.default_min_deposit <= U64_MAX):
            raise ValueError(f"default_min_deposit must be a u64: {self.default_min_deposit}")


@dataclass(frozen=True)
class StakingParams:
    default_lock_period_ms: int = 0
    max_reward_per_second: int = U64_MAX

    def __post_init__(self) -> None:
        for name, v in (
            ("default_lock_period_ms", self.default_lock_period_ms),
            ("max_reward_per_second", self.max_reward_per_second),
        ):
            _require_int(name, v)
            if not (0 <= v <= U64_MAX):
                raise ValueError(f"{name} must be a u64: {v}")


@dataclass(frozen=True)
class LendingParams:
    ltv_bps: int = 7_500
    liquidation_threshold_bps: int = 8_500
    liquidation_bonus_bps: int = 10_500  # debt + 5%
    interest_rate_bps: int = 1_000  # 10% APY, simple interest

    def __post_init__(self) -> None:
        for name, v in (
            ("ltv_bps", self.ltv_bps),
            ("liquidation_threshold_bps", self.liquidation_threshold_bps),
            ("liquidation_bonus_bps", self.liquidation_bonus_bps),
            ("interest_rate_bps", self.interest_rate_bps),
        ):
            _require_int(name, v)
            if v < 0:
                raise ValueError(f"{name} must be non-negative: {v}")
        if not (0 < self.ltv_bps < self.liquidation_threshold_bps <= BPS_SCALE):
            raise ValueError(
                "require 0 < ltv_bps < liquidation_threshold_bps <= "
                f"{BPS_SCALE}: {self.ltv_bps}, {self.liquidation_threshold_bps}"
            )
        if self.liquidation_bonus_bps < BPS_SCALE:
            raise ValueError(f"liquidation_bonus_bps must be >= {BPS_SCALE}: {self.liquidation_bonus_bps}")


@dataclass(frozen=True)
class EngineConfig:
    vault: VaultParams = field(default_factory=VaultParams)
    staking: StakingParams = field(default_factory=StakingParams)
    lending: LendingParams = field(default_factory=LendingParams)
    # Run every invariant over the staged post-state before committing.
    verify_invariants: bool = True


_SECTIONS: dict[str, type] = {
    "vault": VaultParams,
    "staking": StakingParams,
    "lending": LendingParams,
}


def _section(name: str, raw: Any) -> Any:
    cls = _SECTIONS[name]
    if raw is None:
        return cls()
    if not isinstance(raw, Mapping):
        raise TypeError(f"config section {name!r} must be a mapping")
    known = {f.name for f in fields(cls)}
    unknown = set(raw) - known
    if unknown:
        raise ValueError(f"unknown keys in {name!r}: {sorted(unknown)}")
    return cls(**dict(raw))


def config_from_mapping(raw: Mapping[str, Any] | None) -> EngineConfig:
    """Build an ``EngineConfig`` from a plain mapping (missing keys take defaults)."""
    if raw is None:
        return EngineConfig()
    if not isinstance(raw, Mapping):
        raise TypeError("config must be a mapping")
    unknown = set(raw) - set(_SECTIONS) - {"verify_invariants"}
    if unknown:
        raise ValueError(f"unknown config keys: {sorted(unknown)}")
    verify = raw.get("verify_invariants", True)
    if not isinstance(verify, bool):
        raise TypeError("verify_invariants must be a bool")
    return EngineConfig(
        vault=_section("vault", raw.get("vault")),
        staking=_section("staking", raw.get("staking")),
        lending=_section("lending", raw.get("lending")),
        verify_invariants=verify,
    )


def load_config(path: str | Path) -> EngineConfig:
    """Load an ``EngineConfig`` from a YAML file."""
    obj = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    return config_from_mapping(obj)
