"""Invariant checkers for the staking distributor."""

from __future__ import annotations

from collections import defaultdict
from typing import Callable, Mapping

from .math import entitlement
from .types import StakePool, StakePosition

Pools = Mapping[str, StakePool]
Positions = Mapping[str, StakePosition]


def inv_amounts_sum_to_total(pools: Pools, positions: Positions) -> bool:
    sums: dict[str, int] = defaultdict(int)
    for pos in positions.values():
        sums[pos.pool_id] += pos.amount
    return all(sums.get(pid, 0) == p.total_staked for pid, p in pools.items())


def inv_staked_balance_matches(pools: Pools, positions: Positions) -> bool:
    return all(p.staked_balance == p.total_staked for p in pools.values())


def inv_positions_reference_known_pool(pools: Pools, positions: Positions) -> bool:
    return all(pos.pool_id in pools for pos in positions.values())


def inv_positions_nonzero(pools: Pools, positions: Positions) -> bool:
    return all(pos.amount > 0 for pos in positions.values())


def inv_debt_within_entitlement(pools: Pools, positions: Positions) -> bool:
    # reward_debt is always a past entitlement and the accumulator never decreases.
    for pos in positions.values():
        pool = pools.get(pos.pool_id)
        if pool is None:
            continue
        if pos.reward_debt > entitlement(pos.amount, pool.accumulated_reward_per_share):
            return False
    return True


def inv_keys_match_ids(pools: Pools, positions: Positions) -> bool:
    return all(k == p.pool_id for k, p in pools.items()) and all(
        k == pos.position_id for k, pos in positions.items()
    )


INVARIANT_REGISTRY: dict[str, Callable[[Pools, Positions], bool]] = {
    "inv_amounts_sum_to_total": inv_amounts_sum_to_total,
    "inv_staked_balance_matches": inv_staked_balance_matches,
    "inv_positions_reference_known_pool": inv_positions_reference_known_pool,
    "inv_positions_nonzero": inv_positions_nonzero,
    "inv_debt_within_entitlement": inv_debt_within_entitlement,
    "inv_keys_match_ids": inv_keys_match_ids,
}


def check_all(pools: Pools, positions: Positions) -> list[str]:
    """Return list of violated invariant names (empty = all pass)."""
    return [
        inv_id
        for inv_id, check_fn in INVARIANT_REGISTRY.items()
        if not check_fn(pools, positions)
    ]
