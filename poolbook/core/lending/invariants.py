"""Invariant checkers for the loan book."""

from __future__ import annotations

from collections import defaultdict
from typing import Callable, Mapping

from .types import LendingPool, LoanPosition

Pools = Mapping[str, LendingPool]
Positions = Mapping[str, LoanPosition]


def inv_principal_sum_to_borrowed(pools: Pools, positions: Positions) -> bool:
    sums: dict[str, int] = defaultdict(int)
    for pos in positions.values():
        sums[pos.pool_id] += pos.borrowed_amount
    return all(sums.get(pid, 0) == p.total_borrowed for pid, p in pools.items())


def inv_liquidity_covers_deposits(pools: Pools, positions: Positions) -> bool:
    # Interest only ever adds to liquidity; principal is either lent out or on hand.
    return all(p.available_liquidity + p.total_borrowed >= p.total_deposits for p in pools.values())


def inv_positions_reference_known_pool(pools: Pools, positions: Positions) -> bool:
    return all(pos.pool_id in pools for pos in positions.values())


def inv_positions_collateralized(pools: Pools, positions: Positions) -> bool:
    return all(pos.collateral > 0 and pos.borrowed_amount > 0 for pos in positions.values())


def inv_interest_never_checkpointed(pools: Pools, positions: Positions) -> bool:
    return all(pos.interest_accumulated == 0 for pos in positions.values())


def inv_keys_match_ids(pools: Pools, positions: Positions) -> bool:
    return all(k == p.pool_id for k, p in pools.items()) and all(
        k == pos.position_id for k, pos in positions.items()
    )


INVARIANT_REGISTRY: dict[str, Callable[[Pools, Positions], bool]] = {
    "inv_principal_sum_to_borrowed": inv_principal_sum_to_borrowed,
    "inv_liquidity_covers_deposits": inv_liquidity_covers_deposits,
    "inv_positions_reference_known_pool": inv_positions_reference_known_pool,
    "inv_positions_collateralized": inv_positions_collateralized,
    "inv_interest_never_checkpointed": inv_interest_never_checkpointed,
    "inv_keys_match_ids": inv_keys_match_ids,
}


def check_all(pools: Pools, positions: Positions) -> list[str]:
    """Return list of violated invariant names (empty = all pass)."""
    return [
        inv_id
        for inv_id, check_fn in INVARIANT_REGISTRY.items()
        if not check_fn(pools, positions)
    ]
