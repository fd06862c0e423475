"""Invariant checkers for the vault.

Each function returns True when the invariant holds over a (possibly staged)
view of the book. ``check_all()`` returns the names of the violated ones.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Callable, Mapping

from .types import ShareTicket, VaultPool

Pools = Mapping[str, VaultPool]
Tickets = Mapping[str, ShareTicket]


def inv_shares_sum_to_total(pools: Pools, tickets: Tickets) -> bool:
    sums: dict[str, int] = defaultdict(int)
    for t in tickets.values():
        sums[t.vault_id] += t.shares
    return all(sums.get(vid, 0) == p.total_shares for vid, p in pools.items())


def inv_tickets_reference_known_vault(pools: Pools, tickets: Tickets) -> bool:
    return all(t.vault_id in pools for t in tickets.values())


def inv_no_empty_tickets(pools: Pools, tickets: Tickets) -> bool:
    return all(t.shares > 0 for t in tickets.values())


def inv_no_unclaimed_balance(pools: Pools, tickets: Tickets) -> bool:
    # The last redemption burns total_shares and so pays out the whole balance.
    return all(p.total_shares > 0 or p.balance == 0 for p in pools.values())


def inv_shares_backed(pools: Pools, tickets: Tickets) -> bool:
    return all(p.balance > 0 or p.total_shares == 0 for p in pools.values())


def inv_keys_match_ids(pools: Pools, tickets: Tickets) -> bool:
    return all(k == p.vault_id for k, p in pools.items()) and all(
        k == t.ticket_id for k, t in tickets.items()
    )


INVARIANT_REGISTRY: dict[str, Callable[[Pools, Tickets], bool]] = {
    "inv_shares_sum_to_total": inv_shares_sum_to_total,
    "inv_tickets_reference_known_vault": inv_tickets_reference_known_vault,
    "inv_no_empty_tickets": inv_no_empty_tickets,
    "inv_no_unclaimed_balance": inv_no_unclaimed_balance,
    "inv_shares_backed": inv_shares_backed,
    "inv_keys_match_ids": inv_keys_match_ids,
}


def check_all(pools: Pools, tickets: Tickets) -> list[str]:
    """Return list of violated invariant names (empty = all pass)."""
    return [
        inv_id
        for inv_id, check_fn in INVARIANT_REGISTRY.items()
        if not check_fn(pools, tickets)
    ]
