"""
poolbook: custody-holding accounting engines on unsigned fixed-point integers.

- ``VaultBook``: proportional-share vault
- ``StakingBook``: time-accrual staking reward distributor
- ``LoanBook``: collateralized loan book with self-liquidation
"""

from .core.lending import LoanBook
from .core.staking import StakingBook
from .core.vault import VaultBook
from .config import EngineConfig, LendingParams, StakingParams, VaultParams, load_config
from .core.book import StepResult
from .core.context import CallContext
from .core.events import EventKind, EventLog
from .state.balances import BalanceTable
from .state.ids import IdAllocator

__all__ = [
    "LoanBook",
    "StakingBook",
    "VaultBook",
    "EngineConfig",
    "LendingParams",
    "StakingParams",
    "VaultParams",
    "load_config",
    "StepResult",
    "CallContext",
    "EventKind",
    "EventLog",
    "BalanceTable",
    "IdAllocator",
]
