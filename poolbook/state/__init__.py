"""
In-process collaborators of the engines: wallets, ids, canonical encoding.
"""

from .balances import AssetId, Amount, BalanceTable, Owner
from .canonical import canonical_json_bytes, domain_sep_bytes, sha256_hex
from .ids import IdAllocator, RecordId
from .records import record_from_dict, record_to_dict

__all__ = [
    "AssetId",
    "Amount",
    "BalanceTable",
    "Owner",
    "canonical_json_bytes",
    "domain_sep_bytes",
    "sha256_hex",
    "IdAllocator",
    "RecordId",
    "record_from_dict",
    "record_to_dict",
]
