"""
Engine state primitives: balance tables, holder registry, canonical encoding.
"""

from .balances import Address, Amount, BalanceTable
from .canonical import canonical_json_bytes, derive_address, domain_sep_bytes, sha256_hex
from .holders import HolderRegistry

__all__ = [
    "Address",
    "Amount",
    "BalanceTable",
    "HolderRegistry",
    "canonical_json_bytes",
    "derive_address",
    "domain_sep_bytes",
    "sha256_hex",
]
