"""
netcard_core
============
Business network card persistence.

Provides:
- CardArchive: identity + connection profile packed into a signed zip archive
- CardStore: async name -> card store that keeps per-card wallet data across overwrites
- Pluggable storage providers (SQLite default, in-memory)
"""

from .card import CardArchive, ConnectionProfile, Identity
from .card_store import CardStore, load_card_store
from .errors import (
    CardError,
    ConflictError,
    FormatError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from .wallet import Wallet

__all__ = [
    "CardArchive",
    "ConnectionProfile",
    "Identity",
    "CardStore",
    "load_card_store",
    "Wallet",
    "CardError",
    "ConflictError",
    "FormatError",
    "NotFoundError",
    "StorageError",
    "ValidationError",
]
