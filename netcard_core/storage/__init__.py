# netcard_core/storage/__init__.py

from .models import CardRecord
from .provider import CardStorageProvider
from .providers.memory_provider import InMemoryCardStorage
from .providers.sqlite_provider import SQLiteCardStorage
from netcard_core.constants import DEFAULT_DB_PATH
import os


def load_storage_provider(config: dict | None = None) -> CardStorageProvider:
    """
    Factory resolver for selecting the card storage backend.

        - sqlite (default)
        - memory
    """
    config = config or {}
    provider = config.get("provider") or os.getenv("NETCARD_STORAGE_PROVIDER", "sqlite")

    if provider == "memory":
        return InMemoryCardStorage()

    if provider == "sqlite":
        db_path = config.get("sqlite_path") or os.getenv("NETCARD_DB_PATH", DEFAULT_DB_PATH)
        return SQLiteCardStorage(db_path)

    raise ValueError(f"Unknown storage provider: {provider}")


__all__ = [
    "CardRecord",
    "CardStorageProvider",
    "InMemoryCardStorage",
    "SQLiteCardStorage",
    "load_storage_provider",
]
