# netcard_core/storage/provider.py
from __future__ import annotations
from typing import Any, Dict, List, Optional
from netcard_core.storage.models import CardRecord


class CardStorageProvider:
    """
    Async storage contract consumed by CardStore.

    Records are keyed by a unique ``name``. ``upsert_archive`` writes a card
    unconditionally. ``update`` is a compare-and-swap:
    it applies only while the stored version equals ``expected_version`` and
    returns False otherwise (including when the record is gone).
    """

    async def find_one(self, name: str) -> Optional[CardRecord]:
        raise NotImplementedError

    async def find(self, owner_ref: Optional[str] = None) -> List[CardRecord]:
        raise NotImplementedError

    async def create(self, record: CardRecord) -> CardRecord:
        raise NotImplementedError

    async def upsert_archive(self, record: CardRecord) -> bool:
        """
        Insert ``record`` or, when the name exists, replace only its archive.
        Owner and data of an existing record are kept. Returns True on insert.
        """
        raise NotImplementedError

    async def update(
        self,
        name: str,
        expected_version: int,
        archive_b64: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
    ) -> bool:
        raise NotImplementedError

    async def destroy_all(self, name: str) -> int:
        raise NotImplementedError

    async def close(self) -> None:
        return
