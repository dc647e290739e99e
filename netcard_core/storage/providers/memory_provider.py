import asyncio, json
from typing import Any, Dict, List, Optional
from netcard_core.errors import ConflictError
from netcard_core.storage.models import CardRecord, encode_data
from netcard_core.storage.provider import CardStorageProvider


class InMemoryCardStorage(CardStorageProvider):
    """Dict-backed provider. Hands out copies so callers never alias stored state."""

    def __init__(self):
        self.cards: Dict[str, CardRecord] = {}
        self._lock = asyncio.Lock()

    @staticmethod
    def _stored(record: CardRecord) -> CardRecord:
        # same JSON round trip the sqlite provider applies
        rec = record.copy()
        rec.data = json.loads(encode_data(record.data))
        return rec

    async def find_one(self, name: str) -> Optional[CardRecord]:
        rec = self.cards.get(name)
        return rec.copy() if rec else None

    async def find(self, owner_ref: Optional[str] = None) -> List[CardRecord]:
        return [
            rec.copy() for name, rec in sorted(self.cards.items())
            if owner_ref is None or rec.owner_ref == owner_ref
        ]

    async def create(self, record: CardRecord) -> CardRecord:
        async with self._lock:
            if record.name in self.cards:
                raise ConflictError(f"card record {record.name} already exists")
            self.cards[record.name] = self._stored(record)
            return self.cards[record.name].copy()

    async def upsert_archive(self, record: CardRecord) -> bool:
        async with self._lock:
            rec = self.cards.get(record.name)
            if rec is None:
                self.cards[record.name] = self._stored(record)
                return True
            rec.archive_b64 = record.archive_b64
            rec.version += 1
            return False

    async def update(self, name: str, expected_version: int,
                     archive_b64: Optional[str] = None,
                     data: Optional[Dict[str, Any]] = None) -> bool:
        async with self._lock:
            rec = self.cards.get(name)
            if rec is None or rec.version != expected_version:
                return False
            if data is not None:
                rec.data = json.loads(encode_data(data))
            if archive_b64 is not None:
                rec.archive_b64 = archive_b64
            rec.version += 1
            return True

    async def destroy_all(self, name: str) -> int:
        async with self._lock:
            return 1 if self.cards.pop(name, None) is not None else 0
