"""
netcard_core.card_store
-----------------------
CardStore maps a card name (usually ``user@network``) to a stored record
holding the card's archive and an auxiliary data map.

Overwriting a card is a single upsert that replaces the archive and leaves
the auxiliary data alone. Wallet writes to the data map are compare-and-swap
updates on the record version, so a racing put or wallet write never drops
another writer's entries.
"""

from __future__ import annotations
from typing import Any, Dict, List, Optional, Tuple
import binascii, os

from .card import CardArchive, archive_content_id
from .constants import DATA_WRITE_ATTEMPTS
from .errors import ConflictError, FormatError, NotFoundError
from .logger import get_logger
from .storage import CardRecord, CardStorageProvider, load_storage_provider
from .utils import b64d, b64e
from .wallet import Mutator, Wallet

log = get_logger("netcard.store")


class CardStore:
    def __init__(
        self,
        provider: CardStorageProvider,
        owner_ref: Optional[str] = None,
        signing_key: Optional[bytes] = None,
        key_id: str = "",
        verify_key: Optional[bytes] = None,
    ):
        self.provider = provider
        self.owner_ref = owner_ref
        # raw Ed25519 keys; when set, archives are signed on put / checked on get
        self._signing_key = signing_key
        self._key_id = key_id
        self._verify_key = verify_key

    async def _require(self, name: str) -> CardRecord:
        rec = await self.provider.find_one(name)
        if rec is None:
            raise NotFoundError(name)
        return rec

    def _decode(self, rec: CardRecord) -> CardArchive:
        try:
            data = b64d(rec.archive_b64)
        except (binascii.Error, ValueError, AttributeError) as e:
            raise FormatError(f"stored archive for {rec.name} is not base64") from e
        return CardArchive.from_archive(data, verify_key=self._verify_key)

    async def get(self, name: str) -> CardArchive:
        rec = await self._require(name)
        log.debug(f"[CARD GET] {name} v{rec.version}")
        return self._decode(rec)

    async def put(self, name: str, card: CardArchive) -> None:
        """Create or replace ``name``. An existing record keeps its data map."""
        archive = card.to_archive(signing_key=self._signing_key, key_id=self._key_id)
        archive_b64 = b64e(archive)
        content_id = archive_content_id(archive)

        created = await self.provider.upsert_archive(
            CardRecord(name=name, archive_b64=archive_b64, owner_ref=self.owner_ref, data={})
        )
        if created:
            log.info(f"[CARD PUT] created {name} content_id={content_id}")
        else:
            log.info(f"[CARD PUT] replaced {name} content_id={content_id}")

    async def get_all(self) -> List[Tuple[str, CardArchive]]:
        """Every stored card as (name, card) pairs ordered by name."""
        records = await self.provider.find()
        return [(rec.name, self._decode(rec)) for rec in sorted(records, key=lambda r: r.name)]

    async def delete(self, name: str) -> None:
        count = await self.provider.destroy_all(name)
        if count == 0:
            raise NotFoundError(name)
        log.info(f"[CARD DELETE] {name}")

    async def has(self, name: str) -> bool:
        return await self.provider.find_one(name) is not None

    async def get_wallet(self, name: str) -> Wallet:
        rec = await self._require(name)

        async def writer(mutate: Mutator) -> Dict[str, Any]:
            return await self._update_data(name, mutate)

        return Wallet(name, rec.data, writer)

    async def _update_data(self, name: str, mutate: Mutator) -> Dict[str, Any]:
        for _ in range(DATA_WRITE_ATTEMPTS):
            rec = await self._require(name)
            data = dict(rec.data)
            mutate(data)
            if await self.provider.update(name, rec.version, data=data):
                log.info(f"[WALLET] updated {name} names={list(data)}")
                return data
        raise ConflictError(f"could not update wallet for {name} after {DATA_WRITE_ATTEMPTS} attempts")

    async def close(self) -> None:
        await self.provider.close()


def load_card_store(config: dict | None = None) -> CardStore:
    """Build a CardStore from config, falling back to NETCARD_* env vars."""
    config = config or {}
    provider = load_storage_provider(config)
    owner_ref = config.get("owner_ref") or os.getenv("NETCARD_OWNER")
    return CardStore(provider, owner_ref=owner_ref)
