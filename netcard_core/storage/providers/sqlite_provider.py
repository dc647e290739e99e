from __future__ import annotations
from typing import Optional, Dict, Any, List
import asyncio, json, sqlite3, os, threading
from netcard_core.constants import DEFAULT_DB_PATH
from netcard_core.errors import ConflictError, StorageError
from netcard_core.logger import get_logger
from netcard_core.storage.provider import CardStorageProvider
from netcard_core.storage.models import CardRecord, encode_data

log = get_logger("netcard.storage.sqlite")

_COLUMNS = "name, owner_ref, archive_b64, data, version"


class SQLiteCardStorage(CardStorageProvider):
    def __init__(self, path=DEFAULT_DB_PATH):
        # If no directory, default to current working directory
        if path != ":memory:":
            dir_path = os.path.dirname(path) or "."
            os.makedirs(dir_path, exist_ok=True)
        self.path = path
        self.db = sqlite3.connect(path, check_same_thread=False)
        # one connection shared by worker threads
        self._mutex = threading.Lock()

        self._init()

    def _init(self) -> None:
        self.db.execute("""CREATE TABLE IF NOT EXISTS cards(
            name TEXT PRIMARY KEY,
            owner_ref TEXT,
            archive_b64 TEXT NOT NULL,
            data TEXT NOT NULL DEFAULT '{}',
            version INTEGER NOT NULL DEFAULT 1
        )""")
        self.db.commit()

    @staticmethod
    def _row_to_record(row) -> CardRecord:
        name, owner_ref, archive_b64, data, version = row
        return CardRecord(
            name=name,
            owner_ref=owner_ref,
            archive_b64=archive_b64,
            data=json.loads(data) if data else {},
            version=version,
        )

    async def _run(self, fn, *args):
        return await asyncio.to_thread(self._locked, fn, *args)

    def _locked(self, fn, *args):
        with self._mutex:
            try:
                return fn(*args)
            except sqlite3.IntegrityError as e:
                self._rollback()
                raise ConflictError(str(e)) from e
            except sqlite3.Error as e:
                log.error(f"[SQLITE] {fn.__name__} failed: {e}")
                self._rollback()
                raise StorageError(f"sqlite {fn.__name__} failed: {e}") from e

    def _rollback(self) -> None:
        try:
            self.db.rollback()
        except sqlite3.ProgrammingError:
            # connection already closed
            log.debug("[SQLITE] rollback skipped, connection closed")

    # --- blocking ops (run under _mutex in a worker thread) ---

    def _find_one(self, name: str) -> Optional[CardRecord]:
        cur = self.db.execute(f"SELECT {_COLUMNS} FROM cards WHERE name=?", (name,))
        row = cur.fetchone()
        return self._row_to_record(row) if row else None

    def _find(self, owner_ref: Optional[str]) -> List[CardRecord]:
        if owner_ref is None:
            cur = self.db.execute(f"SELECT {_COLUMNS} FROM cards ORDER BY name")
        else:
            cur = self.db.execute(
                f"SELECT {_COLUMNS} FROM cards WHERE owner_ref=? ORDER BY name", (owner_ref,)
            )
        return [self._row_to_record(r) for r in cur.fetchall()]

    def _create(self, rec: CardRecord) -> CardRecord:
        self.db.execute(
            f"INSERT INTO cards({_COLUMNS}) VALUES(?,?,?,?,?)",
            (rec.name, rec.owner_ref, rec.archive_b64, encode_data(rec.data), rec.version),
        )
        self.db.commit()
        return rec.copy()

    def _upsert_archive(self, rec: CardRecord) -> bool:
        existed = self.db.execute("SELECT 1 FROM cards WHERE name=?", (rec.name,)).fetchone()
        self.db.execute(
            f"INSERT INTO cards({_COLUMNS}) VALUES(?,?,?,?,?) "
            "ON CONFLICT(name) DO UPDATE SET archive_b64=excluded.archive_b64, "
            "version=cards.version + 1",
            (rec.name, rec.owner_ref, rec.archive_b64, encode_data(rec.data), rec.version),
        )
        self.db.commit()
        return existed is None

    def _update(self, name: str, expected_version: int,
                archive_b64: Optional[str], data: Optional[Dict[str, Any]]) -> bool:
        sets, params = ["version = version + 1"], []
        if archive_b64 is not None:
            sets.append("archive_b64 = ?")
            params.append(archive_b64)
        if data is not None:
            sets.append("data = ?")
            params.append(encode_data(data))
        cur = self.db.execute(
            f"UPDATE cards SET {', '.join(sets)} WHERE name=? AND version=?",
            (*params, name, expected_version),
        )
        self.db.commit()
        return cur.rowcount == 1

    def _destroy_all(self, name: str) -> int:
        cur = self.db.execute("DELETE FROM cards WHERE name=?", (name,))
        self.db.commit()
        return cur.rowcount

    # --- provider contract ---

    async def find_one(self, name: str) -> Optional[CardRecord]:
        return await self._run(self._find_one, name)

    async def find(self, owner_ref: Optional[str] = None) -> List[CardRecord]:
        return await self._run(self._find, owner_ref)

    async def create(self, record: CardRecord) -> CardRecord:
        return await self._run(self._create, record)

    async def upsert_archive(self, record: CardRecord) -> bool:
        return await self._run(self._upsert_archive, record)

    async def update(self, name: str, expected_version: int,
                     archive_b64: Optional[str] = None,
                     data: Optional[Dict[str, Any]] = None) -> bool:
        return await self._run(self._update, name, expected_version, archive_b64, data)

    async def destroy_all(self, name: str) -> int:
        return await self._run(self._destroy_all, name)

    def _close(self) -> None:
        with self._mutex:
            self.db.close()

    async def close(self) -> None:
        await asyncio.to_thread(self._close)
