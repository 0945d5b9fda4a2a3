"""Blob storage in a SQLite table."""

from __future__ import annotations

from pathlib import Path

import aiosqlite
import structlog

from src.interfaces.storage_provider import IStorageProvider
from src.utils.errors import StorageError, StorageNotFoundError
from src.utils.ids import to_iso, utc_now

logger = structlog.get_logger(logger_name=__name__)

_CREATE_BLOBS_TABLE = """\
CREATE TABLE IF NOT EXISTS storage_blobs (
    key           TEXT PRIMARY KEY,
    data          BLOB NOT NULL,
    content_type  TEXT NOT NULL,
    size          INTEGER NOT NULL,
    created_at    TEXT NOT NULL
);
"""

_UPSERT_BLOB = """\
INSERT INTO storage_blobs (key, data, content_type, size, created_at)
VALUES (?, ?, ?, ?, ?)
ON CONFLICT(key) DO UPDATE SET
    data = excluded.data,
    content_type = excluded.content_type,
    size = excluded.size,
    created_at = excluded.created_at;
"""

_SELECT_BLOB = "SELECT data FROM storage_blobs WHERE key = ?;"
_EXISTS_BLOB = "SELECT 1 FROM storage_blobs WHERE key = ?;"
_DELETE_BLOB = "DELETE FROM storage_blobs WHERE key = ?;"


class DatabaseStorageProvider(IStorageProvider):
    """Stores blobs as rows; the API serves them at ``base_url/key``."""

    def __init__(self, db_path: str | Path, base_url: str = "/storage") -> None:
        self._db_path = Path(db_path)
        self._base_url = base_url.rstrip("/")
        self._initialized = False

    async def initialize(self) -> None:
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute("PRAGMA journal_mode=WAL;")
            await db.execute(_CREATE_BLOBS_TABLE)
            await db.commit()
        self._initialized = True
        logger.info("blob_table_initialized", path=str(self._db_path))

    async def _ensure_table(self) -> None:
        if not self._initialized:
            await self.initialize()

    async def upload(self, key: str, data: bytes, content_type: str) -> str:
        await self._ensure_table()
        key = key.lstrip("/")
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                await db.execute(
                    _UPSERT_BLOB, (key, data, content_type, len(data), to_iso(utc_now()))
                )
                await db.commit()
        except aiosqlite.Error as exc:
            raise StorageError(message=f"Failed to store {key}: {exc}", provider_name="database") from exc
        return self.get_url(key)

    async def download(self, key: str) -> bytes:
        await self._ensure_table()
        async with aiosqlite.connect(str(self._db_path)) as db:
            cursor = await db.execute(_SELECT_BLOB, (key.lstrip("/"),))
            row = await cursor.fetchone()
        if row is None:
            raise StorageNotFoundError(message=f"Blob not found: {key}", provider_name="database")
        return bytes(row[0])

    async def delete(self, key: str) -> None:
        await self._ensure_table()
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute(_DELETE_BLOB, (key.lstrip("/"),))
            await db.commit()

    async def exists(self, key: str) -> bool:
        await self._ensure_table()
        async with aiosqlite.connect(str(self._db_path)) as db:
            cursor = await db.execute(_EXISTS_BLOB, (key.lstrip("/"),))
            return await cursor.fetchone() is not None

    def get_url(self, key: str) -> str:
        return f"{self._base_url}/{key.lstrip('/')}"

    def get_provider_name(self) -> str:
        return "database"
