"""SQLite-backed voiceover persistence."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import aiosqlite
import structlog

from src.interfaces.voiceover_provider import IVoiceoverProvider
from src.models.voiceover import Voiceover, VoiceoverStatus
from src.utils.ids import from_iso, to_iso, utc_now

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/content_studio.db")

_CREATE_VOICEOVERS_TABLE = """\
CREATE TABLE IF NOT EXISTS voiceovers (
    id                  TEXT PRIMARY KEY,
    title               TEXT NOT NULL,
    text                TEXT NOT NULL DEFAULT '',
    voice               TEXT NOT NULL,
    voice_name          TEXT,
    audio_url           TEXT,
    duration            INTEGER,
    status              TEXT NOT NULL DEFAULT 'drafting',
    error_message       TEXT,
    owner_has_approved  INTEGER NOT NULL DEFAULT 0,
    created_by          TEXT NOT NULL,
    created_at          TEXT NOT NULL,
    updated_at          TEXT NOT NULL
);
"""

_CREATE_INDICES = [
    "CREATE INDEX IF NOT EXISTS idx_voiceovers_created_by ON voiceovers(created_by);",
]

_COLUMNS = (
    "id, title, text, voice, voice_name, audio_url, duration, status, error_message, "
    "owner_has_approved, created_by, created_at, updated_at"
)

_INSERT = f"INSERT INTO voiceovers ({_COLUMNS}) VALUES ({', '.join('?' for _ in range(13))});"
_SELECT = f"SELECT {_COLUMNS} FROM voiceovers WHERE id = ?;"
_UPDATE = """\
UPDATE voiceovers SET
    title = ?, text = ?, voice = ?, voice_name = ?, audio_url = ?, duration = ?,
    status = ?, error_message = ?, owner_has_approved = ?, updated_at = ?
WHERE id = ?;
"""
_DELETE = "DELETE FROM voiceovers WHERE id = ?;"


class SQLiteVoiceoverProvider(IVoiceoverProvider):
    def __init__(self, db_path: str | Path = _DEFAULT_DB_PATH) -> None:
        self._db_path = Path(db_path)

    async def initialize(self) -> None:
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute("PRAGMA journal_mode=WAL;")
            await db.execute(_CREATE_VOICEOVERS_TABLE)
            for idx_sql in _CREATE_INDICES:
                await db.execute(idx_sql)
            await db.commit()
        logger.info("voiceover_db_initialized", path=str(self._db_path))

    def get_provider_name(self) -> str:
        return "sqlite_voiceover"

    async def insert_voiceover(self, voiceover: Voiceover) -> Voiceover:
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute(_INSERT, (
                voiceover.id,
                *self._mutable_params(voiceover)[:-1],
                voiceover.created_by,
                to_iso(voiceover.created_at),
                to_iso(voiceover.updated_at),
            ))
            await db.commit()
        return voiceover

    async def get_voiceover(self, voiceover_id: str) -> Voiceover | None:
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(_SELECT, (voiceover_id,))
            row = await cursor.fetchone()
        return self._row_to_voiceover(dict(row)) if row else None

    async def list_voiceovers(
        self,
        *,
        owner_id: str,
        include_ids: list[str] | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[Voiceover], int]:
        ids = include_ids or []
        where = "created_by = ?"
        params: list[Any] = [owner_id]
        if ids:
            where += f" OR id IN ({', '.join('?' for _ in ids)})"
            params.extend(ids)

        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(f"SELECT COUNT(*) FROM voiceovers WHERE {where};", tuple(params))
            total = (await cursor.fetchone())[0]
            cursor = await db.execute(
                f"SELECT {_COLUMNS} FROM voiceovers WHERE {where} "
                "ORDER BY created_at DESC, id DESC LIMIT ? OFFSET ?;",
                (*params, limit, offset),
            )
            rows = await cursor.fetchall()
        return [self._row_to_voiceover(dict(r)) for r in rows], total

    async def update_voiceover(self, voiceover: Voiceover) -> Voiceover:
        voiceover = voiceover.model_copy(update={"updated_at": utc_now()})
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute(_UPDATE, (*self._mutable_params(voiceover), voiceover.id))
            await db.commit()
        return voiceover

    async def delete_voiceover(self, voiceover_id: str) -> bool:
        async with aiosqlite.connect(str(self._db_path)) as db:
            cursor = await db.execute(_DELETE, (voiceover_id,))
            await db.commit()
            return cursor.rowcount > 0

    @staticmethod
    def _mutable_params(v: Voiceover) -> tuple[Any, ...]:
        return (
            v.title,
            v.text,
            v.voice,
            v.voice_name,
            v.audio_url,
            v.duration,
            v.status.value,
            v.error_message,
            int(v.owner_has_approved),
            to_iso(v.updated_at),
        )

    @staticmethod
    def _row_to_voiceover(row: dict[str, Any]) -> Voiceover:
        return Voiceover(
            id=row["id"],
            title=row["title"],
            text=row["text"] or "",
            voice=row["voice"],
            voice_name=row.get("voice_name"),
            audio_url=row.get("audio_url"),
            duration=row.get("duration"),
            status=VoiceoverStatus(row["status"]),
            error_message=row.get("error_message"),
            owner_has_approved=bool(row["owner_has_approved"]),
            created_by=row["created_by"],
            created_at=from_iso(row["created_at"]),
            updated_at=from_iso(row["updated_at"]),
        )
