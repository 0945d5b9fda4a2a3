"""SQLite-backed podcast and script-version persistence.

# ─── ARCHITECTURE ROLE ───────────────────────────────────────────────
#
# Layer: Providers (concrete adapter implementing IPodcastProvider).
#
# Two tables:
#   - ``podcasts``         the working copy of each episode
#   - ``script_versions``  append-only script snapshots; one active per podcast
#
# Version inserts run in a single transaction (``BEGIN IMMEDIATE``) so the
# next version number and the deactivation of older versions cannot race
# with a concurrent insert from the worker.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import aiosqlite
import structlog

from src.interfaces.podcast_provider import IPodcastProvider
from src.models.podcast import (
    Podcast,
    PodcastFormat,
    PodcastStatus,
    ScriptSegment,
    ScriptVersion,
)
from src.utils.ids import from_iso, new_id, to_iso, utc_now

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/content_studio.db")

# ── Schema DDL ────────────────────────────────────────────────────────

_CREATE_PODCASTS_TABLE = """\
CREATE TABLE IF NOT EXISTS podcasts (
    id                       TEXT PRIMARY KEY,
    title                    TEXT NOT NULL,
    description              TEXT,
    format                   TEXT NOT NULL,
    host_voice               TEXT,
    host_voice_name          TEXT,
    co_host_voice            TEXT,
    co_host_voice_name       TEXT,
    prompt_instructions      TEXT,
    target_duration_minutes  INTEGER NOT NULL DEFAULT 5,
    tags                     TEXT,
    source_document_ids      TEXT,
    generation_context       TEXT,
    status                   TEXT NOT NULL DEFAULT 'drafting',
    segments                 TEXT,
    summary                  TEXT,
    generation_prompt        TEXT,
    audio_url                TEXT,
    duration                 INTEGER,
    error_message            TEXT,
    owner_has_approved       INTEGER NOT NULL DEFAULT 0,
    created_by               TEXT NOT NULL,
    created_at               TEXT NOT NULL,
    updated_at               TEXT NOT NULL
);
"""

_CREATE_VERSIONS_TABLE = """\
CREATE TABLE IF NOT EXISTS script_versions (
    id                 TEXT PRIMARY KEY,
    podcast_id         TEXT NOT NULL REFERENCES podcasts(id) ON DELETE CASCADE,
    version            INTEGER NOT NULL,
    is_active          INTEGER NOT NULL DEFAULT 1,
    status             TEXT NOT NULL,
    segments           TEXT NOT NULL,
    summary            TEXT,
    generation_prompt  TEXT,
    audio_url          TEXT,
    duration           INTEGER,
    error_message      TEXT,
    created_by         TEXT,
    created_at         TEXT NOT NULL,
    UNIQUE(podcast_id, version)
);
"""

_CREATE_INDICES = [
    "CREATE INDEX IF NOT EXISTS idx_podcasts_created_by ON podcasts(created_by);",
    "CREATE INDEX IF NOT EXISTS idx_podcasts_status ON podcasts(status);",
    "CREATE INDEX IF NOT EXISTS idx_versions_podcast ON script_versions(podcast_id, is_active);",
]

# ── DML ───────────────────────────────────────────────────────────────

_PODCAST_COLUMNS = (
    "id, title, description, format, host_voice, host_voice_name, co_host_voice, "
    "co_host_voice_name, prompt_instructions, target_duration_minutes, tags, "
    "source_document_ids, generation_context, status, segments, summary, "
    "generation_prompt, audio_url, duration, error_message, owner_has_approved, "
    "created_by, created_at, updated_at"
)

_INSERT_PODCAST = f"""\
INSERT INTO podcasts ({_PODCAST_COLUMNS})
VALUES ({", ".join("?" for _ in range(24))});
"""

_UPDATE_PODCAST = """\
UPDATE podcasts SET
    title = ?, description = ?, format = ?, host_voice = ?, host_voice_name = ?,
    co_host_voice = ?, co_host_voice_name = ?, prompt_instructions = ?,
    target_duration_minutes = ?, tags = ?, source_document_ids = ?,
    generation_context = ?, status = ?, segments = ?, summary = ?,
    generation_prompt = ?, audio_url = ?, duration = ?, error_message = ?,
    owner_has_approved = ?, updated_at = ?
WHERE id = ?;
"""

_SELECT_PODCAST = f"SELECT {_PODCAST_COLUMNS} FROM podcasts WHERE id = ?;"
_DELETE_PODCAST = "DELETE FROM podcasts WHERE id = ?;"
_DELETE_VERSIONS = "DELETE FROM script_versions WHERE podcast_id = ?;"

_VERSION_COLUMNS = (
    "id, podcast_id, version, is_active, status, segments, summary, generation_prompt, "
    "audio_url, duration, error_message, created_by, created_at"
)

_INSERT_VERSION = f"""\
INSERT INTO script_versions ({_VERSION_COLUMNS})
VALUES (?, ?, ?, 1, ?, ?, ?, ?, NULL, NULL, NULL, ?, ?);
"""

_NEXT_VERSION = "SELECT COALESCE(MAX(version), 0) + 1 FROM script_versions WHERE podcast_id = ?;"
_DEACTIVATE_VERSIONS = "UPDATE script_versions SET is_active = 0 WHERE podcast_id = ?;"

_SELECT_ACTIVE_VERSION = f"""\
SELECT {_VERSION_COLUMNS} FROM script_versions
WHERE podcast_id = ? AND is_active = 1
ORDER BY version DESC LIMIT 1;
"""

_SELECT_VERSIONS = f"""\
SELECT {_VERSION_COLUMNS} FROM script_versions
WHERE podcast_id = ? ORDER BY version DESC;
"""

_UPDATE_VERSION = """\
UPDATE script_versions SET status = ?, audio_url = ?, duration = ?, error_message = ?
WHERE id = ?;
"""

_UPDATE_VERSION_STATUS = "UPDATE script_versions SET status = ?, error_message = ? WHERE id = ?;"


def _dump_segments(segments: list[ScriptSegment]) -> str:
    return json.dumps([s.model_dump() for s in segments])


def _load_segments(raw: str | None) -> list[ScriptSegment]:
    if not raw:
        return []
    return [ScriptSegment(**item) for item in json.loads(raw)]


class SQLitePodcastProvider(IPodcastProvider):
    """SQLite-backed podcast store with versioned scripts."""

    def __init__(self, db_path: str | Path = _DEFAULT_DB_PATH) -> None:
        self._db_path = Path(db_path)

    async def initialize(self) -> None:
        """Create podcast and version tables and indices if they don't exist."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute("PRAGMA journal_mode=WAL;")
            await db.execute(_CREATE_PODCASTS_TABLE)
            await db.execute(_CREATE_VERSIONS_TABLE)
            for idx_sql in _CREATE_INDICES:
                await db.execute(idx_sql)
            await db.commit()
        logger.info("podcast_db_initialized", path=str(self._db_path))

    def get_provider_name(self) -> str:
        return "sqlite_podcast"

    # ── Podcasts ───────────────────────────────────────────────────────

    async def insert_podcast(self, podcast: Podcast) -> Podcast:
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute(_INSERT_PODCAST, (
                podcast.id,
                *self._mutable_params(podcast)[:-1],
                podcast.created_by,
                to_iso(podcast.created_at),
                to_iso(podcast.updated_at),
            ))
            await db.commit()
        return podcast

    async def get_podcast(self, podcast_id: str) -> Podcast | None:
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(_SELECT_PODCAST, (podcast_id,))
            row = await cursor.fetchone()
        return self._row_to_podcast(dict(row)) if row else None

    async def list_podcasts(
        self,
        *,
        owner_id: str,
        include_ids: list[str] | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[Podcast], int]:
        ids = include_ids or []
        where = "created_by = ?"
        params: list[Any] = [owner_id]
        if ids:
            where += f" OR id IN ({', '.join('?' for _ in ids)})"
            params.extend(ids)

        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(f"SELECT COUNT(*) FROM podcasts WHERE {where};", tuple(params))
            total = (await cursor.fetchone())[0]
            cursor = await db.execute(
                f"SELECT {_PODCAST_COLUMNS} FROM podcasts WHERE {where} "
                "ORDER BY created_at DESC, id DESC LIMIT ? OFFSET ?;",
                (*params, limit, offset),
            )
            rows = await cursor.fetchall()
        return [self._row_to_podcast(dict(r)) for r in rows], total

    async def update_podcast(self, podcast: Podcast) -> Podcast:
        podcast = podcast.model_copy(update={"updated_at": utc_now()})
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute(_UPDATE_PODCAST, (*self._mutable_params(podcast), podcast.id))
            await db.commit()
        return podcast

    async def delete_podcast(self, podcast_id: str) -> bool:
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute(_DELETE_VERSIONS, (podcast_id,))
            cursor = await db.execute(_DELETE_PODCAST, (podcast_id,))
            await db.commit()
            return cursor.rowcount > 0

    # ── Script versions ────────────────────────────────────────────────

    async def insert_version(
        self,
        podcast_id: str,
        *,
        segments: list[ScriptSegment],
        status: PodcastStatus,
        summary: str | None = None,
        generation_prompt: str | None = None,
        created_by: str | None = None,
    ) -> ScriptVersion:
        version_id = new_id("ver")
        created_at = utc_now()
        async with aiosqlite.connect(str(self._db_path), isolation_level=None) as db:
            await db.execute("BEGIN IMMEDIATE;")
            try:
                cursor = await db.execute(_NEXT_VERSION, (podcast_id,))
                number = (await cursor.fetchone())[0]
                await db.execute(_DEACTIVATE_VERSIONS, (podcast_id,))
                await db.execute(_INSERT_VERSION, (
                    version_id,
                    podcast_id,
                    number,
                    status.value,
                    _dump_segments(segments),
                    summary,
                    generation_prompt,
                    created_by,
                    to_iso(created_at),
                ))
                await db.execute("COMMIT;")
            except aiosqlite.Error:
                await db.execute("ROLLBACK;")
                raise

        logger.info("script_version_created", podcast_id=podcast_id, version=number)
        return ScriptVersion(
            id=version_id,
            podcast_id=podcast_id,
            version=number,
            is_active=True,
            status=status,
            segments=segments,
            summary=summary,
            generation_prompt=generation_prompt,
            created_by=created_by,
            created_at=created_at,
        )

    async def get_active_version(self, podcast_id: str) -> ScriptVersion | None:
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(_SELECT_ACTIVE_VERSION, (podcast_id,))
            row = await cursor.fetchone()
        return self._row_to_version(dict(row)) if row else None

    async def list_versions(self, podcast_id: str) -> list[ScriptVersion]:
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(_SELECT_VERSIONS, (podcast_id,))
            rows = await cursor.fetchall()
        return [self._row_to_version(dict(r)) for r in rows]

    async def get_next_version(self, podcast_id: str) -> int:
        async with aiosqlite.connect(str(self._db_path)) as db:
            cursor = await db.execute(_NEXT_VERSION, (podcast_id,))
            return (await cursor.fetchone())[0]

    async def update_version(self, version: ScriptVersion) -> ScriptVersion:
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute(_UPDATE_VERSION, (
                version.status.value,
                version.audio_url,
                version.duration,
                version.error_message,
                version.id,
            ))
            await db.commit()
        return version

    async def update_version_status(
        self,
        version_id: str,
        status: PodcastStatus,
        error_message: str | None = None,
    ) -> None:
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute(_UPDATE_VERSION_STATUS, (status.value, error_message, version_id))
            await db.commit()

    # ── Row mapping ────────────────────────────────────────────────────

    @staticmethod
    def _mutable_params(p: Podcast) -> tuple[Any, ...]:
        """Columns from ``title`` through ``updated_at`` in table order."""
        return (
            p.title,
            p.description,
            p.format.value,
            p.host_voice,
            p.host_voice_name,
            p.co_host_voice,
            p.co_host_voice_name,
            p.prompt_instructions,
            p.target_duration_minutes,
            json.dumps(p.tags),
            json.dumps(p.source_document_ids),
            json.dumps(p.generation_context) if p.generation_context is not None else None,
            p.status.value,
            _dump_segments(p.segments),
            p.summary,
            p.generation_prompt,
            p.audio_url,
            p.duration,
            p.error_message,
            int(p.owner_has_approved),
            to_iso(p.updated_at),
        )

    @staticmethod
    def _row_to_podcast(row: dict[str, Any]) -> Podcast:
        return Podcast(
            id=row["id"],
            title=row["title"],
            description=row.get("description"),
            format=PodcastFormat(row["format"]),
            host_voice=row.get("host_voice"),
            host_voice_name=row.get("host_voice_name"),
            co_host_voice=row.get("co_host_voice"),
            co_host_voice_name=row.get("co_host_voice_name"),
            prompt_instructions=row.get("prompt_instructions"),
            target_duration_minutes=row["target_duration_minutes"],
            tags=json.loads(row["tags"]) if row.get("tags") else [],
            source_document_ids=json.loads(row["source_document_ids"]) if row.get("source_document_ids") else [],
            generation_context=json.loads(row["generation_context"]) if row.get("generation_context") else None,
            status=PodcastStatus(row["status"]),
            segments=_load_segments(row.get("segments")),
            summary=row.get("summary"),
            generation_prompt=row.get("generation_prompt"),
            audio_url=row.get("audio_url"),
            duration=row.get("duration"),
            error_message=row.get("error_message"),
            owner_has_approved=bool(row["owner_has_approved"]),
            created_by=row["created_by"],
            created_at=from_iso(row["created_at"]),
            updated_at=from_iso(row["updated_at"]),
        )

    @staticmethod
    def _row_to_version(row: dict[str, Any]) -> ScriptVersion:
        return ScriptVersion(
            id=row["id"],
            podcast_id=row["podcast_id"],
            version=row["version"],
            is_active=bool(row["is_active"]),
            status=PodcastStatus(row["status"]),
            segments=_load_segments(row.get("segments")),
            summary=row.get("summary"),
            generation_prompt=row.get("generation_prompt"),
            audio_url=row.get("audio_url"),
            duration=row.get("duration"),
            error_message=row.get("error_message"),
            created_by=row.get("created_by"),
            created_at=from_iso(row["created_at"]),
        )
