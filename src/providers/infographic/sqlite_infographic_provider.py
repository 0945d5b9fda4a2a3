"""SQLite-backed infographic persistence.

# ─── ARCHITECTURE ROLE ───────────────────────────────────────────────
#
# Layer: Providers (concrete adapter implementing IInfographicProvider).
#
# Three tables:
#   - ``infographics``           one row per infographic (working copy)
#   - ``infographic_selections`` ordered text excerpts feeding the prompt
#   - ``infographic_versions``   one row per generated image
#
# Image bytes live in blob storage; versions only hold the storage key.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import aiosqlite
import structlog

from src.interfaces.infographic_provider import IInfographicProvider
from src.models.infographic import (
    Infographic,
    InfographicFormat,
    InfographicSelection,
    InfographicStatus,
    InfographicStyle,
    InfographicType,
    InfographicVersion,
)
from src.utils.ids import from_iso, to_iso, utc_now

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/content_studio.db")

# ── Schema DDL ────────────────────────────────────────────────────────

_CREATE_INFOGRAPHICS_TABLE = """\
CREATE TABLE IF NOT EXISTS infographics (
    id                     TEXT PRIMARY KEY,
    title                  TEXT NOT NULL,
    status                 TEXT NOT NULL DEFAULT 'drafting',
    infographic_type       TEXT NOT NULL,
    style_preset           TEXT NOT NULL,
    format                 TEXT NOT NULL,
    prompt                 TEXT,
    feedback_instructions  TEXT,
    source_document_ids    TEXT,
    image_key              TEXT,
    image_url              TEXT,
    error_message          TEXT,
    generation_context     TEXT,
    approved_by            TEXT,
    approved_at            TEXT,
    created_by             TEXT NOT NULL,
    created_at             TEXT NOT NULL,
    updated_at             TEXT NOT NULL
);
"""

_CREATE_SELECTIONS_TABLE = """\
CREATE TABLE IF NOT EXISTS infographic_selections (
    id              TEXT PRIMARY KEY,
    infographic_id  TEXT NOT NULL REFERENCES infographics(id) ON DELETE CASCADE,
    document_id     TEXT NOT NULL,
    selected_text   TEXT NOT NULL,
    start_offset    INTEGER,
    end_offset      INTEGER,
    order_index     INTEGER NOT NULL DEFAULT 0,
    created_at      TEXT NOT NULL
);
"""

_CREATE_VERSIONS_TABLE = """\
CREATE TABLE IF NOT EXISTS infographic_versions (
    id                TEXT PRIMARY KEY,
    infographic_id    TEXT NOT NULL REFERENCES infographics(id) ON DELETE CASCADE,
    version_number    INTEGER NOT NULL,
    prompt            TEXT,
    infographic_type  TEXT NOT NULL,
    style_preset      TEXT NOT NULL,
    format            TEXT NOT NULL,
    image_key         TEXT NOT NULL,
    created_at        TEXT NOT NULL,
    UNIQUE(infographic_id, version_number)
);
"""

_CREATE_INDICES = [
    "CREATE INDEX IF NOT EXISTS idx_infographics_created_by ON infographics(created_by);",
    "CREATE INDEX IF NOT EXISTS idx_selections_infographic ON infographic_selections(infographic_id, order_index);",
    "CREATE INDEX IF NOT EXISTS idx_inf_versions_infographic ON infographic_versions(infographic_id, version_number);",
]

# ── DML ───────────────────────────────────────────────────────────────

_INFOGRAPHIC_COLUMNS = (
    "id, title, status, infographic_type, style_preset, format, prompt, "
    "feedback_instructions, source_document_ids, image_key, image_url, error_message, "
    "generation_context, approved_by, approved_at, created_by, created_at, updated_at"
)
_INSERT_INFOGRAPHIC = (
    f"INSERT INTO infographics ({_INFOGRAPHIC_COLUMNS}) "
    f"VALUES ({', '.join('?' for _ in range(18))});"
)
_SELECT_INFOGRAPHIC = f"SELECT {_INFOGRAPHIC_COLUMNS} FROM infographics WHERE id = ?;"
_UPDATE_INFOGRAPHIC = """\
UPDATE infographics SET
    title = ?, status = ?, infographic_type = ?, style_preset = ?, format = ?,
    prompt = ?, feedback_instructions = ?, source_document_ids = ?, image_key = ?,
    image_url = ?, error_message = ?, generation_context = ?, approved_by = ?,
    approved_at = ?, updated_at = ?
WHERE id = ?;
"""

_SELECTION_COLUMNS = (
    "id, infographic_id, document_id, selected_text, start_offset, end_offset, "
    "order_index, created_at"
)
_INSERT_SELECTION = (
    f"INSERT INTO infographic_selections ({_SELECTION_COLUMNS}) "
    "VALUES (?, ?, ?, ?, ?, ?, ?, ?);"
)
_SELECT_SELECTION = f"SELECT {_SELECTION_COLUMNS} FROM infographic_selections WHERE id = ?;"
_SELECT_SELECTIONS = (
    f"SELECT {_SELECTION_COLUMNS} FROM infographic_selections "
    "WHERE infographic_id = ? ORDER BY order_index ASC, created_at ASC;"
)
_COUNT_SELECTIONS = "SELECT COUNT(*) FROM infographic_selections WHERE infographic_id = ?;"
_UPDATE_SELECTION = """\
UPDATE infographic_selections SET
    selected_text = ?, start_offset = ?, end_offset = ?, order_index = ?
WHERE id = ?;
"""
_DELETE_SELECTION = "DELETE FROM infographic_selections WHERE id = ?;"
_SET_SELECTION_ORDER = (
    "UPDATE infographic_selections SET order_index = ? WHERE id = ? AND infographic_id = ?;"
)

_VERSION_COLUMNS = (
    "id, infographic_id, version_number, prompt, infographic_type, style_preset, "
    "format, image_key, created_at"
)
_INSERT_VERSION = (
    f"INSERT INTO infographic_versions ({_VERSION_COLUMNS}) "
    "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?);"
)
_SELECT_VERSIONS = (
    f"SELECT {_VERSION_COLUMNS} FROM infographic_versions "
    "WHERE infographic_id = ? ORDER BY version_number ASC;"
)
_SELECT_OLD_VERSIONS = """\
SELECT id, image_key FROM infographic_versions
WHERE infographic_id = ?
ORDER BY version_number DESC
LIMIT -1 OFFSET ?;
"""

_DELETE_INFOGRAPHIC_CHILDREN = [
    "DELETE FROM infographic_selections WHERE infographic_id = ?;",
    "DELETE FROM infographic_versions WHERE infographic_id = ?;",
]
_DELETE_INFOGRAPHIC = "DELETE FROM infographics WHERE id = ?;"


class SQLiteInfographicProvider(IInfographicProvider):
    """SQLite-backed store for infographics, their selections and versions."""

    def __init__(self, db_path: str | Path = _DEFAULT_DB_PATH) -> None:
        self._db_path = Path(db_path)

    async def initialize(self) -> None:
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute("PRAGMA journal_mode=WAL;")
            await db.execute(_CREATE_INFOGRAPHICS_TABLE)
            await db.execute(_CREATE_SELECTIONS_TABLE)
            await db.execute(_CREATE_VERSIONS_TABLE)
            for idx_sql in _CREATE_INDICES:
                await db.execute(idx_sql)
            await db.commit()
        logger.info("infographic_db_initialized", path=str(self._db_path))

    def get_provider_name(self) -> str:
        return "sqlite_infographic"

    # ── Infographics ───────────────────────────────────────────────────

    async def insert_infographic(self, infographic: Infographic) -> Infographic:
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute(_INSERT_INFOGRAPHIC, (
                infographic.id,
                *self._mutable_params(infographic)[:-1],
                infographic.created_by,
                to_iso(infographic.created_at),
                to_iso(infographic.updated_at),
            ))
            await db.commit()
        return infographic

    async def get_infographic(self, infographic_id: str) -> Infographic | None:
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(_SELECT_INFOGRAPHIC, (infographic_id,))
            row = await cursor.fetchone()
        return self._row_to_infographic(dict(row)) if row else None

    async def list_infographics(
        self, *, owner_id: str, limit: int = 50, offset: int = 0
    ) -> tuple[list[Infographic], int]:
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                "SELECT COUNT(*) FROM infographics WHERE created_by = ?;", (owner_id,)
            )
            total = (await cursor.fetchone())[0]
            cursor = await db.execute(
                f"SELECT {_INFOGRAPHIC_COLUMNS} FROM infographics WHERE created_by = ? "
                "ORDER BY created_at DESC, id DESC LIMIT ? OFFSET ?;",
                (owner_id, limit, offset),
            )
            rows = await cursor.fetchall()
        return [self._row_to_infographic(dict(r)) for r in rows], total

    async def update_infographic(self, infographic: Infographic) -> Infographic:
        infographic = infographic.model_copy(update={"updated_at": utc_now()})
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute(
                _UPDATE_INFOGRAPHIC, (*self._mutable_params(infographic), infographic.id)
            )
            await db.commit()
        return infographic

    async def delete_infographic(self, infographic_id: str) -> bool:
        async with aiosqlite.connect(str(self._db_path)) as db:
            for sql in _DELETE_INFOGRAPHIC_CHILDREN:
                await db.execute(sql, (infographic_id,))
            cursor = await db.execute(_DELETE_INFOGRAPHIC, (infographic_id,))
            await db.commit()
            return cursor.rowcount > 0

    # ── Selections ─────────────────────────────────────────────────────

    async def insert_selection(self, selection: InfographicSelection) -> InfographicSelection:
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute(_INSERT_SELECTION, (
                selection.id,
                selection.infographic_id,
                selection.document_id,
                selection.selected_text,
                selection.start_offset,
                selection.end_offset,
                selection.order_index,
                to_iso(selection.created_at),
            ))
            await db.commit()
        return selection

    async def get_selection(self, selection_id: str) -> InfographicSelection | None:
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(_SELECT_SELECTION, (selection_id,))
            row = await cursor.fetchone()
        return self._row_to_selection(dict(row)) if row else None

    async def list_selections(self, infographic_id: str) -> list[InfographicSelection]:
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(_SELECT_SELECTIONS, (infographic_id,))
            rows = await cursor.fetchall()
        return [self._row_to_selection(dict(r)) for r in rows]

    async def count_selections(self, infographic_id: str) -> int:
        async with aiosqlite.connect(str(self._db_path)) as db:
            cursor = await db.execute(_COUNT_SELECTIONS, (infographic_id,))
            return (await cursor.fetchone())[0]

    async def update_selection(self, selection: InfographicSelection) -> InfographicSelection:
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute(_UPDATE_SELECTION, (
                selection.selected_text,
                selection.start_offset,
                selection.end_offset,
                selection.order_index,
                selection.id,
            ))
            await db.commit()
        return selection

    async def delete_selection(self, selection_id: str) -> bool:
        async with aiosqlite.connect(str(self._db_path)) as db:
            cursor = await db.execute(_DELETE_SELECTION, (selection_id,))
            await db.commit()
            return cursor.rowcount > 0

    async def reorder_selections(self, infographic_id: str, ordered_ids: list[str]) -> None:
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.executemany(
                _SET_SELECTION_ORDER,
                [(index, sel_id, infographic_id) for index, sel_id in enumerate(ordered_ids)],
            )
            await db.commit()

    # ── Versions ───────────────────────────────────────────────────────

    async def insert_version(self, version: InfographicVersion) -> InfographicVersion:
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute(_INSERT_VERSION, (
                version.id,
                version.infographic_id,
                version.version_number,
                version.prompt,
                version.infographic_type.value,
                version.style_preset.value,
                version.format.value,
                version.image_key,
                to_iso(version.created_at),
            ))
            await db.commit()
        return version

    async def list_versions(self, infographic_id: str) -> list[InfographicVersion]:
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(_SELECT_VERSIONS, (infographic_id,))
            rows = await cursor.fetchall()
        return [self._row_to_version(dict(r)) for r in rows]

    async def delete_old_versions(self, infographic_id: str, keep: int) -> list[str]:
        async with aiosqlite.connect(str(self._db_path)) as db:
            cursor = await db.execute(_SELECT_OLD_VERSIONS, (infographic_id, keep))
            stale = await cursor.fetchall()
            if stale:
                await db.executemany(
                    "DELETE FROM infographic_versions WHERE id = ?;",
                    [(row[0],) for row in stale],
                )
                await db.commit()
        if stale:
            logger.info("infographic_versions_pruned", infographic_id=infographic_id, count=len(stale))
        return [row[1] for row in stale]

    # ── Row mapping ────────────────────────────────────────────────────

    @staticmethod
    def _mutable_params(i: Infographic) -> tuple[Any, ...]:
        return (
            i.title,
            i.status.value,
            i.infographic_type.value,
            i.style_preset.value,
            i.format.value,
            i.prompt,
            i.feedback_instructions,
            json.dumps(i.source_document_ids),
            i.image_key,
            i.image_url,
            i.error_message,
            json.dumps(i.generation_context) if i.generation_context is not None else None,
            i.approved_by,
            to_iso(i.approved_at),
            to_iso(i.updated_at),
        )

    @staticmethod
    def _row_to_infographic(row: dict[str, Any]) -> Infographic:
        return Infographic(
            id=row["id"],
            title=row["title"],
            status=InfographicStatus(row["status"]),
            infographic_type=InfographicType(row["infographic_type"]),
            style_preset=InfographicStyle(row["style_preset"]),
            format=InfographicFormat(row["format"]),
            prompt=row.get("prompt"),
            feedback_instructions=row.get("feedback_instructions"),
            source_document_ids=json.loads(row["source_document_ids"]) if row.get("source_document_ids") else [],
            image_key=row.get("image_key"),
            image_url=row.get("image_url"),
            error_message=row.get("error_message"),
            generation_context=json.loads(row["generation_context"]) if row.get("generation_context") else None,
            approved_by=row.get("approved_by"),
            approved_at=from_iso(row.get("approved_at")),
            created_by=row["created_by"],
            created_at=from_iso(row["created_at"]),
            updated_at=from_iso(row["updated_at"]),
        )

    @staticmethod
    def _row_to_selection(row: dict[str, Any]) -> InfographicSelection:
        return InfographicSelection(
            id=row["id"],
            infographic_id=row["infographic_id"],
            document_id=row["document_id"],
            selected_text=row["selected_text"],
            start_offset=row.get("start_offset"),
            end_offset=row.get("end_offset"),
            order_index=row["order_index"],
            created_at=from_iso(row["created_at"]),
        )

    @staticmethod
    def _row_to_version(row: dict[str, Any]) -> InfographicVersion:
        return InfographicVersion(
            id=row["id"],
            infographic_id=row["infographic_id"],
            version_number=row["version_number"],
            prompt=row.get("prompt"),
            infographic_type=InfographicType(row["infographic_type"]),
            style_preset=InfographicStyle(row["style_preset"]),
            format=InfographicFormat(row["format"]),
            image_key=row["image_key"],
            created_at=from_iso(row["created_at"]),
        )
