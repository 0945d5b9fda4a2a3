"""SQLite-backed document metadata persistence.

# ─── ARCHITECTURE ROLE ───────────────────────────────────────────────
#
# Layer: Providers (concrete adapter implementing IDocumentProvider).
#
# Stores one row per document.  The text itself lives in blob storage
# under ``content_key``; this table never holds document bodies.
# ``metadata`` and ``research_config`` are JSON columns.
#
# Uses ``aiosqlite`` for async I/O and ``PRAGMA journal_mode=WAL`` so the
# API process can read while the worker writes.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import aiosqlite
import structlog

from src.interfaces.document_provider import IDocumentProvider
from src.models.document import Document, DocumentSource, DocumentStatus, ResearchConfig
from src.utils.ids import from_iso, to_iso, utc_now

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/content_studio.db")

# ── Schema DDL ────────────────────────────────────────────────────────

_CREATE_DOCUMENTS_TABLE = """\
CREATE TABLE IF NOT EXISTS documents (
    id                  TEXT PRIMARY KEY,
    title               TEXT NOT NULL,
    content_key         TEXT NOT NULL,
    mime_type           TEXT NOT NULL DEFAULT 'text/plain',
    word_count          INTEGER NOT NULL DEFAULT 0,
    source              TEXT NOT NULL DEFAULT 'manual',
    original_file_name  TEXT,
    original_file_size  INTEGER,
    metadata            TEXT,
    status              TEXT NOT NULL DEFAULT 'ready',
    error_message       TEXT,
    source_url          TEXT,
    research_config     TEXT,
    content_hash        TEXT,
    created_by          TEXT NOT NULL,
    created_at          TEXT NOT NULL,
    updated_at          TEXT NOT NULL
);
"""

_CREATE_INDICES = [
    "CREATE INDEX IF NOT EXISTS idx_documents_created_by ON documents(created_by);",
    "CREATE INDEX IF NOT EXISTS idx_documents_source_url ON documents(created_by, source_url);",
    "CREATE INDEX IF NOT EXISTS idx_documents_status ON documents(status);",
]

# ── DML ───────────────────────────────────────────────────────────────

_COLUMNS = (
    "id, title, content_key, mime_type, word_count, source, original_file_name, "
    "original_file_size, metadata, status, error_message, source_url, research_config, "
    "content_hash, created_by, created_at, updated_at"
)

_INSERT_DOCUMENT = f"""\
INSERT INTO documents ({_COLUMNS})
VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?);
"""

_UPDATE_DOCUMENT = """\
UPDATE documents SET
    title = ?, content_key = ?, mime_type = ?, word_count = ?, source = ?,
    original_file_name = ?, original_file_size = ?, metadata = ?, status = ?,
    error_message = ?, source_url = ?, research_config = ?, content_hash = ?,
    updated_at = ?
WHERE id = ?;
"""

_SELECT_DOCUMENT = f"SELECT {_COLUMNS} FROM documents WHERE id = ?;"

_SELECT_BY_SOURCE_URL = f"""\
SELECT {_COLUMNS} FROM documents
WHERE created_by = ? AND source_url = ?
ORDER BY created_at DESC
LIMIT 1;
"""

_DELETE_DOCUMENT = "DELETE FROM documents WHERE id = ?;"

_SELECT_ORPHANED_RESEARCH = f"""\
SELECT {_COLUMNS} FROM documents
WHERE source = 'research'
  AND status IN ('processing', 'failed')
  AND json_extract(research_config, '$.research_status') = 'in_progress'
  AND json_extract(research_config, '$.operation_id') IS NOT NULL
ORDER BY created_at ASC;
"""


class SQLiteDocumentProvider(IDocumentProvider):
    """SQLite-backed document metadata store."""

    def __init__(self, db_path: str | Path = _DEFAULT_DB_PATH) -> None:
        self._db_path = Path(db_path)

    async def initialize(self) -> None:
        """Create the documents table and indices if they don't exist."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute("PRAGMA journal_mode=WAL;")
            await db.execute(_CREATE_DOCUMENTS_TABLE)
            for idx_sql in _CREATE_INDICES:
                await db.execute(idx_sql)
            await db.commit()
        logger.info("document_db_initialized", path=str(self._db_path))

    def get_provider_name(self) -> str:
        return "sqlite_document"

    # ── CRUD ───────────────────────────────────────────────────────────

    async def insert_document(self, document: Document) -> Document:
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute(_INSERT_DOCUMENT, self._to_params(document))
            await db.commit()
        logger.debug("document_inserted", document_id=document.id, source=document.source.value)
        return document

    async def get_document(self, document_id: str) -> Document | None:
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(_SELECT_DOCUMENT, (document_id,))
            row = await cursor.fetchone()
        return self._row_to_document(dict(row)) if row else None

    async def get_documents(self, document_ids: list[str]) -> list[Document]:
        if not document_ids:
            return []
        placeholders = ", ".join("?" for _ in document_ids)
        sql = f"SELECT {_COLUMNS} FROM documents WHERE id IN ({placeholders});"
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(sql, tuple(document_ids))
            rows = await cursor.fetchall()
        by_id = {row["id"]: self._row_to_document(dict(row)) for row in rows}
        return [by_id[doc_id] for doc_id in document_ids if doc_id in by_id]

    async def list_documents(
        self,
        *,
        created_by: str | None,
        source: DocumentSource | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[Document], int]:
        conditions: list[str] = []
        params: list[Any] = []
        if created_by is not None:
            conditions.append("created_by = ?")
            params.append(created_by)
        if source is not None:
            conditions.append("source = ?")
            params.append(source.value)
        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""

        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(f"SELECT COUNT(*) FROM documents {where};", tuple(params))
            total = (await cursor.fetchone())[0]
            cursor = await db.execute(
                f"SELECT {_COLUMNS} FROM documents {where} "
                "ORDER BY created_at DESC, id DESC LIMIT ? OFFSET ?;",
                (*params, limit, offset),
            )
            rows = await cursor.fetchall()
        return [self._row_to_document(dict(r)) for r in rows], total

    async def find_by_source_url(self, created_by: str, url: str) -> Document | None:
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(_SELECT_BY_SOURCE_URL, (created_by, url))
            row = await cursor.fetchone()
        return self._row_to_document(dict(row)) if row else None

    async def find_orphaned_research(self) -> list[Document]:
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(_SELECT_ORPHANED_RESEARCH)
            rows = await cursor.fetchall()
        return [self._row_to_document(dict(r)) for r in rows]

    async def update_document(self, document: Document) -> Document:
        document = document.model_copy(update={"updated_at": utc_now()})
        params = self._to_params(document)
        # params[1:14] are the mutable columns, params[16] is updated_at.
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute(_UPDATE_DOCUMENT, (*params[1:14], params[16], document.id))
            await db.commit()
        return document

    async def delete_document(self, document_id: str) -> bool:
        async with aiosqlite.connect(str(self._db_path)) as db:
            cursor = await db.execute(_DELETE_DOCUMENT, (document_id,))
            await db.commit()
            return cursor.rowcount > 0

    # ── Row mapping ────────────────────────────────────────────────────

    @staticmethod
    def _to_params(doc: Document) -> tuple[Any, ...]:
        return (
            doc.id,
            doc.title,
            doc.content_key,
            doc.mime_type,
            doc.word_count,
            doc.source.value,
            doc.original_file_name,
            doc.original_file_size,
            json.dumps(doc.metadata) if doc.metadata else None,
            doc.status.value,
            doc.error_message,
            doc.source_url,
            doc.research_config.model_dump_json() if doc.research_config else None,
            doc.content_hash,
            doc.created_by,
            to_iso(doc.created_at),
            to_iso(doc.updated_at),
        )

    @staticmethod
    def _row_to_document(row: dict[str, Any]) -> Document:
        research_raw = row.get("research_config")
        return Document(
            id=row["id"],
            title=row["title"],
            content_key=row["content_key"],
            mime_type=row["mime_type"],
            word_count=row["word_count"],
            source=DocumentSource(row["source"]),
            original_file_name=row.get("original_file_name"),
            original_file_size=row.get("original_file_size"),
            metadata=json.loads(row["metadata"]) if row.get("metadata") else {},
            status=DocumentStatus(row["status"]),
            error_message=row.get("error_message"),
            source_url=row.get("source_url"),
            research_config=ResearchConfig.model_validate_json(research_raw) if research_raw else None,
            content_hash=row.get("content_hash"),
            created_by=row["created_by"],
            created_at=from_iso(row["created_at"]),
            updated_at=from_iso(row["updated_at"]),
        )
