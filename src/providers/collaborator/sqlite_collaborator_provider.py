"""SQLite-backed collaborator persistence for podcasts and voiceovers."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import aiosqlite
import structlog

from src.interfaces.collaborator_provider import ICollaboratorProvider
from src.models.collaborator import Collaborator, CollaboratorEntity
from src.utils.ids import from_iso, to_iso

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/content_studio.db")

_CREATE_COLLABORATORS_TABLE = """\
CREATE TABLE IF NOT EXISTS collaborators (
    id            TEXT PRIMARY KEY,
    entity_type   TEXT NOT NULL,
    entity_id     TEXT NOT NULL,
    user_id       TEXT,
    email         TEXT NOT NULL,
    has_approved  INTEGER NOT NULL DEFAULT 0,
    approved_at   TEXT,
    added_at      TEXT NOT NULL,
    added_by      TEXT NOT NULL,
    UNIQUE(entity_type, entity_id, email)
);
"""

_CREATE_INDICES = [
    "CREATE INDEX IF NOT EXISTS idx_collab_entity ON collaborators(entity_type, entity_id);",
    "CREATE INDEX IF NOT EXISTS idx_collab_user ON collaborators(entity_type, user_id);",
    "CREATE INDEX IF NOT EXISTS idx_collab_email ON collaborators(email);",
]

_COLUMNS = "id, entity_type, entity_id, user_id, email, has_approved, approved_at, added_at, added_by"

_INSERT = f"INSERT INTO collaborators ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?);"
_SELECT_BY_ID = f"SELECT {_COLUMNS} FROM collaborators WHERE id = ?;"
_SELECT_BY_EMAIL = (
    f"SELECT {_COLUMNS} FROM collaborators "
    "WHERE entity_type = ? AND entity_id = ? AND email = ?;"
)
_SELECT_BY_USER = (
    f"SELECT {_COLUMNS} FROM collaborators "
    "WHERE entity_type = ? AND entity_id = ? AND user_id = ?;"
)
_SELECT_FOR_ENTITY = (
    f"SELECT {_COLUMNS} FROM collaborators "
    "WHERE entity_type = ? AND entity_id = ? ORDER BY added_at ASC, id ASC;"
)
_SELECT_ENTITY_IDS_FOR_USER = (
    "SELECT DISTINCT entity_id FROM collaborators WHERE entity_type = ? AND user_id = ?;"
)
_UPDATE = """\
UPDATE collaborators SET user_id = ?, email = ?, has_approved = ?, approved_at = ?
WHERE id = ?;
"""
_DELETE_BY_ID = "DELETE FROM collaborators WHERE id = ?;"
_DELETE_FOR_ENTITY = "DELETE FROM collaborators WHERE entity_type = ? AND entity_id = ?;"
_RESET_APPROVALS = """\
UPDATE collaborators SET has_approved = 0, approved_at = NULL
WHERE entity_type = ? AND entity_id = ?;
"""
_CLAIM_PENDING = "UPDATE collaborators SET user_id = ? WHERE email = ? AND user_id IS NULL;"


class SQLiteCollaboratorProvider(ICollaboratorProvider):
    """Collaborator rows keyed by ``(entity_type, entity_id)``."""

    def __init__(self, db_path: str | Path = _DEFAULT_DB_PATH) -> None:
        self._db_path = Path(db_path)

    async def initialize(self) -> None:
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute("PRAGMA journal_mode=WAL;")
            await db.execute(_CREATE_COLLABORATORS_TABLE)
            for idx_sql in _CREATE_INDICES:
                await db.execute(idx_sql)
            await db.commit()
        logger.info("collaborator_db_initialized", path=str(self._db_path))

    def get_provider_name(self) -> str:
        return "sqlite_collaborator"

    async def add_collaborator(self, collaborator: Collaborator) -> Collaborator:
        collaborator = collaborator.model_copy(
            update={"email": collaborator.email.strip().lower()}
        )
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute(_INSERT, (
                collaborator.id,
                collaborator.entity_type.value,
                collaborator.entity_id,
                collaborator.user_id,
                collaborator.email,
                int(collaborator.has_approved),
                to_iso(collaborator.approved_at) if collaborator.approved_at else None,
                to_iso(collaborator.added_at),
                collaborator.added_by,
            ))
            await db.commit()
        return collaborator

    async def get_collaborator(self, collaborator_id: str) -> Collaborator | None:
        rows = await self._fetch(_SELECT_BY_ID, (collaborator_id,))
        return rows[0] if rows else None

    async def find_by_email(
        self, entity_type: CollaboratorEntity, entity_id: str, email: str
    ) -> Collaborator | None:
        rows = await self._fetch(
            _SELECT_BY_EMAIL, (entity_type.value, entity_id, email.strip().lower())
        )
        return rows[0] if rows else None

    async def find_by_user(
        self, entity_type: CollaboratorEntity, entity_id: str, user_id: str
    ) -> Collaborator | None:
        rows = await self._fetch(_SELECT_BY_USER, (entity_type.value, entity_id, user_id))
        return rows[0] if rows else None

    async def list_for_entity(
        self, entity_type: CollaboratorEntity, entity_id: str
    ) -> list[Collaborator]:
        return await self._fetch(_SELECT_FOR_ENTITY, (entity_type.value, entity_id))

    async def list_entity_ids_for_user(
        self, entity_type: CollaboratorEntity, user_id: str
    ) -> list[str]:
        async with aiosqlite.connect(str(self._db_path)) as db:
            cursor = await db.execute(_SELECT_ENTITY_IDS_FOR_USER, (entity_type.value, user_id))
            rows = await cursor.fetchall()
        return [r[0] for r in rows]

    async def update_collaborator(self, collaborator: Collaborator) -> Collaborator:
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute(_UPDATE, (
                collaborator.user_id,
                collaborator.email,
                int(collaborator.has_approved),
                to_iso(collaborator.approved_at) if collaborator.approved_at else None,
                collaborator.id,
            ))
            await db.commit()
        return collaborator

    async def remove_collaborator(self, collaborator_id: str) -> bool:
        async with aiosqlite.connect(str(self._db_path)) as db:
            cursor = await db.execute(_DELETE_BY_ID, (collaborator_id,))
            await db.commit()
            return cursor.rowcount > 0

    async def delete_for_entity(self, entity_type: CollaboratorEntity, entity_id: str) -> int:
        async with aiosqlite.connect(str(self._db_path)) as db:
            cursor = await db.execute(_DELETE_FOR_ENTITY, (entity_type.value, entity_id))
            await db.commit()
            return cursor.rowcount

    async def reset_approvals(self, entity_type: CollaboratorEntity, entity_id: str) -> None:
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute(_RESET_APPROVALS, (entity_type.value, entity_id))
            await db.commit()

    async def claim_pending(self, email: str, user_id: str) -> int:
        async with aiosqlite.connect(str(self._db_path)) as db:
            cursor = await db.execute(_CLAIM_PENDING, (user_id, email.strip().lower()))
            await db.commit()
            claimed = cursor.rowcount
        if claimed:
            logger.info("pending_invites_claimed", user_id=user_id, count=claimed)
        return claimed

    async def _fetch(self, sql: str, params: tuple[Any, ...]) -> list[Collaborator]:
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(sql, params)
            rows = await cursor.fetchall()
        return [self._row_to_collaborator(dict(r)) for r in rows]

    @staticmethod
    def _row_to_collaborator(row: dict[str, Any]) -> Collaborator:
        return Collaborator(
            id=row["id"],
            entity_type=CollaboratorEntity(row["entity_type"]),
            entity_id=row["entity_id"],
            user_id=row.get("user_id"),
            email=row["email"],
            has_approved=bool(row["has_approved"]),
            approved_at=from_iso(row["approved_at"]) if row.get("approved_at") else None,
            added_at=from_iso(row["added_at"]),
            added_by=row["added_by"],
        )
