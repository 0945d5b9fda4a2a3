"""SQLite-backed user account persistence."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import aiosqlite
import structlog

from src.interfaces.user_provider import IUserProvider
from src.models.user import User, UserRole
from src.utils.ids import from_iso, to_iso

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/content_studio.db")

_CREATE_USERS_TABLE = """\
CREATE TABLE IF NOT EXISTS users (
    id             TEXT PRIMARY KEY,
    email          TEXT NOT NULL UNIQUE,
    name           TEXT NOT NULL,
    role           TEXT NOT NULL DEFAULT 'user',
    password_hash  TEXT NOT NULL,
    created_at     TEXT NOT NULL
);
"""

_INSERT_USER = """\
INSERT INTO users (id, email, name, role, password_hash, created_at)
VALUES (?, ?, ?, ?, ?, ?);
"""

_SELECT_BY_ID = "SELECT * FROM users WHERE id = ?;"
_SELECT_BY_EMAIL = "SELECT * FROM users WHERE email = ?;"


class SQLiteUserProvider(IUserProvider):
    """User rows in the shared application database."""

    def __init__(self, db_path: str | Path = _DEFAULT_DB_PATH) -> None:
        self._db_path = Path(db_path)

    async def initialize(self) -> None:
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute("PRAGMA journal_mode=WAL;")
            await db.execute(_CREATE_USERS_TABLE)
            await db.commit()
        logger.info("user_db_initialized", path=str(self._db_path))

    def get_provider_name(self) -> str:
        return "sqlite_user"

    async def insert_user(self, user: User) -> User:
        user = user.model_copy(update={"email": user.email.strip().lower()})
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute(_INSERT_USER, (
                user.id,
                user.email,
                user.name,
                user.role.value,
                user.password_hash,
                to_iso(user.created_at),
            ))
            await db.commit()
        logger.info("user_created", user_id=user.id)
        return user

    async def get_user(self, user_id: str) -> User | None:
        return await self._fetch_one(_SELECT_BY_ID, user_id)

    async def get_user_by_email(self, email: str) -> User | None:
        return await self._fetch_one(_SELECT_BY_EMAIL, email.strip().lower())

    async def _fetch_one(self, sql: str, param: str) -> User | None:
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(sql, (param,))
            row = await cursor.fetchone()
        return self._row_to_user(dict(row)) if row else None

    @staticmethod
    def _row_to_user(row: dict[str, Any]) -> User:
        return User(
            id=row["id"],
            email=row["email"],
            name=row["name"],
            role=UserRole(row["role"]),
            password_hash=row["password_hash"],
            created_at=from_iso(row["created_at"]),
        )
