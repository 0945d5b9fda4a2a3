"""SQLite-backed durable job table for the unified worker.

# ─── ARCHITECTURE ROLE ───────────────────────────────────────────────
#
# Layer: Providers (concrete adapter implementing IJobProvider).
#
# The API process enqueues rows; the worker (in-process or standalone
# via ``python -m src.cli worker``) claims them.  ``claim_next`` runs
# inside ``BEGIN IMMEDIATE`` so two workers sharing the database file
# never claim the same row.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import json
from datetime import timedelta
from pathlib import Path
from typing import Any

import aiosqlite
import structlog

from src.interfaces.job_provider import IJobProvider
from src.models.job import Job, JobStatus, JobType
from src.utils.ids import from_iso, to_iso, utc_now

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/content_studio.db")

_CREATE_JOBS_TABLE = """\
CREATE TABLE IF NOT EXISTS jobs (
    id            TEXT PRIMARY KEY,
    type          TEXT NOT NULL,
    status        TEXT NOT NULL DEFAULT 'pending',
    payload       TEXT NOT NULL,
    result        TEXT,
    error         TEXT,
    created_by    TEXT NOT NULL,
    created_at    TEXT NOT NULL,
    updated_at    TEXT NOT NULL,
    started_at    TEXT,
    completed_at  TEXT
);
"""

_CREATE_INDICES = [
    "CREATE INDEX IF NOT EXISTS idx_jobs_status_created ON jobs(status, created_at);",
    "CREATE INDEX IF NOT EXISTS idx_jobs_created_by ON jobs(created_by);",
]

_COLUMNS = (
    "id, type, status, payload, result, error, created_by, created_at, updated_at, "
    "started_at, completed_at"
)

_INSERT_JOB = f"INSERT INTO jobs ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?);"
_SELECT_JOB = f"SELECT {_COLUMNS} FROM jobs WHERE id = ?;"
_SELECT_FOR_USER = (
    f"SELECT {_COLUMNS} FROM jobs WHERE created_by = ? "
    "ORDER BY created_at DESC LIMIT ?;"
)
_SELECT_OLDEST_PENDING = (
    "SELECT id FROM jobs WHERE status = 'pending' ORDER BY created_at ASC, id ASC LIMIT 1;"
)
_MARK_PROCESSING = """\
UPDATE jobs SET status = 'processing', started_at = ?, updated_at = ?
WHERE id = ? AND status = 'pending';
"""
_SELECT_STALE = (
    f"SELECT {_COLUMNS} FROM jobs WHERE status = 'processing' AND started_at < ?;"
)
_FAIL_JOB = """\
UPDATE jobs SET status = 'failed', error = ?, completed_at = ?, updated_at = ?
WHERE id = ? AND status = 'processing';
"""
_DELETE_JOB = "DELETE FROM jobs WHERE id = ?;"


class SQLiteJobProvider(IJobProvider):
    """Job rows with atomic claim semantics."""

    def __init__(self, db_path: str | Path = _DEFAULT_DB_PATH) -> None:
        self._db_path = Path(db_path)

    async def initialize(self) -> None:
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute("PRAGMA journal_mode=WAL;")
            await db.execute(_CREATE_JOBS_TABLE)
            for idx_sql in _CREATE_INDICES:
                await db.execute(idx_sql)
            await db.commit()
        logger.info("job_db_initialized", path=str(self._db_path))

    def get_provider_name(self) -> str:
        return "sqlite_job"

    async def ping(self) -> None:
        async with aiosqlite.connect(str(self._db_path)) as db:
            cursor = await db.execute("SELECT 1 FROM jobs LIMIT 1;")
            await cursor.fetchall()

    async def insert_job(self, job: Job) -> Job:
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute(_INSERT_JOB, (
                job.id,
                job.type.value,
                job.status.value,
                json.dumps(job.payload),
                json.dumps(job.result) if job.result is not None else None,
                job.error,
                job.created_by,
                to_iso(job.created_at),
                to_iso(job.updated_at),
                to_iso(job.started_at),
                to_iso(job.completed_at),
            ))
            await db.commit()
        logger.debug("job_enqueued", job_id=job.id, job_type=job.type.value)
        return job

    async def get_job(self, job_id: str) -> Job | None:
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(_SELECT_JOB, (job_id,))
            row = await cursor.fetchone()
        return self._row_to_job(dict(row)) if row else None

    async def list_jobs_for_user(self, user_id: str, limit: int = 50) -> list[Job]:
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(_SELECT_FOR_USER, (user_id, limit))
            rows = await cursor.fetchall()
        return [self._row_to_job(dict(r)) for r in rows]

    async def update_status(
        self,
        job_id: str,
        status: JobStatus,
        *,
        result: dict[str, Any] | None = None,
        error: str | None = None,
    ) -> Job | None:
        now = to_iso(utc_now())
        assignments = ["status = ?", "updated_at = ?"]
        params: list[Any] = [status.value, now]
        if status == JobStatus.PROCESSING:
            assignments.append("started_at = ?")
            params.append(now)
        if status in (JobStatus.COMPLETED, JobStatus.FAILED):
            assignments.append("completed_at = ?")
            params.append(now)
        if result is not None:
            assignments.append("result = ?")
            params.append(json.dumps(result))
        if error is not None:
            assignments.append("error = ?")
            params.append(error)

        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute(
                f"UPDATE jobs SET {', '.join(assignments)} WHERE id = ?;",
                (*params, job_id),
            )
            await db.commit()
        return await self.get_job(job_id)

    async def claim_next(self) -> Job | None:
        async with aiosqlite.connect(str(self._db_path), isolation_level=None) as db:
            await db.execute("BEGIN IMMEDIATE;")
            try:
                cursor = await db.execute(_SELECT_OLDEST_PENDING)
                row = await cursor.fetchone()
                if row is None:
                    await db.execute("COMMIT;")
                    return None
                now = to_iso(utc_now())
                await db.execute(_MARK_PROCESSING, (now, now, row[0]))
                await db.execute("COMMIT;")
            except aiosqlite.Error:
                await db.execute("ROLLBACK;")
                raise
        job = await self.get_job(row[0])
        if job is not None:
            logger.info("job_claimed", job_id=job.id, job_type=job.type.value)
        return job

    async def find_pending_for_entity(
        self, job_types: list[JobType], payload_key: str, entity_id: str
    ) -> Job | None:
        if not job_types:
            return None
        placeholders = ", ".join("?" for _ in job_types)
        sql = (
            f"SELECT {_COLUMNS} FROM jobs "
            f"WHERE status IN ('pending', 'processing') AND type IN ({placeholders}) "
            "AND json_extract(payload, ?) = ? "
            "ORDER BY created_at DESC LIMIT 1;"
        )
        params = (*[t.value for t in job_types], f"$.{payload_key}", entity_id)
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(sql, params)
            row = await cursor.fetchone()
        return self._row_to_job(dict(row)) if row else None

    async def fail_stale(self, max_age_seconds: int) -> list[Job]:
        now = utc_now()
        cutoff = to_iso(now - timedelta(seconds=max_age_seconds))
        message = f"Job timed out: worker did not complete within {max_age_seconds}s"

        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(_SELECT_STALE, (cutoff,))
            rows = [dict(r) for r in await cursor.fetchall()]
            for row in rows:
                await db.execute(_FAIL_JOB, (message, to_iso(now), to_iso(now), row["id"]))
            await db.commit()

        failed = [
            self._row_to_job(row).model_copy(update={
                "status": JobStatus.FAILED,
                "error": message,
                "completed_at": now,
                "updated_at": now,
            })
            for row in rows
        ]
        if failed:
            logger.warning("stale_jobs_failed", count=len(failed), max_age_seconds=max_age_seconds)
        return failed

    async def delete_job(self, job_id: str) -> bool:
        async with aiosqlite.connect(str(self._db_path)) as db:
            cursor = await db.execute(_DELETE_JOB, (job_id,))
            await db.commit()
            return cursor.rowcount > 0

    @staticmethod
    def _row_to_job(row: dict[str, Any]) -> Job:
        return Job(
            id=row["id"],
            type=JobType(row["type"]),
            status=JobStatus(row["status"]),
            payload=json.loads(row["payload"]) if row.get("payload") else {},
            result=json.loads(row["result"]) if row.get("result") else None,
            error=row.get("error"),
            created_by=row["created_by"],
            created_at=from_iso(row["created_at"]),
            updated_at=from_iso(row["updated_at"]),
            started_at=from_iso(row.get("started_at")),
            completed_at=from_iso(row.get("completed_at")),
        )
