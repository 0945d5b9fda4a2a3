"""Durable background job queue over IJobProvider.

# ─── ARCHITECTURE ROLE ───────────────────────────────────────────────
#
# Layer: Pipeline.
#
# Services enqueue work (script generation, TTS, scraping, research,
# image generation) and return a job id immediately; the UnifiedWorker
# claims and runs it.  ``run_job`` owns the status bookkeeping:
#
#   pending ──claim──→ processing ──handler ok──→ completed (result)
#                                 └─handler raises→ failed (error message)
#
# Handlers may raise anything; the failure is recorded and the exception
# is not re-raised so one bad job never stops the worker loop.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any

import structlog

from src.interfaces.job_provider import IJobProvider
from src.models.job import DOCUMENT_JOB_TYPES, PODCAST_JOB_TYPES, Job, JobStatus, JobType
from src.utils.errors import JobNotFound
from src.utils.ids import new_id, utc_now

logger = structlog.get_logger(logger_name=__name__)

JobHandler = Callable[[Job], Awaitable[dict[str, Any] | None]]


class JobQueue:
    def __init__(self, provider: IJobProvider) -> None:
        self._provider = provider

    async def enqueue(self, job_type: JobType, payload: dict[str, Any], user_id: str) -> Job:
        now = utc_now()
        job = Job(
            id=new_id("job"),
            type=job_type,
            payload=payload,
            created_by=user_id,
            created_at=now,
            updated_at=now,
        )
        await self._provider.insert_job(job)
        logger.info("job_enqueued", job_id=job.id, job_type=job_type.value, user_id=user_id)
        return job

    async def get_job(self, job_id: str) -> Job | None:
        return await self._provider.get_job(job_id)

    async def get_job_for_user(self, job_id: str, user_id: str) -> Job:
        """Return the job if *user_id* created it.

        Raises
        ------
        JobNotFound
            If the job does not exist or belongs to someone else.
        """
        job = await self._provider.get_job(job_id)
        if job is None or job.created_by != user_id:
            raise JobNotFound(job_id)
        return job

    async def get_jobs_by_user(self, user_id: str, limit: int = 50) -> list[Job]:
        return await self._provider.list_jobs_for_user(user_id, limit)

    async def update_job_status(
        self,
        job_id: str,
        status: JobStatus,
        result: dict[str, Any] | None = None,
        error: str | None = None,
    ) -> Job | None:
        return await self._provider.update_status(job_id, status, result=result, error=error)

    async def ping(self) -> None:
        await self._provider.ping()

    async def claim_next_job(self) -> Job | None:
        return await self._provider.claim_next()

    async def process_next_job(self, handler: JobHandler) -> Job | None:
        """Claim the oldest pending job, run *handler* on it and record the outcome.

        Returns the finished job, or ``None`` when the queue is empty.
        """
        job = await self.claim_next_job()
        if job is None:
            return None
        return await self.run_job(job, handler)

    async def process_job_by_id(self, job_id: str, handler: JobHandler) -> Job | None:
        """Run a specific job regardless of queue order (used by tests and the CLI)."""
        job = await self._provider.get_job(job_id)
        if job is None:
            return None
        job = await self.update_job_status(job_id, JobStatus.PROCESSING) or job
        return await self.run_job(job, handler)

    async def run_job(self, job: Job, handler: JobHandler) -> Job | None:
        """Run *handler* on an already claimed job and record completed or failed."""
        log = logger.bind(job_id=job.id, job_type=job.type.value)
        try:
            result = await handler(job)
        except Exception as exc:  # noqa: BLE001
            message = getattr(exc, "message", None) or str(exc) or type(exc).__name__
            log.warning("job_failed", error=message)
            return await self.update_job_status(job.id, JobStatus.FAILED, error=message)
        log.info("job_completed")
        return await self.update_job_status(job.id, JobStatus.COMPLETED, result=result or {})

    async def find_pending_job_for_podcast(self, podcast_id: str) -> Job | None:
        return await self._provider.find_pending_for_entity(
            sorted(PODCAST_JOB_TYPES, key=lambda t: t.value), "podcast_id", podcast_id
        )

    async def find_pending_job_of_type(
        self, job_type: JobType, payload_key: str, entity_id: str
    ) -> Job | None:
        return await self._provider.find_pending_for_entity([job_type], payload_key, entity_id)

    async def find_pending_job_for_voiceover(self, voiceover_id: str) -> Job | None:
        return await self._provider.find_pending_for_entity(
            [JobType.GENERATE_VOICEOVER], "voiceover_id", voiceover_id
        )

    async def find_pending_job_for_infographic(self, infographic_id: str) -> Job | None:
        return await self._provider.find_pending_for_entity(
            [JobType.GENERATE_INFOGRAPHIC], "infographic_id", infographic_id
        )

    async def find_pending_job_for_document(self, document_id: str) -> Job | None:
        return await self._provider.find_pending_for_entity(
            sorted(DOCUMENT_JOB_TYPES, key=lambda t: t.value), "document_id", document_id
        )

    async def fail_stale_jobs(self, max_age_seconds: int) -> list[Job]:
        return await self._provider.fail_stale(max_age_seconds)

    async def delete_job(self, job_id: str) -> bool:
        return await self._provider.delete_job(job_id)
