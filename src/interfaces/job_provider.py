"""Abstract base class for the background job table."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from src.models.job import Job, JobStatus, JobType


# Concrete implementation: SQLiteJobProvider (src/providers/job/)
class IJobProvider(ABC):
    """Contract for durable job storage used by the queue and worker."""

    @abstractmethod
    async def initialize(self) -> None: ...

    @abstractmethod
    def get_provider_name(self) -> str: ...

    @abstractmethod
    async def ping(self) -> None:
        """Run a trivial query; raise if the database cannot be reached."""

    @abstractmethod
    async def insert_job(self, job: Job) -> Job: ...

    @abstractmethod
    async def get_job(self, job_id: str) -> Job | None: ...

    @abstractmethod
    async def list_jobs_for_user(self, user_id: str, limit: int = 50) -> list[Job]: ...

    @abstractmethod
    async def update_status(
        self,
        job_id: str,
        status: JobStatus,
        *,
        result: dict[str, Any] | None = None,
        error: str | None = None,
    ) -> Job | None:
        """Set the job status.

        ``processing`` stamps ``started_at``; ``completed`` and ``failed``
        stamp ``completed_at``.
        """

    @abstractmethod
    async def claim_next(self) -> Job | None:
        """Atomically move the oldest pending job to ``processing`` and return it."""

    @abstractmethod
    async def find_pending_for_entity(
        self, job_types: list[JobType], payload_key: str, entity_id: str
    ) -> Job | None:
        """Return a pending or processing job whose ``payload[payload_key]`` is *entity_id*."""

    @abstractmethod
    async def fail_stale(self, max_age_seconds: int) -> list[Job]:
        """Fail processing jobs started more than *max_age_seconds* ago; return them."""

    @abstractmethod
    async def delete_job(self, job_id: str) -> bool: ...
