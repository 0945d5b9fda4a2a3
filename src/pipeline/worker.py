"""Background worker that drains the job queue for every job type.

# ─── HOW THE WORKER LOOP RUNS ───────────────────────────────────────
#
#   on start            → fail_stale_jobs() then recovery hooks
#   while not stopped:
#       wait for a free slot (max_concurrent)
#       every Nth poll  → fail_stale_jobs()   (crashed or hung jobs)
#                         └─ stale handler fails the job's entity
#       claim_next_job()
#           └─ task: run_job(dispatch) → completion event + entity_change
#       queue empty     → sleep poll_interval (wakes early on stop())
#
# Up to ``max_concurrent`` jobs run as tasks at once, so a research job
# polling its provider for an hour does not hold up TTS or image work.
# Handler errors are recorded on the job by JobQueue and never escape
# the loop.  stop() waits ``shutdown_timeout`` for running jobs, then
# cancels the rest; cancelled jobs stay ``processing`` until reaped.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Awaitable, Callable, Iterable
from typing import Any

import structlog

from src.models.events import ChangeType, EntityChangeEvent, EntityType, JobCompletionEvent
from src.models.job import Job, JobType
from src.pipeline.job_queue import JobHandler, JobQueue
from src.realtime.sse_manager import SSEManager
from src.utils.errors import ConfigurationError

logger = structlog.get_logger(logger_name=__name__)

StaleJobHandler = Callable[[Job], Awaitable[None]]
RecoveryHook = Callable[[], Awaitable[Any]]

# job type → (completion event type, entity type, payload key of the entity id)
JOB_EVENT_ROUTES: dict[JobType, tuple[str, EntityType, str]] = {
    JobType.GENERATE_PODCAST: ("job_completion", EntityType.PODCAST, "podcast_id"),
    JobType.GENERATE_SCRIPT: ("job_completion", EntityType.PODCAST, "podcast_id"),
    JobType.GENERATE_AUDIO: ("job_completion", EntityType.PODCAST, "podcast_id"),
    JobType.GENERATE_VOICEOVER: ("voiceover_job_completion", EntityType.VOICEOVER, "voiceover_id"),
    JobType.PROCESS_URL: ("document_job_completion", EntityType.DOCUMENT, "document_id"),
    JobType.PROCESS_RESEARCH: ("document_job_completion", EntityType.DOCUMENT, "document_id"),
    JobType.GENERATE_INFOGRAPHIC: ("infographic_job_completion", EntityType.INFOGRAPHIC, "infographic_id"),
}


class UnifiedWorker:
    """Polls the queue and runs each job, concurrently, on the handler for its type.

    Parameters
    ----------
    handlers:
        Job type → coroutine that does the work.
    stale_handlers:
        Job type → coroutine that moves the job's entity to ``failed``
        after the job itself was reaped as stale.
    recovery_hooks:
        Coroutines run on start and after any reap that failed jobs
        (e.g. re-queueing orphaned research).
    """

    def __init__(
        self,
        queue: JobQueue,
        handlers: dict[JobType, JobHandler],
        sse: SSEManager | None = None,
        poll_interval: float = 2.0,
        stale_job_seconds: int = 4500,
        stale_check_every: int = 30,
        max_concurrent: int = 4,
        stale_handlers: dict[JobType, StaleJobHandler] | None = None,
        recovery_hooks: Iterable[RecoveryHook] = (),
        shutdown_timeout: float = 10.0,
    ) -> None:
        self._queue = queue
        self._handlers = handlers
        self._stale_handlers = stale_handlers or {}
        self._recovery_hooks = list(recovery_hooks)
        self._sse = sse
        self._poll_interval = poll_interval
        self._stale_job_seconds = stale_job_seconds
        self._stale_check_every = max(1, stale_check_every)
        self._max_concurrent = max(1, max_concurrent)
        self._shutdown_timeout = shutdown_timeout
        self._slots = asyncio.Semaphore(self._max_concurrent)
        self._running: set[asyncio.Task] = set()
        self._stop = asyncio.Event()
        self._polls = 0
        self._task: asyncio.Task | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def active_jobs(self) -> int:
        return len(self._running)

    def start(self) -> asyncio.Task:
        """Run :meth:`run` as a background task on the current loop."""
        if self._task is None or self._task.done():
            self._stop.clear()
            self._task = asyncio.create_task(self.run(), name="unified-worker")
        return self._task

    async def stop(self) -> None:
        self._stop.set()
        if self._running:
            _, pending = await asyncio.wait(set(self._running), timeout=self._shutdown_timeout)
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)
        if self._task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None
        logger.info("worker_stopped")

    async def run(self) -> None:
        logger.info(
            "worker_started",
            poll_interval=self._poll_interval,
            max_concurrent=self._max_concurrent,
            job_types=sorted(t.value for t in self._handlers),
        )
        try:
            await self.reap_stale_jobs()
            await self.recover()
        except Exception as exc:  # noqa: BLE001
            logger.error("worker_startup_sweep_failed", error=str(exc))

        while not self._stop.is_set():
            await self._slots.acquire()
            if self._stop.is_set():
                self._slots.release()
                break
            try:
                job = await self._claim()
            except Exception as exc:  # noqa: BLE001
                logger.error("worker_poll_failed", error=str(exc))
                job = None
            if job is None:
                self._slots.release()
                with contextlib.suppress(asyncio.TimeoutError):
                    await asyncio.wait_for(self._stop.wait(), timeout=self._poll_interval)
                continue
            self._spawn(job)

    async def poll_once(self) -> Job | None:
        """Claim and run at most one job inline.  Returns the finished job or ``None``."""
        job = await self._claim()
        if job is None:
            return None
        return await self._execute(job)

    async def reap_stale_jobs(self) -> list[Job]:
        stale = await self._queue.fail_stale_jobs(self._stale_job_seconds)
        for job in stale:
            logger.warning("stale_job_failed", job_id=job.id, job_type=job.type.value)
            await self._fail_entity(job)
            await self._emit_completion(job)
        return stale

    async def recover(self) -> None:
        for hook in self._recovery_hooks:
            try:
                await hook()
            except Exception as exc:  # noqa: BLE001
                logger.warning(
                    "worker_recovery_failed",
                    hook=getattr(hook, "__name__", repr(hook)),
                    error=str(exc),
                )

    async def _claim(self) -> Job | None:
        self._polls += 1
        if self._polls % self._stale_check_every == 0 and await self.reap_stale_jobs():
            await self.recover()
        return await self._queue.claim_next_job()

    def _spawn(self, job: Job) -> None:
        task = asyncio.create_task(self._run_in_slot(job), name=f"job-{job.id}")
        self._running.add(task)
        task.add_done_callback(self._running.discard)

    async def _run_in_slot(self, job: Job) -> None:
        try:
            await self._execute(job)
        except asyncio.CancelledError:
            logger.warning("job_cancelled", job_id=job.id, job_type=job.type.value)
            raise
        except Exception as exc:  # noqa: BLE001
            logger.error("job_task_failed", job_id=job.id, error=str(exc))
        finally:
            self._slots.release()

    async def _execute(self, job: Job) -> Job | None:
        finished = await self._queue.run_job(job, self._dispatch)
        if finished is not None:
            await self._emit_completion(finished)
        return finished

    async def _dispatch(self, job: Job) -> dict | None:
        handler = self._handlers.get(job.type)
        if handler is None:
            raise ConfigurationError(message=f"No handler registered for job type {job.type.value}")
        logger.info("job_dispatched", job_id=job.id, job_type=job.type.value)
        return await handler(job)

    async def _fail_entity(self, job: Job) -> None:
        handler = self._stale_handlers.get(job.type)
        if handler is None:
            return
        try:
            await handler(job)
        except Exception as exc:  # noqa: BLE001
            logger.warning("stale_job_entity_update_failed", job_id=job.id, error=str(exc))

    async def _emit_completion(self, job: Job) -> None:
        if self._sse is None:
            return
        event_type, entity_type, key = JOB_EVENT_ROUTES[job.type]
        entity_id = job.payload.get(key)
        completion = JobCompletionEvent(
            type=event_type,
            job_id=job.id,
            job_type=job.type.value,
            status=job.status.value,
            entity_id=entity_id,
            error=job.error,
        )
        try:
            await self._sse.emit(job.created_by, completion)
            if entity_id:
                await self._sse.emit(
                    job.created_by,
                    EntityChangeEvent(
                        entity_type=entity_type,
                        change_type=ChangeType.UPDATE,
                        entity_id=entity_id,
                        user_id=job.created_by,
                    ),
                )
        except Exception as exc:  # noqa: BLE001
            logger.warning("job_completion_emit_failed", job_id=job.id, error=str(exc))
