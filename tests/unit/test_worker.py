"""Unit tests for UnifiedWorker: dispatch, completion events, stale jobs and concurrency."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest

from src.models.document import DocumentStatus
from src.models.infographic import InfographicStatus
from src.models.job import JobStatus, JobType
from src.models.podcast import PodcastStatus
from src.models.voiceover import VoiceoverStatus
from src.pipeline.worker import JOB_EVENT_ROUTES, UnifiedWorker
from src.utils.errors import TTSError


def test_every_job_type_has_an_event_route():
    assert set(JOB_EVENT_ROUTES) == set(JobType)


@pytest.mark.asyncio
async def test_poll_once_on_empty_queue(queue):
    worker = UnifiedWorker(queue, {})
    assert await worker.poll_once() is None


@pytest.mark.asyncio
async def test_dispatches_by_job_type(queue):
    podcast_handler = AsyncMock(return_value={"podcast_id": "pod_1"})
    voiceover_handler = AsyncMock(return_value={"voiceover_id": "vo_1"})
    worker = UnifiedWorker(
        queue,
        {JobType.GENERATE_PODCAST: podcast_handler, JobType.GENERATE_VOICEOVER: voiceover_handler},
    )
    await queue.enqueue(JobType.GENERATE_VOICEOVER, {"voiceover_id": "vo_1"}, "usr_1")

    job = await worker.poll_once()

    assert job.status == JobStatus.COMPLETED
    voiceover_handler.assert_awaited_once()
    podcast_handler.assert_not_awaited()


@pytest.mark.asyncio
async def test_missing_handler_fails_job(queue):
    worker = UnifiedWorker(queue, {})
    await queue.enqueue(JobType.PROCESS_URL, {"document_id": "doc_1"}, "usr_1")

    job = await worker.poll_once()

    assert job.status == JobStatus.FAILED
    assert "No handler registered" in job.error


@pytest.mark.asyncio
async def test_completion_events_reach_job_creator(queue, sse, capture_events):
    events = capture_events("usr_1")
    bystander = capture_events("usr_2")
    worker = UnifiedWorker(
        queue,
        {JobType.GENERATE_INFOGRAPHIC: AsyncMock(return_value={"infographic_id": "inf_1"})},
        sse=sse,
    )
    job = await queue.enqueue(JobType.GENERATE_INFOGRAPHIC, {"infographic_id": "inf_1"}, "usr_1")

    await worker.poll_once()

    assert [e["type"] for e in events] == ["infographic_job_completion", "entity_change"]
    completion, change = events
    assert completion["job_id"] == job.id
    assert completion["status"] == "completed"
    assert completion["entity_id"] == "inf_1"
    assert change["entity_type"] == "infographic"
    assert change["change_type"] == "update"
    assert bystander == []


@pytest.mark.asyncio
async def test_failed_job_event_carries_error(queue, sse, capture_events):
    events = capture_events("usr_1")
    worker = UnifiedWorker(
        queue,
        {JobType.GENERATE_AUDIO: AsyncMock(side_effect=TTSError(message="voice unavailable"))},
        sse=sse,
    )
    await queue.enqueue(JobType.GENERATE_AUDIO, {"podcast_id": "pod_1"}, "usr_1")

    await worker.poll_once()

    assert events[0]["type"] == "job_completion"
    assert events[0]["status"] == "failed"
    assert events[0]["error"] == "voice unavailable"


@pytest.mark.asyncio
async def test_reap_stale_jobs_emits_failures(queue, sse, capture_events):
    events = capture_events("usr_1")
    worker = UnifiedWorker(queue, {}, sse=sse, stale_job_seconds=0)
    await queue.enqueue(JobType.PROCESS_RESEARCH, {"document_id": "doc_1"}, "usr_1")
    await queue.claim_next_job()

    stale = await worker.reap_stale_jobs()

    assert len(stale) == 1
    assert events[0]["type"] == "document_job_completion"
    assert events[0]["status"] == "failed"


@pytest.mark.asyncio
async def test_start_and_stop(queue):
    handler = AsyncMock(return_value={})
    worker = UnifiedWorker(queue, {JobType.PROCESS_URL: handler}, poll_interval=0.01)
    await queue.enqueue(JobType.PROCESS_URL, {"document_id": "doc_1"}, "usr_1")

    worker.start()
    assert worker.is_running
    for _ in range(200):
        if handler.await_count:
            break
        await asyncio.sleep(0.01)
    await worker.stop()

    assert not worker.is_running
    handler.assert_awaited_once()


async def _wait_until(predicate, timeout: float = 2.0) -> None:
    for _ in range(int(timeout / 0.01)):
        if predicate():
            return
        await asyncio.sleep(0.01)
    raise AssertionError("condition not reached in time")


def _stale_handlers(podcast_service, voiceover_service, document_service, infographic_service):
    return {
        JobType.GENERATE_PODCAST: podcast_service.fail_stale_job,
        JobType.GENERATE_SCRIPT: podcast_service.fail_stale_job,
        JobType.GENERATE_AUDIO: podcast_service.fail_stale_job,
        JobType.GENERATE_VOICEOVER: voiceover_service.fail_stale_job,
        JobType.GENERATE_INFOGRAPHIC: infographic_service.fail_stale_job,
        JobType.PROCESS_URL: document_service.fail_stale_job,
        JobType.PROCESS_RESEARCH: document_service.fail_stale_job,
    }


# ─── Stale jobs fail their entities ───────────────────────────────


@pytest.mark.asyncio
async def test_reap_fails_entity_of_every_kind(
    queue,
    stores,
    owner,
    podcast_service,
    voiceover_service,
    document_service,
    infographic_service,
):
    podcast = await podcast_service.create_podcast(owner)
    await stores["podcasts"].update_podcast(podcast.model_copy(update={"status": PodcastStatus.GENERATING_SCRIPT}))
    await queue.enqueue(JobType.GENERATE_PODCAST, {"podcast_id": podcast.id, "user_id": owner.id}, owner.id)
    voiceover = await voiceover_service.create_voiceover(owner, "Intro", "Hello there.")
    await voiceover_service.start_generation(voiceover.id, owner)
    document = await document_service.create_from_url(owner, "https://example.com/post")
    infographic = await infographic_service.create_infographic(owner, prompt="Solar growth")
    await infographic_service.start_generation(infographic.id, owner)
    for _ in range(4):
        await queue.claim_next_job()
    worker = UnifiedWorker(
        queue,
        {},
        stale_job_seconds=0,
        stale_handlers=_stale_handlers(podcast_service, voiceover_service, document_service, infographic_service),
    )

    stale = await worker.reap_stale_jobs()

    assert len(stale) == 4
    failed_podcast = await podcast_service.get_podcast(podcast.id, owner)
    assert failed_podcast.status == PodcastStatus.FAILED
    assert failed_podcast.error_message.startswith("Job timed out")
    assert (await voiceover_service.get_voiceover(voiceover.id, owner)).status == VoiceoverStatus.FAILED
    assert (await document_service.get_document(document.id, owner)).status == DocumentStatus.FAILED
    failed_infographic, _ = await infographic_service.get_infographic(infographic.id, owner)
    assert failed_infographic.status == InfographicStatus.FAILED


@pytest.mark.asyncio
async def test_stale_handler_errors_do_not_stop_the_reap(queue, sse, capture_events):
    events = capture_events("usr_1")
    broken = AsyncMock(side_effect=RuntimeError("db locked"))
    worker = UnifiedWorker(
        queue, {}, sse=sse, stale_job_seconds=0, stale_handlers={JobType.PROCESS_URL: broken}
    )
    await queue.enqueue(JobType.PROCESS_URL, {"document_id": "doc_1"}, "usr_1")
    await queue.claim_next_job()

    stale = await worker.reap_stale_jobs()

    assert len(stale) == 1
    broken.assert_awaited_once()
    assert events[0]["type"] == "document_job_completion"


@pytest.mark.asyncio
async def test_reaped_research_is_recovered_and_resumed(queue, stores, owner, document_service, mock_research):
    document = await document_service.create_from_research(owner, "solar")
    config = document.research_config.model_copy(update={"operation_id": "op-live", "research_status": "in_progress"})
    await stores["documents"].update_document(document.model_copy(update={"research_config": config}))
    stale_job = await queue.claim_next_job()
    worker = UnifiedWorker(
        queue,
        {JobType.PROCESS_RESEARCH: document_service.handle_job},
        stale_job_seconds=0,
        stale_check_every=1,
        stale_handlers={JobType.PROCESS_RESEARCH: document_service.fail_stale_job},
        recovery_hooks=[document_service.recover_orphaned_research],
    )

    resumed = await worker.poll_once()

    assert (await queue.get_job(stale_job.id)).status == JobStatus.FAILED
    assert resumed.id != stale_job.id
    assert resumed.status == JobStatus.COMPLETED
    mock_research.start_research.assert_not_awaited()
    mock_research.get_result.assert_awaited_with("op-live")
    assert (await document_service.get_document(document.id, owner)).status == DocumentStatus.READY


@pytest.mark.asyncio
async def test_recovery_hooks_run_on_start(queue):
    hook = AsyncMock(return_value=[])
    worker = UnifiedWorker(queue, {}, poll_interval=0.01, recovery_hooks=[hook])

    worker.start()
    await _wait_until(lambda: hook.await_count > 0)
    await worker.stop()

    hook.assert_awaited_once()


# ─── Concurrency ──────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_long_job_does_not_block_others(queue):
    release = asyncio.Event()

    async def slow_research(job):
        await release.wait()
        return {}

    research = AsyncMock(side_effect=slow_research)
    voiceover = AsyncMock(return_value={})
    worker = UnifiedWorker(
        queue,
        {JobType.PROCESS_RESEARCH: research, JobType.GENERATE_VOICEOVER: voiceover},
        poll_interval=0.01,
        max_concurrent=2,
    )
    research_job = await queue.enqueue(JobType.PROCESS_RESEARCH, {"document_id": "doc_1"}, "usr_1")
    voiceover_job = await queue.enqueue(JobType.GENERATE_VOICEOVER, {"voiceover_id": "vo_1"}, "usr_1")

    worker.start()
    await _wait_until(lambda: voiceover.await_count == 1)
    await _wait_until(lambda: worker.active_jobs == 1)

    assert (await queue.get_job(voiceover_job.id)).status == JobStatus.COMPLETED
    assert (await queue.get_job(research_job.id)).status == JobStatus.PROCESSING

    release.set()
    await _wait_until(lambda: worker.active_jobs == 0)
    await worker.stop()
    assert (await queue.get_job(research_job.id)).status == JobStatus.COMPLETED


@pytest.mark.asyncio
async def test_max_concurrent_bounds_running_jobs(queue):
    release = asyncio.Event()

    async def slow_research(job):
        await release.wait()
        return {}

    research = AsyncMock(side_effect=slow_research)
    voiceover = AsyncMock(return_value={})
    worker = UnifiedWorker(
        queue,
        {JobType.PROCESS_RESEARCH: research, JobType.GENERATE_VOICEOVER: voiceover},
        poll_interval=0.01,
        max_concurrent=1,
    )
    await queue.enqueue(JobType.PROCESS_RESEARCH, {"document_id": "doc_1"}, "usr_1")
    await queue.enqueue(JobType.GENERATE_VOICEOVER, {"voiceover_id": "vo_1"}, "usr_1")

    worker.start()
    await _wait_until(lambda: research.await_count == 1)
    await asyncio.sleep(0.1)
    voiceover.assert_not_awaited()

    release.set()
    await _wait_until(lambda: voiceover.await_count == 1)
    await worker.stop()


@pytest.mark.asyncio
async def test_stop_cancels_jobs_past_shutdown_timeout(queue):
    async def hang(job):
        await asyncio.Event().wait()

    worker = UnifiedWorker(
        queue,
        {JobType.PROCESS_RESEARCH: AsyncMock(side_effect=hang)},
        poll_interval=0.01,
        shutdown_timeout=0.05,
    )
    job = await queue.enqueue(JobType.PROCESS_RESEARCH, {"document_id": "doc_1"}, "usr_1")

    worker.start()
    await _wait_until(lambda: worker.active_jobs == 1)
    await worker.stop()

    assert not worker.is_running
    assert worker.active_jobs == 0
    # left for the stale-job reaper and research recovery
    assert (await queue.get_job(job.id)).status == JobStatus.PROCESSING
