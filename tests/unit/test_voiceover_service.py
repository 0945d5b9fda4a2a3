"""Unit tests for VoiceoverService."""

from __future__ import annotations

import pytest

from src.models.collaborator import CollaboratorEntity
from src.models.job import JobStatus, JobType
from src.models.voiceover import VoiceoverStatus
from src.services.collaboration import CollaborationManager
from src.services.voiceover_service import VoiceoverService, voiceover_audio_key
from src.utils.errors import (
    ForbiddenError,
    InvalidAudioGenerationError,
    JobNotFound,
    NotVoiceoverCollaborator,
    NotVoiceoverOwner,
    TTSError,
    ValidationError,
    VoiceoverNotFound,
)


async def _ready_voiceover(voiceover_service, user):
    voiceover = await voiceover_service.create_voiceover(user, "Intro", "Welcome to the channel.")
    await voiceover_service.start_generation(voiceover.id, user)
    await voiceover_service.generate_audio(voiceover.id)
    return await voiceover_service.get_voiceover(voiceover.id, user)


# ─── CRUD ─────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_create_defaults(voiceover_service, owner):
    voiceover = await voiceover_service.create_voiceover(owner)

    assert voiceover.title == "Untitled Voiceover"
    assert voiceover.voice == "onyx"
    assert voiceover.voice_name == "Onyx"
    assert voiceover.status == VoiceoverStatus.DRAFTING


@pytest.mark.asyncio
async def test_create_with_unknown_voice(voiceover_service, owner):
    with pytest.raises(ValidationError):
        await voiceover_service.create_voiceover(owner, "Bad", "text", voice="robot")


@pytest.mark.asyncio
async def test_access_rules(voiceover_service, owner, other_user):
    voiceover = await voiceover_service.create_voiceover(owner, "Mine", "Hello")

    with pytest.raises(ForbiddenError):
        await voiceover_service.get_voiceover(voiceover.id, other_user)
    with pytest.raises(NotVoiceoverOwner):
        await voiceover_service.update_voiceover(voiceover.id, other_user, title="Theirs")
    with pytest.raises(VoiceoverNotFound):
        await voiceover_service.get_voiceover("vo_missing", owner)


@pytest.mark.asyncio
async def test_list_includes_shared(voiceover_service, owner, other_user):
    mine = await voiceover_service.create_voiceover(other_user, "Mine", "a")
    shared = await voiceover_service.create_voiceover(owner, "Shared", "b")
    await voiceover_service.add_collaborator(shared.id, owner, other_user.email)

    items, total = await voiceover_service.list_voiceovers(other_user)

    assert total == 2
    assert {v.id for v in items} == {mine.id, shared.id}


@pytest.mark.asyncio
async def test_title_only_update_keeps_audio(voiceover_service, owner):
    voiceover = await _ready_voiceover(voiceover_service, owner)

    updated = await voiceover_service.update_voiceover(voiceover.id, owner, title="Renamed")

    assert updated.title == "Renamed"
    assert updated.status == VoiceoverStatus.READY
    assert updated.audio_url == voiceover.audio_url


@pytest.mark.asyncio
async def test_text_change_resets_ready_voiceover(voiceover_service, storage, owner):
    voiceover = await _ready_voiceover(voiceover_service, owner)
    await voiceover_service.approve(voiceover.id, owner)

    updated = await voiceover_service.update_voiceover(voiceover.id, owner, text="A new script.")

    assert updated.status == VoiceoverStatus.DRAFTING
    assert updated.audio_url is None
    assert updated.duration is None
    assert updated.owner_has_approved is False
    assert voiceover_audio_key(voiceover.id) not in storage.blobs


@pytest.mark.asyncio
async def test_delete(voiceover_service, storage, owner):
    voiceover = await _ready_voiceover(voiceover_service, owner)

    await voiceover_service.delete_voiceover(voiceover.id, owner)

    assert voiceover_audio_key(voiceover.id) not in storage.blobs
    with pytest.raises(VoiceoverNotFound):
        await voiceover_service.get_voiceover(voiceover.id, owner)


# ─── Generation ───────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_start_generation_requires_text(voiceover_service, owner):
    voiceover = await voiceover_service.create_voiceover(owner, "Empty", "   ")
    with pytest.raises(InvalidAudioGenerationError):
        await voiceover_service.start_generation(voiceover.id, owner)


@pytest.mark.asyncio
async def test_start_generation_is_idempotent(voiceover_service, queue, owner):
    voiceover = await voiceover_service.create_voiceover(owner, "Intro", "Hello there.")

    first = await voiceover_service.start_generation(voiceover.id, owner)
    second = await voiceover_service.start_generation(voiceover.id, owner)

    assert first["job_id"] == second["job_id"]
    job = await queue.get_job(first["job_id"])
    assert job.type == JobType.GENERATE_VOICEOVER
    current = await voiceover_service.get_voiceover(voiceover.id, owner)
    assert current.status == VoiceoverStatus.GENERATING_AUDIO


@pytest.mark.asyncio
async def test_generate_via_queue(voiceover_service, queue, mock_tts, storage, owner):
    voiceover = await voiceover_service.create_voiceover(owner, "Intro", "Hello there.", voice="sage")
    await voiceover_service.start_generation(voiceover.id, owner)

    job = await queue.process_next_job(voiceover_service.handle_job)

    assert job.status == JobStatus.COMPLETED
    assert job.result["duration"] == 3
    turns = mock_tts.synthesize.await_args.args[0]
    assert [(t.voice, t.text) for t in turns] == [("sage", "Hello there.")]
    ready = await voiceover_service.get_voiceover(voiceover.id, owner)
    assert ready.status == VoiceoverStatus.READY
    assert ready.audio_url == f"/storage/{voiceover_audio_key(voiceover.id)}"
    assert voiceover_audio_key(voiceover.id) in storage.blobs


@pytest.mark.asyncio
async def test_generate_without_tts_marks_failed(stores, storage, queue, owner):
    collaboration = CollaborationManager(
        CollaboratorEntity.VOICEOVER, stores["collaborators"], stores["users"], NotVoiceoverCollaborator
    )
    service = VoiceoverService(stores["voiceovers"], storage, queue, collaboration)
    voiceover = await service.create_voiceover(owner, "Intro", "Hello there.")

    with pytest.raises(TTSError):
        await service.generate_audio(voiceover.id)

    failed = await service.get_voiceover(voiceover.id, owner)
    assert failed.status == VoiceoverStatus.FAILED
    assert failed.error_message == "No TTS provider configured"


@pytest.mark.asyncio
async def test_fail_stale_job_marks_voiceover_failed(voiceover_service, queue, owner, capture_events):
    events = capture_events(owner.id)
    voiceover = await voiceover_service.create_voiceover(owner, "Intro", "Hello there.")
    await voiceover_service.start_generation(voiceover.id, owner)
    job = await queue.claim_next_job()
    stale = job.model_copy(update={"status": JobStatus.FAILED, "error": "Job timed out"})

    await voiceover_service.fail_stale_job(stale)

    failed = await voiceover_service.get_voiceover(voiceover.id, owner)
    assert failed.status == VoiceoverStatus.FAILED
    assert failed.error_message == "Job timed out"
    assert events[-1]["entity_type"] == "voiceover"


@pytest.mark.asyncio
async def test_fail_stale_job_leaves_ready_voiceover(voiceover_service, queue, owner):
    voiceover = await _ready_voiceover(voiceover_service, owner)
    job = await queue.enqueue(JobType.GENERATE_VOICEOVER, {"voiceover_id": voiceover.id}, owner.id)

    await voiceover_service.fail_stale_job(job.model_copy(update={"error": "Job timed out"}))

    assert (await voiceover_service.get_voiceover(voiceover.id, owner)).status == VoiceoverStatus.READY


# ─── Collaboration ────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_collaborator_approval(voiceover_service, owner, other_user, make_user):
    voiceover = await voiceover_service.create_voiceover(owner, "Intro", "Hello")
    await voiceover_service.add_collaborator(voiceover.id, owner, other_user.email)
    stranger = await make_user("stranger@example.com", "Stranger")

    await voiceover_service.approve(voiceover.id, other_user)

    collaborators = await voiceover_service.list_collaborators(voiceover.id, other_user)
    assert collaborators[0].has_approved is True
    with pytest.raises(NotVoiceoverCollaborator):
        await voiceover_service.approve(voiceover.id, stranger)


@pytest.mark.asyncio
async def test_get_job_ownership(voiceover_service, owner, other_user):
    voiceover = await voiceover_service.create_voiceover(owner, "Intro", "Hello")
    started = await voiceover_service.start_generation(voiceover.id, owner)

    job = await voiceover_service.get_job(started["job_id"], owner)
    assert job.payload["voiceover_id"] == voiceover.id
    with pytest.raises(JobNotFound):
        await voiceover_service.get_job(started["job_id"], other_user)
