"""Unit tests for PodcastService: CRUD, generation, edits and collaboration.

The LLM and TTS providers are mocks; everything else (SQLite rows, the
job queue, blob storage and SSE fan-out) is real.
"""

from __future__ import annotations

import json

import pytest

from src.models.job import JobStatus, JobType
from src.models.podcast import PodcastFormat, PodcastStatus
from src.services.podcast_service import audio_key_for, index_segments, voice_for_speaker
from src.utils.errors import (
    CollaboratorAlreadyExists,
    DocumentNotFound,
    ForbiddenError,
    InvalidAudioGenerationError,
    InvalidSaveError,
    InvalidStatusTransition,
    JobNotFound,
    LLMError,
    NoChangesToSave,
    NotPodcastCollaborator,
    NotPodcastOwner,
    ScriptNotFound,
    ValidationError,
)

SCRIPT_JSON = json.dumps({
    "title": "Solar Rising",
    "description": "Why rooftop solar took off.",
    "summary": "A chat about solar growth.",
    "tags": ["energy", "solar"],
    "segments": [
        {"speaker": "host", "line": "Welcome to the show!"},
        {"speaker": "cohost", "line": "Glad to be here."},
        {"speaker": "host", "line": "   "},
        {"speaker": "host", "line": "Let's talk solar."},
    ],
})


async def _podcast_with_doc(podcast_service, document_service, user, **kwargs):
    doc = await document_service.create_document(user, "Energy notes", "Solar adoption doubled.")
    return await podcast_service.create_podcast(user, source_document_ids=[doc.id], **kwargs)


async def _ready_podcast(podcast_service, document_service, mock_llm, user):
    podcast = await _podcast_with_doc(podcast_service, document_service, user)
    mock_llm.complete.return_value = SCRIPT_JSON
    await podcast_service.generate_script(podcast.id)
    await podcast_service.generate_audio(podcast.id)
    return await podcast_service.get_podcast(podcast.id, user)


# ─── Helpers ──────────────────────────────────────────────────────


@pytest.mark.parametrize(
    "speaker, expected",
    [
        ("host", "onyx"),
        ("Host 1", "onyx"),
        ("cohost", "nova"),
        ("Co-Host", "nova"),
        ("co_host", "nova"),
        ("guest", "nova"),
    ],
)
def test_voice_for_speaker(speaker, expected):
    assert voice_for_speaker(speaker, "onyx", "nova") == expected


def test_index_segments_renumbers_and_accepts_dicts():
    segments = index_segments([{"speaker": "host", "line": "a"}, {"line": "b"}])
    assert [(s.speaker, s.line, s.index) for s in segments] == [("host", "a", 0), ("host", "b", 1)]


# ─── Creation ─────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_create_podcast_defaults(podcast_service, owner):
    podcast = await podcast_service.create_podcast(owner)

    assert podcast.title == "Untitled Podcast"
    assert podcast.status == PodcastStatus.DRAFTING
    assert podcast.host_voice == "onyx"
    assert podcast.host_voice_name == "Onyx"
    assert podcast.co_host_voice == "nova"
    assert podcast.co_host_voice_name == "Nova"
    assert podcast.target_duration_minutes == 5


@pytest.mark.asyncio
async def test_voice_over_format_has_no_co_host(podcast_service, owner):
    podcast = await podcast_service.create_podcast(
        owner, format=PodcastFormat.VOICE_OVER, co_host_voice="ash"
    )
    assert podcast.co_host_voice is None
    assert podcast.co_host_voice_name is None


@pytest.mark.asyncio
async def test_unknown_voice_is_rejected(podcast_service, owner):
    with pytest.raises(ValidationError):
        await podcast_service.create_podcast(owner, host_voice="robot")


@pytest.mark.asyncio
async def test_source_documents_must_be_owned(podcast_service, document_service, owner, other_user):
    theirs = await document_service.create_document(other_user, "Theirs", "text")

    with pytest.raises(ForbiddenError):
        await podcast_service.create_podcast(owner, source_document_ids=[theirs.id])
    with pytest.raises(DocumentNotFound):
        await podcast_service.create_podcast(owner, source_document_ids=["doc_missing"])


@pytest.mark.asyncio
async def test_duplicate_document_ids_are_collapsed(podcast_service, document_service, owner):
    doc = await document_service.create_document(owner, "Doc", "text")
    podcast = await podcast_service.create_podcast(owner, source_document_ids=[doc.id, doc.id])
    assert podcast.source_document_ids == [doc.id]


# ─── Request-side generation ──────────────────────────────────────


@pytest.mark.asyncio
async def test_start_generation_is_idempotent(podcast_service, queue, owner):
    podcast = await podcast_service.create_podcast(owner, prompt_instructions="Keep it light")

    first = await podcast_service.start_generation(podcast.id, owner)
    second = await podcast_service.start_generation(podcast.id, owner)

    assert first["job_id"] == second["job_id"]
    job = await queue.get_job(first["job_id"])
    assert job.type == JobType.GENERATE_PODCAST
    assert job.payload["prompt_instructions"] == "Keep it light"


@pytest.mark.asyncio
async def test_start_generation_requires_owner(podcast_service, owner, other_user):
    podcast = await podcast_service.create_podcast(owner)
    with pytest.raises(NotPodcastOwner):
        await podcast_service.start_generation(podcast.id, other_user)


@pytest.mark.asyncio
async def test_get_job_is_creator_only(podcast_service, owner, other_user):
    podcast = await podcast_service.create_podcast(owner)
    started = await podcast_service.start_generation(podcast.id, owner)

    assert (await podcast_service.get_job(started["job_id"], owner)).status == JobStatus.PENDING
    with pytest.raises(JobNotFound):
        await podcast_service.get_job(started["job_id"], other_user)


# ─── Worker-side generation ───────────────────────────────────────


@pytest.mark.asyncio
async def test_generate_script(podcast_service, document_service, mock_llm, owner):
    podcast = await _podcast_with_doc(podcast_service, document_service, owner)
    mock_llm.complete.return_value = SCRIPT_JSON

    result = await podcast_service.generate_script(podcast.id)

    assert result == {"podcast_id": podcast.id, "segment_count": 3}
    updated = await podcast_service.get_podcast(podcast.id, owner)
    assert updated.status == PodcastStatus.SCRIPT_READY
    assert updated.title == "Solar Rising"
    assert updated.tags == ["energy", "solar"]
    assert [s.index for s in updated.segments] == [0, 1, 2]
    assert updated.generation_context["llm_provider"] == "mock-llm"
    assert "Solar adoption doubled." in mock_llm.complete.await_args.args[1]
    assert mock_llm.complete.await_args.kwargs["json_mode"] is True

    script = await podcast_service.get_script(podcast.id, owner)
    assert script.version == 1
    assert script.summary == "A chat about solar growth."


@pytest.mark.asyncio
async def test_generate_script_without_documents_fails(podcast_service, owner):
    podcast = await podcast_service.create_podcast(owner)

    with pytest.raises(ValidationError):
        await podcast_service.generate_script(podcast.id)

    failed = await podcast_service.get_podcast(podcast.id, owner)
    assert failed.status == PodcastStatus.FAILED
    assert failed.generation_context["failed_step"] == "script"


@pytest.mark.asyncio
async def test_generate_script_with_malformed_json(podcast_service, document_service, mock_llm, owner):
    podcast = await _podcast_with_doc(podcast_service, document_service, owner)
    mock_llm.complete.return_value = "I'm sorry, I can't do that."

    with pytest.raises(LLMError):
        await podcast_service.generate_script(podcast.id)
    assert (await podcast_service.get_podcast(podcast.id, owner)).status == PodcastStatus.FAILED


@pytest.mark.asyncio
async def test_generate_script_with_no_segments(podcast_service, document_service, mock_llm, owner):
    podcast = await _podcast_with_doc(podcast_service, document_service, owner)
    mock_llm.complete.return_value = json.dumps({"title": "Empty", "segments": []})

    with pytest.raises(LLMError):
        await podcast_service.generate_script(podcast.id)


@pytest.mark.asyncio
async def test_generate_audio(podcast_service, document_service, mock_llm, mock_tts, storage, owner):
    podcast = await _podcast_with_doc(podcast_service, document_service, owner)
    mock_llm.complete.return_value = SCRIPT_JSON
    await podcast_service.generate_script(podcast.id)

    result = await podcast_service.generate_audio(podcast.id)

    assert result["duration"] == 3
    assert result["audio_url"] == f"/storage/{audio_key_for(podcast.id)}"
    assert audio_key_for(podcast.id) in storage.blobs
    turns = mock_tts.synthesize.await_args.args[0]
    assert [t.voice for t in turns] == ["onyx", "nova", "onyx"]

    ready = await podcast_service.get_podcast(podcast.id, owner)
    assert ready.status == PodcastStatus.READY
    assert ready.duration == 3
    version = await podcast_service.get_script(podcast.id, owner)
    assert version.status == PodcastStatus.READY
    assert version.audio_url == result["audio_url"]


@pytest.mark.asyncio
async def test_generate_audio_requires_script_ready(podcast_service, owner):
    podcast = await podcast_service.create_podcast(owner)
    with pytest.raises(InvalidAudioGenerationError):
        await podcast_service.generate_audio(podcast.id)


@pytest.mark.asyncio
async def test_generate_audio_tts_failure_marks_failed(
    podcast_service, document_service, mock_llm, mock_tts, owner
):
    podcast = await _podcast_with_doc(podcast_service, document_service, owner)
    mock_llm.complete.return_value = SCRIPT_JSON
    await podcast_service.generate_script(podcast.id)
    mock_tts.synthesize.side_effect = RuntimeError("tts down")

    with pytest.raises(RuntimeError):
        await podcast_service.generate_audio(podcast.id)

    failed = await podcast_service.get_podcast(podcast.id, owner)
    assert failed.status == PodcastStatus.FAILED
    assert failed.error_message == "tts down"
    assert failed.generation_context["failed_step"] == "audio"
    assert (await podcast_service.get_script(podcast.id, owner)).status == PodcastStatus.FAILED


@pytest.mark.asyncio
async def test_full_generation_job(podcast_service, document_service, mock_llm, queue, owner):
    podcast = await _podcast_with_doc(podcast_service, document_service, owner)
    mock_llm.complete.return_value = SCRIPT_JSON
    await podcast_service.start_generation(podcast.id, owner)

    job = await queue.process_next_job(podcast_service.handle_job)

    assert job.status == JobStatus.COMPLETED
    assert job.result["segment_count"] == 3
    assert job.result["duration"] == 3
    assert (await podcast_service.get_podcast(podcast.id, owner)).status == PodcastStatus.READY


# ─── Script edits ─────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_get_script_before_generation(podcast_service, owner):
    podcast = await podcast_service.create_podcast(owner)
    with pytest.raises(ScriptNotFound):
        await podcast_service.get_script(podcast.id, owner)


@pytest.mark.asyncio
async def test_update_script_creates_version(podcast_service, document_service, mock_llm, storage, owner):
    podcast = await _ready_podcast(podcast_service, document_service, mock_llm, owner)

    version = await podcast_service.update_script(
        podcast.id, owner, [{"speaker": "host", "line": "Rewritten intro."}], summary="Shorter"
    )

    assert version.version == 2
    updated = await podcast_service.get_podcast(podcast.id, owner)
    assert updated.status == PodcastStatus.SCRIPT_READY
    assert updated.audio_url is None
    assert updated.summary == "Shorter"
    assert audio_key_for(podcast.id) not in storage.blobs
    versions = await podcast_service.list_versions(podcast.id, owner)
    assert [v.version for v in versions] == [2, 1]
    assert [v.is_active for v in versions] == [True, False]


@pytest.mark.asyncio
async def test_update_script_while_generating(podcast_service, stores, owner):
    podcast = await podcast_service.create_podcast(owner)
    await stores["podcasts"].update_podcast(
        podcast.model_copy(update={"status": PodcastStatus.GENERATING_SCRIPT})
    )
    with pytest.raises(InvalidStatusTransition):
        await podcast_service.update_script(podcast.id, owner, [{"speaker": "host", "line": "x"}])


@pytest.mark.asyncio
async def test_update_script_on_draft_skips_generation(podcast_service, owner):
    podcast = await podcast_service.create_podcast(owner)

    version = await podcast_service.update_script(
        podcast.id, owner, [{"speaker": "host", "line": "Hand written."}]
    )

    assert version.version == 1
    assert (await podcast_service.get_podcast(podcast.id, owner)).status == PodcastStatus.SCRIPT_READY


@pytest.mark.asyncio
async def test_save_changes_requires_ready(podcast_service, owner):
    podcast = await podcast_service.create_podcast(owner)
    with pytest.raises(InvalidSaveError):
        await podcast_service.save_changes(podcast.id, owner, host_voice="ash")


@pytest.mark.asyncio
async def test_save_changes_without_differences(podcast_service, document_service, mock_llm, owner):
    podcast = await _ready_podcast(podcast_service, document_service, mock_llm, owner)

    outcome = await podcast_service.save_changes(
        podcast.id, owner, segments=list(podcast.segments), host_voice=podcast.host_voice
    )

    assert outcome["has_changes"] is False
    assert outcome["podcast"].status == PodcastStatus.READY


@pytest.mark.asyncio
async def test_save_voice_change(podcast_service, document_service, mock_llm, storage, owner):
    podcast = await _ready_podcast(podcast_service, document_service, mock_llm, owner)

    outcome = await podcast_service.save_changes(podcast.id, owner, co_host_voice="coral")

    assert outcome["has_changes"] is True
    saved = outcome["podcast"]
    assert saved.status == PodcastStatus.SCRIPT_READY
    assert saved.co_host_voice == "coral"
    assert saved.co_host_voice_name == "Coral"
    assert saved.audio_url is None
    assert audio_key_for(podcast.id) not in storage.blobs


@pytest.mark.asyncio
async def test_save_segment_change_adds_version(podcast_service, document_service, mock_llm, owner):
    podcast = await _ready_podcast(podcast_service, document_service, mock_llm, owner)

    await podcast_service.save_changes(podcast.id, owner, segments=[{"speaker": "host", "line": "Only line."}])

    script = await podcast_service.get_script(podcast.id, owner)
    assert script.version == 2
    assert [s.line for s in script.segments] == ["Only line."]


@pytest.mark.asyncio
async def test_save_and_queue_audio(podcast_service, document_service, mock_llm, queue, owner):
    podcast = await _ready_podcast(podcast_service, document_service, mock_llm, owner)

    with pytest.raises(NoChangesToSave):
        await podcast_service.save_and_queue_audio(podcast.id, owner)

    started = await podcast_service.save_and_queue_audio(podcast.id, owner, host_voice="echo")
    job = await queue.get_job(started["job_id"])
    assert job.type == JobType.GENERATE_AUDIO

    processed = await queue.process_next_job(podcast_service.handle_job)
    assert processed.status == JobStatus.COMPLETED
    assert (await podcast_service.get_podcast(podcast.id, owner)).status == PodcastStatus.READY


# ─── Stale jobs ───────────────────────────────────────────────────


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("status", "step"),
    [(PodcastStatus.GENERATING_SCRIPT, "script"), (PodcastStatus.GENERATING_AUDIO, "audio")],
)
async def test_fail_stale_job_marks_podcast_failed(podcast_service, stores, queue, owner, status, step):
    podcast = await podcast_service.create_podcast(owner)
    version = await stores["podcasts"].insert_version(podcast.id, segments=[], status=status)
    await stores["podcasts"].update_podcast(podcast.model_copy(update={"status": status}))
    job = await queue.enqueue(JobType.GENERATE_PODCAST, {"podcast_id": podcast.id}, owner.id)

    await podcast_service.fail_stale_job(job.model_copy(update={"error": "Job timed out"}))

    failed = await podcast_service.get_podcast(podcast.id, owner)
    assert failed.status == PodcastStatus.FAILED
    assert failed.error_message == "Job timed out"
    assert failed.generation_context["failed_step"] == step
    active = await stores["podcasts"].get_active_version(podcast.id)
    assert active.status == (PodcastStatus.FAILED if step == "audio" else status)
    assert active.id == version.id


@pytest.mark.asyncio
async def test_fail_stale_job_ignores_settled_podcast(podcast_service, queue, owner):
    podcast = await podcast_service.create_podcast(owner)
    job = await queue.enqueue(JobType.GENERATE_SCRIPT, {"podcast_id": podcast.id}, owner.id)

    await podcast_service.fail_stale_job(job.model_copy(update={"error": "Job timed out"}))

    assert (await podcast_service.get_podcast(podcast.id, owner)).status == PodcastStatus.DRAFTING


# ─── Collaboration and approval ───────────────────────────────────


@pytest.mark.asyncio
async def test_add_collaborators(podcast_service, owner, other_user):
    podcast = await podcast_service.create_podcast(owner)

    registered = await podcast_service.add_collaborator(podcast.id, owner, "Guest@Example.com")
    pending = await podcast_service.add_collaborator(podcast.id, owner, "later@example.com")

    assert registered.user_id == other_user.id
    assert pending.user_id is None
    with pytest.raises(CollaboratorAlreadyExists):
        await podcast_service.add_collaborator(podcast.id, owner, "guest@example.com")
    with pytest.raises(ValidationError):
        await podcast_service.add_collaborator(podcast.id, owner, owner.email)
    with pytest.raises(NotPodcastOwner):
        await podcast_service.add_collaborator(podcast.id, other_user, "x@example.com")


@pytest.mark.asyncio
async def test_collaborator_visibility(podcast_service, owner, other_user, make_user):
    podcast = await podcast_service.create_podcast(owner, title="Shared")
    stranger = await make_user("stranger@example.com", "Stranger")

    with pytest.raises(ForbiddenError):
        await podcast_service.get_podcast(podcast.id, other_user)

    await podcast_service.add_collaborator(podcast.id, owner, other_user.email)

    assert (await podcast_service.get_podcast(podcast.id, other_user)).title == "Shared"
    page = await podcast_service.list_podcasts(other_user)
    assert [p.id for p in page.items] == [podcast.id]
    assert (await podcast_service.list_podcasts(stranger)).total == 0
    with pytest.raises(NotPodcastOwner):
        await podcast_service.update_podcast(podcast.id, other_user, {"title": "Hijacked"})


@pytest.mark.asyncio
async def test_approvals(podcast_service, owner, other_user, make_user):
    podcast = await podcast_service.create_podcast(owner)
    await podcast_service.add_collaborator(podcast.id, owner, other_user.email)
    stranger = await make_user("stranger@example.com", "Stranger")

    approved = await podcast_service.approve(podcast.id, owner)
    assert approved.owner_has_approved is True

    await podcast_service.approve(podcast.id, other_user)
    collaborators = await podcast_service.list_collaborators(podcast.id, owner)
    assert collaborators[0].has_approved is True
    assert collaborators[0].approved_at is not None

    with pytest.raises(NotPodcastCollaborator):
        await podcast_service.approve(podcast.id, stranger)

    await podcast_service.revoke_approval(podcast.id, other_user)
    collaborators = await podcast_service.list_collaborators(podcast.id, owner)
    assert collaborators[0].has_approved is False


@pytest.mark.asyncio
async def test_content_edit_resets_approvals(podcast_service, owner, other_user):
    podcast = await podcast_service.create_podcast(owner)
    await podcast_service.add_collaborator(podcast.id, owner, other_user.email)
    await podcast_service.approve(podcast.id, owner)
    await podcast_service.approve(podcast.id, other_user)

    await podcast_service.update_podcast(podcast.id, owner, {"title": "Renamed"})
    assert (await podcast_service.get_podcast(podcast.id, owner)).owner_has_approved is True

    updated = await podcast_service.update_podcast(podcast.id, owner, {"prompt_instructions": "More jokes"})
    assert updated.owner_has_approved is False
    collaborators = await podcast_service.list_collaborators(podcast.id, owner)
    assert collaborators[0].has_approved is False


@pytest.mark.asyncio
async def test_remove_collaborator(podcast_service, owner, other_user):
    podcast = await podcast_service.create_podcast(owner)
    collaborator = await podcast_service.add_collaborator(podcast.id, owner, other_user.email)

    await podcast_service.remove_collaborator(podcast.id, owner, collaborator.id)

    assert await podcast_service.list_collaborators(podcast.id, owner) == []
    with pytest.raises(ForbiddenError):
        await podcast_service.get_podcast(podcast.id, other_user)


@pytest.mark.asyncio
async def test_changes_notify_collaborators(podcast_service, owner, other_user, capture_events):
    podcast = await podcast_service.create_podcast(owner)
    await podcast_service.add_collaborator(podcast.id, owner, other_user.email)
    guest_events = capture_events(other_user.id)

    await podcast_service.update_podcast(podcast.id, owner, {"title": "Renamed"})

    assert guest_events[-1]["entity_id"] == podcast.id
    assert guest_events[-1]["change_type"] == "update"


@pytest.mark.asyncio
async def test_delete_podcast(podcast_service, document_service, mock_llm, storage, owner, other_user):
    podcast = await _ready_podcast(podcast_service, document_service, mock_llm, owner)
    await podcast_service.add_collaborator(podcast.id, owner, other_user.email)

    with pytest.raises(NotPodcastOwner):
        await podcast_service.delete_podcast(podcast.id, other_user)
    await podcast_service.delete_podcast(podcast.id, owner)

    assert audio_key_for(podcast.id) not in storage.blobs
    assert (await podcast_service.list_podcasts(other_user)).total == 0
