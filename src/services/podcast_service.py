"""Podcast workflow: CRUD, script generation, audio synthesis and approvals.

# ─── ARCHITECTURE ROLE ───────────────────────────────────────────────
#
# Layer: Services.
# Depends on: IPodcastProvider, IDocumentProvider, IStorageProvider,
#             ILLMProvider, ITTSProvider, JobQueue, CollaborationManager.
#
# User-facing calls (create, edit, approve, start_generation) run inside
# the request.  Long work runs in the UnifiedWorker through
# ``handle_job``:
#
#   generate-podcast  → generate_script() then generate_audio()
#   generate-script   → generate_script()
#   generate-audio    → generate_audio()
#
# Generation and save-changes status writes go through the state machine
# (src/services/podcasts/state_machine.py).  A manual script edit is the
# exception: it moves any podcast that is not generating straight to
# script_ready, drafts and failed podcasts included.  Script edits and
# generations insert a new active ScriptVersion; audio results are
# mirrored onto the active version.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from typing import Any

import structlog

from src.interfaces.document_provider import IDocumentProvider
from src.interfaces.llm_provider import ILLMProvider
from src.interfaces.podcast_provider import IPodcastProvider
from src.interfaces.storage_provider import IStorageProvider
from src.interfaces.tts_provider import ITTSProvider, SpeakerTurn
from src.models.collaborator import Collaborator
from src.models.events import ChangeType, EntityType
from src.models.job import Job, JobType
from src.models.podcast import (
    DEFAULT_TARGET_DURATION_MINUTES,
    Podcast,
    PodcastFormat,
    PodcastPage,
    PodcastStatus,
    ScriptSegment,
    ScriptVersion,
)
from src.models.user import User
from src.pipeline.job_queue import JobQueue
from src.providers.tts.openai_tts_provider import (
    BYTES_PER_SECOND,
    DEFAULT_CO_HOST_VOICE,
    DEFAULT_HOST_VOICE,
)
from src.realtime.sse_manager import SSEManager
from src.services.change_events import notify_change
from src.services.collaboration import CollaborationManager
from src.services.podcasts import prompts
from src.services.podcasts.state_machine import (
    assert_transition,
    detect_edit_type,
    determine_new_version_status,
    is_generating,
)
from src.utils.errors import (
    DocumentNotFound,
    ForbiddenError,
    InvalidAudioGenerationError,
    InvalidSaveError,
    InvalidStatusTransition,
    LLMError,
    NoChangesToSave,
    NotPodcastOwner,
    PodcastNotFound,
    ScriptNotFound,
    ValidationError,
)
from src.utils.ids import new_id, utc_now
from src.utils.json_response import parse_json_response

logger = structlog.get_logger(logger_name=__name__)

DOCUMENT_SEPARATOR = "\n\n---\n\n"
SCRIPT_TEMPERATURE = 0.7
SCRIPT_MAX_TOKENS = 8000

_CONTENT_FIELDS = ("prompt_instructions", "source_document_ids", "format", "target_duration_minutes")
_EDITABLE_FIELDS = (
    "title",
    "description",
    "format",
    "host_voice",
    "co_host_voice",
    "prompt_instructions",
    "target_duration_minutes",
    "tags",
    "source_document_ids",
)


def audio_key_for(podcast_id: str) -> str:
    return f"podcasts/{podcast_id}/audio.wav"


def index_segments(segments: list[ScriptSegment | dict[str, Any]]) -> list[ScriptSegment]:
    """Return segments renumbered 0..n-1 in their current order."""
    indexed: list[ScriptSegment] = []
    for position, segment in enumerate(segments):
        if isinstance(segment, dict):
            segment = ScriptSegment(
                speaker=str(segment.get("speaker") or prompts.HOST_SPEAKER),
                line=str(segment.get("line") or ""),
            )
        indexed.append(segment.model_copy(update={"index": position}))
    return indexed


def duration_from_wav(data: bytes) -> int:
    return round(len(data) / BYTES_PER_SECOND)


def voice_for_speaker(speaker: str, host_voice: str, co_host_voice: str) -> str:
    """Map a script speaker label to a voice.

    Labels containing "host" get the host voice, except co-host spellings
    ("cohost", "co-host", "co_host"); everything else gets the co-host voice.
    """
    label = speaker.lower()
    compact = "".join(ch for ch in label if ch.isalnum())
    if "host" in label and "cohost" not in compact:
        return host_voice
    return co_host_voice


class PodcastService:
    def __init__(
        self,
        podcasts: IPodcastProvider,
        documents: IDocumentProvider,
        storage: IStorageProvider,
        queue: JobQueue,
        collaboration: CollaborationManager,
        llm: ILLMProvider | None = None,
        tts: ITTSProvider | None = None,
        sse: SSEManager | None = None,
    ) -> None:
        self._podcasts = podcasts
        self._documents = documents
        self._storage = storage
        self._queue = queue
        self._collaboration = collaboration
        self._llm = llm
        self._tts = tts
        self._sse = sse

    # ── Access ─────────────────────────────────────────────────────────

    async def _load(self, podcast_id: str) -> Podcast:
        podcast = await self._podcasts.get_podcast(podcast_id)
        if podcast is None:
            raise PodcastNotFound(podcast_id)
        return podcast

    async def _load_owned(self, podcast_id: str, user: User) -> Podcast:
        podcast = await self._load(podcast_id)
        if podcast.created_by != user.id:
            raise NotPodcastOwner(message=f"Only the owner can modify podcast {podcast_id}")
        return podcast

    async def _load_visible(self, podcast_id: str, user: User) -> Podcast:
        podcast = await self._load(podcast_id)
        if podcast.created_by == user.id:
            return podcast
        if await self._collaboration.find_for_user(podcast_id, user.id) is None:
            raise ForbiddenError(message=f"You do not have access to podcast {podcast_id}")
        return podcast

    # ── CRUD ───────────────────────────────────────────────────────────

    async def list_podcasts(self, user: User, limit: int = 50, offset: int = 0) -> PodcastPage:
        shared = await self._collaboration.entity_ids_for_user(user.id)
        items, total = await self._podcasts.list_podcasts(
            owner_id=user.id, include_ids=shared, limit=limit, offset=offset
        )
        return PodcastPage(items=items, total=total, has_more=offset + len(items) < total)

    async def get_podcast(self, podcast_id: str, user: User) -> Podcast:
        return await self._load_visible(podcast_id, user)

    async def create_podcast(
        self,
        user: User,
        *,
        title: str | None = None,
        description: str | None = None,
        format: PodcastFormat = PodcastFormat.CONVERSATION,
        source_document_ids: list[str] | None = None,
        host_voice: str | None = None,
        co_host_voice: str | None = None,
        prompt_instructions: str | None = None,
        target_duration_minutes: int = DEFAULT_TARGET_DURATION_MINUTES,
        tags: list[str] | None = None,
    ) -> Podcast:
        doc_ids = list(dict.fromkeys(source_document_ids or []))
        await self._verify_documents(doc_ids, user)

        host_voice = host_voice or DEFAULT_HOST_VOICE
        if format == PodcastFormat.CONVERSATION:
            co_host_voice = co_host_voice or DEFAULT_CO_HOST_VOICE
        else:
            co_host_voice = None

        now = utc_now()
        podcast = Podcast(
            id=new_id("pod"),
            title=(title or "").strip() or "Untitled Podcast",
            description=description,
            format=format,
            host_voice=host_voice,
            host_voice_name=self._voice_name(host_voice),
            co_host_voice=co_host_voice,
            co_host_voice_name=self._voice_name(co_host_voice),
            prompt_instructions=prompt_instructions,
            target_duration_minutes=target_duration_minutes,
            tags=tags or [],
            source_document_ids=doc_ids,
            created_by=user.id,
            created_at=now,
            updated_at=now,
        )
        await self._podcasts.insert_podcast(podcast)
        logger.info("podcast_created", podcast_id=podcast.id, format=format.value, documents=len(doc_ids))
        await self._notify(podcast, ChangeType.INSERT)
        return podcast

    async def update_podcast(self, podcast_id: str, user: User, changes: dict[str, Any]) -> Podcast:
        podcast = await self._load_owned(podcast_id, user)
        updates = {k: v for k, v in changes.items() if k in _EDITABLE_FIELDS and v is not None}
        if "source_document_ids" in updates:
            updates["source_document_ids"] = list(dict.fromkeys(updates["source_document_ids"]))
            await self._verify_documents(updates["source_document_ids"], user)
        if "host_voice" in updates:
            updates["host_voice_name"] = self._voice_name(updates["host_voice"])
        if "co_host_voice" in updates:
            updates["co_host_voice_name"] = self._voice_name(updates["co_host_voice"])
        if not updates:
            return podcast

        content_changed = any(
            k in updates and updates[k] != getattr(podcast, k)
            for k in (*_CONTENT_FIELDS, "host_voice", "co_host_voice")
        )
        if content_changed:
            updates["owner_has_approved"] = False
            await self._collaboration.reset_approvals(podcast_id)

        podcast = await self._podcasts.update_podcast(podcast.model_copy(update=updates))
        logger.info("podcast_updated", podcast_id=podcast_id, fields=sorted(updates))
        await self._notify(podcast, ChangeType.UPDATE)
        return podcast

    async def delete_podcast(self, podcast_id: str, user: User) -> None:
        podcast = await self._load_owned(podcast_id, user)
        audience = await self._collaboration.audience(podcast_id, podcast.created_by)
        if podcast.audio_url:
            await self._storage.delete(audio_key_for(podcast_id))
        await self._collaboration.delete_all(podcast_id)
        await self._podcasts.delete_podcast(podcast_id)
        logger.info("podcast_deleted", podcast_id=podcast_id)
        await notify_change(self._sse, audience, EntityType.PODCAST, ChangeType.DELETE, podcast_id)

    # ── Scripts ────────────────────────────────────────────────────────

    async def get_script(self, podcast_id: str, user: User) -> ScriptVersion:
        await self._load_visible(podcast_id, user)
        version = await self._podcasts.get_active_version(podcast_id)
        if version is None:
            raise ScriptNotFound(message=f"Podcast {podcast_id} has no script yet")
        return version

    async def list_versions(self, podcast_id: str, user: User) -> list[ScriptVersion]:
        await self._load_visible(podcast_id, user)
        return await self._podcasts.list_versions(podcast_id)

    async def update_script(
        self,
        podcast_id: str,
        user: User,
        segments: list[ScriptSegment | dict[str, Any]],
        summary: str | None = None,
    ) -> ScriptVersion:
        podcast = await self._load_owned(podcast_id, user)
        if is_generating(podcast.status):
            raise InvalidStatusTransition(
                message=f"Cannot edit the script while the podcast is {podcast.status.value}"
            )
        indexed = index_segments(segments)
        version = await self._podcasts.insert_version(
            podcast_id,
            segments=indexed,
            status=PodcastStatus.SCRIPT_READY,
            summary=summary if summary is not None else podcast.summary,
            generation_prompt=podcast.generation_prompt,
            created_by=user.id,
        )
        podcast = await self._podcasts.update_podcast(
            podcast.model_copy(update={
                "segments": indexed,
                "summary": version.summary,
                "status": PodcastStatus.SCRIPT_READY,
                "audio_url": None,
                "duration": None,
                "error_message": None,
                "owner_has_approved": False,
            })
        )
        await self._collaboration.reset_approvals(podcast_id)
        await self._storage.delete(audio_key_for(podcast_id))
        await self._notify(podcast, ChangeType.UPDATE)
        return version

    # ── Generation (request side) ──────────────────────────────────────

    async def start_generation(
        self,
        podcast_id: str,
        user: User,
        prompt_instructions: str | None = None,
    ) -> dict[str, Any]:
        podcast = await self._load_owned(podcast_id, user)
        existing = await self._queue.find_pending_job_of_type(
            JobType.GENERATE_PODCAST, "podcast_id", podcast_id
        )
        if existing is not None:
            return {"job_id": existing.id, "status": existing.status.value}

        assert_transition(podcast.status, PodcastStatus.DRAFTING)
        updates: dict[str, Any] = {"status": PodcastStatus.DRAFTING, "error_message": None}
        if prompt_instructions is not None:
            updates["prompt_instructions"] = prompt_instructions
        podcast = await self._podcasts.update_podcast(podcast.model_copy(update=updates))

        job = await self._queue.enqueue(
            JobType.GENERATE_PODCAST,
            {
                "podcast_id": podcast_id,
                "user_id": user.id,
                "prompt_instructions": podcast.prompt_instructions,
            },
            user.id,
        )
        await self._notify(podcast, ChangeType.UPDATE)
        return {"job_id": job.id, "status": job.status.value}

    async def save_changes(
        self,
        podcast_id: str,
        user: User,
        segments: list[ScriptSegment | dict[str, Any]] | None = None,
        host_voice: str | None = None,
        co_host_voice: str | None = None,
    ) -> dict[str, Any]:
        podcast = await self._load_owned(podcast_id, user)
        return await self._apply_saved_changes(podcast, user, segments, host_voice, co_host_voice)

    async def _apply_saved_changes(
        self,
        podcast: Podcast,
        user: User,
        segments: list[ScriptSegment | dict[str, Any]] | None,
        host_voice: str | None,
        co_host_voice: str | None,
    ) -> dict[str, Any]:
        if podcast.status != PodcastStatus.READY:
            raise InvalidSaveError(
                message=f"Changes can only be saved on a ready podcast (status is {podcast.status.value})"
            )

        new_segments = index_segments(segments) if segments is not None else None
        changes = {
            "segments": new_segments if new_segments is not None and new_segments != podcast.segments else None,
            "host_voice": host_voice if host_voice and host_voice != podcast.host_voice else None,
            "co_host_voice": co_host_voice if co_host_voice and co_host_voice != podcast.co_host_voice else None,
        }
        edit_type = detect_edit_type(changes)
        new_status = determine_new_version_status(edit_type)
        if new_status is None:
            return {"has_changes": False, "podcast": podcast}

        assert_transition(podcast.status, new_status)
        updates: dict[str, Any] = {
            "status": new_status,
            "audio_url": None,
            "duration": None,
            "owner_has_approved": False,
        }
        if changes["host_voice"]:
            updates["host_voice"] = changes["host_voice"]
            updates["host_voice_name"] = self._voice_name(changes["host_voice"])
        if changes["co_host_voice"]:
            updates["co_host_voice"] = changes["co_host_voice"]
            updates["co_host_voice_name"] = self._voice_name(changes["co_host_voice"])
        if changes["segments"] is not None:
            updates["segments"] = changes["segments"]
            await self._podcasts.insert_version(
                podcast.id,
                segments=changes["segments"],
                status=new_status,
                summary=podcast.summary,
                generation_prompt=podcast.generation_prompt,
                created_by=user.id,
            )

        podcast = await self._podcasts.update_podcast(podcast.model_copy(update=updates))
        await self._collaboration.reset_approvals(podcast.id)
        await self._storage.delete(audio_key_for(podcast.id))
        logger.info("podcast_changes_saved", podcast_id=podcast.id, edit_type=edit_type.value)
        await self._notify(podcast, ChangeType.UPDATE)
        return {"has_changes": True, "podcast": podcast}

    async def save_and_queue_audio(
        self,
        podcast_id: str,
        user: User,
        segments: list[ScriptSegment | dict[str, Any]] | None = None,
        host_voice: str | None = None,
        co_host_voice: str | None = None,
    ) -> dict[str, Any]:
        podcast = await self._load_owned(podcast_id, user)
        existing = await self._queue.find_pending_job_of_type(
            JobType.GENERATE_AUDIO, "podcast_id", podcast_id
        )
        if existing is not None:
            return {"job_id": existing.id, "status": existing.status.value}

        outcome = await self._apply_saved_changes(podcast, user, segments, host_voice, co_host_voice)
        if not outcome["has_changes"]:
            raise NoChangesToSave(message="There are no changes to save")

        job = await self._queue.enqueue(
            JobType.GENERATE_AUDIO, {"podcast_id": podcast_id, "user_id": user.id}, user.id
        )
        return {"job_id": job.id, "status": job.status.value}

    # ── Generation (worker side) ───────────────────────────────────────

    async def handle_job(self, job: Job) -> dict[str, Any]:
        podcast_id = job.payload["podcast_id"]
        if job.type == JobType.GENERATE_SCRIPT:
            return await self.generate_script(podcast_id, job.payload.get("prompt_instructions"))
        if job.type == JobType.GENERATE_AUDIO:
            return await self.generate_audio(podcast_id)
        return await self.generate_podcast(podcast_id, job.payload.get("prompt_instructions"))

    async def fail_stale_job(self, job: Job) -> None:
        """Move a podcast out of its generating status after the worker gave up on its job."""
        podcast = await self._podcasts.get_podcast(job.payload.get("podcast_id", ""))
        if podcast is None or not is_generating(podcast.status):
            return
        assert_transition(podcast.status, PodcastStatus.FAILED)
        version_id = None
        step = "script"
        if podcast.status == PodcastStatus.GENERATING_AUDIO:
            step = "audio"
            active = await self._podcasts.get_active_version(podcast.id)
            version_id = active.id if active else None
        await self._mark_failed(podcast.id, job.error or "Generation timed out", step, version_id=version_id)
        await self._notify(await self._load(podcast.id), ChangeType.UPDATE)

    async def generate_podcast(self, podcast_id: str, prompt_instructions: str | None = None) -> dict[str, Any]:
        script = await self.generate_script(podcast_id, prompt_instructions)
        audio = await self.generate_audio(podcast_id)
        return {**script, **audio}

    async def generate_script(self, podcast_id: str, prompt_instructions: str | None = None) -> dict[str, Any]:
        podcast = await self._load(podcast_id)
        assert_transition(podcast.status, PodcastStatus.GENERATING_SCRIPT)
        podcast = await self._podcasts.update_podcast(
            podcast.model_copy(update={"status": PodcastStatus.GENERATING_SCRIPT, "error_message": None})
        )
        log = logger.bind(podcast_id=podcast_id)

        try:
            if self._llm is None:
                raise LLMError(message="No LLM provider configured")
            content = await self._load_source_text(podcast)
            instructions = prompt_instructions if prompt_instructions is not None else podcast.prompt_instructions
            system_prompt = prompts.build_system_prompt(
                podcast.format, instructions, podcast.target_duration_minutes
            )
            user_prompt = prompts.build_user_prompt(podcast, content)
            raw = await self._llm.complete(
                system_prompt,
                user_prompt,
                temperature=SCRIPT_TEMPERATURE,
                max_tokens=SCRIPT_MAX_TOKENS,
                json_mode=True,
            )
            data = parse_json_response(raw)
            segments = index_segments([s for s in data.get("segments") or [] if isinstance(s, dict)])
            segments = [s for s in segments if s.line.strip()]
            if not segments:
                raise LLMError(message="Generated script contained no segments")
            segments = index_segments(segments)
            generation_prompt = prompts.format_generation_prompt(system_prompt, user_prompt)

            await self._podcasts.insert_version(
                podcast_id,
                segments=segments,
                status=PodcastStatus.SCRIPT_READY,
                summary=data.get("summary"),
                generation_prompt=generation_prompt,
                created_by=podcast.created_by,
            )
            tags = data.get("tags")
            podcast = await self._podcasts.update_podcast(
                podcast.model_copy(update={
                    "title": str(data.get("title") or podcast.title),
                    "description": data.get("description") or podcast.description,
                    "summary": data.get("summary"),
                    "tags": [str(t) for t in tags] if isinstance(tags, list) else podcast.tags,
                    "segments": segments,
                    "generation_prompt": generation_prompt,
                    "generation_context": {
                        "prompt_instructions": instructions,
                        "source_document_ids": podcast.source_document_ids,
                        "llm_provider": self._llm.get_provider_name(),
                    },
                    "status": PodcastStatus.SCRIPT_READY,
                    "audio_url": None,
                    "duration": None,
                })
            )
        except Exception as exc:
            await self._mark_failed(podcast_id, exc, "script")
            raise

        log.info("podcast_script_generated", segments=len(segments))
        return {"podcast_id": podcast_id, "segment_count": len(segments)}

    async def generate_audio(self, podcast_id: str) -> dict[str, Any]:
        podcast = await self._load(podcast_id)
        if podcast.status != PodcastStatus.SCRIPT_READY:
            raise InvalidAudioGenerationError(
                message=(
                    f"Cannot generate audio from status '{podcast.status.value}'. "
                    "Podcast must be in 'script_ready' status."
                )
            )
        if not podcast.segments:
            raise InvalidAudioGenerationError(
                message="Podcast has no script segments to generate audio from."
            )

        podcast = await self._podcasts.update_podcast(
            podcast.model_copy(update={"status": PodcastStatus.GENERATING_AUDIO, "error_message": None})
        )
        active = await self._podcasts.get_active_version(podcast_id)
        if active is not None:
            await self._podcasts.update_version_status(active.id, PodcastStatus.GENERATING_AUDIO)

        try:
            if self._tts is None:
                raise InvalidAudioGenerationError(message="No TTS provider configured")
            host = podcast.host_voice or DEFAULT_HOST_VOICE
            co_host = podcast.co_host_voice or DEFAULT_CO_HOST_VOICE
            turns = [
                SpeakerTurn(voice=voice_for_speaker(s.speaker, host, co_host), text=s.line)
                for s in podcast.segments
            ]
            audio = await self._tts.synthesize(turns)
            audio_url = await self._storage.upload(audio_key_for(podcast_id), audio.data, audio.mime_type)
            duration = duration_from_wav(audio.data)

            podcast = await self._podcasts.update_podcast(
                podcast.model_copy(update={
                    "audio_url": audio_url,
                    "duration": duration,
                    "status": PodcastStatus.READY,
                })
            )
            if active is not None:
                await self._podcasts.update_version(
                    active.model_copy(update={
                        "status": PodcastStatus.READY,
                        "audio_url": audio_url,
                        "duration": duration,
                        "error_message": None,
                    })
                )
        except Exception as exc:
            await self._mark_failed(podcast_id, exc, "audio", version_id=active.id if active else None)
            raise

        logger.info("podcast_audio_generated", podcast_id=podcast_id, duration=duration, bytes=len(audio.data))
        return {"podcast_id": podcast_id, "audio_url": audio_url, "duration": duration}

    # ── Approval and collaborators ─────────────────────────────────────

    async def approve(self, podcast_id: str, user: User) -> Podcast:
        return await self._set_approval(podcast_id, user, True)

    async def revoke_approval(self, podcast_id: str, user: User) -> Podcast:
        return await self._set_approval(podcast_id, user, False)

    async def _set_approval(self, podcast_id: str, user: User, approved: bool) -> Podcast:
        podcast = await self._load(podcast_id)
        if podcast.created_by == user.id:
            podcast = await self._podcasts.update_podcast(
                podcast.model_copy(update={"owner_has_approved": approved})
            )
        else:
            await self._collaboration.set_approval(podcast_id, user, approved)
        logger.info("podcast_approval_changed", podcast_id=podcast_id, user_id=user.id, approved=approved)
        await self._notify(podcast, ChangeType.UPDATE)
        return podcast

    async def list_collaborators(self, podcast_id: str, user: User) -> list[Collaborator]:
        await self._load_visible(podcast_id, user)
        return await self._collaboration.list_collaborators(podcast_id)

    async def add_collaborator(self, podcast_id: str, user: User, email: str) -> Collaborator:
        podcast = await self._load_owned(podcast_id, user)
        collaborator = await self._collaboration.add(podcast_id, user, email)
        await self._notify(podcast, ChangeType.UPDATE)
        return collaborator

    async def remove_collaborator(self, podcast_id: str, user: User, collaborator_id: str) -> None:
        podcast = await self._load_owned(podcast_id, user)
        await self._collaboration.remove(podcast_id, collaborator_id)
        await self._notify(podcast, ChangeType.UPDATE)

    async def get_job(self, job_id: str, user: User) -> Job:
        return await self._queue.get_job_for_user(job_id, user.id)

    # ── Helpers ────────────────────────────────────────────────────────

    async def _verify_documents(self, document_ids: list[str], user: User) -> None:
        if not document_ids:
            return
        found = {d.id: d for d in await self._documents.get_documents(document_ids)}
        for doc_id in document_ids:
            doc = found.get(doc_id)
            if doc is None:
                raise DocumentNotFound(doc_id)
            if doc.created_by != user.id:
                raise ForbiddenError(message=f"You do not have access to document {doc_id}")

    async def _load_source_text(self, podcast: Podcast) -> str:
        if not podcast.source_document_ids:
            raise ValidationError(message="Podcast has no source documents")
        documents = await self._documents.get_documents(podcast.source_document_ids)
        texts = []
        for document in documents:
            data = await self._storage.download(document.content_key)
            texts.append(data.decode("utf-8"))
        if not texts:
            raise DocumentNotFound(message="None of the podcast's source documents exist")
        return DOCUMENT_SEPARATOR.join(texts)

    async def _mark_failed(
        self,
        podcast_id: str,
        exc: Exception | str,
        step: str,
        version_id: str | None = None,
    ) -> None:
        if isinstance(exc, str):
            message = exc
        else:
            message = getattr(exc, "message", None) or str(exc) or type(exc).__name__
        podcast = await self._podcasts.get_podcast(podcast_id)
        if podcast is None:
            return
        await self._podcasts.update_podcast(
            podcast.model_copy(update={
                "status": PodcastStatus.FAILED,
                "error_message": message,
                "generation_context": {**(podcast.generation_context or {}), "failed_step": step},
            })
        )
        if version_id is not None:
            await self._podcasts.update_version_status(version_id, PodcastStatus.FAILED, message)
        logger.warning("podcast_generation_failed", podcast_id=podcast_id, step=step, error=message)

    def _voice_name(self, voice_id: str | None) -> str | None:
        if not voice_id:
            return None
        if self._tts is None:
            return voice_id.capitalize()
        for voice in self._tts.list_voices():
            if voice.id == voice_id:
                return voice.name
        raise ValidationError(message=f"Unknown voice: {voice_id}")

    async def _notify(self, podcast: Podcast, change: ChangeType) -> None:
        audience = await self._collaboration.audience(podcast.id, podcast.created_by)
        await notify_change(self._sse, audience, EntityType.PODCAST, change, podcast.id)

