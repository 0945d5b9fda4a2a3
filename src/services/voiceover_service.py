"""Single-voice narrations: CRUD, audio generation and approvals.

Same owner/collaborator model as podcasts, with a simpler lifecycle:
``drafting -> generating_audio -> ready | failed``.  Editing the text or
voice of a finished voiceover sends it back to ``drafting``.
"""

from __future__ import annotations

from typing import Any

import structlog

from src.interfaces.storage_provider import IStorageProvider
from src.interfaces.tts_provider import ITTSProvider, SpeakerTurn
from src.interfaces.voiceover_provider import IVoiceoverProvider
from src.models.collaborator import Collaborator
from src.models.events import ChangeType, EntityType
from src.models.job import Job, JobType
from src.models.user import User
from src.models.voiceover import Voiceover, VoiceoverStatus
from src.pipeline.job_queue import JobQueue
from src.providers.tts.openai_tts_provider import BYTES_PER_SECOND, DEFAULT_VOICEOVER_VOICE
from src.realtime.sse_manager import SSEManager
from src.services.change_events import notify_change
from src.services.collaboration import CollaborationManager
from src.utils.errors import (
    ForbiddenError,
    InvalidAudioGenerationError,
    NotVoiceoverOwner,
    TTSError,
    ValidationError,
    VoiceoverNotFound,
)
from src.utils.ids import new_id, utc_now

logger = structlog.get_logger(logger_name=__name__)


def voiceover_audio_key(voiceover_id: str) -> str:
    return f"voiceovers/{voiceover_id}/audio.wav"


class VoiceoverService:
    def __init__(
        self,
        voiceovers: IVoiceoverProvider,
        storage: IStorageProvider,
        queue: JobQueue,
        collaboration: CollaborationManager,
        tts: ITTSProvider | None = None,
        sse: SSEManager | None = None,
    ) -> None:
        self._voiceovers = voiceovers
        self._storage = storage
        self._queue = queue
        self._collaboration = collaboration
        self._tts = tts
        self._sse = sse

    async def _load(self, voiceover_id: str) -> Voiceover:
        voiceover = await self._voiceovers.get_voiceover(voiceover_id)
        if voiceover is None:
            raise VoiceoverNotFound(voiceover_id)
        return voiceover

    async def _load_owned(self, voiceover_id: str, user: User) -> Voiceover:
        voiceover = await self._load(voiceover_id)
        if voiceover.created_by != user.id:
            raise NotVoiceoverOwner(message=f"Only the owner can modify voiceover {voiceover_id}")
        return voiceover

    async def _load_visible(self, voiceover_id: str, user: User) -> Voiceover:
        voiceover = await self._load(voiceover_id)
        if voiceover.created_by != user.id and (
            await self._collaboration.find_for_user(voiceover_id, user.id) is None
        ):
            raise ForbiddenError(message=f"You do not have access to voiceover {voiceover_id}")
        return voiceover

    # ── CRUD ───────────────────────────────────────────────────────────

    async def list_voiceovers(
        self, user: User, limit: int = 50, offset: int = 0
    ) -> tuple[list[Voiceover], int]:
        shared = await self._collaboration.entity_ids_for_user(user.id)
        return await self._voiceovers.list_voiceovers(
            owner_id=user.id, include_ids=shared, limit=limit, offset=offset
        )

    async def get_voiceover(self, voiceover_id: str, user: User) -> Voiceover:
        return await self._load_visible(voiceover_id, user)

    async def create_voiceover(
        self,
        user: User,
        title: str | None = None,
        text: str = "",
        voice: str | None = None,
    ) -> Voiceover:
        voice = voice or DEFAULT_VOICEOVER_VOICE
        voice_name = self._voice_name(voice)
        now = utc_now()
        voiceover = Voiceover(
            id=new_id("vo"),
            title=(title or "").strip() or "Untitled Voiceover",
            text=text,
            voice=voice,
            voice_name=voice_name,
            created_by=user.id,
            created_at=now,
            updated_at=now,
        )
        await self._voiceovers.insert_voiceover(voiceover)
        logger.info("voiceover_created", voiceover_id=voiceover.id, voice=voice)
        await self._notify(voiceover, ChangeType.INSERT)
        return voiceover

    async def update_voiceover(
        self,
        voiceover_id: str,
        user: User,
        title: str | None = None,
        text: str | None = None,
        voice: str | None = None,
    ) -> Voiceover:
        voiceover = await self._load_owned(voiceover_id, user)
        updates: dict[str, Any] = {}
        if title is not None:
            updates["title"] = title.strip() or voiceover.title
        if text is not None and text != voiceover.text:
            updates["text"] = text
        if voice is not None and voice != voiceover.voice:
            updates["voice"] = voice
            updates["voice_name"] = self._voice_name(voice)
        if not updates:
            return voiceover

        if ("text" in updates or "voice" in updates) and voiceover.status in (
            VoiceoverStatus.READY,
            VoiceoverStatus.FAILED,
        ):
            updates.update(
                status=VoiceoverStatus.DRAFTING,
                audio_url=None,
                duration=None,
                error_message=None,
                owner_has_approved=False,
            )
            await self._collaboration.reset_approvals(voiceover_id)
            await self._storage.delete(voiceover_audio_key(voiceover_id))

        voiceover = await self._voiceovers.update_voiceover(voiceover.model_copy(update=updates))
        await self._notify(voiceover, ChangeType.UPDATE)
        return voiceover

    async def delete_voiceover(self, voiceover_id: str, user: User) -> None:
        voiceover = await self._load_owned(voiceover_id, user)
        audience = await self._collaboration.audience(voiceover_id, voiceover.created_by)
        await self._storage.delete(voiceover_audio_key(voiceover_id))
        await self._collaboration.delete_all(voiceover_id)
        await self._voiceovers.delete_voiceover(voiceover_id)
        logger.info("voiceover_deleted", voiceover_id=voiceover_id)
        await notify_change(self._sse, audience, EntityType.VOICEOVER, ChangeType.DELETE, voiceover_id)

    # ── Generation ─────────────────────────────────────────────────────

    async def start_generation(self, voiceover_id: str, user: User) -> dict[str, Any]:
        voiceover = await self._load_owned(voiceover_id, user)
        existing = await self._queue.find_pending_job_for_voiceover(voiceover_id)
        if existing is not None:
            return {"job_id": existing.id, "status": existing.status.value}
        if not voiceover.text.strip():
            raise InvalidAudioGenerationError(message="Voiceover has no text to generate audio from.")

        voiceover = await self._voiceovers.update_voiceover(
            voiceover.model_copy(update={
                "status": VoiceoverStatus.GENERATING_AUDIO,
                "error_message": None,
            })
        )
        job = await self._queue.enqueue(
            JobType.GENERATE_VOICEOVER,
            {"voiceover_id": voiceover_id, "user_id": user.id},
            user.id,
        )
        await self._notify(voiceover, ChangeType.UPDATE)
        return {"job_id": job.id, "status": job.status.value}

    async def handle_job(self, job: Job) -> dict[str, Any]:
        return await self.generate_audio(job.payload["voiceover_id"])

    async def fail_stale_job(self, job: Job) -> None:
        voiceover = await self._voiceovers.get_voiceover(job.payload.get("voiceover_id", ""))
        if voiceover is None or voiceover.status != VoiceoverStatus.GENERATING_AUDIO:
            return
        voiceover = await self._voiceovers.update_voiceover(
            voiceover.model_copy(update={
                "status": VoiceoverStatus.FAILED,
                "error_message": job.error or "Generation timed out",
            })
        )
        await self._notify(voiceover, ChangeType.UPDATE)

    async def generate_audio(self, voiceover_id: str) -> dict[str, Any]:
        voiceover = await self._load(voiceover_id)
        if voiceover.status != VoiceoverStatus.GENERATING_AUDIO:
            voiceover = await self._voiceovers.update_voiceover(
                voiceover.model_copy(update={"status": VoiceoverStatus.GENERATING_AUDIO})
            )
        try:
            if not voiceover.text.strip():
                raise InvalidAudioGenerationError(message="Voiceover has no text to generate audio from.")
            if self._tts is None:
                raise TTSError(message="No TTS provider configured")
            audio = await self._tts.synthesize([SpeakerTurn(voice=voiceover.voice, text=voiceover.text)])
            audio_url = await self._storage.upload(
                voiceover_audio_key(voiceover_id), audio.data, audio.mime_type
            )
            duration = round(len(audio.data) / BYTES_PER_SECOND)
            voiceover = await self._voiceovers.update_voiceover(
                voiceover.model_copy(update={
                    "audio_url": audio_url,
                    "duration": duration,
                    "status": VoiceoverStatus.READY,
                    "error_message": None,
                })
            )
        except Exception as exc:
            message = getattr(exc, "message", None) or str(exc) or type(exc).__name__
            await self._voiceovers.update_voiceover(
                voiceover.model_copy(update={"status": VoiceoverStatus.FAILED, "error_message": message})
            )
            logger.warning("voiceover_generation_failed", voiceover_id=voiceover_id, error=message)
            raise

        logger.info("voiceover_audio_generated", voiceover_id=voiceover_id, duration=duration)
        return {"voiceover_id": voiceover_id, "audio_url": audio_url, "duration": duration}

    # ── Approval and collaborators ─────────────────────────────────────

    async def approve(self, voiceover_id: str, user: User) -> Voiceover:
        return await self._set_approval(voiceover_id, user, True)

    async def revoke_approval(self, voiceover_id: str, user: User) -> Voiceover:
        return await self._set_approval(voiceover_id, user, False)

    async def _set_approval(self, voiceover_id: str, user: User, approved: bool) -> Voiceover:
        voiceover = await self._load(voiceover_id)
        if voiceover.created_by == user.id:
            voiceover = await self._voiceovers.update_voiceover(
                voiceover.model_copy(update={"owner_has_approved": approved})
            )
        else:
            await self._collaboration.set_approval(voiceover_id, user, approved)
        await self._notify(voiceover, ChangeType.UPDATE)
        return voiceover

    async def list_collaborators(self, voiceover_id: str, user: User) -> list[Collaborator]:
        await self._load_visible(voiceover_id, user)
        return await self._collaboration.list_collaborators(voiceover_id)

    async def add_collaborator(self, voiceover_id: str, user: User, email: str) -> Collaborator:
        voiceover = await self._load_owned(voiceover_id, user)
        collaborator = await self._collaboration.add(voiceover_id, user, email)
        await self._notify(voiceover, ChangeType.UPDATE)
        return collaborator

    async def remove_collaborator(self, voiceover_id: str, user: User, collaborator_id: str) -> None:
        voiceover = await self._load_owned(voiceover_id, user)
        await self._collaboration.remove(voiceover_id, collaborator_id)
        await self._notify(voiceover, ChangeType.UPDATE)

    async def get_job(self, job_id: str, user: User) -> Job:
        return await self._queue.get_job_for_user(job_id, user.id)

    # ── Helpers ────────────────────────────────────────────────────────

    def _voice_name(self, voice_id: str) -> str:
        if self._tts is None:
            return voice_id.capitalize()
        for voice in self._tts.list_voices():
            if voice.id == voice_id:
                return voice.name
        raise ValidationError(message=f"Unknown voice: {voice_id}")

    async def _notify(self, voiceover: Voiceover, change: ChangeType) -> None:
        audience = await self._collaboration.audience(voiceover.id, voiceover.created_by)
        await notify_change(self._sse, audience, EntityType.VOICEOVER, change, voiceover.id)
