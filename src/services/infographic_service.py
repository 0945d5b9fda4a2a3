"""Infographic workbench: selections, key-point extraction and image generation.

# ─── ARCHITECTURE ROLE ───────────────────────────────────────────────
#
# Layer: Services.
# Depends on: IInfographicProvider, IDocumentProvider, IStorageProvider,
#             ILLMProvider, IImageGenProvider, JobQueue.
#
# The user highlights passages in their documents (selections), picks a
# type, style and format, and queues a ``generate-infographic`` job.  The
# worker calls ``execute_generation``:
#
#   1. extract key points from source documents + selections (LLM)
#   2. build the image prompt (directive + content + style + format)
#   3. generate, or edit the latest version when one exists
#   4. upload, insert the next version, prune history beyond 10
#
# Every operation is owner only; infographics have no collaborators.
# The one exception is approval, which only admins may grant or revoke
# on any infographic.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from typing import Any

import structlog

from src.interfaces.document_provider import IDocumentProvider
from src.interfaces.image_provider import IImageGenProvider, ReferenceImage
from src.interfaces.infographic_provider import IInfographicProvider
from src.interfaces.llm_provider import ILLMProvider
from src.interfaces.storage_provider import IStorageProvider
from src.models.events import ChangeType, EntityType
from src.models.infographic import (
    UNTITLED_INFOGRAPHIC,
    ExtractedContent,
    ExtractedStatistic,
    Infographic,
    InfographicFormat,
    InfographicSelection,
    InfographicStatus,
    InfographicStyle,
    InfographicType,
    InfographicVersion,
)
from src.models.job import Job, JobType
from src.models.user import User, UserRole
from src.pipeline.job_queue import JobQueue
from src.realtime.sse_manager import SSEManager
from src.services.change_events import notify_change
from src.services.infographics import prompts
from src.utils.errors import (
    DocumentNotFound,
    ForbiddenError,
    ImageGenContentFilteredError,
    ImageGenError,
    InfographicNotFound,
    InvalidStatusTransition,
    LLMError,
    NotInfographicOwner,
    SelectionNotFound,
    SelectionTextTooLong,
    StorageError,
    ValidationError,
)
from src.utils.ids import new_id, utc_now
from src.utils.json_response import parse_json_response

logger = structlog.get_logger(logger_name=__name__)

MAX_SELECTION_LENGTH = 500
SELECTION_SOFT_LIMIT = 10
MAX_VERSIONS = 10

_EDITABLE_FIELDS = (
    "title",
    "infographic_type",
    "style_preset",
    "format",
    "prompt",
    "source_document_ids",
    "feedback_instructions",
)


def image_key_for(infographic_id: str, mime_type: str = "image/png") -> str:
    ext = "png" if "png" in mime_type else "jpg"
    stamp = int(utc_now().timestamp() * 1000)
    return f"infographics/{infographic_id}/{stamp}.{ext}"


class InfographicService:
    def __init__(
        self,
        infographics: IInfographicProvider,
        documents: IDocumentProvider,
        storage: IStorageProvider,
        queue: JobQueue,
        llm: ILLMProvider | None = None,
        image_gen: IImageGenProvider | None = None,
        sse: SSEManager | None = None,
    ) -> None:
        self._infographics = infographics
        self._documents = documents
        self._storage = storage
        self._queue = queue
        self._llm = llm
        self._image_gen = image_gen
        self._sse = sse

    async def _load(self, infographic_id: str) -> Infographic:
        infographic = await self._infographics.get_infographic(infographic_id)
        if infographic is None:
            raise InfographicNotFound(infographic_id)
        return infographic

    async def _load_owned(self, infographic_id: str, user: User) -> Infographic:
        infographic = await self._load(infographic_id)
        if infographic.created_by != user.id:
            raise NotInfographicOwner(message=f"You do not own infographic {infographic_id}")
        return infographic

    # ── CRUD ───────────────────────────────────────────────────────────

    async def list_infographics(
        self, user: User, limit: int = 50, offset: int = 0
    ) -> tuple[list[Infographic], int]:
        return await self._infographics.list_infographics(owner_id=user.id, limit=limit, offset=offset)

    async def get_infographic(
        self, infographic_id: str, user: User
    ) -> tuple[Infographic, list[InfographicSelection]]:
        """Return the infographic and its selections in display order."""
        infographic = await self._load_owned(infographic_id, user)
        selections = await self._infographics.list_selections(infographic_id)
        return infographic, selections

    async def create_infographic(
        self,
        user: User,
        *,
        title: str | None = None,
        infographic_type: InfographicType = InfographicType.KEY_TAKEAWAYS,
        style_preset: InfographicStyle = InfographicStyle.MODERN_MINIMAL,
        format: InfographicFormat = InfographicFormat.PORTRAIT,
        prompt: str | None = None,
        source_document_ids: list[str] | None = None,
    ) -> Infographic:
        doc_ids = list(dict.fromkeys(source_document_ids or []))
        await self._verify_documents(doc_ids, user)
        now = utc_now()
        infographic = Infographic(
            id=new_id("inf"),
            title=(title or "").strip() or UNTITLED_INFOGRAPHIC,
            infographic_type=infographic_type,
            style_preset=style_preset,
            format=format,
            prompt=prompt,
            source_document_ids=doc_ids,
            created_by=user.id,
            created_at=now,
            updated_at=now,
        )
        await self._infographics.insert_infographic(infographic)
        logger.info("infographic_created", infographic_id=infographic.id, type=infographic_type.value)
        await self._notify(infographic, ChangeType.INSERT)
        return infographic

    async def update_infographic(
        self, infographic_id: str, user: User, changes: dict[str, Any]
    ) -> Infographic:
        infographic = await self._load_owned(infographic_id, user)
        updates = {k: v for k, v in changes.items() if k in _EDITABLE_FIELDS and v is not None}
        if "source_document_ids" in updates:
            updates["source_document_ids"] = list(dict.fromkeys(updates["source_document_ids"]))
            await self._verify_documents(updates["source_document_ids"], user)
        if not updates:
            return infographic
        infographic = await self._infographics.update_infographic(infographic.model_copy(update=updates))
        await self._notify(infographic, ChangeType.UPDATE)
        return infographic

    async def delete_infographic(self, infographic_id: str, user: User) -> None:
        infographic = await self._load_owned(infographic_id, user)
        keys = {v.image_key for v in await self._infographics.list_versions(infographic_id)}
        if infographic.image_key:
            keys.add(infographic.image_key)
        for key in keys:
            await self._storage.delete(key)
        await self._infographics.delete_infographic(infographic_id)
        logger.info("infographic_deleted", infographic_id=infographic_id, blobs=len(keys))
        await self._notify(infographic, ChangeType.DELETE)

    async def list_versions(self, infographic_id: str, user: User) -> list[InfographicVersion]:
        await self._load_owned(infographic_id, user)
        return await self._infographics.list_versions(infographic_id)

    # ── Selections ─────────────────────────────────────────────────────

    async def add_selection(
        self,
        infographic_id: str,
        user: User,
        document_id: str,
        selected_text: str,
        start_offset: int | None = None,
        end_offset: int | None = None,
    ) -> tuple[InfographicSelection, str | None]:
        """Append a selection.  Returns ``(selection, warning_message)``."""
        await self._load_owned(infographic_id, user)
        await self._verify_documents([document_id], user)
        if len(selected_text) > MAX_SELECTION_LENGTH:
            raise SelectionTextTooLong(
                message=f"Selection is {len(selected_text)} characters; the limit is {MAX_SELECTION_LENGTH}"
            )
        if not selected_text.strip():
            raise ValidationError(message="Selected text cannot be empty")

        count = await self._infographics.count_selections(infographic_id)
        selection = InfographicSelection(
            id=new_id("sel"),
            infographic_id=infographic_id,
            document_id=document_id,
            selected_text=selected_text,
            start_offset=start_offset,
            end_offset=end_offset,
            order_index=count,
            created_at=utc_now(),
        )
        await self._infographics.insert_selection(selection)

        warning = None
        if count + 1 >= SELECTION_SOFT_LIMIT:
            warning = (
                f"You have {count + 1} selections. "
                "Consider consolidating to keep your infographic focused."
            )
        return selection, warning

    async def update_selection(
        self,
        infographic_id: str,
        user: User,
        selection_id: str,
        selected_text: str | None = None,
        start_offset: int | None = None,
        end_offset: int | None = None,
    ) -> InfographicSelection:
        await self._load_owned(infographic_id, user)
        selection = await self._require_selection(infographic_id, selection_id)
        updates: dict[str, Any] = {}
        if selected_text is not None:
            if len(selected_text) > MAX_SELECTION_LENGTH:
                raise SelectionTextTooLong(
                    message=f"Selection is {len(selected_text)} characters; the limit is {MAX_SELECTION_LENGTH}"
                )
            updates["selected_text"] = selected_text
        if start_offset is not None:
            updates["start_offset"] = start_offset
        if end_offset is not None:
            updates["end_offset"] = end_offset
        if not updates:
            return selection
        return await self._infographics.update_selection(selection.model_copy(update=updates))

    async def remove_selection(self, infographic_id: str, user: User, selection_id: str) -> None:
        await self._load_owned(infographic_id, user)
        await self._require_selection(infographic_id, selection_id)
        await self._infographics.delete_selection(selection_id)

    async def reorder_selections(
        self, infographic_id: str, user: User, ordered_ids: list[str]
    ) -> list[InfographicSelection]:
        await self._load_owned(infographic_id, user)
        current = {s.id for s in await self._infographics.list_selections(infographic_id)}
        unknown = [sid for sid in ordered_ids if sid not in current]
        if unknown:
            raise SelectionNotFound(unknown[0])
        if len(set(ordered_ids)) != len(current):
            raise ValidationError(message="Reorder must list every selection exactly once")
        await self._infographics.reorder_selections(infographic_id, ordered_ids)
        return await self._infographics.list_selections(infographic_id)

    async def _require_selection(self, infographic_id: str, selection_id: str) -> InfographicSelection:
        selection = await self._infographics.get_selection(selection_id)
        if selection is None or selection.infographic_id != infographic_id:
            raise SelectionNotFound(selection_id)
        return selection

    # ── Content extraction ─────────────────────────────────────────────

    async def extract_key_points(self, infographic_id: str, user: User) -> ExtractedContent:
        infographic = await self._load_owned(infographic_id, user)
        return await self._extract(infographic)

    async def _extract(self, infographic: Infographic) -> ExtractedContent:
        if self._llm is None:
            raise LLMError(message="No LLM provider configured")
        selections = await self._infographics.list_selections(infographic.id)
        doc_ids = list(dict.fromkeys([*infographic.source_document_ids, *(s.document_id for s in selections)]))
        texts = []
        for document in await self._documents.get_documents(doc_ids):
            texts.append((await self._storage.download(document.content_key)).decode("utf-8"))
        if not texts and not selections:
            raise ValidationError(message="Add source documents or text selections first")

        raw = await self._llm.complete(
            prompts.EXTRACTION_SYSTEM_PROMPT,
            prompts.build_extraction_prompt(
                texts, [s.selected_text for s in selections], infographic.infographic_type
            ),
            temperature=0.2,
            max_tokens=1000,
            json_mode=True,
        )
        data = parse_json_response(raw)
        statistics = [
            ExtractedStatistic(label=str(s.get("label", "")), value=str(s.get("value", "")))
            for s in data.get("statistics") or []
            if isinstance(s, dict)
        ]
        return ExtractedContent(
            summary=str(data.get("summary") or ""),
            key_points=[str(p) for p in data.get("key_points") or []],
            statistics=statistics,
        )

    # ── Generation ─────────────────────────────────────────────────────

    async def start_generation(
        self, infographic_id: str, user: User, feedback: str | None = None
    ) -> dict[str, Any]:
        infographic = await self._load_owned(infographic_id, user)
        existing = await self._queue.find_pending_job_for_infographic(infographic_id)
        if existing is not None:
            return {"job_id": existing.id, "status": existing.status.value}
        if infographic.status == InfographicStatus.GENERATING:
            raise InvalidStatusTransition(message="Infographic is already generating")

        selection_count = await self._infographics.count_selections(infographic_id)
        if not (infographic.prompt or infographic.source_document_ids or selection_count or feedback):
            raise ValidationError(
                message="Add a prompt, source documents or text selections before generating."
            )

        updates: dict[str, Any] = {"status": InfographicStatus.GENERATING, "error_message": None}
        if feedback is not None:
            updates["feedback_instructions"] = feedback
        infographic = await self._infographics.update_infographic(infographic.model_copy(update=updates))
        job = await self._queue.enqueue(
            JobType.GENERATE_INFOGRAPHIC,
            {"infographic_id": infographic_id, "user_id": user.id},
            user.id,
        )
        await self._notify(infographic, ChangeType.UPDATE)
        return {"job_id": job.id, "status": job.status.value}

    async def handle_job(self, job: Job) -> dict[str, Any]:
        return await self.execute_generation(job.payload["infographic_id"])

    async def fail_stale_job(self, job: Job) -> None:
        """Mark the infographic failed after its job was reaped as stale."""
        infographic = await self._infographics.get_infographic(job.payload.get("infographic_id", ""))
        if infographic is None or infographic.status != InfographicStatus.GENERATING:
            return
        await self._mark_failed(infographic.id, job.error or "Generation timed out")
        await self._notify(await self._load(infographic.id), ChangeType.UPDATE)

    async def execute_generation(self, infographic_id: str) -> dict[str, Any]:
        infographic = await self._load(infographic_id)
        log = logger.bind(infographic_id=infographic_id)
        try:
            if self._image_gen is None:
                raise ImageGenError(message="No image provider configured")
            versions = await self._infographics.list_versions(infographic_id)
            latest = versions[-1] if versions else None

            document_content = None
            selections = await self._infographics.count_selections(infographic_id)
            if self._llm is not None and (infographic.source_document_ids or selections):
                document_content = prompts.format_extracted_content(await self._extract(infographic))

            is_edit = latest is not None
            user_prompt = infographic.prompt
            if is_edit and infographic.feedback_instructions:
                user_prompt = infographic.feedback_instructions
            prompt = prompts.build_infographic_prompt(
                infographic.infographic_type,
                infographic.style_preset,
                infographic.format,
                user_prompt,
                document_content,
                is_edit=is_edit,
            )

            reference = None
            if latest is not None:
                try:
                    data = await self._storage.download(latest.image_key)
                    mime = "image/png" if latest.image_key.endswith(".png") else "image/jpeg"
                    reference = ReferenceImage(data=data, mime_type=mime)
                except StorageError as exc:
                    log.warning("reference_image_unavailable", key=latest.image_key, error=str(exc))

            image = await self._image_gen.generate_image(prompt, infographic.format, reference)
            key = image_key_for(infographic_id, image.mime_type)
            image_url = await self._storage.upload(key, image.data, image.mime_type)

            version_number = (latest.version_number if latest else 0) + 1
            try:
                await self._infographics.insert_version(InfographicVersion(
                    id=new_id("ver"),
                    infographic_id=infographic_id,
                    version_number=version_number,
                    prompt=user_prompt,
                    infographic_type=infographic.infographic_type,
                    style_preset=infographic.style_preset,
                    format=infographic.format,
                    image_key=key,
                    created_at=utc_now(),
                ))
            except Exception:
                await self._storage.delete(key)
                raise

            title = infographic.title
            if not is_edit and title == UNTITLED_INFOGRAPHIC and (infographic.prompt or document_content):
                title = await self._generate_title(infographic, document_content)

            infographic = await self._infographics.update_infographic(
                infographic.model_copy(update={
                    "title": title,
                    "status": InfographicStatus.READY,
                    "image_key": key,
                    "image_url": image_url,
                    "error_message": None,
                    "feedback_instructions": None,
                    "generation_context": {
                        "prompt": prompt,
                        "version_number": version_number,
                        "is_edit": is_edit,
                    },
                })
            )
            pruned = await self._infographics.delete_old_versions(infographic_id, MAX_VERSIONS)
            for old_key in pruned:
                await self._storage.delete(old_key)
        except ImageGenContentFilteredError as exc:
            log.warning("infographic_content_filtered", error=exc.message)
            await self._mark_failed(infographic_id, prompts.CONTENT_FILTERED_MESSAGE)
            raise
        except Exception as exc:
            message = getattr(exc, "message", None) or str(exc) or type(exc).__name__
            log.error("infographic_generation_failed", error=message)
            await self._mark_failed(infographic_id, message)
            raise

        log.info("infographic_generated", version=version_number, pruned=len(pruned))
        return {"infographic_id": infographic_id, "image_url": image_url, "version_number": version_number}

    async def _generate_title(self, infographic: Infographic, document_content: str | None) -> str:
        if self._llm is None:
            return infographic.title
        try:
            raw = await self._llm.complete(
                'Respond with a JSON object: {"title": "..."}',
                prompts.build_title_prompt(infographic.prompt or "", document_content),
                temperature=0.7,
                max_tokens=60,
                json_mode=True,
            )
            title = str(parse_json_response(raw).get("title") or "").strip().strip("\"'")
        except LLMError as exc:
            logger.warning("infographic_title_failed", infographic_id=infographic.id, error=exc.message)
            return infographic.title
        return title[:120] or infographic.title

    # ── Admin approval ─────────────────────────────────────────────────

    async def approve(self, infographic_id: str, user: User) -> Infographic:
        """Record *user* as the approving admin.  Re-approving overwrites the approver."""
        infographic = await self._load_for_admin(infographic_id, user)
        infographic = await self._infographics.update_infographic(
            infographic.model_copy(update={"approved_by": user.id, "approved_at": utc_now()})
        )
        logger.info("infographic_approved", infographic_id=infographic_id, admin_id=user.id)
        await self._notify(infographic, ChangeType.UPDATE)
        return infographic

    async def revoke_approval(self, infographic_id: str, user: User) -> Infographic:
        infographic = await self._load_for_admin(infographic_id, user)
        infographic = await self._infographics.update_infographic(
            infographic.model_copy(update={"approved_by": None, "approved_at": None})
        )
        logger.info("infographic_approval_revoked", infographic_id=infographic_id, admin_id=user.id)
        await self._notify(infographic, ChangeType.UPDATE)
        return infographic

    async def _load_for_admin(self, infographic_id: str, user: User) -> Infographic:
        if user.role != UserRole.ADMIN:
            raise ForbiddenError(message="Only admins can approve infographics")
        return await self._load(infographic_id)

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

    async def _mark_failed(self, infographic_id: str, message: str) -> None:
        infographic = await self._infographics.get_infographic(infographic_id)
        if infographic is None:
            return
        await self._infographics.update_infographic(
            infographic.model_copy(update={"status": InfographicStatus.FAILED, "error_message": message})
        )

    async def _notify(self, infographic: Infographic, change: ChangeType) -> None:
        await notify_change(self._sse, [infographic.created_by], EntityType.INFOGRAPHIC, change, infographic.id)
