"""Document ingestion and management.

# ─── ARCHITECTURE ROLE ───────────────────────────────────────────────
#
# Layer: Services.
# Depends on: IDocumentProvider, IStorageProvider, JobQueue,
#             IArticleProvider, IDeepResearchProvider, SSEManager.
#
# Three ways in:
#
#   1. Direct: manual text or an uploaded file.  Parsed synchronously,
#      text written to storage, row inserted as ``ready``.
#   2. URL: row inserted as ``processing`` and a ``process-url`` job
#      enqueued; the worker scrapes the page via ``process_url``.
#   3. Research: row inserted as ``processing`` and ``process-research``
#      enqueued; ``process_research`` polls the deep-research provider
#      for up to an hour, persisting the operation id so a restarted
#      worker resumes instead of starting a second operation.
#
# Text always lives in blob storage under ``documents/{id}/...``; the
# row only stores the key.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import asyncio
import hashlib
from collections.abc import Awaitable, Callable
from typing import Any
from urllib.parse import urlsplit

import structlog

from src.interfaces.article_provider import IArticleProvider
from src.interfaces.document_provider import IDocumentProvider
from src.interfaces.research_provider import IDeepResearchProvider
from src.interfaces.storage_provider import IStorageProvider
from src.models.document import (
    Document,
    DocumentPage,
    DocumentSource,
    DocumentStatus,
    ResearchConfig,
    ResearchSource,
)
from src.models.events import ChangeType, EntityType
from src.models.job import Job, JobType
from src.models.user import User
from src.pipeline.job_queue import JobQueue
from src.realtime.sse_manager import SSEManager
from src.services.change_events import notify_change
from src.services.documents.parsers import count_words, parse_uploaded_file
from src.services.documents.url_validator import normalize_url, validate_url
from src.utils.errors import (
    ConfigurationError,
    DocumentAlreadyProcessing,
    DocumentNotFound,
    ForbiddenError,
    InvalidStatusTransition,
    ProviderUnavailableError,
    ResearchError,
    ScrapeError,
)
from src.utils.ids import new_id, utc_now

logger = structlog.get_logger(logger_name=__name__)

RESEARCH_TIMEOUT_MESSAGE = "Research timed out after 60 minutes"
RESEARCH_EMPTY_MESSAGE = "Research completed but returned no content"

_TEXT_MIME = "text/plain"


def content_key_for(document_id: str, suffix: str = "content") -> str:
    return f"documents/{document_id}/{suffix}.txt"


def content_hash(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


class DocumentService:
    """Creates, reads, updates and deletes documents for an acting user.

    Owners and admins may access a document; anyone else gets
    :class:`ForbiddenError`.
    """

    def __init__(
        self,
        documents: IDocumentProvider,
        storage: IStorageProvider,
        queue: JobQueue,
        article_provider: IArticleProvider | None = None,
        research_provider: IDeepResearchProvider | None = None,
        sse: SSEManager | None = None,
        research_initial_poll_seconds: float = 30,
        research_steady_poll_seconds: float = 60,
        research_max_poll_seconds: float = 60 * 60,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._documents = documents
        self._storage = storage
        self._queue = queue
        self._article_provider = article_provider
        self._research_provider = research_provider
        self._sse = sse
        self._initial_poll = research_initial_poll_seconds
        self._steady_poll = research_steady_poll_seconds
        self._max_poll = research_max_poll_seconds
        self._sleep = sleep

    # ── Reads ──────────────────────────────────────────────────────────

    async def list_documents(
        self,
        user: User,
        limit: int = 50,
        offset: int = 0,
        source: DocumentSource | None = None,
    ) -> DocumentPage:
        items, total = await self._documents.list_documents(
            created_by=None if user.is_admin else user.id,
            source=source,
            limit=limit,
            offset=offset,
        )
        return DocumentPage(items=items, total=total, has_more=offset + len(items) < total)

    async def get_document(self, document_id: str, user: User) -> Document:
        document = await self._documents.get_document(document_id)
        if document is None:
            raise DocumentNotFound(document_id)
        if document.created_by != user.id and not user.is_admin:
            raise ForbiddenError(message=f"You do not have access to document {document_id}")
        return document

    async def get_content(self, document_id: str, user: User) -> str:
        document = await self.get_document(document_id, user)
        data = await self._storage.download(document.content_key)
        return data.decode("utf-8")

    async def get_owned_documents(self, document_ids: list[str], user: User) -> list[Document]:
        """Return the documents in order, raising if any is missing or not the user's."""
        found = await self._documents.get_documents(document_ids)
        by_id = {d.id: d for d in found}
        for doc_id in document_ids:
            doc = by_id.get(doc_id)
            if doc is None:
                raise DocumentNotFound(doc_id)
            if doc.created_by != user.id and not user.is_admin:
                raise ForbiddenError(message=f"You do not have access to document {doc_id}")
        return [by_id[doc_id] for doc_id in document_ids]

    async def read_text(self, document: Document) -> str:
        """Return a document's stored text without an access check (worker use)."""
        data = await self._storage.download(document.content_key)
        return data.decode("utf-8")

    # ── Direct creation ────────────────────────────────────────────────

    async def create_document(
        self,
        user: User,
        title: str,
        content: str,
        metadata: dict[str, Any] | None = None,
    ) -> Document:
        doc_id = new_id("doc")
        key = content_key_for(doc_id)
        await self._storage.upload(key, content.encode("utf-8"), _TEXT_MIME)
        now = utc_now()
        document = Document(
            id=doc_id,
            title=title,
            content_key=key,
            mime_type=_TEXT_MIME,
            word_count=count_words(content),
            source=DocumentSource.MANUAL,
            metadata=metadata or {},
            content_hash=content_hash(content),
            created_by=user.id,
            created_at=now,
            updated_at=now,
        )
        await self._documents.insert_document(document)
        logger.info("document_created", document_id=doc_id, source="manual", words=document.word_count)
        await self._notify(user.id, ChangeType.INSERT, doc_id)
        return document

    async def upload_document(
        self,
        user: User,
        file_name: str,
        mime_type: str | None,
        data: bytes,
        title: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> Document:
        parsed = parse_uploaded_file(file_name, mime_type, data)
        doc_id = new_id("doc")
        key = content_key_for(doc_id)
        await self._storage.upload(key, parsed.content.encode("utf-8"), _TEXT_MIME)
        now = utc_now()
        document = Document(
            id=doc_id,
            title=title or parsed.title or file_name,
            content_key=key,
            mime_type=parsed.mime_type,
            word_count=count_words(parsed.content),
            source=parsed.source,
            original_file_name=file_name,
            original_file_size=len(data),
            metadata={**parsed.metadata, **(metadata or {})},
            content_hash=content_hash(parsed.content),
            created_by=user.id,
            created_at=now,
            updated_at=now,
        )
        await self._documents.insert_document(document)
        logger.info(
            "document_uploaded",
            document_id=doc_id,
            source=parsed.source.value,
            size=len(data),
            words=document.word_count,
        )
        await self._notify(user.id, ChangeType.INSERT, doc_id)
        return document

    # ── Mutations ──────────────────────────────────────────────────────

    async def update_document(
        self,
        document_id: str,
        user: User,
        title: str | None = None,
        content: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> Document:
        document = await self.get_document(document_id, user)
        updates: dict[str, Any] = {}
        if title is not None:
            updates["title"] = title
        if metadata is not None:
            updates["metadata"] = metadata

        old_key: str | None = None
        if content is not None:
            new_key = content_key_for(document_id, f"content-{new_id('rev', 8)}")
            await self._storage.upload(new_key, content.encode("utf-8"), _TEXT_MIME)
            old_key = document.content_key
            updates.update(
                content_key=new_key,
                word_count=count_words(content),
                content_hash=content_hash(content),
            )

        if not updates:
            return document

        document = await self._documents.update_document(document.model_copy(update=updates))
        if old_key and old_key != document.content_key:
            await self._storage.delete(old_key)
        await self._notify(document.created_by, ChangeType.UPDATE, document_id)
        return document

    async def delete_document(self, document_id: str, user: User) -> None:
        document = await self.get_document(document_id, user)
        await self._storage.delete(document.content_key)
        await self._documents.delete_document(document_id)
        logger.info("document_deleted", document_id=document_id)
        await self._notify(document.created_by, ChangeType.DELETE, document_id)

    # ── URL and research documents ─────────────────────────────────────

    async def create_from_url(self, user: User, url: str, title: str | None = None) -> Document:
        normalized = normalize_url(validate_url(url))

        existing = await self._documents.find_by_source_url(user.id, normalized)
        if existing is not None:
            if existing.status == DocumentStatus.READY:
                return existing
            if existing.status == DocumentStatus.PROCESSING:
                raise DocumentAlreadyProcessing(
                    message=f"Document {existing.id} is already being processed"
                )
            await self._storage.delete(existing.content_key)
            await self._documents.delete_document(existing.id)

        doc_id = new_id("doc")
        now = utc_now()
        document = Document(
            id=doc_id,
            title=title or normalized,
            content_key=content_key_for(doc_id),
            source=DocumentSource.URL,
            status=DocumentStatus.PROCESSING,
            source_url=normalized,
            metadata={"title_provided": bool(title)},
            created_by=user.id,
            created_at=now,
            updated_at=now,
        )
        await self._documents.insert_document(document)
        await self._queue.enqueue(
            JobType.PROCESS_URL,
            {"document_id": doc_id, "url": normalized, "user_id": user.id},
            user.id,
        )
        logger.info("url_document_queued", document_id=doc_id, url=normalized)
        await self._notify(user.id, ChangeType.INSERT, doc_id)
        return document

    async def create_from_research(self, user: User, query: str, title: str | None = None) -> Document:
        doc_id = new_id("doc")
        now = utc_now()
        document = Document(
            id=doc_id,
            title=title or query[:100],
            content_key=content_key_for(doc_id),
            source=DocumentSource.RESEARCH,
            status=DocumentStatus.PROCESSING,
            research_config=ResearchConfig(query=query),
            created_by=user.id,
            created_at=now,
            updated_at=now,
        )
        await self._documents.insert_document(document)
        await self._queue.enqueue(
            JobType.PROCESS_RESEARCH,
            {"document_id": doc_id, "query": query, "user_id": user.id},
            user.id,
        )
        logger.info("research_document_queued", document_id=doc_id)
        await self._notify(user.id, ChangeType.INSERT, doc_id)
        return document

    async def retry_processing(self, document_id: str, user: User) -> Document:
        document = await self.get_document(document_id, user)
        if document.status == DocumentStatus.READY:
            return document
        if document.status == DocumentStatus.PROCESSING:
            raise DocumentAlreadyProcessing(message=f"Document {document_id} is already being processed")

        if document.source == DocumentSource.URL and document.source_url:
            job_type = JobType.PROCESS_URL
            payload = {"document_id": document_id, "url": document.source_url, "user_id": user.id}
        elif document.source == DocumentSource.RESEARCH and document.research_config:
            job_type = JobType.PROCESS_RESEARCH
            payload = {
                "document_id": document_id,
                "query": document.research_config.query,
                "user_id": user.id,
            }
        else:
            raise InvalidStatusTransition(
                message=f"Documents with source {document.source.value} cannot be retried"
            )

        document = await self._documents.update_document(
            document.model_copy(update={"status": DocumentStatus.PROCESSING, "error_message": None})
        )
        await self._queue.enqueue(job_type, payload, user.id)
        logger.info("document_retry_queued", document_id=document_id, job_type=job_type.value)
        await self._notify(document.created_by, ChangeType.UPDATE, document_id)
        return document

    # ── Worker entry points ────────────────────────────────────────────

    async def handle_job(self, job: Job) -> dict[str, Any]:
        if job.type == JobType.PROCESS_URL:
            return await self.process_url(job.payload["document_id"], job.payload["url"])
        return await self.process_research(job.payload["document_id"], job.payload["query"])

    async def fail_stale_job(self, job: Job) -> None:
        """Fail a document whose processing job was reaped.

        ``research_config`` is left untouched so an in-flight research
        operation can still be picked up by :meth:`recover_orphaned_research`.
        """
        document = await self._documents.get_document(job.payload.get("document_id", ""))
        if document is None or document.status != DocumentStatus.PROCESSING:
            return
        await self._mark_failed(document.id, job.error or "Processing timed out")
        await self._notify(document.created_by, ChangeType.UPDATE, document.id)

    async def recover_orphaned_research(self) -> list[Document]:
        """Re-queue research documents whose provider operation outlived its job.

        A research document is orphaned when it is processing or failed,
        its ``research_config`` still says ``in_progress`` with an
        ``operation_id``, and no pending or processing job references it.
        The re-queued job resumes polling the existing operation instead of
        starting a new one.
        """
        recovered: list[Document] = []
        for document in await self._documents.find_orphaned_research():
            if await self._queue.find_pending_job_for_document(document.id) is not None:
                continue
            config = document.research_config
            document = await self._documents.update_document(
                document.model_copy(update={"status": DocumentStatus.PROCESSING, "error_message": None})
            )
            await self._queue.enqueue(
                JobType.PROCESS_RESEARCH,
                {"document_id": document.id, "query": config.query, "user_id": document.created_by},
                document.created_by,
            )
            logger.info(
                "orphaned_research_recovered",
                document_id=document.id,
                operation_id=config.operation_id,
            )
            await self._notify(document.created_by, ChangeType.UPDATE, document.id)
            recovered.append(document)
        return recovered

    async def process_url(self, document_id: str, url: str) -> dict[str, Any]:
        document = await self._require(document_id)
        try:
            if self._article_provider is None:
                raise ConfigurationError(message="No article provider configured")
            article = await self._article_provider.extract_content(url)
            if article is None or not article.text.strip():
                raise ScrapeError(message=f"No readable content found at {url}")

            title = document.title
            if not document.metadata.get("title_provided"):
                title = article.title or urlsplit(url).hostname or url

            await self._storage.upload(document.content_key, article.text.encode("utf-8"), _TEXT_MIME)
            metadata = {**document.metadata}
            if article.author:
                metadata["author"] = article.author
            if article.site_name:
                metadata["site_name"] = article.site_name
            document = await self._documents.update_document(
                document.model_copy(update={
                    "title": title,
                    "word_count": count_words(article.text),
                    "content_hash": content_hash(article.text),
                    "metadata": metadata,
                    "status": DocumentStatus.READY,
                    "error_message": None,
                })
            )
        except Exception as exc:
            await self._mark_failed(document_id, _error_message(exc))
            raise

        logger.info("url_document_processed", document_id=document_id, words=document.word_count)
        return {"document_id": document_id, "word_count": document.word_count}

    async def process_research(self, document_id: str, query: str) -> dict[str, Any]:
        document = await self._require(document_id)
        try:
            return await self._run_research(document, query)
        except Exception as exc:
            current = await self._documents.get_document(document_id)
            if current is not None and current.status != DocumentStatus.FAILED:
                await self._mark_failed(document_id, _error_message(exc))
            raise

    async def _run_research(self, document: Document, query: str) -> dict[str, Any]:
        if self._research_provider is None:
            raise ProviderUnavailableError(message="Deep research is not configured")
        log = logger.bind(document_id=document.id)
        config = document.research_config or ResearchConfig(query=query)

        if config.operation_id and config.research_status == "in_progress":
            operation_id = config.operation_id
            log.info("research_resumed", operation_id=operation_id)
        else:
            operation_id = await self._research_provider.start_research(query)
            config = ResearchConfig(query=query, operation_id=operation_id, research_status="in_progress")
            document = await self._documents.update_document(
                document.model_copy(update={"research_config": config})
            )

        elapsed = 0.0
        attempt = 1
        result = await self._research_provider.get_result(operation_id)
        while result is None and elapsed < self._max_poll:
            delay = self._initial_poll if elapsed == 0 else self._steady_poll
            await self._sleep(delay)
            elapsed += delay
            attempt += 1
            result = await self._research_provider.get_result(operation_id)
            log.debug("research_polled", attempt=attempt, elapsed=elapsed, done=result is not None)

        if result is None:
            await self._fail_research(document, config, RESEARCH_TIMEOUT_MESSAGE)
            raise ResearchError(message=RESEARCH_TIMEOUT_MESSAGE)
        if not result.content.strip():
            await self._fail_research(document, config, RESEARCH_EMPTY_MESSAGE)
            raise ResearchError(message=RESEARCH_EMPTY_MESSAGE)

        await self._storage.upload(document.content_key, result.content.encode("utf-8"), _TEXT_MIME)
        config = config.model_copy(update={
            "research_status": "completed",
            "source_count": len(result.sources),
            "sources": [ResearchSource(title=s.title, url=s.url) for s in result.sources],
        })
        document = await self._documents.update_document(
            document.model_copy(update={
                "research_config": config,
                "word_count": result.word_count,
                "content_hash": content_hash(result.content),
                "status": DocumentStatus.READY,
                "error_message": None,
            })
        )
        log.info("research_completed", words=result.word_count, sources=len(result.sources))
        return {"document_id": document.id, "word_count": result.word_count}

    async def _fail_research(self, document: Document, config: ResearchConfig, message: str) -> None:
        await self._documents.update_document(
            document.model_copy(update={
                "research_config": config.model_copy(update={"research_status": "failed"}),
                "status": DocumentStatus.FAILED,
                "error_message": message,
            })
        )
        logger.warning("research_failed", document_id=document.id, error=message)

    # ── Helpers ────────────────────────────────────────────────────────

    async def _require(self, document_id: str) -> Document:
        document = await self._documents.get_document(document_id)
        if document is None:
            raise DocumentNotFound(document_id)
        return document

    async def _mark_failed(self, document_id: str, message: str) -> None:
        document = await self._documents.get_document(document_id)
        if document is None:
            return
        await self._documents.update_document(
            document.model_copy(update={"status": DocumentStatus.FAILED, "error_message": message})
        )
        logger.warning("document_processing_failed", document_id=document_id, error=message)

    async def _notify(self, user_id: str, change: ChangeType, document_id: str) -> None:
        await notify_change(self._sse, [user_id], EntityType.DOCUMENT, change, document_id)


def _error_message(exc: Exception) -> str:
    return getattr(exc, "message", None) or str(exc) or type(exc).__name__
