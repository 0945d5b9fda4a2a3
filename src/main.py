"""Content Studio FastAPI application entry point.

Wires together all providers, services, the job worker and the routes.
Loads configuration from ``.env`` and ``config/config.yaml`` and
configures structured logging.

# ─── COMPONENT GRAPH ─────────────────────────────────────────────────
#
#   Settings ──→ SQLite providers (documents, podcasts, voiceovers,
#                infographics, collaborators, users, jobs)
#            ──→ storage backend (filesystem | s3 | database | memory)
#            ──→ AI providers (LLM, TTS, image, deep research), optional
#            ──→ event adapter (memory | redis) ──→ SSEManager
#
#   JobQueue + services ──→ UnifiedWorker handlers keyed by JobType
#
# ``build_components`` returns a plain dict; the lifespan copies each
# entry onto ``app.state`` where the route dependencies find them.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import structlog
import uvicorn
from fastapi import FastAPI

from src.api.middleware import (
    ErrorHandlingMiddleware,
    RateLimitMiddleware,
    RequestLoggingMiddleware,
    SecurityHeadersMiddleware,
    configure_cors,
)
from src.api.routers import ALL_ROUTERS
from src.api.routers.system import APP_VERSION
from src.config.loader import load_config
from src.config.settings import Settings
from src.interfaces.event_adapter import IEventAdapter
from src.interfaces.llm_provider import ILLMProvider
from src.models.collaborator import CollaboratorEntity
from src.models.job import JobType
from src.pipeline.job_queue import JobQueue
from src.pipeline.worker import UnifiedWorker
from src.providers.article.web_scraper_provider import WebScraperProvider
from src.providers.cache.memory_cache import MemoryCacheProvider
from src.providers.collaborator.sqlite_collaborator_provider import SQLiteCollaboratorProvider
from src.providers.document.sqlite_document_provider import SQLiteDocumentProvider
from src.providers.image.openai_image_provider import OpenAIImageProvider
from src.providers.infographic.sqlite_infographic_provider import SQLiteInfographicProvider
from src.providers.job.sqlite_job_provider import SQLiteJobProvider
from src.providers.llm.anthropic_provider import AnthropicLLMProvider
from src.providers.llm.openai_provider import OpenAILLMProvider
from src.providers.podcast.sqlite_podcast_provider import SQLitePodcastProvider
from src.providers.pubsub.memory_adapter import MemoryEventAdapter
from src.providers.pubsub.redis_adapter import RedisEventAdapter
from src.providers.research.openai_research_provider import OpenAIDeepResearchProvider
from src.providers.storage.factory import build_storage_provider
from src.providers.tts.openai_tts_provider import OpenAITTSProvider
from src.providers.user.sqlite_user_provider import SQLiteUserProvider
from src.providers.voiceover.sqlite_voiceover_provider import SQLiteVoiceoverProvider
from src.realtime.sse_manager import SSEManager
from src.services.auth_service import AuthService
from src.services.collaboration import CollaborationManager
from src.services.document_service import DocumentService
from src.services.infographic_service import InfographicService
from src.services.podcast_service import PodcastService
from src.services.research_chat_service import ResearchChatService
from src.services.voiceover_service import VoiceoverService
from src.utils.errors import ConfigurationError, NotPodcastCollaborator, NotVoiceoverCollaborator
from src.utils.logging import configure_logging, get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

# Headroom between the research polling cap and the stale-job reaper.
STALE_JOB_MARGIN_SECONDS = 900


# ---------------------------------------------------------------------------
# Provider selection
# ---------------------------------------------------------------------------


def _build_llm_provider(app_settings: Settings) -> ILLMProvider | None:
    """Select the first configured LLM provider.

    Priority order: Anthropic -> OpenAI.  Returns ``None`` when neither
    key is set; AI features then fail with a provider error on use.
    """
    if app_settings.anthropic_api_key:
        return AnthropicLLMProvider(settings=app_settings)
    if app_settings.openai_api_key:
        return OpenAILLMProvider(settings=app_settings)
    return None


def _build_event_adapter(app_settings: Settings, channel_prefix: str | None = None) -> IEventAdapter:
    adapter = app_settings.sse_adapter.lower()
    if adapter == "memory":
        return MemoryEventAdapter()
    if adapter == "redis":
        if channel_prefix:
            return RedisEventAdapter.from_url(app_settings.redis_url, prefix=channel_prefix)
        return RedisEventAdapter.from_url(app_settings.redis_url)
    raise ConfigurationError(message=f"Unknown SSE adapter: {app_settings.sse_adapter}")


# ---------------------------------------------------------------------------
# Full DI assembly
# ---------------------------------------------------------------------------


def build_components(app_settings: Settings) -> dict[str, Any]:
    """Construct every provider, service and the worker from *app_settings*.

    Nothing here touches the network or the database; ``initialize()``
    calls happen in the lifespan (or in the CLI).
    """
    config = load_config(settings=app_settings)
    research_cfg = config.get("research", {})
    research_max_seconds = research_cfg.get("max_poll_minutes", 60) * 60
    sse_cfg = config.get("sse", {})

    db_path = app_settings.database_path
    document_provider = SQLiteDocumentProvider(db_path)
    podcast_provider = SQLitePodcastProvider(db_path)
    voiceover_provider = SQLiteVoiceoverProvider(db_path)
    infographic_provider = SQLiteInfographicProvider(db_path)
    collaborator_provider = SQLiteCollaboratorProvider(db_path)
    user_provider = SQLiteUserProvider(db_path)
    job_provider = SQLiteJobProvider(db_path)

    storage = build_storage_provider(app_settings)
    sse_manager = SSEManager(_build_event_adapter(app_settings, sse_cfg.get("channel_prefix")))
    job_queue = JobQueue(job_provider)

    llm = _build_llm_provider(app_settings)
    has_openai = bool(app_settings.openai_api_key)
    tts = OpenAITTSProvider(settings=app_settings) if has_openai else None
    image_gen = OpenAIImageProvider(settings=app_settings) if has_openai else None
    research = OpenAIDeepResearchProvider(settings=app_settings) if has_openai else None
    article_provider = WebScraperProvider(cache=MemoryCacheProvider())

    document_service = DocumentService(
        document_provider,
        storage,
        job_queue,
        article_provider=article_provider,
        research_provider=research,
        sse=sse_manager,
        research_initial_poll_seconds=research_cfg.get("initial_poll_seconds", 30),
        research_steady_poll_seconds=research_cfg.get("steady_poll_seconds", 60),
        research_max_poll_seconds=research_max_seconds,
    )
    podcast_service = PodcastService(
        podcast_provider,
        document_provider,
        storage,
        job_queue,
        CollaborationManager(
            CollaboratorEntity.PODCAST, collaborator_provider, user_provider, NotPodcastCollaborator
        ),
        llm=llm,
        tts=tts,
        sse=sse_manager,
    )
    voiceover_service = VoiceoverService(
        voiceover_provider,
        storage,
        job_queue,
        CollaborationManager(
            CollaboratorEntity.VOICEOVER, collaborator_provider, user_provider, NotVoiceoverCollaborator
        ),
        tts=tts,
        sse=sse_manager,
    )
    infographic_service = InfographicService(
        infographic_provider,
        document_provider,
        storage,
        job_queue,
        llm=llm,
        image_gen=image_gen,
        sse=sse_manager,
    )
    auth_service = AuthService(
        user_provider,
        collaborator_provider,
        app_settings.auth_secret,
        session_ttl_hours=app_settings.auth_session_ttl_hours,
    )
    research_chat_service = ResearchChatService(llm, document_service) if llm is not None else None

    stale_job_seconds = app_settings.worker_stale_job_seconds
    if stale_job_seconds <= research_max_seconds:
        stale_job_seconds = research_max_seconds + STALE_JOB_MARGIN_SECONDS
        _logger.warning(
            "worker_stale_age_raised",
            configured=app_settings.worker_stale_job_seconds,
            effective=stale_job_seconds,
            reason="research polling would be reaped mid-run",
        )
    worker = UnifiedWorker(
        job_queue,
        {
            JobType.GENERATE_PODCAST: podcast_service.handle_job,
            JobType.GENERATE_SCRIPT: podcast_service.handle_job,
            JobType.GENERATE_AUDIO: podcast_service.handle_job,
            JobType.GENERATE_VOICEOVER: voiceover_service.handle_job,
            JobType.GENERATE_INFOGRAPHIC: infographic_service.handle_job,
            JobType.PROCESS_URL: document_service.handle_job,
            JobType.PROCESS_RESEARCH: document_service.handle_job,
        },
        sse=sse_manager,
        poll_interval=app_settings.worker_poll_interval_seconds,
        stale_job_seconds=stale_job_seconds,
        stale_check_every=app_settings.worker_stale_check_every,
        max_concurrent=app_settings.worker_max_concurrent,
        stale_handlers={
            JobType.GENERATE_PODCAST: podcast_service.fail_stale_job,
            JobType.GENERATE_SCRIPT: podcast_service.fail_stale_job,
            JobType.GENERATE_AUDIO: podcast_service.fail_stale_job,
            JobType.GENERATE_VOICEOVER: voiceover_service.fail_stale_job,
            JobType.GENERATE_INFOGRAPHIC: infographic_service.fail_stale_job,
            JobType.PROCESS_URL: document_service.fail_stale_job,
            JobType.PROCESS_RESEARCH: document_service.fail_stale_job,
        },
        recovery_hooks=[document_service.recover_orphaned_research],
        shutdown_timeout=app_settings.worker_shutdown_timeout_seconds,
    )

    return {
        "settings": app_settings,
        "db_providers": [
            document_provider,
            podcast_provider,
            voiceover_provider,
            infographic_provider,
            collaborator_provider,
            user_provider,
            job_provider,
        ],
        "storage": storage,
        "sse_manager": sse_manager,
        "job_queue": job_queue,
        "llm": llm,
        "article_provider": article_provider,
        "document_service": document_service,
        "podcast_service": podcast_service,
        "voiceover_service": voiceover_service,
        "infographic_service": infographic_service,
        "auth_service": auth_service,
        "research_chat_service": research_chat_service,
        "worker": worker,
    }


async def initialize_storage(components: dict[str, Any]) -> None:
    """Create every table the components need.  Safe to call repeatedly."""
    for provider in components.get("db_providers", []):
        await provider.initialize()
    storage = components["storage"]
    if hasattr(storage, "initialize"):
        await storage.initialize()


# ---------------------------------------------------------------------------
# Application lifespan (startup / shutdown)
# ---------------------------------------------------------------------------


def _make_lifespan(app_settings: Settings, prebuilt: dict[str, Any] | None):
    @asynccontextmanager
    async def _lifespan(application: FastAPI) -> AsyncIterator[None]:
        """Initialise providers and start the worker on startup, clean up on shutdown."""
        components = prebuilt if prebuilt is not None else build_components(app_settings)
        for key, value in components.items():
            setattr(application.state, key, value)

        await initialize_storage(components)
        await components["sse_manager"].initialize()

        worker: UnifiedWorker | None = components.get("worker")
        if worker is not None and app_settings.worker_enabled:
            worker.start()

        _logger.info(
            "app_startup",
            version=APP_VERSION,
            environment=app_settings.app_env,
            storage=components["storage"].get_provider_name(),
            sse_adapter=components["sse_manager"].adapter_name,
            llm_providers=app_settings.get_available_llm_providers(),
            worker=bool(worker is not None and worker.is_running),
        )

        yield

        if worker is not None and worker.is_running:
            await worker.stop()
        await components["sse_manager"].disconnect()
        article_provider = components.get("article_provider")
        if article_provider is not None:
            await article_provider.close()
        _logger.info("app_shutdown")

    return _lifespan


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app(settings: Settings | None = None, components: dict[str, Any] | None = None) -> FastAPI:
    """Build and configure the FastAPI application.

    Passing *components* skips :func:`build_components`, which is how the
    integration tests inject temp databases and mocked AI providers.
    """
    app_settings = settings or Settings()
    app_settings.check_production_ready()
    configure_logging(
        log_level=app_settings.log_level,
        json_output=(app_settings.app_env == "production"),
    )

    application = FastAPI(
        title="Content Studio API",
        version=APP_VERSION,
        description=(
            "Turn uploaded, scraped or researched documents into podcasts, "
            "voiceovers and infographics, with live updates over SSE."
        ),
        lifespan=_make_lifespan(app_settings, components),
    )

    # -- Middleware (order matters: last added = first executed) --
    application.add_middleware(ErrorHandlingMiddleware)
    if app_settings.rate_limit_enabled:
        application.add_middleware(
            RateLimitMiddleware,
            limit=app_settings.rate_limit_requests,
            window_seconds=app_settings.rate_limit_window_seconds,
        )
    application.add_middleware(SecurityHeadersMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application, allowed_origins=app_settings.get_cors_origins())

    for router in ALL_ROUTERS:
        application.include_router(router)

    return application


app = create_app()

# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    _settings = Settings()
    uvicorn.run(
        "src.main:app",
        host=_settings.app_host,
        port=_settings.app_port,
        reload=(_settings.app_env == "development"),
    )
