"""Shared pytest fixtures for the Content Studio test suite."""

from __future__ import annotations

import json
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.interfaces.article_provider import ArticleContent, IArticleProvider
from src.interfaces.image_provider import GeneratedImage, IImageGenProvider
from src.interfaces.llm_provider import ILLMProvider
from src.interfaces.research_provider import IDeepResearchProvider, ResearchCitation, ResearchOutput
from src.interfaces.tts_provider import AudioResult, ITTSProvider
from src.models.collaborator import CollaboratorEntity
from src.models.user import User, UserRole
from src.pipeline.job_queue import JobQueue
from src.providers.collaborator.sqlite_collaborator_provider import SQLiteCollaboratorProvider
from src.providers.document.sqlite_document_provider import SQLiteDocumentProvider
from src.providers.infographic.sqlite_infographic_provider import SQLiteInfographicProvider
from src.providers.job.sqlite_job_provider import SQLiteJobProvider
from src.providers.podcast.sqlite_podcast_provider import SQLitePodcastProvider
from src.providers.pubsub.memory_adapter import MemoryEventAdapter
from src.providers.storage.memory_storage import MemoryStorageProvider
from src.providers.tts.openai_tts_provider import BYTES_PER_SECOND, VOICES
from src.providers.user.sqlite_user_provider import SQLiteUserProvider
from src.providers.voiceover.sqlite_voiceover_provider import SQLiteVoiceoverProvider
from src.realtime.sse_manager import SSEManager
from src.services.collaboration import CollaborationManager
from src.services.document_service import DocumentService
from src.services.infographic_service import InfographicService
from src.services.podcast_service import PodcastService
from src.services.voiceover_service import VoiceoverService
from src.utils.errors import NotPodcastCollaborator, NotVoiceoverCollaborator
from src.utils.ids import new_id, utc_now

# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------


@pytest.fixture
def db_path(tmp_path) -> str:
    """Path of a fresh SQLite file inside pytest's tmp dir."""
    return str(tmp_path / "studio.db")


@pytest.fixture
async def stores(db_path: str) -> dict[str, Any]:
    """Every SQLite provider, initialised against the same temp database."""
    providers = {
        "documents": SQLiteDocumentProvider(db_path),
        "podcasts": SQLitePodcastProvider(db_path),
        "voiceovers": SQLiteVoiceoverProvider(db_path),
        "infographics": SQLiteInfographicProvider(db_path),
        "collaborators": SQLiteCollaboratorProvider(db_path),
        "users": SQLiteUserProvider(db_path),
        "jobs": SQLiteJobProvider(db_path),
    }
    for provider in providers.values():
        await provider.initialize()
    return providers


@pytest.fixture
def storage() -> MemoryStorageProvider:
    return MemoryStorageProvider()


@pytest.fixture
def queue(stores: dict[str, Any]) -> JobQueue:
    return JobQueue(stores["jobs"])


# ---------------------------------------------------------------------------
# Realtime
# ---------------------------------------------------------------------------


@pytest.fixture
async def sse():
    manager = SSEManager(MemoryEventAdapter())
    await manager.initialize()
    yield manager
    await manager.disconnect()


@pytest.fixture
def capture_events(sse: SSEManager):
    """Return a function that subscribes a user and collects decoded events."""

    def _capture(user_id: str) -> list[dict[str, Any]]:
        received: list[dict[str, Any]] = []

        async def writer(frame: str) -> None:
            received.append(json.loads(frame.removeprefix("data: ").strip()))

        sse.subscribe(user_id, writer)
        return received

    return _capture


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


@pytest.fixture
def make_user(stores: dict[str, Any]):
    """Return an async factory that inserts a user row."""

    async def _make(email: str = "owner@example.com", name: str = "Owner", role: UserRole = UserRole.USER) -> User:
        user = User(id=new_id("usr"), email=email, name=name, role=role, created_at=utc_now())
        await stores["users"].insert_user(user)
        return user

    return _make


@pytest.fixture
async def owner(make_user) -> User:
    return await make_user("owner@example.com", "Owner")


@pytest.fixture
async def other_user(make_user) -> User:
    return await make_user("guest@example.com", "Guest")


# ---------------------------------------------------------------------------
# Mock AI providers
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_llm() -> MagicMock:
    llm = MagicMock(spec=ILLMProvider)
    llm.complete = AsyncMock(return_value="{}")
    llm.chat = AsyncMock(return_value="Sure, tell me more.")
    llm.get_provider_name.return_value = "mock-llm"
    llm.is_available.return_value = True
    return llm


@pytest.fixture
def mock_tts() -> MagicMock:
    tts = MagicMock(spec=ITTSProvider)
    # three seconds of 24 kHz 16-bit mono silence
    tts.synthesize = AsyncMock(return_value=AudioResult(data=b"\x00" * BYTES_PER_SECOND * 3))
    tts.list_voices.return_value = list(VOICES)
    tts.get_provider_name.return_value = "mock-tts"
    return tts


@pytest.fixture
def mock_image_gen() -> MagicMock:
    image_gen = MagicMock(spec=IImageGenProvider)
    image_gen.generate_image = AsyncMock(return_value=GeneratedImage(data=b"\x89PNG fake image"))
    image_gen.get_provider_name.return_value = "mock-image"
    return image_gen


@pytest.fixture
def mock_research() -> MagicMock:
    research = MagicMock(spec=IDeepResearchProvider)
    research.start_research = AsyncMock(return_value="op-123")
    research.get_result = AsyncMock(
        return_value=ResearchOutput(
            content="Solar adoption doubled in five years across the region.",
            sources=[ResearchCitation(title="Energy Report", url="https://example.org/report")],
        )
    )
    research.get_provider_name.return_value = "mock-research"
    return research


@pytest.fixture
def mock_article() -> MagicMock:
    article = MagicMock(spec=IArticleProvider)
    article.extract_content = AsyncMock(
        return_value=ArticleContent(
            url="https://example.com/post",
            text="The quick brown fox jumps over the lazy dog.",
            title="Fox Facts",
            author="A. Writer",
            site_name="Example",
        )
    )
    article.get_provider_name.return_value = "mock-article"
    return article


# ---------------------------------------------------------------------------
# Services
# ---------------------------------------------------------------------------


@pytest.fixture
def document_service(stores, storage, queue, mock_article, mock_research, sse) -> DocumentService:
    return DocumentService(
        stores["documents"],
        storage,
        queue,
        article_provider=mock_article,
        research_provider=mock_research,
        sse=sse,
        research_initial_poll_seconds=30,
        research_steady_poll_seconds=60,
        research_max_poll_seconds=180,
        sleep=AsyncMock(),
    )


@pytest.fixture
def podcast_service(stores, storage, queue, mock_llm, mock_tts, sse) -> PodcastService:
    collaboration = CollaborationManager(
        CollaboratorEntity.PODCAST, stores["collaborators"], stores["users"], NotPodcastCollaborator
    )
    return PodcastService(
        stores["podcasts"],
        stores["documents"],
        storage,
        queue,
        collaboration,
        llm=mock_llm,
        tts=mock_tts,
        sse=sse,
    )


@pytest.fixture
def voiceover_service(stores, storage, queue, mock_tts, sse) -> VoiceoverService:
    collaboration = CollaborationManager(
        CollaboratorEntity.VOICEOVER, stores["collaborators"], stores["users"], NotVoiceoverCollaborator
    )
    return VoiceoverService(stores["voiceovers"], storage, queue, collaboration, tts=mock_tts, sse=sse)


@pytest.fixture
def infographic_service(stores, storage, queue, mock_llm, mock_image_gen, sse) -> InfographicService:
    return InfographicService(
        stores["infographics"],
        stores["documents"],
        storage,
        queue,
        llm=mock_llm,
        image_gen=mock_image_gen,
        sse=sse,
    )
