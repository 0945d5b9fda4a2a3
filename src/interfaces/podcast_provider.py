"""Abstract base class for podcast and script-version persistence."""

from __future__ import annotations

from abc import ABC, abstractmethod

from src.models.podcast import Podcast, PodcastStatus, ScriptSegment, ScriptVersion


# Concrete implementation: SQLitePodcastProvider (src/providers/podcast/)
class IPodcastProvider(ABC):
    """Contract for podcast persistence.

    Script versions are owned by their podcast: inserting a version makes
    it the single active version, and deleting a podcast removes its
    versions.
    """

    @abstractmethod
    async def initialize(self) -> None:
        """Create tables/indices if they don't exist.  Called at startup."""

    @abstractmethod
    def get_provider_name(self) -> str: ...

    # ── Podcasts ───────────────────────────────────────────────────────

    @abstractmethod
    async def insert_podcast(self, podcast: Podcast) -> Podcast: ...

    @abstractmethod
    async def get_podcast(self, podcast_id: str) -> Podcast | None: ...

    @abstractmethod
    async def list_podcasts(
        self,
        *,
        owner_id: str,
        include_ids: list[str] | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[Podcast], int]:
        """List podcasts owned by *owner_id* plus any id in *include_ids*.

        Returns ``(page_items, total_matching)``, newest first.
        """

    @abstractmethod
    async def update_podcast(self, podcast: Podcast) -> Podcast:
        """Overwrite the stored row; ``updated_at`` is refreshed."""

    @abstractmethod
    async def delete_podcast(self, podcast_id: str) -> bool:
        """Delete the podcast and all of its script versions."""

    # ── Script versions ────────────────────────────────────────────────

    @abstractmethod
    async def insert_version(
        self,
        podcast_id: str,
        *,
        segments: list[ScriptSegment],
        status: PodcastStatus,
        summary: str | None = None,
        generation_prompt: str | None = None,
        created_by: str | None = None,
    ) -> ScriptVersion:
        """Insert the next version number, deactivating all earlier versions."""

    @abstractmethod
    async def get_active_version(self, podcast_id: str) -> ScriptVersion | None: ...

    @abstractmethod
    async def list_versions(self, podcast_id: str) -> list[ScriptVersion]:
        """Return every version, newest first."""

    @abstractmethod
    async def get_next_version(self, podcast_id: str) -> int:
        """Return the version number the next insert would receive."""

    @abstractmethod
    async def update_version(self, version: ScriptVersion) -> ScriptVersion:
        """Overwrite a version's mutable fields (status, audio, error)."""

    @abstractmethod
    async def update_version_status(
        self,
        version_id: str,
        status: PodcastStatus,
        error_message: str | None = None,
    ) -> None: ...
