"""Abstract base class for infographic, selection and version persistence."""

from __future__ import annotations

from abc import ABC, abstractmethod

from src.models.infographic import Infographic, InfographicSelection, InfographicVersion


# Concrete implementation: SQLiteInfographicProvider (src/providers/infographic/)
class IInfographicProvider(ABC):
    @abstractmethod
    async def initialize(self) -> None: ...

    @abstractmethod
    def get_provider_name(self) -> str: ...

    # ── Infographics ───────────────────────────────────────────────────

    @abstractmethod
    async def insert_infographic(self, infographic: Infographic) -> Infographic: ...

    @abstractmethod
    async def get_infographic(self, infographic_id: str) -> Infographic | None: ...

    @abstractmethod
    async def list_infographics(
        self, *, owner_id: str, limit: int = 50, offset: int = 0
    ) -> tuple[list[Infographic], int]: ...

    @abstractmethod
    async def update_infographic(self, infographic: Infographic) -> Infographic: ...

    @abstractmethod
    async def delete_infographic(self, infographic_id: str) -> bool:
        """Delete the infographic with its selections and versions."""

    # ── Selections ─────────────────────────────────────────────────────

    @abstractmethod
    async def insert_selection(self, selection: InfographicSelection) -> InfographicSelection: ...

    @abstractmethod
    async def get_selection(self, selection_id: str) -> InfographicSelection | None: ...

    @abstractmethod
    async def list_selections(self, infographic_id: str) -> list[InfographicSelection]:
        """Return selections ordered by ``order_index``."""

    @abstractmethod
    async def count_selections(self, infographic_id: str) -> int: ...

    @abstractmethod
    async def update_selection(self, selection: InfographicSelection) -> InfographicSelection: ...

    @abstractmethod
    async def delete_selection(self, selection_id: str) -> bool: ...

    @abstractmethod
    async def reorder_selections(self, infographic_id: str, ordered_ids: list[str]) -> None:
        """Set ``order_index`` to each id's position in *ordered_ids*."""

    # ── Versions ───────────────────────────────────────────────────────

    @abstractmethod
    async def insert_version(self, version: InfographicVersion) -> InfographicVersion: ...

    @abstractmethod
    async def list_versions(self, infographic_id: str) -> list[InfographicVersion]:
        """Return versions oldest first."""

    @abstractmethod
    async def delete_old_versions(self, infographic_id: str, keep: int) -> list[str]:
        """Delete all but the newest *keep* versions; return their image keys."""
