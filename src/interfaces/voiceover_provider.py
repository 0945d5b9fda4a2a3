"""Abstract base class for voiceover persistence."""

from __future__ import annotations

from abc import ABC, abstractmethod

from src.models.voiceover import Voiceover


# Concrete implementation: SQLiteVoiceoverProvider (src/providers/voiceover/)
class IVoiceoverProvider(ABC):
    @abstractmethod
    async def initialize(self) -> None: ...

    @abstractmethod
    def get_provider_name(self) -> str: ...

    @abstractmethod
    async def insert_voiceover(self, voiceover: Voiceover) -> Voiceover: ...

    @abstractmethod
    async def get_voiceover(self, voiceover_id: str) -> Voiceover | None: ...

    @abstractmethod
    async def list_voiceovers(
        self,
        *,
        owner_id: str,
        include_ids: list[str] | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[Voiceover], int]:
        """List voiceovers owned by *owner_id* plus any id in *include_ids*."""

    @abstractmethod
    async def update_voiceover(self, voiceover: Voiceover) -> Voiceover: ...

    @abstractmethod
    async def delete_voiceover(self, voiceover_id: str) -> bool: ...
