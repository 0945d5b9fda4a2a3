"""Abstract base class for long-running deep-research providers.

Deep research runs for minutes, so the contract is split in two: start an
operation and receive its id, then poll for the result.  ``get_result``
returns ``None`` while the operation is still running.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


@dataclass(frozen=True)
class ResearchCitation:
    title: str
    url: str


@dataclass(frozen=True)
class ResearchOutput:
    """The finished report of a research operation."""

    content: str
    sources: list[ResearchCitation] = field(default_factory=list)

    @property
    def word_count(self) -> int:
        return len(self.content.split())


# Concrete implementation: OpenAIDeepResearchProvider (src/providers/research/)
class IDeepResearchProvider(ABC):
    """Contract for asynchronous web research services."""

    @abstractmethod
    async def start_research(self, query: str) -> str:
        """Submit *query* and return the provider's operation id.

        Raises
        ------
        src.utils.errors.ResearchError
            If the provider rejects the request.
        """

    @abstractmethod
    async def get_result(self, operation_id: str) -> ResearchOutput | None:
        """Return the finished report, or ``None`` if still in progress.

        Raises
        ------
        src.utils.errors.ResearchError
            If the operation failed or was cancelled on the provider side.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a short identifier for this provider."""
