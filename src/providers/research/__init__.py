"""Deep-research providers backing research documents."""

from src.providers.research.openai_research_provider import OpenAIDeepResearchProvider

__all__ = ["OpenAIDeepResearchProvider"]
