"""Deep research via the OpenAI Responses API in background mode.

``start_research`` submits a background response and returns its id;
``get_result`` retrieves it and returns ``None`` until it has finished.
Citations are collected from ``url_citation`` annotations on the output
text, de-duplicated by URL.
"""

from __future__ import annotations

from typing import Any

import openai
import structlog

from src.config.settings import Settings
from src.interfaces.research_provider import (
    IDeepResearchProvider,
    ResearchCitation,
    ResearchOutput,
)
from src.utils.errors import ResearchError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_MODEL = "o4-mini-deep-research"
_PENDING_STATUSES = {"queued", "in_progress"}


def _extract_content(output: list[Any]) -> str:
    parts: list[str] = []
    for item in output:
        if getattr(item, "type", None) != "message":
            continue
        for block in getattr(item, "content", None) or []:
            if getattr(block, "type", None) == "output_text" and getattr(block, "text", ""):
                parts.append(block.text)
    return "\n\n".join(parts)


def _extract_sources(output: list[Any]) -> list[ResearchCitation]:
    sources: list[ResearchCitation] = []
    seen: set[str] = set()
    for item in output:
        if getattr(item, "type", None) != "message":
            continue
        for block in getattr(item, "content", None) or []:
            for annotation in getattr(block, "annotations", None) or []:
                url = getattr(annotation, "url", None)
                if getattr(annotation, "type", None) != "url_citation" or not url or url in seen:
                    continue
                seen.add(url)
                sources.append(ResearchCitation(title=getattr(annotation, "title", None) or url, url=url))
    return sources


class OpenAIDeepResearchProvider(IDeepResearchProvider):
    def __init__(self, settings: Settings, client: openai.AsyncOpenAI | None = None) -> None:
        client_kwargs: dict = {"api_key": settings.openai_api_key or "missing"}
        if settings.openai_base_url:
            client_kwargs["base_url"] = settings.openai_base_url
        self._client = client or openai.AsyncOpenAI(**client_kwargs)
        self._model = settings.openai_research_model or _DEFAULT_MODEL

    async def start_research(self, query: str) -> str:
        try:
            response = await self._client.responses.create(
                model=self._model,
                input=query,
                background=True,
                tools=[{"type": "web_search_preview"}],
            )
        except openai.APIError as exc:
            raise ResearchError(
                message=f"Failed to start research: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        logger.info("research_started", operation_id=response.id, model=self._model)
        return response.id

    async def get_result(self, operation_id: str) -> ResearchOutput | None:
        try:
            response = await self._client.responses.retrieve(operation_id)
        except openai.APIError as exc:
            raise ResearchError(
                message=f"Failed to get research result: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        status = getattr(response, "status", None)
        if status in _PENDING_STATUSES:
            return None
        if status == "failed":
            raise ResearchError(message="Research operation failed", provider_name=self.get_provider_name())
        if status == "cancelled":
            raise ResearchError(
                message="Research operation was cancelled", provider_name=self.get_provider_name()
            )

        output = list(getattr(response, "output", None) or [])
        result = ResearchOutput(content=_extract_content(output), sources=_extract_sources(output))
        logger.info(
            "research_result_ready",
            operation_id=operation_id,
            status=status,
            words=result.word_count,
            sources=len(result.sources),
        )
        return result

    def get_provider_name(self) -> str:
        return "openai-research"
