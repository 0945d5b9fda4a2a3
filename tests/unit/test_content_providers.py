"""Unit tests for the web scraper, its cache and the deep-research adapter."""

from __future__ import annotations

import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import openai
import pytest
import trafilatura

from src.config.settings import Settings
from src.providers.article.web_scraper_provider import WebScraperProvider
from src.providers.cache.memory_cache import MemoryCacheProvider
from src.providers.research.openai_research_provider import OpenAIDeepResearchProvider
from src.utils.errors import ResearchError, ScrapeError

ARTICLE_HTML = "<html><body><p>Solar adoption doubled.</p></body></html>"


def _fake_extract(html, **kwargs):
    if "<p>" not in html:
        return None
    if kwargs.get("output_format") == "json":
        return json.dumps({"title": "Solar Report", "author": "Ada", "sitename": "Example"})
    return "Solar adoption doubled."


def _client(status: int = 200, body: str = ARTICLE_HTML, calls: list | None = None) -> httpx.AsyncClient:
    def handler(request: httpx.Request) -> httpx.Response:
        if calls is not None:
            calls.append(str(request.url))
        return httpx.Response(status, text=body)

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


# ─── Web scraper ──────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_extract_content_with_metadata(monkeypatch):
    monkeypatch.setattr(trafilatura, "extract", _fake_extract)
    provider = WebScraperProvider(http_client=_client())

    article = await provider.extract_content("https://example.com/solar")

    assert article.text == "Solar adoption doubled."
    assert article.title == "Solar Report"
    assert article.author == "Ada"
    assert article.site_name == "Example"


@pytest.mark.asyncio
async def test_extract_content_without_text(monkeypatch):
    monkeypatch.setattr(trafilatura, "extract", _fake_extract)
    provider = WebScraperProvider(http_client=_client(body="<html></html>"))

    assert await provider.extract_content("https://example.com/empty") is None


@pytest.mark.asyncio
async def test_http_error_raises_scrape_error(monkeypatch):
    monkeypatch.setattr(trafilatura, "extract", _fake_extract)
    provider = WebScraperProvider(http_client=_client(status=404))

    with pytest.raises(ScrapeError, match="HTTP 404"):
        await provider.extract_content("https://example.com/missing")


@pytest.mark.asyncio
async def test_cache_skips_second_fetch(monkeypatch):
    monkeypatch.setattr(trafilatura, "extract", _fake_extract)
    calls: list[str] = []
    cache = MemoryCacheProvider()
    provider = WebScraperProvider(http_client=_client(calls=calls), cache=cache)

    first = await provider.extract_content("https://example.com/solar")
    second = await provider.extract_content("https://example.com/solar")

    assert first == second
    assert len(calls) == 1
    assert len(cache) == 1


@pytest.mark.asyncio
async def test_memory_cache_delete():
    cache = MemoryCacheProvider(max_size=2)
    await cache.set("a", 1)

    assert await cache.get("a") == 1
    await cache.delete("a")
    await cache.delete("never-set")
    assert await cache.get("a") is None


# ─── Deep research ────────────────────────────────────────────────


def _research_provider(client: MagicMock) -> OpenAIDeepResearchProvider:
    return OpenAIDeepResearchProvider(Settings(_env_file=None, openai_api_key="sk-test"), client=client)


def _message(text: str, *annotations: SimpleNamespace) -> SimpleNamespace:
    block = SimpleNamespace(type="output_text", text=text, annotations=list(annotations))
    return SimpleNamespace(type="message", content=[block])


@pytest.mark.asyncio
async def test_start_research_runs_in_background():
    client = MagicMock()
    client.responses.create = AsyncMock(return_value=SimpleNamespace(id="resp_1"))

    operation_id = await _research_provider(client).start_research("Solar growth")

    assert operation_id == "resp_1"
    kwargs = client.responses.create.await_args.kwargs
    assert kwargs["background"] is True
    assert kwargs["input"] == "Solar growth"


@pytest.mark.asyncio
async def test_get_result_pending_returns_none():
    client = MagicMock()
    client.responses.retrieve = AsyncMock(return_value=SimpleNamespace(status="in_progress", output=[]))

    assert await _research_provider(client).get_result("resp_1") is None


@pytest.mark.asyncio
async def test_get_result_collects_text_and_unique_citations():
    citation = SimpleNamespace(type="url_citation", url="https://a.example", title="A")
    client = MagicMock()
    client.responses.retrieve = AsyncMock(
        return_value=SimpleNamespace(
            status="completed",
            output=[
                SimpleNamespace(type="reasoning"),
                _message("Part one.", citation),
                _message("Part two.", citation),
            ],
        )
    )

    result = await _research_provider(client).get_result("resp_1")

    assert result.content == "Part one.\n\nPart two."
    assert [s.url for s in result.sources] == ["https://a.example"]
    assert result.word_count == 4


@pytest.mark.asyncio
@pytest.mark.parametrize("status", ["failed", "cancelled"])
async def test_get_result_terminal_failures(status):
    client = MagicMock()
    client.responses.retrieve = AsyncMock(return_value=SimpleNamespace(status=status, output=[]))

    with pytest.raises(ResearchError):
        await _research_provider(client).get_result("resp_1")


@pytest.mark.asyncio
async def test_start_research_api_error():
    client = MagicMock()
    client.responses.create = AsyncMock(
        side_effect=openai.APIError("boom", httpx.Request("POST", "https://api.example.com"), body=None)
    )

    with pytest.raises(ResearchError):
        await _research_provider(client).start_research("q")
