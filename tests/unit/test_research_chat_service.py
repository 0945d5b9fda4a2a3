"""Unit tests for the research-scoping chat."""

from __future__ import annotations

import json

import pytest

from src.interfaces.llm_provider import ChatMessage
from src.models.document import DocumentSource, DocumentStatus
from src.models.job import JobType
from src.services.research_chat_service import MAX_HISTORY_MESSAGES, ResearchChatService
from src.utils.errors import LLMError, ValidationError


@pytest.fixture
def chat_service(mock_llm, document_service) -> ResearchChatService:
    return ResearchChatService(mock_llm, document_service)


def _conversation(n: int = 2) -> list[ChatMessage]:
    roles = ("user", "assistant")
    return [ChatMessage(role=roles[i % 2], content=f"message {i}") for i in range(n)]


@pytest.mark.asyncio
async def test_chat_returns_stripped_reply(chat_service, mock_llm):
    mock_llm.chat.return_value = "  What time period matters most?  \n"

    reply = await chat_service.chat(_conversation())

    assert reply == "What time period matters most?"


@pytest.mark.asyncio
async def test_chat_trims_history(chat_service, mock_llm):
    await chat_service.chat(_conversation(MAX_HISTORY_MESSAGES + 5))

    history = mock_llm.chat.await_args.args[1]
    assert len(history) == MAX_HISTORY_MESSAGES
    assert history[-1].content == f"message {MAX_HISTORY_MESSAGES + 4}"


@pytest.mark.asyncio
async def test_chat_requires_a_message(chat_service):
    with pytest.raises(ValidationError):
        await chat_service.chat([ChatMessage(role="user", content="   ")])


@pytest.mark.asyncio
async def test_synthesize_query(chat_service, mock_llm):
    mock_llm.complete.return_value = json.dumps(
        {"title": "Rooftop solar in Europe", "query": "Research rooftop solar growth in Europe since 2015."}
    )

    brief = await chat_service.synthesize_query(_conversation())

    assert brief == {
        "title": "Rooftop solar in Europe",
        "query": "Research rooftop solar growth in Europe since 2015.",
    }
    assert "USER: message 0" in mock_llm.complete.await_args.args[1]


@pytest.mark.asyncio
async def test_synthesize_title_falls_back_to_query(chat_service, mock_llm):
    query = "Research " + "very " * 30 + "long topics."
    mock_llm.complete.return_value = json.dumps({"query": query})

    brief = await chat_service.synthesize_query(_conversation())

    assert brief["title"] == query[:80]


@pytest.mark.asyncio
async def test_synthesize_empty_query(chat_service, mock_llm):
    mock_llm.complete.return_value = json.dumps({"title": "Nothing", "query": "  "})
    with pytest.raises(LLMError):
        await chat_service.synthesize_query(_conversation())


@pytest.mark.asyncio
async def test_start_research_creates_document(chat_service, mock_llm, queue, owner):
    mock_llm.complete.return_value = json.dumps({"title": "Solar", "query": "Research solar growth."})

    document = await chat_service.start_research(owner, _conversation())

    assert document.title == "Solar"
    assert document.source == DocumentSource.RESEARCH
    assert document.status == DocumentStatus.PROCESSING
    assert document.research_config.query == "Research solar growth."
    job = await queue.find_pending_job_for_document(document.id)
    assert job.type == JobType.PROCESS_RESEARCH
