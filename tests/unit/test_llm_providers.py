"""Unit tests for the OpenAI and Anthropic LLM adapters with mocked SDK clients."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import anthropic
import httpx
import openai
import pytest

from src.config.settings import Settings
from src.interfaces.llm_provider import ChatMessage
from src.providers.llm.anthropic_provider import AnthropicLLMProvider
from src.providers.llm.openai_provider import OpenAILLMProvider
from src.utils.errors import LLMError

_REQUEST = httpx.Request("POST", "https://api.example.com/v1")


def _settings(**overrides) -> Settings:
    defaults = {"openai_api_key": "sk-test", "anthropic_api_key": "ak-test"}
    defaults.update(overrides)
    return Settings(_env_file=None, **defaults)


def _openai_client(content: str | None) -> MagicMock:
    client = MagicMock()
    response = SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))],
        usage=SimpleNamespace(total_tokens=42),
    )
    client.chat.completions.create = AsyncMock(return_value=response)
    return client


def _anthropic_client(*blocks: SimpleNamespace) -> MagicMock:
    client = MagicMock()
    response = SimpleNamespace(
        content=list(blocks),
        usage=SimpleNamespace(input_tokens=10, output_tokens=5),
    )
    client.messages.create = AsyncMock(return_value=response)
    return client


# ─── OpenAI ───────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_openai_complete_json_mode():
    client = _openai_client('{"ok": true}')
    provider = OpenAILLMProvider(_settings(), client=client)

    result = await provider.complete("system", "user", json_mode=True)

    assert result == '{"ok": true}'
    kwargs = client.chat.completions.create.await_args.kwargs
    assert kwargs["response_format"] == {"type": "json_object"}
    assert kwargs["messages"][0] == {"role": "system", "content": "system"}
    assert provider.get_provider_name() == "openai"


@pytest.mark.asyncio
async def test_openai_chat_forwards_history():
    client = _openai_client("Tell me more.")
    provider = OpenAILLMProvider(_settings(), client=client)

    await provider.chat("be helpful", [ChatMessage("user", "hi"), ChatMessage("assistant", "hello")])

    messages = client.chat.completions.create.await_args.kwargs["messages"]
    assert [m["role"] for m in messages] == ["system", "user", "assistant"]
    assert "response_format" not in client.chat.completions.create.await_args.kwargs


@pytest.mark.asyncio
async def test_openai_empty_response():
    provider = OpenAILLMProvider(_settings(), client=_openai_client(""))
    with pytest.raises(LLMError):
        await provider.complete("s", "u")


@pytest.mark.asyncio
async def test_openai_api_error_is_wrapped():
    client = MagicMock()
    client.chat.completions.create = AsyncMock(side_effect=openai.APIError("boom", _REQUEST, body=None))
    provider = OpenAILLMProvider(_settings(), client=client)

    with pytest.raises(LLMError) as exc_info:
        await provider.complete("s", "u")
    assert exc_info.value.provider_name == "openai"


def test_openai_compatible_label():
    provider = OpenAILLMProvider(_settings(openai_base_url="http://localhost:8001/v1"), client=MagicMock())
    assert provider.get_provider_name() == "openai-compatible"
    assert OpenAILLMProvider(_settings(openai_api_key=""), client=MagicMock()).is_available() is False


# ─── Anthropic ────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_anthropic_joins_text_blocks():
    client = _anthropic_client(
        SimpleNamespace(type="text", text="first"),
        SimpleNamespace(type="tool_use", text=None),
        SimpleNamespace(type="text", text="second"),
    )
    provider = AnthropicLLMProvider(_settings(), client=client)

    assert await provider.complete("s", "u") == "first\nsecond"


@pytest.mark.asyncio
async def test_anthropic_json_mode_extends_system_prompt():
    client = _anthropic_client(SimpleNamespace(type="text", text="{}"))
    provider = AnthropicLLMProvider(_settings(), client=client)

    await provider.complete("Write JSON.", "u", json_mode=True)

    system = client.messages.create.await_args.kwargs["system"]
    assert system.startswith("Write JSON.")
    assert "single valid JSON object" in system


@pytest.mark.asyncio
async def test_anthropic_no_text():
    provider = AnthropicLLMProvider(_settings(), client=_anthropic_client())
    with pytest.raises(LLMError):
        await provider.complete("s", "u")


@pytest.mark.asyncio
async def test_anthropic_api_error_is_wrapped():
    client = MagicMock()
    client.messages.create = AsyncMock(side_effect=anthropic.APIError("boom", _REQUEST, body=None))
    provider = AnthropicLLMProvider(_settings(), client=client)

    with pytest.raises(LLMError) as exc_info:
        await provider.chat("s", [ChatMessage("user", "hi")])
    assert exc_info.value.provider_name == "anthropic"
