"""LLM provider adapters.

Two concrete implementations of ILLMProvider (src/interfaces/llm_provider.py):
    - OpenAILLMProvider    (also covers OpenAI-compatible APIs via base_url)
    - AnthropicLLMProvider (Claude via the Messages API)

At startup, main.py picks the first provider with a configured API key and
stores it on ``app.state`` for the services that need text generation.
"""

from src.providers.llm.anthropic_provider import AnthropicLLMProvider
from src.providers.llm.openai_provider import OpenAILLMProvider

__all__ = ["OpenAILLMProvider", "AnthropicLLMProvider"]
