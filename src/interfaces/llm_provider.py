"""Abstract base class for LLM service providers.

Defines the contract for the large-language-model backend used to write
podcast scripts, extract infographic key points, title content and drive
the research chat assistant.  Implementations wrap the OpenAI or Anthropic
SDKs; every call-site stays provider-agnostic.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class ChatMessage:
    """One turn of a chat conversation.

    Attributes
    ----------
    role:
        ``"user"`` or ``"assistant"``.  System instructions are passed
        separately to :meth:`ILLMProvider.chat`.
    content:
        The message text.
    """

    role: str
    content: str


# Concrete implementations: OpenAILLMProvider, AnthropicLLMProvider
# Located in: src/providers/llm/
class ILLMProvider(ABC):
    """Contract for LLM services used throughout Content Studio."""

    @abstractmethod
    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.3,
        max_tokens: int = 4000,
        json_mode: bool = False,
    ) -> str:
        """Generate a text completion from the model.

        Parameters
        ----------
        system_prompt:
            The system/instruction message that sets the model's behaviour.
        user_prompt:
            The user-facing prompt containing the actual request or data.
        temperature:
            Sampling temperature (0.0 = deterministic, 1.0 = creative).
        max_tokens:
            Upper bound on the number of tokens in the response.
        json_mode:
            Ask the provider to return a single JSON object.  Callers still
            parse defensively with :func:`parse_json_response`.

        Returns
        -------
        str
            The model's text response.

        Raises
        ------
        src.utils.errors.LLMError
            If the API call fails or returns an empty response.
        """

    @abstractmethod
    async def chat(
        self,
        system_prompt: str,
        messages: list[ChatMessage],
        temperature: float = 0.7,
        max_tokens: int = 2000,
    ) -> str:
        """Continue a multi-turn conversation and return the assistant reply.

        Raises
        ------
        src.utils.errors.LLMError
            If the API call fails or returns an empty response.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this LLM provider."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if credentials are configured (no network call)."""
