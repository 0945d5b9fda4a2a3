"""Conversational assistant that helps a user scope a deep-research query.

The chat is stateless on the server: the client sends the whole
conversation each turn and only the most recent messages are forwarded to
the LLM.  When the user is happy, ``synthesize_query`` condenses the
conversation into a title and a single research brief, and
``start_research`` hands that brief to :class:`DocumentService`.
"""

from __future__ import annotations

import structlog

from src.interfaces.llm_provider import ChatMessage, ILLMProvider
from src.models.document import Document
from src.models.user import User
from src.services.document_service import DocumentService
from src.utils.errors import LLMError, ValidationError
from src.utils.json_response import parse_json_response

logger = structlog.get_logger(logger_name=__name__)

MAX_HISTORY_MESSAGES = 20

CHAT_SYSTEM_PROMPT = (
    "You are a research assistant helping a user define a topic for an in-depth "
    "web research report. Ask short clarifying questions about scope, audience, "
    "time period and the angle they care about. Suggest sharper framings when "
    "the topic is vague. Keep replies under 120 words and never write the "
    "report yourself."
)

SYNTHESIZE_SYSTEM_PROMPT = (
    "You turn a conversation between a user and a research assistant into a "
    "research brief. Respond with a JSON object only: "
    '{"title": "<short document title, max 80 chars>", '
    '"query": "<a self-contained research instruction of 2-5 sentences>"}'
)


def _trim(messages: list[ChatMessage]) -> list[ChatMessage]:
    return [m for m in messages if m.content.strip()][-MAX_HISTORY_MESSAGES:]


class ResearchChatService:
    def __init__(self, llm: ILLMProvider, documents: DocumentService) -> None:
        self._llm = llm
        self._documents = documents

    async def chat(self, messages: list[ChatMessage]) -> str:
        history = _trim(messages)
        if not history:
            raise ValidationError(message="At least one message is required")
        reply = await self._llm.chat(CHAT_SYSTEM_PROMPT, history, temperature=0.7, max_tokens=600)
        logger.debug("research_chat_reply", turns=len(history), chars=len(reply))
        return reply.strip()

    async def synthesize_query(self, messages: list[ChatMessage]) -> dict[str, str]:
        """Return ``{"title", "query"}`` distilled from the conversation.

        Raises
        ------
        LLMError
            If the model's answer is not a JSON object with a non-empty query.
        """
        history = _trim(messages)
        if not history:
            raise ValidationError(message="At least one message is required")
        transcript = "\n".join(f"{m.role.upper()}: {m.content}" for m in history)
        raw = await self._llm.complete(
            SYNTHESIZE_SYSTEM_PROMPT,
            f"Conversation:\n{transcript}",
            temperature=0.2,
            max_tokens=800,
            json_mode=True,
        )
        data = parse_json_response(raw)
        query = str(data.get("query") or "").strip()
        if not query:
            raise LLMError(message="Synthesized research query was empty")
        title = str(data.get("title") or "").strip() or query[:80]
        return {"title": title[:200], "query": query}

    async def start_research(self, user: User, messages: list[ChatMessage]) -> Document:
        brief = await self.synthesize_query(messages)
        document = await self._documents.create_from_research(user, brief["query"], title=brief["title"])
        logger.info("research_started_from_chat", document_id=document.id, user_id=user.id)
        return document
