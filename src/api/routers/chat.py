"""Research chat endpoints: refine a topic, distil it, start deep research."""

from __future__ import annotations

from fastapi import APIRouter, status

from src.api.dependencies import CurrentUserDep, ResearchChatServiceDep
from src.api.schemas import (
    ChatMessageIn,
    ResearchChatRequest,
    ResearchChatResponse,
    SynthesizedQueryResponse,
)
from src.interfaces.llm_provider import ChatMessage
from src.models.document import Document

router = APIRouter(prefix="/api/chat/research", tags=["research-chat"])


def _to_messages(messages: list[ChatMessageIn]) -> list[ChatMessage]:
    return [ChatMessage(role=m.role, content=m.content) for m in messages]


@router.post("", response_model=ResearchChatResponse)
async def research_chat(
    body: ResearchChatRequest, user: CurrentUserDep, chat: ResearchChatServiceDep
) -> ResearchChatResponse:
    reply = await chat.chat(_to_messages(body.messages))
    return ResearchChatResponse(reply=reply)


@router.post("/synthesize", response_model=SynthesizedQueryResponse)
async def synthesize_query(
    body: ResearchChatRequest, user: CurrentUserDep, chat: ResearchChatServiceDep
) -> SynthesizedQueryResponse:
    brief = await chat.synthesize_query(_to_messages(body.messages))
    return SynthesizedQueryResponse(**brief)


@router.post("/start", response_model=Document, status_code=status.HTTP_202_ACCEPTED)
async def start_research(body: ResearchChatRequest, user: CurrentUserDep, chat: ResearchChatServiceDep) -> Document:
    return await chat.start_research(user, _to_messages(body.messages))
