"""Dependency helpers that resolve services and the current user from ``app.state``.

# ─── HOW ROUTES GET THEIR COLLABORATORS ──────────────────────────────
#
#   1. main.py stores every built component on ``app.state``
#   2. A helper below reads one component off ``request.app.state``
#   3. ``XDep = Annotated[X, Depends(helper)]`` is declared as a route param
#
# ``CurrentUserDep`` resolves the ``studio_session`` cookie through
# ``AuthService.resolve_session`` and raises ``AuthenticationError`` (401)
# when the cookie is missing, forged or expired.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from src.models.user import User
from src.pipeline.job_queue import JobQueue
from src.realtime.sse_manager import SSEManager
from src.services.auth_service import AuthService
from src.services.document_service import DocumentService
from src.services.infographic_service import InfographicService
from src.services.podcast_service import PodcastService
from src.services.research_chat_service import ResearchChatService
from src.services.voiceover_service import VoiceoverService
from src.utils.errors import AuthenticationError, ConfigurationError
from src.utils.security import SESSION_COOKIE_NAME


def _get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def _get_document_service(request: Request) -> DocumentService:
    return request.app.state.document_service


def _get_podcast_service(request: Request) -> PodcastService:
    return request.app.state.podcast_service


def _get_voiceover_service(request: Request) -> VoiceoverService:
    return request.app.state.voiceover_service


def _get_infographic_service(request: Request) -> InfographicService:
    return request.app.state.infographic_service


def _get_research_chat_service(request: Request) -> ResearchChatService:
    service = getattr(request.app.state, "research_chat_service", None)
    if service is None:
        raise ConfigurationError(message="Research chat requires an LLM provider")
    return service


def _get_sse_manager(request: Request) -> SSEManager:
    return request.app.state.sse_manager


def _get_job_queue(request: Request) -> JobQueue:
    return request.app.state.job_queue


async def get_current_user(request: Request, auth: Annotated[AuthService, Depends(_get_auth_service)]) -> User:
    """Return the signed-in user or raise ``AuthenticationError``."""
    user = await auth.resolve_session(request.cookies.get(SESSION_COOKIE_NAME))
    if user is None:
        raise AuthenticationError(message="Not signed in")
    return user


AuthServiceDep = Annotated[AuthService, Depends(_get_auth_service)]
DocumentServiceDep = Annotated[DocumentService, Depends(_get_document_service)]
PodcastServiceDep = Annotated[PodcastService, Depends(_get_podcast_service)]
VoiceoverServiceDep = Annotated[VoiceoverService, Depends(_get_voiceover_service)]
InfographicServiceDep = Annotated[InfographicService, Depends(_get_infographic_service)]
ResearchChatServiceDep = Annotated[ResearchChatService, Depends(_get_research_chat_service)]
SSEManagerDep = Annotated[SSEManager, Depends(_get_sse_manager)]
JobQueueDep = Annotated[JobQueue, Depends(_get_job_queue)]
CurrentUserDep = Annotated[User, Depends(get_current_user)]
