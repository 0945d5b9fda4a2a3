"""Pydantic request/response schemas for the Content Studio API.

Domain models (``Document``, ``Podcast``, ``Voiceover`` ...) are returned
as-is where their fields are safe to expose.  The schemas here cover
request bodies and the few responses that wrap, trim or combine models.

# ─── CONVENTIONS ─────────────────────────────────────────────────────
#
#   *Request   → JSON request body, validated by FastAPI (422 on error)
#   *Response  → response body built by a route
#
# Update requests use ``None`` for "leave unchanged"; services ignore
# ``None`` values, so routes pass ``model_dump(exclude_unset=True)``.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from src.models.infographic import (
    Infographic,
    InfographicFormat,
    InfographicSelection,
    InfographicStyle,
    InfographicType,
)
from src.models.podcast import Podcast, PodcastFormat, ScriptSegment
from src.models.user import User, UserRole
from src.models.voiceover import Voiceover


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str
    detail: str | None = None


class HealthCheck(BaseModel):
    status: str
    latency_ms: float | None = None
    error: str | None = None


class HealthResponse(BaseModel):
    status: str
    version: str
    storage: str
    sse_adapter: str
    sse_connections: int
    worker_running: bool = False
    active_jobs: int = 0
    checks: dict[str, HealthCheck] = Field(default_factory=dict)


class JobStartedResponse(BaseModel):
    job_id: str
    status: str


# ── Auth ─────────────────────────────────────────────────────────────


class SignupRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=320)
    name: str = Field(default="", max_length=200)
    password: str = Field(..., min_length=1, max_length=256)


class LoginRequest(BaseModel):
    email: str
    password: str


class UserResponse(BaseModel):
    """Public view of a user (no password hash)."""

    id: str
    email: str
    name: str
    role: UserRole

    @classmethod
    def from_user(cls, user: User) -> UserResponse:
        return cls(id=user.id, email=user.email, name=user.name, role=user.role)


# ── Documents ────────────────────────────────────────────────────────


class CreateDocumentRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=500)
    content: str
    metadata: dict[str, Any] | None = None


class UpdateDocumentRequest(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=500)
    content: str | None = None
    metadata: dict[str, Any] | None = None


class FromUrlRequest(BaseModel):
    url: str = Field(..., min_length=1, max_length=2048)
    title: str | None = Field(default=None, max_length=500)


class FromResearchRequest(BaseModel):
    query: str = Field(..., min_length=1, max_length=4000)
    title: str | None = Field(default=None, max_length=500)


class DocumentContentResponse(BaseModel):
    id: str
    content: str


# ── Research chat ────────────────────────────────────────────────────


class ChatMessageIn(BaseModel):
    role: str = Field(..., pattern="^(user|assistant)$")
    content: str


class ResearchChatRequest(BaseModel):
    messages: list[ChatMessageIn] = Field(..., min_length=1)


class ResearchChatResponse(BaseModel):
    reply: str


class SynthesizedQueryResponse(BaseModel):
    title: str
    query: str


# ── Podcasts ─────────────────────────────────────────────────────────


class CreatePodcastRequest(BaseModel):
    title: str | None = Field(default=None, max_length=500)
    description: str | None = None
    format: PodcastFormat = PodcastFormat.CONVERSATION
    source_document_ids: list[str] = Field(default_factory=list)
    host_voice: str | None = None
    co_host_voice: str | None = None
    prompt_instructions: str | None = None
    target_duration_minutes: int = Field(default=5, ge=1, le=60)
    tags: list[str] = Field(default_factory=list)


class UpdatePodcastRequest(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=500)
    description: str | None = None
    format: PodcastFormat | None = None
    source_document_ids: list[str] | None = None
    host_voice: str | None = None
    co_host_voice: str | None = None
    prompt_instructions: str | None = None
    target_duration_minutes: int | None = Field(default=None, ge=1, le=60)
    tags: list[str] | None = None


class SegmentIn(BaseModel):
    speaker: str = Field(..., min_length=1)
    line: str


class UpdateScriptRequest(BaseModel):
    segments: list[SegmentIn]
    summary: str | None = None


class GeneratePodcastRequest(BaseModel):
    prompt_instructions: str | None = None


class SaveChangesRequest(BaseModel):
    segments: list[SegmentIn] | None = None
    host_voice: str | None = None
    co_host_voice: str | None = None


class SaveChangesResponse(BaseModel):
    has_changes: bool
    podcast: Podcast


class AddCollaboratorRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=320)


def segments_to_models(segments: list[SegmentIn] | None) -> list[ScriptSegment] | None:
    if segments is None:
        return None
    return [ScriptSegment(speaker=s.speaker, line=s.line, index=i) for i, s in enumerate(segments)]


# ── Voiceovers ───────────────────────────────────────────────────────


class CreateVoiceoverRequest(BaseModel):
    title: str | None = Field(default=None, max_length=500)
    text: str = ""
    voice: str | None = None


class UpdateVoiceoverRequest(BaseModel):
    title: str | None = Field(default=None, max_length=500)
    text: str | None = None
    voice: str | None = None


class VoiceoverListResponse(BaseModel):
    items: list[Voiceover]
    total: int
    has_more: bool


# ── Infographics ─────────────────────────────────────────────────────


class CreateInfographicRequest(BaseModel):
    title: str | None = Field(default=None, max_length=500)
    infographic_type: InfographicType = InfographicType.KEY_TAKEAWAYS
    style_preset: InfographicStyle = InfographicStyle.MODERN_MINIMAL
    format: InfographicFormat = InfographicFormat.PORTRAIT
    prompt: str | None = None
    source_document_ids: list[str] = Field(default_factory=list)


class UpdateInfographicRequest(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=500)
    infographic_type: InfographicType | None = None
    style_preset: InfographicStyle | None = None
    format: InfographicFormat | None = None
    prompt: str | None = None
    source_document_ids: list[str] | None = None


class InfographicListResponse(BaseModel):
    items: list[Infographic]
    total: int
    has_more: bool


class InfographicDetailResponse(BaseModel):
    infographic: Infographic
    selections: list[InfographicSelection]


class AddSelectionRequest(BaseModel):
    document_id: str
    selected_text: str
    start_offset: int | None = Field(default=None, ge=0)
    end_offset: int | None = Field(default=None, ge=0)


class UpdateSelectionRequest(BaseModel):
    selected_text: str | None = None
    start_offset: int | None = Field(default=None, ge=0)
    end_offset: int | None = Field(default=None, ge=0)


class SelectionResponse(BaseModel):
    selection: InfographicSelection
    warning: str | None = None


class ReorderSelectionsRequest(BaseModel):
    ordered_ids: list[str]


class GenerateInfographicRequest(BaseModel):
    feedback: str | None = None
