"""Podcast domain models: episodes, script segments, versions, collaborators.

# ─── ARCHITECTURE ROLE ───────────────────────────────────────────────
#
# Layer: Models.
#
# The ``Podcast`` row is the working copy: current status, segments and
# audio.  Every script generation or segment edit also inserts a
# ``ScriptVersion`` snapshot; exactly one version per podcast is active.
#
# Status lifecycle (see src/services/podcasts/state_machine.py):
#
#   drafting -> generating_script -> script_ready -> generating_audio -> ready
#                      |                                   |
#                      +-------------> failed <------------+
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_TARGET_DURATION_MINUTES = 5


class PodcastFormat(str, Enum):
    VOICE_OVER = "voice_over"
    CONVERSATION = "conversation"


class PodcastStatus(str, Enum):
    DRAFTING = "drafting"
    GENERATING_SCRIPT = "generating_script"
    SCRIPT_READY = "script_ready"
    GENERATING_AUDIO = "generating_audio"
    READY = "ready"
    FAILED = "failed"


class ScriptSegment(BaseModel):
    """A single spoken line of dialogue."""

    model_config = ConfigDict(frozen=True)

    speaker: str
    line: str
    index: int = 0


class Podcast(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    description: str | None = None
    format: PodcastFormat = PodcastFormat.CONVERSATION
    host_voice: str | None = None
    host_voice_name: str | None = None
    co_host_voice: str | None = None
    co_host_voice_name: str | None = None
    prompt_instructions: str | None = None
    target_duration_minutes: int = Field(default=DEFAULT_TARGET_DURATION_MINUTES, ge=1, le=60)
    tags: list[str] = Field(default_factory=list)
    source_document_ids: list[str] = Field(default_factory=list)
    generation_context: dict[str, Any] | None = None
    status: PodcastStatus = PodcastStatus.DRAFTING
    segments: list[ScriptSegment] = Field(default_factory=list)
    summary: str | None = None
    generation_prompt: str | None = None
    audio_url: str | None = None
    duration: int | None = None
    error_message: str | None = None
    owner_has_approved: bool = False
    created_by: str
    created_at: datetime
    updated_at: datetime


class ScriptVersion(BaseModel):
    """Point-in-time snapshot of a podcast script."""

    model_config = ConfigDict(frozen=True)

    id: str
    podcast_id: str
    version: int
    is_active: bool = True
    status: PodcastStatus = PodcastStatus.SCRIPT_READY
    segments: list[ScriptSegment] = Field(default_factory=list)
    summary: str | None = None
    generation_prompt: str | None = None
    audio_url: str | None = None
    duration: int | None = None
    error_message: str | None = None
    created_by: str | None = None
    created_at: datetime


class PodcastPage(BaseModel):
    model_config = ConfigDict(frozen=True)

    items: list[Podcast]
    total: int
    has_more: bool
