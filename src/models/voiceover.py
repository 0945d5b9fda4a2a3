"""Voiceover domain model: a single-voice narration of free text.

Flow: drafting -> generating_audio -> ready (or failed).
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict


class VoiceoverStatus(str, Enum):
    DRAFTING = "drafting"
    GENERATING_AUDIO = "generating_audio"
    READY = "ready"
    FAILED = "failed"


class Voiceover(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    text: str = ""
    voice: str
    voice_name: str | None = None
    audio_url: str | None = None
    duration: int | None = None
    status: VoiceoverStatus = VoiceoverStatus.DRAFTING
    error_message: str | None = None
    owner_has_approved: bool = False
    created_by: str
    created_at: datetime
    updated_at: datetime
