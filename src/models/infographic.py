"""Infographic domain models: image generation from selected document text."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

UNTITLED_INFOGRAPHIC = "Untitled Infographic"


class InfographicStatus(str, Enum):
    DRAFTING = "drafting"
    GENERATING = "generating"
    READY = "ready"
    FAILED = "failed"


class InfographicType(str, Enum):
    TIMELINE = "timeline"
    COMPARISON = "comparison"
    STATS_DASHBOARD = "stats_dashboard"
    KEY_TAKEAWAYS = "key_takeaways"


class InfographicStyle(str, Enum):
    MODERN_MINIMAL = "modern_minimal"
    BOLD_COLORFUL = "bold_colorful"
    CORPORATE = "corporate"
    PLAYFUL = "playful"
    DARK_MODE = "dark_mode"
    EDITORIAL = "editorial"


class InfographicFormat(str, Enum):
    PORTRAIT = "portrait"
    SQUARE = "square"
    LANDSCAPE = "landscape"
    OG_CARD = "og_card"


class InfographicSelection(BaseModel):
    """A highlighted excerpt from a source document."""

    model_config = ConfigDict(frozen=True)

    id: str
    infographic_id: str
    document_id: str
    selected_text: str
    start_offset: int | None = None
    end_offset: int | None = None
    order_index: int = 0
    created_at: datetime


class InfographicVersion(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    infographic_id: str
    version_number: int
    prompt: str | None = None
    infographic_type: InfographicType
    style_preset: InfographicStyle
    format: InfographicFormat
    image_key: str
    created_at: datetime


class Infographic(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    title: str = UNTITLED_INFOGRAPHIC
    status: InfographicStatus = InfographicStatus.DRAFTING
    infographic_type: InfographicType = InfographicType.KEY_TAKEAWAYS
    style_preset: InfographicStyle = InfographicStyle.MODERN_MINIMAL
    format: InfographicFormat = InfographicFormat.PORTRAIT
    prompt: str | None = None
    feedback_instructions: str | None = None
    source_document_ids: list[str] = Field(default_factory=list)
    image_key: str | None = None
    image_url: str | None = None
    error_message: str | None = None
    generation_context: dict[str, Any] | None = None
    approved_by: str | None = None  # admin who signed off
    approved_at: datetime | None = None
    created_by: str
    created_at: datetime
    updated_at: datetime


class ExtractedStatistic(BaseModel):
    model_config = ConfigDict(frozen=True)

    label: str
    value: str


class ExtractedContent(BaseModel):
    """LLM-extracted facts used to ground an infographic prompt."""

    model_config = ConfigDict(frozen=True)

    summary: str = ""
    key_points: list[str] = Field(default_factory=list)
    statistics: list[ExtractedStatistic] = Field(default_factory=list)
