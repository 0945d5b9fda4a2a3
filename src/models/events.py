"""Server-sent event payloads pushed to connected clients."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from src.utils.ids import utc_now


class EntityType(str, Enum):
    DOCUMENT = "document"
    PODCAST = "podcast"
    VOICEOVER = "voiceover"
    INFOGRAPHIC = "infographic"


class ChangeType(str, Enum):
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


class EntityChangeEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: str = "entity_change"
    entity_type: EntityType
    change_type: ChangeType
    entity_id: str
    user_id: str
    timestamp: datetime = Field(default_factory=utc_now)


class JobCompletionEvent(BaseModel):
    """Emitted once per finished job.

    ``type`` is one of ``job_completion``, ``voiceover_job_completion``,
    ``document_job_completion`` or ``infographic_job_completion``.
    """

    model_config = ConfigDict(frozen=True)

    type: str
    job_id: str
    job_type: str
    status: str
    entity_id: str | None = None
    error: str | None = None


def to_wire(event: BaseModel | dict[str, Any]) -> dict[str, Any]:
    """Return the JSON-ready dict for an event model or raw dict."""
    if isinstance(event, BaseModel):
        return event.model_dump(mode="json")
    return event
