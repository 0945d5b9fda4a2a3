"""Collaborator model shared by podcasts and voiceovers.

A collaborator is invited by email.  Until the invitee signs up the row has
no ``user_id``; signup claims every pending invite for that email.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict


class CollaboratorEntity(str, Enum):
    PODCAST = "podcast"
    VOICEOVER = "voiceover"


class Collaborator(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    entity_type: CollaboratorEntity
    entity_id: str
    user_id: str | None = None
    email: str
    has_approved: bool = False
    approved_at: datetime | None = None
    added_at: datetime
    added_by: str

    @property
    def is_pending(self) -> bool:
        return self.user_id is None
