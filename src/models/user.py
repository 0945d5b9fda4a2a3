"""User account model."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class UserRole(str, Enum):
    USER = "user"
    ADMIN = "admin"


class User(BaseModel):
    """A registered account.  ``password_hash`` never leaves the service layer."""

    model_config = ConfigDict(frozen=True)

    id: str
    email: str
    name: str
    role: UserRole = UserRole.USER
    password_hash: str = Field(default="", repr=False)
    created_at: datetime

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
