"""Abstract base class for user account persistence."""

from __future__ import annotations

from abc import ABC, abstractmethod

from src.models.user import User


# Concrete implementation: SQLiteUserProvider (src/providers/user/)
class IUserProvider(ABC):
    @abstractmethod
    async def initialize(self) -> None:
        """Create tables/indices if they don't exist.  Called at startup."""

    @abstractmethod
    async def insert_user(self, user: User) -> User:
        """Persist a new user.  Emails are stored lowercased."""

    @abstractmethod
    async def get_user(self, user_id: str) -> User | None: ...

    @abstractmethod
    async def get_user_by_email(self, email: str) -> User | None: ...

    @abstractmethod
    def get_provider_name(self) -> str: ...
