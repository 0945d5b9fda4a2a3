"""Abstract base class for collaborator persistence (podcasts and voiceovers)."""

from __future__ import annotations

from abc import ABC, abstractmethod

from src.models.collaborator import Collaborator, CollaboratorEntity


# Concrete implementation: SQLiteCollaboratorProvider (src/providers/collaborator/)
class ICollaboratorProvider(ABC):
    """Contract for collaborator rows.

    Rows are unique per ``(entity_type, entity_id, email)``.
    """

    @abstractmethod
    async def initialize(self) -> None: ...

    @abstractmethod
    def get_provider_name(self) -> str: ...

    @abstractmethod
    async def add_collaborator(self, collaborator: Collaborator) -> Collaborator: ...

    @abstractmethod
    async def get_collaborator(self, collaborator_id: str) -> Collaborator | None: ...

    @abstractmethod
    async def find_by_email(
        self, entity_type: CollaboratorEntity, entity_id: str, email: str
    ) -> Collaborator | None: ...

    @abstractmethod
    async def find_by_user(
        self, entity_type: CollaboratorEntity, entity_id: str, user_id: str
    ) -> Collaborator | None: ...

    @abstractmethod
    async def list_for_entity(
        self, entity_type: CollaboratorEntity, entity_id: str
    ) -> list[Collaborator]:
        """Return collaborators in the order they were added."""

    @abstractmethod
    async def list_entity_ids_for_user(
        self, entity_type: CollaboratorEntity, user_id: str
    ) -> list[str]:
        """Return ids of entities the user collaborates on."""

    @abstractmethod
    async def update_collaborator(self, collaborator: Collaborator) -> Collaborator: ...

    @abstractmethod
    async def remove_collaborator(self, collaborator_id: str) -> bool: ...

    @abstractmethod
    async def delete_for_entity(self, entity_type: CollaboratorEntity, entity_id: str) -> int: ...

    @abstractmethod
    async def reset_approvals(self, entity_type: CollaboratorEntity, entity_id: str) -> None:
        """Clear ``has_approved`` on every collaborator of the entity."""

    @abstractmethod
    async def claim_pending(self, email: str, user_id: str) -> int:
        """Attach *user_id* to every pending invite for *email*.

        Returns the number of rows claimed.
        """
