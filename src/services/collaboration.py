"""Collaborator invites and approvals shared by podcasts and voiceovers.

Each service owns one :class:`CollaborationManager` bound to its entity
type and its own "not a collaborator" error.  Owner approval
lives on the entity row, so the services handle that half themselves.
"""

from __future__ import annotations

import structlog

from src.interfaces.collaborator_provider import ICollaboratorProvider
from src.interfaces.user_provider import IUserProvider
from src.models.collaborator import Collaborator, CollaboratorEntity
from src.models.user import User
from src.utils.errors import (
    CollaboratorAlreadyExists,
    CollaboratorNotFound,
    ForbiddenError,
    ValidationError,
)
from src.utils.ids import new_id, utc_now

logger = structlog.get_logger(logger_name=__name__)


class CollaborationManager:
    def __init__(
        self,
        entity_type: CollaboratorEntity,
        collaborators: ICollaboratorProvider,
        users: IUserProvider,
        not_collaborator_error: type[ForbiddenError],
    ) -> None:
        self._entity_type = entity_type
        self._collaborators = collaborators
        self._users = users
        self._not_collaborator = not_collaborator_error

    async def list_collaborators(self, entity_id: str) -> list[Collaborator]:
        return await self._collaborators.list_for_entity(self._entity_type, entity_id)

    async def find_for_user(self, entity_id: str, user_id: str) -> Collaborator | None:
        return await self._collaborators.find_by_user(self._entity_type, entity_id, user_id)

    async def entity_ids_for_user(self, user_id: str) -> list[str]:
        return await self._collaborators.list_entity_ids_for_user(self._entity_type, user_id)

    async def audience(self, entity_id: str, owner_id: str) -> list[str]:
        """Owner plus every registered collaborator, for change notifications."""
        rows = await self.list_collaborators(entity_id)
        return [owner_id, *(c.user_id for c in rows if c.user_id)]

    async def add(self, entity_id: str, owner: User, email: str) -> Collaborator:
        email = email.strip().lower()
        if "@" not in email:
            raise ValidationError(message="A valid email address is required")
        if email == owner.email.lower():
            raise ValidationError(message="You cannot add yourself as a collaborator")
        if await self._collaborators.find_by_email(self._entity_type, entity_id, email):
            raise CollaboratorAlreadyExists(message=f"{email} is already a collaborator")

        invitee = await self._users.get_user_by_email(email)
        collaborator = Collaborator(
            id=new_id("col"),
            entity_type=self._entity_type,
            entity_id=entity_id,
            user_id=invitee.id if invitee else None,
            email=email,
            added_at=utc_now(),
            added_by=owner.id,
        )
        await self._collaborators.add_collaborator(collaborator)
        logger.info(
            "collaborator_added",
            entity_type=self._entity_type.value,
            entity_id=entity_id,
            pending=invitee is None,
        )
        return collaborator

    async def remove(self, entity_id: str, collaborator_id: str) -> None:
        collaborator = await self._collaborators.get_collaborator(collaborator_id)
        if collaborator is None or collaborator.entity_id != entity_id:
            raise CollaboratorNotFound(collaborator_id)
        await self._collaborators.remove_collaborator(collaborator_id)
        logger.info("collaborator_removed", entity_id=entity_id, collaborator_id=collaborator_id)

    async def set_approval(self, entity_id: str, user: User, approved: bool) -> Collaborator:
        collaborator = await self.find_for_user(entity_id, user.id)
        if collaborator is None:
            raise self._not_collaborator(
                message=f"You are not a collaborator on {self._entity_type.value} {entity_id}"
            )
        return await self._collaborators.update_collaborator(
            collaborator.model_copy(update={
                "has_approved": approved,
                "approved_at": utc_now() if approved else None,
            })
        )

    async def reset_approvals(self, entity_id: str) -> None:
        await self._collaborators.reset_approvals(self._entity_type, entity_id)

    async def delete_all(self, entity_id: str) -> None:
        await self._collaborators.delete_for_entity(self._entity_type, entity_id)
