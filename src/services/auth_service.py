"""Account signup, login and session resolution."""

from __future__ import annotations

import structlog

from src.interfaces.collaborator_provider import ICollaboratorProvider
from src.interfaces.user_provider import IUserProvider
from src.models.user import User, UserRole
from src.utils.errors import AuthenticationError, EmailAlreadyRegistered, ValidationError
from src.utils.ids import new_id, utc_now
from src.utils.security import (
    create_session_token,
    hash_password,
    verify_password,
    verify_session_token,
)

logger = structlog.get_logger(logger_name=__name__)

MIN_PASSWORD_LENGTH = 8


class AuthService:
    def __init__(
        self,
        users: IUserProvider,
        collaborators: ICollaboratorProvider,
        secret: str,
        session_ttl_hours: int = 168,
    ) -> None:
        self._users = users
        self._collaborators = collaborators
        self._secret = secret
        self._ttl_seconds = session_ttl_hours * 3600

    @property
    def session_ttl_seconds(self) -> int:
        return self._ttl_seconds

    async def signup(
        self,
        email: str,
        name: str,
        password: str,
        role: UserRole = UserRole.USER,
    ) -> User:
        email = email.strip().lower()
        if "@" not in email:
            raise ValidationError(message="A valid email address is required")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(
                message=f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
            )
        if await self._users.get_user_by_email(email) is not None:
            raise EmailAlreadyRegistered(message=f"An account already exists for {email}")

        user = User(
            id=new_id("usr"),
            email=email,
            name=name.strip() or email.split("@")[0],
            role=role,
            password_hash=hash_password(password),
            created_at=utc_now(),
        )
        await self._users.insert_user(user)
        claimed = await self._collaborators.claim_pending(email, user.id)
        logger.info("user_signed_up", user_id=user.id, claimed_invites=claimed)
        return user

    async def login(self, email: str, password: str) -> User:
        user = await self._users.get_user_by_email(email.strip().lower())
        if user is None or not verify_password(password, user.password_hash):
            logger.info("login_failed", email=email.strip().lower())
            raise AuthenticationError(message="Invalid email or password")
        logger.info("user_logged_in", user_id=user.id)
        return user

    def issue_token(self, user: User) -> str:
        return create_session_token(user.id, self._secret)

    async def resolve_session(self, token: str | None) -> User | None:
        """Return the user a session cookie belongs to, or ``None``."""
        user_id = verify_session_token(token, self._secret, self._ttl_seconds)
        if user_id is None:
            return None
        return await self._users.get_user(user_id)
