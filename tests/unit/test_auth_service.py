"""Unit tests for AuthService signup, login and session resolution."""

from __future__ import annotations

import pytest

from src.models.collaborator import CollaboratorEntity
from src.models.user import UserRole
from src.services.auth_service import AuthService
from src.services.collaboration import CollaborationManager
from src.utils.errors import (
    AuthenticationError,
    EmailAlreadyRegistered,
    NotPodcastCollaborator,
    ValidationError,
)

SECRET = "test-secret"


@pytest.fixture
def auth(stores) -> AuthService:
    return AuthService(stores["users"], stores["collaborators"], SECRET, session_ttl_hours=1)


# ─── Signup ───────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_signup_normalizes_email(auth):
    user = await auth.signup("  Ada@Example.COM ", "", "correct horse")

    assert user.email == "ada@example.com"
    assert user.name == "ada"
    assert user.role == UserRole.USER
    assert user.password_hash.startswith("scrypt$")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "email, password",
    [("not-an-email", "long enough"), ("ada@example.com", "short")],
)
async def test_signup_validation(auth, email, password):
    with pytest.raises(ValidationError):
        await auth.signup(email, "Ada", password)


@pytest.mark.asyncio
async def test_signup_duplicate_email(auth):
    await auth.signup("ada@example.com", "Ada", "correct horse")
    with pytest.raises(EmailAlreadyRegistered):
        await auth.signup("ADA@example.com", "Ada again", "correct horse")


@pytest.mark.asyncio
async def test_signup_claims_pending_invites(auth, stores, podcast_service, owner):
    podcast = await podcast_service.create_podcast(owner, title="Shared before signup")
    invite = await podcast_service.add_collaborator(podcast.id, owner, "newcomer@example.com")
    assert invite.user_id is None

    newcomer = await auth.signup("newcomer@example.com", "Newcomer", "correct horse")

    collaboration = CollaborationManager(
        CollaboratorEntity.PODCAST, stores["collaborators"], stores["users"], NotPodcastCollaborator
    )
    claimed = await collaboration.find_for_user(podcast.id, newcomer.id)
    assert claimed is not None
    assert claimed.id == invite.id
    assert (await podcast_service.get_podcast(podcast.id, newcomer)).title == "Shared before signup"


# ─── Login and sessions ───────────────────────────────────────────


@pytest.mark.asyncio
async def test_login(auth):
    created = await auth.signup("ada@example.com", "Ada", "correct horse")

    user = await auth.login("Ada@example.com", "correct horse")

    assert user.id == created.id
    with pytest.raises(AuthenticationError):
        await auth.login("ada@example.com", "wrong password")
    with pytest.raises(AuthenticationError):
        await auth.login("nobody@example.com", "correct horse")


@pytest.mark.asyncio
async def test_session_roundtrip(auth):
    user = await auth.signup("ada@example.com", "Ada", "correct horse")

    token = auth.issue_token(user)

    assert (await auth.resolve_session(token)).id == user.id
    assert await auth.resolve_session(None) is None
    assert await auth.resolve_session(token + "x") is None
    assert auth.session_ttl_seconds == 3600


@pytest.mark.asyncio
async def test_session_from_other_secret_is_rejected(auth, stores):
    user = await auth.signup("ada@example.com", "Ada", "correct horse")
    other = AuthService(stores["users"], stores["collaborators"], "another-secret")

    assert await other.resolve_session(auth.issue_token(user)) is None
