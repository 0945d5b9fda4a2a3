"""Signup, login, logout and the current-user endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Request, Response, status

from src.api.dependencies import AuthServiceDep, CurrentUserDep
from src.api.schemas import LoginRequest, SignupRequest, UserResponse
from src.models.user import User
from src.services.auth_service import AuthService
from src.utils.security import SESSION_COOKIE_NAME

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _set_session_cookie(response: Response, request: Request, auth: AuthService, user: User) -> None:
    response.set_cookie(
        SESSION_COOKIE_NAME,
        auth.issue_token(user),
        max_age=auth.session_ttl_seconds,
        httponly=True,
        samesite="lax",
        secure=request.url.scheme == "https",
    )


@router.post("/signup", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def signup(body: SignupRequest, request: Request, response: Response, auth: AuthServiceDep) -> UserResponse:
    user = await auth.signup(body.email, body.name, body.password)
    _set_session_cookie(response, request, auth, user)
    return UserResponse.from_user(user)


@router.post("/login", response_model=UserResponse)
async def login(body: LoginRequest, request: Request, response: Response, auth: AuthServiceDep) -> UserResponse:
    user = await auth.login(body.email, body.password)
    _set_session_cookie(response, request, auth, user)
    return UserResponse.from_user(user)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(response: Response) -> Response:
    response.delete_cookie(SESSION_COOKIE_NAME)
    response.status_code = status.HTTP_204_NO_CONTENT
    return response


@router.get("/me", response_model=UserResponse)
async def me(user: CurrentUserDep) -> UserResponse:
    return UserResponse.from_user(user)
