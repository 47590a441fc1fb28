# src/audora/api/v1/endpoints/auth.py
"""Authentication endpoints for the Audora API."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from audora.core.errors import AuthenticationError
from audora.core.security import create_access_token
from audora.core.settings import settings
from audora.schemas.common import MessageResponse
from audora.schemas.user import (
    AuthCheckResponse,
    AuthResponse,
    LoginRequest,
    SignupRequest,
    UserPublic,
)
from audora.services import users as user_service

from ..dependencies import SessionDep, cookie_scheme, resolve_user

router = APIRouter(prefix="/auth", tags=["authentication"])
logger = logging.getLogger(__name__)

TokenCookieDep = Annotated[str | None, Depends(cookie_scheme)]

# Must match between set and clear or browsers keep the old cookie.
COOKIE_ATTRIBUTES: dict[str, object] = {
    "httponly": True,
    "secure": True,
    "samesite": "none",
    "path": "/",
}


def set_auth_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        settings.auth_cookie_name,
        token,
        max_age=settings.access_token_max_age_seconds,
        **COOKIE_ATTRIBUTES,  # type: ignore[arg-type]
    )


def clear_auth_cookie(response: Response) -> None:
    response.delete_cookie(settings.auth_cookie_name, **COOKIE_ATTRIBUTES)  # type: ignore[arg-type]


@router.post("/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def signup(payload: SignupRequest, db: SessionDep) -> AuthResponse:
    """Register a new account."""
    user = await run_in_threadpool(user_service.register_user, db, payload)
    return AuthResponse(message="User created successfully.", user=UserPublic.model_validate(user))


@router.post("/login", response_model=AuthResponse)
async def login(payload: LoginRequest, response: Response, db: SessionDep) -> AuthResponse:
    """Verify credentials and issue the session cookie."""
    user = await run_in_threadpool(
        user_service.authenticate,
        db,
        email=payload.email,
        password=payload.password,
    )
    token = create_access_token(user.id, email=user.email, username=user.username)
    set_auth_cookie(response, token)
    logger.info("User %s logged in", user.id)
    return AuthResponse(message="Login successful.", user=UserPublic.model_validate(user))


@router.get("/check", response_model=AuthCheckResponse)
async def check_auth(token: TokenCookieDep, db: SessionDep) -> AuthCheckResponse | JSONResponse:
    """Report whether the session cookie identifies a live user.

    Any verification failure clears the cookie.
    """
    try:
        user = resolve_user(db, token)
    except AuthenticationError as exc:
        body = AuthCheckResponse(authenticated=False, user=None, message=exc.message)
        failure = JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content=body.model_dump(mode="json", by_alias=True),
        )
        if token:
            clear_auth_cookie(failure)
        return failure
    return AuthCheckResponse(authenticated=True, user=UserPublic.model_validate(user))


@router.post("/logout", response_model=MessageResponse)
async def logout(response: Response) -> MessageResponse:
    """Expire the session cookie."""
    clear_auth_cookie(response)
    return MessageResponse(message="Logout successful.")
