"""Shared API dependencies for authentication and common functionality."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, Query
from fastapi.security import APIKeyCookie
from sqlalchemy.orm import Session

from audora.core.errors import AuthenticationError
from audora.core.security import decode_access_token
from audora.core.settings import settings
from audora.db.session import get_db
from audora.models import User
from audora.services.media import MediaStorage, get_media_storage

# Session cookie scheme; auto_error is off so failures use our own 401 payload.
cookie_scheme = APIKeyCookie(name=settings.auth_cookie_name, auto_error=False)

MAX_PAGE_SIZE = 100
# Keeps `(page - 1) * limit` inside a signed 64-bit OFFSET.
MAX_PAGE = 2**63 // MAX_PAGE_SIZE

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def resolve_user(db: Session, token: str | None) -> User:
    """Return the live user row behind a session token.

    Raises:
        AuthenticationError: If the token is missing, invalid, expired, or the
            user no longer exists.
    """
    if not token:
        raise AuthenticationError("Unauthorized. No token provided.")
    user_id = decode_access_token(token)
    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise AuthenticationError("User not found")
    return user


def get_current_user(
    token: Annotated[str | None, Depends(cookie_scheme)],
    db: SessionDep,
) -> User:
    """Get the current authenticated user from the session cookie."""
    return resolve_user(db, token)


def get_optional_user(
    token: Annotated[str | None, Depends(cookie_scheme)],
    db: SessionDep,
) -> User | None:
    """Like `get_current_user`, but anonymous or stale sessions yield None."""
    if not token:
        return None
    try:
        return resolve_user(db, token)
    except AuthenticationError:
        return None


def get_media_storage_dep() -> MediaStorage:
    """Return the shared media storage client."""
    return get_media_storage()


@dataclass(frozen=True)
class PageParams:
    """Offset pagination derived from `page`/`limit` query parameters."""

    page: int
    limit: int

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit


def _coerce_positive(raw: str | None, default: int, ceiling: int | None = None) -> int:
    try:
        value = int(raw) if raw is not None else default
    except ValueError:
        return default
    if value < 1:
        return default
    if ceiling is not None:
        value = min(value, ceiling)
    return value


def pagination(default_limit: int):
    """Build a dependency parsing `page`/`limit` with the given default page size.

    Non-numeric or non-positive values fall back to the defaults instead of
    failing the request.
    """

    def _dependency(
        page: Annotated[str | None, Query(description="1-based page number")] = None,
        limit: Annotated[str | None, Query(description="Items per page")] = None,
    ) -> PageParams:
        return PageParams(
            page=_coerce_positive(page, 1, MAX_PAGE),
            limit=_coerce_positive(limit, default_limit, MAX_PAGE_SIZE),
        )

    return _dependency


# Type alias for current user dependency
CurrentUserDep = Annotated[User, Depends(get_current_user)]
OptionalUserDep = Annotated[User | None, Depends(get_optional_user)]
MediaStorageDep = Annotated[MediaStorage, Depends(get_media_storage_dep)]
