"""User-related Pydantic schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import EmailStr, Field

from .common import ApiModel, MessageResponse, Pagination


class SignupRequest(ApiModel):
    """Schema for account registration."""

    username: str = Field(
        ...,
        min_length=3,
        max_length=64,
        pattern=r"^[a-zA-Z0-9_]+$",
        description="Letters, numbers and underscores only",
    )
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)


class LoginRequest(ApiModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class UserSummary(ApiModel):
    """Minimal author/actor projection embedded in other payloads."""

    id: int
    username: str
    avatar_url: str | None = None


class UserListItem(UserSummary):
    bio: str | None = None


class UserListResponse(ApiModel):
    """One page of followers or followed accounts."""

    data: list[UserListItem]
    pagination: Pagination


class UserPublic(ApiModel):
    """Sanitized account record; never carries the password hash."""

    id: int
    username: str
    email: str
    avatar_url: str | None = None
    bio: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class AuthResponse(MessageResponse):
    user: UserPublic


class AuthCheckResponse(ApiModel):
    authenticated: bool
    user: UserPublic | None = None
    message: str | None = None


class ProfileUpdate(ApiModel):
    bio: str | None = Field(None, max_length=250, description="Short biography")


class ProfileCounts(ApiModel):
    followers: int
    following: int
    posts: int


class ProfilePost(ApiModel):
    id: int
    title: str
    subject: str
    audio_url: str
    created_at: datetime


class ProfileResponse(ApiModel):
    """Profile page payload. `email` is only filled in for the owner."""

    id: int
    username: str
    email: str | None = None
    avatar_url: str | None = None
    bio: str | None = None
    created_at: datetime
    counts: ProfileCounts
    posts: list[ProfilePost]
    is_following: bool | None = None


class ProfileUpdateResponse(MessageResponse):
    user: UserPublic | None = None


class IsFollowingResponse(ApiModel):
    is_following: bool
