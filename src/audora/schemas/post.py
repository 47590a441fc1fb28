"""Post-related Pydantic schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field, model_validator

from .common import ApiModel, Pagination
from .user import UserSummary


class PostCreate(ApiModel):
    """Text fields accompanying an audio upload."""

    title: str = Field(..., min_length=1, max_length=255)
    subject: str = Field(..., min_length=1, max_length=100)
    description: str = Field("", max_length=5000)


class PostUpdate(ApiModel):
    """Partial metadata update; the audio itself is immutable."""

    title: str | None = Field(None, min_length=1, max_length=255)
    subject: str | None = Field(None, min_length=1, max_length=100)
    description: str | None = Field(None, max_length=5000)

    @model_validator(mode="after")
    def _require_one_field(self) -> PostUpdate:
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided for update")
        return self


class PostResponse(ApiModel):
    """Schema for post information returned by the API."""

    id: int
    title: str
    subject: str
    description: str
    audio_url: str
    audio_public_id: str | None = None
    author_id: int
    author: UserSummary
    created_at: datetime
    updated_at: datetime
    like_count: int = 0
    comment_count: int = 0
    is_liked: bool = False


class PostFeedResponse(ApiModel):
    data: list[PostResponse]
    pagination: Pagination
