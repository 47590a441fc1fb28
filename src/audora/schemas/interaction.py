"""Schemas for likes and comments."""

from datetime import datetime

from pydantic import Field

from .common import ApiModel
from .user import UserSummary


class LikeToggleResponse(ApiModel):
    message: str
    liked: bool
    like_count: int


class CommentCreate(ApiModel):
    text: str = Field(..., min_length=1, max_length=1000)


class CommentResponse(ApiModel):
    id: int
    text: str
    user_id: int
    post_id: int
    created_at: datetime
    user: UserSummary
