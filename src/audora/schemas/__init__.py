"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .common import ApiModel, MessageResponse, Pagination
from .interaction import CommentCreate, CommentResponse, LikeToggleResponse
from .notification import NotificationListResponse, NotificationResponse
from .post import PostCreate, PostFeedResponse, PostResponse, PostUpdate
from .user import (
    AuthCheckResponse,
    AuthResponse,
    LoginRequest,
    SignupRequest,
    UserPublic,
    UserSummary,
)

__all__ = [
    "ApiModel", "MessageResponse", "Pagination",
    "CommentCreate", "CommentResponse", "LikeToggleResponse",
    "NotificationListResponse", "NotificationResponse",
    "PostCreate", "PostFeedResponse", "PostResponse", "PostUpdate",
    "AuthCheckResponse", "AuthResponse", "LoginRequest", "SignupRequest",
    "UserPublic", "UserSummary",
]
