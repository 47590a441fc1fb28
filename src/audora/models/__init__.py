# src/audora/models/__init__.py
"""SQLAlchemy models for the Audora application."""

from .comment import Comment
from .follow import Follow
from .like import Like
from .notification import Notification, NotificationType
from .post import Post
from .user import User

__all__ = [
    "Comment",
    "Follow",
    "Like",
    "Notification", "NotificationType",
    "Post",
    "User",
]
