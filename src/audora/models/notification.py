# src/audora/models/notification.py
"""Notification log entries addressed to a recipient user."""

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, Index, Integer
from sqlalchemy.orm import Mapped, mapped_column, relationship

from audora.db.session import Base
from audora.db.time import utcnow
from audora.models.post import Post
from audora.models.user import User


class NotificationType(str, enum.Enum):
    """Events that produce a notification."""

    NEW_FOLLOWER = "NEW_FOLLOWER"
    NEW_POST = "NEW_POST"
    LIKE = "LIKE"
    COMMENT = "COMMENT"


class Notification(Base):
    """Side effect of another mutation. Only `read` ever changes, false -> true."""

    __tablename__ = "notification"
    __table_args__ = (
        Index("ix_notification_recipient_read", "recipient_id", "read"),
        Index("ix_notification_recipient_created", "recipient_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    recipient_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("user_account.id", ondelete="CASCADE"),
        nullable=False,
    )
    trigger_user_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("user_account.id", ondelete="SET NULL"),
        nullable=True,
    )
    type: Mapped[NotificationType] = mapped_column(
        Enum(NotificationType, name="notification_type"),
        nullable=False,
    )
    post_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("audio_post.id", ondelete="CASCADE"),
        nullable=True,
    )
    read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    trigger_user: Mapped[User | None] = relationship("User", foreign_keys=[trigger_user_id])
    post: Mapped[Post | None] = relationship("Post")
