# src/audora/models/follow.py
"""Directed follower -> following edges between users."""

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from audora.db.session import Base
from audora.db.time import utcnow
from audora.models.user import User


class Follow(Base):
    """A user following another user."""

    __tablename__ = "follow"
    __table_args__ = (
        # At most one edge per ordered pair; inserts racing past the
        # existence check fail here.
        UniqueConstraint("follower_id", "following_id", name="uq_follow_pair"),
        CheckConstraint("follower_id <> following_id", name="ck_follow_not_self"),
        Index("ix_follow_following_id", "following_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    follower_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("user_account.id", ondelete="CASCADE"),
        nullable=False,
    )
    following_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("user_account.id", ondelete="CASCADE"),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    follower: Mapped[User] = relationship("User", foreign_keys=[follower_id])
    following: Mapped[User] = relationship("User", foreign_keys=[following_id])
