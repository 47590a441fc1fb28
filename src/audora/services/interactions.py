"""Likes and comments on posts."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from audora.core.errors import ConflictError
from audora.models import Comment, Like, NotificationType, Post
from audora.services.notifications import NotificationEvent, notify
from audora.services.posts import get_post_or_404

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LikeToggleResult:
    liked: bool
    like_count: int


def count_likes(db: Session, post_id: int) -> int:
    return int(
        db.query(func.count(Like.id)).filter(Like.post_id == post_id).scalar() or 0
    )


def find_like(db: Session, *, user_id: int, post_id: int) -> Like | None:
    return db.query(Like).filter(Like.user_id == user_id, Like.post_id == post_id).first()


def _post_event(kind: NotificationType, post: Post, actor_id: int) -> NotificationEvent:
    return NotificationEvent(
        type=kind,
        recipient_id=post.author_id,
        trigger_user_id=actor_id,
        post_id=post.id,
    )


def toggle_like(db: Session, *, user_id: int, post_id: int) -> LikeToggleResult:
    """Like the post if the user has not, otherwise remove the like.

    A new like and the LIKE notification for the author commit together.
    The preceding existence check is advisory: when a concurrent request
    inserts the same edge first, the unique constraint rejects ours and the
    caller receives a ConflictError.

    Raises:
        NotFoundError: If the post does not exist.
        ConflictError: If the like was recorded concurrently.
    """
    post = get_post_or_404(db, post_id)
    existing = find_like(db, user_id=user_id, post_id=post.id)

    if existing is not None:
        db.delete(existing)
        db.commit()
        return LikeToggleResult(liked=False, like_count=count_likes(db, post.id))

    try:
        db.add(Like(user_id=user_id, post_id=post.id))
        notify(db, _post_event(NotificationType.LIKE, post, user_id))
        db.commit()
    except IntegrityError as err:
        db.rollback()
        logger.info("Concurrent like on post %s by user %s", post.id, user_id)
        raise ConflictError("Like was already recorded for this post.") from err
    return LikeToggleResult(liked=True, like_count=count_likes(db, post.id))


def create_comment(db: Session, *, user_id: int, post_id: int, text: str) -> Comment:
    """Append a comment and notify the post author in the same commit."""
    post = get_post_or_404(db, post_id)
    comment = Comment(text=text, user_id=user_id, post_id=post.id)
    db.add(comment)
    notify(db, _post_event(NotificationType.COMMENT, post, user_id))
    db.commit()
    db.refresh(comment)
    return comment


def list_comments(db: Session, *, post_id: int) -> list[Comment]:
    """All comments on a post, oldest first.

    Unpaginated: a post's whole thread is returned in one response.
    """
    return (
        db.query(Comment)
        .options(joinedload(Comment.user))
        .filter(Comment.post_id == post_id)
        .order_by(Comment.created_at.asc(), Comment.id.asc())
        .all()
    )
