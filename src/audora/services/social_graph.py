"""Follow edges between users."""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from audora.core.errors import ConflictError, NotFoundError, ValidationError
from audora.models import Follow, NotificationType, User
from audora.services.notifications import NotificationEvent, notify

logger = logging.getLogger(__name__)


def get_user_or_404(db: Session, user_id: int, message: str = "User not found.") -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise NotFoundError(message)
    return user


def find_follow(db: Session, *, follower_id: int, following_id: int) -> Follow | None:
    return (
        db.query(Follow)
        .filter(Follow.follower_id == follower_id, Follow.following_id == following_id)
        .first()
    )


def follow(db: Session, *, follower_id: int, target_id: int) -> User:
    """Create a follow edge plus a NEW_FOLLOWER notification in one commit.

    Raises:
        ValidationError: On an attempt to follow oneself.
        NotFoundError: If the target user does not exist.
        ConflictError: If the edge exists, including when a concurrent request
            created it after our existence check.
    """
    if follower_id == target_id:
        raise ValidationError("You cannot follow yourself.")
    target = get_user_or_404(db, target_id, "User to follow not found.")
    if find_follow(db, follower_id=follower_id, following_id=target_id) is not None:
        raise ConflictError("You are already following this user.")

    try:
        db.add(Follow(follower_id=follower_id, following_id=target_id))
        notify(
            db,
            NotificationEvent(
                type=NotificationType.NEW_FOLLOWER,
                recipient_id=target_id,
                trigger_user_id=follower_id,
            ),
        )
        db.commit()
    except IntegrityError as err:
        db.rollback()
        raise ConflictError("You are already following this user.") from err
    logger.info("User %s followed user %s", follower_id, target_id)
    return target


def unfollow(db: Session, *, follower_id: int, target_id: int) -> None:
    """Remove a follow edge.

    Raises:
        ValidationError: If follower and target are the same user.
        NotFoundError: If no such edge exists.
    """
    if follower_id == target_id:
        raise ValidationError("Invalid operation.")
    edge = find_follow(db, follower_id=follower_id, following_id=target_id)
    if edge is None:
        raise NotFoundError("You are not following this user or user not found.")
    db.delete(edge)
    db.commit()


def list_followers(db: Session, *, user_id: int, skip: int, limit: int) -> tuple[list[User], int]:
    """Users following `user_id`, most recent edge first."""
    get_user_or_404(db, user_id)
    base = db.query(Follow).filter(Follow.following_id == user_id)
    edges = (
        base.options(joinedload(Follow.follower))
        .order_by(Follow.created_at.desc(), Follow.id.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )
    return [edge.follower for edge in edges], base.count()


def list_following(db: Session, *, user_id: int, skip: int, limit: int) -> tuple[list[User], int]:
    """Users that `user_id` follows, most recent edge first."""
    get_user_or_404(db, user_id)
    base = db.query(Follow).filter(Follow.follower_id == user_id)
    edges = (
        base.options(joinedload(Follow.following))
        .order_by(Follow.created_at.desc(), Follow.id.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )
    return [edge.following for edge in edges], base.count()


def is_following(db: Session, *, viewer_id: int | None, target_id: int) -> bool:
    """False for anonymous viewers and for a viewer looking at themselves."""
    if viewer_id is None or viewer_id == target_id:
        return False
    return find_follow(db, follower_id=viewer_id, following_id=target_id) is not None
