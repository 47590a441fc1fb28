"""Notification construction, fan-out and inbox state transitions."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from sqlalchemy import func, insert, select, update
from sqlalchemy.orm import Session, joinedload

from audora.core.errors import NotFoundError
from audora.db.time import utcnow
from audora.models import Follow, Notification, NotificationType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NotificationEvent:
    """Something happened that `recipient_id` should hear about.

    `trigger_user_id` is the acting user; `post_id` is set for post-scoped
    events (NEW_POST, LIKE, COMMENT) and left empty for NEW_FOLLOWER.
    """

    type: NotificationType
    recipient_id: int
    trigger_user_id: int | None = None
    post_id: int | None = None

    @property
    def is_self_addressed(self) -> bool:
        return self.trigger_user_id is not None and self.trigger_user_id == self.recipient_id

    def as_row(self) -> dict[str, object]:
        now = utcnow()
        return {
            "type": self.type,
            "recipient_id": self.recipient_id,
            "trigger_user_id": self.trigger_user_id,
            "post_id": self.post_id,
            "read": False,
            "created_at": now,
            "updated_at": now,
        }


@dataclass(frozen=True)
class MarkReadOutcome:
    updated: bool
    message: str


def build_notification(event: NotificationEvent) -> Notification | None:
    """Return an unsaved notification row, or None for self-addressed events."""
    if event.is_self_addressed:
        return None
    return Notification(
        type=event.type,
        recipient_id=event.recipient_id,
        trigger_user_id=event.trigger_user_id,
        post_id=event.post_id,
        read=False,
    )


def notify(db: Session, event: NotificationEvent) -> Notification | None:
    """Stage a notification in the caller's transaction without committing."""
    notification = build_notification(event)
    if notification is not None:
        db.add(notification)
    return notification


def fan_out_new_post(db: Session, *, author_id: int, post_id: int) -> int:
    """Insert one NEW_POST notification per follower of the author.

    All rows go in a single bulk insert. The caller commits.

    Returns:
        Number of notifications written.
    """
    follower_ids: Iterable[int] = db.scalars(
        select(Follow.follower_id).where(Follow.following_id == author_id)
    ).all()
    rows = [
        NotificationEvent(
            type=NotificationType.NEW_POST,
            recipient_id=follower_id,
            trigger_user_id=author_id,
            post_id=post_id,
        ).as_row()
        for follower_id in follower_ids
        if follower_id != author_id
    ]
    if rows:
        db.execute(insert(Notification), rows)
    logger.info("Fanned out NEW_POST for post %s to %d followers", post_id, len(rows))
    return len(rows)


def list_notifications(
    db: Session,
    *,
    recipient_id: int,
    skip: int,
    limit: int,
) -> tuple[list[Notification], int, int]:
    """Return `(page, total, unread_count)` for a recipient, newest first."""
    base = db.query(Notification).filter(Notification.recipient_id == recipient_id)
    page = (
        base.options(
            joinedload(Notification.trigger_user),
            joinedload(Notification.post),
        )
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )
    total = base.count()
    unread = (
        db.query(func.count(Notification.id))
        .filter(Notification.recipient_id == recipient_id, Notification.read.is_(False))
        .scalar()
        or 0
    )
    return page, total, int(unread)


def mark_read(db: Session, *, recipient_id: int, notification_id: int) -> MarkReadOutcome:
    """Mark one of the recipient's notifications as read.

    Raises:
        NotFoundError: If the notification does not exist or is not owned by
            the recipient.
    """
    result = db.execute(
        update(Notification)
        .where(
            Notification.id == notification_id,
            Notification.recipient_id == recipient_id,
            Notification.read.is_(False),
        )
        .values(read=True, updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    db.commit()
    # Bulk UPDATE bypasses the identity map.
    db.expire_all()
    if result.rowcount:
        return MarkReadOutcome(updated=True, message="Notification marked as read successfully.")

    owned = (
        db.query(Notification.id)
        .filter(Notification.id == notification_id, Notification.recipient_id == recipient_id)
        .first()
    )
    if owned is None:
        raise NotFoundError(
            "Notification not found or you do not have permission to modify it."
        )
    return MarkReadOutcome(updated=False, message="Notification was already marked as read.")


def mark_all_read(db: Session, *, recipient_id: int) -> int:
    """Mark every unread notification of the recipient as read; return the count."""
    result = db.execute(
        update(Notification)
        .where(Notification.recipient_id == recipient_id, Notification.read.is_(False))
        .values(read=True, updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    db.commit()
    db.expire_all()
    return int(result.rowcount or 0)
