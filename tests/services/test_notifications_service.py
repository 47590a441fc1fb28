# tests/services/test_notifications_service.py
"""Unit tests for notification construction and inbox transitions."""

from __future__ import annotations

import pytest

from audora.core.errors import NotFoundError
from audora.models import Notification, NotificationType
from audora.services import notifications
from audora.services.notifications import NotificationEvent
from tests.conftest import make_follow, make_user


def test_self_addressed_events_are_dropped() -> None:
    event = NotificationEvent(type=NotificationType.LIKE, recipient_id=1, trigger_user_id=1, post_id=3)
    assert event.is_self_addressed
    assert notifications.build_notification(event) is None


def test_build_notification_starts_unread() -> None:
    event = NotificationEvent(type=NotificationType.NEW_FOLLOWER, recipient_id=1, trigger_user_id=2)
    notification = notifications.build_notification(event)
    assert notification is not None
    assert notification.read is False
    assert notification.post_id is None


def test_notify_stages_without_committing(db_session, test_user, other_user) -> None:
    event = NotificationEvent(
        type=NotificationType.NEW_FOLLOWER,
        recipient_id=other_user.id,
        trigger_user_id=test_user.id,
    )
    staged = notifications.notify(db_session, event)
    assert staged in db_session.new


def test_fan_out_new_post_targets_followers(db_session, test_user, test_post) -> None:
    followers = [make_user(db_session, f"listener_{i}") for i in range(3)]
    for follower in followers:
        make_follow(db_session, follower, test_user)

    written = notifications.fan_out_new_post(db_session, author_id=test_user.id, post_id=test_post.id)
    assert written == 3
    rows = db_session.query(Notification).all()
    assert {row.recipient_id for row in rows} == {f.id for f in followers}
    assert {row.type for row in rows} == {NotificationType.NEW_POST}


def test_fan_out_without_followers_writes_nothing(db_session, test_user, test_post) -> None:
    assert notifications.fan_out_new_post(db_session, author_id=test_user.id, post_id=test_post.id) == 0
    assert db_session.query(Notification).count() == 0


def test_mark_read_transitions_once(db_session, test_user, other_user) -> None:
    notification = Notification(
        recipient_id=test_user.id,
        trigger_user_id=other_user.id,
        type=NotificationType.NEW_FOLLOWER,
    )
    db_session.add(notification)
    db_session.flush()

    first = notifications.mark_read(db_session, recipient_id=test_user.id, notification_id=notification.id)
    second = notifications.mark_read(db_session, recipient_id=test_user.id, notification_id=notification.id)
    assert first.updated is True
    assert second.updated is False
    assert db_session.get(Notification, notification.id).read is True


def test_mark_read_rejects_foreign_notification(db_session, test_user, other_user) -> None:
    notification = Notification(
        recipient_id=test_user.id,
        trigger_user_id=other_user.id,
        type=NotificationType.NEW_FOLLOWER,
    )
    db_session.add(notification)
    db_session.flush()
    with pytest.raises(NotFoundError):
        notifications.mark_read(db_session, recipient_id=other_user.id, notification_id=notification.id)
