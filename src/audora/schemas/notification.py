"""Notification schemas."""

from __future__ import annotations

from datetime import datetime

from audora.models.notification import NotificationType

from .common import ApiModel, Pagination
from .user import UserSummary


class NotificationPostSummary(ApiModel):
    id: int
    title: str
    subject: str


class NotificationResponse(ApiModel):
    id: int
    type: NotificationType
    read: bool
    recipient_id: int
    trigger_user_id: int | None = None
    post_id: int | None = None
    created_at: datetime
    trigger_user: UserSummary | None = None
    post: NotificationPostSummary | None = None


class NotificationListResponse(ApiModel):
    notifications: list[NotificationResponse]
    pagination: Pagination
    unread_count: int


class MarkAllReadResponse(ApiModel):
    message: str
    count: int
