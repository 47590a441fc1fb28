# src/audora/api/v1/endpoints/notifications.py
"""Notification inbox endpoints for the Audora API."""

from typing import Annotated

from fastapi import APIRouter, Depends

from audora.schemas.common import MessageResponse, Pagination
from audora.schemas.notification import (
    MarkAllReadResponse,
    NotificationListResponse,
    NotificationResponse,
)
from audora.services import notifications as notification_service

from ..dependencies import CurrentUserDep, PageParams, SessionDep, pagination

router = APIRouter(prefix="/notifications", tags=["notifications"])

NOTIFICATION_PAGE_SIZE = 15
NotificationPageDep = Annotated[PageParams, Depends(pagination(NOTIFICATION_PAGE_SIZE))]


@router.get("", response_model=NotificationListResponse)
async def list_notifications(
    current_user: CurrentUserDep,
    db: SessionDep,
    page: NotificationPageDep,
) -> NotificationListResponse:
    """The caller's notifications, newest first, with the unread badge count."""
    rows, total, unread = notification_service.list_notifications(
        db,
        recipient_id=current_user.id,
        skip=page.skip,
        limit=page.limit,
    )
    return NotificationListResponse(
        notifications=[NotificationResponse.model_validate(row) for row in rows],
        pagination=Pagination.build(page=page.page, limit=page.limit, total=total),
        unread_count=unread,
    )


@router.patch("/{notification_id}/read", response_model=MessageResponse)
async def mark_notification_read(
    notification_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> MessageResponse:
    """Mark one notification as read. Already-read notifications are a no-op."""
    outcome = notification_service.mark_read(
        db,
        recipient_id=current_user.id,
        notification_id=notification_id,
    )
    return MessageResponse(message=outcome.message)


@router.post("/read-all", response_model=MarkAllReadResponse)
async def mark_all_notifications_read(
    current_user: CurrentUserDep,
    db: SessionDep,
) -> MarkAllReadResponse:
    """Mark every unread notification of the caller as read."""
    count = notification_service.mark_all_read(db, recipient_id=current_user.id)
    return MarkAllReadResponse(
        message=f"Successfully marked {count} notifications as read.",
        count=count,
    )
