from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import get_current_user, get_producer
from app.notifications import controller
from app.notifications.producer import NotificationProducer
from app.notifications.schemas import (
    MarkAllReadResponse,
    NotificationsPageResponse,
    NotificationSummary,
)
from shared.models.user import CurrentUser

router = APIRouter(prefix="/notifications", tags=["Notifications"])

_403 = {"description": "Notification belongs to another user"}
_404 = {"description": "Notification or follow request not found"}


@router.get(
    "",
    response_model=NotificationsPageResponse,
    summary="List my notifications",
    description=(
        "Returns notifications for the authenticated user, newest first, plus the "
        "total unread count (independent of `unread_only`)."
    ),
)
async def list_notifications(
    limit: int = Query(20, ge=1, le=50, description="Page size."),
    offset: int = Query(0, ge=0, description="Pagination offset."),
    unread_only: bool = Query(
        default=False,
        description="When true, return only unread notifications.",
    ),
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> NotificationsPageResponse:
    return await controller.get_notifications(
        user_id=current_user.id,
        db=db,
        limit=limit,
        offset=offset,
        only_unread=unread_only,
    )


# Registered before /{notification_id}/... so the literal path wins.
@router.put(
    "/read-all",
    response_model=MarkAllReadResponse,
    summary="Mark all my notifications as read",
)
async def mark_all_read(
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> MarkAllReadResponse:
    return await controller.mark_all_read(current_user.id, db)


@router.put(
    "/{notification_id}/read",
    response_model=NotificationSummary,
    summary="Mark a single notification as read",
    responses={403: _403, 404: _404},
)
async def mark_read(
    notification_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> NotificationSummary:
    return await controller.mark_read(current_user.id, notification_id, db)


@router.put(
    "/{notification_id}/accept",
    response_model=NotificationSummary,
    summary="Accept the follow request behind a notification",
    responses={403: _403, 404: _404},
)
async def accept_follow_request(
    notification_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    producer: NotificationProducer = Depends(get_producer),
) -> NotificationSummary:
    return await controller.accept(current_user.id, notification_id, db, producer)


@router.put(
    "/{notification_id}/reject",
    response_model=NotificationSummary,
    summary="Reject the follow request behind a notification",
    responses={403: _403, 404: _404},
)
async def reject_follow_request(
    notification_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    producer: NotificationProducer = Depends(get_producer),
) -> NotificationSummary:
    return await controller.reject(current_user.id, notification_id, db, producer)
