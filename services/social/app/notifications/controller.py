from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from app.notifications import service
from app.notifications.producer import NotificationProducer
from app.notifications.schemas import (
    MarkAllReadResponse,
    NotificationsPageResponse,
    NotificationSummary,
)


async def get_notifications(
    user_id: int,
    db: AsyncSession,
    limit: int,
    offset: int,
    only_unread: bool,
) -> NotificationsPageResponse:
    items, unread_count = await service.list_notifications(
        user_id=user_id,
        db=db,
        limit=limit,
        offset=offset,
        only_unread=only_unread,
    )
    return NotificationsPageResponse(
        items=[NotificationSummary.model_validate(n) for n in items],
        unread_count=unread_count,
        limit=limit,
        offset=offset,
    )


async def mark_read(user_id: int, notification_id: int, db: AsyncSession) -> NotificationSummary:
    notification = await service.mark_read(user_id, notification_id, db)
    await db.commit()
    return NotificationSummary.model_validate(notification)


async def mark_all_read(user_id: int, db: AsyncSession) -> MarkAllReadResponse:
    updated = await service.mark_all_read(user_id, db)
    await db.commit()
    return MarkAllReadResponse(updated=updated)


async def accept(
    user_id: int,
    notification_id: int,
    db: AsyncSession,
    producer: NotificationProducer,
) -> NotificationSummary:
    notification = await service.accept_follow_request(user_id, notification_id, db, producer)
    await db.commit()
    await producer.flush()
    return NotificationSummary.model_validate(notification)


async def reject(
    user_id: int,
    notification_id: int,
    db: AsyncSession,
    producer: NotificationProducer,
) -> NotificationSummary:
    notification = await service.reject_follow_request(user_id, notification_id, db, producer)
    await db.commit()
    await producer.flush()
    return NotificationSummary.model_validate(notification)
