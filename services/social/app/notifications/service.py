from __future__ import annotations

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import ForbiddenError, NotFoundError
from app.models import Notification
from app.models.enums import NotificationStatus, NotificationType
from app.notifications.producer import NotificationProducer
from app.social_graph import service as social_graph


async def list_notifications(
    user_id: int,
    db: AsyncSession,
    limit: int,
    offset: int,
    only_unread: bool,
) -> tuple[list[Notification], int]:
    """Return (page newest-first, unread count).

    The unread count ignores ``only_unread`` so the badge stays correct when the
    list itself is filtered.
    """
    base = select(Notification).where(Notification.user_id == user_id)
    if only_unread:
        base = base.where(Notification.is_read.is_(False))

    rows = await db.execute(
        base.order_by(Notification.created_at.desc(), Notification.notification_id.desc())
        .offset(offset)
        .limit(limit)
    )
    items = list(rows.scalars().all())
    return items, await count_unread(user_id, db)


async def count_unread(user_id: int, db: AsyncSession) -> int:
    result = await db.execute(
        select(func.count())
        .select_from(Notification)
        .where(Notification.user_id == user_id, Notification.is_read.is_(False))
    )
    return result.scalar_one()


async def _get_follow_request(
    user_id: int, notification_id: int, db: AsyncSession
) -> Notification:
    notification = await get_owned_notification(user_id, notification_id, db)
    if notification.type != NotificationType.FOLLOW_REQUEST or notification.follow_id is None:
        raise NotFoundError("Follow request")
    return notification


async def get_owned_notification(
    user_id: int, notification_id: int, db: AsyncSession
) -> Notification:
    notification = await db.get(Notification, notification_id)
    if notification is None:
        raise NotFoundError("Notification")
    if notification.user_id != user_id:
        raise ForbiddenError("You are not authorized to access this notification.")
    return notification


async def mark_read(user_id: int, notification_id: int, db: AsyncSession) -> Notification:
    notification = await get_owned_notification(user_id, notification_id, db)
    if not notification.is_read:
        notification.is_read = True
        await db.flush()
    return notification


async def mark_all_read(user_id: int, db: AsyncSession) -> int:
    result = await db.execute(
        update(Notification)
        .where(Notification.user_id == user_id, Notification.is_read.is_(False))
        .values(is_read=True)
    )
    return result.rowcount or 0


async def accept_follow_request(
    user_id: int,
    notification_id: int,
    db: AsyncSession,
    producer: NotificationProducer,
) -> Notification:
    notification = await _get_follow_request(user_id, notification_id, db)

    await social_graph.approve(db, producer, user_id, notification.follow_id)
    # The approved edge still exists, so the reference stays valid.
    notification.is_read = True
    notification.status = NotificationStatus.ACCEPTED
    await db.flush()
    return notification


async def reject_follow_request(
    user_id: int,
    notification_id: int,
    db: AsyncSession,
    producer: NotificationProducer,
) -> Notification:
    notification = await _get_follow_request(user_id, notification_id, db)

    await social_graph.reject(db, producer, user_id, notification.follow_id)
    notification.follow_id = None
    notification.is_read = True
    notification.status = NotificationStatus.REJECTED
    await db.flush()
    return notification
