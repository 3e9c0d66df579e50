"""
Notification consumer — turns queued events into Notification rows.

Runs inside the arq worker, independently of the request that published the
event. Per message:

  1. parse; unknown ``type`` or malformed payload → log + drop
  2. resolve recipient and actor; either missing → log + drop
  3. resolve the post/comment/follow reference; missing → keep a null reference,
     including when it is deleted between resolution and insert
  4. skip if a row with the same dedup key exists (broker redelivery)
  5. persist ``Notification(is_read=False)``

Every failure is logged and the message counts as handled: there is no
redelivery loop. Display order comes from ``created_at``, not from the order in
which concurrent workers happen to finish.
"""
from __future__ import annotations

import enum
import hashlib
import logging
from typing import Any

from pydantic import ValidationError
from sqlalchemy import exists, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.models import Comment, Follow, Notification, Post, User
from shared.events.schemas import (
    NotificationEvent,
    UnknownNotificationType,
    parse_notification_event,
)

logger = logging.getLogger(__name__)

_REFERENCE_MODELS: dict[str, type] = {
    "post_id": Post,
    "comment_id": Comment,
    "follow_id": Follow,
}


class DeliveryResult(str, enum.Enum):
    SAVED = "saved"
    DUPLICATE = "duplicate"
    DROPPED = "dropped"
    FAILED = "failed"


def dedup_key(event: NotificationEvent, window_seconds: int) -> str:
    """Deterministic key for one logical event; redeliveries map to the same key."""
    bucket = int(event.occurred_at.timestamp()) // max(window_seconds, 1)
    raw = "|".join(
        (
            event.type,
            str(event.recipient_id),
            str(event.actor_id),
            f"{event.reference_field}={event.reference_id}",
            str(bucket),
        )
    )
    return hashlib.sha256(raw.encode()).hexdigest()


async def _resolve_reference(session: AsyncSession, event: NotificationEvent) -> int | None:
    model = _REFERENCE_MODELS[event.reference_field]
    if await session.get(model, event.reference_id) is None:
        logger.info(
            "%s %s referenced by %s no longer exists — storing null reference",
            model.__name__,
            event.reference_id,
            event.type,
        )
        return None
    return event.reference_id


async def _already_delivered(session: AsyncSession, key: str) -> bool:
    result = await session.execute(select(exists().where(Notification.dedup_key == key)))
    return bool(result.scalar_one())


async def _insert(
    session: AsyncSession,
    event: NotificationEvent,
    recipient_id: int,
    actor_id: int,
    key: str,
    reference_id: int | None,
) -> int:
    notification = Notification(
        user_id=recipient_id,
        actor_id=actor_id,
        type=event.notification_type,
        is_read=False,
        dedup_key=key,
        **{event.reference_field: reference_id},
    )
    session.add(notification)
    await session.flush()
    notification_id = notification.notification_id
    await session.commit()
    return notification_id


async def _persist(
    session: AsyncSession, event: NotificationEvent, window_seconds: int
) -> DeliveryResult:
    recipient = await session.get(User, event.recipient_id)
    actor = await session.get(User, event.actor_id)
    if recipient is None or actor is None:
        logger.warning(
            "Dropping %s notification: recipient %s or actor %s no longer exists",
            event.type,
            event.recipient_id,
            event.actor_id,
        )
        return DeliveryResult.DROPPED
    # Plain ids survive a rollback; the ORM instances are expired by it.
    recipient_id, actor_id = recipient.id, actor.id

    key = dedup_key(event, window_seconds)
    if await _already_delivered(session, key):
        logger.info("Duplicate %s notification for user %s skipped", event.type, recipient_id)
        return DeliveryResult.DUPLICATE

    reference_id = await _resolve_reference(session, event)
    try:
        notification_id = await _insert(session, event, recipient_id, actor_id, key, reference_id)
    except IntegrityError:
        await session.rollback()
        if await _already_delivered(session, key):
            # Another worker stored the same event between our check and insert.
            logger.info("Duplicate %s notification for user %s skipped", event.type, recipient_id)
            return DeliveryResult.DUPLICATE
        if reference_id is None:
            raise
        # The reference was deleted after it was resolved.
        logger.info(
            "%s %s referenced by %s was deleted during delivery, storing null reference",
            event.reference_field,
            reference_id,
            event.type,
        )
        notification_id = await _insert(session, event, recipient_id, actor_id, key, None)

    logger.info("Notification %s saved for user %s", notification_id, recipient_id)
    return DeliveryResult.SAVED


async def consume_notification(
    session_factory: async_sessionmaker[AsyncSession],
    payload: Any,
    *,
    dedup_window_seconds: int = 60,
) -> DeliveryResult:
    try:
        event = parse_notification_event(payload)
    except UnknownNotificationType as exc:
        logger.warning("Dropping notification message with unknown type %r", exc.value)
        return DeliveryResult.DROPPED
    except ValidationError as exc:
        logger.warning("Dropping malformed notification message: %s", exc)
        return DeliveryResult.DROPPED

    logger.info("Received %s notification message for user %s", event.type, event.recipient_id)
    try:
        async with session_factory() as session:
            return await _persist(session, event, dedup_window_seconds)
    except Exception:
        logger.exception("Error processing %s notification message", event.type)
        return DeliveryResult.FAILED
