"""
Notification producer — turns domain outcomes into broker messages.

Services call the ``send_*`` helpers while handling a mutation; each helper
builds exactly one typed event and stages it. The request orchestration layer
calls ``flush()`` after the primary-store commit, which enqueues every staged
event on the arq queue consumed by ``app.worker``.

Delivery is fire-and-forget: a broker failure is logged and dropped, never
raised, so a lost notification can never undo a committed follow/like/comment.
Suppressing self-notifications is the caller's responsibility.
"""
from __future__ import annotations

import logging

from arq import ArqRedis

from shared.events.schemas import (
    NotificationEvent,
    NotificationType,
    build_notification_event,
)

logger = logging.getLogger(__name__)

DELIVER_NOTIFICATION_JOB = "deliver_notification"


class NotificationProducer:
    def __init__(self, pool: ArqRedis | None, queue_name: str) -> None:
        self._pool = pool
        self._queue_name = queue_name
        self.pending: list[NotificationEvent] = []

    # ── Staging ───────────────────────────────────────────────────────────────

    def publish(self, event: NotificationEvent) -> None:
        self.pending.append(event)

    def _stage(
        self,
        type_: NotificationType,
        recipient_id: int,
        actor_id: int,
        reference_id: int,
    ) -> NotificationEvent:
        event = build_notification_event(
            type_,
            recipient_id=recipient_id,
            actor_id=actor_id,
            reference_id=reference_id,
        )
        self.publish(event)
        return event

    def send_like_post(self, recipient_id: int, actor_id: int, post_id: int) -> NotificationEvent:
        return self._stage(NotificationType.LIKE_POST, recipient_id, actor_id, post_id)

    def send_like_comment(
        self, recipient_id: int, actor_id: int, comment_id: int
    ) -> NotificationEvent:
        return self._stage(NotificationType.LIKE_COMMENT, recipient_id, actor_id, comment_id)

    def send_comment_post(
        self, recipient_id: int, actor_id: int, post_id: int
    ) -> NotificationEvent:
        return self._stage(NotificationType.COMMENT_POST, recipient_id, actor_id, post_id)

    def send_comment_reply(
        self, recipient_id: int, actor_id: int, parent_comment_id: int
    ) -> NotificationEvent:
        return self._stage(
            NotificationType.COMMENT_REPLY, recipient_id, actor_id, parent_comment_id
        )

    def send_new_post(self, recipient_id: int, actor_id: int, post_id: int) -> NotificationEvent:
        return self._stage(NotificationType.NEW_POST, recipient_id, actor_id, post_id)

    def send_follow(self, recipient_id: int, actor_id: int, follow_id: int) -> NotificationEvent:
        return self._stage(NotificationType.FOLLOW, recipient_id, actor_id, follow_id)

    def send_follow_request(
        self, recipient_id: int, actor_id: int, follow_id: int
    ) -> NotificationEvent:
        return self._stage(NotificationType.FOLLOW_REQUEST, recipient_id, actor_id, follow_id)

    def send_follow_accept(
        self, recipient_id: int, actor_id: int, follow_id: int
    ) -> NotificationEvent:
        return self._stage(NotificationType.FOLLOW_ACCEPT, recipient_id, actor_id, follow_id)

    def send_follow_reject(
        self, recipient_id: int, actor_id: int, follow_id: int
    ) -> NotificationEvent:
        return self._stage(NotificationType.FOLLOW_REJECT, recipient_id, actor_id, follow_id)

    # ── Delivery ──────────────────────────────────────────────────────────────

    def discard(self) -> None:
        """Drop staged events (the triggering transaction was rolled back)."""
        self.pending.clear()

    async def flush(self) -> int:
        """Enqueue staged events. Returns how many the broker accepted."""
        events, self.pending = self.pending, []
        if not events:
            return 0
        if self._pool is None:
            logger.warning(
                "Notification broker not configured — dropping %d event(s)", len(events)
            )
            return 0

        sent = 0
        for event in events:
            try:
                job = await self._pool.enqueue_job(
                    DELIVER_NOTIFICATION_JOB,
                    event.to_message(),
                    _queue_name=self._queue_name,
                )
            except Exception:
                logger.exception(
                    "Failed to publish %s notification for user %s",
                    event.type,
                    event.recipient_id,
                )
                continue
            if job is not None:
                sent += 1
                logger.info(
                    "Published %s notification for user %s → job %s",
                    event.type,
                    event.recipient_id,
                    job.job_id,
                )
        return sent
