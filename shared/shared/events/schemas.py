"""
Broker message contract: notification events.

Producers publish these as JSON with camelCase keys::

    {"recipientId": 7, "actorId": 3, "type": "LIKE_POST", "postId": 42,
     "occurredAt": "2024-05-01T10:00:00Z"}

The event is a tagged union keyed on ``type``. Each variant carries exactly one
reference field and forbids the others, so an event with zero or several
references cannot be constructed or parsed.
"""
from __future__ import annotations

import enum
from datetime import datetime, timezone
from typing import Annotated, Any, ClassVar, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel


class NotificationType(str, enum.Enum):
    LIKE_POST = "LIKE_POST"
    LIKE_COMMENT = "LIKE_COMMENT"
    COMMENT_POST = "COMMENT_POST"
    COMMENT_REPLY = "COMMENT_REPLY"
    FOLLOW = "FOLLOW"
    FOLLOW_REQUEST = "FOLLOW_REQUEST"
    FOLLOW_ACCEPT = "FOLLOW_ACCEPT"
    FOLLOW_REJECT = "FOLLOW_REJECT"
    NEW_POST = "NEW_POST"


class UnknownNotificationType(ValueError):
    """Raised when a message carries a ``type`` this consumer does not know."""

    def __init__(self, value: Any) -> None:
        self.value = value
        super().__init__(f"Unknown notification type: {value!r}")


def _now() -> datetime:
    return datetime.now(timezone.utc)


class _NotificationEventBase(BaseModel):
    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    reference_field: ClassVar[str]

    recipient_id: int
    actor_id: int
    occurred_at: datetime = Field(default_factory=_now)

    @property
    def notification_type(self) -> NotificationType:
        return NotificationType(self.type)

    @property
    def reference_id(self) -> int:
        return getattr(self, self.reference_field)

    def to_message(self) -> dict[str, Any]:
        """Serialize to the JSON-safe wire dict handed to the broker."""
        return self.model_dump(mode="json", by_alias=True)


class PostNotificationEvent(_NotificationEventBase):
    reference_field: ClassVar[str] = "post_id"

    type: Literal["LIKE_POST", "COMMENT_POST", "NEW_POST"]
    post_id: int


class CommentNotificationEvent(_NotificationEventBase):
    reference_field: ClassVar[str] = "comment_id"

    type: Literal["LIKE_COMMENT", "COMMENT_REPLY"]
    comment_id: int


class FollowNotificationEvent(_NotificationEventBase):
    reference_field: ClassVar[str] = "follow_id"

    type: Literal["FOLLOW", "FOLLOW_REQUEST", "FOLLOW_ACCEPT", "FOLLOW_REJECT"]
    follow_id: int


NotificationEvent = Annotated[
    Union[PostNotificationEvent, CommentNotificationEvent, FollowNotificationEvent],
    Field(discriminator="type"),
]

_EVENT_CLASS_BY_TYPE: dict[NotificationType, type[_NotificationEventBase]] = {
    NotificationType.LIKE_POST: PostNotificationEvent,
    NotificationType.COMMENT_POST: PostNotificationEvent,
    NotificationType.NEW_POST: PostNotificationEvent,
    NotificationType.LIKE_COMMENT: CommentNotificationEvent,
    NotificationType.COMMENT_REPLY: CommentNotificationEvent,
    NotificationType.FOLLOW: FollowNotificationEvent,
    NotificationType.FOLLOW_REQUEST: FollowNotificationEvent,
    NotificationType.FOLLOW_ACCEPT: FollowNotificationEvent,
    NotificationType.FOLLOW_REJECT: FollowNotificationEvent,
}

_event_adapter: TypeAdapter[NotificationEvent] = TypeAdapter(NotificationEvent)


def build_notification_event(
    type_: NotificationType,
    *,
    recipient_id: int,
    actor_id: int,
    reference_id: int,
) -> NotificationEvent:
    """Construct the variant for ``type_`` with its single reference field set."""
    event_cls = _EVENT_CLASS_BY_TYPE[type_]
    return event_cls(
        type=type_.value,
        recipient_id=recipient_id,
        actor_id=actor_id,
        **{event_cls.reference_field: reference_id},
    )


def parse_notification_event(payload: Any) -> NotificationEvent:
    """Validate a wire dict.

    Raises ``UnknownNotificationType`` for unrecognised ``type`` values and
    ``pydantic.ValidationError`` for any other malformed payload.
    """
    if not isinstance(payload, dict):
        # Let pydantic report the wrong top-level type as a ValidationError.
        return _event_adapter.validate_python(payload)
    raw_type = payload.get("type")
    try:
        NotificationType(raw_type)
    except ValueError:
        raise UnknownNotificationType(raw_type) from None
    return _event_adapter.validate_python(payload)
