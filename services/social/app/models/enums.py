import enum

import sqlalchemy as sa

from shared.events.schemas import NotificationType


class NotificationStatus(str, enum.Enum):
    """Terminal status stamped on a FOLLOW_REQUEST notification once handled."""

    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"


class LikeTargetType(str, enum.Enum):
    POST = "POST"
    COMMENT = "COMMENT"


# VARCHAR + CHECK instead of a native PG enum so new kinds need no type migration.
notification_type_enum = sa.Enum(
    NotificationType, name="notificationtype", native_enum=False, length=32
)
notification_status_enum = sa.Enum(
    NotificationStatus, name="notificationstatus", native_enum=False, length=16
)
like_target_type_enum = sa.Enum(
    LikeTargetType, name="liketargettype", native_enum=False, length=16
)

__all__ = [
    "LikeTargetType",
    "NotificationStatus",
    "NotificationType",
    "like_target_type_enum",
    "notification_status_enum",
    "notification_type_enum",
]
