from datetime import datetime, timezone

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from shared.database.postgres import Base

from .enums import (
    NotificationStatus,
    NotificationType,
    notification_status_enum,
    notification_type_enum,
)


class Notification(Base):
    """Durable notification row. Written only by the notification consumer."""

    __tablename__ = "notifications"

    notification_id: Mapped[int] = mapped_column(sa.Integer, primary_key=True, autoincrement=True)
    # Recipient
    user_id: Mapped[int] = mapped_column(
        sa.Integer, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    actor_id: Mapped[int] = mapped_column(
        sa.Integer, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    type: Mapped[NotificationType] = mapped_column(notification_type_enum, nullable=False)
    # At most one of these is set; any may be nulled when the target row is deleted.
    post_id: Mapped[int | None] = mapped_column(
        sa.Integer, sa.ForeignKey("posts.post_id", ondelete="SET NULL"), nullable=True
    )
    comment_id: Mapped[int | None] = mapped_column(
        sa.Integer, sa.ForeignKey("comments.comment_id", ondelete="SET NULL"), nullable=True
    )
    follow_id: Mapped[int | None] = mapped_column(
        sa.Integer, sa.ForeignKey("follows.follow_id", ondelete="SET NULL"), nullable=True
    )
    status: Mapped[NotificationStatus | None] = mapped_column(
        notification_status_enum, nullable=True
    )
    is_read: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=False)
    # sha256 of type/recipient/actor/reference/time bucket; guards against redelivery
    dedup_key: Mapped[str | None] = mapped_column(sa.String(64), nullable=True, unique=True)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )

    __table_args__ = (
        sa.Index("ix_notifications_user_created_at", "user_id", "created_at"),
        sa.Index("ix_notifications_user_is_read", "user_id", "is_read"),
    )
