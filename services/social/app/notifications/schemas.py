from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from app.models.enums import NotificationStatus, NotificationType


class NotificationSummary(BaseModel):
    """Single notification item for the notifications feed."""

    model_config = ConfigDict(from_attributes=True)

    id: int = Field(validation_alias="notification_id")
    type: NotificationType
    actor_id: int
    post_id: int | None = None
    comment_id: int | None = None
    # Present on pending FOLLOW_REQUEST notifications; null once the request is gone.
    follow_id: int | None = None
    status: NotificationStatus | None = None
    is_read: bool
    created_at: datetime


class NotificationsPageResponse(BaseModel):
    """Offset-paginated notifications list for the current user."""

    items: list[NotificationSummary]
    unread_count: int = Field(description="Unread notifications, regardless of the list filter.")
    limit: int = Field(description="Requested page size.")
    offset: int = Field(description="Requested offset.")


class MarkAllReadResponse(BaseModel):
    updated: int = Field(description="Notifications flipped from unread to read.")
