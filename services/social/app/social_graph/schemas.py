"""
Social graph domain — Pydantic V2 response schemas.
"""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from app.social_graph.constants import FollowState


class SocialUserRef(BaseModel):
    """Minimal user profile embedded in follow list items."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    first_name: str
    last_name: str
    is_private: bool


class FollowResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    follow_id: int
    follower_id: int
    followed_id: int
    is_approved: bool
    created_at: datetime


class FollowActionResponse(BaseModel):
    message: str
    state: FollowState
    follow: FollowResponse


class FollowListItem(BaseModel):
    id: int            # follow_id
    user: SocialUserRef  # the other party (followed or follower depending on context)
    created_at: datetime


class FollowListResponse(BaseModel):
    items: list[FollowListItem]
    total: int


class FollowRequestListResponse(BaseModel):
    """Pending requests awaiting the current user's decision."""

    items: list[FollowListItem]
    total: int
