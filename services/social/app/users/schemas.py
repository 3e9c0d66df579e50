"""Users domain — Pydantic V2 schemas."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from app.social_graph.constants import FollowState

_USERNAME_PATTERN = r"^[A-Za-z0-9_.]{3,50}$"


class CreateUserRequest(BaseModel):
    username: str = Field(..., pattern=_USERNAME_PATTERN, description="3-50 chars: letters, digits, '_' or '.'.")
    email: EmailStr
    first_name: str = Field(default="", max_length=100)
    last_name: str = Field(default="", max_length=100)
    is_private: bool = Field(default=False, description="Private accounts approve each follower.")


class UpdateProfileRequest(BaseModel):
    """Partial update — omitted fields are left unchanged."""

    first_name: str | None = Field(default=None, max_length=100)
    last_name: str | None = Field(default=None, max_length=100)


class PrivacyRequest(BaseModel):
    is_private: bool


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    first_name: str
    last_name: str
    is_private: bool
    created_at: datetime


class UserProfileResponse(UserResponse):
    followers_count: int = 0
    following_count: int = 0
    follow_state: FollowState | None = Field(
        default=None,
        description="Viewer's edge to this user; null when anonymous or viewing yourself.",
    )
