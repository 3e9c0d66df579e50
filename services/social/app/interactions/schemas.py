"""Interactions domain Pydantic V2 schemas.

All request fields carry Field(description=...) for OpenAPI documentation.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.models.enums import LikeTargetType


def _normalize_tags(tags: list[str]) -> list[str]:
    seen: list[str] = []
    for raw in tags:
        tag = raw.strip().lstrip("#").strip().lower()
        if tag and tag not in seen:
            seen.append(tag)
    return seen


# ---------------------------------------------------------------------------
# Post schemas
# ---------------------------------------------------------------------------


class CreatePostRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=300, description="Post title.")
    body: str = Field(default="", max_length=20000, description="Post body text.")
    hashtags: list[str] = Field(
        default_factory=list,
        max_length=30,
        description="Hashtag names, with or without a leading '#'. Lower-cased and de-duplicated.",
    )

    @field_validator("hashtags")
    @classmethod
    def _normalize_hashtags(cls, v: list[str]) -> list[str]:
        return _normalize_tags(v)


class UpdatePostRequest(BaseModel):
    """Partial update — omitted fields are left unchanged."""

    title: str | None = Field(default=None, min_length=1, max_length=300)
    body: str | None = Field(default=None, max_length=20000)
    hashtags: list[str] | None = Field(
        default=None,
        max_length=30,
        description="Replaces the post's hashtag set when provided.",
    )

    @field_validator("hashtags")
    @classmethod
    def _normalize_hashtags(cls, v: list[str] | None) -> list[str] | None:
        return None if v is None else _normalize_tags(v)


class PostResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    post_id: int
    author_id: int
    title: str
    body: str
    hashtags: list[str] = Field(default_factory=list)
    like_count: int
    comment_count: int
    created_at: datetime
    updated_at: datetime

    @field_validator("hashtags", mode="before")
    @classmethod
    def _hashtag_names(cls, v):
        return sorted(h if isinstance(h, str) else h.name for h in (v or []))


# ---------------------------------------------------------------------------
# Like schemas
# ---------------------------------------------------------------------------


class LikeResponse(BaseModel):
    """Returned after a successful like action."""

    model_config = ConfigDict(from_attributes=True)

    like_id: int
    user_id: int
    target_type: LikeTargetType = Field(description="POST or COMMENT.")
    target_id: int = Field(description="ID of the liked post or comment.")
    created_at: datetime


# ---------------------------------------------------------------------------
# Comment schemas
# ---------------------------------------------------------------------------


class CreateCommentRequest(BaseModel):
    """Request body for creating a comment or reply."""

    body: str = Field(..., min_length=1, max_length=2000, description="Comment text.")
    parent_comment_id: int | None = Field(
        default=None,
        description="ID of the parent comment for replies. Must belong to the same post.",
    )


class CommentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    comment_id: int
    post_id: int
    author_id: int
    parent_comment_id: int | None
    body: str
    like_count: int
    comment_count: int
    created_at: datetime
