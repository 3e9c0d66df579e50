"""Search domain Pydantic V2 schemas."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class SearchKind(str, Enum):
    USERS = "users"
    POSTS = "posts"
    HASHTAGS = "hashtags"


class UserHit(BaseModel):
    id: int
    username: str
    first_name: str | None = None
    last_name: str | None = None


class PostHit(BaseModel):
    id: int
    title: str | None = None
    body: str | None = None


class HashtagHit(BaseModel):
    id: int
    name: str


class SearchResponse(BaseModel):
    type: SearchKind
    query: str
    items: list[UserHit | PostHit | HashtagHit] = Field(default_factory=list)
    limit: int
    offset: int
    backend: str = Field(description="'opensearch' or 'postgres' (fallback when OpenSearch is off).")
