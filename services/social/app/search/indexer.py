"""User/Post/Hashtag synchronization into OpenSearch.

Called inline by the mutation controllers right after the primary-store
commit. Every operation catches and logs its own failure and returns False
instead of raising, so a search outage never fails the user's request; the
index simply drifts until the next reindex. When the client is None (OpenSearch
disabled) every operation is a no-op returning False.

Update is an upsert (same as index). Reindex is delete followed by index.
"""

from __future__ import annotations

import logging
from typing import Any

from app.models import Hashtag, Post, User
from app.search.opensearch import HASHTAGS, POSTS, USERS, index_name

logger = logging.getLogger(__name__)


def build_user_document(user: User) -> dict[str, Any]:
    return {
        "user_id":    str(user.id),
        "username":   user.username,
        "first_name": user.first_name or "",
        "last_name":  user.last_name or "",
    }


def build_post_document(post: Post) -> dict[str, Any]:
    return {
        "post_id": str(post.post_id),
        "title":   post.title or "",
        "body":    post.body or "",
    }


def build_hashtag_document(hashtag: Hashtag) -> dict[str, Any]:
    return {
        "hashtag_id": str(hashtag.hashtag_id),
        "name":       hashtag.name,
    }


class SearchIndexer:
    def __init__(self, client, index_prefix: str, *, refresh: bool = False) -> None:
        self.client = client
        self.index_prefix = index_prefix
        self.refresh = refresh

    @property
    def enabled(self) -> bool:
        return self.client is not None

    async def _put(self, kind: str, doc_id: int, document: dict[str, Any]) -> bool:
        if self.client is None:
            return False
        try:
            await self.client.index(
                index=index_name(self.index_prefix, kind),
                id=str(doc_id),
                body=document,
                refresh=self.refresh,
            )
        except Exception as exc:
            logger.error("OpenSearch %s indexing failed for %s: %s", kind, doc_id, exc)
            return False
        logger.info("Indexed %s document %s", kind, doc_id)
        return True

    async def _delete(self, kind: str, doc_id: int) -> bool:
        if self.client is None:
            return False
        try:
            await self.client.delete(
                index=index_name(self.index_prefix, kind),
                id=str(doc_id),
                refresh=self.refresh,
                ignore=404,
            )
        except Exception as exc:
            logger.error("OpenSearch %s delete failed for %s: %s", kind, doc_id, exc)
            return False
        logger.info("Deleted %s document %s", kind, doc_id)
        return True

    # ── Users ─────────────────────────────────────────────────────────────────

    async def index_user(self, user: User) -> bool:
        return await self._put(USERS, user.id, build_user_document(user))

    async def update_user(self, user: User) -> bool:
        return await self.index_user(user)

    async def delete_user(self, user_id: int) -> bool:
        return await self._delete(USERS, user_id)

    async def reindex_user(self, user: User) -> bool:
        await self.delete_user(user.id)
        return await self.index_user(user)

    # ── Posts ─────────────────────────────────────────────────────────────────

    async def index_post(self, post: Post) -> bool:
        return await self._put(POSTS, post.post_id, build_post_document(post))

    async def update_post(self, post: Post) -> bool:
        return await self.index_post(post)

    async def delete_post(self, post_id: int) -> bool:
        return await self._delete(POSTS, post_id)

    async def reindex_post(self, post: Post) -> bool:
        await self.delete_post(post.post_id)
        return await self.index_post(post)

    # ── Hashtags ──────────────────────────────────────────────────────────────

    async def index_hashtag(self, hashtag: Hashtag) -> bool:
        return await self._put(HASHTAGS, hashtag.hashtag_id, build_hashtag_document(hashtag))

    async def update_hashtag(self, hashtag: Hashtag) -> bool:
        return await self.index_hashtag(hashtag)

    async def delete_hashtag(self, hashtag_id: int) -> bool:
        return await self._delete(HASHTAGS, hashtag_id)

    async def reindex_hashtag(self, hashtag: Hashtag) -> bool:
        await self.delete_hashtag(hashtag.hashtag_id)
        return await self.index_hashtag(hashtag)
