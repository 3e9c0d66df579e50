"""Search service — pure business logic, no FastAPI imports.

Dual-path strategy:
  - OpenSearch client available → multi_match with fuzziness over the
    users/posts/hashtags indexes.
  - OpenSearch is None → case-insensitive LIKE over the primary store, so the
    endpoint keeps working (without typo-tolerance) while search is disabled.
"""

from __future__ import annotations

import logging

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import Hashtag, Post, User
from app.search import opensearch as os_helpers
from app.search.schemas import HashtagHit, PostHit, SearchKind, UserHit

logger = logging.getLogger(__name__)

Hit = UserHit | PostHit | HashtagHit


def _like(query: str) -> str:
    escaped = query.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


# ---------------------------------------------------------------------------
# OpenSearch path
# ---------------------------------------------------------------------------


async def _search_opensearch(
    os_client, index_prefix: str, kind: SearchKind, query: str, limit: int, offset: int
) -> list[Hit]:
    if kind is SearchKind.USERS:
        docs = await os_helpers.search_users(os_client, index_prefix, query, limit, offset)
        return [
            UserHit(
                id=int(d["user_id"]),
                username=d["username"],
                first_name=d.get("first_name") or None,
                last_name=d.get("last_name") or None,
            )
            for d in docs
        ]
    if kind is SearchKind.POSTS:
        docs = await os_helpers.search_posts(os_client, index_prefix, query, limit, offset)
        return [PostHit(id=int(d["post_id"]), title=d.get("title"), body=d.get("body")) for d in docs]
    docs = await os_helpers.search_hashtags(os_client, index_prefix, query, limit, offset)
    return [HashtagHit(id=int(d["hashtag_id"]), name=d["name"]) for d in docs]


# ---------------------------------------------------------------------------
# Postgres fallback
# ---------------------------------------------------------------------------


async def _search_postgres(
    db: AsyncSession, kind: SearchKind, query: str, limit: int, offset: int
) -> list[Hit]:
    pattern = _like(query)
    if kind is SearchKind.USERS:
        rows = await db.execute(
            select(User)
            .where(
                or_(
                    User.username.ilike(pattern, escape="\\"),
                    User.first_name.ilike(pattern, escape="\\"),
                    User.last_name.ilike(pattern, escape="\\"),
                )
            )
            .order_by(User.id)
            .offset(offset)
            .limit(limit)
        )
        return [
            UserHit(id=u.id, username=u.username, first_name=u.first_name, last_name=u.last_name)
            for u in rows.scalars().all()
        ]
    if kind is SearchKind.POSTS:
        rows = await db.execute(
            select(Post)
            .where(or_(Post.title.ilike(pattern, escape="\\"), Post.body.ilike(pattern, escape="\\")))
            .order_by(Post.post_id.desc())
            .offset(offset)
            .limit(limit)
        )
        return [PostHit(id=p.post_id, title=p.title, body=p.body) for p in rows.scalars().all()]
    rows = await db.execute(
        select(Hashtag)
        .where(Hashtag.name.ilike(pattern, escape="\\"))
        .order_by(Hashtag.name)
        .offset(offset)
        .limit(limit)
    )
    return [HashtagHit(id=h.hashtag_id, name=h.name) for h in rows.scalars().all()]


async def search(
    db: AsyncSession,
    os_client,
    index_prefix: str,
    kind: SearchKind,
    query: str,
    limit: int = 20,
    offset: int = 0,
) -> tuple[list[Hit], str]:
    """Return (hits, backend name)."""
    if os_client is not None:
        try:
            hits = await _search_opensearch(os_client, index_prefix, kind, query, limit, offset)
            return hits, "opensearch"
        except Exception as exc:
            logger.warning("OpenSearch %s search failed, falling back to Postgres: %s", kind.value, exc)
    return await _search_postgres(db, kind, query, limit, offset), "postgres"
