"""Full rebuild of the search indexes from the primary store.

Walks users, then hashtags, then posts in keyset-paginated batches (one short
session per batch) and reindexes every row. A failing row is counted and
logged by the indexer; the sweep always continues to the end.

Used by ``scripts/reindex_search.py`` and the optional nightly arq cron job.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass, field

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.models import Hashtag, Post, User
from app.search.indexer import SearchIndexer

logger = logging.getLogger(__name__)


@dataclass
class EntityReport:
    succeeded: int = 0
    failed: int = 0

    @property
    def total(self) -> int:
        return self.succeeded + self.failed


@dataclass
class ReindexReport:
    users: EntityReport = field(default_factory=EntityReport)
    hashtags: EntityReport = field(default_factory=EntityReport)
    posts: EntityReport = field(default_factory=EntityReport)

    @property
    def failed(self) -> int:
        return self.users.failed + self.hashtags.failed + self.posts.failed

    def as_dict(self) -> dict[str, dict[str, int]]:
        return {
            name: {"succeeded": report.succeeded, "failed": report.failed}
            for name, report in (
                ("users", self.users),
                ("hashtags", self.hashtags),
                ("posts", self.posts),
            )
        }


async def _batches(
    session_factory: async_sessionmaker[AsyncSession],
    model,
    pk,
    batch_size: int,
) -> AsyncIterator[list]:
    last_id = 0
    while True:
        async with session_factory() as session:
            result = await session.execute(
                select(model).where(pk > last_id).order_by(pk).limit(batch_size)
            )
            rows = list(result.scalars().all())
        if not rows:
            return
        yield rows
        if len(rows) < batch_size:
            return
        last_id = getattr(rows[-1], pk.key)


async def _sweep(
    session_factory: async_sessionmaker[AsyncSession],
    model,
    pk,
    batch_size: int,
    reindex_one: Callable[[object], Awaitable[bool]],
    report: EntityReport,
) -> None:
    async for rows in _batches(session_factory, model, pk, batch_size):
        for row in rows:
            if await reindex_one(row):
                report.succeeded += 1
            else:
                report.failed += 1
        logger.info(
            "Reindexed %s batch: %d ok, %d failed so far",
            model.__tablename__,
            report.succeeded,
            report.failed,
        )


async def reindex_all(
    session_factory: async_sessionmaker[AsyncSession],
    indexer: SearchIndexer,
    batch_size: int = 500,
) -> ReindexReport:
    report = ReindexReport()
    if not indexer.enabled:
        logger.warning("OpenSearch disabled — nothing to reindex")
        return report

    await _sweep(session_factory, User, User.id, batch_size, indexer.reindex_user, report.users)
    await _sweep(
        session_factory, Hashtag, Hashtag.hashtag_id, batch_size, indexer.reindex_hashtag, report.hashtags
    )
    await _sweep(session_factory, Post, Post.post_id, batch_size, indexer.reindex_post, report.posts)

    logger.info("Search reindex finished: %s", report.as_dict())
    return report
