"""
ARQ connection helpers shared by the API process and the worker.

The API process holds one pool for publishing notification jobs; worker
processes (app.worker) consume them independently.
"""
from __future__ import annotations

import logging
from urllib.parse import urlparse

from arq import ArqRedis, create_pool
from arq.connections import RedisSettings

logger = logging.getLogger(__name__)


def redis_settings_from_url(url: str) -> RedisSettings:
    """Parse a redis:// URL into ARQ RedisSettings."""
    parsed = urlparse(url)
    return RedisSettings(
        host=parsed.hostname or "localhost",
        port=parsed.port or 6379,
        database=int(parsed.path.lstrip("/") or 0),
        password=parsed.password,
        ssl=parsed.scheme == "rediss",
    )


async def open_pool(redis_url: str, queue_name: str) -> ArqRedis | None:
    """Create the publishing pool, or None when Redis is unreachable.

    Without a pool the producer logs and drops events; the API keeps serving.
    """
    try:
        pool = await create_pool(
            redis_settings_from_url(redis_url),
            default_queue_name=queue_name,
        )
    except Exception as exc:
        logger.warning("Notification broker unavailable — continuing without it: %s", exc)
        return None
    logger.info("ARQ notification pool initialized (queue=%s)", queue_name)
    return pool


async def close_pool(pool: ArqRedis | None) -> None:
    if pool is not None:
        await pool.aclose()
        logger.info("ARQ notification pool closed")
