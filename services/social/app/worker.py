"""
ARQ worker — notification delivery and search maintenance.

Runs as a SEPARATE process from the FastAPI API server.
Consumes notification jobs published by app.notifications.producer and
persists them through app.notifications.consumer.

Start:  arq app.worker.WorkerSettings
Scale:  run N instances; the dedup key keeps redeliveries from duplicating rows.

Architecture:
  API process:  commit mutation → enqueue deliver_notification → return
  Worker(s):    pick up job → resolve users/reference → insert Notification
  Redis:        durable job queue shared by every API and worker process
"""
from __future__ import annotations

import logging
from typing import Any

from arq import cron

from app.config import Settings
from app.task_queue import redis_settings_from_url
from shared.logging_setup import configure_logging

logger = logging.getLogger("social.worker")

_settings = Settings()


# ── Startup / shutdown hooks ────────────────────────────────────────────────


async def startup(ctx: dict[str, Any]) -> None:
    """Called once when the worker process starts."""
    settings = Settings()
    ctx["settings"] = settings
    configure_logging(settings.log_level)

    from app.database import init_db
    from app.search.opensearch import open_client

    init_db(settings.social_database_url)
    ctx["opensearch"] = await open_client(settings)

    logger.info(
        "Worker started — queue=%s, opensearch=%s",
        settings.notification_queue_name,
        "on" if ctx["opensearch"] is not None else "off",
    )


async def shutdown(ctx: dict[str, Any]) -> None:
    """Called once when the worker process stops."""
    client = ctx.get("opensearch")
    if client is not None:
        await client.close()
    logger.info("Worker shutting down")


# ── Notification delivery ───────────────────────────────────────────────────


async def deliver_notification(ctx: dict[str, Any], payload: dict[str, Any]) -> str:
    """Persist one notification event. Never raises; the result name is kept for debugging."""
    from app.database import get_session_factory
    from app.notifications.consumer import consume_notification

    settings: Settings = ctx["settings"]
    result = await consume_notification(
        get_session_factory(),
        payload,
        dedup_window_seconds=settings.notification_dedup_window_seconds,
    )
    return result.value


# ── Search maintenance ──────────────────────────────────────────────────────


async def reindex_search(ctx: dict[str, Any]) -> dict[str, dict[str, int]]:
    """Rebuild every search document from the primary store."""
    from app.database import get_session_factory
    from app.search.indexer import SearchIndexer
    from app.search.reindex import reindex_all

    settings: Settings = ctx["settings"]
    indexer = SearchIndexer(ctx.get("opensearch"), settings.opensearch_index_prefix)
    report = await reindex_all(get_session_factory(), indexer, settings.search_reindex_batch_size)
    return report.as_dict()


def _cron_jobs() -> list:
    if not _settings.search_reindex_cron_enabled:
        return []
    return [
        cron(
            reindex_search,
            hour={_settings.search_reindex_cron_hour},
            minute={0},
            run_at_startup=False,
        )
    ]


class WorkerSettings:
    """ARQ reads this class to configure the worker process."""
    functions = [deliver_notification, reindex_search]
    cron_jobs = _cron_jobs()
    on_startup = startup
    on_shutdown = shutdown
    redis_settings = redis_settings_from_url(_settings.redis_url)
    max_jobs = _settings.worker_max_jobs
    max_tries = 3
    job_timeout = _settings.worker_job_timeout
    # Keep results for 1 hour (for debugging)
    keep_result = 3600
    # Must match the queue the API publishes to
    queue_name = _settings.notification_queue_name
