from functools import lru_cache

from fastapi import Depends, Request

from app.config import Settings
from app.notifications.producer import NotificationProducer
from app.search.indexer import SearchIndexer
from shared.auth.dependencies import get_current_user_optional, get_current_user_required

# Routes import auth dependencies from here, not from shared directly.
get_current_user = get_current_user_required
get_optional_user = get_current_user_optional


@lru_cache
def get_settings() -> Settings:
    return Settings()


def get_producer(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> NotificationProducer:
    """Per-request producer publishing to the pool opened in the app lifespan."""
    return NotificationProducer(
        getattr(request.app.state, "arq_pool", None),
        settings.notification_queue_name,
    )


def get_indexer(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> SearchIndexer:
    return SearchIndexer(
        getattr(request.app.state, "opensearch", None),
        settings.opensearch_index_prefix,
        refresh=settings.opensearch_refresh,
    )


def get_opensearch(request: Request):
    """AsyncOpenSearch client opened in the lifespan, or None when disabled/unreachable."""
    return getattr(request.app.state, "opensearch", None)
