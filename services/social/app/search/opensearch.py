"""OpenSearch client wrapper and index mappings.

Three indexes are managed by this service:
  {prefix}_users     — user profiles (username, first/last name)
  {prefix}_posts     — posts (title, body)
  {prefix}_hashtags  — hashtag names

Documents are disposable projections of primary-store rows and can always be
rebuilt with ``app.search.reindex``. Index creation is idempotent (ignore=400).
When OpenSearch is disabled (`opensearch_enabled=False`) the client is None and
indexing becomes a no-op.
"""

from __future__ import annotations

import logging
from typing import Any

from app.config import Settings

logger = logging.getLogger(__name__)

USERS = "users"
POSTS = "posts"
HASHTAGS = "hashtags"

_SETTINGS: dict[str, Any] = {
    "number_of_shards": 1,
    "number_of_replicas": 1,
}

INDEX_MAPPINGS: dict[str, dict[str, Any]] = {
    USERS: {
        "settings": _SETTINGS,
        "mappings": {
            "properties": {
                "user_id":    {"type": "keyword"},
                "username":   {"type": "text", "fields": {"raw": {"type": "keyword"}}},
                "first_name": {"type": "text"},
                "last_name":  {"type": "text"},
            }
        },
    },
    POSTS: {
        "settings": _SETTINGS,
        "mappings": {
            "properties": {
                "post_id": {"type": "keyword"},
                "title":   {"type": "text"},
                "body":    {"type": "text"},
            }
        },
    },
    HASHTAGS: {
        "settings": _SETTINGS,
        "mappings": {
            "properties": {
                "hashtag_id": {"type": "keyword"},
                "name":       {"type": "text", "fields": {"raw": {"type": "keyword"}}},
            }
        },
    },
}

# Fields queried for each index, with boosts
SEARCH_FIELDS: dict[str, list[str]] = {
    USERS: ["username^3", "first_name", "last_name"],
    POSTS: ["title^3", "body"],
    HASHTAGS: ["name"],
}


def index_name(index_prefix: str, kind: str) -> str:
    return f"{index_prefix}_{kind}"


def build_client(settings: Settings):
    """Build an AsyncOpenSearch client from settings (None when disabled)."""
    if not settings.opensearch_enabled:
        return None

    from opensearchpy import AsyncOpenSearch

    use_ssl = settings.opensearch_url.startswith("https")
    common: dict[str, Any] = {
        "hosts": [settings.opensearch_url],
        "use_ssl": use_ssl,
        "http_compress": True,
        "timeout": settings.opensearch_timeout,
    }

    if settings.opensearch_auth_mode == "aws":
        # Amazon OpenSearch Service: sign requests with SigV4
        import boto3
        from opensearchpy import AWSV4SignerAsyncAuth

        credentials = boto3.Session().get_credentials()
        auth = AWSV4SignerAsyncAuth(credentials, settings.opensearch_aws_region, "es")
        return AsyncOpenSearch(http_auth=auth, verify_certs=True, **common)

    return AsyncOpenSearch(verify_certs=False, **common)


async def ensure_indexes(client, index_prefix: str) -> None:
    """Create the users/posts/hashtags indexes if they don't exist."""
    for kind, body in INDEX_MAPPINGS.items():
        await client.indices.create(
            index=index_name(index_prefix, kind),
            body=body,
            ignore=400,
        )


async def open_client(settings: Settings):
    """Build the client and create indexes; fall back to None if OpenSearch is down."""
    client = build_client(settings)
    if client is None:
        return None
    try:
        await ensure_indexes(client, settings.opensearch_index_prefix)
    except Exception as exc:
        logger.warning("OpenSearch unavailable — continuing without it: %s", exc)
        await client.close()
        return None
    return client


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


async def _multi_match(
    client, index_prefix: str, kind: str, query: str, limit: int, offset: int
) -> list[dict[str, Any]]:
    body = {
        "query": {
            "multi_match": {
                "query": query,
                "fields": SEARCH_FIELDS[kind],
                "type": "best_fields",
                "fuzziness": "AUTO",
            }
        },
        "from": offset,
        "size": limit,
    }
    response = await client.search(index=index_name(index_prefix, kind), body=body, ignore=404)
    hits = (response or {}).get("hits", {}).get("hits", [])
    return [hit["_source"] for hit in hits]


async def search_users(
    client, index_prefix: str, query: str, limit: int = 20, offset: int = 0
) -> list[dict[str, Any]]:
    return await _multi_match(client, index_prefix, USERS, query, limit, offset)


async def search_posts(
    client, index_prefix: str, query: str, limit: int = 20, offset: int = 0
) -> list[dict[str, Any]]:
    return await _multi_match(client, index_prefix, POSTS, query, limit, offset)


async def search_hashtags(
    client, index_prefix: str, query: str, limit: int = 20, offset: int = 0
) -> list[dict[str, Any]]:
    return await _multi_match(client, index_prefix, HASHTAGS, query, limit, offset)
