import logging

import pytest

from app.models import Hashtag, Post, User
from app.search import opensearch as os_helpers
from app.search.indexer import SearchIndexer


def _user(**overrides) -> User:
    fields = {"id": 1, "username": "alice", "email": "alice@example.com", "first_name": "Alice", "last_name": "Liddell"}
    return User(**{**fields, **overrides})


@pytest.mark.asyncio
async def test_index_user_writes_search_fields_only(indexer, opensearch) -> None:
    assert await indexer.index_user(_user()) is True
    assert opensearch.docs["test_users"]["1"] == {
        "user_id": "1",
        "username": "alice",
        "first_name": "Alice",
        "last_name": "Liddell",
    }


@pytest.mark.asyncio
async def test_update_post_upserts(indexer, opensearch) -> None:
    post = Post(post_id=7, author_id=1, title="Draft", body="...")
    await indexer.index_post(post)
    post.title = "Final"

    assert await indexer.update_post(post) is True
    assert opensearch.docs["test_posts"]["7"]["title"] == "Final"
    assert len(opensearch.docs["test_posts"]) == 1


@pytest.mark.asyncio
async def test_delete_removes_document_and_tolerates_missing(indexer, opensearch) -> None:
    await indexer.index_hashtag(Hashtag(hashtag_id=3, name="python"))

    assert await indexer.delete_hashtag(3) is True
    assert opensearch.docs["test_hashtags"] == {}
    assert await indexer.delete_hashtag(3) is True


@pytest.mark.asyncio
async def test_reindex_replaces_stale_document(indexer, opensearch) -> None:
    opensearch.docs["test_posts"] = {"9": {"post_id": "9", "title": "stale", "body": "", "extra": "x"}}

    assert await indexer.reindex_post(Post(post_id=9, author_id=1, title="fresh", body="b")) is True
    assert opensearch.docs["test_posts"]["9"] == {"post_id": "9", "title": "fresh", "body": "b"}


@pytest.mark.asyncio
async def test_failures_are_logged_not_raised(indexer, opensearch, caplog) -> None:
    opensearch.down = True

    with caplog.at_level(logging.ERROR):
        assert await indexer.index_user(_user()) is False
        assert await indexer.delete_post(1) is False
        assert await indexer.reindex_hashtag(Hashtag(hashtag_id=2, name="x")) is False

    assert "OpenSearch users indexing failed for 1" in caplog.text
    assert "OpenSearch posts delete failed for 1" in caplog.text


@pytest.mark.asyncio
async def test_disabled_indexer_is_a_noop() -> None:
    indexer = SearchIndexer(None, "test")
    assert indexer.enabled is False
    assert await indexer.index_user(_user()) is False
    assert await indexer.delete_user(1) is False


@pytest.mark.asyncio
async def test_ensure_indexes_creates_all_three(opensearch) -> None:
    await os_helpers.ensure_indexes(opensearch, "test")
    assert opensearch.indices.created == ["test_users", "test_posts", "test_hashtags"]


@pytest.mark.asyncio
async def test_search_helpers_return_sources(indexer, opensearch) -> None:
    await indexer.index_user(_user())
    await indexer.index_user(_user(id=2, username="bob", first_name="Bob", last_name="Builder"))

    hits = await os_helpers.search_users(opensearch, "test", "liddell")

    assert [h["username"] for h in hits] == ["alice"]
    assert await os_helpers.search_posts(opensearch, "test", "anything") == []


@pytest.mark.asyncio
async def test_reindexed_user_is_found_once_with_fresh_fields(indexer, opensearch) -> None:
    await indexer.index_user(_user(first_name="Alicia"))

    assert await indexer.reindex_user(_user()) is True

    [hit] = await os_helpers.search_users(opensearch, "test", "alice")
    assert hit == {"user_id": "1", "username": "alice", "first_name": "Alice", "last_name": "Liddell"}
    assert await os_helpers.search_users(opensearch, "test", "alicia") == []


@pytest.mark.asyncio
async def test_reindexed_post_is_found_once_with_fresh_fields(indexer, opensearch) -> None:
    await indexer.index_post(Post(post_id=4, author_id=1, title="kernel notes", body="draft"))

    assert await indexer.reindex_post(Post(post_id=4, author_id=1, title="kernel notes", body="final")) is True

    [hit] = await os_helpers.search_posts(opensearch, "test", "kernel notes")
    assert hit == {"post_id": "4", "title": "kernel notes", "body": "final"}
