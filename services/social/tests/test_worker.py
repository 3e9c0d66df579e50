import pytest

from app import worker
from app.config import Settings
from app.database import set_session_factory
from app.models import Follow
from shared.events.schemas import NotificationType, build_notification_event


def test_worker_consumes_the_notification_queue() -> None:
    settings = Settings()
    assert worker.WorkerSettings.queue_name == settings.notification_queue_name
    assert worker.WorkerSettings.max_jobs == settings.worker_max_jobs
    assert worker.deliver_notification in worker.WorkerSettings.functions
    assert worker.WorkerSettings.cron_jobs == []


@pytest.mark.asyncio
async def test_deliver_notification_job(session_factory, make_user) -> None:
    set_session_factory(session_factory)
    alice = await make_user("alice")
    bob = await make_user("bob")
    async with session_factory() as session:
        edge = Follow(follower_id=alice.id, followed_id=bob.id, is_approved=True)
        session.add(edge)
        await session.commit()
    payload = build_notification_event(
        NotificationType.FOLLOW, recipient_id=bob.id, actor_id=alice.id, reference_id=edge.follow_id
    ).to_message()
    ctx = {"settings": Settings()}

    assert await worker.deliver_notification(ctx, payload) == "saved"
    assert await worker.deliver_notification(ctx, payload) == "duplicate"
    assert await worker.deliver_notification(ctx, {"type": "NOPE"}) == "dropped"


@pytest.mark.asyncio
async def test_reindex_search_job(session_factory, make_user, opensearch) -> None:
    set_session_factory(session_factory)
    await make_user("alice")
    settings = Settings()

    report = await worker.reindex_search({"settings": settings, "opensearch": opensearch})

    assert report["users"] == {"succeeded": 1, "failed": 0}
    assert list(opensearch.docs[f"{settings.opensearch_index_prefix}_users"]) == ["1"]
