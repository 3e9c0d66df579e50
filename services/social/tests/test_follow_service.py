import pytest
import sqlalchemy as sa

from app.exceptions import ConflictError, ForbiddenError, NotFoundError, UnprocessableError
from app.models import Follow, Notification
from app.models.enums import NotificationType
from app.social_graph import service
from app.social_graph.constants import FollowState


@pytest.mark.asyncio
async def test_follow_public_account_is_approved_at_once(db_session, producer, make_user) -> None:
    alice = await make_user("alice")
    bob = await make_user("bob")

    edge = await service.follow(db_session, producer, alice.id, "bob")

    assert edge.is_approved is True
    assert await service.is_following(db_session, alice.id, bob.id)
    [event] = producer.pending
    assert event.notification_type is NotificationType.FOLLOW
    assert (event.recipient_id, event.actor_id, event.reference_id) == (bob.id, alice.id, edge.follow_id)


@pytest.mark.asyncio
async def test_follow_private_account_creates_pending_request(db_session, producer, make_user) -> None:
    alice = await make_user("alice")
    carol = await make_user("carol", is_private=True)

    edge = await service.follow(db_session, producer, alice.id, "carol")

    assert edge.is_approved is False
    assert await service.follow_state(db_session, alice.id, carol.id) is FollowState.PENDING
    assert not await service.is_following(db_session, alice.id, carol.id)
    [event] = producer.pending
    assert event.notification_type is NotificationType.FOLLOW_REQUEST
    assert event.recipient_id == carol.id


@pytest.mark.asyncio
async def test_follow_unknown_user(db_session, producer, make_user) -> None:
    alice = await make_user("alice")
    with pytest.raises(NotFoundError):
        await service.follow(db_session, producer, alice.id, "ghost")
    assert producer.pending == []


@pytest.mark.asyncio
async def test_cannot_follow_yourself(db_session, producer, make_user) -> None:
    alice = await make_user("alice")
    with pytest.raises(UnprocessableError):
        await service.follow(db_session, producer, alice.id, "alice")


@pytest.mark.asyncio
async def test_second_follow_conflicts_without_new_event(db_session, producer, make_user) -> None:
    alice = await make_user("alice")
    await make_user("carol", is_private=True)
    await service.follow(db_session, producer, alice.id, "carol")

    with pytest.raises(ConflictError):
        await service.follow(db_session, producer, alice.id, "carol")

    assert len(producer.pending) == 1
    count = await db_session.execute(sa.select(sa.func.count()).select_from(Follow))
    assert count.scalar_one() == 1


@pytest.mark.asyncio
async def test_approve_flips_edge_and_notifies_follower(db_session, producer, make_user) -> None:
    alice = await make_user("alice")
    carol = await make_user("carol", is_private=True)
    edge = await service.follow(db_session, producer, alice.id, "carol")

    approved = await service.approve(db_session, producer, carol.id, edge.follow_id)

    assert approved.is_approved is True
    assert await service.is_following(db_session, alice.id, carol.id)
    event = producer.pending[-1]
    assert event.notification_type is NotificationType.FOLLOW_ACCEPT
    assert (event.recipient_id, event.actor_id) == (alice.id, carol.id)


@pytest.mark.asyncio
async def test_approve_is_idempotent(db_session, producer, make_user) -> None:
    alice = await make_user("alice")
    carol = await make_user("carol", is_private=True)
    edge = await service.follow(db_session, producer, alice.id, "carol")
    await service.approve(db_session, producer, carol.id, edge.follow_id)
    staged = len(producer.pending)

    again = await service.approve(db_session, producer, carol.id, edge.follow_id)

    assert again.is_approved is True
    assert len(producer.pending) == staged


@pytest.mark.asyncio
async def test_only_followed_user_may_answer_request(db_session, producer, make_user) -> None:
    alice = await make_user("alice")
    await make_user("carol", is_private=True)
    mallory = await make_user("mallory")
    edge = await service.follow(db_session, producer, alice.id, "carol")

    with pytest.raises(ForbiddenError):
        await service.approve(db_session, producer, mallory.id, edge.follow_id)
    with pytest.raises(ForbiddenError):
        await service.reject(db_session, producer, alice.id, edge.follow_id)


@pytest.mark.asyncio
async def test_reject_deletes_edge_and_notifies_follower(db_session, producer, make_user) -> None:
    alice = await make_user("alice")
    carol = await make_user("carol", is_private=True)
    edge = await service.follow(db_session, producer, alice.id, "carol")
    follow_id = edge.follow_id

    await service.reject(db_session, producer, carol.id, follow_id)

    assert await service.follow_state(db_session, alice.id, carol.id) is FollowState.NONE
    event = producer.pending[-1]
    assert event.notification_type is NotificationType.FOLLOW_REJECT
    assert (event.recipient_id, event.actor_id, event.reference_id) == (alice.id, carol.id, follow_id)


@pytest.mark.asyncio
async def test_only_first_terminal_transition_wins(db_session, producer, make_user) -> None:
    alice = await make_user("alice")
    carol = await make_user("carol", is_private=True)
    edge = await service.follow(db_session, producer, alice.id, "carol")
    follow_id = edge.follow_id
    await service.reject(db_session, producer, carol.id, follow_id)

    with pytest.raises(NotFoundError):
        await service.reject(db_session, producer, carol.id, follow_id)
    with pytest.raises(NotFoundError):
        await service.approve(db_session, producer, carol.id, follow_id)


@pytest.mark.asyncio
async def test_reject_nulls_notification_references(db_session, producer, make_user) -> None:
    alice = await make_user("alice")
    carol = await make_user("carol", is_private=True)
    edge = await service.follow(db_session, producer, alice.id, "carol")
    notification = Notification(
        user_id=carol.id,
        actor_id=alice.id,
        type=NotificationType.FOLLOW_REQUEST,
        follow_id=edge.follow_id,
    )
    db_session.add(notification)
    await db_session.flush()

    await service.reject(db_session, producer, carol.id, edge.follow_id)

    result = await db_session.execute(
        sa.select(Notification.follow_id).where(
            Notification.notification_id == notification.notification_id
        )
    )
    assert result.scalar_one() is None


@pytest.mark.asyncio
async def test_unfollow_removes_pending_or_approved_edge(db_session, producer, make_user) -> None:
    alice = await make_user("alice")
    bob = await make_user("bob")
    await make_user("carol", is_private=True)
    await service.follow(db_session, producer, alice.id, "bob")
    await service.follow(db_session, producer, alice.id, "carol")

    await service.unfollow(db_session, alice.id, "bob")
    await service.unfollow(db_session, alice.id, "carol")

    assert await service.follow_state(db_session, alice.id, bob.id) is FollowState.NONE
    with pytest.raises(NotFoundError):
        await service.unfollow(db_session, alice.id, "bob")
    # Unfollowing does not notify anyone.
    assert len(producer.pending) == 2


@pytest.mark.asyncio
async def test_follower_lists_hold_only_approved_edges(db_session, producer, make_user) -> None:
    alice = await make_user("alice")
    bob = await make_user("bob")
    carol = await make_user("carol", is_private=True)
    await service.follow(db_session, producer, alice.id, "carol")
    await service.follow(db_session, producer, bob.id, "carol")
    pending = await service.pending_requests_for(db_session, carol.id)
    assert {u.username for _, u in pending} == {"alice", "bob"}

    await service.approve(db_session, producer, carol.id, pending[0][0].follow_id)

    followers = await service.get_followers(db_session, carol.id)
    assert [u.id for _, u in followers] == [pending[0][1].id]
    assert await service.approved_follower_ids(db_session, carol.id) == [pending[0][1].id]
    assert await service.count_followers(db_session, carol.id) == 1
    assert len(await service.pending_requests_for(db_session, carol.id)) == 1
    following = await service.get_following(db_session, pending[0][1].id)
    assert [u.username for _, u in following] == ["carol"]


@pytest.mark.asyncio
async def test_reject_after_approve_leaves_edge_untouched(db_session, producer, make_user) -> None:
    alice = await make_user("alice")
    carol = await make_user("carol", is_private=True)
    edge = await service.follow(db_session, producer, alice.id, "carol")
    await service.approve(db_session, producer, carol.id, edge.follow_id)
    staged = len(producer.pending)

    with pytest.raises(NotFoundError):
        await service.reject(db_session, producer, carol.id, edge.follow_id)

    assert await service.follow_state(db_session, alice.id, carol.id) is FollowState.APPROVED
    assert len(producer.pending) == staged
    assert NotificationType.FOLLOW_REJECT not in {e.notification_type for e in producer.pending}
