import pytest
import sqlalchemy as sa

from app.interactions import service
from app.interactions.exceptions import (
    AlreadyLikedError,
    CommentNotFoundError,
    ParentCommentMismatchError,
    PostAccessDeniedError,
)
from app.interactions.schemas import CreateCommentRequest, CreatePostRequest, UpdatePostRequest
from app.models import Follow, Hashtag, Like, Notification
from app.models.enums import NotificationType


async def _follow(db_session, follower, followed, approved=True) -> None:
    db_session.add(Follow(follower_id=follower.id, followed_id=followed.id, is_approved=approved))
    await db_session.flush()


async def _post(db_session, producer, author, **fields):
    post, _ = await service.create_post(author.id, CreatePostRequest(title="Hello", **fields), db_session, producer)
    producer.discard()
    return post


def test_hashtags_are_normalized() -> None:
    body = CreatePostRequest(title="t", hashtags=["#Python", "python", " AsyncIO ", "#", ""])
    assert body.hashtags == ["python", "asyncio"]


@pytest.mark.asyncio
async def test_new_post_notifies_approved_followers_only(db_session, producer, make_user) -> None:
    author = await make_user("author")
    fan = await make_user("fan")
    hopeful = await make_user("hopeful")
    await _follow(db_session, fan, author)
    await _follow(db_session, hopeful, author, approved=False)

    post, created = await service.create_post(
        author.id, CreatePostRequest(title="Hi", hashtags=["news"]), db_session, producer
    )

    assert [h.name for h in created] == ["news"]
    assert [h.name for h in post.hashtags] == ["news"]
    [event] = producer.pending
    assert event.notification_type is NotificationType.NEW_POST
    assert (event.recipient_id, event.actor_id, event.reference_id) == (fan.id, author.id, post.post_id)


@pytest.mark.asyncio
async def test_existing_hashtags_are_reused(db_session, producer, make_user) -> None:
    author = await make_user("author")
    await _post(db_session, producer, author, hashtags=["news"])

    _, created = await service.create_post(
        author.id, CreatePostRequest(title="Again", hashtags=["news", "sports"]), db_session, producer
    )

    assert [h.name for h in created] == ["sports"]
    count = await db_session.execute(sa.select(sa.func.count()).select_from(Hashtag))
    assert count.scalar_one() == 2


@pytest.mark.asyncio
async def test_only_author_can_edit_or_delete(db_session, producer, make_user) -> None:
    author = await make_user("author")
    other = await make_user("other")
    post = await _post(db_session, producer, author)

    with pytest.raises(PostAccessDeniedError):
        await service.update_post(post.post_id, other.id, UpdatePostRequest(title="x"), db_session)
    with pytest.raises(PostAccessDeniedError):
        await service.delete_post(post.post_id, other.id, db_session)

    updated, _ = await service.update_post(
        post.post_id, author.id, UpdatePostRequest(body="new body", hashtags=["fresh"]), db_session
    )
    assert updated.title == "Hello" and updated.body == "new body"
    assert [h.name for h in updated.hashtags] == ["fresh"]


@pytest.mark.asyncio
async def test_like_post_notifies_author_once(db_session, producer, make_user) -> None:
    author = await make_user("author")
    fan = await make_user("fan")
    post = await _post(db_session, producer, author)

    await service.like_post(fan.id, post.post_id, db_session, producer)
    with pytest.raises(AlreadyLikedError):
        await service.like_post(fan.id, post.post_id, db_session, producer)

    assert post.like_count == 1
    [event] = producer.pending
    assert event.notification_type is NotificationType.LIKE_POST
    assert (event.recipient_id, event.actor_id, event.reference_id) == (author.id, fan.id, post.post_id)


@pytest.mark.asyncio
async def test_self_like_is_not_notified(db_session, producer, make_user) -> None:
    author = await make_user("author")
    post = await _post(db_session, producer, author)

    await service.like_post(author.id, post.post_id, db_session, producer)

    assert post.like_count == 1
    assert producer.pending == []


@pytest.mark.asyncio
async def test_like_comment(db_session, producer, make_user) -> None:
    author = await make_user("author")
    commenter = await make_user("commenter")
    post = await _post(db_session, producer, author)
    comment = await service.add_comment(commenter.id, post.post_id, CreateCommentRequest(body="nice"), db_session, producer)
    producer.discard()

    await service.like_comment(author.id, comment.comment_id, db_session, producer)

    assert comment.like_count == 1
    [event] = producer.pending
    assert event.notification_type is NotificationType.LIKE_COMMENT
    assert (event.recipient_id, event.reference_id) == (commenter.id, comment.comment_id)
    with pytest.raises(CommentNotFoundError):
        await service.like_comment(author.id, 999, db_session, producer)


@pytest.mark.asyncio
async def test_comment_notifies_post_author(db_session, producer, make_user) -> None:
    author = await make_user("author")
    commenter = await make_user("commenter")
    post = await _post(db_session, producer, author)

    await service.add_comment(commenter.id, post.post_id, CreateCommentRequest(body="hi"), db_session, producer)
    await service.add_comment(author.id, post.post_id, CreateCommentRequest(body="thanks all"), db_session, producer)

    assert post.comment_count == 2
    [event] = producer.pending
    assert event.notification_type is NotificationType.COMMENT_POST
    assert (event.recipient_id, event.actor_id, event.reference_id) == (author.id, commenter.id, post.post_id)


@pytest.mark.asyncio
async def test_reply_notifies_parent_comment_author(db_session, producer, make_user) -> None:
    author = await make_user("author")
    first = await make_user("first")
    second = await make_user("second")
    post = await _post(db_session, producer, author)
    parent = await service.add_comment(first.id, post.post_id, CreateCommentRequest(body="q?"), db_session, producer)
    producer.discard()

    reply = await service.add_comment(
        second.id, post.post_id, CreateCommentRequest(body="a!", parent_comment_id=parent.comment_id), db_session, producer
    )
    await service.add_comment(
        first.id, post.post_id, CreateCommentRequest(body="ty", parent_comment_id=parent.comment_id), db_session, producer
    )

    assert reply.parent_comment_id == parent.comment_id
    assert parent.comment_count == 2
    [event] = producer.pending
    assert event.notification_type is NotificationType.COMMENT_REPLY
    assert (event.recipient_id, event.actor_id, event.reference_id) == (first.id, second.id, parent.comment_id)


@pytest.mark.asyncio
async def test_reply_must_target_same_post(db_session, producer, make_user) -> None:
    author = await make_user("author")
    post_a = await _post(db_session, producer, author)
    post_b = await _post(db_session, producer, author)
    parent = await service.add_comment(author.id, post_a.post_id, CreateCommentRequest(body="x"), db_session, producer)

    with pytest.raises(ParentCommentMismatchError):
        await service.add_comment(
            author.id, post_b.post_id, CreateCommentRequest(body="y", parent_comment_id=parent.comment_id), db_session, producer
        )
    with pytest.raises(CommentNotFoundError):
        await service.add_comment(
            author.id, post_b.post_id, CreateCommentRequest(body="y", parent_comment_id=999), db_session, producer
        )


@pytest.mark.asyncio
async def test_delete_post_clears_dependents(db_session, producer, make_user) -> None:
    author = await make_user("author")
    fan = await make_user("fan")
    post = await _post(db_session, producer, author)
    comment = await service.add_comment(fan.id, post.post_id, CreateCommentRequest(body="c"), db_session, producer)
    await service.like_post(fan.id, post.post_id, db_session, producer)
    await service.like_comment(author.id, comment.comment_id, db_session, producer)
    db_session.add_all([
        Notification(user_id=author.id, actor_id=fan.id, type=NotificationType.LIKE_POST, post_id=post.post_id),
        Notification(user_id=fan.id, actor_id=author.id, type=NotificationType.LIKE_COMMENT, comment_id=comment.comment_id),
    ])
    await db_session.flush()

    await service.delete_post(post.post_id, author.id, db_session)

    likes = await db_session.execute(sa.select(sa.func.count()).select_from(Like))
    assert likes.scalar_one() == 0
    refs = await db_session.execute(sa.select(Notification.post_id, Notification.comment_id))
    assert refs.all() == [(None, None), (None, None)]
