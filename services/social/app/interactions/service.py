"""Interactions service — pure business logic, no FastAPI imports.

Posts, likes and comments are the mutations that feed the notification
pipeline. Every notification-worthy change stages its event on the producer;
the controller publishes after the commit. Self-interactions (liking your own
post, replying to your own comment) never notify.

The like_count / comment_count columns are denormalized counters updated in the
same transaction as the row they count.
"""

from __future__ import annotations

import logging

from sqlalchemy import and_, delete, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.interactions.exceptions import (
    AlreadyLikedError,
    CommentNotFoundError,
    ParentCommentMismatchError,
    PostAccessDeniedError,
    PostNotFoundError,
)
from app.interactions.schemas import CreateCommentRequest, CreatePostRequest, UpdatePostRequest
from app.models import Comment, Hashtag, Like, Notification, Post
from app.models.enums import LikeTargetType
from app.notifications.producer import NotificationProducer
from app.social_graph import service as social_graph

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Hashtags
# ---------------------------------------------------------------------------


async def upsert_hashtags(names: list[str], db: AsyncSession) -> tuple[list[Hashtag], list[Hashtag]]:
    """Return (all hashtags for ``names``, the subset created by this call)."""
    if not names:
        return [], []
    result = await db.execute(select(Hashtag).where(Hashtag.name.in_(names)))
    existing = {h.name: h for h in result.scalars().all()}

    created = [Hashtag(name=name) for name in names if name not in existing]
    db.add_all(created)
    if created:
        await db.flush()
    by_name = existing | {h.name: h for h in created}
    return [by_name[name] for name in names], created


# ---------------------------------------------------------------------------
# Posts
# ---------------------------------------------------------------------------


async def get_post(post_id: int, db: AsyncSession) -> Post:
    post = await db.get(Post, post_id)
    if post is None:
        raise PostNotFoundError(post_id)
    return post


async def _get_own_post(post_id: int, user_id: int, db: AsyncSession) -> Post:
    post = await get_post(post_id, db)
    if post.author_id != user_id:
        raise PostAccessDeniedError()
    return post


async def create_post(
    author_id: int,
    data: CreatePostRequest,
    db: AsyncSession,
    producer: NotificationProducer,
) -> tuple[Post, list[Hashtag]]:
    """Create a post and fan NEW_POST out to every approved follower.

    Returns (post, newly created hashtags) so the caller can index both.
    """
    hashtags, created = await upsert_hashtags(data.hashtags, db)
    post = Post(author_id=author_id, title=data.title, body=data.body, hashtags=hashtags)
    db.add(post)
    await db.flush()

    follower_ids = await social_graph.approved_follower_ids(db, author_id)
    for follower_id in follower_ids:
        producer.send_new_post(follower_id, author_id, post.post_id)
    logger.info("Post %s created by %s; %d follower(s) notified", post.post_id, author_id, len(follower_ids))
    return post, created


async def update_post(
    post_id: int,
    user_id: int,
    data: UpdatePostRequest,
    db: AsyncSession,
) -> tuple[Post, list[Hashtag]]:
    post = await _get_own_post(post_id, user_id, db)
    if data.title is not None:
        post.title = data.title
    if data.body is not None:
        post.body = data.body

    created: list[Hashtag] = []
    if data.hashtags is not None:
        hashtags, created = await upsert_hashtags(data.hashtags, db)
        post.hashtags = hashtags
    await db.flush()
    return post, created


async def delete_post(post_id: int, user_id: int, db: AsyncSession) -> None:
    post = await _get_own_post(post_id, user_id, db)

    comment_ids = select(Comment.comment_id).where(Comment.post_id == post_id)
    # Notifications outlive the post but lose their references to it.
    await db.execute(
        update(Notification).where(Notification.post_id == post_id).values(post_id=None)
    )
    await db.execute(
        update(Notification)
        .where(Notification.comment_id.in_(comment_ids))
        .values(comment_id=None)
    )
    await db.execute(
        delete(Like).where(
            or_(
                and_(Like.target_type == LikeTargetType.POST, Like.target_id == post_id),
                and_(Like.target_type == LikeTargetType.COMMENT, Like.target_id.in_(comment_ids)),
            )
        )
    )
    await db.execute(delete(Comment).where(Comment.post_id == post_id))
    await db.delete(post)
    await db.flush()


# ---------------------------------------------------------------------------
# Likes
# ---------------------------------------------------------------------------


async def _add_like(user_id: int, target_type: LikeTargetType, target_id: int, db: AsyncSession) -> Like:
    existing = await db.execute(
        select(Like.like_id).where(
            Like.user_id == user_id,
            Like.target_type == target_type,
            Like.target_id == target_id,
        )
    )
    if existing.scalar_one_or_none() is not None:
        raise AlreadyLikedError()

    like = Like(user_id=user_id, target_type=target_type, target_id=target_id)
    db.add(like)
    try:
        await db.flush()
    except IntegrityError:
        raise AlreadyLikedError() from None
    return like


async def like_post(
    user_id: int,
    post_id: int,
    db: AsyncSession,
    producer: NotificationProducer,
) -> Like:
    """Like a post. Raises AlreadyLikedError if already liked."""
    post = await get_post(post_id, db)
    like = await _add_like(user_id, LikeTargetType.POST, post_id, db)
    post.like_count += 1
    await db.flush()

    if post.author_id != user_id:
        producer.send_like_post(post.author_id, user_id, post_id)
    return like


async def like_comment(
    user_id: int,
    comment_id: int,
    db: AsyncSession,
    producer: NotificationProducer,
) -> Like:
    """Like a comment. Raises AlreadyLikedError if already liked."""
    comment = await db.get(Comment, comment_id)
    if comment is None:
        raise CommentNotFoundError(comment_id)
    like = await _add_like(user_id, LikeTargetType.COMMENT, comment_id, db)
    comment.like_count += 1
    await db.flush()

    if comment.author_id != user_id:
        producer.send_like_comment(comment.author_id, user_id, comment_id)
    return like


# ---------------------------------------------------------------------------
# Comments
# ---------------------------------------------------------------------------


async def add_comment(
    user_id: int,
    post_id: int,
    data: CreateCommentRequest,
    db: AsyncSession,
    producer: NotificationProducer,
) -> Comment:
    """Comment on a post, or reply to a comment on it.

    A top-level comment notifies the post author (COMMENT_POST); a reply
    notifies the parent comment's author (COMMENT_REPLY, referencing the parent
    comment). Neither fires when the recipient is the commenter.
    """
    post = await get_post(post_id, db)

    parent: Comment | None = None
    if data.parent_comment_id is not None:
        parent = await db.get(Comment, data.parent_comment_id)
        if parent is None:
            raise CommentNotFoundError(data.parent_comment_id)
        if parent.post_id != post_id:
            raise ParentCommentMismatchError()

    comment = Comment(
        post_id=post_id,
        author_id=user_id,
        parent_comment_id=data.parent_comment_id,
        body=data.body,
    )
    db.add(comment)
    post.comment_count += 1
    if parent is not None:
        parent.comment_count += 1
    await db.flush()

    if parent is None:
        if post.author_id != user_id:
            producer.send_comment_post(post.author_id, user_id, post_id)
    elif parent.author_id != user_id:
        producer.send_comment_reply(parent.author_id, user_id, parent.comment_id)
    return comment
