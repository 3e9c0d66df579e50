"""Interactions controller — orchestration layer between router and service.

Order for every mutation: service call, commit, publish staged notification
events, then sync the search index. Index calls never raise.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import ConflictError, ForbiddenError, NotFoundError, UnprocessableError
from app.interactions import service
from app.interactions.exceptions import (
    AlreadyLikedError,
    CommentNotFoundError,
    ParentCommentMismatchError,
    PostAccessDeniedError,
    PostNotFoundError,
)
from app.interactions.schemas import (
    CommentResponse,
    CreateCommentRequest,
    CreatePostRequest,
    LikeResponse,
    PostResponse,
    UpdatePostRequest,
)
from app.notifications.producer import NotificationProducer
from app.search.indexer import SearchIndexer


# ---------------------------------------------------------------------------
# Post controllers
# ---------------------------------------------------------------------------


async def create_post(
    user_id: int,
    body: CreatePostRequest,
    db: AsyncSession,
    producer: NotificationProducer,
    indexer: SearchIndexer,
) -> PostResponse:
    post, new_hashtags = await service.create_post(user_id, body, db, producer)
    await db.commit()
    await producer.flush()
    for hashtag in new_hashtags:
        await indexer.index_hashtag(hashtag)
    await indexer.index_post(post)
    return PostResponse.model_validate(post)


async def get_post(post_id: int, db: AsyncSession) -> PostResponse:
    try:
        post = await service.get_post(post_id, db)
    except PostNotFoundError:
        raise NotFoundError("Post") from None
    return PostResponse.model_validate(post)


async def update_post(
    post_id: int,
    user_id: int,
    body: UpdatePostRequest,
    db: AsyncSession,
    indexer: SearchIndexer,
) -> PostResponse:
    try:
        post, new_hashtags = await service.update_post(post_id, user_id, body, db)
    except PostNotFoundError:
        raise NotFoundError("Post") from None
    except PostAccessDeniedError:
        raise ForbiddenError("You can only edit your own posts.") from None
    await db.commit()
    for hashtag in new_hashtags:
        await indexer.index_hashtag(hashtag)
    await indexer.update_post(post)
    return PostResponse.model_validate(post)


async def delete_post(
    post_id: int,
    user_id: int,
    db: AsyncSession,
    indexer: SearchIndexer,
) -> None:
    try:
        await service.delete_post(post_id, user_id, db)
    except PostNotFoundError:
        raise NotFoundError("Post") from None
    except PostAccessDeniedError:
        raise ForbiddenError("You can only delete your own posts.") from None
    await db.commit()
    await indexer.delete_post(post_id)


# ---------------------------------------------------------------------------
# Like controllers
# ---------------------------------------------------------------------------


async def like_post(
    post_id: int,
    user_id: int,
    db: AsyncSession,
    producer: NotificationProducer,
) -> LikeResponse:
    try:
        like = await service.like_post(user_id, post_id, db, producer)
    except PostNotFoundError:
        raise NotFoundError("Post") from None
    except AlreadyLikedError:
        raise ConflictError("You have already liked this post.") from None
    await db.commit()
    await producer.flush()
    return LikeResponse.model_validate(like)


async def like_comment(
    comment_id: int,
    user_id: int,
    db: AsyncSession,
    producer: NotificationProducer,
) -> LikeResponse:
    try:
        like = await service.like_comment(user_id, comment_id, db, producer)
    except CommentNotFoundError:
        raise NotFoundError("Comment") from None
    except AlreadyLikedError:
        raise ConflictError("You have already liked this comment.") from None
    await db.commit()
    await producer.flush()
    return LikeResponse.model_validate(like)


# ---------------------------------------------------------------------------
# Comment controllers
# ---------------------------------------------------------------------------


async def add_comment(
    post_id: int,
    user_id: int,
    body: CreateCommentRequest,
    db: AsyncSession,
    producer: NotificationProducer,
) -> CommentResponse:
    try:
        comment = await service.add_comment(user_id, post_id, body, db, producer)
    except PostNotFoundError:
        raise NotFoundError("Post") from None
    except CommentNotFoundError:
        raise NotFoundError("Parent comment") from None
    except ParentCommentMismatchError:
        raise UnprocessableError("Parent comment belongs to a different post.") from None
    await db.commit()
    await producer.flush()
    return CommentResponse.model_validate(comment)
