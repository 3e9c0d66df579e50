"""Interactions router — all /api/v1/interactions endpoints.

Handles posts, likes and comments.
Zero business logic — delegates entirely to controller.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import get_current_user, get_indexer, get_producer
from app.interactions import controller
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
from shared.models.user import CurrentUser

router = APIRouter(prefix="/interactions", tags=["Interactions"])

_404 = {"description": "Not found"}
_403 = {"description": "Forbidden"}
_409 = {"description": "Conflict — already liked"}
_422 = {"description": "Validation error"}


# ---------------------------------------------------------------------------
# Post endpoints
# ---------------------------------------------------------------------------


@router.post(
    "/posts",
    response_model=PostResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a post",
    description=(
        "Create a post with optional hashtags. Every approved follower of the author "
        "receives a NEW_POST notification; the post and any new hashtags are indexed for search."
    ),
)
async def create_post(
    body: CreatePostRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    producer: NotificationProducer = Depends(get_producer),
    indexer: SearchIndexer = Depends(get_indexer),
) -> PostResponse:
    return await controller.create_post(current_user.id, body, db, producer, indexer)


@router.get(
    "/posts/{post_id}",
    response_model=PostResponse,
    summary="Get a post",
    responses={404: _404},
)
async def get_post(
    post_id: int,
    db: AsyncSession = Depends(get_db),
) -> PostResponse:
    return await controller.get_post(post_id, db)


@router.patch(
    "/posts/{post_id}",
    response_model=PostResponse,
    summary="Edit a post",
    description="Author only. Omitted fields are unchanged; `hashtags` replaces the whole set.",
    responses={403: _403, 404: _404},
)
async def update_post(
    post_id: int,
    body: UpdatePostRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    indexer: SearchIndexer = Depends(get_indexer),
) -> PostResponse:
    return await controller.update_post(post_id, current_user.id, body, db, indexer)


@router.delete(
    "/posts/{post_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a post",
    description="Author only. Removes the post, its comments and likes, and its search document.",
    responses={403: _403, 404: _404},
)
async def delete_post(
    post_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    indexer: SearchIndexer = Depends(get_indexer),
) -> None:
    await controller.delete_post(post_id, current_user.id, db, indexer)


# ---------------------------------------------------------------------------
# Like endpoints
# ---------------------------------------------------------------------------


@router.post(
    "/posts/{post_id}/like",
    response_model=LikeResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Like a post",
    description="Returns 409 if already liked. The post author is notified unless it is you.",
    responses={404: _404, 409: _409},
)
async def like_post(
    post_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    producer: NotificationProducer = Depends(get_producer),
) -> LikeResponse:
    return await controller.like_post(post_id, current_user.id, db, producer)


@router.post(
    "/comments/{comment_id}/like",
    response_model=LikeResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Like a comment",
    responses={404: _404, 409: _409},
)
async def like_comment(
    comment_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    producer: NotificationProducer = Depends(get_producer),
) -> LikeResponse:
    return await controller.like_comment(comment_id, current_user.id, db, producer)


# ---------------------------------------------------------------------------
# Comment endpoints
# ---------------------------------------------------------------------------


@router.post(
    "/posts/{post_id}/comments",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Comment on a post",
    description=(
        "Top-level comments notify the post author (COMMENT_POST). Replies, with "
        "`parent_comment_id`, notify the parent comment's author (COMMENT_REPLY)."
    ),
    responses={404: _404, 422: _422},
)
async def add_comment(
    post_id: int,
    body: CreateCommentRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    producer: NotificationProducer = Depends(get_producer),
) -> CommentResponse:
    return await controller.add_comment(post_id, current_user.id, body, db, producer)
