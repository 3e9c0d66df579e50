"""
Users domain — request orchestration. Profile writes are re-indexed after commit.
"""
from __future__ import annotations

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import ConflictError
from app.search.indexer import SearchIndexer
from app.social_graph import service as graph
from app.users import service as svc
from app.users.schemas import (
    CreateUserRequest,
    UpdateProfileRequest,
    UserProfileResponse,
    UserResponse,
)


async def create_user(
    session: AsyncSession, indexer: SearchIndexer, data: CreateUserRequest
) -> UserResponse:
    try:
        user = await svc.create_user(session, data)
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise ConflictError("Username or email is already registered.") from None
    await indexer.index_user(user)
    return UserResponse.model_validate(user)


async def get_profile(
    session: AsyncSession, username: str, viewer_id: int | None
) -> UserProfileResponse:
    user = await graph.get_user_by_username(session, username)
    state = None
    if viewer_id is not None and viewer_id != user.id:
        state = await graph.follow_state(session, viewer_id, user.id)
    return UserProfileResponse(
        **UserResponse.model_validate(user).model_dump(),
        followers_count=await graph.count_followers(session, user.id),
        following_count=await graph.count_following(session, user.id),
        follow_state=state,
    )


async def update_profile(
    session: AsyncSession, indexer: SearchIndexer, user_id: int, data: UpdateProfileRequest
) -> UserResponse:
    user = await svc.update_profile(session, user_id, data)
    await session.commit()
    await indexer.update_user(user)
    return UserResponse.model_validate(user)


async def set_privacy(session: AsyncSession, user_id: int, is_private: bool) -> UserResponse:
    user = await svc.set_privacy(session, user_id, is_private)
    await session.commit()
    return UserResponse.model_validate(user)
