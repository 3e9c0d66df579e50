"""
Social graph domain — request orchestration.

Commits the primary-store change first, then hands staged notification events
to the broker.
"""
from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from app.models import Follow, User
from app.notifications.producer import NotificationProducer
from app.social_graph import service as svc
from app.social_graph.constants import FollowState
from app.social_graph.schemas import (
    FollowActionResponse,
    FollowListItem,
    FollowListResponse,
    FollowRequestListResponse,
    FollowResponse,
    SocialUserRef,
)


def _items(rows: list[tuple[Follow, User]]) -> list[FollowListItem]:
    return [
        FollowListItem(
            id=f.follow_id,
            user=SocialUserRef.model_validate(u),
            created_at=f.created_at,
        )
        for f, u in rows
    ]


async def follow_user(
    session: AsyncSession,
    producer: NotificationProducer,
    follower_id: int,
    username: str,
) -> FollowActionResponse:
    edge = await svc.follow(session, producer, follower_id, username)
    await session.commit()
    await producer.flush()
    if edge.is_approved:
        return FollowActionResponse(
            message="Followed successfully.",
            state=FollowState.APPROVED,
            follow=FollowResponse.model_validate(edge),
        )
    return FollowActionResponse(
        message="Follow request sent.",
        state=FollowState.PENDING,
        follow=FollowResponse.model_validate(edge),
    )


async def unfollow_user(session: AsyncSession, follower_id: int, username: str) -> None:
    await svc.unfollow(session, follower_id, username)
    await session.commit()


async def list_followers(session: AsyncSession, username: str) -> FollowListResponse:
    user = await svc.get_user_by_username(session, username)
    items = _items(await svc.get_followers(session, user.id))
    return FollowListResponse(items=items, total=len(items))


async def list_following(session: AsyncSession, username: str) -> FollowListResponse:
    user = await svc.get_user_by_username(session, username)
    items = _items(await svc.get_following(session, user.id))
    return FollowListResponse(items=items, total=len(items))


async def list_follow_requests(session: AsyncSession, user_id: int) -> FollowRequestListResponse:
    items = _items(await svc.pending_requests_for(session, user_id))
    return FollowRequestListResponse(items=items, total=len(items))


async def approve_request(
    session: AsyncSession,
    producer: NotificationProducer,
    user_id: int,
    follow_id: int,
) -> FollowResponse:
    edge = await svc.approve(session, producer, user_id, follow_id)
    await session.commit()
    await producer.flush()
    return FollowResponse.model_validate(edge)


async def reject_request(
    session: AsyncSession,
    producer: NotificationProducer,
    user_id: int,
    follow_id: int,
) -> None:
    await svc.reject(session, producer, user_id, follow_id)
    await session.commit()
    await producer.flush()
