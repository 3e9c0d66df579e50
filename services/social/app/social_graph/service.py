"""
Social graph domain — follow lifecycle, pure business logic (zero FastAPI routing).

State rules:
  follow:   target must exist; any existing edge (pending or approved) → conflict;
            private target → pending request, public target → approved at once
  unfollow: deletes the edge whatever its state
  approve:  only the followed user; idempotent once approved
  reject:   only the followed user; deletes the pending edge

No application-level locking: the (follower, followed) unique constraint and
row deletion make the first terminal transition win; a second approve/reject
on the same request sees NotFound.
"""
from __future__ import annotations

import logging

import sqlalchemy as sa
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import ConflictError, ForbiddenError, NotFoundError, UnprocessableError
from app.models import Follow, Notification, User
from app.notifications.producer import NotificationProducer
from app.social_graph.constants import FollowState

logger = logging.getLogger(__name__)


# ── Internal helpers ───────────────────────────────────────────────────────────

async def get_user_by_username(session: AsyncSession, username: str) -> User:
    result = await session.execute(sa.select(User).where(User.username == username))
    user = result.scalar_one_or_none()
    if user is None:
        raise NotFoundError("User")
    return user


async def _get_edge(
    session: AsyncSession, follower_id: int, followed_id: int
) -> Follow | None:
    result = await session.execute(
        sa.select(Follow).where(
            Follow.follower_id == follower_id,
            Follow.followed_id == followed_id,
        )
    )
    return result.scalar_one_or_none()


async def _get_request(session: AsyncSession, current_user_id: int, follow_id: int) -> Follow:
    edge = await session.get(Follow, follow_id)
    if edge is None:
        raise NotFoundError("Follow request")
    if edge.followed_id != current_user_id:
        raise ForbiddenError("You can only respond to follow requests sent to you.")
    return edge


async def _delete_edge(session: AsyncSession, edge: Follow) -> None:
    # Notifications keep their row but lose the reference to the deleted edge.
    await session.execute(
        sa.update(Notification)
        .where(Notification.follow_id == edge.follow_id)
        .values(follow_id=None)
    )
    await session.delete(edge)
    await session.flush()


# ── Transitions ────────────────────────────────────────────────────────────────

async def follow(
    session: AsyncSession,
    producer: NotificationProducer,
    follower_id: int,
    target_username: str,
) -> Follow:
    target = await get_user_by_username(session, target_username)
    if target.id == follower_id:
        raise UnprocessableError("You cannot follow yourself.")
    if await _get_edge(session, follower_id, target.id) is not None:
        raise ConflictError("Follow relationship already exists.")

    edge = Follow(
        follower_id=follower_id,
        followed_id=target.id,
        is_approved=not target.is_private,
    )
    session.add(edge)
    try:
        await session.flush()
    except IntegrityError:
        # Lost a race with a concurrent follow of the same pair.
        raise ConflictError("Follow relationship already exists.") from None

    if edge.is_approved:
        producer.send_follow(target.id, follower_id, edge.follow_id)
    else:
        producer.send_follow_request(target.id, follower_id, edge.follow_id)
    logger.info(
        "User %s followed %s (approved=%s, follow=%s)",
        follower_id,
        target.id,
        edge.is_approved,
        edge.follow_id,
    )
    return edge


async def unfollow(
    session: AsyncSession,
    follower_id: int,
    target_username: str,
) -> None:
    target = await get_user_by_username(session, target_username)
    edge = await _get_edge(session, follower_id, target.id)
    if edge is None:
        raise NotFoundError("Follow relationship")
    await _delete_edge(session, edge)


async def approve(
    session: AsyncSession,
    producer: NotificationProducer,
    current_user_id: int,
    follow_id: int,
) -> Follow:
    edge = await _get_request(session, current_user_id, follow_id)
    if edge.is_approved:
        return edge

    edge.is_approved = True
    await session.flush()
    producer.send_follow_accept(edge.follower_id, edge.followed_id, edge.follow_id)
    return edge


async def reject(
    session: AsyncSession,
    producer: NotificationProducer,
    current_user_id: int,
    follow_id: int,
) -> None:
    edge = await _get_request(session, current_user_id, follow_id)
    # Only a pending request can be rejected; approved edges end via unfollow.
    if edge.is_approved:
        raise NotFoundError("Follow request")
    follower_id, followed_id = edge.follower_id, edge.followed_id
    await _delete_edge(session, edge)
    producer.send_follow_reject(follower_id, followed_id, follow_id)


# ── Queries ────────────────────────────────────────────────────────────────────

async def follow_state(session: AsyncSession, follower_id: int, followed_id: int) -> FollowState:
    edge = await _get_edge(session, follower_id, followed_id)
    if edge is None:
        return FollowState.NONE
    return FollowState.APPROVED if edge.is_approved else FollowState.PENDING


async def is_following(session: AsyncSession, follower_id: int, followed_id: int) -> bool:
    """True only for approved edges."""
    return await follow_state(session, follower_id, followed_id) is FollowState.APPROVED


async def pending_requests_for(
    session: AsyncSession, user_id: int
) -> list[tuple[Follow, User]]:
    """Pending edges where ``user_id`` is followed, paired with the requesting user."""
    result = await session.execute(
        sa.select(Follow, User)
        .join(User, User.id == Follow.follower_id)
        .where(Follow.followed_id == user_id, Follow.is_approved.is_(False))
        .order_by(Follow.created_at.desc(), Follow.follow_id.desc())
    )
    return [(f, u) for f, u in result.all()]


async def get_followers(session: AsyncSession, user_id: int) -> list[tuple[Follow, User]]:
    result = await session.execute(
        sa.select(Follow, User)
        .join(User, User.id == Follow.follower_id)
        .where(Follow.followed_id == user_id, Follow.is_approved.is_(True))
        .order_by(Follow.created_at.desc(), Follow.follow_id.desc())
    )
    return [(f, u) for f, u in result.all()]


async def get_following(session: AsyncSession, user_id: int) -> list[tuple[Follow, User]]:
    result = await session.execute(
        sa.select(Follow, User)
        .join(User, User.id == Follow.followed_id)
        .where(Follow.follower_id == user_id, Follow.is_approved.is_(True))
        .order_by(Follow.created_at.desc(), Follow.follow_id.desc())
    )
    return [(f, u) for f, u in result.all()]


async def approved_follower_ids(session: AsyncSession, user_id: int) -> list[int]:
    result = await session.execute(
        sa.select(Follow.follower_id).where(
            Follow.followed_id == user_id, Follow.is_approved.is_(True)
        )
    )
    return list(result.scalars().all())


async def count_followers(session: AsyncSession, user_id: int) -> int:
    result = await session.execute(
        sa.select(sa.func.count())
        .select_from(Follow)
        .where(Follow.followed_id == user_id, Follow.is_approved.is_(True))
    )
    return result.scalar_one()


async def count_following(session: AsyncSession, user_id: int) -> int:
    result = await session.execute(
        sa.select(sa.func.count())
        .select_from(Follow)
        .where(Follow.follower_id == user_id, Follow.is_approved.is_(True))
    )
    return result.scalar_one()
