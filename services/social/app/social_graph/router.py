"""
Social graph domain — follow routes.

Routes (prefixed /api/v1):
  POST   /users/{username}/follow          Follow (or request to follow) a user
  DELETE /users/{username}/unfollow        Remove a follow edge, pending or approved
  GET    /users/{username}/followers       Approved followers
  GET    /users/{username}/following       Approved followings
  GET    /follow-requests                  Pending requests sent to me
  POST   /follow-requests/{id}/approve     Approve a pending request
  DELETE /follow-requests/{id}/reject      Reject (delete) a pending request
"""
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import get_current_user, get_producer, get_settings
from app.notifications.producer import NotificationProducer
from app.rate_limit import limiter
from app.social_graph import controller as ctrl
from app.social_graph.schemas import (
    FollowActionResponse,
    FollowListResponse,
    FollowRequestListResponse,
    FollowResponse,
)
from shared.models.user import CurrentUser

router = APIRouter(tags=["social-graph"])

_404 = {"description": "User or follow edge not found"}
_403 = {"description": "Request was not sent to you"}
_409 = {"description": "Follow relationship already exists"}


# ── Follow / unfollow ──────────────────────────────────────────────────────────

@router.post(
    "/users/{username}/follow",
    response_model=FollowActionResponse,
    status_code=status.HTTP_200_OK,
    summary="Follow a user",
    description=(
        "Public accounts are followed immediately; private accounts receive a "
        "follow request. Rate-limited per client."
    ),
    responses={404: _404, 409: _409},
)
@limiter.limit(lambda: get_settings().follow_rate_limit)
async def follow_user(
    request: Request,
    username: str,
    current_user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
    producer: NotificationProducer = Depends(get_producer),
) -> FollowActionResponse:
    return await ctrl.follow_user(session, producer, current_user.id, username)


@router.delete(
    "/users/{username}/unfollow",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Unfollow a user or withdraw a pending request",
    responses={404: _404},
)
async def unfollow_user(
    username: str,
    current_user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
) -> None:
    await ctrl.unfollow_user(session, current_user.id, username)


# ── Lists ──────────────────────────────────────────────────────────────────────

@router.get(
    "/users/{username}/followers",
    response_model=FollowListResponse,
    summary="Approved followers of a user",
    responses={404: _404},
)
async def list_followers(
    username: str,
    current_user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
) -> FollowListResponse:
    return await ctrl.list_followers(session, username)


@router.get(
    "/users/{username}/following",
    response_model=FollowListResponse,
    summary="Users a user follows (approved only)",
    responses={404: _404},
)
async def list_following(
    username: str,
    current_user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
) -> FollowListResponse:
    return await ctrl.list_following(session, username)


# ── Follow requests ────────────────────────────────────────────────────────────

@router.get(
    "/follow-requests",
    response_model=FollowRequestListResponse,
    summary="Pending follow requests sent to me",
)
async def list_follow_requests(
    current_user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
) -> FollowRequestListResponse:
    return await ctrl.list_follow_requests(session, current_user.id)


@router.post(
    "/follow-requests/{follow_id}/approve",
    response_model=FollowResponse,
    summary="Approve a follow request",
    description="Idempotent: approving an already-approved request returns it unchanged.",
    responses={403: _403, 404: _404},
)
async def approve_follow_request(
    follow_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
    producer: NotificationProducer = Depends(get_producer),
) -> FollowResponse:
    return await ctrl.approve_request(session, producer, current_user.id, follow_id)


@router.delete(
    "/follow-requests/{follow_id}/reject",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Reject a follow request",
    responses={403: _403, 404: _404},
)
async def reject_follow_request(
    follow_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
    producer: NotificationProducer = Depends(get_producer),
) -> None:
    await ctrl.reject_request(session, producer, current_user.id, follow_id)
