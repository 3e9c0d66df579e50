"""
Users domain — profile routes.

Routes (prefixed /api/v1):
  POST  /users                  Create a user (profile row + search document)
  PATCH /users/me               Update my first/last name
  PUT   /users/me/privacy       Switch my account between public and private
  GET   /users/{username}       Public profile with follower counts
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import get_current_user, get_indexer, get_optional_user
from app.search.indexer import SearchIndexer
from app.users import controller as ctrl
from app.users.schemas import (
    CreateUserRequest,
    PrivacyRequest,
    UpdateProfileRequest,
    UserProfileResponse,
    UserResponse,
)
from shared.models.user import CurrentUser

router = APIRouter(tags=["users"])


@router.post(
    "/users",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a user",
    responses={409: {"description": "Username or email already registered"}},
)
async def create_user(
    body: CreateUserRequest,
    session: AsyncSession = Depends(get_db),
    indexer: SearchIndexer = Depends(get_indexer),
) -> UserResponse:
    return await ctrl.create_user(session, indexer, body)


@router.patch("/users/me", response_model=UserResponse, summary="Update my profile")
async def update_my_profile(
    body: UpdateProfileRequest,
    current_user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
    indexer: SearchIndexer = Depends(get_indexer),
) -> UserResponse:
    return await ctrl.update_profile(session, indexer, current_user.id, body)


@router.put(
    "/users/me/privacy",
    response_model=UserResponse,
    summary="Set my account privacy",
    description="Only affects future follows; existing followers and requests are kept.",
)
async def set_my_privacy(
    body: PrivacyRequest,
    current_user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
) -> UserResponse:
    return await ctrl.set_privacy(session, current_user.id, body.is_private)


@router.get(
    "/users/{username}",
    response_model=UserProfileResponse,
    summary="Get a user profile",
    responses={404: {"description": "User not found"}},
)
async def get_profile(
    username: str,
    viewer: CurrentUser | None = Depends(get_optional_user),
    session: AsyncSession = Depends(get_db),
) -> UserProfileResponse:
    return await ctrl.get_profile(session, username, viewer.id if viewer else None)
