"""
Users domain — profile rows that the follow graph and search index depend on.
"""
from __future__ import annotations

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import ConflictError, NotFoundError
from app.models import User
from app.users.schemas import CreateUserRequest, UpdateProfileRequest


async def get_user(session: AsyncSession, user_id: int) -> User:
    user = await session.get(User, user_id)
    if user is None:
        raise NotFoundError("User")
    return user


async def create_user(session: AsyncSession, data: CreateUserRequest) -> User:
    taken = await session.execute(
        sa.select(User.id).where(
            sa.or_(User.username == data.username, User.email == str(data.email).lower())
        )
    )
    if taken.first() is not None:
        raise ConflictError("Username or email is already registered.")

    user = User(
        username=data.username,
        email=str(data.email).lower(),
        first_name=data.first_name,
        last_name=data.last_name,
        is_private=data.is_private,
    )
    session.add(user)
    await session.flush()
    return user


async def update_profile(session: AsyncSession, user_id: int, data: UpdateProfileRequest) -> User:
    user = await get_user(session, user_id)
    for field, value in data.model_dump(exclude_none=True).items():
        setattr(user, field, value)
    await session.flush()
    return user


async def set_privacy(session: AsyncSession, user_id: int, is_private: bool) -> User:
    """Toggle the private flag. Existing edges, pending or approved, are untouched."""
    user = await get_user(session, user_id)
    user.is_private = is_private
    await session.flush()
    return user
