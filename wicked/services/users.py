#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
User service — create and authenticate accounts, resolve display names.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from fastapi import HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from wicked.core.security import hash_password, verify_password
from wicked.models import User
from wicked.schemas import UserCreate


# -----------------------------------------------------------------------------

async def create_user(db: AsyncSession, data: UserCreate) -> User:
    existing = await db.execute(select(User).where(User.username == data.username))
    if existing.scalar_one_or_none():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Username already taken")

    existing_email = await db.execute(select(User).where(User.email == str(data.email)))
    if existing_email.scalar_one_or_none():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")

    # The first account administers the wiki
    user_count = (await db.execute(select(func.count()).select_from(User))).scalar_one()

    user = User(
        username=data.username,
        email=str(data.email),
        display_name=data.display_name,
        password_hash=hash_password(data.password),
        is_admin=(user_count == 0),
    )
    db.add(user)
    await db.flush()
    return user


# -----------------------------------------------------------------------------

async def authenticate_user(db: AsyncSession, username: str, password: str) -> User:
    result = await db.execute(select(User).where(User.username == username))
    user = result.scalar_one_or_none()
    if not user or not verify_password(password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password",
        )
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account is disabled")
    return user


# -----------------------------------------------------------------------------

async def get_user_by_id(db: AsyncSession, user_id: str) -> User:
    user = await db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


async def get_user_by_id_or_none(db: AsyncSession, user_id: str | None) -> User | None:
    if not user_id:
        return None
    user = await db.get(User, user_id)
    if user is None or not user.is_active:
        return None
    return user


# -----------------------------------------------------------------------------

class Identity:
    """Resolves user ids to the names shown as page authors."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def display_name(self, user_id: str) -> str:
        user = await self.db.get(User, user_id)
        if user is None:
            return user_id
        return user.display_name or user.username


# -----------------------------------------------------------------------------
