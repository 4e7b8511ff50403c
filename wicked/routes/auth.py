#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Auth router
===========
POST /api/v1/auth/register  — create account
POST /api/v1/auth/token     — login (OAuth2 form)
POST /api/v1/auth/refresh   — exchange refresh token for new access token
GET  /api/v1/auth/me        — current user info
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.ext.asyncio import AsyncSession

from wicked.core.config import get_settings
from wicked.core.database import get_db
from wicked.core.security import (
    create_access_token, create_refresh_token,
    decode_token, get_current_user_id,
)
from wicked.models import User
from wicked.schemas import RefreshRequest, TokenResponse, UserCreate, UserResponse
from wicked.services.users import authenticate_user, create_user, get_user_by_id

# -----------------------------------------------------------------------------

router = APIRouter(prefix="/auth", tags=["auth"])


def _tokens(user: User) -> TokenResponse:
    settings = get_settings()
    return TokenResponse(
        access_token=create_access_token(user.id, extra={"username": user.username}),
        refresh_token=create_refresh_token(user.id),
        expires_in=settings.access_token_expire_minutes * 60,
    )


# -----------------------------------------------------------------------------

@router.post("/register", response_model=UserResponse, status_code=201)
async def register(data: UserCreate, db: AsyncSession = Depends(get_db)):
    if not get_settings().allow_registration:
        raise HTTPException(status_code=403, detail="Public registration is disabled")
    return await create_user(db, data)


@router.post("/token", response_model=TokenResponse)
async def login(
    form: OAuth2PasswordRequestForm = Depends(),
    db: AsyncSession = Depends(get_db),
):
    return _tokens(await authenticate_user(db, form.username, form.password))


@router.post("/refresh", response_model=TokenResponse)
async def refresh(body: RefreshRequest, db: AsyncSession = Depends(get_db)):
    payload = decode_token(body.refresh_token)
    if payload.get("type") != "refresh":
        raise HTTPException(status_code=401, detail="Invalid refresh token")
    return _tokens(await get_user_by_id(db, payload["sub"]))


@router.get("/me", response_model=UserResponse)
async def me(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await get_user_by_id(db, user_id)


# -----------------------------------------------------------------------------
