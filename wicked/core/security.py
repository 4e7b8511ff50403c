#!/usr/bin/env python
#
#
# ----------------------------------------------------------------------------
"""
Security utilities
==================
- Password hashing (bcrypt)
- JWT access and refresh token creation/verification
- FastAPI dependencies that identify the acting user (Bearer token or cookie)
"""
# ----------------------------------------------------------------------------

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import bcrypt as _bcrypt_lib
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt

from .config import get_settings


# ----------------------------------------------------------------------------
# Password hashing
# ----------------------------------------------------------------------------

def hash_password(plain: str) -> str:
    return _bcrypt_lib.hashpw(plain.encode("utf-8"), _bcrypt_lib.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    try:
        return _bcrypt_lib.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        return False


# ----------------------------------------------------------------------------
# JWT tokens
# ----------------------------------------------------------------------------

_oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/token")
_oauth2_optional = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/token", auto_error=False)


def _encode(subject: str, kind: str, lifetime: timedelta, extra: dict | None = None) -> str:
    s = get_settings()
    payload: dict[str, Any] = {
        "sub": str(subject),
        "exp": datetime.now(tz=timezone.utc) + lifetime,
        "type": kind,
    }
    if extra:
        payload.update(extra)
    return jwt.encode(payload, s.secret_key, algorithm=s.algorithm)


def create_access_token(subject: str, extra: dict | None = None) -> str:
    minutes = get_settings().access_token_expire_minutes
    return _encode(subject, "access", timedelta(minutes=minutes), extra)


def create_refresh_token(subject: str) -> str:
    days = get_settings().refresh_token_expire_days
    return _encode(subject, "refresh", timedelta(days=days))


def decode_token(token: str) -> dict[str, Any]:
    s = get_settings()
    try:
        payload = jwt.decode(token, s.secret_key, algorithms=[s.algorithm])
    except JWTError:
        raise _credentials_error()
    if payload.get("sub") is None:
        raise _credentials_error()
    return payload


def _credentials_error() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )


def _subject(token: str | None, kind: str) -> str | None:
    """Return the token subject, or None for a missing/invalid/wrong-kind token."""
    if not token:
        return None
    try:
        payload = decode_token(token)
    except HTTPException:
        return None
    return payload["sub"] if payload.get("type") == kind else None


# ----------------------------------------------------------------------------
# FastAPI dependencies
# ----------------------------------------------------------------------------

async def get_current_user_id(token: str = Depends(_oauth2_scheme)) -> str:
    user_id = _subject(token, "access")
    if user_id is None:
        raise _credentials_error()
    return user_id


async def get_actor_id(
    request: Request,
    token: str | None = Depends(_oauth2_optional),
) -> str | None:
    """The acting user for page requests: Bearer token first, then cookie.

    Anonymous access is allowed, so this never raises; guests get None.
    """
    return _subject(token, "access") or _subject(request.cookies.get("access_token"), "access")


def get_refreshed_user_id_cookie(request: Request) -> tuple[str | None, str | None]:
    """Return (user_id, new_access_token | None).

    Tries the access_token cookie first.  If it is missing or expired, falls
    back to the refresh_token cookie and issues a fresh access token so the
    caller can set it on the outgoing response.
    """
    user_id = _subject(request.cookies.get("access_token"), "access")
    if user_id:
        return user_id, None

    user_id = _subject(request.cookies.get("refresh_token"), "refresh")
    if user_id:
        return user_id, create_access_token(user_id)
    return None, None


# ----------------------------------------------------------------------------
