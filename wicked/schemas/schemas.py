#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Pydantic v2 schemas for request validation and response serialisation.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Auth
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int   # seconds


class RefreshRequest(BaseModel):
    refresh_token: str


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Users
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class UserCreate(BaseModel):
    username: str = Field(..., min_length=2, max_length=64, pattern=r"^[a-zA-Z0-9_.-]+$")
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=256)
    display_name: str = Field(default="", max_length=128)

    @field_validator("username")
    @classmethod
    def username_not_reserved(cls, v: str) -> str:
        reserved = {"admin", "system", "guest", "anonymous"}
        if v.lower() in reserved:
            raise ValueError(f"Username '{v}' is reserved")
        return v


class UserResponse(BaseModel):
    id: str
    username: str
    email: str
    display_name: str
    is_admin: bool
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Pages
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class PageResponse(BaseModel):
    name: str
    version: Optional[str] = None
    author: str
    modified: Optional[datetime] = None
    hits: Optional[int] = None
    locked: bool = False
    is_old: bool = False
    text: Optional[str] = None
    rendered: Optional[str] = None


class HistoryEntry(BaseModel):
    version: str
    author: str
    date: str
    timestamp: Optional[datetime] = None
    changelog: str = ""
    url: str


class HistoryResponse(BaseModel):
    name: str
    versions: list[HistoryEntry]
