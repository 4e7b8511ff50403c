#!/usr/bin/env python
#
#
# ----------------------------------------------------------------------------
"""
ORM Models for Wicked
=====================

Tables
------
users              — accounts with hashed passwords
pages              — one row per page name, with hit counter and lock flag
page_versions      — append-only version history (one row per save)
permissions        — named permission entries ("wicked:pages", "wicked:pages:<id>")
permission_grants  — per-user bitmasks attached to a permission entry

All primary keys are UUIDs.  Timestamps stored in UTC.
"""
# ----------------------------------------------------------------------------

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean, DateTime, ForeignKey, Index, Integer,
    String, Text, UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from wicked.core.database import Base


# ----------------------------------------------------------------------------

def _uuid_col(primary_key=False, nullable=False, **kw):
    """UUID column stored as String(36); works for both SQLite and PostgreSQL."""
    return mapped_column(
        String(36),
        primary_key=primary_key,
        nullable=nullable,
        default=lambda: str(uuid.uuid4()),
        **kw,
    )


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# users
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class User(Base):
    __tablename__ = "users"

    id:            Mapped[str]  = _uuid_col(primary_key=True)
    username:      Mapped[str]  = mapped_column(String(64),  unique=True, nullable=False, index=True)
    email:         Mapped[str]  = mapped_column(String(255), unique=True, nullable=False, index=True)
    display_name:  Mapped[str]  = mapped_column(String(128), nullable=False, default="")
    password_hash: Mapped[str]  = mapped_column(String(255), nullable=False)
    is_active:     Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    is_admin:      Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at:    Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# pages
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class Page(Base):
    __tablename__ = "pages"

    id:           Mapped[str]             = _uuid_col(primary_key=True)
    name:         Mapped[str]             = mapped_column(String(512), unique=True, nullable=False, index=True)
    hits:         Mapped[int]             = mapped_column(Integer, default=0, nullable=False)
    # Lock flag only: displayed and toggled, never arbitrated
    locked_by:    Mapped[str | None]      = mapped_column(String(36), ForeignKey("users.id"), nullable=True)
    lock_expires: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at:   Mapped[datetime]        = mapped_column(DateTime(timezone=True), default=_utcnow)

    versions: Mapped[list["PageVersion"]] = relationship(
        back_populates="page",
        cascade="all, delete-orphan",
        order_by="PageVersion.version",
    )

    @property
    def latest_version(self) -> "PageVersion | None":
        return self.versions[-1] if self.versions else None


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# page_versions  (append-only)
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class PageVersion(Base):
    __tablename__ = "page_versions"
    __table_args__ = (
        UniqueConstraint("page_id", "version", name="uq_page_versions_page_ver"),
        Index("ix_page_versions_page_latest", "page_id", "version"),
    )

    id:         Mapped[str]        = _uuid_col(primary_key=True)
    page_id:    Mapped[str]        = mapped_column(String(36), ForeignKey("pages.id", ondelete="CASCADE"), nullable=False, index=True)
    version:    Mapped[int]        = mapped_column(Integer, nullable=False)
    text:       Mapped[str]        = mapped_column(Text, nullable=False, default="")
    author_id:  Mapped[str | None] = mapped_column(String(36), ForeignKey("users.id"), nullable=True)
    changelog:  Mapped[str]        = mapped_column(String(512), default="", nullable=False)
    created_at: Mapped[datetime]   = mapped_column(DateTime(timezone=True), default=_utcnow)

    page: Mapped["Page"] = relationship(back_populates="versions")


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# permissions
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class Permission(Base):
    """
    A named permission entry.  ``default_perms`` applies to every
    authenticated user, ``guest_perms`` to anonymous visitors; both are
    ``Perms`` bitmasks.
    """
    __tablename__ = "permissions"

    id:            Mapped[str] = _uuid_col(primary_key=True)
    name:          Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    default_perms: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    guest_perms:   Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    grants: Mapped[list["PermissionGrant"]] = relationship(
        back_populates="permission",
        cascade="all, delete-orphan",
    )


class PermissionGrant(Base):
    __tablename__ = "permission_grants"
    __table_args__ = (
        UniqueConstraint("permission_id", "user_id", name="uq_permission_grants_perm_user"),
    )

    id:            Mapped[str] = _uuid_col(primary_key=True)
    permission_id: Mapped[str] = mapped_column(String(36), ForeignKey("permissions.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id:       Mapped[str] = mapped_column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    perms:         Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    permission: Mapped["Permission"] = relationship(back_populates="grants")
