#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Permission registry
===================
Named permission entries holding ``Perms`` bitmasks.

``wicked:pages`` carries the wiki-wide defaults; ``wicked:pages:<page id>``
overrides them for a single page.  An entry stores one bitmask for guests,
one for every authenticated user, and optional per-user grants which are
OR-ed with the authenticated bitmask.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import enum

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from wicked.models import Permission, PermissionGrant


# -----------------------------------------------------------------------------

class Perms(enum.IntFlag):
    NONE   = 0
    SHOW   = 2
    READ   = 4
    EDIT   = 8
    DELETE = 16

    ALL = SHOW | READ | EDIT | DELETE


PAGES_PERMISSION = "wicked:pages"


def page_permission_name(page_id: str) -> str:
    return f"{PAGES_PERMISSION}:{page_id}"


# -----------------------------------------------------------------------------

class PermissionRegistry:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _get(self, name: str) -> Permission | None:
        result = await self.db.execute(
            select(Permission)
            .where(Permission.name == name)
            .options(selectinload(Permission.grants))
        )
        return result.scalar_one_or_none()

    async def exists(self, name: str) -> bool:
        result = await self.db.execute(select(Permission.id).where(Permission.name == name))
        return result.scalar_one_or_none() is not None

    async def get_permissions(self, name: str, user_id: str | None) -> Perms:
        """Bitmask of *name* for *user_id*; no bits when the entry is missing."""
        perm = await self._get(name)
        if perm is None:
            return Perms.NONE
        if user_id is None:
            return Perms(perm.guest_perms)

        bits = perm.default_perms
        for grant in perm.grants:
            if grant.user_id == user_id:
                bits |= grant.perms
        return Perms(bits)

    async def has_permission(self, name: str, user_id: str | None, bit: Perms) -> bool:
        return bool(await self.get_permissions(name, user_id) & bit)

    # ── Administration ────────────────────────────────────────────────────

    async def set_permissions(
        self,
        name: str,
        default: Perms,
        guest: Perms = Perms.NONE,
    ) -> Permission:
        perm = await self._get(name)
        if perm is None:
            perm = Permission(name=name, grants=[])
            self.db.add(perm)
        perm.default_perms = int(default)
        perm.guest_perms = int(guest)
        await self.db.flush()
        return perm

    async def grant(self, name: str, user_id: str, perms: Perms) -> None:
        perm = await self._get(name)
        if perm is None:
            perm = await self.set_permissions(name, Perms.NONE)
        for grant in perm.grants:
            if grant.user_id == user_id:
                grant.perms = int(perms)
                break
        else:
            perm.grants.append(PermissionGrant(user_id=user_id, perms=int(perms)))
        await self.db.flush()

    async def remove(self, name: str) -> None:
        perm = await self._get(name)
        if perm is not None:
            await self.db.delete(perm)
            await self.db.flush()


# -----------------------------------------------------------------------------
