#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Page store
==========
Versioned storage for wiki pages, keyed by page name.

Every save appends a new PageVersion row; nothing is overwritten.  The live
page is the newest version.  Removing the live version promotes the next
newest one; removing the last remaining version removes the page.

Records handed to page objects are plain dicts:

    {"page_id", "page_name", "page_text", "page_version", "version_created",
     "change_author", "change_log", "page_hits", "locked_by", "lock_expires"}
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import difflib
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from wicked.models import Page, PageVersion


log = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------

def _record(page: Page, ver: PageVersion) -> dict:
    return {
        "page_id":         page.id,
        "page_name":       page.name,
        "page_text":       ver.text,
        "page_version":    str(ver.version),
        "version_created": ver.created_at,
        "change_author":   ver.author_id,
        "change_log":      ver.changelog,
        "page_hits":       page.hits,
        "locked_by":       page.locked_by,
        "lock_expires":    page.lock_expires,
    }


def _history_entry(ver: PageVersion) -> dict:
    return {
        "page_version":    str(ver.version),
        "version_created": ver.created_at,
        "change_author":   ver.author_id,
        "change_log":      ver.changelog,
    }


def _as_int(version: str | int | None) -> Optional[int]:
    try:
        return int(version)
    except (TypeError, ValueError):
        return None


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Store
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class PageStore:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _load(self, name: str) -> Page | None:
        result = await self.db.execute(
            select(Page)
            .where(Page.name == name)
            .options(selectinload(Page.versions))
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def _require(self, name: str) -> Page:
        page = await self._load(name)
        if page is None or not page.versions:
            raise HTTPException(status_code=404, detail=f"Page '{name}' not found")
        return page

    # ── Read ─────────────────────────────────────────────────────────────

    async def get_page_id(self, name: str) -> str | None:
        result = await self.db.execute(select(Page.id).where(Page.name == name))
        return result.scalar_one_or_none()

    async def get_page(self, name: str) -> dict | None:
        """Record of the live version, or None when the page does not exist."""
        page = await self._load(name)
        if page is None or page.latest_version is None:
            return None
        return _record(page, page.latest_version)

    async def get_version(self, name: str, version: str | int) -> dict | None:
        page = await self._load(name)
        wanted = _as_int(version)
        if page is None or wanted is None:
            return None
        for ver in page.versions:
            if ver.version == wanted:
                return _record(page, ver)
        return None

    async def get_history(self, name: str) -> list[dict]:
        """Every version except the live one, newest first."""
        page = await self._load(name)
        if page is None or not page.versions:
            return []
        older = page.versions[:-1]
        return [_history_entry(v) for v in reversed(older)]

    async def get_pages(self) -> list[str]:
        result = await self.db.execute(
            select(Page.name)
            .join(PageVersion, PageVersion.page_id == Page.id)
            .group_by(Page.name)
            .order_by(Page.name)
        )
        return list(result.scalars().all())

    async def page_exists(self, name: str) -> bool:
        return await self.get_page(name) is not None

    # ── Write ────────────────────────────────────────────────────────────

    async def new_page(
        self,
        name: str,
        text: str,
        author_id: Optional[str] = None,
        changelog: str = "",
    ) -> dict:
        existing = await self._load(name)
        if existing is not None and existing.versions:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Page '{name}' already exists",
            )
        page = existing or Page(name=name, versions=[])
        if existing is None:
            self.db.add(page)
        ver = PageVersion(version=1, text=text, author_id=author_id,
                          changelog=changelog or "Created page")
        page.versions.append(ver)
        await self.db.flush()
        return _record(page, ver)

    async def update_text(
        self,
        name: str,
        text: str,
        author_id: Optional[str] = None,
        changelog: str = "",
    ) -> dict:
        page = await self._require(name)
        next_ver = await self._next_version_number(page.id)
        ver = PageVersion(version=next_ver, text=text, author_id=author_id,
                          changelog=changelog)
        page.versions.append(ver)
        await self.db.flush()
        return _record(page, ver)

    async def _next_version_number(self, page_id: str) -> int:
        result = await self.db.execute(
            select(func.max(PageVersion.version)).where(PageVersion.page_id == page_id)
        )
        current = result.scalar_one_or_none()
        return (current or 0) + 1

    async def log_page_view(self, name: str) -> None:
        page = await self._load(name)
        if page is not None:
            page.hits += 1
            await self.db.flush()

    # ── Remove ───────────────────────────────────────────────────────────

    async def remove_version(self, name: str, version: str | int) -> None:
        page = await self._require(name)
        wanted = _as_int(version)
        matches = [v for v in page.versions if v.version == wanted]
        if not matches:
            raise HTTPException(status_code=404, detail=f"Version {version} not found")

        page.versions.remove(matches[0])
        log.info("removed version %s of %r", version, name)
        if not page.versions:
            await self.db.delete(page)
            log.info("removed %r: no versions left", name)
        await self.db.flush()

    async def remove_all_versions(self, name: str) -> None:
        page = await self._require(name)
        await self.db.delete(page)
        await self.db.flush()
        log.info("removed %r and all of its versions", name)

    # ── Locking ──────────────────────────────────────────────────────────

    async def lock_page(self, name: str, user_id: Optional[str], minutes: int) -> None:
        page = await self._require(name)
        page.locked_by = user_id
        page.lock_expires = datetime.now(tz=timezone.utc) + timedelta(minutes=minutes)
        await self.db.flush()
        log.info("locked %r for %d minutes", name, minutes)

    async def unlock_page(self, name: str) -> None:
        page = await self._require(name)
        page.locked_by = None
        page.lock_expires = None
        await self.db.flush()
        log.info("unlocked %r", name)

    # ── Diff ─────────────────────────────────────────────────────────────

    async def get_diff(self, name: str, from_ver: str | int, to_ver: str | int) -> list[dict]:
        """
        Return a structured diff between two versions.
        Each item: {"type": "equal"|"insert"|"delete", "lines": ["..."]}
        """
        page = await self._require(name)
        ver_map = {v.version: v for v in page.versions}
        a_ver = ver_map.get(_as_int(from_ver))
        b_ver = ver_map.get(_as_int(to_ver))
        if not a_ver:
            raise HTTPException(status_code=404, detail=f"Version {from_ver} not found")
        if not b_ver:
            raise HTTPException(status_code=404, detail=f"Version {to_ver} not found")

        a_lines = a_ver.text.splitlines(keepends=True)
        b_lines = b_ver.text.splitlines(keepends=True)

        groups = []
        matcher = difflib.SequenceMatcher(None, a_lines, b_lines)
        for tag, i1, i2, j1, j2 in matcher.get_opcodes():
            if tag == "equal":
                groups.append({"type": "equal", "lines": a_lines[i1:i2]})
                continue
            if tag in ("replace", "delete"):
                groups.append({"type": "delete", "lines": a_lines[i1:i2]})
            if tag in ("replace", "insert"):
                groups.append({"type": "insert", "lines": b_lines[j1:j2]})
        return groups


# -----------------------------------------------------------------------------
