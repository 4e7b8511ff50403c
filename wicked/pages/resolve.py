#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Page resolution
===============
Maps a requested page name (and optional version) to a page object.

Special pages are looked up by name in ``SPECIAL_PAGES``.  Everything else is
a regular page, in one of three shapes chosen by ``choose_variant``:

  LIVE      the current version (also when the requested version *is* the
            current one, or when the page is missing and cannot be created)
  SNAPSHOT  an older version
  CREATE    a prompt to create a missing page
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import enum
from typing import Callable, Optional

from wicked.pages.base import Mode, Page
from wicked.pages.context import WikiContext
from wicked.pages.delete import DeletePage
from wicked.pages.special import AllPages
from wicked.pages.standard import AddPage, StandardHistoryPage, StandardPage


PageFactory = Callable[[WikiContext, Optional[str]], Page]

SPECIAL_PAGES: dict[str, PageFactory] = {
    "AllPages":   lambda ctx, referrer: AllPages(ctx, referrer=referrer),
    "DeletePage": lambda ctx, referrer: DeletePage(ctx, referrer=referrer),
}


# -----------------------------------------------------------------------------

class Variant(enum.Enum):
    SPECIAL  = "special"
    LIVE     = "live"
    SNAPSHOT = "snapshot"
    CREATE   = "create"


def choose_variant(*, special: bool, requested_version: str | None,
                   live_valid: bool, live_version: str | None,
                   can_edit: bool) -> Variant:
    if special:
        return Variant.SPECIAL
    if requested_version:
        if live_valid and live_version == requested_version:
            return Variant.LIVE
        return Variant.SNAPSHOT
    if live_valid or not can_edit:
        return Variant.LIVE
    return Variant.CREATE


def special_page(name: str) -> PageFactory | None:
    if "/" in name:
        return None
    return SPECIAL_PAGES.get(name)


# -----------------------------------------------------------------------------

async def get_page(ctx: WikiContext, name: str | None = None,
                   version: str | None = None, referrer: str | None = None) -> Page:
    name = name or ctx.settings.home_page
    version = str(version) if version not in (None, "") else None

    factory = special_page(name)
    if factory is not None:
        return factory(ctx, referrer)

    live = await StandardPage.load(ctx, name, referrer)
    can_edit = False
    if version is None and not live.is_valid():
        can_edit = await live.allows(Mode.EDIT)

    variant = choose_variant(
        special=False,
        requested_version=version,
        live_valid=live.is_valid(),
        live_version=live.version(),
        can_edit=can_edit,
    )
    if variant is Variant.LIVE:
        return live
    if variant is Variant.SNAPSHOT:
        return await StandardHistoryPage.load_version(ctx, name, version, referrer)
    return AddPage(ctx, name, referrer)


async def get_current_page(ctx: WikiContext) -> Page:
    """The page named by the request's ``page``/``version``/``referrer`` fields."""
    return await get_page(
        ctx,
        (ctx.form.get("page") or "").rstrip("/"),
        ctx.form.get("version"),
        ctx.form.get("referrer"),
    )


# -----------------------------------------------------------------------------
