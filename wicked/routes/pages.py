#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Pages router (read-only API)
============================
GET /api/v1/pages/{page}           — page content, optionally rendered
GET /api/v1/pages/{page}/history   — version history, newest first

Both go through the same permission gate as the HTML views.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from wicked.core.database import get_db
from wicked.core.security import get_actor_id
from wicked.pages import Mode, WikiContext, get_page
from wicked.pages.base import Page
from wicked.pages.standard import StandardPage
from wicked.schemas import HistoryEntry, HistoryResponse, PageResponse

# -----------------------------------------------------------------------------

router = APIRouter(prefix="/pages", tags=["pages"])


async def _gated_page(ctx: WikiContext, name: str, mode: Mode,
                      version: str | None = None) -> Page:
    page = await get_page(ctx, name, version)
    if not page.is_valid() or page.version() is None:
        raise HTTPException(status_code=404, detail=f"Page '{name}' not found")
    if not await page.allows(mode):
        raise HTTPException(status_code=403, detail="Permission denied")
    return page


# -----------------------------------------------------------------------------

@router.get("/{page:path}/history", response_model=HistoryResponse)
async def page_history(
    page: str,
    request: Request,
    actor_id: Optional[str] = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db),
):
    ctx = await WikiContext.from_request(request, db, actor_id)
    live = await _gated_page(ctx, page, Mode.HISTORY)
    if not isinstance(live, StandardPage):
        raise HTTPException(status_code=404, detail="Unsupported")
    return HistoryResponse(
        name=live.page_name(),
        versions=[HistoryEntry(**entry) for entry in await live.history_views()],
    )


@router.get("/{page:path}", response_model=PageResponse)
async def get_page_content(
    page: str,
    request: Request,
    version: Optional[str] = None,
    format: Optional[Literal["plain", "rst", "xhtml"]] = None,
    actor_id: Optional[str] = Depends(get_actor_id),
    db: AsyncSession = Depends(get_db),
):
    ctx = await WikiContext.from_request(request, db, actor_id)
    obj = await _gated_page(ctx, page, Mode.CONTENT, version)
    text = await obj.render(Mode.CONTENT)

    rendered = None
    if format is not None:
        rendered = (await obj.get_processor(format)).transform(text)

    return PageResponse(
        name=obj.page_name(),
        version=obj.version(),
        author=await obj.author(),
        modified=obj.version_created(),
        hits=obj.hits(),
        locked=obj.is_locked(),
        is_old=obj.is_old(),
        text=text,
        rendered=rendered,
    )


# -----------------------------------------------------------------------------
