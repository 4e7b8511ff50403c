#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Jinja2 UI views (server-rendered HTML pages)
============================================
GET  /                 — redirect to the home page
GET  /login            — login form
POST /login            — process login
GET  /logout           — logout
GET  /{page}           — render a page; ?mode=display|edit|history|diff|remove|
                         content|block, ?version=, ?referrer=, ?v1=&v2= for diffs
POST /{page}           — perform the page's action (actionID=save|lock|unlock|
                         create|special)

Every page request is answered by a page object (``wicked.pages``): the
router builds a ``WikiContext``, resolves the page, runs its pre-display
hook, checks ``allows(mode)`` and renders.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
from urllib.parse import quote

from fastapi import APIRouter, Depends, Form, HTTPException, Request
from fastapi.responses import HTMLResponse, PlainTextResponse, RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.responses import Response

from wicked.core.config import get_settings
from wicked.core.database import get_db
from wicked.core.security import (
    create_access_token, create_refresh_token, get_refreshed_user_id_cookie,
)
from wicked.pages import Mode, NotSupported, WikiContext, get_current_page
from wicked.services.users import authenticate_user
from wicked.ui.templating import templates


log = logging.getLogger(__name__)


# -----------------------------------------------------------------------------

router = APIRouter(tags=["ui"])


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------

def _ctx(user, **extra) -> dict:
    """Base template context (request passed separately as first arg to TemplateResponse)."""
    settings = get_settings()
    return {
        "user": user,
        "site_name": settings.site_name,
        "app_version": settings.app_version,
        "home_page": settings.home_page,
        **extra,
    }


def _apply_new_token(response, new_token: str | None, expire_minutes: int) -> None:
    """If a refreshed access token was issued, set it on the response."""
    if new_token:
        response.set_cookie(
            key="access_token",
            value=new_token,
            httponly=True,
            max_age=expire_minutes * 60,
            samesite="lax",
        )


async def _wiki_context(request: Request, db: AsyncSession, page: str, form: dict):
    user_id, new_token = get_refreshed_user_id_cookie(request)
    form = dict(form)
    form["page"] = page
    return await WikiContext.from_request(request, db, user_id, form), new_token


def _finish(request: Request, ctx: WikiContext, new_token: str | None,
            result, title: str | None = None) -> Response:
    """Turn a page result into a response and carry pending flashes."""
    if isinstance(result, NotSupported):
        raise HTTPException(status_code=404, detail="Unsupported")

    if isinstance(result, Response):
        response = result
    else:
        response = templates.TemplateResponse(
            request,
            "page.html",
            _ctx(ctx.user, title=title, body=result, flashes=ctx.notifier.pop_all()),
        )
    ctx.notifier.save(response)
    _apply_new_token(response, new_token, ctx.settings.access_token_expire_minutes)
    return response


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Home
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@router.get("/", include_in_schema=False)
async def home():
    return RedirectResponse(url="/" + quote(get_settings().home_page, safe="/"), status_code=302)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Auth
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@router.get("/login", response_class=HTMLResponse)
async def login_form(request: Request, next: str = "/"):
    user_id, _ = get_refreshed_user_id_cookie(request)
    if user_id:
        return RedirectResponse(url=next, status_code=302)
    return templates.TemplateResponse(
        request,
        "login.html",
        _ctx(None, next=next, error=None),
    )


@router.post("/login", response_class=HTMLResponse)
async def login_submit(
    request: Request,
    username: str    = Form(...),
    password: str    = Form(...),
    next: str        = Form(default="/"),
    db: AsyncSession = Depends(get_db),
):
    try:
        user = await authenticate_user(db, username, password)
    except HTTPException:
        return templates.TemplateResponse(
            request,
            "login.html",
            _ctx(None, next=next, error="Invalid username or password"),
            status_code=401,
        )

    settings = get_settings()
    response = RedirectResponse(url=next, status_code=303)
    response.set_cookie(
        key="access_token",
        value=create_access_token(user.id, extra={"username": user.username}),
        httponly=True,
        max_age=settings.access_token_expire_minutes * 60,
        samesite="lax",
    )
    response.set_cookie(
        key="refresh_token",
        value=create_refresh_token(user.id),
        httponly=True,
        max_age=settings.refresh_token_expire_days * 86400,
        samesite="lax",
    )
    return response


@router.get("/logout")
async def logout():
    response = RedirectResponse(url="/", status_code=302)
    response.delete_cookie("access_token")
    response.delete_cookie("refresh_token")
    return response


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Pages
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@router.get("/{page:path}", response_class=HTMLResponse)
async def show_page(page: str, request: Request, db: AsyncSession = Depends(get_db)):
    ctx, new_token = await _wiki_context(request, db, page, request.query_params)
    try:
        mode = Mode(ctx.form.get("mode") or Mode.DISPLAY.value)
    except ValueError:
        raise HTTPException(status_code=404, detail="Unsupported")

    # v2 names the newer side of a diff
    if mode is Mode.DIFF and ctx.form.get("v2"):
        ctx.form["version"] = ctx.form["v2"]

    obj = await get_current_page(ctx)
    if not obj.is_valid():
        raise HTTPException(status_code=404, detail=f"Page '{obj.page_name()}' not found")

    redirect = await obj.pre_display(mode, ctx.form)
    if redirect is not None:
        return _finish(request, ctx, new_token, redirect)

    if not await obj.allows(mode):
        raise HTTPException(status_code=403, detail="Permission denied")

    params = ctx.form.get("v1") if mode is Mode.DIFF else ctx.form
    result = await obj.render(mode, params)

    if isinstance(result, str) and mode is Mode.CONTENT:
        result = PlainTextResponse(result)
    elif isinstance(result, str) and mode is Mode.BLOCK:
        result = HTMLResponse(result)
    return _finish(request, ctx, new_token, result, title=obj.page_title())


@router.post("/{page:path}")
async def page_action(page: str, request: Request, db: AsyncSession = Depends(get_db)):
    form = {k: v for k, v in (await request.form()).items() if isinstance(v, str)}
    ctx, new_token = await _wiki_context(request, db, page, form)

    obj = await get_current_page(ctx)
    log.debug("action %r on %r", ctx.form.get("actionID"), obj.page_name())
    result = await obj.handle_action()
    return _finish(request, ctx, new_token, result, title=obj.page_title())


# -----------------------------------------------------------------------------
