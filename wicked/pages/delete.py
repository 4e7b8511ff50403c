#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
DeletePage
==========
Two-step deletion of a page (all versions) or of one version of it.

GET  /DeletePage?referrer=<page>[&version=<v>]   confirmation form
POST /DeletePage  actionID=special               delete, then redirect

The permissions checked are those of the referrer page, so whoever may
remove that page may use this one.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging

from fastapi.responses import RedirectResponse
from starlette.responses import Response

from wicked.pages.base import Mode, Page, Rendered
from wicked.services.permissions import page_permission_name


log = logging.getLogger(__name__)


# -----------------------------------------------------------------------------

class DeletePage(Page):

    supported_modes = frozenset({Mode.DISPLAY})

    def is_valid(self) -> bool:
        return True

    def page_name(self) -> str:
        return "DeletePage"

    def page_title(self) -> str:
        return "Delete Page"

    async def get_permissions(self, page_name=None):
        return await super().get_permissions(self.referrer() or self.ctx.settings.home_page)

    def _redirect(self, name: str) -> RedirectResponse:
        return RedirectResponse(url=self.ctx.url(name, True), status_code=303)

    async def _target(self, version: str | None = None) -> Page:
        from wicked.pages.resolve import get_page
        return await get_page(self.ctx, self.referrer(), version)

    # ── Step 1: confirmation ─────────────────────────────────────────────

    async def pre_display(self, mode, params=None) -> Response | None:
        page = await self._target()
        if not await page.allows(Mode.REMOVE):
            return self._redirect(page.page_name())
        return None

    async def display(self, params=None) -> Rendered:
        version = self.ctx.form.get("version") or None
        page = await self._target(version)
        if not page.is_valid():
            return self._redirect(self.ctx.settings.home_page)

        if version is None:
            message = ("Are you sure you want to delete this page? "
                       "All versions will be permanently removed.")
        else:
            message = f"Are you sure you want to delete version {page.version()} of this page?"

        return self.ctx.views.render(
            "delete",
            message=message,
            action_url=self.ctx.url(self.page_name()),
            version=version or "",
            referrer=page.page_name(),
            page_url=page.page_url(),
            cancel_url=self.ctx.url(page.page_name()),
            is_locked=page.is_locked(),
        )

    # ── Step 2: deletion ─────────────────────────────────────────────────

    async def handle_action(self) -> Rendered:
        page = await self._target()
        name = page.page_name()
        if not await page.allows(Mode.REMOVE):
            log.info("denied deletion of %r", name)
            self.ctx.notifier.push(f'You don\'t have permission to delete "{name}".', "warning")
            return self._redirect(name)

        page_id = await self.ctx.store.get_page_id(name)
        version = self.ctx.form.get("version") or None
        if version is None:
            await self.ctx.store.remove_all_versions(name)
            await self._forget_permissions(page_id)
            self.ctx.notifier.push(f'Successfully deleted "{name}".', "success")
            await self.ctx.mailer(f"Deleted page: {name}\n", f"deleted: {name}")
            return self._redirect(self.ctx.settings.home_page)

        await self.ctx.store.remove_version(name, version)
        if not await self.ctx.store.page_exists(name):
            await self._forget_permissions(page_id)
        self.ctx.notifier.push(f'Deleted version {version} of "{name}".', "success")
        await self.ctx.mailer(f"Deleted version: {version} of {name}\n",
                              f"deleted: {name} [{version}]")
        return self._redirect(name)

    async def _forget_permissions(self, page_id: str | None) -> None:
        # a recreated page gets a new id, so the old entry could never match
        if page_id is not None:
            await self.ctx.perms.remove(page_permission_name(page_id))


# -----------------------------------------------------------------------------
