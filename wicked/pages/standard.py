#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Regular wiki pages: the live page, a historical snapshot of it, and the
prompt shown for a page that does not exist yet.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import difflib
import logging
from datetime import datetime, timezone

from fastapi.responses import RedirectResponse

from wicked.pages.base import Mode, NotSupported, Page, Rendered, create_permissions


log = logging.getLogger(__name__)


def _redirect(url: str) -> RedirectResponse:
    return RedirectResponse(url=url, status_code=303)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Live page
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class StandardPage(Page):

    supported_modes = frozenset({
        Mode.CONTENT, Mode.DISPLAY, Mode.EDIT, Mode.REMOVE, Mode.HISTORY,
        Mode.DIFF, Mode.LOCK, Mode.UNLOCK, Mode.BLOCK,
    })

    def __init__(self, ctx, name: str, record: dict | None = None,
                 referrer: str | None = None):
        super().__init__(ctx, record, referrer)
        self._name = name

    @classmethod
    async def load(cls, ctx, name: str, referrer: str | None = None) -> "StandardPage":
        return cls(ctx, name, await ctx.store.get_page(name), referrer)

    # ── Accessors ────────────────────────────────────────────────────────

    def page_name(self) -> str:
        return self._name

    def _field(self, key: str):
        return self._page.get(key) if self._page else None

    def version(self) -> str | None:
        return self._field("page_version")

    def version_created(self) -> datetime | None:
        return self._field("version_created")

    def hits(self) -> int | None:
        return self._field("page_hits")

    def change_log(self) -> str | None:
        return self._field("change_log")

    def get_text(self) -> str:
        return self._field("page_text") or ""

    def is_locked(self) -> bool:
        expires = self._field("lock_expires")
        if expires is None:
            return False
        # SQLite hands back naive datetimes; they are stored as UTC
        if expires.tzinfo is None:
            expires = expires.replace(tzinfo=timezone.utc)
        return expires > datetime.now(tz=timezone.utc)

    def locked_by(self) -> str | None:
        return self._field("locked_by") if self.is_locked() else None

    # ── Modes ────────────────────────────────────────────────────────────

    async def display_contents(self, is_block: bool) -> Rendered:
        processor = await self.get_processor("xhtml")
        html = processor.transform(self.get_text())
        if not is_block and not self.is_old():
            await self.ctx.store.log_page_view(self.page_name())
        return self.ctx.views.render(
            "display/standard",
            page=self,
            text=html,
            is_block=is_block,
            edit_url=None if self.is_old() else self.ctx.url(self.page_name(), mode="edit"),
            history_url=self.ctx.url(self.page_name(), mode="history"),
            hits=self.hits(),
        )

    async def content(self, params=None) -> Rendered:
        return self.get_text()

    async def edit(self) -> Rendered:
        locker = self.locked_by()
        return self.ctx.views.render(
            "edit",
            name=self.page_name(),
            text=self.get_text(),
            action_url=self.ctx.url(self.page_name()),
            version=self.version(),
            locked=self.is_locked(),
            locked_by_other=locker is not None and locker != self.ctx.user_id,
            locker=await self.ctx.identity.display_name(locker) if locker else None,
        )

    async def remove(self) -> Rendered:
        return _redirect(self.ctx.url("DeletePage", referrer=self.page_name()))

    async def history_views(self) -> list[dict]:
        """``to_view()`` of the live version followed by every older one."""
        entries = [await self.to_view()]
        for item in await self.ctx.store.get_history(self.page_name()):
            record = dict(self._page, **item)
            snapshot = StandardHistoryPage(self.ctx, self.page_name(), record)
            entries.append(await snapshot.to_view())
        return entries

    async def history(self) -> Rendered:
        return self.ctx.views.render(
            "history",
            name=self.page_name(),
            entries=await self.history_views(),
            live_version=self.version(),
            can_remove=await self.allows(Mode.REMOVE),
            page_url=self.ctx.url(self.page_name()),
            url=self.ctx.url,
        )

    async def diff(self, version=None) -> Rendered:
        other = version or await self.previous_version()
        groups = []
        if other is not None:
            groups = await self.ctx.store.get_diff(self.page_name(), other, self.version())
        return self.ctx.views.render(
            "diff",
            name=self.page_name(),
            v1=other,
            v2=self.version(),
            groups=groups,
            page_url=self.ctx.url(self.page_name()),
        )

    async def lock(self) -> Rendered:
        await self.ctx.store.lock_page(self.page_name(), self.ctx.user_id,
                                       self.ctx.settings.lock_minutes)
        self.ctx.notifier.push(f'Locked "{self.page_name()}".', "success")
        return _redirect(self.ctx.url(self.page_name()))

    async def unlock(self) -> Rendered:
        await self.ctx.store.unlock_page(self.page_name())
        self.ctx.notifier.push(f'Unlocked "{self.page_name()}".', "success")
        return _redirect(self.ctx.url(self.page_name()))

    async def update_text(self, text: str, changelog: str = "") -> Rendered:
        name = self.page_name()
        old_text = self.get_text()
        record = await self.ctx.store.update_text(name, text, self.ctx.user_id, changelog)
        self._page = record
        self.ctx.notifier.push(f'Updated "{name}".', "success")

        diff = "".join(difflib.unified_diff(
            old_text.splitlines(keepends=True), text.splitlines(keepends=True),
            fromfile=name, tofile=name,
        ))
        body = (f"Changed page: {self.ctx.url(name, True)}\n"
                f"Changelog: {changelog}\n\n{diff}")
        await self.ctx.mailer(body, f"changed: {name} [{record['page_version']}]")
        return _redirect(self.ctx.url(name))

    async def handle_action(self) -> Rendered:
        action = self.ctx.form.get("actionID", "")
        name = self.page_name()

        if action == "save":
            if not await self.allows(Mode.EDIT):
                log.info("denied save of %r", name)
                self.ctx.notifier.push(f'You don\'t have permission to edit "{name}".', "warning")
                return _redirect(self.ctx.url(name))
            locker = self.locked_by()
            if locker is not None and locker != self.ctx.user_id:
                self.ctx.notifier.push(f'"{name}" is locked by another user.', "error")
                return _redirect(self.ctx.url(name, mode="edit"))
            return await self.update_text(self.ctx.form.get("text", ""),
                                          self.ctx.form.get("changelog", ""))

        if action in ("lock", "unlock"):
            mode = Mode(action)
            if not (await self.allows(mode) and await self.allows(Mode.EDIT)):
                log.info("denied %s of %r", action, name)
                self.ctx.notifier.push(f'You don\'t have permission to {action} "{name}".', "warning")
                return _redirect(self.ctx.url(name))
            return await (self.lock() if mode is Mode.LOCK else self.unlock())

        return NotSupported(f"action {action!r}")


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Historical snapshot
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class StandardHistoryPage(StandardPage):
    """A page bound to one non-current version."""

    supported_modes = frozenset({
        Mode.CONTENT, Mode.DISPLAY, Mode.HISTORY, Mode.DIFF, Mode.REMOVE,
    })

    @classmethod
    async def load_version(cls, ctx, name: str, version: str,
                           referrer: str | None = None) -> "StandardHistoryPage":
        return cls(ctx, name, await ctx.store.get_version(name, version), referrer)

    def is_old(self) -> bool:
        return True

    def page_url(self, linkpage=None, action_id=None, full=False, **params) -> str:
        params.setdefault("version", self.version())
        return super().page_url(linkpage, action_id, full, **params)

    async def history(self) -> Rendered:
        live = await StandardPage.load(self.ctx, self.page_name())
        return await live.history()

    async def remove(self) -> Rendered:
        return _redirect(self.ctx.url("DeletePage", referrer=self.page_name(),
                                      version=self.version()))



# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Create prompt
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class AddPage(Page):
    """Offered in place of a page that does not exist when the actor may
    create it."""

    supported_modes = frozenset({Mode.DISPLAY, Mode.CREATE, Mode.EDIT})

    def __init__(self, ctx, name: str, referrer: str | None = None):
        super().__init__(ctx, None, referrer)
        self._name = name

    def is_valid(self) -> bool:
        return True

    def page_name(self) -> str:
        return self._name

    async def get_permissions(self, page_name=None):
        return await create_permissions(self.ctx)

    async def display(self, params=None) -> Rendered:
        return self.ctx.views.render(
            "add",
            name=self.page_name(),
            referrer=self.referrer(),
            edit_url=self.ctx.url(self.page_name(), mode="edit", referrer=self.referrer()),
            form=False,
        )

    async def edit(self) -> Rendered:
        return self.ctx.views.render(
            "add",
            name=self.page_name(),
            referrer=self.referrer(),
            action_url=self.ctx.url(self.page_name()),
            form=True,
        )

    async def handle_action(self) -> Rendered:
        name = self.page_name()
        if self.ctx.form.get("actionID", "") != "create":
            return NotSupported("handle_action")
        if not await self.allows(Mode.CREATE):
            log.info("denied creation of %r", name)
            self.ctx.notifier.push(f'You don\'t have permission to create "{name}".', "warning")
            return _redirect(self.ctx.url(self.referrer() or self.ctx.settings.home_page))

        text = self.ctx.form.get("text", "")
        await self.ctx.store.new_page(name, text, self.ctx.user_id,
                                      self.ctx.form.get("changelog", ""))
        self.ctx.notifier.push(f'Created "{name}".', "success")
        await self.ctx.mailer(f"Created page: {self.ctx.url(name, True)}\n\n{text}\n",
                              f"created: {name}")
        return _redirect(self.ctx.url(name))


# -----------------------------------------------------------------------------
