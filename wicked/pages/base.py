#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Page objects
============
A page object answers one request for one wiki page.  It knows its name and
loaded record, which modes its variant supports, whether the current actor
may use a mode, and how to render each mode.

Operations a variant does not implement return ``NotSupported`` instead of
raising; the HTTP layer answers those with 404 "Unsupported".

Permission decisions are made by ``decide``, a pure function of the mode,
the effective bitmask and the actor's robot/admin flags.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Optional, Union

from starlette.responses import Response

from wicked.services.permissions import PAGES_PERMISSION, Perms, page_permission_name
from wicked.services.processor import LinkConf, Processor, build_processor

if TYPE_CHECKING:
    from wicked.pages.context import WikiContext


log = logging.getLogger(__name__)


# -----------------------------------------------------------------------------

class Mode(str, enum.Enum):
    CONTENT = "content"
    DISPLAY = "display"
    EDIT    = "edit"
    REMOVE  = "remove"
    HISTORY = "history"
    DIFF    = "diff"
    LOCK    = "lock"
    UNLOCK  = "unlock"
    CREATE  = "create"
    BLOCK   = "block"


@dataclass(frozen=True)
class NotSupported:
    """Result of an operation the page variant does not implement."""
    operation: str

    def __bool__(self) -> bool:
        return False


Rendered = Union[str, Response, NotSupported]


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Permissions
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

_ROBOT_DENIED = frozenset({Mode.CREATE, Mode.EDIT, Mode.REMOVE})


def required_bit(mode: Mode) -> Perms:
    if mode in (Mode.EDIT, Mode.CREATE):
        return Perms.EDIT
    if mode is Mode.REMOVE:
        return Perms.DELETE
    return Perms.READ


def decide(mode: Mode, perms: Perms, *, is_robot: bool, is_admin: bool,
           supported: bool) -> bool:
    """Whether *mode* is allowed.

    Checked in order: robots may not create, edit or remove; administrators
    skip the bitmask; everyone else needs the mode's bit; finally the page
    must support the mode.
    """
    if is_robot and mode in _ROBOT_DENIED:
        return False
    if not is_admin and not perms & required_bit(mode):
        return False
    return supported


async def create_permissions(ctx: "WikiContext") -> Perms:
    """Bitmask for creating pages: the wiki-wide entry, else the defaults."""
    if await ctx.perms.exists(PAGES_PERMISSION):
        return await ctx.perms.get_permissions(PAGES_PERMISSION, ctx.user_id)
    if ctx.user_id is None:
        return Perms.SHOW | Perms.READ
    return Perms.ALL


async def resolve_permissions(ctx: "WikiContext", page_name: str | None) -> Perms:
    """Bitmask for *page_name*: its own entry, else the wiki-wide one, else
    the guest/authenticated defaults."""
    if page_name:
        page_id = await ctx.store.get_page_id(page_name)
        if page_id is not None:
            name = page_permission_name(page_id)
            if await ctx.perms.exists(name):
                return await ctx.perms.get_permissions(name, ctx.user_id)
    return await create_permissions(ctx)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Base page
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class Page:

    supported_modes: frozenset[Mode] = frozenset()

    def __init__(self, ctx: "WikiContext", record: dict | None = None,
                 referrer: str | None = None):
        self.ctx = ctx
        self._page = record
        self._referrer = referrer

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.page_name()!r} v{self.version()}>"

    def is_valid(self) -> bool:
        return bool(self._page)

    # ── Permissions ──────────────────────────────────────────────────────

    async def get_permissions(self, page_name: str | None = None) -> Perms:
        return await resolve_permissions(self.ctx, page_name or self.page_name())

    def supports(self, mode: Mode | str) -> bool:
        mode = Mode(mode)
        return mode is Mode.CREATE or mode in self.supported_modes

    async def allows(self, mode: Mode | str) -> bool:
        mode = Mode(mode)
        if mode is Mode.CREATE:
            perms = await create_permissions(self.ctx)
        else:
            perms = await self.get_permissions()
        allowed = decide(mode, perms, is_robot=self.ctx.is_robot,
                         is_admin=self.ctx.is_admin, supported=self.supports(mode))
        if not allowed:
            log.debug("%s denied on %r (perms=%r)", mode.value, self.page_name(), perms)
        return allowed

    # ── Accessors ────────────────────────────────────────────────────────

    def page_name(self) -> str | None:
        return None

    def page_title(self) -> str | None:
        return self.page_name()

    def referrer(self) -> str | None:
        return self._referrer

    def version(self) -> str | None:
        return None

    def version_created(self) -> datetime | None:
        return None

    def hits(self) -> int | None:
        return None

    def change_log(self) -> str | None:
        return None

    def is_old(self) -> bool:
        return False

    def is_locked(self) -> bool:
        return False

    async def author(self) -> str:
        author_id = (self._page or {}).get("change_author")
        if not author_id:
            return "Guest"
        return await self.ctx.identity.display_name(author_id)

    def format_version_created(self) -> str:
        created = self.version_created()
        if created is None:
            return "Never"
        return created.strftime(self.ctx.settings.date_format)

    async def previous_version(self) -> str | None:
        """The version before this one, or None for the first version."""
        version = self.version()
        if version is None:
            return None
        history = await self.ctx.store.get_history(self.page_name())
        if not history:
            return None
        if not self.is_old():
            return history[0]["page_version"]
        for i, entry in enumerate(history):
            if entry["page_version"] == version:
                return history[i + 1]["page_version"] if i + 1 < len(history) else None
        return None

    # ── URLs ─────────────────────────────────────────────────────────────

    def page_url(self, linkpage: str | None = None, action_id: str | None = None,
                 full: bool = False, **params) -> str:
        if self.referrer():
            params["referrer"] = self.referrer()
        if action_id:
            params["actionID"] = action_id
        if linkpage:
            return self.ctx.url(linkpage, full, page=self.page_name(), **params)
        return self.ctx.url(self.page_name(), full, **params)

    async def to_view(self) -> dict:
        return {
            "author":    await self.author(),
            "date":      self.format_version_created(),
            "name":      self.page_name(),
            "url":       self.page_url(),
            "timestamp": self.version_created(),
            "version":   self.version(),
            "changelog": self.change_log() or "",
        }

    # ── Rendering ────────────────────────────────────────────────────────

    async def render(self, mode: Mode | str, params=None) -> Rendered:
        mode = Mode(mode)
        if mode is Mode.CONTENT:
            return await self.content(params)
        if mode is Mode.DISPLAY:
            return await self.display(params)
        if mode is Mode.BLOCK:
            return await self.block()
        if mode is Mode.EDIT:
            return await self.edit()
        if mode is Mode.REMOVE:
            return await self.remove()
        if mode is Mode.HISTORY:
            return await self.history()
        if mode is Mode.DIFF:
            return await self.diff(params)
        return NotSupported(mode.value)

    async def pre_display(self, mode: Mode | str, params=None) -> Response | None:
        """Checks made before anything is rendered; a response short-circuits."""
        return None

    async def display(self, params=None) -> Rendered:
        inner = await self.display_contents(False)
        if isinstance(inner, NotSupported):
            return inner

        version = self.version()
        header = self.ctx.views.render(
            "display/title",
            name=self.page_name(),
            version=version,
            modified=self.format_version_created() if version else None,
            author=await self.author() if version else None,
            diff_url=self.ctx.url(self.page_name(), mode="diff", version=version) if version else None,
            referrer=self.referrer(),
            referrer_url=self.ctx.url(self.referrer()) if self.referrer() else None,
            is_old=self.is_old(),
            is_locked=self.is_locked(),
        )
        return header + inner

    async def block(self) -> Rendered:
        return await self.display_contents(True)

    async def display_contents(self, is_block: bool) -> Rendered:
        return NotSupported("display_contents")

    async def content(self, params=None) -> Rendered:
        return NotSupported("content")

    async def edit(self) -> Rendered:
        return NotSupported("edit")

    async def remove(self) -> Rendered:
        return NotSupported("remove")

    async def history(self) -> Rendered:
        return NotSupported("history")

    async def diff(self, version=None) -> Rendered:
        return NotSupported("diff")

    async def lock(self) -> Rendered:
        return NotSupported("lock")

    async def unlock(self) -> Rendered:
        return NotSupported("unlock")

    async def update_text(self, text: str, changelog: str = "") -> Rendered:
        return NotSupported("update_text")

    def get_text(self) -> str | NotSupported:
        return NotSupported("get_text")

    async def handle_action(self) -> Rendered:
        return NotSupported("handle_action")

    # ── Markup ───────────────────────────────────────────────────────────

    async def link_conf(self, full: bool = False) -> LinkConf:
        view_url = self.ctx.url("%s", full, referrer=self.page_name()).replace("%25s", "%s", 1)
        can_create = await self.allows(Mode.CREATE)
        return LinkConf(
            pages=frozenset(await self.ctx.store.get_pages()),
            view_url=view_url,
            new_url=view_url if can_create else None,
            css_new="newpage",
        )

    async def get_processor(self, output_format: str = "xhtml") -> Processor:
        """A freshly configured processor for this page; nothing is cached."""
        return build_processor(
            self.ctx.settings.wiki_format,
            output_format,
            await self.link_conf(),
            await self.link_conf(full=True) if output_format == "rst" else None,
        )


# -----------------------------------------------------------------------------
