#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""Tests for the permission bitmask, the registry and the mode gate."""
# -----------------------------------------------------------------------------

from __future__ import annotations

import pytest

from wicked.pages import Mode, decide
from wicked.pages.base import create_permissions, required_bit, resolve_permissions
from wicked.pages.standard import StandardPage
from wicked.services.permissions import (
    PAGES_PERMISSION, PermissionRegistry, Perms, page_permission_name,
)
from tests.conftest import make_ctx, make_user


ALL_MASKS = [Perms(bits) for bits in range(0, 32, 2)]


# ── decide() ──────────────────────────────────────────────────────────────────

@pytest.mark.parametrize("mode", list(Mode))
def test_admin_gets_every_supported_mode(mode):
    for perms in ALL_MASKS:
        assert decide(mode, perms, is_robot=False, is_admin=True, supported=True)
        assert not decide(mode, perms, is_robot=False, is_admin=True, supported=False)


@pytest.mark.parametrize("mode", [Mode.CREATE, Mode.EDIT, Mode.REMOVE])
def test_robots_cannot_write(mode):
    for is_admin in (False, True):
        assert not decide(mode, Perms.ALL, is_robot=True, is_admin=is_admin, supported=True)


@pytest.mark.parametrize("mode", [Mode.DISPLAY, Mode.HISTORY, Mode.DIFF, Mode.CONTENT])
def test_robots_can_read(mode):
    assert decide(mode, Perms.READ, is_robot=True, is_admin=False, supported=True)


def test_required_bits():
    assert required_bit(Mode.EDIT) is Perms.EDIT
    assert required_bit(Mode.CREATE) is Perms.EDIT
    assert required_bit(Mode.REMOVE) is Perms.DELETE
    for mode in (Mode.DISPLAY, Mode.HISTORY, Mode.LOCK, Mode.BLOCK):
        assert required_bit(mode) is Perms.READ


def test_read_only_home_denies_edit():
    assert not decide(Mode.EDIT, Perms.READ, is_robot=False, is_admin=False, supported=True)
    assert decide(Mode.DISPLAY, Perms.READ, is_robot=False, is_admin=False, supported=True)


def test_bit_present_but_mode_unsupported():
    assert not decide(Mode.EDIT, Perms.ALL, is_robot=False, is_admin=False, supported=False)


# ── Registry ──────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_registry_guest_default_and_grant(db_session):
    alice = await make_user(db_session, "alice")
    bob = await make_user(db_session, "bob")
    registry = PermissionRegistry(db_session)

    assert await registry.get_permissions("missing", alice.id) == Perms.NONE

    await registry.set_permissions("entry", Perms.READ, guest=Perms.SHOW)
    await registry.grant("entry", alice.id, Perms.EDIT)

    assert await registry.exists("entry")
    assert await registry.get_permissions("entry", None) == Perms.SHOW
    assert await registry.get_permissions("entry", alice.id) == Perms.READ | Perms.EDIT
    assert await registry.get_permissions("entry", bob.id) == Perms.READ
    assert await registry.has_permission("entry", alice.id, Perms.EDIT)
    assert not await registry.has_permission("entry", bob.id, Perms.EDIT)

    await registry.remove("entry")
    assert not await registry.exists("entry")


# ── Resolution order ──────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_defaults_without_entries(db_session):
    alice = await make_user(db_session, "alice")
    assert await resolve_permissions(make_ctx(db_session), "Foo") == Perms.SHOW | Perms.READ
    assert await resolve_permissions(make_ctx(db_session, alice), "Foo") == Perms.ALL


@pytest.mark.asyncio
async def test_wiki_wide_entry_beats_defaults(db_session):
    alice = await make_user(db_session, "alice")
    ctx = make_ctx(db_session, alice)
    await ctx.perms.set_permissions(PAGES_PERMISSION, Perms.SHOW | Perms.READ)
    assert await resolve_permissions(ctx, "Foo") == Perms.SHOW | Perms.READ
    assert await create_permissions(ctx) == Perms.SHOW | Perms.READ


@pytest.mark.asyncio
async def test_page_entry_beats_wiki_wide_entry(db_session):
    alice = await make_user(db_session, "alice")
    ctx = make_ctx(db_session, alice)
    record = await ctx.store.new_page("Foo", "text")
    await ctx.perms.set_permissions(PAGES_PERMISSION, Perms.ALL)
    await ctx.perms.set_permissions(page_permission_name(record["page_id"]), Perms.READ)

    assert await resolve_permissions(ctx, "Foo") == Perms.READ
    assert await resolve_permissions(ctx, "Bar") == Perms.ALL
    # creation ignores page entries
    assert await create_permissions(ctx) == Perms.ALL


@pytest.mark.asyncio
async def test_page_allows_uses_resolved_bits(db_session):
    alice = await make_user(db_session, "alice")
    ctx = make_ctx(db_session, alice)
    record = await ctx.store.new_page("Wiki/Home", "home")
    await ctx.perms.set_permissions(page_permission_name(record["page_id"]), Perms.READ)

    page = await StandardPage.load(ctx, "Wiki/Home")
    assert await page.allows(Mode.DISPLAY)
    assert not await page.allows(Mode.EDIT)
    assert not await page.allows(Mode.REMOVE)


@pytest.mark.asyncio
async def test_admin_overrides_page_entry(db_session):
    root = await make_user(db_session, "root", is_admin=True)
    ctx = make_ctx(db_session, root)
    record = await ctx.store.new_page("Locked", "text")
    await ctx.perms.set_permissions(page_permission_name(record["page_id"]), Perms.NONE)

    page = await StandardPage.load(ctx, "Locked")
    assert await page.allows(Mode.EDIT)
    assert await page.allows(Mode.REMOVE)
    assert await page.allows(Mode.CREATE)


@pytest.mark.asyncio
async def test_robot_user_agent_denied_edit(db_session):
    alice = await make_user(db_session, "alice")
    ctx = make_ctx(db_session, alice, user_agent="Mozilla/5.0 (compatible; Googlebot/2.1)")
    await ctx.store.new_page("Foo", "text")
    page = await StandardPage.load(ctx, "Foo")
    assert not await page.allows(Mode.EDIT)
    assert await page.allows(Mode.DISPLAY)


@pytest.mark.asyncio
async def test_guest_cannot_create(db_session):
    page = StandardPage(make_ctx(db_session), "Nowhere")
    assert not await page.allows(Mode.CREATE)
    assert page.supports(Mode.CREATE)
