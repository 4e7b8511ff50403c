#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""Tests for the behaviour shared by every page object."""
# -----------------------------------------------------------------------------

from __future__ import annotations

from datetime import datetime

import pytest
from starlette.responses import RedirectResponse

from wicked.pages import Mode, NotSupported, get_page
from wicked.pages.base import Page
from wicked.pages.standard import AddPage, StandardHistoryPage, StandardPage
from tests.conftest import make_ctx, make_user


# -----------------------------------------------------------------------------

def test_not_supported_is_falsy():
    result = NotSupported("edit")
    assert not result
    assert result.operation == "edit"


@pytest.mark.asyncio
async def test_base_page_defaults(db_session):
    page = Page(make_ctx(db_session))
    assert not page.is_valid()
    assert page.version() is None
    assert page.format_version_created() == "Never"
    assert await page.author() == "Guest"
    assert await page.previous_version() is None
    for operation in (page.edit, page.remove, page.history, page.lock,
                      page.unlock, page.handle_action, page.content):
        assert isinstance(await operation(), NotSupported)
    assert isinstance(await page.diff("1"), NotSupported)
    assert isinstance(page.get_text(), NotSupported)
    assert isinstance(await page.render(Mode.LOCK), NotSupported)
    assert isinstance(await page.render(Mode.DISPLAY), NotSupported)


@pytest.mark.asyncio
async def test_create_is_always_supported(db_session):
    ctx = make_ctx(db_session)
    assert Page(ctx).supports(Mode.CREATE)
    assert StandardHistoryPage(ctx, "Foo").supports(Mode.CREATE)
    assert not StandardHistoryPage(ctx, "Foo").supports(Mode.EDIT)
    assert not AddPage(ctx, "Foo").supports(Mode.HISTORY)


@pytest.mark.asyncio
async def test_previous_version_walks_history(db_session):
    alice = await make_user(db_session)
    ctx = make_ctx(db_session, alice)
    await ctx.store.new_page("Foo", "one")
    assert await (await get_page(ctx, "Foo")).previous_version() is None

    await ctx.store.update_text("Foo", "two")
    await ctx.store.update_text("Foo", "three")
    assert await (await get_page(ctx, "Foo")).previous_version() == "2"
    assert await (await get_page(ctx, "Foo", "2")).previous_version() == "1"
    assert await (await get_page(ctx, "Foo", "1")).previous_version() is None


@pytest.mark.asyncio
async def test_author_and_dates(db_session):
    alice = await make_user(db_session, display_name="Alice A.")
    ctx = make_ctx(db_session, alice)
    await ctx.store.new_page("Mine", "text", alice.id)
    await ctx.store.new_page("Anon", "text")

    mine = await get_page(ctx, "Mine")
    assert await mine.author() == "Alice A."
    assert isinstance(mine.version_created(), datetime)
    assert mine.format_version_created() == mine.version_created().strftime(ctx.settings.date_format)

    assert await (await get_page(ctx, "Anon")).author() == "Guest"


@pytest.mark.asyncio
async def test_to_view(db_session):
    alice = await make_user(db_session)
    ctx = make_ctx(db_session, alice)
    await ctx.store.new_page("Foo", "text", changelog="first cut")

    view = await (await get_page(ctx, "Foo")).to_view()
    assert view["name"] == "Foo"
    assert view["version"] == "1"
    assert view["url"] == "/Foo"
    assert view["changelog"] == "first cut"
    assert view["author"] == "Guest"
    assert set(view) == {"author", "date", "name", "url", "timestamp", "version", "changelog"}


@pytest.mark.asyncio
async def test_page_urls(db_session):
    alice = await make_user(db_session)
    ctx = make_ctx(db_session, alice)
    await ctx.store.new_page("Foo Bar", "one")
    await ctx.store.update_text("Foo Bar", "two")

    live = await get_page(ctx, "Foo Bar", referrer="Home")
    assert live.page_url() == "/Foo%20Bar?referrer=Home"
    assert live.page_url(action_id="save") == "/Foo%20Bar?referrer=Home&actionID=save"
    assert live.page_url(full=True).startswith(ctx.settings.base_url.rstrip("/") + "/Foo%20Bar")

    old = await get_page(ctx, "Foo Bar", "1")
    assert old.page_url() == "/Foo%20Bar?version=1"
    assert old.page_url("DeletePage") == "/DeletePage?page=Foo+Bar&version=1"


@pytest.mark.asyncio
async def test_history_views_live_first(db_session):
    alice = await make_user(db_session)
    ctx = make_ctx(db_session, alice)
    await ctx.store.new_page("Foo", "one")
    await ctx.store.update_text("Foo", "two", changelog="second")
    await ctx.store.update_text("Foo", "three", changelog="third")

    page = await get_page(ctx, "Foo")
    views = await page.history_views()
    assert [v["version"] for v in views] == ["3", "2", "1"]
    assert views[0]["url"] == "/Foo"
    assert views[1]["url"] == "/Foo?version=2"
    assert views[1]["changelog"] == "second"


@pytest.mark.asyncio
async def test_display_logs_a_view(db_session):
    alice = await make_user(db_session)
    ctx = make_ctx(db_session, alice)
    await ctx.store.new_page("Foo", "Hello **world**")

    page = await get_page(ctx, "Foo")
    html = await page.render(Mode.DISPLAY)
    assert "<strong>world</strong>" in html
    assert "Foo" in html
    assert (await ctx.store.get_page("Foo"))["page_hits"] == 1

    await page.render(Mode.BLOCK)
    assert (await ctx.store.get_page("Foo"))["page_hits"] == 1


@pytest.mark.asyncio
async def test_content_mode_returns_source(db_session):
    alice = await make_user(db_session)
    ctx = make_ctx(db_session, alice)
    await ctx.store.new_page("Foo", "# Raw *source*")
    assert await (await get_page(ctx, "Foo")).render(Mode.CONTENT) == "# Raw *source*"


@pytest.mark.asyncio
async def test_remove_mode_redirects_to_delete_page(db_session):
    alice = await make_user(db_session)
    ctx = make_ctx(db_session, alice)
    await ctx.store.new_page("Foo", "one")
    await ctx.store.update_text("Foo", "two")

    live = await (await get_page(ctx, "Foo")).render(Mode.REMOVE)
    assert isinstance(live, RedirectResponse)
    assert live.headers["location"] == "/DeletePage?referrer=Foo"

    old = await (await get_page(ctx, "Foo", "1")).render(Mode.REMOVE)
    assert old.headers["location"] == "/DeletePage?referrer=Foo&version=1"


@pytest.mark.asyncio
async def test_save_action_creates_version_and_mails(db_session):
    alice = await make_user(db_session)
    ctx = make_ctx(db_session, alice,
                   form={"actionID": "save", "text": "new text\n", "changelog": "fix"})
    await ctx.store.new_page("Foo", "old text\n")

    page = await StandardPage.load(ctx, "Foo")
    result = await page.handle_action()
    assert isinstance(result, RedirectResponse)
    assert result.status_code == 303

    record = await ctx.store.get_page("Foo")
    assert record["page_version"] == "2"
    assert record["page_text"] == "new text\n"
    assert record["change_author"] == alice.id
    assert [f.message for f in ctx.notifier.messages] == ['Updated "Foo".']

    body, subject = ctx.mailer.await_args.args
    assert subject == "changed: Foo [2]"
    assert body.startswith(f"Changed page: {ctx.url('Foo', True)}\nChangelog: fix\n\n")
    assert "-old text" in body and "+new text" in body


@pytest.mark.asyncio
async def test_save_denied_for_guest(db_session):
    author = await make_user(db_session)
    ctx = make_ctx(db_session, form={"actionID": "save", "text": "vandalism"})
    await ctx.store.new_page("Foo", "text", author.id)

    result = await (await StandardPage.load(ctx, "Foo")).handle_action()
    assert isinstance(result, RedirectResponse)
    assert (await ctx.store.get_page("Foo"))["page_version"] == "1"
    assert ctx.notifier.messages[0].level == "warning"
    ctx.mailer.assert_not_awaited()


@pytest.mark.asyncio
async def test_save_refused_while_locked_by_someone_else(db_session):
    alice = await make_user(db_session, "alice")
    bob = await make_user(db_session, "bob")
    ctx = make_ctx(db_session, bob, form={"actionID": "save", "text": "mine"})
    await ctx.store.new_page("Foo", "text")
    await ctx.store.lock_page("Foo", alice.id, 30)

    page = await StandardPage.load(ctx, "Foo")
    assert page.is_locked()
    assert page.locked_by() == alice.id
    await page.handle_action()
    assert (await ctx.store.get_page("Foo"))["page_version"] == "1"
    assert ctx.notifier.messages[0].level == "error"


@pytest.mark.asyncio
async def test_lock_and_unlock_actions(db_session):
    alice = await make_user(db_session)
    ctx = make_ctx(db_session, alice, form={"actionID": "lock"})
    await ctx.store.new_page("Foo", "text")

    await (await StandardPage.load(ctx, "Foo")).handle_action()
    assert (await StandardPage.load(ctx, "Foo")).is_locked()

    ctx.form = {"actionID": "unlock"}
    await (await StandardPage.load(ctx, "Foo")).handle_action()
    assert not (await StandardPage.load(ctx, "Foo")).is_locked()
    assert [f.message for f in ctx.notifier.messages] == ['Locked "Foo".', 'Unlocked "Foo".']


@pytest.mark.asyncio
async def test_unknown_action_not_supported(db_session):
    alice = await make_user(db_session)
    ctx = make_ctx(db_session, alice, form={"actionID": "explode"})
    await ctx.store.new_page("Foo", "text")
    assert isinstance(await (await StandardPage.load(ctx, "Foo")).handle_action(), NotSupported)


@pytest.mark.asyncio
async def test_snapshot_takes_no_actions(db_session):
    alice = await make_user(db_session)
    ctx = make_ctx(db_session, alice, form={"actionID": "save", "text": "again"})
    await ctx.store.new_page("Foo", "one")
    await ctx.store.update_text("Foo", "two")

    snapshot = await get_page(ctx, "Foo", "1")
    assert isinstance(snapshot, StandardHistoryPage)
    assert isinstance(await snapshot.handle_action(), NotSupported)
    assert (await ctx.store.get_page("Foo"))["page_text"] == "two"


@pytest.mark.asyncio
async def test_add_page_creates(db_session):
    alice = await make_user(db_session)
    ctx = make_ctx(db_session, alice,
                   form={"actionID": "create", "text": "brand new", "changelog": ""})
    page = await get_page(ctx, "Fresh")
    assert isinstance(page, AddPage)

    result = await page.handle_action()
    assert result.headers["location"] == "/Fresh"
    assert (await ctx.store.get_page("Fresh"))["page_text"] == "brand new"
    ctx.mailer.assert_awaited_once_with(
        f"Created page: {ctx.url('Fresh', True)}\n\nbrand new\n", "created: Fresh")


@pytest.mark.asyncio
async def test_add_page_denied_for_guest(db_session):
    ctx = make_ctx(db_session, form={"actionID": "create", "text": "spam"})
    page = AddPage(ctx, "Fresh", referrer="Foo")

    result = await page.handle_action()
    assert result.headers["location"] == "/Foo"
    assert not await ctx.store.page_exists("Fresh")
    assert ctx.notifier.messages[0].message == 'You don\'t have permission to create "Fresh".'
