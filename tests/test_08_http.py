#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""End-to-end tests through the HTML views and the JSON API."""
# -----------------------------------------------------------------------------

from __future__ import annotations

import pytest
import pytest_asyncio

from wicked.core.config import get_settings
from tests.conftest import auth_headers, register_user, ui_login


HOME = get_settings().home_page
BASE = get_settings().base_url.rstrip("/")


async def _create(client, name: str, text: str) -> None:
    resp = await client.post(f"/{name}", data={"actionID": "create", "text": text})
    assert resp.status_code == 303, resp.text
    assert resp.headers["location"] == f"/{name}"


@pytest_asyncio.fixture
async def editor(client):
    await register_user(client, "alice", "alice@example.com")
    await ui_login(client, "alice")
    return client


# ── Basics ────────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_root_redirects_home(client):
    resp = await client.get("/")
    assert resp.status_code == 302
    assert resp.headers["location"] == f"/{HOME}"


@pytest.mark.asyncio
async def test_health(client):
    resp = await client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


@pytest.mark.asyncio
async def test_guest_gets_404_for_missing_page(client):
    resp = await client.get("/Nowhere")
    assert resp.status_code == 404
    assert "Nowhere" in resp.text


@pytest.mark.asyncio
async def test_unknown_mode_is_404(client):
    resp = await client.get("/AllPages?mode=bogus")
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_unsupported_mode_is_403(client):
    resp = await client.get("/AllPages?mode=edit")
    assert resp.status_code == 403


# ── Editing ───────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_create_prompt_then_create(editor):
    resp = await editor.get("/Fresh")
    assert resp.status_code == 200
    assert "does not exist yet" in resp.text

    await _create(editor, "Fresh", "Hello **world**")

    resp = await editor.get("/Fresh")
    assert resp.status_code == 200
    assert "<strong>world</strong>" in resp.text
    assert "flash-success" in resp.text
    assert "Created" in resp.text

    # the flash is shown once only
    resp = await editor.get("/Fresh")
    assert "flash-success" not in resp.text


@pytest.mark.asyncio
async def test_edit_save_history_and_diff(editor):
    await _create(editor, "Foo", "line one\n")

    resp = await editor.get("/Foo?mode=edit")
    assert resp.status_code == 200
    assert 'name="actionID" value="save"' in resp.text

    resp = await editor.post("/Foo", data={"actionID": "save", "text": "line two\n",
                                           "changelog": "reworded"})
    assert resp.status_code == 303

    resp = await editor.get("/Foo?mode=content")
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/plain")
    assert resp.text == "line two\n"

    resp = await editor.get("/Foo?mode=history")
    assert resp.status_code == 200
    assert "reworded" in resp.text

    resp = await editor.get("/Foo?mode=diff")
    assert resp.status_code == 200
    assert "-line one" in resp.text
    assert "+line two" in resp.text

    resp = await editor.get("/Foo?mode=diff&v1=1&v2=2")
    assert resp.status_code == 200
    assert "Version 1 &rarr; 2" in resp.text

    resp = await editor.get("/Foo?version=1&mode=content")
    assert resp.text == "line one\n"


@pytest.mark.asyncio
async def test_block_mode_is_bare_fragment(editor):
    await _create(editor, "Foo", "Some *text*")
    resp = await editor.get("/Foo?mode=block")
    assert resp.status_code == 200
    assert "<em>text</em>" in resp.text
    assert "<html" not in resp.text


@pytest.mark.asyncio
async def test_lock_and_unlock(editor):
    await _create(editor, "Foo", "text")
    resp = await editor.post("/Foo", data={"actionID": "lock"})
    assert resp.status_code == 303
    resp = await editor.get("/Foo")
    assert 'title="Locked"' in resp.text

    await editor.post("/Foo", data={"actionID": "unlock"})
    resp = await editor.get("/Foo")
    assert 'title="Locked"' not in resp.text


@pytest.mark.asyncio
async def test_robot_cannot_edit(editor):
    await _create(editor, "Foo", "text")
    robot = {"User-Agent": "Mozilla/5.0 (compatible; Googlebot/2.1)"}
    resp = await editor.get("/Foo?mode=edit", headers=robot)
    assert resp.status_code == 403
    resp = await editor.get("/Foo", headers=robot)
    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_guest_cannot_edit(editor):
    await _create(editor, "Foo", "text")
    editor.cookies.clear()

    resp = await editor.get("/Foo?mode=edit")
    assert resp.status_code == 403

    resp = await editor.post("/Foo", data={"actionID": "save", "text": "spam"})
    assert resp.status_code == 303
    resp = await editor.get("/Foo?mode=content")
    assert resp.text == "text"


@pytest.mark.asyncio
async def test_all_pages(editor):
    await _create(editor, "Foo", "text")
    await _create(editor, "Bar", "text")
    resp = await editor.get("/AllPages")
    assert resp.status_code == 200
    assert resp.text.index(">Bar</a>") < resp.text.index(">Foo</a>")


# ── Deletion ──────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_delete_flow(editor):
    await _create(editor, "Foo", "text")

    resp = await editor.get("/Foo?mode=remove")
    assert resp.status_code == 303
    assert resp.headers["location"] == "/DeletePage?referrer=Foo"

    resp = await editor.get("/DeletePage?referrer=Foo")
    assert resp.status_code == 200
    assert "All versions will be permanently removed." in resp.text

    resp = await editor.post("/DeletePage", data={
        "actionID": "special", "referrer": "Foo", "version": "",
    })
    assert resp.status_code == 303
    assert resp.headers["location"] == f"{BASE}/{HOME}"

    resp = await editor.get("/api/v1/pages/Foo")
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_delete_page_redirects_guests(editor):
    await _create(editor, "Foo", "text")
    editor.cookies.clear()
    resp = await editor.get("/DeletePage?referrer=Foo")
    assert resp.status_code == 303
    assert resp.headers["location"] == f"{BASE}/Foo"


@pytest.mark.asyncio
async def test_delete_without_referrer_targets_home(editor):
    await _create(editor, HOME, "welcome")
    editor.cookies.clear()

    resp = await editor.post("/DeletePage", data={"actionID": "special"})
    assert resp.status_code == 303
    assert resp.headers["location"] == f"{BASE}/{HOME}"

    resp = await editor.get(f"/{HOME}")
    assert resp.status_code == 200
    assert "welcome" in resp.text
    assert "permission to delete" in resp.text


# ── JSON API ──────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_api_page(editor):
    await _create(editor, "Foo", "See [[Bar]].")
    headers = await auth_headers(editor, "alice")

    resp = await editor.get("/api/v1/pages/Foo", headers=headers)
    assert resp.status_code == 200
    data = resp.json()
    assert data["name"] == "Foo"
    assert data["version"] == "1"
    assert data["text"] == "See [[Bar]]."
    assert data["rendered"] is None

    resp = await editor.get("/api/v1/pages/Foo?format=plain", headers=headers)
    assert resp.json()["rendered"] == "See Bar.\n"

    resp = await editor.get("/api/v1/pages/Foo?format=xhtml", headers=headers)
    assert "wikilink newpage" in resp.json()["rendered"]


@pytest.mark.asyncio
async def test_api_history(editor):
    await _create(editor, "Foo", "one")
    await editor.post("/Foo", data={"actionID": "save", "text": "two", "changelog": "again"})

    resp = await editor.get("/api/v1/pages/Foo/history")
    assert resp.status_code == 200
    versions = resp.json()["versions"]
    assert [v["version"] for v in versions] == ["2", "1"]
    assert versions[0]["changelog"] == "again"


@pytest.mark.asyncio
async def test_api_missing_page(client):
    resp = await client.get("/api/v1/pages/Nowhere")
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Page 'Nowhere' not found"


@pytest.mark.asyncio
async def test_api_bad_format(editor):
    await _create(editor, "Foo", "text")
    resp = await editor.get("/api/v1/pages/Foo?format=pdf")
    assert resp.status_code == 422
