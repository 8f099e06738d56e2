"""Tests for UndoEngine — compensating rollback of a session."""

import json

import pytest

from agents.executor import CommandExecutor
from agents.undo import UndoEngine
from errors.exceptions import SessionParseError
from models.plan import Plan
from services.discovery import discover
from services.wp_client import WordPressClientError


async def _run(wp, sessions, settings, *commands):
    plan = Plan.model_validate({"explanation": "test", "commands": list(commands)})
    discovery = await discover(wp, settings)
    return await CommandExecutor(wp, sessions, settings).execute(plan, discovery)


@pytest.fixture
def engine(wp, sessions, settings):
    return UndoEngine(wp, sessions, settings)


@pytest.mark.asyncio
async def test_update_post_round_trip(wp, sessions, settings, engine):
    before = (wp.items[7]["title"]["raw"], wp.items[7]["content"]["raw"], wp.items[7]["status"])
    result = await _run(wp, sessions, settings, {
        "type": "update_post", "post_id": 7, "title": "Changed", "content": "<p>New body</p>",
    })
    assert wp.items[7]["status"] == "draft"

    report = await engine.undo(result.session_id)

    after = (wp.items[7]["title"]["raw"], wp.items[7]["content"]["raw"], wp.items[7]["status"])
    assert after == before
    assert report.restored == ["post 7"]
    assert report.failures == []
    assert result.session_id not in wp.logs


@pytest.mark.asyncio
async def test_created_page_is_deleted(wp, sessions, settings, engine):
    result = await _run(wp, sessions, settings, {"type": "create_page", "title": "Temp", "blocks": []})
    page_id = result.affected_resources[0].id
    assert page_id in wp.items

    await engine.undo()

    assert page_id not in wp.items
    assert ("delete_raw", f"/wp/v2/pages/{page_id}") in wp.mutations


@pytest.mark.asyncio
async def test_settings_and_styles_restored(wp, sessions, settings, engine):
    await _run(
        wp, sessions, settings,
        {"type": "update_settings", "title": "Renamed", "description": "New tagline"},
        {"type": "update_global_styles", "styles": {"color": {"text": "#ff0000"}}},
    )

    await engine.undo()

    assert wp.settings["title"] == "My Site"
    assert wp.settings["description"] == "Just another site"
    assert wp.global_styles[0]["styles"] == {"color": {"text": "#000000"}}


@pytest.mark.asyncio
async def test_global_styles_settings_restored(wp, sessions, settings, engine):
    wp.global_styles[0]["settings"] = {"layout": {"contentSize": "640px"}}
    await _run(wp, sessions, settings, {
        "type": "update_global_styles",
        "styles": {"color": {"text": "#ff0000"}},
        "settings": {"layout": {"contentSize": "1200px"}},
    })

    await engine.undo()

    assert wp.global_styles[0]["styles"] == {"color": {"text": "#000000"}}
    assert wp.global_styles[0]["settings"] == {"layout": {"contentSize": "640px"}}


@pytest.mark.asyncio
async def test_repeated_updates_restore_oldest_snapshot(wp, sessions, settings, engine):
    await _run(
        wp, sessions, settings,
        {"type": "patch_post_content", "post_id": 12, "search": "Hello", "replace": "Goodbye"},
        {"type": "patch_post_content", "post_id": 12, "search": "World", "replace": "Moon"},
    )

    await engine.undo()

    assert wp.items[12]["content"]["raw"] == "<!-- wp:paragraph -->\n<p>Hello World</p>\n<!-- /wp:paragraph -->"
    assert wp.items[12]["status"] == "publish"


@pytest.mark.asyncio
async def test_undo_without_logs_returns_none(wp, engine):
    assert await engine.undo() is None
    assert wp.mutations == []


@pytest.mark.asyncio
async def test_undo_unknown_session_returns_none(wp, engine):
    assert await engine.undo(9999) is None
    assert wp.mutations == []


@pytest.mark.asyncio
async def test_backups_are_never_undone(wp, sessions, settings, engine):
    result = await _run(wp, sessions, settings, {"type": "update_post", "post_id": 7, "title": "X"})
    backup_ids = [i for i, r in wp.logs.items() if "PRE_EXEC_BACKUP" in r["title"]["raw"]]
    assert backup_ids

    report = await engine.undo()

    assert report.session_id == result.session_id
    assert all(i in wp.logs for i in backup_ids)


@pytest.mark.asyncio
async def test_front_page_rescued(wp, sessions, settings, engine):
    await _run(wp, sessions, settings, {"type": "update_post", "post_id": 7, "title": "X"})
    wp.settings["page_on_front"] = 0

    await engine.undo()

    assert wp.settings["page_on_front"] == 12
    assert wp.settings["show_on_front"] == "page"


@pytest.mark.asyncio
async def test_entry_failure_does_not_stop_others(wp, sessions, settings, engine):
    result = await _run(
        wp, sessions, settings,
        {"type": "update_post", "post_id": 7, "title": "A"},
        {"type": "update_post", "post_id": 14, "title": "B"},
    )
    wp.failures["/wp/v2/pages/14"] = WordPressClientError(500, "boom")

    report = await engine.undo(result.session_id)

    assert wp.items[7]["title"]["raw"] == "Launch"
    assert wp.items[14]["title"]["raw"] == "B"
    assert report.restored == ["post 7"]
    assert len(report.failures) == 1
    assert report.failures[0].startswith("page 14")
    assert result.session_id not in wp.logs


@pytest.mark.asyncio
async def test_log_delete_failure_reported(wp, sessions, settings, engine):
    result = await _run(wp, sessions, settings, {"type": "update_post", "post_id": 7, "title": "A"})
    wp.failures[f"/wp/v2/posts/{result.session_id}"] = WordPressClientError(500, "locked")

    report = await engine.undo(result.session_id)

    assert report.restored == ["post 7"]
    assert report.failures == [f"session log {result.session_id}: {WordPressClientError(500, 'locked')}"]


@pytest.mark.asyncio
async def test_parse_falls_back_to_excerpt(wp, sessions, settings, engine):
    result = await _run(wp, sessions, settings, {"type": "update_post", "post_id": 7, "title": "A"})
    log = wp.logs[result.session_id]
    log["content"] = {"raw": "", "rendered": "<p>corrupted</p>"}

    report = await engine.undo(result.session_id)

    assert report.restored == ["post 7"]
    assert wp.items[7]["title"]["raw"] == "Launch"


@pytest.mark.asyncio
async def test_unparseable_session_raises(wp, sessions, settings, engine):
    result = await _run(wp, sessions, settings, {"type": "update_post", "post_id": 7, "title": "A"})
    log = wp.logs[result.session_id]
    log["content"] = {"raw": "not json", "rendered": "<p>not json</p>"}
    log["excerpt"] = {"raw": "", "rendered": "<p>also not json</p>"}

    with pytest.raises(SessionParseError):
        await engine.undo(result.session_id)
    assert wp.items[7]["title"]["raw"] == "A"


@pytest.mark.asyncio
async def test_update_without_snapshot_is_skipped(wp, sessions, engine):
    record = await wp.create_log_record(
        "AI Session - manual",
        json.dumps({"plan": None, "affected": [{"type": "post", "id": 7, "action": "update"}]}),
    )

    report = await engine.undo(record["id"])

    assert report.restored == []
    assert report.failures == []
    assert ("post_raw", "/wp/v2/posts/7") not in wp.mutations


@pytest.mark.asyncio
async def test_undo_of_backup_id_leaves_backup(wp, sessions, settings, engine):
    await _run(wp, sessions, settings, {"type": "update_post", "post_id": 7, "title": "A"})
    [backup_id] = [i for i, r in wp.logs.items() if "PRE_EXEC_BACKUP" in r["title"]["raw"]]

    assert await engine.undo(backup_id) is None
    assert backup_id in wp.logs
    assert wp.items[7]["title"]["raw"] == "A"
