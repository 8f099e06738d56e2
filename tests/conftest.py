"""Shared pytest fixtures.

Provides:
- ``settings``: Settings isolated from any local .env
- ``wp``: in-memory fake of the WordPress client, seeded with a small site
- ``sessions``: SessionLogStore bound to the fake
"""

from __future__ import annotations

import copy
import json
from typing import Any

import pytest

from config.settings import Settings
from services.session_log import SessionLogStore
from services.wp_client import WordPressClientError


def _text(value: str) -> dict[str, str]:
    return {"raw": value, "rendered": value}


class FakeWordPressClient:
    """Implements the WordPressClient surface against in-memory dicts.

    ``failures`` maps a method name or REST path to an exception raised on
    the next matching call; ``mutations`` records every write.
    """

    def __init__(self, log_prefix: str = "AI_SESSION: ") -> None:
        self.site_url = "https://site.test"
        self.log_prefix = log_prefix
        self.authenticated = True
        self.items: dict[int, dict[str, Any]] = {}
        self.logs: dict[int, dict[str, Any]] = {}
        self.settings: dict[str, Any] = {
            "title": "My Site",
            "description": "Just another site",
            "timezone": "UTC",
            "page_on_front": 12,
            "show_on_front": "page",
        }
        self.global_styles: list[dict[str, Any]] = [
            {"id": 5, "styles": {"color": {"text": "#000000"}}, "settings": {}},
        ]
        self.patterns: list[dict[str, Any]] = [{"name": "hero-section", "title": "Hero"}]
        self.failures: dict[str, Exception] = {}
        self.mutations: list[tuple[str, Any]] = []
        self._next_id = 100

    # -- seeding / helpers ---------------------------------------------------

    def add_item(self, kind: str, item_id: int, title: str, content: str, status: str = "publish") -> dict:
        query = "page_id" if kind == "page" else "p"
        self.items[item_id] = {
            "id": item_id,
            "type": kind,
            "title": _text(title),
            "content": _text(content),
            "status": status,
            "link": f"{self.site_url}/?{query}={item_id}",
        }
        return self.items[item_id]

    def _fail(self, key: str) -> None:
        if key in self.failures:
            raise self.failures.pop(key)

    def _new_id(self) -> int:
        self._next_id += 1
        return self._next_id

    @staticmethod
    def _id_from(path: str) -> int:
        return int(path.rstrip("/").rsplit("/", 1)[1])

    def _not_found(self, path: str) -> WordPressClientError:
        return WordPressClientError(404, "rest_post_invalid_id", f"{self.site_url}/wp-json{path}")

    # -- client surface ------------------------------------------------------

    async def validate_auth(self) -> bool:
        return self.authenticated

    async def get_posts(self, params=None):
        self._fail("get_posts")
        return [copy.deepcopy(i) for i in self.items.values() if i["type"] == "post"]

    async def get_pages(self, params=None):
        self._fail("get_pages")
        return [copy.deepcopy(i) for i in self.items.values() if i["type"] == "page"]

    async def get_item(self, kind, item_id):
        self._fail("get_item")
        if item_id not in self.items:
            raise self._not_found(f"/wp/v2/{kind}s/{item_id}")
        return copy.deepcopy(self.items[item_id])

    async def create_post(self, fields, kind="post"):
        self._fail("create_post")
        item_id = self._new_id()
        item = self.add_item(kind, item_id, fields.get("title", ""), fields.get("content", ""), fields.get("status", "draft"))
        self.mutations.append(("create_post", item_id))
        return copy.deepcopy(item)

    async def update_post(self, item_id, fields, kind="post"):
        return await self.post_raw(f"/wp/v2/{kind}s/{item_id}", fields)

    async def get_global_styles(self):
        self._fail("get_global_styles")
        return copy.deepcopy(self.global_styles)

    async def update_global_styles(self, styles_id, fields):
        self._fail("update_global_styles")
        record = next(r for r in self.global_styles if r["id"] == styles_id)
        record.update(copy.deepcopy(fields))
        self.mutations.append(("update_global_styles", styles_id))
        return copy.deepcopy(record)

    async def get_patterns(self):
        self._fail("get_patterns")
        return copy.deepcopy(self.patterns)

    async def get_settings(self):
        self._fail("get_settings")
        return copy.deepcopy(self.settings)

    async def update_settings(self, fields):
        self._fail("update_settings")
        self.settings.update(copy.deepcopy(fields))
        self.mutations.append(("update_settings", dict(fields)))
        return copy.deepcopy(self.settings)

    async def create_log_record(self, title, content, meta=None):
        self._fail("create_log_record")
        log_id = self._new_id()
        full_title = f"{self.log_prefix}{title}"
        self.logs[log_id] = {
            "id": log_id,
            "date": f"2026-10-19T10:00:{log_id % 60:02d}",
            "type": "post",
            "status": "pending",
            "title": _text(full_title),
            # rendered content is wrapped the way wpautop does it
            "content": {"raw": content, "rendered": f"<p>{content}</p>"},
            "excerpt": _text(json.dumps(meta or {})),
        }
        return copy.deepcopy(self.logs[log_id])

    async def query_log_records(self, params=None):
        self._fail("query_log_records")
        params = params or {}
        records = sorted(self.logs.values(), key=lambda r: r["id"], reverse=True)
        if "include" in params:
            wanted = set(params["include"])
            records = [r for r in records if r["id"] in wanted]
        return copy.deepcopy(records)

    async def post_raw(self, path, body):
        self._fail(path)
        item_id = self._id_from(path)
        if item_id not in self.items:
            raise self._not_found(path)
        item = self.items[item_id]
        for key in ("title", "content"):
            if key in body:
                item[key] = _text(body[key])
        if "status" in body:
            item["status"] = body["status"]
        self.mutations.append(("post_raw", path))
        return copy.deepcopy(item)

    async def delete_raw(self, path, params=None):
        self._fail(path)
        item_id = self._id_from(path)
        self.mutations.append(("delete_raw", path))
        if item_id in self.logs:
            return {"deleted": True, "previous": self.logs.pop(item_id)}
        if item_id in self.items:
            return {"deleted": True, "previous": self.items.pop(item_id)}
        raise self._not_found(path)


@pytest.fixture
def settings() -> Settings:
    """Settings with no .env influence — isolated per test."""
    return Settings(
        _env_file=None,
        wp_url="https://site.test",
        front_page_id=12,
        backup_theme_name="Kadence",
        default_failure_policy="skip",
    )


@pytest.fixture
def wp() -> FakeWordPressClient:
    """Fake site: home page 12, about page 14, blog post 7."""
    client = FakeWordPressClient()
    client.add_item("page", 12, "Home", "<!-- wp:paragraph -->\n<p>Hello World</p>\n<!-- /wp:paragraph -->")
    client.add_item("page", 14, "About", "<p>We are a <b>small</b> team.</p>")
    client.add_item("post", 7, "Launch", "<p>Our product launches soon.</p>")
    return client


@pytest.fixture
def sessions(wp, settings) -> SessionLogStore:
    return SessionLogStore(wp, settings)
