"""Snapshot recorder — pre-mutation state capture.

Two granularities:
- per resource, taken immediately before a mutating command, holding
  exactly what undo needs to put the resource back;
- full site, taken once before a plan runs and stored as a backup log.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any

from config.settings import Settings
from models.session import BackupSnapshot
from services.wp_client import WordPressClient

logger = logging.getLogger(__name__)


def field_text(value: Any) -> str:
    """Read a REST field that may be ``{"raw", "rendered"}`` or a plain string.

    ``raw`` wins: it keeps block comments that ``rendered`` drops.
    """
    if value is None:
        return ""
    if isinstance(value, dict):
        raw = value.get("raw")
        if raw is not None:
            return raw
        return value.get("rendered") or ""
    return str(value)


def snapshot_item(item: dict[str, Any]) -> dict[str, Any]:
    """The ``{title, content, status}`` triple needed to restore a post or page."""
    return {
        "title": field_text(item.get("title")),
        "content": field_text(item.get("content")),
        "status": item.get("status"),
    }


async def capture_item(
    client: WordPressClient,
    kind: str,
    item_id: int,
    known: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Snapshot a post/page from a known copy, or fetch it fresh."""
    if known is None:
        known = await client.get_item(kind, item_id)
    return snapshot_item(known)


async def capture_full_site(client: WordPressClient, settings: Settings) -> BackupSnapshot:
    """Read posts, pages and settings concurrently into a :class:`BackupSnapshot`."""
    logger.info("[Backup] Capturing current site state...")
    params = {"per_page": settings.discovery_page_size, "status": settings.discovery_statuses}
    posts, pages, site_settings = await asyncio.gather(
        client.get_posts(params),
        client.get_pages(params),
        client.get_settings(),
    )
    return BackupSnapshot(
        timestamp=datetime.now(timezone.utc).isoformat(),
        theme=settings.backup_theme_name,
        settings=site_settings,
        posts=[*posts, *pages],
    )
