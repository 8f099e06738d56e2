"""Site discovery — read-only audit of the target site before planning/execution.

All reads are independent, so they are issued concurrently.  A failing read
degrades to an empty value instead of failing the whole audit.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, TypeVar

from config.settings import Settings, get_settings
from models.site import DiscoverySnapshot
from services.wp_client import WordPressClient

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def _safe(label: str, call: Awaitable[T], default: T) -> T:
    try:
        return await call
    except Exception as exc:
        logger.warning("[Discovery] Failed to fetch %s: %s", label, exc)
        return default


async def _supports_global_styles(client: WordPressClient) -> bool:
    try:
        await client.get_global_styles()
    except Exception:
        logger.warning("[Discovery] Global Styles NOT supported (classic theme detected)")
        return False
    return True


async def discover(client: WordPressClient, settings: Settings | None = None) -> DiscoverySnapshot:
    """Audit the site for patterns, posts/pages, settings and style support."""
    settings = settings or get_settings()
    logger.info("Auditing target site for available patterns, posts, and settings...")

    authenticated = await client.validate_auth()
    if not authenticated:
        logger.warning("[Discovery] Proceeding with limited access (read-only)")

    params: dict[str, Any] = {"per_page": settings.discovery_page_size, "status": settings.discovery_statuses}
    if authenticated:
        # edit context exposes raw block markup, which patches must preserve
        params["context"] = "edit"
    empty: list[dict[str, Any]] = []
    patterns, posts, pages, site_settings, has_styles = await asyncio.gather(
        _safe("patterns", client.get_patterns(), empty),
        _safe("posts", client.get_posts(params), empty),
        _safe("pages", client.get_pages(params), empty),
        _safe("settings", client.get_settings(), None),
        _supports_global_styles(client),
    )

    logger.info(
        "[Discovery] Found %d patterns, %d content items (%d posts, %d pages)",
        len(patterns), len(posts) + len(pages), len(posts), len(pages),
    )
    snapshot = DiscoverySnapshot(
        patterns=patterns,
        items=[*posts, *pages],
        settings=site_settings,
        has_global_styles=has_styles,
        authenticated=authenticated,
    )
    if snapshot.is_empty:
        logger.warning("[Discovery] Nothing could be read from the site; planning blind")
    return snapshot
