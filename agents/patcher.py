"""Fuzzy patcher — safety-gated, markup-tolerant text replacement.

Strategies, first match wins:

1. Gate: the search text (markup and whitespace normalized) must occur in
   the content (normalized the same way).  Otherwise nothing is touched.
2. Exact: the search string occurs verbatim → replace the first
   occurrence, which keeps surrounding markup intact.
3. Fuzzy: the search words occur in order, each gap being whitespace and at
   most one markup tag → replace every such run.  Gaps of two or more tags
   (e.g. a paragraph boundary) never match.

If the gate passes but neither strategy matches, the patch is refused with
``reason="unsafe"``; a gate rejection carries ``reason="not_found"``.
"""

from __future__ import annotations

import logging
import re
from typing import NamedTuple

logger = logging.getLogger(__name__)

_WS_RE = re.compile(r"\s+")
_TAG_RE = re.compile(r"<[^>]+>")
_SEPARATOR = r"(?:\s*<[^>]+>\s*|\s+)"


class PatchResult(NamedTuple):
    content: str
    matched: bool
    strategy: str | None = None  # "exact" | "fuzzy" | None
    reason: str | None = None  # "not_found" | "unsafe" when not matched


def normalize(text: str) -> str:
    """Collapse whitespace runs to one space and trim the ends."""
    return _WS_RE.sub(" ", text).strip()


def _visible_text(text: str) -> str:
    # Tags become spaces so "Hello <b>World</b>" reads as "Hello World".
    return normalize(_TAG_RE.sub(" ", text))


def fuzzy_pattern(search: str) -> re.Pattern[str] | None:
    """Regex matching the words of *search* in order, one tag at most per gap."""
    words = search.split()
    if not words:
        return None
    return re.compile(_SEPARATOR.join(re.escape(w) for w in words))


def patch(content: str, search: str, replace: str) -> PatchResult:
    """Replace *search* with *replace* in *content* without risking a rewrite."""
    needle = _visible_text(search)
    if not needle or needle not in _visible_text(content):
        return PatchResult(content, False, reason="not_found")

    if search in content:
        logger.debug("[Patch] Match found: exact")
        return PatchResult(content.replace(search, replace, 1), True, "exact")

    pattern = fuzzy_pattern(search)
    if pattern is not None and pattern.search(content):
        logger.debug("[Patch] Match found: fuzzy (tag-agnostic)")
        # A callable keeps backslashes in *replace* literal.
        return PatchResult(pattern.sub(lambda _m: replace, content), True, "fuzzy")

    logger.warning("[Patch] Normalized text matched but no safe replacement was found")
    return PatchResult(content, False, reason="unsafe")
