"""Session log store — durable execution ledgers kept inside the content store.

Convention (shared with the WordPress client):
- title carries ``settings.session_log_prefix``; backups additionally start
  with ``settings.backup_title_prefix`` after it,
- status ``settings.session_log_status`` hides the entry from normal listings,
- content is JSON ``{plan, affected}``; the excerpt repeats ``{affected}``
  so the ledger survives a content field that no longer parses.
"""

from __future__ import annotations

import html
import json
import logging
import re
from datetime import datetime, timezone
from typing import Any

from config.settings import Settings, get_settings
from errors.exceptions import SessionParseError
from models.plan import Plan
from models.session import AffectedResource, BackupSnapshot, SessionPayload, SessionSummary
from services.snapshot import field_text
from services.wp_client import WordPressClient

logger = logging.getLogger(__name__)

_TAG_RE = re.compile(r"<[^>]*>?")


class SessionLogStore:
    """Create, list, read and delete session logs."""

    def __init__(self, client: WordPressClient, settings: Settings | None = None) -> None:
        self._client = client
        self._settings = settings or get_settings()

    # -- write ---------------------------------------------------------------

    async def save_session(self, plan: Plan, affected: list[AffectedResource]) -> int | None:
        """Persist an execution ledger; returns the new log id."""
        ledger = [entry.model_dump(mode="json") for entry in affected]
        body = {"plan": plan.model_dump(mode="json", exclude_none=True), "affected": ledger}
        record = await self._client.create_log_record(
            title=f"AI Session - {_now_iso()}",
            content=json.dumps(body, indent=2),
            meta={"affected": ledger},
        )
        logger.info("Session log %s created (%d affected)", record.get("id"), len(ledger))
        return record.get("id")

    async def save_backup(self, snapshot: BackupSnapshot) -> int | None:
        """Persist a full-site snapshot under the backup title prefix."""
        record = await self._client.create_log_record(
            title=f"{self._settings.backup_title_prefix} - {snapshot.timestamp}",
            content=snapshot.model_dump_json(indent=2),
            meta={"kind": "backup", "timestamp": snapshot.timestamp},
        )
        logger.info("[Backup] Snapshot saved as log %s", record.get("id"))
        return record.get("id")

    # -- read ----------------------------------------------------------------

    def is_backup(self, record: dict[str, Any]) -> bool:
        title = field_text(record.get("title"))
        prefix = self._settings.session_log_prefix
        if title.startswith(prefix):
            title = title[len(prefix):]
        return title.startswith(self._settings.backup_title_prefix)

    def is_session_log(self, record: dict[str, Any]) -> bool:
        # The REST search also matches posts that merely mention the prefix.
        return field_text(record.get("title")).startswith(self._settings.session_log_prefix)

    async def list_records(self, include_backups: bool = False) -> list[dict[str, Any]]:
        records = await self._client.query_log_records()
        return [
            r for r in records
            if self.is_session_log(r) and (include_backups or not self.is_backup(r))
        ]

    async def list_sessions(self, include_backups: bool = False) -> list[SessionSummary]:
        return [
            SessionSummary(
                id=r["id"],
                date=r.get("date") or "",
                summary=field_text(r.get("title")),
            )
            for r in await self.list_records(include_backups=include_backups)
        ]

    async def get_record(self, session_id: int) -> dict[str, Any] | None:
        """Execution ledger *session_id*; ``None`` for unknown ids and backups."""
        records = await self._client.query_log_records({"include": [session_id]})
        for record in records:
            if record.get("id") != session_id or not self.is_session_log(record):
                continue
            if self.is_backup(record):
                logger.warning("Log %s is a backup, not an execution session", session_id)
                return None
            return record
        return None

    async def latest_session(self) -> dict[str, Any] | None:
        """Most recent execution ledger; backups never qualify."""
        records = await self.list_records()
        return records[0] if records else None

    def parse_payload(self, record: dict[str, Any]) -> SessionPayload:
        """Parse ``{plan, affected}`` from the content, falling back to the excerpt.

        Raises :class:`SessionParseError` when neither is valid JSON.
        """
        content = record.get("content")
        candidates = []
        if isinstance(content, dict):
            candidates.extend(v for v in (content.get("raw"), content.get("rendered")) if v)
        elif content:
            candidates.append(content)

        for text in candidates:
            try:
                return SessionPayload.model_validate(json.loads(text))
            except ValueError:
                continue

        excerpt = _TAG_RE.sub("", field_text(record.get("excerpt")))
        try:
            return SessionPayload.model_validate(json.loads(html.unescape(excerpt)))
        except ValueError as exc:
            logger.error("Session log %s is not parseable: %s", record.get("id"), exc)
            raise SessionParseError(record.get("id")) from exc

    # -- delete --------------------------------------------------------------

    async def delete_record(self, record: dict[str, Any]) -> None:
        endpoint = self._settings.session_log_endpoint
        await self._client.delete_raw(f"{endpoint}/{record['id']}", {"force": True})
        logger.info("Session log %s deleted", record["id"])


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()
