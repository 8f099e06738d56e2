"""UndoEngine — compensating rollback of one execution session.

Reads a session ledger back from the session log store and reverses each
entry: created pages/posts are force-deleted, updated ones are restored
from their snapshot, settings and global styles are re-applied.  Entries
are compensated newest-first so repeated updates to one resource end at
its oldest snapshot.  Each entry is failure-isolated; the session log is
deleted once the restore pass is over.
"""

from __future__ import annotations

import logging

from config.settings import Settings, get_settings
from models.session import AffectedResource, ResourceAction, ResourceType, UndoReport
from services.session_log import SessionLogStore
from services.snapshot import field_text
from services.wp_client import WordPressClient, item_path

logger = logging.getLogger(__name__)


class UndoEngine:
    """Restores the state recorded in a session ledger."""

    def __init__(
        self,
        client: WordPressClient,
        session_store: SessionLogStore | None = None,
        settings: Settings | None = None,
    ) -> None:
        self._client = client
        self._settings = settings or get_settings()
        self._sessions = session_store or SessionLogStore(client, self._settings)

    async def undo(self, session_id: int | None = None) -> UndoReport | None:
        """Undo *session_id*, or the most recent session when omitted.

        Returns ``None`` (after logging) when there is no such session.
        Raises :class:`SessionParseError` when the ledger cannot be read.
        """
        logger.info("Initiating undo %s", f"for session {session_id}" if session_id else "(last session)")
        if session_id is None:
            record = await self._sessions.latest_session()
        else:
            record = await self._sessions.get_record(session_id)
        if record is None:
            logger.info("No session log found to undo")
            return None

        logger.info("Undoing: %s", field_text(record.get("title")))
        payload = self._sessions.parse_payload(record)
        report = UndoReport(session_id=record["id"])

        await self._check_front_page()

        for entry in reversed(payload.affected):
            label = f"{entry.type.value} {entry.id if entry.id is not None else ''}".strip()
            try:
                if await self._restore(entry):
                    report.restored.append(label)
            except Exception as exc:
                logger.error("Failed to undo resource %s: %s", label, exc)
                report.failures.append(f"{label}: {exc}")

        try:
            await self._sessions.delete_record(record)
        except Exception as exc:
            logger.warning("Failed to delete session log %s: %s", record["id"], exc)
            report.failures.append(f"session log {record['id']}: {exc}")

        logger.info("Undo complete: %d restored, %d failed", len(report.restored), len(report.failures))
        return report

    async def _check_front_page(self) -> None:
        """Put the configured front page back if a previous run displaced it."""
        expected = self._settings.front_page_id
        if not expected:
            return
        try:
            current = await self._client.get_settings()
            if not current.get("page_on_front"):
                logger.info("[Rescue] Restoring front page ID to %d", expected)
                await self._client.update_settings({
                    "page_on_front": expected,
                    "show_on_front": self._settings.show_on_front,
                })
        except Exception as exc:
            logger.warning("[Rescue] Infrastructure check warning: %s", exc)

    async def _restore(self, entry: AffectedResource) -> bool:
        """Reverse one ledger entry; False when the entry carries nothing to reverse."""
        if entry.is_content:
            path = item_path(entry.type.value, entry.id)
            if entry.action is ResourceAction.CREATE:
                logger.info("Deleting created %s ID %s", entry.type.value, entry.id)
                await self._client.delete_raw(path, {"force": True})
                return True
            if entry.snapshot:
                logger.info("Restoring %s ID %s from snapshot", entry.type.value, entry.id)
                await self._client.post_raw(path, {
                    "title": entry.snapshot.get("title"),
                    "content": entry.snapshot.get("content"),
                    "status": entry.snapshot.get("status"),
                })
                return True
            return False

        if entry.action is not ResourceAction.UPDATE or entry.snapshot is None:
            return False
        if entry.type is ResourceType.SETTINGS:
            logger.info("Restoring site settings snapshot")
            await self._client.update_settings(entry.snapshot)
            return True
        if entry.type is ResourceType.GLOBAL_STYLES:
            logger.info("Restoring global styles ID %s", entry.id)
            await self._client.update_global_styles(entry.id, entry.snapshot)
            return True
        return False
