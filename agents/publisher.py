"""PublishEngine — promotes the drafts of a session to live content.

Only pages and posts are touched; settings and global styles have no
draft state and are already live once updated.  Snapshots are left alone
so the session can still be undone after publishing.
"""

from __future__ import annotations

import logging

from config.settings import Settings, get_settings
from errors.exceptions import PublishError, SessionNotFoundError
from models.session import PublishReport
from services.session_log import SessionLogStore
from services.wp_client import WordPressClient

logger = logging.getLogger(__name__)

PUBLISH = "publish"


class PublishEngine:
    def __init__(
        self,
        client: WordPressClient,
        session_store: SessionLogStore | None = None,
        settings: Settings | None = None,
    ) -> None:
        self._client = client
        self._sessions = session_store or SessionLogStore(client, settings or get_settings())

    async def publish(self, session_id: int) -> PublishReport:
        """Set every page/post of the session to ``publish``.

        Raises :class:`SessionNotFoundError` for an unknown session and
        :class:`PublishError` when some resources failed (the rest are
        still published).
        """
        logger.info("Publishing session %s", session_id)
        record = await self._sessions.get_record(session_id)
        if record is None:
            raise SessionNotFoundError(session_id)

        payload = self._sessions.parse_payload(record)
        report = PublishReport(session_id=session_id)
        failures: list[str] = []
        seen: set[tuple[str, int]] = set()

        for entry in payload.affected:
            if not entry.is_content or entry.id is None:
                continue
            key = (entry.type.value, entry.id)
            if key in seen:
                continue
            seen.add(key)

            label = f"{entry.type.value} {entry.id}"
            try:
                await self._client.update_post(entry.id, {"status": PUBLISH}, kind=entry.type.value)
                report.published.append(label)
                logger.info("Published %s", label)
            except Exception as exc:
                logger.error("Failed to publish %s: %s", label, exc)
                failures.append(f"{label}: {exc}")

        if failures:
            raise PublishError(session_id, failures)
        logger.info("Publishing complete: %d resource(s)", len(report.published))
        return report
