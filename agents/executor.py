"""CommandExecutor — applies a Plan to the content store as draft changes.

Per execution:
1. Best-effort full-site backup (stored as a backup session log).
2. Commands run strictly in order.  Each mutating command snapshots the
   resource first, then mutates it into a draft/non-public state, then
   appends one ledger entry.  A failed command contributes no entry.
3. The ledger is persisted as a session log (best-effort).

Failure handling follows the effective :class:`FailurePolicy`: ``skip``
continues with the next command, ``abort`` stops the plan.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

from agents.patcher import patch
from agents.resolver import ReferenceResolver
from config.settings import Settings, get_settings
from errors.exceptions import MissingTargetError, PatchNotMatchedError, ResourceNotFoundError
from models.plan import (
    Command,
    CreatePageCommand,
    FailurePolicy,
    InsertPatternCommand,
    PatchPostContentCommand,
    Plan,
    UpdateGlobalStylesCommand,
    UpdatePostCommand,
    UpdateSettingsCommand,
    UploadMediaCommand,
)
from models.session import AffectedResource, ExecutionResult, ResourceAction, ResourceType
from models.site import DiscoverySnapshot
from services.session_log import SessionLogStore
from services.snapshot import capture_full_site, capture_item, field_text, snapshot_item
from services.wp_client import WordPressClient

logger = logging.getLogger(__name__)

DRAFT = "draft"


def preview_link(link: str) -> str:
    """Append ``preview=true`` to a post link, respecting an existing query string."""
    separator = "&" if "?" in link else "?"
    return f"{link}{separator}preview=true"


def pattern_block(slug: str) -> str:
    """Block markup referencing a registered pattern."""
    return f"<!-- wp:pattern {json.dumps({'slug': slug})} /-->"


@dataclass
class _Run:
    """Mutable state of one execution, never shared between plans."""

    items: dict[int, dict[str, Any]]
    resolver: ReferenceResolver = field(default_factory=ReferenceResolver)
    results: list[str] = field(default_factory=list)
    affected: list[AffectedResource] = field(default_factory=list)

    def kind_of(self, item_id: int) -> str:
        kind = self.resolver.kind_of(item_id)
        if kind:
            return kind
        item = self.items.get(item_id)
        return (item or {}).get("type") or "post"

    def remember(self, item_id: int, updated: dict[str, Any]) -> None:
        # Later commands in the same plan must see this mutation.
        merged = dict(self.items.get(item_id) or {})
        merged.update(updated or {})
        self.items[item_id] = merged


class CommandExecutor:
    """Sequences plan commands against the content store."""

    def __init__(
        self,
        client: WordPressClient,
        session_store: SessionLogStore | None = None,
        settings: Settings | None = None,
    ) -> None:
        self._client = client
        self._settings = settings or get_settings()
        self._sessions = session_store or SessionLogStore(client, self._settings)
        self._handlers: dict[type, Callable[[Any, int, _Run], Awaitable[None]]] = {
            CreatePageCommand: self._create_page,
            InsertPatternCommand: self._insert_pattern,
            UpdateGlobalStylesCommand: self._update_global_styles,
            UpdatePostCommand: self._update_post,
            UpdateSettingsCommand: self._update_settings,
            UploadMediaCommand: self._upload_media,
            PatchPostContentCommand: self._patch_post_content,
        }

    async def execute(self, plan: Plan, discovery: DiscoverySnapshot) -> ExecutionResult:
        """Apply *plan* and return the result lines, ledger and session id."""
        if self._settings.backup_enabled:
            await self._backup()

        logger.info("Applying plan: %s (%d commands)", plan.explanation, len(plan.commands))
        run = _Run(items={item["id"]: item for item in discovery.items if "id" in item})

        for index, command in enumerate(plan.commands):
            logger.info("Command %d/%d: %s", index + 1, len(plan.commands), command.type)
            try:
                await self._handlers[type(command)](command, index, run)
            except PatchNotMatchedError as exc:
                logger.warning("[Patch] %s — nothing was modified", exc)
                run.results.append(exc.user_message)
            except Exception as exc:
                logger.error("Error executing command %s: %s", command.type, exc)
                run.results.append(f"Error: {command.type} failed: {exc}")
            else:
                continue

            if self._policy(plan, command) is FailurePolicy.ABORT:
                logger.warning(
                    "Halting plan after failed command %d; %d command(s) not attempted",
                    index, len(plan.commands) - index - 1,
                )
                break

        session_id = None
        try:
            session_id = await self._sessions.save_session(plan, run.affected)
        except Exception as exc:
            logger.warning("Failed to create session log: %s", exc)

        logger.info("Execution complete: %d result(s), %d affected", len(run.results), len(run.affected))
        return ExecutionResult(
            results=run.results,
            affected_resources=run.affected,
            session_id=session_id,
        )

    # -- helpers -------------------------------------------------------------

    def _policy(self, plan: Plan, command: Command) -> FailurePolicy:
        return (
            command.on_failure
            or plan.on_failure
            or FailurePolicy(self._settings.default_failure_policy)
        )

    async def _backup(self) -> None:
        try:
            snapshot = await capture_full_site(self._client, self._settings)
            await self._sessions.save_backup(snapshot)
        except Exception as exc:
            logger.warning("Backup failed, proceeding anyway: %s", exc)

    async def _write_item(
        self,
        run: _Run,
        kind: str,
        item_id: int,
        snapshot: dict[str, Any],
        fields: dict[str, Any],
    ) -> dict[str, Any]:
        """Mutate a post/page into draft and record the update."""
        updated = await self._client.update_post(item_id, {**fields, "status": DRAFT}, kind=kind)
        run.remember(item_id, updated)
        run.affected.append(AffectedResource(
            type=ResourceType(kind if kind == "page" else "post"),
            id=item_id,
            action=ResourceAction.UPDATE,
            snapshot=snapshot,
        ))
        return updated

    # -- command handlers ----------------------------------------------------

    async def _create_page(self, command: CreatePageCommand, index: int, run: _Run) -> None:
        # Status is always draft: nothing goes live before an explicit publish.
        page = await self._client.create_post(
            {"title": command.title, "content": "", "status": DRAFT},
            kind="page",
        )
        run.resolver.bind(index, page["id"], "page")
        run.remember(page["id"], page)
        run.affected.append(AffectedResource(type=ResourceType.PAGE, id=page["id"], action=ResourceAction.CREATE))
        run.results.append(f"Created Page: {page.get('link', '')}")
        logger.info("Created page ID %s", page["id"])

    async def _insert_pattern(self, command: InsertPatternCommand, index: int, run: _Run) -> None:
        target_id = run.resolver.resolve(command.target_post_id, index)
        if not target_id:
            raise MissingTargetError(command.type)

        kind = run.kind_of(target_id)
        logger.info("Inserting pattern [%s] into %s %s", command.pattern_slug, kind, target_id)
        snapshot = await capture_item(self._client, kind, target_id, run.items.get(target_id))
        updated = await self._write_item(
            run, kind, target_id, snapshot, {"content": pattern_block(command.pattern_slug)}
        )
        run.results.append(f"Updated {kind.capitalize()}: {preview_link(updated.get('link', ''))}")

    async def _update_global_styles(self, command: UpdateGlobalStylesCommand, index: int, run: _Run) -> None:
        records = await self._client.get_global_styles()
        if not records:
            logger.info("No global styles record found; skipping")
            return

        current = records[0]
        # Snapshot every field the update overwrites.
        snapshot: dict[str, Any] = {"styles": dict(current.get("styles") or {})}
        fields: dict[str, Any] = {"styles": command.styles}
        if command.settings is not None:
            snapshot["settings"] = dict(current.get("settings") or {})
            fields["settings"] = command.settings
        await self._client.update_global_styles(current["id"], fields)

        run.affected.append(AffectedResource(
            type=ResourceType.GLOBAL_STYLES,
            id=current["id"],
            action=ResourceAction.UPDATE,
            snapshot=snapshot,
        ))
        run.results.append("Updated Global Styles.")

    async def _update_post(self, command: UpdatePostCommand, index: int, run: _Run) -> None:
        post_id = run.resolver.resolve(command.post_id, index)
        if not post_id:
            raise MissingTargetError(command.type)

        kind = run.kind_of(post_id)
        logger.info("Staging update for %s %s as draft", kind, post_id)
        snapshot = await capture_item(self._client, kind, post_id, run.items.get(post_id))
        fields = command.model_dump(include={"title", "content"}, exclude_none=True)
        updated = await self._write_item(run, kind, post_id, snapshot, fields)
        run.results.append(f"Staged {kind} as draft: {preview_link(updated.get('link', ''))}")

    async def _update_settings(self, command: UpdateSettingsCommand, index: int, run: _Run) -> None:
        fields = command.model_dump(include={"title", "description", "timezone"}, exclude_none=True)
        if not fields:
            logger.info("update_settings carries no fields; skipping")
            return

        # Fresh read, not the discovery copy: an earlier command may have changed settings.
        current = await self._client.get_settings()
        data = await self._client.update_settings(fields)
        run.affected.append(AffectedResource(
            type=ResourceType.SETTINGS,
            action=ResourceAction.UPDATE,
            snapshot=current,
        ))
        run.results.append(
            f'Updated Site Settings: Title is now "{data.get("title", "")}". '
            f"View change at {self._client.site_url}"
        )

    async def _upload_media(self, command: UploadMediaCommand, index: int, run: _Run) -> None:
        logger.info("Media upload from %s simulated; no media was stored", command.url)

    async def _patch_post_content(self, command: PatchPostContentCommand, index: int, run: _Run) -> None:
        post_id = run.resolver.resolve(command.post_id, index)
        item = run.items.get(post_id)
        if item is None:
            raise ResourceNotFoundError(command.type, post_id)

        current = field_text(item.get("content"))
        result = patch(current, command.search, command.replace)
        if not result.matched:
            raise PatchNotMatchedError(post_id, result.reason or "not_found")

        kind = run.kind_of(post_id)
        logger.info("Patching %s %s (%s match)", kind, post_id, result.strategy)
        snapshot = snapshot_item(item)
        updated = await self._write_item(run, kind, post_id, snapshot, {"content": result.content})
        run.results.append(f"Patched {kind} as draft: {preview_link(updated.get('link', ''))}")
