"""Session models — the affected-resource ledger and its durable records.

An execution appends one :class:`AffectedResource` per successful mutating
command.  The ledger is serialized into a session log inside the content
store and later consumed by the undo and publish engines.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from models.base import CamelModel


class ResourceType(str, Enum):
    PAGE = "page"
    POST = "post"
    SETTINGS = "settings"
    GLOBAL_STYLES = "global_styles"


class ResourceAction(str, Enum):
    CREATE = "create"
    UPDATE = "update"


class AffectedResource(BaseModel):
    """One ledger entry.

    ``snapshot`` holds the pre-mutation state needed to reverse an update:
    ``{title, content, status}`` for posts/pages, the full settings object,
    or the prior ``styles`` (plus ``settings`` when the update set them)
    of a global-styles record.  It is ``None`` only for creates.
    """

    type: ResourceType
    id: int | None = None
    action: ResourceAction
    snapshot: dict[str, Any] | None = None

    @property
    def is_content(self) -> bool:
        return self.type in (ResourceType.PAGE, ResourceType.POST)


class ExecutionResult(CamelModel):
    """Outcome of one plan execution."""

    results: list[str] = Field(default_factory=list)
    affected_resources: list[AffectedResource] = Field(default_factory=list)
    session_id: int | None = None


class SessionPayload(BaseModel):
    """Parsed body of a session log: ``{plan, affected}``."""

    plan: dict[str, Any] | None = None
    affected: list[AffectedResource] = Field(default_factory=list)


class SessionSummary(CamelModel):
    """Listing entry for ``GET /api/sessions``."""

    id: int
    date: str = ""
    summary: str = ""


class BackupSnapshot(BaseModel):
    """Full-site state captured before any command runs (disaster recovery only)."""

    timestamp: str
    theme: str = ""
    settings: dict[str, Any] | None = None
    posts: list[dict[str, Any]] = Field(default_factory=list)


class UndoReport(CamelModel):
    session_id: int
    restored: list[str] = Field(default_factory=list)
    failures: list[str] = Field(default_factory=list)


class PublishReport(CamelModel):
    session_id: int
    published: list[str] = Field(default_factory=list)
