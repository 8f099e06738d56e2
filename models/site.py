"""Discovery snapshot — point-in-time view of the target site."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class DiscoverySnapshot(BaseModel):
    """Patterns, content items, settings and style support read before planning.

    Owned by a single request: it is passed into plan generation and
    execution rather than cached on a long-lived object.
    """

    model_config = ConfigDict(frozen=True)

    patterns: list[dict[str, Any]] = Field(default_factory=list)
    items: list[dict[str, Any]] = Field(default_factory=list)  # posts + pages
    settings: dict[str, Any] | None = None
    has_global_styles: bool = False
    authenticated: bool = False

    @property
    def is_empty(self) -> bool:
        return not self.patterns and not self.items and self.settings is None
