"""API request / response models."""

from __future__ import annotations

from typing import Any

from pydantic import Field

from models.base import CamelModel
from models.session import AffectedResource


class PlanRequest(CamelModel):
    """POST /api/plan — request body."""

    prompt: str = ""
    model: str | None = None


class ExecuteRequest(CamelModel):
    """POST /api/execute — request body.  The plan is validated in the route."""

    plan: dict[str, Any] | None = None


class ExecuteResponse(CamelModel):
    message: str
    results: list[str] = Field(default_factory=list)
    session_id: int | None = None
    affected_resources: list[AffectedResource] = Field(default_factory=list)


class PublishRequest(CamelModel):
    session_id: int


class PublishResponse(CamelModel):
    message: str
    published: list[str] = Field(default_factory=list)


class UndoRequest(CamelModel):
    session_id: int | None = None


class UndoResponse(CamelModel):
    message: str
    restored: list[str] = Field(default_factory=list)
    failures: list[str] = Field(default_factory=list)
