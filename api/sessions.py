"""Session API — execute a plan, publish or undo its drafts, list sessions."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import ValidationError

from agents.executor import CommandExecutor
from agents.publisher import PublishEngine
from agents.undo import UndoEngine
from models.plan import Plan
from models.request import (
    ExecuteRequest,
    ExecuteResponse,
    PublishRequest,
    PublishResponse,
    UndoRequest,
    UndoResponse,
)
from models.session import SessionSummary
from services.discovery import discover
from services.session_log import SessionLogStore
from services.wp_client import WordPressClient, get_wp_client

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["sessions"])


@router.post("/execute", response_model=ExecuteResponse)
async def execute_plan(req: ExecuteRequest, client: WordPressClient = Depends(get_wp_client)):
    """Apply a Plan as draft changes and record the session ledger."""
    if req.plan is None:
        logger.warning("Missing plan in execute request")
        raise HTTPException(status_code=400, detail="Plan is required")
    try:
        plan = Plan.model_validate(req.plan)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=f"Invalid plan: {e}") from e

    try:
        discovery = await discover(client)
        result = await CommandExecutor(client).execute(plan, discovery)
    except Exception as e:
        logger.exception("Plan execution failed")
        raise HTTPException(status_code=500, detail=str(e)) from e

    return ExecuteResponse(
        message="Plan staged as drafts. Please preview before publishing.",
        results=result.results,
        session_id=result.session_id,
        affected_resources=result.affected_resources,
    )


@router.post("/publish", response_model=PublishResponse)
async def publish_session(req: PublishRequest, client: WordPressClient = Depends(get_wp_client)):
    try:
        report = await PublishEngine(client).publish(req.session_id)
    except Exception as e:
        logger.exception("Publish of session %s failed", req.session_id)
        raise HTTPException(status_code=500, detail=str(e)) from e
    return PublishResponse(message="Changes published successfully!", published=report.published)


@router.post("/undo", response_model=UndoResponse)
async def undo_session(
    req: UndoRequest | None = None,
    client: WordPressClient = Depends(get_wp_client),
):
    session_id = req.session_id if req else None
    try:
        report = await UndoEngine(client).undo(session_id)
    except Exception as e:
        logger.exception("Undo failed")
        raise HTTPException(status_code=500, detail=str(e)) from e

    if report is None:
        return UndoResponse(message="No session to undo")
    message = "Undo successful" if not report.failures else "Undo completed with errors"
    return UndoResponse(message=message, restored=report.restored, failures=report.failures)


@router.get("/sessions", response_model=list[SessionSummary])
async def list_sessions(
    include_backups: bool = False,
    client: WordPressClient = Depends(get_wp_client),
):
    try:
        return await SessionLogStore(client).list_sessions(include_backups=include_backups)
    except Exception as e:
        logger.exception("Listing sessions failed")
        raise HTTPException(status_code=500, detail=str(e)) from e
