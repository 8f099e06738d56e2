"""Plan API — natural-language prompt → validated Plan."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from agents.planner import generate_plan
from models.plan import Plan
from models.request import PlanRequest
from services.discovery import discover
from services.wp_client import WordPressClient, get_wp_client

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["plan"])


@router.post("/plan", response_model=Plan, response_model_exclude_none=True)
async def create_plan(req: PlanRequest, client: WordPressClient = Depends(get_wp_client)):
    """Audit the site, then ask the planner for a Plan.

    Discovery runs on every request so the planner never sees stale content.
    """
    prompt = req.prompt.strip()
    if not prompt:
        logger.warning("Missing prompt in plan request")
        raise HTTPException(status_code=400, detail="Prompt is required")

    try:
        discovery = await discover(client)
        plan = await generate_plan(prompt, discovery, model=req.model)
    except Exception as e:
        logger.exception("Plan generation failed")
        raise HTTPException(status_code=500, detail=str(e)) from e

    return plan
