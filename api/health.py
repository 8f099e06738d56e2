"""Health check endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from config.settings import get_settings
from services.wp_client import WordPressClient, get_wp_client

router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health")
async def health(client: WordPressClient = Depends(get_wp_client)):
    return {
        "status": "healthy",
        "site": client.site_url,
        "model": get_settings().default_model,
    }
