"""FastAPI entry point for the site change agent service."""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config.settings import get_settings
from services.wp_client import get_wp_client

logger = logging.getLogger(__name__)

settings = get_settings()
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle — start/stop the WordPress client."""
    client = get_wp_client()
    await client.start()

    # Browser session headers (cookie + nonce) take precedence over basic auth
    session_headers = settings.session_headers()
    if session_headers:
        client.set_headers(session_headers)
        logger.info("Linked browser session to API client")

    yield

    await client.close()


app = FastAPI(
    title="Site Change Agent",
    description="Natural-language site changes staged as reviewable drafts, with publish and undo",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Register routers ────────────────────────────────────────
from api.health import router as health_router  # noqa: E402
from api.plan import router as plan_router  # noqa: E402
from api.sessions import router as sessions_router  # noqa: E402

app.include_router(health_router)
app.include_router(plan_router)
app.include_router(sessions_router)


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=settings.service_port,
        reload=settings.debug,
    )
