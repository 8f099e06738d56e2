"""HTTP client for the WordPress REST API (the content store).

Wraps ``httpx.AsyncClient`` with:
- ``/wp-json`` base URL construction
- application-password Basic auth, or browser session headers (cookie + nonce)
- retry with exponential backoff (network / 5xx errors)
- request timing logs
- connection-pool lifecycle tied to FastAPI lifespan
"""

from __future__ import annotations

import asyncio
import base64
import json
import logging
import time
from typing import Any

import httpx

from config.settings import Settings, get_settings

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Module-level singleton
# ---------------------------------------------------------------------------
_client: WordPressClient | None = None

# Retry defaults
MAX_RETRIES = 3
RETRY_BASE_DELAY = 0.5  # seconds, doubles each attempt

_ITEM_ENDPOINTS = {"page": "/wp/v2/pages", "post": "/wp/v2/posts"}


class WordPressClientError(Exception):
    """Raised when WordPress returns a non-2xx response."""

    def __init__(self, status_code: int, detail: str, url: str = ""):
        self.status_code = status_code
        self.detail = detail
        self.url = url
        super().__init__(f"WordPress API {status_code}: {detail} ({url})")


def item_path(kind: str, item_id: int) -> str:
    """REST path of a single page or post (anything that is not a page is a post)."""
    base = _ITEM_ENDPOINTS.get(kind, _ITEM_ENDPOINTS["post"])
    return f"{base}/{item_id}"


class WordPressClient:
    """Async HTTP client for the WordPress REST API with retry."""

    def __init__(self, settings: Settings | None = None) -> None:
        settings = settings or get_settings()
        self._settings = settings
        self._site_url = settings.wp_url.rstrip("/")
        self._base_url = f"{self._site_url}/wp-json"
        self._timeout = settings.wp_timeout
        self._username = settings.wp_username
        # Application passwords are displayed with spaces; WordPress accepts them without.
        self._password = "".join(settings.wp_password.split())
        self._extra_headers: dict[str, str] = {}
        self._http: httpx.AsyncClient | None = None

    @property
    def site_url(self) -> str:
        return self._site_url

    # -- lifecycle -----------------------------------------------------------

    async def start(self) -> None:
        """Create the underlying ``httpx.AsyncClient`` connection pool."""
        if self._http is not None:
            return
        self._http = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=httpx.Timeout(self._timeout),
            headers=self._auth_headers(),
            limits=httpx.Limits(
                max_connections=20,
                max_keepalive_connections=10,
                keepalive_expiry=30,
            ),
        )
        logger.info("WordPressClient started — base_url=%s", self._base_url)

    async def close(self) -> None:
        """Gracefully close the connection pool."""
        if self._http is not None:
            await self._http.aclose()
            self._http = None
            logger.info("WordPressClient closed")

    # -- session headers -----------------------------------------------------

    def set_headers(self, headers: dict[str, str]) -> None:
        """Adopt headers from a browser session.

        A ``Cookie`` header replaces Basic auth, since WordPress rejects
        requests that carry both a logged-in cookie and other credentials.
        """
        if not headers:
            return
        logger.info("Updating WordPress API headers (browser session)")
        self._extra_headers.update(headers)
        if self._http is not None:
            self._http.headers.update(headers)
            if "Cookie" in headers:
                self._http.headers.pop("Authorization", None)

    async def validate_auth(self) -> bool:
        """Return True when the configured credentials can read ``/users/me``."""
        try:
            me = await self.get("/wp/v2/users/me")
        except WordPressClientError as exc:
            logger.error("WordPress auth failed (%d): %s", exc.status_code, exc.detail)
            if exc.status_code == 401:
                logger.error(
                    "The REST API requires an application password "
                    "(Users > Profile > Application Passwords); "
                    "a regular login password will not work."
                )
            return False
        except httpx.TransportError as exc:
            logger.error("WordPress auth failed: %s", exc)
            return False
        logger.info("WordPress auth successful — logged in as %s (@%s)", me.get("name"), me.get("slug"))
        return True

    # -- content store operations --------------------------------------------

    async def get_posts(self, params: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        return await self.get("/wp/v2/posts", params=params)

    async def get_pages(self, params: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        return await self.get("/wp/v2/pages", params=params)

    async def get_item(self, kind: str, item_id: int) -> dict[str, Any]:
        """Fetch one page or post in edit context (raw title/content)."""
        return await self.get(item_path(kind, item_id), params={"context": "edit"})

    async def create_post(self, fields: dict[str, Any], kind: str = "post") -> dict[str, Any]:
        logger.info("Creating %s: %s", kind, fields.get("title"))
        return await self.post(_ITEM_ENDPOINTS.get(kind, _ITEM_ENDPOINTS["post"]), json_body=fields)

    async def update_post(self, item_id: int, fields: dict[str, Any], kind: str = "post") -> dict[str, Any]:
        """Update a page or post; ``kind`` picks the endpoint."""
        return await self.post(item_path(kind, item_id), json_body=fields)

    async def get_global_styles(self) -> list[dict[str, Any]]:
        data = await self.get("/wp/v2/global-styles")
        if isinstance(data, dict):
            return [data] if data else []
        return data

    async def update_global_styles(self, styles_id: int, fields: dict[str, Any]) -> dict[str, Any]:
        return await self.post(f"/wp/v2/global-styles/{styles_id}", json_body=fields)

    async def get_patterns(self) -> list[dict[str, Any]]:
        return await self.get("/wp/v2/block-patterns/patterns")

    async def get_settings(self) -> dict[str, Any]:
        return await self.get("/wp/v2/settings")

    async def update_settings(self, fields: dict[str, Any]) -> dict[str, Any]:
        logger.info("Updating settings: %s", sorted(fields))
        return await self.post("/wp/v2/settings", json_body=fields)

    async def create_log_record(
        self,
        title: str,
        content: str,
        meta: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Store a session log as a hidden, prefixed content entry.

        ``meta`` is serialized into the excerpt.
        """
        s = self._settings
        return await self.post(s.session_log_endpoint, json_body={
            "title": f"{s.session_log_prefix}{title}",
            "content": content,
            "status": s.session_log_status,
            "excerpt": json.dumps(meta or {}),
        })

    async def query_log_records(self, params: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        """List session logs, newest first."""
        s = self._settings
        query: dict[str, Any] = {
            "per_page": s.session_log_page_size,
            "status": s.session_log_status,
            "search": s.session_log_prefix.strip(),
            "orderby": "date",
            "order": "desc",
            "context": "edit",
        }
        query.update(params or {})
        return await self.get(s.session_log_endpoint, params=query)

    async def post_raw(self, path: str, body: dict[str, Any]) -> dict[str, Any]:
        return await self.post(path, json_body=body)

    async def delete_raw(self, path: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        return await self._request_with_retry("DELETE", path, params=params)

    # -- HTTP verbs ----------------------------------------------------------

    async def get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """Send a GET request with retry.

        Raises :class:`WordPressClientError` on non-retryable errors (4xx).
        """
        return await self._request_with_retry("GET", path, params=params)

    async def post(self, path: str, json_body: dict[str, Any] | None = None) -> Any:
        """Send a POST request with retry."""
        return await self._request_with_retry("POST", path, json_body=json_body)

    # -- retry logic ---------------------------------------------------------

    async def _request_with_retry(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json_body: dict[str, Any] | None = None,
    ) -> Any:
        """Execute an HTTP request with exponential-backoff retry.

        Retries on:
        - Network errors (``httpx.TransportError``)
        - Server errors (5xx)

        Does NOT retry on client errors (4xx).
        """
        client = self._ensure_started()
        last_exc: Exception | None = None

        for attempt in range(1, MAX_RETRIES + 1):
            t0 = time.monotonic()
            try:
                response = await client.request(method, path, params=params, json=json_body)

                elapsed_ms = (time.monotonic() - t0) * 1000
                logger.info(
                    "%s %s → %d (%.0fms)",
                    method, path, response.status_code, elapsed_ms,
                )

                # 4xx: non-retryable client error
                if 400 <= response.status_code < 500:
                    detail = response.text[:500] if response.text else f"HTTP {response.status_code}"
                    raise WordPressClientError(
                        status_code=response.status_code,
                        detail=detail,
                        url=str(response.url),
                    )

                # 5xx: retryable server error
                if response.status_code >= 500:
                    last_exc = WordPressClientError(
                        status_code=response.status_code,
                        detail=response.text[:200] if response.text else "",
                        url=str(response.url),
                    )
                    if attempt < MAX_RETRIES:
                        delay = RETRY_BASE_DELAY * (2 ** (attempt - 1))
                        logger.warning(
                            "%s %s → 5xx, retry %d/%d in %.1fs",
                            method, path, attempt, MAX_RETRIES, delay,
                        )
                        await asyncio.sleep(delay)
                        continue
                    raise last_exc

                if not response.text:
                    return {}
                return response.json()

            except httpx.TransportError as exc:
                elapsed_ms = (time.monotonic() - t0) * 1000
                last_exc = exc
                logger.warning(
                    "%s %s → network error (%.0fms): %s [attempt %d/%d]",
                    method, path, elapsed_ms, exc, attempt, MAX_RETRIES,
                )
                if attempt < MAX_RETRIES:
                    delay = RETRY_BASE_DELAY * (2 ** (attempt - 1))
                    await asyncio.sleep(delay)
                    continue

        # Exhausted all retries
        raise last_exc  # type: ignore[misc]

    # -- internals -----------------------------------------------------------

    def _auth_headers(self) -> dict[str, str]:
        headers: dict[str, str] = {"Content-Type": "application/json"}
        if self._username and self._password and "Cookie" not in self._extra_headers:
            token = base64.b64encode(f"{self._username}:{self._password}".encode()).decode()
            headers["Authorization"] = f"Basic {token}"
        headers.update(self._extra_headers)
        return headers

    def _ensure_started(self) -> httpx.AsyncClient:
        if self._http is None:
            raise RuntimeError("WordPressClient not started — call await client.start() first")
        return self._http


# ---------------------------------------------------------------------------
# Singleton accessor
# ---------------------------------------------------------------------------

def get_wp_client() -> WordPressClient:
    """Return the module-level WordPressClient singleton (create if needed)."""
    global _client
    if _client is None:
        _client = WordPressClient()
    return _client
