"""Pydantic Settings — typed configuration with .env auto-loading."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

from config.llm_config import LLMConfig


class Settings(BaseSettings):
    """Application configuration loaded from environment / .env file."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # ── Service ──────────────────────────────────────────────
    service_port: int = 3001
    cors_origins: list[str] = ["*"]
    debug: bool = False
    log_level: str = "INFO"

    # ── LLM (plan generation) ────────────────────────────────
    default_model: str = "deepseek/deepseek-chat"
    planner_max_tokens: int = 4096
    temperature: float | None = None

    # Provider API keys
    deepseek_api_key: str = ""
    deepseek_base_url: str = "https://api.deepseek.com"
    openai_api_key: str = ""
    anthropic_api_key: str = ""

    # ── WordPress content store ──────────────────────────────
    wp_url: str = "http://localhost:8080"
    wp_username: str = ""
    wp_password: str = ""  # application password, spaces are stripped
    wp_timeout: int = 30  # seconds

    # Browser session headers (cookie + REST nonce); a cookie replaces basic auth
    wp_session_cookie: str = ""
    wp_nonce: str = ""

    # ── Discovery ────────────────────────────────────────────
    discovery_page_size: int = 100
    discovery_statuses: str = "publish,draft,private"

    # ── Session logs ─────────────────────────────────────────
    # Logs live inside the content store: fixed title prefix, hidden status, JSON body.
    session_log_prefix: str = "AI_SESSION: "
    session_log_status: str = "pending"
    session_log_endpoint: str = "/wp/v2/posts"
    session_log_page_size: int = 20
    backup_title_prefix: str = "PRE_EXEC_BACKUP"
    backup_enabled: bool = True
    backup_theme_name: str = ""

    # ── Recovery defaults ────────────────────────────────────
    front_page_id: int = 12  # 0 disables the front-page check on undo
    show_on_front: str = "page"

    # ── Execution ────────────────────────────────────────────
    default_failure_policy: Literal["skip", "abort"] = "skip"

    # ── Helpers ───────────────────────────────────────────────

    def get_planner_llm_config(self) -> LLMConfig:
        """Build the planner :class:`LLMConfig` from .env defaults."""
        return LLMConfig(
            model=self.default_model,
            max_tokens=self.planner_max_tokens,
            temperature=self.temperature,
        )

    def session_headers(self) -> dict[str, str]:
        """Headers supplied by a browser session, empty when not configured."""
        headers: dict[str, str] = {}
        if self.wp_session_cookie:
            headers["Cookie"] = self.wp_session_cookie
        if self.wp_nonce:
            headers["X-WP-Nonce"] = self.wp_nonce
        return headers


@lru_cache
def get_settings() -> Settings:
    """Singleton accessor for application settings."""
    return Settings()
