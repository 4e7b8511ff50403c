#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Application configuration.

All values can be overridden via environment variables or a .env file.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

from wicked._version import __version__ as _pkg_version


# -----------------------------------------------------------------------------

class Settings(BaseSettings):

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── Application ────────────────────────────────────────────────────────

    app_name: str = "Wicked"
    app_version: str = _pkg_version
    site_name: str = "Wicked"
    base_url: str = "http://localhost:8000"
    debug: bool = False
    environment: Literal["development", "testing", "production"] = "development"
    log_level: str = "INFO"

    # ── Database ───────────────────────────────────────────────────────────

    database_url: str = "sqlite+aiosqlite:///./wicked.db"
    db_echo: bool = False
    db_pool_size: int = 5
    db_max_overflow: int = 10

    # ── Auth / JWT ─────────────────────────────────────────────────────────

    secret_key: str = "CHANGE-ME-IN-PRODUCTION-use-a-random-64-char-hex-string"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 8   # 8 hours
    refresh_token_expire_days: int = 30
    allow_registration: bool = True

    # ── Wiki ───────────────────────────────────────────────────────────────

    # Base syntax dialect handed to the markup processor
    wiki_format: Literal["markdown", "rst"] = "markdown"
    home_page: str = "Wiki/Home"
    date_format: str = "%Y-%m-%d %H:%M"
    lock_minutes: int = 30

    # Change notifications (page created / changed / deleted).  None disables.
    notify_address: str | None = None

    # User-agent substrings that identify automated agents
    robot_agents: list[str] = [
        "googlebot", "bingbot", "slurp", "duckduckbot", "baiduspider",
        "yandexbot", "ahrefsbot", "semrushbot", "crawler", "spider",
    ]
    no_ua_is_robot: bool = False

    # ── Mail ───────────────────────────────────────────────────────────────

    smtp_host: str = ""
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_password: str = ""
    smtp_from: str = "wicked@localhost"
    smtp_tls: bool = True
    smtp_ssl: bool = False

    @property
    def is_testing(self) -> bool:
        return self.environment == "testing"


# -----------------------------------------------------------------------------

@lru_cache
def get_settings() -> Settings:
    return Settings()


# -----------------------------------------------------------------------------
