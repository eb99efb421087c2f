from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv
from pydantic import AnyHttpUrl, ValidationError

from .constants import (
    DEFAULT_CLIENT_SYNC_TIMEOUT_SECONDS,
    DEFAULT_TOKEN_LIFETIME_SECONDS,
    DEFAULT_TTL_SECONDS,
    ENV_FILE,
    LOGGER,
)


@dataclass
class Settings:
    bot_token: str | None
    ttl_seconds: int = DEFAULT_TTL_SECONDS
    max_future_skew_seconds: int | None = None
    https_only: bool = True
    token_lifetime_seconds: int = DEFAULT_TOKEN_LIFETIME_SECONDS
    client_store_path: str | None = None
    client_sync_url: str | None = None
    client_sync_timeout_seconds: float = DEFAULT_CLIENT_SYNC_TIMEOUT_SECONDS
    cors_origins: set[str] = field(default_factory=set)


def is_truthy(value: str | None) -> bool:
    if value is None:
        return False
    return value.strip().lower() in {"1", "true", "yes", "on"}


def parse_csv_env(key: str) -> set[str]:
    raw = os.getenv(key, "")
    if not raw.strip():
        return set()
    return {item.strip() for item in raw.split(",") if item.strip()}


def _get_env_int(key: str, default: int) -> int:
    raw = os.getenv(key, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise RuntimeError(f"{key} must be an integer value.")


def _get_env_bool(key: str, default: bool) -> bool:
    raw = os.getenv(key, "").strip().lower()
    if not raw:
        return default
    if raw in {"1", "true", "yes", "on"}:
        return True
    if raw in {"0", "false", "no", "off"}:
        return False
    raise RuntimeError(f"{key} must be a boolean value (true/false).")


def _get_env_optional_int(key: str) -> int | None:
    if not os.getenv(key, "").strip():
        return None
    return _get_env_int(key, 0)


def _get_env_float(key: str, default: float) -> float:
    raw = os.getenv(key, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise RuntimeError(f"{key} must be a numeric value.")


def _get_env_url(key: str) -> str | None:
    raw = os.getenv(key, "").strip()
    if not raw:
        return None
    try:
        return str(AnyHttpUrl(raw))
    except ValidationError:
        raise RuntimeError(f"{key} must be a valid http(s) URL.")


def load_env(path: Path = ENV_FILE) -> None:
    if not path.exists():
        return
    load_dotenv(path, override=True)


def read_settings() -> Settings:
    return Settings(
        bot_token=os.getenv("TELEGRAM_BOT_TOKEN", "").strip() or None,
        ttl_seconds=_get_env_int("TELEGRAM_AUTH_TTL_SECONDS", DEFAULT_TTL_SECONDS),
        max_future_skew_seconds=_get_env_optional_int("TELEGRAM_AUTH_MAX_FUTURE_SKEW_SECONDS"),
        https_only=_get_env_bool("TELEGRAM_AUTH_HTTPS_ONLY", True),
        token_lifetime_seconds=_get_env_int(
            "SESSION_TOKEN_LIFETIME_SECONDS", DEFAULT_TOKEN_LIFETIME_SECONDS
        ),
        client_store_path=os.getenv("CLIENT_STORE_PATH", "").strip() or None,
        client_sync_url=_get_env_url("CLIENT_SYNC_URL"),
        client_sync_timeout_seconds=_get_env_float(
            "CLIENT_SYNC_TIMEOUT_SECONDS", DEFAULT_CLIENT_SYNC_TIMEOUT_SECONDS
        ),
        cors_origins=parse_csv_env("AUTH_CORS_ORIGINS"),
    )


def validate_env(settings: Settings) -> None:
    """Report configuration problems without refusing to start.

    A missing bot token is surfaced as a 500 on every login attempt, so it is
    logged at ERROR here for operators rather than aborting startup.
    """
    if not settings.bot_token:
        LOGGER.error(
            "TELEGRAM_BOT_TOKEN is not configured; every Telegram login will fail with 500."
        )
    if not settings.https_only:
        LOGGER.warning("TELEGRAM_AUTH_HTTPS_ONLY is disabled; use this only for local development.")
    if settings.ttl_seconds <= 0:
        LOGGER.warning("TELEGRAM_AUTH_TTL_SECONDS <= 0 disables auth_date freshness checks.")
    if settings.token_lifetime_seconds <= 0:
        raise RuntimeError("SESSION_TOKEN_LIFETIME_SECONDS must be positive.")


def setup_logging() -> bool:
    debug_enabled = is_truthy(os.getenv("AUTH_DEBUG", "1"))
    if debug_enabled:
        logging.basicConfig(level=logging.INFO)
        LOGGER.setLevel(logging.INFO)
    return debug_enabled
