from __future__ import annotations

import logging
from pathlib import Path

LOGGER = logging.getLogger("hookah_auth.telegram")
APP_VERSION = "0.1.0"
AUTH_MODE = "telegram-login"

CALLBACK_PATH = "/auth/callback"
LEGACY_CALLBACK_PATH = "/api/auth/telegram/callback"
SESSION_PATH = "/auth/session"

DEFAULT_TTL_SECONDS = 600
DEFAULT_TOKEN_LIFETIME_SECONDS = 3600
DEFAULT_CLIENT_SYNC_TIMEOUT_SECONDS = 5.0
MAX_BODY_BYTES = 1_000_000

ENV_FILE = Path(__file__).resolve().parent.parent / ".env"
