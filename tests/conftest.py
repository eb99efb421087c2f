import pytest


@pytest.fixture
def fixed_now() -> int:
    return 1_700_000_000


@pytest.fixture(autouse=True)
def _clear_auth_env(monkeypatch) -> None:
    for key in (
        "TELEGRAM_BOT_TOKEN",
        "TELEGRAM_AUTH_TTL_SECONDS",
        "TELEGRAM_AUTH_MAX_FUTURE_SKEW_SECONDS",
        "TELEGRAM_AUTH_HTTPS_ONLY",
        "SESSION_TOKEN_LIFETIME_SECONDS",
        "CLIENT_STORE_PATH",
        "CLIENT_SYNC_URL",
        "CLIENT_SYNC_TIMEOUT_SECONDS",
        "AUTH_CORS_ORIGINS",
    ):
        monkeypatch.delenv(key, raising=False)
