from __future__ import annotations

import os

import uvicorn
from starlette.applications import Starlette

from auth.client_store import ClientStore, FileClientStore, HttpClientStore
from auth.login_channel import LoginChannel
from auth.login_endpoint import TelegramLoginEndpoint
from auth.models import ClientRecord, ResolvedUser
from hookah_auth.constants import APP_VERSION, AUTH_MODE, LOGGER
from hookah_auth.env import (
    Settings,
    _get_env_int,
    load_env,
    read_settings,
    setup_logging,
    validate_env,
)
from hookah_auth.http import EXCEPTION_HANDLERS, health_route


def build_client_store(settings: Settings) -> ClientStore | None:
    if settings.client_sync_url:
        return HttpClientStore(
            settings.client_sync_url,
            timeout=settings.client_sync_timeout_seconds,
        )
    if settings.client_store_path:
        return FileClientStore(settings.client_store_path)
    return None


def subscribe_client_store(channel: LoginChannel, store: ClientStore, *, clock):
    async def record_login(user: ResolvedUser) -> None:
        await store.upsert(ClientRecord.from_user(user, clock()))

    return channel.subscribe(record_login)


def create_app(settings: Settings | None = None) -> Starlette:
    if settings is None:
        load_env()
        setup_logging()
        settings = read_settings()
    validate_env(settings)

    endpoint = TelegramLoginEndpoint(
        bot_token=settings.bot_token,
        ttl_seconds=settings.ttl_seconds,
        max_future_skew_seconds=settings.max_future_skew_seconds,
        https_only=settings.https_only,
        token_lifetime_seconds=settings.token_lifetime_seconds,
        cors_origins=settings.cors_origins,
        sink_timeout_seconds=settings.client_sync_timeout_seconds,
    )

    store = build_client_store(settings)
    if store is not None:
        subscribe_client_store(endpoint.login_channel, store, clock=endpoint.now)
        LOGGER.info("Known-client sync enabled via %s", type(store).__name__)

    app = Starlette(
        routes=[health_route(), *endpoint.routes()],
        exception_handlers=EXCEPTION_HANDLERS,
    )
    app.state.login_endpoint = endpoint
    app.state.client_store = store
    LOGGER.info("Telegram auth service %s ready (mode=%s)", APP_VERSION, AUTH_MODE)
    return app


def main() -> None:
    host = os.getenv("AUTH_HOST", "127.0.0.1")
    port = _get_env_int("AUTH_PORT", 8787)
    app = create_app()
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    main()
