import asyncio

import pytest
from starlette.testclient import TestClient

import server
from auth.client_store import FileClientStore, HttpClientStore
from hookah_auth.env import Settings
from tests.telegram_helpers import BOT_TOKEN, _make_payload


def test_build_client_store_prefers_http() -> None:
    settings = Settings(
        bot_token=BOT_TOKEN,
        client_store_path="clients.json",
        client_sync_url="https://venues.example.com/api/clients",
    )

    assert isinstance(server.build_client_store(settings), HttpClientStore)


def test_build_client_store_file(tmp_path) -> None:
    settings = Settings(bot_token=BOT_TOKEN, client_store_path=str(tmp_path / "c.json"))

    assert isinstance(server.build_client_store(settings), FileClientStore)


def test_build_client_store_disabled() -> None:
    assert server.build_client_store(Settings(bot_token=BOT_TOKEN)) is None


def test_create_app_reads_environment(monkeypatch) -> None:
    monkeypatch.setattr(server, "load_env", lambda: None)
    monkeypatch.setattr(server, "setup_logging", lambda: False)
    monkeypatch.setenv("TELEGRAM_BOT_TOKEN", BOT_TOKEN)
    monkeypatch.setenv("TELEGRAM_AUTH_HTTPS_ONLY", "0")

    client = TestClient(server.create_app())
    response = client.post("/auth/callback", json=_make_payload())

    assert response.status_code == 200


def test_create_app_records_known_clients(tmp_path) -> None:
    path = tmp_path / "clients.json"
    app = server.create_app(
        Settings(bot_token=BOT_TOKEN, https_only=False, client_store_path=str(path))
    )

    response = TestClient(app).post("/auth/callback", json=_make_payload(last_name="Smith"))

    assert response.status_code == 200
    record = asyncio.run(FileClientStore(path).get(1000))
    assert record.last_name == "Smith"
    assert record.username == "qa_bot"


def test_create_app_without_secret_still_starts() -> None:
    app = server.create_app(Settings(bot_token=None, https_only=False))

    response = TestClient(app).post("/auth/callback", json=_make_payload())

    assert response.status_code == 500


def test_create_app_rejects_bad_lifetime() -> None:
    with pytest.raises(RuntimeError):
        server.create_app(Settings(bot_token=BOT_TOKEN, token_lifetime_seconds=-1))
