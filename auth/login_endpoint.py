from __future__ import annotations

import asyncio
import time
from collections.abc import Mapping
from dataclasses import dataclass

from starlette.requests import Request
from starlette.responses import Response
from starlette.routing import Route

from auth import session_token
from auth.cors import DEFAULT_CORS_ORIGINS, cors_json_response, preflight_route
from auth.login_channel import LoginChannel
from auth.models import ResolvedUser
from auth.payloads import PayloadError, read_payload
from auth.validator import Rejected, RejectionKind, validate_payload
from hookah_auth.constants import (
    CALLBACK_PATH,
    DEFAULT_CLIENT_SYNC_TIMEOUT_SECONDS,
    DEFAULT_TOKEN_LIFETIME_SECONDS,
    DEFAULT_TTL_SECONDS,
    LEGACY_CALLBACK_PATH,
    LOGGER,
    SESSION_PATH,
)
from hookah_auth.http import extract_bearer_token


@dataclass
class LoginResponse:
    status_code: int
    body: dict
    user: ResolvedUser | None = None


def is_secure_request(request: Request) -> bool:
    forwarded = request.headers.get("x-forwarded-proto")
    if forwarded:
        return forwarded.split(",")[0].strip().lower() == "https"
    return request.url.scheme == "https"


class TelegramLoginEndpoint:
    def __init__(
        self,
        *,
        bot_token: str | None,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        max_future_skew_seconds: int | None = None,
        https_only: bool = True,
        token_lifetime_seconds: int = DEFAULT_TOKEN_LIFETIME_SECONDS,
        cors_origins: set[str] | None = None,
        login_channel: LoginChannel | None = None,
        sink_timeout_seconds: float = DEFAULT_CLIENT_SYNC_TIMEOUT_SECONDS,
        clock=time.time,
    ) -> None:
        self.bot_token = bot_token
        self.ttl_seconds = ttl_seconds
        self.max_future_skew_seconds = max_future_skew_seconds
        self.https_only = https_only
        self.token_lifetime_seconds = token_lifetime_seconds
        self.cors_origins = set(DEFAULT_CORS_ORIGINS)
        if cors_origins:
            self.cors_origins.update(cors_origins)

        self.login_channel = login_channel or LoginChannel()
        self.sink_timeout_seconds = sink_timeout_seconds
        self._clock = clock

    def now(self) -> int:
        return int(self._clock())

    # -- framework-free core ---------------------------------------------------

    def check_transport(self, secure: bool) -> LoginResponse | None:
        if self.https_only and not secure:
            LOGGER.warning("Rejected Telegram login over insecure transport.")
            return LoginResponse(400, {"error": "https required"})
        return None

    def authenticate(self, fields: Mapping[str, str], *, secure: bool, now: int) -> LoginResponse:
        insecure = self.check_transport(secure)
        if insecure is not None:
            return insecure

        outcome = validate_payload(
            self.bot_token,
            fields,
            now,
            ttl_seconds=self.ttl_seconds,
            max_future_skew_seconds=self.max_future_skew_seconds,
        )
        if isinstance(outcome, Rejected):
            self._log_rejection(outcome, fields)
            return LoginResponse(outcome.status_code, {"error": outcome.reason})

        try:
            user = ResolvedUser.from_payload(fields)
        except ValueError as error:
            return LoginResponse(400, {"error": str(error)})

        issued = session_token.issue(
            self.bot_token,
            user.id,
            now,
            lifetime_seconds=self.token_lifetime_seconds,
        )
        LOGGER.info("Telegram login accepted for user %s", user.id)
        return LoginResponse(
            200,
            {"user": user.to_dict(), "token": issued.token, "expires_in": issued.expires_in},
            user=user,
        )

    def introspect(self, token: str | None, *, now: int) -> LoginResponse:
        check = session_token.verify_token(self.bot_token, token or "", now)
        if not check.valid:
            return LoginResponse(401, {"error": "invalid session token"})
        return LoginResponse(200, {"sub": check.subject, "valid": True})

    # -- routes ----------------------------------------------------------------

    def routes(self) -> list[Route]:
        routes = []
        for path in (CALLBACK_PATH, LEGACY_CALLBACK_PATH):
            routes.append(Route(path, self._handle_callback, methods=["GET", "POST"]))
            routes.append(preflight_route(path, self.cors_origins))
        routes.append(Route(SESSION_PATH, self._handle_session, methods=["GET"]))
        routes.append(preflight_route(SESSION_PATH, self.cors_origins))
        return routes

    # -- handlers --------------------------------------------------------------

    async def _handle_callback(self, request: Request) -> Response:
        secure = is_secure_request(request)
        insecure = self.check_transport(secure)
        if insecure is not None:
            return self._respond(request, insecure)

        try:
            payload = await read_payload(request)
        except PayloadError as error:
            LOGGER.info("Failed to parse Telegram login payload: %s", error)
            return self._respond(request, LoginResponse(400, {"error": "failed to parse payload"}))

        result = self.authenticate(payload.fields, secure=secure, now=self.now())
        if result.user is not None:
            await self._publish_login(result.user)
        return self._respond(request, result)

    async def _handle_session(self, request: Request) -> Response:
        token = extract_bearer_token(request.headers.get("authorization"))
        return self._respond(request, self.introspect(token, now=self.now()))

    # -- helpers ---------------------------------------------------------------

    async def _publish_login(self, user: ResolvedUser) -> None:
        if not self.login_channel.subscribed:
            return
        try:
            await asyncio.wait_for(
                self.login_channel.publish(user),
                timeout=self.sink_timeout_seconds,
            )
        except Exception as error:
            LOGGER.warning("Known-client sync failed for user %s: %r", user.id, error)

    def _log_rejection(self, outcome: Rejected, fields: Mapping[str, str]) -> None:
        user_id = fields.get("id", "?")
        if outcome.kind is RejectionKind.CONFIGURATION:
            LOGGER.error("Telegram login rejected: %s (TELEGRAM_BOT_TOKEN missing)", outcome.reason)
        elif outcome.kind is RejectionKind.SIGNATURE_MISMATCH:
            LOGGER.warning("Telegram login signature mismatch for id=%s: %s", user_id, outcome.reason)
        else:
            LOGGER.info("Telegram login rejected for id=%s: %s", user_id, outcome.reason)

    def _respond(self, request: Request, result: LoginResponse) -> Response:
        return cors_json_response(
            request,
            self.cors_origins,
            result.body,
            status_code=result.status_code,
        )
