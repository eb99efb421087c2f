from __future__ import annotations

from starlette.exceptions import HTTPException
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Route

from .constants import APP_VERSION, AUTH_MODE, LOGGER


def extract_bearer_token(authorization_header: str | None) -> str | None:
    if not authorization_header:
        return None
    scheme, _, token = authorization_header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


async def health(request: Request) -> Response:
    del request
    return JSONResponse(
        {
            "status": "ok",
            "version": APP_VERSION,
            "auth_mode": AUTH_MODE,
        }
    )


def health_route() -> Route:
    return Route("/health", health, methods=["GET"])


async def http_error_handler(request: Request, exc: HTTPException) -> Response:
    del request
    message = "not found" if exc.status_code == 404 else str(exc.detail).lower()
    return JSONResponse({"error": message}, status_code=exc.status_code, headers=exc.headers)


async def unhandled_error_handler(request: Request, exc: Exception) -> Response:
    LOGGER.exception("Unhandled error on %s %s: %r", request.method, request.url.path, exc)
    return JSONResponse({"error": "internal server error"}, status_code=500)


EXCEPTION_HANDLERS = {
    HTTPException: http_error_handler,
    Exception: unhandled_error_handler,
}
