from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Union
from urllib.parse import parse_qsl

from starlette.requests import Request

from hookah_auth.constants import MAX_BODY_BYTES


class PayloadError(ValueError):
    pass


@dataclass(frozen=True)
class QueryPayload:
    fields: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class JsonPayload:
    fields: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class FormPayload:
    fields: dict[str, str] = field(default_factory=dict)


LoginPayload = Union[QueryPayload, JsonPayload, FormPayload]


def _stringify(value: object) -> str:
    # Matches how the browser widget renders JSON scalars into the check string.
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (int, float)):
        return str(value)
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def parse_json_body(body: bytes) -> JsonPayload:
    if not body.strip():
        return JsonPayload()
    try:
        data = json.loads(body)
    except ValueError as error:
        raise PayloadError("Body is not valid JSON.") from error
    if not isinstance(data, dict):
        raise PayloadError("JSON body must be an object.")
    return JsonPayload({str(key): _stringify(value) for key, value in data.items()})


def parse_form_body(body: bytes) -> FormPayload:
    try:
        text = body.decode("utf-8")
    except UnicodeDecodeError as error:
        raise PayloadError("Form body is not valid UTF-8.") from error
    return FormPayload(dict(parse_qsl(text, keep_blank_values=True)))


async def read_payload(request: Request) -> LoginPayload:
    """Resolve the request into exactly one payload variant."""
    if request.method in ("GET", "HEAD"):
        return QueryPayload(dict(request.query_params))

    body = b""
    async for chunk in request.stream():
        body += chunk
        if len(body) > MAX_BODY_BYTES:
            raise PayloadError("Body too large.")

    content_type = request.headers.get("content-type", "")
    if "application/json" in content_type:
        return parse_json_body(body)
    return parse_form_body(body)
