from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Union

from auth import signature
from auth.canonical import SIGNATURE_FIELD, build_data_check_string
from auth.models import parse_decimal_int
from hookah_auth.constants import DEFAULT_TTL_SECONDS

REQUIRED_FIELDS = ("id", "first_name", "auth_date", SIGNATURE_FIELD)


class RejectionKind(str, Enum):
    CONFIGURATION = "configuration_error"
    MALFORMED = "malformed_request"
    STALE = "stale"
    SIGNATURE_MISMATCH = "signature_mismatch"


@dataclass(frozen=True)
class Valid:
    pass


@dataclass(frozen=True)
class Rejected:
    kind: RejectionKind
    status_code: int
    reason: str


ValidationOutcome = Union[Valid, Rejected]


def _malformed(reason: str) -> Rejected:
    return Rejected(RejectionKind.MALFORMED, 400, reason)


def validate_payload(
    secret: str | None,
    payload: Mapping[str, str],
    now: int,
    ttl_seconds: int = DEFAULT_TTL_SECONDS,
    max_future_skew_seconds: int | None = None,
) -> ValidationOutcome:
    """Check a Telegram login payload.

    Steps run in a fixed order: configuration, required fields, ``auth_date``
    parsing, freshness, then signature. The first failure wins, so a stale
    payload is rejected as stale even when its signature is also wrong.

    ``max_future_skew_seconds`` is off by default; when set, payloads dated
    further ahead of ``now`` than the bound are rejected as stale.
    """
    if not secret:
        return Rejected(RejectionKind.CONFIGURATION, 500, "secret not configured")

    for name in REQUIRED_FIELDS:
        if name not in payload:
            return _malformed(f"missing field: {name}")

    try:
        auth_date = parse_decimal_int(payload["auth_date"])
        if auth_date is None:
            return _malformed("auth_date invalid")

        if ttl_seconds > 0 and now - auth_date > ttl_seconds:
            return Rejected(RejectionKind.STALE, 401, "stale auth_date")
        if max_future_skew_seconds is not None and auth_date - now > max_future_skew_seconds:
            return Rejected(RejectionKind.STALE, 401, "auth_date in the future")

        check_string = build_data_check_string(payload)
        received_hash = str(payload[SIGNATURE_FIELD])
    except Exception as error:
        return _malformed(f"malformed payload: {type(error).__name__}")

    key = signature.derive_key(secret)
    if not signature.verify(key, check_string, received_hash):
        return Rejected(RejectionKind.SIGNATURE_MISMATCH, 401, "invalid signature")

    return Valid()
