from __future__ import annotations

import base64
import binascii
import hmac
import json
import re
from dataclasses import dataclass

from auth import signature
from hookah_auth.constants import DEFAULT_TOKEN_LIFETIME_SECONDS

_SEGMENT = re.compile(r"[A-Za-z0-9_-]+")


@dataclass(frozen=True)
class IssuedToken:
    token: str
    expires_in: int


@dataclass(frozen=True)
class TokenCheck:
    valid: bool
    subject: int | None = None


def _b64encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode()


def _b64decode(segment: str) -> bytes:
    padding = "=" * (-len(segment) % 4)
    return base64.urlsafe_b64decode(segment + padding)


def issue(
    secret: str,
    user_id: int,
    now: int,
    lifetime_seconds: int = DEFAULT_TOKEN_LIFETIME_SECONDS,
) -> IssuedToken:
    """Mint ``<claims>.<signature>`` bound to ``user_id``.

    The HMAC key is derived from the bot token, the same root that verifies
    Telegram payloads. Anyone holding the bot token can mint sessions.
    """
    exp = now + lifetime_seconds
    claims = json.dumps({"sub": user_id, "iat": now, "exp": exp}, separators=(",", ":"))
    claims_block = _b64encode(claims.encode())
    key = signature.derive_key(secret)
    sig = _b64encode(signature.digest(key, claims_block))
    return IssuedToken(token=f"{claims_block}.{sig}", expires_in=exp - now)


def verify_token(secret: str | None, token: str, now: int) -> TokenCheck:
    if not secret or not isinstance(token, str):
        return TokenCheck(valid=False)

    parts = token.split(".")
    if len(parts) != 2:
        return TokenCheck(valid=False)
    claims_block, sig_b64 = parts
    if not all(_SEGMENT.fullmatch(part) for part in parts):
        return TokenCheck(valid=False)

    expected_sig = _b64encode(signature.digest(signature.derive_key(secret), claims_block))
    if not hmac.compare_digest(expected_sig, sig_b64):
        return TokenCheck(valid=False)

    try:
        claims = json.loads(_b64decode(claims_block))
    except (binascii.Error, ValueError):
        return TokenCheck(valid=False)

    if not isinstance(claims, dict):
        return TokenCheck(valid=False)
    exp = claims.get("exp")
    if not isinstance(exp, int) or isinstance(exp, bool):
        return TokenCheck(valid=False)
    if now > exp:
        return TokenCheck(valid=False)

    subject = claims.get("sub")
    return TokenCheck(valid=True, subject=subject if isinstance(subject, int) else None)
