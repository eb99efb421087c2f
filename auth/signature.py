from __future__ import annotations

import hashlib
import hmac
import re

_HEX_DIGEST = re.compile(r"[0-9a-fA-F]{64}")


def derive_key(shared_secret: str) -> bytes:
    """Derive the HMAC key from the bot token (SHA-256, raw 32 bytes)."""
    return hashlib.sha256(shared_secret.encode()).digest()


def digest(key: bytes, message: str) -> bytes:
    return hmac.new(key, message.encode(), hashlib.sha256).digest()


def sign(key: bytes, message: str) -> str:
    return digest(key, message).hex()


def verify(key: bytes, message: str, candidate_hex: str) -> bool:
    # Exactly one SHA-256 digest of hex, no separators or padding.
    if not isinstance(candidate_hex, str) or not _HEX_DIGEST.fullmatch(candidate_hex):
        return False
    expected = digest(key, message)
    actual = bytes.fromhex(candidate_hex)
    return hmac.compare_digest(expected, actual)
