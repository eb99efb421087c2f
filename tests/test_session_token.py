import base64
import json

import pytest

from auth.session_token import IssuedToken, TokenCheck, issue, verify_token
from tests.telegram_helpers import BOT_TOKEN


def _decode_claims(token: str) -> dict:
    claims_block = token.split(".")[0]
    return json.loads(base64.urlsafe_b64decode(claims_block + "=" * (-len(claims_block) % 4)))


def test_issue_returns_token_and_lifetime(fixed_now) -> None:
    issued = issue(BOT_TOKEN, 1000, fixed_now)

    assert isinstance(issued, IssuedToken)
    assert issued.expires_in == 3600
    assert issued.token.count(".") == 1
    assert "=" not in issued.token


def test_claims_bind_subject_and_expiry(fixed_now) -> None:
    issued = issue(BOT_TOKEN, 1000, fixed_now, lifetime_seconds=120)

    assert _decode_claims(issued.token) == {"sub": 1000, "iat": fixed_now, "exp": fixed_now + 120}


def test_verify_valid_token(fixed_now) -> None:
    issued = issue(BOT_TOKEN, 1000, fixed_now)

    assert verify_token(BOT_TOKEN, issued.token, fixed_now) == TokenCheck(valid=True, subject=1000)


def test_token_valid_until_expiry(fixed_now) -> None:
    token = issue(BOT_TOKEN, 1000, fixed_now, lifetime_seconds=3600).token

    assert verify_token(BOT_TOKEN, token, fixed_now + 3599).valid is True
    assert verify_token(BOT_TOKEN, token, fixed_now + 3600).valid is True
    assert verify_token(BOT_TOKEN, token, fixed_now + 3601).valid is False


def test_token_rejected_with_other_secret(fixed_now) -> None:
    token = issue(BOT_TOKEN, 1000, fixed_now).token

    assert verify_token("999:OTHER", token, fixed_now).valid is False


def test_tampered_claims_rejected(fixed_now) -> None:
    token = issue(BOT_TOKEN, 1000, fixed_now).token
    _, sig = token.split(".")
    forged_claims = json.dumps({"sub": 1, "iat": fixed_now, "exp": fixed_now + 99999}).encode()
    forged_block = base64.urlsafe_b64encode(forged_claims).rstrip(b"=").decode()

    assert verify_token(BOT_TOKEN, f"{forged_block}.{sig}", fixed_now).valid is False


@pytest.mark.parametrize(
    "token",
    [
        "",
        "no-dot",
        "a.b.c",
        "!!!.???",
        "e30.",
        ".e30",
    ],
)
def test_malformed_tokens_are_invalid(fixed_now, token) -> None:
    assert verify_token(BOT_TOKEN, token, fixed_now) == TokenCheck(valid=False)


def test_signed_non_object_claims_are_invalid(fixed_now) -> None:
    from auth import signature

    block = base64.urlsafe_b64encode(b"[1,2,3]").rstrip(b"=").decode()
    sig = signature.digest(signature.derive_key(BOT_TOKEN), block)
    token = f"{block}.{base64.urlsafe_b64encode(sig).rstrip(b'=').decode()}"

    assert verify_token(BOT_TOKEN, token, fixed_now).valid is False


def test_missing_secret_never_validates(fixed_now) -> None:
    token = issue(BOT_TOKEN, 1000, fixed_now).token

    assert verify_token(None, token, fixed_now).valid is False


def test_trailing_junk_after_signature_is_invalid(fixed_now) -> None:
    token = issue(BOT_TOKEN, 1000, fixed_now).token

    assert verify_token(BOT_TOKEN, token + "!!", fixed_now).valid is False
    assert verify_token(BOT_TOKEN, token + "==", fixed_now).valid is False


def test_junk_inside_signature_is_invalid(fixed_now) -> None:
    claims_block, sig = issue(BOT_TOKEN, 1000, fixed_now).token.split(".")

    assert verify_token(BOT_TOKEN, f"{claims_block}.{sig[:10]}\n{sig[10:]}", fixed_now).valid is False


def test_non_canonical_signature_encoding_is_invalid(fixed_now) -> None:
    alphabet = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-_"
    claims_block, sig = issue(BOT_TOKEN, 1000, fixed_now).token.split(".")
    # The last character of a 32-byte digest carries two unused bits.
    twin = sig[:-1] + alphabet[alphabet.index(sig[-1]) ^ 1]

    assert base64.urlsafe_b64decode(twin + "=") == base64.urlsafe_b64decode(sig + "=")
    assert verify_token(BOT_TOKEN, f"{claims_block}.{twin}", fixed_now).valid is False
