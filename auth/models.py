from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import asdict, dataclass
from datetime import datetime, timezone

OPTIONAL_USER_FIELDS = ("last_name", "username", "photo_url", "language_code")

_DECIMAL_INT = re.compile(r"-?[0-9]+")


def parse_decimal_int(raw: object) -> int | None:
    """Parse a plain ASCII decimal integer; anything else yields ``None``."""
    if not isinstance(raw, (str, int)) or isinstance(raw, bool):
        return None
    text = str(raw)
    if not _DECIMAL_INT.fullmatch(text):
        return None
    return int(text)


@dataclass
class ResolvedUser:
    id: int
    first_name: str
    last_name: str | None = None
    username: str | None = None
    photo_url: str | None = None
    language_code: str | None = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, str]) -> "ResolvedUser":
        user_id = parse_decimal_int(payload["id"])
        if user_id is None:
            raise ValueError("id invalid")

        return cls(
            id=user_id,
            first_name=str(payload["first_name"]),
            **{
                name: str(payload[name])
                for name in OPTIONAL_USER_FIELDS
                if payload.get(name) is not None
            },
        )

    def to_dict(self) -> dict:
        return {key: value for key, value in asdict(self).items() if value is not None}


@dataclass
class ClientRecord:
    id: int
    first_name: str
    last_name: str | None
    username: str | None
    language_code: str | None
    last_seen_at: str

    @classmethod
    def from_user(cls, user: ResolvedUser, now: float) -> "ClientRecord":
        return cls(
            id=user.id,
            first_name=user.first_name,
            last_name=user.last_name,
            username=user.username,
            language_code=user.language_code,
            last_seen_at=datetime.fromtimestamp(now, tz=timezone.utc).isoformat(),
        )
