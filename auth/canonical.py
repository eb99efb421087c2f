from __future__ import annotations

from collections.abc import Mapping

SIGNATURE_FIELD = "hash"


def build_data_check_string(payload: Mapping[str, str]) -> str:
    """Render every field except ``hash`` as sorted ``key=value`` lines.

    Values are used verbatim; Telegram computes its hash over the exact same
    bytes, so no escaping or normalization may happen here.
    """
    lines = [
        f"{key}={value}"
        for key, value in sorted(payload.items())
        if key != SIGNATURE_FIELD
    ]
    return "\n".join(lines)
