"""Authorization header parsing."""

from __future__ import annotations

from typing import Optional


def extract_bearer_token(header_value: Optional[str]) -> Optional[str]:
    """Return the token from an ``Authorization: Bearer <token>`` value.

    The scheme is matched case-insensitively. Returns ``None`` for a missing
    header, any other scheme, or an empty token.
    """
    auth = str(header_value or "")
    if not auth.lower().startswith("bearer "):
        return None
    token = auth.split(" ", 1)[1].strip()
    return token or None
