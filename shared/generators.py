"""
Random identifier and code generators — pure, side-effect-free functions.

All generators use the ``secrets`` module.
"""

from __future__ import annotations

import secrets

PAIRING_CODE_MIN = 100000
PAIRING_CODE_MAX = 999999


def generate_pairing_id(num_bytes: int = 16) -> str:
    """Generate an opaque pairing identifier.

    Args:
        num_bytes: Random bytes to draw (default 16, giving 32 hex chars).
    """
    return secrets.token_hex(num_bytes)


def generate_pairing_code() -> str:
    """Generate a six-digit pairing code, uniform over 100000–999999."""
    span = PAIRING_CODE_MAX - PAIRING_CODE_MIN + 1
    return str(PAIRING_CODE_MIN + secrets.randbelow(span))
