"""
Cryptographic helpers for pairing codes.

SHA-256 is used for code hashing; the plaintext code is never persisted.
"""

from __future__ import annotations

import hashlib
import hmac


def hash_token(token: str) -> str:
    """Return the hex-encoded SHA-256 digest of *token*.

    Returns:
        64-character lowercase hex string.
    """
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def hash_pairing_code(pairing_id: str, code: str) -> str:
    """Hash *code* bound to *pairing_id* (``"{pairing_id}|{code}"``).

    The pairing id salts the digest, so a code valid for one pairing never
    produces the stored hash of another.
    """
    return hash_token(f"{pairing_id}|{code}")


def hash_code_only(code: str) -> str:
    """Hash *code* alone, for lookups where the pairing id is unknown."""
    return hash_token(code)


def hashes_match(expected: str, candidate: str) -> bool:
    """Constant-time comparison of two hex digests."""
    return hmac.compare_digest(str(expected or ""), str(candidate or ""))
