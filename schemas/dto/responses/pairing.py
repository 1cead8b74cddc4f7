"""
Result DTOs for the extension pairing operations.

PairingErrorCode      — closed set of failure codes
PairingStartResult    — start()
PairingStatusResult   — status()
PairingCompleteResult — complete()

Failures are returned, never raised: ok=False plus exactly one error code.
to_dict() drops fields that are None so the JSON shape only carries what is
relevant to the outcome.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class PairingErrorCode(str, Enum):
    MISSING_CODE = "missing_code"
    PAIRING_NOT_FOUND = "pairing_not_found"
    FORBIDDEN = "forbidden"
    ALREADY_PAIRED = "already_paired"
    EXPIRED = "expired"
    INVALID_CODE = "invalid_code"
    TOO_MANY_ATTEMPTS = "too_many_attempts"


class _PairingResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True, use_enum_values=True)

    def to_dict(self) -> dict:
        return self.model_dump(exclude_none=True)


class PairingStartResult(_PairingResult):
    """Plaintext pairing id and code, handed to the caller exactly once."""

    ok: bool = True
    pairing_id: str
    code: str
    expires_at: str  # ISO 8601


class PairingStatusResult(_PairingResult):
    ok: bool
    error: Optional[PairingErrorCode] = None
    pairing_id: Optional[str] = None
    paired: Optional[bool] = None
    used_at: Optional[str] = None
    expires_at: Optional[str] = None

    @classmethod
    def failure(cls, error: PairingErrorCode) -> "PairingStatusResult":
        return cls(ok=False, error=error)

    def to_dict(self) -> dict:
        data = super().to_dict()
        # A pending pairing reports used_at explicitly as null
        if self.ok:
            data.setdefault("used_at", None)
        return data


class PairingCompleteResult(_PairingResult):
    ok: bool
    error: Optional[PairingErrorCode] = None
    token: Optional[str] = None
    user_id: Optional[str] = None

    @classmethod
    def failure(cls, error: PairingErrorCode) -> "PairingCompleteResult":
        return cls(ok=False, error=error)
