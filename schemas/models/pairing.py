"""
Extension pairing document model.

Maps to the `extension-pairings` MongoDB collection.

code_hash stores SHA-256("{pairing_id}|{code}") and code_only_hash stores
SHA-256(code); the plaintext code is never stored. used_at is None until
the pairing is consumed. attempts counts failed completions; at the
configured maximum the record is locked out and its expires_at pulled in.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from shared.datetime_utils import ensure_utc


PAIRINGS_COLLECTION = "extension-pairings"


class ExtensionPairingDoc(BaseModel):
    """Document model for the `extension-pairings` collection.

    Records are keyed by pairing_id; the Mongo `_id` is left to the server
    and ignored when reading.
    """

    pairing_id: str
    user_id: str
    device_name: str
    code_hash: str
    code_only_hash: str
    attempts: int = Field(default=0, ge=0)
    used_at: Optional[datetime] = None
    created_at: datetime
    expires_at: datetime

    @field_validator("used_at", "created_at", "expires_at", mode="after")
    @classmethod
    def _as_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v)

    @property
    def is_used(self) -> bool:
        return self.used_at is not None

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at < now

    def to_mongo(self) -> dict:
        return self.model_dump()

    @classmethod
    def from_mongo(cls, data: Optional[dict]) -> Optional[ExtensionPairingDoc]:
        if data is None:
            return None
        return cls.model_validate(data)
