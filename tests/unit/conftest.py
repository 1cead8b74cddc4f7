"""
Unit test configuration.

Patches dotenv so pydantic-settings never reads the project's real .env file
during unit tests. Tests control config exclusively through monkeypatch.setenv()
or explicit constructor arguments.

Also provides an in-memory stand-in for PairingRepository that honours the
same conditional-update semantics as the MongoDB queries.
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Optional

import pytest

from config import ExtensionTokenSettings, PairingSettings
from schemas.models.pairing import ExtensionPairingDoc
from services.extension_tokens import ExtensionTokenService
from services.pairing_service import PairingService


TEST_SECRET = "unit-test-signing-secret-0123456789"


@pytest.fixture(autouse=True)
def disable_dotenv_loading(monkeypatch):
    """Prevent pydantic-settings from loading .env files in all unit tests."""
    import pydantic_settings.sources.providers.dotenv as ps_dotenv

    monkeypatch.setattr(ps_dotenv, "dotenv_values", lambda *a, **kw: {})


class FakePairingRepository:
    def __init__(self) -> None:
        self.docs: dict[str, dict] = {}
        self.ensure_indexes_calls = 0

    async def ensure_indexes(self) -> None:
        self.ensure_indexes_calls += 1

    async def insert(self, doc: ExtensionPairingDoc) -> None:
        if doc.pairing_id in self.docs:
            raise ValueError(f"duplicate pairing_id {doc.pairing_id}")
        self.docs[doc.pairing_id] = doc.to_mongo()

    async def find_by_pairing_id(self, pairing_id: str) -> Optional[ExtensionPairingDoc]:
        raw = self.docs.get(pairing_id)
        return ExtensionPairingDoc.from_mongo(dict(raw)) if raw else None

    async def find_active_by_code_hash(
        self, code_only_hash: str, now: datetime
    ) -> Optional[ExtensionPairingDoc]:
        matches = [
            d
            for d in self.docs.values()
            if d["code_only_hash"] == code_only_hash
            and d["used_at"] is None
            and d["expires_at"] > now
        ]
        if not matches:
            return None
        latest = max(matches, key=lambda d: d["created_at"])
        return ExtensionPairingDoc.from_mongo(dict(latest))

    async def record_failed_attempt(self, pairing_id: str) -> int:
        raw = self.docs.get(pairing_id)
        if raw is None:
            return 0
        raw["attempts"] += 1
        return raw["attempts"]

    async def force_expire(self, pairing_id: str, expires_at: datetime) -> None:
        if pairing_id in self.docs:
            self.docs[pairing_id]["expires_at"] = expires_at

    async def mark_used(self, pairing_id: str, used_at: datetime, max_attempts: int) -> bool:
        # Yield so concurrent callers can all read before any of them writes
        await asyncio.sleep(0)
        raw = self.docs.get(pairing_id)
        if raw is None or raw["used_at"] is not None or raw["attempts"] >= max_attempts:
            return False
        raw["used_at"] = used_at
        return True


@pytest.fixture
def token_settings() -> ExtensionTokenSettings:
    return ExtensionTokenSettings(jwt_secret=TEST_SECRET)


@pytest.fixture
def token_service(token_settings) -> ExtensionTokenService:
    return ExtensionTokenService(token_settings)


@pytest.fixture
def pairing_repo() -> FakePairingRepository:
    return FakePairingRepository()


@pytest.fixture
def pairing_service(pairing_repo, token_service) -> PairingService:
    return PairingService(pairing_repo, token_service, PairingSettings())
