"""Unit tests for document models and pairing result DTOs."""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError as PydanticValidationError

from schemas.dto.responses.pairing import (
    PairingCompleteResult,
    PairingErrorCode,
    PairingStartResult,
    PairingStatusResult,
)
from schemas.models.pairing import ExtensionPairingDoc


# ── Helpers ───────────────────────────────────────────────────────────────────

def now():
    return datetime.now(timezone.utc)


def _pairing(**overrides) -> dict:
    created = now()
    base = dict(
        pairing_id="a" * 32,
        user_id="user-1",
        device_name="Browser Extension",
        code_hash="h" * 64,
        code_only_hash="c" * 64,
        created_at=created,
        expires_at=created + timedelta(minutes=10),
    )
    base.update(overrides)
    return base


# ── ExtensionPairingDoc ───────────────────────────────────────────────────────

class TestExtensionPairingDoc:
    def test_defaults(self):
        doc = ExtensionPairingDoc.model_validate(_pairing())
        assert doc.attempts == 0
        assert doc.used_at is None
        assert doc.is_used is False

    def test_negative_attempts_rejected(self):
        with pytest.raises(PydanticValidationError):
            ExtensionPairingDoc.model_validate(_pairing(attempts=-1))

    def test_is_expired(self):
        doc = ExtensionPairingDoc.model_validate(_pairing())
        assert doc.is_expired(now()) is False
        assert doc.is_expired(now() + timedelta(minutes=11)) is True

    def test_naive_datetimes_become_utc(self):
        naive = datetime(2030, 5, 1, 8, 30)
        doc = ExtensionPairingDoc.model_validate(
            _pairing(created_at=naive, expires_at=naive, used_at=naive)
        )
        assert doc.created_at.tzinfo == timezone.utc
        assert doc.used_at.tzinfo == timezone.utc
        assert doc.is_used is True

    def test_from_mongo_returns_none_for_none(self):
        assert ExtensionPairingDoc.from_mongo(None) is None

    def test_server_id_ignored(self):
        doc = ExtensionPairingDoc.from_mongo({"_id": "65f0c0ffee", **_pairing()})
        stored = doc.to_mongo()
        assert "_id" not in stored
        assert stored["pairing_id"] == "a" * 32
        assert stored["attempts"] == 0
        assert stored["used_at"] is None


# ── Result DTOs ───────────────────────────────────────────────────────────────

class TestPairingResults:
    def test_start_result_dict(self):
        r = PairingStartResult(
            pairing_id="p", code="123456", expires_at="2030-01-01T00:00:00+00:00"
        )
        assert r.to_dict() == {
            "ok": True,
            "pairing_id": "p",
            "code": "123456",
            "expires_at": "2030-01-01T00:00:00+00:00",
        }

    def test_failure_serialises_code_string(self):
        r = PairingCompleteResult.failure(PairingErrorCode.INVALID_CODE)
        assert r.to_dict() == {"ok": False, "error": "invalid_code"}
        assert r.error == PairingErrorCode.INVALID_CODE

    def test_success_complete_result(self):
        r = PairingCompleteResult(ok=True, token="t", user_id="u")
        assert r.to_dict() == {"ok": True, "token": "t", "user_id": "u"}

    def test_status_success_includes_null_used_at(self):
        r = PairingStatusResult(ok=True, pairing_id="p", paired=False, expires_at="x")
        assert r.to_dict() == {
            "ok": True,
            "pairing_id": "p",
            "paired": False,
            "used_at": None,
            "expires_at": "x",
        }

    def test_status_failure_omits_used_at(self):
        r = PairingStatusResult.failure(PairingErrorCode.PAIRING_NOT_FOUND)
        assert r.to_dict() == {"ok": False, "error": "pairing_not_found"}
