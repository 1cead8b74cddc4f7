"""Unit tests for AppError hierarchy and pairing error mapping."""

import pytest

from errors import (
    AppError,
    AuthenticationError,
    ConflictError,
    ForbiddenError,
    GoneError,
    NotFoundError,
    RateLimitError,
    ValidationError,
    pairing_error,
)
from schemas.dto.responses.pairing import PairingErrorCode


class TestAppErrorSubclasses:
    @pytest.mark.parametrize(
        "cls, status, code",
        [
            (ValidationError, 400, "validation_error"),
            (AuthenticationError, 401, "authentication_error"),
            (ForbiddenError, 403, "forbidden"),
            (NotFoundError, 404, "not_found"),
            (ConflictError, 409, "conflict"),
            (GoneError, 410, "gone"),
            (RateLimitError, 429, "rate_limit_exceeded"),
        ],
    )
    def test_status_and_code(self, cls, status, code):
        e = cls("msg")
        assert e.status_code == status
        assert e.error_code == code
        assert e.message == "msg"
        assert isinstance(e, AppError)

    def test_error_code_override_is_per_instance(self):
        e = ConflictError("dup", error_code="already_paired")
        assert e.error_code == "already_paired"
        assert ConflictError("other").error_code == "conflict"


class TestAppErrorToDict:
    def test_basic(self):
        e = NotFoundError("pairing not found")
        assert e.to_dict() == {"error": "pairing not found", "code": "not_found"}

    @pytest.mark.parametrize(
        "kwargs, key, value",
        [
            ({"field": "code"}, "field", "code"),
            ({"details": {"attempts": 3}}, "details", {"attempts": 3}),
        ],
        ids=["with_field", "with_details"],
    )
    def test_optional_key_present(self, kwargs, key, value):
        e = ValidationError("invalid", **kwargs)
        assert e.to_dict()[key] == value

    def test_no_optional_keys_when_absent(self):
        d = NotFoundError("missing").to_dict()
        assert "field" not in d
        assert "details" not in d


class TestPairingError:
    @pytest.mark.parametrize(
        "code, status",
        [
            (PairingErrorCode.MISSING_CODE, 400),
            (PairingErrorCode.INVALID_CODE, 400),
            (PairingErrorCode.FORBIDDEN, 403),
            (PairingErrorCode.PAIRING_NOT_FOUND, 404),
            (PairingErrorCode.ALREADY_PAIRED, 409),
            (PairingErrorCode.EXPIRED, 410),
            (PairingErrorCode.TOO_MANY_ATTEMPTS, 429),
        ],
    )
    def test_every_code_is_mapped(self, code, status):
        err = pairing_error(code)
        assert err.status_code == status
        assert err.to_dict()["code"] == code.value

    def test_accepts_plain_string(self):
        assert isinstance(pairing_error("expired"), GoneError)

    def test_unknown_code_raises(self):
        with pytest.raises(ValueError):
            pairing_error("not_a_code")
