"""
Application error hierarchy and FastAPI exception handlers.

AppError is the base for all typed errors. The global exception handler
converts AppError subclasses to consistent JSON responses.

Pairing operations return error codes instead of raising. pairing_error()
is for the HTTP routes that expose start, status and complete: they raise
pairing_error(result.error) when a result comes back with ok=False.

Non-AppError exceptions bubble up as 500s (with Sentry reporting in production).
"""

from __future__ import annotations

from typing import Any, Optional, Union

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from schemas.dto.responses.pairing import PairingErrorCode
from shared.logging import get_logger

log = get_logger(__name__)


class AppError(Exception):
    """Base application error. All typed errors inherit from this."""

    status_code: int = 500
    error_code: str = "internal_error"

    def __init__(
        self,
        message: str,
        *,
        field: Optional[str] = None,
        details: Optional[Any] = None,
        error_code: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.field = field
        self.details = details
        if error_code is not None:
            self.error_code = error_code

    def to_dict(self) -> dict:
        payload: dict = {"error": self.message, "code": self.error_code}
        if self.field is not None:
            payload["field"] = self.field
        if self.details is not None:
            payload["details"] = self.details
        return payload


class ValidationError(AppError):
    status_code = 400
    error_code = "validation_error"


class AuthenticationError(AppError):
    status_code = 401
    error_code = "authentication_error"


class ForbiddenError(AppError):
    status_code = 403
    error_code = "forbidden"


class NotFoundError(AppError):
    status_code = 404
    error_code = "not_found"


class ConflictError(AppError):
    status_code = 409
    error_code = "conflict"


class GoneError(AppError):
    status_code = 410
    error_code = "gone"


class RateLimitError(AppError):
    status_code = 429
    error_code = "rate_limit_exceeded"


_PAIRING_ERRORS: dict[PairingErrorCode, tuple[type[AppError], str]] = {
    PairingErrorCode.MISSING_CODE: (ValidationError, "pairing code is required"),
    PairingErrorCode.INVALID_CODE: (ValidationError, "pairing code is invalid"),
    PairingErrorCode.PAIRING_NOT_FOUND: (NotFoundError, "pairing not found"),
    PairingErrorCode.FORBIDDEN: (ForbiddenError, "pairing belongs to another user"),
    PairingErrorCode.ALREADY_PAIRED: (ConflictError, "pairing already completed"),
    PairingErrorCode.EXPIRED: (GoneError, "pairing has expired"),
    PairingErrorCode.TOO_MANY_ATTEMPTS: (RateLimitError, "too many attempts"),
}


def pairing_error(code: Union[PairingErrorCode, str]) -> AppError:
    """Build the AppError for a pairing failure code.

    The pairing code itself is kept as ``error_code`` so clients see e.g.
    ``{"code": "already_paired"}``.
    """
    code = PairingErrorCode(code)
    cls, message = _PAIRING_ERRORS[code]
    return cls(message, error_code=code.value)


def register_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers on the FastAPI app."""

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        # Sentry integration: if sentry_sdk is initialized it will auto-capture
        # unhandled exceptions before this handler fires.
        log.error(
            "unhandled_exception",
            path=request.url.path,
            error_type=type(exc).__name__,
        )
        return JSONResponse(
            status_code=500,
            content={"error": "An internal server error occurred.", "code": "internal_error"},
        )
