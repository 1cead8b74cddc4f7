"""
FastAPI dependency providers.

All injectable dependencies are defined here as plain functions used with
FastAPI's Depends() system.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Depends, Header, Request

from errors import AuthenticationError
from services.pairing_service import PairingService


def get_pairing_service(request: Request) -> PairingService:
    """Return the PairingService built during startup."""
    return request.app.state.pairing_service


def require_extension_user(
    authorization: Optional[str] = Header(default=None),
    pairing_service: PairingService = Depends(get_pairing_service),
) -> str:
    """Resolve the user id from an extension bearer token or reject with 401."""
    user_id = pairing_service.authenticate_from_header(authorization)
    if user_id is None:
        raise AuthenticationError("invalid or missing extension token")
    return user_id
