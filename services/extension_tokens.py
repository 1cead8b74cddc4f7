"""
Scoped bearer tokens for the browser extension.

Tokens are HS256 JWTs bound to a single pairing:

    {"typ": "ext", "scope": "application_import", "uid": ..., "pid": ...}

plus iss/aud/iat/exp. verify() collapses every failure (bad signature,
expiry, wrong issuer/audience, wrong type/scope) to None so callers cannot
tell failure modes apart.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import jwt

from config import ExtensionTokenSettings
from shared.logging import get_logger

log = get_logger(__name__)

TOKEN_TYPE_EXTENSION = "ext"
SCOPE_APPLICATION_IMPORT = "application_import"
ALGORITHM = "HS256"


class ExtensionTokenService:
    def __init__(self, settings: ExtensionTokenSettings) -> None:
        self._settings = settings

    @property
    def _secret(self) -> str:
        return self._settings.signing_secret

    def issue(
        self, user_id: str, pairing_id: str, now: Optional[datetime] = None
    ) -> str:
        now = now or datetime.now(timezone.utc)
        claims = {
            "typ": TOKEN_TYPE_EXTENSION,
            "scope": SCOPE_APPLICATION_IMPORT,
            "uid": str(user_id),
            "pid": str(pairing_id),
            "iss": self._settings.extension_token_issuer,
            "aud": self._settings.extension_token_audience,
            "iat": int(now.timestamp()),
            "exp": int(
                (now + timedelta(seconds=self._settings.extension_token_ttl_seconds)).timestamp()
            ),
        }
        return jwt.encode(claims, self._secret, algorithm=ALGORITHM)

    def verify(self, token: str) -> Optional[dict[str, Any]]:
        """Return the claims of a valid extension token, else ``None``."""
        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[ALGORITHM],
                audience=self._settings.extension_token_audience,
                issuer=self._settings.extension_token_issuer,
                options={"require": ["exp", "iss", "aud"]},
            )
        except jwt.PyJWTError as e:
            log.info("extension_token_rejected", reason=type(e).__name__)
            return None

        if claims.get("typ") != TOKEN_TYPE_EXTENSION:
            log.info("extension_token_rejected", reason="wrong_type")
            return None
        if claims.get("scope") != SCOPE_APPLICATION_IMPORT:
            log.info("extension_token_rejected", reason="wrong_scope")
            return None
        if not claims.get("uid"):
            log.info("extension_token_rejected", reason="missing_uid")
            return None
        return claims
