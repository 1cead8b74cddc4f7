"""
Extension device pairing.

Flow:
1. A signed-in user calls start() and is shown a six-digit code.
2. The extension calls complete() with the code (and the pairing id when it
   has one) and receives a scoped bearer token.
3. The web app polls status() until the pairing reports paired=True.
4. Extension requests authenticate via authenticate_from_header().

Per-record states: PENDING -> CONSUMED, or PENDING -> EXPIRED (by time or by
attempt lockout). CONSUMED and EXPIRED are terminal.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Optional

from config import PairingSettings
from repositories.pairing_repository import PairingRepository
from schemas.dto.responses.pairing import (
    PairingCompleteResult,
    PairingErrorCode,
    PairingStartResult,
    PairingStatusResult,
)
from schemas.models.pairing import ExtensionPairingDoc
from services.extension_tokens import ExtensionTokenService
from shared.auth_header import extract_bearer_token
from shared.crypto import hash_code_only, hash_pairing_code, hashes_match
from shared.datetime_utils import to_iso, utcnow
from shared.generators import generate_pairing_code, generate_pairing_id
from shared.logging import get_logger

log = get_logger(__name__)


def _clean(value: Optional[object]) -> str:
    return str(value if value is not None else "").strip()


class PairingService:
    def __init__(
        self,
        repository: PairingRepository,
        tokens: ExtensionTokenService,
        settings: PairingSettings,
    ) -> None:
        self._repo = repository
        self._tokens = tokens
        self._settings = settings

    async def ensure_indexes(self) -> None:
        await self._repo.ensure_indexes()

    async def start(
        self, user_id: str, device_name: Optional[str] = None
    ) -> PairingStartResult:
        pairing_id = generate_pairing_id()
        code = generate_pairing_code()
        now = utcnow()
        expires_at = now + timedelta(seconds=self._settings.pairing_ttl_seconds)

        doc = ExtensionPairingDoc(
            pairing_id=pairing_id,
            user_id=str(user_id),
            device_name=_clean(device_name) or self._settings.pairing_default_device_name,
            code_hash=hash_pairing_code(pairing_id, code),
            code_only_hash=hash_code_only(code),
            attempts=0,
            used_at=None,
            created_at=now,
            expires_at=expires_at,
        )
        await self._repo.insert(doc)

        log.info(
            "pairing_started",
            user_id=doc.user_id,
            pairing_id_prefix=pairing_id[:8],
            device_name=doc.device_name,
        )
        return PairingStartResult(
            pairing_id=pairing_id, code=code, expires_at=to_iso(expires_at)
        )

    async def status(self, user_id: str, pairing_id: str) -> PairingStatusResult:
        pid = _clean(pairing_id)
        doc = await self._repo.find_by_pairing_id(pid) if pid else None
        if doc is None:
            return PairingStatusResult.failure(PairingErrorCode.PAIRING_NOT_FOUND)

        # Only the owner may poll; otherwise pairing state would leak
        if doc.user_id != str(user_id):
            log.warning(
                "pairing_status_forbidden",
                user_id=str(user_id),
                pairing_id_prefix=pid[:8],
            )
            return PairingStatusResult.failure(PairingErrorCode.FORBIDDEN)

        return PairingStatusResult(
            ok=True,
            pairing_id=pid,
            paired=doc.is_used,
            used_at=to_iso(doc.used_at),
            expires_at=to_iso(doc.expires_at),
        )

    async def complete(
        self, code: Optional[str], pairing_id: Optional[str] = None
    ) -> PairingCompleteResult:
        c = _clean(code)
        if not c:
            return PairingCompleteResult.failure(PairingErrorCode.MISSING_CODE)

        now = utcnow()
        pid = _clean(pairing_id)
        if pid:
            doc = await self._repo.find_by_pairing_id(pid)
        else:
            doc = await self._repo.find_active_by_code_hash(hash_code_only(c), now)
            if doc is not None:
                pid = doc.pairing_id

        if doc is None:
            return self._reject(PairingErrorCode.PAIRING_NOT_FOUND, pid)
        if doc.is_used:
            return self._reject(PairingErrorCode.ALREADY_PAIRED, pid)
        if doc.is_expired(now):
            return self._reject(PairingErrorCode.EXPIRED, pid)

        max_attempts = self._settings.pairing_max_attempts
        if doc.attempts >= max_attempts:
            return self._reject(PairingErrorCode.TOO_MANY_ATTEMPTS, pid)

        # Full hash binds the code to this pairing id, not just any pairing
        if not hashes_match(doc.code_hash, hash_pairing_code(pid, c)):
            return await self._record_failure(pid)

        if not await self._repo.mark_used(pid, now, max_attempts):
            return await self._classify_lost_consume(pid)

        token = self._tokens.issue(doc.user_id, pid, now=now)
        log.info(
            "pairing_completed",
            user_id=doc.user_id,
            pairing_id_prefix=pid[:8],
            device_name=doc.device_name,
        )
        return PairingCompleteResult(ok=True, token=token, user_id=doc.user_id)

    def authenticate_from_header(self, header_value: Optional[str]) -> Optional[str]:
        """Resolve the user id behind an extension bearer token.

        Never raises; any failure yields ``None``.
        """
        try:
            token = extract_bearer_token(header_value)
            if token is None:
                return None
            claims = self._tokens.verify(token)
            if claims is None:
                return None
            return str(claims["uid"])
        except Exception as e:
            log.error("extension_auth_error", error=str(e), error_type=type(e).__name__)
            return None

    async def _record_failure(self, pairing_id: str) -> PairingCompleteResult:
        attempts = await self._repo.record_failed_attempt(pairing_id)
        if attempts >= self._settings.pairing_max_attempts:
            grace = timedelta(seconds=self._settings.pairing_lockout_grace_seconds)
            await self._repo.force_expire(pairing_id, utcnow() + grace)
            log.warning(
                "pairing_locked_out",
                pairing_id_prefix=pairing_id[:8],
                attempts=attempts,
            )
            return PairingCompleteResult.failure(PairingErrorCode.TOO_MANY_ATTEMPTS)
        return self._reject(PairingErrorCode.INVALID_CODE, pairing_id, attempts=attempts)

    async def _classify_lost_consume(self, pairing_id: str) -> PairingCompleteResult:
        """Explain why the conditional consume matched nothing.

        Another request changed the record between our read and our write:
        it was consumed, locked out, or removed by the TTL monitor.
        """
        current = await self._repo.find_by_pairing_id(pairing_id)
        if current is None:
            return self._reject(PairingErrorCode.PAIRING_NOT_FOUND, pairing_id)
        if current.is_used:
            return self._reject(PairingErrorCode.ALREADY_PAIRED, pairing_id)
        if current.attempts >= self._settings.pairing_max_attempts:
            return self._reject(PairingErrorCode.TOO_MANY_ATTEMPTS, pairing_id)
        if current.is_expired(utcnow()):
            return self._reject(PairingErrorCode.EXPIRED, pairing_id)
        return self._reject(PairingErrorCode.ALREADY_PAIRED, pairing_id)

    def _reject(
        self, error: PairingErrorCode, pairing_id: str, **extra
    ) -> PairingCompleteResult:
        log.info(
            "pairing_complete_rejected",
            error_code=error.value,
            pairing_id_prefix=pairing_id[:8] if pairing_id else None,
            **extra,
        )
        return PairingCompleteResult.failure(error)
