"""
Repository for the `extension-pairings` collection.

Every state change is a single-document MongoDB operation so concurrent
completions are serialised by the server; no read-then-write sequences.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.asynchronous.collection import AsyncCollection

from schemas.models.pairing import ExtensionPairingDoc
from shared.logging import get_logger

log = get_logger(__name__)


class PairingRepository:
    def __init__(self, collection: AsyncCollection) -> None:
        self._col = collection

    async def ensure_indexes(self) -> None:
        await self._col.create_index([("pairing_id", ASCENDING)], unique=True)
        # TTL: MongoDB removes the document once expires_at has passed
        await self._col.create_index([("expires_at", ASCENDING)], expireAfterSeconds=0)
        await self._col.create_index([("user_id", ASCENDING), ("created_at", DESCENDING)])
        await self._col.create_index(
            [("code_only_hash", ASCENDING), ("created_at", DESCENDING)]
        )
        log.info("pairing_indexes_ensured", collection=self._col.name)

    async def insert(self, doc: ExtensionPairingDoc) -> None:
        await self._col.insert_one(doc.to_mongo())

    async def find_by_pairing_id(self, pairing_id: str) -> Optional[ExtensionPairingDoc]:
        raw = await self._col.find_one({"pairing_id": pairing_id})
        return ExtensionPairingDoc.from_mongo(raw)

    async def find_active_by_code_hash(
        self, code_only_hash: str, now: datetime
    ) -> Optional[ExtensionPairingDoc]:
        """Latest unused, unexpired pairing whose code-only hash matches."""
        raw = await self._col.find_one(
            {
                "code_only_hash": code_only_hash,
                "used_at": None,
                "expires_at": {"$gt": now},
            },
            sort=[("created_at", DESCENDING)],
        )
        return ExtensionPairingDoc.from_mongo(raw)

    async def record_failed_attempt(self, pairing_id: str) -> int:
        """Atomically increment attempts and return the new count.

        Returns 0 when the pairing no longer exists (e.g. removed by TTL).
        """
        raw = await self._col.find_one_and_update(
            {"pairing_id": pairing_id},
            {"$inc": {"attempts": 1}},
            projection={"attempts": 1},
            return_document=ReturnDocument.AFTER,
        )
        if raw is None:
            return 0
        return int(raw.get("attempts", 0))

    async def force_expire(self, pairing_id: str, expires_at: datetime) -> None:
        await self._col.update_one(
            {"pairing_id": pairing_id},
            {"$set": {"expires_at": expires_at}},
        )

    async def mark_used(
        self, pairing_id: str, used_at: datetime, max_attempts: int
    ) -> bool:
        """Consume the pairing if it is still unused and not locked out.

        Returns:
            ``True`` if this call performed the transition, ``False`` if
            another caller already consumed (or locked out) the pairing.
        """
        result = await self._col.update_one(
            {
                "pairing_id": pairing_id,
                "used_at": None,
                "attempts": {"$lt": max_attempts},
            },
            {"$set": {"used_at": used_at}},
        )
        return result.matched_count > 0
