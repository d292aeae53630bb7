"""
Repository for the `otps` collection.

Uniqueness per (email, purpose) is kept by the service (delete-then-insert);
lookups always pick the most recently created record so a concurrent
double-issue degrades to "last issued wins".
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from bson import ObjectId
from pymongo import DESCENDING
from pymongo.asynchronous.collection import AsyncCollection

from schemas.models.otp import OtpDoc


class OtpRepository:
    def __init__(self, collection: AsyncCollection) -> None:
        self._col = collection

    async def insert(self, doc: OtpDoc) -> ObjectId:
        result = await self._col.insert_one(doc.to_mongo())
        return result.inserted_id

    async def find_latest_unused(self, email: str, purpose: str) -> Optional[OtpDoc]:
        raw = await self._col.find_one(
            {"email": email, "purpose": purpose, "used": False},
            sort=[("created_at", DESCENDING)],
        )
        return OtpDoc.from_mongo(raw)

    async def find_issued_since(
        self, email: str, purpose: str, since: datetime
    ) -> Optional[OtpDoc]:
        raw = await self._col.find_one(
            {"email": email, "purpose": purpose, "created_at": {"$gte": since}},
            sort=[("created_at", DESCENDING)],
        )
        return OtpDoc.from_mongo(raw)

    async def increment_attempts(self, otp_id: ObjectId, max_attempts: int) -> bool:
        """Atomically bump attempts; never pushes the counter past *max_attempts*."""
        result = await self._col.update_one(
            {"_id": otp_id, "attempts": {"$lt": max_attempts}},
            {"$inc": {"attempts": 1}},
        )
        return result.modified_count == 1

    async def mark_used(self, otp_id: ObjectId) -> bool:
        result = await self._col.update_one(
            {"_id": otp_id, "used": False}, {"$set": {"used": True}}
        )
        return result.modified_count == 1

    async def delete_by_id(self, otp_id: ObjectId) -> bool:
        result = await self._col.delete_one({"_id": otp_id})
        return result.deleted_count == 1

    async def delete_for(self, email: str, purpose: str) -> int:
        result = await self._col.delete_many({"email": email, "purpose": purpose})
        return result.deleted_count

    async def delete_expired(self, now: datetime) -> int:
        result = await self._col.delete_many({"expires_at": {"$lt": now}})
        return result.deleted_count
