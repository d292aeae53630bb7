"""Repository for the `users` collection."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.asynchronous.collection import AsyncCollection

from schemas.models.user import UserDoc


def _oid(user_id: Any) -> ObjectId:
    return user_id if isinstance(user_id, ObjectId) else ObjectId(str(user_id))


class UserRepository:
    def __init__(self, collection: AsyncCollection) -> None:
        self._col = collection

    async def find_by_email(self, email: str) -> Optional[UserDoc]:
        return UserDoc.from_mongo(await self._col.find_one({"email": email}))

    async def find_by_id(self, user_id: Any) -> Optional[UserDoc]:
        if not ObjectId.is_valid(str(user_id)):
            return None
        return UserDoc.from_mongo(await self._col.find_one({"_id": _oid(user_id)}))

    async def insert(self, user: UserDoc) -> ObjectId:
        """Insert a new user. Raises DuplicateKeyError when the email exists."""
        result = await self._col.insert_one(user.to_mongo())
        return result.inserted_id

    async def update_fields(
        self,
        user_id: Any,
        set_fields: Optional[dict] = None,
        unset_fields: Optional[list[str]] = None,
    ) -> Optional[UserDoc]:
        """Apply $set / $unset to one user and return the updated document."""
        update: dict = {}
        if set_fields:
            update["$set"] = set_fields
        if unset_fields:
            update["$unset"] = {field: "" for field in unset_fields}
        if not update:
            return await self.find_by_id(user_id)
        raw = await self._col.find_one_and_update(
            {"_id": _oid(user_id)}, update, return_document=ReturnDocument.AFTER
        )
        return UserDoc.from_mongo(raw)

    async def increment_login_attempts(
        self, user_id: Any, max_attempts: int, lock_until: Optional[datetime] = None
    ) -> bool:
        """Atomically count one failure, never past *max_attempts*.

        Returns False when the counter was already at the cap.
        """
        update: dict = {"$inc": {"login_attempts": 1}}
        if lock_until is not None:
            update["$set"] = {"lock_until": lock_until}
        result = await self._col.update_one(
            {"_id": _oid(user_id), "login_attempts": {"$lt": max_attempts}}, update
        )
        return result.modified_count == 1

    async def restart_login_attempts(self, user_id: Any) -> None:
        """Start a fresh failure window after an expired lock."""
        await self._col.update_one(
            {"_id": _oid(user_id)},
            {"$set": {"login_attempts": 1}, "$unset": {"lock_until": ""}},
        )

    async def reset_login_attempts(self, user_id: Any) -> None:
        """Clear the failure counter and lock in a single update."""
        await self._col.update_one(
            {"_id": _oid(user_id)},
            {"$set": {"login_attempts": 0}, "$unset": {"lock_until": ""}},
        )
