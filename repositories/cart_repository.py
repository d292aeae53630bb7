"""Repository for the `carts` collection (one document per user)."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.asynchronous.collection import AsyncCollection

from schemas.models.cart import CartDoc


class CartRepository:
    def __init__(self, collection: AsyncCollection) -> None:
        self._col = collection

    async def find_by_user(self, user_id: ObjectId) -> Optional[CartDoc]:
        return CartDoc.from_mongo(await self._col.find_one({"user_id": user_id}))

    async def find_or_create(self, user_id: ObjectId, now: datetime) -> CartDoc:
        """Return the user's cart, creating an empty one atomically if missing."""
        raw = await self._col.find_one_and_update(
            {"user_id": user_id},
            {
                "$setOnInsert": {
                    "user_id": user_id,
                    "items": [],
                    "total_items": 0,
                    "total_amount": 0,
                    "last_updated": now,
                    "created_at": now,
                    "updated_at": now,
                }
            },
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return CartDoc.from_mongo(raw)

    async def save(self, cart: CartDoc, now: datetime) -> CartDoc:
        cart.updated_at = now
        await self._col.update_one(
            {"user_id": cart.user_id},
            {
                "$set": {
                    "items": [item.model_dump() for item in cart.items],
                    "total_items": cart.total_items,
                    "total_amount": cart.total_amount,
                    "last_updated": cart.last_updated,
                    "updated_at": now,
                }
            },
        )
        return cart
