"""Repository for the `products` collection."""

from __future__ import annotations

from typing import Any, Iterable, Optional

from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.asynchronous.collection import AsyncCollection

from schemas.models.product import ProductDoc


def _oid(product_id: Any) -> Optional[ObjectId]:
    if isinstance(product_id, ObjectId):
        return product_id
    if ObjectId.is_valid(str(product_id)):
        return ObjectId(str(product_id))
    return None


class ProductRepository:
    def __init__(self, collection: AsyncCollection) -> None:
        self._col = collection

    async def find_by_id(self, product_id: Any) -> Optional[ProductDoc]:
        oid = _oid(product_id)
        if oid is None:
            return None
        return ProductDoc.from_mongo(await self._col.find_one({"_id": oid}))

    async def find_by_ids(self, product_ids: Iterable[Any]) -> dict[str, ProductDoc]:
        """Load several products at once, keyed by string id."""
        oids = [oid for oid in (_oid(pid) for pid in product_ids) if oid is not None]
        if not oids:
            return {}
        cursor = self._col.find({"_id": {"$in": oids}})
        docs = await cursor.to_list(length=None)
        return {str(doc["_id"]): ProductDoc.from_mongo(doc) for doc in docs}

    async def find_many(
        self,
        query: dict,
        sort: list[tuple[str, int]],
        skip: int = 0,
        limit: int = 0,
    ) -> list[ProductDoc]:
        cursor = self._col.find(query).sort(sort).skip(skip).limit(limit)
        docs = await cursor.to_list(length=None)
        return [ProductDoc.from_mongo(doc) for doc in docs]

    async def count(self, query: dict) -> int:
        return await self._col.count_documents(query)

    async def distinct(self, field: str, query: dict) -> list:
        return await self._col.distinct(field, query)

    async def insert(self, product: ProductDoc) -> ObjectId:
        """Insert a product. Raises DuplicateKeyError on a duplicate SKU."""
        result = await self._col.insert_one(product.to_mongo())
        return result.inserted_id

    async def update_fields(self, product_id: Any, fields: dict) -> Optional[ProductDoc]:
        oid = _oid(product_id)
        if oid is None:
            return None
        raw = await self._col.find_one_and_update(
            {"_id": oid}, {"$set": fields}, return_document=ReturnDocument.AFTER
        )
        return ProductDoc.from_mongo(raw)

    async def increment_views(self, product_id: Any) -> None:
        oid = _oid(product_id)
        if oid is not None:
            await self._col.update_one({"_id": oid}, {"$inc": {"views": 1}})

    async def delete(self, product_id: Any) -> bool:
        oid = _oid(product_id)
        if oid is None:
            return False
        result = await self._col.delete_one({"_id": oid})
        return result.deleted_count == 1
