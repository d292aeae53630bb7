"""
Collection names and index bootstrap.

ensure_indexes() runs once at startup from the app lifespan.
"""

from __future__ import annotations

from pymongo import ASCENDING, DESCENDING
from pymongo.asynchronous.database import AsyncDatabase

from shared.logging import get_logger

log = get_logger(__name__)

USERS = "users"
OTPS = "otps"
PRODUCTS = "products"
CARTS = "carts"


async def ensure_indexes(db: AsyncDatabase) -> None:
    users = db[USERS]
    otps = db[OTPS]
    products = db[PRODUCTS]
    carts = db[CARTS]

    await users.create_index([("email", ASCENDING)], unique=True)
    await users.create_index([("is_active", ASCENDING)])
    await users.create_index([("created_at", DESCENDING)])

    await otps.create_index(
        [("email", ASCENDING), ("purpose", ASCENDING), ("created_at", DESCENDING)]
    )
    # The store's own removal of expired codes; the sweeper covers the gap
    # until the TTL monitor runs.
    await otps.create_index([("expires_at", ASCENDING)], expireAfterSeconds=0)

    await products.create_index([("category", ASCENDING), ("status", ASCENDING)])
    await products.create_index([("price", ASCENDING)])
    await products.create_index([("created_at", DESCENDING)])
    await products.create_index([("featured", ASCENDING), ("status", ASCENDING)])
    await products.create_index([("trending", ASCENDING), ("status", ASCENDING)])
    await products.create_index([("rating.average", DESCENDING)])
    await products.create_index([("sku", ASCENDING)], unique=True, sparse=True)

    await carts.create_index([("user_id", ASCENDING)], unique=True)

    log.info("mongo_indexes_ensured")
