"""
Product catalog: listing with filters and pagination, CRUD and stock.

There is no text search; listings filter on indexed fields only.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Optional

from pymongo.errors import DuplicateKeyError

from errors import ConflictError, NotFoundError, ValidationError
from repositories.product_repository import ProductRepository
from schemas.models.product import ProductDoc
from shared.datetime_utils import Clock, utcnow
from shared.generators import generate_sku
from shared.logging import get_logger

log = get_logger(__name__)

ALL_CATEGORIES = "All Categories"

# public sort key -> stored field
SORT_FIELDS = {
    "createdAt": "created_at",
    "price": "price",
    "rating.average": "rating.average",
    "title": "title",
    "sales": "sales",
    "views": "views",
}

STOCK_OPERATIONS = ("set", "increase", "decrease")


@dataclass
class ProductFilters:
    category: Optional[str] = None
    brands: list[str] = field(default_factory=list)
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    featured: bool = False
    trending: bool = False
    status: str = "active"

    def to_query(self) -> dict:
        query: dict[str, Any] = {"status": self.status}
        if self.category and self.category != ALL_CATEGORIES:
            query["category"] = self.category
        if self.brands:
            query["brand"] = {"$in": list(self.brands)}
        if self.min_price is not None or self.max_price is not None:
            price: dict[str, float] = {}
            if self.min_price is not None:
                price["$gte"] = self.min_price
            if self.max_price is not None:
                price["$lte"] = self.max_price
            query["price"] = price
        if self.featured:
            query["featured"] = True
        if self.trending:
            query["trending"] = True
        return query


@dataclass
class Pagination:
    current_page: int
    total_pages: int
    total_products: int
    has_next: bool
    has_prev: bool


@dataclass
class ProductPage:
    products: list[ProductDoc]
    pagination: Pagination
    categories: list[str]
    brands: list[str]


def build_sort(sort: Optional[str], order: Optional[str]) -> list[tuple[str, int]]:
    """Map a public sort key to a MongoDB sort spec. Unknown keys sort newest first."""
    if sort in SORT_FIELDS:
        return [(SORT_FIELDS[sort], 1 if order == "asc" else -1)]
    return [("created_at", -1)]


class ProductService:
    def __init__(self, products: ProductRepository, clock: Clock = utcnow) -> None:
        self._products = products
        self._clock = clock

    async def list_products(
        self,
        filters: ProductFilters,
        sort: Optional[str] = "createdAt",
        order: Optional[str] = "desc",
        page: int = 1,
        limit: int = 12,
    ) -> ProductPage:
        if page < 1 or limit < 1:
            raise ValidationError("page and limit must be positive integers")

        query = filters.to_query()
        products = await self._products.find_many(
            query, build_sort(sort, order), skip=(page - 1) * limit, limit=limit
        )
        total = await self._products.count(query)
        total_pages = math.ceil(total / limit)

        categories = await self._products.distinct("category", {"status": "active"})
        brands = await self._products.distinct(
            "brand", {"status": "active", "brand": {"$ne": None}}
        )

        return ProductPage(
            products=products,
            pagination=Pagination(
                current_page=page,
                total_pages=total_pages,
                total_products=total,
                has_next=page < total_pages,
                has_prev=page > 1,
            ),
            categories=categories,
            brands=brands,
        )

    async def featured(self, limit: int = 8) -> list[ProductDoc]:
        return await self._products.find_many(
            {"featured": True, "status": "active"}, [("created_at", -1)], limit=limit
        )

    async def trending(self, limit: int = 8) -> list[ProductDoc]:
        return await self._products.find_many(
            {"trending": True, "status": "active"},
            [("views", -1), ("sales", -1)],
            limit=limit,
        )

    async def get(self, product_id: Any) -> ProductDoc:
        """Fetch one product and count the view."""
        product = await self._products.find_by_id(product_id)
        if product is None:
            raise NotFoundError("Product not found")
        await self._products.increment_views(product.id)
        product.views += 1
        return product

    async def create(self, data: dict) -> ProductDoc:
        now = self._clock()
        payload = dict(data)
        if not payload.get("sku"):
            payload["sku"] = generate_sku()
        product = ProductDoc(**payload, created_at=now, updated_at=now)

        try:
            product.id = await self._products.insert(product)
        except DuplicateKeyError:
            raise ConflictError("SKU already exists", field="sku") from None

        log.info("product_created", product_id=str(product.id), sku=product.sku)
        return product

    async def update(self, product_id: Any, updates: dict) -> ProductDoc:
        fields = {k: v for k, v in updates.items() if k not in ("id", "_id", "created_at")}
        fields["updated_at"] = self._clock()
        try:
            product = await self._products.update_fields(product_id, fields)
        except DuplicateKeyError:
            raise ConflictError("SKU already exists", field="sku") from None
        if product is None:
            raise NotFoundError("Product not found")
        log.info("product_updated", product_id=str(product.id), fields=sorted(fields))
        return product

    async def delete(self, product_id: Any) -> None:
        if not await self._products.delete(product_id):
            raise NotFoundError("Product not found")
        log.info("product_deleted", product_id=str(product_id))

    async def update_stock(self, product_id: Any, quantity: int, operation: str = "set") -> ProductDoc:
        """Set, increase or decrease stock, moving status to and from out_of_stock.

        Decreasing never goes below zero.
        """
        if quantity < 0:
            raise ValidationError("Invalid quantity value", field="quantity")
        if operation not in STOCK_OPERATIONS:
            raise ValidationError(
                "Operation must be set, increase, or decrease", field="operation"
            )

        product = await self._products.find_by_id(product_id)
        if product is None:
            raise NotFoundError("Product not found")

        status = product.status
        if operation == "set":
            stock = quantity
        elif operation == "increase":
            stock = product.stock + quantity
        else:
            stock = max(0, product.stock - quantity)

        if stock == 0 and operation != "increase":
            status = "out_of_stock"
        elif stock > 0 and status == "out_of_stock":
            status = "active"

        updated = await self._products.update_fields(
            product.id, {"stock": stock, "status": status, "updated_at": self._clock()}
        )
        if updated is None:
            raise NotFoundError("Product not found")
        log.info(
            "product_stock_updated",
            product_id=str(product.id),
            operation=operation,
            stock=stock,
            status=status,
        )
        return updated
