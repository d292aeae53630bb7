"""
Product document model.

Maps to the `products` MongoDB collection.

discounted_price / discount_amount are derived from price and the
discount percentage and are never stored.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from schemas.models.base import MongoBaseModel, PyObjectId

PRODUCT_CATEGORIES = (
    "Electronics",
    "Fashion",
    "Home & Living",
    "Books",
    "Sports",
    "Beauty",
)

ProductCategory = Literal[
    "Electronics", "Fashion", "Home & Living", "Books", "Sports", "Beauty"
]
ProductStatus = Literal["active", "inactive", "out_of_stock", "discontinued"]


class ProductImage(BaseModel):
    url: str
    alt: str = ""


class ProductRating(BaseModel):
    average: float = Field(default=0, ge=0, le=5)
    count: int = Field(default=0, ge=0)


class ProductDiscount(BaseModel):
    percentage: float = Field(default=0, ge=0, le=100)
    valid_until: Optional[datetime] = None


class ProductDoc(MongoBaseModel):
    """Document model for the `products` collection."""

    model_config = ConfigDict(populate_by_name=True, arbitrary_types_allowed=True)

    title: str = Field(max_length=200)
    description: str = Field(max_length=2000)
    price: float = Field(ge=0)
    original_price: Optional[float] = Field(default=None, ge=0)
    category: ProductCategory
    brand: Optional[str] = Field(default=None, max_length=100)
    images: list[ProductImage] = []
    stock: int = Field(default=0, ge=0)
    sku: Optional[str] = None
    rating: ProductRating = ProductRating()
    specifications: dict[str, str] = {}
    tags: list[str] = []
    discount: ProductDiscount = ProductDiscount()
    status: ProductStatus = "active"
    featured: bool = False
    trending: bool = False
    best_seller: bool = False
    new_arrival: bool = False
    views: int = 0
    sales: int = 0
    created_by: Optional[PyObjectId] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def discounted_price(self) -> float:
        if self.discount.percentage > 0:
            return round(self.price - self.price * self.discount.percentage / 100, 2)
        return self.price

    @property
    def discount_amount(self) -> float:
        if self.discount.percentage > 0:
            return round(self.price * self.discount.percentage / 100, 2)
        return 0

    def is_in_stock(self, quantity: int = 1) -> bool:
        return self.stock >= quantity and self.status == "active"
