"""
Response DTOs for product endpoints.

ProductResponse      - one product, with derived pricing fields
ProductListResponse  - GET /products
ProductsResponse     - GET /products/featured, GET /products/trending
ProductDetailResponse - GET/POST/PUT /products[/{id}]
StockResponse        - PATCH /products/{id}/stock
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from schemas.models.product import (
    ProductDiscount,
    ProductDoc,
    ProductImage,
    ProductRating,
)


class ProductResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str
    description: str
    price: float
    original_price: Optional[float] = None
    discounted_price: float
    discount_amount: float
    category: str
    brand: Optional[str] = None
    images: list[ProductImage] = []
    stock: int
    sku: Optional[str] = None
    rating: ProductRating
    specifications: dict[str, str] = {}
    tags: list[str] = []
    discount: ProductDiscount
    status: str
    featured: bool
    trending: bool
    best_seller: bool
    new_arrival: bool
    views: int
    sales: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_doc(cls, doc: ProductDoc) -> "ProductResponse":
        data = doc.model_dump(exclude={"id", "created_by"})
        return cls(
            id=str(doc.id),
            discounted_price=doc.discounted_price,
            discount_amount=doc.discount_amount,
            **data,
        )


class PaginationMeta(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    current_page: int
    total_pages: int
    total_products: int
    has_next: bool
    has_prev: bool


class ProductFiltersMeta(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    categories: list[str]
    brands: list[str]


class ProductListData(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    products: list[ProductResponse]
    pagination: PaginationMeta
    filters: ProductFiltersMeta


class ProductListResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    data: ProductListData


class ProductsResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    data: list[ProductResponse]


class ProductDetailResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    message: Optional[str] = None
    data: ProductResponse


class StockData(BaseModel):
    stock: int
    status: str


class StockResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    message: str = "Stock updated successfully"
    data: StockData
