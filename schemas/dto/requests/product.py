"""
Request DTOs for product endpoints.

ProductListQuery     - GET   /products  (query params)
ProductCreateRequest - POST  /products
ProductUpdateRequest - PUT   /products/{id}
StockUpdateRequest   - PATCH /products/{id}/stock
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from schemas.models.product import (
    ProductCategory,
    ProductDiscount,
    ProductImage,
    ProductRating,
    ProductStatus,
)


class ProductListQuery(BaseModel):
    """Query parameters for GET /products."""

    model_config = ConfigDict(populate_by_name=True)

    page: int = Field(default=1, ge=1)
    limit: int = Field(default=12, ge=1, le=100)
    category: Optional[str] = None
    brand: list[str] = []
    min_price: Optional[float] = Field(default=None, ge=0, alias="minPrice")
    max_price: Optional[float] = Field(default=None, ge=0, alias="maxPrice")
    sort: str = "createdAt"
    order: Literal["asc", "desc"] = "desc"
    featured: bool = False
    trending: bool = False
    status: ProductStatus = "active"


class ProductImageIn(ProductImage):
    @field_validator("url")
    @classmethod
    def url_must_be_http(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError("Each image must have a valid URL")
        return v


class ProductCreateRequest(BaseModel):
    """Request body for POST /products. A SKU is generated when omitted."""

    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(min_length=3, max_length=200)
    description: str = Field(min_length=10, max_length=2000)
    price: float = Field(ge=0)
    original_price: Optional[float] = Field(default=None, ge=0, alias="originalPrice")
    category: ProductCategory
    brand: Optional[str] = Field(default=None, max_length=100)
    images: list[ProductImageIn] = []
    stock: int = Field(ge=0)
    sku: Optional[str] = None
    rating: Optional[ProductRating] = None
    specifications: dict[str, str] = {}
    tags: list[str] = []
    discount: Optional[ProductDiscount] = None
    status: ProductStatus = "active"
    featured: bool = False
    trending: bool = False
    best_seller: bool = Field(default=False, alias="bestSeller")
    new_arrival: bool = Field(default=False, alias="newArrival")

    @field_validator("title", "description", "brand")
    @classmethod
    def strip_text(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if isinstance(v, str) else v


class ProductUpdateRequest(BaseModel):
    """Request body for PUT /products/{id}. Only provided fields change."""

    model_config = ConfigDict(populate_by_name=True)

    title: Optional[str] = Field(default=None, min_length=3, max_length=200)
    description: Optional[str] = Field(default=None, min_length=10, max_length=2000)
    price: Optional[float] = Field(default=None, ge=0)
    original_price: Optional[float] = Field(default=None, ge=0, alias="originalPrice")
    category: Optional[ProductCategory] = None
    brand: Optional[str] = Field(default=None, max_length=100)
    images: Optional[list[ProductImageIn]] = None
    stock: Optional[int] = Field(default=None, ge=0)
    sku: Optional[str] = None
    specifications: Optional[dict[str, str]] = None
    tags: Optional[list[str]] = None
    discount: Optional[ProductDiscount] = None
    status: Optional[ProductStatus] = None
    featured: Optional[bool] = None
    trending: Optional[bool] = None
    best_seller: Optional[bool] = Field(default=None, alias="bestSeller")
    new_arrival: Optional[bool] = Field(default=None, alias="newArrival")


class StockUpdateRequest(BaseModel):
    """Request body for PATCH /products/{id}/stock."""

    model_config = ConfigDict(populate_by_name=True)

    quantity: int = Field(ge=0)
    operation: Literal["set", "increase", "decrease"] = "set"
