"""
Product catalog endpoints. All public.

GET    /products               - filters, sort and pagination
GET    /products/featured
GET    /products/trending
GET    /products/{id}          - counts a view
POST   /products               - 201, SKU generated when omitted
PUT    /products/{id}
DELETE /products/{id}
PATCH  /products/{id}/stock
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from dependencies import get_product_service
from schemas.dto.requests.product import (
    ProductCreateRequest,
    ProductListQuery,
    ProductUpdateRequest,
    StockUpdateRequest,
)
from schemas.dto.responses.common import MessageResponse
from schemas.dto.responses.product import (
    PaginationMeta,
    ProductDetailResponse,
    ProductFiltersMeta,
    ProductListData,
    ProductListResponse,
    ProductResponse,
    ProductsResponse,
    StockData,
    StockResponse,
)
from services.product_service import ProductFilters, ProductService

router = APIRouter(prefix="/products", tags=["products"])


@router.get("", response_model=ProductListResponse)
async def list_products(
    query: Annotated[ProductListQuery, Query()],
    service: ProductService = Depends(get_product_service),
) -> ProductListResponse:
    filters = ProductFilters(
        category=query.category,
        brands=query.brand,
        min_price=query.min_price,
        max_price=query.max_price,
        featured=query.featured,
        trending=query.trending,
        status=query.status,
    )
    page = await service.list_products(
        filters, sort=query.sort, order=query.order, page=query.page, limit=query.limit
    )
    return ProductListResponse(
        data=ProductListData(
            products=[ProductResponse.from_doc(p) for p in page.products],
            pagination=PaginationMeta(**vars(page.pagination)),
            filters=ProductFiltersMeta(categories=page.categories, brands=page.brands),
        )
    )


@router.get("/featured", response_model=ProductsResponse)
async def featured_products(
    limit: int = Query(default=8, ge=1, le=50),
    service: ProductService = Depends(get_product_service),
) -> ProductsResponse:
    products = await service.featured(limit)
    return ProductsResponse(data=[ProductResponse.from_doc(p) for p in products])


@router.get("/trending", response_model=ProductsResponse)
async def trending_products(
    limit: int = Query(default=8, ge=1, le=50),
    service: ProductService = Depends(get_product_service),
) -> ProductsResponse:
    products = await service.trending(limit)
    return ProductsResponse(data=[ProductResponse.from_doc(p) for p in products])


@router.get("/{product_id}", response_model=ProductDetailResponse)
async def get_product(
    product_id: str,
    service: ProductService = Depends(get_product_service),
) -> ProductDetailResponse:
    product = await service.get(product_id)
    return ProductDetailResponse(data=ProductResponse.from_doc(product))


@router.post("", response_model=ProductDetailResponse, status_code=201)
async def create_product(
    body: ProductCreateRequest,
    service: ProductService = Depends(get_product_service),
) -> ProductDetailResponse:
    product = await service.create(body.model_dump(exclude_none=True))
    return ProductDetailResponse(
        message="Product created successfully", data=ProductResponse.from_doc(product)
    )


@router.put("/{product_id}", response_model=ProductDetailResponse)
async def update_product(
    product_id: str,
    body: ProductUpdateRequest,
    service: ProductService = Depends(get_product_service),
) -> ProductDetailResponse:
    product = await service.update(product_id, body.model_dump(exclude_none=True))
    return ProductDetailResponse(
        message="Product updated successfully", data=ProductResponse.from_doc(product)
    )


@router.delete("/{product_id}", response_model=MessageResponse)
async def delete_product(
    product_id: str,
    service: ProductService = Depends(get_product_service),
) -> MessageResponse:
    await service.delete(product_id)
    return MessageResponse(message="Product deleted successfully")


@router.patch("/{product_id}/stock", response_model=StockResponse)
async def update_stock(
    product_id: str,
    body: StockUpdateRequest,
    service: ProductService = Depends(get_product_service),
) -> StockResponse:
    product = await service.update_stock(product_id, body.quantity, body.operation)
    return StockResponse(data=StockData(stock=product.stock, status=product.status))
