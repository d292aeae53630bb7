"""
Shopping cart endpoints. Every route requires a Bearer access token.

GET    /cart                 - reconciled against the catalog
POST   /cart/add
PUT    /cart/update          - quantity 0 removes the item
DELETE /cart/remove/{product_id}
DELETE /cart/clear
GET    /cart/count
POST   /cart/validate        - 400 when the cart is empty
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from dependencies import get_cart_service, get_current_user
from schemas.dto.requests.cart import AddToCartRequest, UpdateCartItemRequest
from schemas.dto.responses.cart import (
    CartCountResponse,
    CartData,
    CartIssueResponse,
    CartResponse,
    CartValidationResponse,
)
from schemas.models.user import UserDoc
from services.cart_service import CartService

router = APIRouter(prefix="/cart", tags=["cart"])


@router.get("", response_model=CartResponse)
async def get_cart(
    user: UserDoc = Depends(get_current_user),
    service: CartService = Depends(get_cart_service),
) -> CartResponse:
    cart = await service.get_cart(user.id)
    return CartResponse(data=CartData.from_doc(cart))


@router.post("/add", response_model=CartResponse)
async def add_to_cart(
    body: AddToCartRequest,
    user: UserDoc = Depends(get_current_user),
    service: CartService = Depends(get_cart_service),
) -> CartResponse:
    cart = await service.add_item(user.id, body.product_id, body.quantity)
    return CartResponse(
        message="Item added to cart successfully", data=CartData.from_doc(cart)
    )


@router.put("/update", response_model=CartResponse)
async def update_cart_item(
    body: UpdateCartItemRequest,
    user: UserDoc = Depends(get_current_user),
    service: CartService = Depends(get_cart_service),
) -> CartResponse:
    cart = await service.update_item(user.id, body.product_id, body.quantity)
    return CartResponse(message="Cart updated successfully", data=CartData.from_doc(cart))


@router.delete("/remove/{product_id}", response_model=CartResponse)
async def remove_from_cart(
    product_id: str,
    user: UserDoc = Depends(get_current_user),
    service: CartService = Depends(get_cart_service),
) -> CartResponse:
    cart = await service.remove_item(user.id, product_id)
    return CartResponse(
        message="Item removed from cart successfully", data=CartData.from_doc(cart)
    )


@router.delete("/clear", response_model=CartResponse)
async def clear_cart(
    user: UserDoc = Depends(get_current_user),
    service: CartService = Depends(get_cart_service),
) -> CartResponse:
    cart = await service.clear(user.id)
    return CartResponse(message="Cart cleared successfully", data=CartData.from_doc(cart))


@router.get("/count", response_model=CartCountResponse)
async def cart_count(
    user: UserDoc = Depends(get_current_user),
    service: CartService = Depends(get_cart_service),
) -> CartCountResponse:
    return CartCountResponse(count=await service.count(user.id))


@router.post("/validate", response_model=CartValidationResponse)
async def validate_cart(
    user: UserDoc = Depends(get_current_user),
    service: CartService = Depends(get_cart_service),
) -> CartValidationResponse:
    result = await service.validate(user.id)
    return CartValidationResponse(
        valid=result.valid,
        message=(
            "Cart is valid for checkout"
            if result.valid
            else "Cart has been updated due to product changes"
        ),
        data=CartData.from_doc(result.cart),
        validation_errors=[
            CartIssueResponse(
                product_id=issue.product_id,
                product_name=issue.product_name,
                issue=issue.issue,
            )
            for issue in result.issues
        ],
    )
