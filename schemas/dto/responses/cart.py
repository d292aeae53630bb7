"""
Response DTOs for cart endpoints.

CartResponse          - GET /cart, POST /cart/add, PUT /cart/update, DELETE ...
CartCountResponse     - GET /cart/count
CartValidationResponse - POST /cart/validate
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from schemas.models.cart import CartDoc


class CartItemResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    product_id: str
    quantity: int
    price: float
    subtotal: float
    added_at: Optional[datetime] = None


class CartData(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = None
    user_id: str
    items: list[CartItemResponse]
    total_items: int
    total_amount: float
    last_updated: Optional[datetime] = None

    @classmethod
    def from_doc(cls, cart: CartDoc) -> "CartData":
        return cls(
            id=str(cart.id) if cart.id is not None else None,
            user_id=str(cart.user_id),
            items=[
                CartItemResponse(
                    product_id=str(item.product_id),
                    quantity=item.quantity,
                    price=item.price,
                    subtotal=round(item.price * item.quantity, 2),
                    added_at=item.added_at,
                )
                for item in cart.items
            ],
            total_items=cart.total_items,
            total_amount=cart.total_amount,
            last_updated=cart.last_updated,
        )


class CartResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    message: Optional[str] = None
    data: CartData


class CartCountResponse(BaseModel):
    success: bool = True
    count: int


class CartIssueResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    product_id: str
    product_name: Optional[str] = None
    issue: str


class CartValidationResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    valid: bool
    message: str
    data: CartData
    validation_errors: list[CartIssueResponse] = []
