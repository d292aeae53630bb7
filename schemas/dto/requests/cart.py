"""
Request DTOs for cart endpoints.

AddToCartRequest      - POST /cart/add
UpdateCartItemRequest - PUT  /cart/update
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from schemas.models.cart import MAX_ITEM_QUANTITY
from shared.validators import validate_object_id


class _ProductRef(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    product_id: str = Field(alias="productId")

    @field_validator("product_id")
    @classmethod
    def product_id_must_be_object_id(cls, v: str) -> str:
        if not validate_object_id(v):
            raise ValueError("Valid product ID is required")
        return v


class AddToCartRequest(_ProductRef):
    quantity: int = Field(default=1, ge=1, le=MAX_ITEM_QUANTITY)


class UpdateCartItemRequest(_ProductRef):
    """``quantity`` 0 removes the item."""

    quantity: int = Field(ge=0, le=MAX_ITEM_QUANTITY)
