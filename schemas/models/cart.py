"""
Cart document model.

Maps to the `carts` MongoDB collection - exactly one cart per user.

Item prices are snapshots of the product's discounted price at the time the
item was added or last reconciled. Totals are recomputed on every mutation.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, Field

from schemas.models.base import MongoBaseModel, PyObjectId
from shared.datetime_utils import utcnow

MAX_ITEM_QUANTITY = 50


class CartItem(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    product_id: PyObjectId
    quantity: int = Field(ge=1, le=MAX_ITEM_QUANTITY)
    price: float = Field(ge=0)
    added_at: Optional[datetime] = None


class CartDoc(MongoBaseModel):
    """Document model for the `carts` collection."""

    user_id: PyObjectId
    items: list[CartItem] = []
    total_items: int = 0
    total_amount: float = 0
    last_updated: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def get_item(self, product_id: ObjectId) -> Optional[CartItem]:
        for item in self.items:
            if str(item.product_id) == str(product_id):
                return item
        return None

    def calculate_totals(self, now: Optional[datetime] = None) -> "CartDoc":
        self.total_items = sum(item.quantity for item in self.items)
        self.total_amount = round(
            sum(item.price * item.quantity for item in self.items), 2
        )
        self.last_updated = now or utcnow()
        return self

    def add_item(
        self,
        product_id: ObjectId,
        quantity: int,
        price: float,
        now: Optional[datetime] = None,
    ) -> "CartDoc":
        existing = self.get_item(product_id)
        if existing is not None:
            existing.quantity += quantity
            existing.price = price
        else:
            self.items.append(
                CartItem(
                    product_id=product_id,
                    quantity=quantity,
                    price=price,
                    added_at=now or utcnow(),
                )
            )
        return self.calculate_totals(now)

    def update_item_quantity(
        self, product_id: ObjectId, quantity: int, now: Optional[datetime] = None
    ) -> "CartDoc":
        """Set an item's quantity; zero or less removes it.

        Raises KeyError when the product is not in the cart.
        """
        item = self.get_item(product_id)
        if item is None:
            raise KeyError(str(product_id))
        if quantity <= 0:
            self.items.remove(item)
        else:
            item.quantity = quantity
        return self.calculate_totals(now)

    def remove_item(self, product_id: ObjectId, now: Optional[datetime] = None) -> "CartDoc":
        """Remove an item. Raises KeyError when the product is not in the cart."""
        item = self.get_item(product_id)
        if item is None:
            raise KeyError(str(product_id))
        self.items.remove(item)
        return self.calculate_totals(now)

    def clear(self, now: Optional[datetime] = None) -> "CartDoc":
        self.items = []
        return self.calculate_totals(now)
