"""
Per-user shopping cart.

Every read of the cart reconciles it against the catalog first: items whose
product disappeared or went inactive are dropped, quantities are clamped to
stock and prices are refreshed to the current discounted price.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from bson import ObjectId

from errors import NotFoundError, ValidationError
from repositories.cart_repository import CartRepository
from repositories.product_repository import ProductRepository
from schemas.models.cart import MAX_ITEM_QUANTITY, CartDoc
from shared.datetime_utils import Clock, utcnow
from shared.logging import get_logger

log = get_logger(__name__)


@dataclass
class CartIssue:
    product_id: str
    issue: str
    product_name: Optional[str] = None


@dataclass
class CartValidation:
    cart: CartDoc
    issues: list[CartIssue] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.issues


def _product_oid(product_id: Any) -> ObjectId:
    if isinstance(product_id, ObjectId):
        return product_id
    if not ObjectId.is_valid(str(product_id)):
        raise ValidationError("Valid product ID is required", field="product_id")
    return ObjectId(str(product_id))


class CartService:
    def __init__(
        self,
        carts: CartRepository,
        products: ProductRepository,
        clock: Clock = utcnow,
    ) -> None:
        self._carts = carts
        self._products = products
        self._clock = clock

    async def _reconcile(self, cart: CartDoc) -> list[CartIssue]:
        """Bring *cart* in line with the catalog in place.

        Returns one issue per change made; an empty list means the cart was
        already consistent.
        """
        products = await self._products.find_by_ids(item.product_id for item in cart.items)
        issues: list[CartIssue] = []
        kept = []

        for item in cart.items:
            pid = str(item.product_id)
            product = products.get(pid)

            if product is None or product.status != "active":
                issues.append(CartIssue(pid, "Product no longer available"))
                continue

            if not product.is_in_stock(item.quantity):
                if product.stock == 0:
                    issues.append(CartIssue(pid, "Out of stock", product.title))
                    continue
                item.quantity = product.stock
                issues.append(
                    CartIssue(
                        pid,
                        f"Quantity reduced to {product.stock} (maximum available)",
                        product.title,
                    )
                )

            current_price = product.discounted_price
            if item.price != current_price:
                item.price = current_price
                issues.append(CartIssue(pid, f"Price updated to {current_price}", product.title))

            kept.append(item)

        if issues:
            now = self._clock()
            cart.items = kept
            cart.calculate_totals(now)
            await self._carts.save(cart, now)
            log.info("cart_reconciled", user_id=str(cart.user_id), changes=len(issues))
        return issues

    async def get_cart(self, user_id: ObjectId) -> CartDoc:
        cart = await self._carts.find_or_create(user_id, self._clock())
        await self._reconcile(cart)
        return cart

    async def _require_cart(self, user_id: ObjectId) -> CartDoc:
        cart = await self._carts.find_by_user(user_id)
        if cart is None:
            raise NotFoundError("Cart not found")
        return cart

    async def add_item(self, user_id: ObjectId, product_id: Any, quantity: int = 1) -> CartDoc:
        if quantity < 1 or quantity > MAX_ITEM_QUANTITY:
            raise ValidationError(
                f"Quantity must be between 1 and {MAX_ITEM_QUANTITY}", field="quantity"
            )

        oid = _product_oid(product_id)
        product = await self._products.find_by_id(oid)
        if product is None:
            raise NotFoundError("Product not found")
        if product.status != "active":
            raise ValidationError("Product is not available")

        now = self._clock()
        cart = await self._carts.find_or_create(user_id, now)
        existing = cart.get_item(oid)
        total_quantity = quantity + (existing.quantity if existing else 0)
        if total_quantity > MAX_ITEM_QUANTITY:
            raise ValidationError(
                f"Quantity must be between 1 and {MAX_ITEM_QUANTITY}", field="quantity"
            )
        if not product.is_in_stock(total_quantity):
            raise ValidationError(f"Only {product.stock} items available in stock")

        cart.add_item(oid, quantity, product.discounted_price, now)
        await self._carts.save(cart, now)
        log.info("cart_item_added", user_id=str(user_id), product_id=str(oid), quantity=quantity)
        return cart

    async def update_item(self, user_id: ObjectId, product_id: Any, quantity: int) -> CartDoc:
        """Set an item's quantity. A quantity of 0 removes the item."""
        if quantity < 0 or quantity > MAX_ITEM_QUANTITY:
            raise ValidationError(
                f"Quantity must be between 0 and {MAX_ITEM_QUANTITY}", field="quantity"
            )

        oid = _product_oid(product_id)
        cart = await self._require_cart(user_id)
        if cart.get_item(oid) is None:
            raise NotFoundError("Item not found in cart")

        now = self._clock()
        if quantity > 0:
            product = await self._products.find_by_id(oid)
            if product is None or not product.is_in_stock(quantity):
                available = product.stock if product is not None else 0
                raise ValidationError(f"Only {available} items available in stock")

        cart.update_item_quantity(oid, quantity, now)
        await self._carts.save(cart, now)
        log.info("cart_item_updated", user_id=str(user_id), product_id=str(oid), quantity=quantity)
        return cart

    async def remove_item(self, user_id: ObjectId, product_id: Any) -> CartDoc:
        oid = _product_oid(product_id)
        cart = await self._require_cart(user_id)
        now = self._clock()
        try:
            cart.remove_item(oid, now)
        except KeyError:
            raise NotFoundError("Item not found in cart") from None
        await self._carts.save(cart, now)
        log.info("cart_item_removed", user_id=str(user_id), product_id=str(oid))
        return cart

    async def clear(self, user_id: ObjectId) -> CartDoc:
        cart = await self._require_cart(user_id)
        now = self._clock()
        cart.clear(now)
        await self._carts.save(cart, now)
        log.info("cart_cleared", user_id=str(user_id))
        return cart

    async def count(self, user_id: ObjectId) -> int:
        cart = await self._carts.find_by_user(user_id)
        return cart.total_items if cart is not None else 0

    async def validate(self, user_id: ObjectId) -> CartValidation:
        """Reconcile the cart before checkout and report what changed."""
        cart = await self._carts.find_by_user(user_id)
        if cart is None or not cart.items:
            raise ValidationError("Cart is empty")
        issues = await self._reconcile(cart)
        return CartValidation(cart=cart, issues=issues)
