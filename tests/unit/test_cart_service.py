"""Unit tests for CartService - mutations and catalog reconciliation."""

import pytest
from bson import ObjectId

from errors import NotFoundError, ValidationError
from schemas.models.product import ProductDiscount, ProductDoc
from services.cart_service import CartService

USER_ID = ObjectId("64b000000000000000000001")


def _product(**overrides) -> ProductDoc:
    base = dict(
        id=ObjectId(),
        title="Desk Lamp",
        description="A lamp for the desk",
        price=40.0,
        category="Home & Living",
        stock=10,
        status="active",
    )
    base.update(overrides)
    return ProductDoc(**base)


class FakeProducts:
    def __init__(self, *products: ProductDoc) -> None:
        self.by_id = {str(p.id): p for p in products}

    async def find_by_id(self, product_id):
        return self.by_id.get(str(product_id))

    async def find_by_ids(self, product_ids):
        return {str(pid): self.by_id[str(pid)] for pid in product_ids if str(pid) in self.by_id}


@pytest.fixture
def lamp():
    return _product()


@pytest.fixture
def products(lamp):
    return FakeProducts(lamp)


@pytest.fixture
def service(cart_repo, products, clock):
    return CartService(cart_repo, products, clock=clock)


class TestAdd:
    async def test_adds_item_at_discounted_price(self, service, lamp):
        lamp.discount = ProductDiscount(percentage=25)
        cart = await service.add_item(USER_ID, str(lamp.id), 2)
        assert cart.total_items == 2
        assert cart.items[0].price == 30.0
        assert cart.total_amount == 60.0

    async def test_merges_same_product(self, service, lamp):
        await service.add_item(USER_ID, lamp.id, 2)
        cart = await service.add_item(USER_ID, lamp.id, 3)
        assert len(cart.items) == 1
        assert cart.items[0].quantity == 5

    async def test_stock_checked_on_combined_quantity(self, service, lamp):
        await service.add_item(USER_ID, lamp.id, 8)
        with pytest.raises(ValidationError, match="Only 10 items available"):
            await service.add_item(USER_ID, lamp.id, 3)

    @pytest.mark.parametrize("quantity", [0, 51])
    async def test_quantity_bounds(self, service, lamp, quantity):
        with pytest.raises(ValidationError):
            await service.add_item(USER_ID, lamp.id, quantity)

    async def test_unknown_product(self, service):
        with pytest.raises(NotFoundError):
            await service.add_item(USER_ID, ObjectId(), 1)

    async def test_inactive_product(self, service, lamp):
        lamp.status = "discontinued"
        with pytest.raises(ValidationError, match="not available"):
            await service.add_item(USER_ID, lamp.id, 1)

    async def test_invalid_product_id(self, service):
        with pytest.raises(ValidationError):
            await service.add_item(USER_ID, "not-an-id", 1)


class TestUpdateRemoveClear:
    async def test_update_sets_quantity(self, service, lamp):
        await service.add_item(USER_ID, lamp.id, 1)
        cart = await service.update_item(USER_ID, lamp.id, 4)
        assert cart.items[0].quantity == 4
        assert cart.total_amount == 160.0

    async def test_update_to_zero_removes(self, service, lamp):
        await service.add_item(USER_ID, lamp.id, 1)
        cart = await service.update_item(USER_ID, lamp.id, 0)
        assert cart.items == []
        assert cart.total_items == 0

    async def test_update_beyond_stock(self, service, lamp):
        await service.add_item(USER_ID, lamp.id, 1)
        with pytest.raises(ValidationError):
            await service.update_item(USER_ID, lamp.id, 11)

    async def test_update_without_cart(self, service, lamp):
        with pytest.raises(NotFoundError, match="Cart not found"):
            await service.update_item(USER_ID, lamp.id, 1)

    async def test_update_missing_item(self, service, lamp):
        await service.add_item(USER_ID, lamp.id, 1)
        with pytest.raises(NotFoundError, match="Item not found"):
            await service.update_item(USER_ID, ObjectId(), 1)

    async def test_remove(self, service, lamp):
        await service.add_item(USER_ID, lamp.id, 1)
        cart = await service.remove_item(USER_ID, str(lamp.id))
        assert cart.items == []

    async def test_remove_missing_item(self, service, lamp):
        await service.add_item(USER_ID, lamp.id, 1)
        with pytest.raises(NotFoundError):
            await service.remove_item(USER_ID, ObjectId())

    async def test_clear_and_count(self, service, lamp):
        await service.add_item(USER_ID, lamp.id, 3)
        assert await service.count(USER_ID) == 3
        await service.clear(USER_ID)
        assert await service.count(USER_ID) == 0

    async def test_count_without_cart(self, service):
        assert await service.count(USER_ID) == 0


class TestReconcile:
    async def test_get_creates_empty_cart(self, service, cart_repo):
        cart = await service.get_cart(USER_ID)
        assert cart.items == []
        assert cart_repo.saves == 0

    async def test_unchanged_cart_not_saved(self, service, lamp, cart_repo):
        await service.add_item(USER_ID, lamp.id, 1)
        saves = cart_repo.saves
        await service.get_cart(USER_ID)
        assert cart_repo.saves == saves

    async def test_drops_inactive_and_missing(self, service, lamp, products, cart_repo):
        gone = _product(title="Old Mug")
        products.by_id[str(gone.id)] = gone
        await service.add_item(USER_ID, lamp.id, 1)
        await service.add_item(USER_ID, gone.id, 1)

        del products.by_id[str(gone.id)]
        lamp.status = "inactive"

        cart = await service.get_cart(USER_ID)
        assert cart.items == []
        assert cart.total_amount == 0
        assert cart_repo.carts[str(USER_ID)].items == []

    async def test_clamps_quantity_and_refreshes_price(self, service, lamp):
        await service.add_item(USER_ID, lamp.id, 5)
        lamp.stock = 3
        lamp.price = 50.0

        cart = await service.get_cart(USER_ID)
        assert cart.items[0].quantity == 3
        assert cart.items[0].price == 50.0
        assert cart.total_amount == 150.0

    async def test_out_of_stock_dropped(self, service, lamp):
        await service.add_item(USER_ID, lamp.id, 2)
        lamp.stock = 0
        cart = await service.get_cart(USER_ID)
        assert cart.items == []

    async def test_validate_reports_issues(self, service, lamp):
        await service.add_item(USER_ID, lamp.id, 5)
        lamp.stock = 2
        lamp.discount = ProductDiscount(percentage=50)

        result = await service.validate(USER_ID)
        assert result.valid is False
        issues = [i.issue for i in result.issues]
        assert "Quantity reduced to 2 (maximum available)" in issues
        assert "Price updated to 20.0" in issues
        assert result.cart.total_amount == 40.0

    async def test_validate_clean_cart(self, service, lamp):
        await service.add_item(USER_ID, lamp.id, 1)
        result = await service.validate(USER_ID)
        assert result.valid is True
        assert result.issues == []

    async def test_validate_empty_cart(self, service, lamp):
        with pytest.raises(ValidationError, match="Cart is empty"):
            await service.validate(USER_ID)
        await service.add_item(USER_ID, lamp.id, 1)
        await service.clear(USER_ID)
        with pytest.raises(ValidationError, match="Cart is empty"):
            await service.validate(USER_ID)
