"""Unit tests for cart operations and post-purchase reconciliation."""

import uuid
from decimal import Decimal

import pytest
from services.order_service.errors import (
    CartItemNotFoundError,
    ProductNotFoundError,
    ValidationError,
)
from services.order_service.models import CartItem
from services.order_service.services import cart_reconciler
from services.order_service.services.cart_reconciler import CartReconciler
from tests.factories import CartItemFactory, ProductFactory


async def _reconcile(session_factory, user_id, product_ids):
    async with session_factory() as db:
        async with db.begin():
            return await CartReconciler().reconcile(db, user_id, product_ids)


# ---------------------------------------------------------------------------
# reconcile
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_reconcile_removes_only_purchased_products(session_factory, store):
    bought = await store.add(ProductFactory.create())
    kept = await store.add(ProductFactory.create())
    await store.add(
        CartItemFactory.create(user_id="shopper", product_id=bought.id, quantity=2),
        CartItemFactory.create(user_id="shopper", product_id=kept.id, quantity=1),
        # Another user's cart holding the same product is untouched
        CartItemFactory.create(user_id="someone-else", product_id=bought.id),
    )

    removed = await _reconcile(session_factory, "shopper", [bought.id])

    assert removed == 1
    remaining = await store.all(CartItem)
    assert {(c.user_id, c.product_id) for c in remaining} == {
        ("shopper", kept.id),
        ("someone-else", bought.id),
    }


@pytest.mark.asyncio
@pytest.mark.unit
async def test_reconcile_is_idempotent(session_factory, store):
    product = await store.add(ProductFactory.create())
    await store.add(CartItemFactory.create(user_id="shopper", product_id=product.id))

    assert await _reconcile(session_factory, "shopper", [product.id]) == 1
    assert await _reconcile(session_factory, "shopper", [product.id]) == 0


@pytest.mark.asyncio
@pytest.mark.unit
async def test_reconcile_with_no_products_is_noop(session_factory):
    assert await _reconcile(session_factory, "shopper", []) == 0


# ---------------------------------------------------------------------------
# Cart operations
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_add_to_cart_merges_quantities(session_factory, store):
    product = await store.add(ProductFactory.create(stock=10, price_cents=1250))

    async with session_factory() as db:
        await cart_reconciler.add_to_cart(db, "shopper", product.id, 2)
    async with session_factory() as db:
        cart = await cart_reconciler.add_to_cart(db, "shopper", product.id, 3)

    assert len(cart.items) == 1
    assert cart.items[0].quantity == 5
    assert cart.item_count == 5
    assert cart.subtotal == Decimal("62.50")
    assert cart.items[0].in_stock is True


@pytest.mark.asyncio
@pytest.mark.unit
async def test_add_to_cart_rejects_inactive_product(session_factory, store):
    product = await store.add(ProductFactory.create(is_active=False))

    async with session_factory() as db:
        with pytest.raises(ProductNotFoundError):
            await cart_reconciler.add_to_cart(db, "shopper", product.id, 1)


@pytest.mark.asyncio
@pytest.mark.unit
async def test_add_to_cart_rejects_more_than_stock(session_factory, store):
    product = await store.add(ProductFactory.create(stock=2))

    async with session_factory() as db:
        with pytest.raises(ValidationError):
            await cart_reconciler.add_to_cart(db, "shopper", product.id, 3)

    assert await store.count(CartItem) == 0


@pytest.mark.asyncio
@pytest.mark.unit
async def test_update_and_remove_cart_item(session_factory, store):
    product = await store.add(ProductFactory.create(stock=10))
    await store.add(CartItemFactory.create(user_id="shopper", product_id=product.id))

    async with session_factory() as db:
        cart = await cart_reconciler.update_cart_item(db, "shopper", product.id, 4)
    assert cart.items[0].quantity == 4

    async with session_factory() as db:
        cart = await cart_reconciler.remove_cart_item(db, "shopper", product.id)
    assert cart.items == []

    async with session_factory() as db:
        with pytest.raises(CartItemNotFoundError):
            await cart_reconciler.remove_cart_item(db, "shopper", product.id)


@pytest.mark.asyncio
@pytest.mark.unit
async def test_clear_cart_only_touches_own_items(session_factory, store):
    product = await store.add(ProductFactory.create())
    await store.add(
        CartItemFactory.create(user_id="shopper", product_id=product.id),
        CartItemFactory.create(user_id="other", product_id=product.id),
    )

    async with session_factory() as db:
        removed = await cart_reconciler.clear_cart(db, "shopper")

    assert removed == 1
    assert await store.count(CartItem, CartItem.user_id == "other") == 1


@pytest.mark.asyncio
@pytest.mark.unit
async def test_update_unknown_cart_item(session_factory):
    async with session_factory() as db:
        with pytest.raises(CartItemNotFoundError):
            await cart_reconciler.update_cart_item(db, "shopper", uuid.uuid4(), 1)
