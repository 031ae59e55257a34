"""Cart operations and post-purchase reconciliation."""

import uuid
from typing import Iterable, Optional

from libs.common.currency import cents_to_dollars
from libs.common.logging import get_logger
from services.order_service.errors import (
    CartItemNotFoundError,
    ProductNotFoundError,
    ValidationError,
)
from services.order_service.models import CartItem, Product
from services.order_service.schemas import CartItemResponse, CartResponse
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


class CartReconciler:
    """Removes purchased products from a user's cart."""

    async def reconcile(
        self, db: AsyncSession, user_id: str, product_ids: Iterable[uuid.UUID]
    ) -> int:
        """Delete this user's cart rows for exactly the given products.

        Runs inside the order transaction and never commits. Calling it again
        is a no-op because the rows are already gone.
        """
        product_ids = set(product_ids)
        if not product_ids:
            return 0

        result = await db.execute(
            delete(CartItem)
            .where(
                CartItem.user_id == user_id,
                CartItem.product_id.in_(product_ids),
            )
            .execution_options(synchronize_session=False)
        )
        removed = result.rowcount or 0
        if removed:
            logger.info("Removed %d purchased item(s) from cart of %s", removed, user_id)
        return removed


# ============================================================================
# CART HELPERS
# ============================================================================


async def _get_active_product(db: AsyncSession, product_id: uuid.UUID) -> Product:
    product = await db.get(Product, product_id)
    if not product or not product.is_active:
        raise ProductNotFoundError(product_id)
    return product


async def _get_cart_item(
    db: AsyncSession, user_id: str, product_id: uuid.UUID
) -> Optional[CartItem]:
    result = await db.execute(
        select(CartItem).where(
            CartItem.user_id == user_id, CartItem.product_id == product_id
        )
    )
    return result.scalar_one_or_none()


def _ensure_stock(product: Product, quantity: int) -> None:
    # Advisory only; stock is reserved at checkout, not in the cart.
    if quantity > product.stock:
        raise ValidationError(
            f"Only {product.stock} unit(s) of {product.name} available",
            details={"product_id": str(product.id), "available": product.stock},
        )


# ============================================================================
# CART OPERATIONS
# ============================================================================


async def list_cart(db: AsyncSession, user_id: str) -> CartResponse:
    """Return the user's cart enriched with current product data."""
    result = await db.execute(
        select(CartItem, Product)
        .join(Product, Product.id == CartItem.product_id)
        .where(CartItem.user_id == user_id)
        .order_by(CartItem.created_at)
    )

    items = []
    subtotal_cents = 0
    for cart_item, product in result.all():
        line_cents = product.price_cents * cart_item.quantity
        subtotal_cents += line_cents
        items.append(
            CartItemResponse(
                id=cart_item.id,
                product_id=product.id,
                quantity=cart_item.quantity,
                product_name=product.name,
                image_url=product.primary_image,
                unit_price=product.price,
                line_total=cents_to_dollars(line_cents),
                in_stock=product.is_active and product.stock >= cart_item.quantity,
            )
        )

    return CartResponse(
        items=items,
        item_count=sum(item.quantity for item in items),
        subtotal=cents_to_dollars(subtotal_cents),
    )


async def add_to_cart(
    db: AsyncSession, user_id: str, product_id: uuid.UUID, quantity: int
) -> CartResponse:
    """Add a product to the cart, merging with an existing line."""
    product = await _get_active_product(db, product_id)

    existing = await _get_cart_item(db, user_id, product_id)
    if existing:
        new_quantity = existing.quantity + quantity
        _ensure_stock(product, new_quantity)
        existing.quantity = new_quantity
    else:
        _ensure_stock(product, quantity)
        db.add(CartItem(user_id=user_id, product_id=product_id, quantity=quantity))

    await db.commit()
    return await list_cart(db, user_id)


async def update_cart_item(
    db: AsyncSession, user_id: str, product_id: uuid.UUID, quantity: int
) -> CartResponse:
    """Set the quantity of a product already in the cart."""
    cart_item = await _get_cart_item(db, user_id, product_id)
    if not cart_item:
        raise CartItemNotFoundError(product_id)

    product = await _get_active_product(db, product_id)
    _ensure_stock(product, quantity)
    cart_item.quantity = quantity

    await db.commit()
    return await list_cart(db, user_id)


async def remove_cart_item(
    db: AsyncSession, user_id: str, product_id: uuid.UUID
) -> CartResponse:
    cart_item = await _get_cart_item(db, user_id, product_id)
    if not cart_item:
        raise CartItemNotFoundError(product_id)

    await db.delete(cart_item)
    await db.commit()
    return await list_cart(db, user_id)


async def clear_cart(db: AsyncSession, user_id: str) -> int:
    result = await db.execute(delete(CartItem).where(CartItem.user_id == user_id))
    await db.commit()
    return result.rowcount or 0
