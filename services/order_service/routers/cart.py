"""Cart router: the user's cart ahead of checkout."""

import uuid

from fastapi import APIRouter, Depends
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.db.session import get_async_db
from services.order_service.schemas import CartItemCreate, CartItemUpdate, CartResponse
from services.order_service.services import cart_reconciler
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["cart"])


@router.get("/cart", response_model=CartResponse)
async def get_cart(
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    return await cart_reconciler.list_cart(db, current_user.user_id)


@router.post("/cart/items", response_model=CartResponse)
async def add_cart_item(
    item_in: CartItemCreate,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Add a product to the cart. Adding it again increases the quantity."""
    return await cart_reconciler.add_to_cart(
        db, current_user.user_id, item_in.product_id, item_in.quantity
    )


@router.patch("/cart/items/{product_id}", response_model=CartResponse)
async def update_cart_item(
    product_id: uuid.UUID,
    item_in: CartItemUpdate,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    return await cart_reconciler.update_cart_item(
        db, current_user.user_id, product_id, item_in.quantity
    )


@router.delete("/cart/items/{product_id}", response_model=CartResponse)
async def remove_cart_item(
    product_id: uuid.UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    return await cart_reconciler.remove_cart_item(db, current_user.user_id, product_id)


@router.delete("/cart")
async def clear_cart(
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
) -> dict[str, int]:
    removed = await cart_reconciler.clear_cart(db, current_user.user_id)
    return {"removed": removed}
