"""Customer orders router: place, list, view and cancel orders."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.common.rate_limit import order_create_limit
from services.order_service.dependencies import get_order_manager
from services.order_service.models import OrderStatus
from services.order_service.schemas import (
    OrderCreate,
    OrderFilter,
    OrderListResponse,
    OrderResponse,
)
from services.order_service.services.order_lifecycle import OrderLifecycleManager

router = APIRouter(tags=["orders"])


@router.post(
    "/orders", response_model=OrderResponse, status_code=status.HTTP_201_CREATED
)
@order_create_limit
async def create_order(
    request: Request,
    order_in: OrderCreate,
    current_user: AuthUser = Depends(get_current_user),
    manager: OrderLifecycleManager = Depends(get_order_manager),
):
    """Place an order from an address and line items.

    Prices come from the catalog, never from the request.
    """
    return await manager.create_order(current_user, order_in)


@router.get("/orders", response_model=OrderListResponse)
async def list_my_orders(
    status_filter: Optional[OrderStatus] = Query(None, alias="status"),
    page: int = Query(1),
    page_size: int = Query(20),
    current_user: AuthUser = Depends(get_current_user),
    manager: OrderLifecycleManager = Depends(get_order_manager),
):
    """List the current user's orders, newest first."""
    orders, pagination = await manager.list_orders(
        OrderFilter(status=status_filter, user_id=current_user.user_id),
        page=page,
        page_size=page_size,
    )
    return OrderListResponse(
        orders=[OrderResponse.model_validate(order) for order in orders],
        pagination=pagination,
    )


@router.get("/orders/{order_id}", response_model=OrderResponse)
async def get_my_order(
    order_id: uuid.UUID,
    current_user: AuthUser = Depends(get_current_user),
    manager: OrderLifecycleManager = Depends(get_order_manager),
):
    return await manager.get_order(order_id, user_id=current_user.user_id)


@router.put("/orders/{order_id}/cancel", response_model=OrderResponse)
async def cancel_order(
    order_id: uuid.UUID,
    current_user: AuthUser = Depends(get_current_user),
    manager: OrderLifecycleManager = Depends(get_order_manager),
):
    """Cancel a pending order and return its stock."""
    return await manager.cancel_order(current_user.user_id, order_id)
