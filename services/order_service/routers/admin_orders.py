"""Admin orders router: order listing and fulfillment updates."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from libs.auth.dependencies import require_admin
from libs.auth.models import AuthUser
from services.order_service.dependencies import get_admin_gateway
from services.order_service.models import OrderStatus
from services.order_service.schemas import (
    OrderListResponse,
    OrderResponse,
    OrderStatusUpdate,
)
from services.order_service.services.admin_gateway import AdminOrderGateway

router = APIRouter(tags=["admin-orders"])


@router.get("/orders", response_model=OrderListResponse)
async def list_orders(
    status_filter: Optional[OrderStatus] = Query(None, alias="status"),
    user_id: Optional[str] = Query(None),
    page: int = Query(1),
    page_size: int = Query(20),
    current_user: AuthUser = Depends(require_admin),
    gateway: AdminOrderGateway = Depends(get_admin_gateway),
):
    """List all orders (admin), optionally by status or customer."""
    orders, pagination = await gateway.list_orders(
        current_user,
        status=status_filter,
        user_id=user_id,
        page=page,
        page_size=page_size,
    )
    return OrderListResponse(
        orders=[OrderResponse.model_validate(order) for order in orders],
        pagination=pagination,
    )


@router.get("/orders/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: uuid.UUID,
    current_user: AuthUser = Depends(require_admin),
    gateway: AdminOrderGateway = Depends(get_admin_gateway),
):
    return await gateway.get_order(current_user, order_id)


@router.patch("/orders/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: uuid.UUID,
    status_update: OrderStatusUpdate,
    current_user: AuthUser = Depends(require_admin),
    gateway: AdminOrderGateway = Depends(get_admin_gateway),
):
    """Update order status and/or tracking number.

    Shipping an order emails the customer in the background; a failed email
    never fails the update.
    """
    return await gateway.update_order_status(current_user, order_id, status_update)
