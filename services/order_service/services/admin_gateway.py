"""Admin-only order operations.

Thin layer over the lifecycle manager that insists on the admin role, so the
checks hold even when called outside the HTTP routers.
"""

import uuid
from typing import Optional

from libs.auth.models import AuthUser
from services.order_service.errors import ForbiddenError
from services.order_service.models import Order, OrderStatus
from services.order_service.schemas import OrderFilter, OrderStatusUpdate, Pagination
from services.order_service.services.order_lifecycle import OrderLifecycleManager


class AdminOrderGateway:
    def __init__(self, manager: OrderLifecycleManager):
        self.manager = manager

    @staticmethod
    def _ensure_admin(user: AuthUser) -> None:
        if not user.is_admin:
            raise ForbiddenError("Admin privileges required")

    async def list_orders(
        self,
        admin: AuthUser,
        *,
        status: Optional[OrderStatus] = None,
        user_id: Optional[str] = None,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[Order], Pagination]:
        self._ensure_admin(admin)
        return await self.manager.list_orders(
            OrderFilter(status=status, user_id=user_id), page=page, page_size=page_size
        )

    async def get_order(self, admin: AuthUser, order_id: uuid.UUID) -> Order:
        self._ensure_admin(admin)
        return await self.manager.get_order(order_id)

    async def update_order_status(
        self, admin: AuthUser, order_id: uuid.UUID, update: OrderStatusUpdate
    ) -> Order:
        """Change status and/or tracking number. Totals are never editable here."""
        self._ensure_admin(admin)
        return await self.manager.update_order_status(
            order_id,
            actor=admin.user_id,
            status=update.status,
            tracking_number=update.tracking_number,
            notes=update.admin_notes,
        )
