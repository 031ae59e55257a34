"""Order Service models package."""

from services.order_service.models.catalog import Product
from services.order_service.models.commerce import (
    Address,
    CartItem,
    Order,
    OrderItem,
    StoreAuditLog,
)
from services.order_service.models.enums import (
    AuditEntityType,
    InventoryMovementType,
    OrderStatus,
    PaymentStatus,
)
from services.order_service.models.inventory import InventoryMovement

__all__ = [
    "Address",
    "AuditEntityType",
    "CartItem",
    "InventoryMovement",
    "InventoryMovementType",
    "Order",
    "OrderItem",
    "OrderStatus",
    "PaymentStatus",
    "Product",
    "StoreAuditLog",
]
