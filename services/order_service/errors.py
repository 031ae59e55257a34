"""Domain errors raised by the order service.

Every error carries a stable ``code`` and an HTTP status so routers never
translate them by hand; see ``libs.common.error_handler``.
"""

import uuid
from typing import Optional, Union

from fastapi import status

from libs.common.error_handler import ServiceError

Identifier = Union[uuid.UUID, str]


class StoreError(ServiceError):
    """Base class for order and inventory errors."""

    code = "STORE_ERROR"


class ValidationError(StoreError):
    """Malformed request, rejected before inventory is touched."""

    status_code = 422
    code = "VALIDATION_FAILED"


# ---------------------------------------------------------------------------
# Not found
# ---------------------------------------------------------------------------


class NotFoundError(StoreError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"


class AddressNotFoundError(NotFoundError):
    code = "ADDRESS_NOT_FOUND"

    def __init__(self, address_id: Identifier):
        self.address_id = address_id
        super().__init__(
            "Address not found", details={"address_id": str(address_id)}
        )


class ProductNotFoundError(NotFoundError):
    code = "PRODUCT_NOT_FOUND"

    def __init__(self, product_id: Identifier):
        self.product_id = product_id
        super().__init__(
            f"Product {product_id} not found",
            details={"product_id": str(product_id)},
        )


class CartItemNotFoundError(NotFoundError):
    code = "CART_ITEM_NOT_FOUND"

    def __init__(self, product_id: Identifier):
        self.product_id = product_id
        super().__init__(
            "Item not in cart", details={"product_id": str(product_id)}
        )


class OrderNotFoundError(NotFoundError):
    code = "ORDER_NOT_FOUND"

    def __init__(self, order_id: Identifier):
        self.order_id = order_id
        super().__init__("Order not found", details={"order_id": str(order_id)})


# ---------------------------------------------------------------------------
# Stock
# ---------------------------------------------------------------------------


class InsufficientStockError(StoreError):
    status_code = status.HTTP_409_CONFLICT
    code = "INSUFFICIENT_STOCK"
    retryable = False

    def __init__(
        self,
        product_id: Identifier,
        requested: Optional[int] = None,
        available: Optional[int] = None,
        message: Optional[str] = None,
    ):
        self.product_id = product_id
        self.requested = requested
        self.available = available
        details = {"product_id": str(product_id)}
        if requested is not None:
            details["requested"] = requested
        if available is not None:
            details["available"] = available
        super().__init__(
            message or f"Insufficient stock for product {product_id}",
            details=details,
        )


class StockChangedError(InsufficientStockError):
    """The conditional debit matched no row: stock moved since it was checked."""

    code = "STOCK_CHANGED"
    retryable = True

    def __init__(self, product_id: Identifier, requested: Optional[int] = None):
        super().__init__(
            product_id,
            requested=requested,
            message=f"Stock changed for product {product_id}",
        )


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


class InvalidTransitionError(StoreError):
    status_code = status.HTTP_409_CONFLICT
    code = "INVALID_TRANSITION"

    def __init__(self, current, target, message: Optional[str] = None):
        # Accepts OrderStatus members or their raw values
        current = getattr(current, "value", current)
        target = getattr(target, "value", target)
        self.current = current
        self.target = target
        super().__init__(
            message or f"Cannot move order from {current} to {target}",
            details={"current": current, "target": target},
        )


class InfrastructureError(StoreError):
    """The store could not complete the operation; nothing was persisted."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "INFRASTRUCTURE_ERROR"


class ForbiddenError(StoreError):
    """Caller lacks the role required for the operation."""

    status_code = status.HTTP_403_FORBIDDEN
    code = "FORBIDDEN"
