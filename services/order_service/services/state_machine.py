"""Order status state machine.

    PENDING -> PROCESSING -> SHIPPED -> DELIVERED
       |           |            |
       +-----------+--> CANCELLED (before shipment only)
       +-----------+------------+--> REFUNDED (admin only)

DELIVERED, CANCELLED and REFUNDED are terminal.
"""

from dataclasses import dataclass
from typing import Optional

from services.order_service.errors import InvalidTransitionError
from services.order_service.models import OrderStatus

FULFILLMENT_PATH = (
    OrderStatus.PENDING,
    OrderStatus.PROCESSING,
    OrderStatus.SHIPPED,
    OrderStatus.DELIVERED,
)

TERMINAL_STATES = frozenset(
    {OrderStatus.DELIVERED, OrderStatus.CANCELLED, OrderStatus.REFUNDED}
)

CUSTOMER_CANCELLABLE_STATES = frozenset({OrderStatus.PENDING})
ADMIN_CANCELLABLE_STATES = frozenset({OrderStatus.PENDING, OrderStatus.PROCESSING})

# Goods have not left the warehouse in these states, so stock goes back.
RESTOCK_SOURCE_STATES = frozenset({OrderStatus.PENDING, OrderStatus.PROCESSING})
RESTOCK_TARGET_STATES = frozenset({OrderStatus.CANCELLED, OrderStatus.REFUNDED})

TIMESTAMP_FIELDS = {
    OrderStatus.SHIPPED: "shipped_at",
    OrderStatus.DELIVERED: "delivered_at",
    OrderStatus.CANCELLED: "cancelled_at",
}


@dataclass(frozen=True)
class Transition:
    """A validated status change and the side effects it carries."""

    current: OrderStatus
    target: OrderStatus
    restock: bool
    timestamp_field: Optional[str]
    notify_shipped: bool


def is_terminal(status: OrderStatus) -> bool:
    return status in TERMINAL_STATES


def restocks_on(current: OrderStatus, target: OrderStatus) -> bool:
    return current in RESTOCK_SOURCE_STATES and target in RESTOCK_TARGET_STATES


def _build(current: OrderStatus, target: OrderStatus) -> Transition:
    return Transition(
        current=current,
        target=target,
        restock=restocks_on(current, target),
        timestamp_field=TIMESTAMP_FIELDS.get(target),
        notify_shipped=target == OrderStatus.SHIPPED,
    )


def ensure_customer_cancellable(current: OrderStatus) -> Transition:
    """Customers may only cancel orders that are still pending."""
    if current not in CUSTOMER_CANCELLABLE_STATES:
        raise InvalidTransitionError(
            current,
            OrderStatus.CANCELLED,
            message=f"Cannot cancel order with status {current.value}",
        )
    return _build(current, OrderStatus.CANCELLED)


def validate_admin_transition(
    current: OrderStatus, target: OrderStatus
) -> Transition:
    """Check an admin-requested status change.

    Along the fulfillment path an admin may move forward, skipping steps
    (PENDING -> SHIPPED is fine), but never backward or sideways.
    """
    if is_terminal(current):
        raise InvalidTransitionError(
            current, target, message=f"Order is already {current.value}"
        )

    if target == OrderStatus.PENDING:
        raise InvalidTransitionError(current, target)

    if target == OrderStatus.REFUNDED:
        return _build(current, target)

    if target == OrderStatus.CANCELLED:
        if current not in ADMIN_CANCELLABLE_STATES:
            raise InvalidTransitionError(
                current,
                target,
                message=f"Cannot cancel an order that is {current.value}",
            )
        return _build(current, target)

    if FULFILLMENT_PATH.index(target) <= FULFILLMENT_PATH.index(current):
        raise InvalidTransitionError(current, target)
    return _build(current, target)
