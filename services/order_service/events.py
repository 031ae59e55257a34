"""Order events and their best-effort notification handlers.

Events are published only after the transaction that produced them has
committed. Each handler runs on its own asyncio task; a handler that raises
or reports a failed delivery is logged and recorded, never propagated.
"""

import asyncio
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional

from libs.common.emails.client import get_email_client
from libs.common.emails.store import (
    EmailSender,
    send_order_confirmation_email,
    send_order_shipped_email,
)
from libs.common.logging import get_logger

logger = get_logger(__name__)


# ============================================================================
# EVENTS
# ============================================================================


@dataclass(frozen=True)
class OrderPlaced:
    order_id: str
    order_number: str
    user_id: str
    customer_email: Optional[str]
    customer_name: Optional[str]
    subtotal_cents: int
    tax_cents: int
    shipping_cents: int
    total_cents: int
    items: tuple = ()  # ({"name", "quantity", "total_cents"}, ...)

    @classmethod
    def from_order(cls, order) -> "OrderPlaced":
        return cls(
            order_id=str(order.id),
            order_number=order.order_number,
            user_id=order.user_id,
            customer_email=order.customer_email,
            customer_name=order.customer_name,
            subtotal_cents=order.subtotal_cents,
            tax_cents=order.tax_cents,
            shipping_cents=order.shipping_cents,
            total_cents=order.total_cents,
            items=tuple(
                {
                    "name": item.product_name,
                    "quantity": item.quantity,
                    "total_cents": item.total_cents,
                }
                for item in order.items
            ),
        )


@dataclass(frozen=True)
class OrderShipped:
    order_id: str
    order_number: str
    user_id: str
    customer_email: Optional[str]
    customer_name: Optional[str]
    tracking_number: Optional[str] = None

    @classmethod
    def from_order(cls, order) -> "OrderShipped":
        return cls(
            order_id=str(order.id),
            order_number=order.order_number,
            user_id=order.user_id,
            customer_email=order.customer_email,
            customer_name=order.customer_name,
            tracking_number=order.tracking_number,
        )


@dataclass
class DeliveryFailure:
    event: Any
    handler: str
    error: str


Handler = Callable[[Any], Awaitable[Optional[bool]]]


# ============================================================================
# PUBLISHER
# ============================================================================


class OrderEventPublisher:
    """Fire-and-forget dispatcher for order events."""

    def __init__(self):
        self._handlers: dict[type, list[Handler]] = defaultdict(list)
        self._tasks: set[asyncio.Task] = set()
        self.failures: list[DeliveryFailure] = []

    def subscribe(self, event_type: type, handler: Handler) -> None:
        self._handlers[event_type].append(handler)

    def publish(self, event: Any) -> list[asyncio.Task]:
        """Schedule every handler for ``event`` and return immediately."""
        tasks = []
        for handler in self._handlers.get(type(event), []):
            task = asyncio.create_task(self._dispatch(handler, event))
            # The loop only keeps weak references to tasks
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
            tasks.append(task)
        return tasks

    async def drain(self) -> None:
        """Wait for in-flight handlers. Used on shutdown and in tests."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def _dispatch(self, handler: Handler, event: Any) -> None:
        name = getattr(handler, "__qualname__", repr(handler))
        event_name = type(event).__name__
        try:
            delivered = await handler(event)
        except Exception as e:
            logger.error(
                "%s handler %s failed for order %s: %s",
                event_name,
                name,
                getattr(event, "order_number", "?"),
                e,
                exc_info=True,
            )
            self.failures.append(DeliveryFailure(event=event, handler=name, error=str(e)))
            return

        if delivered is False:
            logger.warning(
                "%s handler %s could not deliver notification for order %s",
                event_name,
                name,
                getattr(event, "order_number", "?"),
            )
            self.failures.append(
                DeliveryFailure(event=event, handler=name, error="not delivered")
            )


# ============================================================================
# NOTIFICATION HANDLERS
# ============================================================================


@dataclass
class OrderNotifier:
    """Turns order events into customer emails."""

    email_client: EmailSender = field(default_factory=get_email_client)

    async def on_order_placed(self, event: OrderPlaced) -> Optional[bool]:
        if not event.customer_email:
            logger.info("No email on file for order %s", event.order_number)
            return None
        return await send_order_confirmation_email(
            self.email_client,
            to_email=event.customer_email,
            customer_name=event.customer_name or "Customer",
            order_number=event.order_number,
            items=list(event.items),
            subtotal_cents=event.subtotal_cents,
            tax_cents=event.tax_cents,
            shipping_cents=event.shipping_cents,
            total_cents=event.total_cents,
        )

    async def on_order_shipped(self, event: OrderShipped) -> Optional[bool]:
        if not event.customer_email:
            logger.info("No email on file for order %s", event.order_number)
            return None
        return await send_order_shipped_email(
            self.email_client,
            to_email=event.customer_email,
            customer_name=event.customer_name or "Customer",
            order_number=event.order_number,
            tracking_number=event.tracking_number,
        )


def build_event_publisher(
    email_client: Optional[EmailSender] = None,
) -> OrderEventPublisher:
    """Publisher wired to send order emails through ``email_client``."""
    notifier = (
        OrderNotifier(email_client=email_client) if email_client else OrderNotifier()
    )
    publisher = OrderEventPublisher()
    publisher.subscribe(OrderPlaced, notifier.on_order_placed)
    publisher.subscribe(OrderShipped, notifier.on_order_shipped)
    return publisher
