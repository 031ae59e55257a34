"""Unit tests for order events and their notification handlers."""

import asyncio

import pytest
from services.order_service.events import (
    OrderEventPublisher,
    OrderPlaced,
    OrderShipped,
    build_event_publisher,
)
from tests.conftest import RecordingEmailClient


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _placed(**overrides) -> OrderPlaced:
    defaults = {
        "order_id": "5d1c1f5e-0000-4000-8000-000000000001",
        "order_number": "ORD-20260101120000-ABCDE",
        "user_id": "user-1",
        "customer_email": "shopper@example.com",
        "customer_name": "Ada",
        "subtotal_cents": 6000,
        "tax_cents": 600,
        "shipping_cents": 1000,
        "total_cents": 7600,
        "items": ({"name": "Canvas Tote", "quantity": 3, "total_cents": 6000},),
    }
    defaults.update(overrides)
    return OrderPlaced(**defaults)


def _shipped(**overrides) -> OrderShipped:
    defaults = {
        "order_id": "5d1c1f5e-0000-4000-8000-000000000001",
        "order_number": "ORD-20260101120000-ABCDE",
        "user_id": "user-1",
        "customer_email": "shopper@example.com",
        "customer_name": "Ada",
        "tracking_number": "1Z999",
    }
    defaults.update(overrides)
    return OrderShipped(**defaults)


# ---------------------------------------------------------------------------
# Publisher
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_publish_returns_before_handlers_finish():
    release = asyncio.Event()
    seen = []

    async def slow_handler(event):
        await release.wait()
        seen.append(event)
        return True

    publisher = OrderEventPublisher()
    publisher.subscribe(OrderPlaced, slow_handler)

    tasks = publisher.publish(_placed())

    assert len(tasks) == 1
    assert publisher.pending == 1
    assert seen == []

    release.set()
    await publisher.drain()

    assert publisher.pending == 0
    assert len(seen) == 1
    assert publisher.failures == []


@pytest.mark.asyncio
@pytest.mark.unit
async def test_publish_only_reaches_matching_subscribers():
    placed, shipped = [], []

    async def on_placed(event):
        placed.append(event)

    async def on_shipped(event):
        shipped.append(event)

    publisher = OrderEventPublisher()
    publisher.subscribe(OrderPlaced, on_placed)
    publisher.subscribe(OrderShipped, on_shipped)

    publisher.publish(_shipped())
    await publisher.drain()

    assert placed == []
    assert len(shipped) == 1


@pytest.mark.asyncio
@pytest.mark.unit
async def test_publish_without_subscribers_is_a_no_op():
    publisher = OrderEventPublisher()

    assert publisher.publish(_placed()) == []
    await publisher.drain()
    assert publisher.failures == []


@pytest.mark.asyncio
@pytest.mark.unit
async def test_raising_handler_is_recorded_and_others_still_run():
    delivered = []

    async def broken(event):
        raise RuntimeError("smtp relay down")

    async def healthy(event):
        delivered.append(event.order_number)
        return True

    publisher = OrderEventPublisher()
    publisher.subscribe(OrderPlaced, broken)
    publisher.subscribe(OrderPlaced, healthy)

    publisher.publish(_placed())
    await publisher.drain()

    assert delivered == ["ORD-20260101120000-ABCDE"]
    assert len(publisher.failures) == 1
    failure = publisher.failures[0]
    assert failure.handler.endswith("broken")
    assert failure.error == "smtp relay down"
    assert failure.event.order_number == "ORD-20260101120000-ABCDE"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_false_result_counts_as_failed_delivery():
    async def refused(event):
        return False

    publisher = OrderEventPublisher()
    publisher.subscribe(OrderPlaced, refused)

    publisher.publish(_placed())
    await publisher.drain()

    assert [f.error for f in publisher.failures] == ["not delivered"]


# ---------------------------------------------------------------------------
# Notifier
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_order_placed_sends_confirmation_with_totals():
    email_client = RecordingEmailClient()
    publisher = build_event_publisher(email_client=email_client)

    publisher.publish(_placed())
    await publisher.drain()

    assert len(email_client.sent) == 1
    email = email_client.sent[0]
    assert email["to_email"] == "shopper@example.com"
    assert email["subject"] == "Order Confirmation - #ORD-20260101120000-ABCDE"
    assert "Hi Ada," in email["body"]
    assert "3x Canvas Tote - $60.00" in email["body"]
    assert "Tax: $6.00" in email["body"]
    assert "Shipping: $10.00" in email["body"]
    assert "Total: $76.00" in email["body"]
    assert publisher.failures == []


@pytest.mark.asyncio
@pytest.mark.unit
async def test_free_shipping_is_spelled_out():
    email_client = RecordingEmailClient()
    publisher = build_event_publisher(email_client=email_client)

    publisher.publish(_placed(shipping_cents=0, total_cents=6600))
    await publisher.drain()

    assert "Shipping: FREE" in email_client.sent[0]["body"]


@pytest.mark.asyncio
@pytest.mark.unit
async def test_order_shipped_includes_tracking_number():
    email_client = RecordingEmailClient()
    publisher = build_event_publisher(email_client=email_client)

    publisher.publish(_shipped())
    await publisher.drain()

    email = email_client.sent[0]
    assert email["subject"] == "Your Order Has Shipped - #ORD-20260101120000-ABCDE"
    assert "Tracking Number: 1Z999" in email["body"]


@pytest.mark.asyncio
@pytest.mark.unit
async def test_missing_email_skips_without_failure():
    email_client = RecordingEmailClient()
    publisher = build_event_publisher(email_client=email_client)

    publisher.publish(_placed(customer_email=None))
    publisher.publish(_shipped(customer_email=None))
    await publisher.drain()

    assert email_client.sent == []
    assert publisher.failures == []


@pytest.mark.asyncio
@pytest.mark.unit
async def test_missing_name_falls_back_to_customer():
    email_client = RecordingEmailClient()
    publisher = build_event_publisher(email_client=email_client)

    publisher.publish(_placed(customer_name=None))
    await publisher.drain()

    assert email_client.sent[0]["body"].startswith("Hi Customer,")


@pytest.mark.asyncio
@pytest.mark.unit
async def test_undeliverable_email_is_recorded():
    email_client = RecordingEmailClient(result=False)
    publisher = build_event_publisher(email_client=email_client)

    publisher.publish(_shipped())
    await publisher.drain()

    assert len(email_client.sent) == 1
    assert len(publisher.failures) == 1
    assert publisher.failures[0].handler.endswith("on_order_shipped")
