"""
Store-related email templates.
"""

from typing import Optional, Protocol

from libs.common.currency import format_dollars


class EmailSender(Protocol):
    async def send(self, to_email: str, subject: str, body: str) -> bool: ...


async def send_order_confirmation_email(
    client: EmailSender,
    to_email: str,
    customer_name: str,
    order_number: str,
    items: list[dict],  # [{"name": str, "quantity": int, "total_cents": int}]
    subtotal_cents: int,
    tax_cents: int,
    shipping_cents: int,
    total_cents: int,
) -> bool:
    """
    Send the order confirmation email right after an order is placed.
    """
    subject = f"Order Confirmation - #{order_number}"

    items_text = "\n".join(
        f"  - {item['quantity']}x {item['name']} - {format_dollars(item['total_cents'])}"
        for item in items
    )
    shipping_line = (
        "Shipping: FREE" if shipping_cents == 0 else f"Shipping: {format_dollars(shipping_cents)}"
    )

    body = f"""Hi {customer_name},

Thank you for your order. Your order number is #{order_number}.

Order Summary:
{items_text}

Subtotal: {format_dollars(subtotal_cents)}
Tax: {format_dollars(tax_cents)}
{shipping_line}
Total: {format_dollars(total_cents)}

We'll send you another email when your order ships.
"""
    return await client.send(to_email, subject, body)


async def send_order_shipped_email(
    client: EmailSender,
    to_email: str,
    customer_name: str,
    order_number: str,
    tracking_number: Optional[str] = None,
) -> bool:
    """
    Send the shipment notice when an order moves to SHIPPED.
    """
    subject = f"Your Order Has Shipped - #{order_number}"
    tracking_line = (
        f"\nTracking Number: {tracking_number}\n" if tracking_number else ""
    )

    body = f"""Hi {customer_name},

Your order #{order_number} has been shipped.
{tracking_line}
You should receive it within 3-5 business days.
"""
    return await client.send(to_email, subject, body)
