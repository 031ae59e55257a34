"""
Model factories for creating valid test data.

Every factory produces a valid, insertable SQLAlchemy model instance.
Override any field via kwargs.

Usage:
    product = ProductFactory.create(stock=5, price_cents=2000)
    await store.add(product)
"""

import uuid
from datetime import datetime, timezone

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _uuid() -> uuid.UUID:
    return uuid.uuid4()


def _now() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


class ProductFactory:
    @staticmethod
    def create(**overrides):
        from services.order_service.models import Product

        product_id = overrides.pop("id", None) or _uuid()
        defaults = {
            "id": product_id,
            "name": "Canvas Tote",
            "slug": f"canvas-tote-{product_id.hex[:8]}",
            "description": "Sturdy everyday bag",
            "price_cents": 2000,
            "images": [f"https://cdn.example.com/{product_id.hex[:8]}.jpg"],
            "stock": 5,
            "sold_count": 0,
            "is_active": True,
            "created_at": _now(),
            "updated_at": _now(),
        }
        defaults.update(overrides)
        return Product(**defaults)


# ---------------------------------------------------------------------------
# Commerce
# ---------------------------------------------------------------------------


class AddressFactory:
    @staticmethod
    def create(**overrides):
        from services.order_service.models import Address

        defaults = {
            "id": _uuid(),
            "user_id": f"user-{uuid.uuid4().hex[:8]}",
            "recipient_name": "Test Shopper",
            "phone": "+1 555 0100",
            "line1": "1 Market Street",
            "line2": None,
            "city": "Springfield",
            "state": "IL",
            "postal_code": "62701",
            "country": "US",
            "created_at": _now(),
        }
        defaults.update(overrides)
        return Address(**defaults)


class CartItemFactory:
    @staticmethod
    def create(**overrides):
        from services.order_service.models import CartItem

        defaults = {
            "id": _uuid(),
            "user_id": f"user-{uuid.uuid4().hex[:8]}",
            "product_id": _uuid(),
            "quantity": 1,
            "created_at": _now(),
            "updated_at": _now(),
        }
        defaults.update(overrides)
        return CartItem(**defaults)
