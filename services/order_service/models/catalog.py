"""Catalog models: the product rows orders are placed against."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from libs.common.currency import cents_to_dollars
from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    Integer,
    String,
    Text,
    Uuid,
    true,
)
from sqlalchemy.orm import Mapped, mapped_column

# ============================================================================
# PRODUCT MODEL
# ============================================================================


class Product(Base):
    """Sellable product.

    ``stock`` and ``sold_count`` belong to the inventory ledger; nothing else
    writes them.
    """

    __tablename__ = "store_products"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[Optional[str]] = mapped_column(String(255), unique=True, nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Current selling price in cents
    price_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    images: Mapped[list] = mapped_column(JSON, default=list, nullable=False)

    # Stock levels
    stock: Mapped[int] = mapped_column(
        Integer, default=0, server_default="0", nullable=False
    )
    sold_count: Mapped[int] = mapped_column(
        Integer, default=0, server_default="0", nullable=False
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean, default=True, server_default=true(), nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    __table_args__ = (
        CheckConstraint("stock >= 0", name="non_negative_stock"),
        CheckConstraint("sold_count >= 0", name="non_negative_sold_count"),
        CheckConstraint("price_cents >= 0", name="non_negative_price"),
    )

    @property
    def price(self) -> Decimal:
        return cents_to_dollars(self.price_cents)

    @property
    def primary_image(self) -> Optional[str]:
        return self.images[0] if self.images else None

    def __repr__(self):
        return f"<Product {self.name} stock={self.stock}>"
