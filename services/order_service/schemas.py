"""Pydantic schemas for order service."""

import math
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from services.order_service.models import OrderStatus, PaymentStatus

MAX_PAGE_SIZE = 100

# ============================================================================
# ORDER REQUEST SCHEMAS
# ============================================================================


class OrderItemCreate(BaseModel):
    product_id: uuid.UUID
    quantity: int = Field(..., ge=1)
    color: Optional[str] = Field(None, max_length=50)
    size: Optional[str] = Field(None, max_length=50)
    note: Optional[str] = Field(None, max_length=500)


class OrderCreate(BaseModel):
    """Place an order for the authenticated user."""

    address_id: uuid.UUID
    items: list[OrderItemCreate] = Field(..., min_length=1, max_length=100)
    payment_method: Optional[str] = Field(None, max_length=50)
    notes: Optional[str] = Field(None, max_length=2000)


class OrderStatusUpdate(BaseModel):
    """Update order status and/or tracking number (admin)."""

    model_config = ConfigDict(str_strip_whitespace=True)

    status: Optional[OrderStatus] = None
    tracking_number: Optional[str] = Field(None, min_length=1, max_length=100)
    admin_notes: Optional[str] = None

    @model_validator(mode="after")
    def require_change(self):
        if self.status is None and self.tracking_number is None:
            raise ValueError("Provide a status or a tracking_number")
        return self


class OrderFilter(BaseModel):
    status: Optional[OrderStatus] = None
    user_id: Optional[str] = None


# ============================================================================
# ORDER RESPONSE SCHEMAS
# ============================================================================


class AddressResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    recipient_name: str
    phone: Optional[str]
    line1: str
    line2: Optional[str]
    city: str
    state: Optional[str]
    postal_code: Optional[str]
    country: str


class OrderItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    product_id: uuid.UUID
    product_name: str
    product_image: Optional[str]
    quantity: int
    price: Decimal
    total: Decimal
    color: Optional[str]
    size: Optional[str]
    note: Optional[str]


class OrderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    order_number: str
    user_id: str
    address_id: Optional[uuid.UUID]
    address: Optional[AddressResponse] = None
    status: OrderStatus

    customer_email: Optional[str]
    customer_name: Optional[str]

    subtotal: Decimal
    tax: Decimal
    shipping: Decimal
    total: Decimal

    payment_method: str
    payment_status: PaymentStatus
    tracking_number: Optional[str]
    notes: Optional[str]

    shipped_at: Optional[datetime]
    delivered_at: Optional[datetime]
    cancelled_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime

    items: list[OrderItemResponse] = []


class Pagination(BaseModel):
    page: int
    page_size: int
    total_count: int
    total_pages: int
    has_next_page: bool
    has_prev_page: bool

    @classmethod
    def build(cls, page: int, page_size: int, total_count: int) -> "Pagination":
        total_pages = math.ceil(total_count / page_size) if total_count else 0
        return cls(
            page=page,
            page_size=page_size,
            total_count=total_count,
            total_pages=total_pages,
            has_next_page=page < total_pages,
            has_prev_page=page > 1,
        )


class OrderListResponse(BaseModel):
    """Paginated order list."""

    orders: list[OrderResponse]
    pagination: Pagination


# ============================================================================
# CART SCHEMAS
# ============================================================================


class CartItemCreate(BaseModel):
    product_id: uuid.UUID
    quantity: int = Field(1, ge=1)


class CartItemUpdate(BaseModel):
    quantity: int = Field(..., ge=1)


class CartItemResponse(BaseModel):
    id: uuid.UUID
    product_id: uuid.UUID
    quantity: int

    # Enriched from product
    product_name: str
    image_url: Optional[str] = None
    unit_price: Decimal
    line_total: Decimal
    in_stock: bool


class CartResponse(BaseModel):
    items: list[CartItemResponse] = []
    item_count: int = 0
    subtotal: Decimal = Decimal("0.00")
