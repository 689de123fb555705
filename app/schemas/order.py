# app/schemas/order.py
import uuid
from datetime import datetime
from typing import Literal

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field

PaymentMethod = Literal["card", "COD", "PayPal", "stripe"]
PaymentStatus = Literal["pending", "paid", "failed", "refunded"]
OrderStatus = Literal[
    "pending", "confirmed", "processing", "shipped", "delivered", "cancelled"
]


def _strip_or_none(v: str | None) -> str | None:
    if v is None:
        return v
    v = v.strip()
    return v or None


class ShippingAddress(SQLModel):
    model_config = ConfigDict(extra="forbid")

    street: str
    city: str
    state: str | None = None
    zip_code: str | None = None
    country: str

    @field_validator("street", "city", "country")
    @classmethod
    def not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("field cannot be empty")
        return v


class OrderCreate(SQLModel):
    """
    Payload for creating an order from the current cart.

    User provides:
      - shipping_address
      - payment_method (defaults to COD)
      - coupon_code (optional, case-insensitive)
      - notes (optional)

    Backend derives:
      - user_id from token
      - items, prices, discount and total from cart + catalog
    """

    model_config = ConfigDict(extra="forbid")

    shipping_address: ShippingAddress
    payment_method: PaymentMethod | None = None
    coupon_code: str | None = Field(default=None, max_length=50)
    notes: str | None = Field(default=None, max_length=1000)

    @field_validator("coupon_code", "notes")
    @classmethod
    def normalize_optional(cls, v: str | None) -> str | None:
        return _strip_or_none(v)


class OrderItemRead(SQLModel):
    """
    Representation of a single order line item.
    """

    id: uuid.UUID
    product_id: uuid.UUID
    title: str
    quantity: int
    unit_price: float
    image: str | None = None
    line_total: float


class OrderRead(SQLModel):
    """
    Full order view including items.
    """

    id: uuid.UUID
    user_id: uuid.UUID
    items: list[OrderItemRead]
    subtotal: float
    discount: float
    total_price: float
    coupon_code: str | None
    payment_status: PaymentStatus
    order_status: OrderStatus
    shipping_address: dict
    tracking_number: str | None
    payment_method: PaymentMethod
    payment_id: uuid.UUID | None
    notes: str | None
    created_at: datetime


class OrderSummaryRead(SQLModel):
    """
    Lightweight representation of an order (without items).
    """

    id: uuid.UUID
    user_id: uuid.UUID
    total_price: float
    discount: float
    coupon_code: str | None
    payment_status: PaymentStatus
    order_status: OrderStatus
    payment_method: PaymentMethod
    tracking_number: str | None
    created_at: datetime


class OrderPage(SQLModel):
    """Admin listing with pagination metadata."""

    count: int
    total: int
    page: int
    pages: int
    data: list[OrderSummaryRead]


class OrderStatusUpdate(SQLModel):
    """
    Admin payload to change order status and/or tracking number.
    """

    model_config = ConfigDict(extra="forbid")

    order_status: OrderStatus | None = None
    tracking_number: str | None = None

    @field_validator("tracking_number")
    @classmethod
    def normalize_tracking(cls, v: str | None) -> str | None:
        return _strip_or_none(v)
