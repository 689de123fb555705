# app/models/order.py
import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import JSON, Column
from sqlmodel import SQLModel, Field


class Order(SQLModel, table=True):
    """
    Customer order.

    total_price = sum(item.unit_price * item.quantity) - discount
    """

    __tablename__ = "orders"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    user_id: uuid.UUID = Field(
        foreign_key="users.id",
        index=True,
    )

    total_price: float = Field(
        description="Amount due after discount",
    )

    discount: float = Field(
        default=0,
        ge=0,
    )

    coupon_code: str | None = Field(
        default=None,
        description="Normalized (uppercase) coupon code if one was applied",
    )

    # pending | paid | failed | refunded
    payment_status: str = Field(
        default="pending",
        index=True,
    )

    # pending | confirmed | processing | shipped | delivered | cancelled
    order_status: str = Field(
        default="pending",
        index=True,
    )

    # {street, city, state, zip_code, country}
    shipping_address: dict[str, Any] = Field(
        default_factory=dict,
        sa_column=Column(JSON, nullable=False),
    )

    tracking_number: str | None = Field(
        default=None,
        index=True,
    )

    # card | COD | PayPal | stripe
    payment_method: str = Field(
        default="COD",
    )

    payment_id: uuid.UUID | None = Field(
        default=None,
        description="Linked Payment row (set at the end of checkout)",
    )

    notes: str | None = None

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        index=True,
        description="Creation timestamp (UTC)",
    )

    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )


class OrderItem(SQLModel, table=True):
    """
    Line item snapshot, captured from the product at checkout time.
    Never updated afterwards.
    """

    __tablename__ = "order_items"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    order_id: uuid.UUID = Field(
        foreign_key="orders.id",
        index=True,
    )

    product_id: uuid.UUID = Field(
        foreign_key="products.id",
        index=True,
    )

    title: str

    quantity: int = Field(
        gt=0,
        description="Quantity ordered (>=1)",
    )

    unit_price: float = Field(
        description="Effective unit price at time of order",
    )

    image: str | None = None
