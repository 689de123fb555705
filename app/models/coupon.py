# app/models/coupon.py
import uuid
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field


class Coupon(SQLModel, table=True):
    """
    Discount coupon.

    - code is stored uppercase; lookups normalize the input the same way.
    - used_count only grows (checkout increments it, cancellation does not
      give usage back).
    """

    __tablename__ = "coupons"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    code: str = Field(
        max_length=50,
        unique=True,
        index=True,
    )

    # percentage | fixed
    discount_type: str = Field(
        description="percentage or fixed",
    )

    discount_value: float = Field(
        ge=0,
        description="Percent (0-100) or fixed amount",
    )

    min_purchase_amount: float = Field(
        default=0,
        ge=0,
    )

    # Caps percentage discounts only
    max_discount_amount: float | None = Field(
        default=None,
        ge=0,
    )

    valid_from: datetime
    valid_until: datetime

    usage_limit: int | None = Field(
        default=None,
        ge=1,
        description="Total redemptions allowed (None = unlimited)",
    )

    used_count: int = Field(
        default=0,
        ge=0,
    )

    is_active: bool = Field(
        default=True,
        index=True,
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
