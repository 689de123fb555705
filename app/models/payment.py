# app/models/payment.py
import uuid
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field


class Payment(SQLModel, table=True):
    """
    Payment lifecycle record, one per order.

    Gateway specifics (Stripe / PayPal) only show up as optional ids.
    """

    __tablename__ = "payments"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    order_id: uuid.UUID = Field(
        foreign_key="orders.id",
        unique=True,
        index=True,
    )

    user_id: uuid.UUID = Field(
        foreign_key="users.id",
        index=True,
    )

    amount: float

    # card | COD | PayPal | stripe
    method: str

    # pending | processing | completed | failed | refunded | cancelled
    status: str = Field(
        default="pending",
        index=True,
    )

    # NULLs do not collide on a unique index
    transaction_id: str | None = Field(
        default=None,
        unique=True,
    )

    payment_intent_id: str | None = None
    paypal_payment_id: str | None = None

    refund_amount: float = 0
    refund_reason: str | None = None

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )

    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
