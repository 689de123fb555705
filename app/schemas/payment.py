# app/schemas/payment.py
import uuid
from datetime import datetime
from typing import Literal

from pydantic import ConfigDict
from sqlmodel import SQLModel

from app.schemas.order import PaymentMethod

PaymentRecordStatus = Literal[
    "pending", "processing", "completed", "failed", "refunded", "cancelled"
]


class PaymentRead(SQLModel):
    id: uuid.UUID
    order_id: uuid.UUID
    user_id: uuid.UUID
    amount: float
    method: PaymentMethod
    status: PaymentRecordStatus
    transaction_id: str | None
    refund_amount: float
    created_at: datetime
    updated_at: datetime


class PaymentResultUpdate(SQLModel):
    """
    Outcome reported by a payment gateway (admin / webhook relay).
    """

    model_config = ConfigDict(extra="forbid")

    status: Literal["completed", "failed"]
    transaction_id: str | None = None
