# app/models/notification.py
import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import JSON, Column
from sqlmodel import SQLModel, Field


class Notification(SQLModel, table=True):
    """
    In-app notification for a user.

    type: order_placed | order_status_updated | order_cancelled |
          payment_successful | payment_failed | general
    """

    __tablename__ = "notifications"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    user_id: uuid.UUID = Field(
        foreign_key="users.id",
        index=True,
    )

    type: str = Field(index=True)
    title: str
    message: str

    data: dict[str, Any] = Field(
        default_factory=dict,
        sa_column=Column(JSON, nullable=False),
    )

    is_read: bool = Field(default=False, index=True)
    read_at: datetime | None = None

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        index=True,
    )
