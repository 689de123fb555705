# app/schemas/notification.py
import uuid
from datetime import datetime
from typing import Any

from sqlmodel import SQLModel


class NotificationRead(SQLModel):
    id: uuid.UUID
    type: str
    title: str
    message: str
    data: dict[str, Any]
    is_read: bool
    read_at: datetime | None
    created_at: datetime
