# app/services/notification_service.py
import logging
import uuid
from datetime import datetime, timezone
from typing import Any

from sqlmodel import Session

from app.core.email_client import send_email
from app.core.errors import ForbiddenError, NotFoundError
from app.models.notification import Notification
from app.models.order import Order
from app.repositories.notification_repo import NotificationRepository

logger = logging.getLogger(__name__)


class NotificationService:
    """
    In-app notifications and transactional email.

    notify() and send_order_confirmation() are fire-and-forget: any failure
    is logged and swallowed so it can never change the outcome of the
    operation that triggered it.
    """

    def __init__(self, repo: NotificationRepository):
        self.repo = repo

    # ---- Fire-and-forget side effects ----

    def notify(
        self,
        session: Session,
        user_id: uuid.UUID,
        type: str,
        title: str,
        message: str,
        data: dict[str, Any] | None = None,
    ) -> Notification | None:
        try:
            return self.repo.create(
                session,
                Notification(
                    user_id=user_id,
                    type=type,
                    title=title,
                    message=message,
                    data=data or {},
                ),
            )
        except Exception:
            logger.exception("Notification '%s' for user %s failed", type, user_id)
            session.rollback()
            return None

    def send_order_confirmation(self, to_email: str | None, order: Order) -> bool:
        if not to_email:
            return False
        try:
            send_email(
                to_email=to_email,
                subject="Order Confirmation",
                text_body=(
                    f"Your order #{order.id} has been placed successfully. "
                    f"Total: ${order.total_price:.2f}"
                ),
            )
            return True
        except Exception as exc:
            logger.warning("Order confirmation email for %s failed: %s", order.id, exc)
            return False

    # ---- User-facing ----

    def list_for_user(
        self,
        session: Session,
        user_id: uuid.UUID,
        skip: int = 0,
        limit: int = 50,
        unread_only: bool = False,
    ) -> list[Notification]:
        return self.repo.list_for_user(session, user_id, skip, limit, unread_only)

    def mark_read(
        self,
        session: Session,
        user_id: uuid.UUID,
        notification_id: uuid.UUID,
    ) -> Notification:
        notification = self.repo.get_by_id(session, notification_id)
        if not notification:
            raise NotFoundError("Notification not found")
        if notification.user_id != user_id:
            raise ForbiddenError("Not your notification")
        if not notification.is_read:
            notification.is_read = True
            notification.read_at = datetime.now(timezone.utc)
            notification = self.repo.update(session, notification)
        return notification
