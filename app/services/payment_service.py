# app/services/payment_service.py
import logging
import uuid

from sqlmodel import Session

from app.core.errors import BadRequestError, ForbiddenError, NotFoundError
from app.models.payment import Payment
from app.models.user import User
from app.repositories.order_repo import OrderRepository
from app.repositories.payment_repo import PaymentRepository
from app.schemas.payment import PaymentResultUpdate
from app.services.notification_service import NotificationService

logger = logging.getLogger(__name__)


class PaymentService:
    """
    Payment record lifecycle.

    Gateway calls are out of scope; this only applies the status changes a
    gateway outcome implies on the Payment and its Order.
    """

    def __init__(
        self,
        payment_repo: PaymentRepository,
        order_repo: OrderRepository,
        notifications: NotificationService,
    ):
        self.payment_repo = payment_repo
        self.order_repo = order_repo
        self.notifications = notifications

    def _get(self, session: Session, payment_id: uuid.UUID) -> Payment:
        payment = self.payment_repo.get_by_id(session, payment_id)
        if not payment:
            raise NotFoundError("Payment not found")
        return payment

    def get_payment(self, session: Session, payment_id: uuid.UUID, user: User) -> Payment:
        payment = self._get(session, payment_id)
        if payment.user_id != user.id and user.role != "admin":
            raise ForbiddenError("Not authorized to view this payment")
        return payment

    def record_gateway_result(
        self,
        session: Session,
        payment_id: uuid.UUID,
        payload: PaymentResultUpdate,
    ) -> Payment:
        """
        completed -> payment completed, order paid
        failed    -> payment failed, order payment_status failed
        """
        payment = self._get(session, payment_id)
        if payment.status in ("refunded", "cancelled"):
            raise BadRequestError(f"Payment is already {payment.status}")

        extra = {}
        if payload.transaction_id:
            extra["transaction_id"] = payload.transaction_id
        payment = self.payment_repo.update_status(session, payment.id, payload.status, **extra)

        order = self.order_repo.get_by_id(session, payment.order_id)
        succeeded = payload.status == "completed"
        if order is not None:
            self.order_repo.update_status(
                session, order, payment_status="paid" if succeeded else "failed"
            )
        else:
            logger.error("Payment %s points at missing order %s", payment.id, payment.order_id)

        logger.info("Payment %s marked %s", payment.id, payload.status)

        if succeeded:
            self.notifications.notify(
                session,
                payment.user_id,
                "payment_successful",
                "Payment Successful",
                f"Payment for order #{payment.order_id} has been received",
                {"order_id": str(payment.order_id), "payment_id": str(payment.id)},
            )
        else:
            self.notifications.notify(
                session,
                payment.user_id,
                "payment_failed",
                "Payment Failed",
                f"Payment for order #{payment.order_id} failed",
                {"order_id": str(payment.order_id), "payment_id": str(payment.id)},
            )
        session.refresh(payment)
        return payment

    def confirm_cod(self, session: Session, payment_id: uuid.UUID, user_id: uuid.UUID) -> Payment:
        """
        Customer confirms cash on delivery; the payment stays pending until
        the courier collects.
        """
        payment = self._get(session, payment_id)
        if payment.user_id != user_id:
            raise NotFoundError("Payment not found")
        if payment.method != "COD":
            raise BadRequestError("Payment method is not COD")
        if payment.status in ("refunded", "cancelled"):
            raise BadRequestError(f"Payment is already {payment.status}")
        return self.payment_repo.update_status(session, payment.id, "pending")
