# app/repositories/payment_repo.py
import uuid
from datetime import datetime, timezone

from sqlmodel import Session

from app.models.payment import Payment


class PaymentRepository:

    def get_by_id(self, session: Session, payment_id: uuid.UUID) -> Payment | None:
        return session.get(Payment, payment_id)

    def create(self, session: Session, payment: Payment) -> Payment:
        session.add(payment)
        session.commit()
        session.refresh(payment)
        return payment

    def update_status(
        self,
        session: Session,
        payment_id: uuid.UUID,
        status: str,
        **fields,
    ) -> Payment | None:
        """Set status (and any extra columns); None if the payment is gone."""
        payment = self.get_by_id(session, payment_id)
        if payment is None:
            return None
        payment.status = status
        for name, value in fields.items():
            setattr(payment, name, value)
        payment.updated_at = datetime.now(timezone.utc)
        session.add(payment)
        session.commit()
        session.refresh(payment)
        return payment
