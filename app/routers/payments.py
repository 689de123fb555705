# app/routers/payments.py
import uuid

from fastapi import APIRouter, Depends
from sqlmodel import Session

from app.core.auth import require_auth, require_admin
from app.database import get_session
from app.models.user import User
from app.repositories.notification_repo import NotificationRepository
from app.repositories.order_repo import OrderRepository
from app.repositories.payment_repo import PaymentRepository
from app.schemas.payment import PaymentRead, PaymentResultUpdate
from app.services.notification_service import NotificationService
from app.services.payment_service import PaymentService

router = APIRouter(prefix="/payments", tags=["Payments"])

service = PaymentService(
    PaymentRepository(),
    OrderRepository(),
    NotificationService(NotificationRepository()),
)


@router.get("/{payment_id}", response_model=PaymentRead)
def get_payment(
    payment_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    return service.get_payment(session, payment_id, current_user)


@router.post("/{payment_id}/cod", response_model=PaymentRead)
def confirm_cod(
    payment_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    return service.confirm_cod(session, payment_id, current_user.id)


@router.put(
    "/{payment_id}/status",
    response_model=PaymentRead,
    dependencies=[Depends(require_admin)],
)
def record_payment_result(
    payment_id: uuid.UUID,
    payload: PaymentResultUpdate,
    session: Session = Depends(get_session),
):
    """
    Apply a gateway outcome (completed / failed) to the payment and its order.
    """
    return service.record_gateway_result(session, payment_id, payload)
