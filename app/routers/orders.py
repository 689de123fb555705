# app/routers/orders.py
import uuid

from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from app.core.auth import require_auth, require_admin
from app.core.config import get_settings
from app.database import get_session
from app.models.user import User
from app.repositories.cart_repo import CartRepository
from app.repositories.coupon_repo import CouponRepository
from app.repositories.notification_repo import NotificationRepository
from app.repositories.order_repo import OrderRepository
from app.repositories.payment_repo import PaymentRepository
from app.repositories.product_repo import ProductRepository
from app.schemas.order import (
    OrderCreate,
    OrderPage,
    OrderRead,
    OrderStatus,
    OrderStatusUpdate,
    OrderSummaryRead,
    PaymentStatus,
)
from app.services.coupon_service import CouponService
from app.services.notification_service import NotificationService
from app.services.order_service import OrderService

settings = get_settings()

router = APIRouter(prefix="/orders", tags=["Orders"])

service = OrderService(
    order_repo=OrderRepository(),
    cart_repo=CartRepository(),
    product_repo=ProductRepository(),
    payment_repo=PaymentRepository(),
    coupon_service=CouponService(CouponRepository()),
    notifications=NotificationService(NotificationRepository()),
    floor_total_at_zero=settings.FLOOR_ORDER_TOTAL_AT_ZERO,
    default_payment_method=settings.DEFAULT_PAYMENT_METHOD,
)


# -------- User-facing endpoints --------


@router.post(
    "",
    response_model=OrderRead,
    status_code=status.HTTP_201_CREATED,
)
def create_order(
    payload: OrderCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    """
    Place an order from the current user's cart.
    """
    order = service.create_order(
        session, current_user.id, payload, email=current_user.email
    )
    return service.build_order_read(session, order)


@router.get("", response_model=list[OrderSummaryRead])
def list_my_orders(
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
    skip: int = 0,
    limit: int = 50,
):
    """
    The authenticated user's orders, newest first (without items).
    """
    return service.list_user_orders(session, current_user.id, skip, limit)


# -------- Admin endpoints --------


@router.get(
    "/admin/all",
    response_model=OrderPage,
    dependencies=[Depends(require_admin)],
)
def list_all_orders(
    session: Session = Depends(get_session),
    page: int = 1,
    limit: int = 10,
    status: OrderStatus | None = None,
    payment_status: PaymentStatus | None = None,
):
    """
    All orders, filterable by order status and payment status.
    """
    return service.list_all_orders(
        session,
        page=max(page, 1),
        limit=max(limit, 1),
        order_status=status,
        payment_status=payment_status,
    )


@router.put(
    "/{order_id}/status",
    response_model=OrderRead,
    dependencies=[Depends(require_admin)],
)
def update_order_status(
    order_id: uuid.UUID,
    payload: OrderStatusUpdate,
    session: Session = Depends(get_session),
    strict: bool = False,
):
    """
    Set order status and/or tracking number.

    Any status can follow any other; pass `strict=true` to only allow
    forward moves (and cancellation before shipping).
    """
    order = service.update_order_status(session, order_id, payload, strict=strict)
    return service.build_order_read(session, order)


# -------- Single order --------


@router.get("/{order_id}", response_model=OrderRead)
def get_my_order(
    order_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    return service.get_user_order(session, current_user.id, order_id)


@router.put("/{order_id}/cancel", response_model=OrderRead)
def cancel_order(
    order_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_auth),
):
    """
    Cancel an order that has not shipped yet.
    """
    order = service.cancel_order(session, order_id, current_user.id)
    return service.build_order_read(session, order)
