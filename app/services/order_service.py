# app/services/order_service.py
import logging
import math
import uuid
from dataclasses import dataclass, field
from datetime import datetime

from sqlmodel import Session

from app.core.errors import (
    AlreadyCancelled,
    BadRequestError,
    CouponExhausted,
    EmptyCart,
    InsufficientStock,
    NotCancellable,
    NotFoundError,
    PartialCheckoutFailure,
    ProductUnavailable,
)
from app.models.cart import CartItem
from app.models.order import Order, OrderItem
from app.models.payment import Payment
from app.repositories.cart_repo import CartRepository
from app.repositories.order_repo import OrderRepository
from app.repositories.payment_repo import PaymentRepository
from app.repositories.product_repo import ProductRepository
from app.schemas.order import (
    OrderCreate,
    OrderItemRead,
    OrderPage,
    OrderRead,
    OrderStatusUpdate,
    OrderSummaryRead,
)
from app.services.coupon_service import CouponService
from app.services.notification_service import NotificationService

logger = logging.getLogger(__name__)

# Happy-path order lifecycle, in order
ORDER_STATUS_FLOW: tuple[str, ...] = (
    "pending",
    "confirmed",
    "processing",
    "shipped",
    "delivered",
)

# Orders past this point have left the warehouse
NON_CANCELLABLE_STATUSES = frozenset({"shipped", "delivered"})


def is_forward_transition(current: str, new: str) -> bool:
    """
    Strict lifecycle check (only used when an admin asks for it):

      - moves along ORDER_STATUS_FLOW never go backwards
      - cancelled is reachable from pending / confirmed / processing only
      - nothing leaves cancelled
    """
    if current == "cancelled":
        return new == "cancelled"
    if new == "cancelled":
        return current not in NON_CANCELLABLE_STATUSES
    if current not in ORDER_STATUS_FLOW or new not in ORDER_STATUS_FLOW:
        return False
    return ORDER_STATUS_FLOW.index(new) >= ORDER_STATUS_FLOW.index(current)


@dataclass
class CheckoutLine:
    """A validated cart line, priced from the catalog."""

    product_id: uuid.UUID
    title: str
    quantity: int
    unit_price: float
    image: str | None = None

    @property
    def line_total(self) -> float:
        return self.unit_price * self.quantity


@dataclass
class CheckoutSaga:
    """
    Progress of one checkout.

    `reserved` lists stock already taken so it can be handed back if the
    order never gets written; once `order_id` is set there is no automatic
    compensation any more.
    """

    user_id: uuid.UUID
    completed_steps: list[str] = field(default_factory=list)
    reserved: list[CheckoutLine] = field(default_factory=list)
    order_id: uuid.UUID | None = None

    def mark(self, step: str) -> None:
        self.completed_steps.append(step)


class OrderService:
    """
    Business logic for orders.

    Responsibilities:
      - Checkout: cart -> order + payment, as a sequence of single-record
        writes (see create_order)
      - Cancellation with stock restore and refund bookkeeping
      - Admin status / tracking updates
      - Order listing and DTO building
    """

    def __init__(
        self,
        order_repo: OrderRepository,
        cart_repo: CartRepository,
        product_repo: ProductRepository,
        payment_repo: PaymentRepository,
        coupon_service: CouponService,
        notifications: NotificationService,
        floor_total_at_zero: bool = False,
        default_payment_method: str = "COD",
    ):
        self.order_repo = order_repo
        self.cart_repo = cart_repo
        self.product_repo = product_repo
        self.payment_repo = payment_repo
        self.coupon_service = coupon_service
        self.notifications = notifications
        self.floor_total_at_zero = floor_total_at_zero
        self.default_payment_method = default_payment_method

    # -------- Checkout --------

    def create_order(
        self,
        session: Session,
        user_id: uuid.UUID,
        payload: OrderCreate,
        email: str | None = None,
        now: datetime | None = None,
    ) -> Order:
        """
        Convert the user's cart into an Order + Payment.

        Steps:
          1. Load cart; EmptyCart if missing or empty.
          2. Re-read every product (price, stock, active) before any write.
          3. Evaluate the coupon against the subtotal.
          4. Reserve stock with one conditional decrement per line; on a
             shortfall, hand back what was taken and fail with
             InsufficientStock.
          5. Write the order with its item snapshots.
          6. Count the coupon redemption.
          7. Clear the cart.
          8. Create the payment record.
          9. Link payment to order.
         10. Notification + confirmation email (best-effort).

        Failures in 1-5 leave nothing behind. Failures in 6-9 raise
        PartialCheckoutFailure: the order exists and needs reconciliation.
        """
        saga = CheckoutSaga(user_id=user_id)

        # 1) Cart
        cart = self.cart_repo.get_cart(session, user_id)
        cart_items = self.cart_repo.list_items(session, cart.id) if cart else []
        if not cart_items:
            raise EmptyCart()
        saga.mark("load_cart")

        # 2) Validate every line against the catalog
        lines = self._validate_cart_items(session, cart_items)
        subtotal = sum(line.line_total for line in lines)
        saga.mark("validate_items")

        # 3) Coupon
        discount = 0.0
        coupon_code: str | None = None
        if payload.coupon_code:
            evaluation = self.coupon_service.evaluate(
                session, payload.coupon_code, subtotal, now
            )
            if not evaluation.valid:
                raise evaluation.error
            discount = evaluation.discount
            coupon_code = evaluation.code
            saga.mark("evaluate_coupon")

        total_price = subtotal - discount
        if self.floor_total_at_zero:
            total_price = max(total_price, 0.0)

        # 4) Stock
        self._reserve_stock(session, saga, lines)

        # 5) Order
        payment_method = payload.payment_method or self.default_payment_method
        order = Order(
            user_id=user_id,
            total_price=total_price,
            discount=discount,
            coupon_code=coupon_code,
            shipping_address=payload.shipping_address.model_dump(),
            payment_method=payment_method,
            notes=payload.notes,
        )
        items = [
            OrderItem(
                product_id=line.product_id,
                title=line.title,
                quantity=line.quantity,
                unit_price=line.unit_price,
                image=line.image,
            )
            for line in lines
        ]
        try:
            order = self.order_repo.create(session, order, items)
        except Exception:
            session.rollback()
            logger.exception("Order insert failed for user %s; releasing stock", user_id)
            self._release_stock(session, saga)
            raise
        saga.order_id = order.id
        saga.mark("create_order")
        logger.info(
            "Order %s created for user %s (subtotal=%.2f discount=%.2f total=%.2f)",
            order.id, user_id, subtotal, discount, total_price,
        )

        # 6-9) Post-order writes
        step = "increment_coupon_usage"
        try:
            if coupon_code:
                if not self.coupon_service.redeem(session, coupon_code):
                    raise CouponExhausted()
                saga.mark(step)

            step = "clear_cart"
            self.cart_repo.clear_cart(session, user_id)
            saga.mark(step)

            step = "create_payment"
            payment = self.payment_repo.create(
                session,
                Payment(
                    order_id=order.id,
                    user_id=user_id,
                    amount=total_price,
                    method=payment_method,
                    status="pending" if payment_method == "COD" else "processing",
                ),
            )
            saga.mark(step)

            step = "link_payment"
            order = self.order_repo.update_status(session, order, payment_id=payment.id)
            saga.mark(step)
        except Exception as exc:
            session.rollback()
            logger.exception(
                "Checkout for order %s failed at %s after %s",
                saga.order_id, step, saga.completed_steps,
            )
            raise PartialCheckoutFailure(saga.order_id, saga.completed_steps, step) from exc

        # 10) Out-of-band side effects
        self.notifications.notify(
            session,
            user_id,
            "order_placed",
            "Order Placed",
            f"Your order #{order.id} has been placed successfully",
            {"order_id": str(order.id)},
        )
        self.notifications.send_order_confirmation(email, order)

        return order

    def _validate_cart_items(
        self,
        session: Session,
        cart_items: list[CartItem],
    ) -> list[CheckoutLine]:
        """
        Re-read each product; never trust the cart's price or the stock it
        saw when the item was added.
        """
        lines: list[CheckoutLine] = []
        for ci in cart_items:
            product = self.product_repo.get_by_id(session, ci.product_id)
            if not product or not product.is_active:
                title = product.title if product else str(ci.product_id)
                raise ProductUnavailable(title)

            if product.stock < ci.quantity:
                raise InsufficientStock(product.title, product.stock)

            lines.append(
                CheckoutLine(
                    product_id=product.id,
                    title=product.title,
                    quantity=ci.quantity,
                    unit_price=product.effective_price,
                    image=product.cover_image,
                )
            )
        return lines

    def _reserve_stock(
        self,
        session: Session,
        saga: CheckoutSaga,
        lines: list[CheckoutLine],
    ) -> None:
        for line in lines:
            if self.product_repo.decrement_stock(session, line.product_id, line.quantity):
                saga.reserved.append(line)
                continue

            available = self.product_repo.get_stock(session, line.product_id) or 0
            logger.warning(
                "Stock reservation lost for %s (wanted %d, have %d); releasing %d line(s)",
                line.product_id, line.quantity, available, len(saga.reserved),
            )
            self._release_stock(session, saga)
            raise InsufficientStock(line.title, available)
        saga.mark("reserve_stock")

    def _release_stock(self, session: Session, saga: CheckoutSaga) -> None:
        while saga.reserved:
            line = saga.reserved.pop()
            self.product_repo.increment_stock(session, line.product_id, line.quantity)

    # -------- Cancellation --------

    def cancel_order(
        self,
        session: Session,
        order_id: uuid.UUID,
        user_id: uuid.UUID,
    ) -> Order:
        """
        Cancel one of the user's orders.

        - 404 unless the order belongs to the user.
        - Shipped / delivered orders cannot be cancelled.
        - Restores stock, flips paid -> refunded, marks the payment refunded.
        - Coupon usage is not given back.
        """
        order = self.order_repo.get_by_id(session, order_id)
        if not order or order.user_id != user_id:
            raise NotFoundError("Order not found")

        if order.order_status == "cancelled":
            raise AlreadyCancelled()

        if order.order_status in NON_CANCELLABLE_STATUSES:
            raise NotCancellable(order.order_status)

        # Status first: a retry after a crash below hits AlreadyCancelled
        # instead of restoring stock twice.
        fields = {"order_status": "cancelled"}
        if order.payment_status == "paid":
            fields["payment_status"] = "refunded"
        order = self.order_repo.update_status(session, order, **fields)

        for item in self.order_repo.list_items_for_order(session, order.id):
            self.product_repo.increment_stock(session, item.product_id, item.quantity)

        if order.payment_id:
            self.payment_repo.update_status(session, order.payment_id, "refunded")

        logger.info("Order %s cancelled by user %s", order.id, user_id)

        self.notifications.notify(
            session,
            user_id,
            "order_cancelled",
            "Order Cancelled",
            f"Your order #{order.id} has been cancelled",
            {"order_id": str(order.id)},
        )
        session.refresh(order)
        return order

    # -------- Admin operations --------

    def update_order_status(
        self,
        session: Session,
        order_id: uuid.UUID,
        payload: OrderStatusUpdate,
        strict: bool = False,
    ) -> Order:
        """
        Set order_status and/or tracking_number.

        Any status may follow any other unless `strict` is set, in which
        case is_forward_transition() must allow the move.
        """
        order = self.order_repo.get_by_id(session, order_id)
        if not order:
            raise NotFoundError("Order not found")

        fields: dict[str, str] = {}
        if payload.order_status:
            if strict and not is_forward_transition(order.order_status, payload.order_status):
                raise BadRequestError(
                    f"Invalid status transition: {order.order_status} -> {payload.order_status}"
                )
            fields["order_status"] = payload.order_status
        if payload.tracking_number:
            fields["tracking_number"] = payload.tracking_number

        order = self.order_repo.update_status(session, order, **fields)

        self.notifications.notify(
            session,
            order.user_id,
            "order_status_updated",
            "Order Status Updated",
            f"Your order #{order.id} status has been updated to {order.order_status}",
            {"order_id": str(order.id), "order_status": order.order_status},
        )
        session.refresh(order)
        return order

    def list_all_orders(
        self,
        session: Session,
        page: int = 1,
        limit: int = 10,
        order_status: str | None = None,
        payment_status: str | None = None,
    ) -> OrderPage:
        orders = self.order_repo.list_all(
            session,
            skip=(page - 1) * limit,
            limit=limit,
            order_status=order_status,
            payment_status=payment_status,
        )
        total = self.order_repo.count_all(session, order_status, payment_status)
        return OrderPage(
            count=len(orders),
            total=total,
            page=page,
            pages=math.ceil(total / limit) if limit else 0,
            data=[OrderSummaryRead.model_validate(o) for o in orders],
        )

    # -------- User-facing reads --------

    def list_user_orders(
        self,
        session: Session,
        user_id: uuid.UUID,
        skip: int = 0,
        limit: int = 50,
    ) -> list[Order]:
        return self.order_repo.list_for_user(session, user_id, skip, limit)

    def get_user_order(
        self,
        session: Session,
        user_id: uuid.UUID,
        order_id: uuid.UUID,
    ) -> OrderRead:
        """
        - 404 if order not found or does not belong to this user.
        """
        order = self.order_repo.get_by_id(session, order_id)
        if not order or order.user_id != user_id:
            raise NotFoundError("Order not found")
        return self.build_order_read(session, order)

    # -------- Helper DTO builder --------

    def build_order_read(self, session: Session, order: Order) -> OrderRead:
        items = self.order_repo.list_items_for_order(session, order.id)
        item_dtos = [
            OrderItemRead(
                id=it.id,
                product_id=it.product_id,
                title=it.title,
                quantity=it.quantity,
                unit_price=it.unit_price,
                image=it.image,
                line_total=it.unit_price * it.quantity,
            )
            for it in items
        ]
        return OrderRead(
            id=order.id,
            user_id=order.user_id,
            items=item_dtos,
            subtotal=sum(it.line_total for it in item_dtos),
            discount=order.discount,
            total_price=order.total_price,
            coupon_code=order.coupon_code,
            payment_status=order.payment_status,
            order_status=order.order_status,
            shipping_address=order.shipping_address,
            tracking_number=order.tracking_number,
            payment_method=order.payment_method,
            payment_id=order.payment_id,
            notes=order.notes,
            created_at=order.created_at,
        )
