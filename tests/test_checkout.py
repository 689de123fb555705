import threading
from concurrent.futures import ThreadPoolExecutor

import pytest
from sqlmodel import Session, select

from app.core.errors import (
    CouponExhausted,
    CouponNotFound,
    EmptyCart,
    InsufficientStock,
    MinPurchaseNotMet,
    PartialCheckoutFailure,
    ProductUnavailable,
)
from app.models.cart import CartItem
from app.models.coupon import Coupon
from app.models.notification import Notification
from app.models.order import Order, OrderItem
from app.models.payment import Payment
from app.models.product import Product
from app.services.order_service import OrderService

from factories import (
    build_order_service,
    checkout_payload,
    fill_cart,
    make_coupon,
    make_product,
    make_user,
)


def _all(session, model):
    return session.exec(select(model)).all()


def _stock(session, product):
    session.expire_all()
    return session.get(Product, product.id).stock


def test_checkout_without_coupon(session, order_service):
    user = make_user(session)
    mug = make_product(session, title="Mug", price=10.0, stock=10)
    lamp = make_product(session, title="Lamp", price=20.0, discount_price=15.0, stock=3)
    fill_cart(session, user, (mug, 2), (lamp, 3))

    order = order_service.create_order(session, user.id, checkout_payload())

    assert order.total_price == 65.0
    assert order.discount == 0
    assert order.coupon_code is None
    assert order.order_status == "pending"
    assert order.payment_status == "pending"
    assert order.payment_method == "COD"

    assert _stock(session, mug) == 8
    assert _stock(session, lamp) == 0
    assert _all(session, CartItem) == []

    payments = _all(session, Payment)
    assert len(payments) == 1
    assert payments[0].amount == 65.0
    assert payments[0].status == "pending"
    assert payments[0].order_id == order.id
    assert order.payment_id == payments[0].id


def test_order_items_are_snapshots_of_catalog_prices(session, order_service):
    user = make_user(session)
    lamp = make_product(session, title="Lamp", price=20.0, discount_price=15.0, stock=5)
    fill_cart(session, user, (lamp, 1))

    # Cart snapshot is stale; checkout must use the catalog price.
    lamp.discount_price = 12.5
    session.add(lamp)
    session.commit()

    order = order_service.create_order(session, user.id, checkout_payload())

    [item] = _all(session, OrderItem)
    assert item.order_id == order.id
    assert item.title == "Lamp"
    assert item.unit_price == 12.5
    assert item.image == "https://cdn.example.com/widget.jpg"
    assert order.total_price == 12.5


def test_non_cod_payment_starts_processing(session, order_service):
    user = make_user(session)
    mug = make_product(session)
    fill_cart(session, user, (mug, 1))

    order = order_service.create_order(
        session, user.id, checkout_payload(payment_method="card")
    )

    [payment] = _all(session, Payment)
    assert order.payment_method == "card"
    assert payment.method == "card"
    assert payment.status == "processing"


def test_checkout_records_order_placed_notification(session, order_service):
    user = make_user(session)
    fill_cart(session, user, (make_product(session), 1))

    order = order_service.create_order(session, user.id, checkout_payload())

    [note] = _all(session, Notification)
    assert note.user_id == user.id
    assert note.type == "order_placed"
    assert note.data == {"order_id": str(order.id)}


@pytest.mark.parametrize("with_cart_row", [False, True])
def test_empty_cart_has_no_side_effects(session, order_service, with_cart_row):
    user = make_user(session)
    coupon = make_coupon(session)
    if with_cart_row:
        fill_cart(session, user)

    with pytest.raises(EmptyCart):
        order_service.create_order(
            session, user.id, checkout_payload(coupon_code="SAVE20")
        )

    assert _all(session, Order) == []
    assert _all(session, Payment) == []
    session.refresh(coupon)
    assert coupon.used_count == 0


def test_percentage_coupon(session, order_service):
    user = make_user(session)
    fill_cart(session, user, (make_product(session, price=50.0), 2))
    coupon = make_coupon(session, code="SAVE20", discount_value=20)

    order = order_service.create_order(
        session, user.id, checkout_payload(coupon_code="save20")
    )

    assert order.discount == 20.0
    assert order.total_price == 80.0
    assert order.coupon_code == "SAVE20"
    session.refresh(coupon)
    assert coupon.used_count == 1


def test_fixed_coupon_larger_than_subtotal_goes_negative(session, order_service):
    user = make_user(session)
    fill_cart(session, user, (make_product(session, price=30.0), 1))
    make_coupon(session, code="FLAT50", discount_type="fixed", discount_value=50)

    order = order_service.create_order(
        session, user.id, checkout_payload(coupon_code="FLAT50")
    )

    assert order.discount == 50
    assert order.total_price == -20.0
    [payment] = _all(session, Payment)
    assert payment.amount == -20.0


def test_floor_at_zero_toggle(session):
    service = build_order_service(floor_total_at_zero=True)
    user = make_user(session)
    fill_cart(session, user, (make_product(session, price=30.0), 1))
    make_coupon(session, code="FLAT50", discount_type="fixed", discount_value=50)

    order = service.create_order(session, user.id, checkout_payload(coupon_code="FLAT50"))

    assert order.discount == 50
    assert order.total_price == 0.0


@pytest.mark.parametrize(
    "coupon_fields, code, error",
    [
        ({"usage_limit": 1, "used_count": 1}, "SAVE20", CouponExhausted),
        ({"min_purchase_amount": 500}, "SAVE20", MinPurchaseNotMet),
        ({"is_active": False}, "SAVE20", CouponNotFound),
        ({}, "NOPE", CouponNotFound),
    ],
)
def test_coupon_failures_abort_without_side_effects(
    session, order_service, coupon_fields, code, error
):
    user = make_user(session)
    mug = make_product(session, price=25.0, stock=4)
    fill_cart(session, user, (mug, 4))
    make_coupon(session, **coupon_fields)

    with pytest.raises(error):
        order_service.create_order(session, user.id, checkout_payload(coupon_code=code))

    assert _stock(session, mug) == 4
    assert _all(session, Order) == []
    assert len(_all(session, CartItem)) == 1


def test_inactive_product_is_unavailable(session, order_service):
    user = make_user(session)
    mug = make_product(session, title="Mug", stock=5)
    gone = make_product(session, title="Retired", is_active=False, stock=5)
    fill_cart(session, user, (mug, 1), (gone, 1))

    with pytest.raises(ProductUnavailable) as exc:
        order_service.create_order(session, user.id, checkout_payload())

    assert exc.value.title == "Retired"
    assert _stock(session, mug) == 5
    assert _all(session, Order) == []


def test_insufficient_stock_is_checked_for_every_item_first(session, order_service):
    user = make_user(session)
    mug = make_product(session, title="Mug", stock=5)
    lamp = make_product(session, title="Lamp", stock=1)
    fill_cart(session, user, (mug, 2), (lamp, 2))

    with pytest.raises(InsufficientStock) as exc:
        order_service.create_order(session, user.id, checkout_payload())

    assert exc.value.title == "Lamp"
    assert exc.value.available == 1
    assert _stock(session, mug) == 5
    assert _stock(session, lamp) == 1


class StockThiefOrderService(OrderService):
    """Drains one product between validation and reservation."""

    victim = None

    def _validate_cart_items(self, session, cart_items):
        lines = super()._validate_cart_items(session, cart_items)
        self.product_repo.decrement_stock(session, self.victim, 1)
        return lines


def test_lost_reservation_releases_earlier_lines(session):
    user = make_user(session)
    mug = make_product(session, title="Mug", stock=5)
    lamp = make_product(session, title="Lamp", stock=2)
    fill_cart(session, user, (mug, 3), (lamp, 2))
    service = build_order_service(cls=StockThiefOrderService)
    service.victim = lamp.id

    with pytest.raises(InsufficientStock) as exc:
        service.create_order(session, user.id, checkout_payload())

    assert exc.value.title == "Lamp"
    assert exc.value.available == 1
    assert _stock(session, mug) == 5
    assert _stock(session, lamp) == 1
    assert _all(session, Order) == []
    assert _all(session, Payment) == []


def test_failed_order_insert_releases_stock(session, order_service, monkeypatch):
    user = make_user(session)
    mug = make_product(session, stock=5)
    fill_cart(session, user, (mug, 2))

    def boom(*args, **kwargs):
        raise RuntimeError("insert failed")

    monkeypatch.setattr(order_service.order_repo, "create", boom)

    with pytest.raises(RuntimeError):
        order_service.create_order(session, user.id, checkout_payload())

    assert _stock(session, mug) == 5
    assert len(_all(session, CartItem)) == 1


def test_failure_after_order_write_is_partial_checkout(session, order_service, monkeypatch):
    user = make_user(session)
    mug = make_product(session, stock=5)
    fill_cart(session, user, (mug, 2))

    def boom(*args, **kwargs):
        raise RuntimeError("payments table unavailable")

    monkeypatch.setattr(order_service.payment_repo, "create", boom)

    with pytest.raises(PartialCheckoutFailure) as exc:
        order_service.create_order(session, user.id, checkout_payload())

    failure = exc.value
    assert failure.failed_step == "create_payment"
    assert "create_order" in failure.completed_steps
    assert "clear_cart" in failure.completed_steps

    [order] = _all(session, Order)
    assert order.id == failure.order_id
    assert order.payment_id is None
    assert _stock(session, mug) == 3
    assert _all(session, Payment) == []


def test_coupon_limit_reached_after_order_write(session, order_service, monkeypatch):
    user = make_user(session)
    fill_cart(session, user, (make_product(session, price=100.0), 1))
    make_coupon(session, usage_limit=1)
    monkeypatch.setattr(order_service.coupon_service, "redeem", lambda *a: False)

    with pytest.raises(PartialCheckoutFailure) as exc:
        order_service.create_order(session, user.id, checkout_payload(coupon_code="SAVE20"))

    assert exc.value.failed_step == "increment_coupon_usage"
    assert isinstance(exc.value.__cause__, CouponExhausted)


def test_notification_failure_does_not_fail_checkout(session, order_service, monkeypatch):
    user = make_user(session)
    mug = make_product(session, stock=5)
    fill_cart(session, user, (mug, 1))

    def boom(*args, **kwargs):
        raise RuntimeError("notifications down")

    monkeypatch.setattr(order_service.notifications.repo, "create", boom)

    order = order_service.create_order(
        session, user.id, checkout_payload(), email="buyer@example.com"
    )

    assert order.payment_id is not None
    assert _stock(session, mug) == 4


def test_coupon_usage_stops_at_limit(session, order_service):
    coupon = make_coupon(session, usage_limit=2, used_count=1)
    repo = order_service.coupon_service.repo

    assert repo.increment_usage(session, "save20") is True
    assert repo.increment_usage(session, "SAVE20") is False

    session.refresh(coupon)
    assert coupon.used_count == 2


class BarrierOrderService(OrderService):
    """Holds every checkout after validation until all have validated."""

    barrier: threading.Barrier

    def _validate_cart_items(self, session, cart_items):
        lines = super()._validate_cart_items(session, cart_items)
        self.barrier.wait(timeout=10)
        return lines


def test_parallel_checkouts_cannot_oversell(engine, session):
    user = make_user(session)
    mug = make_product(session, title="Mug", stock=5)
    fill_cart(session, user, (mug, 5))

    service = build_order_service(cls=BarrierOrderService)
    service.barrier = threading.Barrier(2)
    user_id = user.id

    def attempt():
        with Session(engine) as s:
            try:
                return service.create_order(s, user_id, checkout_payload()).id
            except InsufficientStock as exc:
                return exc

    with ThreadPoolExecutor(max_workers=2) as pool:
        results = [f.result() for f in [pool.submit(attempt), pool.submit(attempt)]]

    failures = [r for r in results if isinstance(r, InsufficientStock)]
    successes = [r for r in results if not isinstance(r, InsufficientStock)]
    assert len(successes) == 1
    assert len(failures) == 1
    assert failures[0].available == 0

    assert _stock(session, mug) == 0
    assert len(_all(session, Order)) == 1
    assert len(_all(session, Payment)) == 1


def test_coupon_row_untouched_by_evaluation(session, order_service):
    coupon = make_coupon(session)

    result = order_service.coupon_service.evaluate(session, "SAVE20", 100.0)

    assert result.valid
    session.refresh(coupon)
    assert session.get(Coupon, coupon.id).used_count == 0
