from datetime import datetime, timedelta, timezone

import pytest

from app.core.errors import CouponExhausted, CouponNotFound, MinPurchaseNotMet
from app.models.coupon import Coupon
from app.repositories.coupon_repo import CouponRepository
from app.services.coupon_service import CouponService, apply_coupon_rules

from factories import make_coupon

NOW = datetime(2026, 6, 1, 12, 0, tzinfo=timezone.utc)


def _coupon(**fields) -> Coupon:
    data = {
        "code": "SAVE20",
        "discount_type": "percentage",
        "discount_value": 20,
        "valid_from": NOW - timedelta(days=1),
        "valid_until": NOW + timedelta(days=1),
    }
    data.update(fields)
    return Coupon(**data)


@pytest.fixture
def coupons():
    return CouponService(CouponRepository())


def test_percentage_discount():
    result = apply_coupon_rules(_coupon(), 100.0)
    assert result.valid
    assert result.discount == 20.0
    assert result.code == "SAVE20"


def test_percentage_discount_is_capped():
    result = apply_coupon_rules(_coupon(discount_value=50, max_discount_amount=15), 100.0)
    assert result.discount == 15


def test_fixed_discount_is_not_capped_by_subtotal():
    coupon = _coupon(code="FLAT50", discount_type="fixed", discount_value=50)
    result = apply_coupon_rules(coupon, 30.0)
    assert result.valid
    assert result.discount == 50


def test_fixed_discount_ignores_max_discount_amount():
    coupon = _coupon(discount_type="fixed", discount_value=50, max_discount_amount=10)
    assert apply_coupon_rules(coupon, 100.0).discount == 50


def test_usage_limit_checked_before_minimum():
    coupon = _coupon(usage_limit=3, used_count=3, min_purchase_amount=1000)
    result = apply_coupon_rules(coupon, 10.0)
    assert not result.valid
    assert isinstance(result.error, CouponExhausted)
    assert result.reason == "Coupon usage limit reached"


def test_minimum_purchase():
    result = apply_coupon_rules(_coupon(min_purchase_amount=50), 49.99)
    assert not result.valid
    assert isinstance(result.error, MinPurchaseNotMet)
    assert result.error.min_amount == 50

    assert apply_coupon_rules(_coupon(min_purchase_amount=50), 50.0).valid


def test_unlimited_coupon():
    assert apply_coupon_rules(_coupon(usage_limit=None, used_count=10_000), 10.0).valid


def test_evaluate_is_case_insensitive(session, coupons):
    make_coupon(session, valid_from=NOW - timedelta(days=1), valid_until=NOW + timedelta(days=1))

    result = coupons.evaluate(session, "  save20 ", 100.0, now=NOW)

    assert result.valid
    assert result.code == "SAVE20"
    assert result.discount == 20.0


@pytest.mark.parametrize(
    "fields, code",
    [
        ({}, "MISSING"),
        ({"is_active": False}, "SAVE20"),
        ({"valid_from": NOW + timedelta(hours=1)}, "SAVE20"),
        ({"valid_until": NOW - timedelta(seconds=1)}, "SAVE20"),
    ],
)
def test_evaluate_rejects_unknown_inactive_or_out_of_window(session, coupons, fields, code):
    data = {"valid_from": NOW - timedelta(days=1), "valid_until": NOW + timedelta(days=1)}
    data.update(fields)
    make_coupon(session, **data)

    result = coupons.evaluate(session, code, 100.0, now=NOW)

    assert not result.valid
    assert isinstance(result.error, CouponNotFound)
    assert result.reason == "Invalid or expired coupon code"


def test_window_bounds_are_inclusive(session, coupons):
    make_coupon(session, valid_from=NOW, valid_until=NOW + timedelta(days=1))
    assert coupons.evaluate(session, "SAVE20", 100.0, now=NOW).valid


def test_evaluate_does_not_count_usage(session, coupons):
    coupon = make_coupon(session, usage_limit=1)

    coupons.evaluate(session, "SAVE20", 100.0)
    coupons.evaluate(session, "SAVE20", 100.0)

    session.refresh(coupon)
    assert coupon.used_count == 0


def test_redeem_counts_until_limit(session, coupons):
    coupon = make_coupon(session, usage_limit=1)

    assert coupons.redeem(session, "SAVE20") is True
    assert coupons.redeem(session, "SAVE20") is False

    session.refresh(coupon)
    assert coupon.used_count == 1


def test_redeem_without_limit(session, coupons):
    coupon = make_coupon(session, usage_limit=None, used_count=41)

    assert coupons.redeem(session, "save20") is True

    session.refresh(coupon)
    assert coupon.used_count == 42
