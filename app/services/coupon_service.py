# app/services/coupon_service.py
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlmodel import Session

from app.core.errors import (
    AppError,
    BadRequestError,
    CouponExhausted,
    CouponNotFound,
    MinPurchaseNotMet,
    NotFoundError,
    ValidationError,
)
from app.models.coupon import Coupon
from app.repositories.coupon_repo import CouponRepository, normalize_code
from app.schemas.coupon import CouponCreate, CouponUpdate, coupon_rule_errors

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CouponEvaluation:
    """
    Result of evaluating a coupon against a subtotal.

    `error` holds the typed failure when `valid` is False so callers can
    raise it as-is; `reason` is its message.
    """

    valid: bool
    discount: float = 0.0
    code: str | None = None
    reason: str | None = None
    error: AppError | None = None

    @classmethod
    def rejected(cls, error: AppError, code: str | None = None) -> "CouponEvaluation":
        return cls(valid=False, code=code, reason=error.message, error=error)


def apply_coupon_rules(coupon: Coupon, subtotal: float) -> CouponEvaluation:
    """
    Usage limit, minimum purchase and discount maths for an already
    looked-up, in-window coupon.

      - percentage: subtotal * value / 100, capped by max_discount_amount
      - fixed:      discount_value as-is (may exceed the subtotal)
    """
    if coupon.usage_limit is not None and coupon.used_count >= coupon.usage_limit:
        return CouponEvaluation.rejected(CouponExhausted(), coupon.code)

    if subtotal < coupon.min_purchase_amount:
        return CouponEvaluation.rejected(
            MinPurchaseNotMet(coupon.min_purchase_amount), coupon.code
        )

    if coupon.discount_type == "percentage":
        discount = subtotal * coupon.discount_value / 100
        if coupon.max_discount_amount is not None:
            discount = min(discount, coupon.max_discount_amount)
    else:
        discount = coupon.discount_value

    return CouponEvaluation(valid=True, discount=discount, code=coupon.code)


class CouponService:
    """
    Coupon evaluation (used by checkout) and admin management.

    evaluate() never touches used_count; OrderService increments it once
    the order has been written.
    """

    def __init__(self, repo: CouponRepository):
        self.repo = repo

    # ---- Evaluation ----

    def evaluate(
        self,
        session: Session,
        code: str,
        subtotal: float,
        now: datetime | None = None,
    ) -> CouponEvaluation:
        now = now or datetime.now(timezone.utc)
        normalized = normalize_code(code)

        coupon = self.repo.find_active_by_code(session, normalized, now)
        if coupon is None:
            logger.info("Coupon %s rejected: not found, inactive or out of window", normalized)
            return CouponEvaluation.rejected(CouponNotFound(), normalized)

        result = apply_coupon_rules(coupon, subtotal)
        if not result.valid:
            logger.info("Coupon %s rejected: %s", normalized, result.reason)
        return result

    def redeem(self, session: Session, code: str) -> bool:
        """
        Count one redemption; False if the usage limit was reached meanwhile.
        """
        return self.repo.increment_usage(session, code)

    # ---- Admin ----

    def list_coupons(self, session: Session, skip: int = 0, limit: int = 50) -> list[Coupon]:
        return self.repo.list(session, skip=skip, limit=limit)

    def get_coupon(self, session: Session, coupon_id: uuid.UUID) -> Coupon:
        coupon = self.repo.get_by_id(session, coupon_id)
        if not coupon:
            raise NotFoundError("Coupon not found")
        return coupon

    def create_coupon(self, session: Session, payload: CouponCreate) -> Coupon:
        if self.repo.get_by_code(session, payload.code) is not None:
            raise BadRequestError("Duplicate field value entered")
        coupon = Coupon(**payload.model_dump())
        return self.repo.create(session, coupon)

    def update_coupon(
        self,
        session: Session,
        coupon_id: uuid.UUID,
        payload: CouponUpdate,
    ) -> Coupon:
        """
        Partial update; the merged coupon must still pass the create rules.
        """
        coupon = self.get_coupon(session, coupon_id)
        for name, value in payload.model_dump(exclude_unset=True).items():
            setattr(coupon, name, value)

        errors = coupon_rule_errors(
            coupon.discount_type,
            coupon.discount_value,
            coupon.valid_from,
            coupon.valid_until,
        )
        if errors:
            session.rollback()
            raise ValidationError("Invalid coupon update", errors)

        return self.repo.update(session, coupon)

    def deactivate_coupon(self, session: Session, coupon_id: uuid.UUID) -> Coupon:
        """
        Soft delete: coupons referenced by past orders are kept.
        """
        coupon = self.get_coupon(session, coupon_id)
        coupon.is_active = False
        return self.repo.update(session, coupon)
