# app/repositories/coupon_repo.py
import uuid
from datetime import datetime, timezone

from sqlalchemy import or_, update
from sqlmodel import Session, col, select

from app.models.coupon import Coupon


def normalize_code(code: str) -> str:
    return code.strip().upper()


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class CouponRepository:
    """
    Data access layer for Coupon.

    Codes are matched case-insensitively by normalizing to uppercase
    on both write and read.
    """

    def get_by_id(self, session: Session, coupon_id: uuid.UUID) -> Coupon | None:
        return session.get(Coupon, coupon_id)

    def get_by_code(self, session: Session, code: str) -> Coupon | None:
        stmt = select(Coupon).where(Coupon.code == normalize_code(code))
        return session.exec(stmt).first()

    def find_active_by_code(
        self,
        session: Session,
        code: str,
        now: datetime,
    ) -> Coupon | None:
        """
        Coupon matching `code` that is active and valid at `now`, else None.

        The validity window is checked in Python: SQLite hands datetimes back
        without tzinfo, so both sides are normalized to UTC first.
        """
        coupon = self.get_by_code(session, code)
        if coupon is None or not coupon.is_active:
            return None
        now = as_utc(now)
        if not as_utc(coupon.valid_from) <= now <= as_utc(coupon.valid_until):
            return None
        return coupon

    def list(self, session: Session, skip: int = 0, limit: int = 50) -> list[Coupon]:
        stmt = select(Coupon).order_by(Coupon.created_at.desc()).offset(skip).limit(limit)
        return session.exec(stmt).all()

    def create(self, session: Session, coupon: Coupon) -> Coupon:
        session.add(coupon)
        session.commit()
        session.refresh(coupon)
        return coupon

    def update(self, session: Session, coupon: Coupon) -> Coupon:
        session.add(coupon)
        session.commit()
        session.refresh(coupon)
        return coupon

    def increment_usage(self, session: Session, code: str) -> bool:
        """
        used_count += 1, but only while used_count < usage_limit (or no limit).

        Single conditional UPDATE; returns False when the limit was already hit.
        """
        stmt = (
            update(Coupon)
            .where(
                Coupon.code == normalize_code(code),
                or_(
                    col(Coupon.usage_limit).is_(None),
                    Coupon.used_count < Coupon.usage_limit,
                ),
            )
            .values(used_count=Coupon.used_count + 1)
            .execution_options(synchronize_session=False)
        )
        result = session.exec(stmt)
        session.commit()
        return result.rowcount == 1
