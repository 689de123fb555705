# app/schemas/coupon.py
import uuid
from datetime import datetime, timezone
from typing import Literal

from pydantic import ConfigDict, field_validator, model_validator
from sqlmodel import SQLModel, Field

DiscountType = Literal["percentage", "fixed"]


def _to_utc(v: datetime | None) -> datetime | None:
    if v is None or v.tzinfo is None:
        return v
    return v.astimezone(timezone.utc)


def _as_utc(v: datetime) -> datetime:
    if v.tzinfo is None:
        return v.replace(tzinfo=timezone.utc)
    return v.astimezone(timezone.utc)


def coupon_rule_errors(
    discount_type: str,
    discount_value: float,
    valid_from: datetime,
    valid_until: datetime,
) -> list[str]:
    """
    Cross-field rules shared by coupon create and update.
    Naive datetimes are read as UTC.
    """
    errors: list[str] = []
    if _as_utc(valid_until) < _as_utc(valid_from):
        errors.append("valid_until must be after valid_from")
    if discount_type == "percentage" and discount_value > 100:
        errors.append("percentage discount cannot exceed 100")
    return errors


class CouponCreate(SQLModel):
    """
    Admin payload for a new coupon. The code is stored uppercase.
    """

    model_config = ConfigDict(extra="forbid")

    code: str = Field(min_length=1, max_length=50)
    discount_type: DiscountType
    discount_value: float = Field(ge=0)
    min_purchase_amount: float = Field(default=0, ge=0)
    max_discount_amount: float | None = Field(default=None, ge=0)
    valid_from: datetime
    valid_until: datetime
    usage_limit: int | None = Field(default=None, ge=1)
    is_active: bool = True

    @field_validator("code")
    @classmethod
    def normalize_code(cls, v: str) -> str:
        v = v.strip().upper()
        if not v:
            raise ValueError("code cannot be empty")
        return v

    @field_validator("valid_from", "valid_until")
    @classmethod
    def as_utc(cls, v: datetime) -> datetime:
        return _to_utc(v)

    @model_validator(mode="after")
    def check_rules(self):
        errors = coupon_rule_errors(
            self.discount_type, self.discount_value, self.valid_from, self.valid_until
        )
        if errors:
            raise ValueError("; ".join(errors))
        return self


class CouponUpdate(SQLModel):
    """
    Partial update. The code itself cannot be changed.
    """

    model_config = ConfigDict(extra="forbid")

    discount_type: DiscountType | None = None
    discount_value: float | None = Field(default=None, ge=0)
    min_purchase_amount: float | None = Field(default=None, ge=0)
    max_discount_amount: float | None = Field(default=None, ge=0)
    valid_from: datetime | None = None
    valid_until: datetime | None = None
    usage_limit: int | None = Field(default=None, ge=1)
    is_active: bool | None = None

    @field_validator("valid_from", "valid_until")
    @classmethod
    def as_utc(cls, v: datetime | None) -> datetime | None:
        return _to_utc(v)


class CouponRead(SQLModel):
    id: uuid.UUID
    code: str
    discount_type: DiscountType
    discount_value: float
    min_purchase_amount: float
    max_discount_amount: float | None
    valid_from: datetime
    valid_until: datetime
    usage_limit: int | None
    used_count: int
    is_active: bool
    created_at: datetime
