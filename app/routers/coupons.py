# app/routers/coupons.py
import uuid

from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from app.core.auth import require_admin
from app.database import get_session
from app.repositories.coupon_repo import CouponRepository
from app.schemas.coupon import CouponCreate, CouponRead, CouponUpdate
from app.services.coupon_service import CouponService

router = APIRouter(
    prefix="/admin/coupons",
    tags=["Admin Coupons"],
    dependencies=[Depends(require_admin)],
)

service = CouponService(CouponRepository())


@router.get("", response_model=list[CouponRead])
def list_coupons(
    session: Session = Depends(get_session),
    skip: int = 0,
    limit: int = 50,
):
    return service.list_coupons(session, skip, limit)


@router.post("", response_model=CouponRead, status_code=status.HTTP_201_CREATED)
def create_coupon(
    payload: CouponCreate,
    session: Session = Depends(get_session),
):
    return service.create_coupon(session, payload)


@router.put("/{coupon_id}", response_model=CouponRead)
def update_coupon(
    coupon_id: uuid.UUID,
    payload: CouponUpdate,
    session: Session = Depends(get_session),
):
    return service.update_coupon(session, coupon_id, payload)


@router.delete("/{coupon_id}", response_model=CouponRead)
def deactivate_coupon(
    coupon_id: uuid.UUID,
    session: Session = Depends(get_session),
):
    """
    Coupons are never hard-deleted; this sets is_active=false.
    """
    return service.deactivate_coupon(session, coupon_id)
