"""Seed helpers shared by the test modules."""

import os
import uuid
from datetime import datetime, timedelta, timezone

from jose import jwt
from sqlmodel import Session

from app.models.cart import Cart, CartItem
from app.models.coupon import Coupon
from app.models.product import Product
from app.models.user import User
from app.repositories.cart_repo import CartRepository
from app.repositories.coupon_repo import CouponRepository
from app.repositories.notification_repo import NotificationRepository
from app.repositories.order_repo import OrderRepository
from app.repositories.payment_repo import PaymentRepository
from app.repositories.product_repo import ProductRepository
from app.schemas.order import OrderCreate
from app.services.coupon_service import CouponService
from app.services.notification_service import NotificationService
from app.services.order_service import OrderService

ADDRESS = {
    "street": "1 Main St",
    "city": "Springfield",
    "state": "IL",
    "zip_code": "62701",
    "country": "US",
}


def build_order_service(cls=OrderService, **kwargs) -> OrderService:
    return cls(
        order_repo=OrderRepository(),
        cart_repo=CartRepository(),
        product_repo=ProductRepository(),
        payment_repo=PaymentRepository(),
        coupon_service=CouponService(CouponRepository()),
        notifications=NotificationService(NotificationRepository()),
        **kwargs,
    )


def make_user(session: Session, role: str = "user") -> User:
    user_id = uuid.uuid4()
    user = User(
        id=user_id,
        email=f"{user_id.hex[:8]}@example.com",
        name="tester",
        role=role,
    )
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


def make_product(session: Session, **fields) -> Product:
    data = {
        "title": "Widget",
        "price": 10.0,
        "stock": 10,
        "images": ["https://cdn.example.com/widget.jpg"],
    }
    data.update(fields)
    product = Product(**data)
    session.add(product)
    session.commit()
    session.refresh(product)
    return product


def make_coupon(session: Session, **fields) -> Coupon:
    now = datetime.now(timezone.utc)
    data = {
        "code": "SAVE20",
        "discount_type": "percentage",
        "discount_value": 20,
        "valid_from": now - timedelta(days=1),
        "valid_until": now + timedelta(days=1),
    }
    data.update(fields)
    coupon = Coupon(**data)
    session.add(coupon)
    session.commit()
    session.refresh(coupon)
    return coupon


def fill_cart(session: Session, user: User, *lines: tuple[Product, int]) -> Cart:
    cart = CartRepository().get_or_create(session, user.id)
    for product, quantity in lines:
        session.add(
            CartItem(
                cart_id=cart.id,
                product_id=product.id,
                quantity=quantity,
                unit_price=product.effective_price,
            )
        )
    session.commit()
    return cart


def checkout_payload(**fields) -> OrderCreate:
    data = {"shipping_address": ADDRESS}
    data.update(fields)
    return OrderCreate.model_validate(data)


def auth_headers(user: User) -> dict[str, str]:
    token = jwt.encode(
        {"sub": str(user.id), "email": user.email},
        os.environ["JWT_SECRET"],
        algorithm="HS256",
    )
    return {"Authorization": f"Bearer {token}"}
