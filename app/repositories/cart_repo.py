# app/repositories/cart_repo.py
import uuid
from datetime import datetime, timezone

from sqlalchemy import delete
from sqlmodel import Session, select

from app.models.cart import Cart, CartItem


class CartRepository:

    # Cart
    def get_cart(self, session: Session, user_id: uuid.UUID) -> Cart | None:
        stmt = select(Cart).where(Cart.user_id == user_id)
        return session.exec(stmt).first()

    def get_or_create(self, session: Session, user_id: uuid.UUID) -> Cart:
        cart = self.get_cart(session, user_id)
        if cart is None:
            cart = Cart(user_id=user_id)
            session.add(cart)
            session.commit()
            session.refresh(cart)
        return cart

    # Items
    def list_items(self, session: Session, cart_id: uuid.UUID) -> list[CartItem]:
        stmt = (
            select(CartItem)
            .where(CartItem.cart_id == cart_id)
            .order_by(CartItem.created_at)
        )
        return session.exec(stmt).all()

    def get_item(
        self, session: Session, cart_id: uuid.UUID, product_id: uuid.UUID
    ) -> CartItem | None:
        stmt = select(CartItem).where(
            CartItem.cart_id == cart_id, CartItem.product_id == product_id
        )
        return session.exec(stmt).first()

    def save_item(self, session: Session, cart: Cart, item: CartItem) -> CartItem:
        cart.updated_at = datetime.now(timezone.utc)
        session.add(cart)
        session.add(item)
        session.commit()
        session.refresh(item)
        return item

    def delete_item(self, session: Session, cart: Cart, item: CartItem) -> None:
        cart.updated_at = datetime.now(timezone.utc)
        session.add(cart)
        session.delete(item)
        session.commit()

    def clear_cart(self, session: Session, user_id: uuid.UUID) -> None:
        """
        Empty the user's cart in a single statement.
        The cart row itself stays.
        """
        cart = self.get_cart(session, user_id)
        if cart is None:
            return
        session.exec(delete(CartItem).where(CartItem.cart_id == cart.id))
        cart.updated_at = datetime.now(timezone.utc)
        session.add(cart)
        session.commit()
