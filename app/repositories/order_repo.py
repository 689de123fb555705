# app/repositories/order_repo.py
import uuid
from datetime import datetime, timezone

from sqlalchemy import func
from sqlmodel import Session, select

from app.models.order import Order, OrderItem


class OrderRepository:
    """
    Data access layer for orders and order_items.

    NOTE:
      - Every write commits on its own. An order and its item snapshots are
        written together in one commit; checkout steps that follow are
        separate commits coordinated by OrderService.
    """

    # ---- Orders ----

    def list_for_user(
        self,
        session: Session,
        user_id: uuid.UUID,
        skip: int = 0,
        limit: int = 50,
    ) -> list[Order]:
        stmt = (
            select(Order)
            .where(Order.user_id == user_id)
            .order_by(Order.created_at.desc())
            .offset(skip)
            .limit(limit)
        )
        return session.exec(stmt).all()

    def _filtered(self, stmt, order_status: str | None, payment_status: str | None):
        if order_status:
            stmt = stmt.where(Order.order_status == order_status)
        if payment_status:
            stmt = stmt.where(Order.payment_status == payment_status)
        return stmt

    def list_all(
        self,
        session: Session,
        skip: int = 0,
        limit: int = 10,
        order_status: str | None = None,
        payment_status: str | None = None,
    ) -> list[Order]:
        stmt = self._filtered(select(Order), order_status, payment_status)
        stmt = stmt.order_by(Order.created_at.desc()).offset(skip).limit(limit)
        return session.exec(stmt).all()

    def count_all(
        self,
        session: Session,
        order_status: str | None = None,
        payment_status: str | None = None,
    ) -> int:
        stmt = self._filtered(
            select(func.count()).select_from(Order), order_status, payment_status
        )
        return session.exec(stmt).one()

    def get_by_id(self, session: Session, order_id: uuid.UUID) -> Order | None:
        return session.get(Order, order_id)

    def create(
        self,
        session: Session,
        order: Order,
        items: list[OrderItem],
    ) -> Order:
        """
        Insert the order together with its item snapshots.
        """
        session.add(order)
        session.flush()  # Assign PK
        for item in items:
            item.order_id = order.id
        session.add_all(items)
        session.commit()
        session.refresh(order)
        return order

    def update_order(self, session: Session, order: Order) -> Order:
        order.updated_at = datetime.now(timezone.utc)
        session.add(order)
        session.commit()
        session.refresh(order)
        return order

    def update_status(self, session: Session, order: Order, **fields) -> Order:
        for name, value in fields.items():
            setattr(order, name, value)
        return self.update_order(session, order)

    # ---- Order items ----

    def list_items_for_order(
        self,
        session: Session,
        order_id: uuid.UUID,
    ) -> list[OrderItem]:
        stmt = select(OrderItem).where(OrderItem.order_id == order_id)
        return session.exec(stmt).all()
