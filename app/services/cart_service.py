# app/services/cart_service.py
import uuid

from sqlmodel import Session

from app.core.errors import BadRequestError, NotFoundError
from app.models.cart import CartItem
from app.models.product import Product
from app.repositories.cart_repo import CartRepository
from app.repositories.product_repo import ProductRepository
from app.schemas.cart import (
    CartItemCreate,
    CartItemUpdate,
    CartItemRead,
    CartSummary,
)


class CartService:
    """
    Business logic for cart operations.

    Responsibilities:
      - create the cart lazily on first access
      - validate product existence and active flag
      - enforce quantity <= stock at add/update time (checkout re-checks)
      - snapshot the effective price into unit_price
      - compute line totals and cart totals
    """

    def __init__(self, cart_repo: CartRepository, product_repo: ProductRepository):
        self.cart_repo = cart_repo
        self.product_repo = product_repo

    # ---- internal helpers ----

    def _get_valid_product(self, session: Session, product_id: uuid.UUID) -> Product:
        product = self.product_repo.get_by_id(session, product_id)
        if not product or not product.is_active:
            raise NotFoundError("The product you are adding is not available.")
        return product

    @staticmethod
    def _check_stock(product: Product, quantity: int) -> None:
        if product.stock < quantity:
            raise BadRequestError(f"Only {product.stock} items available in stock")

    # ---- public operations ----

    def get_cart_summary(
        self,
        session: Session,
        user_id: uuid.UUID,
    ) -> CartSummary:
        cart = self.cart_repo.get_or_create(session, user_id)
        items = self.cart_repo.list_items(session, cart.id)

        item_reads: list[CartItemRead] = []
        total_qty = 0
        total_price = 0.0

        for it in items:
            line_total = it.quantity * it.unit_price
            total_qty += it.quantity
            total_price += line_total

            item_reads.append(
                CartItemRead(
                    id=it.id,
                    product_id=it.product_id,
                    quantity=it.quantity,
                    unit_price=it.unit_price,
                    line_total=line_total,
                    created_at=it.created_at,
                )
            )

        return CartSummary(
            items=item_reads,
            total_quantity=total_qty,
            total_price=total_price,
        )

    def add_to_cart(
        self,
        session: Session,
        user_id: uuid.UUID,
        payload: CartItemCreate,
    ) -> CartSummary:
        """
        Add a product, or bump its quantity if it is already in the cart.
        """
        product = self._get_valid_product(session, payload.product_id)
        self._check_stock(product, payload.quantity)

        cart = self.cart_repo.get_or_create(session, user_id)
        existing = self.cart_repo.get_item(session, cart.id, payload.product_id)

        if existing:
            new_qty = existing.quantity + payload.quantity
            self._check_stock(product, new_qty)
            existing.quantity = new_qty
            existing.unit_price = product.effective_price
            self.cart_repo.save_item(session, cart, existing)
        else:
            item = CartItem(
                cart_id=cart.id,
                product_id=product.id,
                quantity=payload.quantity,
                unit_price=product.effective_price,
            )
            self.cart_repo.save_item(session, cart, item)

        return self.get_cart_summary(session, user_id)

    def update_quantity(
        self,
        session: Session,
        user_id: uuid.UUID,
        product_id: uuid.UUID,
        payload: CartItemUpdate,
    ) -> CartSummary:
        cart = self.cart_repo.get_or_create(session, user_id)
        item = self.cart_repo.get_item(session, cart.id, product_id)
        if not item:
            raise NotFoundError("Item not found in cart")

        product = self._get_valid_product(session, product_id)
        self._check_stock(product, payload.quantity)

        item.quantity = payload.quantity
        item.unit_price = product.effective_price
        self.cart_repo.save_item(session, cart, item)

        return self.get_cart_summary(session, user_id)

    def remove_item(
        self,
        session: Session,
        user_id: uuid.UUID,
        product_id: uuid.UUID,
    ) -> CartSummary:
        cart = self.cart_repo.get_or_create(session, user_id)
        item = self.cart_repo.get_item(session, cart.id, product_id)
        if not item:
            raise NotFoundError("Item not found in cart")

        self.cart_repo.delete_item(session, cart, item)
        return self.get_cart_summary(session, user_id)

    def clear_cart(
        self,
        session: Session,
        user_id: uuid.UUID,
    ) -> CartSummary:
        self.cart_repo.clear_cart(session, user_id)
        return CartSummary(items=[], total_quantity=0, total_price=0.0)
