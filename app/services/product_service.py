# app/services/product_service.py
import uuid

from sqlmodel import Session

from app.core.errors import NotFoundError, ValidationError
from app.models.product import Product
from app.repositories.product_repo import ProductRepository
from app.schemas.product import ProductCreate, ProductRead, ProductUpdate


def to_product_read(product: Product) -> ProductRead:
    return ProductRead(
        id=product.id,
        title=product.title,
        description=product.description,
        images=product.images,
        price=product.price,
        discount_price=product.discount_price,
        effective_price=product.effective_price,
        stock=product.stock,
        is_active=product.is_active,
        created_at=product.created_at,
    )


class ProductService:
    """
    Catalog reads (public) and admin create/update.
    """

    def __init__(self, repo: ProductRepository):
        self.repo = repo

    def list_products(
        self,
        session: Session,
        skip: int = 0,
        limit: int = 50,
        only_active: bool = True,
    ) -> list[ProductRead]:
        products = self.repo.list(session, skip=skip, limit=limit, only_active=only_active)
        return [to_product_read(p) for p in products]

    def get_product(self, session: Session, product_id: uuid.UUID) -> Product:
        product = self.repo.get_by_id(session, product_id)
        if not product:
            raise NotFoundError("Product not found")
        return product

    def create_product(self, session: Session, payload: ProductCreate) -> Product:
        return self.repo.create(session, Product(**payload.model_dump()))

    def update_product(
        self,
        session: Session,
        product_id: uuid.UUID,
        payload: ProductUpdate,
    ) -> Product:
        """
        Partial update; discount_price must stay <= price.
        """
        product = self.get_product(session, product_id)
        for name, value in payload.model_dump(exclude_unset=True).items():
            setattr(product, name, value)

        if product.discount_price is not None and product.discount_price > product.price:
            session.rollback()
            raise ValidationError(
                "Discount price must be less than or equal to regular price"
            )

        return self.repo.update(session, product)
