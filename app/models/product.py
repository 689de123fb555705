# app/models/product.py
import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, Column
from sqlmodel import SQLModel, Field


class Product(SQLModel, table=True):
    """
    Catalog entry.

    Checkout only reads price/discount_price/is_active and mutates `stock`
    through ProductRepository.decrement_stock / increment_stock.
    """

    __tablename__ = "products"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    title: str = Field(
        max_length=200,
        index=True,
        description="Display name of the product",
    )

    description: str | None = Field(
        default=None,
        description="Optional long description",
    )

    images: list[str] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False),
        description="Image URLs; the first one is the cover",
    )

    price: float = Field(
        ge=0,
        description="Regular unit price",
    )

    # Must be <= price when set (enforced in schemas)
    discount_price: float | None = Field(
        default=None,
        ge=0,
        description="Sale price; overrides price when present",
    )

    stock: int = Field(
        default=0,
        ge=0,
        description="Units currently in stock",
    )

    is_active: bool = Field(
        default=True,
        index=True,
        description="Whether this product can be sold",
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Creation timestamp (UTC)",
    )

    @property
    def effective_price(self) -> float:
        """discount_price if set, else price."""
        if self.discount_price is not None:
            return self.discount_price
        return self.price

    @property
    def cover_image(self) -> str | None:
        return self.images[0] if self.images else None
