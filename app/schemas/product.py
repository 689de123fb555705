# app/schemas/product.py
import uuid
from datetime import datetime

from pydantic import ConfigDict, field_validator, model_validator
from sqlmodel import SQLModel, Field


class ProductCreate(SQLModel):
    """
    Payload for creating a product (admin).
    """

    model_config = ConfigDict(extra="forbid")

    title: str = Field(max_length=200)
    description: str | None = None
    images: list[str] = Field(default_factory=list)
    price: float = Field(ge=0)
    discount_price: float | None = Field(default=None, ge=0)
    stock: int = Field(default=0, ge=0)
    is_active: bool = True

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("title cannot be empty")
        return v

    @model_validator(mode="after")
    def discount_not_above_price(self):
        if self.discount_price is not None and self.discount_price > self.price:
            raise ValueError("Discount price must be less than or equal to regular price")
        return self


class ProductRead(SQLModel):
    """
    Product representation for clients.
    """

    id: uuid.UUID
    title: str
    description: str | None
    images: list[str]
    price: float
    discount_price: float | None
    effective_price: float
    stock: int
    is_active: bool
    created_at: datetime


class ProductUpdate(SQLModel):
    """
    Partial update payload for products.
    All fields are optional.
    """

    model_config = ConfigDict(extra="forbid")

    title: str | None = Field(default=None, max_length=200)
    description: str | None = None
    images: list[str] | None = None
    price: float | None = Field(default=None, ge=0)
    discount_price: float | None = Field(default=None, ge=0)
    stock: int | None = Field(default=None, ge=0)
    is_active: bool | None = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("title cannot be empty")
        return v
