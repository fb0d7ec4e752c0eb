"""Pydantic schemas for the products feature."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ProductRecord(BaseModel):
    """Product row as returned by the product store."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: str
    seller_id: str
    name: str
    description: str | None = None
    price: float
    category: str | None = None
    brand: str | None = None
    stock: int = 0
    is_active: bool = True
    created_at: datetime
    updated_at: datetime


class ReviewRecord(BaseModel):
    """Review row as returned by the product store."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: str
    product_id: str
    user_id: str
    rating: int
    comment: str | None = None
    created_at: datetime


class ProductAttributeRecord(BaseModel):
    """Name/value attribute of a product."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: str
    product_id: str
    name: str
    value: str


class ProductImageRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: str
    product_id: str
    url: str
    alt_text: str | None = None
    is_primary: bool = False
    sort_order: int = 0


class ProductStats(BaseModel):
    """Aggregated review figures for one product."""

    model_config = ConfigDict(frozen=True)

    product_id: str
    review_count: int = 0
    average_rating: float | None = None


class ProductFilter(BaseModel):
    """Filters accepted by product listing and search.

    ``is_active`` defaults to ``True`` so storefront listings never show
    withdrawn products unless asked to.
    """

    model_config = ConfigDict(frozen=True)

    category: str | None = None
    brand: str | None = None
    min_price: float | None = Field(default=None, ge=0)
    max_price: float | None = Field(default=None, ge=0)
    in_stock: bool | None = None
    is_active: bool | None = True
    seller_id: str | None = None

    @model_validator(mode="after")
    def check_price_range(self) -> ProductFilter:
        if (
            self.min_price is not None
            and self.max_price is not None
            and self.min_price > self.max_price
        ):
            msg = "min_price must not exceed max_price"
            raise ValueError(msg)
        return self


class ProductCreate(BaseModel):
    """Payload used when creating a product."""

    name: str = Field(min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=5000)
    price: float = Field(ge=0)
    category: str | None = Field(default=None, max_length=80)
    brand: str | None = Field(default=None, max_length=80)
    stock: int = Field(default=0, ge=0)


class ProductUpdate(BaseModel):
    """Partial update; omitted fields keep their value."""

    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=5000)
    price: float | None = Field(default=None, ge=0)
    category: str | None = Field(default=None, max_length=80)
    brand: str | None = Field(default=None, max_length=80)
    stock: int | None = Field(default=None, ge=0)
    is_active: bool | None = None


class ReviewCreate(BaseModel):
    """Payload used when reviewing a product."""

    rating: int = Field(ge=1, le=5)
    comment: str | None = Field(default=None, max_length=2000)


class ReviewUpdate(BaseModel):
    """Partial review edit; omitted fields keep their value."""

    rating: int | None = Field(default=None, ge=1, le=5)
    comment: str | None = Field(default=None, max_length=2000)
