"""Product schemas for request/response validation."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field, computed_field, field_validator

from catalog.models.product import CATEGORIES, MONTHS, STATUSES

MIN_YEAR = 1950


def _max_year() -> int:
    return datetime.now().year + 10


def _check_category(v: str | None) -> str | None:
    if v is not None and v not in CATEGORIES:
        raise ValueError(f"Invalid category: {v}")
    return v


def _check_month(v: str | None) -> str | None:
    if v is not None and v not in MONTHS:
        raise ValueError(f"Invalid month: {v}")
    return v


def _check_status(v: str | None) -> str | None:
    if v is not None and v not in STATUSES:
        raise ValueError(f"Invalid status: {v}")
    return v


def _check_year(v: int | None) -> int | None:
    if v is not None and not MIN_YEAR <= v <= _max_year():
        raise ValueError(f"Year must be between {MIN_YEAR} and {_max_year()}")
    return v


class _CatalogFieldsModel(BaseModel):
    """Validates the enumerated catalog fields wherever a subclass declares them."""

    @field_validator("category", check_fields=False)
    @classmethod
    def validate_category(cls, v: str | None) -> str | None:
        return _check_category(v)

    @field_validator("month", check_fields=False)
    @classmethod
    def validate_month(cls, v: str | None) -> str | None:
        return _check_month(v)

    @field_validator("status", check_fields=False)
    @classmethod
    def validate_status(cls, v: str | None) -> str | None:
        return _check_status(v)

    @field_validator("year", check_fields=False)
    @classmethod
    def validate_year(cls, v: int | None) -> int | None:
        return _check_year(v)


class ProductCreate(_CatalogFieldsModel):
    """Schema for product creation request.

    Visibility flags are not accepted here; new products start with every
    flag cleared.
    """

    name: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    product_link: str = Field("", max_length=500)
    price: Decimal = Field(..., ge=0)
    category: str
    sku: str = Field(..., min_length=1, max_length=100)
    image_url: str | None = Field(None, max_length=500)
    year: int
    month: str
    status: str = "Active"
    tags: list[str] = Field(default_factory=list)
    stock: int = Field(0, ge=0)


class ProductUpdate(_CatalogFieldsModel):
    """Schema for product update request (descriptive fields only)."""

    name: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = Field(None, min_length=1)
    product_link: str | None = Field(None, max_length=500)
    price: Decimal | None = Field(None, ge=0)
    category: str | None = None
    sku: str | None = Field(None, min_length=1, max_length=100)
    image_url: str | None = Field(None, max_length=500)
    year: int | None = None
    month: str | None = None
    status: str | None = None
    tags: list[str] | None = None
    stock: int | None = Field(None, ge=0)


class ProductResponse(BaseModel):
    """Schema for product response."""

    product_id: UUID
    name: str
    description: str
    product_link: str
    price: Decimal
    category: str
    sku: str
    image_url: str | None
    year: int
    month: str
    status: str
    tags: list[str]
    stock: int
    views: int
    published: bool
    best_sellers: bool
    best_selling: bool
    editors_pick: bool
    featured_product: bool
    popular_featured: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ProductListResponse(BaseModel):
    """Schema for product list response."""

    products: list[ProductResponse]
    total: int
    page: int
    pages: int


class ProductStats(BaseModel):
    """Admin summary of the catalog."""

    total: int = 0
    by_status: dict[str, int] = Field(default_factory=dict)
    published_count: int = 0
    best_sellers_count: int = 0
    best_selling_count: int = 0
    editors_pick_count: int = 0
    featured_product_count: int = 0
    popular_featured_count: int = 0
    showcase_limit: int = 4

    @computed_field
    @property
    def showcase_usage(self) -> str:
        return f"{self.best_sellers_count} of {self.showcase_limit} used"
