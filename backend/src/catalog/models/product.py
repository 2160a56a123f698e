"""Product model for catalog entries and their curation flags."""

import uuid
from decimal import Decimal

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    Uuid,
    false,
)
from sqlalchemy.orm import Mapped, mapped_column

from catalog.core.database import Base
from catalog.models.base import TimestampMixin

MONTHS: tuple[str, ...] = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)

STATUSES: tuple[str, ...] = ("Active", "Hidden", "Archived")

CATEGORIES: tuple[str, ...] = (
    "Furniture",
    "Accessories",
    "Arts",
    "Apps",
    "Agriculture",
    "Automative and Industrial",
    "Baby, Kids & Parenting",
    "Beauty, Personal Care & Wellness",
    "B2B, Industrial & Manufacturing",
    "D2C Brands & Consumer Products",
    "Fashion, Apparel & Accessories",
    "Entertainment",
    "Education, Learning & EdTech",
    "Electric Vehicles, Mobility & Transport",
    "Food, Beverage & FMCG",
    "Health, Fitness & Medical",
    "Home, Kitchen & Lifestyle",
    "Services & Marketplaces",
    "Sustainability & Green Products",
    "Sports & Outdoor",
    "Gift",
    "Tech & Electronics",
    "Miscellaneous",
    "Lighting",
    "Decor",
)


def _flag_column() -> Mapped[bool]:
    return mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=false(),
    )


class Product(Base, TimestampMixin):
    """A catalog product.

    The six boolean flag columns are written exclusively by
    ``VisibilityService``; every other writer treats them as read-only.
    """

    __tablename__ = "products"

    product_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    product_link: Mapped[str] = mapped_column(
        String(500),
        nullable=False,
        default="",
    )
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    category: Mapped[str] = mapped_column(String(100), nullable=False)
    sku: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    image_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    month: Mapped[str] = mapped_column(String(20), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="Active",
    )
    tags: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    stock: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    views: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Visibility flags
    published: Mapped[bool] = _flag_column()
    best_sellers: Mapped[bool] = _flag_column()
    best_selling: Mapped[bool] = _flag_column()
    editors_pick: Mapped[bool] = _flag_column()
    featured_product: Mapped[bool] = _flag_column()
    popular_featured: Mapped[bool] = _flag_column()

    # Bumped by every applied visibility write-set
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    __table_args__ = (
        CheckConstraint("price >= 0", name="chk_product_price_non_negative"),
        CheckConstraint("stock >= 0", name="chk_product_stock_non_negative"),
        CheckConstraint(
            "status IN ('Active', 'Hidden', 'Archived')",
            name="chk_product_status",
        ),
        Index("ix_products_year_month", "year", "month"),
        Index("ix_products_category_status", "category", "status"),
    )
