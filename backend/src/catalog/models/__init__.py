"""SQLAlchemy ORM models."""

from catalog.models.base import TimestampMixin
from catalog.models.curation_slot import CurationSlot
from catalog.models.product import CATEGORIES, MONTHS, STATUSES, Product

__all__ = [
    "TimestampMixin",
    "Product",
    "CurationSlot",
    "CATEGORIES",
    "MONTHS",
    "STATUSES",
]
