"""Business logic services."""

from catalog.services.curation_service import CurationService
from catalog.services.product_service import ProductService
from catalog.services.visibility_service import VisibilityService

__all__ = [
    "CurationService",
    "ProductService",
    "VisibilityService",
]
