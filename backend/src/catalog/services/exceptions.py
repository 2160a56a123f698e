"""Error taxonomy shared by the curation services.

Routers translate these into HTTP responses; see ``catalog.main`` for the
status code mapping.
"""

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.exc import InterfaceError, OperationalError

logger = logging.getLogger(__name__)


class CatalogError(Exception):
    """Base class for catalog service errors."""


class InvalidFlagError(CatalogError):
    """Raised when a visibility change names an unknown flag."""

    def __init__(self, flag_name: str):
        self.flag_name = flag_name
        super().__init__(f"Unknown visibility flag: {flag_name!r}")


class LimitReachedError(CatalogError):
    """Raised when a collection-wide flag has no free slot left."""

    def __init__(self, current_count: int, limit: int, label: str = "Main Showcase"):
        self.current_count = current_count
        self.limit = limit
        self.label = label
        super().__init__(
            f"{current_count} of {limit} {label} slots used. "
            f"Remove one before adding another."
        )


class ProductNotFoundError(CatalogError):
    """Raised when the target product does not exist."""

    def __init__(self, product_id: object):
        self.product_id = product_id
        super().__init__(f"Product {product_id} not found")


class DuplicateSkuError(CatalogError):
    """Raised when a product is created with an SKU already in use."""

    def __init__(self, sku: str):
        self.sku = sku
        super().__init__(f"Product with SKU {sku!r} already exists")


class StoreUnavailableError(CatalogError):
    """Transient store failure; safe to retry."""

    def __init__(self, operation: str, message: str | None = None):
        self.operation = operation
        super().__init__(message or f"Catalog store unavailable during {operation}")


class VisibilityConflictError(StoreUnavailableError):
    """Raised when a product changed between read and conditional write."""

    def __init__(self, product_id: object):
        self.product_id = product_id
        super().__init__(
            "visibility change",
            f"Concurrent update conflict for product {product_id}",
        )


@contextmanager
def store_errors(operation: str) -> Iterator[None]:
    """Translate driver-level failures into ``StoreUnavailableError``."""
    try:
        yield
    except (OperationalError, InterfaceError, OSError) as exc:
        logger.error(f"Store failure during {operation}: {exc}")
        raise StoreUnavailableError(operation) from exc
