"""API v1 routers."""

from catalog.api.v1 import curation, products

__all__ = ["curation", "products"]
