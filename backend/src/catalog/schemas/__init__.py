"""Pydantic schemas for request/response validation."""

from catalog.schemas.curation import (
    EditorsPickResponse,
    HomepageFeedResponse,
    MonthlyCollectionsResponse,
    MonthSectionResponse,
    PopularCollectionResponse,
    RelatedProductsResponse,
    TimelineResponse,
    YearCollectionResponse,
    YearlyCollectionsResponse,
)
from catalog.schemas.product import (
    ProductCreate,
    ProductListResponse,
    ProductResponse,
    ProductStats,
    ProductUpdate,
)
from catalog.schemas.visibility import (
    LimitReachedResponse,
    VisibilityErrorResponse,
    VisibilityResponse,
    VisibilityUpdate,
)

__all__ = [
    "ProductCreate",
    "ProductUpdate",
    "ProductResponse",
    "ProductListResponse",
    "ProductStats",
    "VisibilityUpdate",
    "VisibilityResponse",
    "LimitReachedResponse",
    "VisibilityErrorResponse",
    "TimelineResponse",
    "MonthSectionResponse",
    "YearCollectionResponse",
    "HomepageFeedResponse",
    "PopularCollectionResponse",
    "EditorsPickResponse",
    "MonthlyCollectionsResponse",
    "YearlyCollectionsResponse",
    "RelatedProductsResponse",
]
