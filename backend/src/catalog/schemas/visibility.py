"""Visibility change schemas."""

from pydantic import BaseModel, Field

from catalog.schemas.product import ProductResponse


class VisibilityUpdate(BaseModel):
    """Schema for a single visibility flag change.

    ``flag`` is left as a plain string so unknown names reach the rule
    engine and come back as an invalid-flag error.
    """

    flag: str = Field(..., min_length=1, examples=["bestSellers"])
    value: bool


class VisibilityResponse(BaseModel):
    """Successful visibility change."""

    success: bool = True
    product: ProductResponse


class VisibilityErrorResponse(BaseModel):
    """Failed visibility change."""

    success: bool = False
    is_limit_reached: bool = Field(False, serialization_alias="isLimitReached")
    message: str


class LimitReachedResponse(VisibilityErrorResponse):
    """Rejected grant of a collection-limited flag."""

    is_limit_reached: bool = Field(True, serialization_alias="isLimitReached")
    current_count: int = Field(..., serialization_alias="currentCount")
    limit: int
