"""Product management API endpoints."""

import math
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, status
from fastapi.responses import JSONResponse

from catalog.api.deps import CurationServiceDep, ProductServiceDep, VisibilityServiceDep
from catalog.schemas.curation import RelatedProductsResponse
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
from catalog.services.exceptions import (
    DuplicateSkuError,
    InvalidFlagError,
    LimitReachedError,
    ProductNotFoundError,
)

router = APIRouter()


def _not_found() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail="Product not found",
    )


def _visibility_error(status_code: int, message: str) -> JSONResponse:
    body = VisibilityErrorResponse(message=message)
    return JSONResponse(status_code=status_code, content=body.model_dump(by_alias=True))


@router.get("", response_model=ProductListResponse)
async def list_products(
    service: ProductServiceDep,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    year: int | None = None,
    month: str | None = None,
    category: str | None = None,
    status_filter: str | None = Query("Active", alias="status"),
    search: str | None = None,
    sort_by: str | None = Query(None, alias="sortBy"),
    best_selling: bool = Query(False, alias="bestSelling"),
    editors_pick: bool = Query(False, alias="editorsPick"),
):
    """Get products with filters, sorting and pagination.

    ``status=`` (empty) lists every status.
    """
    products, total = await service.get_all(
        skip=(page - 1) * limit,
        limit=limit,
        year=year,
        month=month,
        category=category,
        status=status_filter,
        search=search,
        sort_by=sort_by,
        best_selling=best_selling,
        editors_pick=editors_pick,
    )
    return ProductListResponse(
        products=products,
        total=total,
        page=page,
        pages=math.ceil(total / limit),
    )


@router.post("", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
async def create_product(
    product_data: ProductCreate,
    service: ProductServiceDep,
):
    """Create a new product with all visibility flags cleared."""
    try:
        return await service.create(product_data)
    except DuplicateSkuError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )


@router.get("/stats/summary", response_model=ProductStats)
async def get_product_stats(service: ProductServiceDep):
    """Catalog counts by status and visibility flag."""
    return await service.get_stats()


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(
    product_id: UUID,
    service: ProductServiceDep,
):
    """Get product by ID and count the view."""
    try:
        return await service.record_view(product_id)
    except ProductNotFoundError:
        raise _not_found()


@router.get("/{product_id}/related", response_model=RelatedProductsResponse)
async def get_related_products(
    product_id: UUID,
    service: CurationServiceDep,
):
    """Up to four related products (category, then year, then popular)."""
    try:
        products = await service.related_products(product_id)
    except ProductNotFoundError:
        raise _not_found()
    return RelatedProductsResponse(products=products)


@router.put("/{product_id}", response_model=ProductResponse)
async def update_product(
    product_id: UUID,
    product_data: ProductUpdate,
    service: ProductServiceDep,
):
    """Update descriptive fields. Visibility changes go through PATCH /visibility."""
    try:
        return await service.update(product_id, product_data)
    except ProductNotFoundError:
        raise _not_found()
    except DuplicateSkuError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )


@router.patch(
    "/{product_id}/visibility",
    response_model=VisibilityResponse,
    responses={
        status.HTTP_400_BAD_REQUEST: {"model": LimitReachedResponse},
        status.HTTP_404_NOT_FOUND: {"model": VisibilityErrorResponse},
    },
)
async def update_product_visibility(
    product_id: UUID,
    change: VisibilityUpdate,
    service: VisibilityServiceDep,
):
    """Set one visibility flag, applying exclusivity and slot limits."""
    try:
        product = await service.apply_visibility_change(
            product_id, change.flag, change.value
        )
    except ProductNotFoundError:
        return _visibility_error(status.HTTP_404_NOT_FOUND, "Product not found")
    except InvalidFlagError as e:
        return _visibility_error(status.HTTP_400_BAD_REQUEST, str(e))
    except LimitReachedError as e:
        body = LimitReachedResponse(
            message=str(e),
            current_count=e.current_count,
            limit=e.limit,
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=body.model_dump(by_alias=True),
        )

    return VisibilityResponse(product=product)


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_product(
    product_id: UUID,
    service: ProductServiceDep,
):
    """Permanently delete a product."""
    try:
        await service.delete(product_id)
    except ProductNotFoundError:
        raise _not_found()
