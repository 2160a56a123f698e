"""Curated storefront sections: timeline, homepage and featured collections."""

import math

from fastapi import APIRouter, Query

from catalog.api.deps import CurationServiceDep
from catalog.schemas.curation import (
    EditorsPickResponse,
    HomepageFeedResponse,
    MonthlyCollectionsResponse,
    MonthSectionResponse,
    PopularCollectionResponse,
    TimelineResponse,
    TimelineYearResponse,
    YearCollectionResponse,
    YearlyCollectionsResponse,
)

router = APIRouter()


@router.get("/timeline", response_model=TimelineResponse)
async def get_timeline(
    service: CurationServiceDep,
    status: str | None = Query("Active"),
    month_order: str = Query("asc", alias="monthOrder", pattern="^(asc|desc)$"),
):
    """Products grouped by year (newest first) and month.

    An empty ``status`` includes every lifecycle status.
    """
    years = await service.timeline(status=status or None, month_order=month_order)
    return TimelineResponse(
        years=[TimelineYearResponse.model_validate(year) for year in years]
    )


@router.get("/featured/homepage", response_model=HomepageFeedResponse)
async def get_homepage_feed(service: CurationServiceDep):
    """All homepage sections in one response."""
    feed = await service.homepage_feed()
    return HomepageFeedResponse.model_validate(feed)


@router.get("/featured/bestsellers", response_model=PopularCollectionResponse)
async def get_popular_collection(
    service: CurationServiceDep,
    limit: int = Query(50, ge=1, le=100),
):
    """The popular-featured product plus the rest of the best-selling set."""
    collection = await service.popular_collection(limit=limit)
    return PopularCollectionResponse(
        popular_featured=collection.popular_featured,
        count=len(collection.products),
        products=collection.products,
    )


@router.get("/featured/editorspick", response_model=EditorsPickResponse)
async def get_editors_pick(
    service: CurationServiceDep,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
):
    products, total = await service.editors_pick_page(page=page, limit=limit)
    return EditorsPickResponse(
        products=products,
        total=total,
        page=page,
        pages=math.ceil(total / limit),
    )


@router.get("/featured/monthly", response_model=MonthlyCollectionsResponse)
async def get_monthly_collections(
    service: CurationServiceDep,
    limit: int | None = Query(None, ge=1, le=100),
):
    """Current and previous month, wrapping January to last December."""
    current, previous = await service.monthly_collections(limit=limit)
    return MonthlyCollectionsResponse(
        current_month=MonthSectionResponse.model_validate(current),
        previous_month=MonthSectionResponse.model_validate(previous),
    )


@router.get("/featured/yearly", response_model=YearlyCollectionsResponse)
async def get_yearly_collections(
    service: CurationServiceDep,
    limit: int | None = Query(None, ge=1, le=100),
    max_years: int = Query(5, alias="maxYears", ge=1, le=20),
):
    collections = await service.yearly_collections(limit=limit, max_years=max_years)
    return YearlyCollectionsResponse(
        collections=[YearCollectionResponse.model_validate(c) for c in collections]
    )
