"""Curated section schemas for storefront responses."""

from pydantic import BaseModel

from catalog.schemas.product import ProductResponse


class TimelineMonthResponse(BaseModel):
    month: str
    total: int
    products: list[ProductResponse]

    model_config = {"from_attributes": True}


class TimelineYearResponse(BaseModel):
    year: int
    total: int
    months: list[TimelineMonthResponse]

    model_config = {"from_attributes": True}


class TimelineResponse(BaseModel):
    years: list[TimelineYearResponse]


class MonthSectionResponse(BaseModel):
    """Products of one calendar month."""

    year: int
    month: str
    month_short: str
    products: list[ProductResponse]

    model_config = {"from_attributes": True}


class YearCollectionResponse(BaseModel):
    """Newest-first sample of one year plus the year's true total."""

    year: int
    total: int
    products: list[ProductResponse]

    model_config = {"from_attributes": True}


class HomepageFeedResponse(BaseModel):
    """All homepage sections."""

    main_showcase: list[ProductResponse]
    popular: list[ProductResponse]
    editors_pick: list[ProductResponse]
    current_month: MonthSectionResponse
    previous_month: MonthSectionResponse
    yearly_collections: list[YearCollectionResponse]

    model_config = {"from_attributes": True}


class PopularCollectionResponse(BaseModel):
    popular_featured: ProductResponse | None
    count: int
    products: list[ProductResponse]


class EditorsPickResponse(BaseModel):
    products: list[ProductResponse]
    total: int
    page: int
    pages: int


class MonthlyCollectionsResponse(BaseModel):
    current_month: MonthSectionResponse
    previous_month: MonthSectionResponse


class YearlyCollectionsResponse(BaseModel):
    collections: list[YearCollectionResponse]


class RelatedProductsResponse(BaseModel):
    products: list[ProductResponse]
