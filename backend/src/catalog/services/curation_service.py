"""Curation aggregator: read-side views over the persisted visibility flags.

Every method is a fresh query against current store state. Empty sections
are ordinary results; only store failures raise.
"""

import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Iterator
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from catalog.core.config import settings
from catalog.middleware.metrics import record_curation_query
from catalog.models.product import MONTHS, Product
from catalog.services.exceptions import ProductNotFoundError, store_errors
from catalog.services.selection import SelectionTier, select_with_fallback
from catalog.services.visibility_rules import SHOWCASE_LIMIT

Clock = Callable[[], datetime]

ACTIVE = "Active"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def month_window(now: datetime) -> tuple[tuple[int, str], tuple[int, str]]:
    """Return ((year, month), (year, month)) for the current and previous month.

    January wraps to December of the prior year.
    """
    current = (now.year, MONTHS[now.month - 1])
    if now.month == 1:
        return current, (now.year - 1, MONTHS[11])
    return current, (now.year, MONTHS[now.month - 2])


def _newest_first() -> tuple:
    return (Product.created_at.desc(), Product.product_id.desc())


@dataclass
class TimelineMonth:
    month: str
    products: list[Product] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.products)


@dataclass
class TimelineYear:
    year: int
    months: list[TimelineMonth] = field(default_factory=list)

    @property
    def total(self) -> int:
        return sum(month.total for month in self.months)


@dataclass
class MonthSection:
    year: int
    month: str
    products: list[Product]

    @property
    def month_short(self) -> str:
        return self.month[:3].upper()


@dataclass
class YearCollection:
    year: int
    total: int
    products: list[Product]


@dataclass
class HomepageFeed:
    main_showcase: list[Product]
    popular: list[Product]
    editors_pick: list[Product]
    current_month: MonthSection
    previous_month: MonthSection
    yearly_collections: list[YearCollection]


@dataclass
class PopularCollection:
    popular_featured: Product | None
    products: list[Product]


class CurationService:
    """Builds the storefront's curated sections."""

    def __init__(
        self,
        db: AsyncSession,
        clock: Clock = utc_now,
        page_size: int = settings.SECTION_PAGE_SIZE,
    ):
        self.db = db
        self.clock = clock
        self.page_size = page_size

    @contextmanager
    def _query(self, operation: str) -> Iterator[None]:
        start = time.perf_counter()
        with store_errors(operation):
            yield
        record_curation_query(operation, time.perf_counter() - start)

    # ------------------------------------------------------------------
    # Timeline
    # ------------------------------------------------------------------

    async def timeline(
        self, status: str | None = ACTIVE, month_order: str = "asc"
    ) -> list[TimelineYear]:
        """Group products by year (descending) and month (canonical order).

        Args:
            status: Lifecycle status to include, or None for every status
            month_order: ``"asc"`` for January first, ``"desc"`` for December first

        Returns:
            Year groups; products inside a month are newest first
        """
        stmt = select(Product).order_by(*_newest_first())
        if status:
            stmt = stmt.where(Product.status == status)

        with self._query("timeline"):
            result = await self.db.execute(stmt)
            products = list(result.scalars().all())

        grouped: dict[int, dict[str, list[Product]]] = {}
        for product in products:
            grouped.setdefault(product.year, {}).setdefault(product.month, []).append(product)

        month_rank = {name: index for index, name in enumerate(MONTHS)}
        reverse = month_order == "desc"

        timeline = []
        for year in sorted(grouped, reverse=True):
            months = sorted(
                grouped[year].items(),
                key=lambda item: month_rank.get(item[0], len(MONTHS)),
                reverse=reverse,
            )
            timeline.append(
                TimelineYear(
                    year=year,
                    months=[TimelineMonth(month=name, products=items) for name, items in months],
                )
            )
        return timeline

    # ------------------------------------------------------------------
    # Homepage
    # ------------------------------------------------------------------

    async def homepage_feed(self) -> HomepageFeed:
        """Assemble every homepage section in one call."""
        now = self.clock()
        (cur_year, cur_month), (prev_year, prev_month) = month_window(now)

        with self._query("homepage_feed"):
            main_showcase = await self._find(
                Product.best_sellers.is_(True),
                order_by=(Product.views.desc(), *_newest_first()),
                limit=SHOWCASE_LIMIT,
            )
            popular = await self._find(Product.best_selling.is_(True))
            editors_pick = await self._find(Product.editors_pick.is_(True))
            current_products = await self._find(
                Product.year == cur_year, Product.month == cur_month
            )
            previous_products = await self._find(
                Product.year == prev_year, Product.month == prev_month
            )
            years = [
                year
                for year in await self._active_years()
                if year != now.year
            ][: settings.YEARLY_COLLECTION_YEARS]
            yearly = [await self._year_collection(year, self.page_size) for year in years]

        return HomepageFeed(
            main_showcase=main_showcase,
            popular=popular,
            editors_pick=editors_pick,
            current_month=MonthSection(cur_year, cur_month, current_products),
            previous_month=MonthSection(prev_year, prev_month, previous_products),
            yearly_collections=yearly,
        )

    async def monthly_collections(self, limit: int | None = None) -> tuple[MonthSection, MonthSection]:
        """Current and previous month sections."""
        limit = limit if limit is not None else self.page_size
        (cur_year, cur_month), (prev_year, prev_month) = month_window(self.clock())

        with self._query("monthly_collections"):
            current = await self._find(
                Product.year == cur_year, Product.month == cur_month, limit=limit
            )
            previous = await self._find(
                Product.year == prev_year, Product.month == prev_month, limit=limit
            )

        return (
            MonthSection(cur_year, cur_month, current),
            MonthSection(prev_year, prev_month, previous),
        )

    async def yearly_collections(
        self, limit: int | None = None, max_years: int = 5
    ) -> list[YearCollection]:
        """Newest-first sample and total for each of the most recent Active years."""
        limit = limit if limit is not None else self.page_size
        with self._query("yearly_collections"):
            years = (await self._active_years())[:max_years]
            return [await self._year_collection(year, limit) for year in years]

    async def popular_collection(self, limit: int = 50) -> PopularCollection:
        """The popularFeatured product plus bestSelling products excluding it."""
        with self._query("popular_collection"):
            featured = await self._find(Product.popular_featured.is_(True), limit=1)
            popular_featured = featured[0] if featured else None

            criteria = [Product.best_selling.is_(True)]
            if popular_featured is not None:
                criteria.append(Product.product_id != popular_featured.product_id)
            products = await self._find(*criteria, limit=limit)

        return PopularCollection(popular_featured=popular_featured, products=products)

    async def editors_pick_page(
        self, page: int = 1, limit: int = 20
    ) -> tuple[list[Product], int]:
        """Paginated editor's pick products with the total count."""
        criteria = (Product.status == ACTIVE, Product.editors_pick.is_(True))

        with self._query("editors_pick_page"):
            count_result = await self.db.execute(
                select(func.count(Product.product_id)).where(*criteria)
            )
            total = count_result.scalar_one()

            result = await self.db.execute(
                select(Product)
                .where(*criteria)
                .order_by(*_newest_first())
                .offset((page - 1) * limit)
                .limit(limit)
            )
            products = list(result.scalars().all())

        return products, total

    # ------------------------------------------------------------------
    # Related products
    # ------------------------------------------------------------------

    async def related_products(
        self, product_id: UUID, limit: int = settings.RELATED_PRODUCTS_LIMIT
    ) -> list[Product]:
        """Up to ``limit`` products related to the target.

        Fallback order: same category, then same year, then any Active
        editorsPick or bestSelling product by views.

        Raises:
            ProductNotFoundError: Unknown target product
        """
        with self._query("related_products"):
            result = await self.db.execute(
                select(Product).where(Product.product_id == product_id)
            )
            target = result.scalar_one_or_none()
            if target is None:
                raise ProductNotFoundError(product_id)

            curated_first = (
                Product.editors_pick.desc(),
                Product.best_selling.desc(),
                *_newest_first(),
            )
            tiers = [
                SelectionTier(
                    "category",
                    (Product.status == ACTIVE, Product.category == target.category),
                    curated_first,
                ),
                SelectionTier(
                    "year",
                    (Product.status == ACTIVE, Product.year == target.year),
                    curated_first,
                ),
                SelectionTier(
                    "popular",
                    (
                        Product.status == ACTIVE,
                        or_(Product.editors_pick.is_(True), Product.best_selling.is_(True)),
                    ),
                    (Product.views.desc(), *_newest_first()),
                ),
            ]
            return await select_with_fallback(
                self.db, tiers, limit, exclude_ids=[target.product_id]
            )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _find(self, *criteria, order_by: tuple | None = None, limit: int | None = None) -> list[Product]:
        result = await self.db.execute(
            select(Product)
            .where(Product.status == ACTIVE, *criteria)
            .order_by(*(order_by or _newest_first()))
            .limit(limit if limit is not None else self.page_size)
        )
        return list(result.scalars().all())

    async def _active_years(self) -> list[int]:
        result = await self.db.execute(
            select(Product.year)
            .where(Product.status == ACTIVE)
            .distinct()
            .order_by(Product.year.desc())
        )
        return list(result.scalars().all())

    async def _year_collection(self, year: int, limit: int) -> YearCollection:
        products = await self._find(Product.year == year, limit=limit)
        count_result = await self.db.execute(
            select(func.count(Product.product_id)).where(
                Product.status == ACTIVE, Product.year == year
            )
        )
        return YearCollection(year=year, total=count_result.scalar_one(), products=products)
