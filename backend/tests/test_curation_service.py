"""Tests for the curation aggregator (timeline, homepage, related products)."""

from datetime import datetime, timezone
from uuid import uuid4

import pytest

from catalog.services.curation_service import CurationService, month_window
from catalog.services.exceptions import ProductNotFoundError


def _clock(year: int, month: int, day: int = 15):
    return lambda: datetime(year, month, day, 12, 0, tzinfo=timezone.utc)


def _ids(products) -> list:
    return [p.product_id for p in products]


class TestMonthWindow:
    """Test current/previous month calculation."""

    def test_mid_year(self):
        now = datetime(2026, 3, 15, tzinfo=timezone.utc)
        assert month_window(now) == ((2026, "March"), (2026, "February"))

    def test_january_wraps_to_previous_december(self):
        now = datetime(2026, 1, 2, tzinfo=timezone.utc)
        assert month_window(now) == ((2026, "January"), (2025, "December"))

    def test_december(self):
        now = datetime(2025, 12, 31, tzinfo=timezone.utc)
        assert month_window(now) == ((2025, "December"), (2025, "November"))


class TestTimeline:
    """Test year/month grouping."""

    @pytest.mark.asyncio
    async def test_groups_by_year_and_month(self, db_session, make_product):
        """2024-March x2 and 2023-January x1 group into two years."""
        older = await make_product(year=2024, month="March")
        newer = await make_product(year=2024, month="March")
        january = await make_product(year=2023, month="January")
        service = CurationService(db_session)

        timeline = await service.timeline()

        assert [y.year for y in timeline] == [2024, 2023]
        assert timeline[0].total == 2
        assert [m.month for m in timeline[0].months] == ["March"]
        assert _ids(timeline[0].months[0].products) == [newer.product_id, older.product_id]
        assert _ids(timeline[1].months[0].products) == [january.product_id]

    @pytest.mark.asyncio
    async def test_canonical_month_order(self, db_session, make_product):
        for month in ("December", "February", "July"):
            await make_product(year=2024, month=month)
        service = CurationService(db_session)

        ascending = await service.timeline()
        descending = await service.timeline(month_order="desc")

        assert [m.month for m in ascending[0].months] == ["February", "July", "December"]
        assert [m.month for m in descending[0].months] == ["December", "July", "February"]

    @pytest.mark.asyncio
    async def test_status_filter(self, db_session, make_product):
        await make_product(year=2024, month="March")
        await make_product(year=2022, month="May", status="Hidden")
        service = CurationService(db_session)

        active_only = await service.timeline()
        everything = await service.timeline(status=None)

        assert [y.year for y in active_only] == [2024]
        assert [y.year for y in everything] == [2024, 2022]

    @pytest.mark.asyncio
    async def test_empty_catalog(self, db_session):
        service = CurationService(db_session)
        assert await service.timeline() == []


class TestHomepageFeed:
    """Test homepage section assembly."""

    @pytest.mark.asyncio
    async def test_sections(self, db_session, make_product):
        low = await make_product(best_sellers=True, views=5)
        high = await make_product(best_sellers=True, views=50)
        picked = await make_product(editors_pick=True)
        popular = await make_product(best_selling=True)
        await make_product(best_sellers=True, status="Hidden", views=500)
        service = CurationService(db_session, clock=_clock(2024, 3))

        feed = await service.homepage_feed()

        assert _ids(feed.main_showcase) == [high.product_id, low.product_id]
        assert _ids(feed.editors_pick) == [picked.product_id]
        assert _ids(feed.popular) == [popular.product_id]

    @pytest.mark.asyncio
    async def test_month_sections(self, db_session, make_product):
        current = await make_product(year=2026, month="January")
        previous = await make_product(year=2025, month="December")
        await make_product(year=2025, month="November")
        service = CurationService(db_session, clock=_clock(2026, 1, 10))

        feed = await service.homepage_feed()

        assert (feed.current_month.year, feed.current_month.month) == (2026, "January")
        assert feed.current_month.month_short == "JAN"
        assert _ids(feed.current_month.products) == [current.product_id]
        assert (feed.previous_month.year, feed.previous_month.month) == (2025, "December")
        assert _ids(feed.previous_month.products) == [previous.product_id]

    @pytest.mark.asyncio
    async def test_yearly_collections_skip_current_year(self, db_session, make_product):
        for year in (2026, 2025, 2024, 2023, 2022):
            await make_product(year=year, month="May")
        await make_product(year=2025, month="June")
        service = CurationService(db_session, clock=_clock(2026, 3))

        feed = await service.homepage_feed()

        assert [c.year for c in feed.yearly_collections] == [2025, 2024, 2023]
        assert feed.yearly_collections[0].total == 2

    @pytest.mark.asyncio
    async def test_empty_sections_are_not_errors(self, db_session):
        service = CurationService(db_session, clock=_clock(2026, 3))

        feed = await service.homepage_feed()

        assert feed.main_showcase == []
        assert feed.popular == []
        assert feed.editors_pick == []
        assert feed.current_month.products == []
        assert feed.previous_month.products == []
        assert feed.yearly_collections == []

    @pytest.mark.asyncio
    async def test_sections_capped_at_page_size(self, db_session, make_product):
        for _ in range(6):
            await make_product(editors_pick=True)
        service = CurationService(db_session, clock=_clock(2026, 3), page_size=4)

        feed = await service.homepage_feed()

        assert len(feed.editors_pick) == 4


class TestCollections:
    """Test the featured collection pages."""

    @pytest.mark.asyncio
    async def test_popular_collection_excludes_featured(self, db_session, make_product):
        featured = await make_product(best_selling=True, popular_featured=True)
        other = await make_product(best_selling=True)
        service = CurationService(db_session)

        collection = await service.popular_collection()

        assert collection.popular_featured.product_id == featured.product_id
        assert _ids(collection.products) == [other.product_id]

    @pytest.mark.asyncio
    async def test_popular_collection_without_featured(self, db_session, make_product):
        await make_product(best_selling=True)
        service = CurationService(db_session)

        collection = await service.popular_collection()

        assert collection.popular_featured is None
        assert len(collection.products) == 1

    @pytest.mark.asyncio
    async def test_editors_pick_pagination(self, db_session, make_product):
        picks = [await make_product(editors_pick=True) for _ in range(5)]
        service = CurationService(db_session)

        page_two, total = await service.editors_pick_page(page=2, limit=2)

        assert total == 5
        # Newest first: picks[4], picks[3] | picks[2], picks[1] | picks[0]
        assert _ids(page_two) == [picks[2].product_id, picks[1].product_id]

    @pytest.mark.asyncio
    async def test_yearly_collections_include_current_year(self, db_session, make_product):
        for year in (2026, 2025):
            await make_product(year=year, month="May")
        service = CurationService(db_session, clock=_clock(2026, 3))

        collections = await service.yearly_collections(max_years=5)

        assert [c.year for c in collections] == [2026, 2025]

    @pytest.mark.asyncio
    async def test_monthly_collections(self, db_session, make_product):
        await make_product(year=2026, month="March")
        service = CurationService(db_session, clock=_clock(2026, 3))

        current, previous = await service.monthly_collections()

        assert len(current.products) == 1
        assert previous.month == "February"
        assert previous.products == []

    @pytest.mark.asyncio
    async def test_zero_limit_is_honoured(self, db_session, make_product):
        """limit=0 means no products, not the default page size."""
        await make_product(year=2026, month="March")
        await make_product(year=2025, month="May")
        service = CurationService(db_session, clock=_clock(2026, 3))

        current, _ = await service.monthly_collections(limit=0)
        collections = await service.yearly_collections(limit=0)

        assert current.products == []
        assert [c.year for c in collections] == [2026, 2025]
        assert all(c.products == [] for c in collections)
        assert [c.total for c in collections] == [1, 1]


class TestRelatedProducts:
    """Test the category, year, popular fallback chain."""

    @pytest.mark.asyncio
    async def test_category_tier_first(self, db_session, make_product):
        target = await make_product(category="Lighting", year=2024)
        plain = await make_product(category="Lighting", year=2020)
        curated = await make_product(category="Lighting", year=2020, editors_pick=True)
        await make_product(category="Decor", year=2024)
        service = CurationService(db_session)

        related = await service.related_products(target.product_id, limit=2)

        assert _ids(related) == [curated.product_id, plain.product_id]

    @pytest.mark.asyncio
    async def test_falls_back_to_same_year(self, db_session, make_product):
        """No category siblings, two same-year products: exactly those two."""
        target = await make_product(category="Lighting", year=2024)
        first = await make_product(category="Decor", year=2024)
        second = await make_product(category="Gift", year=2024)
        await make_product(category="Arts", year=2019)
        service = CurationService(db_session)

        related = await service.related_products(target.product_id)

        assert set(_ids(related)) == {first.product_id, second.product_id}
        assert len(related) == 2

    @pytest.mark.asyncio
    async def test_falls_back_to_popular(self, db_session, make_product):
        target = await make_product(category="Lighting", year=2024)
        sibling = await make_product(category="Lighting", year=2018)
        less_viewed = await make_product(category="Arts", year=2019, best_selling=True, views=3)
        most_viewed = await make_product(category="Gift", year=2017, editors_pick=True, views=30)
        await make_product(category="Decor", year=2016)
        service = CurationService(db_session)

        related = await service.related_products(target.product_id)

        assert _ids(related) == [
            sibling.product_id,
            most_viewed.product_id,
            less_viewed.product_id,
        ]

    @pytest.mark.asyncio
    async def test_never_includes_target_or_duplicates(self, db_session, make_product):
        target = await make_product(category="Lighting", year=2024, editors_pick=True)
        for _ in range(3):
            await make_product(category="Lighting", year=2024, best_selling=True)
        service = CurationService(db_session)

        related = await service.related_products(target.product_id, limit=10)
        ids = _ids(related)

        assert target.product_id not in ids
        assert len(ids) == len(set(ids)) == 3

    @pytest.mark.asyncio
    async def test_skips_inactive(self, db_session, make_product):
        target = await make_product(category="Lighting")
        await make_product(category="Lighting", status="Archived")
        service = CurationService(db_session)

        assert await service.related_products(target.product_id) == []

    @pytest.mark.asyncio
    async def test_unknown_target(self, db_session):
        service = CurationService(db_session)

        with pytest.raises(ProductNotFoundError):
            await service.related_products(uuid4())
