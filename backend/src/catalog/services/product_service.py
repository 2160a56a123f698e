"""Product service for CRUD operations."""

import logging
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from catalog.models.product import STATUSES, Product
from catalog.schemas.product import ProductCreate, ProductStats, ProductUpdate
from catalog.services.exceptions import (
    DuplicateSkuError,
    ProductNotFoundError,
    store_errors,
)
from catalog.services.visibility_rules import SHOWCASE_LIMIT

logger = logging.getLogger(__name__)

SORT_ORDERS = {
    "newest": (Product.created_at.desc(),),
    "oldest": (Product.created_at.asc(),),
    "price-high": (Product.price.desc(),),
    "price-low": (Product.price.asc(),),
    "name": (Product.name.asc(),),
}
DEFAULT_SORT = (Product.year.desc(), Product.month.asc(), Product.created_at.desc())


class ProductService:
    """Service class for product operations.

    Visibility flags are never written here; see ``VisibilityService``.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_all(
        self,
        skip: int = 0,
        limit: int = 20,
        year: int | None = None,
        month: str | None = None,
        category: str | None = None,
        status: str | None = "Active",
        search: str | None = None,
        sort_by: str | None = None,
        best_selling: bool = False,
        editors_pick: bool = False,
    ) -> tuple[list[Product], int]:
        """Get products matching the filters with pagination.

        Args:
            skip: Number of records to skip
            limit: Maximum number of records to return
            year: Only this year
            month: Only this month name
            category: Only this category
            status: Only this status; None or empty string means any
            search: Case-insensitive substring of the name
            sort_by: newest, oldest, price-high, price-low or name
            best_selling: Only bestSelling products
            editors_pick: Only editorsPick products

        Returns:
            Tuple of (products list, total count)
        """
        criteria = []
        if year is not None:
            criteria.append(Product.year == year)
        if month:
            criteria.append(Product.month == month)
        if category:
            criteria.append(Product.category == category)
        if status:
            criteria.append(Product.status == status)
        if search:
            criteria.append(Product.name.ilike(f"%{search}%"))
        if best_selling:
            criteria.append(Product.best_selling.is_(True))
        if editors_pick:
            criteria.append(Product.editors_pick.is_(True))

        order_by = SORT_ORDERS.get(sort_by or "", DEFAULT_SORT)

        with store_errors("product listing"):
            count_result = await self.db.execute(
                select(func.count(Product.product_id)).where(*criteria)
            )
            total = count_result.scalar_one()

            result = await self.db.execute(
                select(Product)
                .where(*criteria)
                .order_by(*order_by, Product.product_id.desc())
                .offset(skip)
                .limit(limit)
            )
            products = list(result.scalars().all())

        return products, total

    async def get_by_id(self, product_id: UUID) -> Product | None:
        with store_errors("product lookup"):
            result = await self.db.execute(
                select(Product).where(Product.product_id == product_id)
            )
            return result.scalar_one_or_none()

    async def record_view(self, product_id: UUID) -> Product:
        """Increment the view counter and return the product.

        Raises:
            ProductNotFoundError: Unknown product
        """
        with store_errors("product view"):
            result = await self.db.execute(
                update(Product)
                .where(Product.product_id == product_id)
                .values(views=Product.views + 1)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                await self.db.rollback()
                raise ProductNotFoundError(product_id)
            await self.db.commit()

            product = await self.get_by_id(product_id)
            await self.db.refresh(product)
        return product

    async def create(self, product_data: ProductCreate) -> Product:
        """Create a new product with every visibility flag cleared.

        Raises:
            DuplicateSkuError: SKU already in use
        """
        product = Product(**product_data.model_dump())

        with store_errors("product create"):
            self.db.add(product)
            try:
                await self.db.commit()
            except IntegrityError as exc:
                await self.db.rollback()
                raise DuplicateSkuError(product_data.sku) from exc
            await self.db.refresh(product)

        logger.info(f"Created product {product.product_id} ({product.sku})")
        return product

    async def update(self, product_id: UUID, product_data: ProductUpdate) -> Product:
        """Update descriptive fields.

        Raises:
            ProductNotFoundError: Unknown product
            DuplicateSkuError: New SKU already in use
        """
        product = await self.get_by_id(product_id)
        if product is None:
            raise ProductNotFoundError(product_id)

        for key, value in product_data.model_dump(exclude_unset=True).items():
            # image_url is the only nullable field
            if value is None and key != "image_url":
                continue
            setattr(product, key, value)
        # Rollback expires the instance, so read the SKU first
        sku = product.sku

        with store_errors("product update"):
            try:
                await self.db.commit()
            except IntegrityError as exc:
                await self.db.rollback()
                raise DuplicateSkuError(sku) from exc
            await self.db.refresh(product)

        return product

    async def delete(self, product_id: UUID) -> None:
        """Hard delete a product.

        Raises:
            ProductNotFoundError: Unknown product
        """
        product = await self.get_by_id(product_id)
        if product is None:
            raise ProductNotFoundError(product_id)

        with store_errors("product delete"):
            await self.db.delete(product)
            await self.db.commit()

        logger.info(f"Deleted product {product_id}")

    async def get_stats(self) -> ProductStats:
        """Counts by status and by visibility flag."""
        flag_columns = {
            "best_sellers_count": Product.best_sellers,
            "best_selling_count": Product.best_selling,
            "editors_pick_count": Product.editors_pick,
            "featured_product_count": Product.featured_product,
            "popular_featured_count": Product.popular_featured,
            "published_count": Product.published,
        }

        with store_errors("product stats"):
            status_result = await self.db.execute(
                select(Product.status, func.count(Product.product_id)).group_by(Product.status)
            )
            by_status = {status: 0 for status in STATUSES}
            by_status.update({status: count for status, count in status_result.all()})

            counts = {}
            for key, column in flag_columns.items():
                result = await self.db.execute(
                    select(func.count(Product.product_id)).where(column.is_(True))
                )
                counts[key] = result.scalar_one()

        return ProductStats(
            total=sum(by_status.values()),
            by_status=by_status,
            showcase_limit=SHOWCASE_LIMIT,
            **counts,
        )
