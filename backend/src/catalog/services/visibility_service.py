"""Visibility service: the only writer of product visibility flags.

Flow for one change:
1. Lock the curation slot row when granting a collection-limited flag
2. Lock the target product row (SELECT FOR UPDATE)
3. Read collection-wide counts and build a ``CollectionState``
4. Let the rule engine compute the write-set
5. Apply each product's writes with a version-checked UPDATE
6. Commit, or roll back everything on any failure
"""

import logging
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from catalog.middleware.metrics import record_visibility_change
from catalog.models.curation_slot import CurationSlot
from catalog.models.product import Product
from catalog.services.exceptions import (
    LimitReachedError,
    ProductNotFoundError,
    VisibilityConflictError,
    store_errors,
)
from catalog.services.visibility_rules import (
    SHOWCASE_LIMIT,
    CollectionState,
    VisibilityFlag,
    VisibilityState,
    WriteSet,
    decide_visibility_change,
    parse_flag,
)

logger = logging.getLogger(__name__)

# Flags whose grant is limited across the whole collection
SLOT_CAPACITIES: dict[VisibilityFlag, int] = {
    VisibilityFlag.BEST_SELLERS: SHOWCASE_LIMIT,
    VisibilityFlag.POPULAR_FEATURED: 1,
}


async def ensure_curation_slots(db: AsyncSession) -> None:
    """Create any missing curation slot rows."""
    result = await db.execute(select(CurationSlot.name))
    existing = set(result.scalars().all())
    for flag, capacity in SLOT_CAPACITIES.items():
        if flag.value not in existing:
            db.add(CurationSlot(name=flag.value, capacity=capacity))
    await db.commit()


class VisibilityService:
    """Applies visibility changes as all-or-nothing write-sets."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def apply_visibility_change(
        self, product_id: UUID, flag_name: str, desired: bool
    ) -> Product:
        """Set one visibility flag on a product, with every side effect.

        Args:
            product_id: Target product UUID
            flag_name: API flag name, e.g. ``"bestSellers"``
            desired: Requested value

        Returns:
            The refreshed target product

        Raises:
            InvalidFlagError: Unknown flag name (store untouched)
            ProductNotFoundError: No such product
            LimitReachedError: No free showcase slot
            VisibilityConflictError: A touched row changed concurrently
            StoreUnavailableError: The store could not be reached
        """
        flag = parse_flag(flag_name)

        try:
            with store_errors("visibility change"):
                product, write_set, versions = await self._decide(product_id, flag, desired)
                await self._apply(write_set, versions)
                await self.db.commit()
        except LimitReachedError as exc:
            await self.db.rollback()
            record_visibility_change(flag.value, "limit_reached")
            logger.warning(
                f"Rejected {flag.value}=true for product {product_id}: "
                f"{exc.current_count} of {exc.limit} slots used"
            )
            raise
        except VisibilityConflictError as exc:
            await self.db.rollback()
            record_visibility_change(flag.value, "conflict")
            logger.warning(f"Conflict setting {flag.value} on product {product_id}: {exc}")
            raise
        except Exception:
            await self.db.rollback()
            record_visibility_change(flag.value, "error")
            raise

        if write_set.is_noop:
            record_visibility_change(flag.value, "noop")
        else:
            record_visibility_change(flag.value, "applied")
            logger.info(
                f"Set {flag.value}={desired} on product {product_id} "
                f"({len(write_set.writes)} writes across "
                f"{len(write_set.product_ids)} products)"
            )

        with store_errors("visibility change"):
            await self.db.refresh(product)
        return product

    async def _decide(
        self, product_id: UUID, flag: VisibilityFlag, desired: bool
    ) -> tuple[Product, WriteSet, dict[UUID, int]]:
        showcase_limit = SLOT_CAPACITIES[VisibilityFlag.BEST_SELLERS]
        if desired and flag in SLOT_CAPACITIES:
            slot = await self._lock_slot(flag)
            if flag is VisibilityFlag.BEST_SELLERS:
                showcase_limit = slot.capacity

        result = await self.db.execute(
            select(Product)
            .where(Product.product_id == product_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        product = result.scalar_one_or_none()
        if product is None:
            raise ProductNotFoundError(product_id)

        versions = {product.product_id: product.version}
        other_showcase_count = 0
        other_popular_ids: tuple[UUID, ...] = ()

        if desired and flag is VisibilityFlag.BEST_SELLERS:
            count_result = await self.db.execute(
                select(func.count(Product.product_id)).where(
                    Product.best_sellers.is_(True),
                    Product.product_id != product_id,
                )
            )
            other_showcase_count = count_result.scalar_one()

        if desired and flag is VisibilityFlag.POPULAR_FEATURED:
            holders = await self.db.execute(
                select(Product.product_id, Product.version)
                .where(
                    Product.popular_featured.is_(True),
                    Product.product_id != product_id,
                )
                .with_for_update()
            )
            for holder_id, holder_version in holders.all():
                versions[holder_id] = holder_version
                other_popular_ids += (holder_id,)

        state = CollectionState(
            target=VisibilityState.of(product),
            other_showcase_count=other_showcase_count,
            other_popular_featured_ids=other_popular_ids,
        )
        write_set = decide_visibility_change(flag, desired, state, showcase_limit)
        return product, write_set, versions

    async def _lock_slot(self, flag: VisibilityFlag) -> CurationSlot:
        result = await self.db.execute(
            select(CurationSlot).where(CurationSlot.name == flag.value).with_for_update()
        )
        slot = result.scalar_one_or_none()
        if slot is not None:
            return slot

        slot = CurationSlot(name=flag.value, capacity=SLOT_CAPACITIES[flag])
        self.db.add(slot)
        try:
            await self.db.flush()
        except IntegrityError as exc:
            # Another request created the row first
            raise VisibilityConflictError(flag.value) from exc
        return slot

    async def _apply(self, write_set: WriteSet, versions: dict[UUID, int]) -> None:
        for product_id in write_set.product_ids:
            values = {
                flag.column: value
                for flag, value in write_set.for_product(product_id).items()
            }
            result = await self.db.execute(
                update(Product)
                .where(Product.product_id == product_id)
                .where(Product.version == versions[product_id])
                .values(**values, version=Product.version + 1)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                raise VisibilityConflictError(product_id)
