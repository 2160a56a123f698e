"""Tiered product selection.

A fallback chain is an ordered list of ``SelectionTier`` values. Each tier
is queried only for the slots the earlier tiers left empty, and never
returns an id that is excluded or already chosen.
"""

from dataclasses import dataclass
from typing import Any, Iterable, Sequence
from uuid import UUID

from sqlalchemy import ColumnElement, select
from sqlalchemy.ext.asyncio import AsyncSession

from catalog.models.product import Product


@dataclass(frozen=True)
class SelectionTier:
    name: str
    criteria: tuple[ColumnElement[bool], ...]
    order_by: tuple[Any, ...]

    def statement(self, limit: int, excluded: Sequence[UUID]):
        stmt = select(Product).where(*self.criteria)
        if excluded:
            stmt = stmt.where(Product.product_id.not_in(excluded))
        return stmt.order_by(*self.order_by).limit(limit)


async def select_with_fallback(
    db: AsyncSession,
    tiers: Sequence[SelectionTier],
    target_count: int,
    exclude_ids: Iterable[UUID] = (),
) -> list[Product]:
    """Fill up to ``target_count`` products from ``tiers`` in order.

    Args:
        db: Session to query with
        tiers: Tiers in priority order
        target_count: Maximum number of products to return
        exclude_ids: Ids that no tier may return

    Returns:
        Distinct products, earlier tiers first
    """
    chosen: list[Product] = []
    excluded = list(exclude_ids)

    for tier in tiers:
        remaining = target_count - len(chosen)
        if remaining <= 0:
            break
        result = await db.execute(tier.statement(remaining, excluded))
        for product in result.scalars().all():
            chosen.append(product)
            excluded.append(product.product_id)

    return chosen
