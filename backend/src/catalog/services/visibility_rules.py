"""Visibility rule engine.

Decides, for one requested flag change on one product, every field write
needed across the collection to keep the curation invariants true:

1. At most one Group A flag (bestSellers, bestSelling, editorsPick,
   featuredProduct) per product.
2. At most ``SHOWCASE_LIMIT`` products hold bestSellers.
3. At most one product holds popularFeatured.
4. popularFeatured is independent of Group A.

Nothing here touches the store. The caller gathers a ``CollectionState``,
asks for a ``WriteSet`` and applies it in one transaction.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from uuid import UUID

from catalog.services.exceptions import InvalidFlagError, LimitReachedError

SHOWCASE_LIMIT = 4


class VisibilityFlag(str, Enum):
    BEST_SELLERS = "bestSellers"
    BEST_SELLING = "bestSelling"
    EDITORS_PICK = "editorsPick"
    FEATURED_PRODUCT = "featuredProduct"
    POPULAR_FEATURED = "popularFeatured"
    PUBLISHED = "published"

    @property
    def column(self) -> str:
        """Name of the ``Product`` attribute backing this flag."""
        return _COLUMNS[self]


_COLUMNS = {
    VisibilityFlag.BEST_SELLERS: "best_sellers",
    VisibilityFlag.BEST_SELLING: "best_selling",
    VisibilityFlag.EDITORS_PICK: "editors_pick",
    VisibilityFlag.FEATURED_PRODUCT: "featured_product",
    VisibilityFlag.POPULAR_FEATURED: "popular_featured",
    VisibilityFlag.PUBLISHED: "published",
}

GROUP_A_FLAGS: tuple[VisibilityFlag, ...] = (
    VisibilityFlag.BEST_SELLERS,
    VisibilityFlag.BEST_SELLING,
    VisibilityFlag.EDITORS_PICK,
    VisibilityFlag.FEATURED_PRODUCT,
)


def parse_flag(name: str) -> VisibilityFlag:
    try:
        return VisibilityFlag(name)
    except ValueError:
        raise InvalidFlagError(name) from None


@dataclass(frozen=True)
class VisibilityState:
    """The six visibility flags of a single product."""

    product_id: UUID
    published: bool = False
    best_sellers: bool = False
    best_selling: bool = False
    editors_pick: bool = False
    featured_product: bool = False
    popular_featured: bool = False

    def get(self, flag: VisibilityFlag) -> bool:
        return getattr(self, flag.column)

    @classmethod
    def of(cls, product) -> "VisibilityState":
        """Snapshot the flags of a ``Product`` row (or anything shaped like one)."""
        return cls(
            product_id=product.product_id,
            **{flag.column: bool(getattr(product, flag.column)) for flag in VisibilityFlag},
        )


@dataclass(frozen=True)
class CollectionState:
    """What the rule engine needs to know about the rest of the collection.

    Args:
        target: Current flags of the product being changed
        other_showcase_count: Products other than the target holding bestSellers
        other_popular_featured_ids: Products other than the target holding
            popularFeatured (normally zero or one)
    """

    target: VisibilityState
    other_showcase_count: int = 0
    other_popular_featured_ids: tuple[UUID, ...] = ()


@dataclass(frozen=True)
class FieldWrite:
    product_id: UUID
    flag: VisibilityFlag
    value: bool


@dataclass(frozen=True)
class WriteSet:
    """Ordered field assignments that must be applied atomically."""

    writes: tuple[FieldWrite, ...] = field(default_factory=tuple)

    @property
    def is_noop(self) -> bool:
        return not self.writes

    @property
    def product_ids(self) -> list[UUID]:
        """Distinct product ids touched, in first-write order."""
        seen: dict[UUID, None] = {}
        for write in self.writes:
            seen.setdefault(write.product_id, None)
        return list(seen)

    def for_product(self, product_id: UUID) -> dict[VisibilityFlag, bool]:
        return {w.flag: w.value for w in self.writes if w.product_id == product_id}

    def apply_to(self, state: VisibilityState) -> VisibilityState:
        """Return ``state`` with this write-set's assignments for it applied."""
        changes = {flag.column: value for flag, value in self.for_product(state.product_id).items()}
        return replace(state, **changes)


def _changed(state: VisibilityState, assignments: dict[VisibilityFlag, bool]) -> list[FieldWrite]:
    # Drop assignments that leave the value unchanged
    return [
        FieldWrite(state.product_id, flag, value)
        for flag, value in assignments.items()
        if state.get(flag) != value
    ]


def _exclusive(flag: VisibilityFlag) -> dict[VisibilityFlag, bool]:
    return {other: other is flag for other in GROUP_A_FLAGS}


def decide_visibility_change(
    flag: VisibilityFlag,
    desired: bool,
    state: CollectionState,
    showcase_limit: int = SHOWCASE_LIMIT,
) -> WriteSet:
    """Compute the write-set for setting ``flag`` to ``desired`` on the target.

    Raises:
        LimitReachedError: bestSellers requested while every showcase slot
            is held by another product
    """
    target = state.target

    if flag is VisibilityFlag.POPULAR_FEATURED:
        writes = _changed(target, {flag: desired})
        if desired:
            writes.extend(
                FieldWrite(other_id, flag, False)
                for other_id in state.other_popular_featured_ids
                if other_id != target.product_id
            )
        return WriteSet(tuple(writes))

    if flag is VisibilityFlag.PUBLISHED or not desired:
        return WriteSet(tuple(_changed(target, {flag: desired})))

    if (
        flag is VisibilityFlag.BEST_SELLERS
        and not target.best_sellers
        and state.other_showcase_count >= showcase_limit
    ):
        raise LimitReachedError(state.other_showcase_count, showcase_limit)

    return WriteSet(tuple(_changed(target, _exclusive(flag))))
