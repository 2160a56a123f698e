"""Tests for the visibility rule engine.

The rule engine is pure: given a product's flags and a summary of the
collection it returns the write-set, so every case here runs without a
database.
"""

from uuid import uuid4

import pytest

from catalog.services.exceptions import InvalidFlagError, LimitReachedError
from catalog.services.visibility_rules import (
    GROUP_A_FLAGS,
    SHOWCASE_LIMIT,
    CollectionState,
    FieldWrite,
    VisibilityFlag,
    VisibilityState,
    WriteSet,
    decide_visibility_change,
    parse_flag,
)


def _group_a_count(state: VisibilityState) -> int:
    return sum(state.get(flag) for flag in GROUP_A_FLAGS)


class TestParseFlag:
    """Test flag name parsing."""

    def test_known_flags(self):
        """Every API flag name maps to its enum member."""
        assert parse_flag("bestSellers") is VisibilityFlag.BEST_SELLERS
        assert parse_flag("popularFeatured") is VisibilityFlag.POPULAR_FEATURED
        assert parse_flag("published") is VisibilityFlag.PUBLISHED

    def test_unknown_flag(self):
        """Unknown names raise InvalidFlagError carrying the name."""
        with pytest.raises(InvalidFlagError) as exc_info:
            parse_flag("trending")
        assert exc_info.value.flag_name == "trending"

    def test_flag_names_are_case_sensitive(self):
        with pytest.raises(InvalidFlagError):
            parse_flag("BestSellers")


class TestGroupAExclusivity:
    """At most one of bestSellers/bestSelling/editorsPick/featuredProduct."""

    def test_setting_group_a_flag_clears_siblings(self):
        """Turning on editorsPick clears bestSelling on the same product."""
        target = VisibilityState(uuid4(), best_selling=True)
        write_set = decide_visibility_change(
            VisibilityFlag.EDITORS_PICK, True, CollectionState(target)
        )

        assert set(write_set.writes) == {
            FieldWrite(target.product_id, VisibilityFlag.EDITORS_PICK, True),
            FieldWrite(target.product_id, VisibilityFlag.BEST_SELLING, False),
        }
        after = write_set.apply_to(target)
        assert after.editors_pick and not after.best_selling
        assert _group_a_count(after) == 1

    @pytest.mark.parametrize("flag", GROUP_A_FLAGS)
    def test_each_group_a_flag_is_exclusive(self, flag):
        """Whatever Group A flag was held before, exactly one is held after."""
        target = VisibilityState(uuid4(), featured_product=True)
        write_set = decide_visibility_change(flag, True, CollectionState(target))

        after = write_set.apply_to(target)
        assert after.get(flag)
        assert _group_a_count(after) == 1

    def test_exclusivity_keeps_independent_flags(self):
        """published and popularFeatured survive a Group A change."""
        target = VisibilityState(uuid4(), published=True, popular_featured=True, editors_pick=True)
        write_set = decide_visibility_change(
            VisibilityFlag.BEST_SELLING, True, CollectionState(target)
        )

        after = write_set.apply_to(target)
        assert after.published
        assert after.popular_featured
        assert after.best_selling

    def test_clearing_group_a_flag_touches_only_that_flag(self):
        target = VisibilityState(uuid4(), editors_pick=True, published=True)
        write_set = decide_visibility_change(
            VisibilityFlag.EDITORS_PICK, False, CollectionState(target)
        )

        assert write_set.writes == (
            FieldWrite(target.product_id, VisibilityFlag.EDITORS_PICK, False),
        )


class TestShowcaseLimit:
    """bestSellers is capped across the collection."""

    def test_grant_below_limit(self):
        target = VisibilityState(uuid4())
        write_set = decide_visibility_change(
            VisibilityFlag.BEST_SELLERS,
            True,
            CollectionState(target, other_showcase_count=SHOWCASE_LIMIT - 1),
        )

        assert write_set.apply_to(target).best_sellers

    def test_grant_at_limit_raises(self):
        """The fifth bestSellers grant is rejected with counts attached."""
        target = VisibilityState(uuid4())

        with pytest.raises(LimitReachedError) as exc_info:
            decide_visibility_change(
                VisibilityFlag.BEST_SELLERS,
                True,
                CollectionState(target, other_showcase_count=4),
            )

        assert exc_info.value.current_count == 4
        assert exc_info.value.limit == 4
        assert str(exc_info.value) == (
            "4 of 4 Main Showcase slots used. Remove one before adding another."
        )

    def test_limit_ignored_when_target_already_holds_flag(self):
        """Re-asserting bestSellers on a holder is a no-op, not a rejection."""
        target = VisibilityState(uuid4(), best_sellers=True)
        write_set = decide_visibility_change(
            VisibilityFlag.BEST_SELLERS,
            True,
            CollectionState(target, other_showcase_count=4),
        )

        assert write_set.is_noop

    def test_clearing_at_limit_is_allowed(self):
        target = VisibilityState(uuid4(), best_sellers=True)
        write_set = decide_visibility_change(
            VisibilityFlag.BEST_SELLERS,
            False,
            CollectionState(target, other_showcase_count=3),
        )

        assert not write_set.apply_to(target).best_sellers

    def test_custom_limit(self):
        target = VisibilityState(uuid4())

        with pytest.raises(LimitReachedError) as exc_info:
            decide_visibility_change(
                VisibilityFlag.BEST_SELLERS,
                True,
                CollectionState(target, other_showcase_count=2),
                showcase_limit=2,
            )

        assert exc_info.value.limit == 2

    def test_other_group_a_flags_not_limited(self):
        """Only bestSellers is capped; bestSelling has no collection limit."""
        target = VisibilityState(uuid4())
        write_set = decide_visibility_change(
            VisibilityFlag.BEST_SELLING,
            True,
            CollectionState(target, other_showcase_count=10),
        )

        assert write_set.apply_to(target).best_selling


class TestPopularFeatured:
    """popularFeatured is a singleton that transfers between products."""

    def test_transfer_clears_previous_holder(self):
        previous = uuid4()
        target = VisibilityState(uuid4())
        write_set = decide_visibility_change(
            VisibilityFlag.POPULAR_FEATURED,
            True,
            CollectionState(target, other_popular_featured_ids=(previous,)),
        )

        assert write_set.writes == (
            FieldWrite(target.product_id, VisibilityFlag.POPULAR_FEATURED, True),
            FieldWrite(previous, VisibilityFlag.POPULAR_FEATURED, False),
        )
        assert write_set.product_ids == [target.product_id, previous]

    def test_first_grant_touches_only_target(self):
        target = VisibilityState(uuid4())
        write_set = decide_visibility_change(
            VisibilityFlag.POPULAR_FEATURED, True, CollectionState(target)
        )

        assert write_set.product_ids == [target.product_id]

    def test_does_not_touch_group_a(self):
        """popularFeatured coexists with any Group A flag."""
        target = VisibilityState(uuid4(), best_sellers=True)
        write_set = decide_visibility_change(
            VisibilityFlag.POPULAR_FEATURED, True, CollectionState(target)
        )

        after = write_set.apply_to(target)
        assert after.best_sellers
        assert after.popular_featured

    def test_clearing_leaves_collection_without_holder(self):
        target = VisibilityState(uuid4(), popular_featured=True)
        write_set = decide_visibility_change(
            VisibilityFlag.POPULAR_FEATURED, False, CollectionState(target)
        )

        assert write_set.writes == (
            FieldWrite(target.product_id, VisibilityFlag.POPULAR_FEATURED, False),
        )

    def test_regrant_to_holder_is_noop(self):
        target = VisibilityState(uuid4(), popular_featured=True)
        write_set = decide_visibility_change(
            VisibilityFlag.POPULAR_FEATURED, True, CollectionState(target)
        )

        assert write_set.is_noop


class TestPublished:
    """published is independent of every other flag."""

    def test_publish_single_write(self):
        target = VisibilityState(uuid4(), editors_pick=True)
        write_set = decide_visibility_change(
            VisibilityFlag.PUBLISHED, True, CollectionState(target)
        )

        assert write_set.writes == (
            FieldWrite(target.product_id, VisibilityFlag.PUBLISHED, True),
        )

    def test_unpublish_keeps_curation_flags(self):
        target = VisibilityState(uuid4(), published=True, best_sellers=True, popular_featured=True)
        after = decide_visibility_change(
            VisibilityFlag.PUBLISHED, False, CollectionState(target)
        ).apply_to(target)

        assert not after.published
        assert after.best_sellers
        assert after.popular_featured


class TestIdempotence:
    """Applying the same change twice yields an empty second write-set."""

    @pytest.mark.parametrize("flag", list(VisibilityFlag))
    @pytest.mark.parametrize("desired", [True, False])
    def test_second_application_is_noop(self, flag, desired):
        target = VisibilityState(uuid4())
        first = decide_visibility_change(flag, desired, CollectionState(target))
        after = first.apply_to(target)

        second = decide_visibility_change(flag, desired, CollectionState(after))

        assert second.is_noop

    def test_empty_write_set(self):
        assert WriteSet().is_noop
        assert WriteSet().product_ids == []
