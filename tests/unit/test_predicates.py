"""
Unit tests for filter predicates.
"""

import pytest

from single_store.storage.predicates import Equals, In, Where


class TestEquals:
    """Test Equals predicate."""

    def test_matches_equal_value(self):
        assert Equals("store_id", 0).matches({"store_id": 0})

    def test_rejects_other_value(self):
        assert not Equals("store_id", 0).matches({"store_id": 1})

    def test_missing_column_does_not_match(self):
        assert not Equals("store_id", 0).matches({"value_id": 1})


class TestIn:
    """Test In predicate."""

    def test_values_are_deduplicated_in_order(self):
        predicate = In("attribute_id", [5, 6, 5, 7, 6])
        assert predicate.values == (5, 6, 7)

    def test_accepts_any_iterable(self):
        predicate = In("row_id", (x for x in [10, 11]))
        assert predicate.values == (10, 11)

    def test_matches_member(self):
        assert In("row_id", [10, 11]).matches({"row_id": 11})

    def test_rejects_non_member(self):
        assert not In("row_id", [10, 11]).matches({"row_id": 12})

    def test_empty_set_matches_nothing(self):
        assert not In("row_id", []).matches({"row_id": 10})

    def test_equality_and_hash(self):
        assert In("row_id", [1, 2]) == In("row_id", [1, 2, 1])
        assert hash(In("row_id", [1, 2])) == hash(In("row_id", [1, 2]))


class TestWhere:
    """Test Where conjunction."""

    def test_all_predicates_must_match(self):
        where = Where(Equals("store_id", 0), In("attribute_id", [5]), In("row_id", [10]))

        assert where.matches({"store_id": 0, "attribute_id": 5, "row_id": 10})
        assert not where.matches({"store_id": 1, "attribute_id": 5, "row_id": 10})
        assert not where.matches({"store_id": 0, "attribute_id": 6, "row_id": 10})
        assert not where.matches({"store_id": 0, "attribute_id": 5, "row_id": 11})

    def test_empty_conjunction_matches_everything(self):
        assert Where().matches({"anything": 1})
        assert len(Where()) == 0

    def test_iterates_predicates_in_order(self):
        first, second = Equals("store_id", 1), In("value_id", [1])
        assert list(Where(first, second)) == [first, second]

    def test_equality(self):
        assert Where(Equals("store_id", 1)) == Where(Equals("store_id", 1))
        assert Where(Equals("store_id", 1)) != Where(Equals("store_id", 2))

    def test_rejects_unknown_predicate(self):
        with pytest.raises(TypeError, match="Unsupported predicate"):
            Where("store_id = 1")
