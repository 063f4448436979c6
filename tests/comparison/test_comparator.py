"""Tests for the structural comparator."""

import pytest

from relia.comparison.domain.comparator import compare, score_percent


class TestPrimitives:
    @pytest.mark.parametrize(
        ("expected", "actual"),
        [("a", "a"), (1, 1), (1, 1.0), (True, True), (2.5, 2.5)],
    )
    def test_equal_primitives_score_perfect(self, expected: object, actual: object) -> None:
        result = compare(expected, actual)

        assert result.score == 1.0
        assert (result.expected_found, result.expected_total, result.unexpected_found) == (
            1,
            1,
            0,
        )
        assert result.is_equal

    @pytest.mark.parametrize(
        ("expected", "actual"),
        [("a", "b"), (1, 2), (True, 1), (False, 0), ("1", 1), (1, [1])],
    )
    def test_unequal_primitives_score_zero(self, expected: object, actual: object) -> None:
        result = compare(expected, actual)

        assert result.score == 0.0
        assert (result.expected_found, result.expected_total, result.unexpected_found) == (
            0,
            1,
            1,
        )
        assert not result.is_equal


class TestNulls:
    def test_null_null_is_perfect(self) -> None:
        result = compare(None, None)

        assert result.score == 1.0
        assert result.expected_found == result.expected_total == 1

    def test_null_expected_non_null_actual_counts_unexpected(self) -> None:
        result = compare(None, "x")

        assert (result.expected_found, result.expected_total, result.unexpected_found) == (
            0,
            1,
            1,
        )
        assert result.score == 0.0

    def test_non_null_expected_null_actual_has_no_unexpected(self) -> None:
        result = compare({"a": 1}, None)

        assert result.expected_total == 1
        assert result.unexpected_found == 0
        assert result.score == 0.0


class TestArrays:
    def test_order_and_duplicates_are_irrelevant(self) -> None:
        with_duplicates = compare([1, 1, 2], [2, 1])
        without = compare([1, 2], [2, 1])

        assert with_duplicates == without
        assert with_duplicates.score == 1.0

    def test_extra_item_scenario_scores_fifty_percent(self) -> None:
        expected = [{"type": "company", "name": "Apple"}]
        actual = [
            {"type": "company", "name": "Apple"},
            {"type": "person", "name": "Tim"},
        ]

        result = compare(expected, actual)

        assert result.expected_found == 1
        assert result.expected_total == 1
        assert result.unexpected_found == 1
        assert result.score == 0.5

    def test_items_match_by_deep_equality(self) -> None:
        result = compare([{"a": [1, 2]}], [{"a": [1, 2]}])

        assert result.score == 1.0

    def test_nested_arrays_keep_their_order(self) -> None:
        result = compare([[1, 2]], [[2, 1]])

        assert result.expected_found == 0
        assert result.unexpected_found == 1

    def test_array_vs_non_array(self) -> None:
        result = compare([1, 2, 2], {"a": 1})

        assert result.expected_found == 0
        assert result.expected_total == 2
        assert result.unexpected_found == 1
        assert result.score == 0.0

    def test_empty_expected_array_vs_non_array_still_counts_one(self) -> None:
        result = compare([], "text")

        assert result.expected_total == 1

    def test_empty_arrays_are_a_perfect_match(self) -> None:
        result = compare([], [])

        assert result.score == 1.0
        assert result.expected_total == 0

    def test_partial_overlap_rounds_half_up(self) -> None:
        # 2 / (3 + 0) = 66.67% -> 67
        result = compare([1, 2, 3], [1, 2])

        assert result.score == 0.67


class TestObjects:
    def test_partial_key_match(self) -> None:
        result = compare({"a": 1, "b": 2}, {"a": 1, "b": 3})

        assert result.expected_found == 1
        assert result.expected_total == 2
        assert result.unexpected_found == 0
        assert result.score == 0.5

    def test_extra_key_increments_unexpected_only(self) -> None:
        base = compare({"a": 1}, {"a": 1})
        extended = compare({"a": 1}, {"a": 1, "b": 99})

        assert extended.unexpected_found == base.unexpected_found + 1
        assert extended.expected_found == base.expected_found

    def test_extra_key_value_is_not_inspected(self) -> None:
        first = compare({"a": 1}, {"a": 1, "b": None})
        second = compare({"a": 1}, {"a": 1, "b": {"deep": [1, 2, 3]}})

        assert first == second

    def test_object_vs_array(self) -> None:
        result = compare({"a": 1, "b": 2}, [1])

        assert result.expected_total == 2
        assert result.unexpected_found == 1
        assert result.score == 0.0


class TestScorePercent:
    def test_zero_denominator_is_perfect(self) -> None:
        assert score_percent(0, 0, 0) == 100

    def test_half_rounds_up(self) -> None:
        # 1 / 8 = 12.5%
        assert score_percent(1, 8, 0) == 13

    def test_plain_fraction(self) -> None:
        assert score_percent(1, 1, 1) == 50
