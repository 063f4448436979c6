"""Tests for deep equality over parsed JSON values."""

from relia.comparison.domain.json_value import contains, deep_equal, unique


class TestDeepEqual:
    def test_int_equals_whole_float(self) -> None:
        assert deep_equal(1, 1.0)

    def test_bool_never_equals_number(self) -> None:
        assert not deep_equal(True, 1)
        assert not deep_equal(0, False)

    def test_dict_key_order_is_irrelevant(self) -> None:
        assert deep_equal({"a": 1, "b": 2}, {"b": 2, "a": 1})

    def test_list_order_matters(self) -> None:
        assert not deep_equal([1, 2], [2, 1])

    def test_missing_key_is_unequal(self) -> None:
        assert not deep_equal({"a": 1}, {"a": 1, "b": None})


class TestUnique:
    def test_deduplicates_structurally(self) -> None:
        assert unique([{"a": 1}, {"a": 1}, {"a": 2}]) == [{"a": 1}, {"a": 2}]

    def test_keeps_true_and_one_apart(self) -> None:
        assert unique([True, 1]) == [True, 1]

    def test_contains_uses_deep_equality(self) -> None:
        assert contains([[1, 2], [3]], [1, 2])
        assert not contains([[1, 2]], [2, 1])
