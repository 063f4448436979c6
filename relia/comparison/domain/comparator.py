"""Structural comparator: scores a produced JSON value against an expected one."""

from pydantic import BaseModel, Field

from relia.comparison.domain.json_value import JsonValue, contains, deep_equal, unique


class ComparisonResult(BaseModel, frozen=True):
    """Counts behind a structural comparison plus the derived score in [0, 1].

    ``score`` is ``round(expected_found / (expected_total + unexpected_found) * 100)``
    expressed as a fraction; an empty denominator is scored as a perfect match.
    """

    score: float = Field(ge=0.0, le=1.0)
    expected_found: int = Field(ge=0)
    expected_total: int = Field(ge=0)
    unexpected_found: int = Field(ge=0)

    @property
    def is_equal(self) -> bool:
        return self.score == 1.0


def compare(expected: JsonValue, actual: JsonValue) -> ComparisonResult:
    """Compare already-parsed values with type-aware rules.

    Arrays are compared as sets (order and duplicates ignored), objects by
    partial key matching, everything else by exact deep equality.
    """
    found, total, unexpected = _count(expected=expected, actual=actual)
    return ComparisonResult(
        score=score_percent(found, total, unexpected) / 100,
        expected_found=found,
        expected_total=total,
        unexpected_found=unexpected,
    )


def score_percent(found: int, total: int, unexpected: int) -> int:
    """Integer percentage, rounded half-up, 100 when nothing was expected or extra."""
    denominator = total + unexpected
    if denominator == 0:
        return 100
    return (200 * found + denominator) // (2 * denominator)


def _count(expected: JsonValue, actual: JsonValue) -> tuple[int, int, int]:
    if expected is None and actual is None:
        return 1, 1, 0
    if expected is None or actual is None:
        return 0, 1, 1 if actual is not None else 0

    if isinstance(expected, list):
        unique_expected = unique(expected)
        if isinstance(actual, list):
            return _compare_sets(unique_expected, unique(actual))
        return 0, max(len(unique_expected), 1), 1

    if isinstance(expected, dict):
        if isinstance(actual, dict):
            return _compare_objects(expected, actual)
        return 0, max(len(expected), 1), 1

    if deep_equal(expected, actual):
        return 1, 1, 0
    return 0, 1, 1


def _compare_sets(
    unique_expected: list[JsonValue], unique_actual: list[JsonValue]
) -> tuple[int, int, int]:
    found = sum(1 for item in unique_expected if contains(unique_actual, item))
    unexpected = sum(1 for item in unique_actual if not contains(unique_expected, item))
    return found, len(unique_expected), unexpected


def _compare_objects(
    expected: dict[str, JsonValue], actual: dict[str, JsonValue]
) -> tuple[int, int, int]:
    found = sum(
        1
        for key, value in expected.items()
        if key in actual and deep_equal(value, actual[key])
    )
    # Extra keys count by presence only; their values are never inspected.
    unexpected = sum(1 for key in actual if key not in expected)
    return found, len(expected), unexpected
