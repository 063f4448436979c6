"""JsonValue alias and strict deep equality over parsed JSON values."""

type JsonValue = (
    str | int | float | bool | None | list["JsonValue"] | dict[str, "JsonValue"]
)


def deep_equal(left: JsonValue, right: JsonValue) -> bool:
    """Structural equality with JSON semantics.

    Booleans never equal numbers (Python's ``True == 1`` does not apply), while
    ``1`` and ``1.0`` are the same JSON number. Object key order is irrelevant,
    array order is significant.
    """
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left == right
    if isinstance(left, (int, float)) and isinstance(right, (int, float)):
        return left == right
    if isinstance(left, list) and isinstance(right, list):
        return len(left) == len(right) and all(
            deep_equal(a, b) for a, b in zip(left, right)
        )
    if isinstance(left, dict) and isinstance(right, dict):
        return left.keys() == right.keys() and all(
            deep_equal(value, right[key]) for key, value in left.items()
        )
    return type(left) is type(right) and left == right


def unique(items: list[JsonValue]) -> list[JsonValue]:
    """Return items with deep-equal duplicates removed, first occurrence kept."""
    kept: list[JsonValue] = []
    for item in items:
        if not contains(kept, item):
            kept.append(item)
    return kept


def contains(items: list[JsonValue], value: JsonValue) -> bool:
    return any(deep_equal(item, value) for item in items)
