"""Recursive validator over compiled SchemaNode facets."""

import json

from pydantic import BaseModel

from relia.comparison.domain.json_value import JsonValue, contains, deep_equal
from relia.schema.domain.node import (
    ArrayFacet,
    CombinatorFacet,
    ConstFacet,
    EnumFacet,
    NumericFacet,
    ObjectFacet,
    SchemaNode,
    StringFacet,
    TypeFacet,
)


class Violation(BaseModel, frozen=True):
    """One schema violation located by a pointer-like path such as ``$.items[2].name``."""

    path: str
    message: str

    def __str__(self) -> str:
        return f"{self.path}: {self.message}"


def kind_of(value: JsonValue) -> str:
    """Runtime JSON kind of a parsed value; whole floats count as integers."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, float):
        return "integer" if value.is_integer() else "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    return "object"


def validate(schema: SchemaNode, value: JsonValue, path: str = "$") -> list[Violation]:
    """Return every violation of ``value`` against ``schema``; empty means valid."""
    violations: list[Violation] = []
    typed = schema.declared_kinds is not None

    for facet in schema.facets:
        match facet:
            case TypeFacet(kinds=kinds):
                violations.extend(_check_type(kinds, value, path))
            case ConstFacet(value=expected):
                if not deep_equal(expected, value):
                    violations.append(
                        Violation(path=path, message=f"must equal {_render(expected)}")
                    )
            case EnumFacet(members=members):
                if not contains(list(members), value):
                    violations.append(
                        Violation(
                            path=path,
                            message=f"must be one of {_render(list(members))}",
                        )
                    )
            case CombinatorFacet():
                violations.extend(_check_combinator(facet, value, path))
            case ObjectFacet():
                violations.extend(_check_object(facet, value, path, typed))
            case ArrayFacet():
                violations.extend(_check_array(facet, value, path, typed))
            case StringFacet():
                if isinstance(value, str):
                    violations.extend(_check_string(facet, value, path))
            case NumericFacet():
                if kind_of(value) in ("integer", "number"):
                    violations.extend(_check_number(facet, value, path))

    return violations


def _check_type(kinds: frozenset[str], value: JsonValue, path: str) -> list[Violation]:
    actual = kind_of(value)
    if actual in kinds or (actual == "integer" and "number" in kinds):
        return []
    expected = " or ".join(sorted(kinds))
    return [Violation(path=path, message=f"expected {expected}, got {actual}")]


def _check_combinator(
    facet: CombinatorFacet, value: JsonValue, path: str
) -> list[Violation]:
    if facet.kind == "allOf":
        return [
            violation
            for branch in facet.branches
            for violation in validate(branch, value, path)
        ]

    matches = sum(1 for branch in facet.branches if not validate(branch, value, path))
    total = len(facet.branches)
    if facet.kind == "anyOf":
        if matches:
            return []
        return [
            Violation(path=path, message=f"does not match any of {total} schemas")
        ]

    if matches == 1:
        return []
    return [
        Violation(
            path=path,
            message=f"matches {matches} of {total} schemas, expected exactly one",
        )
    ]


def _check_object(
    facet: ObjectFacet, value: JsonValue, path: str, typed: bool
) -> list[Violation]:
    if not isinstance(value, dict):
        # An explicit 'type' already reported the kind mismatch.
        if typed:
            return []
        return [Violation(path=path, message=f"expected object, got {kind_of(value)}")]

    violations = [
        Violation(path=path, message=f"missing required property '{key}'")
        for key in facet.required
        if key not in value
    ]
    for key, item in value.items():
        child_path = f"{path}.{key}"
        declared = facet.properties.get(key)
        if declared is not None:
            violations.extend(validate(declared, item, child_path))
        elif facet.additional is False:
            violations.append(
                Violation(path=child_path, message="additional property not allowed")
            )
        elif isinstance(facet.additional, SchemaNode):
            violations.extend(validate(facet.additional, item, child_path))
    return violations


def _check_array(
    facet: ArrayFacet, value: JsonValue, path: str, typed: bool
) -> list[Violation]:
    if not isinstance(value, list):
        if typed:
            return []
        return [Violation(path=path, message=f"expected array, got {kind_of(value)}")]

    violations: list[Violation] = []
    if facet.min_items is not None and len(value) < facet.min_items:
        violations.append(
            Violation(
                path=path,
                message=f"expected at least {facet.min_items} items, got {len(value)}",
            )
        )
    if facet.max_items is not None and len(value) > facet.max_items:
        violations.append(
            Violation(
                path=path,
                message=f"expected at most {facet.max_items} items, got {len(value)}",
            )
        )
    if facet.items is not None:
        for index, item in enumerate(value):
            violations.extend(validate(facet.items, item, f"{path}[{index}]"))
    return violations


def _check_string(facet: StringFacet, value: str, path: str) -> list[Violation]:
    violations: list[Violation] = []
    if facet.min_length is not None and len(value) < facet.min_length:
        violations.append(
            Violation(
                path=path, message=f"shorter than minLength {facet.min_length}"
            )
        )
    if facet.max_length is not None and len(value) > facet.max_length:
        violations.append(
            Violation(path=path, message=f"longer than maxLength {facet.max_length}")
        )
    if facet.pattern_error is not None:
        violations.append(
            Violation(
                path=path,
                message=f"invalid pattern {facet.pattern!r}: {facet.pattern_error}",
            )
        )
    elif facet.compiled is not None and facet.compiled.search(value) is None:
        violations.append(
            Violation(path=path, message=f"does not match pattern {facet.pattern!r}")
        )
    return violations


def _check_number(facet: NumericFacet, value: JsonValue, path: str) -> list[Violation]:
    assert isinstance(value, (int, float))
    violations: list[Violation] = []
    if facet.minimum is not None and value < facet.minimum:
        violations.append(
            Violation(path=path, message=f"less than minimum {facet.minimum}")
        )
    if facet.maximum is not None and value > facet.maximum:
        violations.append(
            Violation(path=path, message=f"greater than maximum {facet.maximum}")
        )
    return violations


def _render(value: JsonValue) -> str:
    return json.dumps(value, sort_keys=True)
