"""SchemaNode: a JSON-Schema subset compiled once into typed facets.

Raw schemas are open-ended dictionaries; ``build_schema`` checks them once and
turns each supported keyword group into a closed facet type so that the
validator dispatches on facet kind instead of probing dictionary keys.
"""

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Literal

from relia.comparison.domain.json_value import JsonValue
from relia.core.errors import InputValidationError

type CombinatorKind = Literal["allOf", "anyOf", "oneOf"]

KINDS: frozenset[str] = frozenset(
    {"string", "number", "integer", "boolean", "null", "array", "object"}
)


@dataclass(frozen=True)
class TypeFacet:
    kinds: frozenset[str]


@dataclass(frozen=True)
class ConstFacet:
    value: JsonValue


@dataclass(frozen=True)
class EnumFacet:
    members: tuple[JsonValue, ...]


@dataclass(frozen=True)
class CombinatorFacet:
    kind: CombinatorKind
    branches: tuple["SchemaNode", ...]


@dataclass(frozen=True)
class ObjectFacet:
    properties: Mapping[str, "SchemaNode"] = field(default_factory=dict)
    required: tuple[str, ...] = ()
    # True: undeclared keys allowed; False: forbidden; SchemaNode: validated against it.
    additional: "bool | SchemaNode" = True


@dataclass(frozen=True)
class ArrayFacet:
    items: "SchemaNode | None" = None
    min_items: int | None = None
    max_items: int | None = None


@dataclass(frozen=True)
class StringFacet:
    min_length: int | None = None
    max_length: int | None = None
    pattern: str | None = None
    compiled: re.Pattern[str] | None = None
    pattern_error: str | None = None


@dataclass(frozen=True)
class NumericFacet:
    minimum: float | None = None
    maximum: float | None = None


type Facet = (
    TypeFacet
    | ConstFacet
    | EnumFacet
    | CombinatorFacet
    | ObjectFacet
    | ArrayFacet
    | StringFacet
    | NumericFacet
)


@dataclass(frozen=True)
class SchemaNode:
    """One compiled schema level. An empty facet tuple accepts any value."""

    facets: tuple[Facet, ...] = ()

    @property
    def declared_kinds(self) -> frozenset[str] | None:
        for facet in self.facets:
            if isinstance(facet, TypeFacet):
                return facet.kinds
        return None


def build_schema(raw: Any, path: str = "$") -> SchemaNode:
    """Compile a raw schema mapping into a SchemaNode.

    Unknown keywords (``title``, ``description``, ``format`` ...) are ignored.

    Raises:
        InputValidationError: if any supported keyword has the wrong shape.
    """
    if raw is True:
        return SchemaNode()
    if not isinstance(raw, dict):
        raise InputValidationError(f"schema at {path} must be an object")

    facets: list[Facet] = []

    if "type" in raw:
        facets.append(TypeFacet(kinds=_kinds(raw["type"], path)))
    if "const" in raw:
        facets.append(ConstFacet(value=raw["const"]))
    if "enum" in raw:
        members = raw["enum"]
        if not isinstance(members, list) or not members:
            raise InputValidationError(f"'enum' at {path} must be a non-empty array")
        facets.append(EnumFacet(members=tuple(members)))

    for keyword in ("allOf", "anyOf", "oneOf"):
        if keyword in raw:
            facets.append(_combinator(keyword, raw[keyword], path))

    kinds = facets[0].kinds if facets and isinstance(facets[0], TypeFacet) else None

    if (kinds and "object" in kinds) or any(
        key in raw for key in ("properties", "required", "additionalProperties")
    ):
        facets.append(_object_facet(raw, path))
    if (kinds and "array" in kinds) or any(
        key in raw for key in ("items", "minItems", "maxItems")
    ):
        facets.append(_array_facet(raw, path))
    if any(key in raw for key in ("minLength", "maxLength", "pattern")):
        facets.append(_string_facet(raw, path))
    if any(key in raw for key in ("minimum", "maximum")):
        facets.append(
            NumericFacet(
                minimum=_number(raw, "minimum", path),
                maximum=_number(raw, "maximum", path),
            )
        )

    return SchemaNode(facets=tuple(facets))


def _kinds(declared: Any, path: str) -> frozenset[str]:
    names = [declared] if isinstance(declared, str) else declared
    if not isinstance(names, list) or not names:
        raise InputValidationError(
            f"'type' at {path} must be a string or non-empty array"
        )
    unknown = [name for name in names if name not in KINDS]
    if unknown:
        raise InputValidationError(f"unknown type(s) {unknown} at {path}")
    return frozenset(names)


def _combinator(keyword: CombinatorKind, branches: Any, path: str) -> CombinatorFacet:
    if not isinstance(branches, list) or not branches:
        raise InputValidationError(f"'{keyword}' at {path} must be a non-empty array")
    return CombinatorFacet(
        kind=keyword,
        branches=tuple(
            build_schema(branch, f"{path}.{keyword}[{index}]")
            for index, branch in enumerate(branches)
        ),
    )


def _object_facet(raw: dict[str, Any], path: str) -> ObjectFacet:
    properties_raw = raw.get("properties", {})
    if not isinstance(properties_raw, dict):
        raise InputValidationError(f"'properties' at {path} must be an object")
    required = raw.get("required", [])
    if not isinstance(required, list) or not all(isinstance(k, str) for k in required):
        raise InputValidationError(f"'required' at {path} must be an array of strings")

    additional_raw = raw.get("additionalProperties", True)
    additional: bool | SchemaNode
    if isinstance(additional_raw, bool):
        additional = additional_raw
    else:
        additional = build_schema(additional_raw, f"{path}.additionalProperties")

    return ObjectFacet(
        properties={
            name: build_schema(sub, f"{path}.properties.{name}")
            for name, sub in properties_raw.items()
        },
        required=tuple(required),
        additional=additional,
    )


def _array_facet(raw: dict[str, Any], path: str) -> ArrayFacet:
    items_raw = raw.get("items")
    return ArrayFacet(
        items=build_schema(items_raw, f"{path}.items") if items_raw is not None else None,
        min_items=_count(raw, "minItems", path),
        max_items=_count(raw, "maxItems", path),
    )


def _string_facet(raw: dict[str, Any], path: str) -> StringFacet:
    pattern = raw.get("pattern")
    if pattern is not None and not isinstance(pattern, str):
        raise InputValidationError(f"'pattern' at {path} must be a string")

    compiled: re.Pattern[str] | None = None
    pattern_error: str | None = None
    if pattern is not None:
        # A bad pattern is reported per value, not raised: the schema stays usable.
        try:
            compiled = re.compile(pattern)
        except re.error as exc:
            pattern_error = str(exc)

    return StringFacet(
        min_length=_count(raw, "minLength", path),
        max_length=_count(raw, "maxLength", path),
        pattern=pattern,
        compiled=compiled,
        pattern_error=pattern_error,
    )


def _count(raw: dict[str, Any], keyword: str, path: str) -> int | None:
    value = raw.get(keyword)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise InputValidationError(
            f"'{keyword}' at {path} must be a non-negative integer"
        )
    return value


def _number(raw: dict[str, Any], keyword: str, path: str) -> float | None:
    value = raw.get(keyword)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InputValidationError(f"'{keyword}' at {path} must be a number")
    return value
