"""Tolerant JSON extraction from free-form generated text."""

import json
import re
from dataclasses import dataclass

from relia.comparison.domain.json_value import JsonValue

_FENCED_BLOCK = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```")
_DECODER = json.JSONDecoder()


@dataclass(frozen=True)
class Parsed:
    """A successfully decoded JSON value (which may itself be ``None``)."""

    value: JsonValue


@dataclass(frozen=True)
class ParseFailure:
    """Every extraction strategy failed; ``error`` explains the direct-parse failure."""

    error: str


type ParseOutcome = Parsed | ParseFailure


def parse_json(text: str) -> ParseOutcome:
    """Decode ``text`` as JSON, tolerating the wrappers models tend to add.

    Tries, in order: the whole (trimmed) text, the body of the first fenced
    code block, and the first ``{...}`` or ``[...]`` span that decodes on its
    own. Never returns an empty value in place of a failure.
    """
    trimmed = text.strip()
    if not trimmed:
        return ParseFailure(error="input is empty")

    try:
        return Parsed(value=json.loads(trimmed))
    except json.JSONDecodeError as exc:
        direct_error = f"invalid JSON: {exc}"

    fenced = _FENCED_BLOCK.search(trimmed)
    if fenced is not None:
        try:
            return Parsed(value=json.loads(fenced.group(1).strip()))
        except json.JSONDecodeError:
            pass

    span = _first_embedded_value(trimmed)
    if span is not None:
        return span

    return ParseFailure(error=direct_error)


def _first_embedded_value(text: str) -> Parsed | None:
    """Scan for the first '{' or '[' from which a complete JSON value decodes."""
    for index, char in enumerate(text):
        if char not in "{[":
            continue
        try:
            value, _ = _DECODER.raw_decode(text, index)
        except json.JSONDecodeError:
            continue
        return Parsed(value=value)
    return None
