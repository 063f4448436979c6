"""GradingResponse: strict decode of a grading model's reply into a tagged result."""

import json
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

MAX_REASON_WORDS = 100

# Shape hint sent with every grading and optimizer-grading request.
GRADING_SHAPE: dict[str, Any] = {
    "type": "object",
    "properties": {
        "score": {"type": "number", "minimum": 0, "maximum": 1},
        "reason": {
            "type": "string",
            "description": f"At most {MAX_REASON_WORDS} words.",
        },
    },
    "required": ["score", "reason"],
    "additionalProperties": False,
}


class GradingVerdict(BaseModel):
    """The only reply shape accepted from a grading model."""

    model_config = ConfigDict(frozen=True, extra="forbid", strict=True)

    score: float = Field(ge=0.0, le=1.0)
    reason: str

    @field_validator("score", mode="before")
    @classmethod
    def _reject_booleans(cls, value: Any) -> Any:
        if isinstance(value, bool):
            raise ValueError("score must be a number, not a boolean")
        # strict mode refuses int -> float; JSON has a single number type.
        if isinstance(value, int):
            return float(value)
        return value

    @field_validator("reason")
    @classmethod
    def _cap_reason_length(cls, value: str) -> str:
        words = value.split()
        if len(words) > MAX_REASON_WORDS:
            return " ".join(words[:MAX_REASON_WORDS])
        return value


class ValidGrading(BaseModel, frozen=True):
    kind: Literal["valid"] = "valid"
    score: float
    reason: str


class MalformedGrading(BaseModel, frozen=True):
    kind: Literal["malformed"] = "malformed"
    raw: str
    detail: str


type GradingResponse = ValidGrading | MalformedGrading


def decode_grading(raw: str) -> GradingResponse:
    """Decode ``raw`` as exactly ``{"score": number in [0, 1], "reason": string}``.

    Anything else (prose, extra keys, out-of-range or non-numeric score) is
    reported as MalformedGrading rather than coerced.
    """
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        return MalformedGrading(raw=raw, detail=f"invalid JSON: {exc}")

    try:
        verdict = GradingVerdict.model_validate(data)
    except ValidationError as exc:
        detail = "; ".join(
            f"{'.'.join(str(part) for part in error['loc']) or 'response'}: {error['msg']}"
            for error in exc.errors()
        )
        return MalformedGrading(raw=raw, detail=detail)

    return ValidGrading(score=verdict.score, reason=verdict.reason)
