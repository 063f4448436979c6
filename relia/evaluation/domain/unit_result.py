"""UnitResult: the immutable outcome of one (test case, runner, repetition) unit."""

from pydantic import BaseModel, Field, model_validator

from relia.grading.domain.outcome import EvaluationRound


class UnitResult(BaseModel, frozen=True):
    """Result of executing and evaluating a single unit.

    A unit whose generation failed carries ``error`` and no output; its score
    is zero. ``rounds`` is non-empty only when the optimizer ran.
    """

    repetition_number: int = Field(ge=1)
    actual_output: str | None
    is_correct: bool
    score: float = Field(ge=0.0, le=1.0)
    expected_found: int = Field(ge=0)
    expected_total: int = Field(ge=0)
    unexpected_found: int = Field(ge=0)
    reason: str | None = None
    error: str | None = None
    duration_ms: int | None = None
    rounds: list[EvaluationRound] = []

    @model_validator(mode="after")
    def _found_within_total(self) -> "UnitResult":
        if self.expected_found > self.expected_total:
            raise ValueError("expected_found must not exceed expected_total")
        return self

    @classmethod
    def failed(cls, repetition_number: int, error: str) -> "UnitResult":
        return cls(
            repetition_number=repetition_number,
            actual_output=None,
            is_correct=False,
            score=0.0,
            expected_found=0,
            expected_total=0,
            unexpected_found=0,
            error=error,
        )
