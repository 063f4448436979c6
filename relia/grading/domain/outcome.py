"""GradeOutcome and EvaluationRound: results produced by grading and optimization."""

from pydantic import BaseModel, Field

NOT_EVALUATED = "not evaluated"


class GradeOutcome(BaseModel, frozen=True):
    """Result of one grading attempt.

    ``failed`` marks a grading failure that was degraded to a zero score; the
    reason then carries the error.
    """

    score: float = Field(ge=0.0, le=1.0)
    reason: str
    evaluated: bool = True
    failed: bool = False

    @classmethod
    def not_evaluated(cls) -> "GradeOutcome":
        return cls(score=1.0, reason=NOT_EVALUATED, evaluated=False)

    @classmethod
    def failure(cls, reason: str) -> "GradeOutcome":
        return cls(score=0.0, reason=reason, failed=True)


class EvaluationRound(BaseModel, frozen=True):
    """One graded output in an optimizer sequence; round 0 is the original output."""

    round_number: int = Field(ge=0)
    output: str
    score: float = Field(ge=0.0, le=1.0)
    reason: str
