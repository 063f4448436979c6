"""Aggregate result models: per test case, per model runner and per run."""

from pydantic import BaseModel, Field

from relia.evaluation.domain.unit_result import UnitResult


class DurationStats(BaseModel, frozen=True):
    min_ms: int = Field(ge=0)
    max_ms: int = Field(ge=0)
    avg_ms: float = Field(ge=0.0)


class TestCaseResult(BaseModel, frozen=True):
    """Every repetition of one test case against one runner, in repetition order."""

    __test__ = False

    test_case_id: str
    input: str
    expected_output: str | None
    runs: list[UnitResult]
    correct_runs: int = Field(ge=0)
    average_score: float = Field(ge=0.0, le=1.0)


class ModelRunnerResult(BaseModel, frozen=True):
    """Aggregates for one runner; ``score`` weights every test case equally."""

    runner_id: str
    model_id: str
    correct_count: int = Field(ge=0)
    total_runs: int = Field(ge=0)
    score: float = Field(ge=0.0, le=1.0)
    test_case_results: list[TestCaseResult]
    duration_stats: DurationStats | None = None


class RunSummary(BaseModel, frozen=True):
    """The serialized payload stored on a completed job."""

    prompt_id: str | None
    prompt_content: str
    total_test_cases: int = Field(ge=0)
    overall_score: float = Field(ge=0.0, le=1.0)
    runner_results: list[ModelRunnerResult]


class SummaryRow(BaseModel, frozen=True):
    """One representative run per test case, used for compact reports."""

    test_case_id: str
    input: str
    expected_output: str | None
    actual_output: str | None
    is_correct: bool
    score: float
    expected_found: int
    expected_total: int
    unexpected_found: int
