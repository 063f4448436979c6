"""Aggregation of unit results into test case, runner and run level scores.

Every aggregate is a plain mean; no rounding is applied so a serialized
summary reproduces the same scores when read back.
"""

from relia.evaluation.domain.results import (
    DurationStats,
    ModelRunnerResult,
    RunSummary,
    SummaryRow,
    TestCaseResult,
)
from relia.evaluation.domain.test_case import TestCase
from relia.evaluation.domain.unit_result import UnitResult
from relia.generation.domain.selection import ModelRunner


def _mean(values: list[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def aggregate_test_case(test_case: TestCase, runs: list[UnitResult]) -> TestCaseResult:
    ordered = sorted(runs, key=lambda r: r.repetition_number)
    return TestCaseResult(
        test_case_id=test_case.id,
        input=test_case.input,
        expected_output=test_case.expected_output,
        runs=ordered,
        correct_runs=sum(1 for r in ordered if r.is_correct),
        average_score=_mean([r.score for r in ordered]),
    )


def duration_stats(runs: list[UnitResult]) -> DurationStats | None:
    """Min/max/avg over timed runs; None when no run was timed."""
    durations = [r.duration_ms for r in runs if r.duration_ms is not None]
    if not durations:
        return None
    return DurationStats(
        min_ms=min(durations),
        max_ms=max(durations),
        avg_ms=sum(durations) / len(durations),
    )


def aggregate_runner(
    runner: ModelRunner, test_case_results: list[TestCaseResult]
) -> ModelRunnerResult:
    """Average of per-test-case averages, independent of repetition count."""
    all_runs = [run for tc in test_case_results for run in tc.runs]
    return ModelRunnerResult(
        runner_id=runner.id,
        model_id=runner.model_id,
        correct_count=sum(tc.correct_runs for tc in test_case_results),
        total_runs=len(all_runs),
        score=_mean([tc.average_score for tc in test_case_results]),
        test_case_results=test_case_results,
        duration_stats=duration_stats(all_runs),
    )


def build_summary(
    prompt_id: str | None,
    prompt_content: str,
    total_test_cases: int,
    runner_results: list[ModelRunnerResult],
) -> RunSummary:
    return RunSummary(
        prompt_id=prompt_id,
        prompt_content=prompt_content,
        total_test_cases=total_test_cases,
        overall_score=_mean([r.score for r in runner_results]),
        runner_results=runner_results,
    )


def summarize(runner_results: list[ModelRunnerResult]) -> list[SummaryRow]:
    """Pick one representative run per test case across all runners.

    The first incorrect run wins so that failures surface; a test case with
    only correct runs is represented by its first one. Test cases appear in
    first-seen order.
    """
    grouped: dict[str, tuple[TestCaseResult, list[UnitResult]]] = {}
    for runner_result in runner_results:
        for tc in runner_result.test_case_results:
            _, runs = grouped.setdefault(tc.test_case_id, (tc, []))
            runs.extend(tc.runs)

    rows: list[SummaryRow] = []
    for tc, runs in grouped.values():
        representative = next((r for r in runs if not r.is_correct), None)
        if representative is None:
            representative = next((r for r in runs if r.is_correct), None)
        if representative is None:
            continue
        rows.append(
            SummaryRow(
                test_case_id=tc.test_case_id,
                input=tc.input,
                expected_output=tc.expected_output,
                actual_output=representative.actual_output,
                is_correct=representative.is_correct,
                score=representative.score,
                expected_found=representative.expected_found,
                expected_total=representative.expected_total,
                unexpected_found=representative.unexpected_found,
            )
        )
    return rows
