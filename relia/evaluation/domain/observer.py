"""Observer port for the evaluation domain: defines events in domain language."""

from typing import Protocol


class EvaluationObserver(Protocol):
    """Observer port emitting structured events during a run.

    Implementations may log to structlog, record for tests, or emit metrics.
    """

    def run_started(
        self,
        job_id: str | None,
        total_test_cases: int,
        runner_ids: list[str],
        repetitions: int,
    ) -> None: ...

    def run_completed(
        self, job_id: str | None, overall_score: float, elapsed_seconds: float
    ) -> None: ...

    def run_failed(self, job_id: str | None, reason: str) -> None: ...

    def unit_started(
        self, test_case_id: str, runner_id: str, repetition_number: int
    ) -> None: ...

    def unit_completed(
        self,
        test_case_id: str,
        runner_id: str,
        repetition_number: int,
        score: float,
    ) -> None: ...

    def unit_failed(
        self,
        test_case_id: str,
        runner_id: str,
        repetition_number: int,
        reason: str,
    ) -> None: ...

    def run_progress(
        self, job_id: str | None, runner_id: str, completed: int, total: int
    ) -> None: ...

    def runner_skipped(self, provider: str, model_id: str) -> None: ...

    def job_dispatched(self, job_id: str, prompt_id: str, total_tests: int) -> None: ...

    def job_failed(self, job_id: str, reason: str) -> None: ...
