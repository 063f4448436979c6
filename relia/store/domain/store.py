"""ResultStore port: the persistence collaborator a run reads from and appends to."""

from typing import Any, Protocol

from relia.evaluation.domain.test_case import PromptConfig, TestCase
from relia.evaluation.domain.unit_result import UnitResult
from relia.grading.domain.outcome import EvaluationRound
from relia.jobs.domain.progress import JobStatus


class ResultStore(Protocol):
    """Plain CRUD and append operations with at-least-once semantics.

    Lookups return None or an empty list when nothing is stored; callers decide
    whether absence is an error.
    """

    def get_prompt_config(self, prompt_id: str) -> PromptConfig | None: ...

    def get_test_cases_for_prompt(self, prompt_id: str) -> list[TestCase]: ...

    def create_job(self, job_id: str, prompt_id: str, total_tests: int) -> None:
        """Create a pending job; a job that already exists is left unchanged."""
        ...

    def update_job_progress(
        self,
        job_id: str,
        *,
        status: JobStatus | None = None,
        completed_tests: int | None = None,
        results: dict[str, Any] | None = None,
        error: str | None = None,
    ) -> None: ...

    def create_unit_result(
        self,
        job_id: str,
        test_case_id: str,
        model_runner_id: str,
        repetition_number: int,
        result: UnitResult,
    ) -> None: ...

    def create_evaluation_round(
        self,
        job_id: str,
        test_case_id: str,
        model_runner_id: str,
        repetition_number: int,
        evaluation_round: EvaluationRound,
    ) -> None: ...
