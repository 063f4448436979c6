"""InMemoryResultStore: a process-local ResultStore used by the CLI and tests."""

import threading
from dataclasses import dataclass, field
from typing import Any

from relia.core.errors import NotFoundError
from relia.evaluation.domain.test_case import PromptConfig, TestCase
from relia.evaluation.domain.unit_result import UnitResult
from relia.grading.domain.outcome import EvaluationRound
from relia.jobs.domain.progress import JobStatus


@dataclass
class StoredJob:
    job_id: str
    prompt_id: str
    total_tests: int
    status: JobStatus = JobStatus.PENDING
    completed_tests: int = 0
    results: dict[str, Any] | None = None
    error: str | None = None


@dataclass(frozen=True)
class StoredUnitResult:
    job_id: str
    test_case_id: str
    model_runner_id: str
    repetition_number: int
    result: UnitResult


@dataclass(frozen=True)
class StoredEvaluationRound:
    job_id: str
    test_case_id: str
    model_runner_id: str
    repetition_number: int
    evaluation_round: EvaluationRound


@dataclass
class InMemoryResultStore:
    """Thread-safe store; unit results and rounds are append-only lists."""

    prompts: dict[str, PromptConfig] = field(default_factory=dict)
    test_cases: dict[str, list[TestCase]] = field(default_factory=dict)
    jobs: dict[str, StoredJob] = field(default_factory=dict)
    unit_results: list[StoredUnitResult] = field(default_factory=list)
    evaluation_rounds: list[StoredEvaluationRound] = field(default_factory=list)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def add_prompt(self, prompt: PromptConfig, test_cases: list[TestCase]) -> None:
        with self._lock:
            self.prompts[prompt.id] = prompt
            self.test_cases[prompt.id] = list(test_cases)

    def get_prompt_config(self, prompt_id: str) -> PromptConfig | None:
        with self._lock:
            return self.prompts.get(prompt_id)

    def get_test_cases_for_prompt(self, prompt_id: str) -> list[TestCase]:
        with self._lock:
            return list(self.test_cases.get(prompt_id, []))

    def create_job(self, job_id: str, prompt_id: str, total_tests: int) -> None:
        with self._lock:
            self.jobs.setdefault(
                job_id,
                StoredJob(job_id=job_id, prompt_id=prompt_id, total_tests=total_tests),
            )

    def update_job_progress(
        self,
        job_id: str,
        *,
        status: JobStatus | None = None,
        completed_tests: int | None = None,
        results: dict[str, Any] | None = None,
        error: str | None = None,
    ) -> None:
        with self._lock:
            job = self.jobs.get(job_id)
            if job is None:
                raise NotFoundError("job", job_id)
            if status is not None:
                job.status = status
            if completed_tests is not None:
                # Writes may arrive out of order; the count never moves backwards.
                job.completed_tests = max(job.completed_tests, completed_tests)
            if results is not None:
                job.results = results
            if error is not None:
                job.error = error

    def create_unit_result(
        self,
        job_id: str,
        test_case_id: str,
        model_runner_id: str,
        repetition_number: int,
        result: UnitResult,
    ) -> None:
        with self._lock:
            self.unit_results.append(
                StoredUnitResult(
                    job_id=job_id,
                    test_case_id=test_case_id,
                    model_runner_id=model_runner_id,
                    repetition_number=repetition_number,
                    result=result,
                )
            )

    def create_evaluation_round(
        self,
        job_id: str,
        test_case_id: str,
        model_runner_id: str,
        repetition_number: int,
        evaluation_round: EvaluationRound,
    ) -> None:
        with self._lock:
            self.evaluation_rounds.append(
                StoredEvaluationRound(
                    job_id=job_id,
                    test_case_id=test_case_id,
                    model_runner_id=model_runner_id,
                    repetition_number=repetition_number,
                    evaluation_round=evaluation_round,
                )
            )

    def results_for_job(self, job_id: str) -> list[StoredUnitResult]:
        with self._lock:
            return [r for r in self.unit_results if r.job_id == job_id]
