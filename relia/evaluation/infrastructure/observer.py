"""StructlogEvaluationObserver: production observer that delegates to structlog."""

import structlog


class StructlogEvaluationObserver:
    """Logs evaluation domain events to structlog.

    Does NOT inherit from EvaluationObserver (structural typing via Protocol).
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def run_started(
        self,
        job_id: str | None,
        total_test_cases: int,
        runner_ids: list[str],
        repetitions: int,
    ) -> None:
        self._log.info(
            "run.started",
            job_id=job_id,
            total_test_cases=total_test_cases,
            runner_ids=runner_ids,
            repetitions=repetitions,
        )

    def run_completed(
        self, job_id: str | None, overall_score: float, elapsed_seconds: float
    ) -> None:
        self._log.info(
            "run.completed",
            job_id=job_id,
            overall_score=overall_score,
            elapsed_seconds=round(elapsed_seconds, 2),
        )

    def run_failed(self, job_id: str | None, reason: str) -> None:
        self._log.error("run.failed", job_id=job_id, reason=reason)

    def unit_started(
        self, test_case_id: str, runner_id: str, repetition_number: int
    ) -> None:
        self._log.debug(
            "unit.started",
            test_case_id=test_case_id,
            runner_id=runner_id,
            repetition_number=repetition_number,
        )

    def unit_completed(
        self,
        test_case_id: str,
        runner_id: str,
        repetition_number: int,
        score: float,
    ) -> None:
        self._log.info(
            "unit.completed",
            test_case_id=test_case_id,
            runner_id=runner_id,
            repetition_number=repetition_number,
            score=score,
        )

    def unit_failed(
        self,
        test_case_id: str,
        runner_id: str,
        repetition_number: int,
        reason: str,
    ) -> None:
        self._log.error(
            "unit.failed",
            test_case_id=test_case_id,
            runner_id=runner_id,
            repetition_number=repetition_number,
            reason=reason,
        )

    def run_progress(
        self, job_id: str | None, runner_id: str, completed: int, total: int
    ) -> None:
        self._log.info(
            "run.progress",
            job_id=job_id,
            runner_id=runner_id,
            completed=completed,
            total=total,
            percent=round(100.0 * completed / total, 1) if total else 0.0,
        )

    def runner_skipped(self, provider: str, model_id: str) -> None:
        self._log.warning(
            "runner.skipped",
            provider=provider,
            model_id=model_id,
            reason="model credentials are not configured",
        )

    def job_dispatched(self, job_id: str, prompt_id: str, total_tests: int) -> None:
        self._log.info(
            "job.dispatched", job_id=job_id, prompt_id=prompt_id, total_tests=total_tests
        )

    def job_failed(self, job_id: str, reason: str) -> None:
        self._log.error("job.failed", job_id=job_id, reason=reason)
