"""CompositeEvaluationObserver: fans out all events to a list of observers."""

from relia.evaluation.domain.observer import EvaluationObserver


class CompositeEvaluationObserver:
    """Delegates every observer event to each observer in order.

    Does NOT inherit from EvaluationObserver (structural typing via Protocol).
    """

    def __init__(self, observers: list[EvaluationObserver]) -> None:
        self._observers = observers

    def run_started(
        self,
        job_id: str | None,
        total_test_cases: int,
        runner_ids: list[str],
        repetitions: int,
    ) -> None:
        for obs in self._observers:
            obs.run_started(
                job_id=job_id,
                total_test_cases=total_test_cases,
                runner_ids=runner_ids,
                repetitions=repetitions,
            )

    def run_completed(
        self, job_id: str | None, overall_score: float, elapsed_seconds: float
    ) -> None:
        for obs in self._observers:
            obs.run_completed(
                job_id=job_id,
                overall_score=overall_score,
                elapsed_seconds=elapsed_seconds,
            )

    def run_failed(self, job_id: str | None, reason: str) -> None:
        for obs in self._observers:
            obs.run_failed(job_id=job_id, reason=reason)

    def unit_started(
        self, test_case_id: str, runner_id: str, repetition_number: int
    ) -> None:
        for obs in self._observers:
            obs.unit_started(
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
        for obs in self._observers:
            obs.unit_completed(
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
        for obs in self._observers:
            obs.unit_failed(
                test_case_id=test_case_id,
                runner_id=runner_id,
                repetition_number=repetition_number,
                reason=reason,
            )

    def run_progress(
        self, job_id: str | None, runner_id: str, completed: int, total: int
    ) -> None:
        for obs in self._observers:
            obs.run_progress(
                job_id=job_id, runner_id=runner_id, completed=completed, total=total
            )

    def runner_skipped(self, provider: str, model_id: str) -> None:
        for obs in self._observers:
            obs.runner_skipped(provider=provider, model_id=model_id)

    def job_dispatched(self, job_id: str, prompt_id: str, total_tests: int) -> None:
        for obs in self._observers:
            obs.job_dispatched(
                job_id=job_id, prompt_id=prompt_id, total_tests=total_tests
            )

    def job_failed(self, job_id: str, reason: str) -> None:
        for obs in self._observers:
            obs.job_failed(job_id=job_id, reason=reason)
