"""RunOrchestrator: fans a run out over test cases and model runners."""

import asyncio
import contextlib
import time

from relia.core.errors import InputValidationError
from relia.evaluation.application.dispatcher import EvaluationDispatcher, EvaluationPlan
from relia.evaluation.domain.aggregate import (
    aggregate_runner,
    aggregate_test_case,
    build_summary,
)
from relia.evaluation.domain.observer import EvaluationObserver
from relia.evaluation.domain.results import RunSummary
from relia.evaluation.domain.test_case import PromptConfig, TestCase
from relia.evaluation.domain.unit_result import UnitResult
from relia.generation.domain.generator import Generator
from relia.generation.domain.selection import ModelRunner
from relia.jobs.application.registry import JobRegistry
from relia.jobs.domain.progress import JobStatus
from relia.store.domain.store import ResultStore


class _LocalProgress:
    """Completed-unit counter for runs that have no job to report to."""

    def __init__(self) -> None:
        self.completed = 0
        self.lock = asyncio.Lock()


class RunOrchestrator:
    """Executes every (runner, test case, repetition) unit and aggregates the scores.

    Runners and test cases fan out concurrently; the repetitions of one
    (runner, test case) pair run in order. A unit that fails to generate or
    evaluate becomes a zero-score UnitResult and never affects its siblings.
    Anything else that goes wrong (persisting a result, updating the job) is
    an orchestration failure: the job is marked failed and the error is
    re-raised to the caller.
    """

    def __init__(
        self,
        generator: Generator,
        dispatcher: EvaluationDispatcher,
        registry: JobRegistry,
        observer: EvaluationObserver,
        store: ResultStore | None = None,
        max_concurrent: int | None = None,
    ) -> None:
        self._generator = generator
        self._dispatcher = dispatcher
        self._registry = registry
        self._observer = observer
        self._store = store
        self._max_concurrent = max_concurrent

    def prepare(
        self, test_cases: list[TestCase], prompt: PromptConfig | None = None
    ) -> list[EvaluationPlan]:
        """Compile every test case; raises InputValidationError before any unit runs."""
        return [self._dispatcher.plan(test_case, prompt) for test_case in test_cases]

    async def run(
        self,
        prompt: PromptConfig | str,
        test_cases: list[TestCase],
        runners: list[ModelRunner],
        repetitions: int,
        job_id: str | None = None,
    ) -> RunSummary:
        """Run all units and return the aggregated RunSummary.

        With a ``job_id`` the registry and store follow the run: the job goes
        running, gains one completed unit at a time, and finally becomes
        completed with the serialized summary, or failed.
        """
        prompt_config = prompt if isinstance(prompt, PromptConfig) else None
        prompt_id = prompt_config.id if prompt_config is not None else None
        prompt_content = prompt.content if isinstance(prompt, PromptConfig) else prompt
        total = len(test_cases) * len(runners) * repetitions

        try:
            if repetitions < 1:
                raise InputValidationError("repetitions must be at least 1")
            plans = self.prepare(test_cases, prompt_config)

            if job_id is not None:
                if self._registry.get(job_id) is None:
                    self._registry.create(job_id, total_tests=total)
                    if self._store is not None:
                        self._store.create_job(
                            job_id, prompt_id=prompt_id or "", total_tests=total
                        )
                self._registry.start(job_id)
                if self._store is not None:
                    self._store.update_job_progress(job_id, status=JobStatus.RUNNING)

            self._observer.run_started(
                job_id=job_id,
                total_test_cases=len(test_cases),
                runner_ids=[r.id for r in runners],
                repetitions=repetitions,
            )
            started_at = time.monotonic()

            summary = await self._execute(
                prompt_id=prompt_id,
                prompt_content=prompt_content,
                plans=plans,
                runners=runners,
                repetitions=repetitions,
                total=total,
                job_id=job_id,
            )

            if job_id is not None:
                payload = summary.model_dump(mode="json")
                if self._store is not None:
                    self._store.update_job_progress(
                        job_id, status=JobStatus.COMPLETED, results=payload
                    )
                self._registry.complete(job_id, results=payload)
        except Exception as exc:
            self._observer.run_failed(job_id=job_id, reason=str(exc))
            if job_id is not None:
                self._mark_failed(job_id, str(exc))
            raise

        self._observer.run_completed(
            job_id=job_id,
            overall_score=summary.overall_score,
            elapsed_seconds=time.monotonic() - started_at,
        )
        return summary

    async def _execute(
        self,
        prompt_id: str | None,
        prompt_content: str,
        plans: list[EvaluationPlan],
        runners: list[ModelRunner],
        repetitions: int,
        total: int,
        job_id: str | None,
    ) -> RunSummary:
        semaphore = (
            asyncio.Semaphore(self._max_concurrent)
            if self._max_concurrent is not None
            else None
        )
        local = _LocalProgress()
        tasks: list[list[asyncio.Task[list[UnitResult]]]] = []

        try:
            async with asyncio.TaskGroup() as tg:
                for runner in runners:
                    tasks.append(
                        [
                            tg.create_task(
                                self._run_series(
                                    semaphore=semaphore,
                                    runner=runner,
                                    plan=plan,
                                    prompt_content=prompt_content,
                                    repetitions=repetitions,
                                    total=total,
                                    job_id=job_id,
                                    local=local,
                                )
                            )
                            for plan in plans
                        ]
                    )
        except* Exception as eg:
            raise eg.exceptions[0]

        runner_results = [
            aggregate_runner(
                runner,
                [
                    aggregate_test_case(plan.test_case, task.result())
                    for plan, task in zip(plans, runner_tasks)
                ],
            )
            for runner, runner_tasks in zip(runners, tasks)
        ]
        return build_summary(
            prompt_id=prompt_id,
            prompt_content=prompt_content,
            total_test_cases=len(plans),
            runner_results=runner_results,
        )

    async def _run_series(
        self,
        semaphore: asyncio.Semaphore | None,
        runner: ModelRunner,
        plan: EvaluationPlan,
        prompt_content: str,
        repetitions: int,
        total: int,
        job_id: str | None,
        local: _LocalProgress,
    ) -> list[UnitResult]:
        """Run the repetitions of one (runner, test case) pair in order."""
        runs: list[UnitResult] = []
        for repetition_number in range(1, repetitions + 1):
            self._observer.unit_started(
                test_case_id=plan.test_case.id,
                runner_id=runner.id,
                repetition_number=repetition_number,
            )
            async with self._slot(semaphore):
                result = await self._run_unit(
                    runner=runner,
                    plan=plan,
                    prompt_content=prompt_content,
                    repetition_number=repetition_number,
                )
            runs.append(result)

            if job_id is not None:
                self._persist(job_id, runner, plan.test_case, result)
            await self._advance(job_id, runner.id, total, local)
        return runs

    async def _run_unit(
        self,
        runner: ModelRunner,
        plan: EvaluationPlan,
        prompt_content: str,
        repetition_number: int,
    ) -> UnitResult:
        test_case = plan.test_case
        started = time.monotonic()
        try:
            output = await self._generator.complete(
                system_prompt=prompt_content,
                user_input=test_case.input,
                model_id=runner.model_id,
                output_shape=plan.output_shape,
            )
        except Exception as exc:
            self._observer.unit_failed(
                test_case_id=test_case.id,
                runner_id=runner.id,
                repetition_number=repetition_number,
                reason=str(exc),
            )
            return UnitResult.failed(repetition_number, error=str(exc))
        duration_ms = int((time.monotonic() - started) * 1000)

        try:
            outcome = await self._dispatcher.evaluate(
                plan,
                system_prompt=prompt_content,
                user_input=test_case.input,
                output=output,
            )
        except Exception as exc:
            self._observer.unit_failed(
                test_case_id=test_case.id,
                runner_id=runner.id,
                repetition_number=repetition_number,
                reason=str(exc),
            )
            return UnitResult(
                repetition_number=repetition_number,
                actual_output=output,
                is_correct=False,
                score=0.0,
                expected_found=0,
                expected_total=0,
                unexpected_found=0,
                error=str(exc),
                duration_ms=duration_ms,
            )

        self._observer.unit_completed(
            test_case_id=test_case.id,
            runner_id=runner.id,
            repetition_number=repetition_number,
            score=outcome.score,
        )
        return UnitResult(
            repetition_number=repetition_number,
            actual_output=outcome.output,
            is_correct=outcome.score == 1.0,
            score=outcome.score,
            expected_found=outcome.expected_found,
            expected_total=outcome.expected_total,
            unexpected_found=outcome.unexpected_found,
            reason=outcome.reason,
            duration_ms=duration_ms,
            rounds=outcome.rounds,
        )

    def _persist(
        self, job_id: str, runner: ModelRunner, test_case: TestCase, result: UnitResult
    ) -> None:
        if self._store is None:
            return
        self._store.create_unit_result(
            job_id=job_id,
            test_case_id=test_case.id,
            model_runner_id=runner.id,
            repetition_number=result.repetition_number,
            result=result,
        )
        for evaluation_round in result.rounds:
            self._store.create_evaluation_round(
                job_id=job_id,
                test_case_id=test_case.id,
                model_runner_id=runner.id,
                repetition_number=result.repetition_number,
                evaluation_round=evaluation_round,
            )

    async def _advance(
        self, job_id: str | None, runner_id: str, total: int, local: _LocalProgress
    ) -> None:
        if job_id is not None:
            snapshot = self._registry.increment(job_id)
            completed = snapshot.completed_tests
            if self._store is not None:
                self._store.update_job_progress(job_id, completed_tests=completed)
        else:
            async with local.lock:
                local.completed += 1
                completed = local.completed
        self._observer.run_progress(
            job_id=job_id, runner_id=runner_id, completed=completed, total=total
        )

    def _mark_failed(self, job_id: str, reason: str) -> None:
        job = self._registry.get(job_id)
        if job is None or job.status.is_terminal:
            return
        self._registry.fail(job_id, error=reason)
        if self._store is not None:
            # The store may itself be what failed.
            with contextlib.suppress(Exception):
                self._store.update_job_progress(
                    job_id, status=JobStatus.FAILED, error=reason
                )

    @staticmethod
    def _slot(
        semaphore: asyncio.Semaphore | None,
    ) -> contextlib.AbstractAsyncContextManager[object]:
        if semaphore is None:
            return contextlib.nullcontext()
        return semaphore
