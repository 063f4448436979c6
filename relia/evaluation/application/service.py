"""TestRunService: dispatches jobs, answers progress polls, runs tests directly."""

import asyncio
import functools
import uuid

from relia.core.errors import ConfigurationError, InputValidationError, NotFoundError
from relia.evaluation.application.runner import RunOrchestrator
from relia.evaluation.domain.observer import EvaluationObserver
from relia.evaluation.domain.results import RunSummary
from relia.evaluation.domain.test_case import PromptConfig, TestCase
from relia.generation.domain.generator import Generator
from relia.generation.domain.selection import ModelRunner, ModelSelection
from relia.jobs.application.registry import JobRegistry
from relia.jobs.domain.progress import JobProgress
from relia.store.domain.store import ResultStore


class TestRunService:
    """The exposed surface: start_run, get_progress, wait and run_tests.

    Only dispatch-time problems (unknown prompt, no test cases, no configured
    model, malformed test cases) reach the caller of ``start_run``. Once a job
    is dispatched it runs to completion in the background; its outcome is
    observed through ``get_progress`` or ``wait``.
    """

    __test__ = False

    def __init__(
        self,
        store: ResultStore,
        orchestrator: RunOrchestrator,
        registry: JobRegistry,
        generator: Generator,
        observer: EvaluationObserver,
        default_selections: list[ModelSelection] | None = None,
    ) -> None:
        self._store = store
        self._orchestrator = orchestrator
        self._registry = registry
        self._generator = generator
        self._observer = observer
        self._default_selections = list(default_selections or [])
        self._tasks: dict[str, asyncio.Task[RunSummary]] = {}

    def resolve_runners(
        self, model_selections: list[ModelSelection] | None = None
    ) -> list[ModelRunner]:
        """Turn selections (or the defaults) into runners, skipping unconfigured models."""
        selections = model_selections or self._default_selections
        runners: list[ModelRunner] = []
        for selection in selections:
            if not self._generator.is_configured(selection.model_id):
                self._observer.runner_skipped(
                    provider=selection.provider, model_id=selection.model_id
                )
                continue
            runners.append(ModelRunner.from_selection(selection))

        if not runners:
            raise ConfigurationError(
                "no configured model selected; select at least one model to run tests"
            )
        return runners

    def start_run(
        self,
        prompt_id: str,
        repetitions: int = 1,
        model_selections: list[ModelSelection] | None = None,
    ) -> str:
        """Validate and dispatch a job, returning its id without waiting for it.

        Must be called from within a running event loop.
        """
        if repetitions < 1:
            raise InputValidationError("repetitions must be at least 1")

        prompt = self._store.get_prompt_config(prompt_id)
        if prompt is None:
            raise NotFoundError("prompt", prompt_id)
        test_cases = self._store.get_test_cases_for_prompt(prompt_id)
        if not test_cases:
            raise NotFoundError("test cases for prompt", prompt_id)
        runners = self.resolve_runners(model_selections)
        self._orchestrator.prepare(test_cases, prompt)

        job_id = str(uuid.uuid4())
        total_tests = len(test_cases) * len(runners) * repetitions
        self._store.create_job(job_id, prompt_id=prompt_id, total_tests=total_tests)
        self._registry.create(job_id, total_tests=total_tests)
        self._observer.job_dispatched(
            job_id=job_id, prompt_id=prompt_id, total_tests=total_tests
        )

        task = asyncio.get_running_loop().create_task(
            self._orchestrator.run(
                prompt=prompt,
                test_cases=test_cases,
                runners=runners,
                repetitions=repetitions,
                job_id=job_id,
            ),
            name=f"relia-job-{job_id}",
        )
        self._tasks[job_id] = task
        task.add_done_callback(functools.partial(self._on_job_done, job_id))
        return job_id

    def get_progress(self, job_id: str) -> JobProgress | None:
        return self._registry.get(job_id)

    async def wait(self, job_id: str) -> RunSummary:
        """Await a dispatched job; an orchestration failure is re-raised here.

        A finished job is forgotten once it has been awaited, so each job can be
        waited on to completion once. Its progress stays available.
        """
        task = self._tasks.get(job_id)
        if task is None:
            raise NotFoundError("job", job_id)
        try:
            return await asyncio.shield(task)
        finally:
            if task.done():
                self._tasks.pop(job_id, None)

    async def run_tests(
        self,
        prompt: PromptConfig | str,
        test_cases: list[TestCase],
        runners: list[ModelRunner],
        repetitions: int = 1,
        job_id: str | None = None,
    ) -> RunSummary:
        """Library entry point: run directly, with or without a tracked job."""
        return await self._orchestrator.run(
            prompt=prompt,
            test_cases=test_cases,
            runners=runners,
            repetitions=repetitions,
            job_id=job_id,
        )

    def _on_job_done(self, job_id: str, task: asyncio.Task[RunSummary]) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self._observer.job_failed(job_id=job_id, reason=str(exc))
