"""Tests for TestRunService dispatch, polling and direct runs."""

import asyncio

import pytest

from relia.core.errors import ConfigurationError, InputValidationError, NotFoundError
from relia.evaluation.application.dispatcher import EvaluationDispatcher
from relia.evaluation.application.runner import RunOrchestrator
from relia.evaluation.application.service import TestRunService
from relia.evaluation.domain.test_case import PromptConfig, TestCase
from relia.evaluation.domain.unit_result import UnitResult
from relia.generation.domain.selection import ModelRunner, ModelSelection
from relia.grading.application.grader import LlmGrader
from relia.grading.application.optimizer import OptimizerLoop
from relia.jobs.application.registry import JobRegistry
from relia.jobs.domain.progress import JobStatus
from relia.store.infrastructure.memory import InMemoryResultStore
from tests.evaluation.fake_observer import FakeEvaluationObserver
from tests.generation.fake_generator import FakeGenerator
from tests.grading.fake_observer import FakeGradingObserver

_PROMPT = PromptConfig(id="p1", content="Return the numbers.")
_CASES = [
    TestCase(id="1", input="one", expected_output="[1]"),
    TestCase(id="2", input="two", expected_output="[2]"),
]
_GPT = ModelSelection(provider="openai", model_id="gpt-4o")
_LLAMA = ModelSelection(provider="groq", model_id="llama")


class _BrokenStore(InMemoryResultStore):
    def create_unit_result(
        self,
        job_id: str,
        test_case_id: str,
        model_runner_id: str,
        repetition_number: int,
        result: UnitResult,
    ) -> None:
        raise RuntimeError("connection lost")


def _make_service(
    generator: FakeGenerator | None = None,
    store: InMemoryResultStore | None = None,
    default_selections: list[ModelSelection] | None = None,
) -> tuple[TestRunService, InMemoryResultStore, FakeEvaluationObserver]:
    generator = generator or FakeGenerator(
        respond=lambda call: "[1]" if call.user_input == "one" else "[2]"
    )
    store = store if store is not None else InMemoryResultStore()
    store.add_prompt(_PROMPT, _CASES)
    store.add_prompt(PromptConfig(id="empty", content="nothing to run"), [])

    grading_observer = FakeGradingObserver()
    grader = LlmGrader(generator=generator, model_id=None, observer=grading_observer)
    optimizer = OptimizerLoop(
        generator=generator,
        grader=grader,
        model_id=None,
        max_iterations=0,
        score_threshold=None,
        observer=grading_observer,
    )
    registry = JobRegistry()
    observer = FakeEvaluationObserver()
    orchestrator = RunOrchestrator(
        generator=generator,
        dispatcher=EvaluationDispatcher(grader=grader, optimizer=optimizer),
        registry=registry,
        observer=observer,
        store=store,
    )
    service = TestRunService(
        store=store,
        orchestrator=orchestrator,
        registry=registry,
        generator=generator,
        observer=observer,
        default_selections=default_selections if default_selections is not None else [_GPT],
    )
    return service, store, observer


class TestStartRun:
    async def test_returns_a_pending_job_before_any_unit_runs(self) -> None:
        service, store, observer = _make_service()

        job_id = service.start_run("p1", repetitions=3)

        progress = service.get_progress(job_id)
        assert progress is not None
        assert progress.status is JobStatus.PENDING
        assert progress.total_tests == 6
        assert progress.completed_tests == 0
        assert store.jobs[job_id].total_tests == 6
        assert observer.dispatched[0].job_id == job_id
        await service.wait(job_id)

    async def test_job_runs_to_completion_in_the_background(self) -> None:
        service, store, _ = _make_service()

        job_id = service.start_run("p1", repetitions=3)
        summary = await service.wait(job_id)

        progress = service.get_progress(job_id)
        assert progress is not None
        assert progress.status is JobStatus.COMPLETED
        assert (progress.completed_tests, progress.progress) == (6, 100)
        assert progress.results == summary.model_dump(mode="json")
        assert summary.overall_score == 1.0
        assert len(store.results_for_job(job_id)) == 6

    async def test_explicit_selections_override_defaults(self) -> None:
        service, _, _ = _make_service()

        job_id = service.start_run("p1", model_selections=[_GPT, _LLAMA])
        summary = await service.wait(job_id)

        assert [r.model_id for r in summary.runner_results] == ["gpt-4o", "llama"]

    async def test_unknown_prompt_is_not_found(self) -> None:
        service, store, _ = _make_service()

        with pytest.raises(NotFoundError) as exc_info:
            service.start_run("missing")

        assert exc_info.value.resource == "prompt"
        assert store.jobs == {}

    async def test_prompt_without_test_cases_is_not_found(self) -> None:
        service, store, _ = _make_service()

        with pytest.raises(NotFoundError):
            service.start_run("empty")

        assert store.jobs == {}

    async def test_invalid_repetitions_are_rejected(self) -> None:
        service, _, _ = _make_service()

        with pytest.raises(InputValidationError):
            service.start_run("p1", repetitions=0)

    async def test_unconfigured_models_are_skipped(self) -> None:
        generator = FakeGenerator(default="[1]", unconfigured={"llama"})
        service, _, observer = _make_service(
            generator=generator, default_selections=[_GPT, _LLAMA]
        )

        job_id = service.start_run("p1")
        summary = await service.wait(job_id)

        assert [s.model_id for s in observer.skipped] == ["llama"]
        assert [r.model_id for r in summary.runner_results] == ["gpt-4o"]

    async def test_no_configured_model_is_a_configuration_error(self) -> None:
        generator = FakeGenerator(unconfigured={"gpt-4o"})
        service, store, _ = _make_service(generator=generator)

        with pytest.raises(ConfigurationError):
            service.start_run("p1")

        assert store.jobs == {}

    async def test_orchestration_failure_surfaces_through_the_job(self) -> None:
        service, store, observer = _make_service(store=_BrokenStore())

        job_id = service.start_run("p1")
        with pytest.raises(RuntimeError, match="connection lost"):
            await service.wait(job_id)
        await asyncio.sleep(0)

        progress = service.get_progress(job_id)
        assert progress is not None
        assert progress.status is JobStatus.FAILED
        assert progress.error == "connection lost"
        assert store.jobs[job_id].status is JobStatus.FAILED
        assert [f.job_id for f in observer.jobs_failed] == [job_id]


class TestProgressAndWait:
    def test_unknown_job_has_no_progress(self) -> None:
        service, _, _ = _make_service()

        assert service.get_progress("nope") is None

    async def test_waiting_on_unknown_job_is_not_found(self) -> None:
        service, _, _ = _make_service()

        with pytest.raises(NotFoundError):
            await service.wait("nope")

    async def test_an_awaited_job_is_forgotten_but_keeps_its_progress(self) -> None:
        service, _, _ = _make_service()
        job_id = service.start_run("p1")
        await service.wait(job_id)

        with pytest.raises(NotFoundError):
            await service.wait(job_id)

        progress = service.get_progress(job_id)
        assert progress is not None
        assert progress.status is JobStatus.COMPLETED

    async def test_an_awaited_failed_job_is_forgotten(self) -> None:
        service, _, _ = _make_service(store=_BrokenStore())
        job_id = service.start_run("p1")
        with pytest.raises(RuntimeError):
            await service.wait(job_id)

        with pytest.raises(NotFoundError):
            await service.wait(job_id)


class TestRunTests:
    async def test_runs_directly_without_a_job(self) -> None:
        service, store, _ = _make_service()
        runner = ModelRunner.from_selection(_GPT)

        summary = await service.run_tests("Return the numbers.", _CASES, [runner])

        assert summary.overall_score == 1.0
        assert summary.prompt_id is None
        assert store.unit_results == []
