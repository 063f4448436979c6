"""Tests for the bounded optimizer loop."""

import json

import pytest

from relia.generation.infrastructure.errors import GenerationError
from relia.grading.application.grader import LlmGrader
from relia.grading.application.optimizer import OptimizerLoop
from tests.generation.fake_generator import FakeGenerator, GenerationCall, Reply
from tests.grading.fake_observer import FakeGradingObserver

_GRADER = "grader-model"
_OPTIMIZER = "optimizer-model"


def _verdict(score: float, reason: str = "feedback") -> str:
    return json.dumps({"score": score, "reason": reason})


class _ScriptedModels:
    """Separate reply queues for the grading and optimizing models."""

    def __init__(self, grades: list[Reply], revisions: list[Reply] | None = None) -> None:
        self._grades = list(grades)
        self._revisions = list(revisions or [])

    def __call__(self, call: GenerationCall) -> Reply:
        queue = self._grades if call.model_id == _GRADER else self._revisions
        return queue.pop(0)


def _make_loop(
    grades: list[Reply],
    revisions: list[Reply] | None = None,
    max_iterations: int = 3,
    score_threshold: float | None = None,
    optimizer_model: str | None = _OPTIMIZER,
) -> tuple[OptimizerLoop, FakeGenerator, FakeGradingObserver]:
    generator = FakeGenerator(respond=_ScriptedModels(grades, revisions))
    observer = FakeGradingObserver()
    grader = LlmGrader(generator=generator, model_id=_GRADER, observer=observer)
    loop = OptimizerLoop(
        generator=generator,
        grader=grader,
        model_id=optimizer_model,
        max_iterations=max_iterations,
        score_threshold=score_threshold,
        observer=observer,
    )
    return loop, generator, observer


async def _run(loop: OptimizerLoop):
    return await loop.run(
        system_prompt="Write a haiku.",
        user_input="about autumn",
        output="draft-0",
        criteria="Must be 5-7-5.",
    )


class TestActive:
    def test_inactive_without_model(self) -> None:
        loop, _, _ = _make_loop(grades=[], optimizer_model=None)

        assert not loop.active

    def test_inactive_with_zero_iterations(self) -> None:
        loop, _, _ = _make_loop(grades=[], max_iterations=0)

        assert not loop.active


class TestRounds:
    async def test_zero_iterations_yields_exactly_one_round(self) -> None:
        loop, generator, _ = _make_loop(grades=[_verdict(0.2)], max_iterations=0)

        result = await _run(loop)

        assert len(result.rounds) == 1
        assert result.rounds[0].round_number == 0
        assert result.rounds[0].output == "draft-0"
        assert generator.calls_for(_OPTIMIZER) == []

    async def test_runs_until_iteration_limit(self) -> None:
        loop, _, observer = _make_loop(
            grades=[_verdict(0.1), _verdict(0.2), _verdict(0.3), _verdict(0.4)],
            revisions=["draft-1", "draft-2", "draft-3"],
            max_iterations=3,
        )

        result = await _run(loop)

        assert [r.round_number for r in result.rounds] == [0, 1, 2, 3]
        assert result.output == "draft-3"
        assert result.final.score == 0.4
        assert observer.stopped[0].stop_reason == "iterations_exhausted"

    @pytest.mark.parametrize("limit", [0, 1, 2, 5])
    async def test_never_exceeds_limit_plus_one_rounds(self, limit: int) -> None:
        loop, _, _ = _make_loop(
            grades=[_verdict(0.0)] * (limit + 1),
            revisions=[f"draft-{i}" for i in range(1, limit + 1)],
            max_iterations=limit,
        )

        result = await _run(loop)

        assert len(result.rounds) == limit + 1

    async def test_stops_when_threshold_reached(self) -> None:
        loop, generator, observer = _make_loop(
            grades=[_verdict(0.5), _verdict(0.95)],
            revisions=["draft-1"],
            max_iterations=5,
            score_threshold=0.9,
        )

        result = await _run(loop)

        assert len(result.rounds) == 2
        assert result.final.score == 0.95
        assert len(generator.calls_for(_OPTIMIZER)) == 1
        assert observer.stopped[0].stop_reason == "threshold_reached"

    async def test_initial_output_above_threshold_is_not_revised(self) -> None:
        loop, generator, _ = _make_loop(
            grades=[_verdict(1.0)], max_iterations=3, score_threshold=0.8
        )

        result = await _run(loop)

        assert len(result.rounds) == 1
        assert generator.calls_for(_OPTIMIZER) == []

    async def test_revision_sees_only_the_latest_round(self) -> None:
        loop, generator, _ = _make_loop(
            grades=[_verdict(0.1, "first-reason"), _verdict(0.2, "second-reason"), _verdict(0.3)],
            revisions=["draft-1", "draft-2"],
            max_iterations=2,
        )

        await _run(loop)

        second_request = generator.calls_for(_OPTIMIZER)[1].user_input
        assert "draft-1" in second_request
        assert "second-reason" in second_request
        assert "draft-0" not in second_request
        assert "first-reason" not in second_request


class TestFailures:
    async def test_failed_regrade_keeps_prior_round_as_final(self) -> None:
        loop, _, observer = _make_loop(
            grades=[_verdict(0.4), "not json"],
            revisions=["draft-1"],
            max_iterations=3,
        )

        result = await _run(loop)

        assert len(result.rounds) == 1
        assert result.output == "draft-0"
        assert result.final.score == 0.4
        assert observer.stopped[0].stop_reason == "grading_failed"

    async def test_failed_revision_keeps_prior_round(self) -> None:
        loop, _, observer = _make_loop(
            grades=[_verdict(0.4), _verdict(0.6)],
            revisions=["draft-1", GenerationError(model_id=_OPTIMIZER, reason="boom")],
            max_iterations=3,
        )

        result = await _run(loop)

        assert [r.output for r in result.rounds] == ["draft-0", "draft-1"]
        assert result.final.score == 0.6
        assert observer.stopped[0].stop_reason == "revision_failed"

    async def test_failed_initial_grade_stops_immediately(self) -> None:
        loop, generator, _ = _make_loop(grades=["garbage"], max_iterations=3)

        result = await _run(loop)

        assert len(result.rounds) == 1
        assert result.final.failed
        assert result.final.score == 0.0
        assert generator.calls_for(_OPTIMIZER) == []

    async def test_regrade_raising_unexpected_error_keeps_prior_round(self) -> None:
        loop, _, observer = _make_loop(
            grades=[_verdict(0.4, "meh"), RuntimeError("connection reset")],
            revisions=["draft-1"],
            max_iterations=3,
        )

        result = await _run(loop)

        assert len(result.rounds) == 1
        assert result.output == "draft-0"
        assert result.final.score == 0.4
        assert observer.stopped[0].stop_reason == "grading_failed"

    async def test_revision_raising_unexpected_error_keeps_prior_round(self) -> None:
        loop, _, observer = _make_loop(
            grades=[_verdict(0.4)],
            revisions=[TimeoutError("optimizer timed out")],
            max_iterations=3,
        )

        result = await _run(loop)

        assert [r.output for r in result.rounds] == ["draft-0"]
        assert result.final.score == 0.4
        assert observer.stopped[0].stop_reason == "revision_failed"
