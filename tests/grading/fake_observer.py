"""FakeGradingObserver: records grading and optimizer events for assertion in tests."""

from dataclasses import dataclass


@dataclass(frozen=True)
class GradingStartedEvent:
    model_id: str


@dataclass(frozen=True)
class GradingCompletedEvent:
    model_id: str
    score: float
    duration_ms: int


@dataclass(frozen=True)
class GradingFailedEvent:
    model_id: str | None
    reason: str


@dataclass(frozen=True)
class OptimizerRoundEvent:
    round_number: int
    score: float


@dataclass(frozen=True)
class OptimizerStoppedEvent:
    rounds: int
    final_score: float
    stop_reason: str


class FakeGradingObserver:
    """Records all emitted grading events as typed frozen dataclasses.

    Event lists use a leading underscore + public property pattern to avoid
    name collision between the list attributes and the Protocol method names.
    """

    def __init__(self) -> None:
        self._started: list[GradingStartedEvent] = []
        self._completed: list[GradingCompletedEvent] = []
        self._failed: list[GradingFailedEvent] = []
        self._rounds: list[OptimizerRoundEvent] = []
        self._stopped: list[OptimizerStoppedEvent] = []

    @property
    def started(self) -> list[GradingStartedEvent]:
        return self._started

    @property
    def completed(self) -> list[GradingCompletedEvent]:
        return self._completed

    @property
    def failed(self) -> list[GradingFailedEvent]:
        return self._failed

    @property
    def rounds(self) -> list[OptimizerRoundEvent]:
        return self._rounds

    @property
    def stopped(self) -> list[OptimizerStoppedEvent]:
        return self._stopped

    def grading_started(self, model_id: str) -> None:
        self._started.append(GradingStartedEvent(model_id=model_id))

    def grading_completed(self, model_id: str, score: float, duration_ms: int) -> None:
        self._completed.append(
            GradingCompletedEvent(model_id=model_id, score=score, duration_ms=duration_ms)
        )

    def grading_failed(self, model_id: str | None, reason: str) -> None:
        self._failed.append(GradingFailedEvent(model_id=model_id, reason=reason))

    def optimizer_round_completed(self, round_number: int, score: float) -> None:
        self._rounds.append(OptimizerRoundEvent(round_number=round_number, score=score))

    def optimizer_stopped(self, rounds: int, final_score: float, stop_reason: str) -> None:
        self._stopped.append(
            OptimizerStoppedEvent(
                rounds=rounds, final_score=final_score, stop_reason=stop_reason
            )
        )
