"""GradingObserver port: domain events emitted while grading and optimizing outputs."""

from typing import Protocol


class GradingObserver(Protocol):
    """Observer port for grading and optimizer events.

    Implementations may log to structlog, record for tests, or emit metrics.
    """

    def grading_started(self, model_id: str) -> None: ...

    def grading_completed(self, model_id: str, score: float, duration_ms: int) -> None: ...

    def grading_failed(self, model_id: str | None, reason: str) -> None: ...

    def optimizer_round_completed(self, round_number: int, score: float) -> None: ...

    def optimizer_stopped(self, rounds: int, final_score: float, stop_reason: str) -> None: ...
