"""Structlog implementation of the GradingObserver port."""

import structlog


class StructlogGradingObserver:
    """Delegates grading and optimizer events to structlog.

    Satisfies the GradingObserver protocol structurally.
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def grading_started(self, model_id: str) -> None:
        self._log.debug("grading.started", model_id=model_id)

    def grading_completed(self, model_id: str, score: float, duration_ms: int) -> None:
        self._log.info(
            "grading.completed",
            model_id=model_id,
            score=score,
            duration_ms=duration_ms,
        )

    def grading_failed(self, model_id: str | None, reason: str) -> None:
        self._log.error("grading.failed", model_id=model_id, reason=reason)

    def optimizer_round_completed(self, round_number: int, score: float) -> None:
        self._log.info(
            "optimizer.round_completed", round_number=round_number, score=score
        )

    def optimizer_stopped(self, rounds: int, final_score: float, stop_reason: str) -> None:
        self._log.info(
            "optimizer.stopped",
            rounds=rounds,
            final_score=final_score,
            stop_reason=stop_reason,
        )
