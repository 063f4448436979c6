"""Structlog implementation of the GenerationObserver port."""

import structlog


class StructlogGenerationObserver:
    """Delegates generation events to structlog.

    Satisfies the GenerationObserver protocol structurally.
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def generation_started(self, model_id: str, structured: bool) -> None:
        self._log.debug(
            "generation.started", model_id=model_id, structured=structured
        )

    def generation_completed(self, model_id: str, duration_ms: int) -> None:
        self._log.debug(
            "generation.completed", model_id=model_id, duration_ms=duration_ms
        )

    def generation_failed(self, model_id: str, reason: str) -> None:
        self._log.warning("generation.failed", model_id=model_id, reason=reason)
