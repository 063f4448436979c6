"""GenerationObserver port: domain events emitted around generation calls."""

from typing import Protocol


class GenerationObserver(Protocol):
    """Observer port for generation events.

    Implementations may log to structlog, record for tests, or emit metrics.
    """

    def generation_started(self, model_id: str, structured: bool) -> None: ...

    def generation_completed(self, model_id: str, duration_ms: int) -> None: ...

    def generation_failed(self, model_id: str, reason: str) -> None: ...
