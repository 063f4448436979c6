"""Error types raised by generation infrastructure."""

from relia.core.errors import ReliaError


class GenerationError(ReliaError):
    """Raised when a generation call fails or returns no usable content."""

    def __init__(self, model_id: str, reason: str) -> None:
        self.model_id = model_id
        super().__init__(f"Failed to generate output with {model_id}: {reason}")
