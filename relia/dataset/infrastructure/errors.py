"""Error types raised by dataset infrastructure."""

from relia.core.errors import ReliaError


class DatasetLoadError(ReliaError):
    """Raised when a JSONL dataset cannot be loaded or is malformed."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Failed to load dataset: {reason}")
