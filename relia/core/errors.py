"""Base exception class for all relia-specific errors."""


class ReliaError(Exception):
    """Base class for all relia errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)


class ConfigurationError(ReliaError):
    """Raised when credentials or a model selection are missing at dispatch time."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Failed to configure run: {reason}")


class InputValidationError(ReliaError):
    """Raised when a schema, expected output or run argument is malformed."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Failed to validate input: {reason}")


class NotFoundError(ReliaError):
    """Raised when a referenced prompt, test case set or job does not exist."""

    def __init__(self, resource: str, identifier: str | int | None = None) -> None:
        self.resource = resource
        self.identifier = identifier
        if identifier is None:
            super().__init__(f"Failed to find {resource}")
        else:
            super().__init__(f"Failed to find {resource} {identifier}")


class EvaluationError(ReliaError):
    """Raised when an output cannot be graded or validated."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Failed to evaluate output: {reason}")
