"""DatasetLoadResult: the loaded test cases plus the dataset's integrity hash."""

from pydantic import BaseModel, Field

from relia.evaluation.domain.test_case import TestCase


class DatasetLoadResult(BaseModel, frozen=True):
    """Immutable value object returned by a DatasetLoader.

    Carries both the parsed test cases and the SHA-256 hex digest of the raw
    file bytes, so results can record which exact dataset version was used.
    """

    test_cases: list[TestCase]
    sha256: str = Field(min_length=1)
