"""JobStatus and JobProgress: the pollable state of a dispatched job."""

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field, model_validator


class JobStatus(StrEnum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


def progress_percent(completed: int, total: int) -> int:
    """Half-up integer percentage; an empty job reports 0."""
    if total == 0:
        return 0
    return (200 * completed + total) // (2 * total)


class JobProgress(BaseModel, frozen=True):
    """Immutable snapshot of a job; the registry replaces it on every change.

    ``results`` holds the serialized run summary and is set only on completion.
    """

    job_id: str = Field(min_length=1)
    status: JobStatus = JobStatus.PENDING
    total_tests: int = Field(ge=0)
    completed_tests: int = Field(default=0, ge=0)
    progress: int = Field(default=0, ge=0, le=100)
    results: dict[str, Any] | None = None
    error: str | None = None

    @model_validator(mode="after")
    def _completed_within_total(self) -> "JobProgress":
        if self.completed_tests > self.total_tests:
            raise ValueError("completed_tests must not exceed total_tests")
        return self
