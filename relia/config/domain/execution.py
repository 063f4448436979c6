"""Execution configuration model."""

from pydantic import BaseModel, Field


class ExecutionConfig(BaseModel, frozen=True):
    repetitions: int = Field(default=1, ge=1)
    max_concurrent: int | None = Field(default=None, ge=1)
