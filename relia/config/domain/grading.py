"""Grading and optimizer configuration models."""

from pydantic import BaseModel, Field


class GradingConfig(BaseModel, frozen=True):
    model: str | None = Field(default=None, min_length=1)
    temperature: float = Field(default=0.0, ge=0.0)


class OptimizerConfig(BaseModel, frozen=True):
    """Revision loop settings; the loop is inactive without a model or iterations."""

    model: str | None = Field(default=None, min_length=1)
    max_iterations: int = Field(default=0, ge=0)
    score_threshold: float | None = Field(default=None, ge=0.0, le=1.0)
