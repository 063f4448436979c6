"""Top-level ReliaConfig aggregate: the root configuration object."""

from pydantic import BaseModel, Field

from relia.config.domain.dataset import DatasetConfig
from relia.config.domain.execution import ExecutionConfig
from relia.config.domain.grading import GradingConfig, OptimizerConfig
from relia.evaluation.domain.test_case import PromptConfig
from relia.generation.domain.selection import ModelSelection


class ReliaConfig(BaseModel, frozen=True):
    """Root configuration aggregate for a relia run."""

    name: str = Field(min_length=1)
    version: str = Field(min_length=1)
    prompt: PromptConfig
    dataset: DatasetConfig
    models: list[ModelSelection] = Field(min_length=1)
    grading: GradingConfig = GradingConfig()
    optimizer: OptimizerConfig = OptimizerConfig()
    execution: ExecutionConfig = ExecutionConfig()
