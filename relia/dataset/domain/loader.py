"""DatasetLoader Protocol: structural interface for loading test cases."""

from typing import Protocol

from relia.config.domain.dataset import DatasetConfig
from relia.dataset.domain.load_result import DatasetLoadResult


class DatasetLoader(Protocol):
    """Loads the test cases described by DatasetConfig."""

    def load(self, config: DatasetConfig) -> DatasetLoadResult: ...
