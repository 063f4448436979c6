"""Structlog implementation of the DatasetObserver port."""

import structlog


class StructlogDatasetObserver:
    """Delegates dataset domain events to structlog.

    Satisfies the DatasetObserver protocol structurally.
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def dataset_loading_started(self, path: str) -> None:
        self._log.info("dataset.loading_started", path=path)

    def dataset_test_case_loaded(self, test_case_id: str) -> None:
        self._log.debug("dataset.test_case_loaded", test_case_id=test_case_id)

    def dataset_loading_completed(
        self, path: str, total_test_cases: int, sha256: str
    ) -> None:
        self._log.info(
            "dataset.loading_completed",
            path=path,
            total_test_cases=total_test_cases,
            sha256=sha256,
        )

    def dataset_loading_failed(self, path: str, reason: str) -> None:
        self._log.error("dataset.loading_failed", path=path, reason=reason)
