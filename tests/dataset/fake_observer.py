"""FakeDatasetObserver: records dataset events for assertion in tests."""

from dataclasses import dataclass


@dataclass(frozen=True)
class LoadingStartedEvent:
    path: str


@dataclass(frozen=True)
class TestCaseLoadedEvent:
    __test__ = False

    test_case_id: str


@dataclass(frozen=True)
class LoadingCompletedEvent:
    path: str
    total_test_cases: int
    sha256: str


@dataclass(frozen=True)
class LoadingFailedEvent:
    path: str
    reason: str


class FakeDatasetObserver:
    def __init__(self) -> None:
        self.loading_started: list[LoadingStartedEvent] = []
        self.test_cases_loaded: list[TestCaseLoadedEvent] = []
        self.loading_completed: list[LoadingCompletedEvent] = []
        self.loading_failed: list[LoadingFailedEvent] = []

    def dataset_loading_started(self, path: str) -> None:
        self.loading_started.append(LoadingStartedEvent(path=path))

    def dataset_test_case_loaded(self, test_case_id: str) -> None:
        self.test_cases_loaded.append(TestCaseLoadedEvent(test_case_id=test_case_id))

    def dataset_loading_completed(
        self, path: str, total_test_cases: int, sha256: str
    ) -> None:
        self.loading_completed.append(
            LoadingCompletedEvent(path=path, total_test_cases=total_test_cases, sha256=sha256)
        )

    def dataset_loading_failed(self, path: str, reason: str) -> None:
        self.loading_failed.append(LoadingFailedEvent(path=path, reason=reason))
