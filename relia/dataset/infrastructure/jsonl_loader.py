"""JSONL dataset loader: reads a dataset file and returns typed TestCase objects."""

import hashlib
import json
from typing import Any

from pydantic import ValidationError

from relia.config.domain.dataset import DatasetConfig
from relia.dataset.domain.load_result import DatasetLoadResult
from relia.dataset.domain.observer import DatasetObserver
from relia.dataset.infrastructure.errors import DatasetLoadError
from relia.evaluation.domain.test_case import TestCase


class JsonlDatasetLoader:
    """Loads a JSONL file with one test case object per non-empty line.

    A line without an ``id`` gets its 1-based line number as id.
    """

    def __init__(self, observer: DatasetObserver) -> None:
        self._observer = observer

    def load(self, config: DatasetConfig) -> DatasetLoadResult:
        """
        Load all test cases from the JSONL file described by config.

        Collects ALL per-line errors before raising a single DatasetLoadError
        listing every issue found.

        Raises:
            DatasetLoadError: if the file cannot be read, any line is invalid JSON
                or not a valid test case, or two test cases share an id.
        """
        path_str = str(config.path)
        self._observer.dataset_loading_started(path=path_str)

        try:
            raw = config.path.read_bytes()
        except OSError as exc:
            reason = f"cannot read {path_str}: {exc.strerror or exc}"
            self._observer.dataset_loading_failed(path=path_str, reason=reason)
            raise DatasetLoadError(reason=reason) from exc

        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            reason = f"{path_str} is not valid UTF-8: {exc.reason} at byte {exc.start}"
            self._observer.dataset_loading_failed(path=path_str, reason=reason)
            raise DatasetLoadError(reason=reason) from exc

        test_cases, errors = self._parse_lines(text.splitlines())
        if not errors and not test_cases:
            errors.append("dataset contains no test cases")

        if errors:
            reason = "; ".join(errors)
            self._observer.dataset_loading_failed(path=path_str, reason=reason)
            raise DatasetLoadError(reason=reason)

        sha256 = hashlib.sha256(raw).hexdigest()
        self._observer.dataset_loading_completed(
            path=path_str, total_test_cases=len(test_cases), sha256=sha256
        )
        return DatasetLoadResult(test_cases=test_cases, sha256=sha256)

    def _parse_lines(self, lines: list[str]) -> tuple[list[TestCase], list[str]]:
        test_cases: list[TestCase] = []
        errors: list[str] = []
        seen: set[str] = set()

        for line_number, line in enumerate(lines, start=1):
            if not line.strip():
                continue
            result = self._parse_line(line=line, line_number=line_number)
            if isinstance(result, str):
                errors.append(result)
                continue
            if result.id in seen:
                errors.append(f"line {line_number}: duplicate test case id '{result.id}'")
                continue
            seen.add(result.id)
            test_cases.append(result)
            self._observer.dataset_test_case_loaded(test_case_id=result.id)

        return test_cases, errors

    def _parse_line(self, line: str, line_number: int) -> TestCase | str:
        """Return a TestCase on success, or an error string describing the problem."""
        try:
            data: Any = json.loads(line)
        except json.JSONDecodeError as exc:
            return f"line {line_number}: invalid JSON: {exc}"

        if not isinstance(data, dict):
            return f"line {line_number}: expected a JSON object"

        data.setdefault("id", str(line_number))
        try:
            return TestCase.model_validate(data)
        except ValidationError as exc:
            fields = ", ".join(
                ".".join(str(part) for part in error["loc"]) or "<root>"
                for error in exc.errors()
            )
            return f"line {line_number}: invalid test case ({fields})"
