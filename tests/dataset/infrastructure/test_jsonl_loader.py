"""Tests for JSONL dataset loading infrastructure."""

import hashlib
from pathlib import Path

import pytest

from relia.config.domain.dataset import DatasetConfig
from relia.dataset.infrastructure.errors import DatasetLoadError
from relia.dataset.infrastructure.jsonl_loader import JsonlDatasetLoader
from relia.evaluation.domain.test_case import EvaluationMode, ExpectedOutputType
from tests.dataset.fake_observer import FakeDatasetObserver

# __file__ is tests/dataset/infrastructure/test_jsonl_loader.py
FIXTURES = Path(__file__).parent.parent.parent / "fixtures"


def _write(tmp_path: Path, *lines: str) -> DatasetConfig:
    path = tmp_path / "dataset.jsonl"
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return DatasetConfig(path=path)


class TestValidDatasetLoading:
    def test_loads_every_test_case(self) -> None:
        result = JsonlDatasetLoader(observer=FakeDatasetObserver()).load(
            DatasetConfig(path=FIXTURES / "people.jsonl")
        )

        assert [tc.id for tc in result.test_cases] == ["1", "2", "3", "4", "5"]

    def test_evaluation_fields_are_parsed(self) -> None:
        result = JsonlDatasetLoader(observer=FakeDatasetObserver()).load(
            DatasetConfig(path=FIXTURES / "people.jsonl")
        )
        by_id = {tc.id: tc for tc in result.test_cases}

        assert by_id["1"].expected_output == '["Ada Lovelace", "Charles Babbage"]'
        assert by_id["3"].expected_output_type is ExpectedOutputType.STRING
        assert by_id["4"].evaluation_mode is EvaluationMode.SCHEMA
        assert by_id["4"].evaluation_schema is not None
        assert by_id["5"].evaluation_criteria is not None

    def test_sha256_covers_the_raw_file(self) -> None:
        path = FIXTURES / "people.jsonl"

        result = JsonlDatasetLoader(observer=FakeDatasetObserver()).load(
            DatasetConfig(path=path)
        )

        assert result.sha256 == hashlib.sha256(path.read_bytes()).hexdigest()

    def test_missing_id_defaults_to_line_number(self, tmp_path: Path) -> None:
        config = _write(tmp_path, '{"input": "a"}', "", '{"input": "b"}')

        result = JsonlDatasetLoader(observer=FakeDatasetObserver()).load(config)

        assert [tc.id for tc in result.test_cases] == ["1", "3"]

    def test_numeric_id_becomes_string(self, tmp_path: Path) -> None:
        config = _write(tmp_path, '{"id": 42, "input": "a"}')

        result = JsonlDatasetLoader(observer=FakeDatasetObserver()).load(config)

        assert result.test_cases[0].id == "42"

    def test_emits_events(self, tmp_path: Path) -> None:
        observer = FakeDatasetObserver()
        config = _write(tmp_path, '{"id": "x", "input": "a"}')

        JsonlDatasetLoader(observer=observer).load(config)

        assert [e.path for e in observer.loading_started] == [str(config.path)]
        assert [e.test_case_id for e in observer.test_cases_loaded] == ["x"]
        assert observer.loading_completed[0].total_test_cases == 1
        assert observer.loading_failed == []


class TestInvalidDataset:
    def test_missing_file(self, tmp_path: Path) -> None:
        observer = FakeDatasetObserver()

        with pytest.raises(DatasetLoadError, match="cannot read"):
            JsonlDatasetLoader(observer=observer).load(
                DatasetConfig(path=tmp_path / "missing.jsonl")
            )

        assert len(observer.loading_failed) == 1

    def test_all_line_errors_are_collected(self, tmp_path: Path) -> None:
        config = _write(
            tmp_path,
            "{not json",
            "[1, 2]",
            '{"id": "a"}',
            '{"id": "b", "input": "x", "evaluation_mode": "fuzzy"}',
        )

        with pytest.raises(DatasetLoadError) as exc_info:
            JsonlDatasetLoader(observer=FakeDatasetObserver()).load(config)

        message = str(exc_info.value)
        assert "line 1: invalid JSON" in message
        assert "line 2: expected a JSON object" in message
        assert "line 3: invalid test case (input)" in message
        assert "line 4: invalid test case (evaluation_mode)" in message

    def test_duplicate_ids_are_rejected(self, tmp_path: Path) -> None:
        config = _write(
            tmp_path, '{"id": "a", "input": "x"}', '{"id": "a", "input": "y"}'
        )

        with pytest.raises(DatasetLoadError, match="duplicate test case id 'a'"):
            JsonlDatasetLoader(observer=FakeDatasetObserver()).load(config)

    def test_empty_file_is_rejected(self, tmp_path: Path) -> None:
        config = _write(tmp_path, "")

        with pytest.raises(DatasetLoadError, match="no test cases"):
            JsonlDatasetLoader(observer=FakeDatasetObserver()).load(config)

    def test_non_utf8_file_is_rejected(self, tmp_path: Path) -> None:
        path = tmp_path / "dataset.jsonl"
        path.write_bytes(b'{"id": "1", "input": "caf\xe9"}\n')
        observer = FakeDatasetObserver()

        with pytest.raises(DatasetLoadError, match="not valid UTF-8"):
            JsonlDatasetLoader(observer=observer).load(DatasetConfig(path=path))

        assert len(observer.loading_failed) == 1
        assert observer.loading_completed == []
