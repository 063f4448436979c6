"""Result file builders: aggregate JSON document and per-unit detailed JSONL lines."""

from datetime import UTC, datetime
from typing import Any

from relia.config.domain.config import ReliaConfig
from relia.evaluation.domain.aggregate import summarize
from relia.evaluation.domain.results import RunSummary


def build_aggregate_json(
    summary: RunSummary,
    job_id: str,
    config: ReliaConfig,
    dataset_sha256: str,
    detailed_file: str,
) -> dict[str, Any]:
    """Build the aggregate results document written next to the detailed JSONL."""
    return {
        "schema_version": "1",
        "job_id": job_id,
        "generated_at": datetime.now(UTC).isoformat(),
        "config": {
            "name": config.name,
            "version": config.version,
            "models": [m.model_dump(mode="json") for m in config.models],
            "grading": config.grading.model_dump(mode="json"),
            "optimizer": config.optimizer.model_dump(mode="json"),
            "repetitions": config.execution.repetitions,
        },
        "dataset": {
            "path": str(config.dataset.path),
            "sha256": dataset_sha256,
        },
        "results": summary.model_dump(mode="json", exclude={"runner_results"})
        | {
            "runner_results": [
                {
                    "runner_id": r.runner_id,
                    "model_id": r.model_id,
                    "score": r.score,
                    "correct_count": r.correct_count,
                    "total_runs": r.total_runs,
                    "duration_stats": (
                        r.duration_stats.model_dump(mode="json")
                        if r.duration_stats is not None
                        else None
                    ),
                    "test_cases": [
                        {
                            "test_case_id": tc.test_case_id,
                            "average_score": tc.average_score,
                            "correct_runs": tc.correct_runs,
                        }
                        for tc in r.test_case_results
                    ],
                }
                for r in summary.runner_results
            ]
        },
        "summary": [row.model_dump(mode="json") for row in summarize(summary.runner_results)],
        "detailed_results_file": detailed_file,
    }


def build_detailed_jsonl_lines(summary: RunSummary, job_id: str) -> list[dict[str, Any]]:
    """One line per unit result, in runner, test case and repetition order."""
    lines: list[dict[str, Any]] = []
    for runner_result in summary.runner_results:
        for tc in runner_result.test_case_results:
            for run in tc.runs:
                lines.append(
                    {
                        "job_id": job_id,
                        "runner_id": runner_result.runner_id,
                        "model_id": runner_result.model_id,
                        "test_case_id": tc.test_case_id,
                        "input": tc.input,
                        "expected_output": tc.expected_output,
                    }
                    | run.model_dump(mode="json")
                )
    return lines
