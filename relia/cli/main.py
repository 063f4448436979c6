"""CLI entrypoint for relia: typer app with a `run` command."""

import asyncio
import json
import sys
import time
from datetime import datetime
from pathlib import Path

import structlog
import typer

from relia.cli.output.writer import build_aggregate_json, build_detailed_jsonl_lines
from relia.config.domain.config import ReliaConfig
from relia.config.infrastructure.observer import StructlogConfigObserver
from relia.config.infrastructure.yaml_loader import YamlConfigLoader
from relia.core.errors import ReliaError
from relia.dataset.domain.loader import DatasetLoader
from relia.dataset.infrastructure.jsonl_loader import JsonlDatasetLoader
from relia.dataset.infrastructure.observer import StructlogDatasetObserver
from relia.evaluation.application.dispatcher import EvaluationDispatcher
from relia.evaluation.application.runner import RunOrchestrator
from relia.evaluation.application.service import TestRunService
from relia.evaluation.domain.observer import EvaluationObserver
from relia.evaluation.domain.results import RunSummary
from relia.evaluation.domain.test_case import TestCase
from relia.evaluation.infrastructure.composite_observer import CompositeEvaluationObserver
from relia.evaluation.infrastructure.observer import StructlogEvaluationObserver
from relia.evaluation.infrastructure.progress_observer import ProgressEvaluationObserver
from relia.generation.infrastructure.litellm import LiteLLMGenerator
from relia.generation.infrastructure.observer import StructlogGenerationObserver
from relia.grading.application.grader import LlmGrader
from relia.grading.application.optimizer import OptimizerLoop
from relia.grading.infrastructure.observer import StructlogGradingObserver
from relia.jobs.application.registry import JobRegistry
from relia.store.infrastructure.memory import InMemoryResultStore

app = typer.Typer(add_completion=False)


@app.callback()
def main() -> None:
    """Grade model outputs against test cases."""


def _configure_structlog(log_format: str) -> None:
    """Configure structlog based on the requested format."""
    if log_format == "console":
        renderer: structlog.types.Processor = structlog.dev.ConsoleRenderer()
    elif log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        typer.echo(f"Invalid log format: {log_format!r}. Must be 'console' or 'json'.")
        raise typer.Exit(code=1)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(0),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
    )


def _output_stem(config_name: str, job_id: str) -> str:
    """Build the output file stem: {config_name}_{YYYYMMDD}_{short_job_id}."""
    date_str = datetime.now().strftime("%Y%m%d")
    return f"{config_name}_{date_str}_{job_id[:8]}"


def _write_outputs(
    output_dir: Path,
    stem: str,
    summary: RunSummary,
    job_id: str,
    config: ReliaConfig,
    dataset_sha256: str,
) -> tuple[Path, Path]:
    """Write the aggregate JSON and detailed JSONL files. Returns (json_path, jsonl_path)."""
    json_path = output_dir / f"{stem}.json"
    jsonl_path = output_dir / f"{stem}.detailed.jsonl"

    aggregate_data = build_aggregate_json(
        summary=summary,
        job_id=job_id,
        config=config,
        dataset_sha256=dataset_sha256,
        detailed_file=jsonl_path.name,
    )
    json_path.write_text(json.dumps(aggregate_data, indent=2), encoding="utf-8")

    lines = build_detailed_jsonl_lines(summary=summary, job_id=job_id)
    jsonl_path.write_text(
        "\n".join(json.dumps(line) for line in lines) + "\n",
        encoding="utf-8",
    )
    return json_path, jsonl_path


async def _run_job(
    config: ReliaConfig,
    test_cases: list[TestCase],
    observer: EvaluationObserver,
) -> tuple[str, RunSummary]:
    """Wire the service against an in-memory store, dispatch one job and wait for it."""
    store = InMemoryResultStore()
    store.add_prompt(config.prompt, test_cases)

    generation_observer = StructlogGenerationObserver()
    generator = LiteLLMGenerator(observer=generation_observer)
    grading_generator = LiteLLMGenerator(
        observer=generation_observer, temperature=config.grading.temperature
    )
    grading_observer = StructlogGradingObserver()
    grader = LlmGrader(
        generator=grading_generator,
        model_id=config.grading.model,
        observer=grading_observer,
    )
    optimizer = OptimizerLoop(
        generator=generator,
        grader=grader,
        model_id=config.optimizer.model,
        max_iterations=config.optimizer.max_iterations,
        score_threshold=config.optimizer.score_threshold,
        observer=grading_observer,
    )
    registry = JobRegistry()
    orchestrator = RunOrchestrator(
        generator=generator,
        dispatcher=EvaluationDispatcher(grader=grader, optimizer=optimizer),
        registry=registry,
        observer=observer,
        store=store,
        max_concurrent=config.execution.max_concurrent,
    )
    service = TestRunService(
        store=store,
        orchestrator=orchestrator,
        registry=registry,
        generator=generator,
        observer=observer,
        default_selections=config.models,
    )

    job_id = service.start_run(
        prompt_id=config.prompt.id, repetitions=config.execution.repetitions
    )
    return job_id, await service.wait(job_id)


# ---------------------------------------------------------------------------
# ANSI helpers
# ---------------------------------------------------------------------------
_RESET = "\033[0m"
_BOLD = "\033[1m"
_DIM = "\033[2m"
_CYAN = "\033[36m"
_YELLOW = "\033[33m"
_GREEN = "\033[32m"
_RED = "\033[31m"
_WHITE = "\033[97m"


def _score_color(score: float) -> str:
    if score >= 0.9:
        return _GREEN
    if score >= 0.5:
        return _YELLOW
    return _RED


def _rule(width: int = 72, color: str = _DIM) -> None:
    typer.echo(f"{color}{'─' * width}{_RESET}")


def _format_elapsed(elapsed_seconds: float) -> str:
    """Format elapsed seconds as '1m 23.4s' or '5.2s'."""
    minutes, seconds = divmod(elapsed_seconds, 60)
    if minutes >= 1:
        return f"{int(minutes)}m {seconds:.1f}s"
    return f"{elapsed_seconds:.1f}s"


def _print_summary(
    summary: RunSummary,
    job_id: str,
    config: ReliaConfig,
    dataset_sha256: str,
    json_path: Path,
    jsonl_path: Path,
    elapsed_seconds: float,
) -> None:
    """Print a colorized per-runner summary to stdout."""
    typer.echo("")
    _rule(color=_CYAN)
    typer.echo(f"{_CYAN}{_BOLD}  relia  ·  Run Complete{_RESET}")
    _rule(color=_CYAN)
    typer.echo("")

    meta_rows: list[tuple[str, str]] = [
        ("Job ID", f"{job_id[:8]}-..."),
        ("Config", config.name),
        ("Dataset SHA256", f"{dataset_sha256[:16]}..."),
        ("Test cases", str(summary.total_test_cases)),
        ("Repetitions", str(config.execution.repetitions)),
        ("Elapsed", _format_elapsed(elapsed_seconds=elapsed_seconds)),
        ("Aggregate JSON", str(json_path)),
        ("Detailed JSONL", str(jsonl_path)),
    ]
    label_w = max(len(label) for label, _ in meta_rows)
    for label, value in meta_rows:
        typer.echo(f"  {_DIM}{label:<{label_w}}{_RESET}  {_WHITE}{value}{_RESET}")

    typer.echo("")
    runner_w = max([len("Model"), *(len(r.runner_id) for r in summary.runner_results)])
    typer.echo(
        f"  {_DIM}{'Model':<{runner_w}}  {'Score':>6}  {'Correct':>9}  {'Avg ms':>8}{_RESET}"
    )
    typer.echo(f"  {'─' * runner_w}  {'─' * 6}  {'─' * 9}  {'─' * 8}")
    for result in summary.runner_results:
        color = _score_color(score=result.score)
        correct = f"{result.correct_count}/{result.total_runs}"
        avg_ms = (
            f"{result.duration_stats.avg_ms:.0f}"
            if result.duration_stats is not None
            else "-"
        )
        typer.echo(
            f"  {_WHITE}{result.runner_id:<{runner_w}}{_RESET}"
            f"  {color}{result.score * 100:>5.1f}%{_RESET}"
            f"  {correct:>9}"
            f"  {_DIM}{avg_ms:>8}{_RESET}"
        )

    overall_color = _score_color(score=summary.overall_score)
    typer.echo("")
    typer.echo(
        f"  {_BOLD}Overall{_RESET}  "
        f"{overall_color}{_BOLD}{summary.overall_score * 100:.1f}%{_RESET}"
    )
    typer.echo("")
    _rule(color=_CYAN)
    typer.echo("")


@app.command()
def run(
    config_path: Path = typer.Argument(..., help="Path to run config YAML"),
    output_dir: Path = typer.Option(
        Path("./results"),
        "--output-dir",
        "-o",
        help="Directory for output files",
    ),
    log_format: str = typer.Option(
        "console",
        "--log-format",
        help="Log format: 'console' or 'json'",
    ),
) -> None:
    """Run every test case of a prompt against the configured models."""
    _configure_structlog(log_format=log_format)
    try:
        loader = YamlConfigLoader(observer=StructlogConfigObserver())
        config = loader.load(path=config_path)

        dataset_loader: DatasetLoader = JsonlDatasetLoader(
            observer=StructlogDatasetObserver()
        )
        dataset = dataset_loader.load(config=config.dataset)

        output_dir.mkdir(parents=True, exist_ok=True)

        observers: list[EvaluationObserver] = [StructlogEvaluationObserver()]
        if log_format != "json":
            observers.append(ProgressEvaluationObserver())
        observer = CompositeEvaluationObserver(observers=observers)

        started_at = time.monotonic()
        job_id, summary = asyncio.run(
            _run_job(config=config, test_cases=dataset.test_cases, observer=observer)
        )
        elapsed_seconds = time.monotonic() - started_at

        stem = _output_stem(config_name=config.name, job_id=job_id)
        json_path, jsonl_path = _write_outputs(
            output_dir=output_dir,
            stem=stem,
            summary=summary,
            job_id=job_id,
            config=config,
            dataset_sha256=dataset.sha256,
        )

        _print_summary(
            summary=summary,
            job_id=job_id,
            config=config,
            dataset_sha256=dataset.sha256,
            json_path=json_path,
            jsonl_path=jsonl_path,
            elapsed_seconds=elapsed_seconds,
        )

    except KeyboardInterrupt:
        typer.echo("Run interrupted.")
        sys.exit(1)
    except ReliaError as exc:
        typer.echo(str(exc))
        sys.exit(1)
    except Exception as exc:  # noqa: BLE001
        typer.echo(f"Unexpected error: {exc}\nPlease report this bug.")
        sys.exit(1)


if __name__ == "__main__":
    app()
