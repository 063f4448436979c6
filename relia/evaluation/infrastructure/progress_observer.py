"""ProgressEvaluationObserver: renders per-runner Rich progress bars to stderr."""

from __future__ import annotations

import sys

from rich.console import Console, Group
from rich.live import Live
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
    TimeRemainingColumn,
)
from rich.text import Text

_OVERALL = "Overall"

# Rich markup colours cycled across runner rows.
_RUNNER_COLORS: list[str] = [
    "cyan",
    "green",
    "yellow",
    "magenta",
    "blue",
]


def _make_progress(console: Console) -> Progress:
    return Progress(
        TextColumn("{task.description}"),
        BarColumn(bar_width=40),
        MofNCompleteColumn(),
        TextColumn("{task.fields[inflight]} in flight", style="grey50"),
        TimeElapsedColumn(),
        TimeRemainingColumn(),
        console=console,
        refresh_per_second=10,
        transient=False,
    )


class ProgressEvaluationObserver:
    """Renders one progress row per model runner plus an Overall row on stderr.

    Only run_started, unit_started, run_progress, run_completed and run_failed
    change what is shown; every other event is a no-op. Counts are tracked
    even when ``disabled=True``, which suppresses all terminal output (useful
    in tests).

    Does NOT inherit from EvaluationObserver (structural typing via Protocol).
    """

    def __init__(self, disabled: bool = False) -> None:
        self._disabled = disabled
        self._done: dict[str, int] = {}
        self._inflight: dict[str, int] = {}
        self._total: dict[str, int] = {}
        self._task_ids: dict[str, TaskID] = {}
        self._progress: Progress | None = None
        self._live: Live | None = None

    def done(self, key: str) -> int:
        return self._done.get(key, 0)

    def inflight(self, key: str) -> int:
        return self._inflight.get(key, 0)

    def _reset(self) -> None:
        self._done = {}
        self._inflight = {}
        self._total = {}
        self._task_ids = {}
        self._progress = None
        self._live = None

    def _describe(self, name: str, index: int, pad_width: int) -> str:
        if name == _OVERALL:
            return f"[bold]{name:<{pad_width}}[/bold]"
        if sys.stderr.isatty():
            color = _RUNNER_COLORS[index % len(_RUNNER_COLORS)]
            return f"[{color}]{name:<{pad_width}}[/{color}]"
        return f"{name:<{pad_width}}"

    def _refresh(self, key: str) -> None:
        if self._progress is None or key not in self._task_ids:
            return
        self._progress.update(
            self._task_ids[key],
            completed=self._done.get(key, 0),
            inflight=self._inflight.get(key, 0),
        )

    def _stop(self) -> None:
        if self._live is not None:
            self._live.stop()
        self._reset()

    def run_started(
        self,
        job_id: str | None,
        total_test_cases: int,
        runner_ids: list[str],
        repetitions: int,
    ) -> None:
        self._reset()
        per_runner_total = total_test_cases * repetitions
        for name in runner_ids:
            self._total[name] = per_runner_total
            self._done[name] = 0
            self._inflight[name] = 0
        self._total[_OVERALL] = per_runner_total * len(runner_ids)
        self._done[_OVERALL] = 0
        self._inflight[_OVERALL] = 0

        if self._disabled:
            return

        console = Console(stderr=True)
        pad_width = max(len(name) for name in [*runner_ids, _OVERALL])
        self._progress = _make_progress(console=console)
        for index, name in enumerate([_OVERALL, *runner_ids]):
            self._task_ids[name] = self._progress.add_task(
                description=self._describe(name=name, index=index - 1, pad_width=pad_width),
                total=float(self._total[name]),
                inflight=0,
            )

        legend = Text(f"  job {job_id}" if job_id else "", style="dim white")
        self._live = Live(
            Group(self._progress, legend), console=console, refresh_per_second=10
        )
        self._live.start()

    def run_completed(
        self, job_id: str | None, overall_score: float, elapsed_seconds: float
    ) -> None:
        self._stop()

    def run_failed(self, job_id: str | None, reason: str) -> None:
        self._stop()

    def unit_started(
        self, test_case_id: str, runner_id: str, repetition_number: int
    ) -> None:
        for key in (runner_id, _OVERALL):
            if key in self._inflight:
                self._inflight[key] += 1
                self._refresh(key)

    def unit_completed(
        self,
        test_case_id: str,
        runner_id: str,
        repetition_number: int,
        score: float,
    ) -> None:
        pass

    def unit_failed(
        self,
        test_case_id: str,
        runner_id: str,
        repetition_number: int,
        reason: str,
    ) -> None:
        pass

    def run_progress(
        self, job_id: str | None, runner_id: str, completed: int, total: int
    ) -> None:
        for key in (runner_id, _OVERALL):
            if key in self._done:
                self._done[key] += 1
                self._inflight[key] = max(0, self._inflight[key] - 1)
                self._refresh(key)

    def runner_skipped(self, provider: str, model_id: str) -> None:
        pass

    def job_dispatched(self, job_id: str, prompt_id: str, total_tests: int) -> None:
        pass

    def job_failed(self, job_id: str, reason: str) -> None:
        pass
