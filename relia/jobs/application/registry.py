"""JobRegistry: the single source of truth for job progress, safe for concurrent writers."""

import threading
from typing import Any

from relia.core.errors import NotFoundError
from relia.jobs.application.errors import JobStateError
from relia.jobs.domain.progress import JobProgress, JobStatus, progress_percent


class JobRegistry:
    """Maps job ids to JobProgress snapshots.

    Every mutation is a read-modify-write under one lock, so concurrent unit
    completions never lose an increment. Readers receive immutable snapshots.
    A job reaches a terminal status exactly once; afterwards it is read-only.
    """

    def __init__(self) -> None:
        self._jobs: dict[str, JobProgress] = {}
        self._lock = threading.Lock()

    def create(self, job_id: str, total_tests: int) -> JobProgress:
        with self._lock:
            if job_id in self._jobs:
                raise JobStateError(job_id, self._jobs[job_id].status, "create")
            job = JobProgress(job_id=job_id, total_tests=total_tests)
            self._jobs[job_id] = job
            return job

    def get(self, job_id: str) -> JobProgress | None:
        with self._lock:
            return self._jobs.get(job_id)

    def start(self, job_id: str) -> JobProgress:
        with self._lock:
            job = self._require_active(job_id, "start")
            return self._replace(job, status=JobStatus.RUNNING)

    def increment(self, job_id: str) -> JobProgress:
        """Record one finished unit and return the updated snapshot."""
        with self._lock:
            job = self._require_active(job_id, "update")
            if job.completed_tests >= job.total_tests:
                raise JobStateError(job_id, job.status, "count another unit for")
            completed = job.completed_tests + 1
            return self._replace(
                job,
                completed_tests=completed,
                progress=progress_percent(completed, job.total_tests),
            )

    def complete(self, job_id: str, results: dict[str, Any]) -> JobProgress:
        with self._lock:
            job = self._require_active(job_id, "complete")
            if job.completed_tests != job.total_tests:
                raise JobStateError(job_id, job.status, "complete unfinished")
            return self._replace(
                job, status=JobStatus.COMPLETED, progress=100, results=results
            )

    def fail(self, job_id: str, error: str) -> JobProgress:
        with self._lock:
            job = self._require_active(job_id, "fail")
            return self._replace(job, status=JobStatus.FAILED, error=error)

    def _require_active(self, job_id: str, action: str) -> JobProgress:
        job = self._jobs.get(job_id)
        if job is None:
            raise NotFoundError("job", job_id)
        if job.status.is_terminal:
            raise JobStateError(job_id, job.status, action)
        return job

    def _replace(self, job: JobProgress, **changes: Any) -> JobProgress:
        updated = job.model_copy(update=changes)
        self._jobs[job.job_id] = updated
        return updated
