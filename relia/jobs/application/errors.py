"""Job registry errors."""

from relia.core.errors import ReliaError
from relia.jobs.domain.progress import JobStatus


class JobStateError(ReliaError):
    """Raised when a job is asked to make a transition its status does not allow."""

    def __init__(self, job_id: str, status: JobStatus, action: str) -> None:
        self.job_id = job_id
        self.status = status
        super().__init__(f"Failed to {action} job {job_id}: job is {status.value}")
