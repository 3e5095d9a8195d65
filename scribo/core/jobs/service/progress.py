import logging
from threading import Lock
from typing import Optional
from uuid import UUID

from scribo.core.enums import JobStatus
from scribo.core.errors import JobCancelledError, JobNotFoundError
from ..domain.interfaces import IJobRepository, IProgressReporter

logger = logging.getLogger(__name__)


class JobProgressReporter(IProgressReporter):
    """
    Status-update callback handed to each pipeline stage.
    Thread-safe: the parallel transcriber calls it from every chunk worker.
    """

    def __init__(self, job_id: UUID, repo: IJobRepository):
        self.job_id = job_id
        self.repo = repo
        self._lock = Lock()
        self._last_progress = 0

    def update(self, progress: int, step: str) -> None:
        progress = max(0, min(100, int(progress)))
        with self._lock:
            if progress < self._last_progress:
                logger.debug(f"Job {self.job_id}: ignoring stale progress {progress} < {self._last_progress}")
                return
            self._last_progress = progress
            self.repo.update_progress(self.job_id, progress, step)
        logger.info(f"Job {self.job_id}: {progress}% - {step}")

    def ensure_active(self) -> None:
        job = self.repo.get_job(self.job_id)
        if not job:
            raise JobNotFoundError(f"Job {self.job_id} not found.")
        if job.status == JobStatus.CANCELLED:
            raise JobCancelledError(f"Job {self.job_id} was cancelled.")

    def fail(self, error_message: str, step: Optional[str] = None) -> None:
        logger.error(f"Job {self.job_id} failed: {error_message}")
        self.repo.mark_failed(self.job_id, error_message, step)

    def complete(self, detected_language: Optional[str] = None) -> None:
        # Progress reaches 100 BEFORE the terminal status becomes visible,
        # so a poller never sees COMPLETED below 100%.
        self.update(100, "Transcription complete")
        if not self.repo.mark_completed(self.job_id, detected_language):
            self.ensure_active()
            raise JobCancelledError(f"Job {self.job_id} is no longer processing; completion discarded.")
        logger.info(f"Job {self.job_id} completed.")
