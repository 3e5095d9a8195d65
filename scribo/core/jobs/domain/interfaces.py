from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence
from uuid import UUID

from scribo.core.enums import JobStatus, PipelineStage
from .models import JobSubmission, JobSnapshot, StageRunSnapshot


class IJobRepository(ABC):
    """
    Contract for TranscriptionJob persistence (the job status channel).
    """

    @abstractmethod
    def create_job(self, submission: JobSubmission) -> UUID:
        """Creates a PENDING job at 0% progress."""
        pass

    @abstractmethod
    def get_job(self, job_id: UUID) -> Optional[JobSnapshot]:
        pass

    @abstractmethod
    def list_user_jobs(self,
                       user_id: UUID,
                       statuses: Optional[Sequence[JobStatus]] = None,
                       limit: int = 20,
                       offset: int = 0) -> List[JobSnapshot]:
        """Newest first."""
        pass

    @abstractmethod
    def count_jobs_by_status(self, user_id: UUID) -> Dict[JobStatus, int]:
        """Every status is present, zero when the user has no job in it."""
        pass

    @abstractmethod
    def list_active_jobs(self, user_id: UUID) -> List[JobSnapshot]:
        """PENDING or PROCESSING jobs, newest first."""
        pass

    @abstractmethod
    def mark_processing(self, job_id: UUID) -> None:
        pass

    @abstractmethod
    def update_progress(self, job_id: UUID, progress: int, step: str) -> bool:
        """
        Moves progress forward. Never lowers it and never touches a job
        already in a terminal state. Returns False when the update was ignored.
        """
        pass

    @abstractmethod
    def set_duration(self, job_id: UUID, duration_seconds: int) -> None:
        pass

    @abstractmethod
    def mark_completed(self, job_id: UUID, detected_language: Optional[str] = None) -> bool:
        """PROCESSING -> COMPLETED at 100%. Returns False when the job had already left PROCESSING."""
        pass

    @abstractmethod
    def mark_failed(self, job_id: UUID, error_message: str, step: Optional[str] = None) -> None:
        """
        Keeps the first recorded error: nested stages fail bottom-up and the
        innermost message is the useful one.
        """
        pass

    @abstractmethod
    def reopen_failed(self, job_id: UUID) -> bool:
        """FAILED -> PROCESSING, for re-running a single failed stage."""
        pass

    @abstractmethod
    def mark_cancelled(self, job_id: UUID) -> bool:
        pass

    @abstractmethod
    def delete_job(self, job_id: UUID) -> None:
        pass


class IStageRunRepository(ABC):
    """
    Contract for the orchestration records of each dispatched stage.
    """

    @abstractmethod
    def create_run(self,
                   job_id: UUID,
                   stage: PipelineStage,
                   payload: Dict[str, Any],
                   parent_run_id: Optional[UUID] = None) -> UUID:
        pass

    @abstractmethod
    def get_run(self, run_id: UUID) -> Optional[StageRunSnapshot]:
        pass

    @abstractmethod
    def mark_run_completed(self, run_id: UUID, result_meta: Dict[str, Any]) -> None:
        pass

    @abstractmethod
    def mark_run_failed(self, run_id: UUID, error_message: str) -> None:
        pass


class IProgressReporter(ABC):
    """
    What a pipeline stage is allowed to say about its job.
    """

    @abstractmethod
    def update(self, progress: int, step: str) -> None:
        pass

    @abstractmethod
    def ensure_active(self) -> None:
        """Raises JobCancelledError when the job was cancelled."""
        pass

    @abstractmethod
    def fail(self, error_message: str, step: Optional[str] = None) -> None:
        pass

    @abstractmethod
    def complete(self, detected_language: Optional[str] = None) -> None:
        pass
