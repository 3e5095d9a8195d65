# File: scribo/core/jobs/service/manager.py
import logging
from typing import Dict, List, Optional, Sequence
from uuid import UUID

from scribo.core.enums import JobStatus, PipelineStage, SUPPORTED_LANGUAGES
from scribo.core.errors import InputValidationError, JobCancelledError, JobNotFoundError
from scribo.features.formatting.service.export import ExportedFile, export_transcript
from scribo.features.storage.domain.paths import extracted_audio_path, job_prefix
from ..domain.models import JobSubmission, JobSnapshot
from .context import PipelineContext, build_default_context
from .dispatcher import StageDispatcher

logger = logging.getLogger(__name__)


class JobManager:
    """
    Public API for the Jobs Core Module.
    Submits transcription jobs, runs them through the stage chain and
    exposes the status channel the UI polls.
    """

    def __init__(self, context: Optional[PipelineContext] = None):
        # In a full DI framework, this would be injected.
        self.context = context or build_default_context()
        self.repo = self.context.job_repo
        self.dispatcher = StageDispatcher(self.context)

    def submit_job(self, submission: JobSubmission) -> UUID:
        """Create a Job Record in PENDING state."""
        job_id = self.repo.create_job(submission)
        logger.info(f"Job Submitted: {job_id} [{submission.file_name}] for User {submission.user_id}")
        return job_id

    def run_job(self, job_id: UUID) -> JobSnapshot:
        """
        Executes the whole pipeline for a job, starting at audio extraction.
        Failures are recorded on the job (status FAILED + message), not raised.
        """
        job = self.repo.get_job(job_id)
        if not job:
            raise JobNotFoundError(f"Job {job_id} not found.")
        if job.status != JobStatus.PENDING:
            raise ValueError(f"Job {job_id} is {job.status.value}; only pending jobs can be run.")

        self.repo.mark_processing(job_id)
        payload = {
            "user_id": str(job.user_id),
            "file_url": job.file_url,
            "file_name": job.file_name,
            "file_type": job.file_type.value,
        }

        try:
            logger.info(f"Starting Job {job_id} ({job.file_name})...")
            self.dispatcher.run_stage(job_id, PipelineStage.AUDIO_EXTRACTION, payload)
            logger.info(f"Job {job_id} Completed successfully.")

        except JobCancelledError as e:
            logger.warning(f"Job {job_id} stopped: {e}")

        except Exception as e:
            # Stages record their own failure; this covers anything that escaped them.
            self.repo.mark_failed(job_id, str(e))
            logger.exception(f"Job {job_id} Failed: {e}")

        return self.repo.get_job(job_id)

    def retry_stage(self, run_id: UUID) -> JobSnapshot:
        """
        Re-runs a single FAILED stage with its original payload.
        Earlier stages are not repeated (their artifacts are still in storage).
        """
        run = self.repo.get_run(run_id)
        if not run:
            raise ValueError(f"Stage Run {run_id} not found.")
        if run.status != JobStatus.FAILED:
            raise ValueError(f"Stage Run {run_id} is {run.status.value}; only failed stages can be retried.")

        if not self.repo.reopen_failed(run.job_id):
            raise ValueError(f"Job {run.job_id} is no longer failed; stage {run_id} cannot be retried.")
        logger.info(f"Retrying Stage Run {run_id} [{run.stage.value}] for Job {run.job_id}")
        try:
            self.dispatcher.run_stage(run.job_id, run.stage, run.payload, parent_run_id=run.parent_run_id)
        except JobCancelledError as e:
            logger.warning(f"Job {run.job_id} stopped: {e}")
        except Exception as e:
            self.repo.mark_failed(run.job_id, str(e))
            logger.exception(f"Stage retry for Job {run.job_id} Failed: {e}")

        return self.repo.get_job(run.job_id)

    # --- Status Channel ---

    def get_status(self, job_id: UUID) -> JobSnapshot:
        job = self.repo.get_job(job_id)
        if not job:
            raise JobNotFoundError(f"Job {job_id} not found.")
        return job

    def get_transcript(self, job_id: UUID):
        return self.context.transcript_repo.get_by_job(job_id)

    def list_jobs(self,
                  user_id: UUID,
                  statuses: Optional[Sequence[JobStatus]] = None,
                  limit: Optional[int] = None,
                  offset: int = 0) -> List[JobSnapshot]:
        limit = limit or self.context.config.JOBS_PER_PAGE
        return self.repo.list_user_jobs(user_id, statuses, limit, offset)

    def count_jobs_by_status(self, user_id: UUID) -> Dict[JobStatus, int]:
        return self.repo.count_jobs_by_status(user_id)

    def list_active_jobs(self, user_id: UUID) -> List[JobSnapshot]:
        """Pending and processing jobs, newest first: the ones a UI keeps polling."""
        return self.repo.list_active_jobs(user_id)

    def export_transcript(self, job_id: UUID, user_id: UUID, fmt: str) -> ExportedFile:
        """
        One format (txt, srt, vtt, json, verbose_json) or "all" as a zip bundle,
        named after the uploaded file.
        """
        job = self._get_owned_job(job_id, user_id)
        transcript = self.context.transcript_repo.get_by_job(job_id)
        if not transcript:
            raise JobNotFoundError(f"Transcript for Job {job_id} not found.")
        return export_transcript(transcript, job.file_name, fmt)

    @staticmethod
    def supported_languages() -> Dict[str, str]:
        """Language codes accepted at submission ("auto" first) mapped to display names."""
        return dict(SUPPORTED_LANGUAGES)

    # --- User Actions ---

    def retry_job(self, job_id: UUID, user_id: UUID) -> UUID:
        """
        Creates a NEW pending job for the same uploaded file.
        Only failed jobs can be retried.
        """
        failed_job = self._get_owned_job(job_id, user_id)
        if failed_job.status != JobStatus.FAILED:
            raise InputValidationError("Can only retry failed jobs.")

        submission = JobSubmission(
            user_id=failed_job.user_id,
            file_name=failed_job.file_name,
            file_url=failed_job.file_url,
            file_type=failed_job.file_type,
            file_size_bytes=failed_job.file_size_bytes,
            language=failed_job.language,
            timestamp_granularity=failed_job.timestamp_granularity,
        )
        new_job_id = self.submit_job(submission)
        logger.info(f"Job {job_id} retried as {new_job_id}")
        return new_job_id

    def cancel_job(self, job_id: UUID, user_id: UUID) -> bool:
        self._get_owned_job(job_id, user_id)
        cancelled = self.repo.mark_cancelled(job_id)
        if cancelled:
            logger.info(f"Job {job_id} cancelled by User {user_id}")
        return cancelled

    def delete_job(self, job_id: UUID, user_id: UUID) -> None:
        """
        Removes the job, its transcript and every derived file in storage.
        The original upload is left alone; it belongs to the uploader.
        """
        job = self._get_owned_job(job_id, user_id)
        storage = self.context.storage

        storage.delete(extracted_audio_path(job.user_id, job.id))
        removed = storage.delete_prefix(job_prefix(job.user_id, job.id))
        self.repo.delete_job(job_id)
        logger.info(f"Job {job_id} deleted ({removed} chunk files removed)")

    def _get_owned_job(self, job_id: UUID, user_id: UUID) -> JobSnapshot:
        job = self.repo.get_job(job_id)
        if not job or job.user_id != user_id:
            raise JobNotFoundError("Job not found or access denied.")
        return job
