from typing import Any, Dict, List, Optional, Sequence
from uuid import UUID

from sqlalchemy import func, update

from scribo.core.database.connection import SessionLocal
from scribo.core.enums import JobStatus, PipelineStage
from ..domain.interfaces import IJobRepository, IStageRunRepository
from ..domain.models import JobSubmission, JobSnapshot, StageRunSnapshot
from .sql_models import TranscriptionJobModel, StageRunModel, utc_now

TERMINAL_STATUSES = (JobStatus.COMPLETED, JobStatus.FAILED, JobStatus.CANCELLED)


def _to_snapshot(job: TranscriptionJobModel) -> JobSnapshot:
    return JobSnapshot(
        id=job.id,
        user_id=job.user_id,
        file_name=job.file_name,
        file_url=job.original_file_url,
        file_type=job.file_type,
        status=job.status,
        progress=job.progress_percentage or 0,
        current_step=job.current_step,
        error_message=job.error_message,
        language=job.language,
        timestamp_granularity=job.timestamp_granularity,
        file_size_bytes=job.file_size_bytes or 0,
        duration_seconds=job.duration_seconds,
        detected_language=job.detected_language,
        created_at=job.created_at,
        completed_at=job.completed_at,
    )


def _to_run_snapshot(run: StageRunModel) -> StageRunSnapshot:
    return StageRunSnapshot(
        id=run.id,
        job_id=run.job_id,
        stage=run.stage,
        status=run.status,
        parent_run_id=run.parent_run_id,
        payload=dict(run.payload or {}),
        result_meta=dict(run.result_meta or {}),
        error_message=run.error_message,
    )


class SqlJobRepo(IJobRepository, IStageRunRepository):

    # --- Jobs ---

    def create_job(self, submission: JobSubmission) -> UUID:
        with SessionLocal() as db:
            job = TranscriptionJobModel(
                user_id=submission.user_id,
                file_name=submission.file_name,
                original_file_url=submission.file_url,
                file_size_bytes=submission.file_size_bytes,
                file_type=submission.file_type,
                file_extension=submission.file_extension,
                status=JobStatus.PENDING,
                progress_percentage=0,
                language=submission.language,
                timestamp_granularity=submission.timestamp_granularity,
            )
            db.add(job)
            db.commit()
            db.refresh(job)
            return job.id

    def get_job(self, job_id: UUID) -> Optional[JobSnapshot]:
        with SessionLocal() as db:
            job = db.get(TranscriptionJobModel, job_id)
            return _to_snapshot(job) if job else None

    def list_user_jobs(self,
                       user_id: UUID,
                       statuses: Optional[Sequence[JobStatus]] = None,
                       limit: int = 20,
                       offset: int = 0) -> List[JobSnapshot]:
        with SessionLocal() as db:
            query = db.query(TranscriptionJobModel).filter(TranscriptionJobModel.user_id == user_id)
            if statuses:
                query = query.filter(TranscriptionJobModel.status.in_(list(statuses)))
            jobs = (
                query.order_by(TranscriptionJobModel.created_at.desc())
                .offset(offset)
                .limit(limit)
                .all()
            )
            return [_to_snapshot(j) for j in jobs]

    def count_jobs_by_status(self, user_id: UUID) -> Dict[JobStatus, int]:
        with SessionLocal() as db:
            rows = (
                db.query(TranscriptionJobModel.status, func.count(TranscriptionJobModel.id))
                .filter(TranscriptionJobModel.user_id == user_id)
                .group_by(TranscriptionJobModel.status)
                .all()
            )
        counts = {status: 0 for status in JobStatus}
        counts.update({status: total for status, total in rows})
        return counts

    def list_active_jobs(self, user_id: UUID) -> List[JobSnapshot]:
        with SessionLocal() as db:
            jobs = (
                db.query(TranscriptionJobModel)
                .filter(TranscriptionJobModel.user_id == user_id,
                        TranscriptionJobModel.status.in_([JobStatus.PENDING, JobStatus.PROCESSING]))
                .order_by(TranscriptionJobModel.created_at.desc())
                .all()
            )
            return [_to_snapshot(j) for j in jobs]

    def mark_processing(self, job_id: UUID) -> None:
        with SessionLocal() as db:
            db.execute(
                update(TranscriptionJobModel)
                .where(TranscriptionJobModel.id == job_id,
                       TranscriptionJobModel.status == JobStatus.PENDING)
                .values(status=JobStatus.PROCESSING)
            )
            db.commit()

    def update_progress(self, job_id: UUID, progress: int, step: str) -> bool:
        # Single conditional UPDATE: concurrent chunk workers can race here,
        # and a read-modify-write would let a stale value win.
        with SessionLocal() as db:
            result = db.execute(
                update(TranscriptionJobModel)
                .where(TranscriptionJobModel.id == job_id,
                       TranscriptionJobModel.progress_percentage <= progress,
                       TranscriptionJobModel.status.notin_(TERMINAL_STATUSES))
                .values(progress_percentage=progress, current_step=step)
            )
            db.commit()
            return result.rowcount > 0

    def set_duration(self, job_id: UUID, duration_seconds: int) -> None:
        with SessionLocal() as db:
            job = db.get(TranscriptionJobModel, job_id)
            if job:
                job.duration_seconds = duration_seconds
                db.commit()

    def mark_completed(self, job_id: UUID, detected_language: Optional[str] = None) -> bool:
        # Conditional like update_progress: a job cancelled while the
        # transcript was being saved must stay cancelled.
        values = dict(status=JobStatus.COMPLETED, progress_percentage=100,
                      error_message=None, completed_at=utc_now())
        if detected_language:
            values["detected_language"] = detected_language
        with SessionLocal() as db:
            result = db.execute(
                update(TranscriptionJobModel)
                .where(TranscriptionJobModel.id == job_id,
                       TranscriptionJobModel.status == JobStatus.PROCESSING)
                .values(**values)
            )
            db.commit()
            return result.rowcount > 0

    def mark_failed(self, job_id: UUID, error_message: str, step: Optional[str] = None) -> None:
        with SessionLocal() as db:
            job = db.get(TranscriptionJobModel, job_id)
            if not job or job.status in (JobStatus.COMPLETED, JobStatus.CANCELLED):
                return
            if job.status != JobStatus.FAILED:
                job.status = JobStatus.FAILED
                job.error_message = error_message
                if step:
                    job.current_step = step
            db.commit()

    def reopen_failed(self, job_id: UUID) -> bool:
        with SessionLocal() as db:
            result = db.execute(
                update(TranscriptionJobModel)
                .where(TranscriptionJobModel.id == job_id,
                       TranscriptionJobModel.status == JobStatus.FAILED)
                .values(status=JobStatus.PROCESSING, error_message=None)
            )
            db.commit()
            return result.rowcount > 0

    def mark_cancelled(self, job_id: UUID) -> bool:
        with SessionLocal() as db:
            result = db.execute(
                update(TranscriptionJobModel)
                .where(TranscriptionJobModel.id == job_id,
                       TranscriptionJobModel.status.in_([JobStatus.PENDING, JobStatus.PROCESSING]))
                .values(status=JobStatus.CANCELLED, current_step="Cancelled by user")
            )
            db.commit()
            return result.rowcount > 0

    def delete_job(self, job_id: UUID) -> None:
        # Lazy import: the transcript table belongs to the transcription feature.
        from scribo.features.transcription.data.sql_models import TranscriptModel

        with SessionLocal() as db:
            try:
                db.query(TranscriptModel).filter(TranscriptModel.job_id == job_id).delete()
                job = db.get(TranscriptionJobModel, job_id)
                if job:
                    db.delete(job)
                db.commit()
            except Exception as e:
                db.rollback()
                raise e

    # --- Stage Runs ---

    def create_run(self,
                   job_id: UUID,
                   stage: PipelineStage,
                   payload: Dict[str, Any],
                   parent_run_id: Optional[UUID] = None) -> UUID:
        with SessionLocal() as db:
            run = StageRunModel(
                job_id=job_id,
                stage=stage,
                payload=payload,
                parent_run_id=parent_run_id,
                status=JobStatus.PROCESSING,
                started_at=utc_now(),
            )
            db.add(run)
            db.commit()
            db.refresh(run)
            return run.id

    def get_run(self, run_id: UUID) -> Optional[StageRunSnapshot]:
        with SessionLocal() as db:
            run = db.get(StageRunModel, run_id)
            return _to_run_snapshot(run) if run else None

    def mark_run_completed(self, run_id: UUID, result_meta: Dict[str, Any]) -> None:
        with SessionLocal() as db:
            run = db.get(StageRunModel, run_id)
            if run:
                run.status = JobStatus.COMPLETED
                run.result_meta = result_meta
                run.finished_at = utc_now()
                db.commit()

    def mark_run_failed(self, run_id: UUID, error_message: str) -> None:
        with SessionLocal() as db:
            run = db.get(StageRunModel, run_id)
            if run:
                run.status = JobStatus.FAILED
                run.error_message = error_message
                run.finished_at = utc_now()
                db.commit()
