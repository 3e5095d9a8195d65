import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, String, Integer, BigInteger, DateTime, Enum as SQLEnum, JSON, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from scribo.core.database.base import Base
from scribo.core.enums import FileType, JobStatus, PipelineStage, TimestampGranularity


def utc_now():
    return datetime.now(timezone.utc)


class TranscriptionJobModel(Base):
    """
    One end-to-end run of the pipeline.
    Mutated only by the pipeline; read-only to the UI (polled for progress).
    """
    __tablename__ = "transcription_jobs"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), nullable=False, index=True)

    # File information
    file_name = Column(String, nullable=False)
    original_file_url = Column(String, nullable=False)  # Object storage path
    file_size_bytes = Column(BigInteger, nullable=False, default=0)
    file_type = Column(SQLEnum(FileType), nullable=False)
    file_extension = Column(String, nullable=False)

    # Status channel
    status = Column(SQLEnum(JobStatus), default=JobStatus.PENDING, nullable=False, index=True)
    progress_percentage = Column(Integer, nullable=False, default=0)
    current_step = Column(String, nullable=True)
    error_message = Column(String, nullable=True)

    # Audio / transcription metadata
    duration_seconds = Column(Integer, nullable=True)  # Known after extraction
    language = Column(String, nullable=False, default="auto")
    detected_language = Column(String, nullable=True)
    timestamp_granularity = Column(SQLEnum(TimestampGranularity), nullable=False,
                                   default=TimestampGranularity.SEGMENT)

    created_at = Column(DateTime(timezone=True), default=utc_now, index=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    stage_runs = relationship("StageRunModel", back_populates="job", cascade="all, delete-orphan")


class StageRunModel(Base):
    """
    One dispatched execution of a pipeline stage.
    Child stages point at the run that spawned (and waited on) them.
    """
    __tablename__ = "stage_runs"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    job_id = Column(Uuid(as_uuid=True), ForeignKey("transcription_jobs.id", ondelete="CASCADE"),
                    nullable=False, index=True)
    parent_run_id = Column(Uuid(as_uuid=True), nullable=True, index=True)

    stage = Column(SQLEnum(PipelineStage), nullable=False)
    status = Column(SQLEnum(JobStatus), default=JobStatus.PENDING, nullable=False)

    payload = Column(JSON, default=dict)      # Input parameters
    result_meta = Column(JSON, default=dict)  # Output pointers (paths, counts)
    error_message = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), default=utc_now)
    started_at = Column(DateTime(timezone=True), nullable=True)
    finished_at = Column(DateTime(timezone=True), nullable=True)

    job = relationship("TranscriptionJobModel", back_populates="stage_runs")
