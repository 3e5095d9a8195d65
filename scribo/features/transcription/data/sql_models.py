import uuid
from sqlalchemy import Column, String, Text, Integer, ForeignKey, DateTime, JSON, Uuid
from sqlalchemy.orm import relationship
from scribo.core.database.base import Base
from scribo.core.jobs.data.sql_models import utc_now


class TranscriptModel(Base):
    """
    The finished transcript of a job, in every export format.
    One row per job (job_id is unique).
    """
    __tablename__ = "transcripts"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    job_id = Column(Uuid(as_uuid=True), ForeignKey("transcription_jobs.id", ondelete="CASCADE"),
                    nullable=False, unique=True)
    user_id = Column(Uuid(as_uuid=True), nullable=False, index=True)

    # Export formats
    plain_text = Column(Text, nullable=False)
    srt = Column(Text, nullable=False)
    vtt = Column(Text, nullable=False)
    json = Column(Text, nullable=False)
    verbose_json = Column(Text, nullable=False)

    # [{"word": "...", "start": 0.0, "end": 0.4}, ...] or NULL when not requested
    word_timestamps = Column(JSON, nullable=True)

    detected_language = Column(String, nullable=True)
    duration_seconds = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), default=utc_now)

    job = relationship("TranscriptionJobModel")
