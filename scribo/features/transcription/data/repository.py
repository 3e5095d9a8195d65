import logging
from typing import Optional
from uuid import UUID

from scribo.core.database.connection import SessionLocal
from ..domain.interfaces import ITranscriptRepository
from ..domain.models import PersistedTranscript
from .sql_models import TranscriptModel

logger = logging.getLogger(__name__)


class SqlTranscriptRepo(ITranscriptRepository):

    def save(self, transcript: PersistedTranscript) -> UUID:
        with SessionLocal() as db:
            try:
                row = TranscriptModel(
                    job_id=transcript.job_id,
                    user_id=transcript.user_id,
                    plain_text=transcript.plain_text,
                    srt=transcript.srt,
                    vtt=transcript.vtt,
                    json=transcript.json,
                    verbose_json=transcript.verbose_json,
                    word_timestamps=transcript.word_timestamps,
                    detected_language=transcript.detected_language,
                    duration_seconds=transcript.duration_seconds,
                )
                db.add(row)
                db.commit()
                db.refresh(row)
            except Exception as e:
                db.rollback()
                logger.error(f"Failed to save transcript for Job {transcript.job_id}: {e}")
                raise e

            logger.info(f"Transcript saved. ID: {row.id}, Job: {transcript.job_id}")
            return row.id

    def get_by_job(self, job_id: UUID) -> Optional[PersistedTranscript]:
        with SessionLocal() as db:
            row = db.query(TranscriptModel).filter(TranscriptModel.job_id == job_id).first()
            if not row:
                return None
            return PersistedTranscript(
                id=row.id,
                job_id=row.job_id,
                user_id=row.user_id,
                plain_text=row.plain_text,
                srt=row.srt,
                vtt=row.vtt,
                json=row.json,
                verbose_json=row.verbose_json,
                word_timestamps=row.word_timestamps,
                detected_language=row.detected_language,
                duration_seconds=row.duration_seconds,
                created_at=row.created_at,
            )
