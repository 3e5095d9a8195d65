# File: scribo/features/formatting/service/finalizer.py
import logging
import math
from uuid import UUID

from scribo.features.transcription.domain.models import PersistedTranscript, TranscriptionResult
from ..domain.encoders import encode_transcript

logger = logging.getLogger(__name__)


def whole_seconds(duration: float) -> int:
    # Half-up, so 59.5s is stored as 60 (round() would give banker's rounding)
    return int(math.floor(duration + 0.5))


class TranscriptFinalizer:
    """
    Last step of the pipeline: encodes the merged transcript, stores it once
    and only then marks the job complete.
    """

    def __init__(self, context, reporter):
        self.context = context
        self.reporter = reporter

    def finalize(self, job_id: UUID, user_id: UUID, merged: TranscriptionResult) -> UUID:
        self.reporter.update(92, "Converting transcript formats")
        encoded = encode_transcript(merged)

        self.reporter.update(94, "Saving transcript to database")
        transcript_id = self.context.transcript_repo.save(PersistedTranscript(
            job_id=job_id,
            user_id=user_id,
            plain_text=encoded.plain_text,
            srt=encoded.srt,
            vtt=encoded.vtt,
            json=encoded.json,
            verbose_json=encoded.verbose_json,
            word_timestamps=encoded.word_timestamps,
            detected_language=merged.language,
            duration_seconds=whole_seconds(merged.duration),
        ))

        self.reporter.update(98, "Finalizing transcription")
        self.reporter.complete(detected_language=merged.language)
        logger.info(f"Job {job_id}: transcript {transcript_id} finalized "
                    f"({len(merged.segments)} segments, {merged.duration:.1f}s, {merged.language})")
        return transcript_id
