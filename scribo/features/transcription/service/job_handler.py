# File: scribo/features/transcription/service/job_handler.py
import logging
import math
from concurrent.futures import ThreadPoolExecutor, wait
from threading import Lock
from uuid import UUID

from scribo.core.errors import ChunkTranscriptionError, JobCancelledError, JobNotFoundError
from scribo.core.scratch import scratch_space
from scribo.features.chunking.domain.models import AudioChunkReference
from scribo.features.formatting.service.finalizer import TranscriptFinalizer
from ..domain.merge import adjust_timestamps, merge_transcripts
from ..domain.models import TranscriptionResult

logger = logging.getLogger(__name__)

BASE_PROGRESS = 35
PROGRESS_SPAN = 55


def chunk_progress(completed: int, total: int) -> int:
    """35% at the start of transcription, 90% once every chunk is back."""
    return int(math.floor(BASE_PROGRESS + completed * (PROGRESS_SPAN / total) + 0.5))


class ParallelTranscriptionHandler:
    """
    Worker for PipelineStage.TRANSCRIPTION.
    Transcribes every chunk concurrently, merges them in offset order and
    hands the result to the finalizer.
    """

    def __init__(self, context, reporter):
        self.context = context
        self.reporter = reporter
        self._counter_lock = Lock()
        self._completed = 0

    def handle(self, job_id: UUID, run_id: UUID, params: dict) -> dict:
        logger.info(f"Processing Transcription for Job: {job_id}")

        try:
            self.reporter.ensure_active()
            job = self.context.job_repo.get_job(job_id)
            if not job:
                raise JobNotFoundError(f"Job {job_id} not found.")

            chunks = sorted(
                (AudioChunkReference.from_dict(c) for c in params.get("chunks", [])),
                key=lambda c: c.offset
            )
            if not chunks:
                raise ValueError("No audio chunks to transcribe.")

            total = len(chunks)
            self.reporter.update(BASE_PROGRESS, f"Transcribing {total} chunk{'s' if total > 1 else ''}")

            transcripts = self._transcribe_all(job_id, chunks, job.language, job.timestamp_granularity)

            self.reporter.update(90, "Merging transcripts")
            merged = merge_transcripts(transcripts)
            logger.info(f"Job {job_id}: merged {total} chunks -> {len(merged.segments)} segments, "
                        f"{merged.duration:.1f}s, language={merged.language}")

            self.reporter.ensure_active()
            transcript_id = TranscriptFinalizer(self.context, self.reporter).finalize(job_id, job.user_id, merged)

        except JobCancelledError:
            raise
        except Exception as e:
            self.reporter.fail(str(e), step="Transcription failed")
            raise

        return {
            "transcript_id": str(transcript_id),
            "chunk_count": total,
            "segment_count": len(merged.segments),
            "language": merged.language,
            "duration": merged.duration,
        }

    def _transcribe_all(self, job_id, chunks, language, granularity):
        total = len(chunks)
        max_parallel = self.context.config.MAX_PARALLEL_CHUNKS
        workers = min(total, max_parallel) if max_parallel else total

        # Every chunk runs to completion before the outcome is decided
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix=f"stt-{job_id}") as pool:
            futures = [
                pool.submit(self._transcribe_chunk, job_id, index, chunk, total, language, granularity)
                for index, chunk in enumerate(chunks)
            ]
            wait(futures)

        failures = [(i, f.exception()) for i, f in enumerate(futures) if f.exception() is not None]
        if failures:
            for index, error in failures:
                logger.error(f"Job {job_id}: chunk {index} failed: {error}")
            first_error = failures[0][1]
            if len(failures) == 1:
                message = f"Chunk {failures[0][0]} failed: {first_error}"
            else:
                message = f"{len(failures)} of {total} chunks failed. First error: {first_error}"
            raise ChunkTranscriptionError(message, [i for i, _ in failures]) from first_error

        return [f.result() for f in futures]

    def _transcribe_chunk(self,
                          job_id: UUID,
                          index: int,
                          chunk: AudioChunkReference,
                          total: int,
                          language,
                          granularity) -> TranscriptionResult:
        logger.info(f"Transcribing chunk {index + 1}/{total} @ {chunk.offset}s")
        audio_bytes = self.context.storage.download(chunk.url)

        with scratch_space(job_id, f"chunk_{index}", self.context.config.SCRATCH_DIR) as scratch:
            local_file = scratch.write_bytes(f"chunk_{index}.mp3", audio_bytes)
            del audio_bytes
            raw = self.context.speech_to_text.transcribe(str(local_file), language, granularity)
            scratch.discard(local_file)

        adjusted = adjust_timestamps(raw, chunk.offset)

        with self._counter_lock:
            self._completed += 1
            completed = self._completed
            self.reporter.update(chunk_progress(completed, total), f"Transcribed {completed}/{total} chunks")

        logger.info(f"Chunk {index + 1}/{total} done: {len(adjusted.segments)} segments")
        return adjusted
