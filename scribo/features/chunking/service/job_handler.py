# File: scribo/features/chunking/service/job_handler.py
import logging
from uuid import UUID

from scribo.core.enums import PipelineStage
from scribo.core.errors import JobCancelledError
from scribo.core.scratch import scratch_space
from scribo.features.audio_extraction.domain.models import ExtractionConfig
from scribo.features.storage.domain.paths import AUDIO_CONTENT_TYPE, chunk_path
from ..domain.models import AudioChunkReference
from .api import split_audio

logger = logging.getLogger(__name__)


class ChunkSplitHandler:
    """
    Worker for PipelineStage.CHUNKING.
    Only runs for audio above the direct-transcription size limit.
    """

    def __init__(self, context, dispatcher, reporter):
        self.context = context
        self.dispatcher = dispatcher
        self.reporter = reporter

    def handle(self, job_id: UUID, run_id: UUID, params: dict) -> dict:
        logger.info(f"Processing Chunking for Job: {job_id}")
        cfg = self.context.config
        storage = self.context.storage
        user_id = params["user_id"]
        total_duration = float(params["duration"])

        try:
            self.reporter.ensure_active()

            # 1. Download the normalized audio once
            self.reporter.update(32, "Downloading large audio file")
            audio_bytes = storage.download(params["audio_url"])
            logger.info(f"Audio file downloaded ({len(audio_bytes)} bytes)")

            with scratch_space(job_id, "chunking", cfg.SCRATCH_DIR) as scratch:
                input_path = scratch.write_bytes("chunking_input.mp3", audio_bytes)
                del audio_bytes

                # 2. Split
                self.reporter.update(33, "Splitting into 10-minute chunks")
                config = ExtractionConfig(
                    bitrate_kbps=cfg.AUDIO_BITRATE_KBPS,
                    sample_rate_hz=cfg.AUDIO_SAMPLE_RATE_HZ,
                    channels=cfg.AUDIO_CHANNELS
                )
                pieces = split_audio(
                    self.context.audio_processor,
                    input_path,
                    scratch.root / "chunks",
                    total_duration,
                    cfg.CHUNK_DURATION_SECONDS,
                    config
                )
                logger.info(f"Audio split into {len(pieces)} chunks")

                # 3. Upload each chunk
                self.reporter.update(34, f"Uploading {len(pieces)} chunks to storage")
                refs = []
                for window, local_file in pieces:
                    target = chunk_path(user_id, job_id, window.index)
                    storage.upload(target, local_file.read_bytes(), AUDIO_CONTENT_TYPE)
                    scratch.discard(local_file)
                    refs.append(AudioChunkReference(url=target, offset=window.offset, duration=window.duration))
                    logger.info(f"Uploaded chunk {window.index + 1}/{len(pieces)}")

            refs.sort(key=lambda ref: ref.offset)

            # 4. Hand off and wait
            self.reporter.update(35, "Starting transcription of chunks")
            self.reporter.ensure_active()
            child = self.dispatcher.run_stage(
                job_id,
                PipelineStage.TRANSCRIPTION,
                {"user_id": user_id, "chunks": [ref.to_dict() for ref in refs]},
                parent_run_id=run_id
            )

        except JobCancelledError:
            raise
        except Exception as e:
            self.reporter.fail(str(e), step="Chunking failed")
            raise

        return {"chunk_count": len(refs), "child": child}
