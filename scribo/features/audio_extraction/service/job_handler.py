# File: scribo/features/audio_extraction/service/job_handler.py
import logging
from uuid import UUID

from scribo.core.enums import PipelineStage
from scribo.core.errors import InputValidationError, JobCancelledError
from scribo.core.scratch import scratch_space
from scribo.features.storage.domain.paths import AUDIO_CONTENT_TYPE, extracted_audio_path
from ..domain.models import ExtractionConfig, media_extension, is_supported_media_file
from ..domain.routing import AudioRoute, decide_route
from .api import extract_normalized_audio

logger = logging.getLogger(__name__)


class AudioExtractionHandler:
    """
    Worker for PipelineStage.AUDIO_EXTRACTION.
    Normalizes the upload, stores it, and hands off to chunking or transcription.
    """

    def __init__(self, context, dispatcher, reporter):
        self.context = context
        self.dispatcher = dispatcher
        self.reporter = reporter

    def handle(self, job_id: UUID, run_id: UUID, params: dict) -> dict:
        logger.info(f"Processing Audio Extraction for Job: {job_id}")
        cfg = self.context.config
        storage = self.context.storage
        user_id = params["user_id"]
        file_name = params["file_name"]

        try:
            self.reporter.ensure_active()
            if not is_supported_media_file(file_name):
                raise InputValidationError(f"Unsupported file type: {media_extension(file_name) or file_name}")

            # 1. Download Original
            self.reporter.update(10, "Downloading file from storage")
            source_bytes = storage.download(params["file_url"])

            with scratch_space(job_id, "extract", cfg.SCRATCH_DIR) as scratch:
                input_path = scratch.write_bytes(f"input{media_extension(file_name)}", source_bytes)
                del source_bytes

                # 2. Normalize
                self.reporter.update(15, "Extracting audio with FFmpeg")
                config = ExtractionConfig(
                    bitrate_kbps=cfg.AUDIO_BITRATE_KBPS,
                    sample_rate_hz=cfg.AUDIO_SAMPLE_RATE_HZ,
                    channels=cfg.AUDIO_CHANNELS
                )
                result = extract_normalized_audio(
                    self.context.audio_processor,
                    input_path,
                    scratch.path_for("output.mp3"),
                    config,
                    cfg.MIN_EXTRACTED_AUDIO_BYTES
                )
                duration = result.metadata.duration_seconds
                self.context.job_repo.set_duration(job_id, result.metadata.whole_seconds)

                # 3. Upload normalized audio
                self.reporter.update(25, "Uploading extracted audio")
                audio_path = extracted_audio_path(user_id, job_id)
                storage.upload(audio_path, result.output_path.read_bytes(), AUDIO_CONTENT_TYPE)
                size_bytes = result.size_bytes

            # 4. Route by size
            route = decide_route(size_bytes, cfg.MAX_DIRECT_TRANSCRIPTION_BYTES, cfg.MAX_EXTRACTED_AUDIO_BYTES)
            self.reporter.update(30, "Audio extraction complete")
            logger.info(f"Job {job_id}: {size_bytes} bytes of audio routed {route.value}")

            self.reporter.ensure_active()
            if route == AudioRoute.CHUNKED:
                child = self.dispatcher.run_stage(
                    job_id,
                    PipelineStage.CHUNKING,
                    {"user_id": user_id, "audio_url": audio_path, "duration": duration},
                    parent_run_id=run_id
                )
            else:
                child = self.dispatcher.run_stage(
                    job_id,
                    PipelineStage.TRANSCRIPTION,
                    {
                        "user_id": user_id,
                        "chunks": [{"url": audio_path, "offset": 0, "duration": duration}]
                    },
                    parent_run_id=run_id
                )

        except JobCancelledError:
            raise
        except Exception as e:
            self.reporter.fail(str(e), step="Audio extraction failed")
            raise

        return {
            "audio_path": audio_path,
            "duration": duration,
            "size_bytes": size_bytes,
            "route": route.value,
            "child": child,
        }
