# File: scribo/core/jobs/service/dispatcher.py
import logging
from typing import Any, Dict, Optional
from uuid import UUID

from scribo.core.enums import PipelineStage
from .context import PipelineContext
from .progress import JobProgressReporter

logger = logging.getLogger(__name__)


class StageDispatcher:
    """
    Runs pipeline stages as child units of work.
    It doesn't know *how* a stage works, but it knows *who* can run it.

    run_stage() blocks until the stage (and every child it spawns) finishes,
    so a parent's completion reflects end-to-end success.
    """

    def __init__(self, context: PipelineContext):
        self.context = context

    def run_stage(self,
                  job_id: UUID,
                  stage: PipelineStage,
                  payload: Dict[str, Any],
                  parent_run_id: Optional[UUID] = None) -> Dict[str, Any]:
        repo = self.context.job_repo
        run_id = repo.create_run(job_id, stage, payload, parent_run_id)
        logger.info(f"Stage Run {run_id} [{stage.value}] started for Job {job_id}")

        try:
            result = self._route_to_feature(stage, job_id, run_id, payload)
        except Exception as e:
            repo.mark_run_failed(run_id, str(e))
            logger.error(f"Stage Run {run_id} [{stage.value}] failed: {e}")
            raise

        repo.mark_run_completed(run_id, result)
        logger.info(f"Stage Run {run_id} [{stage.value}] completed.")
        return result

    def _route_to_feature(self,
                          stage: PipelineStage,
                          job_id: UUID,
                          run_id: UUID,
                          payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Routes the stage to the correct Feature Handler.
        Uses lazy imports to prevent circular dependencies.
        """
        reporter = JobProgressReporter(job_id, self.context.job_repo)

        if stage == PipelineStage.AUDIO_EXTRACTION:
            from scribo.features.audio_extraction.service.job_handler import AudioExtractionHandler
            return AudioExtractionHandler(self.context, self, reporter).handle(job_id, run_id, payload)

        elif stage == PipelineStage.CHUNKING:
            from scribo.features.chunking.service.job_handler import ChunkSplitHandler
            return ChunkSplitHandler(self.context, self, reporter).handle(job_id, run_id, payload)

        elif stage == PipelineStage.TRANSCRIPTION:
            from scribo.features.transcription.service.job_handler import ParallelTranscriptionHandler
            return ParallelTranscriptionHandler(self.context, reporter).handle(job_id, run_id, payload)

        raise NotImplementedError(f"No handler registered for stage: {stage}")
