from dataclasses import dataclass, field
from typing import Optional

from scribo.core.config.settings import Settings, settings as default_settings
from scribo.features.storage.domain.interfaces import IObjectStorage
from scribo.features.audio_extraction.domain.interfaces import IAudioProcessor
from scribo.features.transcription.domain.interfaces import ISpeechToText, ITranscriptRepository
from ..data.repository import SqlJobRepo


@dataclass
class PipelineContext:
    """
    The external collaborators every stage works against.
    Passed explicitly so tests can swap any of them for fakes.
    """
    storage: IObjectStorage
    audio_processor: IAudioProcessor
    speech_to_text: ISpeechToText
    transcript_repo: ITranscriptRepository
    job_repo: SqlJobRepo = field(default_factory=SqlJobRepo)
    config: Settings = default_settings


def build_default_context(config: Optional[Settings] = None) -> PipelineContext:
    """
    Wires the production adapters: ffmpeg, local Whisper, configured storage, SQL.
    Lazy imports keep heavy dependencies (torch, whisper) out of import time.
    """
    config = config or default_settings

    from scribo.features.storage.service.api import build_object_storage
    from scribo.features.audio_extraction.data.ffmpeg_adapter import FFmpegAdapter
    from scribo.features.transcription.data.whisper_adapter import WhisperAdapter
    from scribo.features.transcription.data.repository import SqlTranscriptRepo

    return PipelineContext(
        storage=build_object_storage(config),
        audio_processor=FFmpegAdapter(),
        speech_to_text=WhisperAdapter(),
        transcript_repo=SqlTranscriptRepo(),
        job_repo=SqlJobRepo(),
        config=config,
    )
