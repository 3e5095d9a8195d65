from typing import Optional

from scribo.core.enums import AUTO_LANGUAGE, TimestampGranularity
from ..data.whisper_adapter import WhisperAdapter
from ..domain.models import TranscriptionResult


def run_transcription(audio_path: str,
                      language: str = AUTO_LANGUAGE,
                      granularity: TimestampGranularity = TimestampGranularity.SEGMENT,
                      model_name: Optional[str] = None) -> TranscriptionResult:
    """
    Standalone API for running transcription directly.
    Useful for testing or CLI tools without the full Job system.
    """
    adapter = WhisperAdapter(model_name=model_name)
    return adapter.transcribe(audio_path, language, TimestampGranularity(granularity))
