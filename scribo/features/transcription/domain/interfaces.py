from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from scribo.core.enums import TimestampGranularity
from .models import PersistedTranscript, TranscriptionResult


class ISpeechToText(ABC):
    """
    Contract for any ASR (Automatic Speech Recognition) engine.
    Allows us to swap local Whisper for an API-based provider later.
    """

    @abstractmethod
    def transcribe(self,
                   audio_path: str,
                   language: Optional[str],
                   granularity: TimestampGranularity) -> TranscriptionResult:
        """
        Transcribes the audio file at the given path.

        Args:
            audio_path: Absolute path to a local audio file.
            language: ISO code, or None / "auto" to let the engine detect it.
            granularity: WORD also fills TranscriptionResult.words.

        Raises:
            TranscriptionProviderError: the engine failed.
        """
        pass


class ITranscriptRepository(ABC):
    """
    Contract for PersistedTranscript storage, keyed uniquely by job id.
    """

    @abstractmethod
    def save(self, transcript: PersistedTranscript) -> UUID:
        """Raises if a transcript already exists for the job."""
        pass

    @abstractmethod
    def get_by_job(self, job_id: UUID) -> Optional[PersistedTranscript]:
        pass
