from enum import Enum, unique


@unique
class FileType(str, Enum):
    VIDEO = "video"
    AUDIO = "audio"


@unique
class JobStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED, JobStatus.CANCELLED)


@unique
class PipelineStage(str, Enum):
    AUDIO_EXTRACTION = "audio_extraction"
    CHUNKING = "chunking"
    TRANSCRIPTION = "transcription"


@unique
class TimestampGranularity(str, Enum):
    SEGMENT = "segment"
    WORD = "word"


AUTO_LANGUAGE = "auto"

# Languages offered at submission time. "auto" lets the provider detect it.
SUPPORTED_LANGUAGES = {
    "auto": "Auto-detect",
    "en": "English",
    "es": "Spanish",
    "fr": "French",
    "de": "German",
    "it": "Italian",
    "pt": "Portuguese",
    "nl": "Dutch",
    "pl": "Polish",
    "ru": "Russian",
    "zh": "Chinese",
    "ja": "Japanese",
    "ko": "Korean",
}
