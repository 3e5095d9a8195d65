from dataclasses import dataclass, field
from datetime import datetime
from pathlib import PurePosixPath
from typing import Any, Dict, Optional
from uuid import UUID

from scribo.core.enums import (
    FileType, JobStatus, PipelineStage, TimestampGranularity,
    AUTO_LANGUAGE, SUPPORTED_LANGUAGES,
)
from scribo.core.errors import InputValidationError
from scribo.features.audio_extraction.domain.models import is_supported_media_file


@dataclass(frozen=True)
class JobSubmission:
    """
    DTO for requesting a new transcription job.
    The file must already be uploaded to object storage at file_url.
    """
    user_id: UUID
    file_name: str
    file_url: str
    file_type: FileType
    file_size_bytes: int = 0
    language: str = AUTO_LANGUAGE
    timestamp_granularity: TimestampGranularity = TimestampGranularity.SEGMENT

    def __post_init__(self):
        if not is_supported_media_file(self.file_name):
            raise InputValidationError(f"Unsupported file format: {self.file_name}")
        if self.file_size_bytes < 0:
            raise ValueError("File size cannot be negative.")
        if (self.language or AUTO_LANGUAGE) not in SUPPORTED_LANGUAGES:
            raise ValueError(f"Unsupported language: {self.language}")
        # Accept plain strings from callers ("video", "word")
        object.__setattr__(self, "file_type", FileType(self.file_type))
        object.__setattr__(self, "timestamp_granularity", TimestampGranularity(self.timestamp_granularity))
        object.__setattr__(self, "language", self.language or AUTO_LANGUAGE)

    @property
    def file_extension(self) -> str:
        return PurePosixPath(self.file_name).suffix.lower().lstrip(".")


@dataclass(frozen=True)
class JobSnapshot:
    """
    Read-only view of a job, as exposed on the status channel.
    """
    id: UUID
    user_id: UUID
    file_name: str
    file_url: str
    file_type: FileType
    status: JobStatus
    progress: int
    current_step: Optional[str]
    error_message: Optional[str]
    language: str
    timestamp_granularity: TimestampGranularity
    file_size_bytes: int = 0
    duration_seconds: Optional[int] = None
    detected_language: Optional[str] = None
    created_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


@dataclass(frozen=True)
class StageRunSnapshot:
    id: UUID
    job_id: UUID
    stage: PipelineStage
    status: JobStatus
    parent_run_id: Optional[UUID] = None
    payload: Dict[str, Any] = field(default_factory=dict)
    result_meta: Dict[str, Any] = field(default_factory=dict)
    error_message: Optional[str] = None
