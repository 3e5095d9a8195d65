# File: scribo/core/errors.py


class PipelineError(Exception):
    """Base class for every failure the transcription pipeline reports on a job."""


class InputValidationError(PipelineError):
    """
    The uploaded media can never be processed as-is
    (unsupported extension, empty file, audio over the size ceiling).
    Retrying the same file will not help.
    """


class AudioProcessingError(PipelineError):
    """FFmpeg/FFprobe failed, or reported success but produced unusable output."""


class StorageError(PipelineError):
    """Object storage upload/download failure."""


class TranscriptionProviderError(PipelineError):
    """The speech-to-text provider rejected or failed a request."""


class ChunkTranscriptionError(PipelineError):
    """One or more chunks failed during parallel transcription."""

    def __init__(self, message: str, failed_indexes=None):
        super().__init__(message)
        self.failed_indexes = list(failed_indexes or [])


class JobNotFoundError(PipelineError):
    pass


class JobCancelledError(PipelineError):
    """Raised at a stage boundary when the job was cancelled by its owner."""
