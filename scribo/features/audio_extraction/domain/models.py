from dataclasses import dataclass
from pathlib import Path, PurePosixPath

VIDEO_EXTENSIONS = (".mp4", ".mov", ".avi", ".mkv", ".webm")
AUDIO_EXTENSIONS = (".mp3", ".wav", ".m4a", ".aac", ".ogg")
SUPPORTED_EXTENSIONS = VIDEO_EXTENSIONS + AUDIO_EXTENSIONS


def media_extension(filename: str) -> str:
    return PurePosixPath(filename).suffix.lower()


def is_supported_media_file(filename: str) -> bool:
    return media_extension(filename) in SUPPORTED_EXTENSIONS


@dataclass(frozen=True)
class ExtractionConfig:
    """
    Normalization profile for speech recognition:
    mono, 16kHz, 128kbps MP3.
    """
    bitrate_kbps: int = 128
    sample_rate_hz: int = 16000
    channels: int = 1
    codec: str = "libmp3lame"
    format: str = "mp3"


@dataclass(frozen=True)
class AudioMetadata:
    """
    What ffprobe reports about a normalized file.
    """
    duration_seconds: float
    format: str
    bitrate_kbps: int
    sample_rate_hz: int
    channels: int

    @property
    def whole_seconds(self) -> int:
        return int(self.duration_seconds)


@dataclass
class ExtractionResult:
    """
    The result of a successful extraction.
    """
    output_path: Path
    metadata: AudioMetadata
    size_bytes: int
