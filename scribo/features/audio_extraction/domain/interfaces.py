from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from .models import AudioMetadata, ExtractionConfig


class IAudioProcessor(ABC):
    """
    Contract for the external audio-processing engine.
    All methods work on local files; callers own the paths.
    """

    @abstractmethod
    def normalize(self, input_path: Path, output_path: Path, config: ExtractionConfig) -> None:
        """
        Drops any video stream and re-encodes the audio to the config profile.

        Raises:
            AudioProcessingError: the engine failed (carries its message).
        """
        pass

    @abstractmethod
    def probe(self, audio_path: Path) -> AudioMetadata:
        """Reads duration, format, bitrate, sample rate and channel count."""
        pass

    @abstractmethod
    def cut_segment(self,
                    input_path: Path,
                    output_path: Path,
                    start_seconds: float,
                    duration_seconds: Optional[float],
                    config: ExtractionConfig) -> None:
        """
        Writes [start, start + duration) of the input, re-encoded to the config
        profile. duration_seconds=None reads to the end of the input.
        """
        pass
