import logging
from pathlib import Path
from typing import Optional

from scribo.core.errors import AudioProcessingError, InputValidationError
from ..domain.interfaces import IAudioProcessor
from ..domain.models import ExtractionConfig, ExtractionResult
from ..data.ffmpeg_adapter import FFmpegAdapter

logger = logging.getLogger(__name__)

# Anything smaller is an ffmpeg run that "succeeded" without producing audio.
MIN_OUTPUT_BYTES = 1000


def extract_normalized_audio(processor: IAudioProcessor,
                             input_path: Path,
                             output_path: Path,
                             config: ExtractionConfig,
                             min_output_bytes: int = MIN_OUTPUT_BYTES) -> ExtractionResult:
    """
    Normalizes a local media file and validates the output.

    Raises:
        InputValidationError: the input is empty.
        AudioProcessingError: the engine failed or produced a suspiciously small file.
    """
    if not input_path.exists() or input_path.stat().st_size == 0:
        raise InputValidationError(f"Input media is empty: {input_path.name}")

    processor.normalize(input_path, output_path, config)

    size_bytes = output_path.stat().st_size if output_path.exists() else 0
    if size_bytes < min_output_bytes:
        raise AudioProcessingError(
            "Audio extraction produced no output. The file may not contain an audio track."
        )

    metadata = processor.probe(output_path)
    logger.info(
        f"Extracted {size_bytes} bytes of audio ({metadata.duration_seconds:.1f}s, "
        f"{metadata.format}, {metadata.sample_rate_hz}Hz) from {input_path.name}"
    )
    return ExtractionResult(output_path=output_path, metadata=metadata, size_bytes=size_bytes)


def run_extraction(input_path: str,
                   output_dir: str,
                   config: Optional[ExtractionConfig] = None) -> ExtractionResult:
    """
    Standalone API: Normalizes the audio of a local media file into output_dir.
    Does NOT interact with the database or object storage.
    """
    source = Path(input_path)
    target_dir = Path(output_dir)
    target_dir.mkdir(parents=True, exist_ok=True)

    return extract_normalized_audio(
        FFmpegAdapter(),
        source,
        target_dir / f"{source.stem}.mp3",
        config or ExtractionConfig()
    )
