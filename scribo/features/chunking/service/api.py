import logging
from pathlib import Path
from typing import List, Optional, Tuple

from scribo.core.errors import AudioProcessingError
from scribo.features.audio_extraction.domain.interfaces import IAudioProcessor
from scribo.features.audio_extraction.domain.models import ExtractionConfig
from ..domain.models import ChunkWindow
from ..domain.planner import plan_chunks

logger = logging.getLogger(__name__)


def split_audio(processor: IAudioProcessor,
                input_path: Path,
                output_dir: Path,
                total_duration: float,
                chunk_duration: float = 600,
                config: Optional[ExtractionConfig] = None) -> List[Tuple[ChunkWindow, Path]]:
    """
    Cuts a normalized audio file into fixed-length chunk files in output_dir.
    Returns (window, local path) pairs sorted by offset.

    Raises:
        AudioProcessingError: any single cut failed. Chunks already written are
        left in output_dir for the caller's scratch scope to remove.
    """
    config = config or ExtractionConfig()
    output_dir.mkdir(parents=True, exist_ok=True)
    windows = plan_chunks(total_duration, chunk_duration)

    pieces = []
    for window in windows:
        chunk_file = output_dir / f"chunk_{window.index}.mp3"
        try:
            processor.cut_segment(
                input_path,
                chunk_file,
                window.offset,
                # The last chunk reads to the end so no trailing audio is lost
                None if window.is_last else window.duration,
                config
            )
        except AudioProcessingError as e:
            raise AudioProcessingError(f"Failed to create chunk {window.index}: {e}") from e
        pieces.append((window, chunk_file))
        logger.debug(f"Cut chunk {window.index + 1}/{len(windows)}: {window.offset}s-{window.end}s")

    pieces.sort(key=lambda item: item[0].offset)
    return pieces
