import json
import subprocess
import logging
from pathlib import Path
from typing import List, Optional

from scribo.core.config.settings import settings
from scribo.core.errors import AudioProcessingError
from ..domain.interfaces import IAudioProcessor
from ..domain.models import AudioMetadata, ExtractionConfig

logger = logging.getLogger(__name__)


class FFmpegAdapter(IAudioProcessor):
    """
    Concrete implementation of IAudioProcessor using the ffmpeg/ffprobe binaries.
    Always works file-to-file: inputs are written to disk before the engine runs.
    """

    def __init__(self, ffmpeg_binary: Optional[str] = None, ffprobe_binary: Optional[str] = None):
        self.ffmpeg_binary = ffmpeg_binary or settings.FFMPEG_BINARY
        self.ffprobe_binary = ffprobe_binary or settings.FFPROBE_BINARY

    @staticmethod
    def _encode_options(config: ExtractionConfig) -> List[str]:
        # -vn: Disable video
        # -ar / -ac: 16kHz mono is what speech models are trained on
        return [
            "-vn",
            "-acodec", config.codec,
            "-b:a", f"{config.bitrate_kbps}k",
            "-ar", str(config.sample_rate_hz),
            "-ac", str(config.channels),
            "-f", config.format,
        ]

    def _run(self, cmd: List[str], action: str) -> None:
        logger.info(f"Executing FFmpeg ({action}): {' '.join(cmd)}")
        try:
            subprocess.run(
                cmd,
                check=True,
                capture_output=True,
                text=True
            )
        except FileNotFoundError as e:
            raise AudioProcessingError(f"FFmpeg binary not found: {cmd[0]}") from e
        except subprocess.CalledProcessError as e:
            error_message = e.stderr.strip() if e.stderr else str(e)
            logger.error(f"FFmpeg {action} failed. STDERR: {error_message}")
            raise AudioProcessingError(f"FFmpeg processing failed: {error_message}") from e

    def normalize(self, input_path: Path, output_path: Path, config: ExtractionConfig) -> None:
        if not input_path.exists():
            raise FileNotFoundError(f"Input media not found: {input_path}")

        output_path.parent.mkdir(parents=True, exist_ok=True)
        cmd = [
            self.ffmpeg_binary,
            "-y",
            "-i", str(input_path),
            *self._encode_options(config),
            str(output_path)
        ]
        self._run(cmd, "normalize")

    def cut_segment(self,
                    input_path: Path,
                    output_path: Path,
                    start_seconds: float,
                    duration_seconds: Optional[float],
                    config: ExtractionConfig) -> None:
        # -ss before -i: fast input seeking; re-encoding keeps the cut sample accurate
        cmd = [
            self.ffmpeg_binary,
            "-y",
            "-ss", str(start_seconds),
            "-i", str(input_path),
        ]
        if duration_seconds is not None:
            cmd += ["-t", str(duration_seconds)]
        cmd += [*self._encode_options(config), str(output_path)]
        self._run(cmd, f"cut @{start_seconds}s")

    def probe(self, audio_path: Path) -> AudioMetadata:
        cmd = [
            self.ffprobe_binary,
            "-v", "error",
            "-print_format", "json",
            "-show_format",
            "-show_streams",
            str(audio_path)
        ]
        try:
            completed = subprocess.run(cmd, check=True, capture_output=True, text=True)
            data = json.loads(completed.stdout or "{}")
        except FileNotFoundError as e:
            raise AudioProcessingError(f"FFprobe binary not found: {cmd[0]}") from e
        except subprocess.CalledProcessError as e:
            error_message = e.stderr.strip() if e.stderr else str(e)
            raise AudioProcessingError(f"Failed to get audio metadata: {error_message}") from e
        except json.JSONDecodeError as e:
            raise AudioProcessingError(f"Failed to get audio metadata: unreadable ffprobe output ({e})") from e

        return parse_probe_output(data)


def parse_probe_output(data: dict) -> AudioMetadata:
    """Maps ffprobe's -print_format json output onto AudioMetadata."""
    audio_stream = next(
        (s for s in data.get("streams", []) if s.get("codec_type") == "audio"),
        None
    )
    if audio_stream is None:
        raise AudioProcessingError("No audio stream found in file")

    fmt = data.get("format", {})
    bit_rate = fmt.get("bit_rate")
    sample_rate = audio_stream.get("sample_rate")

    return AudioMetadata(
        duration_seconds=float(fmt.get("duration") or 0.0),
        format=fmt.get("format_name") or "unknown",
        bitrate_kbps=round(int(bit_rate) / 1000) if bit_rate else 0,
        sample_rate_hz=int(sample_rate) if sample_rate else 0,
        channels=int(audio_stream.get("channels") or 0),
    )
