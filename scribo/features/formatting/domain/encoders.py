# File: scribo/features/formatting/domain/encoders.py
"""
Pure conversions of a merged transcript into its export formats.
Every function is deterministic: the same transcript always yields the
same string.
"""
import json
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from scribo.features.transcription.domain.models import TranscriptionResult


def _split_time(seconds: float):
    # Each component is floored on its own, so 1.9999s renders as 00:00:01,999
    hours = math.floor(seconds / 3600)
    minutes = math.floor((seconds % 3600) / 60)
    secs = math.floor(seconds % 60)
    millis = math.floor((seconds % 1) * 1000)
    return hours, minutes, secs, millis


def format_srt_time(seconds: float) -> str:
    """HH:MM:SS,mmm"""
    h, m, s, ms = _split_time(seconds)
    return f"{h:02d}:{m:02d}:{s:02d},{ms:03d}"


def format_vtt_time(seconds: float) -> str:
    """HH:MM:SS.mmm"""
    h, m, s, ms = _split_time(seconds)
    return f"{h:02d}:{m:02d}:{s:02d}.{ms:03d}"


def to_plain_text(transcript: TranscriptionResult) -> str:
    return transcript.text.strip()


def to_srt(transcript: TranscriptionResult) -> str:
    blocks = []
    for number, segment in enumerate(transcript.segments, start=1):
        blocks.append(
            f"{number}\n"
            f"{format_srt_time(segment.start)} --> {format_srt_time(segment.end)}\n"
            f"{segment.text.strip()}\n"
        )
    return "\n".join(blocks)


def to_vtt(transcript: TranscriptionResult) -> str:
    blocks = ["WEBVTT\n"]
    for segment in transcript.segments:
        blocks.append(
            f"{format_vtt_time(segment.start)} --> {format_vtt_time(segment.end)}\n"
            f"{segment.text.strip()}\n"
        )
    return "\n".join(blocks)


def to_json(transcript: TranscriptionResult) -> str:
    """Compact export: language, duration, text and trimmed segments only."""
    data = {
        "language": transcript.language,
        "duration": transcript.duration,
        "text": transcript.text,
        "segments": [
            {
                "id": segment.id,
                "start": segment.start,
                "end": segment.end,
                "text": segment.text.strip(),
            }
            for segment in transcript.segments
        ],
    }
    return json.dumps(data, indent=2, ensure_ascii=False)


def to_verbose_json(transcript: TranscriptionResult) -> str:
    """Everything the provider returned, including per-segment extras and words."""
    return json.dumps(transcript.to_dict(), indent=2, ensure_ascii=False, default=_json_default)


def extract_word_timestamps(transcript: TranscriptionResult) -> Optional[List[Dict[str, Any]]]:
    if transcript.words is None:
        return None
    return [w.to_dict() for w in transcript.words]


def _json_default(value):
    # numpy scalars from local inference engines
    if hasattr(value, "item"):
        return value.item()
    if hasattr(value, "tolist"):
        return value.tolist()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


@dataclass(frozen=True)
class EncodedTranscript:
    plain_text: str
    srt: str
    vtt: str
    json: str
    verbose_json: str
    word_timestamps: Optional[List[Dict[str, Any]]]


def encode_transcript(transcript: TranscriptionResult) -> EncodedTranscript:
    return EncodedTranscript(
        plain_text=to_plain_text(transcript),
        srt=to_srt(transcript),
        vtt=to_vtt(transcript),
        json=to_json(transcript),
        verbose_json=to_verbose_json(transcript),
        word_timestamps=extract_word_timestamps(transcript),
    )
