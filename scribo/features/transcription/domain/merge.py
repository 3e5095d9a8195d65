from dataclasses import replace
from typing import Sequence

from .models import TranscriptionResult


def adjust_timestamps(result: TranscriptionResult, offset_seconds: float) -> TranscriptionResult:
    """
    Moves every segment and word by offset_seconds.
    Chunk-relative times become times in the original recording.
    """
    return replace(
        result,
        segments=[s.shifted(offset_seconds) for s in result.segments],
        words=[w.shifted(offset_seconds) for w in result.words] if result.words is not None else None
    )


def merge_transcripts(transcripts: Sequence[TranscriptionResult]) -> TranscriptionResult:
    """
    Combines offset-adjusted chunk results, already in chronological order.

    - Segment ids are renumbered 0..N-1 across all chunks.
    - Texts are trimmed and joined with a single space.
    - Words are kept only if EVERY chunk has them; a partial word list
      would have silent gaps.
    - Duration is the end of the last segment.
    - A single transcript is returned unchanged.
    """
    if not transcripts:
        raise ValueError("Cannot merge empty transcript array")

    if len(transcripts) == 1:
        return transcripts[0]

    segments = []
    for transcript in transcripts:
        for segment in transcript.segments:
            segments.append(replace(segment, id=len(segments)))

    words = None
    if all(t.words is not None for t in transcripts):
        words = [w for t in transcripts for w in t.words]

    first = transcripts[0]
    return TranscriptionResult(
        task=first.task,
        language=first.language,
        duration=segments[-1].end if segments else 0.0,
        text=" ".join(t.text.strip() for t in transcripts),
        segments=segments,
        words=words
    )
