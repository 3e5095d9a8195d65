# File: scribo/features/transcription/domain/models.py
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import List, Optional, Dict, Any
from uuid import UUID


@dataclass(frozen=True)
class WordTiming:
    """
    Atomic unit of a spoken word for 'Karaoke' style playback.
    """
    word: str
    start: float
    end: float

    def shifted(self, offset: float) -> "WordTiming":
        return replace(self, start=self.start + offset, end=self.end + offset)

    def to_dict(self) -> Dict[str, Any]:
        return {"word": self.word, "start": self.start, "end": self.end}


@dataclass(frozen=True)
class TranscriptionSegment:
    """
    A phrase with exact timing.
    `extras` carries whatever else the provider reported (seek, tokens,
    avg_logprob, no_speech_prob...) so the verbose export loses nothing.
    """
    id: int
    start: float
    end: float
    text: str
    extras: Dict[str, Any] = field(default_factory=dict)

    def shifted(self, offset: float) -> "TranscriptionSegment":
        return replace(self, start=self.start + offset, end=self.end + offset)

    def to_dict(self) -> Dict[str, Any]:
        data = {"id": self.id}
        data.update(self.extras)
        data.update({"start": self.start, "end": self.end, "text": self.text})
        return data


@dataclass(frozen=True)
class TranscriptionResult:
    """
    The complete output of the speech-to-text provider for one audio file,
    and also the shape of a merged multi-chunk transcript.

    words is None when the provider was not asked for word timestamps.
    """
    language: str
    duration: float
    text: str
    segments: List[TranscriptionSegment] = field(default_factory=list)
    words: Optional[List[WordTiming]] = None
    task: str = "transcribe"

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "task": self.task,
            "language": self.language,
            "duration": self.duration,
            "text": self.text,
            "segments": [s.to_dict() for s in self.segments],
        }
        if self.words is not None:
            data["words"] = [w.to_dict() for w in self.words]
        return data


@dataclass(frozen=True)
class PersistedTranscript:
    """
    The stored, multi-format transcript of one job. Written exactly once.
    """
    job_id: UUID
    user_id: UUID
    plain_text: str
    srt: str
    vtt: str
    json: str
    verbose_json: str
    word_timestamps: Optional[List[Dict[str, Any]]]
    detected_language: str
    duration_seconds: int
    id: Optional[UUID] = None
    created_at: Optional[datetime] = None
