from dataclasses import dataclass
from typing import Any, Dict


@dataclass(frozen=True)
class ChunkWindow:
    """
    One planned cut of the normalized audio, before it exists anywhere.
    """
    index: int
    offset: float    # seconds from the start of the original audio
    duration: float  # seconds
    is_last: bool = False

    @property
    def end(self) -> float:
        return self.offset + self.duration


@dataclass(frozen=True)
class AudioChunkReference:
    """
    A chunk that has been uploaded to object storage.
    Sorted by offset, a list of these reconstructs the whole recording.
    """
    url: str
    offset: float
    duration: float

    def to_dict(self) -> Dict[str, Any]:
        return {"url": self.url, "offset": self.offset, "duration": self.duration}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AudioChunkReference":
        return cls(
            url=data["url"],
            offset=float(data["offset"]),
            duration=float(data["duration"])
        )
