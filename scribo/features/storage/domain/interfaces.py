from abc import ABC, abstractmethod
from typing import Optional


class IObjectStorage(ABC):
    """
    Contract for the blob store holding uploads, extracted audio and chunks.
    Paths are bucket-relative, e.g. "{user_id}/{job_id}/chunk_0.mp3".
    """

    @abstractmethod
    def upload(self, path: str, data: bytes, content_type: Optional[str] = None) -> None:
        """Writes (or overwrites) the object at path."""
        pass

    @abstractmethod
    def download(self, path: str) -> bytes:
        """
        Returns the object's bytes.
        Raises StorageError if it does not exist or cannot be read.
        """
        pass

    @abstractmethod
    def exists(self, path: str) -> bool:
        pass

    @abstractmethod
    def delete(self, path: str) -> bool:
        """Returns False if there was nothing to delete."""
        pass

    @abstractmethod
    def delete_prefix(self, prefix: str) -> int:
        """Deletes every object under prefix. Returns how many were removed."""
        pass
