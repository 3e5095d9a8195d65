import logging
from pathlib import Path, PurePosixPath
from typing import Optional

from scribo.core.errors import StorageError
from ..domain.interfaces import IObjectStorage

logger = logging.getLogger(__name__)


class LocalObjectStorage(IObjectStorage):
    """
    Path-addressed object store on the local filesystem.
    Object "a/b/c.mp3" lives at {root}/a/b/c.mp3.
    """

    def __init__(self, root: Path):
        self.root = Path(root).resolve()
        self.root.mkdir(parents=True, exist_ok=True)

    def _resolve(self, path: str) -> Path:
        relative = PurePosixPath(path.lstrip("/"))
        if not relative.parts or ".." in relative.parts:
            raise StorageError(f"Invalid storage path: {path!r}")
        return self.root.joinpath(*relative.parts)

    def upload(self, path: str, data: bytes, content_type: Optional[str] = None) -> None:
        destination = self._resolve(path)
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            # Write-then-rename so readers never see a half written object
            tmp = destination.with_name(destination.name + ".part")
            tmp.write_bytes(data)
            tmp.replace(destination)
        except OSError as e:
            raise StorageError(f"Failed to upload {path}: {e}") from e
        logger.debug(f"Stored {len(data)} bytes at {destination}")

    def download(self, path: str) -> bytes:
        source = self._resolve(path)
        try:
            return source.read_bytes()
        except FileNotFoundError as e:
            raise StorageError(f"Failed to download file: {path} does not exist") from e
        except OSError as e:
            raise StorageError(f"Failed to download file {path}: {e}") from e

    def exists(self, path: str) -> bool:
        return self._resolve(path).is_file()

    def delete(self, path: str) -> bool:
        target = self._resolve(path)
        if not target.is_file():
            return False
        target.unlink()
        return True

    def delete_prefix(self, prefix: str) -> int:
        base = self._resolve(prefix)
        if base.is_file():
            base.unlink()
            return 1
        if not base.is_dir():
            return 0

        removed = 0
        for item in sorted(base.rglob("*"), reverse=True):
            if item.is_file():
                item.unlink()
                removed += 1
            elif item.is_dir():
                item.rmdir()
        base.rmdir()
        return removed
