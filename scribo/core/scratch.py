# File: scribo/core/scratch.py

import logging
import re
import shutil
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from scribo.core.config.settings import settings

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_.-]+")


class ScratchSpace:
    """
    A private local directory for one job (or one chunk of a job).
    Everything created through it is removed when the owning scope exits.
    """

    def __init__(self, root: Path):
        self.root = root

    def path_for(self, filename: str) -> Path:
        """Returns a path inside the scratch directory (never outside it)."""
        safe_name = _UNSAFE_CHARS.sub("_", Path(filename).name)
        if not safe_name or safe_name in (".", ".."):
            raise ValueError(f"Invalid scratch file name: {filename!r}")
        return self.root / safe_name

    def write_bytes(self, filename: str, data: bytes) -> Path:
        path = self.path_for(filename)
        path.write_bytes(data)
        return path

    def discard(self, path: Path) -> None:
        """Deletes a single scratch file early (e.g. right after a provider call)."""
        path.unlink(missing_ok=True)


@contextmanager
def scratch_space(job_id, label: str, base_dir: Optional[Path] = None) -> Iterator[ScratchSpace]:
    """
    Acquires a uniquely named scratch directory: {base}/scribo_{job_id}_{label}_XXXX.
    The directory is deleted on success AND failure.
    """
    base = Path(base_dir) if base_dir else settings.SCRATCH_DIR
    base.mkdir(parents=True, exist_ok=True)

    prefix = _UNSAFE_CHARS.sub("_", f"scribo_{job_id}_{label}_")
    root = Path(tempfile.mkdtemp(prefix=prefix, dir=str(base)))
    logger.debug(f"Acquired scratch space {root}")
    try:
        yield ScratchSpace(root)
    finally:
        shutil.rmtree(root, ignore_errors=True)
        if root.exists():
            logger.warning(f"Scratch space {root} could not be fully removed")
        else:
            logger.debug(f"Released scratch space {root}")
