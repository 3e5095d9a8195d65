from typing import Optional

from scribo.core.config.settings import Settings, settings as default_settings
from ..domain.interfaces import IObjectStorage
from ..data.local_fs import LocalObjectStorage


def build_object_storage(config: Optional[Settings] = None) -> IObjectStorage:
    """
    Facade for the Storage Feature.
    Picks the backend named by STORAGE_BACKEND ("local" or "gcs").
    """
    config = config or default_settings
    backend = config.STORAGE_BACKEND.lower()

    if backend == "local":
        return LocalObjectStorage(config.MEDIA_BUCKET_DIR)

    if backend == "gcs":
        # Lazy import: google-cloud-storage is only needed for this backend
        from ..data.gcs_adapter import GCSObjectStorage
        return GCSObjectStorage(config.STORAGE_BUCKET)

    raise NotImplementedError(f"Unknown storage backend: {config.STORAGE_BACKEND}")
