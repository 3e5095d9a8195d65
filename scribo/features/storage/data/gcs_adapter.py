import logging
from typing import Optional

from google.api_core import exceptions as gcs_exceptions
from google.cloud import storage

from scribo.core.errors import StorageError
from ..domain.interfaces import IObjectStorage

logger = logging.getLogger(__name__)


class GCSObjectStorage(IObjectStorage):
    """
    Google Cloud Storage backed object store.
    Object paths map 1:1 to blob names inside a single bucket.
    """

    def __init__(self, bucket_name: str, client: Optional[storage.Client] = None):
        self.client = client or storage.Client()
        self.bucket = self.client.bucket(bucket_name)
        self.bucket_name = bucket_name

    def upload(self, path: str, data: bytes, content_type: Optional[str] = None) -> None:
        blob = self.bucket.blob(path)
        try:
            blob.upload_from_string(data, content_type=content_type)
        except gcs_exceptions.GoogleAPIError as e:
            raise StorageError(f"Failed to upload gs://{self.bucket_name}/{path}: {e}") from e

    def download(self, path: str) -> bytes:
        blob = self.bucket.blob(path)
        try:
            return blob.download_as_bytes()
        except gcs_exceptions.NotFound as e:
            raise StorageError(f"Failed to download file: gs://{self.bucket_name}/{path} does not exist") from e
        except gcs_exceptions.GoogleAPIError as e:
            raise StorageError(f"Failed to download gs://{self.bucket_name}/{path}: {e}") from e

    def exists(self, path: str) -> bool:
        return self.bucket.blob(path).exists()

    def delete(self, path: str) -> bool:
        try:
            self.bucket.blob(path).delete()
            return True
        except gcs_exceptions.NotFound:
            return False

    def delete_prefix(self, prefix: str) -> int:
        removed = 0
        for blob in self.client.list_blobs(self.bucket_name, prefix=prefix):
            blob.delete()
            removed += 1
        logger.info(f"Removed {removed} objects under gs://{self.bucket_name}/{prefix}")
        return removed
