"""Object storage service for uploaded and normalized clips."""

import logging
import mimetypes
from io import BytesIO
from typing import Protocol

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from voiceset.config import Settings
from voiceset.services.errors import StorageError

logger = logging.getLogger(__name__)


class ObjectStore(Protocol):
    """Minimal blob storage capability used by the clip handlers."""

    def put(self, key: str, data: bytes, content_type: str = "application/octet-stream") -> str:
        ...

    def get(self, key: str) -> bytes:
        ...

    def delete(self, key: str) -> None:
        ...

    def health_check(self) -> bool:
        ...


class StorageService:
    """Service for managing object storage (MinIO/S3)."""

    def __init__(self, settings: Settings, client=None):
        self._settings = settings
        self._client = client
        self._bucket = settings.minio_bucket
        self._bucket_checked = client is not None

    @property
    def client(self):
        """Lazy initialization of S3 client."""
        if self._client is None:
            self._client = boto3.client(
                "s3",
                endpoint_url=self._settings.storage_endpoint_url,
                aws_access_key_id=self._settings.minio_access_key,
                aws_secret_access_key=self._settings.minio_secret_key,
                region_name=self._settings.minio_region,
                config=Config(signature_version="s3v4"),
            )
        if not self._bucket_checked:
            self._ensure_bucket()
            self._bucket_checked = True
        return self._client

    def _ensure_bucket(self):
        """Create bucket if it doesn't exist."""
        try:
            self._client.head_bucket(Bucket=self._bucket)
        except ClientError:
            logger.info(f"Creating bucket {self._bucket}")
            self._client.create_bucket(Bucket=self._bucket)

    def put(self, key: str, data: bytes, content_type: str = "application/octet-stream") -> str:
        """
        Upload bytes under ``key``.

        Returns:
            The storage key, usable with ``get``.

        Raises:
            StorageError: if the store is unreachable or rejects the write.
        """
        try:
            self.client.put_object(
                Bucket=self._bucket,
                Key=key,
                Body=BytesIO(data),
                ContentType=content_type,
            )
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"Failed to store {key}: {e}") from e
        return key

    def get(self, key: str) -> bytes:
        """Download an object's bytes."""
        try:
            response = self.client.get_object(Bucket=self._bucket, Key=key)
            return response["Body"].read()
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"Failed to read {key}: {e}") from e

    def delete(self, key: str) -> None:
        """Delete an object. Deleting a missing key is not an error in S3."""
        try:
            self.client.delete_object(Bucket=self._bucket, Key=key)
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"Failed to delete {key}: {e}") from e

    def health_check(self) -> bool:
        """Check if storage is accessible."""
        try:
            self.client.head_bucket(Bucket=self._bucket)
            return True
        except (ClientError, BotoCoreError) as e:
            logger.warning(f"Storage health check failed: {e}")
            return False


def extension_for(content_type: str) -> str:
    """Get file extension from content type."""
    mapping = {
        "audio/wav": ".wav",
        "audio/x-wav": ".wav",
        "audio/wave": ".wav",
        "audio/mpeg": ".mp3",
        "audio/mp3": ".mp3",
        "audio/ogg": ".ogg",
        "audio/flac": ".flac",
        "audio/m4a": ".m4a",
        "audio/mp4": ".m4a",
        "audio/webm": ".webm",
    }
    base = content_type.split(";", 1)[0].strip().lower()
    return mapping.get(base) or mimetypes.guess_extension(base) or ""
