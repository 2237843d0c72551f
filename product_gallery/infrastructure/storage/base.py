"""Abstract blob store interface."""
import mimetypes
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ...domain.models import MediaKind, MediaRef


class BlobStoreError(Exception):
    """Base exception for blob store operations."""
    pass


class BlobUploadError(BlobStoreError):
    """Failed to upload a blob."""
    pass


class BlobDeleteError(BlobStoreError):
    """Failed to delete a blob."""
    pass


@dataclass
class StorageConfig:
    """Blob store configuration."""
    backend: str  # 'local', 's3', 'minio'

    # Local storage settings
    base_path: Optional[Path] = None
    base_url: str = "/media"

    # S3/MinIO settings
    endpoint_url: Optional[str] = None
    bucket_name: Optional[str] = None
    access_key: Optional[str] = None
    secret_key: Optional[str] = None
    region: str = "us-east-1"
    use_ssl: bool = True
    public_url: Optional[str] = None

    def __post_init__(self):
        if self.backend == "local" and self.base_path is None:
            from ...config import DEFAULT_STORAGE_PATH
            self.base_path = Path(DEFAULT_STORAGE_PATH)


class BlobStore(ABC):
    """Abstract interface for the remote media store.

    Implementations:
    - LocalBlobStore: Filesystem storage served under a URL prefix
    - S3BlobStore: AWS S3 / MinIO / DigitalOcean Spaces

    Object ids are '<namespace>/<uuid><ext>' keys. A fresh key is generated
    for every upload, so ids are never reused.
    """

    def new_object_id(self, namespace: str, content_type: Optional[str] = None) -> str:
        """Generate a fresh object key inside a namespace."""
        ext = ""
        if content_type:
            ext = mimetypes.guess_extension(content_type) or ""
        return f"{namespace.strip('/')}/{uuid.uuid4().hex}{ext}"

    @abstractmethod
    async def upload(
        self,
        content: bytes,
        namespace: str,
        kind: MediaKind,
        content_type: Optional[str] = None
    ) -> MediaRef:
        """Upload content under a namespace.

        Args:
            content: Blob bytes
            namespace: Key prefix (e.g. 'gallery/images')
            kind: Media kind recorded on the returned reference
            content_type: MIME type of the content

        Returns:
            MediaRef with the retrieval URL and object id

        Raises:
            BlobUploadError: If the upload fails. No partial object is
                left visible.
        """
        pass

    @abstractmethod
    async def delete(self, object_id: str, kind: MediaKind) -> bool:
        """Delete a blob.

        Args:
            object_id: Key returned by upload()
            kind: Media kind of the blob

        Returns:
            True if deleted, False if it didn't exist

        Raises:
            BlobDeleteError: If deletion fails for other reasons
        """
        pass

    @abstractmethod
    async def exists(self, object_id: str) -> bool:
        """Check whether a blob exists."""
        pass

    @abstractmethod
    def get_url(self, object_id: str) -> str:
        """Get the public retrieval URL for a blob."""
        pass
