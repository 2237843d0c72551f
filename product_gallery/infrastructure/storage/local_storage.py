"""Local filesystem blob store."""
import logging
import uuid
from pathlib import Path, PurePosixPath
from typing import Optional

import aiofiles
import aiofiles.os

from ...domain.models import MediaKind, MediaRef
from .base import BlobStore, StorageConfig, BlobUploadError, BlobDeleteError

logger = logging.getLogger(__name__)


class LocalBlobStore(BlobStore):
    """Filesystem blob store.

    Stores blobs under base_path using the object id as relative path:
        base_path/
            gallery/images/<uuid>.jpg
            gallery/videos/<uuid>.mp4

    URLs are '<base_url>/<object_id>'; the app mounts base_path there.
    """

    def __init__(self, config: StorageConfig):
        if config.backend != "local":
            raise ValueError(f"LocalBlobStore requires backend='local', got '{config.backend}'")

        self.config = config
        self.base_path = Path(config.base_path)
        self.base_url = config.base_url.rstrip("/")
        self.base_path.mkdir(parents=True, exist_ok=True)

    def _get_path(self, object_id: str) -> Path:
        """Get filesystem path for an object id."""
        parts = PurePosixPath(object_id).parts
        # Reject traversal and absolute keys
        if not parts or object_id.startswith("/") or any(p in ("..", ".") for p in parts):
            raise ValueError(f"Invalid object id: {object_id!r}")
        return self.base_path.joinpath(*parts)

    async def upload(
        self,
        content: bytes,
        namespace: str,
        kind: MediaKind,
        content_type: Optional[str] = None
    ) -> MediaRef:
        """Write the blob to a temp file, then rename it into place."""
        object_id = self.new_object_id(namespace, content_type)
        try:
            file_path = self._get_path(object_id)
        except ValueError as e:
            raise BlobUploadError(f"Failed to upload {kind.value} to {namespace!r}: {e}") from e
        tmp_path = file_path.with_name(f".{uuid.uuid4().hex}.part")

        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(tmp_path, "wb") as f:
                await f.write(content)
            await aiofiles.os.replace(tmp_path, file_path)
        except OSError as e:
            try:
                tmp_path.unlink(missing_ok=True)
            except OSError as cleanup_error:
                logger.warning("Could not remove partial upload %s: %s", tmp_path, cleanup_error)
            raise BlobUploadError(f"Failed to upload {kind.value} to {namespace}: {e}") from e

        return MediaRef(url=self.get_url(object_id), object_id=object_id, kind=kind)

    async def delete(self, object_id: str, kind: MediaKind) -> bool:
        """Delete blob from the filesystem."""
        file_path = self._get_path(object_id)

        if not file_path.exists():
            return False

        try:
            await aiofiles.os.remove(file_path)
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            raise BlobDeleteError(f"Failed to delete {object_id}: {e}")

    async def exists(self, object_id: str) -> bool:
        return self._get_path(object_id).is_file()

    def get_url(self, object_id: str) -> str:
        return f"{self.base_url}/{object_id}"
