"""Domain layer - gallery records, media references and error kinds."""
from .errors import (
    GalleryError,
    ValidationError,
    NotFoundError,
    UploadError,
    StorageWriteError,
    StorageReadError,
)
from .models import (
    MediaKind,
    MediaRef,
    MediaInput,
    GalleryRecord,
    CleanupWarning,
    SyncResult,
)

__all__ = [
    "GalleryError",
    "ValidationError",
    "NotFoundError",
    "UploadError",
    "StorageWriteError",
    "StorageReadError",
    "MediaKind",
    "MediaRef",
    "MediaInput",
    "GalleryRecord",
    "CleanupWarning",
    "SyncResult",
]
