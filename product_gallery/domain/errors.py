"""Caller-visible error kinds raised by the media synchronizer.

Each kind carries a stable ``code`` so the HTTP layer can map it to a status.
Cleanup warnings produced before the failure travel on ``warnings``.
"""
from typing import Optional

from .models import CleanupWarning, GalleryRecord, MediaKind


class GalleryError(Exception):
    """Base exception for gallery operations."""
    code = "gallery_error"

    def __init__(self, message: str, warnings: Optional[list[CleanupWarning]] = None):
        super().__init__(message)
        self.message = message
        self.warnings: list[CleanupWarning] = list(warnings or [])


class ValidationError(GalleryError):
    """Invalid input (missing image, blank name, bad media type)."""
    code = "validation_error"


class NotFoundError(GalleryError):
    """Record id does not resolve to a record."""
    code = "not_found"

    def __init__(self, record_id: int, warnings: Optional[list[CleanupWarning]] = None):
        super().__init__(f"Product {record_id} not found", warnings)
        self.record_id = record_id


class UploadError(GalleryError):
    """Blob store rejected or failed one or more uploads.

    Attributes:
        failures: kind -> failure message, one entry per failed slot
        record: Record state committed by the surviving slots of a
            replace, or None when nothing was committed
    """
    code = "upload_error"

    def __init__(
        self,
        failures: dict[MediaKind, str],
        record: Optional[GalleryRecord] = None,
        warnings: Optional[list[CleanupWarning]] = None
    ):
        kinds = ", ".join(kind.value for kind in failures)
        super().__init__(f"Upload failed for: {kinds}", warnings)
        self.failures = dict(failures)
        self.record = record


class StorageWriteError(GalleryError):
    """Relational insert, update or delete failed."""
    code = "storage_write_error"


class StorageReadError(GalleryError):
    """Relational select failed."""
    code = "storage_read_error"
