"""Application services - business logic layer."""

from .media_sync_service import MediaSyncService, KeyedLocks

__all__ = [
    "MediaSyncService",
    "KeyedLocks",
]
