"""Application layer - business logic services.

This layer contains application services that orchestrate domain operations.
Services are independent of HTTP/FastAPI and can be tested in isolation.
"""

from .services.media_sync_service import MediaSyncService

__all__ = [
    "MediaSyncService",
]
