# Repository Pattern Implementation
"""
Repositories abstract database operations.
Each entity has its own repository.
"""
from .base import AsyncRepository, RecordStoreError
from .gallery_repository import GalleryRepository

__all__ = [
    "AsyncRepository",
    "RecordStoreError",
    "GalleryRepository",
]
