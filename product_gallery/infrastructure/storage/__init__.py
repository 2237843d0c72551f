"""Blob store abstraction for product media.

Supports multiple backends: local filesystem, S3, MinIO, etc.
"""
from .base import BlobStore, BlobStoreError, BlobUploadError, BlobDeleteError, StorageConfig
from .local_storage import LocalBlobStore
from .s3_storage import S3BlobStore
from .factory import create_blob_store, get_storage_config, get_storage_from_config

__all__ = [
    "BlobStore",
    "BlobStoreError",
    "BlobUploadError",
    "BlobDeleteError",
    "StorageConfig",
    "LocalBlobStore",
    "S3BlobStore",
    "create_blob_store",
    "get_storage_config",
    "get_storage_from_config",
]
