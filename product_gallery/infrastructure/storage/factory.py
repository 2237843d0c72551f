"""Factory for creating blob store backends."""
import os
from pathlib import Path

from ...config import DEFAULT_MEDIA_BASE_URL, DEFAULT_STORAGE_PATH
from .base import BlobStore, StorageConfig
from .local_storage import LocalBlobStore


def get_storage_config() -> StorageConfig:
    """Get blob store configuration from environment variables.

    Environment variables:
    - STORAGE_BACKEND: 'local' (default), 's3', 'minio'
    - STORAGE_BASE_PATH: Root directory for local storage
    - MEDIA_BASE_URL: URL prefix for local blobs (default: /media)

    For S3:
    - S3_BUCKET: Bucket name
    - S3_ENDPOINT: Custom endpoint (for MinIO)
    - S3_ACCESS_KEY: Access key
    - S3_SECRET_KEY: Secret key
    - S3_REGION: Region (default: us-east-1)
    - S3_USE_SSL: Use SSL (default: true)
    - S3_PUBLIC_URL: Public URL prefix for objects (CDN or bucket website)
    """
    backend = os.environ.get("STORAGE_BACKEND", "local").lower()

    if backend == "local":
        return StorageConfig(
            backend="local",
            base_path=Path(os.environ.get("STORAGE_BASE_PATH", str(DEFAULT_STORAGE_PATH))),
            base_url=os.environ.get("MEDIA_BASE_URL", DEFAULT_MEDIA_BASE_URL).rstrip("/")
        )

    elif backend in ("s3", "minio"):
        bucket = os.environ.get("S3_BUCKET")
        if not bucket:
            raise ValueError("S3_BUCKET environment variable is required for S3 storage")

        return StorageConfig(
            backend=backend,
            bucket_name=bucket,
            endpoint_url=os.environ.get("S3_ENDPOINT"),
            access_key=os.environ.get("S3_ACCESS_KEY"),
            secret_key=os.environ.get("S3_SECRET_KEY"),
            region=os.environ.get("S3_REGION", "us-east-1"),
            use_ssl=os.environ.get("S3_USE_SSL", "true").lower() == "true",
            public_url=os.environ.get("S3_PUBLIC_URL")
        )

    else:
        raise ValueError(f"Unknown storage backend: {backend}")


def get_storage_from_config(config: StorageConfig) -> BlobStore:
    """Create blob store backend from configuration."""
    if config.backend == "local":
        return LocalBlobStore(config)

    elif config.backend in ("s3", "minio"):
        from .s3_storage import S3BlobStore
        return S3BlobStore(config)

    else:
        raise ValueError(f"Unknown storage backend: {config.backend}")


def create_blob_store() -> BlobStore:
    """Create the process-wide blob store from the environment."""
    return get_storage_from_config(get_storage_config())
